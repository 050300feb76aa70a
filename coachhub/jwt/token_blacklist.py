# In-memory blacklist storage
blacklisted_tokens = set()

def blacklist_token(jti):
    blacklisted_tokens.add(jti)

def is_token_blacklisted(jti):
    """Check if token is blacklisted"""
    return jti in blacklisted_tokens

def revoke_session(claims):
    """Blacklist the token and the login session it belongs to"""
    blacklist_token(claims["jti"])
    if claims.get("sid"):
        blacklist_token(claims["sid"])

def is_session_revoked(claims):
    """True when the token or its login session was blacklisted"""
    sid = claims.get("sid")
    return is_token_blacklisted(claims.get("jti")) or (sid is not None and is_token_blacklisted(sid))
