"""Security utilities - DRY principle"""
import re
import secrets
import string
import bcrypt

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

def check_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # stored value is not a bcrypt hash
        return False

def generate_temp_password(length: int = 10) -> str:
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))

def generate_meeting_id() -> str:
    """Random meeting id like abc-defg-hij"""
    letters = string.ascii_lowercase
    parts = [''.join(secrets.choice(letters) for _ in range(n)) for n in (3, 4, 3)]
    return '-'.join(parts)


def sanitize_regex_input(pattern: str) -> str:
    """Escape regex metacharacters"""
    return re.escape(str(pattern).strip())
