"""Login, token lifecycle and role checks."""

from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.cache.cache_utils import login_rate_limiter

from conftest import PASSWORD


def test_login_with_username_returns_tokens(client, make_user):
    user = make_user("teacher")

    response = client.post("/api/auth/login", json={"username": user["username"], "password": PASSWORD})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["username"] == user["username"]
    assert "password" not in data["user"]


def test_login_with_email_updates_last_login(client, make_user):
    user = make_user("student")

    response = client.post("/api/auth/login", json={"email": user["email"], "password": PASSWORD})

    assert response.status_code == 200
    stored = RepositoryFactory.get_user_repo().find_by_id(user["_id"])
    assert stored.get("lastLogin") is not None


def test_login_rejects_wrong_password(client, make_user):
    user = make_user("teacher")

    response = client.post("/api/auth/login", json={"username": user["username"], "password": "nope-nope"})

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_login_requires_credentials(client):
    response = client.post("/api/auth/login", json={"username": ""})
    assert response.status_code == 400


def test_login_rejects_inactive_account(client, make_user):
    user = make_user("teacher")
    RepositoryFactory.get_user_repo().set_active(user["_id"], False)

    response = client.post("/api/auth/login", json={"username": user["username"], "password": PASSWORD})

    assert response.status_code == 403


def test_login_is_rate_limited_per_client(client, make_user):
    user = make_user("teacher")
    payload = {"username": user["username"], "password": "wrong-password"}

    statuses = [client.post("/api/auth/login", json=payload).status_code for _ in range(login_rate_limiter.limit)]
    blocked = client.post("/api/auth/login", json=payload)

    assert set(statuses) == {401}
    assert blocked.status_code == 429


def test_me_returns_profile_without_password(client, teacher):
    user, headers = teacher

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["id"] == str(user["_id"])
    assert data["userType"] == "teacher"
    assert "password" not in data


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.get_json()["error"] == "NO_AUTH_HEADER"


def test_wrong_role_is_forbidden(client, student):
    _, headers = student
    response = client.get("/api/teacher/classes", headers=headers)
    assert response.status_code == 403


def test_logout_blacklists_token(client, teacher):
    _, headers = teacher

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.get_json()["error"] == "TOKEN_BLACKLISTED"


def test_refresh_issues_new_access_token(client, teacher, tokens):
    user, _ = teacher
    refresh_headers = tokens(user, "teacher", refresh=True)

    response = client.post("/api/auth/refresh", headers=refresh_headers)

    assert response.status_code == 200
    new_token = response.get_json()["data"]["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
    assert me.status_code == 200


def test_refresh_rejects_access_token(client, teacher):
    _, headers = teacher
    response = client.post("/api/auth/refresh", headers=headers)
    assert response.status_code == 401


def test_parent_login(client, parent):
    account, _ = parent

    response = client.post("/api/parent/auth/login", json={"username": account["username"], "password": PASSWORD})

    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["username"] == account["username"]


def test_parent_cannot_use_user_login(client, parent):
    account, _ = parent
    response = client.post("/api/auth/login", json={"username": account["username"], "password": PASSWORD})
    assert response.status_code == 401


def _login(client, user):
    response = client.post("/api/auth/login", json={"username": user["username"], "password": PASSWORD})
    return response.get_json()["data"]


def test_logout_also_invalidates_refresh_token(client, make_user):
    session = _login(client, make_user("teacher"))
    access = {"Authorization": f"Bearer {session['access_token']}"}
    refresh = {"Authorization": f"Bearer {session['refresh_token']}"}

    assert client.post("/api/auth/logout", headers=access).status_code == 200
    response = client.post("/api/auth/refresh", headers=refresh)

    assert response.status_code == 401


def test_logout_leaves_other_sessions_alive(client, make_user):
    user = make_user("teacher")
    first = _login(client, user)
    second = _login(client, user)

    client.post("/api/auth/logout", headers={"Authorization": f"Bearer {first['access_token']}"})

    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {second['access_token']}"}).status_code == 200
    assert client.post("/api/auth/refresh",
                       headers={"Authorization": f"Bearer {second['refresh_token']}"}).status_code == 200


def test_deactivated_account_tokens_stop_working(client, teacher, tokens):
    user, headers = teacher
    refresh_headers = tokens(user, "teacher", refresh=True)
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    RepositoryFactory.get_user_repo().set_active(user["_id"], False)
    me = client.get("/api/auth/me", headers=headers)
    refreshed = client.post("/api/auth/refresh", headers=refresh_headers)

    assert me.status_code == 401
    assert me.get_json()["error"] == "ACCOUNT_DISABLED"
    assert refreshed.status_code == 401


def test_deactivated_parent_token_is_rejected(client, parent):
    account, headers = parent
    RepositoryFactory.get_parent_repo().set_active(account["_id"], False)

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.get_json()["error"] == "ACCOUNT_DISABLED"
