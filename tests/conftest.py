"""Shared fixtures: an in-memory database, the app, and signed-in accounts."""

import itertools

import mongomock
import pytest

from coachhub.app import create_app
from coachhub.db.db_utils import init_db
from coachhub.jwt.jwt_utils import JWTManager
from coachhub.jwt.token_blacklist import blacklisted_tokens
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.auth.account_service import AccountService
from coachhub.utils.cache.cache_utils import clear_all_caches, login_rate_limiter

PASSWORD = "secret123"


@pytest.fixture()
def app():
    init_db(mongomock.MongoClient(), "coachhub_test")
    RepositoryFactory.reset()
    clear_all_caches()
    login_rate_limiter.reset()
    blacklisted_tokens.clear()
    return create_app(testing=True)


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def tokens(app):
    """Mint bearer headers for an account document"""
    def _headers(account, user_type, refresh=False):
        user = {
            "id": str(account["_id"]),
            "username": account.get("username"),
            "email": account.get("email"),
            "userType": user_type
        }
        with app.app_context():
            token = JWTManager.generate_refresh_token(user) if refresh else JWTManager.generate_token(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def make_user(app):
    counter = itertools.count(1)

    def _make(role, created_by=None, **fields):
        n = next(counter)
        data = {
            "firstName": role.title(),
            "lastName": f"Number{n}",
            "username": f"{role}{n}",
            "email": f"{role}{n}@example.com",
            "password": PASSWORD,
            **fields
        }
        return AccountService().create_user(role, data, created_by=created_by)
    return _make


@pytest.fixture()
def make_parent(app):
    counter = itertools.count(1)

    def _make(children, created_by=None, **fields):
        n = next(counter)
        data = {
            "firstName": "Parent",
            "lastName": f"Number{n}",
            "username": f"parent{n}",
            "email": f"parent{n}@example.com",
            "password": PASSWORD,
            "children": [str(c) for c in children],
            **fields
        }
        return AccountService().create_parent(data, created_by=created_by)
    return _make


@pytest.fixture()
def admin(make_user, tokens):
    user = make_user("admin")
    return user, tokens(user, "admin")


@pytest.fixture()
def teacher(make_user, tokens):
    user = make_user("teacher")
    return user, tokens(user, "teacher")


@pytest.fixture()
def student(make_user, tokens, teacher):
    """A student created by the teacher fixture"""
    user = make_user("student", created_by=teacher[0]["_id"])
    return user, tokens(user, "student")


@pytest.fixture()
def parent(make_parent, tokens, student, teacher):
    account = make_parent([student[0]["_id"]], created_by=teacher[0]["_id"])
    return account, tokens(account, "parent")
