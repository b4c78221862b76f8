"""
Shared fixtures for the User Management API tests.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add the project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from user_api.config import UserApiSettings
from user_api.handlers import TokenAuthenticator
from user_api.main import create_app
from user_api.services import UserStore

TEST_SECRET = "test_signing_secret_0123456789_abcdefgh"
TEST_ISSUER = "UserManagementApiTests"


@pytest.fixture
def settings():
    """Settings with a test-only secret and issuer"""
    return UserApiSettings(jwt_secret=TEST_SECRET, jwt_issuer=TEST_ISSUER)


@pytest.fixture
def store():
    """Fresh empty user store"""
    return UserStore()


@pytest.fixture
def authenticator(settings):
    return TokenAuthenticator(settings)


@pytest.fixture
def app(settings, store):
    """Application wired to the test settings and store"""
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    """Authorization header obtained through /login"""
    response = client.post("/login", json={"username": "admin", "password": "password"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
