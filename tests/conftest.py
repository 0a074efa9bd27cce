# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment is set up before journal_api is imported: database.py builds its
# engine at import time, so it must see the in-memory SQLite URL.
# =============================================================================

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FIREBASE_WEB_API_KEY"] = "test-web-api-key"
os.environ.pop("DEBUG", None)
os.environ.pop("PORT", None)

import pytest
from fastapi.testclient import TestClient

from journal_api import auth as firebase
from journal_api.database import Base, engine
from journal_api.errors import AuthenticationError, ConflictError
from journal_api.main import app

# Decoded ID tokens keyed by the raw bearer token
FAKE_TOKENS = {
    "token-alice": {"uid": "alice", "email": "alice@example.com", "name": "Alice Walker"},
    "token-bob": {"uid": "bob", "email": "bob@example.com", "name": "Bob Marley"},
}


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts with empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_firebase(monkeypatch):
    """Replaces every Firebase call with an in-memory account store."""
    accounts = {}
    revoked = []

    def verify_id_token(token):
        if token not in FAKE_TOKENS:
            raise ValueError("Token is not a valid Firebase ID token")
        return FAKE_TOKENS[token]

    def create_user(email, password, display_name):
        if email in accounts:
            raise ConflictError("Email is already registered")
        uid = f"uid-{len(accounts) + 1}"
        accounts[email] = {"uid": uid, "password": password, "display_name": display_name}
        return uid

    async def sign_in_with_password(email, password, client=None):
        account = accounts.get(email)
        if account is None or account["password"] != password:
            raise AuthenticationError("Invalid email or password")
        return {
            "idToken": f"id-token-{account['uid']}",
            "refreshToken": f"refresh-{account['uid']}",
            "expiresIn": "3600",
            "localId": account["uid"],
            "email": email,
            "displayName": account["display_name"],
        }

    def revoke_sessions(uid):
        revoked.append(uid)

    monkeypatch.setattr(firebase, "verify_id_token", verify_id_token)
    monkeypatch.setattr(firebase, "create_user", create_user)
    monkeypatch.setattr(firebase, "sign_in_with_password", sign_in_with_password)
    monkeypatch.setattr(firebase, "revoke_sessions", revoke_sessions)

    return {"accounts": accounts, "revoked": revoked}


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}
