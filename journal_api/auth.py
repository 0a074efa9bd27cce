import os
import firebase_admin
import httpx
import logfire
from firebase_admin import auth, credentials
from fastapi import Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from journal_api.errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    UpstreamError,
)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Identity Toolkit error codes that mean "wrong email or password"
INVALID_CREDENTIAL_CODES = {"EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "INVALID_EMAIL"}


def init_firebase():
    """
    Initialize the Firebase Admin SDK from FIREBASE_* environment variables.
    Safe to call repeatedly; only the first call initializes.
    """
    if firebase_admin._apps:
        return

    # Build Firebase credentials from individual environment variables
    firebase_config = {
        "type": os.getenv("FIREBASE_TYPE", "service_account"),
        "project_id": os.getenv("FIREBASE_PROJECT_ID"),
        "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
        "private_key": os.getenv("FIREBASE_PRIVATE_KEY"),
        "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
        "client_id": os.getenv("FIREBASE_CLIENT_ID"),
        "auth_uri": os.getenv("FIREBASE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth"),
        "token_uri": os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
        "auth_provider_x509_cert_url": os.getenv("FIREBASE_AUTH_PROVIDER_CERT_URL", "https://www.googleapis.com/oauth2/v1/certs"),
        "client_x509_cert_url": os.getenv("FIREBASE_CLIENT_CERT_URL"),
    }

    # Check required fields
    required_fields = ["project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if not firebase_config.get(field)]

    if missing_fields:
        missing = ", ".join(f"FIREBASE_{field.upper()}" for field in missing_fields)
        logfire.error("Missing required Firebase environment variables: {missing}", missing=missing)
        raise ConfigurationError("Authentication is not configured")

    # Hosting providers often store the key with escaped newlines
    firebase_config["private_key"] = firebase_config["private_key"].replace("\\n", "\n")

    try:
        cred = credentials.Certificate(firebase_config)
        firebase_admin.initialize_app(cred)
    except ValueError as e:
        logfire.error("Failed to initialize Firebase: {error}", error=str(e))
        raise ConfigurationError("Authentication is not configured")
    logfire.info("Firebase initialized for project: {project_id}", project_id=firebase_config["project_id"])


def verify_id_token(token: str) -> dict:
    """Verify a Firebase ID token and return its decoded claims."""
    init_firebase()
    return auth.verify_id_token(token)


def create_user(email: str, password: str, display_name: str) -> str:
    """Create a Firebase user and return its uid."""
    init_firebase()
    try:
        record = auth.create_user(email=email, password=password, display_name=display_name)
    except auth.EmailAlreadyExistsError:
        raise ConflictError("Email is already registered")
    except ValueError as e:
        # firebase_admin validates email/password format locally
        raise ApiError(str(e), status_code=400)
    return record.uid


def revoke_sessions(uid: str) -> None:
    """Invalidate every refresh token issued to the user."""
    init_firebase()
    auth.revoke_refresh_tokens(uid)


async def sign_in_with_password(email: str, password: str, client: Optional[httpx.AsyncClient] = None) -> dict:
    """
    Exchange email/password for an ID token through the Identity Toolkit REST API.

    Returns the raw Identity Toolkit payload (idToken, refreshToken, expiresIn, localId, email).
    """
    api_key = os.getenv("FIREBASE_WEB_API_KEY")
    if not api_key:
        logfire.error("FIREBASE_WEB_API_KEY is missing")
        raise ConfigurationError("Authentication is not configured")

    payload = {"email": email, "password": password, "returnSecureToken": True}

    async def _post(http: httpx.AsyncClient) -> httpx.Response:
        return await http.post(IDENTITY_TOOLKIT_URL, params={"key": api_key}, json=payload)

    try:
        if client is not None:
            response = await _post(client)
        else:
            async with httpx.AsyncClient(timeout=10.0) as http:
                response = await _post(http)
    except httpx.RequestError as e:
        logfire.error("Identity Toolkit request failed: {error}", error=str(e))
        raise UpstreamError("Authentication service unavailable")

    if response.status_code == 200:
        return response.json()

    try:
        code = response.json().get("error", {}).get("message", "")
    except ValueError:
        code = ""
    # Messages look like "INVALID_PASSWORD" or "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
    code = code.split(":", 1)[0].strip()

    if code in INVALID_CREDENTIAL_CODES:
        raise AuthenticationError("Invalid email or password")
    if code == "USER_DISABLED":
        raise ForbiddenError("Account is disabled")
    logfire.error("Identity Toolkit sign-in failed: {status} {code}", status=response.status_code, code=code)
    raise UpstreamError("Authentication service unavailable")


security = HTTPBearer(auto_error=False)

def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Security(security)) -> dict:
    """
    Verifies the Firebase ID token and returns the decoded token (user info).
    """
    if not credentials:
        raise AuthenticationError("Not authenticated")

    try:
        return verify_id_token(credentials.credentials)
    except ConfigurationError:
        raise
    except Exception as e:
        logfire.warn("Auth Error: {error}", error=str(e))
        raise AuthenticationError()
