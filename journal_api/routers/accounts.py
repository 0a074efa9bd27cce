"""
Auth API - sign up, sign in, profile and sign out backed by Firebase Auth
"""
import logfire
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from journal_api import auth as firebase
from journal_api.auth import get_current_user
from journal_api.database import get_db, PostDB, UserDB
from journal_api.errors import ConflictError
from journal_api.models.user_models import (
    AuthResponse,
    SignInRequest,
    SignUpRequest,
    UpdateProfileRequest,
    UserProfileResponse,
)

router = APIRouter()


# --- Helper Functions ---

def split_display_name(name: str) -> tuple:
    first, _, last = (name or "").strip().partition(" ")
    return first or "Traveler", last.strip() or "-"


def adopt_profile(db: Session, stale: UserDB, uid: str) -> UserDB:
    """
    Move a profile left behind by a deleted Firebase account to the account
    that now owns its email. The posts follow the profile.
    """
    old_uid = stale.id
    user = UserDB(
        id=uid,
        first_name=stale.first_name,
        last_name=stale.last_name,
        email=stale.email,
        created_at=stale.created_at,
    )

    # Free the unique email before the new row claims it
    stale.email = f"{old_uid}@users.invalid"
    db.flush()
    db.add(user)
    db.flush()

    db.query(PostDB).filter(PostDB.owner_id == old_uid).update(
        {PostDB.owner_id: uid}, synchronize_session=False
    )
    db.delete(stale)

    logfire.warn("API: Profile of {old_uid} moved to {uid}", old_uid=old_uid, uid=uid)
    return user


def ensure_user_exists(db: Session, uid: str, email: str, display_name: str = "") -> UserDB:
    """Return the local profile row for a Firebase user, creating it on first sight"""
    user = db.query(UserDB).filter(UserDB.id == uid).first()
    if user:
        return user

    # Tokens from phone or anonymous sign-in carry no email
    email = email or f"{uid}@users.invalid"

    try:
        stale = db.query(UserDB).filter(UserDB.email == email).first()
        if stale:
            user = adopt_profile(db, stale, uid)
        else:
            first_name, last_name = split_display_name(display_name)
            user = UserDB(id=uid, first_name=first_name, last_name=last_name, email=email)
            db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        # Another request created the same profile first
        user = db.query(UserDB).filter(UserDB.id == uid).first()
        if user:
            return user
        raise ConflictError("Email is already registered")

    db.refresh(user)
    logfire.info("API: Created profile for user {uid}", uid=uid)
    return user


def register_profile(db: Session, uid: str, request: SignUpRequest) -> UserDB:
    user = ensure_user_exists(db, uid, request.email)
    user.first_name = request.first_name
    user.last_name = request.last_name
    db.commit()
    db.refresh(user)
    return user


def build_auth_response(session: dict, user: UserDB) -> AuthResponse:
    return AuthResponse(
        token=session["idToken"],
        refresh_token=session["refreshToken"],
        expires_in=int(session.get("expiresIn", 3600)),
        user=UserProfileResponse.model_validate(user),
    )


# --- Endpoints ---

@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(request: SignUpRequest, db: Session = Depends(get_db)):
    """Register a new account and return a signed-in session"""
    # Firebase owns the email namespace; a leftover local row is adopted below
    uid = await run_in_threadpool(
        firebase.create_user,
        email=request.email,
        password=request.password,
        display_name=f"{request.first_name} {request.last_name}",
    )

    user = await run_in_threadpool(register_profile, db, uid, request)

    logfire.info("API: Signed up user {uid}", uid=uid)

    session = await firebase.sign_in_with_password(request.email, request.password)
    return build_auth_response(session, user)


@router.post("/signin", response_model=AuthResponse)
async def signin(request: SignInRequest, db: Session = Depends(get_db)):
    """Sign in with email and password"""
    session = await firebase.sign_in_with_password(request.email, request.password)
    user = await run_in_threadpool(
        ensure_user_exists,
        db,
        uid=session["localId"],
        email=session.get("email", request.email),
        display_name=session.get("displayName", ""),
    )
    logfire.info("API: Signed in user {uid}", uid=user.id)
    return build_auth_response(session, user)


@router.get("/me", response_model=UserProfileResponse)
def get_me(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get the current user's profile"""
    db_user = ensure_user_exists(db, user["uid"], user.get("email", ""), user.get("name", ""))
    return UserProfileResponse.model_validate(db_user)


@router.put("/me", response_model=UserProfileResponse)
def update_me(
    request: UpdateProfileRequest,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the current user's name"""
    db_user = ensure_user_exists(db, user["uid"], user.get("email", ""), user.get("name", ""))

    if request.first_name is not None:
        db_user.first_name = request.first_name

    if request.last_name is not None:
        db_user.last_name = request.last_name

    db.commit()
    db.refresh(db_user)

    logfire.info("API: Updated profile for user {uid}", uid=user["uid"])

    return UserProfileResponse.model_validate(db_user)


@router.post("/signout")
def signout(user: dict = Depends(get_current_user)):
    """Revoke every session of the current user"""
    firebase.revoke_sessions(user["uid"])
    logfire.info("API: Signed out user {uid}", uid=user["uid"])
    return {"success": True}
