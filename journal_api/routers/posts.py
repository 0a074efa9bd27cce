"""
Posts API - travel journal entries
"""
from datetime import datetime, timezone
from typing import List, Optional

import logfire
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from journal_api.auth import get_current_user
from journal_api.database import get_db, PostDB
from journal_api.errors import ForbiddenError, NotFoundError
from journal_api.models.post_models import CreatePostRequest, PostResponse, UpdatePostRequest
from journal_api.routers.accounts import ensure_user_exists

router = APIRouter()


# --- Helper Functions ---

def to_naive_utc(value: datetime) -> datetime:
    """Columns store naive UTC timestamps"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def get_post_or_404(db: Session, post_id: str) -> PostDB:
    post = db.query(PostDB).filter(PostDB.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


def get_owned_post(db: Session, post_id: str, user: dict) -> PostDB:
    post = get_post_or_404(db, post_id)
    if post.owner_id != user["uid"]:
        logfire.warn("API: User {uid} tried to modify post {post_id}", uid=user["uid"], post_id=post_id)
        raise ForbiddenError("You can only modify your own posts")
    return post


# --- Endpoints ---

@router.api_route("", methods=["GET", "HEAD"], response_model=List[PostResponse])
@router.api_route("/", methods=["GET", "HEAD"], response_model=List[PostResponse], include_in_schema=False)
def list_posts(
    author: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List journal posts, newest first"""
    query = db.query(PostDB)
    if author:
        query = query.filter(PostDB.author == author)
    posts = query.order_by(PostDB.date.desc(), PostDB.created_at.desc()).offset(offset).limit(limit).all()
    return [PostResponse.model_validate(p) for p in posts]


@router.api_route("/{post_id}", methods=["GET", "HEAD"], response_model=PostResponse)
def get_post(post_id: str, db: Session = Depends(get_db)):
    return PostResponse.model_validate(get_post_or_404(db, post_id))


@router.post("", response_model=PostResponse, status_code=201)
@router.post("/", response_model=PostResponse, status_code=201, include_in_schema=False)
def create_post(request: CreatePostRequest, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Create a journal post owned by the current user"""
    ensure_user_exists(db, user["uid"], user.get("email", ""), user.get("name", ""))

    post = PostDB(
        title=request.title,
        author=request.author,
        content=request.content,
        cover=request.cover,
        location=request.location,
        date=to_naive_utc(request.date) if request.date else datetime.utcnow(),
        owner_id=user["uid"],
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logfire.info("API: Created post {post_id} for user {uid}", post_id=post.id, uid=user["uid"])

    return PostResponse.model_validate(post)


@router.put("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: str,
    request: UpdatePostRequest,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update fields of a post; only provided fields change"""
    post = get_owned_post(db, post_id, user)

    changes = request.model_dump(exclude_unset=True)
    if changes.get("date") is not None:
        changes["date"] = to_naive_utc(changes["date"])
    for field in ("title", "author", "content", "date"):
        # Required columns cannot be cleared
        if field in changes and changes[field] is None:
            del changes[field]

    for field, value in changes.items():
        setattr(post, field, value)

    db.commit()
    db.refresh(post)

    logfire.info("API: Updated post {post_id}", post_id=post_id)

    return PostResponse.model_validate(post)


@router.delete("/{post_id}")
def delete_post(post_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    post = get_owned_post(db, post_id, user)

    db.delete(post)
    db.commit()

    logfire.info("API: Deleted post {post_id}", post_id=post_id)

    return {"success": True, "message": "Post deleted"}
