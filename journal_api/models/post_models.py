from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


class PostResponse(BaseModel):
    id: str
    title: str
    author: str
    content: str
    cover: Optional[str] = None
    location: Optional[str] = None
    date: datetime
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer("date", "created_at", "updated_at")
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        """Serialize datetime to ISO8601 format with Z suffix"""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class CreatePostRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1)
    cover: Optional[str] = None
    location: Optional[str] = None
    date: Optional[datetime] = None  # Defaults to now

    model_config = {"str_strip_whitespace": True}


class UpdatePostRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=100)
    content: Optional[str] = Field(default=None, min_length=1)
    cover: Optional[str] = None
    location: Optional[str] = None
    date: Optional[datetime] = None

    model_config = {"str_strip_whitespace": True}
