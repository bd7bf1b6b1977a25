# projecthub/schemas/project_schema.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from projecthub.models.project import PRIVACY_LEVELS


def _check_privacy(value):
    if value is not None and value not in PRIVACY_LEVELS:
        raise ValueError("Privacy must be either public, private, or organization")
    return value


def _not_null(value, info):
    # PATCH may omit a field, but not blank out a required column
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


# --------- For creating a project (POST) ---------
class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    link: Optional[str] = None
    organization: Optional[str] = None
    tags: Optional[str] = None               # comma-joined
    privacy: str = "public"

    @field_validator("name")
    def name_required(cls, value):
        if not value or not value.strip():
            raise ValueError("Project name is required")
        return value.strip()

    @field_validator("privacy")
    def privacy_level(cls, value):
        return _check_privacy(value)


# --------- For updating a project (PATCH) ---------
class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    organization: Optional[str] = None
    tags: Optional[str] = None
    privacy: Optional[str] = None

    @field_validator("name", "privacy", mode="before")
    def required_columns(cls, value, info):
        return _not_null(value, info)

    @field_validator("privacy")
    def privacy_level(cls, value):
        return _check_privacy(value)


# --------- For reading a project (GET responses) ---------
class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    link: Optional[str] = None
    organization: Optional[str] = None
    tags: Optional[str] = None
    privacy: str
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None


# --------- Comments ---------
class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    parent_comment_id: Optional[int] = Field(None, alias="parentCommentId")

    @field_validator("content")
    def content_required(cls, value):
        if not value or not value.strip():
            raise ValueError("Content is required")
        return value.strip()


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    user_id: int
    parent_comment_id: Optional[int] = None
    content: str
    likes_count: int
    created_at: datetime
