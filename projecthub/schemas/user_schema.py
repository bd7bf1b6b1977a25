# projecthub/schemas/user_schema.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from projecthub.models.user import POSITIONS


def _check_position(value):
    if value is not None and value not in POSITIONS:
        raise ValueError("Position must be either student, teacher, or other")
    return value


def _not_null(value, info):
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


class ProfileCreate(BaseModel):
    username: str
    name: str
    email: EmailStr
    password: str
    position: str
    phone: Optional[str] = None
    organization: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None

    @field_validator("username", "name", "password")
    def required(cls, value, info):
        if not value or not value.strip():
            raise ValueError(f"{info.field_name} is required")
        return value

    @field_validator("position")
    def position_value(cls, value):
        return _check_position(value)


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    organization: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None

    @field_validator("username", "name", "email", "password", "position", mode="before")
    def required_columns(cls, value, info):
        return _not_null(value, info)

    @field_validator("position")
    def position_value(cls, value):
        return _check_position(value)


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    email: str
    phone: Optional[str] = None
    position: str
    organization: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    total_projects: int
    created_at: datetime
    updated_at: Optional[datetime] = None
