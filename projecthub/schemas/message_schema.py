# projecthub/schemas/message_schema.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipient_id: int | None = Field(None, alias="recipientId")
    content: str | None = None

    @field_validator("content")
    def strip_content(cls, value):
        return value.strip() if value is not None else None


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    recipient_id: int
    content: str
    is_read: bool
    created_at: datetime

    sender_username: str | None = None
    sender_name: str | None = None
    recipient_username: str | None = None
    recipient_name: str | None = None


class ConversationSummary(BaseModel):
    other_user_id: int
    username: str
    name: str
    email: str
    position: str | None = None
    last_message: str
    is_read: bool
    last_message_time: datetime
    unread_count: int
