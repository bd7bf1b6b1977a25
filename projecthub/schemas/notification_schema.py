# projecthub/schemas/notification_schema.py
from __future__ import annotations

from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    actor_user_id: int
    project_id: int | None = None
    comment_id: int | None = None
    type: str
    title: str
    message: str | None = None
    is_read: bool
    created_at: datetime

    # joined for display
    actor_username: str | None = None
    actor_name: str | None = None
    project_name: str | None = None


class MarkReadRequest(BaseModel):
    # list of ids, or the literal "all"
    notification_ids: Union[list[int], Literal["all"]]
