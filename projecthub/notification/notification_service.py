from __future__ import annotations

from typing import Optional
from sqlalchemy.orm import Session

from projecthub.models.notification import Notification


def notify(
    db: Session,
    *,
    recipient_id: int,
    actor_id: int,
    type: str,
    title: str,
    message: str | None = None,
    project_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> Notification | None:
    """Write one unread notification for ``recipient_id``.

    Nobody is notified about their own action: returns ``None`` without
    touching the database when recipient and actor are the same user.
    Storage errors roll the session back and propagate.
    """
    if recipient_id == actor_id:
        return None

    n = Notification(
        user_id=recipient_id,
        actor_user_id=actor_id,
        type=type,
        title=title,
        message=message,
        project_id=project_id,
        comment_id=comment_id,
        is_read=False,
    )
    try:
        db.add(n)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(n)
    return n
