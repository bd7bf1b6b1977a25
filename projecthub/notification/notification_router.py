# projecthub/notification/notification_router.py
from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import func

from projecthub.auth.auth_router import Principal, get_current_user
from projecthub.database import get_db
from projecthub.models.notification import Notification
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.responses import fail, ok, pagination
from projecthub.schemas.notification_schema import MarkReadRequest, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _unread_count(db: Session, user_id: int) -> int:
    count = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .scalar()
    )
    return int(count or 0)


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = (
        db.query(
            Notification,
            User.username.label("actor_username"),
            User.name.label("actor_name"),
            Project.name.label("project_name"),
        )
        .join(User, Notification.actor_user_id == User.id)
        .outerjoin(Project, Notification.project_id == Project.id)
        .filter(Notification.user_id == principal.user_id)
    )
    if unread_only:
        q = q.filter(Notification.is_read == False)  # noqa: E712

    rows = (
        q.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    data = [
        NotificationRead.model_validate(n).model_copy(
            update={"actor_username": actor_username, "actor_name": actor_name, "project_name": project_name}
        )
        for n, actor_username, actor_name, project_name in rows
    ]
    return ok(
        data,
        unread_count=_unread_count(db, principal.user_id),
        pagination=pagination(page, limit),
    )


@router.get("/count")
def unread_count(principal: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok(unread_count=_unread_count(db, principal.user_id))


@router.patch("/read")
def mark_read(
    body: dict | None = Body(None),
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        req = MarkReadRequest.model_validate(body or {})
    except ValidationError:
        raise fail(400, 'notification_ids must be an array or "all"')

    q = db.query(Notification).filter(Notification.user_id == principal.user_id)
    if req.notification_ids == "all":
        q.update({"is_read": True}, synchronize_session=False)
    elif req.notification_ids:
        q.filter(Notification.id.in_(req.notification_ids)).update({"is_read": True}, synchronize_session=False)
    db.commit()

    return ok(message="Notifications marked as read")


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    n = db.get(Notification, notification_id)
    if not n or n.user_id != principal.user_id:
        raise fail(404, "Notification not found")

    db.delete(n)
    db.commit()
    return ok(message="Notification deleted")
