# projecthub/notification/fanout.py
#
# Turns one social event (like, comment, reply, new organization project,
# message) into one notification per interested user.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from projecthub.models.comment import Comment
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.notification.notification_service import notify

logger = logging.getLogger("projecthub.notification.fanout")


@dataclass(frozen=True)
class FanoutResult:
    recipient_id: int
    delivered: bool
    error: Optional[str] = None


def _deliver(
    db: Session,
    recipients: Iterable[int],
    *,
    actor_id: int,
    type: str,
    title: str,
    message: str,
    project_id: Optional[int] = None,
    comment_id: Optional[int] = None,
) -> list[FanoutResult]:
    results: list[FanoutResult] = []

    # dict.fromkeys: de-duplicate, keep storage order
    for recipient_id in dict.fromkeys(recipients):
        if recipient_id == actor_id:
            continue
        try:
            notify(
                db,
                recipient_id=recipient_id,
                actor_id=actor_id,
                type=type,
                title=title,
                message=message,
                project_id=project_id,
                comment_id=comment_id,
            )
        except Exception as exc:
            # one bad insert must not stop the rest of the audience
            logger.exception(
                "notification_failed",
                extra={"recipient_id": recipient_id, "actor_id": actor_id, "type": type},
            )
            results.append(FanoutResult(recipient_id, False, str(exc)))
            continue
        results.append(FanoutResult(recipient_id, True))

    return results


def _actor_name(db: Session, actor_id: int) -> str | None:
    actor = db.get(User, actor_id)
    return actor.name if actor else None


# -------------------------
# Events
# -------------------------

def project_liked(db: Session, project_id: int, actor_id: int) -> list[FanoutResult]:
    project = db.get(Project, project_id)
    actor_name = _actor_name(db, actor_id)
    if not project or actor_name is None:
        return []

    return _deliver(
        db,
        [project.user_id],
        actor_id=actor_id,
        type="like",
        title="New like on your project",
        message=f'{actor_name} liked your project "{project.name}"',
        project_id=project_id,
    )


def project_commented(
    db: Session,
    project_id: int,
    comment_id: int,
    actor_id: int,
    exclude_user_id: Optional[int] = None,
) -> list[FanoutResult]:
    """Notify the owner and everyone who commented on the project before.

    ``exclude_user_id`` drops one user from both audiences (the parent
    author of a reply, who gets a reply notice instead), even when that
    user owns the project.
    """
    project = db.get(Project, project_id)
    actor_name = _actor_name(db, actor_id)
    if not project or actor_name is None:
        return []

    owner = [project.user_id] if project.user_id != exclude_user_id else []
    results = _deliver(
        db,
        owner,
        actor_id=actor_id,
        type="comment",
        title="New comment on your project",
        message=f'{actor_name} commented on your project "{project.name}"',
        project_id=project_id,
        comment_id=comment_id,
    )

    q = (
        db.query(Comment.user_id)
        .filter(Comment.project_id == project_id, Comment.user_id != actor_id)
        .distinct()
    )
    if exclude_user_id is not None:
        q = q.filter(Comment.user_id != exclude_user_id)

    # owner was already told above
    commenters = [user_id for (user_id,) in q.all() if user_id != project.user_id]

    results += _deliver(
        db,
        commenters,
        actor_id=actor_id,
        type="comment",
        title="New comment on a project you commented on",
        message=f'{actor_name} also commented on "{project.name}"',
        project_id=project_id,
        comment_id=comment_id,
    )
    return results


def comment_replied(
    db: Session,
    project_id: int,
    comment_id: int,
    parent_comment_id: int,
    actor_id: int,
) -> list[FanoutResult]:
    parent = db.get(Comment, parent_comment_id)
    if not parent or parent.user_id == actor_id:
        return []

    project = db.get(Project, project_id)
    actor_name = _actor_name(db, actor_id)
    if not project or actor_name is None:
        return []

    return _deliver(
        db,
        [parent.user_id],
        actor_id=actor_id,
        type="comment",
        title="New reply to your comment",
        message=f'{actor_name} replied to your comment on "{project.name}"',
        project_id=project_id,
        comment_id=comment_id,
    )


def organization_project_created(db: Session, project_id: int, actor_id: int) -> list[FanoutResult]:
    project = db.get(Project, project_id)
    if not project or not project.organization:
        return []

    creator_name = _actor_name(db, project.user_id)
    if creator_name is None:
        return []

    members = (
        db.query(User.id)
        .filter(User.organization == project.organization, User.id != actor_id)
        .all()
    )

    return _deliver(
        db,
        [user_id for (user_id,) in members],
        actor_id=actor_id,
        type="organization_project",
        title="New project in your organization",
        message=f'{creator_name} created a new project "{project.name}" in {project.organization}',
        project_id=project_id,
    )


def message_sent(db: Session, sender_id: int, recipient_id: int, content: str) -> list[FanoutResult]:
    sender_name = _actor_name(db, sender_id) or "User"

    return _deliver(
        db,
        [recipient_id],
        actor_id=sender_id,
        type="message",
        title=f"{sender_name} has sent a new message",
        message=content,
    )
