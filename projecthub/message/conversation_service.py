"""
Conversation views over the append-only message log.

- ``list_conversations`` folds every message a user sent or received into one
  summary per counterpart (latest message + unread count), newest first.
- ``list_thread`` returns one page of a two-party thread and marks what the
  counterpart sent as read.
"""

from __future__ import annotations

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, aliased

from projecthub.models.message import Message
from projecthub.models.user import User
from projecthub.schemas.message_schema import ConversationSummary, MessageRead


def list_conversations(db: Session, user_id: int) -> list[ConversationSummary]:
    messages = (
        db.query(Message)
        .filter(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )

    # newest first, so the first message seen per counterpart is its latest
    latest: dict[int, Message] = {}
    unread: dict[int, int] = {}
    for m in messages:
        other_id = m.recipient_id if m.sender_id == user_id else m.sender_id
        latest.setdefault(other_id, m)
        unread.setdefault(other_id, 0)
        if m.recipient_id == user_id and m.sender_id == other_id and not m.is_read:
            unread[other_id] += 1

    if not latest:
        return []

    users = {u.id: u for u in db.query(User).filter(User.id.in_(latest.keys())).all()}

    summaries = []
    for other_id, m in latest.items():
        other = users.get(other_id)
        if other is None:
            continue
        summaries.append(
            ConversationSummary(
                other_user_id=other_id,
                username=other.username,
                name=other.name,
                email=other.email,
                position=other.position,
                last_message=m.content,
                is_read=m.is_read,
                last_message_time=m.created_at,
                unread_count=unread[other_id],
            )
        )
    # dict keeps insertion order, which is already latest-message-first
    return summaries


def list_thread(
    db: Session,
    user_id: int,
    counterpart_id: int,
    limit: int = 50,
    offset: int = 0,
) -> list[MessageRead]:
    Sender = aliased(User)
    Recipient = aliased(User)

    rows = (
        db.query(
            Message,
            Sender.username,
            Sender.name,
            Recipient.username,
            Recipient.name,
        )
        .join(Sender, Message.sender_id == Sender.id)
        .join(Recipient, Message.recipient_id == Recipient.id)
        .filter(
            or_(
                and_(Message.sender_id == user_id, Message.recipient_id == counterpart_id),
                and_(Message.sender_id == counterpart_id, Message.recipient_id == user_id),
            )
        )
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )

    thread = [
        MessageRead.model_validate(m).model_copy(
            update={
                "sender_username": s_username,
                "sender_name": s_name,
                "recipient_username": r_username,
                "recipient_name": r_name,
            }
        )
        for m, s_username, s_name, r_username, r_name in rows
    ]

    # reading the thread is what marks it read
    db.query(Message).filter(
        Message.recipient_id == user_id,
        Message.sender_id == counterpart_id,
        Message.is_read == False,  # noqa: E712
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    thread.reverse()
    return thread
