# projecthub/message/message_router.py

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from projecthub.auth.auth_router import Principal, get_current_user
from projecthub.database import get_db
from projecthub.message import conversation_service
from projecthub.models.message import Message
from projecthub.notification import fanout
from projecthub.responses import fail, ok
from projecthub.schemas.message_schema import MessageCreate
from projecthub.user.membership import load_pair, require_same_organization

logger = logging.getLogger("projecthub.message")

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/send", status_code=201)
def send_message(
    data: MessageCreate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not data.recipient_id or not data.content:
        raise fail(400, "Recipient ID and content are required")

    if data.recipient_id == principal.user_id:
        raise fail(400, "You cannot message yourself")

    sender, recipient = load_pair(db, principal.user_id, data.recipient_id)
    require_same_organization(sender, recipient, "message")

    message = Message(sender_id=sender.id, recipient_id=recipient.id, content=data.content)
    db.add(message)
    db.commit()
    db.refresh(message)

    try:
        fanout.message_sent(db, sender.id, recipient.id, message.content)
    except Exception:
        logger.exception("message_notification_failed", extra={"message_id": message.id})

    return ok({"messageId": message.id}, "Message sent successfully")


@router.get("/conversation/{user_id}")
def get_conversation(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    thread = conversation_service.list_thread(db, principal.user_id, user_id, limit=limit, offset=offset)
    return ok(thread, count=len(thread))


@router.get("/conversations")
def get_conversations(principal: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    conversations = conversation_service.list_conversations(db, principal.user_id)
    return ok(conversations, count=len(conversations))


@router.patch("/{message_id}/read")
def mark_as_read(
    message_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(Message)
        .filter(Message.id == message_id, Message.recipient_id == principal.user_id)
        .update({"is_read": True}, synchronize_session=False)
    )
    if not updated:
        raise fail(404, "Message not found or unauthorized")

    db.commit()
    return ok(message="Message marked as read")


@router.delete("/{message_id}")
def delete_message(
    message_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # only the sender may delete
    deleted = (
        db.query(Message)
        .filter(Message.id == message_id, Message.sender_id == principal.user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise fail(404, "Message not found or unauthorized")

    db.commit()
    return ok(message="Message deleted successfully")
