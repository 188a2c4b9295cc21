import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from carnival.api.deps import get_current_user
from carnival.core.errors import NotFoundError, ValidationFailed
from carnival.db.repository import Repository
from carnival.db.session import get_db
from carnival.models.entities import Message, Product, User
from carnival.models.schemas import MessageIn, MessageOut, dump

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_OPTIONS = (joinedload(Message.sender), joinedload(Message.receiver))


@router.post("", status_code=status.HTTP_201_CREATED)
def send_message(payload: MessageIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    receiver = Repository(db, User).get(payload.receiver_id)
    if receiver is None or not receiver.is_active:
        raise ValidationFailed("Receiver not found")
    if receiver.id == user.id:
        raise ValidationFailed("You cannot send a message to yourself")
    if payload.product_id is not None and Repository(db, Product).get(payload.product_id) is None:
        raise ValidationFailed("Please select a valid product")

    messages = Repository(db, Message)
    message = messages.create(
        content=payload.content,
        sender_id=user.id,
        receiver_id=receiver.id,
        product_id=str(payload.product_id) if payload.product_id else None,
    )
    logger.info("Message %s sent from %s to %s", message.id, user.id, receiver.id)
    return {
        "success": True,
        "message": "Message sent",
        "data": dump(MessageOut, messages.get(message.id, options=MESSAGE_OPTIONS)),
    }


@router.get("")
def list_messages(unread: bool = False, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if unread:
        criteria = (Message.receiver_id == user.id, Message.is_read.is_(False))
    else:
        criteria = ((Message.sender_id == user.id) | (Message.receiver_id == user.id),)
    messages = Repository(db, Message).find_all(
        *criteria, order_by=Message.created_at.desc(), options=MESSAGE_OPTIONS
    )
    return {"success": True, "count": len(messages), "messages": [dump(MessageOut, m) for m in messages]}


@router.put("/{message_id}/read")
def mark_read(message_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    messages = Repository(db, Message)
    message = messages.get(message_id, options=MESSAGE_OPTIONS)
    # messages addressed to someone else are reported as missing
    if message is None or message.receiver_id != user.id:
        raise NotFoundError("Message not found")
    messages.update(message, is_read=True)
    return {"success": True, "data": dump(MessageOut, message)}
