# rentez/services/chat_service.py
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from ..models import AppUser, ChatMessage, Property


class ChatError(ValueError):
    pass


def persist_message(
    db: Session,
    *,
    sender_id: int,
    receiver_id: int,
    message: str,
    property_id: Optional[int] = None,
    image: str = "",
) -> ChatMessage:
    text = (message or "").strip()
    if not text:
        raise ChatError("message is required")
    if sender_id == receiver_id:
        raise ChatError("cannot message yourself")
    if db.get(AppUser, receiver_id) is None:
        raise ChatError("receiver not found")
    if property_id is not None and db.get(Property, property_id) is None:
        raise ChatError("property not found")

    row = ChatMessage(
        sender_id=sender_id,
        receiver_id=receiver_id,
        property_id=property_id,
        message=text,
        image=image or "",
        seen=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def history(db: Session, *, user_id: int, other_id: int) -> list[ChatMessage]:
    q = (
        select(ChatMessage)
        .where(
            or_(
                and_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == other_id),
                and_(ChatMessage.sender_id == other_id, ChatMessage.receiver_id == user_id),
            )
        )
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
    )
    return list(db.scalars(q).all())


def mark_seen(db: Session, *, sender_id: int, receiver_id: int) -> int:
    """Marks everything sender -> receiver as seen. Returns rows touched."""
    res = db.execute(
        update(ChatMessage)
        .where(
            ChatMessage.sender_id == sender_id,
            ChatMessage.receiver_id == receiver_id,
            ChatMessage.seen.is_(False),
        )
        .values(seen=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(res.rowcount or 0)


def conversations(db: Session, *, user_id: int) -> list[dict[str, Any]]:
    """
    One entry per counterpart: latest message plus unread count, newest
    conversation first.
    """
    rows = db.scalars(
        select(ChatMessage)
        .where(or_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == user_id))
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
    ).all()

    by_other: dict[int, dict[str, Any]] = {}
    for m in rows:
        other = m.receiver_id if m.sender_id == user_id else m.sender_id
        entry = by_other.get(other)
        if entry is None:
            entry = {"other_id": other, "last_message": m, "unread_count": 0}
            by_other[other] = entry
        if m.receiver_id == user_id and not m.seen:
            entry["unread_count"] += 1

    if not by_other:
        return []

    users = {u.id: u for u in db.scalars(select(AppUser).where(AppUser.id.in_(list(by_other)))).all()}
    out = []
    for other, entry in by_other.items():
        user = users.get(other)
        if user is None:
            continue
        out.append({"user": user, "last_message": entry["last_message"], "unread_count": entry["unread_count"]})
    return out
