# rentez/realtime/relay.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..auth import Principal
from ..db import SessionLocal
from ..schemas import ChatMessageOut, MarkSeenIn, RegisterPresenceIn, SendMessageIn, TypingIn
from ..services import chat_service
from .connection_manager import ConnectionManager
from .presence import build_presence

log = logging.getLogger(__name__)


def frame(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": data}


def _persist(db, **kw) -> dict[str, Any]:
    row = chat_service.persist_message(db, **kw)
    return ChatMessageOut.model_validate(row).model_dump(mode="json")


def _mark_seen(db, **kw) -> int:
    return chat_service.mark_seen(db, **kw)


class ChatRelay:
    """
    Websocket chat: presence binding, persistence, and forwarding.

    Messages are always written first; forwarding only happens when the
    receiver has a bound connection, otherwise they wait in history.
    """

    def __init__(self, manager: Optional[ConnectionManager] = None, presence=None, session_factory=SessionLocal):
        self.manager = manager or ConnectionManager()
        self.presence = presence if presence is not None else build_presence()
        self.session_factory = session_factory

    def _run(self, fn: Callable[..., Any], kw: dict[str, Any]) -> Any:
        with self.session_factory() as db:
            return fn(db, **kw)

    async def _db(self, fn: Callable[..., Any], **kw) -> Any:
        return await run_in_threadpool(self._run, fn, kw)

    async def deliver(self, connection_id: str, payload: dict[str, Any]) -> bool:
        if self.manager.has(connection_id):
            return await self.manager.send(connection_id, payload)
        return await self.presence.publish(connection_id, payload)

    async def deliver_to_user(self, user_id: int, payload: dict[str, Any]) -> bool:
        connection_id = await self.presence.lookup(int(user_id))
        if connection_id is None:
            return False
        return await self.deliver(connection_id, payload)

    async def handle(self, connection_id: str, principal: Principal, raw: Any) -> None:
        if not isinstance(raw, dict) or not isinstance(raw.get("event"), str):
            await self.manager.send(connection_id, frame("error", {"error": "expected {event, data}"}))
            return

        event = raw["event"]
        data = raw.get("data") or {}
        handler = {
            "register": self._on_register,
            "send_message": self._on_send_message,
            "typing": self._on_typing,
            "mark_seen": self._on_mark_seen,
        }.get(event)
        if handler is None:
            await self.manager.send(connection_id, frame("error", {"error": f"unknown event '{event}'"}))
            return

        try:
            await self.presence.touch(connection_id)
            await handler(connection_id, principal, data)
        except ValidationError as e:
            await self.manager.send(connection_id, frame("error", {"event": event, "error": str(e)}))
        except Exception:
            log.exception("chat event failed", extra={"user_id": principal.user_id, "connection_id": connection_id})
            await self.manager.send(connection_id, frame("error", {"event": event, "error": f"failed to handle {event}"}))

    async def _on_register(self, connection_id: str, principal: Principal, data: Any) -> None:
        body = RegisterPresenceIn.model_validate(data)
        if body.user_id != principal.user_id:
            await self.manager.send(connection_id, frame("error", {"error": "cannot register as another user"}))
            return
        await self.presence.bind(principal.user_id, connection_id)
        log.info("chat presence bound", extra={"user_id": principal.user_id, "connection_id": connection_id})
        await self.manager.send(connection_id, frame("registered", {"user_id": principal.user_id}))

    async def _on_send_message(self, connection_id: str, principal: Principal, data: Any) -> None:
        body = SendMessageIn.model_validate(data)
        try:
            msg = await self._db(
                _persist,
                sender_id=principal.user_id,
                receiver_id=body.receiver,
                message=body.message,
                property_id=body.property_id,
                image=body.image,
            )
        except chat_service.ChatError as e:
            await self.manager.send(connection_id, frame("message_error", {"error": str(e)}))
            return
        except Exception:
            log.exception("chat message persist failed", extra={"user_id": principal.user_id})
            await self.manager.send(connection_id, frame("message_error", {"error": "failed to send message"}))
            return

        await self.deliver_to_user(body.receiver, frame("receive_message", msg))
        await self.manager.send(connection_id, frame("message_sent", msg))

    async def _on_typing(self, connection_id: str, principal: Principal, data: Any) -> None:
        body = TypingIn.model_validate(data)
        await self.deliver_to_user(
            body.receiver, frame("user_typing", {"sender": principal.user_id, "is_typing": body.is_typing})
        )

    async def _on_mark_seen(self, connection_id: str, principal: Principal, data: Any) -> None:
        body = MarkSeenIn.model_validate(data)
        n = await self._db(_mark_seen, sender_id=body.sender, receiver_id=principal.user_id)
        await self.deliver_to_user(body.sender, frame("messages_seen", {"receiver": principal.user_id, "count": n}))

    async def heartbeat(self, interval: float) -> None:
        """Refreshes presence for every connection held here. Runs until cancelled."""
        while True:
            await asyncio.sleep(interval)
            for connection_id in list(self.manager.active_connections):
                try:
                    await self.presence.touch(connection_id)
                except Exception:
                    log.exception("presence refresh failed", extra={"connection_id": connection_id})

    async def disconnect(self, connection_id: str) -> None:
        self.manager.disconnect(connection_id)
        user_id = await self.presence.unbind_connection(connection_id)
        if user_id is not None:
            log.info("chat presence released", extra={"user_id": user_id, "connection_id": connection_id})
