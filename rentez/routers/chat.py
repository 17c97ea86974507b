# rentez/routers/chat.py
from __future__ import annotations

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..auth import Principal, get_principal, resolve_principal
from ..db import SessionLocal, get_db
from ..models import AppUser
from ..realtime.relay import frame
from ..schemas import ChatMessageOut, ConversationOut
from ..services import chat_service

log = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])
ws_router = APIRouter(tags=["chat"])


@router.get("/conversations", response_model=List[ConversationOut])
def conversations(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return chat_service.conversations(db, user_id=p.user_id)


@router.get("/{user_id}", response_model=List[ChatMessageOut])
def history(user_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    if db.get(AppUser, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    return chat_service.history(db, user_id=p.user_id, other_id=user_id)


@router.put("/{user_id}/seen")
def mark_seen(user_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    n = chat_service.mark_seen(db, sender_id=user_id, receiver_id=p.user_id)
    return {"ok": True, "updated": n}


def _ws_principal(websocket: WebSocket, token: Optional[str]) -> Principal:
    with SessionLocal() as db:
        return resolve_principal(
            db,
            token=token,
            authorization=websocket.headers.get("authorization"),
            dev_email=websocket.headers.get("x-user-email"),
            dev_role=websocket.headers.get("x-user-role"),
        )


@ws_router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, token: Optional[str] = None):
    try:
        principal = await run_in_threadpool(_ws_principal, websocket, token)
    except HTTPException:
        await websocket.close(code=1008)
        return

    relay = websocket.app.state.chat_relay
    connection_id = await relay.manager.connect(websocket)
    log.info("chat connected", extra={"user_id": principal.user_id, "connection_id": connection_id})
    try:
        while True:
            text = await websocket.receive_text()
            try:
                raw = json.loads(text)
            except ValueError:
                await relay.manager.send(connection_id, frame("error", {"error": "invalid json"}))
                continue
            await relay.handle(connection_id, principal, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await relay.disconnect(connection_id)
        log.info("chat disconnected", extra={"user_id": principal.user_id, "connection_id": connection_id})
