# rentez/middleware/request_id.py
from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

HEADER = "X-Request-ID"


def get_request_id() -> str | None:
    return request_id_ctx.get()


class RequestIDMiddleware:
    """
    Tags every HTTP request and websocket connection with an id.

    Reuses an incoming X-Request-ID, otherwise generates one. The id lives in
    a ContextVar for log lines, in scope["state"] for handlers, and is echoed
    on HTTP responses. Plain ASGI so chat sockets get an id too.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        rid = Headers(scope=scope).get(HEADER) or uuid.uuid4().hex
        scope.setdefault("state", {})["request_id"] = rid

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[HEADER] = rid
            await send(message)

        token = request_id_ctx.set(rid)
        try:
            await self.app(scope, receive, send_with_id)
        finally:
            request_id_ctx.reset(token)
