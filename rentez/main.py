# rentez/main.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .db import init_db
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware
from .realtime.presence import RedisPresence
from .realtime.relay import ChatRelay
from .services.uploads import uploads_root

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.properties import router as properties_router
from .routers.applications import router as applications_router
from .routers.leases import router as leases_router
from .routers.rent import router as rent_router
from .routers.reviews import router as reviews_router
from .routers.chat import router as chat_router, ws_router as chat_ws_router

API_PREFIX = "/api"

log = logging.getLogger("rentez")


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    relay: ChatRelay = app.state.chat_relay

    tasks: list[asyncio.Task] = []
    if isinstance(relay.presence, RedisPresence):
        tasks.append(asyncio.create_task(relay.presence.listen(relay.manager.send)))
        # refresh well inside the key ttl
        tasks.append(asyncio.create_task(relay.heartbeat(max(1.0, relay.presence.ttl / 3))))

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await relay.presence.close()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="RentEz", version="1.0.0", lifespan=lifespan)
    app.state.chat_relay = ChatRelay()

    # last added runs outermost: request id is set before the request line is logged
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": str(exc) or "Something went wrong!"})

    app.mount("/uploads", StaticFiles(directory=str(uploads_root())), name="uploads")

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)

    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(applications_router, prefix=API_PREFIX)
    app.include_router(leases_router, prefix=API_PREFIX)
    app.include_router(rent_router, prefix=API_PREFIX)
    app.include_router(reviews_router, prefix=API_PREFIX)

    app.include_router(chat_router, prefix=API_PREFIX)
    app.include_router(chat_ws_router, prefix=API_PREFIX)

    return app


app = create_app()
