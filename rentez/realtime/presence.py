# rentez/realtime/presence.py
from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as aioredis

from ..config import settings

log = logging.getLogger(__name__)

DeliverFn = Callable[[str, dict[str, Any]], Awaitable[bool]]


class InMemoryPresence:
    """
    user id -> connection id, process local.

    Lost on restart and invisible to other workers; fine for a single
    process because the event loop runs one callback at a time.
    """

    def __init__(self) -> None:
        self._by_user: dict[int, str] = {}
        self._by_conn: dict[str, int] = {}

    async def bind(self, user_id: int, connection_id: str) -> None:
        old = self._by_user.get(user_id)
        if old is not None:
            self._by_conn.pop(old, None)
        self._by_user[user_id] = connection_id
        self._by_conn[connection_id] = user_id

    async def lookup(self, user_id: int) -> Optional[str]:
        return self._by_user.get(user_id)

    async def unbind_connection(self, connection_id: str) -> Optional[int]:
        user_id = self._by_conn.pop(connection_id, None)
        if user_id is not None and self._by_user.get(user_id) == connection_id:
            del self._by_user[user_id]
        return user_id

    async def touch(self, connection_id: str) -> bool:
        return connection_id in self._by_conn

    async def publish(self, connection_id: str, frame: dict[str, Any]) -> bool:
        # no other processes to hand off to
        return False

    async def close(self) -> None:
        self._by_user.clear()
        self._by_conn.clear()


class RedisPresence:
    """
    Presence table in redis, shared by every app process.

    Keys expire after ttl; touch() keeps live connections bound.

    Frames for a connection owned by another process are published on that
    connection's channel; each process listens for its own connections.
    """

    key_prefix = "rentez:presence"
    channel_prefix = "rentez:chat:conn"

    def __init__(self, url: str, ttl_seconds: int, client: Optional[aioredis.Redis] = None) -> None:
        self.redis = client if client is not None else aioredis.from_url(url, decode_responses=True)
        self.ttl = int(ttl_seconds)

    def _user_key(self, user_id: int) -> str:
        return f"{self.key_prefix}:user:{user_id}"

    def _conn_key(self, connection_id: str) -> str:
        return f"{self.key_prefix}:conn:{connection_id}"

    async def bind(self, user_id: int, connection_id: str) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(self._user_key(user_id), connection_id, ex=self.ttl)
            pipe.set(self._conn_key(connection_id), str(user_id), ex=self.ttl)
            await pipe.execute()

    async def lookup(self, user_id: int) -> Optional[str]:
        return await self.redis.get(self._user_key(user_id))

    async def touch(self, connection_id: str) -> bool:
        """Pushes the expiry of a live binding forward. False once it is gone."""
        raw = await self.redis.get(self._conn_key(connection_id))
        if raw is None:
            return False
        user_key = self._user_key(int(raw))
        owns_user_key = await self.redis.get(user_key) == connection_id
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.expire(self._conn_key(connection_id), self.ttl)
            if owns_user_key:
                pipe.expire(user_key, self.ttl)
            await pipe.execute()
        return True

    async def unbind_connection(self, connection_id: str) -> Optional[int]:
        raw = await self.redis.get(self._conn_key(connection_id))
        await self.redis.delete(self._conn_key(connection_id))
        if raw is None:
            return None
        user_id = int(raw)
        # only drop the user's mapping if it still points at this connection
        if await self.redis.get(self._user_key(user_id)) == connection_id:
            await self.redis.delete(self._user_key(user_id))
        return user_id

    async def publish(self, connection_id: str, frame: dict[str, Any]) -> bool:
        receivers = await self.redis.publish(f"{self.channel_prefix}:{connection_id}", json.dumps(frame, default=str))
        return int(receivers) > 0

    async def listen(self, deliver: DeliverFn) -> None:
        """Forwards published frames to connections held by this process. Runs until cancelled."""
        pubsub = self.redis.pubsub()
        await pubsub.psubscribe(f"{self.channel_prefix}:*")
        try:
            async for msg in pubsub.listen():
                if msg.get("type") != "pmessage":
                    continue
                connection_id = str(msg["channel"]).rsplit(":", 1)[-1]
                try:
                    await deliver(connection_id, json.loads(msg["data"]))
                except Exception:
                    log.exception("failed to deliver relayed frame", extra={"connection_id": connection_id})
        finally:
            await pubsub.aclose()

    async def close(self) -> None:
        await self.redis.aclose()


def build_presence():
    backend = (settings.presence_backend or "memory").strip().lower()
    if backend == "redis":
        return RedisPresence(settings.redis_url, settings.presence_ttl_seconds)
    if backend != "memory":
        raise ValueError(f"unknown presence_backend '{backend}'")
    return InMemoryPresence()
