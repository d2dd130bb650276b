from __future__ import annotations

from typing import Any, Dict

import orjson
from loguru import logger
from redis.asyncio import Redis


class SnapshotMirror:
    """Best-effort copy of computed language snapshots into Redis.

    Other readers (dashboards, sibling replicas) can pick the payload up
    without touching the event store. The in-process cache stays the source
    of truth; mirror failures never reach the caller.
    """

    def __init__(self, *, redis: Redis, key_prefix: str):
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, *, key_prefix: str) -> "SnapshotMirror":
        return cls(redis=Redis.from_url(url, decode_responses=False), key_prefix=key_prefix)

    def key(self, lang: str) -> str:
        return f"{self.key_prefix}:{lang}"

    async def publish(self, lang: str, payload: Dict[str, Any], *, ttl_sec: int) -> bool:
        try:
            await self.redis.set(self.key(lang), orjson.dumps(payload), ex=max(int(ttl_sec), 1))
        except Exception as exc:
            logger.warning(f"Snapshot mirror write failed lang={lang}: {exc}")
            return False
        return True

    async def close(self) -> None:
        try:
            await self.redis.close()
        except Exception:
            logger.exception("redis close failed")
