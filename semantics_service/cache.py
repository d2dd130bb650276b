from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, Literal, Optional, Tuple

from loguru import logger

from .languages import Language, language_name
from .schemas import SnapshotContent
from .store.redis_mirror import SnapshotMirror

Clock = Callable[[], datetime]
SnapshotState = Literal["empty", "fresh", "stale"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SnapshotEntry:
    lang_name: str
    content: Optional[SnapshotContent] = None
    computed_at: Optional[datetime] = None
    next: Optional[datetime] = None

    def state(self, now: datetime) -> SnapshotState:
        if self.content is None or self.next is None:
            return "empty"
        return "fresh" if now < self.next else "stale"

    def as_payload(self) -> Dict[str, Any]:
        if self.computed_at is None or self.next is None:
            raise ValueError("snapshot_not_computed")
        return {
            "content": self.content.model_dump(mode="json", by_alias=True) if self.content else None,
            "computedAt": self.computed_at.isoformat(),
            "next": self.next.isoformat(),
        }


class SnapshotCache:
    """Per-language read-through cache of language snapshots.

    Entries start empty and are only ever replaced whole. Recomputation is
    serialized per language: callers arriving while a refresh is in flight
    wait for it and reuse its result instead of issuing their own queries.
    """

    def __init__(
        self,
        languages: Iterable[Language],
        *,
        clock: Clock = _utcnow,
        mirror: Optional[SnapshotMirror] = None,
    ):
        self.clock = clock
        self.mirror = mirror
        self._entries: Dict[Language, SnapshotEntry] = {}
        self._locks: Dict[Language, asyncio.Lock] = {}
        for lang in languages:
            self._entries[lang] = SnapshotEntry(lang_name=language_name(lang))
            self._locks[lang] = asyncio.Lock()

    def peek(self, lang: Language) -> SnapshotEntry:
        return self._entries[lang]

    def state(self, lang: Language) -> SnapshotState:
        return self._entries[lang].state(self.clock())

    async def get_or_refresh(
        self,
        lang: Language,
        compute: Callable[[], Awaitable[SnapshotContent]],
        *,
        ttl: timedelta,
    ) -> Tuple[SnapshotEntry, bool]:
        """Return the language's entry and whether this call computed it."""
        entry = self._entries[lang]
        if entry.state(self.clock()) == "fresh":
            logger.debug(f"langinfo {lang.value}: using cached version")
            return entry, False

        async with self._locks[lang]:
            entry = self._entries[lang]
            if entry.state(self.clock()) == "fresh":
                return entry, False

            logger.info(f"langinfo {lang.value}: recomputing from store")
            content = await compute()
            computed_at = self.clock()
            entry = SnapshotEntry(
                lang_name=entry.lang_name,
                content=content,
                computed_at=computed_at,
                next=computed_at + ttl,
            )
            self._entries[lang] = entry

        if self.mirror is not None:
            await self.mirror.publish(lang.value, entry.as_payload(), ttl_sec=int(ttl.total_seconds()))
        return entry, True
