from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence


class StoreUnavailable(RuntimeError):
    """The event store could not answer (driver error, network, timeout)."""


class EventStore:
    async def read_page(
        self,
        collection: str,
        filter: Mapping[str, Any],
        sort: Mapping[str, int],
        limit: int,
        skip: int,
    ) -> List[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    async def aggregate(
        self, collection: str, pipeline: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    async def read_all(
        self, collection: str, filter: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None
