from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, List, Mapping, Sequence, TypeVar

from loguru import logger
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from .interface import EventStore, StoreUnavailable

T = TypeVar("T")


class MongoEventStore(EventStore):
    def __init__(self, *, client: AsyncMongoClient, database: str, timeout_sec: float):
        self.client = client
        self.db = client[database]
        self.timeout_sec = timeout_sec

    @classmethod
    def from_uri(cls, uri: str, *, database: str, timeout_sec: float) -> "MongoEventStore":
        client: AsyncMongoClient = AsyncMongoClient(
            uri,
            tz_aware=True,
            serverSelectionTimeoutMS=int(timeout_sec * 1000),
        )
        return cls(client=client, database=database, timeout_sec=timeout_sec)

    async def _bounded(self, op: str, collection: str, coro: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_sec)
        except asyncio.TimeoutError as exc:
            logger.warning(f"Store {op} on {collection} timed out after {self.timeout_sec}s")
            raise StoreUnavailable(f"{op}:{collection}:timeout") from exc
        except PyMongoError as exc:
            logger.warning(f"Store {op} on {collection} failed: {exc}")
            raise StoreUnavailable(f"{op}:{collection}:{exc}") from exc

    async def read_page(
        self,
        collection: str,
        filter: Mapping[str, Any],
        sort: Mapping[str, int],
        limit: int,
        skip: int,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(dict(filter)).sort(list(sort.items())).skip(skip).limit(limit)
        return await self._bounded("read_page", collection, cursor.to_list(length=None))

    async def aggregate(self, collection: str, pipeline: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        async def _run() -> List[Dict[str, Any]]:
            cursor = await self.db[collection].aggregate([dict(stage) for stage in pipeline])
            return await cursor.to_list(length=None)

        return await self._bounded("aggregate", collection, _run())

    async def read_all(self, collection: str, filter: Mapping[str, Any]) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(dict(filter))
        return await self._bounded("read_all", collection, cursor.to_list(length=None))

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception:
            logger.exception("mongo close failed")
