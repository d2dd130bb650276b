import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from pymongo.errors import ServerSelectionTimeoutError

from semantics_service.store.interface import StoreUnavailable
from semantics_service.store.mongo_store import MongoEventStore


def _store_with(collection: MagicMock, timeout_sec: float = 1.0) -> MongoEventStore:
    db = MagicMock()
    db.__getitem__.return_value = collection
    client = MagicMock()
    client.__getitem__.return_value = db
    client.close = AsyncMock()
    return MongoEventStore(client=client, database="facebook", timeout_sec=timeout_sec)


class TestMongoEventStore(unittest.TestCase):
    def test_read_page_chains_sort_skip_limit(self) -> None:
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{"lang": "en"}])
        collection = MagicMock()
        collection.find.return_value = cursor
        store = _store_with(collection)

        docs = asyncio.run(store.read_page("labels", {"lang": "en"}, {"when": -1}, 10, 5))

        self.assertEqual(docs, [{"lang": "en"}])
        collection.find.assert_called_once_with({"lang": "en"})
        cursor.sort.assert_called_once_with([("when", -1)])
        cursor.skip.assert_called_once_with(5)
        cursor.limit.assert_called_once_with(10)

    def test_aggregate_returns_cursor_contents(self) -> None:
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[{"label": "x", "count": 2}])
        collection = MagicMock()
        collection.aggregate = AsyncMock(return_value=cursor)
        store = _store_with(collection)

        docs = asyncio.run(store.aggregate("semantics", [{"$match": {"lang": "en"}}]))

        self.assertEqual(docs, [{"label": "x", "count": 2}])
        collection.aggregate.assert_awaited_once_with([{"$match": {"lang": "en"}}])

    def test_driver_errors_become_store_unavailable(self) -> None:
        collection = MagicMock()
        collection.aggregate = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        store = _store_with(collection)

        with self.assertRaises(StoreUnavailable):
            asyncio.run(store.aggregate("semantics", []))

    def test_slow_calls_time_out(self) -> None:
        async def slow(*args, **kwargs):
            await asyncio.sleep(1.0)
            return []

        cursor = MagicMock()
        cursor.to_list = slow
        collection = MagicMock()
        collection.find.return_value = cursor
        store = _store_with(collection, timeout_sec=0.01)

        with self.assertRaises(StoreUnavailable):
            asyncio.run(store.read_all("summary", {"semanticId": "s1"}))

    def test_close_closes_client(self) -> None:
        store = _store_with(MagicMock())
        asyncio.run(store.close())
        store.client.close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
