from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import orjson


class KeywordListMissing(LookupError):
    pass


class KeywordLists:
    """Static keyword list files, served verbatim."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _read(self, name: str) -> Any:
        path = self.directory / name
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise KeywordListMissing(f"{path}: {exc.strerror or exc}") from exc
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise KeywordListMissing(f"{path}: unreadable") from exc

    async def load(self, name: str) -> Any:
        return await asyncio.to_thread(self._read, name)

    async def available(self) -> Any:
        return await self.load("available.json")

    async def for_language(self, lang: str) -> Any:
        return await self.load(f"{lang}.json")
