from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from loguru import logger

from .cache import SnapshotCache
from .keywords import KeywordLists
from .languages import Language
from .service import SemanticsQueryService
from .settings import Settings, get_settings
from .store.mongo_store import MongoEventStore
from .store.redis_mirror import SnapshotMirror
from .web.api import build_router


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())


def build_service(settings: Settings) -> SemanticsQueryService:
    store = MongoEventStore.from_uri(
        settings.mongo_uri,
        database=settings.mongo_db,
        timeout_sec=settings.store_timeout_sec,
    )
    mirror = None
    if settings.snapshot_mirror_redis_url:
        mirror = SnapshotMirror.from_url(settings.snapshot_mirror_redis_url, key_prefix=settings.snapshot_mirror_prefix)
    cache = SnapshotCache(list(Language), mirror=mirror)
    return SemanticsQueryService(
        store=store,
        cache=cache,
        settings=settings,
        keyword_lists=KeywordLists(settings.keywords_dir),
    )


def create_app(settings: Optional[Settings] = None, service: Optional[SemanticsQueryService] = None) -> FastAPI:
    settings = settings or get_settings()
    service = service or build_service(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info(f"Starting {settings.app_name} v{settings.service_version} on node {settings.node_name}")
        try:
            yield
        finally:
            logger.info(f"Stopping {settings.app_name}")
            await service.store.close()
            if service.cache.mirror is not None:
                await service.cache.mirror.close()

    app = FastAPI(title=settings.app_name, version=settings.service_version, lifespan=lifespan)
    app.state.service = service
    app.include_router(build_router(service=service, settings=settings), prefix=settings.public_base_path)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True, "service": settings.app_name, "version": settings.service_version, "node": settings.node_name}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
