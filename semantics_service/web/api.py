from __future__ import annotations

from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import APIRouter, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..schemas import Page, QueryFailure, QueryResult
from ..service import SemanticsQueryService
from ..settings import Settings

_FAILURE_STATUS: Dict[str, int] = {
    "unsupported_language": 400,
    "not_found": 404,
    "store_unavailable": 503,
    "snapshot_not_ready": 503,
}


def parse_paging(raw: Optional[str], default_amount: int) -> Page:
    """Parse ``"<amount>-<skip>"``; anything malformed falls back to the default."""
    if not raw:
        return Page(amount=default_amount)
    parts = raw.split("-")
    try:
        amount = int(parts[0])
        skip = int(parts[-1]) if len(parts) > 1 else 0
        return Page(amount=amount, skip=skip)
    except (ValueError, ValidationError):
        return Page(amount=default_amount)


def to_response(result: QueryResult) -> JSONResponse:
    if isinstance(result, QueryFailure):
        return JSONResponse(status_code=_FAILURE_STATUS.get(result.kind, 500), content=result.model_dump(mode="json"))
    return JSONResponse(content=jsonable_encoder(result.content, custom_encoder={ObjectId: str}))


def build_router(*, service: SemanticsQueryService, settings: Settings) -> APIRouter:
    router = APIRouter()
    listing_default = settings.listing_default_amount
    joined_default = settings.joined_default_amount

    @router.get("/labels/{lang}")
    @router.get("/labels/{lang}/{paging}")
    async def labels(lang: str, paging: Optional[str] = None) -> JSONResponse:
        return to_response(await service.list_labels(lang, parse_paging(paging, listing_default)))

    @router.get("/semantics/{lang}")
    @router.get("/semantics/{lang}/{paging}")
    async def semantics(lang: str, paging: Optional[str] = None) -> JSONResponse:
        return to_response(await service.list_semantics(lang, parse_paging(paging, listing_default)))

    @router.get("/enrich/{lang}")
    @router.get("/enrich/{lang}/{paging}")
    async def enrich(lang: str, paging: Optional[str] = None) -> JSONResponse:
        return to_response(await service.list_enriched(lang, parse_paging(paging, joined_default)))

    @router.get("/loud/{lang}")
    @router.get("/loud/{lang}/{paging}")
    async def loud(lang: str, paging: Optional[str] = None) -> JSONResponse:
        return to_response(await service.list_ranked_keywords(lang, parse_paging(paging, joined_default)))

    @router.get("/noogle/{lang}/{label}")
    @router.get("/noogle/{lang}/{label}/{paging}")
    async def noogle(lang: str, label: str, paging: Optional[str] = None) -> JSONResponse:
        return to_response(await service.list_grouped(lang, label, parse_paging(paging, joined_default)))

    @router.get("/langinfo/{lang}")
    async def langinfo(lang: str, cached: bool = Query(False)) -> JSONResponse:
        return to_response(await service.language_snapshot(lang, cached_only=cached))

    @router.get("/keywords/{lang}")
    async def keywords(lang: str) -> JSONResponse:
        return to_response(await service.keywords(lang))

    @router.get("/languages")
    async def languages() -> JSONResponse:
        return to_response(await service.languages())

    @router.get("/unit/{semantic_id}")
    async def unit(semantic_id: str) -> JSONResponse:
        return to_response(await service.semantic_unit(semantic_id))

    @router.get("/stats")
    async def stats() -> Dict[str, Any]:
        return service.stats.snapshot()

    return router
