from __future__ import annotations

import asyncio
import time
from datetime import timedelta
from typing import Any, Awaitable, Dict, List, Optional

from loguru import logger

from .cache import Clock, SnapshotCache, SnapshotEntry
from .keywords import KeywordListMissing, KeywordLists
from .languages import Language, parse_language, supported_languages
from .observability.stats import QueryStatsTracker
from .pipelines import (
    contributors_pipeline,
    count_contributors,
    count_distinct_labels,
    distinct_labels_pipeline,
    enrich_pipeline,
    loud_pipeline,
    noogle_pipeline,
    paged_window_query,
    regroup_joined,
    window_start,
)
from .redact import enrichment_marker, redact
from .schemas import Page, QueryContent, QueryFailure, QueryResult, RankedKeyword, SnapshotContent
from .settings import Settings
from .store.interface import EventStore, StoreUnavailable


async def _gather_all(*aws: Awaitable[Any]) -> List[Any]:
    # every gather settles before the first failure is raised
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


class SemanticsQueryService:
    """Read operations over label events, one method per public query.

    Every method answers with ``QueryContent`` or ``QueryFailure``. Language
    codes are checked before the store is touched and store failures are
    reported, not raised.
    """

    def __init__(
        self,
        *,
        store: EventStore,
        cache: SnapshotCache,
        settings: Settings,
        keyword_lists: Optional[KeywordLists] = None,
        stats: Optional[QueryStatsTracker] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings
        self.keyword_lists = keyword_lists or KeywordLists(settings.keywords_dir)
        self.stats = stats or QueryStatsTracker()
        self.clock = clock or cache.clock

    # -- failures -----------------------------------------------------------

    def _unsupported(self, code: Any) -> QueryFailure:
        self.stats.increment_failure(kind="unsupported_language")
        return QueryFailure(
            kind="unsupported_language",
            message=f"unsupported language: {code!r}",
            supported=supported_languages(),
        )

    def _store_failure(self, op: str, exc: StoreUnavailable) -> QueryFailure:
        logger.warning(f"{op} failed, store unavailable: {exc}")
        self.stats.increment_failure(kind="store_unavailable")
        return QueryFailure(kind="store_unavailable", message=f"error: {exc}")

    def _resolve(self, op: str, code: Any) -> Optional[Language]:
        self.stats.increment_request(op=op)
        return parse_language(code)

    # -- plain listings -----------------------------------------------------

    async def _paged_listing(self, op: str, collection: str, code: Any, page: Page) -> QueryResult:
        lang = self._resolve(op, code)
        if lang is None:
            return self._unsupported(code)
        logger.debug(f"{op} request (lang: {lang.value}), amount {page.amount} skip {page.skip}")

        query = paged_window_query(lang.value, page)
        try:
            docs = await self.store.read_page(collection, query.filter, query.sort, query.limit, query.skip)
        except StoreUnavailable as exc:
            return self._store_failure(op, exc)
        logger.debug(f"retrieved {len(docs)} objects, with amount {page.amount} skip {page.skip}")
        return QueryContent(content=docs)

    async def list_labels(self, code: Any, page: Page) -> QueryResult:
        return await self._paged_listing("labels", self.settings.labels_collection, code, page)

    async def list_semantics(self, code: Any, page: Page) -> QueryResult:
        return await self._paged_listing("semantics", self.settings.semantics_collection, code, page)

    # -- aggregations -------------------------------------------------------

    async def list_enriched(self, code: Any, page: Page) -> QueryResult:
        lang = self._resolve("enrich", code)
        if lang is None:
            return self._unsupported(code)
        logger.debug(f"enrich request (lang: {lang.value}), amount {page.amount} skip {page.skip}")

        pipeline = enrich_pipeline(
            lang.value,
            page,
            self.clock(),
            metadata_collection=self.settings.metadata_collection,
            hold_back=timedelta(days=self.settings.enrich_hold_back_days),
        )
        try:
            docs = await self.store.aggregate(self.settings.labels_collection, pipeline)
        except StoreUnavailable as exc:
            return self._store_failure("enrich", exc)

        enriched = [redact(doc) for doc in docs]
        logger.debug(f"return enrich, {len(enriched)} objects {[enrichment_marker(e) for e in enriched]}")
        return QueryContent(content=enriched)

    async def list_ranked_keywords(self, code: Any, page: Page) -> QueryResult:
        lang = self._resolve("loud", code)
        if lang is None:
            return self._unsupported(code)
        logger.debug(f"loud request (lang: {lang.value}), amount {page.amount} skip {page.skip}")

        since = window_start(self.clock(), hours=self.settings.loud_window_hours)
        pipeline = loud_pipeline(lang.value, page, since, max_entries=self.settings.loud_max_entries)
        try:
            docs = await self.store.aggregate(self.settings.semantics_collection, pipeline)
        except StoreUnavailable as exc:
            return self._store_failure("loud", exc)

        ranked = [RankedKeyword.model_validate(doc).model_dump() for doc in docs]
        logger.debug(f"return loudness: {[r['label'] for r in ranked]}")
        return QueryContent(content=ranked)

    async def list_grouped(self, code: Any, label: str, page: Page) -> QueryResult:
        lang = self._resolve("noogle", code)
        if lang is None:
            return self._unsupported(code)
        logger.debug(f"noogle request (lang: {lang.value}, label: {label}), amount {page.amount} skip {page.skip}")

        pipeline = noogle_pipeline(
            lang.value,
            label,
            page,
            metadata_collection=self.settings.metadata_collection,
            labels_collection=self.settings.labels_collection,
        )
        try:
            docs = await self.store.aggregate(self.settings.semantics_collection, pipeline)
        except StoreUnavailable as exc:
            return self._store_failure("noogle", exc)

        results: List[Dict[str, Any]] = []
        for doc in docs:
            base = regroup_joined(doc)
            if base is None:
                logger.debug(f"noogle: no label event for semanticId={doc.get('_id')}")
                continue
            results.append(redact(base))
        return QueryContent(content=results)

    # -- language snapshot --------------------------------------------------

    async def _compute_snapshot(self, lang: Language) -> SnapshotContent:
        start = time.time()
        self.stats.increment_recompute()
        hours = self.settings.snapshot_window_hours
        since = window_start(self.clock(), hours=hours)
        max_entries = self.settings.snapshot_max_entries

        ranked, label_groups, profiles = await _gather_all(
            self.store.aggregate(
                self.settings.semantics_collection,
                loud_pipeline(lang.value, Page(amount=self.settings.snapshot_top_n), since, max_entries=max_entries),
            ),
            self.store.aggregate(
                self.settings.semantics_collection,
                distinct_labels_pipeline(lang.value, since, max_entries=max_entries),
            ),
            self.store.aggregate(
                self.settings.labels_collection,
                contributors_pipeline(
                    lang.value,
                    since,
                    max_entries=max_entries,
                    metadata_collection=self.settings.metadata_collection,
                    contributor_field=self.settings.contributor_field,
                ),
            ),
        )
        content = SnapshotContent(
            considered_hours_window=hours,
            language=lang.value,
            most=[doc["label"] for doc in ranked if doc.get("label") is not None],
            labels_count=count_distinct_labels(label_groups),
            contributors=count_contributors(profiles),
        )
        self.stats.record_recompute_ms((time.time() - start) * 1000.0)
        return content

    def _format_snapshot(self, lang: Language, entry: SnapshotEntry) -> QueryResult:
        if entry.computed_at is None or entry.next is None:
            self.stats.increment_failure(kind="snapshot_not_ready")
            return QueryFailure(kind="snapshot_not_ready", message=f"no snapshot computed yet for {lang.value}")
        return QueryContent(content=entry.as_payload())

    async def language_snapshot(self, code: Any, *, cached_only: bool = False) -> QueryResult:
        lang = self._resolve("langinfo", code)
        if lang is None:
            return self._unsupported(code)

        if cached_only:
            return self._format_snapshot(lang, self.cache.peek(lang))

        try:
            entry, computed = await self.cache.get_or_refresh(
                lang,
                lambda: self._compute_snapshot(lang),
                ttl=timedelta(minutes=self.settings.snapshot_ttl_minutes),
            )
        except StoreUnavailable as exc:
            return self._store_failure("langinfo", exc)
        if not computed:
            self.stats.increment_cache_hit()
        return self._format_snapshot(lang, entry)

    # -- detail and static lists --------------------------------------------

    async def semantic_unit(self, semantic_id: str) -> QueryResult:
        self.stats.increment_request(op="unit")
        logger.debug(f"semantic unit query: {semantic_id}")
        try:
            labels, posts = await _gather_all(
                self.store.read_all(self.settings.semantics_collection, {"semanticId": semantic_id}),
                self.store.read_all(self.settings.summary_collection, {"semanticId": semantic_id}),
            )
        except StoreUnavailable as exc:
            return self._store_failure("unit", exc)
        logger.debug(f"Found {len(labels)} semantics and {len(posts)} posts")
        return QueryContent(
            content={
                "labels": [{k: v for k, v in doc.items() if k != "_id"} for doc in labels],
                "posts": [{k: v for k, v in doc.items() if k != "_id"} for doc in posts],
            }
        )

    async def keywords(self, code: Any) -> QueryResult:
        lang = self._resolve("keywords", code)
        if lang is None:
            return self._unsupported(code)
        try:
            kwds = await self.keyword_lists.for_language(lang.value)
        except KeywordListMissing as exc:
            self.stats.increment_failure(kind="not_found")
            return QueryFailure(kind="not_found", message=f"no keyword list: {exc}")
        logger.debug(f"{len(kwds)} keywords returned as part of {lang.value}")
        return QueryContent(content=kwds)

    async def languages(self) -> QueryResult:
        self.stats.increment_request(op="languages")
        potential = supported_languages()
        try:
            available = await self.keyword_lists.available()
        except KeywordListMissing as exc:
            self.stats.increment_failure(kind="not_found")
            return QueryFailure(kind="not_found", message=f"no keyword list: {exc}")
        logger.debug(f"Loaded {len(available)} available on {len(potential)} potential")
        return QueryContent(content={"available": available, "potential": potential})
