"""Aggregation pipelines over the label event collections.

Every builder is a pure function of its arguments: the caller supplies the
reference time, so the same inputs always yield the same stage list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from .schemas import Page

Stage = Dict[str, Any]
Pipeline = List[Stage]


@dataclass(frozen=True)
class PagedQuery:
    filter: Dict[str, Any]
    sort: Dict[str, int]
    limit: int
    skip: int


def window_start(now: datetime, *, hours: int) -> datetime:
    return now - timedelta(hours=hours)


def paged_window_query(lang: str, page: Page) -> PagedQuery:
    return PagedQuery(filter={"lang": lang}, sort={"when": -1}, limit=page.amount, skip=page.skip)


def enrich_pipeline(
    lang: str,
    page: Page,
    now: datetime,
    *,
    metadata_collection: str,
    hold_back: timedelta = timedelta(days=2),
) -> Pipeline:
    # the most recent events are held back until enrichment had time to land
    cutoff = now - hold_back
    return [
        {"$match": {"lang": lang, "when": {"$lt": cutoff}}},
        {"$sort": {"when": -1}},
        {"$skip": page.skip},
        {"$limit": page.amount},
        {
            "$lookup": {
                "from": metadata_collection,
                "localField": "semanticId",
                "foreignField": "semanticId",
                "as": "summary",
            }
        },
    ]


def loud_pipeline(lang: str, page: Page, since: datetime, *, max_entries: int) -> Pipeline:
    """Rank labels seen after ``since`` by occurrence count.

    The scan is capped at ``max_entries`` matching events before grouping,
    and events without a label form no group. Paging applies to the ranked
    groups, so skip/limit never reorder the ranking. Equal counts fall back
    to the label in ascending order.
    """
    return [
        {"$match": {"lang": lang, "when": {"$gt": since}}},
        {"$limit": max_entries},
        {"$group": {"_id": "$label", "wp": {"$first": "$wp"}, "count": {"$sum": 1}}},
        {"$match": {"_id": {"$ne": None}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$skip": page.skip},
        {"$limit": page.amount},
        {"$project": {"label": "$_id", "_id": False, "wp": True, "count": True}},
    ]


def noogle_pipeline(
    lang: str,
    label: str,
    page: Page,
    *,
    metadata_collection: str,
    labels_collection: str,
) -> Pipeline:
    return [
        {"$match": {"lang": lang, "label": label}},
        {"$group": {"_id": "$semanticId", "latest": {"$max": "$when"}}},
        {"$sort": {"latest": -1, "_id": 1}},
        {"$skip": page.skip},
        {"$limit": page.amount},
        {"$lookup": {"from": metadata_collection, "localField": "_id", "foreignField": "semanticId", "as": "summary"}},
        {"$lookup": {"from": labels_collection, "localField": "_id", "foreignField": "semanticId", "as": "labels"}},
    ]


def distinct_labels_pipeline(lang: str, since: datetime, *, max_entries: int) -> Pipeline:
    return [
        {"$match": {"lang": lang, "when": {"$gt": since}}},
        {"$sort": {"when": -1}},
        {"$limit": max_entries},
        {"$group": {"_id": "$label"}},
        {"$match": {"_id": {"$ne": None}}},
        {"$group": {"_id": None, "amount": {"$sum": 1}}},
    ]


def contributors_pipeline(
    lang: str,
    since: datetime,
    *,
    max_entries: int,
    metadata_collection: str,
    contributor_field: str = "pseudo",
) -> Pipeline:
    return [
        {"$match": {"lang": lang, "when": {"$gt": since}}},
        {"$sort": {"when": -1}},
        {"$limit": max_entries},
        {
            "$lookup": {
                "from": metadata_collection,
                "localField": "semanticId",
                "foreignField": "semanticId",
                "as": "summary",
            }
        },
        {"$group": {"_id": None, "profiles": {"$addToSet": f"$summary.{contributor_field}"}}},
    ]


def count_distinct_labels(docs: Optional[List[Dict[str, Any]]]) -> int:
    if not docs:
        return 0
    amount = docs[0].get("amount")
    return int(amount) if amount else 0


def _flatten(values: Iterable[Any]) -> Iterable[Any]:
    for value in values:
        if isinstance(value, (list, tuple)):
            yield from _flatten(value)
        else:
            yield value


def count_contributors(docs: Optional[List[Dict[str, Any]]]) -> int:
    """Count distinct contributor ids out of the ``$addToSet`` result.

    Each set member is itself the list of ids found on one event's joined
    metadata, so the sets are flattened before deduplication.
    """
    if not docs:
        return 0
    profiles = docs[0].get("profiles")
    if not profiles:
        return 0
    seen = set()
    for value in _flatten(profiles):
        if value is None:
            continue
        seen.add(value)
    return len(seen)


def parse_when(value: Any) -> Any:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


def regroup_joined(doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Turn one grouped noogle row into a label event carrying its summary."""
    labels = doc.get("labels") or []
    if not labels:
        return None
    base = dict(labels[0])
    base["summary"] = doc.get("summary") or []
    base["when"] = parse_when(base.get("when"))
    return base
