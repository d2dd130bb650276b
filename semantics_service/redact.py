from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger

RECORD_HIDDEN_FIELDS = ("_id",)
SUMMARY_HIDDEN_FIELDS = ("_id", "id", "user", "timeline", "impressionOrder", "impressionTime")


def first_enrichment(summary: Any) -> Optional[Dict[str, Any]]:
    """Reduce a ``$lookup`` result to the single retained enrichment document."""
    if summary is None:
        return None
    if isinstance(summary, dict):
        return summary
    if isinstance(summary, (list, tuple)):
        for item in summary:
            if isinstance(item, dict):
                return item
    return None


def redact(record: Dict[str, Any]) -> Dict[str, Any]:
    for key in RECORD_HIDDEN_FIELDS:
        record.pop(key, None)

    enrichment = first_enrichment(record.get("summary"))
    if enrichment is None:
        logger.debug(f"No enrichment for semanticId={record.get('semanticId')}")
        record.pop("summary", None)
        return record

    cleaned = {k: v for k, v in enrichment.items() if k not in SUMMARY_HIDDEN_FIELDS}
    record["summary"] = cleaned
    return record


def enrichment_marker(record: Dict[str, Any]) -> Any:
    summary = record.get("summary")
    if not summary or not summary.get("source") or not summary.get("nature"):
        return "missing"
    return [summary["source"], summary["nature"]]
