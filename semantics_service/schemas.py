from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FailureKind = Literal["unsupported_language", "store_unavailable", "snapshot_not_ready", "not_found"]


class Page(BaseModel):
    """Already-derived paging window."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(..., gt=0)
    skip: int = Field(0, ge=0)


class RankedKeyword(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label: str
    wp: Any = None
    count: int


class SnapshotContent(BaseModel):
    """Per-language summary computed over the trailing window."""

    model_config = ConfigDict(populate_by_name=True)

    considered_hours_window: int = Field(..., alias="consideredHoursWindow")
    language: str
    most: List[str] = Field(default_factory=list)
    labels_count: int = Field(0, alias="labelsCount")
    contributors: int = 0


class QueryContent(BaseModel):
    ok: Literal[True] = True
    content: Any = None


class QueryFailure(BaseModel):
    ok: Literal[False] = False
    error: Literal[True] = True
    kind: FailureKind
    message: str
    supported: Optional[Dict[str, str]] = None


QueryResult = QueryContent | QueryFailure
