from __future__ import annotations

import time
from collections import Counter
from typing import Dict


class QueryStatsTracker:
    def __init__(self) -> None:
        self.counters = Counter()
        self.gauges: Dict[str, float] = {}
        self.requests_by_op = Counter()
        self.failures_by_kind = Counter()

    def increment_request(self, *, op: str) -> None:
        self.counters["requests"] += 1
        self.requests_by_op[op] += 1

    def increment_failure(self, *, kind: str) -> None:
        self.counters["failures"] += 1
        self.failures_by_kind[kind] += 1

    def increment_cache_hit(self) -> None:
        self.counters["snapshot_cache_hits"] += 1

    def increment_recompute(self) -> None:
        self.counters["snapshot_recomputes"] += 1

    def record_recompute_ms(self, duration_ms: float) -> None:
        self.gauges["snapshot_recompute_ms"] = duration_ms

    def snapshot(self) -> Dict[str, object]:
        out: Dict[str, object] = {}
        out.update(self.counters)
        out.update(self.gauges)
        out["requests_by_op"] = dict(self.requests_by_op)
        out["failures_by_kind"] = dict(self.failures_by_kind)
        out.setdefault("ts_ms", int(time.time() * 1000))
        return out
