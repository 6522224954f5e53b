"""Pure aggregation of a run's results and latency samples."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from platform_monitor.results import (
    STATUS_FAILED,
    STATUS_PASSED,
    STATUS_SKIPPED,
    CheckResult,
    LatencyRecorder,
)


@dataclass(frozen=True)
class CategorySummary:
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class BucketStats:
    count: int
    average_ms: int
    max_ms: int


@dataclass(frozen=True)
class RunSummary:
    categories: dict[str, CategorySummary]
    passed: int
    failed: int
    skipped: int
    latency: dict[str, BucketStats] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    def bucket(self, name: str) -> BucketStats:
        return self.latency.get(name) or BucketStats(count=0, average_ms=0, max_ms=0)


def summarize_categories(results: Iterable[CheckResult]) -> dict[str, CategorySummary]:
    """Counts per category, keyed in order of first appearance."""
    counts: dict[str, dict[str, int]] = {}
    for r in results:
        bucket = counts.setdefault(r.category, {STATUS_PASSED: 0, STATUS_FAILED: 0, STATUS_SKIPPED: 0})
        bucket[r.status] += 1
    return {
        cat: CategorySummary(passed=c[STATUS_PASSED], failed=c[STATUS_FAILED], skipped=c[STATUS_SKIPPED])
        for cat, c in counts.items()
    }


def summarize(results: Iterable[CheckResult], latency: LatencyRecorder | None = None) -> RunSummary:
    categories = summarize_categories(results)
    stats: dict[str, BucketStats] = {}
    if latency is not None:
        for name in latency.buckets():
            stats[name] = BucketStats(
                count=len(latency.samples(name)),
                average_ms=latency.average(name),
                max_ms=latency.maximum(name),
            )
    return RunSummary(
        categories=categories,
        passed=sum(c.passed for c in categories.values()),
        failed=sum(c.failed for c in categories.values()),
        skipped=sum(c.skipped for c in categories.values()),
        latency=stats,
    )
