"""Check outcomes, latency samples and the per-run state."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union


STATUS_PASSED = "passed"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"

BUCKET_ENGINE = "engine"
BUCKET_DEMO = "demo"
BUCKET_API = "api"
DEFAULT_BUCKETS = (BUCKET_ENGINE, BUCKET_DEMO, BUCKET_API)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


class CheckFailure(AssertionError):
    """A check found a violated contract."""


class CheckSkipped(Exception):
    """A check was not executed."""


def expect(condition: Any, message: str) -> None:
    if not condition:
        raise CheckFailure(message)


@dataclass(frozen=True)
class Passed:
    status = STATUS_PASSED


@dataclass(frozen=True)
class Failed:
    message: str
    status = STATUS_FAILED


@dataclass(frozen=True)
class Skipped:
    reason: str = ""
    status = STATUS_SKIPPED


Outcome = Union[Passed, Failed, Skipped]


@dataclass(frozen=True)
class CheckResult:
    category: str
    name: str
    outcome: Outcome
    duration_ms: int

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be non-negative, got {self.duration_ms}")

    @property
    def status(self) -> str:
        return self.outcome.status

    @property
    def error(self) -> str | None:
        if isinstance(self.outcome, Failed):
            return self.outcome.message
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "category": self.category,
            "name": self.name,
            "status": self.status,
            "duration_ms": self.duration_ms,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class LatencySample:
    bucket: str
    name: str
    duration_ms: int


class LatencyRecorder:
    """Named duration samples grouped into buckets."""

    def __init__(self, buckets: tuple[str, ...] = DEFAULT_BUCKETS):
        self._buckets: dict[str, list[LatencySample]] = {b: [] for b in buckets}

    def track(self, bucket: str, name: str, duration_ms: float) -> LatencySample:
        sample = LatencySample(bucket=bucket, name=name, duration_ms=max(0, int(round(duration_ms))))
        self._buckets.setdefault(bucket, []).append(sample)
        return sample

    def buckets(self) -> list[str]:
        return list(self._buckets)

    def samples(self, bucket: str) -> list[LatencySample]:
        return list(self._buckets.get(bucket, []))

    def all_samples(self) -> list[LatencySample]:
        out: list[LatencySample] = []
        for samples in self._buckets.values():
            out.extend(samples)
        return out

    def average(self, bucket: str) -> int:
        samples = self._buckets.get(bucket) or []
        if not samples:
            return 0
        # Round half up; durations are never negative.
        return int(sum(s.duration_ms for s in samples) / len(samples) + 0.5)

    def maximum(self, bucket: str) -> int:
        samples = self._buckets.get(bucket) or []
        if not samples:
            return 0
        return max(s.duration_ms for s in samples)


@dataclass
class RunState:
    """Everything one run accumulates. Built fresh for every invocation."""
    results: list[CheckResult] = field(default_factory=list)
    latency: LatencyRecorder = field(default_factory=LatencyRecorder)
    demo_session_id: str | None = None
    engine_session_id: str | None = None

    def record(self, result: CheckResult) -> None:
        self.results.append(result)

    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if r.status == STATUS_FAILED]
