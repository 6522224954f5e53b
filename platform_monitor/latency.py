from __future__ import annotations

from enum import Enum

from platform_monitor.config import ThresholdPair, Thresholds
from platform_monitor.results import BUCKET_DEMO, BUCKET_ENGINE, CheckFailure


class LatencyLevel(str, Enum):
    NORMAL = "normal"
    DEGRADED = "degraded"
    CRITICAL = "critical"

    @property
    def icon(self) -> str:
        return _ICONS[self]


_ICONS = {
    LatencyLevel.NORMAL: "🟢",
    LatencyLevel.DEGRADED: "🟡",
    LatencyLevel.CRITICAL: "🔴",
}

# Buckets whose samples time an AI-generated answer.
AI_BUCKETS = frozenset({BUCKET_ENGINE, BUCKET_DEMO})


def classify(duration_ms: float, pair: ThresholdPair) -> LatencyLevel:
    if duration_ms >= pair.fail_ms:
        return LatencyLevel.CRITICAL
    if duration_ms >= pair.warn_ms:
        return LatencyLevel.DEGRADED
    return LatencyLevel.NORMAL


def pair_for_bucket(bucket: str, thresholds: Thresholds) -> ThresholdPair:
    return thresholds.ai if bucket in AI_BUCKETS else thresholds.api


def assert_ai_latency(duration_ms: int, pair: ThresholdPair) -> None:
    """Raise when an AI answer took too long; degraded and critical get distinct messages."""
    level = classify(duration_ms, pair)
    if level is LatencyLevel.CRITICAL:
        raise CheckFailure(f"AI too slow: {duration_ms}ms (max: {pair.fail_ms}ms)")
    if level is LatencyLevel.DEGRADED:
        raise CheckFailure(f"AI slow: {duration_ms}ms (warning threshold: {pair.warn_ms}ms)")
