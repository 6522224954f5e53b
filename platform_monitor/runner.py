"""Isolated execution of single checks."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

import structlog

from platform_monitor.results import (
    CheckResult,
    CheckSkipped,
    Clock,
    Failed,
    Passed,
    RunState,
    Skipped,
    monotonic_ms,
)

logger = structlog.get_logger(__name__)

DISABLED_REASON = "disabled in configuration"


def _failure_message(exc: Exception) -> str:
    msg = str(exc)
    return msg if msg else type(exc).__name__


def _normalize_skip_entries(entries: tuple[str, ...] | list[str]) -> frozenset[str]:
    out: set[str] = set()
    for raw in entries or ():
        s = str(raw or "").strip().lower()
        if s:
            out.add(s)
    return frozenset(out)


class CheckRunner:
    """Runs one named check at a time and records its outcome into the run state.

    A failing check never propagates: the error message becomes the recorded
    failure and the caller moves on to the next check.
    """

    def __init__(
        self,
        state: RunState,
        *,
        clock: Clock = monotonic_ms,
        skip_checks: tuple[str, ...] | list[str] = (),
    ):
        self.state = state
        self.clock = clock
        self._skip = _normalize_skip_entries(skip_checks)

    def is_disabled(self, category: str, name: str) -> bool:
        cat = category.strip().lower()
        return cat in self._skip or f"{cat}/{name.strip().lower()}" in self._skip

    async def run(self, category: str, name: str, action: Callable[[], Any]) -> CheckResult:
        if self.is_disabled(category, name):
            result = CheckResult(category=category, name=name, outcome=Skipped(DISABLED_REASON), duration_ms=0)
            self.state.record(result)
            logger.warning("check skipped", category=category, check=name, reason=DISABLED_REASON)
            return result

        started = self.clock()
        try:
            ret = action()
            if inspect.isawaitable(ret):
                await ret
        except CheckSkipped as exc:
            outcome = Skipped(str(exc))
        except Exception as exc:
            outcome = Failed(_failure_message(exc))
        else:
            outcome = Passed()
        elapsed = max(0, int(round(self.clock() - started)))

        result = CheckResult(category=category, name=name, outcome=outcome, duration_ms=elapsed)
        self.state.record(result)

        if isinstance(outcome, Failed):
            logger.warning("check failed", category=category, check=name, error=outcome.message, duration_ms=elapsed)
        elif isinstance(outcome, Skipped):
            logger.warning("check skipped", category=category, check=name, reason=outcome.reason)
        else:
            logger.info("check passed", category=category, check=name, duration_ms=elapsed)
        return result
