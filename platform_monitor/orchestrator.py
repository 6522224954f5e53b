"""One complete monitor run: suites, cleanup, aggregation, alert, report."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
import structlog

from platform_monitor.aggregate import RunSummary, summarize
from platform_monitor.alerts import AlertDispatcher
from platform_monitor.cleanup import run_cleanup
from platform_monitor.config import MonitorConfig
from platform_monitor.database import PostgrestClient
from platform_monitor.email_client import Notifier, ResendClient, ResendConfig
from platform_monitor.report import ReportDocument, build_report_document, render_report
from platform_monitor.results import Clock, RunState, monotonic_ms
from platform_monitor.runner import CheckRunner
from platform_monitor.suites import SUITES, SuiteContext

logger = structlog.get_logger(__name__)

USER_AGENT = "platform-monitor/0.1"


@dataclass(frozen=True)
class MonitorRun:
    state: RunState
    summary: RunSummary
    duration_ms: int
    document: ReportDocument
    html: str
    alert_sent: bool


def build_http_client(config: MonitorConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.http_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


async def run_monitor(
    config: MonitorConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
    notifier: Notifier | None = None,
    clock: Clock = monotonic_ms,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> MonitorRun:
    """Execute every suite once, in order, and return the rendered report.

    The run state is created here and handed to each component; nothing about
    a run survives the call.
    """
    if http_client is None:
        async with build_http_client(config) as client:
            return await run_monitor(config, http_client=client, notifier=notifier, clock=clock, now=now)

    started = clock()
    state = RunState()
    runner = CheckRunner(state, clock=clock, skip_checks=config.skip_checks)
    db = PostgrestClient(http_client, config.supabase_url, config.supabase_service_key)
    email = ResendClient(http_client, ResendConfig(api_key=config.resend_api_key))
    ctx = SuiteContext(config=config, http=http_client, db=db, email=email, state=state, runner=runner, clock=clock)

    logger.info("monitor run started", suites=len(SUITES))
    for suite in SUITES:
        await suite(ctx)
    await run_cleanup(db, state)

    duration_ms = max(0, int(round(clock() - started)))
    summary = summarize(state.results, state.latency)
    logger.info(
        "monitor run finished",
        passed=summary.passed,
        failed=summary.failed,
        skipped=summary.skipped,
        duration_ms=duration_ms,
    )

    dispatcher = AlertDispatcher(notifier or email, config, http_client=http_client)
    alert_sent = await dispatcher.notify(state.results, duration_ms, state.latency, now=now())

    document = build_report_document(
        state.results,
        summary,
        state.latency.all_samples(),
        duration_ms,
        config.thresholds,
        generated_at=now(),
    )
    return MonitorRun(
        state=state,
        summary=summary,
        duration_ms=duration_ms,
        document=document,
        html=render_report(document),
        alert_sent=alert_sent,
    )
