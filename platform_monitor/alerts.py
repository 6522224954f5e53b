"""Failure digest sent after a run with at least one failed check."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
import structlog
from jinja2 import Environment

from platform_monitor.config import MonitorConfig
from platform_monitor.email_client import Notifier
from platform_monitor.report import format_seconds, template_environment
from platform_monitor.results import BUCKET_ENGINE, STATUS_FAILED, CheckResult, LatencyRecorder
from platform_monitor.telegram import TelegramConfig, send_digest

logger = structlog.get_logger(__name__)

ALERT_TEMPLATE = "alert_email.html"


@dataclass(frozen=True)
class AlertMessage:
    subject: str
    html: str
    text: str


def _local_timestamp(now: datetime, tz_name: str) -> str:
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown alert timezone, using UTC", timezone=tz_name)
        tz = timezone.utc
    return now.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def format_failure_list(failures: Sequence[CheckResult]) -> str:
    return "\n\n".join(f"❌ [{f.category}] {f.name}\n   Error: {f.error}" for f in failures)


def build_alert(
    results: Sequence[CheckResult],
    duration_ms: int,
    ai_average_ms: int,
    config: MonitorConfig,
    *,
    now: datetime,
    env: Environment | None = None,
) -> AlertMessage | None:
    failures = [r for r in results if r.status == STATUS_FAILED]
    if not failures:
        return None

    context = {
        "timestamp": _local_timestamp(now, config.alert_timezone),
        "failed": len(failures),
        "total": len(results),
        "duration": format_seconds(duration_ms),
        "ai_average_ms": ai_average_ms,
        "failure_list": format_failure_list(failures),
        "rerun_url": config.rerun_url,
    }
    env = env or template_environment()
    html = env.get_template(ALERT_TEMPLATE).render(alert=context)

    text_lines = [
        f"🚨 System check failures: {context['failed']} of {context['total']} checks failed",
        f"Time: {context['timestamp']}",
        f"Duration: {context['duration']}",
        f"AI avg latency: {ai_average_ms}ms",
        "",
        context["failure_list"],
    ]
    if config.rerun_url:
        text_lines += ["", f"Rerun: {config.rerun_url}"]

    return AlertMessage(
        subject=f"{config.alert_subject_prefix} System Alert: {len(failures)} check(s) failed",
        html=html,
        text="\n".join(text_lines).strip(),
    )


class AlertDispatcher:
    """Hands the failure digest to the notification channels.

    Delivery problems are logged and swallowed: a broken alert channel must
    never be reported as, or hide, a failed check.
    """

    def __init__(
        self,
        notifier: Notifier,
        config: MonitorConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.notifier = notifier
        self.config = config
        self.http_client = http_client

    async def notify(
        self,
        results: Sequence[CheckResult],
        duration_ms: int,
        latency: LatencyRecorder,
        *,
        now: datetime | None = None,
    ) -> bool:
        """Returns True when the email channel accepted the digest."""
        now = now or datetime.now(timezone.utc)
        try:
            alert = build_alert(results, duration_ms, latency.average(BUCKET_ENGINE), self.config, now=now)
        except Exception as exc:
            logger.error("failed to build failure alert", error=f"{type(exc).__name__}: {exc}")
            return False
        if alert is None:
            return False

        delivered = False
        try:
            message_id = await self.notifier.send(
                sender=self.config.alert_sender,
                recipient=self.config.superadmin_email,
                subject=alert.subject,
                html=alert.html,
            )
            delivered = True
            logger.info("failure report sent", recipient=self.config.superadmin_email, message_id=message_id)
        except Exception as exc:
            logger.error("failed to send failure report", error=f"{type(exc).__name__}: {exc}")

        if self.config.telegram_configured() and self.http_client is not None:
            cfg = TelegramConfig(bot_token=self.config.telegram_bot_token, chat_id=self.config.telegram_chat_id)
            try:
                sent = await send_digest(self.http_client, cfg, alert.text)
                logger.info("telegram digest sent", messages=sent)
            except Exception as exc:
                logger.error("failed to send telegram digest", error=str(exc))

        return delivered
