"""HTML report for one monitor run.

The report is built in two steps: `build_report_document` turns results and
the run summary into a plain `ReportDocument` (sections, rows, fields), and
`render_report` feeds that document to a Jinja2 template. Nothing in the
rendering step decides pass/fail; it only shows what the runner recorded.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from platform_monitor.aggregate import RunSummary
from platform_monitor.config import Thresholds
from platform_monitor.latency import LatencyLevel, classify, pair_for_bucket
from platform_monitor.results import (
    BUCKET_API,
    BUCKET_DEMO,
    BUCKET_ENGINE,
    CheckResult,
    LatencySample,
)

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
REPORT_TEMPLATE = "report.html"

BUCKET_LABELS = {
    BUCKET_ENGINE: "Engine (AI)",
    BUCKET_DEMO: "Demo",
    BUCKET_API: "API",
}

STATUS_ICONS = {
    "passed": "✅",
    "failed": "❌",
    "skipped": "⏭️",
}

# CSS class per latency level, reusing the status palette.
LEVEL_CSS = {
    LatencyLevel.NORMAL: "passed",
    LatencyLevel.DEGRADED: "skipped",
    LatencyLevel.CRITICAL: "failed",
}


@dataclass(frozen=True)
class Banner:
    all_passed: bool
    text: str


@dataclass(frozen=True)
class Counter:
    label: str
    value: str
    css: str


@dataclass(frozen=True)
class LatencyRow:
    label: str
    duration_ms: int
    level: LatencyLevel

    @property
    def icon(self) -> str:
        return self.level.icon

    @property
    def css(self) -> str:
        return LEVEL_CSS[self.level]


@dataclass(frozen=True)
class LatencySection:
    ai_average_ms: int
    ai_max_ms: int
    api_average_ms: int
    ai_summary_level: LatencyLevel
    rows: list[LatencyRow] = field(default_factory=list)

    @property
    def ai_summary_text(self) -> str:
        return "✅ OK" if self.ai_summary_level is LatencyLevel.NORMAL else "⚠️ Slow"


@dataclass(frozen=True)
class CheckRow:
    name: str
    status: str
    duration_ms: int
    error: str | None

    @property
    def icon(self) -> str:
        return STATUS_ICONS.get(self.status, "")


@dataclass(frozen=True)
class CategoryBlock:
    name: str
    passed: int
    total: int
    has_failures: bool
    rows: list[CheckRow] = field(default_factory=list)


@dataclass(frozen=True)
class ReportDocument:
    title: str
    banner: Banner
    counters: list[Counter]
    latency: LatencySection | None
    categories: list[CategoryBlock]
    total: int
    generated_at: str
    links: list[tuple[str, str, str]] = field(default_factory=list)


DEFAULT_LINKS = [
    ("System Status", "/api/status", "btn-secondary"),
    ("Health Check", "/api/health", "btn-secondary"),
    ("Run Again", "/api/test", "btn-primary"),
]


def format_seconds(duration_ms: int) -> str:
    return f"{duration_ms / 1000:.1f}s"


def build_latency_section(samples: Sequence[LatencySample], summary: RunSummary, thresholds: Thresholds) -> LatencySection | None:
    if not samples:
        return None
    rows = [
        LatencyRow(
            label=f"{BUCKET_LABELS.get(s.bucket, s.bucket)}: {s.name}",
            duration_ms=s.duration_ms,
            level=classify(s.duration_ms, pair_for_bucket(s.bucket, thresholds)),
        )
        for s in samples
    ]
    engine = summary.bucket(BUCKET_ENGINE)
    return LatencySection(
        ai_average_ms=engine.average_ms,
        ai_max_ms=engine.max_ms,
        api_average_ms=summary.bucket(BUCKET_API).average_ms,
        ai_summary_level=classify(engine.max_ms, thresholds.ai),
        rows=rows,
    )


def build_report_document(
    results: Sequence[CheckResult],
    summary: RunSummary,
    samples: Sequence[LatencySample],
    duration_ms: int,
    thresholds: Thresholds,
    *,
    generated_at: datetime,
    title: str = "EryAI Test Results",
) -> ReportDocument:
    if summary.all_passed:
        banner = Banner(all_passed=True, text="ALL CHECKS PASSED")
    else:
        banner = Banner(all_passed=False, text=f"{summary.failed} CHECK(S) FAILED")

    counters = [
        Counter(label="Passed", value=str(summary.passed), css="passed"),
        Counter(label="Failed", value=str(summary.failed), css="failed"),
        Counter(label="Skipped", value=str(summary.skipped), css="skipped"),
        Counter(label="Duration", value=format_seconds(duration_ms), css="duration"),
    ]

    blocks: list[CategoryBlock] = []
    for name, cat in summary.categories.items():
        rows = [
            CheckRow(name=r.name, status=r.status, duration_ms=r.duration_ms, error=r.error)
            for r in results
            if r.category == name
        ]
        blocks.append(
            CategoryBlock(name=name, passed=cat.passed, total=cat.total, has_failures=cat.has_failures, rows=rows)
        )

    return ReportDocument(
        title=title,
        banner=banner,
        counters=counters,
        latency=build_latency_section(samples, summary, thresholds),
        categories=blocks,
        total=summary.total,
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M:%S"),
        links=list(DEFAULT_LINKS),
    )


def template_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_report(document: ReportDocument, env: Environment | None = None) -> str:
    env = env or template_environment()
    html = env.get_template(REPORT_TEMPLATE).render(doc=document)
    logger.debug("rendered report", total=document.total, bytes=len(html))
    return html
