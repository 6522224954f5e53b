from __future__ import annotations

from collections.abc import Callable

import httpx
import structlog
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, RedirectResponse

from platform_monitor import __version__
from platform_monitor.config import MonitorConfig, load_config
from platform_monitor.orchestrator import build_http_client, run_monitor

logger = structlog.get_logger(__name__)

SERVICE_NAME = "platform-monitor"


def create_app(
    config: MonitorConfig | None = None,
    *,
    http_client_factory: Callable[[MonitorConfig], httpx.AsyncClient] | None = None,
) -> FastAPI:
    app = FastAPI(title="Platform Monitor", version=__version__)
    app.state.config = config or load_config()
    app.state.http_client_factory = http_client_factory or build_http_client

    @app.get("/")
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/api/test", status_code=307)

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "healthy", "service": SERVICE_NAME, "version": __version__}

    @app.get("/api/status")
    async def status() -> dict:
        cfg: MonitorConfig = app.state.config
        return {"service": SERVICE_NAME, **cfg.public_status()}

    @app.get("/api/test", response_class=HTMLResponse)
    async def run_tests() -> HTMLResponse:
        # Always 200: failures are reported in the document and the alert.
        cfg: MonitorConfig = app.state.config
        async with app.state.http_client_factory(cfg) as client:
            run = await run_monitor(cfg, http_client=client)
        logger.info("report served", failed=run.summary.failed, total=run.summary.total)
        return HTMLResponse(content=run.html, status_code=200)

    return app
