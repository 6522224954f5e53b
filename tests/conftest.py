from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio

from platform_monitor.config import MonitorConfig, PlatformUrls
from platform_monitor.database import PostgrestClient
from platform_monitor.email_client import ResendClient, ResendConfig
from platform_monitor.results import RunState
from platform_monitor.runner import CheckRunner
from platform_monitor.suites import SuiteContext

INTERNAL_KEY = "internal-secret"
BOOKING_PROMPT_MARKER = "boka bord"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += float(ms)


def _json(status: int, obj: Any) -> httpx.Response:
    return httpx.Response(status, json=obj)


def _html(status: int, body: str) -> httpx.Response:
    return httpx.Response(status, text=body, headers={"Content-Type": "text/html; charset=utf-8"})


@dataclass
class FakePlatform:
    """In-memory stand-in for every service the monitor probes."""

    clock: FakeClock
    booking_latency_ms: int = 0
    push_send_status: int = 200
    landing_status: int = 200
    engine_status: int = 200
    missing_tables: set[str] = field(default_factory=set)
    failing_tables: set[str] = field(default_factory=set)
    fail_deletes: bool = False
    email_status: int = 200
    requests: list[httpx.Request] = field(default_factory=list)
    deletions: list[tuple[str, dict[str, str]]] = field(default_factory=list)
    emails: list[dict[str, Any]] = field(default_factory=list)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        handler = {
            "landing.test": self._landing,
            "engine.test": self._engine,
            "demo.test": self._demo,
            "dash.test": self._dashboard,
            "sales.test": self._sales,
            "db.test": self._database,
            "api.resend.com": self._resend,
        }.get(host)
        if handler is None:
            return _json(404, {"error": f"unknown host {host}"})
        return handler(request)

    def _landing(self, request: httpx.Request) -> httpx.Response:
        return _html(self.landing_status, "<html><body><a href='/demo'>Try the demo</a></body></html>")

    def _engine(self, request: httpx.Request) -> httpx.Response:
        if request.url.path != "/api/chat" or request.method != "POST":
            return _json(404, {"error": "not found"})
        payload = json.loads(request.content or b"{}")
        prompt = str(payload.get("prompt") or "")
        if BOOKING_PROMPT_MARKER in prompt:
            self.clock.advance(self.booking_latency_ms)
        if self.engine_status != 200:
            return _json(self.engine_status, {"error": "engine down"})
        return _json(
            200,
            {
                "response": "Carbonara kostar 189 kr.",
                "sessionId": "engine-session-1",
                "customerName": "Bella Italia",
                "aiName": "Sofia",
                "triggeredActions": ["add_context"],
            },
        )

    def _demo(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/" and request.method == "GET":
            return _html(200, "<html><body>Demo restaurant</body></html>")
        if path == "/api/restaurant" and request.method == "POST":
            return _json(
                200,
                {
                    "sessionId": "demo-session-1",
                    "candidates": [{"content": {"parts": [{"text": "Hej! Vi har öppet idag."}]}}],
                },
            )
        if path in {"/api/messages", "/api/typing"}:
            return _json(200, {"items": []})
        return _json(404, {"error": "not found"})

    def _protected_site(self, request: httpx.Request, protected_path: str, api_path: str) -> httpx.Response | None:
        path = request.url.path
        if path == "/login":
            return _html(200, "<form>login</form>")
        if path == protected_path:
            return httpx.Response(307, headers={"Location": "/login"})
        if path == api_path:
            return _json(401, {"error": "unauthorized"})
        return None

    def _dashboard(self, request: httpx.Request) -> httpx.Response:
        resp = self._protected_site(request, "/dashboard", "/api/messages")
        if resp is not None:
            return resp
        path = request.url.path
        if path == "/sw.js":
            return httpx.Response(200, text="self.addEventListener('push', e => {});")
        if path == "/manifest.json":
            return _json(200, {"name": "EryAI Dashboard", "start_url": "/dashboard"})
        if path == "/api/push/subscribe":
            return _json(400, {"error": "missing subscription"})
        if path == "/api/push/send":
            if request.headers.get("X-Internal-API-Key") != INTERNAL_KEY:
                return _json(403, {"error": "forbidden"})
            return _json(self.push_send_status, {"sent": 1})
        return _json(404, {"error": "not found"})

    def _sales(self, request: httpx.Request) -> httpx.Response:
        resp = self._protected_site(request, "/leads", "/api/leads")
        return resp if resp is not None else _json(404, {"error": "not found"})

    def _database(self, request: httpx.Request) -> httpx.Response:
        prefix = "/rest/v1/"
        if not request.url.path.startswith(prefix):
            return _json(404, {"message": "not found"})
        table = request.url.path[len(prefix):]
        params = dict(request.url.params)

        if table in self.missing_tables:
            return _json(
                404,
                {"code": "PGRST205", "message": f"Could not find the table 'public.{table}' in the schema cache"},
            )
        if table in self.failing_tables:
            return _json(401, {"code": "42501", "message": f"permission denied for table {table}"})

        if request.method == "DELETE":
            if self.fail_deletes:
                return _json(500, {"code": "XX000", "message": "delete exploded"})
            self.deletions.append((table, params))
            return httpx.Response(204)

        single = request.headers.get("accept", "").startswith("application/vnd.pgrst.object+json")
        rows = self._rows(table)
        if single:
            if len(rows) != 1:
                return _json(406, {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"})
            return _json(200, rows[0])
        return _json(200, rows)

    def _rows(self, table: str) -> list[dict[str, Any]]:
        if table == "customer_ai_config":
            return [{"ai_name": "Sofia", "ai_role": "host"}]
        if table == "customer_actions":
            return [{"id": i} for i in range(12)]
        if table == "chat_sessions":
            return [{"id": "demo-session-1"}]
        if table == "chat_messages":
            return [{"id": 1}, {"id": 2}]
        if table == "customers":
            return [{"id": "tenant-1", "name": "Bella Italia"}]
        return []

    def _resend(self, request: httpx.Request) -> httpx.Response:
        self.emails.append(json.loads(request.content or b"{}"))
        if self.email_status != 200:
            return _json(self.email_status, {"message": "domain not verified"})
        return _json(200, {"id": f"email-{len(self.emails)}"})


def make_config(**overrides: Any) -> MonitorConfig:
    data: dict[str, Any] = {
        "urls": PlatformUrls(
            landing="https://landing.test",
            demo="https://demo.test",
            dashboard="https://dash.test",
            sales="https://sales.test",
            engine="https://engine.test",
        ),
        "supabase_url": "https://db.test",
        "supabase_service_key": "service-key",
        "resend_api_key": "re_test_123",
        "internal_api_key": INTERNAL_KEY,
    }
    data.update(overrides)
    return MonitorConfig(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_platform(clock: FakeClock) -> FakePlatform:
    return FakePlatform(clock=clock)


@pytest.fixture
def config() -> MonitorConfig:
    return make_config()


@pytest_asyncio.fixture
async def suite_ctx(config: MonitorConfig, fake_platform: FakePlatform, clock: FakeClock):
    """A SuiteContext wired to the fake platform, with a fresh run state."""
    async with httpx.AsyncClient(transport=fake_platform.transport(), follow_redirects=True) as client:
        state = RunState()
        yield SuiteContext(
            config=config,
            http=client,
            db=PostgrestClient(client, config.supabase_url, config.supabase_service_key),
            email=ResendClient(client, ResendConfig(api_key=config.resend_api_key)),
            state=state,
            runner=CheckRunner(state, clock=clock, skip_checks=config.skip_checks),
            clock=clock,
        )
