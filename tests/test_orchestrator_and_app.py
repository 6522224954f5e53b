from __future__ import annotations

from datetime import datetime, timezone

import pytest
import yaml
from fastapi.testclient import TestClient

from platform_monitor import cli
from platform_monitor.app import create_app
from platform_monitor.orchestrator import build_http_client, run_monitor
from conftest import make_config

NOW = datetime(2025, 5, 20, 9, 15, tzinfo=timezone.utc)

SECRET_ENV = {
    "SUPABASE_URL": "https://db.test",
    "SUPABASE_SERVICE_KEY": "service-key",
    "RESEND_API_KEY": "re_test_123",
    "INTERNAL_API_KEY": "internal-secret",
}


async def _run(config, fake_platform, clock):
    async with build_http_client(config, transport=fake_platform.transport()) as client:
        return await run_monitor(config, http_client=client, clock=clock, now=lambda: NOW)


@pytest.mark.asyncio
async def test_full_run_against_healthy_platform(config, fake_platform, clock) -> None:
    run = await _run(config, fake_platform, clock)

    assert len(run.state.results) == 33
    assert run.summary.all_passed, [r.to_dict() for r in run.state.failures()]
    assert run.summary.passed == 33
    assert run.alert_sent is False
    assert fake_platform.emails == []
    assert run.state.results[-1].category == "Cleanup"
    assert len(fake_platform.deletions) == 6

    assert "ALL CHECKS PASSED" in run.html
    assert "Total: 33 tests" in run.html
    assert "2025-05-20 09:15:00" in run.html


@pytest.mark.asyncio
async def test_categories_follow_suite_order(config, fake_platform, clock) -> None:
    run = await _run(config, fake_platform, clock)
    assert list(run.summary.categories) == [
        "Landing",
        "Engine",
        "Demo",
        "Dashboard",
        "Push",
        "Sales",
        "Database",
        "Email",
        "Cleanup",
    ]


@pytest.mark.asyncio
async def test_runs_do_not_share_state(config, fake_platform, clock) -> None:
    first = await _run(config, fake_platform, clock)
    second = await _run(config, fake_platform, clock)

    assert len(first.state.results) == 33
    assert len(second.state.results) == 33
    assert first.state is not second.state
    assert len(second.state.latency.samples("engine")) == 3


@pytest.mark.asyncio
async def test_failing_run_sends_one_alert(config, fake_platform, clock) -> None:
    fake_platform.landing_status = 500

    run = await _run(config, fake_platform, clock)

    assert run.summary.failed == 1
    assert run.alert_sent is True
    assert len(fake_platform.emails) == 1
    email = fake_platform.emails[0]
    assert email["to"] == [config.superadmin_email]
    assert email["subject"].endswith("System Alert: 1 check(s) failed")
    assert "[Landing] Page loads" in email["html"]
    assert "1 CHECK(S) FAILED" in run.html


@pytest.mark.asyncio
async def test_rejected_alert_does_not_change_results(config, fake_platform, clock) -> None:
    fake_platform.landing_status = 500
    fake_platform.email_status = 422

    run = await _run(config, fake_platform, clock)

    assert run.alert_sent is False
    assert run.summary.failed == 1
    assert len(run.state.results) == 33


@pytest.mark.asyncio
async def test_skipped_suite_is_reported(fake_platform, clock) -> None:
    config = make_config(skip_checks=("Push",))

    run = await _run(config, fake_platform, clock)

    assert run.summary.skipped == 5
    assert run.summary.all_passed is True
    assert not any(r.url.path.startswith("/api/push") for r in fake_platform.requests)


def _test_client(config, fake_platform) -> TestClient:
    app = create_app(
        config,
        http_client_factory=lambda cfg: build_http_client(cfg, transport=fake_platform.transport()),
    )
    return TestClient(app)


def test_api_test_returns_report(config, fake_platform) -> None:
    with _test_client(config, fake_platform) as client:
        resp = client.get("/api/test")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "ALL CHECKS PASSED" in resp.text


def test_api_test_is_200_even_with_failures(config, fake_platform) -> None:
    fake_platform.landing_status = 503
    with _test_client(config, fake_platform) as client:
        resp = client.get("/api/test")
    assert resp.status_code == 200
    assert "1 CHECK(S) FAILED" in resp.text
    assert "Status: 503" in resp.text
    assert len(fake_platform.emails) == 1


def test_health_and_status(config, fake_platform) -> None:
    with _test_client(config, fake_platform) as client:
        health = client.get("/api/health").json()
        status = client.get("/api/status").json()
        root = client.get("/", follow_redirects=False)

    assert health["status"] == "healthy"
    assert status["credentials"] == {"database": True, "email": True, "internal_api_key": True, "telegram": False}
    body = str(status)
    for secret in ("service-key", "re_test_123", "internal-secret"):
        assert secret not in body
    assert root.status_code == 307
    assert root.headers["location"] == "/api/test"


def _write_config(tmp_path) -> str:
    path = tmp_path / "monitor.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "urls": {
                    "landing": "https://landing.test",
                    "demo": "https://demo.test",
                    "dashboard": "https://dash.test",
                    "sales": "https://sales.test",
                    "engine": "https://engine.test",
                }
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_cli_run_writes_report(tmp_path, monkeypatch, fake_platform) -> None:
    for key, value in SECRET_ENV.items():
        monkeypatch.setenv(key, value)
    real_run = cli.run_monitor

    async def run_with_fake_platform(config):
        async with build_http_client(config, transport=fake_platform.transport()) as client:
            return await real_run(config, http_client=client)

    monkeypatch.setattr(cli, "run_monitor", run_with_fake_platform)
    out = tmp_path / "reports" / "latest.html"

    code = cli.main(["--config", _write_config(tmp_path), "run", "--output", str(out)])

    assert code == 0
    assert "ALL CHECKS PASSED" in out.read_text(encoding="utf-8")


def test_cli_run_exit_code_on_failures(tmp_path, monkeypatch, fake_platform) -> None:
    for key, value in SECRET_ENV.items():
        monkeypatch.setenv(key, value)
    fake_platform.landing_status = 500
    real_run = cli.run_monitor

    async def run_with_fake_platform(config):
        async with build_http_client(config, transport=fake_platform.transport()) as client:
            return await real_run(config, http_client=client)

    monkeypatch.setattr(cli, "run_monitor", run_with_fake_platform)

    code = cli.main(["--config", _write_config(tmp_path), "run", "-o", str(tmp_path / "r.html")])
    assert code == 1


def test_cli_config_error_exit_code(tmp_path) -> None:
    assert cli.main(["--config", str(tmp_path / "missing.yaml"), "run"]) == 2
