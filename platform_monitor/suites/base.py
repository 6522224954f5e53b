from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from platform_monitor.config import MonitorConfig
from platform_monitor.database import PostgrestClient
from platform_monitor.email_client import ResendClient
from platform_monitor.results import CheckFailure, Clock, RunState
from platform_monitor.runner import CheckRunner


TEST_MODE_HEADERS = {"X-Test-Mode": "true"}


@dataclass
class SuiteContext:
    config: MonitorConfig
    http: httpx.AsyncClient
    db: PostgrestClient
    email: ResendClient
    state: RunState
    runner: CheckRunner
    clock: Clock

    async def timed_request(self, bucket: str, label: str, method: str, url: str, **kwargs: Any) -> tuple[httpx.Response, int]:
        """Send one request and record its round trip (before any body parsing) as a latency sample."""
        started = self.clock()
        resp = await self.http.request(method, url, **kwargs)
        sample = self.state.latency.track(bucket, label, self.clock() - started)
        return resp, sample.duration_ms


def join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def json_object(resp: httpx.Response) -> dict[str, Any]:
    data = resp.json()
    if not isinstance(data, dict):
        raise CheckFailure(f"Expected a JSON object, got {type(data).__name__}")
    return data


def dig(obj: Any, *path: str | int) -> Any:
    """Nested lookup over dicts and lists; None when any segment is missing."""
    cur = obj
    for seg in path:
        if isinstance(seg, int):
            if not isinstance(cur, list) or not (0 <= seg < len(cur)):
                return None
            cur = cur[seg]
        else:
            if not isinstance(cur, dict) or seg not in cur:
                return None
            cur = cur[seg]
    return cur
