"""Marketing site availability."""

from __future__ import annotations

from platform_monitor.results import BUCKET_API, expect
from platform_monitor.suites.base import SuiteContext

CATEGORY = "Landing"


async def run_site_suite(ctx: SuiteContext) -> None:
    url = ctx.config.urls.landing

    async def page_loads() -> None:
        resp, _ = await ctx.timed_request(BUCKET_API, "Landing page", "GET", url)
        expect(resp.is_success, f"Status: {resp.status_code}")

    async def demo_link_exists() -> None:
        resp = await ctx.http.get(url)
        html = resp.text
        tokens = ctx.config.demo_link_tokens
        expect(any(t in html for t in tokens), "No demo link found")

    await ctx.runner.run(CATEGORY, "Page loads", page_loads)
    await ctx.runner.run(CATEGORY, "Demo link exists", demo_link_exists)
