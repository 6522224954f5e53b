"""Push notification contract of the customer dashboard."""

from __future__ import annotations

from platform_monitor.results import expect
from platform_monitor.suites.base import SuiteContext, join_url, json_object

CATEGORY = "Push"

INTERNAL_KEY_HEADER = "X-Internal-API-Key"
REJECTED_STATUSES = frozenset({401, 403})
SUBSCRIPTIONS_TABLE = "push_subscriptions"


async def check_send_requires_key(ctx: SuiteContext) -> None:
    """The send endpoint must refuse anonymous callers and, when we hold the key, accept us."""
    url = join_url(ctx.config.urls.dashboard, "/api/push/send")

    anonymous = await ctx.http.post(url, json={"customerId": "test", "title": "Test", "body": "Test"})
    expect(
        anonymous.status_code in REJECTED_STATUSES,
        f"Expected 401/403 without key, got: {anonymous.status_code}",
    )

    key = ctx.config.internal_api_key
    if not key:
        return
    authorized = await ctx.http.post(
        url,
        json={
            "customerId": ctx.config.tenant.id,
            "title": "[TEST] Push Test",
            "body": "Monitoring system test",
        },
        headers={INTERNAL_KEY_HEADER: key},
    )
    expect(authorized.is_success, f"Push send failed with key: {authorized.status_code}")


async def run_push_suite(ctx: SuiteContext) -> None:
    base = ctx.config.urls.dashboard

    async def service_worker() -> None:
        resp = await ctx.http.get(join_url(base, "/sw.js"))
        expect(resp.is_success, f"Status: {resp.status_code}")
        text = resp.text
        expect("push" in text or "notification" in text, "Not a valid service worker")

    async def manifest() -> None:
        resp = await ctx.http.get(join_url(base, "/manifest.json"))
        expect(resp.is_success, f"Status: {resp.status_code}")
        data = json_object(resp)
        expect(data.get("name"), "Invalid manifest - no name")
        expect(data.get("start_url"), "Invalid manifest - no start_url")

    async def subscribe_endpoint() -> None:
        resp = await ctx.http.post(join_url(base, "/api/push/subscribe"), json={})
        expect(resp.status_code != 404, "Push subscribe endpoint not found")

    async def subscriptions_table() -> None:
        exists, err = await ctx.db.table_exists(SUBSCRIPTIONS_TABLE)
        expect(exists, f"Table error: {err.message if err else 'missing'}")

    await ctx.runner.run(CATEGORY, "Service Worker accessible", service_worker)
    await ctx.runner.run(CATEGORY, "Manifest accessible", manifest)
    await ctx.runner.run(CATEGORY, "Subscribe endpoint exists", subscribe_endpoint)
    await ctx.runner.run(CATEGORY, "Send endpoint requires API key", lambda: check_send_requires_key(ctx))
    await ctx.runner.run(CATEGORY, "Subscriptions table exists", subscriptions_table)
