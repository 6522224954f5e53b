"""Customer dashboard and sales dashboard reachability.

Both dashboards share the same shape: a public login page, a protected page
that must redirect (or render the login) for anonymous visitors, and an API
route that must exist even if it refuses anonymous access.
"""

from __future__ import annotations

from platform_monitor.results import BUCKET_API, expect
from platform_monitor.suites.base import SuiteContext, join_url

DASHBOARD_CATEGORY = "Dashboard"
SALES_CATEGORY = "Sales"

PROTECTED_OK_STATUSES = frozenset({200, 302, 307})


async def check_login_page(ctx: SuiteContext, base: str, label: str) -> None:
    resp, _ = await ctx.timed_request(BUCKET_API, label, "GET", join_url(base, "/login"))
    expect(resp.is_success, f"Status: {resp.status_code}")


async def check_protected_page(ctx: SuiteContext, base: str, path: str) -> None:
    resp = await ctx.http.get(join_url(base, path), follow_redirects=False)
    expect(resp.status_code in PROTECTED_OK_STATUSES, f"Unexpected status: {resp.status_code}")


async def check_route_exists(ctx: SuiteContext, base: str, path: str) -> None:
    resp = await ctx.http.get(join_url(base, path))
    expect(resp.status_code != 404, "API endpoint not found")


async def run_dashboard_suite(ctx: SuiteContext) -> None:
    base = ctx.config.urls.dashboard
    await ctx.runner.run(DASHBOARD_CATEGORY, "Login page loads", lambda: check_login_page(ctx, base, "Dashboard login"))
    await ctx.runner.run(DASHBOARD_CATEGORY, "Redirects to login", lambda: check_protected_page(ctx, base, "/dashboard"))
    await ctx.runner.run(DASHBOARD_CATEGORY, "API messages endpoint exists", lambda: check_route_exists(ctx, base, "/api/messages"))
