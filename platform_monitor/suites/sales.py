from __future__ import annotations

from platform_monitor.results import expect
from platform_monitor.suites.base import SuiteContext
from platform_monitor.suites.dashboard import SALES_CATEGORY, check_login_page, check_protected_page, check_route_exists

LEADS_TABLE = "leads"


async def run_sales_suite(ctx: SuiteContext) -> None:
    base = ctx.config.urls.sales

    async def leads_table_exists() -> None:
        exists, err = await ctx.db.table_exists(LEADS_TABLE)
        expect(exists, f"Table error: {err.message if err else 'missing'}")

    await ctx.runner.run(SALES_CATEGORY, "Login page loads", lambda: check_login_page(ctx, base, "Sales login"))
    await ctx.runner.run(SALES_CATEGORY, "Redirects to login", lambda: check_protected_page(ctx, base, "/leads"))
    await ctx.runner.run(SALES_CATEGORY, "API leads endpoint exists", lambda: check_route_exists(ctx, base, "/api/leads"))
    await ctx.runner.run(SALES_CATEGORY, "Leads table exists", leads_table_exists)
