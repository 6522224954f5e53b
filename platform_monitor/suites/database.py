"""Hosted database connectivity and schema."""

from __future__ import annotations

from platform_monitor.results import BUCKET_API, expect
from platform_monitor.suites.base import SuiteContext

CATEGORY = "Database"

REQUIRED_TABLES = (
    "customers",
    "dashboard_users",
    "chat_sessions",
    "chat_messages",
    "notifications",
    "customer_ai_config",
    "customer_actions",
    "push_subscriptions",
)


async def run_database_suite(ctx: SuiteContext) -> None:
    async def connection_works() -> None:
        started = ctx.clock()
        try:
            await ctx.db.probe("customers")
        finally:
            ctx.state.latency.track(BUCKET_API, "Database query", ctx.clock() - started)

    async def tenant_exists() -> None:
        row = await ctx.db.select_single("customers", "id,name", filters={"id": ctx.config.tenant.id})
        expect(row, f"{ctx.config.tenant.customer_name} not found")

    async def required_tables() -> None:
        for table in REQUIRED_TABLES:
            exists, _err = await ctx.db.table_exists(table)
            expect(exists, f"Table {table} missing")

    await ctx.runner.run(CATEGORY, "Connection works", connection_works)
    await ctx.runner.run(CATEGORY, "Tenant fixture exists", tenant_exists)
    await ctx.runner.run(CATEGORY, "Required tables exist", required_tables)
