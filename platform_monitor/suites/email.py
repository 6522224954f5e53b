from __future__ import annotations

from platform_monitor.results import expect
from platform_monitor.suites.base import SuiteContext

CATEGORY = "Email"

RESEND_KEY_PREFIX = "re_"


async def run_email_suite(ctx: SuiteContext) -> None:
    def api_key_configured() -> None:
        key = ctx.config.resend_api_key
        expect(key, "RESEND_API_KEY not set")
        expect(key.startswith(RESEND_KEY_PREFIX), "Invalid Resend API key format")

    def client_ready() -> None:
        expect(ctx.email.configured, "Email client not initialized")
        expect(ctx.config.alert_sender and ctx.config.superadmin_email, "Alert sender or recipient not configured")

    await ctx.runner.run(CATEGORY, "API key configured", api_key_configured)
    await ctx.runner.run(CATEGORY, "Client ready", client_ready)
