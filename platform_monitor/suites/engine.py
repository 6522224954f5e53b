"""Multi-tenant chat engine behaviour, checked through the public chat API."""

from __future__ import annotations

import json
from typing import Any

import httpx

from platform_monitor.latency import assert_ai_latency
from platform_monitor.results import BUCKET_ENGINE, expect
from platform_monitor.suites.base import TEST_MODE_HEADERS, SuiteContext, join_url, json_object

CATEGORY = "Engine"

GREETING_PROMPT = "Hej!"
LOOKUP_PROMPT = "Test"
KNOWLEDGE_PROMPT = "Vad kostar Carbonara?"
ACTION_PROMPT = "Har ni glutenfritt?"
BOOKING_PROMPT = "Jag vill boka bord för 4 personer på fredag kväll"
EXPECTED_ACTION = "add_context"


def _chat_request(ctx: SuiteContext, prompt: str) -> dict[str, Any]:
    return {
        "json": {"prompt": prompt, "slug": ctx.config.tenant.slug},
        "headers": dict(TEST_MODE_HEADERS),
    }


async def _post_chat(ctx: SuiteContext, prompt: str) -> httpx.Response:
    url = join_url(ctx.config.urls.engine, "/api/chat")
    return await ctx.http.post(url, **_chat_request(ctx, prompt))


async def run_engine_suite(ctx: SuiteContext) -> None:
    chat_url = join_url(ctx.config.urls.engine, "/api/chat")
    tenant = ctx.config.tenant

    async def api_responds() -> None:
        resp, _ = await ctx.timed_request(BUCKET_ENGINE, "Simple greeting", "POST", chat_url, **_chat_request(ctx, GREETING_PROMPT))
        expect(resp.is_success, f"API error: {resp.status_code}")
        data = json_object(resp)
        expect(data.get("response"), "No response")
        session_id = data.get("sessionId")
        if session_id:
            ctx.state.engine_session_id = str(session_id)

    async def customer_lookup() -> None:
        data = json_object(await _post_chat(ctx, LOOKUP_PROMPT))
        expect(data.get("customerName") == tenant.customer_name, f"Wrong customer: {data.get('customerName')}")
        expect(data.get("aiName") == tenant.ai_name, f"Wrong AI name: {data.get('aiName')}")

    async def knowledge_base_used() -> None:
        resp, _ = await ctx.timed_request(BUCKET_ENGINE, "Knowledge base query", "POST", chat_url, **_chat_request(ctx, KNOWLEDGE_PROMPT))
        answer = str(json_object(resp).get("response") or "")
        expect(
            tenant.price_token in answer or tenant.currency_token.lower() in answer.lower(),
            "Knowledge base not used - no price mentioned",
        )

    async def actions_trigger() -> None:
        data = json_object(await _post_chat(ctx, ACTION_PROMPT))
        actions = data.get("triggeredActions")
        expect(
            isinstance(actions, list) and EXPECTED_ACTION in actions,
            f"Action not triggered: {json.dumps(actions)}",
        )

    async def ai_config_in_database() -> None:
        row = await ctx.db.select_single("customer_ai_config", "ai_name,ai_role", filters={"customer_id": tenant.id})
        expect(row.get("ai_name") == tenant.ai_name, "AI config missing")

    async def actions_in_database() -> None:
        rows = await ctx.db.select("customer_actions", "id", filters={"customer_id": tenant.id})
        expect(len(rows) >= tenant.min_actions, f"Not enough actions: {len(rows)}")

    async def ai_latency_acceptable() -> None:
        resp, duration_ms = await ctx.timed_request(
            BUCKET_ENGINE, "Booking request (complex)", "POST", chat_url, **_chat_request(ctx, BOOKING_PROMPT)
        )
        expect(resp.is_success, f"API error: {resp.status_code}")
        assert_ai_latency(duration_ms, ctx.config.thresholds.ai)

    await ctx.runner.run(CATEGORY, "API responds", api_responds)
    await ctx.runner.run(CATEGORY, "Customer lookup works", customer_lookup)
    await ctx.runner.run(CATEGORY, "Knowledge base used", knowledge_base_used)
    await ctx.runner.run(CATEGORY, "Actions trigger correctly", actions_trigger)
    await ctx.runner.run(CATEGORY, "AI config in database", ai_config_in_database)
    await ctx.runner.run(CATEGORY, "Actions in database", actions_in_database)
    await ctx.runner.run(CATEGORY, "AI response latency acceptable", ai_latency_acceptable)
