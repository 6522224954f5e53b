"""Demo restaurant app: page, AI chat API and the persistence it triggers."""

from __future__ import annotations

from platform_monitor.results import BUCKET_API, BUCKET_DEMO, expect
from platform_monitor.suites.base import TEST_MODE_HEADERS, SuiteContext, dig, join_url, json_object

CATEGORY = "Demo"

GREETING_PROMPT = "Hej, är ni öppna idag?"
FALLBACK_SESSION_ID = "test"


async def run_demo_suite(ctx: SuiteContext) -> None:
    base = ctx.config.urls.demo

    def session_param() -> dict[str, str]:
        return {"session_id": ctx.state.demo_session_id or FALLBACK_SESSION_ID}

    async def page_loads() -> None:
        resp, _ = await ctx.timed_request(BUCKET_API, "Demo page", "GET", base)
        expect(resp.is_success, f"Status: {resp.status_code}")

    async def restaurant_api() -> None:
        resp, _ = await ctx.timed_request(
            BUCKET_DEMO,
            "Restaurant API",
            "POST",
            join_url(base, "/api/restaurant"),
            json={"prompt": GREETING_PROMPT, "sessionId": None, "visitorId": ctx.config.visitor_id},
            headers=dict(TEST_MODE_HEADERS),
        )
        expect(resp.is_success, f"API error: {resp.status_code}")
        data = json_object(resp)
        ai_text = dig(data, "candidates", 0, "content", "parts", 0, "text")
        session_id = data.get("sessionId")
        expect(ai_text or session_id, "No response from the demo assistant")
        if session_id:
            ctx.state.demo_session_id = str(session_id)

    async def messages_api() -> None:
        resp = await ctx.http.get(join_url(base, "/api/messages"), params=session_param())
        expect(resp.is_success, f"Status: {resp.status_code}")

    async def typing_api() -> None:
        resp = await ctx.http.get(join_url(base, "/api/typing"), params=session_param())
        expect(resp.is_success, f"Status: {resp.status_code}")

    async def session_saved() -> None:
        session_id = ctx.state.demo_session_id
        expect(session_id, "No session ID to check")
        row = await ctx.db.select_single("chat_sessions", "id", filters={"id": session_id})
        expect(row, "Session not found in database")

    async def messages_saved() -> None:
        session_id = ctx.state.demo_session_id
        expect(session_id, "No session ID to check")
        rows = await ctx.db.select("chat_messages", "id", filters={"session_id": session_id})
        expect(len(rows) > 0, "No messages found")

    await ctx.runner.run(CATEGORY, "Page loads", page_loads)
    await ctx.runner.run(CATEGORY, "Restaurant API health", restaurant_api)
    await ctx.runner.run(CATEGORY, "Messages API health", messages_api)
    await ctx.runner.run(CATEGORY, "Typing API health", typing_api)
    await ctx.runner.run(CATEGORY, "Session saved in database", session_saved)
    await ctx.runner.run(CATEGORY, "Messages saved in database", messages_saved)
