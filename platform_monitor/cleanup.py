"""Best-effort removal of rows the run created."""

from __future__ import annotations

import structlog

from platform_monitor.database import PostgrestClient
from platform_monitor.results import CheckResult, Passed, RunState

logger = structlog.get_logger(__name__)

CATEGORY = "Cleanup"
NAME = "Test data removed"

# Children before parents.
DELETION_PLAN = (
    ("chat_messages", "session_id"),
    ("notifications", "session_id"),
    ("chat_sessions", "id"),
)


async def _purge_session(db: PostgrestClient, session_id: str, source: str) -> int:
    removed_tables = 0
    for table, column in DELETION_PLAN:
        try:
            await db.delete(table, filters={column: session_id})
            removed_tables += 1
        except Exception as exc:
            logger.warning("cleanup delete failed", source=source, table=table, session_id=session_id, error=str(exc))
    return removed_tables


async def run_cleanup(db: PostgrestClient, state: RunState) -> CheckResult:
    for source, session_id in (("demo", state.demo_session_id), ("engine", state.engine_session_id)):
        if not session_id:
            continue
        done = await _purge_session(db, session_id, source)
        logger.info("cleanup finished", source=source, session_id=session_id, tables=done, of=len(DELETION_PLAN))

    result = CheckResult(category=CATEGORY, name=NAME, outcome=Passed(), duration_ms=0)
    state.record(result)
    return result
