"""Repository for the action audit log."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from backend import db
from composer.kernel.collaborators import AuditSink


def _created_at(timestamp: str | datetime) -> datetime:
    """asyncpg binds timestamptz from datetime only. Kernel entries carry ISO-8601 strings."""
    value = timestamp if isinstance(timestamp, datetime) else datetime.fromisoformat(timestamp)
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class PostgresAuditSink(AuditSink):
    """Appends action audit entries to the action_audit_log table."""

    async def append(self, entry: dict[str, Any]) -> None:
        async with db.system_conn() as conn:
            await conn.execute(
                """
                INSERT INTO action_audit_log (namespace, action, params, user_id, created_at)
                VALUES ($1, $2, $3, $4, $5)
                """,
                entry["namespace"],
                entry["action"],
                entry["params"],
                entry["user_id"],
                _created_at(entry["timestamp"]),
            )
