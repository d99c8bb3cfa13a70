"""Audit log repository."""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Callable

from agent_crm.repositories.db_pool import ThreadLocalConnection

logger = logging.getLogger(__name__)


class AuditRepository:
    """Persists the per-agent trail of client detail changes."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def add_log(
        self,
        agent_id: str | None,
        action: str,
        entity: str,
        entity_id: int | None,
        detail: str | dict[str, Any],
    ) -> None:
        """Insert an audit log record; dict details are stored as JSON."""
        if not isinstance(detail, str):
            detail = json.dumps(detail, ensure_ascii=False, default=str)
        self._pool.execute(
            """
            INSERT INTO audit_logs (agent_id, action, entity, entity_id, detail)
            VALUES (?, ?, ?, ?, ?)
            """,
            (agent_id, action, entity, entity_id, detail),
        )

    def record(
        self,
        agent_id: str | None,
        action: str,
        entity: str,
        entity_id: int | None,
        detail: str | dict[str, Any] | Callable[[], dict[str, Any]],
    ) -> bool:
        """Write an audit record for a committed change.

        A failed write is logged and returns False. A callable ``detail`` is
        evaluated inside the same guard.
        """
        try:
            if callable(detail):
                detail = detail()
            self.add_log(agent_id, action, entity, entity_id, detail)
        except sqlite3.Error as error:
            logger.warning("audit write failed action=%s entity=%s id=%s: %s", action, entity, entity_id, error)
            return False
        return True

    def cleanup_old_logs(self, retention_days: int) -> int:
        """Delete logs older than retention_days and return removed row count."""
        cursor = self._pool.execute(
            "DELETE FROM audit_logs WHERE created_at < datetime('now', ?)",
            (f"-{retention_days} days",),
        )
        return cursor.rowcount

    def list_logs(
        self,
        agent_id: str,
        entity: str | None = None,
        entity_id: int | None = None,
        limit: int = 200,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List one agent's audit logs, newest first."""
        where_clauses = ["agent_id = ?"]
        params: list[Any] = [agent_id]
        if entity:
            where_clauses.append("entity = ?")
            params.append(entity)
        if entity_id is not None:
            where_clauses.append("entity_id = ?")
            params.append(entity_id)

        rows = self._pool.fetchall(
            f"""
            SELECT id, agent_id, action, entity, entity_id, detail, created_at
            FROM audit_logs
            WHERE {" AND ".join(where_clauses)}
            ORDER BY id DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params + [limit, offset]),
        )
        return [dict(row) for row in rows]
