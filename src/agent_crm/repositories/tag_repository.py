"""Tag repository."""

from __future__ import annotations

import sqlite3
from typing import Any

from agent_crm.models.tag import TagCreate
from agent_crm.repositories.db_pool import ThreadLocalConnection


class TagRepository:
    """Persists an agent's tags and their assignment to clients."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def create_tag(self, agent_id: str, payload: TagCreate) -> int:
        try:
            cursor = self._pool.execute(
                "INSERT INTO tags (agent_id, name, color, description) VALUES (?, ?, ?, ?)",
                (agent_id, payload.name, payload.color, payload.description or None),
            )
        except sqlite3.IntegrityError as error:
            raise ValueError("이미 존재하는 태그 이름입니다.") from error
        return int(cursor.lastrowid)

    def update_tag(self, agent_id: str, tag_id: int, payload: TagCreate) -> int:
        try:
            cursor = self._pool.execute(
                """
                UPDATE tags
                SET name = ?, color = ?, description = ?
                WHERE id = ? AND agent_id = ?
                """,
                (payload.name, payload.color, payload.description or None, tag_id, agent_id),
            )
        except sqlite3.IntegrityError as error:
            raise ValueError("이미 존재하는 태그 이름입니다.") from error
        return cursor.rowcount

    def delete_tag(self, agent_id: str, tag_id: int) -> int:
        cursor = self._pool.execute(
            "DELETE FROM tags WHERE id = ? AND agent_id = ?",
            (tag_id, agent_id),
        )
        return cursor.rowcount

    def list_tags(self, agent_id: str) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            "SELECT id, name, color, description FROM tags WHERE agent_id = ? ORDER BY name",
            (agent_id,),
        )
        return [dict(row) for row in rows]

    def count_owned_tags(self, agent_id: str, tag_ids: list[int]) -> int:
        if not tag_ids:
            return 0
        placeholders = ", ".join("?" for _ in tag_ids)
        row = self._pool.fetchone(
            f"SELECT COUNT(*) AS total FROM tags WHERE agent_id = ? AND id IN ({placeholders})",
            (agent_id, *tag_ids),
        )
        return int(row["total"]) if row else 0

    def replace_client_tags(self, client_id: int, tag_ids: list[int]) -> None:
        """Replace a client's tag set atomically."""
        with self._pool.transaction():
            self._pool.execute("DELETE FROM client_tags WHERE client_id = ?", (client_id,))
            for tag_id in tag_ids:
                self._pool.execute(
                    "INSERT INTO client_tags (client_id, tag_id) VALUES (?, ?)",
                    (client_id, tag_id),
                )

    def list_client_tags(self, agent_id: str, client_id: int) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            """
            SELECT t.id, t.name, t.color, t.description
            FROM client_tags AS ct
            JOIN tags AS t ON t.id = ct.tag_id
            WHERE ct.client_id = ? AND t.agent_id = ?
            ORDER BY t.name
            """,
            (client_id, agent_id),
        )
        return [dict(row) for row in rows]
