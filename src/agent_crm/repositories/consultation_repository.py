"""Consultation note and companion repository."""

from __future__ import annotations

from typing import Any

from agent_crm.models.consultation import CompanionCreate, ConsultationNoteCreate
from agent_crm.repositories.db_pool import ThreadLocalConnection


class ConsultationRepository:
    """Persists notes and companions; writes are filtered by agent id."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def create_note(self, agent_id: str, client_id: int, payload: ConsultationNoteCreate) -> int:
        cursor = self._pool.execute(
            """
            INSERT INTO consultation_notes (
                client_id,
                agent_id,
                consultation_date,
                title,
                content,
                contract_info,
                follow_up_date,
                follow_up_notes,
                note_type
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                client_id,
                agent_id,
                payload.consultation_date,
                payload.title,
                payload.content,
                payload.contract_info or None,
                payload.follow_up_date or None,
                payload.follow_up_notes or None,
                payload.note_type,
            ),
        )
        return int(cursor.lastrowid)

    def update_note(self, agent_id: str, note_id: int, payload: ConsultationNoteCreate) -> int:
        cursor = self._pool.execute(
            """
            UPDATE consultation_notes
            SET
                consultation_date = ?,
                title = ?,
                content = ?,
                contract_info = ?,
                follow_up_date = ?,
                follow_up_notes = ?,
                note_type = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND agent_id = ?
            """,
            (
                payload.consultation_date,
                payload.title,
                payload.content,
                payload.contract_info or None,
                payload.follow_up_date or None,
                payload.follow_up_notes or None,
                payload.note_type,
                note_id,
                agent_id,
            ),
        )
        return cursor.rowcount

    def delete_note(self, agent_id: str, note_id: int) -> int:
        cursor = self._pool.execute(
            "DELETE FROM consultation_notes WHERE id = ? AND agent_id = ?",
            (note_id, agent_id),
        )
        return cursor.rowcount

    def list_notes(self, agent_id: str, client_id: int) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            """
            SELECT
                id,
                client_id,
                consultation_date,
                title,
                content,
                contract_info,
                follow_up_date,
                follow_up_notes,
                note_type
            FROM consultation_notes
            WHERE client_id = ? AND agent_id = ?
            ORDER BY consultation_date DESC, id DESC
            """,
            (client_id, agent_id),
        )
        return [dict(row) for row in rows]

    def create_companion(self, agent_id: str, client_id: int, payload: CompanionCreate) -> int:
        cursor = self._pool.execute(
            """
            INSERT INTO consultation_companions (
                client_id, agent_id, name, phone, relationship, is_primary
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                client_id,
                agent_id,
                payload.name,
                payload.phone or None,
                payload.relationship or None,
                int(payload.is_primary),
            ),
        )
        return int(cursor.lastrowid)

    def update_companion(self, agent_id: str, companion_id: int, payload: CompanionCreate) -> int:
        cursor = self._pool.execute(
            """
            UPDATE consultation_companions
            SET name = ?, phone = ?, relationship = ?, is_primary = ?
            WHERE id = ? AND agent_id = ?
            """,
            (
                payload.name,
                payload.phone or None,
                payload.relationship or None,
                int(payload.is_primary),
                companion_id,
                agent_id,
            ),
        )
        return cursor.rowcount

    def clear_primary_companion(self, agent_id: str, client_id: int) -> None:
        """Unset the primary flag on every companion of a client."""
        self._pool.execute(
            """
            UPDATE consultation_companions
            SET is_primary = 0
            WHERE client_id = ? AND agent_id = ?
            """,
            (client_id, agent_id),
        )

    def get_companion_client_id(self, agent_id: str, companion_id: int) -> int | None:
        row = self._pool.fetchone(
            "SELECT client_id FROM consultation_companions WHERE id = ? AND agent_id = ?",
            (companion_id, agent_id),
        )
        return int(row["client_id"]) if row else None

    def delete_companion(self, agent_id: str, companion_id: int) -> int:
        cursor = self._pool.execute(
            "DELETE FROM consultation_companions WHERE id = ? AND agent_id = ?",
            (companion_id, agent_id),
        )
        return cursor.rowcount

    def list_companions(self, agent_id: str, client_id: int) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            """
            SELECT id, client_id, name, phone, relationship, is_primary
            FROM consultation_companions
            WHERE client_id = ? AND agent_id = ?
            ORDER BY is_primary DESC, id
            """,
            (client_id, agent_id),
        )
        return [dict(row) for row in rows]
