"""Client repository: profiles, identity details, pipeline stages and tab sections."""

from __future__ import annotations

import json
import sqlite3
from contextlib import AbstractContextManager
from typing import Any

from agent_crm.models.client import IdentityRecord
from agent_crm.repositories.db_pool import ThreadLocalConnection
from agent_crm.repositories.schema import DEFAULT_PIPELINE_STAGES

PROFILE_COLUMNS = (
    "full_name",
    "phone",
    "email",
    "telecom_provider",
    "address",
    "occupation",
    "height",
    "weight",
    "importance",
    "notes",
    "has_driving_license",
    "referred_by_id",
)

CLIENT_SELECT = """
    SELECT
        c.id,
        c.agent_id,
        c.full_name,
        c.phone,
        c.email,
        c.telecom_provider,
        c.address,
        c.occupation,
        c.height,
        c.weight,
        c.importance,
        c.notes,
        c.has_driving_license,
        c.referred_by_id,
        c.current_stage_id,
        d.birth_date,
        d.gender,
        d.ssn_encrypted
    FROM clients AS c
    LEFT JOIN client_details AS d ON d.client_id = c.id
"""


class ClientRepository:
    """Handles client persistence; every query is scoped to the owning agent."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def transaction(self) -> AbstractContextManager[sqlite3.Connection]:
        """Expose the pool transaction so a profile and its details commit together."""
        return self._pool.transaction()

    def create_client(self, agent_id: str, profile: dict[str, Any]) -> int:
        """Insert a client profile and return the new id."""
        columns = [column for column in PROFILE_COLUMNS if column in profile]
        placeholders = ", ".join("?" for _ in columns)
        cursor = self._pool.execute(
            f"""
            INSERT INTO clients (agent_id, {", ".join(columns)})
            VALUES (?, {placeholders})
            """,
            (agent_id, *(profile[column] for column in columns)),
        )
        return int(cursor.lastrowid)

    def get_client(self, agent_id: str, client_id: int) -> dict[str, Any] | None:
        row = self._pool.fetchone(
            CLIENT_SELECT + " WHERE c.id = ? AND c.agent_id = ? AND c.is_active = 1",
            (client_id, agent_id),
        )
        return dict(row) if row else None

    def exists_active_client(self, agent_id: str, client_id: int) -> bool:
        row = self._pool.fetchone(
            """
            SELECT 1
            FROM clients
            WHERE id = ? AND agent_id = ? AND is_active = 1
            LIMIT 1
            """,
            (client_id, agent_id),
        )
        return row is not None

    def list_clients(self, agent_id: str, limit: int, offset: int) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            CLIENT_SELECT
            + """
            WHERE c.agent_id = ? AND c.is_active = 1
            ORDER BY c.id DESC
            LIMIT ? OFFSET ?
            """,
            (agent_id, limit, offset),
        )
        return [dict(row) for row in rows]

    def update_client(self, agent_id: str, client_id: int, profile: dict[str, Any]) -> int:
        """Update the given profile columns and return affected row count."""
        columns = [column for column in PROFILE_COLUMNS if column in profile]
        if not columns:
            return 0
        assignments = ", ".join(f"{column} = ?" for column in columns)
        cursor = self._pool.execute(
            f"""
            UPDATE clients
            SET {assignments}, updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND agent_id = ? AND is_active = 1
            """,
            (*(profile[column] for column in columns), client_id, agent_id),
        )
        return cursor.rowcount

    def soft_delete_client(self, agent_id: str, client_id: int) -> int:
        cursor = self._pool.execute(
            """
            UPDATE clients
            SET is_active = 0, updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND agent_id = ? AND is_active = 1
            """,
            (client_id, agent_id),
        )
        return cursor.rowcount

    def find_client_by_ssn_hash(
        self,
        agent_id: str,
        ssn_hash: str,
        exclude_client_id: int | None = None,
    ) -> int | None:
        """Return another active client of the agent holding the same RRN."""
        row = self._pool.fetchone(
            """
            SELECT c.id
            FROM client_details AS d
            JOIN clients AS c ON c.id = d.client_id
            WHERE d.ssn_hash = ? AND c.agent_id = ? AND c.is_active = 1 AND c.id != ?
            LIMIT 1
            """,
            (ssn_hash, agent_id, exclude_client_id if exclude_client_id is not None else -1),
        )
        return int(row["id"]) if row else None

    def upsert_details(self, client_id: int, record: IdentityRecord, ssn_hash: str) -> None:
        """Insert or replace the derived identity row for a client."""
        self._pool.execute(
            """
            INSERT INTO client_details (client_id, birth_date, gender, ssn_encrypted, ssn_hash)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (client_id) DO UPDATE SET
                birth_date = excluded.birth_date,
                gender = excluded.gender,
                ssn_encrypted = excluded.ssn_encrypted,
                ssn_hash = excluded.ssn_hash,
                updated_at = CURRENT_TIMESTAMP
            """,
            (client_id, record.birth_date.isoformat(), record.gender, record.encrypted_id, ssn_hash),
        )

    def ensure_default_stages(self, agent_id: str) -> None:
        """Seed the agent's pipeline with the default stages if it has none."""
        row = self._pool.fetchone(
            "SELECT COUNT(*) AS total FROM pipeline_stages WHERE agent_id = ?",
            (agent_id,),
        )
        if row and row["total"]:
            return
        with self._pool.transaction():
            for order, name in enumerate(DEFAULT_PIPELINE_STAGES, start=1):
                self._pool.execute(
                    "INSERT INTO pipeline_stages (agent_id, name, stage_order) VALUES (?, ?, ?)",
                    (agent_id, name, order),
                )

    def list_stages(self, agent_id: str) -> list[dict[str, Any]]:
        rows = self._pool.fetchall(
            """
            SELECT id, name, stage_order
            FROM pipeline_stages
            WHERE agent_id = ?
            ORDER BY stage_order
            """,
            (agent_id,),
        )
        return [dict(row) for row in rows]

    def get_stage(self, agent_id: str, stage_id: int) -> dict[str, Any] | None:
        row = self._pool.fetchone(
            "SELECT id, name, stage_order FROM pipeline_stages WHERE id = ? AND agent_id = ?",
            (stage_id, agent_id),
        )
        return dict(row) if row else None

    def update_stage(self, agent_id: str, client_id: int, stage_id: int, notes: str) -> int:
        cursor = self._pool.execute(
            """
            UPDATE clients
            SET current_stage_id = ?, notes = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND agent_id = ? AND is_active = 1
            """,
            (stage_id, notes, client_id, agent_id),
        )
        return cursor.rowcount

    def get_section(self, client_id: int, section: str) -> dict[str, Any] | None:
        row = self._pool.fetchone(
            "SELECT payload FROM client_sections WHERE client_id = ? AND section = ?",
            (client_id, section),
        )
        return json.loads(row["payload"]) if row else None

    def upsert_section(
        self,
        client_id: int,
        section: str,
        payload: dict[str, Any],
        agent_id: str,
    ) -> None:
        """Store one tab's checklist as JSON, replacing any earlier version."""
        self._pool.execute(
            """
            INSERT INTO client_sections (client_id, section, payload, last_updated_by)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (client_id, section) DO UPDATE SET
                payload = excluded.payload,
                last_updated_by = excluded.last_updated_by,
                updated_at = CURRENT_TIMESTAMP
            """,
            (client_id, section, json.dumps(payload, ensure_ascii=False), agent_id),
        )
