"""Database schema management."""

from __future__ import annotations

from agent_crm.repositories.db_pool import ThreadLocalConnection

DEFAULT_PIPELINE_STAGES = (
    "첫 상담",
    "니즈 분석",
    "상품 설명",
    "계약 검토",
    "계약 완료",
)

TABLES = (
    """
    CREATE TABLE IF NOT EXISTS pipeline_stages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        agent_id TEXT NOT NULL,
        name TEXT NOT NULL,
        stage_order INTEGER NOT NULL,
        UNIQUE (agent_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS clients (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        agent_id TEXT NOT NULL,
        full_name TEXT NOT NULL,
        phone TEXT,
        email TEXT,
        telecom_provider TEXT,
        address TEXT,
        occupation TEXT,
        height TEXT,
        weight TEXT,
        importance TEXT NOT NULL DEFAULT 'medium',
        notes TEXT,
        has_driving_license INTEGER NOT NULL DEFAULT 0,
        referred_by_id INTEGER REFERENCES clients(id) ON DELETE SET NULL,
        current_stage_id INTEGER REFERENCES pipeline_stages(id) ON DELETE SET NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS client_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL UNIQUE REFERENCES clients(id) ON DELETE CASCADE,
        birth_date TEXT NOT NULL,
        gender TEXT NOT NULL,
        ssn_encrypted BLOB NOT NULL,
        ssn_hash TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        agent_id TEXT NOT NULL,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (agent_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS client_tags (
        client_id INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
        PRIMARY KEY (client_id, tag_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS consultation_notes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        agent_id TEXT NOT NULL,
        consultation_date TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        contract_info TEXT,
        follow_up_date TEXT,
        follow_up_notes TEXT,
        note_type TEXT NOT NULL DEFAULT 'consultation',
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS consultation_companions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        agent_id TEXT NOT NULL,
        name TEXT NOT NULL,
        phone TEXT,
        relationship TEXT,
        is_primary INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS client_sections (
        client_id INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        section TEXT NOT NULL,
        payload TEXT NOT NULL,
        last_updated_by TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (client_id, section)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        agent_id TEXT,
        action TEXT NOT NULL,
        entity TEXT NOT NULL,
        entity_id INTEGER,
        detail TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_clients_agent ON clients(agent_id, is_active)",
    "CREATE INDEX IF NOT EXISTS idx_client_details_hash ON client_details(ssn_hash)",
    "CREATE INDEX IF NOT EXISTS idx_notes_client ON consultation_notes(client_id)",
    "CREATE INDEX IF NOT EXISTS idx_companions_client ON consultation_companions(client_id)",
    "CREATE INDEX IF NOT EXISTS idx_audit_logs_created_at ON audit_logs(created_at)",
)


def initialize_schema(pool: ThreadLocalConnection) -> None:
    """Create required tables and indexes if they do not exist."""
    for statement in TABLES + INDEXES:
        pool.execute(statement)
