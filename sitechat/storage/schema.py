"""System database DDL. Every statement is idempotent."""

CREATE_ASSISTANT_CONFIGS_SQL = """
CREATE TABLE IF NOT EXISTS assistant_configs (
    project_id TEXT PRIMARY KEY,
    name TEXT,
    system_prompt TEXT NOT NULL,
    welcome_message TEXT,
    theme JSONB NOT NULL DEFAULT '{}'::jsonb,
    mascot_url TEXT,
    updated_at TIMESTAMPTZ NOT NULL
);
"""

CREATE_DB_CONNECTIONS_SQL = """
CREATE TABLE IF NOT EXISTS db_connections (
    project_id TEXT PRIMARY KEY,
    db_type TEXT NOT NULL,
    encrypted_uri TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL
);
"""

CREATE_ALLOWLIST_ENTRIES_SQL = """
CREATE TABLE IF NOT EXISTS allowlist_entries (
    project_id TEXT NOT NULL,
    table_name TEXT NOT NULL,
    column_name TEXT NOT NULL,
    PRIMARY KEY (project_id, table_name, column_name)
);
"""

CREATE_DOCUMENTS_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    id UUID PRIMARY KEY,
    project_id TEXT NOT NULL,
    source_url TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL
);
"""

CREATE_DOCUMENTS_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS documents_project_idx ON documents (project_id);
"""

SCHEMA_STATEMENTS = (
    CREATE_ASSISTANT_CONFIGS_SQL,
    CREATE_DB_CONNECTIONS_SQL,
    CREATE_ALLOWLIST_ENTRIES_SQL,
    CREATE_DOCUMENTS_SQL,
    CREATE_DOCUMENTS_INDEX_SQL,
)
