"""
Database schema initialization and online migration.

init_database() is safe to run on every boot:
    1. CREATE TABLE IF NOT EXISTS for every table
    2. add nullable columns introduced after a table was first created
    3. rebuild issue_covers when the legacy CHECK (block_name IN ('news','tech'))
       constraint is still present (rename -> create -> copy -> drop)

Steps 2 and 3 only act when introspection finds the old shape. Any failure
raises SchemaMigrationError; the service must not start on a mismatched
schema.
"""

from __future__ import annotations

import re

from dailybrief.infrastructure.database import (
    DRIVER_ERRORS,
    Database,
    DatabaseSession,
    Dialect,
    SchemaMigrationError,
)
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import log_event

logger = get_logger(__name__)

_ISSUE_COLUMNS = """
    issue_date TEXT PRIMARY KEY,
    issue_json TEXT NOT NULL,
    ingest_status TEXT NOT NULL DEFAULT 'ready',
    raw_input_news TEXT,
    raw_input_tech TEXT,
    raw_input_sports TEXT,
"""

COVERS_DDL = """
    CREATE TABLE IF NOT EXISTS issue_covers (
        issue_date TEXT NOT NULL,
        block_name TEXT NOT NULL,
        image_url TEXT NOT NULL,
        prompt TEXT NOT NULL,
        keywords_json TEXT NOT NULL,
        created_at TEXT NOT NULL,
        PRIMARY KEY (issue_date, block_name)
    )
"""

COVERS_COLUMNS = ("issue_date", "block_name", "image_url", "prompt", "keywords_json", "created_at")


def _table_ddl(dialect: Dialect) -> list[str]:
    run_id = "INTEGER PRIMARY KEY AUTOINCREMENT" if dialect == "sqlite" else "BIGSERIAL PRIMARY KEY"
    return [
        f"""
        CREATE TABLE IF NOT EXISTS daily_issues (
            {_ISSUE_COLUMNS}
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS archived_issues (
            {_ISSUE_COLUMNS}
            archived_at TEXT NOT NULL
        )
        """,
        COVERS_DDL,
        f"""
        CREATE TABLE IF NOT EXISTS ingest_runs (
            id {run_id},
            issue_date TEXT NOT NULL,
            status TEXT NOT NULL,
            error_message TEXT,
            created_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_ingest_runs_issue_date ON ingest_runs(issue_date)",
    ]


# Nullable columns added after the first release: table -> {column: type}
ADDED_COLUMNS: dict[str, dict[str, str]] = {
    "daily_issues": {"raw_input_sports": "TEXT"},
    "archived_issues": {"raw_input_sports": "TEXT"},
}

REQUIRED_TABLES: dict[str, list[str]] = {
    "daily_issues": ["issue_date", "issue_json", "ingest_status", "raw_input_sports", "created_at", "updated_at"],
    "archived_issues": ["issue_date", "issue_json", "ingest_status", "raw_input_sports", "archived_at"],
    "issue_covers": list(COVERS_COLUMNS),
    "ingest_runs": ["id", "issue_date", "status", "error_message", "created_at"],
}

_LEGACY_COVER_CHECK = re.compile(r"CHECK\s*\(\s*\(?\s*block_name\b", re.IGNORECASE)


def _validate_identifier(name: str) -> str:
    # Identifiers cannot be parameterized; names come from the dicts above
    if not name.replace("_", "").isalnum():
        raise ValueError(f"Invalid identifier: {name}")
    return name


def existing_tables(session: DatabaseSession) -> set[str]:
    if session.dialect == "sqlite":
        rows = session.fetchall("SELECT name FROM sqlite_master WHERE type = 'table'")
        return {row["name"] for row in rows}
    rows = session.fetchall(
        "SELECT table_name FROM information_schema.tables WHERE table_schema = current_schema()"
    )
    return {row["table_name"] for row in rows}


def table_columns(session: DatabaseSession, table: str) -> set[str]:
    if session.dialect == "sqlite":
        rows = session.fetchall(f"PRAGMA table_info({_validate_identifier(table)})")
        return {row["name"] for row in rows}
    rows = session.fetchall(
        "SELECT column_name FROM information_schema.columns "
        "WHERE table_schema = current_schema() AND table_name = ?",
        (table,),
    )
    return {row["column_name"] for row in rows}


def add_missing_columns(session: DatabaseSession) -> list[str]:
    """ALTER TABLE ... ADD COLUMN for every registered column not yet present."""
    added: list[str] = []
    for table, columns in ADDED_COLUMNS.items():
        present = table_columns(session, table)
        for column, column_type in columns.items():
            if column in present:
                continue
            session.execute(
                f"ALTER TABLE {_validate_identifier(table)} "
                f"ADD COLUMN {_validate_identifier(column)} {column_type}"
            )
            added.append(f"{table}.{column}")
            logger.info("Migration: added column %s.%s (%s)", table, column, column_type)
    return added


def has_legacy_cover_constraint(session: DatabaseSession) -> bool:
    if session.dialect == "sqlite":
        row = session.fetchone("SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'issue_covers'")
        return bool(row and row["sql"] and _LEGACY_COVER_CHECK.search(row["sql"]))

    row = session.fetchone(
        "SELECT 1 AS found FROM pg_constraint c "
        "JOIN pg_class t ON c.conrelid = t.oid "
        "JOIN pg_namespace n ON t.relnamespace = n.oid "
        "WHERE t.relname = 'issue_covers' AND n.nspname = current_schema() "
        "AND c.contype = 'c' AND pg_get_constraintdef(c.oid) ILIKE ?",
        ("%block_name%",),
    )
    return row is not None


def rebuild_covers_table(session: DatabaseSession) -> int:
    """
    Replace issue_covers with the unconstrained shape, keeping every row.

    Returns the number of rows copied.
    """
    columns = ", ".join(COVERS_COLUMNS)
    session.execute("ALTER TABLE issue_covers RENAME TO issue_covers_legacy")
    if session.dialect == "postgres":
        # The primary-key index keeps its name across a table rename
        session.execute("ALTER INDEX IF EXISTS issue_covers_pkey RENAME TO issue_covers_legacy_pkey")
    session.execute(COVERS_DDL)
    copied = session.execute(f"INSERT INTO issue_covers ({columns}) SELECT {columns} FROM issue_covers_legacy")
    session.execute("DROP TABLE issue_covers_legacy")
    logger.info("Migration: rebuilt issue_covers without legacy block_name constraint (%d rows)", copied)
    return copied


def init_database(db: Database) -> dict[str, object]:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS and only
    migrates when the old shape is detected.

    Returns:
        Summary of what changed: {"added_columns": [...], "rebuilt_covers": bool}

    Raises:
        SchemaMigrationError: If any DDL statement fails
    """
    try:
        with db.transaction() as session:
            for statement in _table_ddl(db.dialect):
                session.execute(statement)
            added = add_missing_columns(session)
            rebuilt = has_legacy_cover_constraint(session)
            if rebuilt:
                rebuild_covers_table(session)
    except DRIVER_ERRORS as e:
        logger.critical("Schema initialization failed: %s", e)
        raise SchemaMigrationError(f"Schema initialization failed: {e}") from e

    summary: dict[str, object] = {"added_columns": added, "rebuilt_covers": rebuilt}
    if added or rebuilt:
        log_event("database.migrated", backend=db.describe(), **summary)
    logger.info("Database initialized: %s", db.describe())
    return summary


def validate_schema(db: Database) -> bool:
    """
    Validate database has expected schema

    Returns:
        True if valid

    Raises:
        SchemaMigrationError: If tables or columns are missing
    """
    try:
        with db.transaction() as session:
            tables = existing_tables(session)
            missing_tables = set(REQUIRED_TABLES) - tables
            if missing_tables:
                raise SchemaMigrationError(f"Database missing tables: {sorted(missing_tables)}")

            for table, required_cols in REQUIRED_TABLES.items():
                missing_cols = set(required_cols) - table_columns(session, table)
                if missing_cols:
                    raise SchemaMigrationError(f"Table '{table}' missing columns: {sorted(missing_cols)}")
    except DRIVER_ERRORS as e:
        raise SchemaMigrationError(f"Schema validation failed: {e}") from e

    return True
