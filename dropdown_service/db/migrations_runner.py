"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the package's `migrations/`
directory. Skips rollback files and records applied filenames in a
`schema_migrations` table so the same migration is never reapplied. Intended
for local development, CI and small deployments; larger environments can
still run the same files through their platform's migration mechanism.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List
from datetime import datetime, timezone
import logging

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine, Connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    "filename VARCHAR(255) PRIMARY KEY, "
    "applied_at VARCHAR(32) NOT NULL)"
)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        # Skip rollback scripts in forward runs
        if "rollback" in p.name.lower():
            continue
        yield p


def _split_statements(sql: str) -> List[str]:
    """Split a migration file into statements on ';', dropping comment-only chunks."""
    statements: List[str] = []
    for chunk in sql.split(";"):
        lines = [ln for ln in chunk.splitlines() if not ln.strip().startswith("--")]
        stmt = "\n".join(lines).strip()
        if not stmt or stmt.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        statements.append(stmt)
    return statements


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute a multi-statement SQL file one statement at a time.

    SQLite's DB-API (pysqlite) does not allow multiple statements in a single
    execute() call, so every dialect receives the statements individually.
    """
    for stmt in _split_statements(sql):
        conn.exec_driver_sql(stmt)


def applied_migrations(engine: Engine) -> List[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations ORDER BY filename")).fetchall()
    return [str(r[0]) for r in rows]


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> List[str]:
    """Apply pending migrations; return the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else MIGRATIONS_DIR
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", str(root))
        return []

    already = set(applied_migrations(engine))
    newly_applied: List[str] = []
    for sql_path in _iter_sql_files(root):
        fname = sql_path.name
        if fname in already:
            continue
        sql = sql_path.read_text(encoding="utf-8")
        if not sql.strip():
            continue
        try:
            # One transaction per file: a failing file leaves earlier ones recorded
            with engine.begin() as conn:
                _exec_sql_compat(conn, sql)
                conn.execute(
                    sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
                    {
                        "f": fname,
                        # ISO-8601 UTC without fractional seconds (e.g., 2024-01-01T00:00:00Z)
                        "at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                    },
                )
        except Exception:
            logger.error("migration_failed file=%s", fname, exc_info=True)
            raise
        logger.info("migration_applied file=%s", fname)
        newly_applied.append(fname)
    return newly_applied


__all__ = ["MIGRATIONS_DIR", "apply_migrations", "applied_migrations"]
