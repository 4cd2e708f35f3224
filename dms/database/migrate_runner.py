"""Database migration runner for production.

Goal:
- Prefer Alembic migrations for deterministic schema management.
- If the database is already at the desired schema but Alembic history is out of sync
  (e.g., tables were created with `create_all()`), detect that safely and `stamp head`.

Intended to be executed as a one-off job during deploys.
"""

from __future__ import annotations

import os
import sys
from typing import List, Tuple

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from dms.database.database import DATABASE_URL, _is_sqlite_url, build_engine


def _alembic_cfg() -> Config:
    cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    return cfg


def _required_schema_checks() -> List[Tuple[str, str]]:
    """Return (kind, name) checks required to safely stamp head."""
    return [
        ("table", "users"),
        ("table", "plants"),
        ("table", "task_masters"),
        ("table", "task_instances"),
        ("table", "app_settings"),
        # columns referenced by the generator
        ("column:task_masters", "task_type"),
        ("column:task_masters", "last_generated"),
        ("column:task_masters", "last_occurrence_date"),
        ("column:task_instances", "task_master_id"),
        ("column:task_instances", "scheduled_date"),
    ]


def _missing_requirements(inspector) -> List[str]:
    tables = set(inspector.get_table_names())
    missing: List[str] = []
    for kind, name in _required_schema_checks():
        if kind == "table":
            if name not in tables:
                missing.append(f"missing table: {name}")
        elif kind.startswith("column:"):
            table = kind.split(":", 1)[1]
            columns = {c["name"] for c in inspector.get_columns(table)} if table in tables else set()
            if name not in columns:
                missing.append(f"missing column: {table}.{name}")
        else:
            missing.append(f"unknown check: {kind} {name}")
    return missing


def main() -> int:
    if _is_sqlite_url(DATABASE_URL):
        command.upgrade(_alembic_cfg(), "head")
        return 0

    engine = build_engine(DATABASE_URL)

    try:
        command.upgrade(_alembic_cfg(), "head")
        return 0
    except Exception as e:
        msg = str(e).lower()
        looks_like_already_applied = any(
            s in msg
            for s in [
                "duplicate",
                "already exists",
                "duplicate_table",
                "exists",
            ]
        )
        if not looks_like_already_applied:
            raise

        # Only stamp head if we can verify the expected schema is present.
        with engine.connect() as conn:
            missing = _missing_requirements(inspect(conn))
        if missing:
            raise RuntimeError(
                "Alembic upgrade failed and schema is not at expected baseline; refusing to stamp head. "
                + "; ".join(missing)
            ) from e

        command.stamp(_alembic_cfg(), "head")
        return 0


if __name__ == "__main__":
    sys.exit(main())
