"""
Runtime schema guard for the submission tables.

ensure_schema() runs before every store operation and is idempotent:
- table missing -> CREATE TABLE (checkfirst, so racing callers are safe);
- then a fixed, ordered list of "add if absent" steps brings tables created by
  earlier versions up to date (columns first, then indexes).
Each step runs in its own transaction via alembic Operations. A failing step is
logged and skipped; it never aborts the request that triggered the check.
"""
import logging
from dataclasses import dataclass
from typing import Callable

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Engine

from bulletin.models.submission import SubmissionStatus

logger = logging.getLogger(__name__)

# (database url, table) pairs fully ensured in this process
_ensured: set[tuple[str, str]] = set()


@dataclass(frozen=True)
class AddColumn:
    name: str
    column: Callable[[], sa.Column]
    backfill: str | None = None  # SQL run right after the column is added; {table} is substituted

    def describe(self) -> str:
        return f"add column {self.name}"

    def pending(self, inspector, table: str) -> bool:
        return self.name not in {c["name"] for c in inspector.get_columns(table)}

    def apply(self, op: Operations, table: str) -> None:
        op.add_column(table, self.column())
        if self.backfill:
            op.execute(sa.text(self.backfill.format(table=table)))


@dataclass(frozen=True)
class AddIndex:
    suffix: str
    columns: tuple[str, ...]

    def describe(self) -> str:
        return f"create index on {', '.join(self.columns)}"

    def index_name(self, table: str) -> str:
        return f"ix_{table}_{self.suffix}"

    def pending(self, inspector, table: str) -> bool:
        return self.index_name(table) not in {i["name"] for i in inspector.get_indexes(table)}

    def apply(self, op: Operations, table: str) -> None:
        op.create_index(self.index_name(table), table, [sa.text(c) for c in self.columns])


# Schema history, oldest first. Append only.
SCHEMA_STEPS = (
    AddColumn(
        "status",
        lambda: sa.Column("status", sa.String(20), nullable=False, server_default=SubmissionStatus.PENDING.value),
    ),
    AddColumn("published_at", lambda: sa.Column("published_at", sa.DateTime(), nullable=True)),
    AddColumn("rejection_reason", lambda: sa.Column("rejection_reason", sa.Text(), nullable=True)),
    # SQLite refuses non-constant defaults on ADD COLUMN, so backfill instead
    AddColumn(
        "updated_at",
        lambda: sa.Column("updated_at", sa.DateTime(), nullable=True),
        backfill="UPDATE {table} SET updated_at = created_at WHERE updated_at IS NULL",
    ),
    AddColumn("active", lambda: sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true())),
    AddIndex("status", ("status",)),
    AddIndex("created_at", ("created_at DESC",)),
)


def _create_table(engine: Engine, table: sa.Table) -> bool:
    try:
        table.create(bind=engine, checkfirst=True)
        return True
    except Exception as e:
        logger.warning("Schema: creating table %s failed: %s", table.name, e)
        return False


def _run_step(engine: Engine, table: str, step) -> bool:
    try:
        with engine.begin() as conn:
            if not step.pending(sa.inspect(conn), table):
                return True
            step.apply(Operations(MigrationContext.configure(conn)), table)
        logger.info("Schema: %s on %s", step.describe(), table)
        return True
    except Exception as e:
        logger.warning("Schema: %s on %s failed: %s", step.describe(), table, e)
        return False


def ensure_schema(engine: Engine, model, force: bool = False) -> bool:
    """
    Bring `model`'s table to the current shape. Returns True when every step succeeded.
    Results are cached per process; force=True re-checks anyway.
    """
    table = model.__table__
    key = (str(engine.url), table.name)
    if key in _ensured and not force:
        return True
    ok = _create_table(engine, table)
    for step in SCHEMA_STEPS:
        ok = _run_step(engine, table.name, step) and ok
    if ok:
        _ensured.add(key)
    return ok


def reset_schema_cache() -> None:
    _ensured.clear()
