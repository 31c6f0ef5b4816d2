"""Schema fix module -- close divergences with DDL.

Maps a divergence plus the fix policy onto one corrective statement
(``plan_fix``) and runs it against a single replica (``apply_fix``).

Creation statements use ``IF NOT EXISTS``.  Column changes are not
idempotent, so nothing here retries: every action is attempted once and its
outcome, success or failure, is final.

Usage:
    from ch_schema_sync.schema.fix import plan_fix, apply_fix

    fix = plan_fix(divergence, table_def, policy)
    if fix is not None:
        outcome = await apply_fix(replica, "analytics", fix)
"""

import logging
from dataclasses import dataclass
from typing import Literal

from ch_schema_sync.config.models import TableDef, ViewDef
from ch_schema_sync.errors import InvalidDefinitionError
from ch_schema_sync.factory import Replica
from ch_schema_sync.logging_setup import log_fields
from ch_schema_sync.schema.models import (
    ColumnExcess,
    ColumnMissing,
    Divergence,
    FixOutcome,
    FixPolicy,
    ObjectMissing,
    TypeMismatch,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Statement builders
# ------------------------------------------------------------------


def _column_list(columns: dict[str, str]) -> str:
    return ", ".join(f"{name} {column_type}" for name, column_type in columns.items())


def create_table_sql(table: TableDef) -> str:
    """Build ``CREATE TABLE IF NOT EXISTS`` for a table definition.

    Example:
        >>> create_table_sql(TableDef(name="t", engine="Memory", columns={"id": "UInt64"}))
        'CREATE TABLE IF NOT EXISTS t (id UInt64) ENGINE = Memory'
    """
    sql = f"CREATE TABLE IF NOT EXISTS {table.name} "
    if table.columns:
        sql += f"({_column_list(table.columns)}) "
    else:
        sql += f"AS {table.as_table} "
    return sql + f"ENGINE = {table.engine}"


def create_view_sql(view: ViewDef) -> str:
    """Build ``CREATE [MATERIALIZED] VIEW IF NOT EXISTS`` for a view definition.

    Raises:
        InvalidDefinitionError: If the view has no ``as_select``.
    """
    if not view.as_select:
        raise InvalidDefinitionError(f"view '{view.name}': as_select is not defined")

    if view.materialized:
        parts = [f"CREATE MATERIALIZED VIEW IF NOT EXISTS {view.name}"]
    else:
        parts = [f"CREATE VIEW IF NOT EXISTS {view.name}"]

    if view.columns:
        parts.append(f"({_column_list(view.columns)})")
    if view.engine:
        parts.append(f"ENGINE = {view.engine}")
    if view.populate:
        parts.append("POPULATE")
    parts.append(f"AS {view.as_select}")

    return " ".join(parts)


# ------------------------------------------------------------------
# Fix data classes
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnFix:
    """A single ``ALTER TABLE ... COLUMN`` change.

    Example:
        fix = ColumnFix(table="events", column="flag", action="ADD", definition="UInt8")
        fix.to_sql()
        # 'ALTER TABLE events ADD COLUMN flag UInt8'
    """

    table: str
    column: str
    action: Literal["ADD", "MODIFY", "DROP"]
    definition: str = ""

    def to_sql(self) -> str:
        if self.action == "DROP":
            return f"ALTER TABLE {self.table} DROP COLUMN {self.column}"
        return f"ALTER TABLE {self.table} {self.action} COLUMN {self.column} {self.definition}"

    @property
    def success_message(self) -> str:
        return {
            "ADD": "Added column",
            "MODIFY": "Modified column type",
            "DROP": "Dropped column",
        }[self.action]

    @property
    def failure_message(self) -> str:
        return {
            "ADD": "Failed to add column",
            "MODIFY": "Failed to modify column type",
            "DROP": "Failed to drop column",
        }[self.action]


@dataclass(frozen=True)
class CreateFix:
    """Creation of a missing table or view."""

    definition: TableDef | ViewDef

    @property
    def table(self) -> str:
        return self.definition.name

    @property
    def column(self) -> None:
        return None

    def to_sql(self) -> str:
        if isinstance(self.definition, ViewDef):
            return create_view_sql(self.definition)
        return create_table_sql(self.definition)

    @property
    def success_message(self) -> str:
        return "Created view" if self.definition.is_view else "Created table"

    @property
    def failure_message(self) -> str:
        return "Failed to create view" if self.definition.is_view else "Failed to create table"


Fix = ColumnFix | CreateFix


# ------------------------------------------------------------------
# Planning
# ------------------------------------------------------------------


def plan_fix(
    divergence: Divergence,
    definition: TableDef | ViewDef,
    policy: FixPolicy,
) -> Fix | None:
    """Choose the corrective action for one divergence.

    Returns ``None`` when the policy does not allow the action: nothing runs
    without ``apply_fixes``, and excess columns are only dropped when
    ``allow_column_drop`` is set as well.

    Raises:
        InvalidDefinitionError: If a missing view has no ``as_select``.
    """
    if not policy.apply_fixes:
        return None

    if isinstance(divergence, ObjectMissing):
        fix = CreateFix(definition=definition)
        # Build once so a malformed view is reported before anything is scheduled
        fix.to_sql()
        return fix

    if isinstance(divergence, ColumnExcess):
        if not policy.may_drop_columns:
            return None
        return ColumnFix(table=definition.name, column=divergence.column, action="DROP")

    if isinstance(divergence, TypeMismatch):
        return ColumnFix(
            table=definition.name,
            column=divergence.column,
            action="MODIFY",
            definition=divergence.want_type,
        )

    if isinstance(divergence, ColumnMissing):
        return ColumnFix(
            table=definition.name,
            column=divergence.column,
            action="ADD",
            definition=divergence.want_type,
        )

    raise TypeError(f"Unknown divergence: {divergence!r}")


# ------------------------------------------------------------------
# Fix application
# ------------------------------------------------------------------


async def apply_fix(replica: Replica, database: str, fix: Fix) -> FixOutcome:
    """Run one corrective statement against one replica.

    Never raises for statement failures: they are logged with full context
    and returned as an unsuccessful ``FixOutcome``.

    Example:
        outcome = await apply_fix(replica, "analytics", fix)
        if not outcome.success:
            print(outcome.error)
    """
    statement = fix.to_sql()
    fields = dict(
        host=replica.host,
        database=database,
        table=fix.table,
        column=fix.column,
    )
    if isinstance(fix, ColumnFix) and fix.definition:
        fields["type"] = fix.definition

    logger.debug(statement, extra=log_fields(**fields))

    try:
        await replica.execute(statement)
    except Exception as e:
        logger.error(
            f"{fix.failure_message}: {e}",
            extra=log_fields(**fields, statement=statement),
        )
        return FixOutcome(
            host=replica.host,
            database=database,
            table=fix.table,
            column=fix.column,
            statement=statement,
            success=False,
            error=str(e),
        )

    logger.info(fix.success_message, extra=log_fields(**fields))
    return FixOutcome(
        host=replica.host,
        database=database,
        table=fix.table,
        column=fix.column,
        statement=statement,
        success=True,
    )
