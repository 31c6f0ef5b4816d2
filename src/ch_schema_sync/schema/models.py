"""Pydantic models for drift detection and reconciliation.

This module contains schema-domain models:
- Live catalog: LiveColumn
- Divergences: ObjectMissing, ColumnExcess, ColumnMissing, TypeMismatch
- Policy: FixPolicy
- Results: FixOutcome, TableCheck, SyncReport

Configuration models (TableDef, ViewDef, ...) live in
ch_schema_sync.config.models.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Live catalog
# ============================================================================


class LiveColumn(BaseModel):
    """A column as reported by ``system.columns`` on one replica.

    Example:
        >>> LiveColumn(name="id", type="UInt64")
        LiveColumn(name='id', type='UInt64')
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str


# ============================================================================
# Divergences
# ============================================================================


class ObjectMissing(BaseModel):
    """The table or view does not exist on the replica."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["object_missing"] = "object_missing"

    @property
    def column(self) -> None:
        return None

    @property
    def message(self) -> str:
        return "Table does not exist"


class ColumnExcess(BaseModel):
    """The replica has a column the desired definition does not declare."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["column_excess"] = "column_excess"
    column: str

    @property
    def message(self) -> str:
        return "Table has excess column"


class TypeMismatch(BaseModel):
    """A declared column exists with a different type.

    ``want_type`` is the comparable type: the first whitespace-delimited
    token of the declared type string.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["type_mismatch"] = "type_mismatch"
    column: str
    want_type: str
    have_type: str

    @property
    def message(self) -> str:
        return "Column type mismatch"


class ColumnMissing(BaseModel):
    """A declared column is absent on the replica.

    ``want_type`` is the full declared type string, modifiers included.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["column_missing"] = "column_missing"
    column: str
    want_type: str

    @property
    def message(self) -> str:
        return "Table has not enough columns"


Divergence = Annotated[
    ObjectMissing | ColumnExcess | TypeMismatch | ColumnMissing,
    Field(discriminator="kind"),
]


# ============================================================================
# Fix policy
# ============================================================================


class FixPolicy(BaseModel):
    """Which corrective actions may run.

    ``allow_column_drop`` has no effect unless ``apply_fixes`` is also set.

    Example:
        >>> FixPolicy(apply_fixes=False, allow_column_drop=True).may_drop_columns
        False
    """

    model_config = ConfigDict(frozen=True)

    apply_fixes: bool = False
    allow_column_drop: bool = False

    @property
    def may_drop_columns(self) -> bool:
        return self.apply_fixes and self.allow_column_drop


# ============================================================================
# Results
# ============================================================================


class FixOutcome(BaseModel):
    """Result of one corrective statement on one replica."""

    host: str
    database: str
    table: str
    column: str | None = None
    statement: str
    success: bool
    error: str | None = None


class TableCheck(BaseModel):
    """Divergences found for one (replica, table) pair.

    ``error`` is set when the catalog could not be read; ``divergences`` is
    then empty and the pair was not compared.
    """

    host: str
    database: str
    table: str
    divergences: list[Divergence] = Field(default_factory=list)
    error: str | None = None

    @property
    def in_sync(self) -> bool:
        return self.error is None and not self.divergences


class SyncReport(BaseModel):
    """Result of a full run.

    Example:
        >>> report = SyncReport()
        >>> report.in_sync
        True
        >>> report.format_report()
        'Schema in sync'
    """

    checks: list[TableCheck] = Field(default_factory=list)
    fixes: list[FixOutcome] = Field(default_factory=list)

    @property
    def divergence_count(self) -> int:
        return sum(len(check.divergences) for check in self.checks)

    @property
    def read_error_count(self) -> int:
        return sum(1 for check in self.checks if check.error is not None)

    @property
    def fixes_applied(self) -> int:
        return sum(1 for fix in self.fixes if fix.success)

    @property
    def fixes_failed(self) -> int:
        return sum(1 for fix in self.fixes if not fix.success)

    @property
    def in_sync(self) -> bool:
        return self.divergence_count == 0 and self.read_error_count == 0

    def format_report(self) -> str:
        """Format the run as a human-readable report."""
        if self.in_sync:
            return "Schema in sync"

        lines = [f"Schema drift detected ({self.divergence_count} divergences):"]

        for check in self.checks:
            if check.error is not None:
                lines.append(
                    f"  - {check.host} {check.database}.{check.table}: "
                    f"catalog read failed: {check.error}"
                )
            for divergence in check.divergences:
                target = f"{check.database}.{check.table}"
                if divergence.column is not None:
                    target = f"{target}.{divergence.column}"
                lines.append(f"  - {check.host} {target}: {divergence.message}")

        if self.fixes:
            lines.append(
                f"\n  Fixes: {self.fixes_applied} applied, {self.fixes_failed} failed"
            )

        return "\n".join(lines)
