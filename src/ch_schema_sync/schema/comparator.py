"""Drift detection: desired definition versus live columns.

Pure logic -- no I/O, no database connections.

Usage:
    from ch_schema_sync.schema.comparator import detect_drift

    live = await reader.get_columns(replica, "analytics", "events")
    for divergence in detect_drift(table_def, live):
        print(divergence.message)
"""

from collections.abc import Sequence

from ch_schema_sync.config.models import TableDef, ViewDef
from ch_schema_sync.schema.models import (
    ColumnExcess,
    ColumnMissing,
    Divergence,
    LiveColumn,
    ObjectMissing,
    TypeMismatch,
)


def comparable_type(declared_type: str) -> str:
    """Return the part of a declared type that is compared with the catalog.

    Trailing modifiers such as ``DEFAULT`` clauses are not reported by
    ``system.columns``, so only the first whitespace-delimited token counts.

    Example:
        >>> comparable_type("UInt8 DEFAULT 0")
        'UInt8'
    """
    return declared_type.split()[0]


def detect_drift(
    desired: TableDef | ViewDef,
    live: Sequence[LiveColumn],
) -> list[Divergence]:
    """Classify every difference between ``desired`` and ``live``.

    1. No live rows: a single ``ObjectMissing``; nothing else is compared.
    2. Live columns not declared: ``ColumnExcess``.  Skipped when the
       definition declares no columns (objects created ``AS`` another table
       or select).
    3. Declared live columns whose type differs: ``TypeMismatch``.
    4. Declared columns not live: ``ColumnMissing``.

    Result order: excess, mismatches, missing.  Live-derived groups follow
    catalog order, the missing group follows declaration order.

    Examples:
        >>> table = TableDef(name="t", engine="Memory", columns={"id": "UInt64"})
        >>> detect_drift(table, [])
        [ObjectMissing(kind='object_missing')]

        >>> detect_drift(table, [LiveColumn(name="id", type="UInt64")])
        []
    """
    if not live:
        return [ObjectMissing()]

    excess: list[Divergence] = []
    mismatched: list[Divergence] = []
    missing: list[Divergence] = []

    declared = desired.columns
    live_names: set[str] = set()

    for column in live:
        live_names.add(column.name)

        if not declared:
            continue

        if column.name not in declared:
            excess.append(ColumnExcess(column=column.name))
            continue

        want_type = comparable_type(declared[column.name])
        if want_type != column.type:
            mismatched.append(
                TypeMismatch(column=column.name, want_type=want_type, have_type=column.type)
            )

    for name, declared_type in declared.items():
        if name not in live_names:
            missing.append(ColumnMissing(column=name, want_type=declared_type))

    return excess + mismatched + missing
