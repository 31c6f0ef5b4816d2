"""Drift detection and reconciliation.

Provides catalog introspection (``CatalogReader``), drift detection
(``detect_drift``), corrective statements (``plan_fix``, ``apply_fix``)
and fleet orchestration (``SchemaSynchronizer``, ``run_sync``).

Usage:
    from ch_schema_sync.schema import detect_drift, CatalogReader
    from ch_schema_sync.schema import plan_fix, apply_fix
    from ch_schema_sync.schema import SchemaSynchronizer, run_sync
"""

from ch_schema_sync.schema.comparator import comparable_type, detect_drift
from ch_schema_sync.schema.fix import (
    ColumnFix,
    CreateFix,
    apply_fix,
    create_table_sql,
    create_view_sql,
    plan_fix,
)
from ch_schema_sync.schema.introspector import CatalogReader
from ch_schema_sync.schema.models import (
    ColumnExcess,
    ColumnMissing,
    Divergence,
    FixOutcome,
    FixPolicy,
    LiveColumn,
    ObjectMissing,
    SyncReport,
    TableCheck,
    TypeMismatch,
)
from ch_schema_sync.schema.sync import SchemaSynchronizer, run_sync

__all__ = [
    "detect_drift",
    "comparable_type",
    "CatalogReader",
    "LiveColumn",
    "Divergence",
    "ObjectMissing",
    "ColumnExcess",
    "ColumnMissing",
    "TypeMismatch",
    "FixPolicy",
    "FixOutcome",
    "TableCheck",
    "SyncReport",
    "plan_fix",
    "apply_fix",
    "create_table_sql",
    "create_view_sql",
    "ColumnFix",
    "CreateFix",
    "SchemaSynchronizer",
    "run_sync",
]
