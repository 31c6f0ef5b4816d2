"""ch-schema-sync: detect and repair schema drift across ClickHouse replicas.

Compares a declared schema (databases, tables, views, columns, engines)
against the live catalog of every replica in a fleet, reports each
divergence and, on request, issues the DDL that closes it.

Usage:
    from ch_schema_sync import load_sync_config, run_sync, FixPolicy

    config = load_sync_config("config.yml")
    report = await run_sync(config, FixPolicy(apply_fixes=True))
"""

__version__ = "0.1.0"

# Config
from ch_schema_sync.config.loader import load_sync_config
from ch_schema_sync.config.models import (
    DatabaseDef,
    ServerEndpoint,
    SyncConfig,
    TableDef,
    ViewDef,
)

# Errors
from ch_schema_sync.errors import (
    ConfigError,
    DatabaseSelectError,
    InvalidDefinitionError,
    ReplicaPoolError,
)

# Replica pool
from ch_schema_sync.factory import Replica, ReplicaPool, close_replicas, connect_replicas

# Schema
from ch_schema_sync.schema.comparator import detect_drift
from ch_schema_sync.schema.models import FixPolicy, SyncReport
from ch_schema_sync.schema.sync import SchemaSynchronizer, run_sync

__all__ = [
    # Config
    "load_sync_config",
    "SyncConfig",
    "ServerEndpoint",
    "DatabaseDef",
    "TableDef",
    "ViewDef",
    # Errors
    "ConfigError",
    "ReplicaPoolError",
    "DatabaseSelectError",
    "InvalidDefinitionError",
    # Replica pool
    "Replica",
    "ReplicaPool",
    "connect_replicas",
    "close_replicas",
    # Schema
    "detect_drift",
    "FixPolicy",
    "SyncReport",
    "SchemaSynchronizer",
    "run_sync",
]
