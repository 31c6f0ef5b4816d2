"""Configuration: desired-state models and the YAML/TOML loader.

Usage:
    >>> from ch_schema_sync.config import load_sync_config, SyncConfig
"""

from ch_schema_sync.config.loader import load_sync_config
from ch_schema_sync.config.models import (
    DatabaseDef,
    ObjectDef,
    ServerEndpoint,
    SyncConfig,
    TableDef,
    ViewDef,
)

__all__ = [
    "load_sync_config",
    "SyncConfig",
    "ServerEndpoint",
    "DatabaseDef",
    "ObjectDef",
    "TableDef",
    "ViewDef",
]
