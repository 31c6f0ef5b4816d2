"""Replica client adapters.

Provides the ``ReplicaClient`` Protocol and the async ClickHouse adapter.

Usage:
    from ch_schema_sync.adapters import ReplicaClient, AsyncClickHouseAdapter
"""

from ch_schema_sync.adapters.base import ReplicaClient
from ch_schema_sync.adapters.clickhouse import AsyncClickHouseAdapter

__all__ = [
    "ReplicaClient",
    "AsyncClickHouseAdapter",
]
