"""Replica pool: one live connection per configured server.

Connecting and closing never stop at the first failure.  Every endpoint is
attempted, failures are collected in endpoint order and returned as a single
``ReplicaPoolError``.  Callers treat any such error as fatal: partial
connectivity is not a supported operating mode.

Usage:
    from ch_schema_sync.factory import connect_replicas, close_replicas

    pool, error = await connect_replicas(config.servers)
    if error is not None:
        raise error
    ...
    error = await close_replicas(pool)
"""

import asyncio
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from ch_schema_sync.adapters.base import ReplicaClient
from ch_schema_sync.adapters.clickhouse import AsyncClickHouseAdapter
from ch_schema_sync.config.models import ServerEndpoint
from ch_schema_sync.errors import EndpointFailure, ReplicaPoolError
from ch_schema_sync.logging_setup import log_fields

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ServerEndpoint], ReplicaClient]


@dataclass
class Replica:
    """A connected replica.

    ``lock`` serializes every statement sent over ``client``: the catalog
    reads of the orchestrator and the corrective tasks share one connection.
    """

    endpoint: ServerEndpoint
    client: ReplicaClient
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def host(self) -> str:
        return self.endpoint.host

    async def query(self, sql: str, params: dict | None = None) -> list[dict]:
        async with self.lock:
            return await self.client.query(sql, params)

    async def execute(self, sql: str) -> None:
        async with self.lock:
            await self.client.execute(sql)


@dataclass
class ReplicaPool:
    """Connected replicas, in configured endpoint order."""

    replicas: list[Replica] = field(default_factory=list)

    def __iter__(self) -> Iterator[Replica]:
        return iter(self.replicas)

    def __len__(self) -> int:
        return len(self.replicas)


def _default_client_factory(endpoint: ServerEndpoint) -> ReplicaClient:
    return AsyncClickHouseAdapter.from_endpoint(endpoint)


async def connect_replicas(
    endpoints: Sequence[ServerEndpoint],
    client_factory: ClientFactory | None = None,
) -> tuple[ReplicaPool, ReplicaPoolError | None]:
    """Open and ping a connection to every endpoint.

    Args:
        endpoints: Configured servers, in order.
        client_factory: Builds a ``ReplicaClient`` for an endpoint
            (default: ``AsyncClickHouseAdapter.from_endpoint``).

    Returns:
        Tuple of (pool of successfully connected replicas, aggregated error
        or ``None``).

    Example:
        >>> pool, error = await connect_replicas(endpoints)
        >>> if error:
        ...     print(error)   # one line per failed endpoint
    """
    factory = client_factory or _default_client_factory
    pool = ReplicaPool()
    failures: list[EndpointFailure] = []

    for endpoint in endpoints:
        client: ReplicaClient | None = None
        try:
            client = factory(endpoint)
            await client.connect()
            await client.ping()
        except Exception as e:
            failures.append(EndpointFailure(endpoint=endpoint, cause=e))
            logger.error(
                f"Failed to connect: {e}",
                extra=log_fields(host=endpoint.address),
            )
            if client is not None:
                await _discard(client, endpoint)
            continue

        logger.debug("Connected", extra=log_fields(host=endpoint.address))
        pool.replicas.append(Replica(endpoint=endpoint, client=client))

    if not failures:
        return pool, None
    return pool, ReplicaPoolError("connect", failures)


async def close_replicas(pool: ReplicaPool) -> ReplicaPoolError | None:
    """Close every replica in the pool.

    Returns:
        Aggregated close failures, or ``None`` if all closed cleanly.
    """
    failures: list[EndpointFailure] = []

    for replica in pool:
        try:
            await replica.client.close()
        except Exception as e:
            failures.append(EndpointFailure(endpoint=replica.endpoint, cause=e))
            logger.error(
                f"Failed to close connection: {e}",
                extra=log_fields(host=replica.endpoint.address),
            )

    if not failures:
        return None
    return ReplicaPoolError("close", failures)


async def _discard(client: ReplicaClient, endpoint: ServerEndpoint) -> None:
    """Release a client whose connect or ping failed."""
    try:
        await client.close()
    except Exception as e:
        # The connect failure is already recorded for this endpoint
        logger.debug(
            f"Ignoring close error after failed connect: {e}",
            extra=log_fields(host=endpoint.address),
        )
