"""Shared fixtures: an in-memory replica client and config builders."""

from collections.abc import Callable

import pytest

from ch_schema_sync.config.models import ServerEndpoint, SyncConfig
from ch_schema_sync.factory import Replica


class FakeClient:
    """In-memory ``ReplicaClient`` that records every statement.

    ``tables`` maps ``(database, table)`` to a list of ``(name, type)`` rows
    returned by the catalog query.  ``fail_on`` maps a statement substring to
    the exception raised when a matching statement is executed.
    """

    def __init__(
        self,
        endpoint: ServerEndpoint,
        tables: dict[tuple[str, str], list[tuple[str, str]]] | None = None,
        fail_connect: Exception | None = None,
        fail_ping: Exception | None = None,
        fail_query: Exception | None = None,
        fail_close: Exception | None = None,
        fail_on: dict[str, Exception] | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.tables = tables or {}
        self.fail_connect = fail_connect
        self.fail_ping = fail_ping
        self.fail_query = fail_query
        self.fail_close = fail_close
        self.fail_on = fail_on or {}
        self.executed: list[str] = []
        self.queries: list[tuple[str, dict | None]] = []
        self.database: str | None = None
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        if self.fail_connect is not None:
            raise self.fail_connect
        self.connected = True

    async def ping(self) -> bool:
        if self.fail_ping is not None:
            raise self.fail_ping
        return True

    async def query(self, sql: str, params: dict | None = None) -> list[dict]:
        self.queries.append((sql, params))
        if self.fail_query is not None:
            raise self.fail_query
        rows = self.tables.get((params["database"], params["table"]), [])
        return [{"name": name, "type": column_type} for name, column_type in rows]

    async def execute(self, sql: str) -> None:
        self.executed.append(sql)
        for pattern, exc in self.fail_on.items():
            if pattern in sql:
                raise exc
        if sql.startswith("USE "):
            self.database = sql[len("USE "):]

    async def close(self) -> None:
        self.closed = True
        if self.fail_close is not None:
            raise self.fail_close

    @property
    def ddl(self) -> list[str]:
        """Executed statements other than ``USE``."""
        return [sql for sql in self.executed if not sql.startswith("USE ")]


@pytest.fixture
def endpoint() -> ServerEndpoint:
    return ServerEndpoint(host="ch1", port=9000, user="default", password="secret")


@pytest.fixture
def make_replica() -> Callable[..., Replica]:
    """Build a ``Replica`` around a ``FakeClient``."""

    def _make(host: str = "ch1", **client_kwargs) -> Replica:
        endpoint = ServerEndpoint(host=host)
        return Replica(endpoint=endpoint, client=FakeClient(endpoint, **client_kwargs))

    return _make


@pytest.fixture
def make_config() -> Callable[..., SyncConfig]:
    """Build a ``SyncConfig`` from raw dicts, as the loader would."""

    def _make(tables: dict, hosts: tuple[str, ...] = ("ch1",), database: str = "db") -> SyncConfig:
        return SyncConfig.model_validate(
            {
                "servers": [{"host": host} for host in hosts],
                "databases": [{"name": database, "tables": tables}],
            }
        )

    return _make


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo configure_logging() so caplog sees package records."""
    import logging

    logger = logging.getLogger("ch_schema_sync")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
