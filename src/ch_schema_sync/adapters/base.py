"""Replica client protocol definition.

Defines the ``ReplicaClient`` Protocol that every replica connection must
implement.  All methods are ``async def``.

Usage:
    from ch_schema_sync.adapters.base import ReplicaClient

    async def do_work(client: ReplicaClient) -> None:
        await client.connect()
        await client.ping()
        rows = await client.query(
            "SELECT name, type FROM system.columns WHERE table = :table",
            {"table": "events"},
        )
        await client.execute("ALTER TABLE events ADD COLUMN flag UInt8")
        await client.close()
"""

from typing import Any, Protocol


class ReplicaClient(Protocol):
    """Interface of a single live connection to one replica.

    Implementations hold exactly one connection: session state such as the
    current database (``USE``) persists between calls.
    """

    async def connect(self) -> None:
        """Open the connection.

        Raises:
            Exception: If the server cannot be reached.
        """
        ...

    async def ping(self) -> bool:
        """Check the connection is alive.

        Returns:
            ``True`` if the server answered.

        Raises:
            Exception: If the server does not answer.
        """
        ...

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Run a read query with named parameters.

        Args:
            sql: Query text using ``:name`` placeholders.
            params: Optional dict of named parameters.

        Returns:
            List of dicts, one per row.  Empty list if no rows.
        """
        ...

    async def execute(self, sql: str) -> None:
        """Execute a raw statement (``USE``, DDL).

        The text is sent as-is; it is not scanned for placeholders.
        """
        ...

    async def close(self) -> None:
        """Close the connection and release resources."""
        ...
