"""ClickHouse catalog introspection via ``system.columns``.

Reads the live column set of one table on one replica.  Results are never
cached: every check reads the catalog again.
"""

from ch_schema_sync.factory import Replica
from ch_schema_sync.schema.models import LiveColumn

COLUMNS_QUERY = (
    "SELECT name, type FROM system.columns "
    "WHERE database = :database AND table = :table"
)


class CatalogReader:
    """Reads live column definitions from a replica's system catalog.

    An absent table and a table without columns both yield an empty list;
    callers derive presence from the row count alone.

    Usage:
        reader = CatalogReader()
        columns = await reader.get_columns(replica, "analytics", "events")
        exists = bool(columns)
    """

    def __init__(self, query: str = COLUMNS_QUERY) -> None:
        self._query = query

    async def get_columns(self, replica: Replica, database: str, table: str) -> list[LiveColumn]:
        """Get (name, type) for every column of ``database.table``.

        Args:
            replica: Connected replica to read from.
            database: Database name.
            table: Table or view name.

        Returns:
            Columns in the order the catalog returned them.

        Raises:
            Exception: If the catalog query fails.
        """
        rows = await replica.query(self._query, {"database": database, "table": table})
        return [LiveColumn(name=row["name"], type=row["type"]) for row in rows]
