"""Schema sync across the replica fleet (async).

``SchemaSynchronizer`` walks databases -> tables -> replicas.  Reads
(``USE``, catalog queries) are awaited one replica at a time.  Corrective
statements run as tasks in an ``asyncio.TaskGroup`` per database; the group
is joined before the next database is selected, so every fix has finished
(and is in the report) before ``check()`` returns.

Each replica is checked and repaired on its own: a failure on one replica
never changes what happens on another.

Usage:
    from ch_schema_sync.schema.sync import run_sync
    from ch_schema_sync.schema.models import FixPolicy

    report = await run_sync(config, FixPolicy(apply_fixes=True))
    print(report.format_report())
"""

import asyncio
import logging

from ch_schema_sync.config.models import DatabaseDef, SyncConfig, TableDef, ViewDef
from ch_schema_sync.errors import DatabaseSelectError, EndpointFailure, InvalidDefinitionError
from ch_schema_sync.factory import (
    ClientFactory,
    Replica,
    ReplicaPool,
    close_replicas,
    connect_replicas,
)
from ch_schema_sync.logging_setup import log_fields
from ch_schema_sync.schema.comparator import detect_drift
from ch_schema_sync.schema.fix import apply_fix, plan_fix
from ch_schema_sync.schema.introspector import CatalogReader
from ch_schema_sync.schema.models import (
    ColumnMissing,
    Divergence,
    FixOutcome,
    FixPolicy,
    SyncReport,
    TableCheck,
    TypeMismatch,
)

logger = logging.getLogger(__name__)


class SchemaSynchronizer:
    """Checks (and optionally repairs) every configured object on every replica.

    Args:
        config: Desired state.
        pool: Connected replicas.
        policy: Which fixes may run (default: report only).
        reader: Catalog reader (default: ``CatalogReader()``).
    """

    def __init__(
        self,
        config: SyncConfig,
        pool: ReplicaPool,
        policy: FixPolicy | None = None,
        reader: CatalogReader | None = None,
    ) -> None:
        self._config = config
        self._pool = pool
        self._policy = policy or FixPolicy()
        self._reader = reader or CatalogReader()

    async def check(self) -> SyncReport:
        """Check every configured database.

        Raises:
            DatabaseSelectError: If a database cannot be selected on every
                replica.  Fixes already scheduled for earlier databases have
                completed by then.
        """
        report = SyncReport()
        for database in self._config.databases:
            await self.check_database(database, report)
        return report

    async def check_database(self, database: DatabaseDef, report: SyncReport) -> None:
        """Select ``database`` everywhere, then check each of its objects."""
        await self.select_database(database.name)

        tasks: list[asyncio.Task[FixOutcome]] = []
        async with asyncio.TaskGroup() as tg:
            for definition in database.tables.values():
                await self._check_object(database.name, definition, report, tg, tasks)

        report.fixes.extend(task.result() for task in tasks)

    async def select_database(self, name: str) -> None:
        """Run ``USE <name>`` on every replica.

        All replicas are attempted before failing.

        Raises:
            DatabaseSelectError: If any replica failed.
        """
        failures: list[EndpointFailure] = []

        for replica in self._pool:
            try:
                await replica.execute(f"USE {name}")
            except Exception as e:
                failures.append(EndpointFailure(endpoint=replica.endpoint, cause=e))
                logger.error(
                    f"Failed to select database: {e}",
                    extra=log_fields(host=replica.host, database=name),
                )

        if failures:
            raise DatabaseSelectError(name, failures)

    async def _check_object(
        self,
        database: str,
        definition: TableDef | ViewDef,
        report: SyncReport,
        tg: asyncio.TaskGroup,
        tasks: list[asyncio.Task[FixOutcome]],
    ) -> None:
        for replica in self._pool:
            fields = dict(host=replica.host, database=database, table=definition.name)

            try:
                live = await self._reader.get_columns(replica, database, definition.name)
            except Exception as e:
                logger.error(f"Failed to read columns: {e}", extra=log_fields(**fields))
                report.checks.append(TableCheck(**fields, error=str(e)))
                continue

            divergences = detect_drift(definition, live)
            report.checks.append(TableCheck(**fields, divergences=divergences))

            for divergence in divergences:
                self._log_divergence(divergence, fields)
                self._schedule_fix(replica, database, definition, divergence, tg, tasks)

    def _schedule_fix(
        self,
        replica: Replica,
        database: str,
        definition: TableDef | ViewDef,
        divergence: Divergence,
        tg: asyncio.TaskGroup,
        tasks: list[asyncio.Task[FixOutcome]],
    ) -> None:
        try:
            fix = plan_fix(divergence, definition, self._policy)
        except InvalidDefinitionError as e:
            logger.error(
                str(e),
                extra=log_fields(host=replica.host, database=database, table=definition.name),
            )
            return

        if fix is not None:
            tasks.append(tg.create_task(apply_fix(replica, database, fix)))

    @staticmethod
    def _log_divergence(divergence: Divergence, fields: dict) -> None:
        extra = dict(fields, column=divergence.column)
        if isinstance(divergence, TypeMismatch):
            extra.update(need_type=divergence.want_type, has_type=divergence.have_type)
        elif isinstance(divergence, ColumnMissing):
            extra.update(type=divergence.want_type)
        logger.error(divergence.message, extra=log_fields(**extra))


async def run_sync(
    config: SyncConfig,
    policy: FixPolicy | None = None,
    client_factory: ClientFactory | None = None,
) -> SyncReport:
    """Connect to every server, check all databases, disconnect.

    Args:
        config: Desired state, including the server list.
        policy: Which fixes may run (default: report only).
        client_factory: Optional replica client factory (tests, other drivers).

    Returns:
        ``SyncReport`` with every divergence and fix outcome.

    Raises:
        ReplicaPoolError: If any server failed to connect (nothing is checked)
            or to close.
        DatabaseSelectError: If a database cannot be selected everywhere.
    """
    pool, error = await connect_replicas(config.servers, client_factory)
    if error is not None:
        await close_replicas(pool)
        raise error

    try:
        report = await SchemaSynchronizer(config, pool, policy).check()
    except BaseException:
        await close_replicas(pool)
        raise

    error = await close_replicas(pool)
    if error is not None:
        raise error

    return report
