"""Exception types for ch-schema-sync.

Fatal errors stop the whole run:

- ``ConfigError``: the desired-state file is missing or invalid.
- ``ReplicaPoolError``: one or more replicas failed to connect or close.
- ``DatabaseSelectError``: ``USE <database>`` failed on one or more replicas.

Per-action failures (a single corrective statement) are never raised; they
are logged and captured in ``FixOutcome``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ch_schema_sync.config.models import ServerEndpoint


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded or validated."""

    pass


@dataclass(frozen=True)
class EndpointFailure:
    """A single replica failure, kept alongside the endpoint it belongs to."""

    endpoint: "ServerEndpoint"
    cause: BaseException

    @property
    def message(self) -> str:
        return f"{self.endpoint.address}: {self.cause}"


class ReplicaPoolError(Exception):
    """Aggregated connect or close failures across the replica pool.

    ``failures`` preserves endpoint order.  ``str()`` renders one line per
    failure, in the same order.

    Example:
        >>> err = ReplicaPoolError("connect", [failure_a, failure_b])
        >>> print(err)
        ch1:9000: Connection refused
        ch2:9000: Authentication failed
    """

    def __init__(self, operation: str, failures: list[EndpointFailure]) -> None:
        self.operation = operation
        self.failures = list(failures)
        super().__init__("\n".join(f.message for f in self.failures))


class DatabaseSelectError(Exception):
    """Raised when a database cannot be selected on every replica."""

    def __init__(self, database: str, failures: list[EndpointFailure]) -> None:
        self.database = database
        self.failures = list(failures)
        lines = [f"Failed to select database '{database}':"]
        lines.extend(f"  {f.message}" for f in self.failures)
        super().__init__("\n".join(lines))


class InvalidDefinitionError(ValueError):
    """Raised when a desired object cannot be created as declared.

    This is a per-object problem: the caller logs it and skips the object.
    """

    pass
