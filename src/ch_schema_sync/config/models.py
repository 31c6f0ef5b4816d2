"""Pydantic models for the desired-state configuration.

The desired state is a list of servers (the replica fleet) and a list of
databases, each holding a mapping of object name to definition.  Objects are
a tagged variant: ``TableDef`` (``kind="table"``) or ``ViewDef``
(``kind="view"``), each carrying only the fields meaningful to it.

The raw file format keeps the flat shape operators already write
(``view: true`` plus optional view flags); ``DatabaseDef`` converts each
entry into the matching variant on load.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Servers
# ============================================================================


class ServerEndpoint(BaseModel):
    """Connection settings for one replica.

    Example:
        >>> endpoint = ServerEndpoint(host="ch1", port=9000, user="default")
        >>> endpoint.address
        'ch1:9000'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str
    port: int = 9000
    user: str = "default"
    password: str = Field(default="", alias="pass", repr=False)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


# ============================================================================
# Desired objects
# ============================================================================

_VIEW_ONLY_KEYS = ("materialized", "populate", "as_select")


class _ObjectDef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    columns: dict[str, str] = Field(default_factory=dict)

    @field_validator("columns")
    @classmethod
    def _column_types_not_blank(cls, value: dict[str, str]) -> dict[str, str]:
        for column, column_type in value.items():
            if not column_type.split():
                raise ValueError(f"column '{column}' has an empty type")
        return value


class TableDef(_ObjectDef):
    """A table that must exist on every replica.

    Created either from its declared column list or ``AS <as_table>``.
    Declared columns take precedence when both are present.
    """

    kind: Literal["table"] = "table"
    engine: str
    as_table: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_view_flags(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in _VIEW_ONLY_KEYS:
                if data.get(key):
                    raise ValueError(f"'{key}' only applies to views")
                data.pop(key, None)
            if not data.get("as_table"):
                data.pop("as_table", None)
        return data

    @field_validator("engine")
    @classmethod
    def _engine_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("a table needs a non-empty 'engine'")
        return value

    @model_validator(mode="after")
    def _needs_a_shape(self) -> "TableDef":
        if not self.columns and not self.as_table:
            raise ValueError(
                f"table '{self.name}' needs 'columns' or 'as_table'"
            )
        return self

    @property
    def is_view(self) -> bool:
        return False


class ViewDef(_ObjectDef):
    """A plain or materialized view.

    ``as_select`` is required to create the view; a view without it is
    reported and skipped when it turns out to be missing on a replica.
    """

    kind: Literal["view"] = "view"
    materialized: bool = False
    populate: bool = False
    engine: str | None = None
    as_select: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_as_table(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("as_table"):
                raise ValueError("a view cannot be created from 'as_table'; use 'as_select'")
            data.pop("as_table", None)
            for key in ("engine", "as_select"):
                if not data.get(key):
                    data.pop(key, None)
        return data

    @property
    def is_view(self) -> bool:
        return True


ObjectDef = Annotated[TableDef | ViewDef, Field(discriminator="kind")]


# ============================================================================
# Databases and top-level config
# ============================================================================


class DatabaseDef(BaseModel):
    """A database and the objects it must contain."""

    model_config = ConfigDict(frozen=True)

    name: str
    tables: dict[str, ObjectDef] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _tag_objects(cls, data: Any) -> Any:
        """Turn raw ``{name: {view: bool, ...}}`` entries into tagged dicts."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        tables = data.get("tables")
        if tables is None:
            tables = {}
        if not isinstance(tables, dict):
            # Left for field validation to reject
            return data

        tagged: dict[str, Any] = {}
        for name, raw in tables.items():
            if raw is None:
                raw = {}
            if not isinstance(raw, dict):
                tagged[name] = raw
                continue
            entry = dict(raw)
            if entry.get("name", name) != name:
                raise ValueError(
                    f"object '{name}' declares a different name '{entry['name']}'"
                )
            is_view = bool(entry.pop("view", False))
            entry["name"] = name
            entry.setdefault("kind", "view" if is_view else "table")
            tagged[name] = entry
        data["tables"] = tagged
        return data


class SyncConfig(BaseModel):
    """Complete desired state: replica fleet plus databases."""

    model_config = ConfigDict(frozen=True)

    servers: list[ServerEndpoint] = Field(min_length=1)
    databases: list[DatabaseDef] = Field(default_factory=list)
