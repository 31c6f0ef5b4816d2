"""Load the desired-state configuration from YAML or TOML."""

import tomllib
from pathlib import Path

import yaml
from pydantic import ValidationError

from ch_schema_sync.config.models import SyncConfig
from ch_schema_sync.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.yml")


def load_sync_config(config_path: str | Path | None = None) -> SyncConfig:
    """Load and validate the configuration file.

    The format is picked from the suffix: ``.toml`` is read with
    ``tomllib``, anything else as YAML.

    Args:
        config_path: Path to the config file (default: ``config.yml``).

    Returns:
        Validated ``SyncConfig``.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not path.exists():
        raise ConfigError(f"Config not found: {path}")

    try:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config {path}: top level must be a mapping")

    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}:\n{e}") from e
