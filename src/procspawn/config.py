"""Configuration loading for procspawn."""

import logging
import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from procspawn.errors import ConfigError
from procspawn.models import SpawnConfig

log = logging.getLogger(__name__)

CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config") / "procspawn"
CONFIG_FILE = CONFIG_DIR / "config.toml"

ENV_OVERRIDES = {
    "PROCSPAWN_SHELL": "shell",
    "PROCSPAWN_NULL_DEVICE": "null_device",
    "PROCSPAWN_ENCODING": "encoding",
}


def _read_config_file(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    log.debug("loaded config from %s", path)
    return data


def load_config(path: Path | None = None) -> SpawnConfig:
    """Load config from the TOML file, then apply environment overrides."""
    data = _read_config_file(CONFIG_FILE if path is None else path)
    for env_key, field in ENV_OVERRIDES.items():
        value = os.environ.get(env_key, "").strip()
        if value:
            data[field] = value
    try:
        return SpawnConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid procspawn configuration: {e}") from e
