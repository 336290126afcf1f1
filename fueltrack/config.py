"""Settings loaded from an optional YAML file and environment variables."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ValidationError

DEFAULT_CONFIG_FILE = "fueltrack.yaml"

# Environment variable -> setting name
ENV_VARS = {
    "FUELTRACK_DATA_FILE": "data_file",
    "FUELTRACK_QUEUE_FILE": "queue_file",
    "FUELTRACK_USER": "user_id",
    "FUELTRACK_ALLOW_ROLLBACK": "allow_odometer_rollback",
    "FUELTRACK_MAX_RETRIES": "queue_max_retries",
    "SECRET_KEY": "secret_key",
}


@dataclass
class Settings:
    data_file: Path = Path("data/fueltrack.yaml")
    queue_file: Path = Path("data/offline-queue.yaml")
    user_id: Optional[str] = None
    entry_limit: int = 100
    analytics_entry_limit: int = 200
    allow_odometer_rollback: bool = True
    queue_max_retries: int = 3
    alert_window_days: int = 30
    secret_key: str = "dev-secret-key-change-in-prod"


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw config or environment value to the setting's type."""
    default = getattr(Settings, name, None)
    if name in ("data_file", "queue_file"):
        return Path(value)
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Setting {name} must be an integer, got {value!r}")
    return value


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build settings from defaults, then the config file, then the environment.

    The file is `path`, else $FUELTRACK_CONFIG, else ./fueltrack.yaml if it
    exists. Keys in the file use the setting names (e.g. data_file).
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    config_path = path or environ.get("FUELTRACK_CONFIG")
    if config_path is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_path = DEFAULT_CONFIG_FILE
    if config_path is not None:
        with open(config_path, "r") as fp:
            raw = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        known = {f.name for f in fields(Settings)}
        for key, value in raw.items():
            if key not in known:
                raise ValidationError(f"Unknown setting in {config_path}: {key}")
            values[key] = _coerce(key, value)

    for var, name in ENV_VARS.items():
        if environ.get(var):
            values[name] = _coerce(name, environ[var])

    return Settings(**values)
