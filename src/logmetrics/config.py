"""
Configuration for the load generator.

Settings are loaded from config/config.yaml under the resources root, then
overridden by LOGMETRICS_* environment variables (see defaults.py), then by
CLI flags. When running from source, resource/ at project root is used. When
the package is installed, set LOGMETRICS_ROOT to a directory containing
config/, or point LOGMETRICS_CONFIG at a config file directly.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .defaults import env_overrides
from .errors import ConfigError
from .state.metric_store import DEFAULT_BUCKET_BOUNDS

DEFAULT_ENDPOINT = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_INTERVAL_MS = 1000.0


def get_resources_root() -> Path:
    """Return the root directory for config resources.

    Resolution order:
    1. LOGMETRICS_ROOT env var (must contain config/)
    2. resource/ under directory containing pyproject.toml (when running from source)
    3. logmetrics/resources/ next to this package (when installed)
    """
    env_root = os.environ.get("LOGMETRICS_ROOT")
    if env_root:
        p = Path(env_root).resolve()
        if p.is_dir():
            return p
    here = Path(__file__).resolve().parent
    for candidate in [here, *here.parents]:
        if (candidate / "pyproject.toml").is_file():
            return candidate / "resource"
    return here / "resources"


def default_config_path() -> Path:
    env_path = os.environ.get("LOGMETRICS_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    return get_resources_root() / "config" / "config.yaml"


def load_yaml(path: Path, default: Any = None) -> Any:
    """Load YAML file; return default on missing file or parse error."""
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return default
    return data if isinstance(data, dict) else default


@dataclass
class Settings:
    """Everything the generators and the sender need for one run."""

    endpoint: str = DEFAULT_ENDPOINT
    containers: list[str] = field(default_factory=list)
    org_id: str = ""
    lines_per_cycle: int = 0
    lines: list[str] = field(default_factory=list)
    bucket_bounds: tuple[float, ...] = DEFAULT_BUCKET_BOUNDS
    headers: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    interval_ms: float = DEFAULT_INTERVAL_MS
    workers: int = 1

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _str_list(data: dict[str, Any], key: str) -> list[str] | None:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(raw)


def _number(data: dict[str, Any], key: str, kind: type) -> Any:
    raw = data.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigError(f"'{key}' must be a number, got {raw!r}")
    if kind is int and not float(raw).is_integer():
        raise ConfigError(f"'{key}' must be an integer, got {raw!r}")
    return kind(raw)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings from a parsed config mapping; unknown keys are ignored."""
    settings = Settings()
    endpoint = data.get("endpoint")
    if endpoint is not None and not isinstance(endpoint, str):
        raise ConfigError("'endpoint' must be a string")
    org_id = data.get("org_id")
    if org_id is not None and not isinstance(org_id, str):
        raise ConfigError("'org_id' must be a string")

    bounds = data.get("bucket_bounds")
    if bounds is not None:
        if not isinstance(bounds, list) or not all(
            isinstance(b, (int, float)) and not isinstance(b, bool) for b in bounds
        ):
            raise ConfigError("'bucket_bounds' must be a list of numbers")
        bounds = tuple(float(b) for b in bounds)

    headers = data.get("headers")
    if headers is not None:
        if not isinstance(headers, dict):
            raise ConfigError("'headers' must be a mapping")
        headers = {str(k): str(v) for k, v in headers.items()}

    return settings.with_overrides(
        endpoint=endpoint,
        containers=_str_list(data, "containers"),
        org_id=org_id,
        lines_per_cycle=_number(data, "lines_per_cycle", int),
        lines=_str_list(data, "lines"),
        bucket_bounds=bounds,
        headers=headers,
        timeout_seconds=_number(data, "timeout_seconds", float),
        interval_ms=_number(data, "interval_ms", float),
        workers=_number(data, "workers", int),
    )


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML, then apply LOGMETRICS_* environment overrides."""
    config_path = Path(path) if path else default_config_path()
    if path and not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")
    settings = settings_from_dict(load_yaml(config_path))
    return settings.with_overrides(**env_overrides())
