"""
Settings overrides from the environment.

LOGMETRICS_CONTAINERS is comma-separated; LOGMETRICS_ORG_ID is sent both as the
orgid label and as the X-Scope-OrgID header.
"""

import os
from typing import Any

from .errors import ConfigError


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def get_default_containers() -> list[str] | None:
    """Container names from LOGMETRICS_CONTAINERS, or None when unset."""
    raw = _env("LOGMETRICS_CONTAINERS")
    if not raw:
        return None
    return [c.strip() for c in raw.split(",") if c.strip()]


def get_default_org_id() -> str | None:
    return _env("LOGMETRICS_ORG_ID") or None


def get_default_lines_per_cycle() -> int | None:
    raw = _env("LOGMETRICS_LINES_PER_CYCLE")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError("LOGMETRICS_LINES_PER_CYCLE must be an integer.") from None


def env_overrides() -> dict[str, Any]:
    """Non-empty LOGMETRICS_* values keyed by Settings field name."""
    return {
        "endpoint": _env("LOGMETRICS_ENDPOINT") or None,
        "containers": get_default_containers(),
        "org_id": get_default_org_id(),
        "lines_per_cycle": get_default_lines_per_cycle(),
    }
