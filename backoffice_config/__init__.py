"""
backoffice_config -- single public entrypoint for scheduling configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings.
    This package sits above ``backoffice_kernel`` / ``backoffice_engines``
    and below ``backoffice_services``.  The kernel and engines MUST NEVER
    import from ``backoffice_config``; services pass values into engine
    constructors.

Failure modes:
    - ``FileNotFoundError`` -- the configured file does not exist.
    - ``ValueError`` -- schema validation failures.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every ``get_active_config()`` call emits a ``BACKOFFICE_CONFIG_TRACE``
    log entry with the config id, version, checksum and source path.
"""

from __future__ import annotations

import os
from pathlib import Path

from backoffice_config.loader import load_config, parse_config
from backoffice_config.schema import SchedulingConfig
from backoffice_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "BACKOFFICE_CONFIG"
_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> SchedulingConfig:
    """
    Return the active scheduling configuration.

    Resolution order: explicit ``path``, then the ``BACKOFFICE_CONFIG``
    environment variable, then the packaged ``defaults.yaml``.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_FILE
    source = Path(path)
    config = load_config(source)

    _logger.info("BACKOFFICE_CONFIG_TRACE", extra={
        "trace_type": "BACKOFFICE_CONFIG_TRACE",
        "config_id": config.config_id,
        "config_version": config.version,
        "checksum": config.checksum,
        "source": str(source),
        "max_occurrences": config.max_occurrences,
        "duplicate_cost_center_policy": config.duplicate_cost_center_policy,
    })
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "SchedulingConfig",
    "get_active_config",
    "load_config",
    "parse_config",
]
