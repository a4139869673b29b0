"""
Configuration Loader (``backoffice_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a typed
``SchedulingConfig``.  Runtime callers go through
``backoffice_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` with descriptive messages; unknown
  sections or keys are rejected rather than ignored.
* The parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from backoffice_config.schema import SchedulingConfig

_SECTIONS: dict[str, tuple[str, ...]] = {
    "recurrence": ("max_occurrences",),
    "allocation": ("duplicate_cost_center_policy", "amount_places"),
}
_TOP_LEVEL = ("config_id", "version", *_SECTIONS)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed configuration mapping."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _require_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value


def parse_config(data: dict[str, Any]) -> SchedulingConfig:
    """
    Parse a ``SchedulingConfig`` from a dict.

    Missing keys fall back to the schema defaults.

    Raises:
        ValueError: on unknown keys, wrong types, or out-of-range values.
    """
    unknown = set(data) - set(_TOP_LEVEL)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    if "config_id" in data:
        kwargs["config_id"] = str(data["config_id"])
    if "version" in data:
        kwargs["version"] = _require_int(data["version"], "version")

    for section, keys in _SECTIONS.items():
        body = data.get(section) or {}
        if not isinstance(body, dict):
            raise ValueError(f"Section {section!r} must be a mapping")
        unknown = set(body) - set(keys)
        if unknown:
            raise ValueError(
                f"Unknown keys in {section!r}: {', '.join(sorted(unknown))}"
            )
        for key in keys:
            if key not in body:
                continue
            value = body[key]
            if key == "duplicate_cost_center_policy":
                kwargs[key] = str(value).strip().lower()
            else:
                kwargs[key] = _require_int(value, f"{section}.{key}")

    kwargs["checksum"] = compute_checksum(data)
    return SchedulingConfig(**kwargs)


def load_config(path: Path | str) -> SchedulingConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(Path(path)))
