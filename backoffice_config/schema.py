"""
SchedulingConfig schema.

Human-authored YAML is parsed into these frozen types by the loader.
The engines never read configuration themselves; services pass the
relevant values into engine constructors.
"""

from __future__ import annotations

from dataclasses import dataclass

VALID_DUPLICATE_POLICIES = ("allow", "merge", "reject")


@dataclass(frozen=True)
class SchedulingConfig:
    """Runtime configuration for the scheduling and allocation engines."""

    config_id: str = "backoffice-default"
    version: int = 1
    max_occurrences: int = 120
    duplicate_cost_center_policy: str = "reject"
    amount_places: int = 2
    checksum: str = ""

    def __post_init__(self) -> None:
        if self.max_occurrences < 1:
            raise ValueError(
                f"max_occurrences must be at least 1, got {self.max_occurrences}"
            )
        if self.duplicate_cost_center_policy not in VALID_DUPLICATE_POLICIES:
            raise ValueError(
                f"duplicate_cost_center_policy must be one of "
                f"{', '.join(VALID_DUPLICATE_POLICIES)}, "
                f"got {self.duplicate_cost_center_policy!r}"
            )
        if self.amount_places < 0:
            raise ValueError(f"amount_places must be >= 0, got {self.amount_places}")
