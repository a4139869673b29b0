"""
Repetition -- how many monthly occurrences a template expands into.

Responsibility:
    Defines ``RepetitionKind`` and the ``RepetitionPolicy`` record that the
    recurrence generator consumes, including the count each kind resolves to.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``resolved_count >= 1`` for every constructible policy.
    - Unknown kinds are rejected at construction, never defaulted.

Failure modes:
    - InvalidRepetitionPolicyError for unknown kinds or a missing,
      non-integer or non-positive count where the kind requires one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from backoffice_kernel.exceptions import InvalidRepetitionPolicyError

SEMESTER_MONTHS = 6
YEAR_MONTHS = 12


class RepetitionKind(str, Enum):
    """Shape of a repetition request."""

    SINGLE_MONTH = "single-month"
    FIXED_COUNT = "fixed-count"
    SEMESTER = "semester"
    YEAR = "year"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Any, count: Any = None) -> RepetitionKind:
        """
        Parse a kind tag.

        Also accepts the clone-period tag ``month`` used by the assistant
        layer: without a count it means a single month, with a count it
        means that many consecutive months.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidRepetitionPolicyError(value, count, "kind must be a string")
        tag = value.strip().lower().replace("_", "-")
        if tag == "month":
            return cls.SINGLE_MONTH if count is None else cls.FIXED_COUNT
        try:
            return cls(tag)
        except ValueError:
            raise InvalidRepetitionPolicyError(value, count, "unknown repetition kind") from None

    @property
    def requires_count(self) -> bool:
        return self in (RepetitionKind.FIXED_COUNT, RepetitionKind.CUSTOM)


@dataclass(frozen=True)
class RepetitionPolicy:
    """
    Repetition request attached to a template.

    Contract:
        ``count`` is meaningful only for FIXED_COUNT and CUSTOM; it is
        ignored for SEMESTER (6) and YEAR (12), and SINGLE_MONTH is 1.
    Guarantees:
        - ``kind`` is a RepetitionKind.
        - ``resolved_count`` is a positive int.
    """

    kind: RepetitionKind
    count: int | None = None

    def __post_init__(self) -> None:
        kind = RepetitionKind.parse(self.kind, self.count)
        object.__setattr__(self, "kind", kind)
        if kind.requires_count:
            count = self.count
            if count is None:
                raise InvalidRepetitionPolicyError(kind.value, count, "count is required")
            if isinstance(count, bool) or not isinstance(count, int):
                raise InvalidRepetitionPolicyError(kind.value, count, "count must be an integer")
            if count < 1:
                raise InvalidRepetitionPolicyError(kind.value, count, "count must be at least 1")

    @property
    def resolved_count(self) -> int:
        match self.kind:
            case RepetitionKind.SINGLE_MONTH:
                return 1
            case RepetitionKind.SEMESTER:
                return SEMESTER_MONTHS
            case RepetitionKind.YEAR:
                return YEAR_MONTHS
            case _:
                return self.count

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RepetitionPolicy:
        """Build from ``{"kind": ..., "count": ...}`` or a clone-period ``{"type": ...}``."""
        kind = data.get("kind", data.get("type"))
        if kind is None:
            raise InvalidRepetitionPolicyError(None, data.get("count"), "kind is required")
        return cls(kind=kind, count=data.get("count"))

    @classmethod
    def single_month(cls) -> RepetitionPolicy:
        return cls(RepetitionKind.SINGLE_MONTH)

    @classmethod
    def months(cls, count: int) -> RepetitionPolicy:
        return cls(RepetitionKind.FIXED_COUNT, count)

    @classmethod
    def semester(cls) -> RepetitionPolicy:
        return cls(RepetitionKind.SEMESTER)

    @classmethod
    def year(cls) -> RepetitionPolicy:
        return cls(RepetitionKind.YEAR)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "count": self.count}
