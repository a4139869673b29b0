"""
Module: backoffice_engines.recurrence
Responsibility:
    Expand one transaction template into the ordered sequence of monthly
    occurrences described by a repetition policy, with calendar-correct
    due dates.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import backoffice_kernel.

Invariants enforced:
    - Count: ``len(result) == policy.resolved_count``.
    - Ordering: due dates strictly ascending; index 0 is the template's
      own month.
    - Month-end clamping: the anchor day is reduced to the last day of a
      shorter target month, never overflowing into the next month.
    - All-or-nothing: every check runs before the first occurrence is
      built, so callers never see a partial sequence.
    - Purity: no clock access; the template's due date is the only anchor.

Failure modes:
    - InvalidRepetitionPolicyError on a count above ``max_occurrences``
      (policy construction already rejects unknown kinds and bad counts).
    - InvalidAnchorDateError surfaces from template construction.

Usage:
    from backoffice_engines.recurrence import RecurrenceGenerator
    from backoffice_kernel.domain import RepetitionPolicy, TransactionTemplate

    generator = RecurrenceGenerator()
    occurrences = generator.generate(
        TransactionTemplate(type="expense", amount="1000.00", due_date="2024-01-31"),
        RepetitionPolicy.year(),
    )
"""

from __future__ import annotations

import calendar
from datetime import date

from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.repetition import RepetitionPolicy
from backoffice_kernel.domain.transactions import (
    TEMPLATE_FIELDS,
    GeneratedTransaction,
    TransactionTemplate,
)
from backoffice_kernel.exceptions import InvalidRepetitionPolicyError
from backoffice_kernel.logging_config import get_logger

logger = get_logger("engines.recurrence")

DEFAULT_MAX_OCCURRENCES = 120


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in ``month`` of ``year`` (leap years included)."""
    return calendar.monthrange(year, month)[1]


def add_months(anchor: date, months: int, anchor_day: int | None = None) -> date:
    """
    Shift ``anchor`` by ``months`` calendar months, clamping at month end.

    Args:
        anchor: Starting date; supplies year and month.
        months: Non-negative or negative month offset.
        anchor_day: Day to aim for before clamping (defaults to ``anchor.day``).
    """
    day = anchor.day if anchor_day is None else anchor_day
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day, last_day_of_month(year, month)))


def resolve_occurrence_count(
    policy: RepetitionPolicy,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> int:
    """
    Number of occurrences ``policy`` expands into.

    Raises:
        InvalidRepetitionPolicyError: when the count exceeds ``max_occurrences``.
    """
    count = policy.resolved_count
    if count > max_occurrences:
        raise InvalidRepetitionPolicyError(
            policy.kind.value,
            count,
            f"count exceeds the maximum of {max_occurrences} occurrences",
        )
    return count


class RecurrenceGenerator:
    """
    Generate monthly occurrences of a transaction template.

    Contract:
        Pure, deterministic; a fresh call always recomputes from the
        template's current due date.
    Guarantees:
        - Every template field is cloned unchanged except ``due_date``,
          ``issue_date`` (mirrored only when the template has none) and
          ``is_recurring`` (true for series longer than one).
        - Amounts are the template's Decimal, never re-derived.
    Non-goals:
        - Does not assign identifiers or series references.
        - Does not validate cost-center distributions (see
          ``backoffice_engines.cost_center``).
    """

    def __init__(self, max_occurrences: int = DEFAULT_MAX_OCCURRENCES):
        if max_occurrences < 1:
            raise ValueError("max_occurrences must be at least 1")
        self.max_occurrences = max_occurrences

    @traced_engine("recurrence", "1.0", fingerprint_fields=("template", "policy"))
    def generate(
        self,
        template: TransactionTemplate,
        policy: RepetitionPolicy,
    ) -> tuple[GeneratedTransaction, ...]:
        """
        Expand ``template`` according to ``policy``.

        Returns:
            Tuple of occurrences in ascending due-date order.
        """
        count = resolve_occurrence_count(policy, self.max_occurrences)
        anchor = template.due_date

        logger.info("recurrence_started", extra={
            "kind": policy.kind.value,
            "occurrence_count": count,
            "anchor_date": anchor.isoformat(),
            "amount": str(template.amount),
        })

        base = {name: getattr(template, name) for name in TEMPLATE_FIELDS}
        occurrences: list[GeneratedTransaction] = []
        for index in range(count):
            due = add_months(anchor, index, anchor_day=anchor.day)
            values = dict(base)
            values["due_date"] = due
            values["issue_date"] = template.issue_date or due
            values["is_recurring"] = template.is_recurring or count > 1
            occurrences.append(
                GeneratedTransaction(
                    occurrence_index=index,
                    occurrence_count=count,
                    **values,
                )
            )

        clamped = sum(1 for occ in occurrences if occ.due_date.day != anchor.day)
        logger.info("recurrence_completed", extra={
            "kind": policy.kind.value,
            "occurrence_count": len(occurrences),
            "first_due_date": occurrences[0].due_date.isoformat(),
            "last_due_date": occurrences[-1].due_date.isoformat(),
            "clamped_count": clamped,
        })
        return tuple(occurrences)


def generate(
    template: TransactionTemplate,
    policy: RepetitionPolicy,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> tuple[GeneratedTransaction, ...]:
    """Convenience wrapper around ``RecurrenceGenerator.generate``."""
    return RecurrenceGenerator(max_occurrences).generate(template, policy)
