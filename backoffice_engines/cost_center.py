"""
Module: backoffice_engines.cost_center
Responsibility:
    Validate and shape the cost-center distribution attached to a
    transaction, and attribute transaction amounts to cost centers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import backoffice_kernel.

Invariants enforced:
    - A distribution list is either empty (the transaction's single
      ``cost_center_id`` takes 100%) or sums to exactly 100.
    - Exact Decimal arithmetic; there is no tolerance band.
    - One implementation for create and edit: both paths go through
      ``validate_distributions``.

Failure modes:
    - DistributionSumMismatchError (from ``require_valid_distributions``, or
      from merging duplicates past 100) carrying the actual sum.
    - DuplicateCostCenterError when shaping under the ``reject`` policy.
    - ValueError from ``CostCenterDistribution`` on out-of-range lines.

Usage:
    from backoffice_engines.cost_center import validate_distributions

    result = validate_distributions([
        {"costCenterId": "A", "percentage": 60},
        {"costCenterId": "B", "percentage": 39},
    ])
    result.is_valid     # False
    result.actual_sum   # Decimal("99")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.transactions import (
    CostCenterDistribution,
    GeneratedTransaction,
    TransactionTemplate,
    TransactionType,
    coerce_distributions,
)
from backoffice_kernel.domain.values import HUNDRED, ZERO, to_decimal
from backoffice_kernel.exceptions import (
    DistributionSumMismatchError,
    DuplicateCostCenterError,
)
from backoffice_kernel.logging_config import get_logger

logger = get_logger("engines.cost_center")

DistributionInput = Iterable[CostCenterDistribution | Mapping[str, Any]]


class DuplicatePolicy(str, Enum):
    """What storage shaping does with a cost center listed twice."""

    ALLOW = "allow"  # Keep lines as entered
    MERGE = "merge"  # Sum percentages into the first line
    REJECT = "reject"  # Raise DuplicateCostCenterError


@dataclass(frozen=True)
class DistributionValidation:
    """
    Outcome of validating one distribution list.

    Contract:
        ``is_valid`` is True iff the list is empty or sums to exactly 100.
    Guarantees:
        - ``actual_sum`` is the exact Decimal sum (0 for an empty list).
        - ``remaining == 100 - actual_sum``; negative when over-allocated.
    """

    is_valid: bool
    actual_sum: Decimal
    entry_count: int

    @property
    def remaining(self) -> Decimal:
        return HUNDRED - self.actual_sum

    @property
    def message(self) -> str:
        if self.is_valid:
            return ""
        return f"Cost center distributions must total 100%; got {self.actual_sum}%"


def validate_distributions(distributions: DistributionInput) -> DistributionValidation:
    """
    Check the exact-100 invariant.

    Duplicate cost centers are neither merged nor rejected here; that is a
    storage decision (see ``shape_distributions``).
    """
    lines = coerce_distributions(distributions)
    if not lines:
        return DistributionValidation(is_valid=True, actual_sum=ZERO, entry_count=0)

    total = sum((line.percentage for line in lines), ZERO)
    return DistributionValidation(
        is_valid=total == HUNDRED,
        actual_sum=total,
        entry_count=len(lines),
    )


def require_valid_distributions(
    distributions: DistributionInput,
) -> tuple[CostCenterDistribution, ...]:
    """
    Validate and return the distribution lines.

    Raises:
        DistributionSumMismatchError: if the lines do not total exactly 100.
    """
    lines = coerce_distributions(distributions)
    result = validate_distributions(lines)
    if not result.is_valid:
        logger.warning("distribution_sum_mismatch", extra={
            "actual_sum": str(result.actual_sum),
            "entry_count": result.entry_count,
        })
        raise DistributionSumMismatchError(result.actual_sum)
    return lines


def split_evenly(cost_center_ids: Sequence[str]) -> tuple[CostCenterDistribution, ...]:
    """
    Default distribution for freshly picked cost centers.

    Each line gets ``floor(100 / n)``; the remainder goes to the first line,
    so the result always totals exactly 100.
    """
    if not cost_center_ids:
        return ()
    share, remainder = divmod(100, len(cost_center_ids))
    return tuple(
        CostCenterDistribution(cc_id, share + remainder if i == 0 else share)
        for i, cc_id in enumerate(cost_center_ids)
    )


def shape_distributions(
    distributions: DistributionInput,
    duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.REJECT,
) -> tuple[CostCenterDistribution, ...]:
    """
    Shape a distribution list for storage.

    Zero-percent lines are dropped. Duplicates are handled per
    ``duplicate_policy``; merged lines keep the position of their first
    appearance. The exact-100 check is left to ``require_valid_distributions``,
    except that a merge totalling over 100 raises the same
    ``DistributionSumMismatchError`` instead of building an impossible line.
    """
    policy = DuplicatePolicy(duplicate_policy)
    lines = [line for line in coerce_distributions(distributions) if line.percentage != ZERO]

    seen: dict[str, Decimal] = {}
    duplicates: list[str] = []
    for line in lines:
        if line.cost_center_id in seen:
            if line.cost_center_id not in duplicates:
                duplicates.append(line.cost_center_id)
            seen[line.cost_center_id] += line.percentage
        else:
            seen[line.cost_center_id] = line.percentage

    if not duplicates or policy is DuplicatePolicy.ALLOW:
        return tuple(lines)
    if policy is DuplicatePolicy.REJECT:
        raise DuplicateCostCenterError(tuple(duplicates))

    # MERGE -- a merged line above 100 means the list as a whole is over-allocated
    total = sum(seen.values(), ZERO)
    if total > HUNDRED:
        raise DistributionSumMismatchError(total)
    return tuple(CostCenterDistribution(cc_id, pct) for cc_id, pct in seen.items())


def attributed_amount(
    amount: Decimal | str | int,
    cost_center_id: str,
    distributions: DistributionInput = (),
    fallback_cost_center_id: str | None = None,
    places: int = 2,
) -> Decimal:
    """
    Share of ``amount`` attributed to ``cost_center_id``.

    With distributions, each matching line contributes ``amount * pct / 100``.
    Without, the transaction's single ``fallback_cost_center_id`` takes the
    whole amount. The result is rounded ROUND_HALF_UP to ``places``.
    """
    value = to_decimal(amount, "amount")
    quantum = Decimal(10) ** -places
    lines = coerce_distributions(distributions)
    if not lines:
        share = value if fallback_cost_center_id == cost_center_id else ZERO
        return share.quantize(quantum, rounding=ROUND_HALF_UP)

    pct = sum(
        (line.percentage for line in lines if line.cost_center_id == cost_center_id),
        ZERO,
    )
    return (value * pct / HUNDRED).quantize(quantum, rounding=ROUND_HALF_UP)


class CostCenterAllocator:
    """
    Create/edit gate and reporting helper for cost-center distributions.

    Contract:
        ``check_for_create`` and ``check_for_edit`` apply the same shaping
        and the same exact-100 validation.
    Guarantees:
        - Returned lines are shaped per ``duplicate_policy`` and total 100
          (or are empty).
    Non-goals:
        - Does not resolve cost-center identifiers against a registry.
    """

    def __init__(
        self,
        duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.REJECT,
        amount_places: int = 2,
    ):
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self.amount_places = amount_places

    @traced_engine("cost_center", "1.0", fingerprint_fields=("distributions",))
    def check_for_create(
        self, distributions: DistributionInput
    ) -> tuple[CostCenterDistribution, ...]:
        """Gate for a new transaction's distributions."""
        return self._check(distributions, operation="create")

    @traced_engine("cost_center", "1.0", fingerprint_fields=("distributions",))
    def check_for_edit(
        self,
        transaction: TransactionTemplate | GeneratedTransaction,
        distributions: DistributionInput,
    ) -> tuple[CostCenterDistribution, ...]:
        """Gate for replacing an existing transaction's distributions."""
        logger.info("distribution_edit_requested", extra={
            "previous_entry_count": len(transaction.cost_center_distributions),
        })
        return self._check(distributions, operation="edit")

    def _check(
        self, distributions: DistributionInput, operation: str
    ) -> tuple[CostCenterDistribution, ...]:
        shaped = shape_distributions(distributions, self.duplicate_policy)
        lines = require_valid_distributions(shaped)
        logger.info("distribution_validated", extra={
            "operation": operation,
            "entry_count": len(lines),
            "duplicate_policy": self.duplicate_policy.value,
        })
        return lines

    def totals_by_cost_center(
        self,
        transactions: Iterable[TransactionTemplate | GeneratedTransaction],
        transaction_type: TransactionType | str | None = TransactionType.EXPENSE,
    ) -> dict[str, Decimal]:
        """
        Sum attributed amounts per cost center.

        Transactions of other types are skipped unless ``transaction_type``
        is None. Cost centers appear in first-seen order.
        """
        wanted = TransactionType(transaction_type) if transaction_type is not None else None
        totals: dict[str, Decimal] = {}
        for txn in transactions:
            if wanted is not None and txn.type is not wanted:
                continue
            if txn.cost_center_distributions:
                targets = dict.fromkeys(d.cost_center_id for d in txn.cost_center_distributions)
            elif txn.cost_center_id:
                targets = {txn.cost_center_id: None}
            else:
                continue
            for cc_id in targets:
                share = attributed_amount(
                    txn.amount,
                    cc_id,
                    txn.cost_center_distributions,
                    fallback_cost_center_id=txn.cost_center_id,
                    places=self.amount_places,
                )
                totals[cc_id] = totals.get(cc_id, ZERO) + share
        return totals
