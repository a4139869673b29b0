"""
Pure domain layer.

This module contains the immutable records of the scheduling engine
with NO dependencies on:
- Persistence
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from backoffice_kernel.domain.repetition import RepetitionKind, RepetitionPolicy
from backoffice_kernel.domain.transactions import (
    CostCenterDistribution,
    GeneratedTransaction,
    TransactionStatus,
    TransactionTemplate,
    TransactionType,
    coerce_distributions,
)
from backoffice_kernel.domain.values import to_date, to_decimal

__all__ = [
    "CostCenterDistribution",
    "GeneratedTransaction",
    "RepetitionKind",
    "RepetitionPolicy",
    "TransactionStatus",
    "TransactionTemplate",
    "TransactionType",
    "coerce_distributions",
    "to_date",
    "to_decimal",
]
