"""
Module: backoffice_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``backoffice_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import backoffice_kernel (and sibling engine modules).
    MUST NOT import backoffice_services or backoffice_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
      The template's due date is the only calendar anchor.
    - Decimal-only arithmetic for amounts and percentages.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` (see
    ``backoffice_engines.tracer``) and emit BACKOFFICE_ENGINE_TRACE records.

Usage:
    from backoffice_engines import RecurrenceGenerator, validate_distributions
"""

from backoffice_engines.cost_center import (
    CostCenterAllocator,
    DistributionValidation,
    DuplicatePolicy,
    attributed_amount,
    require_valid_distributions,
    shape_distributions,
    split_evenly,
    validate_distributions,
)
from backoffice_engines.recurrence import (
    DEFAULT_MAX_OCCURRENCES,
    RecurrenceGenerator,
    add_months,
    generate,
    last_day_of_month,
    resolve_occurrence_count,
)
from backoffice_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "DEFAULT_MAX_OCCURRENCES",
    "CostCenterAllocator",
    "DistributionValidation",
    "DuplicatePolicy",
    "RecurrenceGenerator",
    "add_months",
    "attributed_amount",
    "compute_input_fingerprint",
    "generate",
    "last_day_of_month",
    "require_valid_distributions",
    "resolve_occurrence_count",
    "shape_distributions",
    "split_evenly",
    "traced_engine",
    "validate_distributions",
]
