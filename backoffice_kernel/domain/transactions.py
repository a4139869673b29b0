"""
Transactions -- typed records for templates, occurrences and cost-center lines.

Responsibility:
    Defines the immutable records that flow through the scheduling engine:
    ``TransactionTemplate`` (the prototype a caller builds),
    ``GeneratedTransaction`` (one concrete occurrence) and
    ``CostCenterDistribution`` (one allocation line).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by engines and services. No outward dependencies except
    ``backoffice_kernel.domain.values`` and ``backoffice_kernel.exceptions``.

Invariants enforced:
    - Records are explicit, typed fields (no open attribute maps).
    - ``amount`` and ``percentage`` are Decimal; floats are rejected.
    - ``percentage`` lies in [0, 100].
    - ``due_date`` is a calendar date; an unparseable value raises
      ``InvalidAnchorDateError`` at construction, before any generation.

Failure modes:
    - InvalidAnchorDateError for an unparseable due date.
    - ValueError for bad amounts, percentages, enum values or issue dates.

Audit relevance:
    ``to_dict()`` is the plain-data shape handed to the persistence
    collaborator and the input to batch payload hashing, so it must be
    deterministic for equal records.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from backoffice_kernel.domain.values import HUNDRED, ZERO, to_date, to_decimal
from backoffice_kernel.exceptions import InvalidAnchorDateError


class TransactionType(str, Enum):
    """Direction of a financial transaction."""

    EXPENSE = "expense"
    REVENUE = "revenue"


class TransactionStatus(str, Enum):
    """Settlement status. Carried through generation unchanged."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


# snake_case field -> camelCase key used by the surrounding application
_CAMEL_KEYS: dict[str, str] = {
    "due_date": "dueDate",
    "issue_date": "issueDate",
    "person_id": "personId",
    "chart_account_id": "chartAccountId",
    "payment_method_id": "paymentMethodId",
    "bank_account_id": "bankAccountId",
    "cost_center_id": "costCenterId",
    "cost_center_distributions": "costCenterDistributions",
    "is_recurring": "isRecurring",
    "occurrence_index": "occurrenceIndex",
    "occurrence_count": "occurrenceCount",
}


def _lookup(data: Mapping[str, Any], name: str) -> tuple[bool, Any]:
    if name in data:
        return True, data[name]
    camel = _CAMEL_KEYS.get(name)
    if camel is not None and camel in data:
        return True, data[camel]
    return False, None


@dataclass(frozen=True)
class CostCenterDistribution:
    """
    One cost-center allocation line on a transaction.

    Contract:
        Frozen dataclass pairing an opaque cost-center reference with the
        percentage of the transaction attributed to it.
    Guarantees:
        - ``percentage`` is a Decimal in [0, 100].
    Non-goals:
        - Does not check that ``cost_center_id`` exists anywhere.
        - Does not know about sibling lines; list-level rules live in
          ``backoffice_engines.cost_center``.
    """

    cost_center_id: str
    percentage: Decimal

    def __post_init__(self) -> None:
        if not self.cost_center_id:
            raise ValueError("cost_center_id is required")
        pct = to_decimal(self.percentage, "percentage")
        if pct < ZERO or pct > HUNDRED:
            raise ValueError(f"Percentage must be between 0 and 100, got {pct}")
        object.__setattr__(self, "percentage", pct)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CostCenterDistribution:
        found, cost_center_id = _lookup(data, "cost_center_id")
        if not found:
            raise ValueError(f"Distribution missing costCenterId: {dict(data)!r}")
        if "percentage" not in data:
            raise ValueError(f"Distribution missing percentage: {dict(data)!r}")
        return cls(cost_center_id=str(cost_center_id), percentage=data["percentage"])

    def to_dict(self) -> dict[str, str]:
        return {"costCenterId": self.cost_center_id, "percentage": str(self.percentage)}


def coerce_distributions(
    items: Iterable[CostCenterDistribution | Mapping[str, Any]] | None,
) -> tuple[CostCenterDistribution, ...]:
    """Accept distribution records or plain mappings, preserving order."""
    if not items:
        return ()
    return tuple(
        item if isinstance(item, CostCenterDistribution)
        else CostCenterDistribution.from_dict(item)
        for item in items
    )


class _TransactionRecord:
    """Shared normalisation for template and occurrence records."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TransactionType(self.type))
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        try:
            due = to_date(self.due_date)
        except (TypeError, ValueError) as e:
            raise InvalidAnchorDateError(self.due_date) from e
        object.__setattr__(self, "due_date", due)
        if self.issue_date is not None:
            object.__setattr__(self, "issue_date", to_date(self.issue_date))
        object.__setattr__(self, "status", TransactionStatus(self.status))
        object.__setattr__(self, "tags", tuple(self.tags or ()))
        object.__setattr__(
            self,
            "cost_center_distributions",
            coerce_distributions(self.cost_center_distributions),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain camelCase record for the persistence collaborator."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, date):
                value = value.isoformat()
            elif f.name == "cost_center_distributions":
                value = [d.to_dict() for d in value]
            elif f.name == "tags":
                value = list(value)
            out[_CAMEL_KEYS.get(f.name, f.name)] = value
        return out


@dataclass(frozen=True)
class TransactionTemplate(_TransactionRecord):
    """
    Prototype transaction used as the basis for generation.

    Contract:
        Built by the caller per invocation. The day-of-month of
        ``due_date`` anchors every generated occurrence.
    Guarantees:
        - ``amount`` is an exact Decimal with the caller's scale preserved.
        - ``due_date`` is a ``date``; ``issue_date`` is a ``date`` or None.
    Non-goals:
        - Attribution references (person, chart of account, payment method,
          bank account, cost center) are opaque and never dereferenced.
    """

    type: TransactionType
    amount: Decimal
    due_date: date
    title: str = ""
    description: str = ""
    issue_date: date | None = None
    person_id: str | None = None
    chart_account_id: str | None = None
    payment_method_id: str | None = None
    bank_account_id: str | None = None
    cost_center_id: str | None = None
    cost_center_distributions: tuple[CostCenterDistribution, ...] = ()
    tags: tuple[str, ...] = ()
    status: TransactionStatus = TransactionStatus.PENDING
    is_recurring: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TransactionTemplate:
        """
        Build a template from a plain record (camelCase or snake_case keys).

        Keys that are not template fields are ignored; the surrounding
        application attaches its own (company, series, request) identifiers.

        Raises:
            InvalidAnchorDateError: ``dueDate`` missing or unparseable; it
                anchors every occurrence, so it fails as a recurrence error.
            ValueError: any other malformed field, ``issueDate`` included,
                like every other value-object construction error.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            found, value = _lookup(data, f.name)
            if found and value is not None:
                kwargs[f.name] = value
        for required in ("type", "amount", "due_date"):
            if required not in kwargs:
                if required == "due_date":
                    raise InvalidAnchorDateError(None)
                raise ValueError(f"Transaction template missing {required!r}")
        return cls(**kwargs)

    def with_distributions(
        self, distributions: Iterable[CostCenterDistribution | Mapping[str, Any]]
    ) -> TransactionTemplate:
        return replace(self, cost_center_distributions=coerce_distributions(distributions))


@dataclass(frozen=True)
class GeneratedTransaction(_TransactionRecord):
    """
    One concrete occurrence produced from a template.

    Contract:
        Every template field, with ``due_date`` set to the occurrence's
        month and ``issue_date`` always present.
    Guarantees:
        - ``0 <= occurrence_index < occurrence_count``.
    Non-goals:
        - Carries no identity or back-reference to the template; series
          identifiers, IDs and timestamps belong to the persistence side.
    """

    type: TransactionType
    amount: Decimal
    due_date: date
    issue_date: date
    occurrence_index: int
    occurrence_count: int
    title: str = ""
    description: str = ""
    person_id: str | None = None
    chart_account_id: str | None = None
    payment_method_id: str | None = None
    bank_account_id: str | None = None
    cost_center_id: str | None = None
    cost_center_distributions: tuple[CostCenterDistribution, ...] = ()
    tags: tuple[str, ...] = ()
    status: TransactionStatus = TransactionStatus.PENDING
    is_recurring: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        if not 0 <= self.occurrence_index < self.occurrence_count:
            raise ValueError(
                f"occurrence_index {self.occurrence_index} outside "
                f"[0, {self.occurrence_count})"
            )

    def with_distributions(
        self, distributions: Iterable[CostCenterDistribution | Mapping[str, Any]]
    ) -> GeneratedTransaction:
        return replace(self, cost_center_distributions=coerce_distributions(distributions))


TEMPLATE_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(TransactionTemplate))
