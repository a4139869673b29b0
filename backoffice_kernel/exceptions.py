"""
Typed Exception Hierarchy for the Back-office Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the scheduling engine are form and assistant layers that have to
turn a failure into a precise message for the end user. Parsing message
strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.submit(template, policy, token)
    except Exception as e:
        if "100%" in str(e):
            reprompt()

Example - RIGHT way:
    try:
        service.submit(template, policy, token)
    except DistributionSumMismatchError as e:
        reprompt(f"Distributions total {e.actual_sum}%")
        api_response(code=e.code, actual_sum=str(e.actual_sum))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BackofficeError:

    BackofficeError (base)
    |
    +-- RecurrenceError
    |   +-- InvalidRepetitionPolicyError
    |   +-- InvalidAnchorDateError
    |
    +-- AllocationError
    |   +-- DistributionSumMismatchError
    |   +-- DuplicateCostCenterError
    |
    +-- BatchError
        +-- BatchAlreadySubmittedError
        +-- BatchPayloadMismatchError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Recurrence      | INVALID_REPETITION_POLICY   | Unknown kind, bad or oversized count
                | INVALID_ANCHOR_DATE         | Template due date cannot be parsed
----------------|-----------------------------|-----------------------------------------
Allocation      | DISTRIBUTION_SUM_MISMATCH   | Percentages do not total exactly 100
                | DUPLICATE_COST_CENTER       | Same cost center listed twice (reject)
----------------|-----------------------------|-----------------------------------------
Batch           | BATCH_ALREADY_SUBMITTED     | Token already handed to the sink
                | BATCH_PAYLOAD_MISMATCH      | Same token, different batch contents

===============================================================================
HANDLING PATTERNS
===============================================================================

1. RECURRENCE ERRORS are programmer or caller errors. Nothing was generated,
   so there is nothing to roll back:

    except RecurrenceError as e:
        log.error("schedule_rejected", extra={"code": e.code})
        raise

2. ALLOCATION ERRORS are user-correctable. Re-prompt instead of aborting:

    except DistributionSumMismatchError as e:
        return {"error": e.code, "actual_sum": str(e.actual_sum)}

3. IDEMPOTENCY: a replayed request token with the same payload is success.
"""

from decimal import Decimal


class BackofficeError(Exception):
    """
    Base exception for all back-office kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BACKOFFICE_ERROR"


# Recurrence-related exceptions


class RecurrenceError(BackofficeError):
    """Base exception for recurrence generation errors."""

    code: str = "RECURRENCE_ERROR"


class InvalidRepetitionPolicyError(RecurrenceError):
    """Repetition policy is malformed (unknown kind, bad count)."""

    code: str = "INVALID_REPETITION_POLICY"

    def __init__(self, kind: object, count: object, reason: str):
        self.kind = kind
        self.count = count
        self.reason = reason
        super().__init__(
            f"Invalid repetition policy (kind={kind!r}, count={count!r}): {reason}"
        )


class InvalidAnchorDateError(RecurrenceError):
    """Template due date could not be parsed into a calendar date."""

    code: str = "INVALID_ANCHOR_DATE"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid anchor date: {value!r}")


# Allocation-related exceptions


class AllocationError(BackofficeError):
    """Base exception for cost-center allocation errors."""

    code: str = "ALLOCATION_ERROR"


class DistributionSumMismatchError(AllocationError):
    """
    Cost-center percentages do not total exactly 100.

    Over- and under-allocation share this error; ``actual_sum`` tells the
    caller which one happened.
    """

    code: str = "DISTRIBUTION_SUM_MISMATCH"

    def __init__(self, actual_sum: Decimal):
        self.actual_sum = actual_sum
        super().__init__(
            f"Cost center distributions must total 100%; got {actual_sum}%"
        )


class DuplicateCostCenterError(AllocationError):
    """A cost center appears more than once in a distribution list."""

    code: str = "DUPLICATE_COST_CENTER"

    def __init__(self, cost_center_ids: tuple[str, ...]):
        self.cost_center_ids = cost_center_ids
        super().__init__(
            f"Duplicate cost centers in distribution: {', '.join(cost_center_ids)}"
        )


# Batch-related exceptions


class BatchError(BackofficeError):
    """Base exception for batch submission errors."""

    code: str = "BATCH_ERROR"


class BatchAlreadySubmittedError(BatchError):
    """
    A batch with this request token was already handed to the sink.

    Raised by sinks that enforce the token themselves; the batch service
    treats it as success when the payload matches.
    """

    code: str = "BATCH_ALREADY_SUBMITTED"

    def __init__(self, request_token: str):
        self.request_token = request_token
        super().__init__(f"Batch already submitted: {request_token}")


class BatchPayloadMismatchError(BatchError):
    """
    Request token reused with different batch contents.

    This is a protocol violation: a token identifies exactly one batch.
    """

    code: str = "BATCH_PAYLOAD_MISMATCH"

    def __init__(self, request_token: str, expected_hash: str, received_hash: str):
        self.request_token = request_token
        self.expected_hash = expected_hash
        self.received_hash = received_hash
        super().__init__(
            f"Payload mismatch for batch {request_token}: "
            f"expected {expected_hash}, received {received_hash}"
        )
