"""
Idempotency key generation utilities.

A batch of generated transactions is keyed by a client-generated request
token so that a double-submitted form produces exactly one batch.
"""


def generate_idempotency_key(
    company_id: str,
    operation: str,
    request_token: str,
) -> str:
    """
    Generate an idempotency key for a batch submission.

    Format: company_id:operation:request_token

    Args:
        company_id: Tenant the batch belongs to ("*" when unscoped).
        operation: Operation name, e.g. "transactions.schedule".
        request_token: Client-generated token, unique per user action.

    Returns:
        Idempotency key string.

    Example:
        >>> generate_idempotency_key("acme", "transactions.schedule", "f3c1")
        'acme:transactions.schedule:f3c1'
    """
    if not request_token:
        raise ValueError("Request token is required for idempotent submission")
    return f"{company_id}:{operation}:{request_token}"

