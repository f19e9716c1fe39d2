"""Mutation result envelope."""

from typing import Any, Optional

CORRELATION_KEY = "client_mutation_id"


def format_mutation_result(
    client_mutation_id: Optional[str],
    type_name: str,
    record: Any,
    correlation_key: str = CORRELATION_KEY,
) -> dict[str, Any]:
    """
    Build ``{<correlation_key>: token, <type_name>: record}``.

    A missing token stays None; it is never defaulted.
    """
    return {
        correlation_key: client_mutation_id,
        type_name: record,
    }
