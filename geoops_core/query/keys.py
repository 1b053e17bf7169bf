"""
Query keys — aliases that tie batched query results back to map locations.

A batched request names each sub-query with an alias. Aliases must be plain
identifiers, so the location guid has its hyphens removed and a non-numeric
prefix added (guids may start with a digit). The same function is applied
when building the request and when reading results back.
"""

DEFAULT_QUERY_PREFIX = "Q"


def encode_query_key(guid: str, prefix: str = DEFAULT_QUERY_PREFIX) -> str:
    """Derive the batched-query alias for a location guid."""
    return prefix + guid.replace("-", "")
