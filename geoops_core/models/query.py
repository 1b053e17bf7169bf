"""Batched query descriptors."""

from typing import Union

from pydantic import BaseModel

NOT_AVAILABLE = "N/A"

ComparisonValue = Union[float, str]


class QueryDescriptor(BaseModel):
    """One aliased query inside a batched request."""

    key: str      # Encoded alias, see query.keys.encode_query_key
    query: str
