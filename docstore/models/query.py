"""
Query options for listing documents and the byte range they resolve to.
"""

from dataclasses import dataclass
from typing import Any

from docstore.models.exceptions import InvalidQuery

DEFAULT_LIMIT = 1000
MAX_LIMIT = 10000


@dataclass(frozen=True)
class QueryOptions:
    """
    Logical listing options.

    Attributes:
        start_key: Inclusive lower bound, ignored when prefix is set.
        end_key: Exclusive upper bound, ignored when prefix is set.
        prefix: Only keys beginning with this string; takes precedence.
        limit: Maximum number of results (1..10000, default 1000).
    """

    start_key: str | None = None
    end_key: str | None = None
    prefix: str | None = None
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise InvalidQuery("limit must be a positive integer")
        if self.limit < 1:
            raise InvalidQuery("limit must be a positive integer")
        if self.limit > MAX_LIMIT:
            object.__setattr__(self, "limit", MAX_LIMIT)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "QueryOptions":
        """
        Build options from HTTP query parameters.

        Args:
            params: Mapping with optional startKey, endKey, prefix and limit
                string values.

        Raises:
            InvalidQuery: If limit is not a positive integer.
        """
        limit = DEFAULT_LIMIT
        raw_limit = params.get("limit")
        if raw_limit is not None and raw_limit != "":
            try:
                limit = int(raw_limit)
            except (TypeError, ValueError):
                raise InvalidQuery("limit must be a positive integer") from None

        return cls(
            start_key=params.get("startKey") or None,
            end_key=params.get("endKey") or None,
            prefix=params.get("prefix") or None,
            limit=limit,
        )


@dataclass(frozen=True)
class KeyRange:
    """A concrete ordered byte-range scan with a bounded result count."""

    start: bytes | None
    end: bytes | None
    limit: int
