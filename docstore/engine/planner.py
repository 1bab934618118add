"""
Query/range planner - turns logical list options into a byte-range scan.
"""

from docstore.models.query import KeyRange, QueryOptions


def prefix_upper_bound(prefix: bytes) -> bytes | None:
    """
    Compute the exclusive upper bound of all keys beginning with prefix.

    Trailing 0xFF bytes cannot be incremented, so they are dropped and the
    byte before them is incremented instead. UTF-8 never produces 0xFF, so a
    bound always exists for string prefixes, including ones ending in the
    highest code points.

    Args:
        prefix: Encoded prefix.

    Returns:
        The smallest byte string greater than every key starting with prefix,
        or None when no such bound exists (scan to end of keyspace).
    """
    stripped = prefix.rstrip(b"\xff")
    if not stripped:
        return None
    return stripped[:-1] + bytes([stripped[-1] + 1])


def _encode(key: str | None) -> bytes | None:
    return key.encode("utf-8") if key is not None else None


def plan(options: QueryOptions) -> KeyRange:
    """
    Resolve list options into a concrete range.

    A non-empty prefix takes precedence over start/end keys. Without a
    prefix, start_key/end_key are used verbatim; without either, the whole
    keyspace is scanned.
    """
    if options.prefix:
        start = options.prefix.encode("utf-8")
        return KeyRange(start=start, end=prefix_upper_bound(start), limit=options.limit)

    return KeyRange(
        start=_encode(options.start_key),
        end=_encode(options.end_key),
        limit=options.limit,
    )
