"""
Document model and the JSON codec used for stored values.
"""

import json
from dataclasses import dataclass
from typing import Any

from docstore.models.exceptions import InvalidValue


def encode_value(value: Any) -> bytes:
    """
    Serialize a document value for storage.

    Any JSON shape is accepted, including None. NaN and infinities are
    rejected because they would not survive a round-trip through strict JSON
    clients.

    Raises:
        InvalidValue: If the value is not JSON-serializable.
    """
    try:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        # Lone surrogates survive dumps but not UTF-8 encoding
        return text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidValue(f"Document value must be JSON-serializable: {e}") from None


def decode_value(data: bytes) -> Any:
    """Deserialize a stored document value."""
    return json.loads(data.decode("utf-8"))


@dataclass(frozen=True)
class Document:
    """
    A key/value record owned by exactly one namespace.

    Attributes:
        key: Unique key within the namespace.
        value: Arbitrary JSON value (object, array, string, number, bool, None).
    """

    key: str
    value: Any

    @classmethod
    def from_record(cls, key: bytes, data: bytes) -> "Document":
        return cls(key=key.decode("utf-8"), value=decode_value(data))

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}
