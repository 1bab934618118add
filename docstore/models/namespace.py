"""
Namespace metadata record.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class NamespaceInfo:
    """
    Metadata stored for each namespace in the registry keyspace.

    Attributes:
        name: Namespace name (case-sensitive).
        created_at: Creation time in UTC.
    """

    name: str
    created_at: datetime

    @classmethod
    def new(cls, name: str) -> "NamespaceInfo":
        return cls(name=name, created_at=datetime.now(timezone.utc))

    def __bytes__(self) -> bytes:
        return json.dumps(
            {"name": self.name, "created": self.created_at.isoformat()}
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "NamespaceInfo":
        record = json.loads(data.decode("utf-8"))
        return cls(name=record["name"], created_at=datetime.fromisoformat(record["created"]))
