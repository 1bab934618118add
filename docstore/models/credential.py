"""
API key credential records.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

DEFAULT_CREDENTIAL_NAME = "Unnamed key"


@dataclass(frozen=True)
class Credential:
    """
    A stored API key. Only the hash of the secret is ever persisted.

    Attributes:
        id: Opaque unique identifier (UUID4 string).
        key_hash: Hex SHA-256 digest of the raw secret.
        name: Human-readable label.
        created_at: Creation time in UTC.
    """

    id: str
    key_hash: str
    name: str
    created_at: datetime

    @classmethod
    def new(cls, id: str, key_hash: str, name: str | None = None) -> "Credential":
        return cls(
            id=id,
            key_hash=key_hash,
            name=name or DEFAULT_CREDENTIAL_NAME,
            created_at=datetime.now(timezone.utc),
        )

    def __bytes__(self) -> bytes:
        return json.dumps(
            {
                "id": self.id,
                "keyHash": self.key_hash,
                "name": self.name,
                "created": self.created_at.isoformat(),
            }
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Credential":
        record = json.loads(data.decode("utf-8"))
        return cls(
            id=record["id"],
            key_hash=record["keyHash"],
            name=record["name"],
            created_at=datetime.fromisoformat(record["created"]),
        )

    def public(self) -> dict[str, Any]:
        """Listing view: metadata only, no hash."""
        return {"id": self.id, "name": self.name, "created": self.created_at.isoformat()}


@dataclass(frozen=True)
class GeneratedKey:
    """Result of generating a key; the only place the raw secret appears."""

    id: str
    key: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "key": self.key, "name": self.name}
