"""
Credential store - hashed API keys in the reserved __system keyspace.
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from typing import Any

from docstore.engine.planner import prefix_upper_bound
from docstore.interfaces.backend import KeyValueBackend, Transaction
from docstore.models.credential import Credential, GeneratedKey
from docstore.models.exceptions import NotFound
from docstore.models.validation import validate_credential_name

logger = logging.getLogger(__name__)

CREDENTIALS_KEYSPACE = "__system"
RECORD_PREFIX = b"key:"
SECRET_PREFIX = "hm_"

# 16 random bytes = 128 bits of entropy
SECRET_BYTES = 16


def hash_secret(secret: str) -> str:
    """One-way hash of a raw API key (hex SHA-256)."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _record_key(id: str) -> bytes:
    return RECORD_PREFIX + id.encode("utf-8")


class CredentialStore:
    """
    Generates, lists, validates and revokes API keys.

    The raw secret exists only in the value returned by generate(); records
    hold its SHA-256 digest plus metadata.
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend
        self._keyspace: Any = None

    async def open(self) -> None:
        self._keyspace = await self._backend.keyspace(CREDENTIALS_KEYSPACE)

    def _scan_all(self, txn: Transaction) -> list[Credential]:
        records = txn.scan(self._keyspace, RECORD_PREFIX, prefix_upper_bound(RECORD_PREFIX))
        return [Credential.from_bytes(data) for _, data in records]

    async def generate(self, name: str | None = None) -> GeneratedKey:
        """
        Create a new API key.

        Args:
            name: Optional label (1-100 characters).

        Returns:
            The id, the raw secret and the label. The secret cannot be
            retrieved again.
        """
        validate_credential_name(name)

        id = str(uuid.uuid4())
        secret = SECRET_PREFIX + secrets.token_hex(SECRET_BYTES)
        credential = Credential.new(id=id, key_hash=hash_secret(secret), name=name)

        await self._backend.write(
            lambda txn: txn.put(self._keyspace, _record_key(id), bytes(credential))
        )
        logger.info(f"Generated API key {id}")
        return GeneratedKey(id=id, key=secret, name=credential.name)

    async def validate(self, secret: str) -> bool:
        """
        Check a candidate secret against every stored key.

        Each comparison is constant-time and the scan never stops early, so
        timing does not reveal where (or whether) a match was found.
        """
        if not isinstance(secret, str) or not secret:
            return False

        candidate = hash_secret(secret).encode("ascii")
        credentials = await self._backend.read(self._scan_all)

        valid = False
        for credential in credentials:
            valid |= hmac.compare_digest(candidate, credential.key_hash.encode("ascii"))
        return valid

    async def revoke(self, id: str) -> None:
        """
        Raises:
            NotFound: If no key with this id exists.
        """

        def _revoke(txn: Transaction) -> None:
            if not txn.delete(self._keyspace, _record_key(id)):
                raise NotFound(f"API key '{id}' not found")

        await self._backend.write(_revoke)
        logger.info(f"Revoked API key {id}")

    async def count(self) -> int:
        return await self._backend.read(lambda txn: txn.count(self._keyspace))

    async def list(self) -> list[dict[str, Any]]:
        """Return key metadata, newest first. Hashes are never included."""
        credentials = await self._backend.read(self._scan_all)
        credentials.sort(key=lambda c: c.created_at, reverse=True)
        return [credential.public() for credential in credentials]
