"""
API key authentication for the data and storage routes.
"""

import hmac
import logging
from collections.abc import Iterable

from docstore.config import Config
from docstore.engine.credentials import CredentialStore
from http_server.request import Request
from http_server.response import Response, error

logger = logging.getLogger(__name__)

# Routes reachable without an API key. /admin/* is guarded by the admin JWT.
PUBLIC_PATHS = frozenset({"/health", "/login", "/logout", "/me", "/admin-status"})
PUBLIC_PREFIXES = ("/auth", "/admin")


def is_public(path: str) -> bool:
    if path in PUBLIC_PATHS:
        return True
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PUBLIC_PREFIXES)


class InsecureApiKeys(Exception):
    """Raised at startup when production runs with development-grade keys."""


def validate_production_api_keys(config: Config) -> None:
    """
    Refuse to start in production with default or weak API keys.

    Raises:
        InsecureApiKeys: If any configured key starts with "dev-" or is
            shorter than 20 characters while APP_ENV=production.
    """
    if not config.is_production:
        logger.warning("Running in development mode with potentially insecure API keys")
        return

    insecure = config.insecure_api_keys()
    if insecure:
        for position, key in enumerate(config.api_keys, start=1):
            if key in insecure:
                # Identify by position only; key material never reaches the log
                logger.error(f"Insecure API key configured: API_KEYS entry #{position} ({len(key)} characters)")
        raise InsecureApiKeys(
            f"{len(insecure)} insecure API key(s) detected in production; "
            "keys must be at least 20 characters and must not start with 'dev-'"
        )


class ApiKeyAuth:
    """
    Accepts a Bearer token that is either a statically configured key or a
    key issued by the credential store.
    """

    def __init__(self, static_keys: Iterable[str], credentials: CredentialStore) -> None:
        self._static_keys = [key.encode("utf-8") for key in static_keys]
        self._credentials = credentials

    def _is_static_key(self, token: str) -> bool:
        candidate = token.encode("utf-8")
        found = False
        for key in self._static_keys:
            found |= hmac.compare_digest(candidate, key)
        return found

    async def is_valid(self, token: str) -> bool:
        if self._is_static_key(token):
            return True
        return await self._credentials.validate(token)

    async def __call__(self, request: Request, call_next) -> Response:
        """Middleware: reject non-public requests without a valid API key."""
        if is_public(request.path):
            return await call_next(request)

        if not request.header("authorization"):
            return error(401, "Authorization header required", "unauthorized")

        token = request.bearer_token()
        if not token:
            return error(401, "API key required", "unauthorized")

        if not await self.is_valid(token):
            logger.info(f"Rejected invalid API key for {request.method} {request.path}")
            return error(401, "Invalid API key", "unauthorized")

        return await call_next(request)
