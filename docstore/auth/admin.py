"""
Admin authentication: bcrypt password check and HS256 JWT sessions.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from docstore.config import Config
from http_server.request import Request
from http_server.response import Response, error

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(hours=24)
JWT_ALGORITHM = "HS256"
ADMIN_ROLE = "admin"
ADMIN_PREFIX = "/admin/"

NOT_CONFIGURED_MESSAGE = "Set ADMIN_EMAIL, ADMIN_PASSWORD, and JWT_SECRET environment variables"


def hash_password(password: str, rounds: int = 12) -> str:
    """bcrypt hash suitable for the ADMIN_PASSWORD setting."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class AdminAuth:
    """
    Single admin account configured through the environment.

    The password is held only as a bcrypt hash. Successful logins receive a
    JWT carrying {email, role: "admin", iat, exp}.
    """

    def __init__(
        self,
        email: str | None,
        password_hash: str | None,
        jwt_secret: str | None,
        ttl: timedelta = TOKEN_TTL,
    ) -> None:
        self._email = email
        self._password_hash = password_hash
        self._jwt_secret = jwt_secret
        self._ttl = ttl

    @classmethod
    def from_config(cls, config: Config) -> "AdminAuth":
        return cls(config.admin_email, config.admin_password, config.jwt_secret)

    @property
    def configured(self) -> bool:
        return bool(self._email and self._password_hash and self._jwt_secret)

    @property
    def email(self) -> str | None:
        return self._email

    def check_credentials(self, email: str, password: str) -> bool:
        if not self.configured:
            return False

        email_ok = hmac.compare_digest(email.encode("utf-8"), self._email.encode("utf-8"))
        try:
            password_ok = bcrypt.checkpw(password.encode("utf-8"), self._password_hash.encode("utf-8"))
        except ValueError:
            logger.error("ADMIN_PASSWORD is not a valid bcrypt hash")
            return False
        return email_ok and password_ok

    def issue_token(self, email: str) -> tuple[str, datetime]:
        """
        Returns:
            The encoded JWT and its expiry time.
        """
        if not self._jwt_secret:
            raise RuntimeError("JWT_SECRET is not configured")

        now = datetime.now(timezone.utc)
        expires_at = now + self._ttl
        token = jwt.encode(
            {"email": email, "role": ADMIN_ROLE, "iat": now, "exp": expires_at},
            self._jwt_secret,
            algorithm=JWT_ALGORITHM,
        )
        return token, expires_at

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Decoded payload of a valid, unexpired admin token, else None."""
        if not self._jwt_secret:
            return None

        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError:
            return None

        if payload.get("role") != ADMIN_ROLE:
            return None
        return payload

    def authenticate(self, request: Request) -> tuple[dict[str, Any] | None, Response | None]:
        """
        Check a request's admin Bearer token.

        Returns:
            (user, None) on success, (None, error response) otherwise.
        """
        if not request.header("authorization"):
            return None, error(401, "Unauthorized", "unauthorized", message="Missing Authorization header")

        token = request.bearer_token()
        if not token:
            return None, error(
                401, "Unauthorized", "unauthorized",
                message="Invalid Authorization header format. Expected: Bearer <jwt-token>",
            )

        payload = self.verify_token(token)
        if payload is None:
            return None, error(401, "Unauthorized", "unauthorized", message="Invalid or expired JWT token")

        return {"email": payload["email"], "role": payload["role"]}, None

    async def __call__(self, request: Request, call_next) -> Response:
        """Middleware: require an admin JWT on /admin/* routes."""
        if not request.path.startswith(ADMIN_PREFIX):
            return await call_next(request)

        if not self.configured:
            return error(
                500, "Admin authentication not configured", "admin_not_configured",
                message=NOT_CONFIGURED_MESSAGE,
            )

        user, failure = self.authenticate(request)
        if failure is not None:
            return failure

        request.state["admin_user"] = user
        return await call_next(request)
