"""
Environment-driven configuration.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_API_KEY = "dev-key-change-in-production"

# Production refuses keys shorter than this
MIN_PRODUCTION_KEY_LENGTH = 20


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    host: str = "0.0.0.0"
    port: int = 3000
    env: str = "development"
    lmdb_path: str = "./data/lmdb"
    storage_path: str = "./data/storage"
    lmdb_map_size: int = 1024 * 1024 * 1024
    lmdb_max_dbs: int = 1024
    api_keys: list[str] = field(default_factory=lambda: [DEFAULT_API_KEY])
    admin_email: str | None = None
    admin_password: str | None = None  # bcrypt hash
    jwt_secret: str | None = None
    auto_create_namespaces: bool = False
    max_body_size: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """
        Build configuration from environment variables.

        Raises:
            ValueError: If a numeric variable is not an integer.
        """
        environ = os.environ if environ is None else environ

        return cls(
            host=environ.get("HOST", "0.0.0.0"),
            port=_int(environ, "PORT", 3000),
            env=environ.get("APP_ENV", "development"),
            lmdb_path=environ.get("LMDB_PATH", "./data/lmdb"),
            storage_path=environ.get("STORAGE_PATH", "./data/storage"),
            lmdb_map_size=_int(environ, "LMDB_MAP_SIZE", 1024 * 1024 * 1024),
            lmdb_max_dbs=_int(environ, "LMDB_MAX_DBS", 1024),
            api_keys=_split_list(environ.get("API_KEYS", DEFAULT_API_KEY)),
            admin_email=environ.get("ADMIN_EMAIL") or None,
            admin_password=environ.get("ADMIN_PASSWORD") or None,
            jwt_secret=environ.get("JWT_SECRET") or None,
            auto_create_namespaces=_bool(environ, "AUTO_CREATE_NAMESPACES"),
            max_body_size=_int(environ, "MAX_BODY_SIZE", 10 * 1024 * 1024),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def admin_auth_configured(self) -> bool:
        return bool(self.admin_email and self.admin_password and self.jwt_secret)

    def insecure_api_keys(self) -> list[str]:
        """Configured keys that must not be used in production."""
        return [
            key
            for key in self.api_keys
            if key.startswith("dev-") or len(key) < MIN_PRODUCTION_KEY_LENGTH
        ]

    def safe_env(self) -> dict[str, str]:
        """Settings that are safe to display; secrets reduced to flags."""
        return {
            "APP_ENV": self.env,
            "HOST": self.host,
            "PORT": str(self.port),
            "LMDB_PATH": self.lmdb_path,
            "STORAGE_PATH": self.storage_path,
            "ADMIN_AUTH_CONFIGURED": "true" if self.admin_auth_configured else "false",
            "API_KEYS_CONFIGURED": "true" if self.api_keys else "false",
        }
