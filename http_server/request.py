import json
from dataclasses import dataclass, field
from typing import Any

_UNPARSED = object()


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    query_params: dict[str, list]
    body: bytes
    version: str
    path_params: dict[str, str] = field(default_factory=dict)
    # Per-request values set by middleware (e.g. the authenticated admin)
    state: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self._json: Any = _UNPARSED

    @property
    def json(self) -> Any:
        """Parsed JSON body, or None if the body is empty or not valid JSON."""
        if self._json is _UNPARSED:
            try:
                self._json = json.loads(self.body) if self.body else None
            except (json.JSONDecodeError, UnicodeDecodeError):
                self._json = None
        return self._json

    @property
    def json_object(self) -> dict[str, Any] | None:
        """Parsed body if it is a JSON object, None otherwise."""
        body = self.json
        return body if isinstance(body, dict) else None

    def query(self, name: str, default: str | None = None) -> str | None:
        values = self.query_params.get(name)
        return values[0] if values else default

    def param(self, name: str) -> str:
        return self.path_params[name]

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def bearer_token(self) -> str | None:
        """Token from an 'Authorization: Bearer <token>' header, if well-formed."""
        auth = self.header("authorization")
        if not auth:
            return None

        parts = auth.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            return None
        return parts[1]
