"""
Mapping of store errors to HTTP responses.
"""

import logging
from typing import Any

from docstore.models.exceptions import ErrorKind, StoreError
from http_server.request import Request
from http_server.response import Response, error
from http_server.server import HTTPServer

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_NAME: 400,
    ErrorKind.INVALID_KEY: 400,
    ErrorKind.INVALID_VALUE: 400,
    ErrorKind.INVALID_QUERY: 400,
    ErrorKind.DUPLICATE_KEY: 409,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ENGINE_FAILURE: 500,
}


class BadRequest(Exception):
    """Malformed request outside the store's own validation (e.g. missing body)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def json_body(request: Request) -> dict[str, Any]:
    """
    The request body as a JSON object.

    Raises:
        BadRequest: If the body is missing or not a JSON object.
    """
    body = request.json_object
    if body is None:
        raise BadRequest("Request body must be a JSON object")
    return body


def register_error_handlers(server: HTTPServer) -> None:

    @server.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError) -> Response:
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error(f"Storage failure on {request.method} {request.path}: {exc.message}")
            return error(status, "Internal storage error", exc.kind.value)
        return error(status, exc.message, exc.kind.value)

    @server.exception_handler(BadRequest)
    async def bad_request(request: Request, exc: BadRequest) -> Response:
        return error(400, exc.message, "bad_request")
