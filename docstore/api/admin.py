"""
Admin session routes (/login, /logout, /me, /admin-status) and the JWT
protected admin dashboard routes under /admin.
"""

import logging
import platform
import sys
import time

from docstore.api.credentials import generate_key, list_keys, revoke_key
from docstore.api.data import create_document
from docstore.api.errors import BadRequest
from docstore.auth.admin import NOT_CONFIGURED_MESSAGE, AdminAuth
from docstore.config import Config
from docstore.engine.store import Store
from docstore.files.bucket_store import FileStore
from docstore.models.exceptions import NotFound
from http_server.request import Request
from http_server.response import Response, error
from http_server.server import HTTPServer

logger = logging.getLogger(__name__)

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 B"
    exponent = 0
    scaled = float(size)
    while scaled >= 1024 and exponent < len(BYTE_UNITS) - 1:
        scaled /= 1024
        exponent += 1
    scaled = round(scaled, 1)
    if scaled == int(scaled):
        scaled = int(scaled)
    return f"{scaled} {BYTE_UNITS[exponent]}"


def register_session_routes(server: HTTPServer, admin: AdminAuth) -> None:

    @server.route('/login', ['POST'])
    async def login(request: Request) -> Response | dict:
        if not admin.configured:
            return error(
                500, "Admin authentication not configured", "admin_not_configured",
                message=NOT_CONFIGURED_MESSAGE,
            )

        body = request.json_object
        if body is None:
            raise BadRequest("Invalid JSON body")

        email, password = body.get("email"), body.get("password")
        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            raise BadRequest("Email and password are required")

        if not admin.check_credentials(email, password):
            logger.warning("Failed admin login attempt")
            return error(401, "Invalid credentials", "unauthorized")

        token, expires_at = admin.issue_token(email)
        logger.info("Admin logged in")
        return {
            "ok": True,
            "token": token,
            "expiresAt": expires_at.isoformat().replace("+00:00", "Z"),
        }

    @server.route('/logout', ['POST'])
    async def logout(request: Request) -> dict:
        # Tokens are stateless; the client discards its copy
        return {
            "ok": True,
            "message": "Logged out successfully. Please discard your token on the client side.",
        }

    @server.route('/me', ['GET'])
    async def me(request: Request) -> Response | dict:
        user, failure = admin.authenticate(request)
        if failure is not None:
            return failure
        return {"ok": True, "user": user}

    @server.route('/admin-status', ['GET'])
    async def admin_status(request: Request) -> dict:
        configured = admin.configured
        return {
            "ok": True,
            "configured": configured,
            "message": (
                "Admin authentication is configured"
                if configured
                else "Admin authentication not configured. Set ADMIN_EMAIL, ADMIN_PASSWORD, and JWT_SECRET."
            ),
        }


def register_admin_routes(
    server: HTTPServer, config: Config, store: Store, files: FileStore, started_at: float
) -> None:
    # Admin writes create missing databases on demand
    admin_documents = store.documents.with_auto_create()

    @server.route('/admin/stats', ['GET'])
    async def stats(request: Request) -> dict:
        db_stats = await store.stats()
        usage = await files.usage()
        return {
            "ok": True,
            **db_stats,
            "storageUsage": format_bytes(usage["storageBytes"]),
            "storageBytes": usage["storageBytes"],
            "totalFiles": usage["totalFiles"],
            "buckets": usage["buckets"],
            "storagePath": files.root,
            "pythonVersion": sys.version.split()[0],
            "platform": platform.system().lower(),
            "uptime": int(time.monotonic() - started_at),
        }

    @server.route('/admin/databases', ['GET'])
    async def databases(request: Request) -> dict:
        result = []
        for name in await store.namespaces.list():
            try:
                info = await store.namespaces.info(name)
                keys = await store.documents.count(name)
            except NotFound:
                # Deleted since it was listed
                continue
            result.append({"name": name, "keys": keys, "created": info.created_at.isoformat()})
        return {"ok": True, "databases": result}

    @server.route('/admin/dbs/{db}/docs', ['POST'])
    async def write_document(request: Request) -> Response:
        return await create_document(admin_documents, request)

    @server.route('/admin/storage', ['GET'])
    async def storage(request: Request) -> dict:
        return {"ok": True, "files": await files.all_files()}

    @server.route('/admin/keys', ['GET'])
    async def keys(request: Request) -> dict:
        return await list_keys(store.credentials)

    @server.route('/admin/keys', ['POST'])
    async def create_key(request: Request) -> Response:
        return await generate_key(store.credentials, request)

    @server.route('/admin/keys/{id}', ['DELETE'])
    async def delete_key(request: Request) -> dict:
        return await revoke_key(store.credentials, request)

    @server.route('/admin/env', ['GET'])
    async def env(request: Request) -> dict:
        return {"ok": True, "env": config.safe_env()}
