"""
Assembles the HTTP server: middleware, error handlers and every route group.
"""

import logging
import time
from datetime import datetime, timezone

from docstore import __version__
from docstore.api.admin import register_admin_routes, register_session_routes
from docstore.api.credentials import register_credential_routes
from docstore.api.data import register_data_routes
from docstore.api.errors import register_error_handlers
from docstore.api.storage import register_storage_routes
from docstore.auth.admin import AdminAuth
from docstore.auth.api_keys import ApiKeyAuth
from docstore.config import Config
from docstore.engine.store import Store
from docstore.files.bucket_store import FileStore
from http_server.request import Request
from http_server.server import HTTPServer

logger = logging.getLogger(__name__)


def build_server(config: Config, store: Store, files: FileStore) -> HTTPServer:
    """
    Create an HTTPServer with all docstore routes registered.

    Args:
        config: Runtime configuration.
        store: Opened document/credential store.
        files: Opened file store.

    Returns:
        Server ready for start().
    """
    server = HTTPServer(host=config.host, port=config.port, max_body_size=config.max_body_size)
    started_at = time.monotonic()
    admin = AdminAuth.from_config(config)

    server.middleware(ApiKeyAuth(config.api_keys, store.credentials))
    server.middleware(admin)
    register_error_handlers(server)

    @server.route('/health', ['GET'])
    async def health(request: Request) -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": round(time.monotonic() - started_at, 3),
            "version": __version__,
            "adminAuth": "configured" if admin.configured else "not configured",
        }

    register_data_routes(server, store)
    register_credential_routes(server, store.credentials)
    register_storage_routes(server, files)
    register_session_routes(server, admin)
    register_admin_routes(server, config, store, files, started_at)

    logger.debug(f"Registered {len(server.routes)} routes")
    return server
