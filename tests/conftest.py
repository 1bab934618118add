"""
Shared pytest fixtures for docstore tests.
"""

import asyncio
import json
import tempfile
from pathlib import Path
from urllib.parse import urlencode

import pytest
import pytest_asyncio

from docstore.api import build_server
from docstore.auth import hash_password
from docstore.config import Config
from docstore.engine import Store
from docstore.engine.lmdb_backend import LmdbBackend
from docstore.engine.registry import NamespaceRegistry
from docstore.files import FileStore

TEST_API_KEY = "test-api-key-0123456789abcdef"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"
JWT_SECRET = "test-jwt-secret"

# Small map so tests do not reserve a gigabyte of address space each
TEST_MAP_SIZE = 64 * 1024 * 1024


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest_asyncio.fixture
async def backend(temp_dir):
    """Provide an opened LMDB backend."""
    backend = LmdbBackend(str(Path(temp_dir) / "lmdb"), map_size=TEST_MAP_SIZE)
    await backend.open()
    try:
        yield backend
    finally:
        await backend.close()


@pytest_asyncio.fixture
async def registry(backend):
    """Provide an opened namespace registry."""
    registry = NamespaceRegistry(backend)
    await registry.open()
    return registry


@pytest_asyncio.fixture
async def store(temp_dir):
    """Provide an opened Store instance."""
    async with Store(str(Path(temp_dir) / "lmdb"), map_size=TEST_MAP_SIZE) as s:
        yield s


@pytest_asyncio.fixture
async def file_store(temp_dir):
    """Provide a FileStore rooted in a temporary directory."""
    return await FileStore.create(str(Path(temp_dir) / "storage"))


@pytest.fixture(scope="session")
def admin_password_hash():
    """bcrypt hash of ADMIN_PASSWORD; low cost factor to keep tests fast."""
    return hash_password(ADMIN_PASSWORD, rounds=4)


@pytest.fixture
def config(temp_dir, admin_password_hash):
    """Provide a test configuration with admin auth enabled."""
    return Config(
        host="127.0.0.1",
        port=0,
        lmdb_path=str(Path(temp_dir) / "lmdb"),
        storage_path=str(Path(temp_dir) / "storage"),
        lmdb_map_size=TEST_MAP_SIZE,
        api_keys=[TEST_API_KEY],
        admin_email=ADMIN_EMAIL,
        admin_password=admin_password_hash,
        jwt_secret=JWT_SECRET,
        max_body_size=1024 * 1024,
    )


class HTTPClient:
    """Simple raw-socket HTTP client for testing."""

    def __init__(self, host: str, port: int, token: str | None = None):
        self.host = host
        self.port = port
        self.token = token

    async def send(
        self,
        method: str,
        path: str,
        body: bytes = b"",
        headers: dict | None = None,
        authorized: bool = True,
    ) -> tuple[int, dict[str, str], bytes]:
        """Make an HTTP request and return status code, headers and raw body."""
        reader, writer = await asyncio.open_connection(self.host, self.port)

        try:
            all_headers = {"Host": self.host, "Content-Length": str(len(body))}
            if authorized and self.token:
                all_headers["Authorization"] = f"Bearer {self.token}"
            all_headers.update(headers or {})
            all_headers["Connection"] = "close"

            request_line = f"{method} {path} HTTP/1.1\r\n"
            header_lines = "".join(f"{k}: {v}\r\n" for k, v in all_headers.items())

            writer.write(request_line.encode() + header_lines.encode() + b"\r\n" + body)
            await writer.drain()

            raw = await reader.read()
        finally:
            writer.close()
            await writer.wait_closed()

        head, _, payload = raw.partition(b"\r\n\r\n")
        lines = head.decode().split("\r\n")
        status_code = int(lines[0].split(" ")[1])
        response_headers = {}
        for line in lines[1:]:
            key, _, value = line.partition(":")
            response_headers[key.strip().lower()] = value.strip()

        return status_code, response_headers, payload

    async def request(
        self,
        method: str,
        path: str,
        body: object = None,
        query_params: dict | None = None,
        headers: dict | None = None,
        authorized: bool = True,
    ) -> tuple[int, dict]:
        """Make an HTTP request and return status code and parsed JSON response."""
        if query_params:
            path += "?" + urlencode(query_params)

        body_bytes = b""
        extra = dict(headers or {})
        if body is not None:
            body_bytes = json.dumps(body).encode()
            extra.setdefault("Content-Type", "application/json")

        status_code, _, payload = await self.send(
            method, path, body_bytes, headers=extra, authorized=authorized
        )

        try:
            body_json = json.loads(payload) if payload else {}
        except json.JSONDecodeError:
            body_json = {"raw": payload.decode(errors="replace")}

        return status_code, body_json


@pytest_asyncio.fixture
async def api_server(config):
    """Start the full docstore HTTP server on a random port."""
    store = await Store.create(config.lmdb_path, map_size=config.lmdb_map_size)
    files = await FileStore.create(config.storage_path)
    server = build_server(config, store, files)

    test_server = await asyncio.start_server(server.handle_client, server.host, server.port)
    actual_port = test_server.sockets[0].getsockname()[1]

    client = HTTPClient(server.host, actual_port, token=TEST_API_KEY)

    try:
        yield client, store, files
    finally:
        test_server.close()
        await test_server.wait_closed()
        await store.close()
