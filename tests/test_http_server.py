"""
Tests for the asyncio HTTP server: routing, middleware and error handling.
"""

import asyncio
import json

import pytest
import pytest_asyncio

from http_server.request import Request
from http_server.response import Response, error, response
from http_server.server import HTTPServer, compile_path, normalize_path


def make_request(method: str, path: str, body: bytes = b"", headers: dict | None = None) -> Request:
    return Request(
        method=method,
        path=path,
        headers=headers or {},
        query_params={},
        body=body,
        version="HTTP/1.1",
    )


def payload(resp: Response) -> dict:
    return json.loads(resp.body)


class TestPathMatching:
    """Route patterns and path normalisation."""

    def test_compile_path(self):
        pattern = compile_path("/dbs/{db}/docs/{id}")
        m = pattern.match("/dbs/users/docs/42")
        assert m.groupdict() == {"db": "users", "id": "42"}
        assert pattern.match("/dbs/users/docs") is None
        assert pattern.match("/dbs/users/docs/42/extra") is None

    def test_literal_segments_escaped(self):
        assert compile_path("/a.b").match("/aXb") is None

    def test_normalize_path(self):
        assert normalize_path("/dbs/") == "/dbs"
        assert normalize_path("/") == "/"


class TestRequest:
    """Request helpers."""

    def test_bearer_token(self):
        assert make_request("GET", "/", headers={"authorization": "Bearer abc"}).bearer_token() == "abc"
        assert make_request("GET", "/", headers={"authorization": "bearer abc"}).bearer_token() == "abc"
        assert make_request("GET", "/", headers={"authorization": "Basic abc"}).bearer_token() is None
        assert make_request("GET", "/", headers={"authorization": "Bearer a b"}).bearer_token() is None
        assert make_request("GET", "/").bearer_token() is None

    def test_query_param_and_header(self):
        request = make_request("GET", "/", headers={"content-type": "text/plain"})
        request.query_params = {"limit": ["5", "6"]}
        request.path_params = {"id": "abc"}
        assert request.query("limit") == "5"
        assert request.query("missing", "d") == "d"
        assert request.param("id") == "abc"
        assert request.header("Content-Type") == "text/plain"
        assert request.header("x-none") is None

    def test_json_body(self):
        assert make_request("POST", "/", body=b'{"a": 1}').json_object == {"a": 1}
        assert make_request("POST", "/", body=b"[1]").json_object is None
        assert make_request("POST", "/", body=b"{not json").json is None
        assert make_request("POST", "/", body=b"").json is None


class TestDispatch:
    """Routing through handle_request."""

    @pytest.fixture
    def server(self):
        server = HTTPServer()

        @server.route("/items/{id}", ["GET"])
        async def get_item(request: Request) -> dict:
            return {"id": request.param("id")}

        @server.route("/items", ["POST"])
        async def create_item(request: Request) -> Response:
            return response(status_code=201).json({"ok": True})

        @server.route("/boom", ["GET"])
        async def boom(request: Request) -> dict:
            raise RuntimeError("secret internals")

        return server

    async def test_path_params(self, server):
        resp = await server.handle_request(make_request("GET", "/items/abc"))
        assert resp.status == 200
        assert payload(resp) == {"id": "abc"}

    async def test_path_params_percent_decoded(self, server):
        resp = await server.handle_request(make_request("GET", "/items/a%20b%2Fc"))
        assert payload(resp) == {"id": "a b/c"}

    async def test_explicit_status(self, server):
        resp = await server.handle_request(make_request("POST", "/items"))
        assert resp.status == 201

    async def test_unknown_route(self, server):
        resp = await server.handle_request(make_request("GET", "/nope"))
        assert resp.status == 404
        body = payload(resp)
        assert body["ok"] is False
        assert body["error"] == "Not Found"

    async def test_wrong_method(self, server):
        resp = await server.handle_request(make_request("DELETE", "/items/abc"))
        assert resp.status == 405

    async def test_unhandled_exception_hidden(self, server):
        """Test that crashes become a generic 500 without leaking details."""
        resp = await server.handle_request(make_request("GET", "/boom"))
        assert resp.status == 500
        assert payload(resp)["code"] == "internal_error"
        assert b"secret internals" not in resp.body

    async def test_exception_handler_matches_subclasses(self, server):
        class Base(Exception):
            pass

        class Child(Base):
            pass

        @server.exception_handler(Base)
        async def handle(request: Request, exc: Exception) -> Response:
            return error(418, type(exc).__name__, "teapot")

        @server.route("/child", ["GET"])
        async def child(request: Request) -> dict:
            raise Child()

        resp = await server.handle_request(make_request("GET", "/child"))
        assert resp.status == 418
        assert payload(resp)["error"] == "Child"

    async def test_middleware_order_and_short_circuit(self, server):
        calls = []

        @server.middleware
        async def outer(request, call_next):
            calls.append("outer")
            return await call_next(request)

        @server.middleware
        async def inner(request, call_next):
            calls.append("inner")
            if request.path == "/items/blocked":
                return error(401, "Unauthorized", "unauthorized")
            request.state["seen"] = True
            return await call_next(request)

        resp = await server.handle_request(make_request("GET", "/items/blocked"))
        assert resp.status == 401
        assert calls == ["outer", "inner"]

        request = make_request("GET", "/items/ok")
        resp = await server.handle_request(request)
        assert resp.status == 200
        assert request.state["seen"] is True


class TestWire:
    """Real socket round-trips."""

    @pytest_asyncio.fixture
    async def running(self):
        server = HTTPServer(host="127.0.0.1", port=0, max_body_size=16)

        @server.route("/echo", ["POST"])
        async def echo(request: Request) -> Response:
            return response().raw(request.body)

        tcp = await asyncio.start_server(server.handle_client, server.host, server.port)
        port = tcp.sockets[0].getsockname()[1]
        try:
            yield port
        finally:
            tcp.close()
            await tcp.wait_closed()

    async def _send(self, port: int, raw: bytes) -> bytes:
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        try:
            writer.write(raw)
            await writer.drain()
            return await reader.read()
        finally:
            writer.close()
            await writer.wait_closed()

    async def test_echo(self, running):
        raw = await self._send(
            running,
            b"POST /echo HTTP/1.1\r\nContent-Length: 5\r\nConnection: close\r\n\r\nhello",
        )
        assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
        assert raw.endswith(b"\r\n\r\nhello")

    async def test_body_too_large(self, running):
        raw = await self._send(
            running,
            b"POST /echo HTTP/1.1\r\nContent-Length: 100\r\n\r\n",
        )
        assert raw.startswith(b"HTTP/1.1 413 Payload Too Large\r\n")
        assert b'"ok": false' in raw

    async def test_malformed_content_length(self, running):
        raw = await self._send(
            running,
            b"POST /echo HTTP/1.1\r\nContent-Length: zz\r\n\r\n",
        )
        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        assert b"connection: close" in raw
        assert b'"code": "bad_request"' in raw

    async def test_negative_content_length(self, running):
        raw = await self._send(
            running,
            b"POST /echo HTTP/1.1\r\nContent-Length: -5\r\n\r\n",
        )
        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    async def test_non_utf8_request_line(self, running):
        raw = await self._send(running, b"GET /\xff\xfe HTTP/1.1\r\n\r\n")
        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    async def test_truncated_request_line(self, running):
        raw = await self._send(running, b"GET\r\n\r\n")
        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")
