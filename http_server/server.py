import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional
from urllib.parse import parse_qs, unquote, urlparse

from .request import Request
from .response import Response, error

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[object]]
Middleware = Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]
ExceptionHandler = Callable[[Request, Exception], Awaitable[Response]]

PARAM_PATTERN = re.compile(r"\{(\w+)\}")


class RequestTooLarge(Exception):
    pass


class MalformedRequest(Exception):
    """Request line, headers or Content-Length could not be parsed."""


@dataclass
class Route:
    method: str
    path: str
    pattern: re.Pattern
    handler: Handler

    def match(self, path: str) -> Optional[Dict[str, str]]:
        m = self.pattern.match(path)
        if m is None:
            return None
        return {name: unquote(value) for name, value in m.groupdict().items()}


def compile_path(path: str) -> re.Pattern:
    """Turn '/dbs/{db}/docs/{id}' into a regex with one named group per segment."""
    regex = ""
    last = 0
    for m in PARAM_PATTERN.finditer(path):
        regex += re.escape(path[last:m.start()])
        regex += f"(?P<{m.group(1)}>[^/]+)"
        last = m.end()
    regex += re.escape(path[last:])
    return re.compile(f"^{regex}$")


def normalize_path(path: str) -> str:
    if len(path) > 1 and path.endswith('/'):
        return path.rstrip('/') or '/'
    return path


class HTTPServer:
    def __init__(self, host: str = '0.0.0.0', port: int = 8080, max_body_size: int = 10 * 1024 * 1024):
        self.host = host
        self.port = port
        self.max_body_size = max_body_size
        self.routes: List[Route] = []
        self.middlewares: List[Middleware] = []
        self.exception_handlers: Dict[type, ExceptionHandler] = {}

    def route(self, path: str, methods: Optional[List] = None):
        """Decorator for registering route handlers. '{name}' segments become path params."""
        if methods is None:
            methods = ['GET']

        def decorator(handler):
            pattern = compile_path(path)
            for method in methods:
                self.routes.append(Route(method.upper(), path, pattern, handler))
            return handler
        return decorator

    def middleware(self, fn: Middleware) -> Middleware:
        """Decorator for registering middleware; first registered runs outermost."""
        self.middlewares.append(fn)
        return fn

    def exception_handler(self, exc_type: type):
        """Decorator mapping an exception type (and subclasses) to a response."""
        def decorator(handler: ExceptionHandler):
            self.exception_handlers[exc_type] = handler
            return handler
        return decorator

    async def parse_request(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """Parse HTTP request with timeout and size limits"""
        try:
            # Read request line with timeout
            request_line = await asyncio.wait_for(
                reader.readline(),
                timeout=5.0
            )

            if not request_line:
                return None

            request_line = request_line.decode('utf-8').strip()
            method, full_path, version = request_line.split(' ', 2)

            # Parse URL and query parameters
            parsed_url = urlparse(full_path)
            path = normalize_path(parsed_url.path)
            query_params = parse_qs(parsed_url.query)

            # Parse headers
            headers = {}
            while True:
                line = await asyncio.wait_for(reader.readline(), timeout=5.0)
                if line == b'\r\n' or line == b'\n' or not line:
                    break

                header_line = line.decode('utf-8').strip()
                if ':' in header_line:
                    key, value = header_line.split(':', 1)
                    headers[key.strip().lower()] = value.strip()

            # Read body if present
            body = b''
            content_length = int(headers.get('content-length', 0))
            if content_length < 0:
                raise ValueError(f"negative Content-Length: {content_length}")

            if content_length > 0:
                if content_length > self.max_body_size:
                    raise RequestTooLarge(f"Request body too large: {content_length} bytes")

                body = await asyncio.wait_for(
                    reader.readexactly(content_length),
                    timeout=30.0
                )

            return Request(
                method=method.upper(),
                path=path,
                headers=headers,
                query_params=query_params,
                body=body,
                version=version
            )

        except asyncio.TimeoutError:
            return None
        except RequestTooLarge:
            raise
        except ValueError as e:
            # Also covers UnicodeDecodeError and short request lines
            raise MalformedRequest(str(e)) from e
        except Exception as e:
            logger.error(f"Error parsing request: {e}")
            return None

    def build_response(self, response: Response) -> bytes:
        """Build HTTP response bytes"""
        status_messages = {
            200: 'OK',
            201: 'Created',
            204: 'No Content',
            400: 'Bad Request',
            401: 'Unauthorized',
            404: 'Not Found',
            405: 'Method Not Allowed',
            409: 'Conflict',
            413: 'Payload Too Large',
            500: 'Internal Server Error',
        }

        status_text = status_messages.get(response.status, 'Unknown')

        # Set default headers
        if 'content-type' not in response.headers:
            response.headers['content-type'] = 'text/plain'

        response.headers['content-length'] = str(len(response.body))
        response.headers.setdefault('connection', 'keep-alive')
        response.headers['server'] = 'docstore/1.0'

        # Build response
        response_line = f"HTTP/1.1 {response.status} {status_text}\r\n"
        header_lines = ''.join(
            f"{key}: {value}\r\n"
            for key, value in response.headers.items()
        )

        response_bytes = (
            response_line.encode() +
            header_lines.encode() +
            b'\r\n' +
            response.body
        )

        return response_bytes

    def resolve(self, request: Request) -> Optional[Route]:
        """Find the route for a request, filling in its path params."""
        for route in self.routes:
            if route.method != request.method:
                continue
            params = route.match(request.path)
            if params is not None:
                request.path_params = params
                return route
        return None

    def coerce(self, result: object) -> Response:
        if isinstance(result, Response):
            return result
        elif isinstance(result, dict):
            return Response(
                status=200,
                headers={'content-type': 'application/json'},
                body=json.dumps(result).encode()
            )
        elif isinstance(result, str):
            return Response(
                status=200,
                body=result.encode()
            )
        elif isinstance(result, bytes):
            return Response(
                status=200,
                body=result
            )

        raise TypeError("Response cannot be casted to appropriate HTTP response format")

    async def dispatch(self, request: Request) -> Response:
        """Route request to appropriate handler"""
        route = self.resolve(request)

        if route is None:
            if any(r.match(request.path) is not None for r in self.routes):
                return error(405, 'Method Not Allowed', 'method_not_allowed')
            return error(
                404, 'Not Found', 'not_found',
                message=f"Route {request.method} {request.path} not found",
            )

        return self.coerce(await route.handler(request))

    async def handle_exception(self, request: Request, exc: Exception) -> Response:
        for exc_type in type(exc).__mro__:
            handler = self.exception_handlers.get(exc_type)
            if handler is not None:
                return await handler(request, exc)

        logger.exception(f"Handler error on {request.method} {request.path}: {exc}")
        return error(500, 'Internal Server Error', 'internal_error')

    async def handle_request(self, request: Request) -> Response:
        """Run the middleware chain around dispatch; never raises."""
        async def endpoint(req: Request) -> Response:
            try:
                return await self.dispatch(req)
            except Exception as e:
                return await self.handle_exception(req, e)

        call = endpoint
        for mw in reversed(self.middlewares):
            call = self._wrap(mw, call)

        try:
            return await call(request)
        except Exception as e:
            return await self.handle_exception(request, e)

    @staticmethod
    def _wrap(mw: Middleware, call_next):
        async def wrapped(req: Request) -> Response:
            return await mw(req, call_next)
        return wrapped

    async def reject(self, writer: asyncio.StreamWriter, response: Response):
        """Send a final response and mark the connection for closing."""
        response.headers['connection'] = 'close'
        writer.write(self.build_response(response))
        await writer.drain()

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle a single client connection with keep-alive"""
        peer = writer.get_extra_info('peername')

        try:
            # Keep-alive loop
            while True:
                try:
                    request = await self.parse_request(reader)
                except RequestTooLarge as e:
                    logger.warning(f"Rejected request from {peer}: {e}")
                    await self.reject(writer, error(413, 'Request body too large', 'payload_too_large'))
                    break
                except MalformedRequest as e:
                    logger.warning(f"Malformed request from {peer}: {e}")
                    await self.reject(writer, error(400, 'Bad Request', 'bad_request'))
                    break

                if request is None:
                    break

                start_time = time.perf_counter()
                logger.debug(f"--> {request.method} {request.path}")

                # Handle request
                response = await self.handle_request(request)

                # Send response
                response_bytes = self.build_response(response)
                writer.write(response_bytes)
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(
                    f"<-- {response.status} - {len(response.body)} bytes - {elapsed_ms:.2f}ms"
                )

                # Check if client wants to close connection
                connection_header = request.headers.get('connection', '').lower()
                if connection_header == 'close':
                    break

        except ConnectionResetError:
            pass
        except Exception as e:
            logger.error(f"Connection error from {peer}: {e}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except OSError:
                pass

    async def start(self):
        """Start the HTTP server"""
        server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port
        )

        addr = server.sockets[0].getsockname()
        logger.info(f'docstore HTTP server running on http://{addr[0]}:{addr[1]}')

        try:
            async with server:
                await server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            await self.shutdown(server)

    async def shutdown(self, server):
        """Gracefully shutdown the server"""
        logger.info("Shutting down server...")
        server.close()
        await server.wait_closed()
        logger.info("Server shutdown complete")
