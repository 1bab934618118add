"""
API key management routes: /auth.
"""

from docstore.api.errors import BadRequest, json_body
from docstore.engine.credentials import CredentialStore
from http_server.request import Request
from http_server.response import Response, response
from http_server.server import HTTPServer


async def generate_key(credentials: CredentialStore, request: Request) -> Response:
    """Generate a key; the body is optional and may carry a label."""
    body = request.json_object or {}
    generated = await credentials.generate(body.get("name"))
    return response(status_code=201).json({"ok": True, **generated.to_dict()})


async def list_keys(credentials: CredentialStore) -> dict:
    return {"ok": True, "keys": await credentials.list()}


async def revoke_key(credentials: CredentialStore, request: Request) -> dict:
    await credentials.revoke(request.param("id"))
    return {"ok": True}


def register_credential_routes(server: HTTPServer, credentials: CredentialStore) -> None:

    @server.route('/auth', ['POST'])
    async def generate(request: Request) -> Response:
        return await generate_key(credentials, request)

    @server.route('/auth', ['GET'])
    async def list_all(request: Request) -> dict:
        return await list_keys(credentials)

    @server.route('/auth/validate', ['POST'])
    async def validate(request: Request) -> dict:
        key = json_body(request).get("key")
        if not isinstance(key, str) or not key:
            raise BadRequest("Field 'key' is required")
        return {"ok": True, "valid": await credentials.validate(key)}

    @server.route('/auth/{id}', ['DELETE'])
    async def revoke(request: Request) -> dict:
        return await revoke_key(credentials, request)
