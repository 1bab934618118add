"""
Bucket and file routes: /storage.
"""

import base64
import binascii
import re

from docstore.api.errors import BadRequest
from docstore.files.bucket_store import FileStore, safe_file_name
from docstore.models.query import QueryOptions
from http_server.request import Request
from http_server.response import Response, response
from http_server.server import HTTPServer

DATA_URL_PREFIX = re.compile(r"^data:[^;]+;base64,")


def decode_upload(request: Request) -> bytes:
    """
    The uploaded bytes: raw by default, base64 when the content type says so
    or the request carries ?encoding=base64. A data URL prefix is accepted.
    """
    content_type = request.header("content-type", "application/octet-stream")
    if "base64" not in content_type and request.query("encoding") != "base64":
        return request.body

    try:
        text = request.body.decode("ascii").strip()
    except UnicodeDecodeError:
        raise BadRequest("Base64 body must be ASCII") from None

    try:
        return base64.b64decode(DATA_URL_PREFIX.sub("", text))
    except binascii.Error:
        raise BadRequest("Body is not valid base64") from None


def register_storage_routes(server: HTTPServer, files: FileStore) -> None:

    @server.route('/storage', ['GET'])
    async def list_buckets(request: Request) -> dict:
        return {"ok": True, "buckets": await files.list_buckets()}

    @server.route('/storage/{bucket}', ['POST'])
    async def create_bucket(request: Request) -> Response:
        bucket = request.param("bucket")
        await files.create_bucket(bucket)
        return response(status_code=201).json({"ok": True, "bucket": bucket})

    @server.route('/storage/{bucket}', ['DELETE'])
    async def delete_bucket(request: Request) -> dict:
        await files.delete_bucket(request.param("bucket"))
        return {"ok": True}

    @server.route('/storage/{bucket}', ['GET'])
    async def list_files(request: Request) -> dict:
        options = QueryOptions.from_params(
            {"prefix": request.query("prefix"), "limit": request.query("limit")}
        )
        found = await files.list_files(request.param("bucket"), options.prefix, options.limit)
        return {"ok": True, "files": [info.to_dict() for info in found]}

    @server.route('/storage/{bucket}/{key}', ['PUT'])
    async def upload(request: Request) -> Response:
        key = request.param("key")
        info = await files.put_file(request.param("bucket"), key, decode_upload(request))
        return response(status_code=201).json({"ok": True, "key": key, "size": info.size})

    @server.route('/storage/{bucket}/{key}', ['GET'])
    async def download(request: Request) -> Response:
        key = request.param("key")
        _, data = await files.get_file(request.param("bucket"), key)
        content_type = request.query("contentType") or "application/octet-stream"
        return response(
            headers={"content-disposition": f'inline; filename="{safe_file_name(key)}"'}
        ).raw(data, content_type)

    @server.route('/storage/{bucket}/{key}', ['DELETE'])
    async def delete_file(request: Request) -> dict:
        await files.delete_file(request.param("bucket"), request.param("key"))
        return {"ok": True}
