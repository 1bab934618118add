"""
Namespace and document routes: /dbs.
"""

from docstore.api.errors import BadRequest, json_body
from docstore.engine.documents import DocumentStore
from docstore.engine.store import Store
from docstore.models.query import QueryOptions
from http_server.request import Request
from http_server.response import Response, response
from http_server.server import HTTPServer

QUERY_PARAMS = ("startKey", "endKey", "prefix", "limit")


def query_options(request: Request) -> QueryOptions:
    return QueryOptions.from_params({name: request.query(name) for name in QUERY_PARAMS})


async def create_document(documents: DocumentStore, request: Request) -> Response:
    """Shared by the data and admin surfaces, which differ only in auto-create."""
    body = json_body(request)
    if "value" not in body:
        raise BadRequest("Field 'value' is required")

    doc = await documents.create(request.param("db"), body.get("key"), body["value"])
    return response(status_code=201).json({"ok": True, "key": doc.key})


def register_data_routes(server: HTTPServer, store: Store) -> None:

    @server.route('/dbs', ['GET'])
    async def list_databases(request: Request) -> dict:
        return {"ok": True, "databases": await store.namespaces.list()}

    @server.route('/dbs/{db}', ['POST'])
    async def create_database(request: Request) -> Response:
        info = await store.namespaces.create(request.param("db"))
        return response(status_code=201).json({"ok": True, "db": info.name})

    @server.route('/dbs/{db}', ['DELETE'])
    async def delete_database(request: Request) -> dict:
        await store.namespaces.delete(request.param("db"))
        return {"ok": True}

    @server.route('/dbs/{db}/docs', ['POST'])
    async def create_doc(request: Request) -> Response:
        return await create_document(store.documents, request)

    @server.route('/dbs/{db}/docs', ['GET'])
    async def list_docs(request: Request) -> dict:
        options = query_options(request)
        docs = await store.documents.list(request.param("db"), options)
        return {"ok": True, "docs": [doc.to_dict() for doc in docs]}

    @server.route('/dbs/{db}/docs/{id}', ['GET'])
    async def get_doc(request: Request) -> dict:
        doc = await store.documents.get(request.param("db"), request.param("id"))
        return {"ok": True, **doc.to_dict()}

    @server.route('/dbs/{db}/docs/{id}', ['PUT'])
    async def update_doc(request: Request) -> dict:
        body = json_body(request)
        if "value" not in body:
            raise BadRequest("Field 'value' is required")

        await store.documents.update(request.param("db"), request.param("id"), body["value"])
        return {"ok": True}

    @server.route('/dbs/{db}/docs/{id}', ['DELETE'])
    async def delete_doc(request: Request) -> dict:
        await store.documents.delete(request.param("db"), request.param("id"))
        return {"ok": True}
