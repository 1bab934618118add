import asyncio
import logging
import os

from docstore.api import build_server
from docstore.auth import validate_production_api_keys
from docstore.config import Config
from docstore.engine import Store
from docstore.files import FileStore

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger()


async def main():
    config = Config.from_env()
    validate_production_api_keys(config)

    store = await Store.create(
        config.lmdb_path,
        map_size=config.lmdb_map_size,
        max_dbs=config.lmdb_max_dbs,
        auto_create=config.auto_create_namespaces,
    )
    try:
        files = await FileStore.create(config.storage_path)
        server = build_server(config, store, files)

        if not config.admin_auth_configured:
            logger.warning("Admin authentication not configured; /admin routes are disabled")

        await server.start()
    finally:
        await store.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
