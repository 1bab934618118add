"""
docstore - namespaced JSON document store and file store over HTTP.
"""

__version__ = "1.0.0"

from docstore.config import Config  # noqa: E402
from docstore.engine.store import Store  # noqa: E402
from docstore.files.bucket_store import FileStore  # noqa: E402

__all__ = ["Config", "FileStore", "Store", "__version__"]
