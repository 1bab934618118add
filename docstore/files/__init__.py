"""
Bucket/file storage on the local filesystem.
"""

from docstore.files.bucket_store import FileStore

__all__ = ["FileStore"]
