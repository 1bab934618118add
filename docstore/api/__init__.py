from docstore.api.app import build_server

__all__ = ["build_server"]
