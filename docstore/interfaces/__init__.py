"""
Abstract base classes for the storage engine binding.
"""

from docstore.interfaces.backend import KeyValueBackend, Transaction

__all__ = ["KeyValueBackend", "Transaction"]
