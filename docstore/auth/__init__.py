"""
API key and admin authentication.
"""

from docstore.auth.admin import AdminAuth, hash_password
from docstore.auth.api_keys import ApiKeyAuth, InsecureApiKeys, validate_production_api_keys

__all__ = ["AdminAuth", "ApiKeyAuth", "InsecureApiKeys", "hash_password", "validate_production_api_keys"]
