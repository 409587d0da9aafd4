"""
Python client for the complaint management REST API.

One module per route group; every endpoint function takes an `ApiClient` as its first argument.
"""
from app.cms.client.config import ClientSettings, load_client_settings, resolve_base_url
from app.cms.client.errors import ApiError, PermissionDeniedError
from app.cms.client.http import ApiClient, FormData, bearer, build_client
from app.cms.client.session_store import JsonFileStore, MemoryStore, Session, SessionStore

__all__ = [
    "ApiClient",
    "ApiError",
    "ClientSettings",
    "FormData",
    "JsonFileStore",
    "MemoryStore",
    "PermissionDeniedError",
    "Session",
    "SessionStore",
    "bearer",
    "build_client",
    "load_client_settings",
    "resolve_base_url",
]
