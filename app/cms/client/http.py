from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from app.cms.client.config import ClientSettings, load_client_settings, resolve_base_url
from app.cms.client.session_store import TOKEN_KEY, USER_KEY, MemoryStore, SessionStore

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
DEFAULT_TIMEOUT = 30  # seconds


def bearer(token: str) -> str:
    """Authorization header value for a token; the scheme is prepended at most once."""
    return token if token.startswith(BEARER_PREFIX) else f"{BEARER_PREFIX}{token}"


@dataclass
class FormData:
    """Multipart body: plain fields plus file parts."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str | None]] = field(default_factory=dict)

    def append(self, name: str, value: Any) -> "FormData":
        self.fields[name] = value
        return self

    def attach(self, name: str, filename: str, content: bytes, content_type: str | None = None) -> "FormData":
        self.files[name] = (filename, content, content_type)
        return self


class ApiClient:
    """
    Shared HTTP client: base URL, timeout, per-call bearer header and 401 handling.

    The underlying requests.Session keeps a cookie jar, so credentials travel with every call.
    """

    def __init__(
        self,
        base_url: str,
        store: SessionStore,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        navigate: Callable[[str], None] | None = None,
        env: str = "development",
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.timeout = timeout
        self.navigate = navigate
        self.env = env
        self.session = session or requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def auth_headers(self) -> dict[str, str]:
        token = self.store.get(TOKEN_KEY)
        return {"Authorization": bearer(token)} if token else {}

    def clear_session(self) -> None:
        self.store.clear(TOKEN_KEY)
        self.store.clear(USER_KEY)
        self.session.headers.pop("Authorization", None)

    def handle_unauthorized(self) -> None:
        log.info("Unauthorized access detected. Redirecting to login.")
        self.clear_session()
        if self.navigate is not None:
            self.navigate("/login")

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self.url(path)
        headers = {**self.auth_headers(), **(kwargs.pop("headers", None) or {})}
        kwargs.setdefault("timeout", self.timeout)
        if self.env == "development":
            log.debug("API request: %s %s", method.upper(), url)
        try:
            resp = self.session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            log.error("Network error, cannot reach server (%s %s): %s", method.upper(), url, e)
            if self.env == "development":
                log.info("Make sure the backend server is running on port 5000")
            raise

        if resp.ok:
            if self.env == "development":
                log.debug("API response: %s %s", resp.status_code, url)
            return resp

        log.error("API error: status=%s message=%s url=%s", resp.status_code, _server_msg(resp), url)
        if resp.status_code == 401:
            self.handle_unauthorized()
        resp.raise_for_status()
        return resp

    def call(self, method: str, path: str, **kwargs: Any) -> Any:
        return decode(self.request(method, path, **kwargs))

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.call("GET", path, params=params)

    def post(self, path: str, body: Any = None) -> Any:
        if isinstance(body, FormData):
            return self.call("POST", path, data=body.fields, files=body.files or None)
        return self.call("POST", path, json=body)

    def put(self, path: str, body: Any = None) -> Any:
        return self.call("PUT", path, json=body)

    def delete(self, path: str) -> Any:
        return self.call("DELETE", path)


def decode(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _server_msg(resp: requests.Response) -> Any:
    body = decode(resp)
    if isinstance(body, dict):
        return body.get("msg") or body.get("message") or resp.reason
    return resp.reason


def build_client(
    settings: ClientSettings | None = None,
    *,
    store: SessionStore | None = None,
    navigate: Callable[[str], None] | None = None,
) -> ApiClient:
    settings = settings or load_client_settings()
    base_url = resolve_base_url(settings.env, settings.api_url, settings.app_origin)
    log.info("API configuration: env=%s base_url=%s", settings.env, base_url)
    return ApiClient(base_url, store or MemoryStore(), navigate=navigate, env=settings.env)
