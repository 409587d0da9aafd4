import json
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from werkzeug.security import generate_password_hash

from app.cms import auth as auth_views
from app.cms import create_app
from app.cms.client import ApiClient, MemoryStore
from app.cms.config import ServerOptions
from app.cms.db import session_scope
from app.cms.models import Base, Organization, User

BASE_URL = "http://testserver/api"
PASSWORD = "pw"


class FlaskAdapter(BaseAdapter):
    """Transport adapter that hands requests to a Flask test client instead of the network."""

    def __init__(self, app):
        super().__init__()
        self.client = app.test_client()
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        parts = urlsplit(request.url)
        body = request.body.encode("utf-8") if isinstance(request.body, str) else request.body
        resp = self.client.open(
            parts.path,
            method=request.method,
            query_string=parts.query,
            headers=dict(request.headers),
            content_type=request.headers.get("Content-Type"),
            data=body or b"",
        )
        return build_response(request, resp.status_code, resp.get_data(), dict(resp.headers))

    def close(self):
        pass


class StubAdapter(BaseAdapter):
    """Returns queued (status, body) pairs, or raises queued exceptions."""

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        status, body = item
        content = b"" if body is None else json.dumps(body).encode("utf-8")
        return build_response(request, status, content, {"Content-Type": "application/json"})

    def close(self):
        pass


def build_response(request, status: int, content: bytes, headers: dict) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = content
    r.headers = CaseInsensitiveDict(headers)
    r.url = request.url
    r.request = request
    r.reason = "OK" if status < 400 else "Error"
    return r


class Navigator:
    def __init__(self):
        self.calls: list[str] = []

    def __call__(self, path: str) -> None:
        self.calls.append(path)


@pytest.fixture(autouse=True)
def _reset_login_rate_limit():
    auth_views._login_attempts.clear()
    yield
    auth_views._login_attempts.clear()


@pytest.fixture()
def make_app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("NODE_ENV", "FRONTEND_URL", "CORS_EXPLICIT", "API_URL", "REACT_APP_API_URL"):
        monkeypatch.delenv(k, raising=False)

    def _make(**overrides):
        opts = {"env": "test", "uploads_dir": tmp_path / "uploads", "wait_for_db": True}
        opts.update(overrides)
        app = create_app(ServerOptions(**opts))
        Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
        return app

    return _make


@pytest.fixture()
def app(make_app):
    return make_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def org(app):
    """An organization with one user per role; returns ids keyed by role."""
    with session_scope(app) as s:
        o = Organization(name="Acme Corp", email="info@acme.test")
        s.add(o)
        s.flush()
        ids = {"org": o.id}
        for role in ("superadmin", "admin", "agent", "user"):
            u = User(
                organization_id=o.id,
                email=f"{role}@acme.test",
                password_hash=generate_password_hash(PASSWORD),
                first_name=role.title(),
                last_name="Tester",
                role=role,
                is_active=True,
            )
            s.add(u)
            s.flush()
            ids[role] = u.id
    return ids


def login(client, role: str) -> dict:
    r = client.post("/api/auth/login", json={"email": f"{role}@acme.test", "password": PASSWORD})
    assert r.status_code == 200, r.json
    return {"Authorization": f"Bearer {r.json['token']}"}


@pytest.fixture()
def auth_headers(client, org):
    return lambda role: login(client, role)


@pytest.fixture()
def navigator():
    return Navigator()


@pytest.fixture()
def api(app, navigator):
    """ApiClient wired to the Flask app through FlaskAdapter."""
    http = requests.Session()
    http.mount("http://testserver", FlaskAdapter(app))
    return ApiClient(BASE_URL, MemoryStore(), navigate=navigator, env="test", session=http)


def stub_api(*responses, navigator=None):
    adapter = StubAdapter(*responses)
    http = requests.Session()
    http.mount("http://stub", adapter)
    return ApiClient("http://stub/api", MemoryStore(), navigate=navigator, env="test", session=http), adapter
