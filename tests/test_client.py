import json
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from app.cms.client import ApiError, FormData, JsonFileStore, PermissionDeniedError, bearer, resolve_base_url
from app.cms.client import (
    address,
    auth,
    complaints,
    departments,
    feedback,
    notifications,
    organizations,
    users,
    workflows,
)
from conftest import PASSWORD, StubAdapter, stub_api


def _query(prepared) -> dict:
    return parse_qs(urlsplit(prepared.url).query)


# ---------- Wrapper ----------
def test_bearer_prefix_added_once():
    assert bearer("abc") == "Bearer abc"
    assert bearer(bearer("abc")) == "Bearer abc"


@pytest.mark.parametrize("stored", ["abc", "Bearer abc"])
def test_authorization_header_from_store(stored):
    api, adapter = stub_api((200, {"organizations": []}))
    api.store.set("token", stored)
    organizations.get_organizations(api)
    assert adapter.sent[0].headers["Authorization"] == "Bearer abc"


def test_no_authorization_header_without_token():
    api, adapter = stub_api((200, []))
    organizations.get_organizations(api)
    assert "Authorization" not in adapter.sent[0].headers


def test_401_tears_down_session_once(navigator):
    api, _ = stub_api((401, {"msg": "Not authorized, token missing or invalid"}), navigator=navigator)
    api.store.set("token", "Bearer abc")
    api.store.set("user", "{}")
    with pytest.raises(ApiError) as exc:
        departments.get_department_by_id(api, 1)
    assert exc.value.status == 401
    assert api.store.get("token") is None
    assert api.store.get("user") is None
    assert navigator.calls == ["/login"]


def test_401_raw_error_reaches_caller(navigator):
    api, _ = stub_api((401, {"msg": "nope"}), navigator=navigator)
    api.store.set("token", "abc")
    with pytest.raises(requests.HTTPError):
        users.fetch_users(api)
    assert navigator.calls == ["/login"]
    assert api.store.get("token") is None


def test_network_error_is_reraised(navigator):
    api, _ = stub_api(requests.ConnectionError("refused"), navigator=navigator)
    with pytest.raises(requests.ConnectionError):
        organizations.get_organizations(api)
    assert navigator.calls == []


# ---------- Auth ----------
def test_login_builds_session_with_caller_organization():
    api, adapter = stub_api(
        (200, {"token": "abc", "role": "agent", "userId": 7, "firstName": "A", "lastName": "B", "departmentId": None})
    )
    session = auth.login_user(api, "a@b.test", "pw", 42)
    assert session.organization_id == 42
    assert session.token == "Bearer abc"
    assert session.to_dict()["isAuthenticated"] is True
    assert api.store.get("token") == "Bearer abc"
    assert json.loads(api.store.get("user"))["userId"] == 7
    assert json.loads(adapter.sent[0].body)["organizationId"] == 42


def test_login_without_token_in_response():
    api, _ = stub_api((200, {"role": "agent"}))
    with pytest.raises(ApiError, match="Token not received in response"):
        auth.login_user(api, "a@b.test", "pw", 42)
    assert api.store.get("token") is None
    assert api.store.get("user") is None


def test_logout_clears_session_when_server_unreachable():
    api, _ = stub_api(requests.ConnectionError("down"))
    api.store.set("token", "Bearer abc")
    api.store.set("user", "{}")
    with pytest.raises(requests.ConnectionError):
        auth.logout_user(api)
    assert api.store.get("token") is None
    assert api.store.get("user") is None


def test_logout_clears_session_on_server_error():
    api, _ = stub_api((500, {"message": "boom"}))
    api.store.set("token", "Bearer abc")
    with pytest.raises(requests.HTTPError):
        auth.logout_user(api)
    assert api.store.get("token") is None


def test_login_logout_against_app(api, org):
    session = auth.login_user(api, "agent@acme.test", PASSWORD, org["org"])
    assert session.role == "agent"
    assert api.store.get("token").startswith("Bearer ")
    assert notifications.get_unread_notification_count(api) == 0

    auth.logout_user(api)
    assert api.store.get("token") is None


def test_password_reset_errors_carry_payload():
    api, _ = stub_api((404, {"msg": "User not found"}), requests.ConnectionError("down"))
    with pytest.raises(ApiError) as exc:
        auth.request_password_reset(api, "ghost@acme.test")
    assert exc.value.detail == {"msg": "User not found"}
    assert str(exc.value) == "User not found"
    with pytest.raises(ApiError) as exc:
        auth.verify_otp(api, "ghost@acme.test", "123456")
    assert "down" in exc.value.detail


# ---------- Organizations ----------
def test_register_organization_requires_id_in_response():
    api, _ = stub_api((200, {"msg": "ok"}))
    with pytest.raises(ApiError, match="Failed to register organization"):
        organizations.register_organization(api, {"name": "X"})


def test_register_organization_against_app(api):
    data = organizations.register_organization(api, {"name": "Hooli"})
    assert data["organizationId"]
    with pytest.raises(ApiError, match="Organization name already exists"):
        organizations.register_organization(api, {"name": "Hooli"})
    assert organizations.check_organization_name(api, "Hooli Two")["available"] is True


# ---------- Departments ----------
def test_department_listing_permission_message(api, org):
    auth.login_user(api, "agent@acme.test", PASSWORD, org["org"])
    with pytest.raises(PermissionDeniedError, match="You do not have permission to view departments"):
        departments.get_all_departments(api)


def test_department_listing_other_errors_raw():
    api, _ = stub_api((500, {"message": "boom"}))
    with pytest.raises(requests.HTTPError):
        departments.get_all_departments(api)


def test_delete_department_message():
    api, _ = stub_api((400, {"msg": "Cannot delete department with 2 active complaint(s)"}), requests.Timeout("slow"))
    with pytest.raises(ApiError, match="Cannot delete department with 2 active complaint"):
        departments.delete_department(api, 3)
    with pytest.raises(ApiError, match="slow"):
        departments.delete_department(api, 3)


# ---------- Complaints ----------
def test_create_complaint_json_and_multipart(api, org):
    auth.login_user(api, "user@acme.test", PASSWORD, org["org"])
    adapter = api.session.get_adapter(api.url("/complaints"))

    c = complaints.create_complaint(api, {"title": "Lift", "description": "Stuck on 3"})
    assert adapter.sent[-1].headers["Content-Type"] == "application/json"
    assert c["status"] == "Open"

    form = FormData().append("title", "Window").append("description", "Cracked")
    form.attach("attachment", "photo.txt", b"pixels", "text/plain")
    c = complaints.create_complaint(api, form)
    assert adapter.sent[-1].headers["Content-Type"].startswith("multipart/form-data")
    assert c["attachmentName"] == "photo.txt"

    listed = complaints.get_complaints(api, {"limit": 1})
    assert listed["total"] == 2
    assert len(listed["items"]) == 1


def test_complaint_detail_and_comment_fallbacks():
    api, _ = stub_api((500, None), (404, {"msg": "Complaint not found"}), requests.ConnectionError("x"))
    with pytest.raises(ApiError, match="Failed to fetch complaint details"):
        complaints.get_complaint_by_id(api, 1)
    with pytest.raises(ApiError, match="Complaint not found"):
        complaints.fetch_complaint_comments(api, 1)
    with pytest.raises(ApiError, match="Failed to add comment"):
        complaints.add_comment_to_complaint(api, 1, {"text": "hi"})


# ---------- Workflows / feedback ----------
def test_workflow_for_complaint_404_is_none():
    api, _ = stub_api((404, {"msg": "No workflow assigned to this complaint"}), (500, {"msg": "boom"}))
    assert workflows.get_workflow_for_complaint(api, 5) is None
    with pytest.raises(ApiError) as exc:
        workflows.get_workflow_for_complaint(api, 5)
    assert exc.value.status == 500


def test_feedback_for_complaint_404_is_none():
    api, _ = stub_api((404, {"msg": "No feedback found for this complaint"}), (500, {"msg": "boom"}))
    assert feedback.get_feedback_by_complaint(api, 5) is None
    with pytest.raises(requests.HTTPError):
        feedback.get_feedback_by_complaint(api, 5)


def test_workflow_lookups_against_app(api, org):
    auth.login_user(api, "user@acme.test", PASSWORD, org["org"])
    c = complaints.create_complaint(api, {"title": "A", "description": "B"})
    assert workflows.get_workflow_for_complaint(api, c["id"]) is None
    assert feedback.get_feedback_by_complaint(api, c["id"]) is None
    assert feedback.can_provide_feedback(api, c["id"])["canProvide"] is False


def test_create_workflow_from_template_merges_customizations():
    api, adapter = stub_api((201, {"id": 1}))
    workflows.create_workflow_from_template(api, 9, {"name": "Mine"})
    assert json.loads(adapter.sent[0].body) == {"templateId": 9, "name": "Mine"}


def test_feedback_listing_forwards_truthy_params_only():
    api, adapter = stub_api((200, {}), (200, {}))
    feedback.get_all_feedback(api, {"page": 2, "limit": 0, "rating": 4, "department": None, "extra": "x"})
    assert _query(adapter.sent[0]) == {"page": ["2"], "rating": ["4"]}
    feedback.get_feedback_by_department(api, 3, {"department": 9, "limit": 10})
    assert urlsplit(adapter.sent[1].url).path == "/api/feedback/department/3"
    assert _query(adapter.sent[1]) == {"limit": ["10"]}


# ---------- Address lookup ----------
def test_address_suggestions_capped_at_five():
    adapter = StubAdapter((200, {"results": [{"formatted": "1 Main St"}]}))
    http = requests.Session()
    http.mount("https://api.opencagedata.com", adapter)
    results = address.fetch_address_suggestions("Main St", api_key="k", session=http)
    assert results == [{"formatted": "1 Main St"}]
    assert _query(adapter.sent[0]) == {"q": ["Main St"], "key": ["k"], "limit": ["5"]}


def test_address_suggestions_failure_message():
    http = requests.Session()
    http.mount("https://api.opencagedata.com", StubAdapter((403, {"status": {"code": 403}})))
    with pytest.raises(ApiError, match="Failed to fetch address suggestions. Please try again."):
        address.fetch_address_suggestions("x", api_key="bad", session=http)


def test_address_suggestions_without_session_use_module_get(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs["params"]))
        resp = requests.Response()
        resp.status_code = 200
        resp._content = json.dumps({"results": []}).encode()
        return resp

    monkeypatch.setattr(address.requests, "get", fake_get)
    assert address.fetch_address_suggestions("Elm", api_key="k") == []
    assert calls == [(address.OPENCAGE_API_URL, {"q": "Elm", "key": "k", "limit": 5})]


# ---------- Config / store ----------
def test_resolve_base_url():
    assert resolve_base_url("production", "http://ignored", "https://cms.example.com/") == "https://cms.example.com/api"
    assert resolve_base_url("development") == "http://localhost:5000/api"
    assert resolve_base_url("development", "http://api.test/api/") == "http://api.test/api"
    with pytest.raises(RuntimeError):
        resolve_base_url("production")


def test_json_file_store_survives_restart(tmp_path):
    path = tmp_path / "session.json"
    JsonFileStore(path).set("token", "Bearer abc")
    store = JsonFileStore(path)
    assert store.get("token") == "Bearer abc"
    store.clear("token")
    assert JsonFileStore(path).get("token") is None
