def _create(client, headers, name="Support"):
    r = client.post("/api/departments", json={"name": name, "description": "Front line"}, headers=headers)
    assert r.status_code == 201
    return r.json["id"]


def test_department_crud(client, auth_headers):
    headers = auth_headers("admin")
    dept_id = _create(client, headers)

    dup = client.post("/api/departments", json={"name": "Support"}, headers=headers)
    assert dup.status_code == 400

    r = client.put(f"/api/departments/{dept_id}", json={"name": "Customer Support"}, headers=headers)
    assert r.json["name"] == "Customer Support"
    assert [d["name"] for d in client.get("/api/departments", headers=headers).json["departments"]] == ["Customer Support"]

    assert client.delete(f"/api/departments/{dept_id}", headers=headers).status_code == 200
    assert client.get(f"/api/departments/{dept_id}", headers=headers).status_code == 404


def test_listing_departments_is_admin_only(client, auth_headers):
    r = client.get("/api/departments", headers=auth_headers("agent"))
    assert r.status_code == 403


def test_assign_and_remove_members(client, org, auth_headers):
    headers = auth_headers("admin")
    dept_id = _create(client, headers)

    r = client.post(f"/api/departments/{dept_id}/users", json={"userIds": [org["agent"]]}, headers=headers)
    assert r.status_code == 200
    members = client.get(f"/api/departments/{dept_id}/users", headers=headers).json["users"]
    assert [u["id"] for u in members] == [org["agent"]]

    assert client.post(f"/api/departments/{dept_id}/users", json={"userIds": []}, headers=headers).status_code == 400
    assert client.post(f"/api/departments/{dept_id}/users", json={"userIds": [999]}, headers=headers).status_code == 404

    r = client.delete(f"/api/departments/{dept_id}/users/{org['agent']}", headers=headers)
    assert r.status_code == 200
    again = client.delete(f"/api/departments/{dept_id}/users/{org['agent']}", headers=headers)
    assert again.status_code == 400


def test_delete_blocked_by_active_complaints(client, auth_headers):
    admin = auth_headers("admin")
    dept_id = _create(client, admin)
    r = client.post(
        "/api/complaints",
        json={"title": "Broken", "description": "It broke", "departmentId": dept_id},
        headers=auth_headers("user"),
    )
    assert r.status_code == 201
    r = client.delete(f"/api/departments/{dept_id}", headers=admin)
    assert r.status_code == 400
    assert r.json["msg"] == "Cannot delete department with 1 active complaint(s)"


def test_head_must_belong_to_organization(client, org, auth_headers):
    headers = auth_headers("admin")
    r = client.post("/api/departments", json={"name": "D", "headUserId": 99999}, headers=headers)
    assert r.status_code == 404
    assert r.json == {"msg": "User not found"}

    dept_id = _create(client, headers)
    r = client.put(f"/api/departments/{dept_id}", json={"headUserId": 99999}, headers=headers)
    assert r.status_code == 404
    r = client.put(f"/api/departments/{dept_id}", json={"headUserId": org["agent"]}, headers=headers)
    assert r.json["headUserId"] == org["agent"]


def test_head_cleared_when_moved_or_deleted(client, org, auth_headers):
    headers = auth_headers("admin")
    r = client.post("/api/departments", json={"name": "Billing", "headUserId": org["agent"]}, headers=headers)
    billing = r.json["id"]
    assert r.json["headUserId"] == org["agent"]

    other = _create(client, headers, name="Returns")
    client.post(f"/api/departments/{other}/users", json={"userIds": [org["agent"]]}, headers=headers)
    assert client.get(f"/api/departments/{billing}", headers=headers).json["headUserId"] is None

    client.put(f"/api/departments/{other}", json={"headUserId": org["agent"]}, headers=headers)
    assert client.delete(f"/api/users/{org['agent']}", headers=headers).status_code == 200
    assert client.get(f"/api/departments/{other}", headers=headers).json["headUserId"] is None
