def _workflow(client, headers, **extra):
    body = {"name": "Triage", "stages": ["Received", {"name": "Investigating", "slaHours": 48}, "Done"], **extra}
    r = client.post("/api/workflows", json=body, headers=headers)
    assert r.status_code == 201, r.json
    return r.json


def test_workflow_requires_stages(client, auth_headers):
    r = client.post("/api/workflows", json={"name": "Empty", "stages": []}, headers=auth_headers("admin"))
    assert r.status_code == 400
    assert r.json["msg"] == "A workflow needs at least one stage"


def test_workflow_crud_and_filters(client, auth_headers):
    admin = auth_headers("admin")
    dept_id = client.post("/api/departments", json={"name": "Ops"}, headers=admin).json["id"]
    wf = _workflow(client, admin, departmentId=dept_id)
    assert [s["name"] for s in wf["stages"]] == ["Received", "Investigating", "Done"]
    assert wf["stages"][1]["slaHours"] == 48

    assert len(client.get(f"/api/workflows/department/{dept_id}", headers=admin).json["workflows"]) == 1
    assert client.get("/api/workflows/complaint-type/999", headers=admin).json["workflows"] == []

    r = client.put(f"/api/workflows/{wf['id']}", json={"name": "Triage v2"}, headers=admin)
    assert r.json["name"] == "Triage v2"
    assert client.get("/api/workflows", headers=auth_headers("user")).status_code == 403
    assert client.delete(f"/api/workflows/{wf['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/workflows/{wf['id']}", headers=admin).status_code == 404


def test_complaint_gets_matching_workflow_and_advances(client, org, auth_headers):
    admin = auth_headers("admin")
    type_id = client.post("/api/complaints/types", json={"name": "Facilities"}, headers=admin).json["id"]
    _workflow(client, admin, complaintTypeId=type_id)

    user = auth_headers("user")
    c = client.post(
        "/api/complaints", json={"title": "Door", "description": "Stuck", "complaintTypeId": type_id}, headers=user
    ).json

    cw = client.get(f"/api/workflows/complaint/{c['id']}", headers=user).json
    assert cw["currentStage"] == 0
    assert cw["currentStageName"] == "Received"
    assert cw["totalStages"] == 3

    r = client.put(f"/api/workflows/complaint/{c['id']}/stage", json={"note": "Looking"}, headers=admin)
    assert r.json["currentStage"] == 1
    assert client.get(f"/api/complaints/{c['id']}", headers=user).json["status"] == "In Progress"

    r = client.put(f"/api/workflows/complaint/{c['id']}/stage", json={"stageIndex": 2}, headers=admin)
    assert r.json["completedAt"] is not None
    assert [h["to"] for h in r.json["history"]] == [0, 1, 2]
    assert client.get(f"/api/complaints/{c['id']}", headers=user).json["status"] == "Resolved"

    beyond = client.put(f"/api/workflows/complaint/{c['id']}/stage", json={"stageIndex": 3}, headers=admin)
    assert beyond.status_code == 400

    # The creator hears about each stage change.
    kinds = [n["type"] for n in client.get("/api/notifications", headers=user).json["items"]]
    assert kinds.count("workflow.stage") == 2


def test_no_workflow_is_404(client, auth_headers):
    user = auth_headers("user")
    c = client.post("/api/complaints", json={"title": "A", "description": "B"}, headers=user).json
    r = client.get(f"/api/workflows/complaint/{c['id']}", headers=user)
    assert r.status_code == 404
    assert r.json == {"msg": "No workflow assigned to this complaint"}


def test_templates_import_and_instantiate(client, auth_headers):
    admin = auth_headers("admin")
    r = client.post("/api/workflows/import-templates", json={}, headers=admin)
    assert r.json["created"] == 4
    assert client.post("/api/workflows/import-templates", json={}, headers=admin).json == {
        "msg": "Templates imported",
        "created": 0,
        "skipped": 4,
    }

    templates = client.get("/api/workflows/templates", headers=admin).json["templates"]
    finance = client.get("/api/workflows/templates/category/Finance", headers=admin).json["templates"]
    assert len(templates) == 4
    assert [t["category"] for t in finance] == ["Finance"]

    t = client.get(f"/api/workflows/templates/{finance[0]['id']}", headers=admin).json
    r = client.post("/api/workflows/from-template", json={"templateId": t["id"], "name": "Refunds"}, headers=admin)
    assert r.status_code == 201
    assert r.json["name"] == "Refunds"
    assert r.json["templateId"] == t["id"]
    assert r.json["stages"] == t["stages"]

    assert client.get("/api/workflows/templates/999", headers=admin).status_code == 404


def test_import_templates_skips_repeated_names_in_one_batch(client, auth_headers):
    admin = auth_headers("admin")
    tpl = {"name": "Noise", "category": "Facilities", "stages": ["Logged", "Fixed"]}
    r = client.post("/api/workflows/import-templates", json={"templates": [tpl, tpl]}, headers=admin)
    assert r.status_code == 200
    assert r.json == {"msg": "Templates imported", "created": 1, "skipped": 1}
    names = [t["name"] for t in client.get("/api/workflows/templates", headers=admin).json["templates"]]
    assert names == ["Noise"]


def test_import_templates_rejects_non_list(client, auth_headers):
    r = client.post("/api/workflows/import-templates", json={"templates": 5}, headers=auth_headers("admin"))
    assert r.status_code == 400
    assert r.json == {"msg": "templates must be a list"}
