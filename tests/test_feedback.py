def _resolved_complaint(client, auth_headers):
    user = auth_headers("user")
    c = client.post("/api/complaints", json={"title": "Bill", "description": "Wrong"}, headers=user).json
    client.put(f"/api/complaints/{c['id']}/status", json={"status": "Resolved"}, headers=auth_headers("admin"))
    return c["id"], user


def test_feedback_needs_resolution(client, auth_headers):
    user = auth_headers("user")
    c = client.post("/api/complaints", json={"title": "Bill", "description": "Wrong"}, headers=user).json
    r = client.get(f"/api/feedback/can-provide/{c['id']}", headers=user).json
    assert r == {"canProvide": False, "reason": "Feedback can be given once the complaint is resolved"}
    assert client.post("/api/feedback", json={"complaintId": c["id"], "rating": 5}, headers=user).status_code == 400
    assert client.get(f"/api/feedback/complaint/{c['id']}", headers=user).status_code == 404


def test_feedback_once_per_complaint(client, auth_headers):
    complaint_id, user = _resolved_complaint(client, auth_headers)
    assert client.get(f"/api/feedback/can-provide/{complaint_id}", headers=user).json["canProvide"] is True

    bad = client.post("/api/feedback", json={"complaintId": complaint_id, "rating": 6}, headers=user)
    assert bad.status_code == 400

    r = client.post("/api/feedback", json={"complaintId": complaint_id, "rating": 4, "comment": "ok"}, headers=user)
    assert r.status_code == 201
    assert client.get(f"/api/feedback/complaint/{complaint_id}", headers=user).json["rating"] == 4

    again = client.post("/api/feedback", json={"complaintId": complaint_id, "rating": 5}, headers=user)
    assert again.status_code == 400
    assert again.json["msg"] == "Feedback has already been submitted"


def test_feedback_listing_and_stats(client, auth_headers):
    complaint_id, user = _resolved_complaint(client, auth_headers)
    client.post("/api/feedback", json={"complaintId": complaint_id, "rating": 2}, headers=user)
    admin = auth_headers("admin")

    listed = client.get("/api/feedback", query_string={"rating": 2}, headers=admin).json
    assert listed["total"] == 1
    assert client.get("/api/feedback", query_string={"rating": 5}, headers=admin).json["total"] == 0
    assert client.get("/api/feedback", headers=user).status_code == 403

    stats = client.get("/api/feedback/stats", headers=admin).json
    assert stats["totalFeedback"] == 1
    assert stats["averageRating"] == 2
    assert stats["ratingDistribution"]["2"] == 1


def test_department_feedback(client, auth_headers):
    admin = auth_headers("admin")
    dept_id = client.post("/api/departments", json={"name": "Billing"}, headers=admin).json["id"]
    user = auth_headers("user")
    c = client.post(
        "/api/complaints", json={"title": "Bill", "description": "Wrong", "departmentId": dept_id}, headers=user
    ).json
    client.put(f"/api/complaints/{c['id']}/status", json={"status": "Closed"}, headers=admin)
    client.post("/api/feedback", json={"complaintId": c["id"], "rating": 5}, headers=user)

    assert client.get(f"/api/feedback/department/{dept_id}", headers=admin).json["total"] == 1
    stats = client.get(f"/api/feedback/department/{dept_id}/stats", headers=admin).json
    assert stats["departmentId"] == dept_id
    assert stats["averageRating"] == 5
    assert client.get("/api/feedback/department/999/stats", headers=admin).status_code == 404
