def test_health_ok(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json["status"] == "ok"
    assert r.json["env"] == "test"
    assert r.json["timestamp"].endswith("Z")


def test_root_banner(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.get_data(as_text=True) == "API is Running"


def test_login_and_admin_access(client, org):
    # Anonymous should be rejected
    r = client.get("/api/users")
    assert r.status_code == 401

    r = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "pw"})
    assert r.status_code == 200
    token = r.json["token"]
    assert not token.startswith("Bearer ")
    assert r.json["role"] == "admin"
    assert r.json["organizationId"] == org["org"]

    r = client.get("/api/users", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert len(r.json["users"]) == 4
