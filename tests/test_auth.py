from conftest import login


def test_login_rejects_bad_password(client, org):
    r = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "nope"})
    assert r.status_code == 401
    assert r.json["msg"] == "Invalid credentials"


def test_login_rejects_other_organization(client, org):
    r = client.post(
        "/api/auth/login",
        json={"email": "admin@acme.test", "password": "pw", "organizationId": org["org"] + 1},
    )
    assert r.status_code == 401


def test_login_rate_limited(client, org):
    for _ in range(5):
        client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "nope"})
    r = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "pw"})
    assert r.status_code == 429


def test_token_with_or_without_scheme(client, org):
    r = client.post("/api/auth/login", json={"email": "agent@acme.test", "password": "pw"})
    token = r.json["token"]
    assert client.get("/api/notifications", headers={"Authorization": token}).status_code == 200
    assert client.get("/api/notifications", headers={"Authorization": f"Bearer {token}"}).status_code == 200
    assert client.get("/api/notifications", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_logout_invalidates_token(client, org):
    headers = login(client, "agent")
    r = client.post("/api/auth/logout", headers=headers)
    assert r.status_code == 200
    assert client.get("/api/notifications", headers=headers).status_code == 401


def test_signup_creates_plain_user(client, org):
    r = client.post(
        "/api/auth/signup",
        json={"organizationId": org["org"], "email": "New@Acme.test", "password": "secret", "firstName": "New"},
    )
    assert r.status_code == 201
    r = client.post("/api/auth/login", json={"email": "new@acme.test", "password": "secret"})
    assert r.json["role"] == "user"

    dup = client.post("/api/auth/signup", json={"organizationId": org["org"], "email": "new@acme.test", "password": "x"})
    assert dup.status_code == 400
    assert dup.json["msg"] == "User already exists"


def test_signup_unknown_organization(client, org):
    r = client.post("/api/auth/signup", json={"organizationId": 999, "email": "a@b.test", "password": "x"})
    assert r.status_code == 404


def test_register_superadmin_once_per_organization(client):
    org_id = client.post("/api/organizations/register", json={"name": "Globex"}).json["organizationId"]
    body = {"organizationId": org_id, "email": "boss@globex.test", "password": "pw"}
    assert client.post("/api/auth/register-superadmin", json=body).status_code == 201
    again = client.post(
        "/api/auth/register-superadmin", json={**body, "email": "boss2@globex.test"}
    )
    assert again.status_code == 400
    assert again.json["msg"] == "This organization already has a SuperAdmin"


def test_password_reset_flow(app, client, org, caplog):
    caplog.set_level("INFO")
    r = client.post("/api/auth/forgot-password", json={"email": "user@acme.test"})
    assert r.status_code == 200
    otp = next(
        rec.args[1] for rec in caplog.records if rec.getMessage().startswith("Password reset OTP for user@acme.test")
    )

    # Reset is refused until the OTP is verified.
    r = client.post("/api/auth/reset-password", json={"email": "user@acme.test", "password": "new-pw"})
    assert r.status_code == 400

    bad = "000000" if otp != "000000" else "111111"
    assert client.post("/api/auth/verify-otp", json={"email": "user@acme.test", "otp": bad}).status_code == 400
    assert client.post("/api/auth/verify-otp", json={"email": "user@acme.test", "otp": otp}).status_code == 200

    r = client.post("/api/auth/reset-password", json={"email": "user@acme.test", "password": "new-pw"})
    assert r.status_code == 200
    assert client.post("/api/auth/login", json={"email": "user@acme.test", "password": "new-pw"}).status_code == 200


def test_forgot_password_unknown_email(client, org):
    r = client.post("/api/auth/forgot-password", json={"email": "ghost@acme.test"})
    assert r.status_code == 404
