import uuid

from tests.utils import PASSWORD, signup_and_login


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert "timestamp" in body


def test_signup_and_login_any_role(client):
    email = f"generic_{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post("/api/auth/signup", json={
        "name": "Generic Provider",
        "email": email,
        "password": PASSWORD,
        "role": "provider",
        "profession": "Plumber",
    })
    assert resp.status_code == 201
    assert resp.json()["message"] == "Signup successful"

    resp = client.post("/api/auth/login", json={"email": email.upper(), "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["role"] == "provider"


def test_duplicate_email_rejected(client):
    user, _ = signup_and_login(client, "customer")
    resp = client.post("/api/auth/customer/signup", json={
        "name": "Again", "email": user["email"], "password": PASSWORD,
    })
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email already exists"


def test_login_errors(client):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert resp.status_code == 404

    user, _ = signup_and_login(client, "customer")
    resp = client.post("/api/auth/login", json={"email": user["email"], "password": "wrongpass"})
    assert resp.status_code == 401

    # Role-specific signin refuses other roles
    resp = client.post("/api/auth/provider/signin", json={"email": user["email"], "password": PASSWORD})
    assert resp.status_code == 403


def test_profile_requires_token(client, customer):
    assert client.get("/api/auth/profile").status_code == 401
    assert client.get("/api/auth/profile", headers={"Authorization": "Bearer nonsense"}).status_code == 401

    user, headers = customer
    resp = client.get("/api/auth/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == user["id"]


def test_role_guards(client, customer, provider):
    _, customer_headers = customer
    _, provider_headers = provider
    assert client.get("/api/provider/dashboard", headers=customer_headers).status_code == 403
    assert client.get("/api/customer/dashboard", headers=provider_headers).status_code == 403
    resp = client.get("/api/admin/dashboard", headers=customer_headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Access denied. Admin only."


def test_public_cities_are_seeded(client):
    resp = client.get("/api/cities")
    assert resp.status_code == 200
    names = [c["name"] for c in resp.json()]
    assert "Lahore" in names
    assert names == sorted(names)
