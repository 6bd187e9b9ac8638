import uuid

PASSWORD = "password123"


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def signup_and_login(client, role="customer", **extra):
    """Create a fresh account and return (user, headers)."""
    suffix = str(uuid.uuid4())[:8]
    payload = {
        "name": f"Test {role.title()} {suffix}",
        "email": f"{role}_{suffix}@example.com",
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "phone": "03001234567",
        "city": "Lahore",
    }
    if role == "provider":
        payload["profession"] = "Electrician"
    payload.update(extra)

    resp = client.post(f"/api/auth/{role}/signup", json=payload)
    assert resp.status_code == 201, resp.text

    resp = client.post(f"/api/auth/{role}/signin", json={"email": payload["email"], "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return data["user"], auth_headers(data["token"])


def create_service(client, headers, **overrides):
    payload = {
        "title": "Ceiling fan installation",
        "category": "Electrician",
        "description": "Install or replace ceiling fans",
        "price": 1500,
        "city": "Lahore",
        "location": "Gulberg",
    }
    payload.update(overrides)
    resp = client.post("/api/provider/services", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def book_service(client, headers, service_id):
    resp = client.post("/api/customer/book", json={
        "service_id": service_id,
        "booking_date": "2030-01-15T10:00:00",
        "preferred_time": "10:00 AM",
        "location": "House 12, Gulberg",
        "description": "Two fans in the lounge",
    }, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()
