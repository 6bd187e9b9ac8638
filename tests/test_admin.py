import uuid

from homeease.core.config import settings

from tests.utils import book_service, create_service, signup_and_login


def test_dashboard_stats(client, admin_headers):
    resp = client.get("/api/admin/dashboard", headers=admin_headers)
    assert resp.status_code == 200
    stats = resp.json()["stats"]
    for key in ("total_users", "total_providers", "total_bookings", "open_complaints", "pending_responses"):
        assert key in stats


def test_user_listing_and_suspension(client, admin_headers):
    user, headers = signup_and_login(client, "customer")

    resp = client.get("/api/admin/users", params={"role": "customer", "limit": 5}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["limit"] == 5
    assert body["pagination"]["page"] == 1
    assert all(u["role"] == "customer" for u in body["users"])

    resp = client.patch(f"/api/admin/users/{user['id']}/status",
                        json={"status": "suspended"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "suspended"

    # Suspended accounts lose access immediately
    assert client.get("/api/customer/dashboard", headers=headers).status_code == 403

    resp = client.patch(f"/api/admin/users/{user['id']}/status",
                        json={"status": "active"}, headers=admin_headers)
    assert resp.status_code == 200
    assert client.get("/api/customer/dashboard", headers=headers).status_code == 200


def test_complaint_with_evidence_lifecycle(client, admin_headers):
    _, provider_headers = signup_and_login(client, "provider")
    _, customer_headers = signup_and_login(client, "customer")
    service = create_service(client, provider_headers)
    booking = book_service(client, customer_headers, service["id"])

    # 1. Customer files a complaint with a photo
    resp = client.post(
        "/api/customer/complaints",
        data={
            "title": "Damaged wall",
            "description": "Drilled through the wrong spot",
            "category": "service_quality",
            "priority": "high",
            "booking_id": booking["id"],
        },
        files={"evidence": ("wall.jpg", b"\xff\xd8\xff\xe0fakejpeg", "image/jpeg")},
        headers=customer_headers,
    )
    assert resp.status_code == 201, resp.text
    complaint = resp.json()
    assert complaint["status"] == "open"
    assert complaint["provider_id"] == booking["provider_id"]
    assert len(complaint["attachments"]) == 1
    attachment = complaint["attachments"][0]
    assert attachment["filename"] == "wall.jpg"

    # 2. Evidence is served back
    resp = client.get(attachment["url"])
    assert resp.status_code == 200
    assert resp.content == b"\xff\xd8\xff\xe0fakejpeg"

    # 3. It shows up in the customer's own list
    resp = client.get("/api/customer/complaints", headers=customer_headers)
    assert [c["id"] for c in resp.json()] == [complaint["id"]]

    # 4. Admin filters, escalates and resolves it
    resp = client.get("/api/admin/complaints", params={"priority": "high", "status": "open"},
                      headers=admin_headers)
    assert complaint["id"] in [c["id"] for c in resp.json()["complaints"]]

    resp = client.patch(f"/api/admin/complaints/{complaint['id']}/status",
                        json={"status": "in_progress", "note": "Contacted provider"},
                        headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["admin_notes"][-1]["note"] == "Contacted provider"

    resp = client.post(f"/api/admin/complaints/{complaint['id']}/resolve",
                       json={"resolution": "Provider repaired the wall"}, headers=admin_headers)
    assert resp.status_code == 200
    resolved = resp.json()
    assert resolved["status"] == "resolved"
    assert resolved["resolution"] == "Provider repaired the wall"
    assert len(resolved["admin_notes"]) == 2

    resp = client.post(f"/api/admin/complaints/{complaint['id']}/resolve",
                       json={"resolution": "Again"}, headers=admin_headers)
    assert resp.status_code == 400


def test_complaint_requires_description(client, customer):
    _, headers = customer
    resp = client.post("/api/customer/complaints", data={"description": "   "}, headers=headers)
    assert resp.status_code == 400


def test_complaint_for_foreign_booking_forbidden(client):
    _, provider_headers = signup_and_login(client, "provider")
    _, customer_headers = signup_and_login(client, "customer")
    _, other_headers = signup_and_login(client, "customer")
    booking = book_service(client, customer_headers, create_service(client, provider_headers)["id"])

    resp = client.post("/api/customer/complaints",
                       data={"description": "Not mine", "booking_id": booking["id"]},
                       headers=other_headers)
    assert resp.status_code == 403


def test_category_and_city_management(client, admin_headers):
    name = f"Roofing {uuid.uuid4().hex[:6]}"
    resp = client.post("/api/admin/service-categories", json={"name": name}, headers=admin_headers)
    assert resp.status_code == 201
    category_id = resp.json()["id"]

    resp = client.post("/api/admin/service-categories", json={"name": name}, headers=admin_headers)
    assert resp.status_code == 400

    resp = client.put(f"/api/admin/service-categories/{category_id}",
                      json={"name": name + " & Gutters"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == name + " & Gutters"

    resp = client.delete(f"/api/admin/service-categories/{category_id}", headers=admin_headers)
    assert resp.status_code == 200
    assert client.delete(f"/api/admin/service-categories/{category_id}",
                         headers=admin_headers).status_code == 404

    city = f"Sialkot {uuid.uuid4().hex[:6]}"
    resp = client.post("/api/admin/cities", json={"name": city}, headers=admin_headers)
    assert resp.status_code == 201
    city_id = resp.json()["id"]
    assert city in [c["name"] for c in client.get("/api/cities").json()]

    resp = client.delete(f"/api/admin/cities/{city_id}", headers=admin_headers)
    assert resp.status_code == 200
    assert city not in [c["name"] for c in client.get("/api/cities").json()]


def test_provider_vetting_flow(client, admin_headers):
    # 1. New providers await approval
    provider, provider_headers = signup_and_login(client, "provider")
    assert provider["approval_status"] == "pending"

    resp = client.get("/api/admin/providers/pending", params={"limit": 100}, headers=admin_headers)
    assert resp.status_code == 200
    assert provider["id"] in [p["id"] for p in resp.json()["providers"]]

    resp = client.get("/api/admin/users", params={"role": "provider", "status": "pending", "limit": 100},
                      headers=admin_headers)
    assert provider["id"] in [u["id"] for u in resp.json()["users"]]

    # 2. Admin rejects with a reason; the account is locked out
    resp = client.patch(f"/api/admin/providers/{provider['id']}/reject",
                        json={"reason": "CNIC could not be verified"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["approval_status"] == "rejected"
    assert body["rejection_reason"] == "CNIC could not be verified"
    assert body["rejected_by"] is not None
    assert client.get("/api/provider/dashboard", headers=provider_headers).status_code == 403

    resp = client.patch(f"/api/admin/providers/{provider['id']}/reject", headers=admin_headers)
    assert resp.status_code == 400

    # 3. Admin approves after review; access is restored
    resp = client.patch(f"/api/admin/providers/{provider['id']}/approve", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["approval_status"] == "approved"
    assert body["status"] == "active"
    assert body["approval_date"] is not None
    assert client.get("/api/provider/dashboard", headers=provider_headers).status_code == 200

    resp = client.get("/api/admin/providers", params={"approval_status": "approved", "limit": 100},
                      headers=admin_headers)
    assert provider["id"] in [p["id"] for p in resp.json()["providers"]]

    # 4. Customers are not providers
    customer, _ = signup_and_login(client, "customer")
    resp = client.patch(f"/api/admin/providers/{customer['id']}/approve", headers=admin_headers)
    assert resp.status_code == 404


def test_user_detail_and_delete(client, admin_headers):
    idle, _ = signup_and_login(client, "customer")
    resp = client.get(f"/api/admin/users/{idle['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == idle["email"]

    resp = client.delete(f"/api/admin/users/{idle['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert client.get(f"/api/admin/users/{idle['id']}", headers=admin_headers).status_code == 404

    # Accounts with bookings are kept for history
    _, provider_headers = signup_and_login(client, "provider")
    active, customer_headers = signup_and_login(client, "customer")
    book_service(client, customer_headers, create_service(client, provider_headers)["id"])
    resp = client.delete(f"/api/admin/users/{active['id']}", headers=admin_headers)
    assert resp.status_code == 409

    # A provider without bookings takes their listings with them
    lonely, lonely_headers = signup_and_login(client, "provider")
    service = create_service(client, lonely_headers)
    assert client.delete(f"/api/admin/users/{lonely['id']}", headers=admin_headers).status_code == 200
    resp = client.get("/api/customer/search", params={"q": service["title"]}, headers=customer_headers)
    assert service["id"] not in [s["id"] for s in resp.json()]


def test_booking_oversight_and_ratings(client, admin_headers):
    provider, provider_headers = signup_and_login(client, "provider")
    _, customer_headers = signup_and_login(client, "customer")
    service = create_service(client, provider_headers)
    booking = book_service(client, customer_headers, service["id"])
    for action in ("accept", "start", "complete"):
        client.put(f"/api/provider/bookings/{booking['id']}/{action}", headers=provider_headers)
    client.post("/api/customer/reviews", json={
        "booking_id": booking["id"], "rating": 5, "review_text": "Excellent",
    }, headers=customer_headers)

    # 1. Paginated booking list with a status filter
    resp = client.get("/api/admin/bookings", params={"status": "completed", "limit": 100}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert all(b["status"] == "completed" for b in body["bookings"])
    assert booking["id"] in [b["id"] for b in body["bookings"]]
    assert body["pagination"]["total"] >= 1

    # 2. Booking analytics for the default window
    resp = client.get("/api/admin/analytics/bookings", headers=admin_headers)
    assert resp.status_code == 200
    analytics = resp.json()
    assert analytics["summary"]["completed_bookings"] >= 1
    assert analytics["bookings_by_date"]

    resp = client.get("/api/admin/analytics/bookings",
                      params={"start_date": "2030-02-01T00:00:00", "end_date": "2030-01-01T00:00:00"},
                      headers=admin_headers)
    assert resp.status_code == 400

    # 3. Ratings overview
    resp = client.get("/api/admin/ratings", headers=admin_headers)
    assert resp.status_code == 200
    ratings = resp.json()
    assert ratings["total_reviews"] >= 1
    assert 1 <= ratings["average_rating"] <= 5

    resp = client.get("/api/admin/providers/ratings", headers=admin_headers)
    entry = next(p for p in resp.json()["providers"] if p["id"] == provider["id"])
    assert entry["rating"] == 5
    assert entry["review_count"] == 1

    resp = client.get(f"/api/admin/providers/{provider['id']}/reviews", headers=admin_headers)
    reviews = resp.json()["reviews"]
    assert [r["review_text"] for r in reviews] == ["Excellent"]
    assert reviews[0]["moderation_status"] == "none"


def test_complaint_status_cannot_skip_resolution(client, admin_headers, customer):
    _, headers = customer
    complaint = client.post("/api/customer/complaints", data={"description": "No show"}, headers=headers).json()

    resp = client.patch(f"/api/admin/complaints/{complaint['id']}/status",
                        json={"status": "resolved"}, headers=admin_headers)
    assert resp.status_code == 400
    resp = client.patch(f"/api/admin/complaints/{complaint['id']}/status",
                        json={"status": "closed"}, headers=admin_headers)
    assert resp.status_code == 400
    assert client.get(f"/api/admin/complaints/{complaint['id']}", headers=admin_headers).json()["status"] == "open"

    client.post(f"/api/admin/complaints/{complaint['id']}/resolve",
                json={"resolution": "Refunded visit fee"}, headers=admin_headers)
    resp = client.patch(f"/api/admin/complaints/{complaint['id']}/status",
                        json={"status": "closed"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "closed"


def test_oversized_evidence_rejected(client, customer, monkeypatch):
    _, headers = customer
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

    resp = client.post("/api/customer/complaints", data={"description": "Big photo"},
                       files={"evidence": ("big.jpg", b"x" * 17, "image/jpeg")}, headers=headers)
    assert resp.status_code == 413

    resp = client.post("/api/customer/complaints", data={"description": "Small photo"},
                       files={"evidence": ("small.jpg", b"x" * 16, "image/jpeg")}, headers=headers)
    assert resp.status_code == 201
