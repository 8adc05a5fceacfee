from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.database import utcnow


@pytest.fixture
def window():
    start = utcnow().replace(microsecond=0)
    return lambda a, b: {
        "pickup_date": (start + timedelta(days=a)).isoformat(),
        "return_date": (start + timedelta(days=b)).isoformat(),
    }


@pytest.fixture
def create_rental(client, auth_headers, customer, vehicle, window):
    def _create(a=2, b=5, user=None):
        body = {"vehicle_id": vehicle.id, "pickup_location": "Airport", **window(a, b)}
        return client.post("/rentals", json=body, headers=auth_headers(user or customer))
    return _create


@pytest.fixture
def finished_rental(client, auth_headers, admin, create_rental):
    rental_id = create_rental().json()["id"]
    for step in ("confirm", "activate", "complete"):
        resp = client.post(f"/rentals/{rental_id}/{step}", headers=auth_headers(admin))
        assert resp.status_code == 200, resp.text
    return rental_id


def test_health(client):
    assert client.get("/health").json()["ok"] is True
    assert client.get("/db-health").json() == {"ok": True, "db": "connected"}


def test_requires_a_valid_token(client, customer):
    assert client.get("/rentals").status_code in (401, 403)
    resp = client.get("/rentals", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_booking_over_http(client, auth_headers, customer, other_customer, vehicle, create_rental, window):
    resp = create_rental()
    assert resp.status_code == 201, resp.text
    rental = resp.json()
    assert rental["status"] == "PENDING"
    assert Decimal(rental["total_cost"]) == Decimal("150")
    assert rental["version"] == 1

    conflict = create_rental(3, 4, user=other_customer)
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "BOOKING_CONFLICT"

    availability = client.get(f"/vehicles/{vehicle.id}/availability", params=window(3, 4), headers=auth_headers(customer))
    assert availability.json()["available"] is False
    availability = client.get(f"/vehicles/{vehicle.id}/availability", params=window(5, 6), headers=auth_headers(customer))
    assert availability.json()["available"] is True

    mine = client.get("/rentals", headers=auth_headers(customer)).json()
    assert [r["id"] for r in mine] == [rental["id"]]
    assert client.get(f"/rentals/{rental['id']}", headers=auth_headers(other_customer)).status_code == 403


def test_errors_carry_codes(client, auth_headers, customer, admin, create_rental):
    missing = client.get("/rentals/999", headers=auth_headers(customer))
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"

    rental_id = create_rental().json()["id"]
    assert client.post(f"/rentals/{rental_id}/confirm", headers=auth_headers(customer)).status_code == 403

    client.post(f"/rentals/{rental_id}/confirm", headers=auth_headers(admin))
    client.post(f"/rentals/{rental_id}/activate", headers=auth_headers(admin))
    cancel = client.post(f"/rentals/{rental_id}/cancel", headers=auth_headers(customer))
    assert cancel.status_code == 422
    assert cancel.json() == {
        "detail": "Cannot cancel an active rental. Please return the vehicle first.",
        "code": "INVALID_STATE",
    }


def test_update_with_stale_version(client, auth_headers, customer, create_rental):
    rental_id = create_rental(3, 5).json()["id"]
    first = client.patch(f"/rentals/{rental_id}", json={"pickup_location": "Downtown", "version": 1},
                         headers=auth_headers(customer))
    assert first.status_code == 200
    assert first.json()["version"] == 2

    stale = client.patch(f"/rentals/{rental_id}", json={"pickup_location": "Harbour", "version": 1},
                         headers=auth_headers(customer))
    assert stale.status_code == 409
    assert stale.json()["code"] == "CONCURRENCY_CONFLICT"


def test_cancellation_quote_and_cancel(client, auth_headers, customer, create_rental):
    rental_id = create_rental(10, 12).json()["id"]
    quote = client.get(f"/rentals/{rental_id}/cancellation-quote", headers=auth_headers(customer)).json()
    assert quote["refund_percentage"] == 100
    assert quote["cancellable"] is True

    cancelled = client.post(f"/rentals/{rental_id}/cancel", headers=auth_headers(customer))
    assert cancelled.json()["status"] == "CANCELLED"


def test_payment_refund_and_invoice(client, auth_headers, customer, finished_rental):
    body = {"rental_id": finished_rental, "amount": "150.00", "payment_method": "CREDIT_CARD", "transaction_id": "TXN1"}
    paid = client.post("/payments", json=body, headers=auth_headers(customer))
    assert paid.status_code == 201, paid.text
    payment = paid.json()
    assert payment["status"] == "COMPLETED"

    duplicate = client.post("/payments", json=body, headers=auth_headers(customer))
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "VALIDATION_FAILED"

    refund = client.post(f"/payments/{payment['id']}/refund", json={"amount": "75"}, headers=auth_headers(customer))
    assert refund.status_code == 201
    assert refund.json()["status"] == "INITIATED"

    after = client.get(f"/payments/{payment['id']}", headers=auth_headers(customer)).json()
    assert after["status"] == "PARTIALLY_REFUNDED"
    assert Decimal(after["refunded_amount"]) == Decimal("75")
    assert len(client.get(f"/payments/{payment['id']}/refunds", headers=auth_headers(customer)).json()) == 1
    assert len(client.get("/payments/user/history", headers=auth_headers(customer)).json()) == 1

    invoice = client.get(f"/payments/rental/{finished_rental}/invoice", headers=auth_headers(customer)).json()
    assert Decimal(invoice["total_amount"]) == Decimal("165")
    again = client.get(f"/payments/rental/{finished_rental}/invoice", headers=auth_headers(customer)).json()
    assert again["invoice_number"] == invoice["invoice_number"]

    total = client.get(f"/payments/rental/{finished_rental}/total-cost", headers=auth_headers(customer)).json()
    assert Decimal(total["total_cost"]) == Decimal("165")


def test_review_over_http(client, auth_headers, customer, admin, vehicle, finished_rental):
    body = {"rental_id": finished_rental, "rating": 4, "title": "Nice", "content": "Would rent again"}
    created = client.post("/reviews", json=body, headers=auth_headers(customer))
    assert created.status_code == 201, created.text
    review = created.json()
    assert review["status"] == "PENDING"

    assert client.get("/reviews/admin/pending", headers=auth_headers(customer)).status_code == 403
    pending = client.get("/reviews/admin/pending", headers=auth_headers(admin)).json()
    assert [r["id"] for r in pending] == [review["id"]]

    assert client.post(f"/reviews/{review['id']}/approve", headers=auth_headers(admin)).json()["status"] == "APPROVED"
    client.post(f"/reviews/{review['id']}/helpful", headers=auth_headers(customer))

    listed = client.get(f"/reviews/vehicle/{vehicle.id}").json()
    assert [r["helpful_count"] for r in listed] == [1]
    rating = client.get(f"/reviews/vehicle/{vehicle.id}/rating").json()
    assert rating["average_rating"] == 4.0
    assert rating["distribution"]["4"] == 1

    duplicate = client.post("/reviews", json=body, headers=auth_headers(customer))
    assert duplicate.status_code == 422


def test_audit_log_is_admin_only(client, auth_headers, customer, admin, create_rental):
    rental_id = create_rental().json()["id"]
    assert client.get("/audit-logs", headers=auth_headers(customer)).status_code == 403

    logs = client.get("/audit-logs", params={"rental_id": rental_id}, headers=auth_headers(admin)).json()
    assert [(l["action"], l["entity_type"]) for l in logs] == [("created", "rental")]
    stats = client.get("/audit-logs/stats", headers=auth_headers(admin)).json()
    assert stats["total"] == 1
