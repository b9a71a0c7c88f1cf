"""
Support desk (account and guest queries) and admin analytics
"""
from datetime import datetime, timedelta

import pytest

from conftest import DEFAULT_NOW, auth_headers, make_admin, make_booking, make_customer, make_provider, make_service
from wedding_market.models import AuditLog, GuestQuery, QueryStatus, SupportQuery
from wedding_market.utils.auth import UserRole

SUPPORT = "/api/v1/support"
ADMIN = "/api/v1/admin"


@pytest.fixture
def admin(db):
    return make_admin(db)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin, UserRole.ADMIN)


@pytest.fixture
def other_admin_headers(db):
    return auth_headers(make_admin(db, email="second-admin@example.com"), UserRole.ADMIN)


def raise_query(client, headers, subject="Payment not reflected", message="I paid the advance but the booking shows unpaid"):
    response = client.post(f"{SUPPORT}/queries", json={"subject": subject, "message": message}, headers=headers)
    assert response.status_code == 201
    return response.json()["query_id"]


def contact_form(client, **overrides):
    payload = {
        "name": "Meera Iyer",
        "email": "Meera@Example.com",
        "subject": "Do you list mehendi artists in Nashik?",
        "message": "Planning a December wedding.",
    }
    payload.update(overrides)
    return client.post(f"{SUPPORT}/guest-queries", json=payload)


class TestRaisingQueries:

    def test_customer_raises_and_sees_query(self, client, customer_headers):
        query_id = raise_query(client, customer_headers)

        mine = client.get(f"{SUPPORT}/queries", headers=customer_headers).json()
        assert mine["total"] == 1
        assert mine["queries"][0]["id"] == query_id
        assert mine["queries"][0]["status"] == "pending"
        assert mine["queries"][0]["user_type"] == "Customer"
        assert mine["queries"][0]["created_at"] == DEFAULT_NOW.isoformat()

    def test_provider_queries_are_kept_apart(self, client, customer_headers, provider_headers):
        raise_query(client, provider_headers, subject="Cannot upload portfolio")
        assert client.get(f"{SUPPORT}/queries", headers=customer_headers).json()["total"] == 0

        mine = client.get(f"{SUPPORT}/queries", headers=provider_headers).json()
        assert mine["queries"][0]["user_type"] == "ServiceProvider"

    def test_blank_subject_rejected(self, client, customer_headers):
        response = client.post(f"{SUPPORT}/queries", json={"subject": "   ", "message": "hello"}, headers=customer_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_requires_account(self, client):
        response = client.post(f"{SUPPORT}/queries", json={"subject": "Hi", "message": "hello"})
        assert response.status_code == 401

    def test_admins_do_not_raise_queries(self, client, admin_headers):
        response = client.post(f"{SUPPORT}/queries", json={"subject": "Hi", "message": "hello"}, headers=admin_headers)
        assert response.status_code == 403

    def test_guest_contact_form(self, client, db):
        response = contact_form(client)
        assert response.status_code == 201

        stored = db.query(GuestQuery).one()
        assert stored.email == "meera@example.com"
        assert stored.status == QueryStatus.PENDING

    def test_guest_needs_valid_email(self, client):
        response = contact_form(client, email="not-an-address")
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "email"


class TestAdminDesk:

    def test_claim_reply_and_mail(self, client, db, mailer, customer, customer_headers, admin, admin_headers):
        query_id = raise_query(client, customer_headers)

        listing = client.get(f"{ADMIN}/support-queries", headers=admin_headers).json()
        assert listing["total"] == 1

        claimed = client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=admin_headers)
        assert claimed.status_code == 200
        assert claimed.json()["query"]["assigned_admin_id"] == admin.id

        reply = client.post(
            f"{ADMIN}/support-queries/{query_id}/reply",
            json={"message": "The advance is now recorded."},
            headers=admin_headers
        )
        assert reply.status_code == 200
        assert reply.json()["query"]["status"] == "resolved"

        message = mailer.sent_to(customer.email)[-1]
        assert message["subject"] == "Your Query Has Been Resolved"
        assert "Payment not reflected" in message["html"]
        assert "The advance is now recorded." in message["html"]

        assert client.get(f"{ADMIN}/support-queries", headers=admin_headers).json()["total"] == 0
        mine = client.get(f"{SUPPORT}/queries", headers=customer_headers).json()["queries"][0]
        assert mine["response_message"] == "The advance is now recorded."
        assert db.query(AuditLog).filter(AuditLog.action == "query_resolved").count() == 1

    def test_claim_blocks_other_admins_until_it_lapses(self, client, clock, customer_headers, admin_headers, other_admin_headers):
        query_id = raise_query(client, customer_headers)
        assert client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=admin_headers).status_code == 200

        assert client.get(f"{ADMIN}/support-queries", headers=other_admin_headers).json()["total"] == 0
        blocked = client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=other_admin_headers)
        assert blocked.status_code == 403
        assert blocked.json()["message"] == "Query already handled by another admin"

        clock.now = clock.now + timedelta(minutes=11)
        assert client.get(f"{ADMIN}/support-queries", headers=other_admin_headers).json()["total"] == 1
        assert client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=other_admin_headers).status_code == 200

        stale = client.post(f"{ADMIN}/support-queries/{query_id}/reply", json={"message": "Fixed"}, headers=admin_headers)
        assert stale.status_code == 403
        assert stale.json()["message"] == "Query not assigned to you"

    def test_reply_requires_claim(self, client, customer_headers, admin_headers):
        query_id = raise_query(client, customer_headers)
        response = client.post(f"{ADMIN}/support-queries/{query_id}/reply", json={"message": "Fixed"}, headers=admin_headers)
        assert response.status_code == 403

    def test_resolved_query_cannot_be_answered_again(self, client, customer_headers, admin_headers):
        query_id = raise_query(client, customer_headers)
        client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=admin_headers)
        client.post(f"{ADMIN}/support-queries/{query_id}/reply", json={"message": "Fixed"}, headers=admin_headers)

        again = client.post(f"{ADMIN}/support-queries/{query_id}/reply", json={"message": "Fixed"}, headers=admin_headers)
        assert again.status_code == 409
        assert client.post(f"{ADMIN}/support-queries/{query_id}/assign", headers=admin_headers).status_code == 409

    def test_unknown_query(self, client, admin_headers):
        response = client.post(f"{ADMIN}/support-queries/999/assign", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_listing_is_paginated(self, client, customer_headers, admin_headers):
        for n in range(12):
            raise_query(client, customer_headers, subject=f"Question {n}")

        first = client.get(f"{ADMIN}/support-queries", headers=admin_headers).json()
        assert first["total"] == 12
        assert len(first["queries"]) == 10
        assert first["total_pages"] == 2

    def test_desk_is_admin_only(self, client, customer_headers):
        assert client.get(f"{ADMIN}/support-queries", headers=customer_headers).status_code == 403

    def test_guest_reply_goes_to_visitor(self, client, db, mailer, admin_headers):
        contact_form(client)
        query_id = db.query(GuestQuery).one().id

        claimed = client.post(f"{ADMIN}/guest-queries/{query_id}/assign", headers=admin_headers).json()
        assert claimed["query"]["email"] == "meera@example.com"

        reply = client.post(
            f"{ADMIN}/guest-queries/{query_id}/reply",
            json={"message": "Yes, <b>twelve</b> artists in Nashik."},
            headers=admin_headers
        )
        assert reply.status_code == 200

        message = mailer.sent_to("meera@example.com")[0]
        assert "Hello Meera Iyer," in message["html"]
        assert "Yes, &lt;b&gt;twelve&lt;/b&gt; artists in Nashik." in message["html"]
        assert db.query(SupportQuery).count() == 0


class TestAnalytics:

    def test_monthly_signups(self, client, db, admin_headers):
        for n, joined in enumerate([datetime(2030, 1, 5), datetime(2030, 1, 20), datetime(2030, 3, 2), datetime(2029, 3, 2)]):
            customer = make_customer(db, email=f"c{n}@example.com")
            customer.created_at = joined
        provider = make_provider(db)
        provider.created_at = datetime(2030, 5, 15)
        db.commit()

        trends = client.get(f"{ADMIN}/analytics/user-trends", headers=admin_headers).json()
        assert trends["year"] == 2030
        assert trends["months"][0] == "Jan"
        assert trends["customers"] == [2, 0, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0]
        assert trends["providers"][4] == 1
        assert sum(trends["providers"]) == 1

        earlier = client.get(f"{ADMIN}/analytics/user-trends", params={"year": 2029}, headers=admin_headers).json()
        assert earlier["customers"][2] == 1

    def test_orders_by_category(self, client, db, customer, provider, admin_headers):
        photos = make_service(db, provider)
        decor = make_service(db, provider, service_name="Stage Decor", category="Decoration", price="30000.00")
        make_booking(db, customer, photos)
        make_booking(db, customer, photos, booking_date=DEFAULT_NOW - timedelta(days=40))
        make_booking(db, customer, decor, booking_date=datetime(2029, 11, 3))

        body = client.get(f"{ADMIN}/analytics/orders-by-category", headers=admin_headers).json()
        assert body["categories"] == ["Decoration", "Photography"]
        assert body["current_year"] == [0, 2]
        assert body["previous_year"] == [1, 0]
