"""
Provider onboarding, admin moderation and dashboards
"""
from datetime import timedelta

import pytest

from conftest import DEFAULT_NOW, EVENT_DATE, auth_headers, make_admin, make_booking, make_customer, make_provider, make_service
from wedding_market.models import AuditLog, BookingStatus, ProviderStatus, ServiceProvider
from wedding_market.utils.auth import UserRole

ADMIN = "/api/v1/admin"

BUSINESS_DETAILS = {
    "business_name": "Shubh Mandap Decorators",
    "gst_number": "27AAPFU0939F1ZV",
    "pan_number": "AAPFU0939F",
    "aadhar_number": "123412341234",
    "address": "FC Road, Pune",
    "city": "Pune",
    "state": "Maharashtra",
}


@pytest.fixture
def admin(db):
    return make_admin(db)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin, UserRole.ADMIN)


@pytest.fixture
def applicant(db):
    return make_provider(db, email="shubh@example.com", status=ProviderStatus.PENDING_APPROVAL, business_name="Shubh Mandap Decorators")


def set_status(client, headers, provider_id, status, reason=None):
    return client.put(f"{ADMIN}/providers/{provider_id}/status", json={"status": status, "reason": reason}, headers=headers)


class TestBusinessDetails:

    def test_submission_moves_provider_to_review(self, client, db):
        newcomer = make_provider(db, email="fresh@example.com", status=ProviderStatus.BASIC_REGISTERED, business_name=None)
        headers = auth_headers(newcomer, UserRole.PROVIDER)

        response = client.post("/api/v1/providers/me/business-details", json=BUSINESS_DETAILS, headers=headers)
        assert response.status_code == 200
        assert response.json()["provider"]["status"] == "pending_approval"

        again = client.post("/api/v1/providers/me/business-details", json=BUSINESS_DETAILS, headers=headers)
        assert again.status_code == 400

    def test_provider_updates_contact_details(self, client, provider_headers):
        response = client.put("/api/v1/providers/me", json={"city": "Nashik", "alternate_phone": "9222222222"}, headers=provider_headers)
        assert response.status_code == 200
        assert response.json()["provider"]["city"] == "Nashik"

    def test_pan_must_be_ten_characters(self, client, db):
        newcomer = make_provider(db, email="fresh@example.com", status=ProviderStatus.BASIC_REGISTERED)
        payload = dict(BUSINESS_DETAILS, pan_number="SHORT")
        response = client.post("/api/v1/providers/me/business-details", json=payload, headers=auth_headers(newcomer, UserRole.PROVIDER))
        assert response.status_code == 400


class TestModeration:

    def test_approve_provider(self, client, db, admin, admin_headers, applicant, mailer):
        response = set_status(client, admin_headers, applicant.id, "approved")
        assert response.status_code == 200
        assert response.json()["provider"]["status"] == "approved"

        log = db.query(AuditLog).one()
        assert log.actor_id == admin.id
        assert log.action == "provider_approved"
        assert log.target_id == applicant.id
        assert [m["subject"] for m in mailer.sent_to(applicant.email)] == ["Account Approved"]

        # now allowed to list services
        created = client.post("/api/v1/services", json={
            "service_name": "Floral Mandap",
            "price": "90000",
            "category": "Decor",
        }, headers=auth_headers(applicant, UserRole.PROVIDER))
        assert created.status_code == 201

    def test_reject_requires_reason(self, client, db, admin_headers, applicant):
        response = set_status(client, admin_headers, applicant.id, "rejected")
        assert response.status_code == 400
        assert db.query(AuditLog).count() == 0

    def test_reject_with_reason(self, client, db, admin_headers, applicant):
        response = set_status(client, admin_headers, applicant.id, "rejected", "GST number does not match PAN")
        assert response.status_code == 200

        db.expire_all()
        provider = db.get(ServiceProvider, applicant.id)
        assert provider.status == ProviderStatus.REJECTED
        assert provider.rejection_reason == "GST number does not match PAN"
        assert db.query(AuditLog).one().reason == "GST number does not match PAN"

    def test_only_pending_providers_are_moderated(self, client, admin_headers, provider):
        response = set_status(client, admin_headers, provider.id, "rejected", "Too late")
        assert response.status_code == 400

    def test_unknown_outcome(self, client, admin_headers, applicant):
        assert set_status(client, admin_headers, applicant.id, "suspended").status_code == 400

    def test_unknown_provider(self, client, admin_headers):
        assert set_status(client, admin_headers, 999, "approved").status_code == 404

    def test_non_admin_forbidden(self, client, applicant, customer_headers, provider_headers):
        assert set_status(client, customer_headers, applicant.id, "approved").status_code == 403
        assert client.get(f"{ADMIN}/providers", headers=provider_headers).status_code == 403

    def test_list_providers_by_status(self, client, admin_headers, applicant, provider):
        body = client.get(f"{ADMIN}/providers", params={"status": "pending_approval"}, headers=admin_headers).json()
        assert [p["id"] for p in body["providers"]] == [applicant.id]

        assert client.get(f"{ADMIN}/providers", params={"status": "frozen"}, headers=admin_headers).status_code == 400

    def test_audit_log_listing(self, client, admin_headers, applicant):
        set_status(client, admin_headers, applicant.id, "approved")
        logs = client.get(f"{ADMIN}/audit-logs", headers=admin_headers).json()
        assert logs["total"] == 1
        assert logs["logs"][0]["details"] == "pending_approval -> approved"


class TestDashboards:

    def test_admin_stats(self, client, db, admin_headers, customer, service, applicant):
        make_booking(db, customer, service)
        make_booking(db, customer, service, status=BookingStatus.COMPLETED)

        stats = client.get(f"{ADMIN}/dashboard/stats", headers=admin_headers).json()
        assert stats["total_customers"] == 1
        assert stats["total_providers"] == 2
        assert stats["providers_by_status"]["pending_approval"] == 1
        assert stats["active_services"] == 1
        assert stats["bookings_by_status"]["Pending"] == 1
        assert stats["bookings_by_status"]["Completed"] == 1

    def test_customer_search(self, client, db, admin_headers, customer):
        make_customer(db, email="vikram@example.com", name="Vikram Joshi")
        body = client.get(f"{ADMIN}/customers", params={"search": "vikram"}, headers=admin_headers).json()
        assert body["total"] == 1

    def test_provider_dashboard(self, client, db, customer, provider, service, provider_headers):
        make_booking(db, customer, service)
        make_booking(db, customer, service, status=BookingStatus.ACCEPTED)
        make_booking(db, customer, service, status=BookingStatus.COMPLETED, event_date=DEFAULT_NOW.date())
        make_booking(db, customer, service, status=BookingStatus.COMPLETED, event_date=DEFAULT_NOW.date() - timedelta(days=40), booking_date=DEFAULT_NOW - timedelta(days=60))
        other = make_customer(db, email="other@example.com")
        make_booking(db, other, service, status=BookingStatus.REJECTED, event_date=EVENT_DATE)

        untouched = make_provider(db, email="quiet@example.com")
        make_booking(db, customer, make_service(db, untouched), status=BookingStatus.COMPLETED)

        body = client.get("/api/v1/providers/me/dashboard", headers=provider_headers).json()
        assert body["upcoming_orders"] == 1
        assert body["pending_requests"] == 1
        assert body["orders_this_month"] == 4
        assert body["total_earnings"] == 90000.0
        assert body["revenue_this_month"] == 45000.0
        assert body["customers_this_year"] == 2
        assert body["booking_analysis"]["Completed"] == 2
        assert body["booking_analysis"]["Rejected"] == 1
        assert body["service_ratings"][0]["service_id"] == service.id
