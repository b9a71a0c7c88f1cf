"""
Accounts, JWTs, password reset and e-mail verification.
"""
import re
from datetime import timedelta

import pytest

from conftest import PASSWORD, make_admin, make_customer
from wedding_market.exceptions import AuthenticationError, TokenExpired
from wedding_market.models import Admin, Customer, EmailVerificationToken, ResetToken, TokenStatus
from wedding_market.utils.auth import (
    UserRole,
    create_access_token,
    create_reset_token,
    decode_access_token,
    hash_token,
    verify_password,
)

AUTH = "/api/v1/auth"
NEW_PASSWORD = "N3w-Passw0rd!"
RESET_LINK = re.compile(r"reset-password\?token=([\w.-]+)")


class TestAccessTokens:

    def test_round_trip_claims(self, customer):
        payload = decode_access_token(create_access_token(customer.id, UserRole.CUSTOMER, customer.email))
        assert payload["sub"] == str(customer.id)
        assert payload["role"] == "customer"

    def test_expired_token(self, customer):
        token = create_access_token(customer.id, UserRole.CUSTOMER, customer.email, expires_delta=timedelta(minutes=-5))
        with pytest.raises(TokenExpired):
            decode_access_token(token)

    def test_reset_token_is_not_an_access_token(self, customer):
        with pytest.raises(AuthenticationError):
            decode_access_token(create_reset_token(customer.email, UserRole.CUSTOMER))

    def test_expired_token_rejected_by_api(self, client, customer):
        token = create_access_token(customer.id, UserRole.CUSTOMER, customer.email, expires_delta=timedelta(minutes=-5))
        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "Expired"

    def test_tampered_token_rejected(self, client, customer):
        header_and_claims = create_access_token(customer.id, UserRole.CUSTOMER, customer.email).rsplit(".", 1)[0]
        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {header_and_claims}.forgedsignature"})
        assert response.status_code == 401

    def test_wrong_role_is_forbidden(self, client, customer_headers):
        response = client.get("/api/v1/providers/me", headers=customer_headers)
        assert response.status_code == 403


class TestRegistrationAndLogin:

    def register_customer(self, client, email="new@example.com", password=PASSWORD):
        return client.post(f"{AUTH}/customer/register", json={
            "name": "Meera Iyer",
            "email": email,
            "password": password,
            "phone_no": "9000000009",
        })

    def test_register_and_fetch_profile(self, client):
        response = self.register_customer(client)
        assert response.status_code == 201
        token = response.json()["access_token"]

        me = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "new@example.com"
        assert me.json()["role"] == "customer"

    def test_login_sets_cookie_used_for_auth(self, client, customer):
        response = client.post(f"{AUTH}/customer/login", json={"email": customer.email, "password": PASSWORD})
        assert response.status_code == 200
        assert "access_token" in response.cookies

        assert client.get(f"{AUTH}/me").json()["id"] == customer.id

        client.post(f"{AUTH}/logout")
        assert client.get(f"{AUTH}/me").status_code == 401

    def test_duplicate_email(self, client, customer):
        response = self.register_customer(client, email=customer.email)
        assert response.status_code == 409

    @pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "NoDigitsHere!", "NoSpecial123"])
    def test_weak_password(self, client, password):
        response = self.register_customer(client, password=password)
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_wrong_password(self, client, customer):
        response = client.post(f"{AUTH}/customer/login", json={"email": customer.email, "password": "Wrong#123"})
        assert response.status_code == 401

    def test_provider_registers_as_basic(self, client):
        response = client.post(f"{AUTH}/provider/register", json={
            "name": "Kiran Decor",
            "email": "kiran@example.com",
            "password": PASSWORD,
        })
        assert response.status_code == 201
        assert response.json()["user"]["status"] == "basic_registered"

    def test_update_profile(self, client, db, customer, customer_headers):
        response = client.put(f"{AUTH}/me", json={"name": "Asha R.", "phone_no": "9111111111"}, headers=customer_headers)
        assert response.status_code == 200

        db.expire_all()
        refreshed = db.get(Customer, customer.id)
        assert refreshed.name == "Asha R."
        assert refreshed.phone_no == "9111111111"

    def test_change_password(self, client, db, customer, customer_headers):
        wrong = client.post(f"{AUTH}/change-password", json={"old_password": "nope", "new_password": NEW_PASSWORD}, headers=customer_headers)
        assert wrong.status_code == 400

        ok = client.post(f"{AUTH}/change-password", json={"old_password": PASSWORD, "new_password": NEW_PASSWORD}, headers=customer_headers)
        assert ok.status_code == 200
        db.expire_all()
        assert verify_password(NEW_PASSWORD, db.get(Customer, customer.id).password_hash)


class TestAdminLogin:

    def test_admin_login(self, client, db):
        admin = make_admin(db)
        response = client.post(f"{AUTH}/admin/login", json={"email": admin.email, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    def test_inactive_admin_refused(self, client, db):
        admin = make_admin(db, is_active=False)
        response = client.post(f"{AUTH}/admin/login", json={"email": admin.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_lockout_after_repeated_failures(self, client, db, settings):
        admin = make_admin(db)
        for _ in range(settings.ADMIN_MAX_FAILED_LOGINS):
            client.post(f"{AUTH}/admin/login", json={"email": admin.email, "password": "Wrong#123"})

        response = client.post(f"{AUTH}/admin/login", json={"email": admin.email, "password": PASSWORD})
        assert response.status_code == 403
        db.expire_all()
        assert db.get(Admin, admin.id).is_active is False


class TestPasswordReset:

    def forgot(self, client, email):
        return client.post(f"{AUTH}/forgot-password", json={"email": email, "role": "customer"})

    def latest_token(self, db):
        db.expire_all()
        return db.query(ResetToken).order_by(ResetToken.id.desc()).first()

    def mailed_token(self, mailer, email):
        return RESET_LINK.search(mailer.sent_to(email)[-1]["html"]).group(1)

    def test_reset_token_is_single_use(self, client, db, customer, mailer):
        response = self.forgot(client, customer.email)
        assert response.status_code == 200
        assert len(mailer.sent_to(customer.email)) == 1

        token = self.mailed_token(mailer, customer.email)
        first = client.post(f"{AUTH}/reset-password", json={"token": token, "new_password": NEW_PASSWORD})
        assert first.status_code == 200

        second = client.post(f"{AUTH}/reset-password", json={"token": token, "new_password": "An0ther-Pass!"})
        assert second.status_code == 400
        assert second.json()["error"] == "InvalidOrExpiredToken"

        assert self.latest_token(db).status == TokenStatus.USED
        login = client.post(f"{AUTH}/customer/login", json={"email": customer.email, "password": NEW_PASSWORD})
        assert login.status_code == 200

    def test_expired_reset_token(self, client, clock, customer, mailer):
        self.forgot(client, customer.email)
        token = self.mailed_token(mailer, customer.email)

        clock.now = clock.now + timedelta(hours=2)
        response = client.post(f"{AUTH}/reset-password", json={"token": token, "new_password": NEW_PASSWORD})
        assert response.status_code == 400

    def test_weak_new_password_keeps_token(self, client, db, customer, mailer):
        self.forgot(client, customer.email)
        token = self.mailed_token(mailer, customer.email)

        weak = client.post(f"{AUTH}/reset-password", json={"token": token, "new_password": "weak"})
        assert weak.status_code == 400
        assert self.latest_token(db).status == TokenStatus.PENDING

    def test_only_digest_is_stored(self, client, db, customer, mailer):
        self.forgot(client, customer.email)
        token = self.mailed_token(mailer, customer.email)

        record = self.latest_token(db)
        assert record.token_hash == hash_token(token)
        assert "token" not in ResetToken.__table__.columns
        assert token not in {str(value) for value in db.execute(ResetToken.__table__.select()).one()}

    def test_garbage_token(self, client):
        response = client.post(f"{AUTH}/reset-password", json={"token": "not-a-jwt", "new_password": NEW_PASSWORD})
        assert response.status_code == 400

    def test_unknown_email_gives_same_answer(self, client, db, mailer):
        response = self.forgot(client, "nobody@example.com")
        assert response.status_code == 200
        assert "If the email exists" in response.json()["message"]
        assert mailer.sent == []
        assert db.query(ResetToken).count() == 0

    def test_hourly_request_cap(self, client, customer, settings):
        for _ in range(settings.FORGOT_PASSWORD_MAX_PER_HOUR):
            assert self.forgot(client, customer.email).status_code == 200

        response = self.forgot(client, customer.email)
        assert response.status_code == 429


class TestEmailVerification:

    @pytest.fixture
    def settings(self):
        from wedding_market.config import Settings
        return Settings(REQUIRE_EMAIL_VERIFICATION=True)

    def register(self, client, email):
        return client.post(f"{AUTH}/customer/register", json={"name": "Neha Shah", "email": email, "password": PASSWORD})

    def test_registration_requires_verified_email(self, client):
        response = self.register(client, "neha@example.com")
        assert response.status_code == 400

    def test_verify_then_register(self, client, db, mailer):
        email = "neha@example.com"
        assert client.post(f"{AUTH}/send-verification", json={"email": email}).status_code == 200
        assert len(mailer.sent_to(email)) == 1

        token = db.query(EmailVerificationToken).filter(EmailVerificationToken.email == email).one().token
        verified = client.post(f"{AUTH}/verify-email", json={"token": token})
        assert verified.status_code == 200
        assert verified.json()["email"] == email

        again = client.post(f"{AUTH}/verify-email", json={"token": token})
        assert again.status_code == 400

        assert self.register(client, email).status_code == 201
        db.expire_all()
        assert db.query(EmailVerificationToken).filter(EmailVerificationToken.email == email).one().status == TokenStatus.USED

    def test_expired_verification_code(self, client, db, clock):
        email = "late@example.com"
        client.post(f"{AUTH}/send-verification", json={"email": email})
        token = db.query(EmailVerificationToken).one().token

        clock.now = clock.now + timedelta(minutes=16)
        assert client.post(f"{AUTH}/verify-email", json={"token": token}).status_code == 400

    def test_existing_account_cannot_request_code(self, client, db):
        existing = make_customer(db, email="taken@example.com")
        response = client.post(f"{AUTH}/send-verification", json={"email": existing.email})
        assert response.status_code == 409
