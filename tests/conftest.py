"""
Shared fixtures: per-test SQLite database, pinned clock, recording mailer
"""
import os

# Must be set before wedding_market.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REQUIRE_EMAIL_VERIFICATION"] = "false"
os.environ["BREVO_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from wedding_market.config import Settings, get_settings  # noqa: E402
from wedding_market.db.session import get_db  # noqa: E402
from wedding_market.dependencies.common import get_email_service, get_now  # noqa: E402
from wedding_market.main import app  # noqa: E402
from wedding_market.models import (  # noqa: E402
    Admin,
    AdminRole,
    Base,
    Booking,
    BookingStatus,
    Customer,
    ProviderStatus,
    Service,
    ServiceProvider,
    ServiceStatus,
)
from wedding_market.services.email_service import EmailService  # noqa: E402
from wedding_market.utils.auth import UserRole, create_access_token, get_password_hash  # noqa: E402

PASSWORD = "Secret#123"
PASSWORD_HASH = get_password_hash(PASSWORD)

# Clock used by default: events on 2030-06-10 are in the future
DEFAULT_NOW = datetime(2030, 6, 1, 10, 0)
EVENT_DATE = date(2030, 6, 10)


class FakeMailer(EmailService):
    """Records outgoing messages instead of queuing them"""

    def __init__(self):
        super().__init__(Settings(BREVO_API_KEY=""))
        self.sent = []

    def send_async(self, to_email, subject, html_body):
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})

    def sent_to(self, email):
        return [message for message in self.sent if message["to"] == email]


class FrozenClock:
    def __init__(self, now):
        self.now = now


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(DEFAULT_NOW)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def client(session_factory, clock, mailer, settings):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ============ FACTORIES ============

def make_customer(db, email="asha@example.com", name="Asha Rao"):
    customer = Customer(name=name, email=email, password_hash=PASSWORD_HASH, phone_no="9000000001")
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def make_provider(db, email="lens@example.com", name="Ravi Kumar", status=ProviderStatus.APPROVED, business_name="Lens & Light Studio"):
    provider = ServiceProvider(
        name=name,
        email=email,
        password_hash=PASSWORD_HASH,
        phone_no="9000000002",
        city="Pune",
        state="Maharashtra",
        business_name=business_name,
        status=status
    )
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


def make_admin(db, email="admin@example.com", is_active=True):
    admin = Admin(
        name="Site Admin",
        email=email,
        password_hash=PASSWORD_HASH,
        role=AdminRole.SUPER_ADMIN,
        is_active=is_active
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def make_service(db, provider, service_name="Wedding Photography", category="Photography", price="45000.00", status=ServiceStatus.ACTIVE):
    service = Service(
        provider_id=provider.id,
        service_name=service_name,
        description=f"{service_name} by {provider.business_name}",
        price=Decimal(price),
        category=category,
        status=status
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_booking(db, customer, service, status=BookingStatus.PENDING, event_date=EVENT_DATE, booking_date=DEFAULT_NOW):
    booking = Booking(
        customer_id=customer.id,
        service_id=service.id,
        provider_id=service.provider_id,
        status=status,
        event_address="Sunshine Lawns, Pune",
        event_start_date=event_date,
        event_end_date=event_date,
        event_time="18:30",
        booking_date=booking_date,
        customer_name=customer.name,
        customer_phone="9000000001",
        customer_email=customer.email,
        total_amount=service.price
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def auth_headers(account, role):
    token = create_access_token(account.id, role, account.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db):
    return make_customer(db)


@pytest.fixture
def provider(db):
    return make_provider(db)


@pytest.fixture
def service(db, provider):
    return make_service(db, provider)


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer, UserRole.CUSTOMER)


@pytest.fixture
def provider_headers(provider):
    return auth_headers(provider, UserRole.PROVIDER)
