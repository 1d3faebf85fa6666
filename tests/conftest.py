"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["TWILIO_ENABLED"] = "false"

from datetime import timedelta
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from app.database.session import Database, get_db
from app.models import (
    Admin,
    AdminRoleEnum,
    Booking,
    BookingStatusEnum,
    Car,
    CarStatusEnum,
    Customer,
    Driver,
)
from common_utils import utc_now
from common_utils.auth.utils import hash_password, create_access_token
from main import app


TEST_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def database():
    """
    Fresh in-memory SQLite database for each test function.
    """
    database = Database("sqlite://")
    database.create_all()
    try:
        yield database
    finally:
        database.drop_all()
        database.dispose()


@pytest.fixture(scope="function")
def test_db(database):
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def email_service():
    service = Mock()
    service.is_configured = True
    service.send_verification_code_email.return_value = True
    service.send_booking_notice_email.return_value = True
    service.send_waitlist_notice_email.return_value = True
    return service


@pytest.fixture(scope="function")
def sms_service():
    service = Mock()
    service.send_verification_code.return_value = True
    return service


@pytest.fixture(scope="function")
def client(database, test_db, email_service, sms_service):
    """
    Test client sharing the test session, with notifiers replaced by mocks.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.state.database = database
    app.state.email_service = email_service
    app.state.sms_service = sms_service
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    for attr in ("database", "email_service", "sms_service"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)


# =====================================================================
# ACCOUNTS
# =====================================================================

@pytest.fixture(scope="function")
def test_customer(test_db):
    customer = Customer(
        first_name="Juan",
        last_name="Dela Cruz",
        email="user@example.com",
        username="juan",
        contact_no="09171234567",
        password=hash_password(TEST_PASSWORD),
        is_active=True,
    )
    test_db.add(customer)
    test_db.commit()
    test_db.refresh(customer)
    return customer


@pytest.fixture(scope="function")
def second_customer(test_db):
    customer = Customer(
        first_name="Maria",
        last_name="Santos",
        email="maria@example.com",
        username="maria",
        contact_no="09179876543",
        password=hash_password(TEST_PASSWORD),
        is_active=True,
    )
    test_db.add(customer)
    test_db.commit()
    test_db.refresh(customer)
    return customer


@pytest.fixture(scope="function")
def test_admin(test_db):
    admin = Admin(
        first_name="Rental",
        last_name="Admin",
        email="admin@example.com",
        username="admin",
        password=hash_password(TEST_PASSWORD),
        role=AdminRoleEnum.ADMIN,
        is_active=True,
    )
    test_db.add(admin)
    test_db.commit()
    test_db.refresh(admin)
    return admin


@pytest.fixture(scope="function")
def test_staff(test_db):
    staff = Admin(
        first_name="Front",
        last_name="Desk",
        email="staff@example.com",
        username="staff",
        password=hash_password(TEST_PASSWORD),
        role=AdminRoleEnum.STAFF,
        is_active=True,
    )
    test_db.add(staff)
    test_db.commit()
    test_db.refresh(staff)
    return staff


@pytest.fixture(scope="function")
def test_driver(test_db):
    driver = Driver(
        first_name="Pedro",
        last_name="Reyes",
        email="driver@example.com",
        username="pedro",
        password=hash_password(TEST_PASSWORD),
        is_active=True,
    )
    test_db.add(driver)
    test_db.commit()
    test_db.refresh(driver)
    return driver


# =====================================================================
# FLEET
# =====================================================================

@pytest.fixture(scope="function")
def test_car(test_db):
    car = Car(
        make="Toyota",
        model="Vios",
        year=2022,
        license_plate="NAB-1234",
        seats=5,
        rent_price=1000.0,
        car_status=CarStatusEnum.AVAILABLE,
        is_active=True,
    )
    test_db.add(car)
    test_db.commit()
    test_db.refresh(car)
    return car


@pytest.fixture(scope="function")
def second_car(test_db):
    car = Car(
        make="Mitsubishi",
        model="Xpander",
        year=2023,
        license_plate="NCD-5678",
        seats=7,
        rent_price=2500.0,
        car_status=CarStatusEnum.AVAILABLE,
        is_active=True,
    )
    test_db.add(car)
    test_db.commit()
    test_db.refresh(car)
    return car


@pytest.fixture(scope="function")
def make_booking(test_db, test_customer, test_car):
    """
    Factory inserting a booking row directly in any state.
    """
    def _make(
        start_in_days: int = 10,
        days: int = 3,
        status: BookingStatusEnum = BookingStatusEnum.PENDING,
        total_amount: float = None,
        customer=None,
        car=None,
        booked_at=None,
        **fields,
    ) -> Booking:
        car = car or test_car
        customer = customer or test_customer
        booked_at = booked_at or utc_now()
        start = booked_at.date() + timedelta(days=start_in_days)
        booking = Booking(
            customer_id=customer.customer_id,
            car_id=car.car_id,
            booking_date=booked_at,
            start_date=start,
            end_date=start + timedelta(days=days),
            total_amount=total_amount if total_amount is not None else days * car.rent_price,
            booking_status=status,
            **fields,
        )
        test_db.add(booking)
        test_db.commit()
        test_db.refresh(booking)
        return booking

    return _make


# =====================================================================
# TOKENS
# =====================================================================

@pytest.fixture(scope="function")
def customer_token(test_customer):
    return create_access_token(user_id=str(test_customer.customer_id), user_type="customer")


@pytest.fixture(scope="function")
def second_customer_token(second_customer):
    return create_access_token(user_id=str(second_customer.customer_id), user_type="customer")


@pytest.fixture(scope="function")
def admin_token(test_admin):
    return create_access_token(user_id=str(test_admin.admin_id), user_type="admin", role="admin")


@pytest.fixture(scope="function")
def staff_token(test_staff):
    return create_access_token(user_id=str(test_staff.admin_id), user_type="admin", role="staff")


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def customer_headers(customer_token):
    return auth_headers(customer_token)


@pytest.fixture(scope="function")
def second_customer_headers(second_customer_token):
    return auth_headers(second_customer_token)


@pytest.fixture(scope="function")
def admin_headers(admin_token):
    return auth_headers(admin_token)


@pytest.fixture(scope="function")
def staff_headers(staff_token):
    return auth_headers(staff_token)
