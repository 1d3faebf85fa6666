import logging
from sqlalchemy.orm import Session

from app.models import Admin, AdminRoleEnum, Car, CarStatusEnum, Customer, Driver
from common_utils.auth.utils import hash_password

logger = logging.getLogger(__name__)

DEFAULT_SEED_PASSWORD = "password123"


def seed_admins(db: Session, password: str = DEFAULT_SEED_PASSWORD):
    """
    Seed one admin and one staff account (idempotent).
    """
    admins_data = [
        {
            "first_name": "Rental",
            "last_name": "Admin",
            "email": "admin@example.com",
            "username": "admin",
            "contact_no": "09170000001",
            "role": AdminRoleEnum.ADMIN,
        },
        {
            "first_name": "Front",
            "last_name": "Desk",
            "email": "staff@example.com",
            "username": "staff",
            "contact_no": "09170000002",
            "role": AdminRoleEnum.STAFF,
        },
    ]

    for data in admins_data:
        if db.query(Admin).filter(Admin.email == data["email"]).first():
            logger.info(f"Admin {data['email']} already exists, skipping.")
            continue
        db.add(Admin(**data, password=hash_password(password), is_active=True))
        logger.info(f"Admin {data['email']} ({data['role'].value}) created.")

    db.commit()
    logger.info("✅ Admin seeding completed successfully.")


def seed_customers(db: Session, password: str = DEFAULT_SEED_PASSWORD):
    customers_data = [
        {
            "first_name": "Juan",
            "last_name": "Dela Cruz",
            "email": "juan@example.com",
            "username": "juan",
            "contact_no": "09171234567",
            "address": "Quezon City",
            "driver_license_no": "N01-23-456789",
        },
        {
            "first_name": "Maria",
            "last_name": "Santos",
            "email": "maria@example.com",
            "username": "maria",
            "contact_no": "09179876543",
            "address": "Makati City",
        },
    ]

    for data in customers_data:
        if db.query(Customer).filter(Customer.email == data["email"]).first():
            logger.info(f"Customer {data['email']} already exists, skipping.")
            continue
        db.add(Customer(**data, password=hash_password(password), is_active=True))
        logger.info(f"Customer {data['email']} created.")

    db.commit()
    logger.info("✅ Customer seeding completed successfully.")


def seed_drivers(db: Session, password: str = DEFAULT_SEED_PASSWORD):
    if db.query(Driver).filter(Driver.email == "driver@example.com").first():
        logger.info("Driver already exists, skipping.")
        return

    db.add(Driver(
        first_name="Pedro",
        last_name="Reyes",
        email="driver@example.com",
        username="pedro",
        contact_no="09170000010",
        license_number="D02-11-000111",
        password=hash_password(password),
        is_active=True,
    ))
    db.commit()
    logger.info("✅ Driver seeding completed successfully.")


def seed_cars(db: Session):
    cars_data = [
        {"make": "Toyota", "model": "Vios", "year": 2022, "license_plate": "NAB-1234", "seats": 5, "rent_price": 1500.0},
        {"make": "Mitsubishi", "model": "Xpander", "year": 2023, "license_plate": "NCD-5678", "seats": 7, "rent_price": 2500.0},
        {"make": "Toyota", "model": "Hiace", "year": 2021, "license_plate": "NEF-9012", "seats": 15, "rent_price": 4000.0},
    ]

    for data in cars_data:
        if db.query(Car).filter(Car.license_plate == data["license_plate"]).first():
            logger.info(f"Car {data['license_plate']} already exists, skipping.")
            continue
        db.add(Car(**data, car_status=CarStatusEnum.AVAILABLE, is_active=True))
        logger.info(f"Car {data['license_plate']} created.")

    db.commit()
    logger.info("✅ Car seeding completed successfully.")


def seed_all(db: Session):
    seed_admins(db)
    seed_customers(db)
    seed_drivers(db)
    seed_cars(db)
