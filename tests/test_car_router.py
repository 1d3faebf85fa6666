"""
Tests for fleet endpoints under /cars.
"""
import pytest
from fastapi import status

CARS = "/api/v1/cars"


@pytest.fixture
def car_payload():
    return {
        "make": "Honda",
        "model": "City",
        "year": 2024,
        "license_plate": "NEW-0001",
        "seats": 5,
        "rent_price": 1800,
    }


class TestListCars:
    def test_customer_can_browse(self, client, customer_headers, test_car, second_car):
        response = client.get(f"{CARS}/", headers=customer_headers)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["meta"]["total"] == 2
        assert {c["license_plate"] for c in body["data"]} == {"NAB-1234", "NCD-5678"}

    def test_filter_by_status_and_search(self, client, admin_headers, test_db, test_car, second_car):
        from app.models import CarStatusEnum

        second_car.car_status = CarStatusEnum.MAINTENANCE
        test_db.commit()

        available = client.get(f"{CARS}/", params={"status": "Available"}, headers=admin_headers).json()
        assert [c["car_id"] for c in available["data"]] == [test_car.car_id]

        searched = client.get(f"{CARS}/", params={"search": "xpander"}, headers=admin_headers).json()
        assert [c["car_id"] for c in searched["data"]] == [second_car.car_id]

    def test_requires_authentication(self, client, test_car):
        assert client.get(f"{CARS}/").status_code == status.HTTP_401_UNAUTHORIZED


class TestCarCrud:
    def test_admin_creates_car(self, client, admin_headers, car_payload):
        response = client.post(f"{CARS}/", json=car_payload, headers=admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["car_status"] == "Available"
        assert data["is_active"] is True
        assert data["rent_price"] == 1800.0

    def test_duplicate_plate(self, client, admin_headers, car_payload, test_car):
        car_payload["license_plate"] = test_car.license_plate
        response = client.post(f"{CARS}/", json=car_payload, headers=admin_headers)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"]["error_code"] == "DUPLICATE_RESOURCE"

    def test_non_positive_rate_rejected(self, client, admin_headers, car_payload):
        car_payload["rent_price"] = 0
        assert client.post(f"{CARS}/", json=car_payload, headers=admin_headers).status_code == 422

    def test_customer_cannot_create(self, client, customer_headers, car_payload):
        response = client.post(f"{CARS}/", json=car_payload, headers=customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_car(self, client, admin_headers, test_car):
        response = client.put(
            f"{CARS}/{test_car.car_id}",
            json={"rent_price": 1200, "car_status": "Maintenance"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["rent_price"] == 1200.0
        assert data["car_status"] == "Maintenance"
        assert data["license_plate"] == "NAB-1234"

    def test_update_to_taken_plate(self, client, admin_headers, test_car, second_car):
        response = client.put(
            f"{CARS}/{test_car.car_id}", json={"license_plate": second_car.license_plate}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_delete_deactivates(self, client, admin_headers, test_car):
        response = client.delete(f"{CARS}/{test_car.car_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

        listed = client.get(f"{CARS}/", headers=admin_headers).json()
        assert listed["meta"]["total"] == 0

        fetched = client.get(f"{CARS}/{test_car.car_id}", headers=admin_headers).json()
        assert fetched["data"]["is_active"] is False

    def test_missing_car(self, client, admin_headers):
        response = client.get(f"{CARS}/999", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["error_code"] == "CAR_NOT_FOUND"

    def test_deactivated_car_cannot_be_booked(self, client, admin_headers, customer_headers, test_car):
        from datetime import timedelta
        from common_utils import utc_now

        client.delete(f"{CARS}/{test_car.car_id}", headers=admin_headers)
        start = utc_now().date() + timedelta(days=5)
        response = client.post(
            "/api/v1/bookings/",
            json={
                "car_id": test_car.car_id,
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=2)).isoformat(),
            },
            headers=customer_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["error_code"] == "CAR_NOT_FOUND"
