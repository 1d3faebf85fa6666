"""
Tests for booking endpoints.

Tests cover:
- POST /bookings/ and /bookings/bulk - Create bookings
- GET /bookings/, /bookings/my-bookings, /bookings/{id} - Reads with balance
- Cancellation, extension, confirmation and hand-over transitions
- POST /bookings/auto-cancel/trigger
- Permission-based access control and ownership
"""
from datetime import timedelta

import pytest
from fastapi import status

from app.models import BookingStatusEnum
from common_utils import utc_now

BASE = "/api/v1/bookings"


def future(days: int) -> str:
    return (utc_now().date() + timedelta(days=days)).isoformat()


@pytest.fixture
def created_booking(client, customer_headers, test_car):
    response = client.post(
        f"{BASE}/",
        json={"car_id": test_car.car_id, "start_date": future(10), "end_date": future(13)},
        headers=customer_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


class TestCreateBooking:
    def test_customer_creates_booking(self, created_booking, test_customer):
        assert created_booking["customer_id"] == test_customer.customer_id
        assert created_booking["total_amount"] == 3000.0
        assert created_booking["balance"] == 3000.0
        assert created_booking["payment_status"] == "Unpaid"
        assert created_booking["booking_status"] == "Pending"
        assert created_booking["pending_actions"] == []
        assert created_booking["car_details"]["license_plate"] == "NAB-1234"

    def test_overlap_returns_conflict_details(self, client, second_customer_headers, test_car, created_booking):
        response = client.post(
            f"{BASE}/",
            json={"car_id": test_car.car_id, "start_date": future(12), "end_date": future(15)},
            headers=second_customer_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert detail["success"] is False
        assert detail["error_code"] == "CAR_UNAVAILABLE"
        assert detail["details"]["conflicts"]

    def test_invalid_dates(self, client, customer_headers, test_car):
        response = client.post(
            f"{BASE}/",
            json={"car_id": test_car.car_id, "start_date": future(10), "end_date": future(9)},
            headers=customer_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["error_code"] == "INVALID_DATE"

    def test_admin_books_for_customer(self, client, admin_headers, test_customer, test_car):
        response = client.post(
            f"{BASE}/",
            json={
                "customer_id": test_customer.customer_id,
                "car_id": test_car.car_id,
                "start_date": future(5),
                "end_date": future(6),
            },
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["customer_id"] == test_customer.customer_id

    def test_customer_cannot_book_for_someone_else(self, client, customer_headers, second_customer, test_customer, test_car):
        response = client.post(
            f"{BASE}/",
            json={
                "customer_id": second_customer.customer_id,
                "car_id": test_car.car_id,
                "start_date": future(5),
                "end_date": future(6),
            },
            headers=customer_headers,
        )
        assert response.json()["data"]["customer_id"] == test_customer.customer_id

    def test_staff_cannot_create(self, client, staff_headers, test_car):
        response = client.post(
            f"{BASE}/",
            json={"car_id": test_car.car_id, "start_date": future(5), "end_date": future(6)},
            headers=staff_headers,
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, client, test_car):
        response = client.post(
            f"{BASE}/",
            json={"car_id": test_car.car_id, "start_date": future(5), "end_date": future(6)},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"]["error_code"] == "AUTH_REQUIRED"

    def test_bulk_booking(self, client, customer_headers, test_car, second_car):
        response = client.post(
            f"{BASE}/bulk",
            json={
                "bookings": [
                    {"car_id": test_car.car_id, "start_date": future(10), "end_date": future(12)},
                    {"car_id": second_car.car_id, "start_date": future(10), "end_date": future(12)},
                ]
            },
            headers=customer_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert len(data["bookings"]) == 2
        assert {b["booking_group_id"] for b in data["bookings"]} == {data["booking_group_id"]}


class TestReadBookings:
    def test_admin_lists_bookings(self, client, admin_headers, created_booking):
        response = client.get(f"{BASE}/", params={"status": "Pending", "pageSize": 5}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["meta"]["total"] == 1
        assert body["meta"]["per_page"] == 5
        assert body["data"][0]["booking_id"] == created_booking["booking_id"]

    def test_search_by_plate(self, client, admin_headers, created_booking):
        response = client.get(f"{BASE}/", params={"search": "NAB"}, headers=admin_headers)
        assert response.json()["meta"]["total"] == 1
        response = client.get(f"{BASE}/", params={"search": "ZZZ"}, headers=admin_headers)
        assert response.json()["meta"]["total"] == 0

    def test_customer_cannot_list_all(self, client, customer_headers, created_booking):
        response = client.get(f"{BASE}/", headers=customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_my_bookings_only_own(self, client, customer_headers, second_customer_headers, created_booking):
        assert client.get(f"{BASE}/my-bookings", headers=customer_headers).json()["meta"]["total"] == 1
        assert client.get(f"{BASE}/my-bookings", headers=second_customer_headers).json()["meta"]["total"] == 0

    def test_other_customer_cannot_read(self, client, second_customer_headers, created_booking):
        response = client.get(f"{BASE}/{created_booking['booking_id']}", headers=second_customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_missing_booking(self, client, admin_headers):
        response = client.get(f"{BASE}/999", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["error_code"] == "BOOKING_NOT_FOUND"


class TestCancellationEndpoints:
    def test_request_twice_is_already_pending(self, client, customer_headers, created_booking):
        url = f"{BASE}/{created_booking['booking_id']}/cancel"
        first = client.put(url, headers=customer_headers)
        assert first.status_code == status.HTTP_200_OK
        assert first.json()["data"]["pending_actions"] == ["cancellation"]

        second = client.put(url, headers=customer_headers)
        assert second.status_code == status.HTTP_400_BAD_REQUEST
        assert second.json()["detail"]["error_code"] == "ALREADY_PENDING"

    def test_admin_approves(self, client, customer_headers, admin_headers, created_booking, email_service):
        booking_id = created_booking["booking_id"]
        client.put(f"{BASE}/{booking_id}/cancel", headers=customer_headers)

        response = client.put(f"{BASE}/{booking_id}/confirm-cancellation", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["booking_status"] == "Cancelled"
        email_service.send_booking_notice_email.assert_called_once()

    def test_admin_rejects_with_reason(self, client, customer_headers, admin_headers, created_booking):
        booking_id = created_booking["booking_id"]
        client.put(f"{BASE}/{booking_id}/cancel", headers=customer_headers)

        response = client.put(
            f"{BASE}/{booking_id}/reject-cancellation", json={"reason": "Non-refundable"}, headers=admin_headers
        )
        assert response.json()["data"]["is_cancel"] is False
        assert response.json()["data"]["booking_status"] == "Pending"

    def test_customer_withdraws(self, client, customer_headers, created_booking):
        booking_id = created_booking["booking_id"]
        client.put(f"{BASE}/{booking_id}/cancel", headers=customer_headers)
        response = client.post(f"{BASE}/{booking_id}/cancel-request/withdraw", headers=customer_headers)
        assert response.json()["data"]["is_cancel"] is False

    def test_customer_cannot_approve(self, client, customer_headers, created_booking):
        response = client.put(f"{BASE}/{created_booking['booking_id']}/confirm-cancellation", headers=customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_cancel(self, client, admin_headers, created_booking):
        response = client.put(f"{BASE}/{created_booking['booking_id']}/admin-cancel", headers=admin_headers)
        assert response.json()["data"]["booking_status"] == "Cancelled"


class TestLifecycleEndpoints:
    def _pay_and_confirm(self, client, customer_headers, staff_headers, booking):
        response = client.post(
            "/api/v1/payments/process-booking-payment",
            json={"booking_id": booking["booking_id"], "amount": 1000, "payment_method": "Cash"},
            headers=customer_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        confirmed = client.put(f"{BASE}/{booking['booking_id']}/confirm", headers=staff_headers)
        assert confirmed.status_code == status.HTTP_200_OK
        return confirmed.json()["data"]

    def test_confirm_release_extend_return(self, client, customer_headers, staff_headers, admin_headers, created_booking):
        booking_id = created_booking["booking_id"]
        confirmed = self._pay_and_confirm(client, customer_headers, staff_headers, created_booking)
        assert confirmed["booking_status"] == "Confirmed"
        assert confirmed["balance"] == 2000.0

        released = client.put(f"{BASE}/{booking_id}/release", headers=staff_headers).json()["data"]
        assert released["booking_status"] == "In Progress"

        extended = client.put(
            f"{BASE}/{booking_id}/extend", json={"new_end_date": future(15)}, headers=customer_headers
        ).json()["data"]
        assert extended["is_extend"] is True
        assert extended["lifecycle_state"] == "Extension Pending"
        assert extended["end_date"] == future(13)

        approved = client.put(f"{BASE}/{booking_id}/confirm-extension", headers=admin_headers).json()["data"]
        assert approved["end_date"] == future(15)
        assert approved["total_amount"] == 5000.0
        assert approved["balance"] == 4000.0

        history = client.get(f"{BASE}/{booking_id}/extensions", headers=customer_headers).json()["data"]
        assert history[0]["extension_status"] == "Approved"
        assert history[0]["additional_cost"] == 2000.0

        returned = client.put(f"{BASE}/{booking_id}/return", headers=staff_headers).json()["data"]
        assert returned["booking_status"] == "Completed"

    def test_extension_reject_and_withdraw(self, client, customer_headers, staff_headers, created_booking):
        booking_id = created_booking["booking_id"]
        self._pay_and_confirm(client, customer_headers, staff_headers, created_booking)
        client.put(f"{BASE}/{booking_id}/release", headers=staff_headers)

        client.put(f"{BASE}/{booking_id}/extend", json={"new_end_date": future(15)}, headers=customer_headers)
        rejected = client.put(
            f"{BASE}/{booking_id}/reject-extension", json={"reason": "Reserved"}, headers=staff_headers
        ).json()["data"]
        assert rejected["is_extend"] is False

        client.put(f"{BASE}/{booking_id}/extend", json={"new_end_date": future(14)}, headers=customer_headers)
        withdrawn = client.post(f"{BASE}/{booking_id}/cancel-extension", headers=customer_headers).json()["data"]
        assert withdrawn["is_extend"] is False
        assert withdrawn["end_date"] == future(13)
        assert withdrawn["total_amount"] == 3000.0

    def test_release_unconfirmed_booking(self, client, staff_headers, created_booking):
        response = client.put(f"{BASE}/{created_booking['booking_id']}/release", headers=staff_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["error_code"] == "INVALID_STATE"

    def test_confirm_without_payment(self, client, staff_headers, created_booking):
        response = client.put(f"{BASE}/{created_booking['booking_id']}/confirm", headers=staff_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["error_code"] == "STATE_CONFLICT"


class TestAutoCancelTrigger:
    def test_admin_triggers_sweep(self, client, admin_headers, make_booking):
        stale = make_booking(start_in_days=10, booked_at=utc_now() - timedelta(days=4))

        response = client.post(f"{BASE}/auto-cancel/trigger", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["cancelled_bookings"] == [stale.booking_id]
        assert response.json()["data"]["expired_extensions"] == []
        assert response.json()["data"]["waitlist_notified"] == []
        assert stale.booking_status == BookingStatusEnum.CANCELLED

    def test_staff_cannot_trigger(self, client, staff_headers):
        response = client.post(f"{BASE}/auto-cancel/trigger", headers=staff_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
