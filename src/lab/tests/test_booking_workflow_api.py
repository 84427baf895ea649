from datetime import date, timedelta

import pytest
from rest_framework.test import APIClient

from src.lab.factories import UserFactory, AdminFactory, ComputerFactory, BookingFactory, release_days
from src.lab.models import Booking, ReleaseDetail, Notification
from src.lab.services import claim_released_date


@pytest.mark.django_db
class TestBookingWorkflowAPI:
    def setup_method(self):
        # Test client without JWT; we'll use force_authenticate for simplicity
        self.client = APIClient()

        self.member = UserFactory()
        self.other = UserFactory()
        self.admin = AdminFactory()
        self.computer = ComputerFactory()

        self.start = date.today() + timedelta(days=10)
        self.end = self.start + timedelta(days=4)

    # ---------- helpers ----------
    def _auth(self, user):
        self.client.force_authenticate(user=user)

    def _payload(self, **overrides):
        payload = {
            "computer": self.computer.id,
            "start_date": str(self.start),
            "end_date": str(self.end),
            "start_time": "09:00",
            "end_time": "17:00",
            "reason": "Training a detector",
            "requires_gpu": True,
            "dataset_type": "Image",
            "dataset_size_value": 12,
            "dataset_size_unit": "GB",
        }
        payload.update(overrides)
        return payload

    # ---------- creation rules ----------
    def test_create_is_pending_and_notifies_admins(self):
        self._auth(self.member)
        resp = self.client.post("/api/bookings/", self._payload(), format="json")
        assert resp.status_code == 201
        assert resp.data["status"] == "pending"
        assert resp.data["user"]["id"] == self.member.id
        assert resp.data["temporary_release"] is None
        assert resp.data["can_cancel"] is True
        assert resp.data["can_approve"] is False

        note = Notification.objects.get(type=Notification.Type.BOOKING_CREATED)
        assert note.user_id is None
        assert note.metadata["booking_id"] == resp.data["id"]

    def test_date_and_time_order(self):
        self._auth(self.member)
        resp = self.client.post(
            "/api/bookings/",
            self._payload(end_date=str(self.start - timedelta(days=1))),
            format="json",
        )
        assert resp.status_code == 400
        assert "end_date" in resp.data

        resp = self.client.post("/api/bookings/", self._payload(end_time="08:00"), format="json")
        assert resp.status_code == 400
        assert "end_time" in resp.data

    def test_single_day_booking_allowed(self):
        self._auth(self.member)
        resp = self.client.post("/api/bookings/", self._payload(end_date=str(self.start)), format="json")
        assert resp.status_code == 201

    def test_past_start_rejected(self):
        self._auth(self.member)
        resp = self.client.post(
            "/api/bookings/",
            self._payload(start_date=str(date.today() - timedelta(days=1))),
            format="json",
        )
        assert resp.status_code == 400
        assert "start_date" in resp.data

    def test_inactive_computer_rejected(self):
        retired = ComputerFactory(is_active=False)
        self._auth(self.member)
        resp = self.client.post("/api/bookings/", self._payload(computer=retired.id), format="json")
        assert resp.status_code == 400
        assert "computer" in resp.data

    def test_overlap_with_approved_booking_rejected(self):
        BookingFactory(
            computer=self.computer, approved=True,
            window=(self.start + timedelta(days=2), self.end + timedelta(days=2)), hours=(13, 18),
        )
        self._auth(self.member)
        resp = self.client.post("/api/bookings/", self._payload(), format="json")
        assert resp.status_code == 400
        assert "overlap" in str(resp.data).lower()

        # Same days, hours that do not overlap
        resp = self.client.post("/api/bookings/", self._payload(start_time="08:00", end_time="12:00"), format="json")
        assert resp.status_code == 201

    # ---------- listing ----------
    def test_members_see_only_their_bookings(self):
        mine = BookingFactory(user=self.member)
        BookingFactory(user=self.other)

        self._auth(self.member)
        resp = self.client.get("/api/bookings/")
        assert resp.status_code == 200
        assert [b["id"] for b in resp.data["results"]] == [mine.id]

        self._auth(self.admin)
        resp = self.client.get("/api/bookings/")
        assert resp.data["count"] == 2

    def test_filter_by_status(self):
        BookingFactory(user=self.member)
        approved = BookingFactory(user=self.member, approved=True)
        self._auth(self.member)
        resp = self.client.get("/api/bookings/", {"status": "approved"})
        assert [b["id"] for b in resp.data["results"]] == [approved.id]

    # ---------- approve / reject ----------
    def test_admin_approves_and_overlapping_requests_are_rejected(self):
        first = BookingFactory(user=self.member, computer=self.computer, window=(self.start, self.end), hours=(9, 17))
        rival = BookingFactory(user=self.other, computer=self.computer, window=(self.end, self.end + timedelta(days=2)), hours=(10, 12))
        elsewhere = BookingFactory(user=self.other, window=(self.start, self.end), hours=(9, 17))

        self._auth(self.admin)
        resp = self.client.post(f"/api/bookings/{first.id}/approve/")
        assert resp.status_code == 200
        assert resp.data["booking"]["status"] == "approved"

        rival.refresh_from_db()
        elsewhere.refresh_from_db()
        assert rival.status == Booking.REJECTED
        assert elsewhere.status == Booking.PENDING

        assert Notification.objects.filter(type=Notification.Type.BOOKING_APPROVED, user=self.member).exists()
        assert Notification.objects.filter(type=Notification.Type.BOOKING_REJECTED, user=self.other).exists()

    def test_member_cannot_approve_or_reject(self):
        booking = BookingFactory(user=self.member)
        self._auth(self.member)
        assert self.client.post(f"/api/bookings/{booking.id}/approve/").status_code == 403
        assert self.client.post(f"/api/bookings/{booking.id}/reject/").status_code == 403
        booking.refresh_from_db()
        assert booking.status == Booking.PENDING

    def test_only_pending_can_be_decided(self):
        booking = BookingFactory(user=self.member, approved=True)
        self._auth(self.admin)
        assert self.client.post(f"/api/bookings/{booking.id}/reject/").status_code == 400
        assert self.client.post(f"/api/bookings/{booking.id}/approve/").status_code == 400

    def test_admin_rejects(self):
        booking = BookingFactory(user=self.member)
        self._auth(self.admin)
        resp = self.client.post(f"/api/bookings/{booking.id}/reject/")
        assert resp.status_code == 200
        booking.refresh_from_db()
        assert booking.status == Booking.REJECTED

    # ---------- cancel ----------
    def test_owner_cancels_and_open_releases_go_with_it(self):
        booking = BookingFactory(user=self.member, computer=self.computer, approved=True, window=(self.start, self.end))
        release = release_days(booking, [self.start + timedelta(days=1)])

        self._auth(self.member)
        resp = self.client.post(f"/api/bookings/{booking.id}/cancel/")
        assert resp.status_code == 200
        assert resp.data["booking"]["status"] == "cancelled"

        release.refresh_from_db()
        booking.refresh_from_db()
        assert release.status == ReleaseDetail.Status.CANCELLED
        assert booking.total_released_days == 0
        assert booking.has_active_releases is False

    def test_cancel_blocked_once_released_days_are_claimed(self):
        booking = BookingFactory(user=self.member, computer=self.computer, approved=True, window=(self.start, self.end))
        day = self.start + timedelta(days=1)
        release_days(booking, [day])
        claim_released_date(booking.id, day.isoformat(), self.other, "run")

        self._auth(self.member)
        resp = self.client.post(f"/api/bookings/{booking.id}/cancel/")
        assert resp.status_code == 409
        assert resp.data["dates"] == [day.isoformat()]
        booking.refresh_from_db()
        assert booking.status == Booking.APPROVED

    def test_only_owner_cancels(self):
        booking = BookingFactory(user=self.member)
        self._auth(self.admin)
        assert self.client.post(f"/api/bookings/{booking.id}/cancel/").status_code == 403
        self._auth(self.other)
        assert self.client.post(f"/api/bookings/{booking.id}/cancel/").status_code == 404

    def test_release_flag(self):
        booking = BookingFactory(user=self.member, approved=True, window=(self.start, self.end))
        self._auth(self.member)
        resp = self.client.get(f"/api/bookings/{booking.id}/")
        assert resp.data["can_release"] is True
        assert resp.data["can_approve"] is False
