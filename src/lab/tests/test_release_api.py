# Temporary release API tests:
# - Owner releases days of an approved booking; errors carry the offending dates
# - Anyone can list available released days of a computer
# - Another user claims a day; the owner can no longer cancel that release
# - Lab admins see every release
# Endpoints used:
#   POST  /api/releases/
#   GET   /api/releases/
#   GET   /api/releases/all/
#   PATCH /api/releases/{id}/cancel/
#   GET   /api/releases/available/{computer_id}/?start_date=&end_date=
#   POST  /api/releases/book/

from datetime import date

from rest_framework.test import APITestCase

from src.lab.factories import UserFactory, AdminFactory, ComputerFactory, BookingFactory
from src.lab.models import Booking, ReleaseDetail


class ReleaseApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = UserFactory(email="owner@lab.example.com")
        cls.claimer = UserFactory(email="claimer@lab.example.com")
        cls.admin = AdminFactory(email="head@lab.example.com")
        cls.computer = ComputerFactory(name="WS-042", location="Vision Lab")
        cls.booking = BookingFactory(
            user=cls.owner,
            computer=cls.computer,
            approved=True,
            window=(date(2025, 8, 10), date(2025, 8, 20)),
            hours=(9, 17),
        )

    def _release(self, dates, reason="trip", **extra):
        self.client.force_authenticate(self.owner)
        payload = {"booking_id": self.booking.id, "release_dates": dates, "reason": reason, **extra}
        return self.client.post("/api/releases/", payload, format="json")

    def _claim(self, user, day, reason="benchmarks"):
        self.client.force_authenticate(user)
        payload = {"original_booking_id": self.booking.id, "date": day, "reason": reason}
        return self.client.post("/api/releases/book/", payload, format="json")

    # ---------- create ----------
    def test_create_release(self):
        res = self._release(["2025-08-12", "2025-08-13"], user_message="Away at a conference")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["release_number"], 1)
        self.assertEqual(res.data["detail"], "Temporary release created successfully")

        release = res.data["release"]
        self.assertEqual(release["released_dates"], ["2025-08-12", "2025-08-13"])
        self.assertEqual(release["status"], "active")
        self.assertEqual(release["release_type"], "multiple_days")
        self.assertEqual(release["user_message"], "Away at a conference")
        self.assertEqual(len(release["booking_details"]), 2)
        self.assertEqual(release["original_booking"]["computer"]["name"], "WS-042")

    def test_out_of_range_lists_invalid_dates(self):
        res = self._release(["2025-08-25"])
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["invalid_dates"], ["2025-08-25"])
        self.assertIn("within your booking period", res.data["detail"])

    def test_duplicate_lists_duplicate_dates(self):
        self._release(["2025-08-12", "2025-08-13"])
        res = self._release(["2025-08-13"])
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["duplicate_dates"], ["2025-08-13"])

    def test_malformed_and_empty_input(self):
        res_bad = self._release(["2025-02-30"])
        res_empty = self._release([])
        res_reason = self._release(["2025-08-12"], reason="   ")
        self.assertEqual(res_bad.status_code, 400)
        self.assertEqual(res_bad.data["invalid_dates"], ["2025-02-30"])
        self.assertEqual(res_empty.status_code, 400)
        self.assertEqual(res_reason.status_code, 400)

    def test_admin_created_type_is_not_accepted_from_clients(self):
        res = self._release(["2025-08-12"], release_type="admin_created")
        self.assertEqual(res.status_code, 400)
        self.assertIn("release_type", res.data)

    def test_other_user_cannot_release(self):
        self.client.force_authenticate(self.claimer)
        res = self.client.post(
            "/api/releases/",
            {"booking_id": self.booking.id, "release_dates": ["2025-08-12"], "reason": "x"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_unknown_booking(self):
        self.client.force_authenticate(self.owner)
        res = self.client.post(
            "/api/releases/",
            {"booking_id": 999999, "release_dates": ["2025-08-12"], "reason": "x"},
            format="json",
        )
        self.assertEqual(res.status_code, 404)

    def test_anonymous_cannot_release(self):
        res = self.client.post("/api/releases/", {}, format="json")
        self.assertIn(res.status_code, (401, 403))

    # ---------- availability ----------
    def test_available_is_public(self):
        self._release(["2025-08-12", "2025-08-13"])
        self.client.force_authenticate(None)

        res = self.client.get(
            f"/api/releases/available/{self.computer.id}/",
            {"start_date": "2025-08-01", "end_date": "2025-08-31"},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual([s["date"] for s in res.data["data"]], ["2025-08-12", "2025-08-13"])
        first = res.data["data"][0]
        self.assertEqual(first["start_time"], "09:00:00")
        self.assertEqual(first["end_time"], "17:00:00")
        self.assertEqual(first["original_booking_id"], self.booking.id)
        self.assertEqual(first["computer_name"], "WS-042")
        self.assertEqual(first["location"], "Vision Lab")

    def test_available_requires_bounds(self):
        res = self.client.get(f"/api/releases/available/{self.computer.id}/", {"start_date": "2025-08-01"})
        self.assertEqual(res.status_code, 400)

    # ---------- claim ----------
    def test_claim_then_conflict(self):
        self._release(["2025-08-12"])

        res = self._claim(self.claimer, "2025-08-12")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["detail"], "Temporary booking created successfully")
        booking = res.data["booking"]
        self.assertEqual(booking["start_date"], "2025-08-12")
        self.assertEqual(booking["end_date"], "2025-08-12")
        self.assertEqual(booking["status"], "approved")
        self.assertTrue(booking["is_temporary_booking"])
        self.assertEqual(booking["original_booking_id"], self.booking.id)

        again = self._claim(AdminFactory(), "2025-08-12")
        self.assertEqual(again.status_code, 409)
        self.assertIn("not available", again.data["detail"])

    def test_owner_cannot_claim_own_day(self):
        self._release(["2025-08-12"])
        res = self._claim(self.owner, "2025-08-12")
        self.assertEqual(res.status_code, 403)

    def test_claim_without_release(self):
        res = self._claim(self.claimer, "2025-08-12")
        self.assertEqual(res.status_code, 400)

    # ---------- cancel ----------
    def test_cancel_release(self):
        release_id = self._release(["2025-08-12", "2025-08-13"]).data["release"]["id"]

        res = self.client.patch(f"/api/releases/{release_id}/cancel/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["release"]["status"], "cancelled")

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.total_released_days, 0)
        self.assertFalse(self.booking.has_active_releases)

        res_again = self.client.patch(f"/api/releases/{release_id}/cancel/")
        self.assertEqual(res_again.status_code, 400)

    def test_cancel_after_claim_conflicts(self):
        release_id = self._release(["2025-08-12", "2025-08-13"]).data["release"]["id"]
        self._claim(self.claimer, "2025-08-12")

        self.client.force_authenticate(self.owner)
        res = self.client.patch(f"/api/releases/{release_id}/cancel/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(ReleaseDetail.objects.get(pk=release_id).status, ReleaseDetail.Status.PARTIALLY_BOOKED)

    def test_cancel_by_stranger_forbidden(self):
        release_id = self._release(["2025-08-12"]).data["release"]["id"]
        self.client.force_authenticate(self.claimer)
        res = self.client.patch(f"/api/releases/{release_id}/cancel/")
        self.assertEqual(res.status_code, 403)

    def test_cancel_unknown(self):
        self.client.force_authenticate(self.owner)
        self.assertEqual(self.client.patch("/api/releases/999999/cancel/").status_code, 404)

    # ---------- listings ----------
    def test_user_listing(self):
        first = self._release(["2025-08-12"]).data["release"]["id"]
        second = self._release(["2025-08-14"]).data["release"]["id"]
        self.client.patch(f"/api/releases/{first}/cancel/")

        res = self.client.get("/api/releases/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["id"] for r in res.data["release_details"]], [second])
        summaries = res.data["booking_summaries"]
        self.assertEqual(len(summaries), 1)
        self.assertEqual(summaries[0]["id"], self.booking.id)
        self.assertEqual(summaries[0]["temporary_release"]["total_released_days"], 1)
        self.assertEqual(
            summaries[0]["temporary_release"]["released_dates"],
            [{"date": "2025-08-14", "is_booked": False, "temp_booking_id": None}],
        )

    def test_user_listing_keeps_fully_booked(self):
        release_id = self._release(["2025-08-12"]).data["release"]["id"]
        self._claim(self.claimer, "2025-08-12")

        self.client.force_authenticate(self.owner)
        res = self.client.get("/api/releases/")
        self.assertEqual(res.data["release_details"][0]["id"], release_id)
        self.assertEqual(res.data["release_details"][0]["status"], "fully_booked")

    def test_admin_can_list_for_a_user(self):
        self._release(["2025-08-12"])
        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/releases/", {"user": self.owner.id})
        self.assertEqual(len(res.data["release_details"]), 1)

        # Other users cannot peek at someone else's releases
        self.client.force_authenticate(self.claimer)
        res = self.client.get("/api/releases/", {"user": self.owner.id})
        self.assertEqual(res.data["release_details"], [])

    def test_all_releases_admin_only(self):
        release_id = self._release(["2025-08-12"]).data["release"]["id"]

        res_user = self.client.get("/api/releases/all/")
        self.assertEqual(res_user.status_code, 403)

        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/releases/all/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data[0]["id"], release_id)
        self.assertEqual(res.data[0]["user_info"]["email"], "owner@lab.example.com")
        self.assertEqual(res.data[0]["original_booking"]["id"], self.booking.id)

    def test_all_releases_filter_by_status(self):
        release_id = self._release(["2025-08-12"]).data["release"]["id"]
        self.client.patch(f"/api/releases/{release_id}/cancel/")
        self._release(["2025-08-14"])

        self.client.force_authenticate(self.admin)
        res = self.client.get("/api/releases/all/", {"status": "cancelled"})
        self.assertEqual([r["id"] for r in res.data], [release_id])

    def test_retrieve_own_release(self):
        release_id = self._release(["2025-08-12"]).data["release"]["id"]
        self.assertEqual(self.client.get(f"/api/releases/{release_id}/").status_code, 200)

        self.client.force_authenticate(self.claimer)
        self.assertEqual(self.client.get(f"/api/releases/{release_id}/").status_code, 404)

    def test_admin_release_on_behalf(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post(
            "/api/releases/",
            {"booking_id": self.booking.id, "release_dates": ["2025-08-18"], "reason": "maintenance"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["release"]["user_id"], self.owner.id)
        self.assertTrue(res.data["release"]["created_by_admin"])
        self.assertEqual(res.data["release"]["release_type"], "admin_created")
        self.assertEqual(Booking.objects.get(pk=self.booking.id).total_released_days, 1)
