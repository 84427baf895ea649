from datetime import date, time
from unittest import mock

import pytest

from src.lab.exceptions import ValidationError, NotFoundError, ForbiddenError, InvalidStateError, ConflictError
from src.lab.factories import UserFactory, BookingFactory
from src.lab.models import Booking, ReleasedDate, ReleaseDetail, ReleaseDetailDate, Notification
from src.lab.services import (
    create_release, cancel_release, claim_released_date, list_available_slots, cancel_booking,
)
from src.lab.services import releases


@pytest.mark.django_db
class TestClaimReleasedDate:
    def setup_method(self):
        self.owner = UserFactory()
        self.claimer = UserFactory()
        self.third = UserFactory()
        self.booking = BookingFactory(
            user=self.owner,
            approved=True,
            window=(date(2025, 8, 10), date(2025, 8, 20)),
            hours=(9, 17),
        )
        self.release, _ = create_release(self.booking.pk, self.owner, ["2025-08-12", "2025-08-13"], "trip")

    # ---------- happy path ----------
    def test_claim_creates_single_day_booking(self):
        temp = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "  benchmark run  ")

        assert temp.user_id == self.claimer.pk
        assert temp.computer_id == self.booking.computer_id
        assert temp.start_date == temp.end_date == date(2025, 8, 12)
        assert (temp.start_time, temp.end_time) == (time(9), time(17))
        assert temp.status == Booking.APPROVED
        assert temp.is_temporary_booking is True
        assert temp.original_booking_id == self.booking.pk
        assert temp.reason == "benchmark run"

    def test_summary_and_ledger_flip(self):
        temp = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")

        row = ReleasedDate.objects.get(booking=self.booking, date=date(2025, 8, 12))
        assert row.is_booked is True
        assert row.temp_booking_id == temp.pk

        detail = ReleaseDetailDate.objects.get(release=self.release, date=date(2025, 8, 12))
        assert detail.is_booked is True
        assert detail.temp_booking_id == temp.pk
        assert detail.booked_by_id == self.claimer.pk
        assert detail.booked_at is not None

        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.PARTIALLY_BOOKED

        # Claimed days stay in the summary
        self.booking.refresh_from_db()
        assert self.booking.total_released_days == 2
        assert self.booking.has_active_releases is True

    def test_claiming_every_day_makes_release_fully_booked(self):
        claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        claim_released_date(self.booking.pk, "2025-08-13", self.third, "run")

        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.FULLY_BOOKED
        assert not self.release.booking_details.filter(is_booked=False).exists()

    def test_owner_is_notified(self):
        temp = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        note = Notification.objects.get(type=Notification.Type.RELEASE_CLAIMED)
        assert note.user_id == self.owner.pk
        assert note.metadata == {
            "booking_id": self.booking.pk,
            "temp_booking_id": temp.pk,
            "release_number": 1,
            "date": "2025-08-12",
        }

    # ---------- conflicts ----------
    def test_second_claim_of_same_day_conflicts(self):
        claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        with pytest.raises(ConflictError) as exc:
            claim_released_date(self.booking.pk, "2025-08-12", self.third, "run")

        assert exc.value.status_code == 409
        assert "not available" in exc.value.message
        assert Booking.objects.filter(is_temporary_booking=True).count() == 1

    def test_stale_availability_snapshot_is_rechecked(self):
        snapshot = list(list_available_slots(self.booking.computer_id, "2025-08-01", "2025-08-31"))
        assert [s["date"] for s in snapshot] == ["2025-08-12", "2025-08-13"]

        claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        with pytest.raises(ConflictError):
            claim_released_date(snapshot[0]["original_booking_id"], snapshot[0]["date"], self.third, "run")

        fresh = list(list_available_slots(self.booking.computer_id, "2025-08-01", "2025-08-31"))
        assert [s["date"] for s in fresh] == ["2025-08-13"]

    def test_day_not_released(self):
        with pytest.raises(ConflictError):
            claim_released_date(self.booking.pk, "2025-08-15", self.claimer, "run")

    def test_cancelled_release_days_cannot_be_claimed(self):
        other_release, _ = create_release(self.booking.pk, self.owner, ["2025-08-15"], "more")
        cancel_release(self.release.pk, self.owner)

        with pytest.raises(ConflictError):
            claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        claim_released_date(self.booking.pk, "2025-08-15", self.claimer, "run")
        other_release.refresh_from_db()
        assert other_release.status == ReleaseDetail.Status.FULLY_BOOKED

    # ---------- input & state ----------
    @pytest.mark.parametrize("raw", ["2025-02-30", "12/08/2025", "", None])
    def test_malformed_date(self, raw):
        with pytest.raises(ValidationError):
            claim_released_date(self.booking.pk, raw, self.claimer, "run")

    def test_blank_reason(self):
        with pytest.raises(ValidationError):
            claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "  ")

    def test_unknown_booking(self):
        with pytest.raises(NotFoundError):
            claim_released_date(999999, "2025-08-12", self.claimer, "run")

    def test_booking_without_active_releases(self):
        plain = BookingFactory(approved=True, window=(date(2025, 8, 10), date(2025, 8, 20)))
        with pytest.raises(InvalidStateError):
            claim_released_date(plain.pk, "2025-08-12", self.claimer, "run")

    def test_owner_cannot_claim_own_release(self):
        with pytest.raises(ForbiddenError):
            claim_released_date(self.booking.pk, "2025-08-12", self.owner, "run")
        assert not ReleasedDate.objects.filter(is_booked=True).exists()

    def test_failed_claim_leaves_no_trace(self):
        claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        temp_count = Booking.objects.filter(is_temporary_booking=True).count()
        with pytest.raises(ConflictError):
            claim_released_date(self.booking.pk, "2025-08-12", self.third, "run")
        assert Booking.objects.filter(is_temporary_booking=True).count() == temp_count
        assert ReleaseDetailDate.objects.filter(is_booked=True).count() == 1

    # ---------- interleaved claims ----------
    def test_rival_claim_between_lookup_and_write_wins(self):
        real_get = releases._get_booking
        rival = []

        def get_then_let_rival_claim(booking_id, lock=False):
            booking = real_get(booking_id, lock)
            if not rival:
                rival.append(None)
                rival[0] = claim_released_date(self.booking.pk, "2025-08-12", self.third, "run")
            return booking

        with mock.patch("src.lab.services.releases._get_booking", side_effect=get_then_let_rival_claim):
            with pytest.raises(ConflictError):
                claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")

        assert rival[0].user_id == self.third.pk
        assert rival[0].start_date == date(2025, 8, 12)

    def test_ledger_row_taken_mid_claim_rolls_everything_back(self):
        real_create = Booking.objects.create

        def create_after_rival_flip(**kwargs):
            ReleaseDetailDate.objects.filter(release=self.release, date=date(2025, 8, 12)).update(
                is_booked=True, booked_by=self.third,
            )
            return real_create(**kwargs)

        with mock.patch.object(Booking.objects, "create", side_effect=create_after_rival_flip):
            with pytest.raises(ConflictError):
                claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")

        assert not Booking.objects.filter(is_temporary_booking=True).exists()
        assert not ReleasedDate.objects.filter(booking=self.booking, is_booked=True).exists()
        assert not ReleaseDetailDate.objects.filter(is_booked=True).exists()

    # ---------- claimant cancels ----------
    def test_cancelled_claim_returns_the_day(self):
        temp = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        cancel_booking(temp.pk, self.claimer)

        temp.refresh_from_db()
        assert temp.status == Booking.CANCELLED

        row = ReleasedDate.objects.get(booking=self.booking, date=date(2025, 8, 12))
        assert row.is_booked is False
        assert row.temp_booking_id is None
        detail = ReleaseDetailDate.objects.get(release=self.release, date=date(2025, 8, 12))
        assert (detail.is_booked, detail.temp_booking_id, detail.booked_by_id, detail.booked_at) == (False, None, None, None)

        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.ACTIVE
        slots = list_available_slots(self.booking.computer_id, "2025-08-01", "2025-08-31")
        assert [s["date"] for s in slots] == ["2025-08-12", "2025-08-13"]

        note = Notification.objects.filter(type=Notification.Type.BOOKING_CANCELLED, user=self.owner).get()
        assert note.metadata["temp_booking_id"] == temp.pk

    def test_freed_day_can_be_claimed_again_and_release_cancelled(self):
        first = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        claim_released_date(self.booking.pk, "2025-08-13", self.third, "run")
        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.FULLY_BOOKED

        cancel_booking(first.pk, self.claimer)
        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.PARTIALLY_BOOKED

        again = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "second try")
        assert again.pk != first.pk
        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.FULLY_BOOKED

    def test_original_can_be_cancelled_once_claims_are_withdrawn(self):
        temp = claim_released_date(self.booking.pk, "2025-08-12", self.claimer, "run")
        with pytest.raises(ConflictError):
            cancel_release(self.release.pk, self.owner)

        cancel_booking(temp.pk, self.claimer)
        cancel_release(self.release.pk, self.owner)
        self.release.refresh_from_db()
        assert self.release.status == ReleaseDetail.Status.CANCELLED

        cancel_booking(self.booking.pk, self.owner)
        self.booking.refresh_from_db()
        assert self.booking.status == Booking.CANCELLED
