from django.core.management.base import BaseCommand
from django.db import transaction

from src.lab.models import Booking, ReleaseDetail
from src.lab.services import rebuild_summary


class Command(BaseCommand):
    help = "Rebuild booking release summaries from the release ledger and report drift."

    def add_arguments(self, parser):
        parser.add_argument("--booking", type=int, action="append", help="Only this booking id (repeatable).")
        parser.add_argument("--dry-run", action="store_true", help="Report drift without saving the rebuilt summaries.")

    def handle(self, *args, **opts):
        ids = set(ReleaseDetail.objects.values_list("booking_id", flat=True))
        ids |= set(Booking.objects.filter(released_dates__isnull=False).values_list("pk", flat=True))
        if opts.get("booking"):
            ids &= set(opts["booking"])

        drifted = 0
        for booking_id in sorted(ids):
            with transaction.atomic():
                booking = Booking.objects.select_for_update().get(pk=booking_id)
                added, removed = rebuild_summary(booking)
                if added or removed:
                    drifted += 1
                    self.stdout.write(self.style.WARNING(
                        f"Booking {booking_id}: added={[d.isoformat() for d in added]} "
                        f"removed={[d.isoformat() for d in removed]}"
                    ))
                if opts["dry_run"]:
                    transaction.set_rollback(True)

        verb = "would be rebuilt" if opts["dry_run"] else "rebuilt"
        self.stdout.write(self.style.SUCCESS(f"Checked {len(ids)} booking(s); {drifted} {verb}."))
