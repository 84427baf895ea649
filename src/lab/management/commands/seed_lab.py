from __future__ import annotations

import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from src.lab.models import Computer, Booking, Notification
from src.lab.factories import (
    UserFactory,
    AdminFactory,
    ComputerFactory,
    BookingFactory,
    release_days,
)


class Command(BaseCommand):
    """
    Seed the database with demo lab data:
    - Lab admins and members (password: Passw0rd!)
    - Computers spread over the lab rooms
    - Back-to-back APPROVED bookings per computer
    - Temporary releases of some booked days
    - A few PENDING requests competing for the same slots
    """

    help = "Seed the DB with demo computers, bookings and temporary releases."

    def add_arguments(self, parser):
        parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
        parser.add_argument("--wipe", action="store_true", help="Delete ALL computers/bookings/releases/notifications first.")
        parser.add_argument("--admins", type=int, default=1, help="How many lab admins to create.")
        parser.add_argument("--members", type=int, default=8, help="How many lab members to create.")
        parser.add_argument("--computers", type=int, default=6, help="How many computers to create.")
        parser.add_argument("--bookings", type=int, default=3, help="Approved bookings per computer.")
        parser.add_argument("--release-ratio", type=float, default=0.5, help="Share of approved bookings with released days.")
        parser.add_argument("--pending", type=int, default=1, help="Competing PENDING requests per computer.")

    @transaction.atomic
    def handle(self, *args, **opts):
        seed = opts.get("seed")
        if seed is not None:
            random.seed(seed)

        if opts["wipe"]:
            self.stdout.write(self.style.WARNING("Wiping computers, bookings, releases and notifications..."))
            # Releases and summary rows cascade from bookings
            Notification.objects.all().delete()
            Booking.objects.all().delete()
            Computer.objects.all().delete()

        admins = [AdminFactory(password="Passw0rd!") for _ in range(opts["admins"])]
        members = [UserFactory(password="Passw0rd!") for _ in range(max(opts["members"], 2))]
        self.stdout.write(
            self.style.SUCCESS(
                f"Users created: admins={len(admins)}, members={len(members)} (password: Passw0rd!)"
            )
        )

        computers = [ComputerFactory() for _ in range(opts["computers"])]

        today = timezone.localdate()
        approved, releases = 0, 0
        for computer in computers:
            cursor = today + timedelta(days=random.randint(1, 5))
            for _ in range(opts["bookings"]):
                start = cursor
                end = start + timedelta(days=random.randint(2, 6))
                booking = BookingFactory(
                    computer=computer,
                    user=random.choice(members),
                    window=(start, end),
                    hours=(9, 17),
                    approved=True,
                )
                approved += 1
                cursor = end + timedelta(days=1)

                if random.random() < opts["release_ratio"]:
                    span = (end - start).days + 1
                    picked = sorted(random.sample(range(span), k=random.randint(1, min(3, span))))
                    release_days(
                        booking,
                        [start + timedelta(days=i) for i in picked],
                        reason="Travelling to a conference",
                    )
                    releases += 1

            # Requests overlapping the approved slots stay pending for the admin to decide
            for _ in range(opts["pending"]):
                start = today + timedelta(days=random.randint(2, 10))
                BookingFactory(
                    computer=computer,
                    user=random.choice(members),
                    window=(start, start + timedelta(days=1)),
                    hours=(10, 12),
                )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeding done: computers={len(computers)}, approved bookings={approved}, releases={releases}"
            )
        )
