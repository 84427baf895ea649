import random
from datetime import time, timedelta

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory import Faker, LazyFunction, post_generation
from factory.django import DjangoModelFactory

from .models import Computer, Booking
from .services import create_release

LAB_ROOMS = ("Lab A-101", "Lab A-102", "Lab B-204", "HPC Room", "Vision Lab")
SPEC_POOL = (
    "RTX 4090 24GB, Ryzen 9 7950X, 128GB RAM",
    "2x RTX 3090, Xeon W-2295, 256GB RAM",
    "A100 40GB, EPYC 7543, 512GB RAM",
    "RTX 3060 12GB, i7-12700K, 64GB RAM",
)
SLOT_HOURS = ((9, 13), (9, 17), (13, 17), (14, 20))

# ---------------------------------------------------------------------------

class UserFactory(DjangoModelFactory):
    """
    Lab member. CustomUser has no 'username' field, so we only set email & names.
    Password is hashed in @post_generation.
    """
    class Meta:
        model = get_user_model()
        django_get_or_create = ("email",)

    email = factory.Sequence(lambda n: f"member{n}@lab.example.com")
    first_name = Faker("first_name")
    last_name = Faker("last_name")

    @post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "Passw0rd!"
        self.set_password(pwd)
        if create:
            self.save()

class AdminFactory(UserFactory):
    """Lab admin: approves bookings and may act on any release."""
    email = factory.Sequence(lambda n: f"admin{n}@lab.example.com")
    role = "admin"

# ---------------------------------------------------------------------------

class ComputerFactory(DjangoModelFactory):
    class Meta:
        model = Computer
        django_get_or_create = ("name",)

    name = factory.Sequence(lambda n: f"WS-{n:03d}")
    location = factory.LazyFunction(lambda: random.choice(LAB_ROOMS))
    specifications = factory.LazyFunction(lambda: random.choice(SPEC_POOL))
    operating_system = factory.LazyFunction(lambda: random.choice(Computer.OperatingSystem.values))
    is_active = True

class BookingFactory(DjangoModelFactory):
    """Booking request (PENDING by default); use trait `approved` for releasable bookings."""
    class Meta:
        model = Booking

    user = factory.SubFactory(UserFactory)
    computer = factory.SubFactory(ComputerFactory)

    @staticmethod
    def _future_window():
        start = timezone.localdate() + timedelta(days=random.randint(5, 20))
        end = start + timedelta(days=random.randint(2, 7))
        return start, end

    class Params:
        window = factory.LazyFunction(lambda: BookingFactory._future_window())
        hours = factory.LazyFunction(lambda: random.choice(SLOT_HOURS))
        approved = factory.Trait(status=Booking.APPROVED)

    start_date = factory.LazyAttribute(lambda o: o.window[0])
    end_date = factory.LazyAttribute(lambda o: o.window[1])
    start_time = factory.LazyAttribute(lambda o: time(o.hours[0]))
    end_time = factory.LazyAttribute(lambda o: time(o.hours[1]))

    reason = Faker("sentence", nb_words=8)
    status = Booking.PENDING
    requires_gpu = factory.LazyFunction(lambda: random.random() < 0.7)
    problem_statement = Faker("paragraph", nb_sentences=2)
    dataset_type = factory.LazyFunction(lambda: random.choice(Booking.DatasetType.values))
    dataset_size_value = factory.LazyFunction(lambda: random.randint(1, 500))
    dataset_size_unit = Booking.SizeUnit.GB
    dataset_link = Faker("url")
    bottleneck_explanation = Faker("sentence", nb_words=12)


def release_days(booking, days, reason="Away from the lab", user=None, **context):
    """Release ``days`` of ``booking`` through the release service; returns the release."""
    release, _ = create_release(
        booking.pk,
        user or booking.user,
        [d.isoformat() if hasattr(d, "isoformat") else d for d in days],
        reason,
        context=context or None,
    )
    return release
