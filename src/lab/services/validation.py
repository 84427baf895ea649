import re
from datetime import date, datetime

from django.utils.dateparse import parse_date

from ..exceptions import ValidationError, OutOfRangeError, DuplicateReleaseError

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_release_date(value):
    """
    Parse a calendar day from ``YYYY-MM-DD`` (or a date/datetime).

    Returns None for anything malformed, including impossible dates such as
    ``2025-02-30``. Time of day is always dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_RE.match(value.strip()):
        return None
    try:
        return parse_date(value.strip())
    except ValueError:
        return None


def validate_release_request(booking, requested_dates, reason):
    """
    Check a release request against the booking's range and current summary.

    Returns the requested days as ``date`` objects, in request order.
    """
    if isinstance(requested_dates, (str, bytes)) or not requested_dates:
        raise ValidationError("At least one release date is required.")

    parsed, malformed = [], []
    for raw in requested_dates:
        day = parse_release_date(raw)
        if day is None:
            malformed.append(str(raw))
        else:
            parsed.append(day)
    if malformed:
        raise ValidationError("Release dates must be real calendar dates in YYYY-MM-DD format.", dates=malformed)

    seen, repeated = set(), []
    for day in parsed:
        if day in seen and day not in repeated:
            repeated.append(day)
        seen.add(day)
    if repeated:
        raise ValidationError("Each date may only appear once in a release.", dates=repeated)

    if not (reason or "").strip():
        raise ValidationError("A reason is required.")

    outside = [day for day in parsed if not booking.covers(day)]
    if outside:
        raise OutOfRangeError(dates=outside)

    already_released = set(booking.released_dates.values_list("date", flat=True))
    duplicates = [day for day in parsed if day in already_released]
    if duplicates:
        raise DuplicateReleaseError(dates=duplicates)

    return parsed
