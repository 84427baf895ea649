"""
Errors raised by booking and temporary-release operations.

All of them are DRF ``APIException`` subclasses, so views can let them
propagate and the default exception handler renders them as::

    {"detail": "<message>", "invalid_dates": ["2025-08-25"]}

The dates key is only present when the error concerns specific dates.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ReleaseError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Temporary release request failed."
    default_code = "release_error"
    dates_key = "dates"

    def __init__(self, detail=None, dates=None, code=None):
        self.message = str(detail or self.default_detail)
        self.dates = [d.isoformat() if hasattr(d, "isoformat") else str(d) for d in (dates or [])]
        payload = {"detail": self.message}
        if self.dates:
            payload[self.dates_key] = self.dates
        super().__init__(payload, code)

    def __str__(self):
        return self.message


class ValidationError(ReleaseError):
    """Malformed or missing input."""
    default_detail = "Invalid request."
    default_code = "invalid"
    dates_key = "invalid_dates"


class OutOfRangeError(ReleaseError):
    default_detail = "All release dates must be within your booking period."
    default_code = "out_of_range"
    dates_key = "invalid_dates"

    @property
    def invalid_dates(self):
        return self.dates


class DuplicateReleaseError(ReleaseError):
    default_detail = "Some of these dates already have active temporary releases."
    default_code = "duplicate_release"
    dates_key = "duplicate_dates"

    @property
    def duplicate_dates(self):
        return self.dates


class NotFoundError(ReleaseError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class ForbiddenError(ReleaseError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class InvalidStateError(ReleaseError):
    default_detail = "The operation is not allowed in the current state."
    default_code = "invalid_state"


class ConflictError(ReleaseError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"
