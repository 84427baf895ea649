import logging

from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)


def notify(type, message, user=None, metadata=None):
    """
    Record a notification event.

    Fire-and-forget: a failure here is logged and swallowed so it can never
    undo the booking or release change that triggered it.
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                type=type,
                message=message,
                user=user,
                metadata=metadata or {},
            )
    except Exception:
        logger.exception("Could not record %s notification", type)
        return None
