from .models import (  # noqa: F401
    Donation,
    DONATION_STATUSES,
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_TEST,
)
