# Models package
from .reservation import (
    Status,
    STATUS_PRIORITY,
    RAW_STATUS_CODES,
    CHECKOUT_CONVENTION_STATUSES,
    status_from_code,
    Property,
    Reservation,
)

__all__ = [
    "Status", "STATUS_PRIORITY", "RAW_STATUS_CODES",
    "CHECKOUT_CONVENTION_STATUSES", "status_from_code",
    "Property", "Reservation",
]
