# Business logic services
from tablebook.services.availability_service import AvailabilityService
from tablebook.services.reservation_lifecycle import ReservationLifecycle
from tablebook.services.seed_service import SeedService
from tablebook.services.table_allocator import TableAllocator
from tablebook.services.refund_policy import calculate_refund_amount, get_refund_policy

__all__ = [
    "AvailabilityService",
    "ReservationLifecycle",
    "SeedService",
    "TableAllocator",
    "calculate_refund_amount",
    "get_refund_policy",
]
