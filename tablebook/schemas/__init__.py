from tablebook.schemas.restaurant import DaySchedule, RestaurantRead, ServiceWindow
from tablebook.schemas.table import TableRead, TableSummary
from tablebook.schemas.reservation import (
    PaymentStatus,
    ReservationCancel,
    ReservationCreate,
    ReservationDraft,
    ReservationPage,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablebook.schemas.availability import (
    AvailableTables,
    DayAvailability,
    RefundDecision,
    RefundPolicy,
    SlotCheck,
    TimeSlot,
)

__all__ = [
    # Restaurant
    "DaySchedule",
    "RestaurantRead",
    "ServiceWindow",
    # Table
    "TableRead",
    "TableSummary",
    # Reservation
    "PaymentStatus",
    "ReservationCancel",
    "ReservationCreate",
    "ReservationDraft",
    "ReservationPage",
    "ReservationRead",
    "ReservationStatus",
    "ReservationUpdate",
    # Availability
    "AvailableTables",
    "DayAvailability",
    "RefundDecision",
    "RefundPolicy",
    "SlotCheck",
    "TimeSlot",
]
