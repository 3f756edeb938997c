from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from tablebook.config import get_settings
from tablebook.schemas.restaurant import TIME_PATTERN


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


class PaymentStatus(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


def _check_party_size(value: int) -> int:
    limit = get_settings().max_party_size
    if value > limit:
        raise ValueError(f"party_size cannot exceed {limit}")
    return value


def _check_duration(value: int) -> int:
    settings = get_settings()
    if not settings.min_duration_minutes <= value <= settings.max_duration_minutes:
        raise ValueError(
            f"duration_minutes must be between {settings.min_duration_minutes} "
            f"and {settings.max_duration_minutes}"
        )
    return value


SlotTime = Annotated[str, Field(pattern=TIME_PATTERN)]
PartySize = Annotated[int, Field(ge=1), AfterValidator(_check_party_size)]
Duration = Annotated[int, Field(ge=1), AfterValidator(_check_duration)]
Email = Annotated[str, Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]

# Guest contact details; bookings owned by a user carry none of them
CONTACT_FIELDS = frozenset({"client_name", "client_email", "client_phone"})

# Free-text fields a PATCH may clear by sending null
CLEARABLE_FIELDS = frozenset({"notes", "special_requests", "client_phone"})


class ReservationCreate(BaseModel):
    """Booking request. The caller's identity is passed separately."""

    date: dt.date
    time: SlotTime
    party_size: PartySize
    duration_minutes: Optional[Duration] = None
    notes: Optional[str] = Field(None, max_length=1000)
    special_requests: Optional[str] = Field(None, max_length=1000)
    client_name: Optional[str] = Field(None, min_length=1, max_length=120)
    client_email: Optional[Email] = None
    client_phone: Optional[str] = Field(None, max_length=40)


class ReservationUpdate(BaseModel):
    """Partial modification of a reservation."""

    date: Optional[dt.date] = None
    time: Optional[SlotTime] = None
    party_size: Optional[PartySize] = None
    duration_minutes: Optional[Duration] = None
    notes: Optional[str] = Field(None, max_length=1000)
    special_requests: Optional[str] = Field(None, max_length=1000)
    client_name: Optional[str] = Field(None, min_length=1, max_length=120)
    client_email: Optional[Email] = None
    client_phone: Optional[str] = Field(None, max_length=40)

    def to_patch(self) -> Dict[str, Any]:
        """
        Fields the caller actually sent.

        An explicit null clears ``notes``, ``special_requests`` and
        ``client_phone``; on any other field it is ignored.
        """
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }

    @property
    def touches_slot(self) -> bool:
        """Whether the change moves the booking or resizes it."""
        changed = self.model_dump(exclude_unset=True, exclude_none=True)
        return bool(changed.keys() & {"date", "time", "party_size", "duration_minutes"})


class ReservationCancel(BaseModel):
    """Cancellation request."""

    reason: Optional[str] = Field(None, max_length=500)


class ReservationDraft(BaseModel):
    """A fully resolved reservation, ready to be inserted by a store."""

    restaurant_id: UUID
    table_id: Optional[UUID] = None
    user_id: Optional[str] = None
    date: dt.date
    time: str
    duration_minutes: int
    party_size: int
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.NONE
    requires_payment: bool = False
    deposit_amount: Decimal = Decimal("0")
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    management_token: Optional[str] = None
    token_expires_at: Optional[dt.datetime] = None
    notes: Optional[str] = None
    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None


class ReservationRead(ReservationDraft):
    """Schema for reading a reservation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class ReservationPage(BaseModel):
    """One page of a user's reservations."""

    reservations: List[ReservationRead]
    page: int
    limit: int
    total: int
    pages: int
