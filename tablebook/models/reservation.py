from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook.database import Base

if TYPE_CHECKING:
    from tablebook.models.restaurant import Restaurant
    from tablebook.models.table import Table


ACTIVE_SLOT_PREDICATE = text("status <> 'CANCELLED'")


class Reservation(Base):
    """A booking of one table for [time, time + duration) on a given day.

    Rows are never deleted. Cancelling only changes ``status``.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        # Storage-level backstop against two live bookings starting on the
        # same table at the same time. Overlaps with different start times are
        # rejected by the store's locked re-check before insert/update.
        Index(
            "uq_reservation_table_slot",
            "table_id",
            "date",
            "time",
            unique=True,
            postgresql_where=ACTIVE_SLOT_PREDICATE,
            sqlite_where=ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_reservation_restaurant_date", "restaurant_id", "date"),
        Index("ix_reservation_user_status", "user_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False
    )
    table_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tables.id"), nullable=True
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="PENDING")  # PENDING, CONFIRMED, CANCELLED, COMPLETED, NO_SHOW
    payment_status: Mapped[str] = mapped_column(String(20), default="NONE")  # NONE, PENDING, COMPLETED, FAILED, REFUNDED, PARTIALLY_REFUNDED
    requires_payment: Mapped[bool] = mapped_column(Boolean, default=False)
    deposit_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    # Guest contact (only when user_id is null)
    client_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # Guest self-service
    management_token: Mapped[Optional[str]] = mapped_column(
        String(100), unique=True, nullable=True
    )
    token_expires_at: Mapped[Optional[dt.datetime]] = mapped_column(nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[Optional[dt.datetime]] = mapped_column(nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(
        "Restaurant", back_populates="reservations"
    )
    table: Mapped[Optional["Table"]] = relationship(
        "Table", back_populates="reservations"
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, date={self.date}, time={self.time}, "
            f"table_id={self.table_id}, status={self.status})>"
        )
