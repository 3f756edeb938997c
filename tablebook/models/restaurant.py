from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import uuid

from sqlalchemy import JSON, Boolean, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook.database import Base

if TYPE_CHECKING:
    from tablebook.models.table import Table
    from tablebook.models.reservation import Reservation


class Restaurant(Base):
    """Restaurant with its booking configuration."""

    __tablename__ = "restaurants"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="America/New_York")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # weekday name -> {lunch, evening, closed}; null means built-in default hours
    opening_hours: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    buffer_minutes: Mapped[int] = mapped_column(Integer, default=30)
    payment_threshold: Mapped[int] = mapped_column(Integer, default=6)
    minimum_deposit_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    tables: Mapped[List["Table"]] = relationship(
        "Table", back_populates="restaurant", cascade="all, delete-orphan"
    )
    reservations: Mapped[List["Reservation"]] = relationship(
        "Reservation", back_populates="restaurant"
    )

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name={self.name})>"
