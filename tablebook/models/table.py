from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablebook.database import Base

if TYPE_CHECKING:
    from tablebook.models.restaurant import Restaurant
    from tablebook.models.reservation import Reservation


class Table(Base):
    """Physical tables in the restaurant."""

    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "number", name="uq_restaurant_table_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # terrace, main room, private room, VIP

    # Soft delete: inactive tables are never allocated
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(
        "Restaurant", back_populates="tables"
    )
    reservations: Mapped[List["Reservation"]] = relationship(
        "Reservation", back_populates="table"
    )

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, number={self.number}, capacity={self.capacity})>"
