"""SQLAlchemy-backed store."""
from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.exceptions import ConflictError, InvalidTransition, NotFound
from tablebook.models.reservation import Reservation
from tablebook.models.restaurant import Restaurant
from tablebook.models.table import Table
from tablebook.repositories.base import (
    SLOT_FIELDS,
    ReservationStore,
    ensure_status_unchanged,
    holds_table,
)
from tablebook.schemas.reservation import ReservationDraft, ReservationRead, ReservationStatus
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.schemas.table import TableRead
from tablebook.services.overlap import find_overlapping

logger = logging.getLogger(__name__)


def _column_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Enum members are stored as their plain string value."""
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in values.items()}


class SqlReservationStore(ReservationStore):
    """
    Store backed by the relational database.

    Writes that can change table occupancy lock the target table row
    (SELECT ... FOR UPDATE) and re-check that table's bookings for the day
    before writing, all in the transaction that is then committed. The partial
    unique index on (table_id, date, time) rejects whatever slips past, e.g. on
    SQLite where row locks are not available.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_active_restaurant(self) -> Optional[RestaurantRead]:
        stmt = (
            select(Restaurant)
            .where(Restaurant.is_active == True)  # noqa: E712
            .order_by(Restaurant.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        restaurant = result.scalar_one_or_none()
        return RestaurantRead.model_validate(restaurant) if restaurant else None

    async def get_restaurant(self, restaurant_id: UUID) -> Optional[RestaurantRead]:
        restaurant = await self.session.get(Restaurant, restaurant_id)
        return RestaurantRead.model_validate(restaurant) if restaurant else None

    async def find_active_tables(self, restaurant_id: UUID) -> List[TableRead]:
        stmt = (
            select(Table)
            .where(Table.restaurant_id == restaurant_id)
            .where(Table.is_active == True)  # noqa: E712
            .order_by(Table.number)
        )
        result = await self.session.execute(stmt)
        return [TableRead.model_validate(t) for t in result.scalars().all()]

    async def find_reservations(
        self,
        restaurant_id: UUID,
        date: dt.date,
        exclude_id: Optional[UUID] = None,
        include_cancelled: bool = False,
    ) -> List[ReservationRead]:
        stmt = (
            select(Reservation)
            .where(Reservation.restaurant_id == restaurant_id)
            .where(Reservation.date == date)
            .order_by(Reservation.time, Reservation.id)
        )
        if exclude_id is not None:
            stmt = stmt.where(Reservation.id != exclude_id)
        if not include_cancelled:
            stmt = stmt.where(Reservation.status != ReservationStatus.CANCELLED.value)

        result = await self.session.execute(stmt)
        return [ReservationRead.model_validate(r) for r in result.scalars().all()]

    async def get_reservation(self, reservation_id: UUID) -> Optional[ReservationRead]:
        reservation = await self.session.get(Reservation, reservation_id)
        return ReservationRead.model_validate(reservation) if reservation else None

    async def get_reservation_by_token(self, token: str) -> Optional[ReservationRead]:
        stmt = select(Reservation).where(Reservation.management_token == token)
        result = await self.session.execute(stmt)
        reservation = result.scalar_one_or_none()
        return ReservationRead.model_validate(reservation) if reservation else None

    async def list_user_reservations(
        self,
        user_id: str,
        status: Optional[ReservationStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ReservationRead], int]:
        filters = [Reservation.user_id == user_id]
        if status is not None:
            filters.append(Reservation.status == status.value)

        stmt = (
            select(Reservation)
            .where(*filters)
            .order_by(Reservation.date.desc(), Reservation.time.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        reservations = [ReservationRead.model_validate(r) for r in result.scalars().all()]

        total = await self.session.scalar(
            select(func.count()).select_from(Reservation).where(*filters)
        )
        return reservations, total or 0

    async def insert_reservation(self, draft: ReservationDraft) -> ReservationRead:
        if holds_table(draft.table_id, draft.status):
            await self._ensure_table_free(
                draft.table_id, draft.date, draft.time, draft.duration_minutes
            )

        reservation = Reservation(**_column_values(draft.model_dump()))
        self.session.add(reservation)
        await self._commit()
        await self.session.refresh(reservation)

        return ReservationRead.model_validate(reservation)

    async def update_reservation(
        self,
        reservation_id: UUID,
        patch: Dict[str, Any],
        expected_status: Optional[ReservationStatus] = None,
    ) -> ReservationRead:
        # Row lock held until commit; stale identity-map state is refreshed
        reservation = await self.session.get(
            Reservation, reservation_id, with_for_update=True, populate_existing=True
        )
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found")
        try:
            ensure_status_unchanged(reservation.status, expected_status, patch)
        except InvalidTransition:
            await self.session.rollback()
            raise

        values = _column_values(patch)
        if SLOT_FIELDS & values.keys():
            table_id = values.get("table_id", reservation.table_id)
            status = values.get("status", reservation.status)
            if holds_table(table_id, status):
                await self._ensure_table_free(
                    table_id,
                    values.get("date", reservation.date),
                    values.get("time", reservation.time),
                    values.get("duration_minutes", reservation.duration_minutes),
                    exclude_id=reservation_id,
                )

        for field, value in values.items():
            setattr(reservation, field, value)

        await self._commit()
        await self.session.refresh(reservation)

        return ReservationRead.model_validate(reservation)

    async def _ensure_table_free(
        self,
        table_id: UUID,
        date: dt.date,
        time: str,
        duration_minutes: int,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """Lock the table row, then re-check its bookings for the day."""
        await self.session.execute(
            select(Table.id).where(Table.id == table_id).with_for_update()
        )

        stmt = (
            select(Reservation)
            .where(Reservation.table_id == table_id)
            .where(Reservation.date == date)
            .where(Reservation.status != ReservationStatus.CANCELLED.value)
        )
        result = await self.session.execute(stmt)
        booked = [ReservationRead.model_validate(r) for r in result.scalars().all()]

        clashes = find_overlapping(
            booked, date, time, duration_minutes, table_id=table_id, exclude_id=exclude_id
        )
        if clashes:
            await self.session.rollback()
            logger.warning(
                "Rejected write for table %s on %s at %s: held by %s",
                table_id,
                date,
                time,
                clashes[0].id,
            )
            raise ConflictError("Table is already booked for an overlapping time")

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning("Reservation write hit a uniqueness constraint: %s", exc.orig)
            raise ConflictError("Table is already booked for this slot") from exc
