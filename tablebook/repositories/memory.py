"""In-process store backed by dictionaries keyed by id."""
from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from tablebook.exceptions import ConflictError, NotFound
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


class InMemoryReservationStore(ReservationStore):
    """
    Store keeping everything in memory.

    One lock serializes every write, and the occupancy re-check runs inside it,
    so concurrent tasks or threads can never both write overlapping bookings
    for one table.
    """

    def __init__(
        self,
        restaurants: Iterable[RestaurantRead] = (),
        tables: Iterable[TableRead] = (),
        reservations: Iterable[ReservationRead] = (),
    ):
        self._lock = threading.Lock()
        self._restaurants: Dict[UUID, RestaurantRead] = {r.id: r for r in restaurants}
        self._tables: Dict[UUID, TableRead] = {t.id: t for t in tables}
        self._reservations: Dict[UUID, ReservationRead] = {r.id: r for r in reservations}

    async def find_active_restaurant(self) -> Optional[RestaurantRead]:
        for restaurant in self._restaurants.values():
            if restaurant.is_active:
                return restaurant
        return None

    async def get_restaurant(self, restaurant_id: UUID) -> Optional[RestaurantRead]:
        return self._restaurants.get(restaurant_id)

    async def find_active_tables(self, restaurant_id: UUID) -> List[TableRead]:
        tables = [
            t for t in self._tables.values()
            if t.restaurant_id == restaurant_id and t.is_active
        ]
        return sorted(tables, key=lambda t: t.number)

    async def find_reservations(
        self,
        restaurant_id: UUID,
        date: dt.date,
        exclude_id: Optional[UUID] = None,
        include_cancelled: bool = False,
    ) -> List[ReservationRead]:
        found = [
            r for r in self._snapshot()
            if r.restaurant_id == restaurant_id
            and r.date == date
            and r.id != exclude_id
            and (include_cancelled or r.status != ReservationStatus.CANCELLED)
        ]
        return sorted(found, key=lambda r: (r.time, str(r.id)))

    async def get_reservation(self, reservation_id: UUID) -> Optional[ReservationRead]:
        return self._reservations.get(reservation_id)

    async def get_reservation_by_token(self, token: str) -> Optional[ReservationRead]:
        for reservation in self._snapshot():
            if reservation.management_token == token:
                return reservation
        return None

    async def list_user_reservations(
        self,
        user_id: str,
        status: Optional[ReservationStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ReservationRead], int]:
        owned = [
            r for r in self._snapshot()
            if r.user_id == user_id and (status is None or r.status == status)
        ]
        owned.sort(key=lambda r: (r.date, r.time), reverse=True)
        return owned[offset:offset + limit], len(owned)

    async def insert_reservation(self, draft: ReservationDraft) -> ReservationRead:
        now = dt.datetime.utcnow()
        reservation = ReservationRead(
            id=uuid4(),
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )

        with self._lock:
            self._check_token_unique(reservation)
            self._check_occupancy(reservation)
            self._reservations[reservation.id] = reservation

        return reservation

    async def update_reservation(
        self,
        reservation_id: UUID,
        patch: Dict[str, Any],
        expected_status: Optional[ReservationStatus] = None,
    ) -> ReservationRead:
        with self._lock:
            existing = self._reservations.get(reservation_id)
            if existing is None:
                raise NotFound(f"Reservation {reservation_id} not found")
            ensure_status_unchanged(existing.status, expected_status, patch)

            updated = existing.model_copy(
                update={**patch, "updated_at": dt.datetime.utcnow()}
            )
            if SLOT_FIELDS & patch.keys():
                self._check_occupancy(updated)
            self._reservations[reservation_id] = updated

        return updated

    def _snapshot(self) -> List[ReservationRead]:
        with self._lock:
            return list(self._reservations.values())

    def _check_occupancy(self, reservation: ReservationRead) -> None:
        """Must be called with the lock held."""
        if not holds_table(reservation.table_id, reservation.status):
            return

        clashes = find_overlapping(
            self._reservations.values(),
            reservation.date,
            reservation.time,
            reservation.duration_minutes,
            table_id=reservation.table_id,
            exclude_id=reservation.id,
        )
        if clashes:
            logger.warning(
                "Rejected write for table %s on %s at %s: held by %s",
                reservation.table_id,
                reservation.date,
                reservation.time,
                clashes[0].id,
            )
            raise ConflictError("Table is already booked for an overlapping time")

    def _check_token_unique(self, reservation: ReservationRead) -> None:
        token = reservation.management_token
        if token is None:
            return
        if any(r.management_token == token for r in self._reservations.values()):
            raise ConflictError("Management token already in use")
