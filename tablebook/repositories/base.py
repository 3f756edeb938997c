"""Persistence interface consumed by the reservation engine."""
from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from tablebook.exceptions import InvalidTransition
from tablebook.schemas.reservation import ReservationDraft, ReservationRead, ReservationStatus
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.schemas.table import TableRead

# Fields whose change can make a reservation collide with another one
SLOT_FIELDS = frozenset({"table_id", "date", "time", "duration_minutes", "status"})


def holds_table(table_id: Optional[UUID], status: Any) -> bool:
    """A reservation occupies its table unless it is cancelled or unassigned."""
    return table_id is not None and status != ReservationStatus.CANCELLED


def ensure_status_unchanged(
    current: Any,
    expected: Optional[ReservationStatus],
    patch: Dict[str, Any],
) -> None:
    """Refuse a write validated against a status that has since changed."""
    if expected is None:
        return
    current = ReservationStatus(current)
    if current == expected:
        return
    target = ReservationStatus(patch.get("status", current))
    raise InvalidTransition(
        current.value,
        target.value,
        message=f"Reservation is now {current.value}, expected {expected.value}",
    )


class ReservationStore(ABC):
    """
    Storage for restaurants, tables and reservations.

    Implementations must make ``insert_reservation`` and ``update_reservation``
    atomic with respect to table occupancy: if another live reservation on the
    same table overlaps the written interval, the write is refused with
    ConflictError and nothing is stored.
    """

    @abstractmethod
    async def find_active_restaurant(self) -> Optional[RestaurantRead]:
        """The restaurant currently taking bookings."""

    @abstractmethod
    async def get_restaurant(self, restaurant_id: UUID) -> Optional[RestaurantRead]:
        ...

    @abstractmethod
    async def find_active_tables(self, restaurant_id: UUID) -> List[TableRead]:
        """Active tables ordered by table number."""

    @abstractmethod
    async def find_reservations(
        self,
        restaurant_id: UUID,
        date: dt.date,
        exclude_id: Optional[UUID] = None,
        include_cancelled: bool = False,
    ) -> List[ReservationRead]:
        """Reservations of one restaurant on one day, ordered by start time."""

    @abstractmethod
    async def get_reservation(self, reservation_id: UUID) -> Optional[ReservationRead]:
        ...

    @abstractmethod
    async def get_reservation_by_token(self, token: str) -> Optional[ReservationRead]:
        ...

    @abstractmethod
    async def list_user_reservations(
        self,
        user_id: str,
        status: Optional[ReservationStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ReservationRead], int]:
        """One page of a user's reservations (newest date first) and the total count."""

    @abstractmethod
    async def insert_reservation(self, draft: ReservationDraft) -> ReservationRead:
        """
        Persist a new reservation.

        Raises:
            ConflictError: the table is already held for an overlapping interval
        """

    @abstractmethod
    async def update_reservation(
        self,
        reservation_id: UUID,
        patch: Dict[str, Any],
        expected_status: Optional[ReservationStatus] = None,
    ) -> ReservationRead:
        """
        Apply ``patch`` to a reservation.

        When ``expected_status`` is given the write only happens if the stored
        status still equals it, checked atomically with the write.

        Raises:
            NotFound: no reservation with this id
            InvalidTransition: the stored status is no longer ``expected_status``
            ConflictError: the patched reservation would overlap another one
        """
