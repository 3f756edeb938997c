"""Service answering availability questions for a restaurant."""
from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional
from uuid import UUID

from tablebook.config import Settings, get_settings
from tablebook.exceptions import NotFound
from tablebook.repositories.base import ReservationStore
from tablebook.schemas.availability import DayAvailability, TimeSlot
from tablebook.schemas.reservation import ReservationRead
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.schemas.table import TableRead
from tablebook.services.overlap import find_overlapping
from tablebook.services.table_allocator import TableAllocator
from tablebook.services.time_grid import (
    generate_day_slots,
    resolve_day_schedule,
    slot_duration_for_party,
)

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Read-only availability queries.

    Every call takes one snapshot of the restaurant's active tables and the
    day's live reservations, then answers from that snapshot only. Results
    can be stale under concurrent writes; the write path re-checks.
    """

    def __init__(
        self,
        store: ReservationStore,
        allocator: Optional[TableAllocator] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.allocator = allocator or TableAllocator()
        self.settings = settings or get_settings()

    async def check_slot_availability(
        self,
        date: dt.date,
        time: str,
        party_size: int,
        restaurant_id: UUID,
        exclude_reservation_id: Optional[UUID] = None,
        duration_minutes: Optional[int] = None,
    ) -> bool:
        """True iff some table can take the party at ``time`` on ``date``."""
        table = await self.find_table(
            date,
            time,
            party_size,
            restaurant_id,
            exclude_reservation_id=exclude_reservation_id,
            duration_minutes=duration_minutes,
        )
        return table is not None

    async def find_table(
        self,
        date: dt.date,
        time: str,
        party_size: int,
        restaurant_id: UUID,
        exclude_reservation_id: Optional[UUID] = None,
        duration_minutes: Optional[int] = None,
        preferred_table_id: Optional[UUID] = None,
    ) -> Optional[TableRead]:
        """
        The table the allocator would pick right now, if any.

        When ``preferred_table_id`` still fits the request it is returned
        instead of the best fit, so a modified booking keeps its table.
        """
        tables, reservations = await self._snapshot(restaurant_id, date, exclude_reservation_id)
        duration = duration_minutes or slot_duration_for_party(party_size, self.settings)

        if preferred_table_id is not None:
            for table in tables:
                if table.id == preferred_table_id and self.allocator.is_table_free(
                    table, reservations, party_size, date, time, duration
                ):
                    return table

        return self.allocator.allocate(tables, reservations, party_size, date, time, duration)

    async def list_available_tables(
        self,
        date: dt.date,
        time: str,
        party_size: int,
        restaurant_id: UUID,
        duration_minutes: Optional[int] = None,
    ) -> List[TableRead]:
        """Every table free for the request, best fit first."""
        tables, reservations = await self._snapshot(restaurant_id, date)
        return self.allocator.available_tables(
            tables,
            reservations,
            party_size,
            date,
            time,
            duration_minutes or slot_duration_for_party(party_size, self.settings),
        )

    async def get_day_availability(
        self,
        date: dt.date,
        restaurant_id: UUID,
        party_size: int = 1,
    ) -> DayAvailability:
        """
        Slot grid for one day with the number of free tables per slot.

        Raises NotFound if the restaurant does not exist.
        """
        restaurant = await self._get_restaurant(restaurant_id)
        schedule = resolve_day_schedule(restaurant.opening_hours, date)
        duration = slot_duration_for_party(party_size, self.settings)

        times = generate_day_slots(schedule, duration, self._buffer(restaurant))
        if not times:
            return DayAvailability(date=date, slots=[])

        tables, reservations = await self._snapshot(restaurant_id, date)

        slots = []
        for time in times:
            count = len(
                self.allocator.available_tables(
                    tables, reservations, party_size, date, time, duration
                )
            )
            slots.append(TimeSlot(time=time, available=count > 0, available_tables=count))

        logger.debug(
            "Availability for %s, party of %d: %d of %d slots open",
            date,
            party_size,
            sum(1 for s in slots if s.available),
            len(slots),
        )
        return DayAvailability(date=date, slots=slots)

    async def find_conflicts(
        self,
        date: dt.date,
        time: str,
        duration_minutes: int,
        restaurant_id: UUID,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[ReservationRead]:
        """Live reservations on any table overlapping the interval."""
        reservations = await self.store.find_reservations(
            restaurant_id, date, exclude_id=exclude_reservation_id
        )
        return find_overlapping(reservations, date, time, duration_minutes)

    async def get_active_restaurant(self) -> RestaurantRead:
        """The restaurant currently taking bookings; NotFound if there is none."""
        restaurant = await self.store.find_active_restaurant()
        if restaurant is None:
            raise NotFound("No active restaurant found")
        return restaurant

    async def _snapshot(
        self,
        restaurant_id: UUID,
        date: dt.date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> tuple[List[TableRead], List[ReservationRead]]:
        tables = await self.store.find_active_tables(restaurant_id)
        reservations = await self.store.find_reservations(
            restaurant_id, date, exclude_id=exclude_reservation_id
        )
        return tables, reservations

    async def _get_restaurant(self, restaurant_id: UUID) -> RestaurantRead:
        restaurant = await self.store.get_restaurant(restaurant_id)
        if restaurant is None:
            raise NotFound(f"Restaurant {restaurant_id} not found")
        return restaurant

    def _buffer(self, restaurant: RestaurantRead) -> int:
        if restaurant.buffer_minutes is None:
            return self.settings.default_buffer_minutes
        return restaurant.buffer_minutes
