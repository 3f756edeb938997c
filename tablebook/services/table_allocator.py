"""Best-fit table selection."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional, Sequence
from uuid import UUID

from tablebook.schemas.reservation import ReservationRead
from tablebook.schemas.table import TableRead
from tablebook.services.overlap import find_overlapping


class TableAllocator:
    """
    Chooses a table for a party at a given date and time.

    Selection rule:
    - table must be active and seat the whole party
    - no live reservation on that table may overlap the requested interval
    - smallest capacity wins, ties go to the lowest table number

    The allocator never mutates its inputs; repeated calls with the same
    snapshot give the same answer.
    """

    def available_tables(
        self,
        tables: Sequence[TableRead],
        reservations: Sequence[ReservationRead],
        party_size: int,
        date: dt.date,
        time: str,
        duration_minutes: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[TableRead]:
        """All tables that can take the party, best fit first."""
        candidates = [
            table
            for table in tables
            if table.is_active
            and table.capacity >= party_size
            and self._is_free(table, reservations, date, time, duration_minutes, exclude_reservation_id)
        ]
        return sorted(candidates, key=lambda t: (t.capacity, t.number))

    def allocate(
        self,
        tables: Sequence[TableRead],
        reservations: Sequence[ReservationRead],
        party_size: int,
        date: dt.date,
        time: str,
        duration_minutes: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> Optional[TableRead]:
        """The best-fit table, or None when nothing is free."""
        available = self.available_tables(
            tables,
            reservations,
            party_size,
            date,
            time,
            duration_minutes,
            exclude_reservation_id,
        )
        return available[0] if available else None

    def is_table_free(
        self,
        table: TableRead,
        reservations: Sequence[ReservationRead],
        party_size: int,
        date: dt.date,
        time: str,
        duration_minutes: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        """Whether one specific table can hold the request."""
        return (
            table.is_active
            and table.capacity >= party_size
            and self._is_free(table, reservations, date, time, duration_minutes, exclude_reservation_id)
        )

    @staticmethod
    def _is_free(
        table: TableRead,
        reservations: Sequence[ReservationRead],
        date: dt.date,
        time: str,
        duration_minutes: int,
        exclude_reservation_id: Optional[UUID],
    ) -> bool:
        return not find_overlapping(
            reservations,
            date,
            time,
            duration_minutes,
            table_id=table.id,
            exclude_id=exclude_reservation_id,
        )
