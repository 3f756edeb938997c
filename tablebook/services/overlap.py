"""Overlap detection between reservations.

Intervals are half-open: a sitting ending at 20:30 does not collide with one
starting at 20:30. Buffer spacing is a property of the slot grid and is not
checked here.
"""
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from tablebook.schemas.reservation import ReservationRead, ReservationStatus
from tablebook.services.time_grid import parse_time


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """``[start_a, end_a)`` and ``[start_b, end_b)`` share at least one minute."""
    return start_a < end_b and start_b < end_a


def reservation_interval(reservation: ReservationRead) -> Tuple[int, int]:
    """(start, end) of a reservation in minutes since midnight."""
    start = parse_time(reservation.time)
    return start, start + reservation.duration_minutes


def is_cancelled(reservation: ReservationRead) -> bool:
    return reservation.status == ReservationStatus.CANCELLED


def reservations_overlap(a: ReservationRead, b: ReservationRead) -> bool:
    """Two live reservations holding the same table at the same time."""
    if is_cancelled(a) or is_cancelled(b):
        return False
    if a.date != b.date or a.table_id is None or a.table_id != b.table_id:
        return False
    return intervals_overlap(*reservation_interval(a), *reservation_interval(b))


def find_overlapping(
    reservations: Iterable[ReservationRead],
    date: dt.date,
    time: str,
    duration_minutes: int,
    table_id: Optional[UUID] = None,
    exclude_id: Optional[UUID] = None,
) -> List[ReservationRead]:
    """
    Live reservations colliding with ``[time, time + duration)`` on ``date``.

    Args:
        reservations: Candidate reservations (any table, any status)
        table_id: Only consider this table when given
        exclude_id: Skip this reservation, used when re-checking a
            reservation against everyone but itself
    """
    start = parse_time(time)
    end = start + duration_minutes

    overlapping = []
    for reservation in reservations:
        if is_cancelled(reservation) or reservation.date != date:
            continue
        if exclude_id is not None and reservation.id == exclude_id:
            continue
        if table_id is not None and reservation.table_id != table_id:
            continue
        if intervals_overlap(start, end, *reservation_interval(reservation)):
            overlapping.append(reservation)
    return overlapping
