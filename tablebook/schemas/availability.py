from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from tablebook.schemas.table import TableSummary


class TimeSlot(BaseModel):
    """One bookable start time and how many tables remain for it."""

    time: str
    available: bool
    available_tables: int


class DayAvailability(BaseModel):
    """Full slot grid of one day for a given party size."""

    date: dt.date
    slots: List[TimeSlot]

    @property
    def available_times(self) -> List[str]:
        return [slot.time for slot in self.slots if slot.available]


class SlotCheck(BaseModel):
    """Answer for a single date/time/party-size request."""

    date: dt.date
    time: str
    party_size: int
    is_available: bool
    available_table: Optional[TableSummary] = None


class AvailableTables(BaseModel):
    date: dt.date
    time: str
    party_size: int
    available_tables: List[TableSummary]
    count: int


class RefundDecision(BaseModel):
    """Outcome of the refund policy for one cancellation."""

    amount: Decimal
    reason: str


class RefundPolicy(BaseModel):
    free_cancellation_hours: int
    refund_percentage: int
    no_show_policy: str
