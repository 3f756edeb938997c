"""
REST API endpoints for availability lookups.
"""
from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query

from tablebook.api.deps import get_availability_service
from tablebook.schemas.availability import AvailableTables, DayAvailability, SlotCheck
from tablebook.schemas.restaurant import TIME_PATTERN
from tablebook.schemas.table import TableSummary
from tablebook.services.availability_service import AvailabilityService

router = APIRouter(prefix="/api/v1/availability", tags=["availability"])


@router.get("", response_model=DayAvailability)
async def get_day_availability(
    date: dt.date = Query(..., description="Day to look up"),
    party_size: int = Query(..., ge=1, description="Number of guests"),
    service: AvailabilityService = Depends(get_availability_service),
) -> DayAvailability:
    """
    Get the slot grid of a day.

    Each slot carries the number of tables that could still seat the party.
    Closed days return an empty list.
    """
    restaurant = await service.get_active_restaurant()
    return await service.get_day_availability(date, restaurant.id, party_size)


@router.get("/tables", response_model=AvailableTables)
async def list_available_tables(
    date: dt.date = Query(...),
    time: str = Query(..., pattern=TIME_PATTERN),
    party_size: int = Query(..., ge=1),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailableTables:
    """Get every table free at a given time, smallest fitting table first."""
    restaurant = await service.get_active_restaurant()
    tables = await service.list_available_tables(date, time, party_size, restaurant.id)
    return AvailableTables(
        date=date,
        time=time,
        party_size=party_size,
        available_tables=[TableSummary.model_validate(t) for t in tables],
        count=len(tables),
    )


@router.get("/check", response_model=SlotCheck)
async def check_availability(
    date: dt.date = Query(...),
    time: str = Query(..., pattern=TIME_PATTERN),
    party_size: int = Query(..., ge=1),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotCheck:
    """Check one slot and return the table a booking would get."""
    restaurant = await service.get_active_restaurant()
    table = await service.find_table(date, time, party_size, restaurant.id)
    return SlotCheck(
        date=date,
        time=time,
        party_size=party_size,
        is_available=table is not None,
        available_table=TableSummary.model_validate(table) if table else None,
    )
