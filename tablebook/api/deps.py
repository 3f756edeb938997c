"""
Shared FastAPI dependencies.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.database import get_session
from tablebook.repositories.base import ReservationStore
from tablebook.repositories.sql import SqlReservationStore
from tablebook.services.availability_service import AvailabilityService
from tablebook.services.reservation_lifecycle import ReservationLifecycle


async def get_store(session: AsyncSession = Depends(get_session)) -> ReservationStore:
    return SqlReservationStore(session)


async def get_availability_service(
    store: ReservationStore = Depends(get_store),
) -> AvailabilityService:
    return AvailabilityService(store)


async def get_lifecycle(
    store: ReservationStore = Depends(get_store),
) -> ReservationLifecycle:
    return ReservationLifecycle(store)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, description="Set by the upstream auth layer"),
) -> Optional[str]:
    """Caller identity, or None for guests."""
    return x_user_id or None


async def require_user_id(
    user_id: Optional[str] = Depends(get_current_user_id),
) -> str:
    if user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id
