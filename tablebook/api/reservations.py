"""
REST API endpoints for reservations.
"""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tablebook.api.deps import get_current_user_id, get_lifecycle, require_user_id
from tablebook.schemas.availability import RefundDecision, RefundPolicy
from tablebook.schemas.reservation import (
    ReservationCancel,
    ReservationCreate,
    ReservationPage,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablebook.services.refund_policy import get_refund_policy
from tablebook.services.reservation_lifecycle import ReservationLifecycle

router = APIRouter(prefix="/api/v1", tags=["reservations"])


@router.post("/reservations", response_model=ReservationRead, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    """
    Book a table.

    Without an X-User-Id header the booking is a guest booking: client_name
    and client_email are required and the response carries the management
    token.
    """
    return await lifecycle.create(data, user_id=user_id)


@router.get("/reservations", response_model=ReservationPage)
async def list_my_reservations(
    status: Optional[ReservationStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(require_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationPage:
    """Get the caller's reservations, newest first."""
    return await lifecycle.list_for_user(user_id, status=status, page=page, limit=limit)


# Guest management by token

@router.get("/reservations/manage/{token}", response_model=ReservationRead)
async def get_reservation_by_token(
    token: str,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.get_by_token(token)


@router.patch("/reservations/manage/{token}", response_model=ReservationRead)
async def update_reservation_by_token(
    token: str,
    data: ReservationUpdate,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.update_by_token(token, data)


@router.post("/reservations/manage/{token}/cancel", response_model=ReservationRead)
async def cancel_reservation_by_token(
    token: str,
    data: Optional[ReservationCancel] = None,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.cancel_by_token(token, data.reason if data else None)


# Owner operations

@router.get("/reservations/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    reservation_id: UUID,
    user_id: str = Depends(require_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    """Get a single reservation owned by the caller."""
    return await lifecycle.get(reservation_id, user_id=user_id)


@router.patch("/reservations/{reservation_id}", response_model=ReservationRead)
async def update_reservation(
    reservation_id: UUID,
    data: ReservationUpdate,
    user_id: str = Depends(require_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    """
    Modify a reservation.

    Changing date, time, party size or duration re-runs table allocation.
    """
    return await lifecycle.update(reservation_id, data, user_id=user_id)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationRead)
async def cancel_reservation(
    reservation_id: UUID,
    data: Optional[ReservationCancel] = None,
    user_id: str = Depends(require_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.cancel(
        reservation_id, data.reason if data else None, user_id=user_id
    )


@router.get("/reservations/{reservation_id}/refund", response_model=RefundDecision)
async def quote_refund(
    reservation_id: UUID,
    user_id: str = Depends(require_user_id),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> RefundDecision:
    """Refund the deposit would get if cancelled now (or when it was cancelled)."""
    await lifecycle.get(reservation_id, user_id=user_id)
    return await lifecycle.quote_refund(reservation_id)


# Staff status changes

@router.post("/reservations/{reservation_id}/confirm", response_model=ReservationRead)
async def confirm_reservation(
    reservation_id: UUID,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.confirm(reservation_id)


@router.post("/reservations/{reservation_id}/complete", response_model=ReservationRead)
async def complete_reservation(
    reservation_id: UUID,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.complete(reservation_id)


@router.post("/reservations/{reservation_id}/no-show", response_model=ReservationRead)
async def mark_no_show(
    reservation_id: UUID,
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
) -> ReservationRead:
    return await lifecycle.mark_no_show(reservation_id)


@router.get("/refund-policy", response_model=RefundPolicy)
async def refund_policy() -> RefundPolicy:
    """Get the deposit refund policy."""
    return get_refund_policy()
