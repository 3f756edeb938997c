"""Reservation creation, modification and status transitions."""
from __future__ import annotations

import datetime as dt
import logging
import math
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import UUID

from tablebook.config import Settings, get_settings
from tablebook.exceptions import (
    AccessDenied,
    AlreadyCancelled,
    ConflictError,
    InvalidRequest,
    InvalidTransition,
    NotFound,
    SlotUnavailable,
    TokenExpired,
)
from tablebook.repositories.base import ReservationStore
from tablebook.schemas.availability import RefundDecision
from tablebook.schemas.reservation import (
    CONTACT_FIELDS,
    PaymentStatus,
    ReservationCreate,
    ReservationDraft,
    ReservationPage,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.services.availability_service import AvailabilityService
from tablebook.services.refund_policy import (
    NO_SHOW_REASON,
    calculate_refund_amount,
    reservation_start_utc,
)
from tablebook.services.time_grid import slot_duration_for_party
from tablebook.services.tokens import is_token_expired, new_management_token, token_expiry

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
        ReservationStatus.NO_SHOW,
    },
}

TERMINAL_STATUSES = frozenset(
    {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED, ReservationStatus.NO_SHOW}
)

# Deposit terms can still change while no money has moved
_OPEN_PAYMENT_STATUSES = frozenset({PaymentStatus.NONE, PaymentStatus.PENDING})


def ensure_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """
    Validate a status change against the state machine.

    PENDING -> CONFIRMED | CANCELLED
    CONFIRMED -> CANCELLED | COMPLETED | NO_SHOW
    CANCELLED, COMPLETED and NO_SHOW are terminal.
    """
    if current == ReservationStatus.CANCELLED and target == ReservationStatus.CANCELLED:
        raise AlreadyCancelled()
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(current.value, target.value)


class ReservationLifecycle:
    """
    The only writer of reservations.

    Allocation happens against a snapshot; the store re-checks occupancy
    atomically on write, and a lost race surfaces as SlotUnavailable.
    Every write to an existing reservation names the status it was validated
    against; if a concurrent write changed it, the store refuses with
    InvalidTransition. Nothing is retried here.
    """

    def __init__(
        self,
        store: ReservationStore,
        availability: Optional[AvailabilityService] = None,
        settings: Optional[Settings] = None,
        token_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.utcnow,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.availability = availability or AvailabilityService(store, settings=self.settings)
        self.token_factory = token_factory or (lambda: new_management_token(self.settings))
        self.clock = clock

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create(
        self,
        request: ReservationCreate,
        user_id: Optional[str] = None,
    ) -> ReservationRead:
        """
        Book a table for the request.

        Guests (no ``user_id``) must leave a name and email, and receive a
        management token valid for 7 days.

        Raises:
            NotFound: no restaurant is taking bookings
            InvalidRequest: guest contact details missing
            SlotUnavailable: no table fits, or another booking won the race
        """
        restaurant = await self.availability.get_active_restaurant()

        is_guest = user_id is None
        if is_guest and not (request.client_name and request.client_email):
            raise InvalidRequest("Guest reservations require client_name and client_email")

        duration = request.duration_minutes or slot_duration_for_party(
            request.party_size, self.settings
        )
        requires_payment, deposit = self._deposit_terms(restaurant, request.party_size)

        table = await self.availability.find_table(
            request.date,
            request.time,
            request.party_size,
            restaurant.id,
            duration_minutes=duration,
        )
        if table is None:
            logger.info(
                "No table for %d guests on %s at %s",
                request.party_size,
                request.date,
                request.time,
            )
            raise SlotUnavailable()

        now = self.clock()
        draft = ReservationDraft(
            restaurant_id=restaurant.id,
            table_id=table.id,
            user_id=user_id,
            date=request.date,
            time=request.time,
            duration_minutes=duration,
            party_size=request.party_size,
            status=ReservationStatus.PENDING,
            payment_status=PaymentStatus.PENDING if requires_payment else PaymentStatus.NONE,
            requires_payment=requires_payment,
            deposit_amount=deposit,
            notes=request.notes,
            special_requests=request.special_requests,
            client_name=request.client_name if is_guest else None,
            client_email=request.client_email if is_guest else None,
            client_phone=request.client_phone if is_guest else None,
            management_token=self.token_factory() if is_guest else None,
            token_expires_at=token_expiry(now, self.settings) if is_guest else None,
        )

        try:
            reservation = await self.store.insert_reservation(draft)
        except ConflictError as exc:
            raise SlotUnavailable() from exc

        logger.info(
            "Created reservation %s: table %s, %s at %s, %d guests",
            reservation.id,
            table.number,
            reservation.date,
            reservation.time,
            reservation.party_size,
        )
        return reservation

    async def get(
        self,
        reservation_id: UUID,
        user_id: Optional[str] = None,
    ) -> ReservationRead:
        """Fetch a reservation, checking ownership when a caller identity is given."""
        reservation = await self.store.get_reservation(reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        if user_id is not None and reservation.user_id != user_id:
            raise AccessDenied("Access denied")
        return reservation

    async def get_by_token(self, token: str) -> ReservationRead:
        """
        Fetch a guest reservation by management token.

        Raises NotFound for unknown tokens and TokenExpired once the token is
        past ``token_expires_at``.
        """
        reservation = await self.store.get_reservation_by_token(token)
        if reservation is None:
            raise NotFound("Reservation not found")
        if is_token_expired(reservation.token_expires_at, self.clock()):
            raise TokenExpired()
        return reservation

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[ReservationStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReservationPage:
        page = max(page, 1)
        limit = max(limit, 1)
        reservations, total = await self.store.list_user_reservations(
            user_id, status=status, offset=(page - 1) * limit, limit=limit
        )
        return ReservationPage(
            reservations=reservations,
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        )

    # ------------------------------------------------------------------
    # Modification
    # ------------------------------------------------------------------

    async def update(
        self,
        reservation_id: UUID,
        changes: ReservationUpdate,
        user_id: Optional[str] = None,
    ) -> ReservationRead:
        existing = await self.get(reservation_id, user_id)
        return await self._apply_update(existing, changes)

    async def update_by_token(self, token: str, changes: ReservationUpdate) -> ReservationRead:
        existing = await self.get_by_token(token)
        return await self._apply_update(existing, changes)

    async def _apply_update(
        self,
        existing: ReservationRead,
        changes: ReservationUpdate,
    ) -> ReservationRead:
        """
        Apply a modification.

        Moving or resizing a booking re-runs allocation against every other
        reservation. The current table is kept when it still fits; otherwise
        the best-fit table is assigned.
        """
        if existing.status in TERMINAL_STATUSES:
            raise InvalidTransition(
                existing.status.value,
                existing.status.value,
                message=f"Cannot modify a {existing.status.value.lower()} reservation",
            )

        patch: Dict[str, Any] = changes.to_patch()
        if not patch:
            return existing

        if existing.user_id is not None and any(
            patch[field] is not None for field in CONTACT_FIELDS & patch.keys()
        ):
            raise InvalidRequest("Guest contact details cannot be set on an account reservation")

        if changes.touches_slot:
            patch.update(await self._reallocate(existing, patch))

        try:
            updated = await self.store.update_reservation(
                existing.id, patch, expected_status=existing.status
            )
        except ConflictError as exc:
            raise SlotUnavailable() from exc

        logger.info("Updated reservation %s: %s", existing.id, sorted(patch))
        return updated

    async def _reallocate(
        self,
        existing: ReservationRead,
        patch: Dict[str, Any],
    ) -> Dict[str, Any]:
        date = patch.get("date", existing.date)
        time = patch.get("time", existing.time)
        party_size = patch.get("party_size", existing.party_size)

        if "duration_minutes" in patch:
            duration = patch["duration_minutes"]
        elif "party_size" in patch:
            duration = slot_duration_for_party(party_size, self.settings)
        else:
            duration = existing.duration_minutes

        table = await self.availability.find_table(
            date,
            time,
            party_size,
            existing.restaurant_id,
            exclude_reservation_id=existing.id,
            duration_minutes=duration,
            preferred_table_id=existing.table_id,
        )
        if table is None:
            logger.info(
                "No table to move reservation %s to %s at %s for %d guests",
                existing.id,
                date,
                time,
                party_size,
            )
            raise SlotUnavailable()

        resolved: Dict[str, Any] = {"table_id": table.id, "duration_minutes": duration}

        if "party_size" in patch and existing.payment_status in _OPEN_PAYMENT_STATUSES:
            restaurant = await self.store.get_restaurant(existing.restaurant_id)
            if restaurant is None:
                raise NotFound("Restaurant not found")
            requires_payment, deposit = self._deposit_terms(restaurant, party_size)
            resolved.update(
                requires_payment=requires_payment,
                deposit_amount=deposit,
                payment_status=(
                    PaymentStatus.PENDING if requires_payment else PaymentStatus.NONE
                ),
            )

        return resolved

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def cancel(
        self,
        reservation_id: UUID,
        reason: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ReservationRead:
        """
        Cancel a reservation. The row is kept with status CANCELLED.

        Raises AlreadyCancelled when called twice.
        """
        existing = await self.get(reservation_id, user_id)
        return await self._cancel(existing, reason)

    async def cancel_by_token(self, token: str, reason: Optional[str] = None) -> ReservationRead:
        existing = await self.get_by_token(token)
        return await self._cancel(existing, reason)

    async def _cancel(self, existing: ReservationRead, reason: Optional[str]) -> ReservationRead:
        ensure_transition(existing.status, ReservationStatus.CANCELLED)
        cancelled = await self.store.update_reservation(
            existing.id,
            {
                "status": ReservationStatus.CANCELLED,
                "cancellation_reason": reason,
                "cancelled_at": self.clock(),
            },
            expected_status=existing.status,
        )
        logger.info("Cancelled reservation %s (reason: %s)", existing.id, reason)
        return cancelled

    async def transition(
        self,
        reservation_id: UUID,
        target: ReservationStatus,
    ) -> ReservationRead:
        """Move a reservation to ``target`` if the state machine allows it."""
        if target == ReservationStatus.CANCELLED:
            return await self.cancel(reservation_id)

        existing = await self.get(reservation_id)
        ensure_transition(existing.status, target)
        try:
            updated = await self.store.update_reservation(
                existing.id, {"status": target}, expected_status=existing.status
            )
        except ConflictError as exc:
            raise SlotUnavailable() from exc

        logger.info(
            "Reservation %s: %s -> %s", existing.id, existing.status.value, target.value
        )
        return updated

    async def confirm(self, reservation_id: UUID) -> ReservationRead:
        return await self.transition(reservation_id, ReservationStatus.CONFIRMED)

    async def complete(self, reservation_id: UUID) -> ReservationRead:
        return await self.transition(reservation_id, ReservationStatus.COMPLETED)

    async def mark_no_show(self, reservation_id: UUID) -> ReservationRead:
        return await self.transition(reservation_id, ReservationStatus.NO_SHOW)

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    async def quote_refund(self, reservation_id: UUID) -> RefundDecision:
        """
        Refund owed on the reservation's deposit.

        Notice is measured from the cancellation time (or now, if the
        reservation is still live) to the sitting's local start.
        """
        reservation = await self.get(reservation_id)
        restaurant = await self.store.get_restaurant(reservation.restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")

        reason = reservation.cancellation_reason
        if reservation.status == ReservationStatus.NO_SHOW:
            reason = NO_SHOW_REASON

        return calculate_refund_amount(
            reservation_start_utc(reservation.date, reservation.time, restaurant.timezone),
            reservation.deposit_amount,
            reason,
            now=reservation.cancelled_at or self.clock(),
            settings=self.settings,
        )

    @staticmethod
    def _deposit_terms(restaurant: RestaurantRead, party_size: int) -> Tuple[bool, Decimal]:
        requires_payment = party_size >= restaurant.payment_threshold
        deposit = restaurant.minimum_deposit_amount if requires_payment else Decimal("0")
        return requires_payment, deposit
