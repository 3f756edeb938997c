"""Deposit refund rules applied when a reservation is cancelled."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional, Union
from zoneinfo import ZoneInfo

from tablebook.config import Settings, get_settings
from tablebook.schemas.availability import RefundDecision, RefundPolicy

NO_SHOW_REASON = "no_show"


def get_refund_policy(settings: Optional[Settings] = None) -> RefundPolicy:
    settings = settings or get_settings()
    return RefundPolicy(
        free_cancellation_hours=settings.free_cancellation_hours,
        refund_percentage=100,
        no_show_policy="No refund for no-show",
    )


def calculate_refund_amount(
    reservation_at: dt.datetime,
    deposit_amount: Union[Decimal, float, int],
    cancellation_reason: Optional[str] = None,
    now: Optional[dt.datetime] = None,
    settings: Optional[Settings] = None,
) -> RefundDecision:
    """
    Refund owed for a cancelled deposit.

    - no-show: nothing
    - cancelled at least ``free_cancellation_hours`` (24h) ahead: full deposit
    - later than that: nothing

    ``reservation_at`` and ``now`` must use the same convention (both naive
    UTC, or both timezone-aware).
    """
    settings = settings or get_settings()
    now = now or dt.datetime.utcnow()
    deposit = Decimal(str(deposit_amount))

    if cancellation_reason == NO_SHOW_REASON:
        return RefundDecision(amount=Decimal("0"), reason="No refund for no-show")

    notice = reservation_at - now
    if notice >= dt.timedelta(hours=settings.free_cancellation_hours):
        return RefundDecision(
            amount=deposit,
            reason=f"Full refund - cancelled more than {settings.free_cancellation_hours}h in advance",
        )

    return RefundDecision(
        amount=Decimal("0"),
        reason=f"No refund - cancelled less than {settings.free_cancellation_hours}h in advance",
    )


def reservation_start_utc(date: dt.date, time: str, timezone: str) -> dt.datetime:
    """Local start of a sitting, as a naive UTC datetime."""
    hours, minutes = (int(part) for part in time.split(":"))
    local = dt.datetime.combine(date, dt.time(hours, minutes), tzinfo=ZoneInfo(timezone))
    return local.astimezone(dt.timezone.utc).replace(tzinfo=None)
