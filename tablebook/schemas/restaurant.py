from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ServiceWindow(BaseModel):
    """One service (lunch or evening) of a day."""

    open: str = Field(..., pattern=TIME_PATTERN)
    close: str = Field(..., pattern=TIME_PATTERN)


class DaySchedule(BaseModel):
    """Opening hours for one weekday."""

    lunch: Optional[ServiceWindow] = None
    evening: Optional[ServiceWindow] = None
    closed: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_lunch(cls, data: Any) -> Any:
        # Older rows store the lunch service as top-level open/close
        if isinstance(data, dict) and "lunch" not in data and "open" in data and "close" in data:
            data = {**data, "lunch": {"open": data["open"], "close": data["close"]}}
        return data


class RestaurantRead(BaseModel):
    """Schema for reading a restaurant and its booking configuration."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    timezone: str = "America/New_York"
    is_active: bool = True
    opening_hours: Optional[Dict[str, Any]] = None
    buffer_minutes: Optional[int] = Field(None, ge=0)
    payment_threshold: int = Field(6, ge=1)
    minimum_deposit_amount: Decimal = Decimal("0")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
