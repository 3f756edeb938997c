from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TableRead(BaseModel):
    """Schema for reading a table."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    restaurant_id: UUID
    number: int
    capacity: int = Field(..., ge=1)
    position: Optional[str] = None
    is_active: bool = True


class TableSummary(BaseModel):
    """Compact table view returned alongside availability answers."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: int
    capacity: int
    position: Optional[str] = None
