"""Service for seeding default data to handle cold start scenarios."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.models.restaurant import Restaurant
from tablebook.models.table import Table

logger = logging.getLogger(__name__)


# Default restaurant config. opening_hours stays null so the built-in
# schedule (lunch and evening Monday to Saturday, closed Sunday) applies.
DEFAULT_RESTAURANT = {
    "name": "TechPlus Restaurant",
    "timezone": "Europe/Paris",
    "buffer_minutes": 30,
    "payment_threshold": 6,
    "minimum_deposit_amount": Decimal("15.00"),
}

TABLE_COUNT = 20


def default_table_layout() -> List[dict]:
    """
    Twenty tables numbered 1..20.

    1-10 seat 2, 11-15 seat 4, 16-18 seat 6 and 19-20 seat 8.
    """
    layout = []
    for number in range(1, TABLE_COUNT + 1):
        if number <= 10:
            capacity = 2
        elif number <= 15:
            capacity = 4
        elif number <= 18:
            capacity = 6
        else:
            capacity = 8

        if number <= 5:
            position = "terrace"
        elif number <= 10:
            position = "main room"
        elif number <= 15:
            position = "private room"
        else:
            position = "VIP"

        layout.append({"number": number, "capacity": capacity, "position": position})
    return layout


class SeedService:
    """
    Service for seeding default data.

    Creates the default restaurant and its tables when the database is empty.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ensure_default_data(self) -> dict:
        """
        Ensure default data exists for cold start.

        Returns:
            Dict with created counts
        """
        result = {
            "restaurants_created": 0,
            "tables_created": 0,
            "already_seeded": False,
        }

        restaurant_count = await self._count_restaurants()
        if restaurant_count > 0:
            result["already_seeded"] = True
            logger.info("Database already has data, skipping seed")
            return result

        logger.info("Cold start detected, seeding default data...")

        restaurant = Restaurant(**DEFAULT_RESTAURANT)
        self.session.add(restaurant)
        await self.session.flush()
        result["restaurants_created"] = 1

        tables = [
            Table(restaurant_id=restaurant.id, **entry)
            for entry in default_table_layout()
        ]
        self.session.add_all(tables)
        result["tables_created"] = len(tables)

        await self.session.commit()

        logger.info(
            "Seed complete: %d restaurants, %d tables",
            result["restaurants_created"],
            result["tables_created"],
        )
        return result

    async def _count_restaurants(self) -> int:
        stmt = select(func.count()).select_from(Restaurant)
        result = await self.session.execute(stmt)
        return result.scalar_one()
