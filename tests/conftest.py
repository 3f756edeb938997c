"""
Pytest configuration and fixtures.

This module provides fixtures that simulate a real booking floor:
- "Chez Marcel", a Paris bistro on the default lunch/evening schedule
- Tables of 2, 4, 6 and 8 seats
- A fixed clock so token expiry and refund notice are deterministic
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import AsyncGenerator, List
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tablebook.config import Settings, get_settings
from tablebook.database import Base
from tablebook.models import Reservation, Restaurant, Table  # noqa: F401
from tablebook.repositories.memory import InMemoryReservationStore
from tablebook.schemas.reservation import ReservationCreate
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.schemas.table import TableRead
from tablebook.services.availability_service import AvailabilityService
from tablebook.services.reservation_lifecycle import ReservationLifecycle


# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday; the default schedule serves lunch and dinner
MONDAY = dt.date(2026, 11, 2)
SUNDAY = dt.date(2026, 11, 8)
NOW = dt.datetime(2026, 10, 20, 10, 0)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: dt.datetime):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += dt.timedelta(**kwargs)


@pytest.fixture
def monday() -> dt.date:
    return MONDAY


@pytest.fixture
def sunday() -> dt.date:
    return SUNDAY


@pytest.fixture
def make_request():
    """Factory for a guest booking for two on Monday at 19:00."""

    def _make(**overrides) -> ReservationCreate:
        data = {
            "date": MONDAY,
            "time": "19:00",
            "party_size": 2,
            "client_name": "Camille Martin",
            "client_email": "camille@example.com",
        }
        data.update(overrides)
        return ReservationCreate(**data)

    return _make


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def restaurant() -> RestaurantRead:
    """
    A bistro using the built-in hours: lunch 12:00-14:30, dinner 19:00-22:30,
    closed on Sundays. Parties of 6 or more leave a 15.00 deposit.
    """
    return RestaurantRead(
        id=uuid4(),
        name="Chez Marcel",
        timezone="Europe/Paris",
        opening_hours=None,
        buffer_minutes=30,
        payment_threshold=6,
        minimum_deposit_amount=Decimal("15.00"),
    )


@pytest.fixture
def tables(restaurant: RestaurantRead) -> List[TableRead]:
    """
    Floor plan:
    - 1, 2: two-tops on the terrace
    - 3, 4: four-tops in the main room
    - 5: six-top
    - 6: eight-top (VIP)
    - 7: two-top, out of service
    """
    layout = [
        (1, 2, "terrace", True),
        (2, 2, "terrace", True),
        (3, 4, "main room", True),
        (4, 4, "main room", True),
        (5, 6, "main room", True),
        (6, 8, "VIP", True),
        (7, 2, "terrace", False),
    ]
    return [
        TableRead(
            id=uuid4(),
            restaurant_id=restaurant.id,
            number=number,
            capacity=capacity,
            position=position,
            is_active=is_active,
        )
        for number, capacity, position, is_active in layout
    ]


@pytest.fixture
def table_by_number(tables: List[TableRead]) -> dict:
    return {t.number: t for t in tables}


@pytest.fixture
def store(restaurant: RestaurantRead, tables: List[TableRead]) -> InMemoryReservationStore:
    return InMemoryReservationStore(restaurants=[restaurant], tables=tables)


@pytest.fixture
def availability(store: InMemoryReservationStore, settings: Settings) -> AvailabilityService:
    return AvailabilityService(store, settings=settings)


@pytest.fixture
def lifecycle(
    store: InMemoryReservationStore,
    availability: AvailabilityService,
    settings: Settings,
    clock: FixedClock,
) -> ReservationLifecycle:
    return ReservationLifecycle(store, availability=availability, settings=settings, clock=clock)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def sample_restaurant(db_session: AsyncSession) -> Restaurant:
    """Persisted counterpart of the ``restaurant`` fixture."""
    restaurant = Restaurant(
        id=uuid4(),
        name="Chez Marcel",
        timezone="Europe/Paris",
        buffer_minutes=30,
        payment_threshold=6,
        minimum_deposit_amount=Decimal("15.00"),
    )
    db_session.add(restaurant)
    await db_session.commit()
    await db_session.refresh(restaurant)
    return restaurant


@pytest_asyncio.fixture
async def sample_tables(
    db_session: AsyncSession,
    sample_restaurant: Restaurant,
) -> list[Table]:
    """Two two-tops, one four-top and one six-top."""
    tables = [
        Table(restaurant_id=sample_restaurant.id, number=1, capacity=2, position="terrace"),
        Table(restaurant_id=sample_restaurant.id, number=2, capacity=2, position="terrace"),
        Table(restaurant_id=sample_restaurant.id, number=3, capacity=4, position="main room"),
        Table(restaurant_id=sample_restaurant.id, number=4, capacity=6, position="main room"),
    ]
    for table in tables:
        table.id = uuid4()
        db_session.add(table)
    await db_session.commit()
    for table in tables:
        await db_session.refresh(table)
    return tables
