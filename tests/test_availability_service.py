"""Tests for AvailabilityService."""
from __future__ import annotations

from uuid import uuid4

import pytest

from tablebook.exceptions import NotFound
from tablebook.repositories.memory import InMemoryReservationStore
from tablebook.schemas.restaurant import RestaurantRead
from tablebook.services.availability_service import AvailabilityService


class TestGetDayAvailability:
    """Tests for the daily slot grid."""

    async def test_empty_floor_on_a_weekday(self, availability, restaurant, monday):
        day = await availability.get_day_availability(monday, restaurant.id, party_size=2)

        assert [s.time for s in day.slots] == ["12:00", "19:00", "21:00"]
        # six active tables seat two; table 7 is out of service
        assert all(s.available_tables == 6 for s in day.slots)
        assert day.available_times == ["12:00", "19:00", "21:00"]

    async def test_large_party_uses_longer_sittings(self, availability, restaurant, monday):
        day = await availability.get_day_availability(monday, restaurant.id, party_size=6)

        assert [s.time for s in day.slots] == ["12:00", "19:00"]
        assert all(s.available_tables == 2 for s in day.slots)

    async def test_closed_day(self, availability, restaurant, sunday):
        day = await availability.get_day_availability(sunday, restaurant.id, party_size=2)
        assert day.slots == []

    async def test_unknown_restaurant(self, availability, monday):
        with pytest.raises(NotFound):
            await availability.get_day_availability(monday, uuid4(), party_size=2)

    async def test_bookings_reduce_counts(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        await lifecycle.create(make_request(time="19:00", party_size=8))

        day = await availability.get_day_availability(monday, restaurant.id, party_size=8)
        by_time = {s.time: s for s in day.slots}

        assert not by_time["19:00"].available
        assert by_time["19:00"].available_tables == 0
        assert by_time["12:00"].available

    async def test_capacity_monotonicity(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        """A bigger party never sees more free tables than a smaller one."""
        await lifecycle.create(make_request(time="19:00", party_size=4))
        await lifecycle.create(make_request(time="12:00", party_size=6))

        previous = None
        for party_size in range(1, 9):
            day = await availability.get_day_availability(monday, restaurant.id, party_size)
            counts = {s.time: s.available_tables for s in day.slots}
            if previous is not None:
                for time, count in counts.items():
                    if time in previous:
                        assert count <= previous[time]
            previous = counts

    async def test_reads_are_idempotent(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        await lifecycle.create(make_request(time="21:00", party_size=3))

        first = await availability.get_day_availability(monday, restaurant.id, 3)
        second = await availability.get_day_availability(monday, restaurant.id, 3)

        assert first == second

    async def test_configured_hours_and_default_buffer(self, settings, tables, monday):
        restaurant_id = tables[0].restaurant_id
        restaurant = RestaurantRead(
            id=restaurant_id,
            name="Late Night",
            opening_hours={"monday": {"evening": {"open": "18:00", "close": "23:00"}}},
            buffer_minutes=None,
        )
        store = InMemoryReservationStore(restaurants=[restaurant], tables=tables)
        service = AvailabilityService(store, settings=settings)

        day = await service.get_day_availability(monday, restaurant_id, party_size=2)

        # 90 minute sittings spaced by the default 30 minute buffer
        assert [s.time for s in day.slots] == ["18:00", "20:00"]


class TestCheckSlotAvailability:
    """Tests for single-slot checks."""

    async def test_free_slot(self, availability, restaurant, monday):
        assert await availability.check_slot_availability(monday, "19:00", 4, restaurant.id)

    async def test_no_table_big_enough(self, availability, restaurant, monday):
        assert not await availability.check_slot_availability(monday, "19:00", 10, restaurant.id)

    async def test_full_then_free_after_sitting(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        await lifecycle.create(make_request(time="19:00", party_size=6))
        await lifecycle.create(make_request(time="19:00", party_size=6))

        assert not await availability.check_slot_availability(monday, "19:00", 6, restaurant.id)
        assert not await availability.check_slot_availability(monday, "20:30", 6, restaurant.id)
        # two hour sittings end at 21:00
        assert await availability.check_slot_availability(monday, "21:00", 6, restaurant.id)

    async def test_exclude_own_reservation(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        own = await lifecycle.create(make_request(time="19:00", party_size=8))

        assert not await availability.check_slot_availability(monday, "19:30", 8, restaurant.id)
        assert await availability.check_slot_availability(
            monday, "19:30", 8, restaurant.id, exclude_reservation_id=own.id
        )

    async def test_explicit_duration(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        await lifecycle.create(make_request(time="21:00", party_size=8))

        assert await availability.check_slot_availability(
            monday, "19:00", 8, restaurant.id, duration_minutes=120
        )
        assert not await availability.check_slot_availability(
            monday, "19:00", 8, restaurant.id, duration_minutes=150
        )


class TestFindTable:
    async def test_preferred_table_kept_when_free(
        self, availability, restaurant, monday, table_by_number
    ):
        table = await availability.find_table(
            monday, "19:00", 2, restaurant.id, preferred_table_id=table_by_number[4].id
        )
        assert table.number == 4

    async def test_preferred_table_too_small_falls_back(
        self, availability, restaurant, monday, table_by_number
    ):
        table = await availability.find_table(
            monday, "19:00", 5, restaurant.id, preferred_table_id=table_by_number[1].id
        )
        assert table.number == 5


class TestListAvailableTables:
    async def test_best_fit_first(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        await lifecycle.create(make_request(time="19:00", party_size=2))

        tables = await availability.list_available_tables(monday, "19:00", 2, restaurant.id)

        assert [t.number for t in tables] == [2, 3, 4, 5, 6]


class TestFindConflicts:
    async def test_overlapping_reservations_on_any_table(
        self, availability, lifecycle, restaurant, monday, make_request
    ):
        early = await lifecycle.create(make_request(time="12:00", party_size=2))
        late = await lifecycle.create(make_request(time="19:00", party_size=4))
        cancelled = await lifecycle.create(make_request(time="19:30", party_size=2))
        await lifecycle.cancel(cancelled.id)

        conflicts = await availability.find_conflicts(monday, "20:00", 60, restaurant.id)

        assert [r.id for r in conflicts] == [late.id]
        assert early.id not in {r.id for r in conflicts}

        none_left = await availability.find_conflicts(
            monday, "20:00", 60, restaurant.id, exclude_reservation_id=late.id
        )
        assert none_left == []


class TestGetActiveRestaurant:
    async def test_returns_active(self, availability, restaurant):
        assert (await availability.get_active_restaurant()).id == restaurant.id

    async def test_none_active(self, settings, restaurant):
        store = InMemoryReservationStore(
            restaurants=[restaurant.model_copy(update={"is_active": False})]
        )
        with pytest.raises(NotFound):
            await AvailabilityService(store, settings=settings).get_active_restaurant()
