"""
Tests for Pydantic schemas.

These tests verify schema validation catches real-world input errors:
- Malformed times
- Party sizes and durations out of range
- Bad email addresses
- Legacy opening-hours shapes
"""
from __future__ import annotations

import datetime as dt
from uuid import uuid4

import pytest
from pydantic import ValidationError

from tablebook.models import Reservation
from tablebook.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationStatus,
    ReservationUpdate,
)
from tablebook.schemas.restaurant import DaySchedule

MONDAY = dt.date(2026, 11, 2)


class TestReservationCreate:
    """Tests for booking request validation."""

    def test_valid_request(self):
        data = ReservationCreate(date=MONDAY, time="19:30", party_size=4)
        assert data.duration_minutes is None

    @pytest.mark.parametrize("time", ["7:30", "24:00", "19:60", "19h30", ""])
    def test_time_must_be_hh_mm(self, time):
        with pytest.raises(ValidationError) as exc_info:
            ReservationCreate(date=MONDAY, time=time, party_size=2)
        assert any(e["loc"] == ("time",) for e in exc_info.value.errors())

    @pytest.mark.parametrize("party_size", [0, -1, 51])
    def test_party_size_bounds(self, party_size):
        with pytest.raises(ValidationError):
            ReservationCreate(date=MONDAY, time="19:00", party_size=party_size)

    def test_party_size_upper_bound_inclusive(self):
        assert ReservationCreate(date=MONDAY, time="19:00", party_size=50).party_size == 50

    @pytest.mark.parametrize("duration", [29, 241, 0])
    def test_duration_out_of_range(self, duration):
        with pytest.raises(ValidationError):
            ReservationCreate(date=MONDAY, time="19:00", party_size=2, duration_minutes=duration)

    @pytest.mark.parametrize("duration", [30, 240])
    def test_duration_bounds_inclusive(self, duration):
        data = ReservationCreate(date=MONDAY, time="19:00", party_size=2, duration_minutes=duration)
        assert data.duration_minutes == duration

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            ReservationCreate(date=MONDAY, time="19:00", party_size=2, client_email="not-an-email")

    def test_empty_client_name(self):
        with pytest.raises(ValidationError):
            ReservationCreate(date=MONDAY, time="19:00", party_size=2, client_name="")


class TestReservationUpdate:
    def test_touches_slot(self):
        assert ReservationUpdate(time="21:00").touches_slot
        assert ReservationUpdate(party_size=3).touches_slot
        assert ReservationUpdate(date=MONDAY).touches_slot
        assert ReservationUpdate(duration_minutes=60).touches_slot

    def test_contact_changes_do_not_touch_slot(self):
        assert not ReservationUpdate(notes="Vegetarian").touches_slot
        assert not ReservationUpdate().touches_slot

    def test_explicit_none_is_ignored(self):
        assert not ReservationUpdate(time=None).touches_slot

    def test_validates_like_create(self):
        with pytest.raises(ValidationError):
            ReservationUpdate(time="25:00")
        with pytest.raises(ValidationError):
            ReservationUpdate(duration_minutes=10)


class TestReservationRead:
    def test_from_orm_object(self):
        row = Reservation(
            id=uuid4(),
            restaurant_id=uuid4(),
            table_id=uuid4(),
            date=MONDAY,
            time="19:00",
            duration_minutes=90,
            party_size=2,
            status="CONFIRMED",
            payment_status="NONE",
            requires_payment=False,
            deposit_amount=0,
        )
        read = ReservationRead.model_validate(row)
        assert read.status == ReservationStatus.CONFIRMED
        assert read.date == MONDAY


class TestDaySchedule:
    def test_current_shape(self):
        schedule = DaySchedule.model_validate(
            {"lunch": {"open": "12:00", "close": "14:30"}, "evening": None}
        )
        assert schedule.lunch.close == "14:30"
        assert schedule.evening is None
        assert not schedule.closed

    def test_legacy_shape_folds_into_lunch(self):
        schedule = DaySchedule.model_validate(
            {"open": "12:00", "close": "14:30", "evening": {"open": "19:00", "close": "22:30"}}
        )
        assert schedule.lunch.open == "12:00"
        assert schedule.evening.open == "19:00"

    def test_closed_flag(self):
        assert DaySchedule.model_validate({"closed": True}).closed

    def test_bad_window_time(self):
        with pytest.raises(ValidationError):
            DaySchedule.model_validate({"lunch": {"open": "noon", "close": "14:30"}})
