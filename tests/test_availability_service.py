"""
Tests for slot generation and weekly availability.
"""
import uuid
from datetime import date

import pytest

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.models.appointment import AppointmentStatus
from marketplace.services.availability.availability_service import AvailabilityService
from marketplace.utils.time_utils import DAY_NAMES, to_hhmm

from conftest import MONDAY, make_appointment


class TestGenerateSlotStarts:

    def test_nine_to_five_hour_long_service(self):
        starts = AvailabilityService.generate_slot_starts("09:00", "17:00", 60, 15)
        slots = [to_hhmm(s) for s in starts]
        assert len(slots) == 29
        assert slots[0] == "09:00"
        assert slots[1] == "09:15"
        assert slots[-1] == "16:00"

    def test_duration_longer_than_window(self):
        assert AvailabilityService.generate_slot_starts("09:00", "10:00", 90, 15) == []

    def test_window_crossing_midnight(self):
        starts = AvailabilityService.generate_slot_starts("22:00", "02:00", 60, 15)
        slots = [to_hhmm(s) for s in starts]
        assert slots[0] == "22:00"
        assert slots[-1] == "01:00"
        assert len(slots) == 13


class TestGetAvailableSlots:

    @pytest.mark.asyncio
    async def test_returns_slots_and_timezone(self, db, professional):
        result = await AvailabilityService.get_available_slots(db, professional.id, MONDAY, 60)
        assert len(result["available_slots"]) == 29
        assert result["available_slots"][-1] == "16:00"
        assert result["professional_timezone"] == "America/New_York"

    @pytest.mark.asyncio
    async def test_first_calendar_day(self, db, professional):
        # 0001-01-01 is a Monday
        result = await AvailabilityService.get_available_slots(db, professional.id, "0001-01-01", 60)
        assert len(result["available_slots"]) == 29

    @pytest.mark.asyncio
    async def test_unavailable_day_is_empty_not_error(self, db, professional):
        result = await AvailabilityService.get_available_slots(db, professional.id, "2024-01-02", 60)
        assert result["available_slots"] == []

    @pytest.mark.asyncio
    async def test_professional_without_schedule(self, db, other_professional):
        result = await AvailabilityService.get_available_slots(db, other_professional.id, MONDAY, 30)
        assert result == {"available_slots": [], "professional_timezone": "UTC"}

    @pytest.mark.asyncio
    async def test_unknown_professional(self, db):
        with pytest.raises(NotFoundError):
            await AvailabilityService.get_available_slots(db, uuid.uuid4(), MONDAY, 60)

    @pytest.mark.asyncio
    async def test_customer_id_is_not_a_professional(self, db, customer):
        with pytest.raises(NotFoundError):
            await AvailabilityService.get_available_slots(db, customer.id, MONDAY, 60)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_date", ["2024-1-1", "not-a-date", "2024-02-31"])
    async def test_invalid_date(self, db, professional, bad_date):
        with pytest.raises(ValidationError) as exc_info:
            await AvailabilityService.get_available_slots(db, professional.id, bad_date, 60)
        assert exc_info.value.field == "date"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_duration", [0, -30])
    async def test_non_positive_duration(self, db, professional, bad_duration):
        with pytest.raises(ValidationError) as exc_info:
            await AvailabilityService.get_available_slots(db, professional.id, MONDAY, bad_duration)
        assert exc_info.value.field == "serviceDuration"

    @pytest.mark.asyncio
    async def test_active_booking_removes_overlapping_starts(self, db, customer, professional):
        make_appointment(db, customer, professional, start_time="10:00", total_duration=60)

        slots = (await AvailabilityService.get_available_slots(db, professional.id, MONDAY, 60))["available_slots"]

        assert "09:00" in slots
        assert "11:00" in slots
        for blocked in ("09:15", "09:45", "10:00", "10:45"):
            assert blocked not in slots
        assert len(slots) == 22

    @pytest.mark.asyncio
    async def test_finished_bookings_do_not_block(self, db, customer, professional):
        make_appointment(
            db, customer, professional,
            status=AppointmentStatus.CANCELLED_BY_CUSTOMER,
            start_time="10:00"
        )
        result = await AvailabilityService.get_available_slots(db, professional.id, MONDAY, 60)
        assert len(result["available_slots"]) == 29

    @pytest.mark.asyncio
    async def test_booking_from_previous_day_running_past_midnight(self, db, customer, professional):
        make_appointment(
            db, customer, professional,
            appointment_date=date(2023, 12, 31),
            start_time="23:00",
            total_duration=660,
        )
        slots = (await AvailabilityService.get_available_slots(db, professional.id, MONDAY, 60))["available_slots"]
        # busy until 10:00 on Monday
        assert slots[0] == "10:00"

    @pytest.mark.asyncio
    async def test_can_skip_booking_filter(self, db, customer, professional):
        make_appointment(db, customer, professional, start_time="10:00")
        result = await AvailabilityService.get_available_slots(
            db, professional.id, MONDAY, 60, exclude_booked=False
        )
        assert len(result["available_slots"]) == 29


class TestReplaceWeeklyWindows:

    def _week(self, **overrides):
        week = [
            {"day": day, "is_available": False, "start_time": None, "end_time": None}
            for day in DAY_NAMES
        ]
        for entry in week:
            if entry["day"] in overrides:
                entry.update(overrides[entry["day"]])
        return week

    def test_replaces_existing_schedule(self, db, professional):
        week = self._week(Tuesday={"is_available": True, "start_time": "13:00", "end_time": "21:00"})

        windows = AvailabilityService.replace_weekly_windows(db, professional, week, timezone_name="Europe/Berlin")

        assert len(windows) == 7
        by_day = {w.day: w for w in windows}
        assert not by_day["Monday"].is_available
        assert by_day["Tuesday"].is_available
        assert by_day["Tuesday"].start_time == "13:00"
        assert professional.timezone == "Europe/Berlin"

    def test_requires_every_day_exactly_once(self, db, professional):
        week = self._week()[:6]
        with pytest.raises(ValidationError):
            AvailabilityService.replace_weekly_windows(db, professional, week)

        week = self._week() + [{"day": "Monday", "is_available": False}]
        with pytest.raises(ValidationError):
            AvailabilityService.replace_weekly_windows(db, professional, week)

    def test_available_day_needs_valid_times(self, db, professional):
        week = self._week(Friday={"is_available": True, "start_time": "9am", "end_time": "17:00"})
        with pytest.raises(ValidationError):
            AvailabilityService.replace_weekly_windows(db, professional, week)

    def test_unknown_timezone(self, db, professional):
        with pytest.raises(ValidationError) as exc_info:
            AvailabilityService.replace_weekly_windows(db, professional, self._week(), timezone_name="Nowhere/Land")
        assert exc_info.value.field == "timezone"

    def test_customers_have_no_schedule(self, db, customer):
        with pytest.raises(ValidationError):
            AvailabilityService.replace_weekly_windows(db, customer, self._week())
