"""Tests for the booking-window policy."""

from datetime import date, timedelta

import pytest

from barbershop.errors import Rejection, RejectionKind
from barbershop.services.slots import BookingConfig, check_booking_window, parse_date, validate_booking_date

from conftest import TODAY


class TestParseDate:

    def test_valid(self):
        assert parse_date("2025-11-19") == date(2025, 11, 19)

    def test_date_passthrough(self):
        assert parse_date(date(2025, 11, 19)) == date(2025, 11, 19)

    @pytest.mark.parametrize("value", ["19-11-2025", "2025/11/19", "2025-11-19T10:00", "", "tomorrow"])
    def test_bad_format(self, value):
        result = parse_date(value)
        assert isinstance(result, Rejection)
        assert result.kind == RejectionKind.INVALID_DATE_FORMAT

    def test_impossible_date(self):
        result = parse_date("2025-02-30")
        assert isinstance(result, Rejection)
        assert result.kind == RejectionKind.INVALID_DATE_FORMAT


class TestBookingWindow:

    def test_yesterday_is_past(self, config):
        result = check_booking_window(TODAY - timedelta(days=1), TODAY, config)
        assert result.kind == RejectionKind.PAST_DATE

    def test_today_accepted(self, config):
        assert check_booking_window(TODAY, TODAY, config) is None

    def test_last_day_of_window_accepted(self, config):
        assert check_booking_window(TODAY + timedelta(days=90), TODAY, config) is None

    def test_day_after_window_rejected(self, config):
        result = check_booking_window(TODAY + timedelta(days=91), TODAY, config)
        assert result.kind == RejectionKind.BEYOND_BOOKING_WINDOW

    def test_format_checked_before_window(self, config):
        result = validate_booking_date("1999-13-01", TODAY, config)
        assert result.kind == RejectionKind.INVALID_DATE_FORMAT

    def test_returns_parsed_date(self, config):
        assert validate_booking_date("2025-11-20", TODAY, config) == date(2025, 11, 20)


class TestBookingConfig:

    def test_rejects_wrong_weekday_count(self):
        with pytest.raises(ValueError):
            BookingConfig(weekday_capacity=(2, 2, 2))

    def test_rejects_unsorted_slots(self):
        with pytest.raises(ValueError):
            BookingConfig(slot_times=("10:40", "10:00"))
