"""Tests for converting legacy frequency records."""

from datetime import date, time

import pytest

from duewise.models.frequency import (
    FrequencyType,
    Month,
    MonthlyFrequency,
    NoFrequency,
    OneTimeFrequency,
    Weekday,
)
from duewise.recurrence.errors import InvalidFrequencyConfig
from duewise.recurrence.legacy_config import (
    LegacyConfigError,
    parse_legacy_frequency_config,
    resolve_legacy_frequency,
)


class TestResolveLegacyFrequency:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Monthly", FrequencyType.MONTHLY),
            ("OneTime", FrequencyType.ONE_TIME),
            ("one-time", FrequencyType.ONE_TIME),
            ("QUARTERLY", FrequencyType.QUARTERLY),
            ("None", FrequencyType.NONE),
            (None, FrequencyType.NONE),
        ],
    )
    def test_names(self, name, expected):
        assert resolve_legacy_frequency(name) == expected

    def test_unknown_name(self):
        with pytest.raises(InvalidFrequencyConfig) as exc_info:
            resolve_legacy_frequency("Fortnightly")
        assert exc_info.value.field == "type"


class TestParseLegacyFrequencyConfig:
    def test_monthly_with_12_hour_time(self):
        freq = parse_legacy_frequency_config("Monthly", {"monthlyDay": 20, "monthlyTime": "10:00 AM"})
        assert isinstance(freq, MonthlyFrequency)
        assert freq.day_of_month == 20
        assert freq.time_of_day == time(10, 0)

    def test_weekly(self):
        freq = parse_legacy_frequency_config(
            "Weekly", {"weeklyDays": ["Friday", "Monday"], "weeklyTime": "17:30"}
        )
        assert freq.days_of_week == [Weekday.MONDAY, Weekday.FRIDAY]
        assert freq.time_of_day == time(17, 30)

    def test_quarterly(self):
        freq = parse_legacy_frequency_config(
            "Quarterly",
            {"quarterlyMonths": ["January", "April", "July", "October"], "quarterlyDay": 15, "quarterlyTime": "09:00"},
        )
        assert freq.type == "quarterly"
        assert len(freq.months) == 4

    def test_yearly_accepts_scalar_month(self):
        freq = parse_legacy_frequency_config(
            "Yearly", {"yearlyMonth": "March", "yearlyDate": 31, "yearlyTime": "11:00 PM"}
        )
        assert freq.months == [Month.MARCH]
        assert freq.day_of_month == 31
        assert freq.time_of_day == time(23, 0)

    def test_hourly(self):
        freq = parse_legacy_frequency_config("Hourly", {"hourlyInterval": 3})
        assert freq.interval_hours == 3

    def test_irrelevant_keys_are_ignored(self):
        freq = parse_legacy_frequency_config(
            "Daily", {"dailyTime": "08:00", "monthlyDay": 9, "weeklyDays": ["Monday"]}
        )
        assert freq.model_dump() == {"type": "daily", "time_of_day": time(8, 0)}

    def test_none_and_one_time(self):
        assert isinstance(parse_legacy_frequency_config("None", {"monthlyDay": 4}), NoFrequency)
        freq = parse_legacy_frequency_config("OneTime", {"dueDate": "2024-07-31"})
        assert isinstance(freq, OneTimeFrequency)
        assert freq.due_date == date(2024, 7, 31)
        assert parse_legacy_frequency_config("OneTime", None).due_date is None

    def test_missing_keys_are_listed(self):
        with pytest.raises(LegacyConfigError) as exc_info:
            parse_legacy_frequency_config("Monthly", {"monthlyTime": "09:00"})
        assert exc_info.value.missing == ["monthlyDay"]
        assert exc_info.value.field == "monthlyDay"

    def test_empty_list_counts_as_missing(self):
        with pytest.raises(LegacyConfigError) as exc_info:
            parse_legacy_frequency_config("Weekly", {"weeklyDays": [], "weeklyTime": "09:00"})
        assert exc_info.value.missing == ["weeklyDays"]

    def test_invalid_value_reports_legacy_field(self):
        with pytest.raises(InvalidFrequencyConfig) as exc_info:
            parse_legacy_frequency_config("Monthly", {"monthlyDay": 32, "monthlyTime": "09:00"})
        assert exc_info.value.field == "monthlyDay"
        message = str(exc_info.value)
        assert message.startswith("monthlyDay: ")
        assert "day_of_month" not in message
        assert message == f"monthlyDay: {exc_info.value.reason}"

    def test_invalid_time_reports_legacy_field(self):
        with pytest.raises(InvalidFrequencyConfig) as exc_info:
            parse_legacy_frequency_config("Daily", {"dailyTime": "half past nine"})
        assert exc_info.value.field == "dailyTime"
