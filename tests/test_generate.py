"""Tests for occurrence generation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from duewise.models.frequency import parse_frequency
from duewise.recurrence.errors import DuplicatePeriod, InvalidFrequencyConfig, InvalidRange
from duewise.recurrence.generate import (
    ONE_TIME_PERIOD_KEY,
    generate_occurrences,
    next_occurrence,
    normalize_range,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestScenarios:
    def test_weekly_mon_wed_fri_over_two_weeks(self):
        freq = {"type": "weekly", "days_of_week": ["Mon", "Wed", "Fri"], "time_of_day": "09:00"}
        occs = generate_occurrences(freq, date(2024, 1, 1), date(2024, 1, 14))

        assert [o.due_at.day for o in occs] == [1, 3, 5, 8, 10, 12]
        assert all(o.due_at.hour == 9 for o in occs)
        assert [o.period_key for o in occs] == [
            "2024-W01-1",
            "2024-W01-3",
            "2024-W01-5",
            "2024-W02-1",
            "2024-W02-3",
            "2024-W02-5",
        ]

    def test_monthly_day_31_clamps(self):
        freq = {"type": "monthly", "day_of_month": 31}
        occs = generate_occurrences(freq, date(2024, 1, 1), date(2024, 4, 30))

        assert [o.period_key for o in occs] == ["2024-01", "2024-02", "2024-03", "2024-04"]
        assert [o.due_at.day for o in occs] == [31, 29, 31, 30]

    def test_quarterly_one_month_per_quarter(self):
        freq = {"type": "quarterly", "months": ["Jan", "Apr", "Jul", "Oct"], "day_of_month": 15}
        occs = generate_occurrences(freq, date(2024, 1, 1), date(2024, 12, 31))

        assert [o.period_key for o in occs] == ["2024-Q1", "2024-Q2", "2024-Q3", "2024-Q4"]
        assert [o.due_at.date() for o in occs] == [
            date(2024, 1, 15),
            date(2024, 4, 15),
            date(2024, 7, 15),
            date(2024, 10, 15),
        ]


class TestVariants:
    def test_hourly_steps_from_truncated_start(self):
        freq = {"type": "hourly", "interval_hours": 4}
        occs = generate_occurrences(freq, utc(2024, 1, 1, 0, 0), utc(2024, 1, 1, 23, 59))
        assert [o.due_at.hour for o in occs] == [0, 4, 8, 12, 16, 20]
        assert occs[0].period_key == "2024-01-01-00"
        assert occs[-1].period_key == "2024-01-01-20"

    def test_hourly_mid_hour_start_skips_the_anchor(self):
        freq = {"type": "hourly", "interval_hours": 1}
        occs = generate_occurrences(freq, utc(2024, 1, 1, 9, 30), utc(2024, 1, 1, 12, 0))
        assert [o.due_at for o in occs] == [utc(2024, 1, 1, 10), utc(2024, 1, 1, 11), utc(2024, 1, 1, 12)]

    def test_daily_one_per_day_inclusive(self):
        freq = {"type": "daily", "time_of_day": "18:00"}
        occs = generate_occurrences(freq, date(2024, 2, 27), date(2024, 3, 1))
        assert [o.period_key for o in occs] == ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"]
        assert occs[0].due_at == utc(2024, 2, 27, 18)

    def test_daily_respects_datetime_bounds(self):
        freq = {"type": "daily", "time_of_day": "09:00"}
        occs = generate_occurrences(freq, utc(2024, 1, 1, 10), utc(2024, 1, 3, 8))
        assert [o.period_key for o in occs] == ["2024-01-02"]

    def test_monthly_drops_months_whose_day_is_outside_the_range(self):
        freq = {"type": "monthly", "day_of_month": 5}
        occs = generate_occurrences(freq, date(2024, 1, 10), date(2024, 3, 4))
        assert [o.period_key for o in occs] == ["2024-02"]

    def test_monthly_clamps_in_non_leap_february(self):
        freq = {"type": "monthly", "day_of_month": 30}
        occs = generate_occurrences(freq, date(2023, 2, 1), date(2023, 2, 28))
        assert occs[0].due_at.date() == date(2023, 2, 28)

    def test_yearly_keys_by_month_name(self):
        freq = {"type": "yearly", "months": ["April"], "day_of_month": 1, "time_of_day": "10:00 AM"}
        occs = generate_occurrences(freq, date(2024, 1, 1), date(2026, 12, 31))
        assert [o.period_key for o in occs] == ["2024-April", "2025-April", "2026-April"]
        assert occs[0].due_at == utc(2024, 4, 1, 10)

    def test_yearly_february_31_clamps(self):
        freq = {"type": "yearly", "months": ["Feb"], "day_of_month": 31}
        occs = generate_occurrences(freq, date(2023, 1, 1), date(2024, 12, 31))
        assert [o.due_at.date() for o in occs] == [date(2023, 2, 28), date(2024, 2, 29)]

    def test_quarterly_spanning_years_is_chronological(self):
        freq = {"type": "quarterly", "months": ["Jan", "Apr", "Jul", "Oct"], "day_of_month": 1}
        occs = generate_occurrences(freq, date(2024, 4, 1), date(2025, 3, 31))
        assert [o.period_key for o in occs] == ["2024-Q2", "2024-Q3", "2024-Q4", "2025-Q1"]
        assert occs == sorted(occs, key=lambda o: o.due_at)

    def test_quarterly_two_months_in_one_quarter_is_a_duplicate(self):
        freq = {"type": "quarterly", "months": ["Jan", "Feb"], "day_of_month": 1}
        with pytest.raises(DuplicatePeriod) as exc_info:
            generate_occurrences(freq, date(2024, 1, 1), date(2024, 12, 31))
        assert exc_info.value.period_key == "2024-Q1"

    def test_none_yields_nothing(self):
        assert generate_occurrences({"type": "none"}, date(2024, 1, 1), date(2024, 12, 31)) == []

    def test_one_time_uses_due_date(self):
        occs = generate_occurrences({"type": "one_time", "due_date": "2024-06-30"}, date(2024, 1, 1), date(2024, 3, 31))
        assert len(occs) == 1
        assert occs[0].period_key == ONE_TIME_PERIOD_KEY
        assert occs[0].due_at == utc(2024, 6, 30)

    def test_one_time_defaults_to_range_start_and_ignores_end(self):
        occs = generate_occurrences({"type": "one_time"}, date(2024, 5, 1))
        assert [(o.period_key, o.due_at) for o in occs] == [(ONE_TIME_PERIOD_KEY, utc(2024, 5, 1))]

    def test_accepts_typed_definition(self):
        freq = parse_frequency({"type": "daily"})
        assert len(generate_occurrences(freq, date(2024, 1, 1), date(2024, 1, 31))) == 31


class TestRanges:
    def test_missing_end_raises(self):
        with pytest.raises(InvalidRange):
            generate_occurrences({"type": "daily"}, date(2024, 1, 1), None)

    def test_missing_start_raises(self):
        with pytest.raises(InvalidRange):
            generate_occurrences({"type": "daily"}, None, date(2024, 1, 1))

    def test_inverted_range_raises(self):
        with pytest.raises(InvalidRange):
            generate_occurrences({"type": "monthly", "day_of_month": 1}, date(2024, 2, 1), date(2024, 1, 1))

    def test_one_time_without_any_date_raises(self):
        with pytest.raises(InvalidRange):
            generate_occurrences({"type": "one_time"}, None)

    def test_single_day_range(self):
        start, end = normalize_range(date(2024, 1, 1), date(2024, 1, 1))
        assert start == utc(2024, 1, 1)
        assert end.date() == date(2024, 1, 1)
        assert start < end

    def test_invalid_configuration_is_rejected_before_generation(self):
        with pytest.raises(InvalidFrequencyConfig):
            generate_occurrences({"type": "monthly", "day_of_month": 40}, date(2024, 1, 1), date(2024, 2, 1))


class TestGeneratorProperties:
    FREQUENCIES = [
        {"type": "hourly", "interval_hours": 5},
        {"type": "daily", "time_of_day": "23:30"},
        {"type": "weekly", "days_of_week": ["Tue", "Sat", "Sun"], "time_of_day": "06:00"},
        {"type": "monthly", "day_of_month": 31, "time_of_day": "12:00"},
        {"type": "quarterly", "months": ["Mar", "Jun", "Sep", "Dec"], "day_of_month": 31},
        {"type": "yearly", "months": ["Feb", "Aug"], "day_of_month": 29},
    ]

    @pytest.mark.parametrize("freq", FREQUENCIES)
    @pytest.mark.parametrize(
        "range_start, range_end",
        [
            (date(2024, 1, 1), date(2024, 12, 31)),
            (date(2023, 2, 15), date(2023, 3, 15)),
            (datetime(2024, 4, 1, 7, 45, tzinfo=timezone.utc), datetime(2025, 3, 31, 18, 0, tzinfo=timezone.utc)),
        ],
    )
    def test_unique_keys_and_in_range(self, freq, range_start, range_end):
        occs = generate_occurrences(freq, range_start, range_end)
        start, end = normalize_range(range_start, range_end)

        keys = [o.period_key for o in occs]
        assert len(keys) == len(set(keys))
        assert all(start <= o.due_at <= end for o in occs)
        assert [o.due_at for o in occs] == sorted(o.due_at for o in occs)

    @pytest.mark.parametrize("freq", FREQUENCIES)
    def test_generation_is_deterministic(self, freq):
        first = generate_occurrences(freq, date(2024, 1, 1), date(2024, 6, 30))
        second = generate_occurrences(freq, date(2024, 1, 1), date(2024, 6, 30))
        assert first == second


class TestNextOccurrence:
    def test_first_occurrence_strictly_after(self):
        freq = {"type": "monthly", "day_of_month": 15, "time_of_day": "09:00"}
        occ = next_occurrence(freq, utc(2024, 1, 15, 9, 0))
        assert occ.period_key == "2024-02"
        assert occ.due_at == utc(2024, 2, 15, 9)

    def test_same_day_later_time(self):
        freq = {"type": "daily", "time_of_day": "17:00"}
        occ = next_occurrence(freq, utc(2024, 1, 1, 8, 0))
        assert occ.due_at == utc(2024, 1, 1, 17)

    def test_none_when_beyond_until(self):
        freq = {"type": "yearly", "months": ["Dec"], "day_of_month": 25}
        assert next_occurrence(freq, utc(2024, 1, 1), until=date(2024, 11, 30)) is None

    def test_until_before_after_returns_none(self):
        assert next_occurrence({"type": "daily"}, utc(2024, 1, 10), until=date(2024, 1, 1)) is None

    def test_one_time(self):
        freq = {"type": "one_time", "due_date": "2024-03-01"}
        assert next_occurrence(freq, utc(2024, 1, 1)).period_key == ONE_TIME_PERIOD_KEY
        assert next_occurrence(freq, utc(2024, 3, 2)) is None

    def test_none_frequency(self):
        assert next_occurrence({"type": "none"}, utc(2024, 1, 1)) is None
