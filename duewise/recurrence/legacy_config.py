"""Convert the CRM's legacy frequency records into typed frequency definitions.

Stored timelines carry a frequency name ("Monthly", "OneTime", ...) plus one
loosely-typed config record whose relevant keys depend on the frequency, e.g.
`{"monthlyDay": 20, "monthlyTime": "10:00 AM"}`. This module is the single place
that reads that shape. Conversion is deterministic: the same record always gives
the same definition (or the same structured error).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from duewise.models.frequency import FrequencyDefinition, FrequencyType, parse_frequency
from duewise.recurrence.errors import InvalidFrequencyConfig


class LegacyConfigError(InvalidFrequencyConfig):
    """Legacy record is missing keys required by its frequency."""

    def __init__(self, message: str, *, missing: Optional[List[str]] = None):
        super().__init__(message, field=(missing or [None])[0])
        self.missing = missing or []


_LEGACY_NAMES: Dict[str, FrequencyType] = {
    "none": FrequencyType.NONE,
    "onetime": FrequencyType.ONE_TIME,
    "once": FrequencyType.ONE_TIME,
    "hourly": FrequencyType.HOURLY,
    "daily": FrequencyType.DAILY,
    "weekly": FrequencyType.WEEKLY,
    "monthly": FrequencyType.MONTHLY,
    "quarterly": FrequencyType.QUARTERLY,
    "yearly": FrequencyType.YEARLY,
}

# Required legacy keys per frequency, and how each maps onto the typed field.
_FIELD_MAP: Dict[FrequencyType, List[Tuple[str, str]]] = {
    FrequencyType.HOURLY: [("hourlyInterval", "interval_hours")],
    FrequencyType.DAILY: [("dailyTime", "time_of_day")],
    FrequencyType.WEEKLY: [("weeklyDays", "days_of_week"), ("weeklyTime", "time_of_day")],
    FrequencyType.MONTHLY: [("monthlyDay", "day_of_month"), ("monthlyTime", "time_of_day")],
    FrequencyType.QUARTERLY: [
        ("quarterlyMonths", "months"),
        ("quarterlyDay", "day_of_month"),
        ("quarterlyTime", "time_of_day"),
    ],
    FrequencyType.YEARLY: [
        ("yearlyMonth", "months"),
        ("yearlyDate", "day_of_month"),
        ("yearlyTime", "time_of_day"),
    ],
}


def _normalize_name(value: str) -> str:
    return "".join(ch for ch in (value or "").strip().lower() if ch.isalnum())


def resolve_legacy_frequency(name: Optional[str]) -> FrequencyType:
    """Map a legacy frequency name ("OneTime", "one-time", "Monthly") to FrequencyType."""
    if not name:
        return FrequencyType.NONE
    normalized = _normalize_name(name)
    if normalized not in _LEGACY_NAMES:
        raise InvalidFrequencyConfig(f"Invalid frequency type: {name}", field="type")
    return _LEGACY_NAMES[normalized]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple)) and len(value) == 0:
        return True
    return False


def parse_legacy_frequency_config(
    frequency: Optional[str],
    config: Optional[Dict[str, Any]],
) -> FrequencyDefinition:
    """Build a typed FrequencyDefinition from a legacy (frequency, frequencyConfig) pair.

    Keys that do not belong to the frequency are ignored, which is exactly the
    class of "wrong field for this frequency" data the typed model removes.

    Raises:
        LegacyConfigError: required keys for the frequency are absent.
        InvalidFrequencyConfig: keys are present but their values are invalid.
    """
    freq_type = resolve_legacy_frequency(frequency)
    config = config or {}

    if freq_type == FrequencyType.NONE:
        return parse_frequency({"type": freq_type.value})
    if freq_type == FrequencyType.ONE_TIME:
        payload: Dict[str, Any] = {"type": freq_type.value}
        if not _is_blank(config.get("dueDate")):
            payload["due_date"] = config["dueDate"]
        return parse_frequency(payload)

    mapping = _FIELD_MAP[freq_type]
    missing = [legacy for legacy, _ in mapping if _is_blank(config.get(legacy))]
    if missing:
        raise LegacyConfigError(
            f"{', '.join(missing)} required for {frequency} frequency",
            missing=missing,
        )

    payload = {"type": freq_type.value}
    for legacy, field in mapping:
        payload[field] = config[legacy]
    try:
        return parse_frequency(payload)
    except InvalidFrequencyConfig as e:
        typed_field = (e.field or "").split(".")[0]
        legacy_field = next((legacy for legacy, field in mapping if field == typed_field), e.field)
        raise InvalidFrequencyConfig(f"{legacy_field}: {e.reason}", field=legacy_field, reason=e.reason) from e
