"""Financial-year resolution.

The CRM's accounting year runs April 1 to March 31 (start month configurable via
FINANCIAL_YEAR_START_MONTH). It is the default generation range when a schedule
is created without explicit dates; callers resolve it here and pass it in.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from pydantic import BaseModel

from duewise import config
from duewise.recurrence.calendar_utils import DateLike, add_months, as_utc

_LABEL_RE = re.compile(r"^\s*(\d{4})\s*-\s*(\d{4})\s*$")


class FinancialYear(BaseModel):
    start: date
    end: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_range(self) -> Tuple[date, date]:
        return (self.start, self.end)


def _to_date(today: DateLike) -> date:
    if isinstance(today, datetime):
        return as_utc(today).date()
    return today


def _build(start_year: int, start_month: int) -> FinancialYear:
    start = date(start_year, start_month, 1)
    end = add_months(start, 12, 1) - timedelta(days=1)
    return FinancialYear(start=start, end=end, label=f"{start.year}-{end.year}")


def resolve_financial_year(today: DateLike, start_month: Optional[int] = None) -> FinancialYear:
    """Financial year containing `today`.

    Days before the start month belong to the year that began in the previous
    calendar year (Feb 2025 -> 2024-2025).
    """
    start_month = start_month or config.FINANCIAL_YEAR_START_MONTH
    day = _to_date(today)
    start_year = day.year if day.month >= start_month else day.year - 1
    return _build(start_year, start_month)


def previous_financial_year(today: DateLike, start_month: Optional[int] = None) -> FinancialYear:
    """Financial year immediately before the one containing `today` (used for backfills)."""
    current = resolve_financial_year(today, start_month)
    return _build(current.start.year - 1, current.start.month)


def financial_year_from_label(label: str, start_month: Optional[int] = None) -> FinancialYear:
    """Parse a "YYYY-YYYY" label back into its financial year."""
    m = _LABEL_RE.match(label or "")
    if not m:
        raise ValueError(f"Financial year label must look like 'YYYY-YYYY': {label!r}")
    fy = _build(int(m.group(1)), start_month or config.FINANCIAL_YEAR_START_MONTH)
    if fy.label != f"{m.group(1)}-{m.group(2)}":
        raise ValueError(f"Financial year label is not a valid year span: {label!r}")
    return fy


def default_range(today: DateLike, start_month: Optional[int] = None) -> Tuple[date, date]:
    """Default generation range: the financial year containing `today`."""
    return resolve_financial_year(today, start_month).as_range()
