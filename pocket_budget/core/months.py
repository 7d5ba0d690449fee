"""Month key helpers.

A month key is the zero-padded ``"YYYY-MM"`` string used to index every
ledger in the budget state. Plain string comparison on keys is chronological.
"""

import re
from datetime import date, timedelta

from pocket_budget.models.schemas import MONTH_KEY_PATTERN, MonthKey

_MONTH_KEY_RE = re.compile(MONTH_KEY_PATTERN)


def is_month_key(value: object) -> bool:
    return isinstance(value, str) and bool(_MONTH_KEY_RE.match(value))


def to_month_key(d: date) -> MonthKey:
    return f"{d.year:04d}-{d.month:02d}"


def from_month_key(key: MonthKey) -> date:
    """Return the first day of the month named by *key*.

    Raises ValueError for anything that is not a ``"YYYY-MM"`` key.
    """
    if not is_month_key(key):
        raise ValueError(f"Invalid month key '{key}'. Expected YYYY-MM.")
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def current_month_key(today: date | None = None) -> MonthKey:
    return to_month_key(today or date.today())


def add_months(key: MonthKey, n: int) -> MonthKey:
    """Shift a month key by *n* months (negative moves backwards)."""
    d = from_month_key(key)
    index = d.year * 12 + (d.month - 1) + n
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def next_month_key(key: MonthKey | None = None) -> MonthKey:
    return add_months(key or current_month_key(), 1)


def last_working_day(year: int, month: int) -> date:
    """Last Monday-Friday day of the given month."""
    if month == 12:
        d = date(year + 1, 1, 1) - timedelta(days=1)
    else:
        d = date(year, month + 1, 1) - timedelta(days=1)
    while d.weekday() >= 5:  # Saturday/Sunday
        d -= timedelta(days=1)
    return d
