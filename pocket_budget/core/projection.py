"""Month-by-month projection of the remaining balance.

Not a forecast: each point is a direct re-read of the overrides already
stored for that month. Months with no budget entry project as zero.
"""

from datetime import date

from pocket_budget.core.calculations import compute_totals
from pocket_budget.core.months import add_months, from_month_key, to_month_key
from pocket_budget.models.results import ProjectionPoint
from pocket_budget.models.schemas import BudgetState, MonthKey

PROJECTION_MONTHS = 6


def project_months(
    state: BudgetState,
    start: date | MonthKey,
    count: int,
    what_if_delta: float = 0.0,
) -> list[ProjectionPoint]:
    """Project *count* consecutive months starting at *start*'s month.

    *what_if_delta* is added to the first month only, and only when that
    month has a budget entry.
    """
    if isinstance(start, date):
        start_key = to_month_key(start)
    else:
        from_month_key(start)  # validates the key
        start_key = start

    points: list[ProjectionPoint] = []
    for i in range(count):
        key = add_months(start_key, i)
        remaining = 0.0
        if key in state.budgets_by_month:
            remaining = compute_totals(state, key).remaining
            if i == 0:
                remaining += what_if_delta
        points.append(ProjectionPoint(month=key, remaining=remaining))
    return points


def project_six_months(
    state: BudgetState,
    start: date | MonthKey,
    what_if_delta: float = 0.0,
) -> list[ProjectionPoint]:
    return project_months(state, start, PROJECTION_MONTHS, what_if_delta)
