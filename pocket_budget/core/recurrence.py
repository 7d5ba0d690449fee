"""Read-side expansion of recurrence metadata.

Recurring transactions are stored once, in the month they were logged. The
calculators read only what is literally stored; callers that want to know
which months a recurring transaction covers expand it here.
"""

import calendar
from datetime import date

from pocket_budget.core.months import add_months, from_month_key, last_working_day
from pocket_budget.models.schemas import (
    BudgetState,
    MonthKey,
    RecurrenceFrequency,
    RecurrenceRule,
    RecurrenceTiming,
    Transaction,
)

FREQUENCY_STEP = {
    RecurrenceFrequency.MONTHLY: 1,
    RecurrenceFrequency.QUARTERLY: 3,
    RecurrenceFrequency.YEARLY: 12,
}


def recurrence_months(
    transaction: Transaction,
    until: MonthKey | None = None,
) -> list[MonthKey]:
    """Months in which *transaction* applies, oldest first.

    A non-recurring transaction applies only to its own month. For a
    recurring one the window starts at ``effective_from`` (default: the
    transaction month) and spans ``duration`` months, stepping by the
    frequency. An open-ended recurrence (no duration) needs *until*, which
    also caps bounded ones.

    Raises ValueError for an open-ended recurrence without *until*.
    """
    rec = transaction.recurrence
    if rec is None or not rec.is_recurring:
        return [transaction.month]

    start = rec.effective_from or transaction.month
    from_month_key(start)
    step = FREQUENCY_STEP[rec.frequency or RecurrenceFrequency.MONTHLY]

    if rec.duration is None and until is None:
        raise ValueError(
            f"Transaction {transaction.id} recurs indefinitely; pass 'until' to expand it."
        )

    months: list[MonthKey] = []
    offset = 0
    while rec.duration is None or offset < rec.duration:
        key = add_months(start, offset)
        if until is not None and key > until:
            break
        months.append(key)
        offset += step
    return months


def occurs_in(transaction: Transaction, month: MonthKey) -> bool:
    """Whether *transaction* covers *month* once its recurrence is expanded."""
    return month in recurrence_months(transaction, until=month)


def carried_into(state: BudgetState, month: MonthKey) -> list[Transaction]:
    """Recurring transactions logged in earlier months that also cover *month*."""
    return [
        t
        for m in sorted(state.transactions_by_month)
        if m < month
        for t in state.transactions_by_month[m]
        if t.recurrence and t.recurrence.is_recurring and occurs_in(t, month)
    ]


def payment_date(rule: RecurrenceRule, month: MonthKey) -> date | None:
    """Day a category's amount lands in *month*, if its timing says so.

    ``customDate`` days past the end of a short month fall on its last day.
    Returns ``None`` when there is no timing, the rule is off, or *month* is
    before ``effective_from``.
    """
    if not rule.is_recurring or rule.timing is None:
        return None
    if rule.effective_from and month < rule.effective_from:
        return None
    first = from_month_key(month)
    if rule.timing == RecurrenceTiming.LAST_WORKING_DAY:
        return last_working_day(first.year, first.month)
    if rule.custom_day_of_month is None:
        return None
    days = calendar.monthrange(first.year, first.month)[1]
    return first.replace(day=max(1, min(rule.custom_day_of_month, days)))
