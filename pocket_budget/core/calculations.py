"""Pure calculation functions over a budget state.

All functions take a ``BudgetState`` and return result dataclasses. No I/O
and no mutation; the engine delegates its read methods here.

Amounts are plain floats. Sums are accumulated with ``math.fsum`` so the
result is exactly rounded and independent of transaction order; rounding to
cents only happens when values are displayed or exported.
"""

import math

from pocket_budget.models.results import PocketBalances, PocketSpend, Totals
from pocket_budget.models.schemas import BudgetState, MonthKey, TransactionType


def compute_totals(state: BudgetState, month: MonthKey) -> Totals:
    """Sum a month's overrides into income, outflow and remaining.

    Overrides whose category no longer exists are ignored. A month with no
    budget entry yields all zeros.
    """
    bm = state.budgets_by_month.get(month)
    if bm is None:
        return Totals()

    by_id = state.category_map()
    income: list[float] = []
    outflow: list[float] = []
    for o in bm.overrides:
        cat = by_id.get(o.category_id)
        if cat is None:
            continue
        (income if cat.is_influx else outflow).append(o.amount)

    total_income = math.fsum(income)
    total_outflow = math.fsum(outflow)
    return Totals(
        total_income=total_income,
        total_outflow=total_outflow,
        remaining=total_income - total_outflow,
    )


def compute_pocket_balances_up_to(state: BudgetState, month: MonthKey) -> PocketBalances:
    """Running balance per pocket including every transaction up to *month*.

    Every non-income category gets an entry (0.0 when it has no activity).
    Transactions against pockets that no longer exist are skipped.
    """
    effects: dict[str, list[float]] = {
        c.id: [] for c in state.categories if not c.is_influx
    }
    for m, transactions in state.transactions_by_month.items():
        if m > month:
            continue
        for t in transactions:
            if t.pocket_category_id in effects:
                effects[t.pocket_category_id].append(t.signed_amount)

    return {pocket_id: math.fsum(values) for pocket_id, values in effects.items()}


def summarize_pocket_spending(state: BudgetState, month: MonthKey) -> list[PocketSpend]:
    """Planned vs. spent for every pocket in a single month.

    The plan is the month's override for the pocket, falling back to the
    category default when the month has none.
    """
    bm = state.budgets_by_month.get(month)
    transactions = state.transactions_by_month.get(month, [])

    result: list[PocketSpend] = []
    for cat in state.categories:
        if cat.is_influx:
            continue
        override = bm.find_override(cat.id) if bm else None
        budget = override.amount if override else cat.default_amount
        spent = math.fsum(
            t.amount for t in transactions
            if t.pocket_category_id == cat.id and t.type == TransactionType.EXPENSE
        )
        result.append(PocketSpend(
            pocket_id=cat.id, name=cat.name, budget=budget, spent=spent,
        ))
    return result


def count_transactions(state: BudgetState, month: MonthKey | None = None) -> int:
    """Number of recorded transactions, in one month or overall."""
    if month is not None:
        return len(state.transactions_by_month.get(month, []))
    return sum(len(ts) for ts in state.transactions_by_month.values())
