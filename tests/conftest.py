"""Shared test fixtures for pocket budget tests."""

from pocket_budget.core.engine import BudgetEngine
from pocket_budget.models.schemas import (
    BudgetMonth,
    BudgetState,
    Category,
    CategoryAmountOverride,
    CategoryType,
    Transaction,
    TransactionRecurrence,
    TransactionType,
)


def make_category(
    name: str = "Rent",
    type_: str = "other",
    is_influx: bool = False,
    default_amount: float = 0.0,
    id: str | None = None,
) -> Category:
    return Category(
        id=id or f"cat-{name.lower().replace(' ', '-')}",
        name=name,
        type=CategoryType(type_),
        default_amount=default_amount,
        is_influx=is_influx,
    )


def make_income(name: str = "Salary", default_amount: float = 0.0, id: str | None = None) -> Category:
    return make_category(name, type_="income", is_influx=True, default_amount=default_amount, id=id)


def make_month(month: str = "2025-01", **amounts: float) -> BudgetMonth:
    """Budget month with overrides keyed by category id (``cat_rent=1200``)."""
    return BudgetMonth(
        month=month,
        overrides=[
            CategoryAmountOverride(category_id=k.replace("_", "-"), amount=v)
            for k, v in amounts.items()
        ],
    )


def make_transaction(
    pocket_id: str = "cat-rent",
    amount: float = 50.0,
    month: str = "2025-01",
    type_: str = "expense",
    id: str | None = None,
    note: str | None = None,
    recurrence: TransactionRecurrence | None = None,
) -> Transaction:
    return Transaction(
        id=id or f"tx-{pocket_id}-{month}-{amount}",
        month=month,
        pocket_category_id=pocket_id,
        type=TransactionType(type_),
        amount=amount,
        note=note,
        recurrence=recurrence,
    )


def make_state(
    categories: list[Category] | None = None,
    months: list[BudgetMonth] | None = None,
    transactions: list[Transaction] | None = None,
) -> BudgetState:
    by_month: dict[str, list[Transaction]] = {}
    for t in transactions or []:
        by_month.setdefault(t.month, []).append(t)
    return BudgetState(
        categories=categories if categories is not None else [make_income(), make_category("Rent")],
        budgets_by_month={m.month: m for m in months or []},
        transactions_by_month=by_month,
    )


def make_engine(**kwargs) -> BudgetEngine:
    return BudgetEngine(state=make_state(**kwargs))
