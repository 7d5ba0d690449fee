"""Tests for pocket_budget/core/calculations.py."""

import random

from tests.conftest import make_category, make_income, make_month, make_state, make_transaction
from pocket_budget.core.calculations import (
    compute_pocket_balances_up_to,
    compute_totals,
    count_transactions,
    summarize_pocket_spending,
)
from pocket_budget.models.results import Totals


# --- Totals ---


class TestComputeTotals:
    def test_income_outflow_and_remaining(self):
        state = make_state(
            categories=[make_income("Income", id="inc"), make_category("Rent", id="rent")],
            months=[make_month("2025-01", inc=3000, rent=1200)],
        )
        assert compute_totals(state, "2025-01") == Totals(
            total_income=3000, total_outflow=1200, remaining=1800,
        )

    def test_untouched_month_is_all_zero(self):
        state = make_state(months=[make_month("2025-01", cat_salary=3000)])
        assert compute_totals(state, "2099-12") == Totals(0, 0, 0)

    def test_empty_month_is_all_zero(self):
        state = make_state(months=[make_month("2025-01")])
        assert compute_totals(state, "2025-01") == Totals(0, 0, 0)

    def test_ignores_overrides_for_unknown_categories(self):
        state = make_state(months=[make_month("2025-01", cat_salary=1000, cat_ghost=400)])
        totals = compute_totals(state, "2025-01")
        assert totals.total_income == 1000
        assert totals.total_outflow == 0

    def test_negative_remaining(self):
        state = make_state(months=[make_month("2025-01", cat_salary=1000, cat_rent=1500)])
        assert compute_totals(state, "2025-01").remaining == -500

    def test_only_reads_the_requested_month(self):
        state = make_state(months=[
            make_month("2025-01", cat_salary=1000),
            make_month("2025-02", cat_salary=2000, cat_rent=100),
        ])
        assert compute_totals(state, "2025-01").remaining == 1000
        assert compute_totals(state, "2025-02").remaining == 1900


# --- Pocket Balances ---


class TestComputePocketBalancesUpTo:
    def test_every_pocket_starts_at_zero(self):
        state = make_state(categories=[
            make_income(), make_category("Rent"), make_category("Food"),
        ])
        assert compute_pocket_balances_up_to(state, "2025-01") == {
            "cat-rent": 0.0, "cat-food": 0.0,
        }

    def test_income_categories_are_not_pockets(self):
        state = make_state()
        assert "cat-salary" not in compute_pocket_balances_up_to(state, "2025-01")

    def test_expense_subtracts_and_income_adds(self):
        state = make_state(transactions=[
            make_transaction("cat-rent", 100, type_="income", id="t1"),
            make_transaction("cat-rent", 30, type_="expense", id="t2"),
        ])
        assert compute_pocket_balances_up_to(state, "2025-01")["cat-rent"] == 70

    def test_includes_given_month_and_excludes_later(self):
        state = make_state(transactions=[
            make_transaction("cat-rent", 10, month="2024-12", type_="income"),
            make_transaction("cat-rent", 20, month="2025-01", type_="income"),
            make_transaction("cat-rent", 40, month="2025-02", type_="income"),
        ])
        assert compute_pocket_balances_up_to(state, "2025-01")["cat-rent"] == 30
        assert compute_pocket_balances_up_to(state, "2025-02")["cat-rent"] == 70

    def test_reads_transaction_months_without_budget_entries(self):
        state = make_state(transactions=[make_transaction("cat-rent", 25, type_="income")])
        assert state.budgets_by_month == {}
        assert compute_pocket_balances_up_to(state, "2025-03")["cat-rent"] == 25

    def test_skips_transactions_for_deleted_pockets(self):
        state = make_state(transactions=[make_transaction("cat-gone", 25)])
        assert compute_pocket_balances_up_to(state, "2025-01") == {"cat-rent": 0.0}

    def test_order_of_transactions_does_not_matter(self):
        amounts = [0.1, 0.2, 0.3, 1e6, 19.99, 0.07, 333.33, 1e-3, 42.42, 7.77]
        transactions = [
            make_transaction("cat-rent", a, type_="income" if i % 3 else "expense", id=f"t{i}")
            for i, a in enumerate(amounts)
        ]
        expected = compute_pocket_balances_up_to(make_state(transactions=transactions), "2025-01")

        rng = random.Random(7)
        for _ in range(20):
            shuffled = transactions[:]
            rng.shuffle(shuffled)
            result = compute_pocket_balances_up_to(make_state(transactions=shuffled), "2025-01")
            assert result == expected


# --- Pocket Spending ---


class TestSummarizePocketSpending:
    def test_uses_month_override_as_budget(self):
        state = make_state(
            categories=[make_income(), make_category("Food", default_amount=300)],
            months=[make_month("2025-01", cat_food=400)],
            transactions=[make_transaction("cat-food", 120)],
        )
        [food] = summarize_pocket_spending(state, "2025-01")
        assert food.budget == 400
        assert food.spent == 120

    def test_falls_back_to_default_amount(self):
        state = make_state(categories=[make_income(), make_category("Food", default_amount=300)])
        [food] = summarize_pocket_spending(state, "2025-01")
        assert food.budget == 300
        assert food.spent == 0

    def test_income_transactions_are_not_spending(self):
        state = make_state(
            categories=[make_category("Food", default_amount=300)],
            transactions=[
                make_transaction("cat-food", 50, id="a"),
                make_transaction("cat-food", 500, type_="income", id="b"),
            ],
        )
        [food] = summarize_pocket_spending(state, "2025-01")
        assert food.spent == 50

    def test_usage_pct(self):
        state = make_state(
            categories=[make_category("Food", default_amount=200)],
            transactions=[make_transaction("cat-food", 50)],
        )
        [food] = summarize_pocket_spending(state, "2025-01")
        assert food.usage_pct == 25.0


class TestCountTransactions:
    def test_counts_overall_and_per_month(self):
        state = make_state(transactions=[
            make_transaction(month="2025-01", id="a"),
            make_transaction(month="2025-01", id="b"),
            make_transaction(month="2025-02", id="c"),
        ])
        assert count_transactions(state) == 3
        assert count_transactions(state, "2025-01") == 2
        assert count_transactions(state, "2030-01") == 0
