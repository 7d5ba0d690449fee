"""Tests for the JSON state store."""

import json

import pytest

from tests.conftest import make_category, make_income, make_month, make_state, make_transaction
from pocket_budget.core.engine import BudgetEngine
from pocket_budget.core.storage import JsonStateStore
from pocket_budget.models.schemas import (
    AllocationMode,
    AllocationRule,
    BudgetState,
    RecurrenceRule,
    RecurrenceTiming,
    TransactionRecurrence,
)


@pytest.fixture
def store(tmp_path):
    """Store backed by a temp file."""
    return JsonStateStore(path=str(tmp_path / "nested" / "state.json"))


def _rich_state() -> BudgetState:
    state = make_state(
        categories=[
            make_income(default_amount=4000),
            make_category("Rent", type_="bank", default_amount=1200),
        ],
        months=[make_month("2025-01", cat_salary=4000, cat_rent=1250)],
        transactions=[make_transaction(
            "cat-rent", 20, note="fee",
            recurrence=TransactionRecurrence(is_recurring=True, frequency="yearly", duration=24),
        )],
    )
    state.categories[1].recurrence = RecurrenceRule(
        is_recurring=True, timing=RecurrenceTiming.LAST_WORKING_DAY,
    )
    state.allocation_rules = {
        "cat-salary": [AllocationRule(target_category_id="cat-rent", mode=AllocationMode.PERCENT, value=30)],
    }
    state.last_opened_month = "2025-01"
    return state


class TestJsonStateStore:
    def test_missing_file_loads_none(self, store):
        assert store.load() is None

    def test_round_trip_is_lossless(self, store):
        state = _rich_state()
        store.save(state)
        assert store.load() == state

    def test_saves_camel_case_blob(self, store):
        store.save(_rich_state())
        data = json.loads(store.path.read_text())
        assert set(data) == {
            "categories", "budgetsByMonth", "lastOpenedMonth",
            "allocationRules", "transactionsByMonth",
        }
        assert data["categories"][0]["isInflux"] is True
        assert data["transactionsByMonth"]["2025-01"][0]["pocketCategoryId"] == "cat-rent"
        assert data["categories"][1]["recurrence"]["timing"] == "lastWorkingDay"

    def test_loads_blob_written_elsewhere(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({
            "categories": [{
                "id": "inc", "name": "Pay", "type": "income", "color": "#000",
                "defaultAmount": 10, "isInflux": True,
                "recurrence": {"isRecurring": True, "timing": None},
            }],
            "budgetsByMonth": {"2025-01": {"month": "2025-01", "overrides": [
                {"categoryId": "inc", "amount": 10},
            ]}},
            "allocationRules": {},
            "transactionsByMonth": {},
            "somethingNew": 1,
        }))
        state = store.load()
        assert state.categories[0].default_amount == 10
        assert state.budgets_by_month["2025-01"].overrides[0].category_id == "inc"

    def test_corrupt_file_loads_none(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.load() is None

    def test_unreadable_file_is_moved_aside(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        store.load()
        assert not store.path.exists()
        assert store.quarantine_path.read_text() == "{not json"

    def test_invalid_shape_loads_none(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"categories": "nope"}))
        assert store.load() is None

    def test_save_leaves_no_temp_file(self, store):
        store.save(_rich_state())
        store.save(_rich_state())
        assert [p.name for p in store.path.parent.iterdir()] == ["state.json"]


class TestEngineWithStore:
    def test_restore_loads_saved_state(self, store):
        store.save(_rich_state())
        engine = BudgetEngine(store=store).restore()
        assert engine.compute_totals("2025-01").remaining == 2750

    def test_restore_falls_back_to_defaults(self, store):
        engine = BudgetEngine(store=store).restore()
        assert engine.get_category("cat-salary") is not None

    def test_save_persists_mutations(self, store):
        engine = BudgetEngine(store=store).restore()
        engine.update_category_amount("cat-salary", 1234, "2030-01")
        engine.save()
        reloaded = BudgetEngine(store=store).restore()
        assert reloaded.budgets_by_month["2030-01"].find_override("cat-salary").amount == 1234

    def test_restore_never_overwrites_unreadable_state(self, store):
        blob = {
            "categories": [{"id": "cat-rent", "name": "Rent", "type": "other", "isInflux": False}],
            "budgetsByMonth": {},
            "allocationRules": {},
            "transactionsByMonth": {"2025-01": [{
                "id": "t1", "month": "2025-01", "pocketCategoryId": "cat-rent",
                "type": "expense", "amount": 5,
                "recurrence": {"isRecurring": True, "frequency": "weekly"},
            }]},
        }
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps(blob))

        engine = BudgetEngine(store=store).restore()
        engine.save()

        assert engine.get_category("cat-salary") is not None
        assert json.loads(store.quarantine_path.read_text()) == blob
