"""Budget engine: the single owner of a session's ``BudgetState``.

The engine is an explicit object, constructed with (or restored into) one
state and handed to whatever needs it. Mutations validate first and only
then touch the state, so a failed mutation never leaves a partial change
behind. Expected failures come back as ``MutationResult`` values; only
``UsageError`` is raised.
"""

from __future__ import annotations

import functools
import logging
import math
import uuid
from datetime import date
from typing import TYPE_CHECKING, Callable

from pocket_budget.core import calculations, insights, projection
from pocket_budget.core.errors import BudgetError, NotFoundError, UsageError, ValidationError
from pocket_budget.core.months import current_month_key, is_month_key, next_month_key
from pocket_budget.models.results import (
    AiTip,
    BudgetInsight,
    MutationResult,
    PocketBalances,
    ProjectionPoint,
    Totals,
)
from pocket_budget.models.schemas import (
    AllocationMode,
    AllocationRule,
    BudgetMonth,
    BudgetState,
    Category,
    CategoryAmountOverride,
    CategoryDraft,
    CategoryType,
    MonthKey,
    RecurrenceRule,
    RecurrenceTiming,
    Transaction,
    TransactionChanges,
    TransactionDraft,
)

if TYPE_CHECKING:
    from pocket_budget.core.storage import JsonStateStore

logger = logging.getLogger("pocket_budget.engine")


def _mutation(fn: Callable) -> Callable:
    """Convert ``BudgetError`` raised by a mutation into a failed result.

    Mutations must return ``MutationResult``, not raise. ``UsageError`` is
    not a ``BudgetError`` and passes through.
    """

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except BudgetError as e:
            logger.info("%s rejected: %s", fn.__name__, e)
            return MutationResult.fail(str(e))

    return wrapper


def _new_id(prefix: str, taken: set[str]) -> str:
    while True:
        candidate = f"{prefix}-{uuid.uuid4().hex[:7]}"
        if candidate not in taken:
            return candidate


def _check_month(month: object) -> None:
    if not is_month_key(month):
        raise ValidationError(f"Invalid month '{month}'. Expected YYYY-MM.")


def _check_amount(amount: object, label: str = "Amount") -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"{label} must be a number.")
    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a finite number.")
    if amount < 0:
        raise ValidationError(f"{label} must not be negative (got {amount}).")
    return float(amount)


def _set_override(bm: BudgetMonth, override: CategoryAmountOverride) -> None:
    """Replace the month's override for the category in place, or append it."""
    for i, existing in enumerate(bm.overrides):
        if existing.category_id == override.category_id:
            bm.overrides[i] = override
            return
    bm.overrides.append(override)


def create_default_state(month: MonthKey | None = None) -> BudgetState:
    """Starter budget: one salary split across two bank pockets.

    The given month (default: current) and the one after it are seeded with
    every category's default amount.
    """
    current = month or current_month_key()
    following = next_month_key(current)

    categories = [
        Category(
            id="cat-salary", name="Salary", type=CategoryType.INCOME,
            color="#16a34a", default_amount=5000.0, is_influx=True,
            recurrence=RecurrenceRule(is_recurring=True),
        ),
        Category(
            id="cat-everyday", name="Everyday Bank", type=CategoryType.BANK,
            color="#3b82f6", default_amount=2000.0, is_influx=False,
            recurrence=RecurrenceRule(
                is_recurring=True, timing=RecurrenceTiming.LAST_WORKING_DAY,
            ),
        ),
        Category(
            id="cat-savings", name="Savings Bank", type=CategoryType.BANK,
            color="#0ea5e9", default_amount=3000.0, is_influx=False,
            recurrence=RecurrenceRule(
                is_recurring=True, timing=RecurrenceTiming.LAST_WORKING_DAY,
            ),
        ),
        Category(
            id="cat-extra", name="Extra Money", type=CategoryType.EXTRA,
            color="#a855f7", default_amount=0.0, is_influx=False,
            recurrence=RecurrenceRule(is_recurring=True),
        ),
    ]

    def seeded(key: MonthKey) -> BudgetMonth:
        return BudgetMonth(
            month=key,
            overrides=[
                CategoryAmountOverride(category_id=c.id, amount=c.default_amount)
                for c in categories
            ],
        )

    return BudgetState(
        categories=categories,
        budgets_by_month={current: seeded(current), following: seeded(following)},
        last_opened_month=current,
        allocation_rules={
            "cat-salary": [
                AllocationRule(target_category_id="cat-everyday", mode=AllocationMode.AMOUNT, value=2000.0),
                AllocationRule(target_category_id="cat-savings", mode=AllocationMode.AMOUNT, value=3000.0),
            ],
        },
        transactions_by_month={current: [], following: []},
    )


class BudgetEngine:
    """Owns one ``BudgetState`` and exposes the budget operations on it."""

    def __init__(
        self,
        state: BudgetState | None = None,
        store: JsonStateStore | None = None,
    ):
        self._state = state
        self._store = store

    # --- Lifecycle ---

    @property
    def ready(self) -> bool:
        return self._state is not None

    def restore(self) -> "BudgetEngine":
        """Load the state from the store, or start from the default budget."""
        loaded = self._store.load() if self._store else None
        if loaded is None:
            logger.info("No saved budget found; starting from defaults")
            loaded = create_default_state()
        self._state = loaded
        return self

    def reset(self, state: BudgetState | None = None) -> "BudgetEngine":
        """Replace the whole state (default budget when *state* is None)."""
        self._state = state if state is not None else create_default_state()
        return self

    def save(self) -> None:
        """Hand the current state to the store, if one was injected."""
        if self._store is not None:
            self._store.save(self.state)

    def to_json(self) -> str:
        return self.state.model_dump_json(by_alias=True)

    # --- Read accessors ---

    @property
    def state(self) -> BudgetState:
        if self._state is None:
            raise UsageError(
                "BudgetEngine has no state yet. Call restore() or reset() first."
            )
        return self._state

    @property
    def categories(self) -> list[Category]:
        return self.state.categories

    @property
    def budgets_by_month(self) -> dict[MonthKey, BudgetMonth]:
        return self.state.budgets_by_month

    @property
    def transactions_by_month(self) -> dict[MonthKey, list[Transaction]]:
        return self.state.transactions_by_month

    @property
    def allocation_rules(self) -> dict[str, list[AllocationRule]]:
        return self.state.allocation_rules

    def get_category(self, category_id: str) -> Category | None:
        for c in self.state.categories:
            if c.id == category_id:
                return c
        return None

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        found = self._locate_transaction(transaction_id)
        return found[2] if found else None

    # --- Category registry ---

    @_mutation
    def upsert_category(self, draft: CategoryDraft) -> MutationResult:
        """Create a category, or merge the set fields into an existing one.

        A negative default amount is stored as its absolute value and
        reported in ``MutationResult.warnings``.
        """
        state = self.state
        existing_index = None
        if draft.id:
            for i, c in enumerate(state.categories):
                if c.id == draft.id:
                    existing_index = i
                    break

        if existing_index is not None:
            data = state.categories[existing_index].model_dump()
            data.update(draft.model_dump(include=draft.model_fields_set - {"id"}))
        else:
            data = draft.model_dump()
            data["id"] = _new_id("cat", {c.id for c in state.categories})

        if not (data.get("name") or "").strip():
            raise ValidationError("Category name must not be empty.")
        amount = data.get("default_amount", 0.0)
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
            raise ValidationError("Default amount must be a finite number.")

        warnings: list[str] = []
        if amount < 0:
            warnings.append(f"Default amount {amount} stored as {abs(amount)}.")
            logger.warning("Coercing negative default amount %s for '%s'", amount, data["name"])
            data["default_amount"] = abs(amount)

        category = Category.model_validate(data)
        if existing_index is not None:
            state.categories[existing_index] = category
            logger.debug("Updated category %s", category.id)
        else:
            state.categories.append(category)
            logger.debug("Created category %s", category.id)

        result = MutationResult.ok(category.id)
        result.warnings = warnings
        return result

    @_mutation
    def delete_categories(self, ids: list[str]) -> MutationResult:
        """Delete categories and everything that references them.

        Overrides, transactions and allocation rules pointing at a deleted
        id go with it. The new state is built aside and swapped in at once.
        """
        state = self.state
        id_set = set(ids)
        if not id_set:
            return MutationResult.ok()

        known = {c.id for c in state.categories}
        missing = sorted(id_set - known)
        if missing:
            raise NotFoundError("category", ", ".join(missing))

        categories = [c for c in state.categories if c.id not in id_set]
        budgets_by_month = {
            m: BudgetMonth(
                month=bm.month,
                overrides=[o for o in bm.overrides if o.category_id not in id_set],
            )
            for m, bm in state.budgets_by_month.items()
        }
        transactions_by_month = {
            m: [t for t in ts if t.pocket_category_id not in id_set]
            for m, ts in state.transactions_by_month.items()
        }
        allocation_rules: dict[str, list[AllocationRule]] = {}
        for income_id, rules in state.allocation_rules.items():
            if income_id in id_set:
                continue
            kept = [r for r in rules if r.target_category_id not in id_set]
            if kept:
                allocation_rules[income_id] = kept

        self._state = state.model_copy(update={
            "categories": categories,
            "budgets_by_month": budgets_by_month,
            "transactions_by_month": transactions_by_month,
            "allocation_rules": allocation_rules,
        })
        logger.debug("Deleted categories %s", sorted(id_set))
        return MutationResult.ok()

    # --- Monthly override ledger ---

    def _ensure_month(self, month: MonthKey) -> BudgetMonth:
        bm = self.state.budgets_by_month.get(month)
        if bm is None:
            bm = BudgetMonth(month=month, overrides=[])
            self.state.budgets_by_month[month] = bm
            logger.debug("Created budget month %s", month)
        return bm

    @_mutation
    def ensure_month(self, month: MonthKey) -> MutationResult:
        """Create an empty budget entry for *month* if it has none."""
        _check_month(month)
        self._ensure_month(month)
        return MutationResult.ok()

    @_mutation
    def update_category_amount(
        self,
        category_id: str,
        amount: float,
        month: MonthKey,
        propagate_to_future: bool = False,
        note: str | None = None,
    ) -> MutationResult:
        """Set the category's override for *month* (last write wins).

        With *propagate_to_future* the same override is written to every
        later month that already has a budget entry. No new months are
        created beyond *month* itself.
        """
        _check_month(month)
        value = _check_amount(amount)
        if self.get_category(category_id) is None:
            raise ValidationError(f"Unknown category '{category_id}'.")

        def make_override() -> CategoryAmountOverride:
            return CategoryAmountOverride(
                category_id=category_id,
                amount=value,
                note=note,
                applied_to_future=propagate_to_future,
            )

        _set_override(self._ensure_month(month), make_override())

        if propagate_to_future:
            later = sorted(m for m in self.state.budgets_by_month if m > month)
            for m in later:
                _set_override(self.state.budgets_by_month[m], make_override())
            logger.debug("Propagated %s=%s from %s to %d month(s)", category_id, value, month, len(later))

        return MutationResult.ok(category_id)

    @_mutation
    def set_last_opened_month(self, month: MonthKey) -> MutationResult:
        _check_month(month)
        self.state.last_opened_month = month
        return MutationResult.ok()

    # --- Allocation rules (stored, not applied) ---

    @_mutation
    def set_allocation_rules(
        self,
        income_category_id: str,
        rules: list[AllocationRule],
    ) -> MutationResult:
        """Replace the allocation rules of an income category.

        An empty list removes the entry. Rules are kept for the persisted
        shape only; no calculator distributes income with them.
        """
        source = self.get_category(income_category_id)
        if source is None:
            raise ValidationError(f"Unknown category '{income_category_id}'.")
        if not source.is_influx:
            raise ValidationError(f"'{source.name}' is not an income category.")

        for r in rules:
            target = self.get_category(r.target_category_id)
            if target is None:
                raise ValidationError(f"Unknown category '{r.target_category_id}'.")
            if target.is_influx:
                raise ValidationError(f"'{target.name}' is not a pocket.")
            value = _check_amount(r.value, "Allocation value")
            if r.mode == AllocationMode.PERCENT and value > 100:
                raise ValidationError("Percent allocations must be between 0 and 100.")

        if rules:
            self.state.allocation_rules[income_category_id] = list(rules)
        else:
            self.state.allocation_rules.pop(income_category_id, None)
        return MutationResult.ok(income_category_id)

    # --- Transaction ledger ---

    def _locate_transaction(
        self,
        transaction_id: str,
        month: MonthKey | None = None,
    ) -> tuple[MonthKey, int, Transaction] | None:
        buckets = self.state.transactions_by_month
        months = [month] if month is not None else list(buckets)
        for m in months:
            for i, t in enumerate(buckets.get(m, [])):
                if t.id == transaction_id:
                    return m, i, t
        return None

    def _check_transaction(self, t: Transaction) -> None:
        _check_month(t.month)
        _check_amount(t.amount)
        pocket = self.get_category(t.pocket_category_id)
        if pocket is None:
            raise ValidationError(f"Unknown pocket '{t.pocket_category_id}'.")
        if pocket.is_influx:
            raise ValidationError(f"'{pocket.name}' is an income category, not a pocket.")
        rec = t.recurrence
        if rec is not None:
            if rec.effective_from is not None:
                _check_month(rec.effective_from)
            if rec.duration is not None and rec.duration < 1:
                raise ValidationError("Recurrence duration must be at least one month.")

    @_mutation
    def add_transaction(self, draft: TransactionDraft) -> MutationResult:
        """Record a transaction in its month's bucket; returns the new id."""
        taken = {t.id for ts in self.state.transactions_by_month.values() for t in ts}
        transaction = Transaction.model_validate(
            {"id": _new_id("tx", taken), **draft.model_dump()}
        )
        self._check_transaction(transaction)

        self.state.transactions_by_month.setdefault(transaction.month, []).append(transaction)
        logger.debug("Added transaction %s to %s", transaction.id, transaction.month)
        return MutationResult.ok(transaction.id)

    @_mutation
    def update_transaction(
        self,
        transaction_id: str,
        changes: TransactionChanges,
        month: MonthKey | None = None,
    ) -> MutationResult:
        """Apply the fields set in *changes*; a new month moves the transaction."""
        found = self._locate_transaction(transaction_id, month)
        if found is None:
            raise NotFoundError("transaction", transaction_id)
        old_month, index, current = found

        # None clears the optional fields but cannot clear required ones
        updates = {
            k: v for k, v in changes.model_dump(exclude_unset=True).items()
            if v is not None or k in ("note", "recurrence")
        }
        data = current.model_dump()
        data.update(updates)
        updated = Transaction.model_validate(data)
        self._check_transaction(updated)

        buckets = self.state.transactions_by_month
        if updated.month == old_month:
            buckets[old_month][index] = updated
        else:
            del buckets[old_month][index]
            buckets.setdefault(updated.month, []).append(updated)
            logger.debug("Moved transaction %s from %s to %s", transaction_id, old_month, updated.month)
        return MutationResult.ok(transaction_id)

    @_mutation
    def delete_transaction(
        self,
        transaction_id: str,
        month: MonthKey | None = None,
    ) -> MutationResult:
        found = self._locate_transaction(transaction_id, month)
        if found is None:
            raise NotFoundError("transaction", transaction_id)
        m, index, _ = found
        del self.state.transactions_by_month[m][index]
        logger.debug("Deleted transaction %s from %s", transaction_id, m)
        return MutationResult.ok(transaction_id)

    # --- Queries ---

    def compute_totals(self, month: MonthKey) -> Totals:
        return calculations.compute_totals(self.state, month)

    def compute_pocket_balances_up_to(self, month: MonthKey) -> PocketBalances:
        return calculations.compute_pocket_balances_up_to(self.state, month)

    def project_six_months(
        self,
        start: date | MonthKey,
        what_if_delta: float = 0.0,
    ) -> list[ProjectionPoint]:
        return projection.project_six_months(self.state, start, what_if_delta)

    def generate_ai_tips(self, month: MonthKey) -> list[AiTip]:
        return insights.generate_ai_tips(self.state, month)

    def generate_budget_insights(self, month: MonthKey) -> list[BudgetInsight]:
        pockets = calculations.summarize_pocket_spending(self.state, month)
        return insights.generate_budget_insights(
            pockets, calculations.count_transactions(self.state)
        )
