"""CSV export of budget data.

Reads through the engine's accessors and calculators; never re-derives a
sum on its own. Amounts are rounded to cents only here.
"""

import csv
import io

from pocket_budget.core.engine import BudgetEngine
from pocket_budget.models.schemas import MonthKey

MONTH_HEADER = ["Category", "Type", "Influx", "Amount", "Note"]


def _money(value: float) -> str:
    # + 0.0 turns -0.0 into 0.0
    return f"{round(value, 2) + 0.0:.2f}"


def _writer(buffer: io.StringIO):
    return csv.writer(buffer, lineterminator="\n")


def export_month_csv(engine: BudgetEngine, month: MonthKey) -> str:
    """One row per override in *month*, signed by direction, then totals."""
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(MONTH_HEADER)

    bm = engine.budgets_by_month.get(month)
    for o in (bm.overrides if bm else []):
        cat = engine.get_category(o.category_id)
        is_influx = bool(cat and cat.is_influx)
        sign = 1 if is_influx else -1
        writer.writerow([
            cat.name if cat else "Unknown",
            cat.type.value if cat else "other",
            str(is_influx).lower(),
            _money(sign * o.amount),
            o.note or "",
        ])

    totals = engine.compute_totals(month)
    writer.writerow([])
    writer.writerow(["Total Income", "", "", _money(totals.total_income), ""])
    writer.writerow(["Total Outflow", "", "", _money(-totals.total_outflow), ""])
    writer.writerow(["Remaining", "", "", _money(totals.remaining), ""])
    return buffer.getvalue()


def export_pocket_balances_csv(engine: BudgetEngine, month: MonthKey) -> str:
    """Pocket balances as of (and including) *month*."""
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(["Pocket", "Balance"])
    for pocket_id, balance in engine.compute_pocket_balances_up_to(month).items():
        cat = engine.get_category(pocket_id)
        writer.writerow([cat.name if cat else pocket_id, _money(balance)])
    return buffer.getvalue()


def export_transactions_csv(engine: BudgetEngine, month: MonthKey) -> str:
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(["Id", "Month", "Pocket", "Type", "Amount", "Recurring", "Note"])
    for t in engine.transactions_by_month.get(month, []):
        cat = engine.get_category(t.pocket_category_id)
        writer.writerow([
            t.id,
            t.month,
            cat.name if cat else t.pocket_category_id,
            t.type.value,
            _money(t.signed_amount),
            str(bool(t.recurrence and t.recurrence.is_recurring)).lower(),
            t.note or "",
        ])
    return buffer.getvalue()
