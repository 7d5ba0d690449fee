"""Markdown formatters for MCP tool responses.

Pure functions that take domain objects and return human-readable Markdown strings.
"""

from __future__ import annotations

from pocket_budget.core.recurrence import payment_date, recurrence_months
from pocket_budget.models.results import (
    AiTip,
    BudgetInsight,
    InsightType,
    MutationResult,
    PocketBalances,
    ProjectionPoint,
    Totals,
)
from pocket_budget.models.schemas import (
    BudgetMonth,
    Category,
    Transaction,
    TransactionType,
)


def _money(value: float) -> str:
    sign = "-" if value < -0.005 else ""
    return f"{sign}${abs(value):,.2f}"


def format_categories(categories: list[Category], month: str | None = None) -> str:
    """List categories; with *month*, timed categories show their payment date."""
    if not categories:
        return "No categories defined."
    lines = ["## Categories\n"]
    for c in categories:
        direction = "IN" if c.is_influx else "OUT"
        line = f"- [{direction}] **{c.name}** ({c.type.value}): default {_money(c.default_amount)}"
        if c.recurrence.timing:
            line += f" | {c.recurrence.timing.value}"
            paid = payment_date(c.recurrence, month) if month else None
            if paid:
                line += f" ({paid.isoformat()})"
        lines.append(line)
        if c.notes:
            lines.append(f"  _Notes: {c.notes}_")
    return "\n".join(lines)


def format_month_summary(
    month: str,
    budget: BudgetMonth | None,
    categories: list[Category],
    totals: Totals,
) -> str:
    if budget is None:
        return f"No budget for {month} yet."

    by_id = {c.id: c for c in categories}
    lines = [f"## Budget Summary ({month})\n"]
    for o in budget.overrides:
        cat = by_id.get(o.category_id)
        if cat is None:
            continue
        direction = "IN" if cat.is_influx else "OUT"
        line = f"- [{direction}] {cat.name}: {_money(o.amount)}"
        if o.note:
            line += f" _({o.note})_"
        lines.append(line)

    lines.append("\n---")
    lines.append(
        f"**Totals:** {_money(totals.total_income)} income | "
        f"{_money(totals.total_outflow)} outflow | "
        f"{_money(totals.remaining)} remaining"
    )
    return "\n".join(lines)


def format_mutation_result(result: MutationResult, success_message: str) -> str:
    """One line for the outcome of an engine mutation."""
    if not result.success:
        return f"Could not complete the change: {result.error}"
    lines = [success_message]
    for w in result.warnings:
        lines.append(f"_Note: {w}_")
    return "\n".join(lines)


def _transaction_lines(t: Transaction, by_id: dict[str, Category]) -> list[str]:
    pocket = by_id.get(t.pocket_category_id)
    direction = "OUT" if t.type == TransactionType.EXPENSE else "IN"
    line = (
        f"- {t.month} [{direction}] **{_money(t.amount)}** "
        f"| {pocket.name if pocket else 'Unknown pocket'} | `{t.id}`"
    )
    if t.recurrence and t.recurrence.is_recurring:
        freq = t.recurrence.frequency.value if t.recurrence.frequency else "monthly"
        line += f" | repeats {freq}"
        if t.recurrence.duration is not None:
            line += f" through {recurrence_months(t)[-1]}"
    lines = [line]
    if t.note:
        lines.append(f"  _Note: {t.note}_")
    return lines


def format_transactions(
    transactions: list[Transaction],
    categories: list[Category],
    carried: list[Transaction] | None = None,
) -> str:
    """Render a month's transactions, then recurring ones carried in from earlier months."""
    if not transactions and not carried:
        return "No transactions found."
    by_id = {c.id: c for c in categories}
    lines = [f"## Transactions ({len(transactions)})\n"]
    for t in transactions:
        lines.extend(_transaction_lines(t, by_id))
    if carried:
        lines.append(f"\n### Recurring from earlier months ({len(carried)})\n")
        for t in carried:
            lines.extend(_transaction_lines(t, by_id))
    return "\n".join(lines)


def format_pocket_balances(
    month: str,
    balances: PocketBalances,
    categories: list[Category],
) -> str:
    if not balances:
        return "No pockets defined."
    by_id = {c.id: c for c in categories}
    lines = [f"## Pocket Balances (through {month})\n"]
    for pocket_id, balance in balances.items():
        name = by_id[pocket_id].name if pocket_id in by_id else pocket_id
        status = "OK" if balance >= -0.005 else "!!"
        lines.append(f"- [{status}] {name}: {_money(balance)}")
    return "\n".join(lines)


def format_projection(points: list[ProjectionPoint], what_if_delta: float = 0.0) -> str:
    title = "Six-Month Projection"
    if what_if_delta:
        title += f" (what-if {_money(what_if_delta)} in {points[0].month})"
    lines = [f"## {title}\n", "| Month | Remaining |", "|---|---|"]
    for p in points:
        lines.append(f"| {p.month} | {_money(p.remaining)} |")
    return "\n".join(lines)


def format_ai_tips(tips: list[AiTip]) -> str:
    if not tips:
        return "No tips right now."
    lines = ["## Tips\n"]
    for t in tips:
        lines.append(f"### {t.title}")
        lines.append(t.body)
        if t.cta:
            lines.append(f"_{t.cta}_")
        lines.append("")
    return "\n".join(lines).rstrip()


_INSIGHT_MARK = {
    InsightType.WARNING: "!!",
    InsightType.SUCCESS: "OK",
    InsightType.INFO: "i",
    InsightType.TIP: "*",
}


def format_budget_insights(insights: list[BudgetInsight]) -> str:
    if not insights:
        return "No insights for this month."
    lines = ["## Insights\n"]
    for i in insights:
        lines.append(f"- [{_INSIGHT_MARK[i.type]}] **{i.title}**: {i.message}")
    return "\n".join(lines)
