"""Pocket Budget MCP Server.

Exposes the budget engine's operations as MCP tools: categories, monthly
amounts, pocket transactions, balances, projections and tips.
"""

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from dotenv import load_dotenv
from mcp.server.fastmcp import Context, FastMCP

# Ensure project root is on sys.path so `pocket_budget` is importable when
# loaded directly by tools like `mcp dev` (which use importlib, not `python -m`).
_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

load_dotenv()

from pocket_budget.core.engine import BudgetEngine
from pocket_budget.core.export import (
    export_month_csv,
    export_pocket_balances_csv,
    export_transactions_csv,
)
from pocket_budget.core.months import current_month_key, from_month_key
from pocket_budget.core.recurrence import carried_into
from pocket_budget.core.resolvers import resolve_category, resolve_income, resolve_pocket
from pocket_budget.core.storage import JsonStateStore
from pocket_budget.mcp.error_handling import handle_tool_errors
from pocket_budget.mcp.formatters import (
    format_ai_tips,
    format_budget_insights,
    format_categories,
    format_month_summary,
    format_mutation_result,
    format_pocket_balances,
    format_projection,
    format_transactions,
)
from pocket_budget.models.results import MutationResult
from pocket_budget.models.schemas import (
    AddTransactionInput,
    AllocationRule,
    AllocationRulesInput,
    CategoryDraft,
    CategoryType,
    ProjectionInput,
    SetAmountInput,
    TransactionChanges,
    TransactionDraft,
    TransactionRecurrence,
    UpdateTransactionInput,
    UpsertCategoryInput,
)


# --- Lifespan: initialize shared resources ---


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    state_file = os.environ.get("POCKET_BUDGET_STATE_FILE") or None
    store = JsonStateStore(state_file)
    engine = BudgetEngine(store=store).restore()

    yield {"engine": engine}

    engine.save()


mcp = FastMCP("pocket_budget_mcp", lifespan=app_lifespan)


# --- Helpers ---


def _get_engine(ctx) -> BudgetEngine:
    return ctx.request_context.lifespan_context["engine"]


def _month(month: str | None) -> str:
    key = month or current_month_key()
    from_month_key(key)  # raises ValueError for a malformed key
    return key


def _commit(engine: BudgetEngine, result: MutationResult, message: str) -> str:
    """Persist after a successful mutation and render the outcome."""
    if result.success:
        engine.save()
    return format_mutation_result(result, message)


# --- Read-Only Tools ---


@mcp.tool(
    name="budget_list_categories",
    annotations={
        "title": "List Categories",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_list_categories(ctx: Context, month: str | None = None) -> str:
    """List all income and pocket categories with their default amounts and payment dates."""
    engine = _get_engine(ctx)
    return format_categories(engine.categories, _month(month))


@mcp.tool(
    name="budget_get_transactions",
    annotations={
        "title": "Get Transactions",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_transactions(ctx: Context, month: str | None = None) -> str:
    """List a month's pocket transactions (YYYY-MM, default current), plus earlier recurring ones that cover it."""
    engine = _get_engine(ctx)
    key = _month(month)
    return format_transactions(
        engine.transactions_by_month.get(key, []),
        engine.categories,
        carried=carried_into(engine.state, key),
    )


@mcp.tool(
    name="budget_get_pocket_balances",
    annotations={
        "title": "Pocket Balances",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_pocket_balances(ctx: Context, month: str | None = None) -> str:
    """Show each pocket's running balance up to and including a month."""
    engine = _get_engine(ctx)
    key = _month(month)
    return format_pocket_balances(key, engine.compute_pocket_balances_up_to(key), engine.categories)


@mcp.tool(
    name="budget_get_projection",
    annotations={
        "title": "Six-Month Projection",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_projection(params: ProjectionInput, ctx: Context) -> str:
    """Project the remaining balance for six months, with an optional what-if change."""
    engine = _get_engine(ctx)
    key = _month(params.start_month)
    points = engine.project_six_months(key, params.what_if_delta)
    return format_projection(points, params.what_if_delta)


@mcp.tool(
    name="budget_get_tips",
    annotations={
        "title": "Budget Tips",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_tips(ctx: Context, month: str | None = None) -> str:
    """Rule-based tips for a month's plan (surplus, shortfall, 50/30/20)."""
    engine = _get_engine(ctx)
    return format_ai_tips(engine.generate_ai_tips(_month(month)))


@mcp.tool(
    name="budget_get_insights",
    annotations={
        "title": "Spending Insights",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_insights(ctx: Context, month: str | None = None) -> str:
    """Overspending alerts, warnings and savings for each pocket in a month."""
    engine = _get_engine(ctx)
    return format_budget_insights(engine.generate_budget_insights(_month(month)))


@mcp.tool(
    name="budget_export_month",
    annotations={
        "title": "Export Month as CSV",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_export_month(ctx: Context, month: str | None = None) -> str:
    """Export a month's planned amounts and totals as CSV."""
    engine = _get_engine(ctx)
    key = _month(month)
    return f"```csv\n{export_month_csv(engine, key)}```"


@mcp.tool(
    name="budget_export_pocket_balances",
    annotations={
        "title": "Export Pocket Balances as CSV",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_export_pocket_balances(ctx: Context, month: str | None = None) -> str:
    """Export every pocket's running balance up to a month as CSV."""
    engine = _get_engine(ctx)
    key = _month(month)
    return f"```csv\n{export_pocket_balances_csv(engine, key)}```"


@mcp.tool(
    name="budget_export_transactions",
    annotations={
        "title": "Export Transactions as CSV",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_export_transactions(ctx: Context, month: str | None = None) -> str:
    """Export a month's transactions as CSV."""
    engine = _get_engine(ctx)
    key = _month(month)
    return f"```csv\n{export_transactions_csv(engine, key)}```"


# --- Write Tools ---


@mcp.tool(
    name="budget_get_summary",
    annotations={
        "title": "Month Summary",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_get_summary(ctx: Context, month: str | None = None) -> str:
    """Summarize a month's planned amounts and totals; remembers it as the last opened month."""
    engine = _get_engine(ctx)
    key = _month(month)
    # Only a change of month is written back
    if engine.state.last_opened_month != key and engine.set_last_opened_month(key).success:
        engine.save()
    return format_month_summary(
        key, engine.budgets_by_month.get(key), engine.categories, engine.compute_totals(key),
    )


@mcp.tool(
    name="budget_upsert_category",
    annotations={
        "title": "Create or Edit Category",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_upsert_category(params: UpsertCategoryInput, ctx: Context) -> str:
    """Create a category, or edit the one named in `existing_name`."""
    engine = _get_engine(ctx)

    fields = params.model_dump(exclude={"existing_name", "is_influx"}, exclude_unset=True)
    fields["name"] = params.name
    if params.is_influx is not None:
        fields["is_influx"] = params.is_influx
    elif "type" in fields or not params.existing_name:
        fields["is_influx"] = params.type == CategoryType.INCOME

    if params.existing_name:
        existing = resolve_category(engine.categories, params.existing_name)
        fields["id"] = existing.id
        verb = "Updated"
    else:
        verb = "Created"

    result = engine.upsert_category(CategoryDraft(**fields))
    return _commit(engine, result, f"{verb} category **{params.name}**.")


@mcp.tool(
    name="budget_delete_categories",
    annotations={
        "title": "Delete Categories",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_delete_categories(names: list[str], ctx: Context) -> str:
    """Delete categories by name, with all their monthly amounts and transactions."""
    engine = _get_engine(ctx)
    matched = [resolve_category(engine.categories, n) for n in names]
    result = engine.delete_categories([c.id for c in matched])
    label = ", ".join(c.name for c in matched) or "nothing"
    return _commit(engine, result, f"Deleted {label}.")


@mcp.tool(
    name="budget_set_amount",
    annotations={
        "title": "Set Monthly Amount",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_set_amount(params: SetAmountInput, ctx: Context) -> str:
    """Set a category's amount for a month, optionally for all later budgeted months too."""
    engine = _get_engine(ctx)
    cat = resolve_category(engine.categories, params.category_name)
    key = _month(params.month)

    result = engine.update_category_amount(
        cat.id, params.amount, key,
        propagate_to_future=params.propagate_to_future, note=params.note,
    )
    scope = " and later months" if params.propagate_to_future else ""
    return _commit(
        engine, result, f"Set **{cat.name}** to ${params.amount:,.2f} for {key}{scope}.",
    )


@mcp.tool(
    name="budget_set_allocation_rules",
    annotations={
        "title": "Set Allocation Rules",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_set_allocation_rules(params: AllocationRulesInput, ctx: Context) -> str:
    """Record how an income category should be split across pockets."""
    engine = _get_engine(ctx)
    income = resolve_income(engine.categories, params.income_name)
    rules = [
        AllocationRule(
            target_category_id=resolve_pocket(engine.categories, r.target_name).id,
            mode=r.mode,
            value=r.value,
        )
        for r in params.rules
    ]
    result = engine.set_allocation_rules(income.id, rules)
    return _commit(engine, result, f"Saved {len(rules)} allocation rule(s) for **{income.name}**.")


@mcp.tool(
    name="budget_add_transaction",
    annotations={
        "title": "Add Transaction",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_add_transaction(params: AddTransactionInput, ctx: Context) -> str:
    """Log an expense or income against a pocket."""
    engine = _get_engine(ctx)
    pocket = resolve_pocket(engine.categories, params.pocket_name)
    key = _month(params.month)

    recurrence = None
    if params.recurring:
        recurrence = TransactionRecurrence(
            is_recurring=True,
            effective_from=key,
            frequency=params.frequency,
            duration=params.duration,
        )

    result = engine.add_transaction(TransactionDraft(
        month=key,
        pocket_category_id=pocket.id,
        type=params.type,
        amount=params.amount,
        note=params.note,
        recurrence=recurrence,
    ))
    return _commit(
        engine, result,
        f"Added {params.type.value} of ${params.amount:,.2f} to **{pocket.name}** "
        f"for {key} (`{result.id}`).",
    )


@mcp.tool(
    name="budget_update_transaction",
    annotations={
        "title": "Edit Transaction",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_update_transaction(params: UpdateTransactionInput, ctx: Context) -> str:
    """Edit a transaction's pocket, amount, type, month or note."""
    engine = _get_engine(ctx)

    changes: dict = params.model_dump(
        include={"amount", "type", "month", "note"}, exclude_none=True,
    )
    if params.pocket_name:
        changes["pocket_category_id"] = resolve_pocket(engine.categories, params.pocket_name).id

    result = engine.update_transaction(params.transaction_id, TransactionChanges(**changes))
    return _commit(engine, result, f"Updated transaction `{params.transaction_id}`.")


@mcp.tool(
    name="budget_delete_transaction",
    annotations={
        "title": "Delete Transaction",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_delete_transaction(transaction_id: str, ctx: Context) -> str:
    """Delete a transaction by id."""
    engine = _get_engine(ctx)
    found = engine.find_transaction(transaction_id)
    result = engine.delete_transaction(transaction_id)
    detail = f" ({found.type.value} of ${found.amount:,.2f} in {found.month})" if found else ""
    return _commit(engine, result, f"Deleted transaction `{transaction_id}`{detail}.")


# --- Entry point ---

if __name__ == "__main__":
    mcp.run()
