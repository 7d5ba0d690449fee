"""Rule-based tips and insights.

Pure functions of the current state; cheap enough to recompute after every
mutation.
"""

from pocket_budget.core.calculations import compute_totals
from pocket_budget.models.results import AiTip, BudgetInsight, InsightType, PocketSpend
from pocket_budget.models.schemas import BudgetState, MonthKey

SURPLUS_THRESHOLD = 150.0
SHORTFALL_THRESHOLD = -50.0
OVERSPEND_PCT = 100.0
WARNING_PCT = 80.0


def generate_ai_tips(state: BudgetState, month: MonthKey) -> list[AiTip]:
    """Surplus/shortfall tips for *month* plus the 50/30/20 hint.

    The surplus and shortfall checks only run when the month has a budget
    entry. The 50/30/20 hint appears whenever any income category exists.
    """
    tips: list[AiTip] = []

    if month in state.budgets_by_month:
        remaining = compute_totals(state, month).remaining
        if remaining > SURPLUS_THRESHOLD:
            tips.append(AiTip(
                id="surplus",
                title="AI Forecast: Surplus ahead",
                body=(
                    f"You may have about ${remaining:,.0f} left this month. "
                    "Allocate to Savings pocket?"
                ),
                cta="Allocate now",
            ))
        if remaining < SHORTFALL_THRESHOLD:
            tips.append(AiTip(
                id="shortfall",
                title="AI Suggestion: Adjust plan",
                body=(
                    "Spending may exceed income. "
                    "Consider reducing low-priority categories by 10%."
                ),
            ))

    if any(c.is_influx for c in state.categories):
        tips.append(AiTip(
            id="rule-503020",
            title="Try 50/30/20",
            body=(
                "Base rule: 50% needs, 30% wants, 20% savings. "
                "Want automatic suggestions in Categories?"
            ),
        ))
    return tips


def generate_budget_insights(
    pockets: list[PocketSpend],
    transaction_count: int,
) -> list[BudgetInsight]:
    """Spend-vs-budget insights for a set of pockets.

    Pockets with no budget are skipped for the ratio checks but still count
    towards total savings (budget minus spent).
    """
    insights: list[BudgetInsight] = []

    for p in pockets:
        pct = p.usage_pct
        if pct is None:
            continue
        if pct > OVERSPEND_PCT:
            insights.append(BudgetInsight(
                id=f"overspend-{p.pocket_id}",
                type=InsightType.WARNING,
                title="Overspending Alert",
                message=f"You've exceeded your {p.name} budget by {pct - 100:.1f}%.",
                action="Review spending",
            ))
        elif pct > WARNING_PCT:
            insights.append(BudgetInsight(
                id=f"warning-{p.pocket_id}",
                type=InsightType.INFO,
                title="Budget Warning",
                message=f"You've used {pct:.1f}% of your {p.name} budget.",
            ))

    total_savings = sum(p.budget for p in pockets) - sum(p.spent for p in pockets)
    if total_savings > 0:
        insights.append(BudgetInsight(
            id="savings",
            type=InsightType.SUCCESS,
            title="Great Job!",
            message=f"You've saved ${total_savings:,.2f} this month. Keep it up!",
        ))

    if transaction_count == 0:
        insights.append(BudgetInsight(
            id="get-started",
            type=InsightType.TIP,
            title="Get Started",
            message="Add your first transaction to start tracking your spending.",
            action="Add transaction",
        ))
    return insights
