"""Result dataclasses for budget calculator outputs.

These are internal types consumed by formatters and the export module;
lightweight dataclasses rather than Pydantic models since they don't need
validation.
"""

from dataclasses import dataclass, field
from enum import Enum


# pocket category id -> balance in dollars
PocketBalances = dict[str, float]


@dataclass
class Totals:
    """Income/outflow totals for a single month."""
    total_income: float = 0.0
    total_outflow: float = 0.0
    remaining: float = 0.0  # income - outflow


@dataclass
class ProjectionPoint:
    month: str       # "YYYY-MM"
    remaining: float


@dataclass
class AiTip:
    """A rule-based tip about the month's plan."""
    id: str
    title: str
    body: str
    cta: str | None = None


class InsightType(str, Enum):
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"
    TIP = "tip"


@dataclass
class BudgetInsight:
    """A heuristic insight about pocket spending."""
    id: str
    type: InsightType
    title: str
    message: str
    action: str | None = None


@dataclass
class PocketSpend:
    """Budget vs. actual spending for one pocket in one month."""
    pocket_id: str
    name: str
    budget: float  # dollars planned
    spent: float   # dollars of expense transactions

    @property
    def usage_pct(self) -> float | None:
        if self.budget <= 0:
            return None
        return self.spent / self.budget * 100


@dataclass
class MutationResult:
    """Outcome of an engine mutation. Never raised, always returned."""
    success: bool
    error: str | None = None
    id: str | None = None  # id of the created/affected record, when there is one
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, id: str | None = None) -> "MutationResult":
        return cls(success=True, id=id)

    @classmethod
    def fail(cls, error: str) -> "MutationResult":
        return cls(success=False, error=error)
