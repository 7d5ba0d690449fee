"""Pydantic models for budget state and tool inputs."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# "YYYY-MM", zero-padded so string order == chronological order
MonthKey = str

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# --- Enums ---

class CategoryType(str, Enum):
    INCOME = "income"
    BANK = "bank"
    EXTRA = "extra"
    OTHER = "other"


class RecurrenceTiming(str, Enum):
    LAST_WORKING_DAY = "lastWorkingDay"
    CUSTOM_DATE = "customDate"


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class RecurrenceFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class AllocationMode(str, Enum):
    PERCENT = "percent"
    AMOUNT = "amount"


# --- State Models ---
#
# Attributes are snake_case; the persisted blob uses camelCase keys.
# Dump with ``by_alias=True`` to get the stored shape back.

class _StateModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RecurrenceRule(_StateModel):
    is_recurring: bool = True
    effective_from: Optional[MonthKey] = None  # inclusive
    timing: Optional[RecurrenceTiming] = None
    custom_day_of_month: Optional[int] = None  # only with CUSTOM_DATE


class Category(_StateModel):
    id: str
    name: str
    type: CategoryType
    color: str = "#64748b"
    default_amount: float = 0.0  # magnitude; sign comes from is_influx
    is_influx: bool
    recurrence: RecurrenceRule = Field(default_factory=RecurrenceRule)
    notes: Optional[str] = None


class CategoryAmountOverride(_StateModel):
    category_id: str
    amount: float  # magnitude
    note: Optional[str] = None
    applied_to_future: Optional[bool] = None


class BudgetMonth(_StateModel):
    month: MonthKey
    overrides: list[CategoryAmountOverride] = []

    def find_override(self, category_id: str) -> Optional[CategoryAmountOverride]:
        for o in self.overrides:
            if o.category_id == category_id:
                return o
        return None


class AllocationRule(_StateModel):
    target_category_id: str
    mode: AllocationMode
    value: float  # 0-100 for PERCENT, currency for AMOUNT


class TransactionRecurrence(_StateModel):
    is_recurring: bool = False
    effective_from: Optional[MonthKey] = None  # defaults to the transaction month
    frequency: Optional[RecurrenceFrequency] = None  # defaults to MONTHLY
    duration: Optional[int] = None  # months; None means open-ended


class Transaction(_StateModel):
    id: str
    month: MonthKey
    pocket_category_id: str
    type: TransactionType
    amount: float  # magnitude
    note: Optional[str] = None
    recurrence: Optional[TransactionRecurrence] = None

    @property
    def signed_amount(self) -> float:
        return -self.amount if self.type == TransactionType.EXPENSE else self.amount


class BudgetState(_StateModel):
    categories: list[Category] = []
    budgets_by_month: dict[MonthKey, BudgetMonth] = {}
    last_opened_month: Optional[MonthKey] = None
    allocation_rules: dict[str, list[AllocationRule]] = {}  # key: income category id
    transactions_by_month: dict[MonthKey, list[Transaction]] = {}

    def category_map(self) -> dict[str, Category]:
        return {c.id: c for c in self.categories}


# --- Engine Input Models ---


class CategoryDraft(BaseModel):
    """Category fields supplied by a caller.

    When ``id`` matches an existing category only the fields the caller
    explicitly set are merged into it. Otherwise a new category is created.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    name: str = ""
    type: CategoryType = CategoryType.OTHER
    color: str = "#64748b"
    default_amount: float = 0.0
    is_influx: bool = False
    recurrence: RecurrenceRule = Field(default_factory=RecurrenceRule)
    notes: Optional[str] = None


class TransactionDraft(BaseModel):
    """A new transaction before it has an id."""
    model_config = ConfigDict(str_strip_whitespace=True)

    month: MonthKey
    pocket_category_id: str
    type: TransactionType = TransactionType.EXPENSE
    amount: float
    note: Optional[str] = None
    recurrence: Optional[TransactionRecurrence] = None


class TransactionChanges(BaseModel):
    """Partial update for an existing transaction; unset fields are kept."""
    model_config = ConfigDict(str_strip_whitespace=True)

    month: Optional[MonthKey] = None
    pocket_category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    amount: Optional[float] = None
    note: Optional[str] = None
    recurrence: Optional[TransactionRecurrence] = None


# --- MCP Tool Input Models ---


class UpsertCategoryInput(BaseModel):
    """Input for creating or editing a category."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., description="Category name", min_length=1, max_length=100)
    type: CategoryType = Field(
        default=CategoryType.OTHER, description="income, bank, extra or other"
    )
    default_amount: float = Field(
        default=0.0, description="Default monthly amount in dollars", ge=0
    )
    is_influx: Optional[bool] = Field(
        None, description="True for income-like categories. Defaults to type == income."
    )
    color: str = Field(default="#64748b", description="Display color (hex)")
    notes: Optional[str] = Field(None, description="Free-text notes", max_length=500)
    existing_name: Optional[str] = Field(
        None, description="Name of an existing category to edit instead of creating one"
    )


class SetAmountInput(BaseModel):
    """Input for overriding a category amount in one month."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    category_name: str = Field(..., description="Category name (partial match)")
    amount: float = Field(..., description="Dollar amount for the month", ge=0)
    month: Optional[MonthKey] = Field(
        None, description="Month (YYYY-MM). Defaults to current month.", pattern=MONTH_KEY_PATTERN
    )
    propagate_to_future: bool = Field(
        default=False,
        description="Also apply to every later month that already has a budget",
    )
    note: Optional[str] = Field(None, description="Optional note", max_length=200)


class AddTransactionInput(BaseModel):
    """Input for logging a transaction against a pocket."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    pocket_name: str = Field(..., description="Pocket (non-income category) name")
    amount: float = Field(..., description="Dollar amount", ge=0)
    type: TransactionType = Field(
        default=TransactionType.EXPENSE, description="expense reduces, income increases"
    )
    month: Optional[MonthKey] = Field(
        None, description="Allocation month (YYYY-MM). Defaults to current month.",
        pattern=MONTH_KEY_PATTERN,
    )
    note: Optional[str] = Field(None, description="Optional note", max_length=200)
    recurring: bool = Field(default=False, description="Whether this transaction repeats")
    frequency: Optional[RecurrenceFrequency] = Field(
        None, description="monthly, quarterly or yearly (recurring only)"
    )
    duration: Optional[int] = Field(
        None, description="Number of months to repeat (recurring only)", ge=1, le=600
    )


class UpdateTransactionInput(BaseModel):
    """Input for editing a transaction by id."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    transaction_id: str = Field(..., description="Transaction id (tx-...)")
    pocket_name: Optional[str] = Field(None, description="Move to another pocket")
    amount: Optional[float] = Field(None, description="New dollar amount", ge=0)
    type: Optional[TransactionType] = Field(None, description="expense or income")
    month: Optional[MonthKey] = Field(
        None, description="Move to another month (YYYY-MM)", pattern=MONTH_KEY_PATTERN
    )
    note: Optional[str] = Field(None, description="New note", max_length=200)

    @model_validator(mode="after")
    def _require_change(self):
        if all(
            v is None
            for v in (self.pocket_name, self.amount, self.type, self.month, self.note)
        ):
            raise ValueError("At least one field to update must be provided")
        return self


class ProjectionInput(BaseModel):
    """Input for the six-month projection."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    start_month: Optional[MonthKey] = Field(
        None, description="First projected month (YYYY-MM). Defaults to current month.",
        pattern=MONTH_KEY_PATTERN,
    )
    what_if_delta: float = Field(
        default=0.0, description="One-time dollar change applied to the first month only"
    )


class AllocationRuleInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    target_name: str = Field(..., description="Pocket receiving the allocation")
    mode: AllocationMode = Field(..., description="percent or amount")
    value: float = Field(..., description="Percent (0-100) or dollar amount", ge=0)

    @model_validator(mode="after")
    def _check_percent(self):
        if self.mode == AllocationMode.PERCENT and self.value > 100:
            raise ValueError("Percent allocations must be between 0 and 100")
        return self


class AllocationRulesInput(BaseModel):
    """Input for replacing the allocation rules of an income category."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    income_name: str = Field(..., description="Income category name")
    rules: list[AllocationRuleInput] = Field(
        default_factory=list, description="Rules; an empty list clears them"
    )
