"""Core data models for FamFin."""

import hashlib
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    """Direction of a transaction's monetary effect."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class CategoryType(str, Enum):
    """Category types for transactions."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class MatchField(str, Enum):
    DESCRIPTION = "description"
    PAYEE = "payee"
    REFERENCE = "reference"


class MatchType(str, Enum):
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EXACT = "exact"


class BudgetPeriod(str, Enum):
    """Recurring window over which a budget cap is evaluated."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationType(str, Enum):
    BUDGET_ALERT = "budget_alert"
    FEE_REMINDER = "fee_reminder"
    GENERAL = "general"


class Transaction(BaseModel):
    """Transaction as seen by the computation units."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    account_id: int | None = None
    category_id: int | None = None
    date: date
    description: str
    amount: float = Field(ge=0.0)
    transaction_type: TransactionType
    payee: str | None = None
    reference: str | None = None
    notes: str | None = None


class CategorisationRule(BaseModel):
    """Rule that assigns ``category_id`` when ``match_value`` matches ``match_field``."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    category_id: int
    match_field: MatchField
    match_type: MatchType
    match_value: str = Field(..., min_length=1)
    is_active: bool = True
    priority: int = 0
    created_at: datetime | None = None


class Budget(BaseModel):
    """Spending cap for one category (or all expenses) over a recurring period."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    name: str
    category_id: int | None = None
    amount: float = Field(ge=0.0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    alert_threshold: float | None = 80.0
    alert_enabled: bool = True
    is_active: bool = True


class PeriodDates(BaseModel):
    """Bounds of the budget period containing a reference instant."""

    start_date: date
    end_date: date
    days_remaining: int = Field(ge=0)


class BudgetProgress(BaseModel):
    """Derived spending state of a budget for its current period."""

    budget: Budget
    spent: float
    remaining: float
    overspent: float
    percentage: float
    is_over_budget: bool
    is_approaching_limit: bool
    days_remaining: int
    daily_allowance: float
    period_start: date
    period_end: date
    transactions: list[Transaction] = Field(default_factory=list)


class BudgetSummary(BaseModel):
    """Portfolio totals across all active budgets."""

    total_budgeted: float = 0.0
    total_spent: float = 0.0
    total_remaining: float = 0.0
    budgets: list[BudgetProgress] = Field(default_factory=list)
    over_budget_count: int = 0
    approaching_limit_count: int = 0


class CSVTransaction(BaseModel):
    """Normalised row from a bank CSV. ``amount`` is signed."""

    date: date
    description: str
    amount: float
    payee: str | None = None
    category: str | None = None

    def generate_hash(self, account_id: int) -> str:
        """Generate deterministic hash for de-duplication across imports."""
        key = f"{account_id}|{self.date}|{self.amount:.2f}|{self.description}"
        return hashlib.sha256(key.encode()).hexdigest()[:16]


class ImportResult(BaseModel):
    import_id: str
    imported: int = 0
    duplicates_skipped: int = 0
    categorised: int = 0


class MutationResult(BaseModel):
    """Outcome of a write against the store."""

    success: bool
    error: str | None = None
    count: int = 0
    id: int | None = None


class ChartChild(BaseModel):
    name: str
    full_name: str
    amount: float
    count: int = 0


class ChartGroup(BaseModel):
    """One bar of a ranked chart, with proportional-bar percentages."""

    name: str
    amount: float
    count: int = 0
    children: list[ChartChild] = Field(default_factory=list)
    has_children: bool = False
    percent_of_max: float = 0.0
    percent_of_total: float = 0.0


class CategoryNode(BaseModel):
    """Category hierarchy node built from the ``Parent:Child`` naming convention."""

    name: str
    full_name: str
    category_id: int | None = None
    category_type: str | None = None
    children: list["CategoryNode"] = Field(default_factory=list)


class FeeStatus(str, Enum):
    PAID = "paid"
    UPCOMING = "upcoming"
    DUE = "due"
    OVERDUE = "overdue"
    NO_DATE = "no-date"

