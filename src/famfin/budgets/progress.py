"""Budget progress and portfolio summary aggregation."""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from ..core.models import Budget, BudgetProgress, BudgetSummary, Transaction, TransactionType
from .periods import calculate_period_dates

DEFAULT_ALERT_THRESHOLD = 80.0


def _type_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def transactions_in_period(
    budget: Budget, transactions: Iterable[Any], start_date: date, end_date: date
) -> list[Transaction]:
    """Select the expense transactions that count against a budget."""
    selected = []
    for txn in transactions:
        if _type_value(txn.transaction_type) != TransactionType.EXPENSE.value:
            continue
        if budget.category_id is not None and txn.category_id != budget.category_id:
            continue
        if not start_date <= txn.date <= end_date:
            continue
        selected.append(Transaction.model_validate(txn))
    return selected


def compute_progress(
    budget: Budget | Any,
    transactions: Iterable[Any],
    now: date | datetime,
    default_threshold: float = DEFAULT_ALERT_THRESHOLD,
) -> BudgetProgress:
    """Compute spending progress for one budget over its current period.

    Args:
        budget: Budget (pydantic model or ORM row)
        transactions: Candidate transactions; filtering by type, category
            and period happens here so callers may pass a superset.
        now: Reference instant used to locate the period
        default_threshold: Threshold used when the budget has none set

    Returns:
        BudgetProgress for the period containing ``now``
    """
    if not isinstance(budget, Budget):
        budget = Budget.model_validate(budget)

    period = calculate_period_dates(budget.period, now)
    in_period = transactions_in_period(budget, transactions, period.start_date, period.end_date)

    spent = sum(abs(txn.amount) for txn in in_period)
    remaining = max(0.0, budget.amount - spent)
    overspent = max(0.0, spent - budget.amount)
    percentage = (spent / budget.amount) * 100 if budget.amount > 0 else 0.0

    # An unset or zero threshold means the default
    threshold = budget.alert_threshold or default_threshold
    daily_allowance = remaining / period.days_remaining if period.days_remaining > 0 else 0.0

    return BudgetProgress(
        budget=budget,
        spent=spent,
        remaining=remaining,
        overspent=overspent,
        percentage=percentage,
        is_over_budget=spent > budget.amount,
        is_approaching_limit=threshold <= percentage < 100,
        days_remaining=period.days_remaining,
        daily_allowance=daily_allowance,
        period_start=period.start_date,
        period_end=period.end_date,
        transactions=in_period,
    )


def summarize(progress_items: Iterable[BudgetProgress | None]) -> BudgetSummary:
    """Reduce per-budget progress into portfolio totals.

    ``None`` entries stand for budgets whose progress could not be computed
    and are left out of every total.
    """
    budgets = [p for p in progress_items if p is not None]

    total_budgeted = sum(p.budget.amount for p in budgets)
    total_spent = sum(p.spent for p in budgets)

    return BudgetSummary(
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        total_remaining=max(0.0, total_budgeted - total_spent),
        budgets=budgets,
        over_budget_count=sum(1 for p in budgets if p.is_over_budget),
        approaching_limit_count=sum(1 for p in budgets if p.is_approaching_limit),
    )
