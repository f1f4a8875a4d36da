"""Budget period calculation."""

import math
from datetime import date, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from ..core.models import BudgetPeriod, PeriodDates

SECONDS_PER_DAY = 24 * 60 * 60


def _as_datetime(now: date | datetime) -> datetime:
    if isinstance(now, datetime):
        return now.replace(tzinfo=None)
    return datetime.combine(now, time.min)


def _month_bounds(today: date) -> tuple[date, date]:
    start = today.replace(day=1)
    return start, start + relativedelta(months=1, days=-1)


def financial_year_start(today: date) -> int:
    """Calendar year in which the Australian financial year containing ``today`` starts."""
    return today.year if today.month >= 7 else today.year - 1


def calculate_period_dates(period: BudgetPeriod | str, now: date | datetime) -> PeriodDates:
    """Calculate the bounds of the budget period containing ``now``.

    Args:
        period: weekly, fortnightly, monthly, quarterly or yearly. Anything
            else is treated as monthly.
        now: Reference instant. Dates are treated as midnight.

    Returns:
        Inclusive start/end dates and whole days remaining (never negative)
    """
    current = _as_datetime(now)
    today = current.date()
    period_value = period.value if isinstance(period, BudgetPeriod) else str(period)

    if period_value == BudgetPeriod.WEEKLY.value:
        start_date = today - timedelta(days=today.weekday())
        end_date = start_date + timedelta(days=6)
    elif period_value == BudgetPeriod.FORTNIGHTLY.value:
        # Anchored to 1 January rather than a pay cycle
        year_start = date(today.year, 1, 1)
        weeks_elapsed = (today - year_start).days // 7
        start_date = year_start + timedelta(days=(weeks_elapsed // 2) * 14)
        end_date = start_date + timedelta(days=13)
    elif period_value == BudgetPeriod.QUARTERLY.value:
        quarter = (today.month - 1) // 3
        start_date = date(today.year, quarter * 3 + 1, 1)
        end_date = start_date + relativedelta(months=3, days=-1)
    elif period_value == BudgetPeriod.YEARLY.value:
        fy_year = financial_year_start(today)
        start_date = date(fy_year, 7, 1)
        end_date = date(fy_year + 1, 6, 30)
    else:
        start_date, end_date = _month_bounds(today)

    seconds_left = (datetime.combine(end_date, time.min) - current).total_seconds()
    days_remaining = max(0, math.ceil(seconds_left / SECONDS_PER_DAY))

    return PeriodDates(start_date=start_date, end_date=end_date, days_remaining=days_remaining)
