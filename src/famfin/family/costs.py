"""Family member age, school fee and activity cost helpers."""

from collections.abc import Iterable
from datetime import date
from typing import Any

from ..core.models import FeeStatus

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
FEE_DUE_SOON_DAYS = 7

# Age in years -> Australian school year level
_YEAR_LEVELS = {5: "Prep", **{age: f"Year {age - 5}" for age in range(6, 18)}}
YEAR_LEVEL_ORDER = ["Prep", *(f"Year {n}" for n in range(1, 13))]


def calculate_age(date_of_birth: date | None, today: date) -> int | None:
    """Whole years between ``date_of_birth`` and ``today``."""
    if date_of_birth is None:
        return None
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def estimate_year_level(date_of_birth: date | None, today: date) -> str | None:
    """Approximate school year level from age, None outside school age."""
    age = calculate_age(date_of_birth, today)
    if age is None:
        return None
    return _YEAR_LEVELS.get(age)


def calculate_annual_cost(amount: float | None, per_year_multiplier: float | None) -> float:
    """Annualise a recurring amount. Without a multiplier the amount is charged once."""
    if not amount or amount <= 0:
        return 0.0
    if not per_year_multiplier:
        return amount
    return amount * per_year_multiplier


def activity_annual_cost(activity: Any, per_year_multiplier: float | None = None) -> float:
    """Recurring cost plus registration, equipment, uniform and other one-off costs."""
    if per_year_multiplier is None:
        frequency = getattr(activity, "cost_frequency", None)
        per_year_multiplier = frequency.per_year_multiplier if frequency is not None else None

    recurring = calculate_annual_cost(activity.cost_amount, per_year_multiplier)
    one_off = sum(
        getattr(activity, name, None) or 0.0
        for name in ("registration_fee", "equipment_cost", "uniform_cost", "other_costs")
    )
    return recurring + one_off


def total_activities_cost(activities: Iterable[Any]) -> float:
    return sum(activity_annual_cost(activity) for activity in activities)


def fee_status(due_date: date | None, is_paid: bool, today: date) -> FeeStatus:
    if is_paid:
        return FeeStatus.PAID
    if due_date is None:
        return FeeStatus.NO_DATE

    days_until_due = (due_date - today).days
    if days_until_due < 0:
        return FeeStatus.OVERDUE
    if days_until_due <= FEE_DUE_SOON_DAYS:
        return FeeStatus.DUE
    return FeeStatus.UPCOMING


def group_activities_by_day(activities: Iterable[Any]) -> dict[str, list[Any]]:
    """Bucket activities under each weekday they run on. Unknown day names are ignored."""
    grouped: dict[str, list[Any]] = {day: [] for day in DAYS_OF_WEEK}
    for activity in activities:
        for day in activity.days_of_week or []:
            if day in grouped:
                grouped[day].append(activity)
    return grouped


def get_current_term(terms: Iterable[Any], today: date) -> Any | None:
    """The term whose start and end dates include ``today``."""
    for term in terms:
        if term.start_date <= today <= term.end_date:
            return term
    return None


def get_next_term(terms: Iterable[Any], today: date) -> Any | None:
    """Earliest term starting after ``today``."""
    upcoming = [term for term in terms if term.start_date > today]
    return min(upcoming, key=lambda term: term.start_date, default=None)


def days_until_fees_due(term: Any, today: date) -> int | None:
    """Days until the term's fees fall due; negative once the date has passed."""
    if term.fees_due_date is None:
        return None
    return (term.fees_due_date - today).days


def next_year_level(year_level: str | None) -> str | None:
    """Year level following ``year_level``. None after Year 12 or for unknown levels."""
    if year_level not in YEAR_LEVEL_ORDER:
        return None
    index = YEAR_LEVEL_ORDER.index(year_level)
    if index == len(YEAR_LEVEL_ORDER) - 1:
        return None
    return YEAR_LEVEL_ORDER[index + 1]
