"""Chart aggregation: spending by category (with parent/child roll-up) and by payee."""

from collections.abc import Iterable
from typing import Any

from ..core.categories import UNCATEGORISED, split_category_name
from ..core.models import ChartChild, ChartGroup

DEFAULT_TOP_N = 8
UNKNOWN_PAYEE = "Unknown"


def _value(value: Any) -> str | None:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def is_chart_expense(transaction: Any) -> bool:
    """Charts only show expenses, and never transfers."""
    if _value(transaction.transaction_type) != "expense":
        return False
    category = getattr(transaction, "category", None)
    return category is None or _value(category.category_type) != "transfer"


def payee_key(transaction: Any) -> str:
    """Grouping key for payee charts: payee, else description, else "Unknown"."""
    return getattr(transaction, "payee", None) or getattr(transaction, "description", None) or UNKNOWN_PAYEE


def category_totals(transactions: Iterable[Any]) -> list[tuple[str, float, int]]:
    """Sum chartable expenses per category display name."""
    totals: dict[str, list[float]] = {}
    for txn in transactions:
        if not is_chart_expense(txn):
            continue
        category = getattr(txn, "category", None)
        entry = totals.setdefault(category.name if category is not None else UNCATEGORISED, [0.0, 0])
        entry[0] += abs(txn.amount)
        entry[1] += 1
    return [(name, amount, int(count)) for name, (amount, count) in totals.items()]


def apply_percentages(groups: list[ChartGroup]) -> list[ChartGroup]:
    """Fill proportional-bar percentages relative to the groups given."""
    max_amount = max((g.amount for g in groups), default=0.0)
    total = sum(g.amount for g in groups)
    for group in groups:
        group.percent_of_max = (group.amount / max_amount) * 100 if max_amount > 0 else 0.0
        group.percent_of_total = (group.amount / total) * 100 if total > 0 else 0.0
    return groups


def group_by_category(items: Iterable[tuple], top_n: int | None = DEFAULT_TOP_N) -> list[ChartGroup]:
    """Roll category amounts up to their parent and rank the groups.

    Args:
        items: ``(display_name, amount)`` or ``(display_name, amount, count)``
        top_n: Number of groups to keep, or None to keep all

    Returns:
        Groups sorted by amount descending, each with its children sorted
        the same way
    """
    groups: dict[str, ChartGroup] = {}

    for item in items:
        name, amount = item[0], item[1]
        count = item[2] if len(item) > 2 else 0
        parent, child = split_category_name(name)

        group = groups.setdefault(parent, ChartGroup(name=parent, amount=0.0))
        group.amount += amount
        group.count += count

        if child is not None:
            group.children.append(ChartChild(name=child, full_name=name, amount=amount, count=count))
            group.has_children = True

    ranked = sorted(groups.values(), key=lambda g: g.amount, reverse=True)
    for group in ranked:
        group.children.sort(key=lambda c: c.amount, reverse=True)

    if top_n is not None:
        ranked = ranked[:top_n]
    return apply_percentages(ranked)


def category_groups_from_transactions(
    transactions: Iterable[Any], top_n: int | None = DEFAULT_TOP_N
) -> list[ChartGroup]:
    return group_by_category(category_totals(transactions), top_n)


def payee_groups(items: Iterable[tuple], top_n: int | None = DEFAULT_TOP_N) -> list[ChartGroup]:
    """Rank ``(payee, amount, count)`` totals, largest first."""
    groups: dict[str, ChartGroup] = {}
    for name, amount, count in items:
        group = groups.setdefault(name, ChartGroup(name=name, amount=0.0))
        group.amount += amount
        group.count += count

    ranked = sorted(groups.values(), key=lambda g: g.amount, reverse=True)
    if top_n is not None:
        ranked = ranked[:top_n]
    return apply_percentages(ranked)


def group_by_payee(transactions: Iterable[Any], top_n: int | None = DEFAULT_TOP_N) -> list[ChartGroup]:
    """Rank chartable expenses by payee."""
    return payee_groups(
        ((payee_key(txn), abs(txn.amount), 1) for txn in transactions if is_chart_expense(txn)), top_n
    )
