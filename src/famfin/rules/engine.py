"""Rule-based transaction categorisation.

Rules are evaluated in a fixed order: ``priority`` ascending, then creation
time, then id. The first active rule whose pattern matches the chosen
transaction field decides the category.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.database import TransactionORM, get_active_rules

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def _value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def get_field_value(transaction: Any, match_field: Any) -> str | None:
    """Return the transaction field a rule inspects, or None when it is empty."""
    field = _value(match_field)
    if field not in ("description", "payee", "reference"):
        return None
    value = getattr(transaction, field, None)
    return value or None


def matches_rule(rule: Any, transaction: Any, case_sensitive: bool = True) -> bool:
    """Check a single rule against a transaction."""
    field_value = get_field_value(transaction, rule.match_field)
    if field_value is None:
        return False

    pattern = rule.match_value
    if not case_sensitive:
        field_value = field_value.casefold()
        pattern = pattern.casefold()

    match_type = _value(rule.match_type)
    if match_type == "contains":
        return pattern in field_value
    if match_type == "starts_with":
        return field_value.startswith(pattern)
    if match_type == "ends_with":
        return field_value.endswith(pattern)
    if match_type == "exact":
        return field_value == pattern
    return False


def sort_rules(rules: Iterable[Any]) -> list[Any]:
    """Active rules in evaluation order."""
    active = [rule for rule in rules if rule.is_active]
    return sorted(
        active,
        key=lambda r: (r.priority or 0, r.created_at or datetime.min, r.id if r.id is not None else 0),
    )


def apply_rules(rules: Iterable[Any], transaction: Any, case_sensitive: bool = True) -> int | None:
    """Return the category id of the first matching rule, or None."""
    for rule in sort_rules(rules):
        if matches_rule(rule, transaction, case_sensitive):
            return rule.category_id
    return None


def categorise_transactions(
    session: Session,
    transaction_ids: list[int] | None = None,
    case_sensitive: bool = True,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Apply active rules to uncategorised transactions and persist the matches.

    Updates are grouped by category and written in batches. A batch that
    fails is rolled back, logged and skipped; batches already written stay
    written.

    Returns:
        Number of transactions categorised
    """
    rules = sort_rules(get_active_rules(session))
    if not rules:
        return 0

    query = session.query(TransactionORM).filter(TransactionORM.category_id.is_(None))
    if transaction_ids is not None:
        if not transaction_ids:
            return 0
        query = query.filter(TransactionORM.id.in_(transaction_ids))

    matched: dict[int, list[int]] = defaultdict(list)
    for txn in query.all():
        category_id = apply_rules(rules, txn, case_sensitive)
        if category_id is not None:
            matched[category_id].append(txn.id)

    categorised = 0
    for category_id, ids in matched.items():
        for start in range(0, len(ids), batch_size):
            batch = ids[start : start + batch_size]
            try:
                updated = (
                    session.query(TransactionORM)
                    .filter(TransactionORM.id.in_(batch))
                    .update({TransactionORM.category_id: category_id}, synchronize_session=False)
                )
                session.commit()
                categorised += updated
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Failed to categorise batch of %d transactions: %s", len(batch), e)

    if categorised:
        logger.info("Categorised %d transactions using %d rules", categorised, len(rules))
    return categorised
