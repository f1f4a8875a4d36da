"""Service layer for database operations."""

import logging
import math
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from api.models import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BudgetCreate,
    BudgetResponse,
    BudgetUpdate,
    CategoryCreate,
    CategoryResponse,
    ChartSummaryResponse,
    NotificationCreate,
    NotificationResponse,
    RuleCreate,
    RuleResponse,
    RuleUpdate,
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
    TransactionSummaryResponse,
    TransactionUpdate,
)
from src.famfin.analytics.charts import (
    UNKNOWN_PAYEE,
    group_by_category,
    is_chart_expense,
    payee_groups,
    payee_key,
)
from src.famfin.budgets.periods import calculate_period_dates
from src.famfin.budgets.progress import DEFAULT_ALERT_THRESHOLD, compute_progress, summarize
from src.famfin.core.categories import UNCATEGORISED, build_category_tree, category_matches_group
from src.famfin.core.config import AppConfig
from src.famfin.core.database import (
    DEFAULT_CATEGORIES,
    AccountORM,
    BudgetORM,
    CategorisationRuleORM,
    CategoryORM,
    NotificationORM,
    TransactionORM,
    get_active_budgets,
)
from src.famfin.core.database import get_categories as db_get_categories
from src.famfin.core.models import (
    Budget,
    BudgetProgress,
    BudgetSummary,
    CategoryNode,
    CategoryType,
    ChartGroup,
    MutationResult,
    NotificationPriority,
    NotificationType,
    TransactionType,
)
from src.famfin.rules.engine import categorise_transactions, sort_rules

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date": TransactionORM.date,
    "amount": TransactionORM.amount,
    "description": TransactionORM.description,
    "payee": TransactionORM.payee,
}


def _failed(session: Session, action: str, error: SQLAlchemyError) -> MutationResult:
    session.rollback()
    logger.error("Failed to %s: %s", action, error)
    return MutationResult(success=False, error=str(error))


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def apply_transaction_filters(
    query: Query,
    account_id: int | None = None,
    category_id: str | None = None,
    transaction_type: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    min_amount: float | None = None,
    max_amount: float | None = None,
) -> Query:
    """Apply the shared transaction list filters.

    ``category_id`` is a category id or the literal ``uncategorised``.
    """
    if account_id is not None:
        query = query.filter(TransactionORM.account_id == account_id)
    if category_id:
        if category_id == "uncategorised":
            query = query.filter(TransactionORM.category_id.is_(None))
        else:
            query = query.filter(TransactionORM.category_id == int(category_id))
    if transaction_type:
        query = query.filter(TransactionORM.transaction_type == _enum_value(transaction_type))
    if date_from:
        query = query.filter(TransactionORM.date >= date_from)
    if date_to:
        query = query.filter(TransactionORM.date <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(TransactionORM.description.ilike(pattern), TransactionORM.payee.ilike(pattern)))
    if min_amount is not None:
        query = query.filter(TransactionORM.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(TransactionORM.amount <= max_amount)
    return query


class TransactionService:
    """Service for transaction operations."""

    @staticmethod
    def to_response(t: TransactionORM) -> TransactionResponse:
        return TransactionResponse(
            id=t.id,
            account_id=t.account_id,
            account_name=t.account.name if t.account else None,
            category_id=t.category_id,
            category_name=t.category.name if t.category else None,
            date=t.date,
            description=t.description,
            amount=t.amount,
            transaction_type=t.transaction_type,
            payee=t.payee,
            reference=t.reference,
            notes=t.notes,
            import_id=t.import_id,
            created_at=t.created_at,
            updated_at=t.updated_at,
        )

    @staticmethod
    def get_transactions(
        session: Session,
        page: int = 1,
        page_size: int = 50,
        sort_by: str = "date",
        sort_order: str = "desc",
        **filters: Any,
    ) -> TransactionPage:
        """Get a filtered, sorted page of transactions."""
        query = session.query(TransactionORM).options(
            joinedload(TransactionORM.category), joinedload(TransactionORM.account)
        )
        query = apply_transaction_filters(query, **filters)

        total = query.count()

        sort_column = SORT_COLUMNS.get(sort_by, TransactionORM.date)
        if sort_order == "asc":
            query = query.order_by(sort_column.asc(), TransactionORM.id.asc())
        else:
            query = query.order_by(sort_column.desc(), TransactionORM.id.desc())

        transactions = query.offset((page - 1) * page_size).limit(page_size).all()

        return TransactionPage(
            transactions=[TransactionService.to_response(t) for t in transactions],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
        )

    @staticmethod
    def get_transaction(session: Session, transaction_id: int) -> TransactionResponse | None:
        transaction = (
            session.query(TransactionORM)
            .options(joinedload(TransactionORM.category), joinedload(TransactionORM.account))
            .filter(TransactionORM.id == transaction_id)
            .first()
        )
        if not transaction:
            return None
        return TransactionService.to_response(transaction)

    @staticmethod
    def create_transaction(session: Session, data: TransactionCreate) -> MutationResult:
        """Create a transaction. The returned result carries the new id."""
        if not session.get(AccountORM, data.account_id):
            return MutationResult(success=False, error="Account not found")

        try:
            transaction = TransactionORM(
                account_id=data.account_id,
                category_id=data.category_id,
                date=data.date,
                description=data.description,
                amount=data.amount,
                transaction_type=data.transaction_type.value,
                payee=data.payee,
                reference=data.reference,
                notes=data.notes,
            )
            session.add(transaction)
            session.commit()
            return MutationResult(success=True, count=1, id=transaction.id)
        except SQLAlchemyError as e:
            return _failed(session, "create transaction", e)

    @staticmethod
    def update_transaction(session: Session, transaction_id: int, update: TransactionUpdate) -> MutationResult | None:
        """Apply the fields set on ``update``. Returns None when the transaction does not exist."""
        transaction = session.get(TransactionORM, transaction_id)
        if not transaction:
            return None

        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(transaction, field, _enum_value(value))
            session.commit()
            return MutationResult(success=True, count=1, id=transaction_id)
        except SQLAlchemyError as e:
            return _failed(session, "update transaction", e)

    @staticmethod
    def delete_transaction(session: Session, transaction_id: int) -> MutationResult | None:
        transaction = session.get(TransactionORM, transaction_id)
        if not transaction:
            return None

        try:
            session.delete(transaction)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete transaction", e)

    @staticmethod
    def delete_transactions(session: Session, transaction_ids: list[int]) -> MutationResult:
        """Delete many transactions in one statement."""
        try:
            deleted = (
                session.query(TransactionORM)
                .filter(TransactionORM.id.in_(transaction_ids))
                .delete(synchronize_session=False)
            )
            session.commit()
            return MutationResult(success=True, count=deleted)
        except SQLAlchemyError as e:
            return _failed(session, "delete transactions", e)

    @staticmethod
    def _bulk_update(session: Session, transaction_ids: list[int], values: dict, action: str) -> MutationResult:
        try:
            updated = (
                session.query(TransactionORM)
                .filter(TransactionORM.id.in_(transaction_ids))
                .update(values, synchronize_session=False)
            )
            session.commit()
            return MutationResult(success=True, count=updated)
        except SQLAlchemyError as e:
            return _failed(session, action, e)

    @staticmethod
    def update_transactions_category(
        session: Session, transaction_ids: list[int], category_id: int | None
    ) -> MutationResult:
        if category_id is not None and not session.get(CategoryORM, category_id):
            return MutationResult(success=False, error="Category not found")
        return TransactionService._bulk_update(
            session, transaction_ids, {TransactionORM.category_id: category_id}, "update transaction categories"
        )

    @staticmethod
    def update_transactions_payee(session: Session, transaction_ids: list[int], payee: str | None) -> MutationResult:
        return TransactionService._bulk_update(
            session, transaction_ids, {TransactionORM.payee: payee or None}, "update transaction payees"
        )

    @staticmethod
    def update_transactions_description(
        session: Session, transaction_ids: list[int], description: str
    ) -> MutationResult:
        return TransactionService._bulk_update(
            session, transaction_ids, {TransactionORM.description: description}, "update transaction descriptions"
        )

    @staticmethod
    def get_summary(
        session: Session, date_from: date | None = None, date_to: date | None = None
    ) -> TransactionSummaryResponse:
        """Income, expense and net cash flow over an optional date range."""
        query = session.query(
            TransactionORM.transaction_type, func.sum(TransactionORM.amount), func.count(TransactionORM.id)
        )
        query = apply_transaction_filters(query, date_from=date_from, date_to=date_to)
        totals = {row[0]: (row[1] or 0.0, row[2]) for row in query.group_by(TransactionORM.transaction_type).all()}

        total_income = totals.get(TransactionType.INCOME.value, (0.0, 0))[0]
        total_expenses = totals.get(TransactionType.EXPENSE.value, (0.0, 0))[0]

        return TransactionSummaryResponse(
            total_income=total_income,
            total_expenses=total_expenses,
            net_cash_flow=total_income - total_expenses,
            transaction_count=sum(count for _, count in totals.values()),
        )


class CategoryService:
    """Service for category operations."""

    @staticmethod
    def get_categories(session: Session, category_type: str | None = None) -> list[CategoryResponse]:
        """Get all categories ordered by name."""
        return [CategoryResponse.model_validate(cat) for cat in db_get_categories(session, category_type)]

    @staticmethod
    def get_category(session: Session, category_id: int) -> CategoryResponse | None:
        category = session.get(CategoryORM, category_id)
        return CategoryResponse.model_validate(category) if category else None

    @staticmethod
    def get_category_tree(session: Session) -> list[CategoryNode]:
        return build_category_tree(db_get_categories(session))

    @staticmethod
    def get_category_map(session: Session) -> dict[str, int]:
        """Category name to id, used to resolve names from imported files."""
        return {cat.name: cat.id for cat in session.query(CategoryORM).all()}

    @staticmethod
    def create_category(session: Session, category: CategoryCreate) -> MutationResult:
        """Create a new category."""
        try:
            db_category = CategoryORM(name=category.name.strip(), category_type=category.category_type.value)
            session.add(db_category)
            session.commit()
            return MutationResult(success=True, count=1, id=db_category.id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error=f"Category '{category.name}' already exists")
        except SQLAlchemyError as e:
            return _failed(session, "create category", e)

    @staticmethod
    def create_categories(session: Session, categories: list[CategoryCreate]) -> dict[str, Any]:
        """Create categories in order, stopping at the first failure.

        Returns:
            ``{success, created: {name: id}, error?}``; categories created
            before a failure stay created.
        """
        created: dict[str, int] = {}
        for category in categories:
            result = CategoryService.create_category(session, category)
            if not result.success:
                return {"success": False, "created": created, "error": result.error}
            created[category.name.strip()] = result.id
        return {"success": True, "created": created}

    @staticmethod
    def create_default_categories(session: Session) -> int:
        """Add any missing default categories. Returns the number created."""
        existing = {name for (name,) in session.query(CategoryORM.name).all()}
        missing = [(name, kind) for name, kind in DEFAULT_CATEGORIES if name not in existing]
        for name, category_type in missing:
            session.add(CategoryORM(name=name, category_type=category_type, is_system=True))
        session.commit()
        if missing:
            logger.info("Created %d default categories", len(missing))
        return len(missing)


class AccountService:
    """Service for account operations."""

    @staticmethod
    def get_accounts(session: Session, include_inactive: bool = False) -> list[AccountResponse]:
        query = session.query(AccountORM)
        if not include_inactive:
            query = query.filter(AccountORM.is_active)
        return [AccountResponse.model_validate(a) for a in query.order_by(AccountORM.name).all()]

    @staticmethod
    def get_account(session: Session, account_id: int) -> AccountResponse | None:
        account = session.get(AccountORM, account_id)
        return AccountResponse.model_validate(account) if account else None

    @staticmethod
    def create_account(session: Session, data: AccountCreate, config: AppConfig) -> MutationResult:
        try:
            account = AccountORM(
                name=data.name,
                account_type=data.account_type,
                institution=data.institution,
                current_balance=data.current_balance,
                currency=data.currency or config.default_currency,
                notes=data.notes,
            )
            session.add(account)
            session.commit()
            return MutationResult(success=True, count=1, id=account.id)
        except SQLAlchemyError as e:
            return _failed(session, "create account", e)

    @staticmethod
    def update_account(session: Session, account_id: int, update: AccountUpdate) -> MutationResult | None:
        account = session.get(AccountORM, account_id)
        if not account:
            return None
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(account, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=account_id)
        except SQLAlchemyError as e:
            return _failed(session, "update account", e)

    @staticmethod
    def delete_account(session: Session, account_id: int) -> MutationResult | None:
        """Deactivate an account. Its transactions are kept."""
        account = session.get(AccountORM, account_id)
        if not account:
            return None
        try:
            account.is_active = False
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "deactivate account", e)

    @staticmethod
    def get_accounts_summary(session: Session) -> dict[str, Any]:
        """Balances split into assets and debts across active accounts."""
        total_balance = 0.0
        total_debt = 0.0
        accounts = session.query(AccountORM).filter(AccountORM.is_active).all()
        for account in accounts:
            if account.account_type in ("credit_card", "loan"):
                total_debt += abs(account.current_balance)
            else:
                total_balance += account.current_balance

        return {
            "total_balance": total_balance,
            "total_debt": total_debt,
            "net_position": total_balance - total_debt,
            "account_count": len(accounts),
        }


class RuleService:
    """Service for categorisation rule operations."""

    @staticmethod
    def to_response(rule: CategorisationRuleORM) -> RuleResponse:
        response = RuleResponse.model_validate(rule)
        response.category_name = rule.category.name if rule.category else None
        return response

    @staticmethod
    def get_rules(session: Session) -> list[RuleResponse]:
        """All rules in evaluation order; inactive rules follow active ones."""
        rules = session.query(CategorisationRuleORM).options(joinedload(CategorisationRuleORM.category)).all()
        active = sort_rules(rules)
        inactive = [r for r in rules if not r.is_active]
        return [RuleService.to_response(r) for r in active + inactive]

    @staticmethod
    def get_rule(session: Session, rule_id: int) -> RuleResponse | None:
        rule = session.get(CategorisationRuleORM, rule_id)
        return RuleService.to_response(rule) if rule else None

    @staticmethod
    def next_priority(session: Session) -> int:
        highest = session.query(func.max(CategorisationRuleORM.priority)).scalar()
        return (highest or 0) + 1

    @staticmethod
    def create_rule(session: Session, data: RuleCreate) -> MutationResult:
        """Create a rule. Without an explicit priority it is evaluated last."""
        if not session.get(CategoryORM, data.category_id):
            return MutationResult(success=False, error="Category not found")
        try:
            rule = CategorisationRuleORM(
                category_id=data.category_id,
                match_field=data.match_field.value,
                match_type=data.match_type.value,
                match_value=data.match_value,
                priority=data.priority if data.priority is not None else RuleService.next_priority(session),
                is_active=data.is_active,
            )
            session.add(rule)
            session.commit()
            return MutationResult(success=True, count=1, id=rule.id)
        except SQLAlchemyError as e:
            return _failed(session, "create categorisation rule", e)

    @staticmethod
    def update_rule(session: Session, rule_id: int, update: RuleUpdate) -> MutationResult | None:
        rule = session.get(CategorisationRuleORM, rule_id)
        if not rule:
            return None
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(rule, field, _enum_value(value))
            session.commit()
            return MutationResult(success=True, count=1, id=rule_id)
        except SQLAlchemyError as e:
            return _failed(session, "update categorisation rule", e)

    @staticmethod
    def delete_rule(session: Session, rule_id: int) -> MutationResult | None:
        rule = session.get(CategorisationRuleORM, rule_id)
        if not rule:
            return None
        try:
            session.delete(rule)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete categorisation rule", e)

    @staticmethod
    def apply_categorisation_rules(
        session: Session, config: AppConfig, transaction_ids: list[int] | None = None
    ) -> dict[str, Any]:
        """Categorise uncategorised transactions with the active rules."""
        categorised = categorise_transactions(
            session,
            transaction_ids=transaction_ids,
            case_sensitive=config.rules.case_sensitive,
            batch_size=config.rules.update_batch_size,
        )
        return {"success": True, "categorised": categorised}

    @staticmethod
    def create_rule_from_transaction(
        session: Session,
        config: AppConfig,
        transaction_id: int,
        category_id: int,
        match_field: str = "description",
        match_type: str = "contains",
    ) -> MutationResult:
        """Create a rule matching an existing transaction, then categorise with it."""
        transaction = session.get(TransactionORM, transaction_id)
        if not transaction:
            return MutationResult(success=False, error="Transaction not found")

        field = _enum_value(match_field)
        match_value = getattr(transaction, field, None)
        if not match_value:
            return MutationResult(success=False, error=f"Transaction has no {field}")

        result = RuleService.create_rule(
            session,
            RuleCreate(category_id=category_id, match_field=field, match_type=match_type, match_value=match_value),
        )
        if not result.success:
            return result

        try:
            transaction.category_id = category_id
            session.commit()
        except SQLAlchemyError as e:
            return _failed(session, "categorise transaction", e)

        applied = RuleService.apply_categorisation_rules(session, config)
        return MutationResult(success=True, count=applied["categorised"] + 1, id=result.id)


class BudgetService:
    """Service for budget tracking and alerts."""

    @staticmethod
    def to_response(budget: BudgetORM) -> BudgetResponse:
        response = BudgetResponse.model_validate(budget)
        if budget.category is not None:
            response.category_name = budget.category.name
        return response

    @staticmethod
    def get_budgets(session: Session) -> list[BudgetResponse]:
        return [BudgetService.to_response(b) for b in get_active_budgets(session)]

    @staticmethod
    def get_budget(session: Session, budget_id: int) -> BudgetResponse | None:
        budget = session.get(BudgetORM, budget_id)
        if not budget or not budget.is_active:
            return None
        return BudgetService.to_response(budget)

    @staticmethod
    def create_budget(session: Session, data: BudgetCreate) -> MutationResult:
        category_name = None
        if data.category_id is not None:
            category = session.get(CategoryORM, data.category_id)
            if not category:
                return MutationResult(success=False, error="Category not found")
            category_name = category.name

        try:
            budget = BudgetORM(
                name=data.name,
                category_id=data.category_id,
                category_name=category_name,
                amount=data.amount,
                period=data.period.value,
                alert_threshold=data.alert_threshold,
                alert_enabled=data.alert_enabled,
                notes=data.notes,
            )
            session.add(budget)
            session.commit()
            return MutationResult(success=True, count=1, id=budget.id)
        except SQLAlchemyError as e:
            return _failed(session, "create budget", e)

    @staticmethod
    def update_budget(session: Session, budget_id: int, update: BudgetUpdate) -> MutationResult | None:
        budget = session.get(BudgetORM, budget_id)
        if not budget or not budget.is_active:
            return None

        values = update.model_dump(exclude_unset=True)
        if "category_id" in values:
            category = session.get(CategoryORM, values["category_id"]) if values["category_id"] is not None else None
            if values["category_id"] is not None and not category:
                return MutationResult(success=False, error="Category not found")
            values["category_name"] = category.name if category else None

        try:
            for field, value in values.items():
                setattr(budget, field, _enum_value(value))
            session.commit()
            return MutationResult(success=True, count=1, id=budget_id)
        except SQLAlchemyError as e:
            return _failed(session, "update budget", e)

    @staticmethod
    def delete_budget(session: Session, budget_id: int) -> MutationResult | None:
        """Soft delete: budgets are deactivated, never removed."""
        budget = session.get(BudgetORM, budget_id)
        if not budget or not budget.is_active:
            return None
        try:
            budget.is_active = False
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete budget", e)

    @staticmethod
    def _progress_for(
        session: Session, budget: BudgetORM, now: date | datetime, default_threshold: float
    ) -> BudgetProgress:
        model = Budget.model_validate(budget)
        period = calculate_period_dates(model.period, now)

        query = session.query(TransactionORM).filter(
            TransactionORM.transaction_type == TransactionType.EXPENSE.value,
            TransactionORM.date >= period.start_date,
            TransactionORM.date <= period.end_date,
        )
        if model.category_id is not None:
            query = query.filter(TransactionORM.category_id == model.category_id)

        transactions = query.order_by(TransactionORM.date.desc(), TransactionORM.id.desc()).all()
        return compute_progress(model, transactions, now, default_threshold)

    @staticmethod
    def get_budget_progress(
        session: Session,
        budget_id: int,
        now: date | datetime,
        default_threshold: float = DEFAULT_ALERT_THRESHOLD,
    ) -> BudgetProgress | None:
        """Progress for one budget, or None when it cannot be fetched."""
        try:
            budget = session.get(BudgetORM, budget_id)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch budget %s: %s", budget_id, e)
            return None
        if not budget or not budget.is_active:
            return None
        return BudgetService._progress_for(session, budget, now, default_threshold)

    @staticmethod
    def get_budget_summary(
        session: Session, now: date | datetime, default_threshold: float = DEFAULT_ALERT_THRESHOLD
    ) -> BudgetSummary:
        """Progress for every active budget reduced into portfolio totals."""
        budget_ids = [b.id for b in get_active_budgets(session)]
        return summarize(
            BudgetService.get_budget_progress(session, budget_id, now, default_threshold) for budget_id in budget_ids
        )

    @staticmethod
    def alert_key(budget_id: int, today: date) -> str:
        return f"budget_alert:{budget_id}:{today.isoformat()}"

    @staticmethod
    def check_budget_alerts(
        session: Session, now: date | datetime, default_threshold: float = DEFAULT_ALERT_THRESHOLD
    ) -> int:
        """Notify about budgets that are over or near their limit.

        At most one alert is stored per budget per calendar day; repeated
        checks on the same day create nothing new.

        Returns:
            Number of notifications created
        """
        today = now.date() if isinstance(now, datetime) else now
        summary = BudgetService.get_budget_summary(session, now, default_threshold)

        created = 0
        for progress in summary.budgets:
            budget = progress.budget
            if not budget.alert_enabled:
                continue
            if not (progress.is_over_budget or progress.is_approaching_limit):
                continue

            dedupe_key = BudgetService.alert_key(budget.id, today)
            if session.query(NotificationORM.id).filter(NotificationORM.dedupe_key == dedupe_key).first():
                continue

            if progress.is_over_budget:
                title = "Budget Exceeded"
                priority = NotificationPriority.URGENT
                message = (
                    f"{budget.name} is {progress.percentage:.0f}% spent - over budget by ${progress.overspent:.0f}"
                )
            else:
                title = "Budget Alert"
                priority = NotificationPriority.HIGH
                message = f"{budget.name} is at {progress.percentage:.0f}% - ${progress.remaining:.0f} remaining"

            result = NotificationService.create_notification(
                session,
                NotificationCreate(
                    title=title,
                    message=message,
                    notification_type=NotificationType.BUDGET_ALERT,
                    priority=priority,
                    link_url="/budgets",
                    related_entity_type="budget",
                    related_entity_id=budget.id,
                    metadata={
                        "percentage": progress.percentage,
                        "spent": progress.spent,
                        "budgeted": budget.amount,
                    },
                ),
                dedupe_key=dedupe_key,
            )
            if result.success:
                created += 1

        if created:
            logger.info("Created %d budget alerts for %s", created, today)
        return created


class NotificationService:
    """Service for in-app notifications."""

    @staticmethod
    def to_response(n: NotificationORM) -> NotificationResponse:
        return NotificationResponse(
            id=n.id,
            title=n.title,
            message=n.message,
            notification_type=n.notification_type,
            priority=n.priority,
            is_read=n.is_read,
            is_dismissed=n.is_dismissed,
            link_url=n.link_url,
            related_entity_type=n.related_entity_type,
            related_entity_id=n.related_entity_id,
            metadata=n.meta or {},
            created_at=n.created_at,
        )

    @staticmethod
    def get_notifications(session: Session, limit: int = 20) -> list[NotificationResponse]:
        """Newest undismissed notifications first."""
        notifications = (
            session.query(NotificationORM)
            .filter(NotificationORM.is_dismissed.is_(False))
            .order_by(NotificationORM.created_at.desc(), NotificationORM.id.desc())
            .limit(limit)
            .all()
        )
        return [NotificationService.to_response(n) for n in notifications]

    @staticmethod
    def get_unread_count(session: Session) -> int:
        return (
            session.query(NotificationORM)
            .filter(NotificationORM.is_read.is_(False), NotificationORM.is_dismissed.is_(False))
            .count()
        )

    @staticmethod
    def mark_as_read(session: Session, notification_id: int) -> MutationResult | None:
        notification = session.get(NotificationORM, notification_id)
        if not notification:
            return None
        try:
            notification.is_read = True
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "mark notification read", e)

    @staticmethod
    def mark_all_as_read(session: Session) -> MutationResult:
        try:
            updated = (
                session.query(NotificationORM)
                .filter(NotificationORM.is_read.is_(False))
                .update({NotificationORM.is_read: True}, synchronize_session=False)
            )
            session.commit()
            return MutationResult(success=True, count=updated)
        except SQLAlchemyError as e:
            return _failed(session, "mark notifications read", e)

    @staticmethod
    def dismiss(session: Session, notification_id: int) -> MutationResult | None:
        notification = session.get(NotificationORM, notification_id)
        if not notification:
            return None
        try:
            notification.is_dismissed = True
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "dismiss notification", e)

    @staticmethod
    def create_notification(
        session: Session, data: NotificationCreate, dedupe_key: str | None = None
    ) -> MutationResult:
        """Store a notification. A ``dedupe_key`` that already exists is rejected."""
        try:
            notification = NotificationORM(
                title=data.title,
                message=data.message,
                notification_type=data.notification_type.value,
                priority=data.priority.value,
                link_url=data.link_url,
                related_entity_type=data.related_entity_type,
                related_entity_id=data.related_entity_id,
                meta=data.metadata,
                dedupe_key=dedupe_key,
            )
            session.add(notification)
            session.commit()
            return MutationResult(success=True, count=1, id=notification.id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error=f"Notification '{dedupe_key}' already exists")
        except SQLAlchemyError as e:
            return _failed(session, "create notification", e)


class ChartService:
    """Chart aggregates over the full filtered transaction set.

    Sums are computed in SQL; the ``Parent:Child`` roll-up and ranking run on
    the per-name totals.
    """

    @staticmethod
    def _chart_query(session: Session, **filters: Any) -> Query:
        query = session.query(TransactionORM).options(joinedload(TransactionORM.category))
        return apply_transaction_filters(query, **filters)

    @staticmethod
    def _expense_totals(session: Session, key: Any, **filters: Any) -> list[tuple[Any, float, int]]:
        """``(key, amount, count)`` over chartable expenses, grouped by ``key``."""
        query = (
            session.query(key, func.sum(func.abs(TransactionORM.amount)), func.count(TransactionORM.id))
            .select_from(TransactionORM)
            .outerjoin(CategoryORM, TransactionORM.category_id == CategoryORM.id)
            .filter(TransactionORM.transaction_type == TransactionType.EXPENSE.value)
            .filter(or_(CategoryORM.id.is_(None), CategoryORM.category_type != CategoryType.TRANSFER.value))
        )
        query = apply_transaction_filters(query, **filters).group_by(key)
        return [(name, amount or 0.0, count) for name, amount, count in query.all()]

    @staticmethod
    def _category_items(session: Session, **filters: Any) -> list[tuple[str, float, int]]:
        rows = ChartService._expense_totals(session, CategoryORM.name, **filters)
        return [(name or UNCATEGORISED, amount, count) for name, amount, count in rows]

    @staticmethod
    def _payee_items(session: Session, **filters: Any) -> list[tuple[str, float, int]]:
        # payee, else description, else "Unknown"; empty strings count as missing
        key = func.coalesce(
            func.nullif(TransactionORM.payee, ""), func.nullif(TransactionORM.description, ""), UNKNOWN_PAYEE
        )
        return ChartService._expense_totals(session, key, **filters)

    @staticmethod
    def get_chart_summary(session: Session, payee_top_n: int = 15, **filters: Any) -> ChartSummaryResponse:
        """Income/expense totals, every category group and the top payees."""
        total_count = apply_transaction_filters(session.query(func.count(TransactionORM.id)), **filters).scalar()

        totals_query = (
            session.query(TransactionORM.transaction_type, func.sum(TransactionORM.amount))
            .outerjoin(CategoryORM, TransactionORM.category_id == CategoryORM.id)
            .filter(TransactionORM.transaction_type != TransactionType.TRANSFER.value)
            .filter(or_(CategoryORM.id.is_(None), CategoryORM.category_type != CategoryType.TRANSFER.value))
        )
        totals_query = apply_transaction_filters(totals_query, **filters).group_by(TransactionORM.transaction_type)
        totals = {transaction_type: amount or 0.0 for transaction_type, amount in totals_query.all()}

        return ChartSummaryResponse(
            total_income=totals.get(TransactionType.INCOME.value, 0.0),
            total_expenses=totals.get(TransactionType.EXPENSE.value, 0.0),
            total_count=total_count or 0,
            categories=group_by_category(ChartService._category_items(session, **filters), top_n=None),
            payees=payee_groups(ChartService._payee_items(session, **filters), top_n=payee_top_n),
        )

    @staticmethod
    def get_top_categories(session: Session, top_n: int | None = 8, **filters: Any) -> list[ChartGroup]:
        return group_by_category(ChartService._category_items(session, **filters), top_n=top_n)

    @staticmethod
    def get_top_payees(session: Session, top_n: int | None = 8, **filters: Any) -> list[ChartGroup]:
        return payee_groups(ChartService._payee_items(session, **filters), top_n=top_n)

    @staticmethod
    def get_transactions_for_chart_popup(
        session: Session, group_by: str, value: str, **filters: Any
    ) -> list[TransactionResponse]:
        """Rows behind one chart bar, using the same grouping rule as the chart."""
        query = ChartService._chart_query(session, **filters).options(joinedload(TransactionORM.account))
        query = query.filter(TransactionORM.transaction_type == TransactionType.EXPENSE.value)
        transactions = query.order_by(TransactionORM.date.desc(), TransactionORM.id.desc()).all()

        if group_by == "category":
            selected = [
                t
                for t in transactions
                if category_matches_group(t.category.name if t.category else UNCATEGORISED, value)
            ]
        else:
            selected = [t for t in transactions if payee_key(t) == value]

        return [TransactionService.to_response(t) for t in selected if is_chart_expense(t)]
