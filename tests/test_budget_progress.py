"""Tests for budget progress and portfolio summary aggregation."""

from datetime import date, datetime

import pytest

from src.famfin.budgets.progress import compute_progress, summarize, transactions_in_period
from src.famfin.core.models import Budget, BudgetPeriod, Transaction, TransactionType

NOW = datetime(2024, 3, 15, 12, 0, 0)


def _txn(amount, category_id=1, txn_date=date(2024, 3, 10), transaction_type=TransactionType.EXPENSE):
    return Transaction(
        account_id=1,
        category_id=category_id,
        date=txn_date,
        description="test",
        amount=amount,
        transaction_type=transaction_type,
    )


def _budget(amount=500.0, category_id=1, **kwargs):
    return Budget(id=1, name="Groceries", category_id=category_id, amount=amount, **kwargs)


class TestTransactionSelection:
    def test_filters_type_category_and_period(self):
        transactions = [
            _txn(200),
            _txn(100, category_id=2),
            _txn(50, txn_date=date(2024, 2, 29)),
            _txn(1000, transaction_type=TransactionType.INCOME),
        ]

        selected = transactions_in_period(_budget(), transactions, date(2024, 3, 1), date(2024, 3, 31))

        assert [t.amount for t in selected] == [200]

    def test_period_bounds_are_inclusive(self):
        transactions = [_txn(10, txn_date=date(2024, 3, 1)), _txn(20, txn_date=date(2024, 3, 31))]

        selected = transactions_in_period(_budget(), transactions, date(2024, 3, 1), date(2024, 3, 31))

        assert len(selected) == 2

    def test_budget_without_category_counts_all_expenses(self):
        transactions = [_txn(10, category_id=1), _txn(20, category_id=2), _txn(30, category_id=None)]

        selected = transactions_in_period(_budget(category_id=None), transactions, date(2024, 3, 1), date(2024, 3, 31))

        assert sum(t.amount for t in selected) == 60


class TestComputeProgress:
    def test_under_budget(self):
        progress = compute_progress(_budget(), [_txn(200)], NOW)

        assert progress.spent == 200
        assert progress.remaining == 300
        assert progress.overspent == 0
        assert progress.percentage == pytest.approx(40.0)
        assert not progress.is_over_budget
        assert not progress.is_approaching_limit
        assert progress.days_remaining == 16
        assert progress.daily_allowance == pytest.approx(300 / 16)
        assert progress.period_start == date(2024, 3, 1)
        assert progress.period_end == date(2024, 3, 31)
        assert len(progress.transactions) == 1

    def test_over_budget_floors_remaining(self):
        progress = compute_progress(_budget(), [_txn(400), _txn(200)], NOW)

        assert progress.spent == 600
        assert progress.remaining == 0
        assert progress.overspent == 100
        assert progress.percentage == pytest.approx(120.0)
        assert progress.is_over_budget
        assert not progress.is_approaching_limit
        assert progress.daily_allowance == 0

    def test_exactly_at_budget_is_neither_over_nor_approaching(self):
        progress = compute_progress(_budget(), [_txn(500)], NOW)

        assert progress.percentage == pytest.approx(100.0)
        assert not progress.is_over_budget
        assert not progress.is_approaching_limit

    def test_approaching_at_threshold(self):
        progress = compute_progress(_budget(), [_txn(400)], NOW)

        assert progress.percentage == pytest.approx(80.0)
        assert progress.is_approaching_limit

    def test_custom_threshold(self):
        progress = compute_progress(_budget(alert_threshold=50), [_txn(260)], NOW)

        assert progress.is_approaching_limit

    def test_missing_threshold_uses_default(self):
        below = compute_progress(_budget(alert_threshold=None), [_txn(350)], NOW, default_threshold=75)
        above = compute_progress(_budget(alert_threshold=None), [_txn(380)], NOW, default_threshold=75)

        assert not below.is_approaching_limit
        assert above.is_approaching_limit

    def test_zero_threshold_uses_default(self):
        idle = compute_progress(_budget(alert_threshold=0), [], NOW)
        busy = compute_progress(_budget(alert_threshold=0), [_txn(400)], NOW)

        assert not idle.is_approaching_limit
        assert busy.is_approaching_limit

    def test_zero_amount_budget(self):
        progress = compute_progress(_budget(amount=0), [_txn(10)], NOW)

        assert progress.percentage == 0
        assert progress.is_over_budget
        assert not progress.is_approaching_limit

    def test_no_days_remaining_gives_zero_allowance(self):
        progress = compute_progress(_budget(), [_txn(100, txn_date=date(2024, 3, 31))], datetime(2024, 3, 31, 20, 0))

        assert progress.days_remaining == 0
        assert progress.daily_allowance == 0
        assert progress.remaining == 400

    def test_weekly_budget_only_counts_this_week(self):
        budget = _budget(amount=100, period=BudgetPeriod.WEEKLY)
        transactions = [_txn(30, txn_date=date(2024, 3, 11)), _txn(30, txn_date=date(2024, 3, 10))]

        progress = compute_progress(budget, transactions, NOW)

        assert progress.spent == 30

    def test_accepts_orm_like_rows(self):
        class Row:
            id = 7
            name = "All spending"
            category_id = None
            amount = 1000.0
            period = "monthly"
            alert_threshold = 80.0
            alert_enabled = True
            is_active = True

        progress = compute_progress(Row(), [_txn(250, category_id=3)], NOW)

        assert progress.budget.id == 7
        assert progress.spent == 250


class TestSummarize:
    def test_totals_and_counts(self):
        items = [
            compute_progress(_budget(amount=500), [_txn(600)], NOW),
            compute_progress(_budget(amount=100, category_id=2), [_txn(85, category_id=2)], NOW),
            compute_progress(_budget(amount=400, category_id=3), [_txn(40, category_id=3)], NOW),
        ]

        summary = summarize(items)

        assert summary.total_budgeted == 1000
        assert summary.total_spent == 725
        assert summary.total_remaining == 275
        assert summary.over_budget_count == 1
        assert summary.approaching_limit_count == 1
        assert len(summary.budgets) == 3

    def test_portfolio_remaining_is_floored(self):
        summary = summarize([compute_progress(_budget(amount=100), [_txn(300)], NOW)])

        assert summary.total_remaining == 0

    def test_missing_progress_is_dropped(self):
        summary = summarize([None, compute_progress(_budget(), [_txn(100)], NOW), None])

        assert len(summary.budgets) == 1
        assert summary.total_budgeted == 500

    def test_empty(self):
        summary = summarize([])

        assert summary.total_budgeted == 0
        assert summary.budgets == []
