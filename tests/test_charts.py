"""Tests for chart aggregation by category and payee."""

from types import SimpleNamespace

import pytest

from src.famfin.analytics.charts import (
    apply_percentages,
    category_groups_from_transactions,
    group_by_category,
    group_by_payee,
    is_chart_expense,
    payee_groups,
    payee_key,
)


def _category(name, category_type="expense"):
    return SimpleNamespace(name=name, category_type=category_type)


def _txn(amount, category=None, payee=None, description="Card purchase", transaction_type="expense"):
    return SimpleNamespace(
        amount=amount, category=category, payee=payee, description=description, transaction_type=transaction_type
    )


class TestGroupByCategory:
    def test_children_roll_up_to_parent(self):
        groups = group_by_category(
            [("Kids:School", 300.0, 2), ("Kids:Sport", 100.0, 1), ("Groceries", 250.0, 5)],
        )

        assert [g.name for g in groups] == ["Kids", "Groceries"]
        kids = groups[0]
        assert kids.amount == pytest.approx(400.0)
        assert kids.count == 3
        assert kids.has_children
        assert [c.name for c in kids.children] == ["School", "Sport"]
        assert kids.children[0].full_name == "Kids:School"
        assert not groups[1].has_children

    def test_children_are_ranked_by_amount(self):
        groups = group_by_category([("Shopping:Clothes", 50.0), ("Shopping:Electronics", 150.0)])

        assert len(groups) == 1
        assert groups[0].name == "Shopping"
        assert groups[0].amount == pytest.approx(200.0)
        assert [c.name for c in groups[0].children] == ["Electronics", "Clothes"]
        assert [c.amount for c in groups[0].children] == [150.0, 50.0]

    def test_parent_row_and_children_share_a_group(self):
        groups = group_by_category([("Home", 50.0), ("Home:Repairs", 150.0)])

        assert len(groups) == 1
        assert groups[0].amount == pytest.approx(200.0)
        assert [c.name for c in groups[0].children] == ["Repairs"]

    def test_only_first_delimiter_splits(self):
        groups = group_by_category([("Travel:Flights:Intl", 10.0)])

        assert groups[0].name == "Travel"
        assert groups[0].children[0].name == "Flights:Intl"

    def test_truncates_to_top_n(self):
        items = [(f"Cat {i}", float(i), 1) for i in range(1, 13)]

        top = group_by_category(items)
        everything = group_by_category(items, top_n=None)

        assert len(top) == 8
        assert top[0].name == "Cat 12"
        assert len(everything) == 12

    def test_percentages(self):
        groups = group_by_category([("A", 300.0), ("B", 100.0)])

        assert groups[0].percent_of_max == pytest.approx(100.0)
        assert groups[1].percent_of_max == pytest.approx(100 / 3)
        assert groups[0].percent_of_total == pytest.approx(75.0)
        assert groups[1].percent_of_total == pytest.approx(25.0)

    def test_empty(self):
        assert group_by_category([]) == []
        assert apply_percentages([]) == []


class TestIsChartExpense:
    def test_skips_income_and_transfers(self):
        assert is_chart_expense(_txn(100.0, _category("Kids:School")))
        assert is_chart_expense(_txn(20.0, None))
        assert not is_chart_expense(_txn(999.0, _category("Salary", "income"), transaction_type="income"))
        assert not is_chart_expense(_txn(500.0, _category("Transfer", "transfer")))
        assert not is_chart_expense(_txn(500.0, None, transaction_type="transfer"))


class TestCategoryGroupsFromTransactions:
    def test_skips_income_and_transfers(self):
        kids_school = _category("Kids:School")
        transactions = [
            _txn(100.0, kids_school),
            _txn(50.0, kids_school),
            _txn(999.0, _category("Salary", "income"), transaction_type="income"),
            _txn(500.0, _category("Transfer", "transfer")),
            _txn(20.0, None),
        ]

        groups = category_groups_from_transactions(transactions)

        assert [(g.name, g.amount, g.count) for g in groups] == [("Kids", 150.0, 2), ("Uncategorised", 20.0, 1)]


class TestPayeeGroups:
    def test_payee_key_fallbacks(self):
        assert payee_key(_txn(1, payee="Bakery Co")) == "Bakery Co"
        assert payee_key(_txn(1, payee="", description="EFTPOS 123")) == "EFTPOS 123"
        assert payee_key(_txn(1, payee=None, description="")) == "Unknown"

    def test_merges_and_ranks(self):
        groups = payee_groups(
            [("Bakery Co", 10.0, 1), ("BP FUEL", 40.0, 1), ("Bakery Co", 15.0, 1), ("Unknown", 5.0, 1)]
        )

        assert [(g.name, g.amount, g.count) for g in groups] == [
            ("BP FUEL", 40.0, 1),
            ("Bakery Co", 25.0, 2),
            ("Unknown", 5.0, 1),
        ]
        assert groups[0].percent_of_max == pytest.approx(100.0)

    def test_top_n(self):
        items = [(f"Shop {i}", float(i), 1) for i in range(20)]

        assert len(payee_groups(items)) == 8
        assert len(payee_groups(items, top_n=15)) == 15
        assert len(payee_groups(items, top_n=None)) == 20

    def test_group_by_payee_from_transactions(self):
        transactions = [
            _txn(10.0, payee="Bakery Co"),
            _txn(15.0, payee="Bakery Co"),
            _txn(40.0, payee=None, description="BP FUEL"),
            _txn(5.0, payee=None, description=""),
            _txn(100.0, payee="Employer", transaction_type="income"),
        ]

        groups = group_by_payee(transactions)

        assert [(g.name, g.amount, g.count) for g in groups] == [
            ("BP FUEL", 40.0, 1),
            ("Bakery Co", 25.0, 2),
            ("Unknown", 5.0, 1),
        ]
