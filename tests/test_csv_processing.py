"""Tests for CSV processing functionality."""

from datetime import date

import pytest

from src.famfin.core.config import AppConfig
from src.famfin.core.database import CategorisationRuleORM, TransactionORM
from src.famfin.core.models import CSVTransaction
from src.famfin.data.csv_processor import (
    CSVProcessor,
    detect_columns,
    parse_amount,
    parse_csv,
    parse_csv_line,
    parse_date,
)


class TestLineSplitting:
    def test_plain_fields_are_trimmed(self):
        assert parse_csv_line("15/03/2024, Coffee ,-4.50") == ["15/03/2024", "Coffee", "-4.50"]

    def test_commas_inside_quotes_are_kept(self):
        assert parse_csv_line('15/03/2024,"SMITH, J",-10.00') == ["15/03/2024", "SMITH, J", "-10.00"]

    def test_quoted_amount_with_thousands_separator(self):
        assert parse_csv_line('15/03/2024,Rent,"-1,250.00"') == ["15/03/2024", "Rent", "-1,250.00"]

    def test_trailing_empty_field(self):
        assert parse_csv_line("a,b,") == ["a", "b", ""]


class TestDateParsing:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("15/03/2024", "2024-03-15"),
            ("2024-03-15", "2024-03-15"),
            ("15-03-2024", "2024-03-15"),
            ("15/03/2024 10:42", "2024-03-15"),
        ],
    )
    def test_supported_formats(self, raw, expected):
        assert parse_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", "15 March 2024", "2024/03/15", "31/02/2024", "bad"])
    def test_unrecognised_dates(self, raw):
        assert parse_date(raw) is None


class TestAmountParsing:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("-45.50", -45.5),
            ("$1,234.56", 1234.56),
            ("2500", 2500.0),
            ("AUD -12.00", -12.0),
            ("", 0.0),
            ("n/a", 0.0),
        ],
    )
    def test_strips_symbols(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)


class TestColumnDetection:
    def test_named_columns(self):
        columns = detect_columns("Transaction Date,Narrative,Debit Amount,Credit Amount,Balance")

        assert columns["date"] == 0
        assert columns["description"] == 1
        assert columns["amount"] == -1
        assert columns["debit"] == 2
        assert columns["credit"] == 3

    def test_debit_amount_header_rows(self):
        text = "Date,Narrative,Debit Amount,Credit Amount,Balance\n15/03/2024,Coffee,4.50,,995.50"

        assert parse_csv(text)[0].amount == pytest.approx(-4.5)

    def test_debit_credit_columns(self):
        columns = detect_columns("Date,Details,Withdrawals,Deposits")

        assert columns["amount"] == -1
        assert columns["debit"] == 2
        assert columns["credit"] == 3

    def test_unnamed_columns_fall_back_to_position(self):
        columns = detect_columns("a,b,c")

        assert columns["date"] == 0
        assert columns["description"] == 1
        assert columns["payee"] == -1

    def test_category_column(self):
        text = "Date,Description,Amount,Category\n15/03/2024,Pay,2500.00,Salary"

        assert parse_csv(text)[0].category == "Salary"


class TestParseCSV:
    def test_three_column_signed_amounts(self):
        text = "\n".join(
            [
                "Date,Description,Amount",
                "15/03/2024,WOOLWORTHS 1234,-45.50",
                "16/03/2024,SALARY ACME,2500.00",
            ]
        )

        transactions = parse_csv(text)

        assert len(transactions) == 2
        assert transactions[0].date == date(2024, 3, 15)
        assert transactions[0].description == "WOOLWORTHS 1234"
        assert transactions[0].amount == pytest.approx(-45.5)
        assert transactions[1].amount == pytest.approx(2500.0)

    def test_debit_and_credit_columns(self):
        text = "\n".join(
            [
                "Date,Description,Debit,Credit",
                "15/03/2024,Coffee,4.50,",
                "16/03/2024,Refund,,20.00",
            ]
        )

        transactions = parse_csv(text)

        assert [t.amount for t in transactions] == [pytest.approx(-4.5), pytest.approx(20.0)]

    def test_positional_debit_credit_without_headers(self):
        text = "h1,h2,h3,h4\n2024-03-15,Coffee,4.50,0"

        transactions = parse_csv(text)

        assert transactions[0].amount == pytest.approx(-4.5)

    def test_payee_column_is_optional(self):
        text = "Date,Description,Amount,Payee\n15/03/2024,Card purchase,-12.00,Bakery Co"

        transactions = parse_csv(text)

        assert transactions[0].payee == "Bakery Co"
        assert transactions[0].amount == pytest.approx(-12.0)

    def test_invalid_rows_are_dropped(self):
        text = "\n".join(
            [
                "Date,Description,Amount",
                "15/03/2024,Valid,-10.00",
                "",
                "not a date,Bad date,-10.00",
                "16/03/2024,,-10.00",
                "17/03/2024,Zero amount,0.00",
                "18/03/2024,Too short",
                '19/03/2024,"Quoted, description",-5',
            ]
        )

        transactions = parse_csv(text)

        assert [t.description for t in transactions] == ["Valid", "Quoted, description"]

    def test_header_only_or_empty(self):
        assert parse_csv("") == []
        assert parse_csv("Date,Description,Amount") == []
        assert parse_csv("Date,Description,Amount\nnonsense,row,") == []


class TestCSVProcessor:
    """Importing parsed rows into the database."""

    def test_import_infers_type_and_stores_magnitude(self, db_session, account):
        processor = CSVProcessor(db_session)
        transactions = [
            CSVTransaction(date="2024-03-15", description="WOOLWORTHS", amount=-45.5),
            CSVTransaction(date="2024-03-16", description="SALARY", amount=2500.0),
        ]

        result = processor.import_transactions(account.id, transactions)

        assert result.imported == 2
        assert result.duplicates_skipped == 0

        rows = db_session.query(TransactionORM).order_by(TransactionORM.date).all()
        assert [(r.amount, r.transaction_type) for r in rows] == [(45.5, "expense"), (2500.0, "income")]
        assert {r.import_id for r in rows} == {result.import_id}

    def test_reimport_skips_duplicates(self, db_session, account):
        processor = CSVProcessor(db_session)
        transactions = [CSVTransaction(date="2024-03-15", description="WOOLWORTHS", amount=-45.5)]

        processor.import_transactions(account.id, transactions)
        second = processor.import_transactions(account.id, transactions)

        assert second.imported == 0
        assert second.duplicates_skipped == 1
        assert db_session.query(TransactionORM).count() == 1

    def test_same_row_in_another_account_is_not_a_duplicate(self, db_session, account):
        from src.famfin.core.database import AccountORM

        other = AccountORM(name="Savings", account_type="savings")
        db_session.add(other)
        db_session.commit()

        processor = CSVProcessor(db_session)
        transactions = [CSVTransaction(date="2024-03-15", description="Interest", amount=3.2)]
        processor.import_transactions(account.id, transactions)
        result = processor.import_transactions(other.id, transactions)

        assert result.imported == 1

    def test_import_applies_rules(self, db_session, account, categories):
        db_session.add(
            CategorisationRuleORM(
                category_id=categories["Groceries"].id,
                match_field="description",
                match_type="contains",
                match_value="WOOLWORTHS",
            )
        )
        db_session.commit()

        processor = CSVProcessor(db_session, AppConfig())
        result = processor.import_transactions(
            account.id,
            [
                CSVTransaction(date="2024-03-15", description="WOOLWORTHS 1234 SYDNEY", amount=-80.0),
                CSVTransaction(date="2024-03-15", description="BP FUEL", amount=-60.0),
            ],
        )

        assert result.categorised == 1
        groceries = db_session.query(TransactionORM).filter(TransactionORM.description.like("WOOLWORTHS%")).one()
        assert groceries.category_id == categories["Groceries"].id

    def test_category_column_is_mapped(self, db_session, account, categories):
        processor = CSVProcessor(db_session)
        result = processor.import_transactions(
            account.id,
            [CSVTransaction(date="2024-03-15", description="Pay", amount=100.0, category="Salary")],
            category_map={"Salary": categories["Salary"].id},
        )

        assert result.imported == 1
        assert db_session.query(TransactionORM).one().category_id == categories["Salary"].id

    def test_repeated_row_in_one_file_is_kept(self, db_session, account):
        processor = CSVProcessor(db_session)
        transactions = parse_csv("Date,Description,Amount\n15/03/2024,CAFE,-4.50\n15/03/2024,CAFE,-4.50")

        result = processor.import_transactions(account.id, transactions)

        assert result.imported == 2
        assert result.duplicates_skipped == 0
        assert db_session.query(TransactionORM).count() == 2

    def test_reimport_skips_every_repeated_row(self, db_session, account):
        processor = CSVProcessor(db_session)
        row = CSVTransaction(date="2024-03-15", description="CAFE", amount=-4.5)
        processor.import_transactions(account.id, [row, row])

        second = processor.import_transactions(account.id, [row, row])

        assert second.imported == 0
        assert second.duplicates_skipped == 2
