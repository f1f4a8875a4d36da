"""Tests for the export API endpoints."""

import io
import json
from datetime import date

import pandas as pd


class TestExport:
    def test_csv_export(self, test_client, categories, add_transaction):
        add_transaction("WOOLWORTHS", 45.5, category=categories["Groceries"])
        add_transaction("Salary", 3000.0, transaction_type="income", txn_date=date(2024, 3, 1))

        response = test_client.get("/api/export/transactions", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "famfin_transactions.csv" in response.headers["content-disposition"]

        df = pd.read_csv(io.StringIO(response.text))
        assert list(df["description"]) == ["WOOLWORTHS", "Salary"]
        assert list(df["signed_amount"]) == [-45.5, 3000.0]
        assert df.loc[0, "category"] == "Groceries"

    def test_json_export_with_date_range(self, test_client, add_transaction):
        add_transaction("In range", 10.0, txn_date=date(2024, 3, 10))
        add_transaction("Too early", 10.0, txn_date=date(2024, 1, 10))

        response = test_client.get(
            "/api/export/transactions", params={"format": "json", "start_date": "2024-03-01", "end_date": "2024-03-31"}
        )

        data = json.loads(response.text)
        assert [row["description"] for row in data] == ["In range"]
        assert "famfin_transactions_2024-03-01_2024-03-31.json" in response.headers["content-disposition"]

    def test_excel_export_has_summary_sheets(self, test_client, categories, add_transaction):
        add_transaction("WOOLWORTHS", 45.5, category=categories["Groceries"])

        response = test_client.get("/api/export/transactions", params={"format": "excel"})

        sheets = pd.read_excel(io.BytesIO(response.content), sheet_name=None, engine="openpyxl")
        assert set(sheets) == {"Transactions", "Category_Summary", "Monthly_Summary"}

    def test_post_export_filters_by_category(self, test_client, categories, add_transaction):
        add_transaction("WOOLWORTHS", 45.5, category=categories["Groceries"])
        add_transaction("Cafe", 12.0, category=categories["Dining Out"])

        response = test_client.post("/api/export/transactions", json={"format": "json", "categories": ["Dining Out"]})

        assert [row["description"] for row in response.json()] == ["Cafe"]

    def test_post_export_with_no_rows(self, test_client):
        response = test_client.post("/api/export/transactions", json={"format": "csv"})

        assert response.status_code == 404

    def test_invalid_format(self, test_client):
        assert test_client.get("/api/export/transactions", params={"format": "pdf"}).status_code == 422

    def test_formats(self, test_client):
        formats = test_client.get("/api/export/formats").json()["formats"]

        assert set(formats) == {"csv", "excel", "json"}
