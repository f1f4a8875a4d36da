"""Tests for budget API endpoints, including alert notifications."""

from datetime import date

from src.famfin.core.database import BudgetORM, NotificationORM


def _create_budget(client, **overrides):
    payload = {"name": "Groceries", "amount": 500.0, "period": "monthly"}
    payload.update(overrides)
    response = client.post("/api/budgets/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestBudgetCrud:
    def test_create_and_list(self, test_client, categories):
        budget = _create_budget(test_client, category_id=categories["Groceries"].id, alert_threshold=75)

        assert budget["category_name"] == "Groceries"
        assert budget["alert_threshold"] == 75
        assert budget["is_active"] is True

        budgets = test_client.get("/api/budgets/").json()
        assert [b["id"] for b in budgets] == [budget["id"]]

    def test_unknown_category_is_rejected(self, test_client):
        response = test_client.post("/api/budgets/", json={"name": "X", "amount": 10, "category_id": 9999})

        assert response.status_code == 400
        assert response.json()["detail"] == "Category not found"

    def test_invalid_period_is_rejected(self, test_client):
        response = test_client.post("/api/budgets/", json={"name": "X", "amount": 10, "period": "daily"})

        assert response.status_code == 422

    def test_zero_alert_threshold_is_rejected(self, test_client):
        response = test_client.post("/api/budgets/", json={"name": "X", "amount": 10, "alert_threshold": 0})

        assert response.status_code == 422

    def test_update(self, test_client):
        budget = _create_budget(test_client)

        response = test_client.put(f"/api/budgets/{budget['id']}", json={"amount": 650, "period": "weekly"})

        assert response.status_code == 200
        assert response.json()["amount"] == 650
        assert response.json()["period"] == "weekly"

    def test_delete_is_soft(self, test_client, db_session):
        budget = _create_budget(test_client)

        response = test_client.delete(f"/api/budgets/{budget['id']}")

        assert response.status_code == 200
        assert test_client.get(f"/api/budgets/{budget['id']}").status_code == 404
        assert test_client.get("/api/budgets/").json() == []
        row = db_session.get(BudgetORM, budget["id"])
        db_session.refresh(row)
        assert row.is_active is False

    def test_missing_budget(self, test_client):
        assert test_client.get("/api/budgets/999").status_code == 404
        assert test_client.put("/api/budgets/999", json={"amount": 1}).status_code == 404
        assert test_client.delete("/api/budgets/999").status_code == 404


class TestBudgetProgress:
    def test_progress_for_current_month(self, test_client, categories, add_transaction):
        groceries = categories["Groceries"]
        budget = _create_budget(test_client, category_id=groceries.id)
        add_transaction("WOOLWORTHS", 120.0, txn_date=date(2024, 3, 2), category=groceries)
        add_transaction("COLES", 80.0, txn_date=date(2024, 3, 14), category=groceries)
        add_transaction("COLES", 55.0, txn_date=date(2024, 2, 28), category=groceries)
        add_transaction("RESTAURANT", 70.0, txn_date=date(2024, 3, 14), category=categories["Dining Out"])
        add_transaction("REFUND", 30.0, txn_date=date(2024, 3, 14), category=groceries, transaction_type="income")

        response = test_client.get(f"/api/budgets/{budget['id']}/progress")

        assert response.status_code == 200
        progress = response.json()
        assert progress["spent"] == 200
        assert progress["remaining"] == 300
        assert progress["percentage"] == 40
        assert progress["period_start"] == "2024-03-01"
        assert progress["period_end"] == "2024-03-31"
        assert progress["days_remaining"] == 16
        assert len(progress["transactions"]) == 2

    def test_budget_without_category_counts_all_expenses(self, test_client, categories, add_transaction):
        budget = _create_budget(test_client, name="Everything", amount=1000)
        add_transaction("A", 100.0, category=categories["Groceries"])
        add_transaction("B", 50.0)

        progress = test_client.get(f"/api/budgets/{budget['id']}/progress").json()

        assert progress["spent"] == 150

    def test_progress_of_missing_budget(self, test_client):
        assert test_client.get("/api/budgets/42/progress").status_code == 404


class TestBudgetSummary:
    def test_summary_totals(self, test_client, categories, add_transaction):
        groceries = categories["Groceries"]
        dining = categories["Dining Out"]
        _create_budget(test_client, category_id=groceries.id, amount=500)
        _create_budget(test_client, name="Dining", category_id=dining.id, amount=100)
        add_transaction("WOOLWORTHS", 410.0, category=groceries)
        add_transaction("RESTAURANT", 250.0, category=dining)

        summary = test_client.get("/api/budgets/summary").json()

        assert summary["total_budgeted"] == 600
        assert summary["total_spent"] == 660
        assert summary["total_remaining"] == 0
        assert summary["over_budget_count"] == 1
        assert summary["approaching_limit_count"] == 1
        assert len(summary["budgets"]) == 2

    def test_empty_summary(self, test_client):
        summary = test_client.get("/api/budgets/summary").json()

        assert summary["total_budgeted"] == 0
        assert summary["budgets"] == []


class TestBudgetAlerts:
    def test_alerts_are_created_once_per_day(self, test_client, categories, add_transaction, db_session):
        groceries = categories["Groceries"]
        dining = categories["Dining Out"]
        _create_budget(test_client, category_id=groceries.id, amount=500)
        _create_budget(test_client, name="Dining", category_id=dining.id, amount=100)
        _create_budget(test_client, name="Quiet", amount=10000)
        add_transaction("WOOLWORTHS", 450.0, category=groceries)
        add_transaction("RESTAURANT", 150.0, category=dining)

        first = test_client.post("/api/budgets/check-alerts")
        second = test_client.post("/api/budgets/check-alerts")

        assert first.json() == {"success": True, "created": 2}
        assert second.json() == {"success": True, "created": 0}

        notifications = db_session.query(NotificationORM).order_by(NotificationORM.id).all()
        assert len(notifications) == 2

        # Budgets are checked in name order: Dining, Groceries, Quiet
        exceeded, approaching = notifications
        assert approaching.title == "Budget Alert"
        assert approaching.priority == "high"
        assert approaching.message == "Groceries is at 90% - $50 remaining"
        assert approaching.dedupe_key.endswith(":2024-03-15")
        assert exceeded.title == "Budget Exceeded"
        assert exceeded.priority == "urgent"
        assert exceeded.message == "Dining is 150% spent - over budget by $50"
        assert exceeded.meta["budgeted"] == 100

    def test_disabled_alerts_are_skipped(self, test_client, categories, add_transaction):
        groceries = categories["Groceries"]
        _create_budget(test_client, category_id=groceries.id, amount=100, alert_enabled=False)
        add_transaction("WOOLWORTHS", 450.0, category=groceries)

        assert test_client.post("/api/budgets/check-alerts").json()["created"] == 0

    def test_alerts_show_up_as_notifications(self, test_client, categories, add_transaction):
        groceries = categories["Groceries"]
        _create_budget(test_client, category_id=groceries.id, amount=100)
        add_transaction("WOOLWORTHS", 120.0, category=groceries)

        test_client.post("/api/budgets/check-alerts")

        notifications = test_client.get("/api/notifications/").json()
        assert len(notifications) == 1
        assert notifications[0]["notification_type"] == "budget_alert"
        assert notifications[0]["link_url"] == "/budgets"
        assert notifications[0]["metadata"]["spent"] == 120
        assert test_client.get("/api/notifications/unread-count").json() == {"count": 1}
