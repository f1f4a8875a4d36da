"""Tests for categorisation rule API endpoints."""

from src.famfin.core.database import TransactionORM


def _create_rule(client, category_id, match_value, **overrides):
    payload = {
        "category_id": category_id,
        "match_field": "description",
        "match_type": "contains",
        "match_value": match_value,
    }
    payload.update(overrides)
    response = client.post("/api/rules/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestRuleCrud:
    def test_priority_defaults_to_last(self, test_client, categories):
        first = _create_rule(test_client, categories["Groceries"].id, "WOOLWORTHS")
        second = _create_rule(test_client, categories["Dining Out"].id, "CAFE")

        assert first["category_name"] == "Groceries"
        assert second["priority"] == first["priority"] + 1

    def test_list_is_in_evaluation_order(self, test_client, categories):
        _create_rule(test_client, categories["Groceries"].id, "late", priority=10)
        _create_rule(test_client, categories["Groceries"].id, "early", priority=1)
        _create_rule(test_client, categories["Groceries"].id, "off", priority=0, is_active=False)

        rules = test_client.get("/api/rules/").json()

        assert [r["match_value"] for r in rules] == ["early", "late", "off"]

    def test_invalid_match_type(self, test_client, categories):
        response = test_client.post(
            "/api/rules/",
            json={
                "category_id": categories["Groceries"].id,
                "match_field": "description",
                "match_type": "regex",
                "match_value": ".*",
            },
        )

        assert response.status_code == 422

    def test_unknown_category(self, test_client):
        response = test_client.post(
            "/api/rules/",
            json={"category_id": 999, "match_field": "payee", "match_type": "exact", "match_value": "X"},
        )

        assert response.status_code == 400

    def test_update_and_delete(self, test_client, categories):
        rule = _create_rule(test_client, categories["Groceries"].id, "WOOL")

        updated = test_client.put(f"/api/rules/{rule['id']}", json={"is_active": False, "match_type": "exact"})

        assert updated.json()["is_active"] is False
        assert updated.json()["match_type"] == "exact"
        assert test_client.delete(f"/api/rules/{rule['id']}").status_code == 200
        assert test_client.delete(f"/api/rules/{rule['id']}").status_code == 404


class TestApplyRules:
    def test_apply_to_uncategorised(self, test_client, categories, add_transaction, db_session):
        _create_rule(test_client, categories["Groceries"].id, "WOOLWORTHS")
        add_transaction("WOOLWORTHS 1", 10.0)
        add_transaction("WOOLWORTHS 2", 10.0, category=categories["Dining Out"])
        add_transaction("OTHER", 10.0)

        response = test_client.post("/api/rules/apply")

        assert response.json() == {"success": True, "categorised": 1}

    def test_apply_to_selected_transactions(self, test_client, categories, add_transaction):
        _create_rule(test_client, categories["Groceries"].id, "WOOLWORTHS")
        first = add_transaction("WOOLWORTHS 1", 10.0)
        add_transaction("WOOLWORTHS 2", 10.0)

        response = test_client.post("/api/rules/apply", json={"transaction_ids": [first.id]})

        assert response.json()["categorised"] == 1

    def test_first_matching_rule_by_priority_wins(self, test_client, categories, add_transaction, db_session):
        _create_rule(test_client, categories["Dining Out"].id, "UBER", priority=5)
        _create_rule(test_client, categories["Groceries"].id, "UBER EATS", priority=1)
        txn = add_transaction("UBER EATS SYDNEY", 30.0)

        test_client.post("/api/rules/apply")

        db_session.refresh(txn)
        assert txn.category_id == categories["Groceries"].id


class TestRuleFromTransaction:
    def test_creates_rule_and_categorises_similar(self, test_client, categories, add_transaction, db_session):
        source = add_transaction("NETFLIX.COM", 16.99, payee="Netflix")
        add_transaction("NETFLIX.COM", 16.99, payee="Netflix")
        add_transaction("SPOTIFY", 11.99)

        response = test_client.post(
            "/api/rules/from-transaction",
            json={
                "transaction_id": source.id,
                "category_id": categories["Dining Out"].id,
                "match_field": "payee",
                "match_type": "exact",
            },
        )

        assert response.status_code == 201
        rule = response.json()
        assert rule["match_value"] == "Netflix"
        assert rule["match_field"] == "payee"

        categorised = (
            db_session.query(TransactionORM).filter(TransactionORM.category_id == categories["Dining Out"].id).count()
        )
        assert categorised == 2

    def test_transaction_without_field(self, test_client, categories, add_transaction):
        txn = add_transaction("NO PAYEE", 5.0)

        response = test_client.post(
            "/api/rules/from-transaction",
            json={"transaction_id": txn.id, "category_id": categories["Groceries"].id, "match_field": "payee"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Transaction has no payee"

    def test_missing_transaction(self, test_client, categories):
        response = test_client.post(
            "/api/rules/from-transaction", json={"transaction_id": 999, "category_id": categories["Groceries"].id}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Transaction not found"
