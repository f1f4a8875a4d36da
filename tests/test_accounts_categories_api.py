"""Tests for account and category API endpoints."""


class TestAccounts:
    def test_create_uses_default_currency(self, test_client):
        response = test_client.post("/api/accounts/", json={"name": "Offset", "account_type": "savings"})

        assert response.status_code == 201
        assert response.json()["currency"] == "AUD"

    def test_invalid_account_type(self, test_client):
        response = test_client.post("/api/accounts/", json={"name": "X", "account_type": "crypto"})

        assert response.status_code == 422

    def test_summary_separates_debt(self, test_client):
        test_client.post("/api/accounts/", json={"name": "Everyday", "current_balance": 2500})
        test_client.post("/api/accounts/", json={"name": "Visa", "account_type": "credit_card", "current_balance": -800})

        summary = test_client.get("/api/accounts/summary").json()

        assert summary == {"total_balance": 2500, "total_debt": 800, "net_position": 1700, "account_count": 2}

    def test_delete_deactivates(self, test_client):
        account_id = test_client.post("/api/accounts/", json={"name": "Old"}).json()["id"]

        test_client.delete(f"/api/accounts/{account_id}")

        assert test_client.get("/api/accounts/").json() == []
        inactive = test_client.get("/api/accounts/", params={"include_inactive": True}).json()
        assert inactive[0]["is_active"] is False

    def test_update(self, test_client):
        account_id = test_client.post("/api/accounts/", json={"name": "Old"}).json()["id"]

        response = test_client.put(f"/api/accounts/{account_id}", json={"name": "New", "institution": "CBA"})

        assert response.json()["name"] == "New"
        assert response.json()["institution"] == "CBA"


class TestCategories:
    def test_defaults_are_seeded(self, test_client):
        categories = test_client.get("/api/categories/").json()
        names = [c["name"] for c in categories]

        assert "Groceries" in names
        assert names == sorted(names)
        assert test_client.post("/api/categories/defaults").json() == {"success": True, "created": 0}

    def test_filter_by_type(self, test_client):
        income = test_client.get("/api/categories/", params={"category_type": "income"}).json()

        assert income
        assert {c["category_type"] for c in income} == {"income"}

    def test_unknown_category_type_is_rejected(self, test_client):
        created = test_client.post("/api/categories/", json={"name": "Pocket Money", "category_type": "allowance"})
        listed = test_client.get("/api/categories/", params={"category_type": "allowance"})

        assert created.status_code == 422
        assert listed.status_code == 422

    def test_duplicate_name(self, test_client):
        response = test_client.post("/api/categories/", json={"name": "Groceries", "category_type": "expense"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Category 'Groceries' already exists"

    def test_bulk_create_stops_at_first_failure(self, test_client):
        response = test_client.post(
            "/api/categories/bulk",
            json={
                "categories": [
                    {"name": "Kids:Swimming", "category_type": "expense"},
                    {"name": "Groceries", "category_type": "expense"},
                    {"name": "Kids:Piano", "category_type": "expense"},
                ]
            },
        )

        assert response.status_code == 400
        names = [c["name"] for c in test_client.get("/api/categories/").json()]
        assert "Kids:Swimming" in names
        assert "Kids:Piano" not in names

    def test_tree(self, test_client):
        test_client.post(
            "/api/categories/bulk",
            json={
                "categories": [
                    {"name": "Kids:Swimming", "category_type": "expense"},
                    {"name": "Kids:Piano", "category_type": "expense"},
                ]
            },
        )

        tree = test_client.get("/api/categories/tree").json()["categories"]
        kids = next(node for node in tree if node["name"] == "Kids")

        assert kids["category_id"] is None
        assert [c["name"] for c in kids["children"]] == ["Piano", "Swimming"]
