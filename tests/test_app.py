"""Tests for application wiring."""


class TestApp:
    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_process_time_header(self, test_client):
        response = test_client.get("/health")

        assert response.json() == {"status": "ok"}
        assert float(response.headers["X-Process-Time"]) >= 0

    def test_reference_data_is_seeded(self, test_client):
        assert test_client.get("/api/categories/").json()
        assert test_client.get("/api/family/frequencies").json()
        assert test_client.get("/api/family/fee-types").json()
        assert test_client.get("/api/family/activity-types").json()
        assert test_client.get("/api/schools/").json() == []
