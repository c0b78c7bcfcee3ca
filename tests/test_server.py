"""
Tests for the HTTP API
"""

import pytest

from construction_stages.server import app, get_service
from construction_stages.service import ConstructionStagesService


class TestStageEndpoints:
    """Tests for /constructionStages"""

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_list_empty(self, client):
        resp = client.get("/constructionStages")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_create(self, client, stage_payload):
        resp = client.post("/constructionStages", json=stage_payload)
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == 1
        assert data["status"] == "NEW"
        assert data["duration"] == 14

    def test_create_invalid(self, client):
        """Should return every validation error with a 400"""
        resp = client.post("/constructionStages", json={"name": 123, "durationUnit": "MONTHS"})
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert set(detail["errors"]) == {"name", "startDate", "durationUnit"}
        assert detail["errors"]["name"][0]["message"] == "The name field must be a string."
        assert detail["errors"]["durationUnit"][0]["code"] == "INVALID_VALUE"
        assert "startDate: The startDate field is required." in detail["message"]

    def test_get_single(self, client, stage_payload):
        created = client.post("/constructionStages", json=stage_payload).json()
        resp = client.get(f"/constructionStages/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_get_missing(self, client):
        resp = client.get("/constructionStages/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "There is no construction stage with id: 999"

    def test_non_numeric_id(self, client):
        resp = client.get("/constructionStages/abc")
        assert resp.status_code == 422

    def test_patch(self, client, stage_payload):
        created = client.post("/constructionStages", json=stage_payload).json()
        resp = client.patch(
            f"/constructionStages/{created['id']}",
            json={"status": "PLANNED", "color": "#0f0"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "PLANNED"
        assert data["color"] == "#0f0"
        assert data["name"] == "Foundation"

    def test_patch_invalid(self, client, stage_payload):
        created = client.post("/constructionStages", json=stage_payload).json()
        resp = client.patch(f"/constructionStages/{created['id']}", json={"status": "ARCHIVED"})
        assert resp.status_code == 400
        assert "status" in resp.json()["detail"]["errors"]

    def test_patch_empty_body(self, client, stage_payload):
        created = client.post("/constructionStages", json=stage_payload).json()
        resp = client.patch(f"/constructionStages/{created['id']}", json={})
        assert resp.status_code == 400

    def test_patch_missing(self, client):
        resp = client.patch("/constructionStages/5", json={"name": "x"})
        assert resp.status_code == 404

    def test_delete(self, client, stage_payload):
        created = client.post("/constructionStages", json=stage_payload).json()
        resp = client.delete(f"/constructionStages/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == {
            "message": f"Construction Stage with id: {created['id']} deleted successfully!"
        }

        stages = client.get("/constructionStages").json()
        assert stages[0]["status"] == "DELETED"

        assert client.delete(f"/constructionStages/{created['id']}").status_code == 404


class TestMisconfiguredRules:
    """A broken rule table is a server error, not a bad request"""

    @pytest.fixture
    def broken_client(self, repository):
        from fastapi.testclient import TestClient

        service = ConstructionStagesService(repository, rules={"name": "required|bogus"})
        app.dependency_overrides[get_service] = lambda: service
        with TestClient(app) as c:
            yield c
        app.dependency_overrides.clear()

    def test_unknown_rule(self, broken_client):
        resp = broken_client.post("/constructionStages", json={"name": "Foundation"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Validation rules are misconfigured"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
