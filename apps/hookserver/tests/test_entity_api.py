"""
Tests for the /api/entities routes and /health.

Tests cover:
- CRUD over a scoped and an unscoped entity
- Query-string filters with literal coercion
- Error mapping: unknown entity 404, missing scope 400, missing record 404,
    conflict 409, repository outage 503
"""

import pytest

ORG = {"organization_id": "org-1"}


@pytest.fixture
def seeded(fake_github):
    fake_github.seed(
        "tasks/org-1/tasks-docs.json",
        {"id": "k-1", "organization_id": "org-1", "name": "Docs", "is_done": False, "project_id": "p-1"},
    )
    fake_github.seed(
        "tasks/org-1/tasks-release.json",
        {"id": "k-2", "organization_id": "org-1", "name": "Release", "is_done": True, "project_id": "p-1"},
    )
    fake_github.seed("users/users-ada.json", {"id": "u-1", "name": "Ada"})
    return fake_github


class TestReads:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_list(self, client, seeded):
        response = client.get("/api/entities/tasks", params=ORG)
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["k-1", "k-2"]

    def test_list_unscoped(self, client, seeded):
        response = client.get("/api/entities/users")
        assert response.json() == [{"id": "u-1", "name": "Ada"}]

    def test_filters(self, client, seeded):
        response = client.get("/api/entities/tasks", params={**ORG, "is_done": "true"})
        assert [t["id"] for t in response.json()] == ["k-2"]
        response = client.get("/api/entities/tasks", params={**ORG, "name": "Docs"})
        assert [t["id"] for t in response.json()] == ["k-1"]

    def test_get(self, client, seeded):
        response = client.get("/api/entities/tasks/k-2", params=ORG)
        assert response.json()["name"] == "Release"

    def test_get_missing(self, client, seeded):
        assert client.get("/api/entities/tasks/k-9", params=ORG).status_code == 404

    def test_unknown_entity(self, client):
        response = client.get("/api/entities/invoices", params=ORG)
        assert response.status_code == 404
        assert "Unknown entity type" in response.json()["detail"]

    def test_scoped_entity_needs_organization(self, client):
        assert client.get("/api/entities/tasks").status_code == 400

    def test_outage(self, client, fake_github):
        fake_github.fail_reads(502, times=2)
        response = client.get("/api/entities/tasks", params=ORG)
        assert response.status_code == 503

    def test_refresh(self, client, seeded, cache):
        cache.set("github_data:tasks/org-1", [], ttl=60)
        response = client.post("/api/entities/tasks/refresh", params=ORG)
        assert response.json() == {"cache_key": "github_data:tasks/org-1", "count": 2}


class TestWrites:
    def test_create(self, client, fake_github):
        response = client.post(
            "/api/entities/tasks", json={"name": "Plan", "organization_id": "org-1"}
        )
        assert response.status_code == 201
        record = response.json()
        assert record["id"]
        assert record["created_at"] == record["updated_at"]
        assert fake_github.read("tasks/org-1/tasks-plan.json")["name"] == "Plan"

    def test_create_scope_from_query(self, client, fake_github):
        response = client.post("/api/entities/tags", params=ORG, json={"name": "urgent"})
        assert response.status_code == 201
        assert response.json()["organization_id"] == "org-1"

    def test_update(self, client, seeded):
        response = client.patch("/api/entities/tasks/k-1", params=ORG, json={"is_done": True})
        assert response.status_code == 200
        assert response.json()["is_done"] is True
        assert seeded.read("tasks/org-1/tasks-docs.json")["is_done"] is True

    def test_update_missing(self, client, seeded):
        response = client.patch("/api/entities/tasks/k-9", params=ORG, json={"name": "x"})
        assert response.status_code == 404

    def test_update_conflict(self, client, seeded):
        for _ in range(2):
            seeded.before_next_write(
                lambda: seeded.edit("tasks/org-1/tasks-docs.json", {"name": "Theirs"})
            )
        response = client.patch("/api/entities/tasks/k-1", params=ORG, json={"name": "Ours"})
        assert response.status_code == 409

    def test_delete(self, client, seeded):
        response = client.delete("/api/entities/tasks/k-1", params=ORG)
        assert response.json() == {"deleted": True, "id": "k-1"}
        assert "tasks/org-1/tasks-docs.json" not in seeded.files
        assert client.delete("/api/entities/tasks/k-1", params=ORG).status_code == 404
