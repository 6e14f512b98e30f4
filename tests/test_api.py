"""
API tests for the practice router.

Every request runs against a fixture database seeded at PRACTICE_OS_DB,
which the isolation fixture points at a per-test temp directory.
"""

import pytest
from fastapi.testclient import TestClient

from api.server import app
from practice import paths
from tests.fixtures import create_fixture_db

BASE = "/api/practice"


@pytest.fixture
def client():
    db = create_fixture_db(paths.db_path())
    db.close()
    return TestClient(app)


# =============================================================================
# RECURRENCE
# =============================================================================


class TestPatterns:
    def test_validate_valid_pattern(self, client):
        response = client.post(f"{BASE}/patterns/validate", json={"type": "Monthly", "interval": 1, "dayOfMonth": 30})
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["errors"] == []
        assert len(data["warnings"]) == 1

    def test_validate_invalid_pattern(self, client):
        response = client.post(f"{BASE}/patterns/validate", json={"type": "Weekly", "interval": 1})
        data = response.json()
        assert data["valid"] is False
        assert data["errors"]

    def test_next_occurrence(self, client):
        response = client.post(
            f"{BASE}/patterns/next-occurrence",
            json={"pattern": {"type": "Quarterly", "dayOfMonth": 5}, "fromDate": "2025-02-10"},
        )
        assert response.status_code == 200
        assert response.json()["nextDate"] == "2025-04-05"

    def test_next_occurrence_exhausted(self, client):
        response = client.post(
            f"{BASE}/patterns/next-occurrence",
            json={
                "pattern": {"type": "Daily", "interval": 1, "endDate": "2025-01-01"},
                "fromDate": "2025-01-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["exhausted"] is True
        assert data["nextDate"] is None
        assert data["errorKind"] == "exhausted"

    def test_next_occurrence_invalid_pattern(self, client):
        response = client.post(
            f"{BASE}/patterns/next-occurrence",
            json={"pattern": {"type": "Monthly", "interval": 1}, "fromDate": "2025-01-01"},
        )
        assert response.status_code == 400


# =============================================================================
# DEMAND
# =============================================================================


class TestDemand:
    def test_demand_by_skill_for_fixture_practice(self, client):
        response = client.get(f"{BASE}/demand/skills", params={"start": "2025-01-01", "end": "2025-03-31"})
        assert response.status_code == 200
        data = response.json()
        assert data["items"] == [
            {"skill": "Bookkeeping", "hours": 18.0},
            {"skill": "Tax Compliance", "hours": 6.0},
            {"skill": "Payroll", "hours": 26.0},
        ]
        assert data["totalHours"] == 50.0

    def test_reversed_range_is_400(self, client):
        response = client.get(f"{BASE}/demand/skills", params={"start": "2025-03-31", "end": "2025-01-01"})
        assert response.status_code == 400

    def test_matrix_with_client_filter(self, client):
        response = client.get(
            f"{BASE}/demand/matrix",
            params={"start": "2025-01-01", "end": "2025-03-31", "clientIds": ["client-b"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["skills"] == ["Payroll"]
        assert data["monthTotals"] == {"2025-01": 8.0, "2025-02": 8.0, "2025-03": 10.0}
        assert data["skippedTasks"] == []

    def test_skill_cache_lifecycle(self, client):
        client.get(f"{BASE}/demand/skills", params={"start": "2025-01-01", "end": "2025-01-31"})
        stats = client.get(f"{BASE}/skills/cache").json()
        assert stats["loads"] == 1
        assert stats["size"] == 3

        assert client.post(f"{BASE}/skills/cache/invalidate").json()["success"] is True
        assert client.get(f"{BASE}/skills/cache").json()["size"] == 0


# =============================================================================
# TASKS
# =============================================================================


class TestRecurringTasks:
    def test_list_active(self, client):
        data = client.get(f"{BASE}/recurring-tasks").json()
        assert data["total"] == 3
        assert {t["id"] for t in data["items"]} == {"rt-monthly-books", "rt-quarterly-vat", "rt-weekly-payroll"}

    def test_list_by_client_including_inactive(self, client):
        data = client.get(f"{BASE}/recurring-tasks", params={"activeOnly": "false", "clientId": "client-b"}).json()
        assert {t["id"] for t in data["items"]} == {"rt-weekly-payroll", "rt-inactive"}

    def test_create(self, client):
        response = client.post(
            f"{BASE}/recurring-tasks",
            json={
                "clientId": "client-b",
                "templateId": "tmpl-annual",
                "name": "Annual accounts",
                "estimatedHours": 12,
                "recurrencePattern": {"type": "Annually", "monthOfYear": 9, "dayOfMonth": 30},
                "requiredSkills": ["sk-books"],
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["clientId"] == "client-b"
        assert data["recurrencePattern"]["monthOfYear"] == 9
        assert data["isActive"] is True

    def test_create_with_invalid_pattern_is_400(self, client):
        response = client.post(
            f"{BASE}/recurring-tasks",
            json={
                "clientId": "client-b",
                "templateId": "tmpl",
                "name": "Broken",
                "estimatedHours": 1,
                "recurrencePattern": {"type": "Weekly", "interval": 1, "weekdays": []},
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"]

    def test_create_with_unknown_skill_is_400(self, client):
        response = client.post(
            f"{BASE}/recurring-tasks",
            json={
                "clientId": "client-b",
                "templateId": "tmpl",
                "name": "Mystery work",
                "estimatedHours": 1,
                "recurrencePattern": {"type": "Daily", "interval": 1},
                "requiredSkills": ["sk-ghost"],
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_SKILLS"

    def test_deactivate(self, client):
        response = client.delete(f"{BASE}/recurring-tasks/rt-monthly-books")
        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "rt-monthly-books"}
        assert client.get(f"{BASE}/recurring-tasks").json()["total"] == 2

    def test_deactivate_missing_is_404(self, client):
        assert client.delete(f"{BASE}/recurring-tasks/rt-missing").status_code == 404


class TestTaskInstances:
    def test_unscheduled(self, client):
        data = client.get(f"{BASE}/task-instances/unscheduled").json()
        assert [i["id"] for i in data["items"]] == ["ti-adhoc-advice"]
        assert data["items"][0]["dueDate"] == "2025-02-20"

    def test_schedule_instance(self, client):
        response = client.patch(
            f"{BASE}/task-instances/ti-adhoc-advice",
            json={"status": "Scheduled", "assignedStaffId": "staff-1"},
        )
        assert response.status_code == 200
        assert response.json()["assignedStaffId"] == "staff-1"
        assert client.get(f"{BASE}/task-instances/unscheduled").json()["total"] == 0

    def test_bad_status_is_400(self, client):
        response = client.patch(f"{BASE}/task-instances/ti-adhoc-advice", json={"status": "Done"})
        assert response.status_code == 400

    def test_missing_instance_is_404(self, client):
        response = client.patch(f"{BASE}/task-instances/ti-missing", json={"status": "Scheduled"})
        assert response.status_code == 404


# =============================================================================
# BATCHES
# =============================================================================


class TestBatches:
    def test_generate(self, client):
        response = client.post(
            f"{BASE}/task-instances/generate",
            json={"fromDate": "2025-01-01", "toDate": "2025-01-31", "leadTimeDays": 0},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["createdCount"] == 3
        assert data["errors"] == []
        assert data["runId"].startswith("gen-")
        assert client.get(f"{BASE}/task-instances/unscheduled").json()["total"] == 4

    def test_generate_reversed_range_is_400(self, client):
        response = client.post(
            f"{BASE}/task-instances/generate",
            json={"fromDate": "2025-02-01", "toDate": "2025-01-01"},
        )
        assert response.status_code == 400

    def test_copy_reports_partial_failure(self, client):
        response = client.post(
            f"{BASE}/tasks/copy",
            json={
                "targetClientId": "client-b",
                "recurringTaskIds": ["rt-monthly-books", "rt-missing"],
                "adHocTaskIds": ["ti-adhoc-advice"],
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["copiedCount"] == 2
        assert [e["itemId"] for e in data["errors"]] == ["rt-missing"]
        assert data["adHoc"][0]["clientId"] == "client-b"


class TestHealth:
    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["success"] is True
        assert data["status"] == "healthy"
