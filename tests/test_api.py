"""
Tests for the HTTP endpoints.

Run:
    pytest tests/test_api.py -v
"""

import json
from concurrent.futures import ThreadPoolExecutor
import pytest
from fastapi.testclient import TestClient
from conftest import NOW
from jobguard.main import app
from jobguard.routers.companies import current_time
from jobguard.services import store as store_module
from jobguard.services.store import RiskStore, get_store

ADMIN = {"x-user-role": "PLATFORM_ADMIN"}


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[current_time] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "jobguard"}


class TestCompanyRisk:

    def test_clean_company(self, client):
        response = client.get("/companies/company-1/risk")
        assert response.status_code == 200
        body = response.json()
        # unverified only; job-1 is approved with no recent approval review
        assert body["riskScore"] == 92
        assert body["riskLevel"] == "low"
        assert body["riskMessage"]
        assert body["riskDetails"] == ["Company not verified"]
        assert body["riskFactors"] == [
            {"type": "unverified", "description": "Company has not been verified", "score": -8}
        ]

    def test_risky_company(self, client):
        body = client.get("/companies/company-risky/risk").json()
        assert body["riskScore"] == 41
        assert body["riskLevel"] == "high"
        assert {f["type"] for f in body["riskFactors"]} == {
            "incomplete_profile",
            "review_rejections",
            "rejection_rate_severe",
            "unverified",
            "recent_rejections",
        }

    def test_unknown_company(self, client):
        response = client.get("/companies/nope/risk")
        assert response.status_code == 404


class TestContentCheck:

    def test_empty_content(self, client):
        response = client.post("/risk/check", json={"content": ""})
        assert response.status_code == 400

    def test_blocked_content(self, client):
        response = client.post("/risk/check", json={"content": "get rich quick with this scam"})
        assert response.status_code == 200
        body = response.json()
        assert body["passed"] is False
        assert body["riskSummary"]["hasBlockRisk"] is True
        assert body["riskSummary"]["blockedKeywords"] == ["scam", "get rich quick"]
        assert body["risks"][0]["ruleId"] == "rule-1"
        assert body["risks"][0]["action"] == "block"

    def test_job_duplicate_of_existing_posting(self, client):
        response = client.post("/risk/check", json={
            "content": "Backend Engineer posting",
            "type": "job",
            "jobId": "job-new",
            "title": "Backend Engineer",
            "description": "Build and operate the payments platform used by our partners.",
            "requirements": "Three years of Python and PostgreSQL experience.",
        })
        body = response.json()
        assert body["passed"] is True
        assert body["riskSummary"]["hasMarkRisk"] is True
        assert [r["ruleType"] for r in body["risks"]] == ["duplicate_detection"]

    def test_resubmitting_own_posting_is_not_a_duplicate(self, client):
        response = client.post("/risk/check", json={
            "content": "Backend Engineer posting",
            "type": "job",
            "jobId": "job-1",
            "title": "Backend Engineer",
            "description": "Build and operate the payments platform used by our partners.",
            "requirements": "Three years of Python and PostgreSQL experience.",
        })
        body = response.json()
        assert body["passed"] is True
        assert body["risks"] == []
        assert body["suggestions"] == []

    def test_low_quality_job(self, client):
        response = client.post("/risk/check", json={
            "content": "Clerk",
            "type": "job",
            "title": "Clerk",
            "description": "Easy work",
        })
        body = response.json()
        assert body["passed"] is True
        assert body["risks"][0]["ruleType"] == "content_quality"
        assert "Job requirements are missing" in body["risks"][0]["matched"]


class TestRuleAdministration:

    def test_requires_admin_role(self, client):
        assert client.get("/risk/rules").status_code == 403
        assert client.get("/risk/rules", headers={"x-user-role": "EMPLOYER"}).status_code == 403

    def test_admin_role_is_configurable(self, client, monkeypatch):
        monkeypatch.setenv("JOBGUARD_ADMIN_ROLE", "SCHOOL_ADMIN")
        assert client.get("/risk/rules", headers=ADMIN).status_code == 403
        assert client.get("/risk/rules", headers={"x-user-role": "SCHOOL_ADMIN"}).status_code == 200

    def test_list_is_paginated(self, client):
        body = client.get("/risk/rules?page=2&limit=3", headers=ADMIN).json()
        assert [r["id"] for r in body["items"]] == ["rule-4"]
        assert body["pagination"] == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}

    def test_create_update_delete(self, client):
        created = client.post(
            "/risk/rules",
            json={"ruleType": "sensitive_word", "content": "wire transfer", "action": "block"},
            headers=ADMIN,
        )
        assert created.status_code == 201
        rule_id = created.json()["id"]
        assert created.json()["enabled"] is True

        check = client.post("/risk/check", json={"content": "pay by wire transfer"}).json()
        assert check["passed"] is False

        updated = client.put(f"/risk/rules/{rule_id}", json={"enabled": False}, headers=ADMIN)
        assert updated.status_code == 200
        assert updated.json()["enabled"] is False
        assert updated.json()["content"] == "wire transfer"

        check = client.post("/risk/check", json={"content": "pay by wire transfer"}).json()
        assert check["passed"] is True

        assert client.delete(f"/risk/rules/{rule_id}", headers=ADMIN).status_code == 200
        assert client.delete(f"/risk/rules/{rule_id}", headers=ADMIN).status_code == 404

    def test_create_rejects_unknown_type(self, client):
        response = client.post(
            "/risk/rules",
            json={"ruleType": "ml_classifier", "content": "x", "action": "block"},
            headers=ADMIN,
        )
        assert response.status_code == 422

    def test_get_single_rule(self, client):
        response = client.get("/risk/rules/rule-3", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["ruleType"] == "duplicate_detection"
        assert client.get("/risk/rules/missing", headers=ADMIN).status_code == 404
        assert client.get("/risk/rules/rule-3").status_code == 403

    def test_update_unknown_rule(self, client):
        response = client.put("/risk/rules/missing", json={"enabled": False}, headers=ADMIN)
        assert response.status_code == 404


class TestStoreLoading:

    def test_store_seeded_from_data_file(self, tmp_path, monkeypatch):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({
            "companies": [{
                "id": "c1",
                "verified": True,
                "createdAt": "2025-01-01T00:00:00Z",
                "updatedAt": "2025-01-01T00:00:00Z",
            }],
            "rules": [{"id": "r1", "ruleType": "sensitive_word", "content": "scam", "action": "mark"}],
        }))
        monkeypatch.setenv("JOBGUARD_DATA_FILE", str(data_file))
        store_module.reset_store()
        try:
            loaded = get_store()
            assert isinstance(loaded, RiskStore)
            assert loaded.get_company("c1").verified is True
            assert [r.id for r in loaded.rules()] == ["r1"]
        finally:
            store_module.reset_store()

    def test_mixed_timezone_timestamps_in_seed_data(self, tmp_path, monkeypatch):
        job = {
            "companyId": "c1",
            "title": "Backend Engineer",
            "description": "Build and operate the payments platform used by our partners.",
            "requirements": "Three years of Python and PostgreSQL experience.",
            "status": "APPROVED",
            "createdAt": "2025-01-01T00:00:00Z",
        }
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({
            "jobs": [
                {**job, "id": "naive", "updatedAt": "2025-06-01T00:00:00"},
                {**job, "id": "aware", "updatedAt": "2025-01-01T00:00:00Z"},
            ],
        }))
        monkeypatch.setenv("JOBGUARD_DATA_FILE", str(data_file))
        store_module.reset_store()
        try:
            assert [p.id for p in get_store().existing_postings()] == ["naive", "aware"]

            response = TestClient(app).post("/risk/check", json={
                "content": "fine text",
                "type": "job",
                "title": "Backend Engineer",
                "description": "Build and operate the payments platform used by our partners.",
                "requirements": "Three years of Python and PostgreSQL experience.",
            })
            assert response.status_code == 200
            assert response.json()["passed"] is True
        finally:
            store_module.reset_store()

    def test_concurrent_first_use_builds_one_store(self):
        store_module.reset_store()
        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                stores = list(pool.map(lambda _: get_store(), range(32)))
            assert all(s is stores[0] for s in stores)
        finally:
            store_module.reset_store()
