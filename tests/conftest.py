"""
Pytest configuration and shared fixtures.

Every scoring test runs against the fixed NOW below, never the wall clock.
"""

import pytest
from datetime import datetime, timedelta, timezone
from jobguard.schemas import CompanyProfile, ExistingPosting, ReviewOutcome, RiskRule
from jobguard.services.store import JobRecord, RiskStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


# =============================================================================
# FACTORY FUNCTIONS FOR TEST DATA
# =============================================================================

def make_company(**overrides) -> CompanyProfile:
    """
    Complete, unverified company registered a year ago and not edited since.
    """
    data = {
        "id": "company-1",
        "industry": "Software",
        "scale": "100-499",
        "location": "Shanghai",
        "description": "We build scheduling tools for hospitals.",
        "website": "https://example.com",
        "contactPerson": "Li Wei",
        "contactPhone": "13800000000",
        "contactEmail": "hr@example.com",
        "verified": False,
        "createdAt": days_ago(365),
        "updatedAt": days_ago(200),
    }
    data.update(overrides)
    return CompanyProfile(**data)


def make_bare_company(**overrides) -> CompanyProfile:
    data = {
        "id": "company-bare",
        "verified": False,
        "createdAt": days_ago(365),
        "updatedAt": days_ago(365),
    }
    data.update(overrides)
    return CompanyProfile(**data)


def make_review(outcome: str = "REJECTED", decided_days_ago=0, **overrides) -> ReviewOutcome:
    data = {
        "companyId": "company-1",
        "jobId": None,
        "outcome": outcome,
        "decidedAt": days_ago(decided_days_ago) if decided_days_ago is not None else None,
        "jobCreatedAt": days_ago(400),
    }
    data.update(overrides)
    return ReviewOutcome(**data)


def make_job(job_id: str = "job-1", **overrides) -> JobRecord:
    data = {
        "id": job_id,
        "companyId": "company-1",
        "title": "Backend Engineer",
        "description": "Build and operate the payments platform used by our partners.",
        "requirements": "Three years of Python and PostgreSQL experience.",
        "status": "APPROVED",
        "isHighRiskFlag": False,
        "createdAt": days_ago(90),
        "updatedAt": days_ago(10),
    }
    data.update(overrides)
    return JobRecord(**data)


def make_flag(job_id: str = "job-1", **overrides):
    return make_job(job_id, **overrides).as_flag()


def make_posting(posting_id: str = "posting-1", **overrides) -> ExistingPosting:
    data = {
        "id": posting_id,
        "title": "Backend Engineer",
        "description": "Build and operate the payments platform used by our partners.",
        "requirements": "Three years of Python and PostgreSQL experience.",
        "status": "APPROVED",
    }
    data.update(overrides)
    return ExistingPosting(**data)


def make_rule(rule_type: str = "sensitive_word", content: str = "scam|pyramid scheme",
              action: str = "block", **overrides) -> RiskRule:
    data = {
        "id": f"rule-{rule_type}-{action}",
        "ruleType": rule_type,
        "content": content,
        "action": action,
        "enabled": True,
    }
    data.update(overrides)
    return RiskRule(**data)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep local .env settings out of the tests."""
    monkeypatch.delenv("DUPLICATE_CORPUS_LIMIT", raising=False)
    monkeypatch.delenv("JOBGUARD_ADMIN_ROLE", raising=False)
    monkeypatch.delenv("JOBGUARD_DATA_FILE", raising=False)


@pytest.fixture
def store() -> RiskStore:
    """Store with one clean company, one risky company and a default rule set."""
    return RiskStore(
        companies=[
            make_company(),
            make_bare_company(id="company-risky"),
        ],
        reviews=[
            make_review("REJECTED", 0, companyId="company-risky", jobId="job-risky"),
        ],
        jobs=[
            make_job("job-1"),
            make_job("job-risky", companyId="company-risky", status="REJECTED",
                     title="Data Entry Clerk", description="Easy work from home.",
                     requirements=None),
        ],
        rules=[
            make_rule("sensitive_word", "scam|pyramid scheme|get rich quick", "block", id="rule-1"),
            make_rule("sensitive_word", "part-time clicking|daily pay", "mark", id="rule-2"),
            make_rule("duplicate_detection", '{"similarity_threshold": 0.9}', "mark", id="rule-3"),
            make_rule("content_quality",
                      '{"min_description_length": 30, "min_requirements_length": 20}',
                      "mark", id="rule-4"),
        ],
    )
