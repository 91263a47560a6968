"""
In-memory source of truth for profiles, review history, jobs and rules.

Stands in for the platform's data-access layer: it hands out snapshots to
the scoring code and owns rule administration. Optionally seeded from a
JSON file named by JOBGUARD_DATA_FILE.
"""

import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from jobguard.errors import NotFoundError
from jobguard.schemas import (
    CompanyProfile,
    ExistingPosting,
    JobPostingFlag,
    JobStatus,
    ReviewOutcome,
    RiskRule,
    RuleCreateRequest,
    RuleUpdateRequest,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Seed files mix naive and "Z" timestamps; naive ones are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class JobRecord(BaseModel):
    id: str
    companyId: str
    title: str = ""
    description: Optional[str] = None
    requirements: Optional[str] = None
    status: JobStatus
    isHighRiskFlag: bool = False
    createdAt: datetime
    updatedAt: datetime

    def as_flag(self) -> JobPostingFlag:
        return JobPostingFlag(
            id=self.id,
            companyId=self.companyId,
            isHighRiskFlag=self.isHighRiskFlag,
            status=self.status,
            createdAt=self.createdAt,
            updatedAt=self.updatedAt,
        )

    def as_posting(self) -> ExistingPosting:
        return ExistingPosting(
            id=self.id,
            title=self.title,
            description=self.description,
            requirements=self.requirements,
            status=self.status,
        )


class RiskStore:
    def __init__(
        self,
        companies: Optional[list[CompanyProfile]] = None,
        reviews: Optional[list[ReviewOutcome]] = None,
        jobs: Optional[list[JobRecord]] = None,
        rules: Optional[list[RiskRule]] = None,
    ):
        self._lock = threading.Lock()
        self._companies = {c.id: c for c in companies or []}
        self._reviews = list(reviews or [])
        self._jobs = {j.id: j for j in jobs or []}
        self._rules = {r.id: r for r in rules or []}

    @classmethod
    def from_file(cls, path: Path) -> "RiskStore":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        store = cls(
            companies=[CompanyProfile(**c) for c in data.get("companies", [])],
            reviews=[ReviewOutcome(**r) for r in data.get("reviews", [])],
            jobs=[JobRecord(**j) for j in data.get("jobs", [])],
            rules=[RiskRule(**r) for r in data.get("rules", [])],
        )
        logger.info(
            f"store: loaded {len(store._companies)} companies, {len(store._reviews)} reviews, "
            f"{len(store._jobs)} jobs, {len(store._rules)} rules from {path}"
        )
        return store

    # --- Snapshots for scoring ---

    def get_company(self, company_id: str) -> Optional[CompanyProfile]:
        with self._lock:
            return self._companies.get(company_id)

    def reviews_for_company(self, company_id: str) -> list[ReviewOutcome]:
        with self._lock:
            return [r for r in self._reviews if r.companyId == company_id]

    def postings_for_company(self, company_id: str) -> list[JobPostingFlag]:
        with self._lock:
            return [j.as_flag() for j in self._jobs.values() if j.companyId == company_id]

    def existing_postings(self) -> list[ExistingPosting]:
        """All jobs, most recently updated first."""
        with self._lock:
            jobs = sorted(self._jobs.values(), key=lambda j: _as_utc(j.updatedAt), reverse=True)
        return [j.as_posting() for j in jobs]

    # --- Rule administration ---

    def rules(self) -> list[RiskRule]:
        with self._lock:
            return list(self._rules.values())

    def get_rule(self, rule_id: str) -> RiskRule:
        with self._lock:
            rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFoundError(f"Rule {rule_id} not found")
        return rule

    def create_rule(self, request: RuleCreateRequest) -> RiskRule:
        now = datetime.now(timezone.utc)
        rule = RiskRule(
            id=str(uuid.uuid4()),
            ruleType=request.ruleType,
            content=request.content,
            action=request.action,
            enabled=request.enabled,
            createdAt=now,
            updatedAt=now,
        )
        with self._lock:
            self._rules[rule.id] = rule
        logger.info(f"store: created {rule.ruleType} rule {rule.id} ({rule.action})")
        return rule

    def update_rule(self, rule_id: str, request: RuleUpdateRequest) -> RiskRule:
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                raise NotFoundError(f"Rule {rule_id} not found")
            updated = rule.model_copy(
                update={**changes, "updatedAt": datetime.now(timezone.utc)}
            )
            self._rules[rule_id] = updated
        logger.info(f"store: updated rule {rule_id} ({', '.join(changes) or 'no changes'})")
        return updated

    def delete_rule(self, rule_id: str) -> None:
        with self._lock:
            if self._rules.pop(rule_id, None) is None:
                raise NotFoundError(f"Rule {rule_id} not found")
        logger.info(f"store: deleted rule {rule_id}")


_store: Optional[RiskStore] = None
_store_lock = threading.Lock()


def get_store() -> RiskStore:
    """Process-wide store, seeded from JOBGUARD_DATA_FILE on first use."""
    global _store
    if _store is not None:
        return _store
    with _store_lock:
        if _store is None:
            data_file = os.getenv("JOBGUARD_DATA_FILE")
            if data_file:
                _store = RiskStore.from_file(Path(data_file))
            else:
                logger.warning("store: JOBGUARD_DATA_FILE not configured, starting empty")
                _store = RiskStore()
    return _store


def reset_store(store: Optional[RiskStore] = None) -> None:
    global _store
    with _store_lock:
        _store = store
