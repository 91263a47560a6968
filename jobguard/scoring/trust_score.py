"""
Company trust score.

Starts every company at 100 and walks its history in a fixed order,
deducting for risk signals and adding remediation bonuses. Bonuses are
clamped against the running score, so the order of the steps below is
part of the result. Every adjustment is itemised as a RiskFactor.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jobguard.errors import NotFoundError
from jobguard.schemas import (
    CompanyProfile,
    JobPostingFlag,
    ReviewOutcome,
    RiskFactor,
    TrustScoreResult,
)

logger = logging.getLogger(__name__)

# --- Tunable weights ---
WEIGHT_MISSING_IMPORTANT = 4      # contact person / phone / email
WEIGHT_MISSING_NORMAL = 2         # industry, scale, location, description, website
WEIGHT_REJECTION = 5              # per historical rejection, before decay
REJECTION_DECAY = 0.7             # multiplier per elapsed quarter
REJECTION_DECAY_MIN = 0.1
REJECTION_QUARTER_DAYS = 90
CAP_REJECTION_HISTORY = 30
WEIGHT_FLAGGED_JOB = 3
CAP_FLAGGED_JOBS = 15
WEIGHT_REJECT_RATE_SEVERE = 20    # rejection rate > 50%
WEIGHT_REJECT_RATE_HIGH = 10      # rejection rate > 30%
REJECT_RATE_SEVERE = 0.5
REJECT_RATE_HIGH = 0.3
WEIGHT_UNVERIFIED = 8
BONUS_VERIFIED = 10
WEIGHT_RECENT_REJECTION = 4
CAP_RECENT_REJECTIONS = 20
BONUS_FIXED_JOB = 2
CAP_FIXED_JOBS = 10
BONUS_CLEAN_STREAK = 5
BONUS_PROFILE_COMPLETED = 5
WEIGHT_NEW_COMPANY_INCOMPLETE = 5

RECENT_WINDOW_DAYS = 30
SCORE_CAP = 100
THRESHOLD_LOW_RISK = 80
THRESHOLD_MEDIUM_RISK = 60

IMPORTANT_FIELDS = [
    ("contactPerson", "contact person"),
    ("contactPhone", "contact phone"),
    ("contactEmail", "contact email"),
]
NORMAL_FIELDS = [
    ("industry", "industry"),
    ("scale", "company size"),
    ("location", "address"),
    ("description", "company description"),
    ("website", "website"),
]

LEVEL_MESSAGES = {
    "low": "Risk is low; safe to proceed.",
    "medium": "Some risk detected; review this company carefully before proceeding.",
    "high": "Elevated risk; proceed with caution.",
}


class _RunningScore:
    """Explicit running total plus the factors that produced it."""

    def __init__(self) -> None:
        self.value: float = SCORE_CAP
        self.factors: list[RiskFactor] = []
        self.details: list[str] = []

    def deduct(self, amount: float, factor_type: str, description: str, detail: str,
               reported: Optional[float] = None) -> None:
        self.value -= amount
        self.factors.append(RiskFactor(
            type=factor_type,
            description=description,
            score=-(reported if reported is not None else amount),
        ))
        self.details.append(detail)

    def add_capped(self, amount: float) -> float:
        """Add a bonus without passing the ceiling; returns what was applied."""
        before = self.value
        self.value = min(SCORE_CAP, self.value + amount)
        return self.value - before

    def credit(self, amount: float, factor_type: str, description: str,
               detail: Optional[str] = None) -> None:
        self.factors.append(RiskFactor(type=factor_type, description=description, score=amount))
        if detail:
            self.details.append(detail)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_since(now: datetime, then: datetime) -> int:
    return math.floor((now - _as_utc(then)).total_seconds() / 86400)


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _is_blank(value: Optional[str]) -> bool:
    return not (value and value.strip())


def missing_profile_fields(profile: CompanyProfile) -> tuple[list[str], list[str]]:
    """Return (missing important fields, missing normal fields) as labels."""
    important = [label for attr, label in IMPORTANT_FIELDS if _is_blank(getattr(profile, attr))]
    normal = [label for attr, label in NORMAL_FIELDS if _is_blank(getattr(profile, attr))]
    return important, normal


def rejection_decay(days_since: int) -> float:
    quarters = days_since // REJECTION_QUARTER_DAYS
    return max(REJECTION_DECAY_MIN, REJECTION_DECAY ** quarters)


def _halve_if_verified(amount: int, verified: bool) -> int:
    return math.ceil(amount / 2) if verified else amount


def classify(score: float) -> str:
    if score >= THRESHOLD_LOW_RISK:
        return "low"
    if score >= THRESHOLD_MEDIUM_RISK:
        return "medium"
    return "high"


def calculate_trust_score(
    profile: CompanyProfile,
    reviews: Iterable[ReviewOutcome],
    postings: Iterable[JobPostingFlag],
    now: datetime,
) -> TrustScoreResult:
    """
    Compute the trust score for one company from its history.
    Pure: the same inputs and `now` always give the same result.
    """
    now = _as_utc(now)
    reviews = list(reviews)
    postings = list(postings)
    recent_cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
    is_new_company = _as_utc(profile.createdAt) > recent_cutoff
    running = _RunningScore()

    # 1. Profile completeness
    missing_important, missing_normal = missing_profile_fields(profile)
    completeness_deduction = (
        len(missing_important) * WEIGHT_MISSING_IMPORTANT
        + len(missing_normal) * WEIGHT_MISSING_NORMAL
    )
    if completeness_deduction > 0:
        missing = ", ".join(missing_important + missing_normal)
        running.deduct(
            completeness_deduction,
            "incomplete_profile",
            f"Missing profile information: {missing}",
            f"Incomplete profile: {len(missing_important) + len(missing_normal)} field(s) missing ({missing})",
        )

    # 2. Historical rejections with time decay and verification damping
    rejections = [r for r in reviews if r.outcome == "REJECTED"]
    dated_rejections = [r for r in rejections if r.decidedAt is not None]
    base_penalty = _halve_if_verified(WEIGHT_REJECTION, profile.verified)
    history_deduction = 0.0
    for review in dated_rejections:
        history_deduction += base_penalty * rejection_decay(_days_since(now, review.decidedAt))
    history_deduction = min(history_deduction, CAP_REJECTION_HISTORY)
    if history_deduction > 0:
        running.deduct(
            history_deduction,
            "review_rejections",
            f"{len(rejections)} posting(s) rejected in review; time decay and verification damping applied",
            f"Review rejections: {len(rejections)} (time decay applied)",
            reported=round_half_up(history_deduction),
        )

    # 3. Postings currently flagged high-risk
    flagged = sum(1 for p in postings if p.isHighRiskFlag)
    if flagged > 0:
        running.deduct(
            min(flagged * WEIGHT_FLAGGED_JOB, CAP_FLAGGED_JOBS),
            "high_risk_postings",
            f"{flagged} posting(s) currently flagged as high-risk",
            f"High-risk postings: {flagged}",
        )

    # 4. Rejection rate; overlaps with step 2 on purpose (rate vs. decayed count)
    submitted = sum(1 for p in postings if p.status in ("APPROVED", "REJECTED"))
    rejected = sum(1 for p in postings if p.status == "REJECTED")
    if submitted > 0:
        rate = rejected / submitted
        if rate > REJECT_RATE_SEVERE:
            running.deduct(
                WEIGHT_REJECT_RATE_SEVERE,
                "rejection_rate_severe",
                f"Posting rejection rate is {rate * 100:.1f}%, above 50%",
                f"Rejection rate too high: {rate * 100:.1f}%",
            )
        elif rate > REJECT_RATE_HIGH:
            running.deduct(
                WEIGHT_REJECT_RATE_HIGH,
                "rejection_rate_high",
                f"Posting rejection rate is {rate * 100:.1f}%, above 30%",
                f"Rejection rate elevated: {rate * 100:.1f}%",
            )

    # 5. Verification
    if not profile.verified:
        running.deduct(
            WEIGHT_UNVERIFIED,
            "unverified",
            "Company has not been verified",
            "Company not verified",
        )
    else:
        applied = running.add_capped(BONUS_VERIFIED)
        if applied > 0:
            running.credit(applied, "verified", "Company has been verified")

    # 6. Rejections in the recent window, layered on top of step 2
    recent_rejections = [r for r in dated_rejections if _as_utc(r.decidedAt) >= recent_cutoff]
    if recent_rejections:
        recent_deduction = _halve_if_verified(
            len(recent_rejections) * WEIGHT_RECENT_REJECTION, profile.verified
        )
        recent_deduction = min(recent_deduction, CAP_RECENT_REJECTIONS)
        running.deduct(
            recent_deduction,
            "recent_rejections",
            f"{len(recent_rejections)} posting(s) rejected in the last {RECENT_WINDOW_DAYS} days",
            f"Recent risk: {len(recent_rejections)} rejection(s) in the last {RECENT_WINDOW_DAYS} days",
        )

    # 7. Remediated postings: approved, unflagged, re-approved recently
    recently_approved_jobs = {
        r.jobId
        for r in reviews
        if r.outcome == "APPROVED"
        and r.jobId is not None
        and r.decidedAt is not None
        and _as_utc(r.decidedAt) >= recent_cutoff
    }
    fixed = sum(
        1
        for p in postings
        if p.status == "APPROVED" and not p.isHighRiskFlag and p.id in recently_approved_jobs
    )
    if fixed > 0:
        fix_bonus = min(fixed * BONUS_FIXED_JOB, CAP_FIXED_JOBS)
        running.add_capped(fix_bonus)
        running.credit(
            fix_bonus,
            "remediated_postings",
            f"{fixed} posting(s) remediated and approved again",
            f"Remediation: {fixed} posting(s) fixed and re-approved",
        )

    # 8. Clean streak since the last rejection
    if rejections and not recent_rejections and dated_rejections:
        last_rejection = max(_as_utc(r.decidedAt) for r in dated_rejections)
        clean_days = _days_since(now, last_rejection)
        if clean_days >= RECENT_WINDOW_DAYS:
            running.add_capped(BONUS_CLEAN_STREAK)
            running.credit(
                BONUS_CLEAN_STREAK,
                "sustained_improvement",
                f"No rejections for {clean_days} consecutive days",
                f"Sustained improvement: {clean_days} days without a rejection",
            )

    # 9. Profile completed recently by a new company (timestamp heuristic)
    recently_updated = _as_utc(profile.updatedAt) >= recent_cutoff
    if completeness_deduction == 0 and recently_updated and is_new_company:
        running.add_capped(BONUS_PROFILE_COMPLETED)
        running.credit(
            BONUS_PROFILE_COMPLETED,
            "profile_completed",
            "Profile is complete and recently updated",
            "Profile completed: information complete and kept up to date",
        )

    # 10. New company with an incomplete profile
    if is_new_company and completeness_deduction > 0:
        running.deduct(
            WEIGHT_NEW_COMPANY_INCOMPLETE,
            "new_company",
            "Newly registered company with an incomplete profile",
            "New company: recently registered with incomplete information",
        )

    # 11-12. Clamp, round, classify
    score = round_half_up(max(0, min(running.value, SCORE_CAP)))
    level = classify(score)

    return TrustScoreResult(
        level=level,
        score=score,
        message=LEVEL_MESSAGES[level],
        factors=running.factors,
        details=running.details,
    )


def compute_trust_score(company_id: str, store, now: datetime) -> TrustScoreResult:
    """Look up a company's history in `store` and score it."""
    profile = store.get_company(company_id)
    if profile is None:
        raise NotFoundError(f"Company {company_id} not found")

    result = calculate_trust_score(
        profile,
        store.reviews_for_company(company_id),
        store.postings_for_company(company_id),
        now,
    )
    logger.info(
        f"trust_score: {company_id} -> {result.score} ({result.level}) "
        f"with {len(result.factors)} factors"
    )
    return result
