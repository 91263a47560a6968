"""
Minimum-quality checks for job postings: required sections and lengths.
"""

import logging
from typing import Optional
from jobguard.schemas import MatchedRisk, RiskRule, RuleHit
from jobguard.services.rule_config import ContentQualityConfig

logger = logging.getLogger(__name__)

ISSUE_SEPARATOR = "；"


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


def find_quality_issues(
    config: ContentQualityConfig,
    title: Optional[str],
    description: Optional[str],
    requirements: Optional[str],
) -> list[str]:
    issues: list[str] = []
    title_text = _clean(title)
    description_text = _clean(description)
    requirements_text = _clean(requirements)

    if not description_text:
        if config.requireDescription:
            issues.append("Job description is missing")
    elif len(description_text) < config.minDescriptionLength:
        issues.append(
            f"Job description is too short (at least {config.minDescriptionLength} characters)"
        )

    if not requirements_text:
        if config.requireRequirements:
            issues.append("Job requirements are missing")
    elif len(requirements_text) < config.minRequirementsLength:
        issues.append(
            f"Job requirements are too short (at least {config.minRequirementsLength} characters)"
        )

    total_length = len(title_text) + len(description_text) + len(requirements_text)
    if total_length < config.minLength:
        issues.append(f"Job content is too short overall (at least {config.minLength} characters)")

    return issues


def check_content_quality(
    rules: list[tuple[RiskRule, ContentQualityConfig]],
    title: Optional[str],
    description: Optional[str],
    requirements: Optional[str],
) -> list[RuleHit]:
    """Thresholds come from the first active rule; one hit per active rule."""
    if not rules:
        return []

    issues = find_quality_issues(rules[0][1], title, description, requirements)
    if not issues:
        return []

    summary = ISSUE_SEPARATOR.join(issues)
    logger.info(f"content_quality: {len(issues)} issue(s): {summary}")

    return [
        RuleHit(
            risk=MatchedRisk(
                ruleId=rule.id,
                ruleType=rule.ruleType,
                matched=summary,
                action=rule.action,
            ),
            suggestion=f"Please improve the posting: {summary}",
        )
        for rule, _ in rules
    ]
