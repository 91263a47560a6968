"""
Content risk rule engine.

Runs every enabled rule against one submission and folds the hits into a
gating verdict. Rule groups are evaluated independently; a group that fails
to evaluate contributes nothing rather than blocking the submission.
"""

import logging
from typing import Callable, Iterable, Optional
from jobguard.errors import InvalidInputError
from jobguard.schemas import (
    ContentCheckVerdict,
    ExistingPosting,
    RiskRule,
    RuleHit,
    SubmissionDecision,
)
from jobguard.services.content_quality import check_content_quality
from jobguard.services.duplicate_detection import check_duplicates
from jobguard.services.rule_config import parse_rule_config
from jobguard.services.sensitive_words import check_sensitive_words

logger = logging.getLogger(__name__)

JOB_CONTEXT = "job"


def _group_rules(rules: Iterable[RiskRule]) -> dict[str, list]:
    groups: dict[str, list] = {
        "sensitive_word": [],
        "duplicate_detection": [],
        "content_quality": [],
    }
    for rule in rules:
        if not rule.enabled:
            continue
        groups[rule.ruleType].append((rule, parse_rule_config(rule)))
    return groups


def _run_group(name: str, check: Callable[[], list[RuleHit]]) -> list[RuleHit]:
    try:
        return check()
    except Exception as e:
        logger.error(f"rule_engine: {name} rules failed, skipping: {e}")
        return []


def assemble_verdict(hits: list[RuleHit]) -> ContentCheckVerdict:
    has_block = any(hit.risk.action == "block" for hit in hits)
    has_mark = any(hit.risk.action == "mark" for hit in hits)

    blocked_keywords: list[str] = []
    for hit in hits:
        if hit.risk.action != "block" or hit.risk.ruleType != "sensitive_word":
            continue
        for keyword in hit.keywords:
            if keyword not in blocked_keywords:
                blocked_keywords.append(keyword)

    return ContentCheckVerdict(
        passed=not has_block,
        matchedRisks=[hit.risk for hit in hits],
        suggestions=[hit.suggestion for hit in hits],
        hasBlockRisk=has_block,
        hasMarkRisk=has_mark,
        blockedKeywords=blocked_keywords,
    )


def evaluate_content(
    content: str,
    context_type: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    requirements: Optional[str] = None,
    exclude_id: Optional[str] = None,
    *,
    rules: Iterable[RiskRule],
    corpus: Iterable[ExistingPosting] = (),
) -> ContentCheckVerdict:
    """
    Evaluate one submission against the enabled rules.

    Duplicate and quality rules only apply to job postings. Mark-action hits
    never block; only a block-action hit fails the verdict.
    """
    if not content or not content.strip():
        raise InvalidInputError("Content must not be empty")

    groups = _group_rules(rules)
    hits: list[RuleHit] = []

    hits.extend(_run_group(
        "sensitive_word",
        lambda: check_sensitive_words(content, groups["sensitive_word"]),
    ))

    if context_type == JOB_CONTEXT:
        hits.extend(_run_group(
            "duplicate_detection",
            lambda: check_duplicates(
                groups["duplicate_detection"], title, description, requirements, corpus, exclude_id
            ),
        ))
        hits.extend(_run_group(
            "content_quality",
            lambda: check_content_quality(
                groups["content_quality"], title, description, requirements
            ),
        ))

    verdict = assemble_verdict(hits)
    logger.info(
        f"rule_engine: passed={verdict.passed} with {len(hits)} risk(s) "
        f"(block={verdict.hasBlockRisk}, mark={verdict.hasMarkRisk})"
    )
    return verdict


def gate_submission(verdict: ContentCheckVerdict) -> SubmissionDecision:
    """
    Translate a verdict into what the submission workflow should do:
    refuse blocked content, and flag the posting when any rule marked it.
    """
    if not verdict.passed:
        if verdict.blockedKeywords:
            message = (
                f"Your posting contains prohibited keywords: {', '.join(verdict.blockedKeywords)}. "
                "Please revise it and submit again."
            )
        elif verdict.suggestions:
            message = "; ".join(verdict.suggestions)
        else:
            message = "The posting did not pass the content check; please review its content."
        return SubmissionDecision(allowed=False, markHighRisk=False, message=message)

    if verdict.hasMarkRisk:
        return SubmissionDecision(
            allowed=True,
            markHighRisk=True,
            message="Submitted for review; the posting was flagged for priority review.",
        )
    return SubmissionDecision(allowed=True, markHighRisk=False, message="Submitted for review.")
