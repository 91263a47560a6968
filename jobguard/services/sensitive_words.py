"""
Keyword screening for submitted content.
Plain substring matching against each rule's pipe-delimited keyword list.
"""

import logging
from jobguard.schemas import MatchedRisk, RiskRule, RuleHit
from jobguard.services.rule_config import SensitiveWordConfig

logger = logging.getLogger(__name__)


def find_keywords(content: str, config: SensitiveWordConfig) -> list[str]:
    matched: list[str] = []
    for keyword in config.keywords:
        if keyword in content and keyword not in matched:
            matched.append(keyword)
    return matched


def check_sensitive_words(
    content: str, rules: list[tuple[RiskRule, SensitiveWordConfig]]
) -> list[RuleHit]:
    """One hit per rule with at least one keyword present in the content."""
    hits: list[RuleHit] = []

    for rule, config in rules:
        matched = find_keywords(content, config)
        if not matched:
            continue

        keyword_list = ", ".join(matched)
        logger.info(f"sensitive_words: rule {rule.id} ({rule.action}) matched {keyword_list}")

        if rule.action == "block":
            suggestion = (
                f"Content contains prohibited keywords: {keyword_list}. "
                "Please revise the content and submit again."
            )
        else:
            suggestion = (
                f"Content contains keywords that need attention: {keyword_list}. "
                "It has been marked high-risk for priority review; it is not blocked."
            )

        hits.append(RuleHit(
            risk=MatchedRisk(
                ruleId=rule.id,
                ruleType=rule.ruleType,
                matched=f"Matched sensitive keywords: {keyword_list}",
                action=rule.action,
            ),
            suggestion=suggestion,
            keywords=matched,
        ))

    return hits
