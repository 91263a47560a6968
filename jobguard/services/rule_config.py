"""
Typed views of RiskRule.content.

Each rule type stores its configuration as an opaque string: a pipe list of
keywords for sensitive_word, JSON (or a bare number) for the others. Parsing
happens once per evaluation. Bad content never raises; it falls back to the
defaults below so a typo in an admin-edited rule cannot take submissions down.
"""

import json
import logging
from typing import Any, Optional, Union
from pydantic import BaseModel
from jobguard.schemas import RiskRule

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.8

# Accepted spellings for each content_quality key; snake_case is what the
# seed data and older admin tooling write.
QUALITY_KEY_ALIASES = {
    "minLength": ("minLength", "min_length"),
    "minDescriptionLength": ("minDescriptionLength", "min_description_length"),
    "minRequirementsLength": ("minRequirementsLength", "min_requirements_length"),
    "requireDescription": ("requireDescription", "require_description"),
    "requireRequirements": ("requireRequirements", "require_requirements"),
}
THRESHOLD_KEYS = ("similarity_threshold", "similarityThreshold", "threshold")


class SensitiveWordConfig(BaseModel):
    keywords: list[str]


class DuplicateDetectionConfig(BaseModel):
    similarityThreshold: float = DEFAULT_SIMILARITY_THRESHOLD


class ContentQualityConfig(BaseModel):
    minLength: int = 50
    minDescriptionLength: int = 30
    minRequirementsLength: int = 20
    requireDescription: bool = True
    requireRequirements: bool = True


RuleConfig = Union[SensitiveWordConfig, DuplicateDetectionConfig, ContentQualityConfig]


def parse_keywords(content: str) -> SensitiveWordConfig:
    keywords = [word.strip() for word in content.split("|")]
    return SensitiveWordConfig(keywords=[word for word in keywords if word])


def _load_json(content: str) -> Optional[Any]:
    try:
        return json.loads(content)
    except (TypeError, ValueError):
        return None


def _as_threshold(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        return None
    if not 0 <= threshold <= 1:
        return None
    return threshold


def parse_duplicate_config(content: Optional[str]) -> DuplicateDetectionConfig:
    """Accepts a bare float ("0.85") or JSON ({"similarity_threshold": 0.85})."""
    raw = (content or "").strip()
    threshold = _as_threshold(raw)
    if threshold is None:
        data = _load_json(raw)
        if isinstance(data, dict):
            for key in THRESHOLD_KEYS:
                if key in data:
                    threshold = _as_threshold(data[key])
                    break
        elif data is not None:
            threshold = _as_threshold(data)

    if threshold is None:
        logger.warning(
            f"rule_config: unusable duplicate threshold {raw[:50]!r}, "
            f"using {DEFAULT_SIMILARITY_THRESHOLD}"
        )
        return DuplicateDetectionConfig()
    return DuplicateDetectionConfig(similarityThreshold=threshold)


def parse_quality_config(content: Optional[str]) -> ContentQualityConfig:
    data = _load_json(content or "")
    if not isinstance(data, dict):
        logger.warning("rule_config: content_quality rule is not a JSON object, using defaults")
        return ContentQualityConfig()

    values: dict[str, Any] = {}
    for field, aliases in QUALITY_KEY_ALIASES.items():
        for alias in aliases:
            if alias in data:
                values[field] = data[alias]
                break

    try:
        return ContentQualityConfig(**values)
    except ValueError as e:
        logger.warning(f"rule_config: invalid content_quality values ({e}), using defaults")
        return ContentQualityConfig()


def parse_rule_config(rule: RiskRule) -> RuleConfig:
    if rule.ruleType == "sensitive_word":
        return parse_keywords(rule.content)
    if rule.ruleType == "duplicate_detection":
        return parse_duplicate_config(rule.content)
    return parse_quality_config(rule.content)
