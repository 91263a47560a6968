"""
Near-duplicate detection for job postings.

Compares the submission against existing approved / pending postings using
the Jaccard index of their word sets. The corpus is capped for cost; within
the cap every posting is compared, the scan is never stopped early.
"""

import logging
import os
from typing import Iterable, Optional
from jobguard.schemas import ExistingPosting, MatchedRisk, RiskRule, RuleHit
from jobguard.services.rule_config import DuplicateDetectionConfig

logger = logging.getLogger(__name__)

DEFAULT_CORPUS_LIMIT = 100
COMPARABLE_STATUSES = ("APPROVED", "PENDING_REVIEW")


def corpus_limit() -> int:
    raw = os.getenv("DUPLICATE_CORPUS_LIMIT")
    if not raw:
        return DEFAULT_CORPUS_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        logger.warning(f"duplicate_detection: invalid DUPLICATE_CORPUS_LIMIT {raw!r}")
        return DEFAULT_CORPUS_LIMIT
    return limit if limit > 0 else DEFAULT_CORPUS_LIMIT


def comparison_text(*parts: Optional[str]) -> str:
    return " ".join(part.strip() for part in parts if part and part.strip())


def tokenize(text: str) -> set[str]:
    return {word for word in text.lower().split() if len(word) > 1}


def jaccard_similarity(a: str, b: str) -> float:
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def select_corpus(
    postings: Iterable[ExistingPosting], exclude_id: Optional[str], limit: int
) -> list[ExistingPosting]:
    corpus: list[ExistingPosting] = []
    for posting in postings:
        if posting.status not in COMPARABLE_STATUSES:
            continue
        if exclude_id is not None and posting.id == exclude_id:
            continue
        corpus.append(posting)
        if len(corpus) >= limit:
            break
    return corpus


def most_similar(
    text: str, corpus: list[ExistingPosting]
) -> tuple[float, Optional[ExistingPosting]]:
    best_score = 0.0
    best_posting: Optional[ExistingPosting] = None
    for posting in corpus:
        other = comparison_text(posting.title, posting.description, posting.requirements)
        score = jaccard_similarity(text, other)
        if best_posting is None or score > best_score:
            best_score = score
            best_posting = posting
    return best_score, best_posting


def check_duplicates(
    rules: list[tuple[RiskRule, DuplicateDetectionConfig]],
    title: Optional[str],
    description: Optional[str],
    requirements: Optional[str],
    postings: Iterable[ExistingPosting],
    exclude_id: Optional[str] = None,
) -> list[RuleHit]:
    """
    The threshold comes from the first active rule; every active rule gets
    a hit when the best match reaches it.
    """
    if not rules:
        return []

    threshold = rules[0][1].similarityThreshold
    text = comparison_text(title, description, requirements)
    if not text:
        return []

    corpus = select_corpus(postings, exclude_id, corpus_limit())
    best_score, best_posting = most_similar(text, corpus)
    logger.info(
        f"duplicate_detection: best similarity {best_score:.3f} over {len(corpus)} postings "
        f"(threshold {threshold})"
    )

    # Disjoint texts never count as duplicates, even with a zero threshold
    if best_posting is None or best_score == 0 or best_score < threshold:
        return []

    percent = f"{best_score * 100:.1f}%"
    hits: list[RuleHit] = []
    for rule, _ in rules:
        if rule.action == "block":
            suggestion = (
                f"This posting is {percent} similar to the existing posting \"{best_posting.title}\". "
                "Please revise it so it is not a duplicate."
            )
        else:
            suggestion = (
                f"This posting is {percent} similar to the existing posting \"{best_posting.title}\". "
                "It has been marked for priority review; it is not blocked."
            )
        hits.append(RuleHit(
            risk=MatchedRisk(
                ruleId=rule.id,
                ruleType=rule.ruleType,
                matched=f"Similar to existing posting \"{best_posting.title}\" ({percent} similarity)",
                action=rule.action,
            ),
            suggestion=suggestion,
        ))
    return hits
