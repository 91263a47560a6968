import logging
import math
import os
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from jobguard.errors import InvalidInputError, NotFoundError
from jobguard.schemas import (
    ContentCheckRequest,
    ContentCheckResponse,
    Pagination,
    RiskRule,
    RiskSummary,
    RuleCreateRequest,
    RuleListResponse,
    RuleUpdateRequest,
)
from jobguard.scoring.content_verdict import evaluate_content
from jobguard.services.store import RiskStore, get_store

router = APIRouter(prefix="/risk", tags=["risk"])
logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = "PLATFORM_ADMIN"


def require_admin(x_user_role: Optional[str] = Header(default=None)) -> None:
    """Role header is set by the gateway after authentication."""
    admin_role = os.getenv("JOBGUARD_ADMIN_ROLE", DEFAULT_ADMIN_ROLE)
    if x_user_role != admin_role:
        raise HTTPException(status_code=403, detail="Rule administration requires the admin role")


@router.post("/check", response_model=ContentCheckResponse)
async def check_content(
    request: ContentCheckRequest,
    store: RiskStore = Depends(get_store),
) -> ContentCheckResponse:
    logger.info(f"risk: content check ({request.type or 'generic'}, job={request.jobId})")

    corpus = store.existing_postings() if request.type == "job" else []
    try:
        verdict = evaluate_content(
            request.content,
            request.type,
            request.title,
            request.description,
            request.requirements,
            request.jobId,
            rules=store.rules(),
            corpus=corpus,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ContentCheckResponse(
        passed=verdict.passed,
        risks=verdict.matchedRisks,
        suggestions=verdict.suggestions,
        riskSummary=RiskSummary(
            hasBlockRisk=verdict.hasBlockRisk,
            hasMarkRisk=verdict.hasMarkRisk,
            blockedKeywords=verdict.blockedKeywords,
        ),
    )


@router.get("/rules", response_model=RuleListResponse, dependencies=[Depends(require_admin)])
async def list_rules(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    store: RiskStore = Depends(get_store),
) -> RuleListResponse:
    rules = sorted(store.rules(), key=lambda r: r.id)
    start = (page - 1) * limit
    return RuleListResponse(
        items=rules[start:start + limit],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=len(rules),
            totalPages=math.ceil(len(rules) / limit),
        ),
    )


@router.get("/rules/{rule_id}", response_model=RiskRule, dependencies=[Depends(require_admin)])
async def get_rule(
    rule_id: str,
    store: RiskStore = Depends(get_store),
) -> RiskRule:
    try:
        return store.get_rule(rule_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/rules",
    response_model=RiskRule,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_rule(
    request: RuleCreateRequest,
    store: RiskStore = Depends(get_store),
) -> RiskRule:
    return store.create_rule(request)


@router.put("/rules/{rule_id}", response_model=RiskRule, dependencies=[Depends(require_admin)])
async def update_rule(
    rule_id: str,
    request: RuleUpdateRequest,
    store: RiskStore = Depends(get_store),
) -> RiskRule:
    try:
        return store.update_rule(rule_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/rules/{rule_id}", dependencies=[Depends(require_admin)])
async def delete_rule(
    rule_id: str,
    store: RiskStore = Depends(get_store),
) -> dict:
    try:
        store.delete_rule(rule_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": rule_id}
