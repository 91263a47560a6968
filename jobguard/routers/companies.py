import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from jobguard.errors import NotFoundError
from jobguard.schemas import CompanyRiskResponse
from jobguard.scoring.trust_score import compute_trust_score
from jobguard.services.store import RiskStore, get_store

router = APIRouter(prefix="/companies", tags=["companies"])
logger = logging.getLogger(__name__)


def current_time() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/{company_id}/risk", response_model=CompanyRiskResponse)
async def company_risk(
    company_id: str,
    store: RiskStore = Depends(get_store),
    now: datetime = Depends(current_time),
) -> CompanyRiskResponse:
    """Trust score and risk level for a company, recomputed on every call."""
    try:
        result = compute_trust_score(company_id, store, now)
    except NotFoundError as e:
        logger.info(f"companies: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception(f"companies: risk calculation failed for {company_id}")
        raise

    return CompanyRiskResponse(
        riskLevel=result.level,
        riskScore=result.score,
        riskMessage=result.message,
        riskDetails=result.details,
        riskFactors=result.factors,
    )
