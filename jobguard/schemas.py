from datetime import datetime
from pydantic import BaseModel, Field
from typing import Literal, Optional

RiskLevel = Literal['low', 'medium', 'high']
ReviewStatus = Literal['PENDING', 'APPROVED', 'REJECTED', 'RETURNED']
JobStatus = Literal['DRAFT', 'PENDING_REVIEW', 'APPROVED', 'REJECTED', 'OFFLINE']
RuleType = Literal[
    'sensitive_word',       # pipe-delimited keyword list
    'duplicate_detection',  # similarity threshold
    'content_quality',      # JSON length / presence requirements
]
RuleAction = Literal['block', 'mark']


# --- Source-of-truth records supplied by the platform ---

class CompanyProfile(BaseModel):
    id: str
    industry: Optional[str] = None
    scale: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    contactPerson: Optional[str] = None
    contactPhone: Optional[str] = None
    contactEmail: Optional[str] = None
    verified: bool = False
    createdAt: datetime
    updatedAt: datetime


class ReviewOutcome(BaseModel):
    companyId: str
    jobId: Optional[str] = None
    outcome: ReviewStatus
    decidedAt: Optional[datetime] = None
    jobCreatedAt: datetime


class JobPostingFlag(BaseModel):
    id: str
    companyId: str
    isHighRiskFlag: bool = False
    status: JobStatus
    createdAt: datetime
    updatedAt: datetime


class ExistingPosting(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    requirements: Optional[str] = None
    status: JobStatus


class RiskRule(BaseModel):
    id: str
    ruleType: RuleType
    content: str
    action: RuleAction
    enabled: bool = True
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


# --- Trust score ---

class RiskFactor(BaseModel):
    type: str
    description: str
    score: float


class TrustScoreResult(BaseModel):
    level: RiskLevel
    score: float
    message: str
    factors: list[RiskFactor]
    details: list[str]


class CompanyRiskResponse(BaseModel):
    riskLevel: RiskLevel
    riskScore: float
    riskMessage: str
    riskDetails: list[str]
    riskFactors: list[RiskFactor]


# --- Content check ---

class MatchedRisk(BaseModel):
    ruleId: str
    ruleType: RuleType
    matched: str
    action: RuleAction


class RuleHit(BaseModel):
    risk: MatchedRisk
    suggestion: str
    keywords: list[str] = []


class ContentCheckVerdict(BaseModel):
    passed: bool
    matchedRisks: list[MatchedRisk]
    suggestions: list[str]
    hasBlockRisk: bool
    hasMarkRisk: bool
    blockedKeywords: list[str]


class SubmissionDecision(BaseModel):
    allowed: bool
    markHighRisk: bool
    message: str


class ContentCheckRequest(BaseModel):
    content: str = ""
    type: Optional[str] = None
    jobId: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None


class RiskSummary(BaseModel):
    hasBlockRisk: bool
    hasMarkRisk: bool
    blockedKeywords: list[str]


class ContentCheckResponse(BaseModel):
    passed: bool
    risks: list[MatchedRisk]
    suggestions: list[str]
    riskSummary: RiskSummary


# --- Rule administration ---

class RuleCreateRequest(BaseModel):
    ruleType: RuleType
    content: str = Field(min_length=1)
    action: RuleAction
    enabled: bool = True


class RuleUpdateRequest(BaseModel):
    ruleType: Optional[RuleType] = None
    content: Optional[str] = Field(default=None, min_length=1)
    action: Optional[RuleAction] = None
    enabled: Optional[bool] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class RuleListResponse(BaseModel):
    items: list[RiskRule]
    pagination: Pagination
