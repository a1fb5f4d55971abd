"""
Pydantic data models.
"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

RiskTier = Literal["none", "low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]
AnalysisStatus = Literal["queued", "running", "done", "failed"]
AnalysisSource = Literal["ai", "ocr"]

# Total order over risk tiers; used for max-wins aggregation.
RISK_RANK: Dict[str, int] = {"none": 0, "low": 1, "medium": 2, "high": 3}
RISK_LEVELS = ("low", "medium", "high")

TERMINAL_JOB_STATES = {"done", "failed"}
_JOB_TRANSITIONS: Dict[str, set] = {
    "queued": {"running", "failed"},
    "running": {"done", "failed"},
    "done": set(),
    "failed": set(),
}


def now_iso_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


def risk_rank(tier: Optional[str]) -> int:
    return RISK_RANK.get(str(tier or "none"), 0)


class InvalidJobTransition(ValueError):
    """Raised when a job would leave a terminal state or skip a step."""


class ForbiddenPhraseRule(BaseModel):
    """One admin-managed forbidden phrase."""

    phrase: str
    risk_level: RiskLevel = "low"
    violation_type: Optional[str] = None
    reference_id: Optional[str] = None


class ForbiddenPhraseRecord(ForbiddenPhraseRule):
    """Stored forbidden phrase with its admin metadata."""

    id: str
    updated_at: str = Field(default_factory=now_iso_utc)

    def to_rule(self) -> ForbiddenPhraseRule:
        return ForbiddenPhraseRule(
            phrase=self.phrase,
            risk_level=self.risk_level,
            violation_type=self.violation_type,
            reference_id=self.reference_id,
        )


class ForbiddenPhraseRequest(BaseModel):
    phrase: str = Field(..., min_length=1)
    risk_level: RiskLevel
    violation_type: Optional[str] = None
    reference_id: Optional[str] = None


class Finding(BaseModel):
    """A single detected risk phrase."""

    text: str = Field(..., min_length=1)
    violation_type: str
    risk_level: RiskLevel = "low"
    reference_id: Optional[str] = None
    rationale: Optional[str] = None


class OcrBox(BaseModel):
    """OCR word/line box in OCR-native coordinates."""

    x: float
    y: float
    w: float
    h: float
    text: str
    risk_level: RiskTier = "none"


class ReferenceEntry(BaseModel):
    """Citation to a governing legal clause."""

    id: str
    title: str
    clause: str
    excerpt: str


class AnalysisCandidate(BaseModel):
    """Complete scoring result from one source. Never merged with another."""

    pass_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    findings: List[Finding] = Field(default_factory=list)
    rationale: str = ""


class AnalysisResult(BaseModel):
    """Persisted outcome of one submitted advertisement image."""

    id: str
    ad_name: str
    created_at: str = Field(default_factory=now_iso_utc)
    pass_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    analysis_source: AnalysisSource
    ai_error: Optional[str] = None
    status: AnalysisStatus = "done"
    image_file_id: Optional[str] = None
    image_url: Optional[str] = None
    ocr_full_text: str = ""
    has_ocr_boxes: bool = False
    ocr_boxes: List[OcrBox] = Field(default_factory=list)
    findings: List[Finding] = Field(default_factory=list)
    ai_rationale: str
    references: List[ReferenceEntry] = Field(default_factory=list)


class AnalysisJob(BaseModel):
    """Background unit of work: queued -> running -> done|failed."""

    id: str
    status: AnalysisStatus = "queued"
    ad_name: str = ""
    result_id: Optional[str] = None
    error: Optional[str] = None
    requested_by: Optional[str] = None
    created_at: str = Field(default_factory=now_iso_utc)
    updated_at: str = Field(default_factory=now_iso_utc)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATES

    def transition(
        self,
        status: AnalysisStatus,
        *,
        result_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> "AnalysisJob":
        if status not in _JOB_TRANSITIONS[self.status]:
            raise InvalidJobTransition(f"Job {self.id} cannot move from {self.status} to {status}")
        if status == "done" and not result_id:
            raise InvalidJobTransition(f"Job {self.id} cannot finish without a result id")
        return self.model_copy(
            update={
                "status": status,
                "result_id": result_id or self.result_id,
                "error": error or self.error,
                "updated_at": now_iso_utc(),
            }
        )


class AnalysisRequest(BaseModel):
    """Submission payload: ad name plus a data URI or raw base64 image."""

    ad_name: str = ""
    base64_image: str = ""


class JobSubmitResponse(BaseModel):
    job_id: str


class JobStatusResponse(BaseModel):
    status: AnalysisStatus
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None


class RiskDistributionItem(BaseModel):
    name: str
    value: int
    color: str


class AnalysisMetrics(BaseModel):
    total_analyses: int = 0
    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    risk_distribution: List[RiskDistributionItem] = Field(default_factory=list)


class StoredFile(BaseModel):
    id: str
    path: str
    mime_type: str = "image/jpeg"
    created_at: str = Field(default_factory=now_iso_utc)


class AuditLogEntry(BaseModel):
    id: str
    action: str
    actor: Optional[str] = None
    created_at: str = Field(default_factory=now_iso_utc)
