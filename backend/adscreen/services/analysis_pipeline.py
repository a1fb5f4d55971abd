"""
Analysis orchestration.

One pipeline serves both entry points:
- job-backed: the image and the final result are persisted (`persist=True`)
- synchronous demo: nothing is written (`persist=False`)

OCR and storage errors propagate to the caller. Judge and rationale failures are
recovered here and never fail an analysis.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Mapping, Optional

from adscreen.models.schemas import (
    AnalysisCandidate,
    AnalysisResult,
    AnalysisSource,
    ForbiddenPhraseRule,
    ReferenceEntry,
)
from adscreen.services.ai_judgement import candidate_from_raw
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.box_mapper import build_ocr_boxes
from adscreen.services.file_storage import FileStorage
from adscreen.services.judge_provider import AdJudgeProvider
from adscreen.services.legal_references import (
    LEGAL_GUIDELINES_TEXT,
    LEGAL_REFERENCE_MAP,
    LEGAL_SUMMARY_MARKER,
    append_legal_summary,
    build_legal_summary,
    resolve_references,
)
from adscreen.services.phrase_matcher import match_forbidden_phrases
from adscreen.services.risk_aggregator import summarize_risk
from adscreen.services.submission import ImagePayload
from adscreen.services.vision_ocr import OCRGateway

logger = logging.getLogger(__name__)


@dataclass
class SourceSelection:
    candidate: AnalysisCandidate
    source: AnalysisSource
    ai_error: Optional[str] = None


def build_ocr_candidate(ocr_text: str, rules: List[ForbiddenPhraseRule]) -> AnalysisCandidate:
    findings = match_forbidden_phrases(ocr_text, rules)
    summary = summarize_risk(findings)
    return AnalysisCandidate(pass_score=summary.pass_score, risk_level=summary.overall_risk, findings=findings)


def select_candidate(
    ocr_candidate: AnalysisCandidate,
    ai_candidate: Optional[AnalysisCandidate],
    ai_error: Optional[str] = None,
) -> SourceSelection:
    """The AI candidate wins whole when present; fields are never mixed."""
    if ai_candidate is not None:
        return SourceSelection(candidate=ai_candidate, source="ai")
    return SourceSelection(
        candidate=ocr_candidate,
        source="ocr",
        ai_error=ai_error or "AI analysis was unavailable.",
    )


class AnalysisOrchestrator:
    def __init__(
        self,
        ocr_gateway: OCRGateway,
        judge_provider: AdJudgeProvider,
        store: AnalysisStore,
        file_storage: Optional[FileStorage] = None,
        catalog: Mapping[str, ReferenceEntry] = LEGAL_REFERENCE_MAP,
    ) -> None:
        self.ocr_gateway = ocr_gateway
        self.judge_provider = judge_provider
        self.store = store
        self.file_storage = file_storage
        self.catalog = catalog

    async def analyze(self, ad_name: str, payload: ImagePayload, *, persist: bool = True) -> AnalysisResult:
        image_file_id = None
        image_url = None
        if persist:
            if self.file_storage is None:
                raise RuntimeError("File storage is required for persisted analyses.")
            stored = self.file_storage.save_image(payload)
            image_file_id = stored.id
            image_url = self.file_storage.sign_file_url(stored.id)

        rules = self.store.list_forbidden_rules()
        ocr_response = await self.ocr_gateway.detect_text(payload.base64_data)
        ocr_text = ocr_response.full_text
        ocr_boxes = build_ocr_boxes(ocr_response, rules)
        ocr_candidate = build_ocr_candidate(ocr_text, rules)

        ai_candidate, ai_error = await self._judge(ad_name, payload, ocr_text)
        selection = select_candidate(ocr_candidate, ai_candidate, ai_error)
        chosen = selection.candidate

        references = resolve_references(chosen.findings, self.catalog)
        rationale = await self._compose_rationale(ad_name, ocr_text, chosen)

        result = AnalysisResult(
            id=f"AN-{uuid.uuid4().hex}",
            ad_name=ad_name,
            pass_score=chosen.pass_score,
            risk_level=chosen.risk_level,
            analysis_source=selection.source,
            ai_error=selection.ai_error,
            image_file_id=image_file_id,
            image_url=image_url,
            ocr_full_text=ocr_text,
            has_ocr_boxes=bool(ocr_boxes),
            ocr_boxes=ocr_boxes,
            findings=chosen.findings,
            ai_rationale=rationale,
            references=references,
        )
        if persist:
            self.store.save_result(result)
        logger.info(
            "Analysis %s finished: source=%s risk=%s score=%d findings=%d",
            result.id,
            result.analysis_source,
            result.risk_level,
            result.pass_score,
            len(result.findings),
        )
        return result

    async def _judge(self, ad_name: str, payload: ImagePayload, ocr_text: str):
        try:
            raw = await self.judge_provider.judge(
                ad_name=ad_name,
                image_data_url=payload.data_url,
                ocr_text=ocr_text,
                guideline_text=LEGAL_GUIDELINES_TEXT,
                allowed_reference_ids=list(self.catalog.keys()),
            )
            return candidate_from_raw(raw, self.catalog), None
        except Exception as exc:
            logger.warning("AI judge unavailable for %r: %s", ad_name, exc)
            return None, str(exc) or exc.__class__.__name__

    async def _compose_rationale(self, ad_name: str, ocr_text: str, candidate: AnalysisCandidate) -> str:
        legal_summary = build_legal_summary(candidate.findings)
        narrative = candidate.rationale.strip()
        if narrative:
            if LEGAL_SUMMARY_MARKER in narrative:
                return narrative
            return append_legal_summary(narrative, legal_summary)

        try:
            generated = await self.judge_provider.summarize(
                ad_name=ad_name,
                ocr_text=ocr_text,
                findings=list(candidate.findings),
                legal_summary=legal_summary,
            )
        except Exception as exc:
            logger.warning("Rationale generation failed for %r: %s", ad_name, exc)
            return legal_summary

        generated = (generated or "").strip()
        if not generated:
            return legal_summary
        return append_legal_summary(generated, legal_summary)
