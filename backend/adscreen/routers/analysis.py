"""Analysis endpoints: synchronous demo, background jobs, history and metrics."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from adscreen import config
from adscreen.dependencies import get_file_storage, get_job_runner, get_orchestrator, get_store
from adscreen.models.schemas import (
    AnalysisMetrics,
    AnalysisRequest,
    AnalysisResult,
    JobStatusResponse,
    JobSubmitResponse,
)
from adscreen.services.analysis_pipeline import AnalysisOrchestrator
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.file_storage import FileStorage
from adscreen.services.job_runner import AnalysisJobRunner
from adscreen.services.permissions import RequestUser, require_permission
from adscreen.services.submission import SubmissionError, validate_submission
from adscreen.services.vision_ocr import OCRError

logger = logging.getLogger(__name__)

router = APIRouter()


def _with_fresh_image_url(result: AnalysisResult, files: FileStorage) -> AnalysisResult:
    # Stored urls expire; sign a new one on every read.
    if not result.image_file_id:
        return result
    return result.model_copy(update={"image_url": files.sign_file_url(result.image_file_id)})


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_now(
    request: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Run the full pipeline inline without storing anything."""
    try:
        payload = validate_submission(request.ad_name, request.base64_image, config.DEMO_MAX_IMAGE_BYTES)
    except SubmissionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    try:
        return await orchestrator.analyze(request.ad_name.strip(), payload, persist=False)
    except OCRError as exc:
        logger.error("OCR failed for demo analysis: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/analysis/jobs", response_model=JobSubmitResponse)
async def submit_analysis_job(
    request: AnalysisRequest,
    runner: AnalysisJobRunner = Depends(get_job_runner),
    user: RequestUser = Depends(require_permission("analysis.create")),
):
    try:
        payload = validate_submission(request.ad_name, request.base64_image, config.MAX_IMAGE_BYTES)
    except SubmissionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    job = await runner.submit(request.ad_name.strip(), payload, requested_by=user.email)
    return JobSubmitResponse(job_id=job.id)


@router.get("/analysis/jobs/{job_id}", response_model=JobStatusResponse)
async def get_analysis_job(
    job_id: str,
    store: AnalysisStore = Depends(get_store),
    files: FileStorage = Depends(get_file_storage),
    _: RequestUser = Depends(require_permission("analysis.read")),
):
    job = store.load_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    result = None
    if job.status == "done" and job.result_id:
        stored = store.load_result(job.result_id)
        result = _with_fresh_image_url(stored, files) if stored else None
    return JobStatusResponse(status=job.status, result=result, error=job.error)


@router.get("/analysis/history", response_model=List[AnalysisResult])
async def list_analysis_history(
    store: AnalysisStore = Depends(get_store),
    files: FileStorage = Depends(get_file_storage),
    _: RequestUser = Depends(require_permission("analysis.history.read")),
):
    return [_with_fresh_image_url(r, files) for r in store.list_results()]


@router.get("/analysis/metrics", response_model=AnalysisMetrics)
async def get_analysis_metrics(
    store: AnalysisStore = Depends(get_store),
    _: RequestUser = Depends(require_permission("analysis.history.read")),
):
    return store.compute_metrics()


@router.get("/analysis/{result_id}", response_model=AnalysisResult)
async def get_analysis_result(
    result_id: str,
    store: AnalysisStore = Depends(get_store),
    files: FileStorage = Depends(get_file_storage),
    _: RequestUser = Depends(require_permission("analysis.read")),
):
    result = store.load_result(result_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return _with_fresh_image_url(result, files)
