"""Admin endpoints: forbidden phrase management and audit log."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from adscreen.dependencies import get_store
from adscreen.models.schemas import AuditLogEntry, ForbiddenPhraseRecord, ForbiddenPhraseRequest
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.permissions import RequestUser, require_permission

router = APIRouter()

_manage_phrases = require_permission("admin.regulations.manage")


@router.get("/forbidden", response_model=List[ForbiddenPhraseRecord])
async def list_forbidden_phrases(
    store: AnalysisStore = Depends(get_store),
    _: RequestUser = Depends(_manage_phrases),
):
    return store.list_forbidden_records()


@router.post("/forbidden", response_model=ForbiddenPhraseRecord, status_code=201)
async def create_forbidden_phrase(
    request: ForbiddenPhraseRequest,
    store: AnalysisStore = Depends(get_store),
    user: RequestUser = Depends(_manage_phrases),
):
    if not request.phrase.strip():
        raise HTTPException(status_code=400, detail="phrase is required")
    record = store.add_forbidden_phrase(request.model_copy(update={"phrase": request.phrase.strip()}))
    store.append_audit_log(f"Forbidden phrase added: {record.phrase}", user.email)
    return record


@router.put("/forbidden/{phrase_id}", response_model=ForbiddenPhraseRecord)
async def update_forbidden_phrase(
    phrase_id: str,
    request: ForbiddenPhraseRequest,
    store: AnalysisStore = Depends(get_store),
    user: RequestUser = Depends(_manage_phrases),
):
    if not request.phrase.strip():
        raise HTTPException(status_code=400, detail="phrase is required")
    record = store.update_forbidden_phrase(phrase_id, request.model_copy(update={"phrase": request.phrase.strip()}))
    if record is None:
        raise HTTPException(status_code=404, detail="Forbidden phrase not found")
    store.append_audit_log(f"Forbidden phrase updated: {record.phrase}", user.email)
    return record


@router.delete("/forbidden/{phrase_id}")
async def delete_forbidden_phrase(
    phrase_id: str,
    store: AnalysisStore = Depends(get_store),
    user: RequestUser = Depends(_manage_phrases),
):
    record = store.delete_forbidden_phrase(phrase_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Forbidden phrase not found")
    store.append_audit_log(f"Forbidden phrase deleted: {record.phrase}", user.email)
    return {"ok": True}


@router.get("/audit-logs", response_model=List[AuditLogEntry])
async def list_audit_logs(
    store: AnalysisStore = Depends(get_store),
    _: RequestUser = Depends(require_permission("admin.settings.manage")),
):
    return store.list_audit_logs()
