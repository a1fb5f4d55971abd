"""
Simple local persistence for analysis records.

Storage layout (relative to STORE_DIR):
  results/
    {result_id}.json
  jobs/
    {job_id}.json
  forbidden_phrases.json
  files.json
  audit_logs.json
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from adscreen import config
from adscreen.models.schemas import (
    AnalysisJob,
    AnalysisMetrics,
    AnalysisResult,
    AnalysisStatus,
    AuditLogEntry,
    ForbiddenPhraseRecord,
    ForbiddenPhraseRequest,
    ForbiddenPhraseRule,
    RiskDistributionItem,
    StoredFile,
    now_iso_utc,
)
from adscreen.services.phrase_catalog import load_phrase_rules

logger = logging.getLogger(__name__)


def _atomic_write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    payload = json.dumps(data, ensure_ascii=False, indent=2)
    tmp_path.write_text(payload, encoding="utf-8")
    os.replace(str(tmp_path), str(path))


def _read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Unreadable store file %s: %s", path, exc)
        return None


class AnalysisStore:
    def __init__(self, base_dir: Optional[str] = None, phrase_seed_path: Optional[str] = None):
        self.base_dir = Path(base_dir or config.STORE_DIR)
        self.results_dir = self.base_dir / "results"
        self.jobs_dir = self.base_dir / "jobs"
        self.phrases_path = self.base_dir / "forbidden_phrases.json"
        self.files_path = self.base_dir / "files.json"
        self.audit_path = self.base_dir / "audit_logs.json"
        self.phrase_seed_path = phrase_seed_path if phrase_seed_path is not None else config.FORBIDDEN_PHRASES_PATH
        self._lock = threading.RLock()

    def _ensure_dirs(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.jobs_dir.mkdir(parents=True, exist_ok=True)

    # ---------- results ----------
    def save_result(self, result: AnalysisResult) -> AnalysisResult:
        with self._lock:
            self._ensure_dirs()
            _atomic_write_json(self.results_dir / f"{result.id}.json", result.model_dump(mode="json"))
        return result

    def load_result(self, result_id: str) -> Optional[AnalysisResult]:
        result_id = (result_id or "").strip()
        if not result_id:
            return None
        data = _read_json(self.results_dir / f"{result_id}.json")
        if not isinstance(data, dict):
            return None
        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as exc:
            logger.warning("Invalid stored result %s: %s", result_id, exc)
            return None

    def list_results(self) -> List[AnalysisResult]:
        self._ensure_dirs()
        results = []
        for path in self.results_dir.glob("*.json"):
            result = self.load_result(path.stem)
            if result is not None:
                results.append(result)
        results.sort(key=lambda r: r.created_at, reverse=True)
        return results

    def compute_metrics(self) -> AnalysisMetrics:
        results = self.list_results()
        counts = {"high": 0, "medium": 0, "low": 0}
        for result in results:
            counts[result.risk_level] += 1
        return AnalysisMetrics(
            total_analyses=len(results),
            high_risk_count=counts["high"],
            medium_risk_count=counts["medium"],
            low_risk_count=counts["low"],
            risk_distribution=[
                RiskDistributionItem(name="High risk", value=counts["high"], color="#E53935"),
                RiskDistributionItem(name="Medium risk", value=counts["medium"], color="#FB8C00"),
                RiskDistributionItem(name="Low risk", value=counts["low"], color="#43A047"),
            ],
        )

    # ---------- jobs ----------
    def create_job(self, job: AnalysisJob) -> AnalysisJob:
        with self._lock:
            self._ensure_dirs()
            _atomic_write_json(self.jobs_dir / f"{job.id}.json", job.model_dump(mode="json"))
        return job

    def load_job(self, job_id: str) -> Optional[AnalysisJob]:
        job_id = (job_id or "").strip()
        if not job_id:
            return None
        data = _read_json(self.jobs_dir / f"{job_id}.json")
        if not isinstance(data, dict):
            return None
        try:
            return AnalysisJob.model_validate(data)
        except ValidationError as exc:
            logger.warning("Invalid stored job %s: %s", job_id, exc)
            return None

    def update_job_status(
        self,
        job_id: str,
        status: AnalysisStatus,
        *,
        result_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> AnalysisJob:
        """Apply a lifecycle transition; raises InvalidJobTransition from terminal states."""
        with self._lock:
            job = self.load_job(job_id)
            if job is None:
                raise KeyError(f"Job not found: {job_id}")
            updated = job.transition(status, result_id=result_id, error=error)
            _atomic_write_json(self.jobs_dir / f"{job_id}.json", updated.model_dump(mode="json"))
            return updated

    # ---------- forbidden phrases ----------
    def _load_phrases_unlocked(self) -> List[ForbiddenPhraseRecord]:
        data = _read_json(self.phrases_path)
        if not isinstance(data, dict) or not isinstance(data.get("phrases"), list):
            records = [
                ForbiddenPhraseRecord(id=f"FP-{idx:03d}", **rule.model_dump())
                for idx, rule in enumerate(load_phrase_rules(self.phrase_seed_path), start=1)
            ]
            self._save_phrases_unlocked(records)
            return records

        records = []
        for item in data["phrases"]:
            try:
                records.append(ForbiddenPhraseRecord.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid stored phrase: %s", exc)
        return records

    def _save_phrases_unlocked(self, records: List[ForbiddenPhraseRecord]) -> None:
        self._ensure_dirs()
        _atomic_write_json(
            self.phrases_path,
            {"version": 1, "phrases": [r.model_dump(mode="json") for r in records]},
        )

    def list_forbidden_records(self) -> List[ForbiddenPhraseRecord]:
        with self._lock:
            records = self._load_phrases_unlocked()
        return sorted(records, key=lambda r: r.updated_at, reverse=True)

    def list_forbidden_rules(self) -> List[ForbiddenPhraseRule]:
        """Snapshot of the phrase list in storage order."""
        with self._lock:
            return [record.to_rule() for record in self._load_phrases_unlocked()]

    def add_forbidden_phrase(self, request: ForbiddenPhraseRequest) -> ForbiddenPhraseRecord:
        with self._lock:
            records = self._load_phrases_unlocked()
            record = ForbiddenPhraseRecord(id=f"FP-{uuid.uuid4().hex[:12]}", **request.model_dump())
            records.append(record)
            self._save_phrases_unlocked(records)
            return record

    def update_forbidden_phrase(self, phrase_id: str, request: ForbiddenPhraseRequest) -> Optional[ForbiddenPhraseRecord]:
        with self._lock:
            records = self._load_phrases_unlocked()
            for idx, existing in enumerate(records):
                if existing.id != phrase_id:
                    continue
                updated = existing.model_copy(
                    update={
                        "phrase": request.phrase,
                        "risk_level": request.risk_level,
                        # Omitted optional fields keep their stored values.
                        "violation_type": request.violation_type or existing.violation_type,
                        "reference_id": request.reference_id or existing.reference_id,
                        "updated_at": now_iso_utc(),
                    }
                )
                records[idx] = updated
                self._save_phrases_unlocked(records)
                return updated
            return None

    def delete_forbidden_phrase(self, phrase_id: str) -> Optional[ForbiddenPhraseRecord]:
        with self._lock:
            records = self._load_phrases_unlocked()
            existing = next((r for r in records if r.id == phrase_id), None)
            if existing is not None:
                self._save_phrases_unlocked([r for r in records if r.id != phrase_id])
            return existing

    # ---------- files ----------
    def save_file_record(self, record: StoredFile) -> StoredFile:
        with self._lock:
            self._ensure_dirs()
            data = _read_json(self.files_path)
            files = data.get("files", {}) if isinstance(data, dict) else {}
            files[record.id] = record.model_dump(mode="json")
            _atomic_write_json(self.files_path, {"version": 1, "files": files})
        return record

    def load_file_record(self, file_id: str) -> Optional[StoredFile]:
        data = _read_json(self.files_path)
        files = data.get("files", {}) if isinstance(data, dict) else {}
        item = files.get(file_id)
        return StoredFile.model_validate(item) if isinstance(item, dict) else None

    # ---------- audit log ----------
    def append_audit_log(self, action: str, actor: Optional[str] = None) -> AuditLogEntry:
        entry = AuditLogEntry(id=f"LOG-{uuid.uuid4().hex[:12]}", action=action, actor=actor)
        with self._lock:
            self._ensure_dirs()
            data = _read_json(self.audit_path)
            logs = data.get("logs", []) if isinstance(data, dict) else []
            logs.append(entry.model_dump(mode="json"))
            _atomic_write_json(self.audit_path, {"version": 1, "logs": logs})
        return entry

    def list_audit_logs(self) -> List[AuditLogEntry]:
        data = _read_json(self.audit_path)
        logs = data.get("logs", []) if isinstance(data, dict) else []
        entries = [AuditLogEntry.model_validate(item) for item in logs if isinstance(item, dict)]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries
