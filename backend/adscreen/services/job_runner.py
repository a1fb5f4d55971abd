"""Background analysis jobs: queued -> running -> done|failed."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from adscreen import config
from adscreen.models.schemas import AnalysisJob, InvalidJobTransition
from adscreen.services.analysis_pipeline import AnalysisOrchestrator
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.submission import ImagePayload

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Analysis cancelled during shutdown."


@dataclass
class AnalysisQueueJob:
    job_id: str
    ad_name: str
    payload: ImagePayload
    requested_by: Optional[str] = None


class AnalysisJobRunner:
    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        store: AnalysisStore,
        workers: Optional[int] = None,
        start_delay_sec: Optional[float] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.store = store
        self.workers = max(1, workers if workers is not None else config.JOB_WORKERS)
        self.start_delay_sec = start_delay_sec if start_delay_sec is not None else config.JOB_START_DELAY_SEC
        self._queue: Optional["asyncio.Queue[AnalysisQueueJob]"] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._tasks = [task for task in self._tasks if not task.done()]
        for idx in range(len(self._tasks), self.workers):
            self._tasks.append(asyncio.create_task(self._run_worker(), name=f"analysis-worker-{idx}"))

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        # Jobs still waiting in the queue will never be picked up.
        while self._queue is not None and not self._queue.empty():
            item = self._queue.get_nowait()
            self._mark_failed(item, CANCELLED_MESSAGE)
            self._queue.task_done()

    async def submit(self, ad_name: str, payload: ImagePayload, requested_by: Optional[str] = None) -> AnalysisJob:
        await self.start()
        job = self.store.create_job(
            AnalysisJob(
                id=f"JOB-{uuid.uuid4().hex}",
                ad_name=ad_name,
                requested_by=requested_by,
            )
        )
        self.store.append_audit_log(f"Analysis requested: {ad_name} ({job.id})", requested_by)
        await self._queue.put(AnalysisQueueJob(job.id, ad_name, payload, requested_by))
        return job

    async def wait_idle(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def _run_worker(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self._process(item)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error in analysis worker")
            finally:
                self._queue.task_done()

    async def _process(self, item: AnalysisQueueJob) -> None:
        try:
            if self.start_delay_sec > 0:
                await asyncio.sleep(self.start_delay_sec)

            job = self.store.load_job(item.job_id)
            if job is None or job.is_terminal:
                return
            self.store.update_job_status(item.job_id, "running")
            result = await self.orchestrator.analyze(item.ad_name, item.payload, persist=True)
            self.store.update_job_status(item.job_id, "done", result_id=result.id)
        except asyncio.CancelledError:
            self._mark_failed(item, CANCELLED_MESSAGE)
            raise
        except Exception as exc:
            logger.exception("Analysis job %s failed", item.job_id)
            self._mark_failed(item, str(exc) or exc.__class__.__name__)
            return

        self.store.append_audit_log(f"Analysis completed: {item.ad_name} ({result.id})", item.requested_by)

    def _mark_failed(self, item: AnalysisQueueJob, error: str) -> None:
        try:
            self.store.update_job_status(item.job_id, "failed", error=error)
        except InvalidJobTransition:
            return
        except Exception:
            logger.exception("Could not mark analysis job %s as failed", item.job_id)
            return
        try:
            self.store.append_audit_log(f"Analysis failed: {item.ad_name} ({item.job_id})", item.requested_by)
        except OSError:
            logger.exception("Could not write audit entry for job %s", item.job_id)
