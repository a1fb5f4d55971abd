import asyncio

import pytest

from adscreen.models.schemas import AnalysisJob, InvalidJobTransition
from adscreen.services.analysis_pipeline import AnalysisOrchestrator
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.file_storage import FileStorage
from adscreen.services.job_runner import CANCELLED_MESSAGE, AnalysisJobRunner
from adscreen.services.vision_ocr import OCRCredentialsError
from fakes import FakeJudge, FakeOCRGateway, ai_answer, make_vision_response


def _runner(store, file_storage, ocr=None, judge=None, workers=2):
    orchestrator = AnalysisOrchestrator(
        ocr_gateway=ocr or FakeOCRGateway(make_vision_response("국내 최고 할인")),
        judge_provider=judge or FakeJudge(raw=ai_answer(passScore=70, riskLevel="medium", rationale="ok")),
        store=store,
        file_storage=file_storage,
    )
    return AnalysisJobRunner(orchestrator, store, workers=workers, start_delay_sec=0)


def test_job_is_queued_then_done(store, file_storage, image_payload):
    runner = _runner(store, file_storage)

    async def scenario():
        job = await runner.submit("Spring event", image_payload, requested_by="reviewer@example.com")
        first = store.load_job(job.id)
        await runner.wait_idle()
        await runner.stop()
        return first, store.load_job(job.id)

    first, final = asyncio.run(scenario())
    assert first.status in {"queued", "running"}
    assert final.status == "done"
    assert final.error is None
    result = store.load_result(final.result_id)
    assert result is not None
    assert result.analysis_source == "ai"
    assert result.pass_score == 70


def test_ocr_failure_fails_job_without_result(store, file_storage, image_payload):
    ocr = FakeOCRGateway(error=OCRCredentialsError("GOOGLE_VISION_API_KEY is not configured."))
    runner = _runner(store, file_storage, ocr=ocr)

    async def scenario():
        job = await runner.submit("Spring event", image_payload)
        await runner.wait_idle()
        await runner.stop()
        return store.load_job(job.id)

    job = asyncio.run(scenario())
    assert job.status == "failed"
    assert job.error == "GOOGLE_VISION_API_KEY is not configured."
    assert job.result_id is None
    assert store.list_results() == []


def test_ai_failure_still_finishes_job(store, file_storage, image_payload):
    runner = _runner(store, file_storage, judge=FakeJudge(judge_error=RuntimeError("network down")))

    async def scenario():
        job = await runner.submit("Spring event", image_payload)
        await runner.wait_idle()
        await runner.stop()
        return store.load_job(job.id)

    job = asyncio.run(scenario())
    assert job.status == "done"
    result = store.load_result(job.result_id)
    assert result.analysis_source == "ocr"
    assert result.ai_error == "network down"


def test_identical_submissions_run_independently(store, file_storage, image_payload):
    ocr = FakeOCRGateway(make_vision_response("할인"))
    runner = _runner(store, file_storage, ocr=ocr)

    async def scenario():
        first = await runner.submit("Same", image_payload)
        second = await runner.submit("Same", image_payload)
        await runner.wait_idle()
        await runner.stop()
        return store.load_job(first.id), store.load_job(second.id)

    first, second = asyncio.run(scenario())
    assert first.id != second.id
    assert first.result_id != second.result_id
    assert len(ocr.calls) == 2


def test_terminal_jobs_cannot_move(store):
    job = store.create_job(AnalysisJob(id="JOB-1", ad_name="x"))
    store.update_job_status(job.id, "running")
    store.update_job_status(job.id, "failed", error="boom")
    with pytest.raises(InvalidJobTransition):
        store.update_job_status(job.id, "running")
    with pytest.raises(InvalidJobTransition):
        store.update_job_status(job.id, "done", result_id="AN-1")


def test_done_requires_result_and_running_first():
    job = AnalysisJob(id="JOB-2")
    with pytest.raises(InvalidJobTransition):
        job.transition("done", result_id="AN-1")
    running = job.transition("running")
    with pytest.raises(InvalidJobTransition):
        running.transition("done")
    assert running.transition("done", result_id="AN-1").is_terminal


def test_submission_writes_audit_entries(store, file_storage, image_payload):
    runner = _runner(store, file_storage)

    async def scenario():
        await runner.submit("Audit me", image_payload, requested_by="admin@example.com")
        await runner.wait_idle()
        await runner.stop()

    asyncio.run(scenario())
    actions = [entry.action for entry in store.list_audit_logs()]
    assert any(a.startswith("Analysis requested: Audit me") for a in actions)
    assert any(a.startswith("Analysis completed: Audit me") for a in actions)


def test_stop_fails_running_and_queued_jobs(store, file_storage, image_payload):
    ocr = FakeOCRGateway(make_vision_response("할인"), delay_sec=5)
    runner = _runner(store, file_storage, ocr=ocr, workers=1)

    async def scenario():
        first = await runner.submit("Slow", image_payload)
        second = await runner.submit("Waiting", image_payload)
        await asyncio.sleep(0.2)
        assert store.load_job(first.id).status == "running"
        await runner.stop()
        return store.load_job(first.id), store.load_job(second.id)

    first, second = asyncio.run(scenario())
    assert first.status == "failed"
    assert first.error == CANCELLED_MESSAGE
    assert second.status == "failed"
    assert second.error == CANCELLED_MESSAGE
    assert len(ocr.calls) == 1
    assert store.list_results() == []


class _DoneWriteFails(AnalysisStore):
    def update_job_status(self, job_id, status, **kwargs):
        if status == "done":
            raise OSError("disk full")
        return super().update_job_status(job_id, status, **kwargs)


def test_storage_error_on_completion_fails_job(tmp_path, image_payload):
    store = _DoneWriteFails(str(tmp_path / "store"), phrase_seed_path="")
    file_storage = FileStorage(store, upload_dir=str(tmp_path / "uploads"), secret="s", ttl_sec=60)
    runner = _runner(store, file_storage)

    async def scenario():
        job = await runner.submit("Unlucky", image_payload)
        await runner.wait_idle()
        await runner.stop()
        return store.load_job(job.id)

    job = asyncio.run(scenario())
    assert job.status == "failed"
    assert job.error == "disk full"
    actions = [entry.action for entry in store.list_audit_logs()]
    assert any(a.startswith("Analysis failed: Unlucky") for a in actions)
