from fastapi import Request

from adscreen.services.analysis_pipeline import AnalysisOrchestrator
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.file_storage import FileStorage
from adscreen.services.job_runner import AnalysisJobRunner


def get_store(request: Request) -> AnalysisStore:
    return request.app.state.store


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


def get_job_runner(request: Request) -> AnalysisJobRunner:
    return request.app.state.job_runner
