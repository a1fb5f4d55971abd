"""FastAPI entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adscreen import config
from adscreen.routers import admin, analysis, files
from adscreen.services.analysis_pipeline import AnalysisOrchestrator
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.file_storage import FileStorage
from adscreen.services.job_runner import AnalysisJobRunner
from adscreen.services.judge_provider import get_judge_provider
from adscreen.services.vision_ocr import GoogleVisionOCRGateway

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Provider clients are built once here and injected through app.state.
    store = AnalysisStore()
    file_storage = FileStorage(store)
    orchestrator = AnalysisOrchestrator(
        ocr_gateway=GoogleVisionOCRGateway(),
        judge_provider=get_judge_provider(),
        store=store,
        file_storage=file_storage,
    )
    app.state.store = store
    app.state.file_storage = file_storage
    app.state.orchestrator = orchestrator
    app.state.job_runner = AnalysisJobRunner(orchestrator, store)
    logger.info("Ad screening service started (store=%s)", store.base_dir)
    try:
        yield
    finally:
        await app.state.job_runner.stop()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Medical Ad Screening",
        description="OCR and AI-assisted compliance screening for medical advertisements",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(analysis.router, prefix="/api", tags=["analysis"])
    app.include_router(files.router, prefix="/api", tags=["files"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
