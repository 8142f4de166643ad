from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import get_job_context
from src.api.routes.notifications import router as notifications_router
from src.api.routes.transcripts import router as transcripts_router
from src.config import settings
from src.ingestion.models import TranscriptionJob
from src.ingestion.pipeline import process_transcription_job
from src.ingestion.queue import TranscriptionQueue
from src.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


async def handle_job(job: TranscriptionJob) -> None:
    await process_transcription_job(job, get_job_context(), PipelineConfig.from_settings(settings))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    queue = TranscriptionQueue(
        handle_job,
        consumers=settings.queue_consumers,
        max_retries=settings.queue_max_retries,
        retry_delay=settings.queue_retry_delay_seconds,
    )
    queue.start()
    app.state.queue = queue
    logger.info("Started %d transcription consumers", queue.consumers)
    try:
        yield
    finally:
        await queue.stop()
        app.state.queue = None


app = FastAPI(
    title="Transcription API",
    description="Audio transcription, chunking and context retrieval",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:4321",
    ],
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transcripts_router)
app.include_router(notifications_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
