"""End-to-end transcription job: fetch -> transcribe -> chunk -> embed -> store."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

from src.ingestion.capabilities import JobContext
from src.ingestion.chunking import chunk_transcript
from src.ingestion.embeddings import embed_chunks
from src.ingestion.errors import (
    AudioNotFound,
    PersistenceFailed,
    PipelineError,
    StorageWriteFailed,
    TranscriptionFailed,
)
from src.ingestion.models import JobStatus, Transcription, TranscriptionChunk, TranscriptionJob
from src.ingestion.storage import subtitle_path, transcript_path
from src.ingestion.summary import generate_summary, generate_title
from src.notifications.models import (
    Notification,
    transcription_completed,
    transcription_failed,
    transcription_started,
)
from src.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """Outcome of a successfully processed job."""

    transcription_id: str
    title: str
    summary: str
    num_chunks: int
    persisted: bool


def new_transcription_id() -> str:
    return f"trs_{uuid.uuid4().hex}"


def new_chunk_id() -> str:
    return f"trnchk_{uuid.uuid4().hex}"


async def notify(ctx: JobContext, user_id: str, notification: Notification) -> None:
    """Publish a notification; failures are logged and never raised."""
    try:
        await ctx.notifier.publish(user_id, notification.model_dump())
    except Exception:
        logger.exception("Failed to publish notification %r for user %s", notification.title, user_id)


async def _write_artifacts(ctx: JobContext, job: TranscriptionJob, text: str, vtt: str) -> tuple[str, str]:
    text_path = transcript_path(job.user_id, job.transcript_id)
    vtt_path = subtitle_path(job.user_id, job.transcript_id)
    try:
        await asyncio.gather(
            ctx.blob_store.put(text_path, text.encode("utf-8"), "text/plain"),
            ctx.blob_store.put(vtt_path, vtt.encode("utf-8"), "text/vtt"),
        )
    except StorageWriteFailed:
        raise
    except Exception as exc:
        raise StorageWriteFailed(f"Failed to store transcript files: {exc}") from exc
    return text_path, vtt_path


async def _run(job: TranscriptionJob, ctx: JobContext, config: PipelineConfig) -> JobResult:
    # 1. Fetch audio
    audio = await ctx.blob_store.get(job.audio_path)
    if audio is None:
        raise AudioNotFound(job.audio_path)
    logger.info("Processing audio file (%.2f MB) for %s", len(audio) / (1024 * 1024), job.transcript_id)

    # 2. Transcribe
    try:
        speech = await ctx.speech.transcribe(audio)
    except TranscriptionFailed:
        raise
    except Exception as exc:
        raise TranscriptionFailed(f"Speech model failed: {exc}") from exc
    if not speech.text.strip() or not speech.vtt.strip():
        raise TranscriptionFailed("Speech model returned no text or subtitle output")

    # 3. Summary and title (best effort)
    summary = await generate_summary(ctx.text_generator, speech.text)
    title = await generate_title(ctx.text_generator, summary)

    # 4. Store transcript artifacts
    text_path, vtt_path = await _write_artifacts(ctx, job, speech.text, speech.vtt)

    # 5. Chunk
    chunks = chunk_transcript(
        speech.vtt,
        fallback_text=speech.text,
        strategy=config.chunking_strategy,
        sentence_config=config.sentence,
        chunking_config=config.chunking,
    )

    # 6. Embed
    vectors = await embed_chunks(chunks, ctx.embedder, config.embedding_concurrency)

    # 7. Persist
    transcription = Transcription(
        id=job.transcript_id,
        user_id=job.user_id,
        title=title,
        summary=summary,
        audio_path=job.audio_path,
        subtitle_path=vtt_path,
        transcript_path=text_path,
    )
    rows = [
        TranscriptionChunk(
            id=new_chunk_id(),
            transcription_id=job.transcript_id,
            chunk_index=index,
            chunk_text=chunk.text,
            start_time=chunk.start_time,
            end_time=chunk.end_time,
            embedding=vector,
        )
        for index, (chunk, vector) in enumerate(zip(chunks, vectors, strict=True))
    ]
    try:
        persisted = await ctx.store.insert_transcription(transcription, rows)
    except PersistenceFailed:
        raise
    except Exception as exc:
        raise PersistenceFailed(f"Failed to persist transcription {job.transcript_id}: {exc}") from exc

    return JobResult(
        transcription_id=job.transcript_id,
        title=title,
        summary=summary,
        num_chunks=len(rows),
        persisted=persisted,
    )


async def process_transcription_job(
    job: TranscriptionJob,
    ctx: JobContext,
    config: PipelineConfig | None = None,
) -> JobResult:
    """Run one transcription job end to end.

    Emits a "started" notification, then either a "completed" notification
    on success or a "failed" notification followed by re-raising the error,
    so the queue can redeliver or dead-letter the job.

    Args:
        job: The dequeued job message.
        ctx: External capability handles.
        config: Chunking and concurrency settings.

    Returns:
        Summary of what was persisted.

    Raises:
        PipelineError: Audio fetch, transcription, storage, embedding or
            persistence failed.
    """
    config = config or PipelineConfig()
    job.status = JobStatus.PROCESSING
    await notify(ctx, job.user_id, transcription_started(job.transcript_id))

    try:
        result = await _run(job, ctx, config)
    except Exception as exc:
        job.status = JobStatus.FAILED
        if isinstance(exc, PipelineError):
            logger.error("Consumer error for job %s-%s: %s", job.user_id, job.transcript_id, exc)
        else:
            logger.exception("Unexpected consumer error for job %s-%s", job.user_id, job.transcript_id)
        await notify(ctx, job.user_id, transcription_failed(job.transcript_id, str(exc)))
        raise

    job.status = JobStatus.COMPLETED
    await notify(
        ctx,
        job.user_id,
        transcription_completed(job.transcript_id, result.title, result.summary),
    )
    logger.info(
        "Transcription %s completed with %d chunks", job.transcript_id, result.num_chunks
    )
    return result
