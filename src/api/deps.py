"""FastAPI dependencies wiring routes and the worker to concrete services."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Header, HTTPException, Request

from src.config import settings
from src.ingestion.capabilities import BlobStore, Embedder, JobContext, TranscriptStore
from src.ingestion.embeddings import OpenAIEmbedder
from src.ingestion.queue import TranscriptionQueue
from src.ingestion.storage import SupabaseBlobStore, SupabaseTranscriptStore, get_supabase_client
from src.ingestion.summary import AnthropicTextGenerator
from src.ingestion.transcribe import AssemblyAISpeechToText
from src.notifications.hub import NotificationHub, hub


@lru_cache(maxsize=1)
def get_job_context() -> JobContext:
    """Build (once) the capability handles shared by routes and the worker."""
    client = get_supabase_client()
    return JobContext(
        blob_store=SupabaseBlobStore(client, settings.storage_bucket),
        speech=AssemblyAISpeechToText(settings.assemblyai_api_key, settings.speech_model),
        text_generator=AnthropicTextGenerator(settings.anthropic_api_key, settings.llm_model),
        embedder=OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
        ),
        store=SupabaseTranscriptStore(client),
        notifier=hub,
    )


def get_store() -> TranscriptStore:
    return get_job_context().store


def get_blob_store() -> BlobStore:
    return get_job_context().blob_store


def get_embedder() -> Embedder:
    return get_job_context().embedder


def get_hub() -> NotificationHub:
    return hub


def get_queue(request: Request) -> TranscriptionQueue:
    queue: TranscriptionQueue | None = getattr(request.app.state, "queue", None)
    if queue is None:
        raise HTTPException(status_code=503, detail="Transcription queue is not running")
    return queue


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Identity forwarded by the upstream auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
