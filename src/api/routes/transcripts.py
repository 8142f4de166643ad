"""Transcript endpoints: queue audio, read results, and navigate chunks."""

from __future__ import annotations

import logging
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, HTTPException, Path, Query, UploadFile

from src.api.deps import get_blob_store, get_embedder, get_queue, get_store, get_user_id
from src.api.models import (
    ContextData,
    ContextResponse,
    ProcessResponse,
    TranscriptionDetail,
    TranscriptionResponse,
    TranscriptTextResponse,
)
from src.ingestion.capabilities import BlobStore, Embedder, TranscriptStore
from src.ingestion.errors import ChunkNotFound, EmbeddingFailed, StorageWriteFailed
from src.ingestion.models import TranscriptionJob
from src.ingestion.pipeline import new_transcription_id
from src.ingestion.queue import TranscriptionQueue
from src.ingestion.storage import audio_path
from src.retrieval.search import get_chunk_neighbors, search_transcription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transcripts")

# 100 MB per audio upload
MAX_UPLOAD_BYTES = 100 * 1024 * 1024

# Context windows are capped so one request cannot pull a whole transcript.
MAX_WINDOW = 50

UserId = Annotated[str, Depends(get_user_id)]
Store = Annotated[TranscriptStore, Depends(get_store)]
Window = Annotated[int, Query(ge=0, le=MAX_WINDOW)]


async def _owned_transcription(store: TranscriptStore, transcription_id: str, user_id: str) -> dict[str, Any]:
    row = await store.get_transcription(transcription_id, user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Transcription not found")
    return row


@router.post("/process", status_code=202, response_model=ProcessResponse)
async def process(
    audio: Annotated[list[UploadFile], File(...)],
    user_id: UserId,
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
    queue: Annotated[TranscriptionQueue, Depends(get_queue)],
) -> ProcessResponse:
    """Store uploaded audio and queue one transcription job per file."""
    for file in audio:
        if not (file.content_type or "").lower().startswith("audio/"):
            raise HTTPException(status_code=400, detail="Invalid file type")

    transcript_ids: list[str] = []
    for file in audio:
        raw = await file.read()
        if len(raw) > MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.",
            )

        transcript_id = new_transcription_id()
        path = audio_path(user_id, transcript_id)
        try:
            await blob_store.put(path, raw, file.content_type or "audio/mpeg")
        except StorageWriteFailed as exc:
            logger.exception("Failed to store audio for %s", transcript_id)
            raise HTTPException(status_code=500, detail="Failed to process transcription") from exc

        await queue.send(
            TranscriptionJob(
                transcript_id=transcript_id,
                audio_path=path,
                user_id=user_id,
                timestamp=int(time.time() * 1000),
            )
        )
        transcript_ids.append(transcript_id)

    plural = "s" if len(transcript_ids) > 1 else ""
    return ProcessResponse(
        message=f"Transcription job{plural} successfully queued",
        data=transcript_ids,
    )


@router.get("/{transcription_id}", response_model=TranscriptionResponse)
async def get_transcription(transcription_id: str, user_id: UserId, store: Store) -> TranscriptionResponse:
    row = await _owned_transcription(store, transcription_id, user_id)
    return TranscriptionResponse(
        message="Transcription retrieved successfully",
        data=TranscriptionDetail.model_validate(row),
    )


@router.get("/{transcription_id}/text", response_model=TranscriptTextResponse)
async def get_transcription_text(
    transcription_id: str,
    user_id: UserId,
    store: Store,
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> TranscriptTextResponse:
    """Return the plain transcript text stored alongside the chunks."""
    row = await _owned_transcription(store, transcription_id, user_id)
    path = row.get("transcript_path")
    if not path:
        raise HTTPException(status_code=404, detail="Transcript not available")

    data = await blob_store.get(path)
    if data is None:
        raise HTTPException(status_code=404, detail="Transcript file not found")

    return TranscriptTextResponse(
        message="Transcription text retrieved successfully",
        data=data.decode("utf-8"),
    )


@router.get("/{transcription_id}/search", response_model=ContextResponse)
async def search(
    transcription_id: str,
    user_id: UserId,
    store: Store,
    embedder: Annotated[Embedder, Depends(get_embedder)],
    q: Annotated[str, Query(min_length=1)],
    previous: Window = 0,
    next_: Annotated[int, Query(alias="next", ge=0, le=MAX_WINDOW)] = 0,
) -> ContextResponse:
    """Best-matching chunk for *q* plus up to ``previous``/``next`` neighbors."""
    await _owned_transcription(store, transcription_id, user_id)

    try:
        window = await search_transcription(
            store, embedder, transcription_id, q, previous_count=previous, next_count=next_
        )
    except EmbeddingFailed as exc:
        # Infrastructure error, not the client's fault.
        raise HTTPException(status_code=503, detail=f"Embedding service unavailable: {exc}") from exc

    if window is None:
        raise HTTPException(status_code=404, detail="No results found")

    return ContextResponse(message="Context search completed", data=ContextData.from_window(window))


@router.get("/{transcription_id}/chunk/{chunk_index}/neighbors", response_model=ContextResponse)
async def neighbors(
    transcription_id: str,
    chunk_index: Annotated[int, Path(ge=0)],
    user_id: UserId,
    store: Store,
    start_previous: Annotated[int, Query(alias="startPrevious", ge=0, le=MAX_WINDOW)] = 0,
    end_previous: Annotated[int, Query(alias="endPrevious", ge=0, le=MAX_WINDOW)] = 3,
    start_next: Annotated[int, Query(alias="startNext", ge=0, le=MAX_WINDOW)] = 0,
    end_next: Annotated[int, Query(alias="endNext", ge=0, le=MAX_WINDOW)] = 3,
) -> ContextResponse:
    """A chunk by index with previous/next windows, for paging without a query."""
    await _owned_transcription(store, transcription_id, user_id)

    try:
        window = await get_chunk_neighbors(
            store,
            transcription_id,
            chunk_index,
            start_previous=start_previous,
            end_previous=end_previous,
            start_next=start_next,
            end_next=end_next,
        )
    except ChunkNotFound as exc:
        raise HTTPException(status_code=404, detail="Main chunk not found") from exc

    return ContextResponse(message="Neighbors fetched", data=ContextData.from_window(window))
