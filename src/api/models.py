"""Pydantic request/response schemas for the Transcription API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from src.retrieval.search import ContextWindow


class ProcessResponse(BaseModel):
    """Response body for POST /api/transcripts/process."""

    message: str
    data: list[str]


class TranscriptionDetail(BaseModel):
    """A persisted transcription."""

    id: str
    user_id: str
    title: str
    summary: str
    audio_path: str
    subtitle_path: str | None = None
    transcript_path: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class TranscriptionResponse(BaseModel):
    message: str
    data: TranscriptionDetail


class TranscriptTextResponse(BaseModel):
    message: str
    data: str


class ChunkOut(BaseModel):
    """A transcript chunk with its position and timing (milliseconds)."""

    id: str
    chunk_index: int
    chunk_text: str
    start_time: int
    end_time: int
    similarity: float | None = None


class ContextData(BaseModel):
    main_chunk: ChunkOut
    previous_context: list[ChunkOut] = []
    next_context: list[ChunkOut] = []
    prev_id: str | None = None
    next_id: str | None = None

    @classmethod
    def from_window(cls, window: ContextWindow) -> ContextData:
        def _chunk(row: dict[str, Any]) -> ChunkOut:
            return ChunkOut.model_validate(row)

        return cls(
            main_chunk=_chunk(window.main_chunk),
            previous_context=[_chunk(r) for r in window.previous_context],
            next_context=[_chunk(r) for r in window.next_context],
            prev_id=window.prev_id,
            next_id=window.next_id,
        )


class ContextResponse(BaseModel):
    """Response body for the search and neighbors endpoints."""

    message: str
    data: ContextData


class MessageResponse(BaseModel):
    message: str
