"""Notification events pushed to dashboard clients."""

from __future__ import annotations

import time
import uuid

from pydantic import BaseModel, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class Notification(BaseModel):
    """A single user-facing notification."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = Field(default_factory=_now_ms)
    type: str = "queueStatus"
    title: str
    content: str = ""
    redirect_path: str | None = None


def transcript_redirect(transcript_id: str) -> str:
    return f"/dashboard/transcripts/{transcript_id}"


def transcription_started(transcript_id: str) -> Notification:
    return Notification(
        title=f"Transcription {transcript_id} started",
        redirect_path=transcript_redirect(transcript_id),
    )


def transcription_completed(transcript_id: str, title: str, summary: str) -> Notification:
    return Notification(
        title=f"Transcription finished - {title}",
        content=summary,
        redirect_path=transcript_redirect(transcript_id),
    )


def transcription_failed(transcript_id: str, reason: str) -> Notification:
    return Notification(
        title="Transcription failed",
        content=reason or "Transcription failed",
        redirect_path=transcript_redirect(transcript_id),
    )
