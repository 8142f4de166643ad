"""Data models for the transcription pipeline.

All times are integer milliseconds from the start of the audio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TimedCue:
    """A single subtitle cue."""

    start_time: int
    end_time: int
    text: str


@dataclass(frozen=True)
class Sentence:
    """One or more cues merged at a sentence boundary."""

    text: str
    start_time: int
    end_time: int
    paragraph_break: bool = False


@dataclass(frozen=True)
class Chunk:
    """A group of sentences ready for embedding."""

    text: str
    start_time: int
    end_time: int


@dataclass
class TranscriptionChunk:
    """A persisted, embedded chunk of a transcription."""

    id: str
    transcription_id: str
    chunk_index: int
    chunk_text: str
    start_time: int
    end_time: int
    embedding: list[float] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class Transcription:
    """Transcription metadata row, written together with its chunks."""

    id: str
    user_id: str
    title: str
    summary: str
    audio_path: str
    subtitle_path: str | None = None
    transcript_path: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class JobStatus(StrEnum):
    """Lifecycle of a queued transcription job."""

    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptionJob(BaseModel):
    """Queue message describing one transcription job.

    Accepts the camelCase keys used by upstream producers as well as
    snake_case field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    transcript_id: str = Field(alias="transcriptId")
    audio_path: str = Field(alias="audioPath")
    user_id: str = Field(alias="userId")
    timestamp: int = Field(
        default_factory=lambda: int(datetime.now(UTC).timestamp() * 1000)
    )
    status: JobStatus = JobStatus.ENQUEUED
