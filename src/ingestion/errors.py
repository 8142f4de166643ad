"""Failures raised by the transcription pipeline and retrieval helpers."""

from __future__ import annotations


class PipelineError(Exception):
    """A hard failure that fails the job and leaves it unacknowledged."""


class AudioNotFound(PipelineError):
    """The job's audio object is missing from the blob store."""

    def __init__(self, audio_path: str) -> None:
        super().__init__(f"Audio file not found at path: {audio_path}")
        self.audio_path = audio_path


class TranscriptionFailed(PipelineError):
    """The speech model returned no usable text or subtitle output."""


class StorageWriteFailed(PipelineError):
    """Writing transcript artifacts to the blob store failed."""


class EmbeddingFailed(PipelineError):
    """The embedding model failed or returned a malformed vector."""


class PersistenceFailed(PipelineError):
    """The transcription + chunks transaction did not commit."""


class ChunkNotFound(LookupError):
    """No chunk exists at the requested index for the transcription."""

    def __init__(self, transcription_id: str, chunk_index: int) -> None:
        super().__init__(f"Chunk {chunk_index} not found for transcription {transcription_id}")
        self.transcription_id = transcription_id
        self.chunk_index = chunk_index
