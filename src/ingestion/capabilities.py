"""Contracts for the external services the pipeline depends on.

Concrete adapters live in ``transcribe``, ``summary``, ``embeddings``,
``storage`` and ``src.notifications.hub``; tests substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.ingestion.models import Transcription, TranscriptionChunk


@dataclass(frozen=True)
class SpeechResult:
    """Validated speech-to-text output."""

    text: str
    vtt: str


class BlobStore(Protocol):
    async def get(self, path: str) -> bytes | None:
        """Return the object at *path*, or ``None`` if it does not exist."""
        ...

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        """Write *data* to *path*, overwriting any existing object."""
        ...


class SpeechToText(Protocol):
    async def transcribe(self, audio: bytes) -> SpeechResult: ...


class TextGenerator(Protocol):
    async def complete(self, prompt: str, max_tokens: int) -> str: ...


class Embedder(Protocol):
    dimensions: int

    async def embed(self, text: str) -> list[float]: ...


class TranscriptStore(Protocol):
    async def insert_transcription(
        self,
        transcription: Transcription,
        chunks: list[TranscriptionChunk],
    ) -> bool:
        """Insert the transcription and its chunks in one transaction.

        Returns ``False`` when the transcription id already exists (a
        redelivered job) and nothing was written.
        """
        ...

    async def get_transcription(self, transcription_id: str, user_id: str) -> dict[str, Any] | None: ...

    async def match_chunks(
        self,
        transcription_id: str,
        query_embedding: list[float],
        limit: int = 1,
    ) -> list[dict[str, Any]]:
        """Rank the transcription's chunks by ``1 - cosine distance``, best first."""
        ...

    async def chunk_range(self, transcription_id: str, first: int, last: int) -> list[dict[str, Any]]:
        """Chunks with ``first <= chunk_index <= last``, ascending by index."""
        ...


class Notifier(Protocol):
    async def publish(self, user_id: str, event: dict[str, Any]) -> None: ...


@dataclass
class JobContext:
    """Handles for every external capability a transcription job touches."""

    blob_store: BlobStore
    speech: SpeechToText
    text_generator: TextGenerator
    embedder: Embedder
    store: TranscriptStore
    notifier: Notifier
