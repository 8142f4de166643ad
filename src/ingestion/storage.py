"""Supabase storage helpers for transcript artifacts, transcriptions and chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, cast

from supabase import Client, StorageException, create_client

from src.config import settings
from src.ingestion.errors import PersistenceFailed, StorageWriteFailed

if TYPE_CHECKING:
    from src.ingestion.models import Transcription, TranscriptionChunk

logger = logging.getLogger(__name__)

TRANSCRIPTIONS_TABLE = "transcriptions"
CHUNKS_TABLE = "transcript_chunks"

# Columns returned to readers; embeddings stay server-side.
CHUNK_COLUMNS = "id,transcription_id,chunk_index,chunk_text,start_time,end_time"


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def _is_not_found(exc: StorageException) -> bool:
    # Storage errors carry the API error body, e.g. {"statusCode": "404", "error": "not_found"}.
    detail = exc.args[0] if exc.args else None
    if isinstance(detail, dict):
        return str(detail.get("statusCode")) == "404" or detail.get("error") == "not_found"
    return "not found" in str(detail).lower()


def audio_path(user_id: str, transcription_id: str) -> str:
    return f"transcriptions/{user_id}/{transcription_id}/audio.mp3"


def transcript_path(user_id: str, transcription_id: str) -> str:
    return f"transcriptions/{user_id}/{transcription_id}/transcript.txt"


def subtitle_path(user_id: str, transcription_id: str) -> str:
    return f"transcriptions/{user_id}/{transcription_id}/subtitles.vtt"


class SupabaseBlobStore:
    """Blob store backed by a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    async def get(self, path: str) -> bytes | None:
        """Download *path*; ``None`` if the object does not exist.

        Any other storage or network error propagates.
        """
        bucket = self.client.storage.from_(self.bucket)
        try:
            return await asyncio.to_thread(bucket.download, path)
        except StorageException as exc:
            if not _is_not_found(exc):
                raise
            logger.warning("Object %s not found in bucket %s", path, self.bucket)
            return None

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        bucket = self.client.storage.from_(self.bucket)
        # upsert keeps redelivered jobs from failing on an existing object.
        file_options = {"content-type": content_type, "upsert": "true"}
        try:
            await asyncio.to_thread(bucket.upload, path, data, file_options)
        except Exception as exc:
            raise StorageWriteFailed(f"Failed to write {path}: {exc}") from exc


def transcription_row(transcription: Transcription) -> dict[str, object]:
    return {
        "id": transcription.id,
        "user_id": transcription.user_id,
        "title": transcription.title,
        "summary": transcription.summary,
        "audio_path": transcription.audio_path,
        "subtitle_path": transcription.subtitle_path,
        "transcript_path": transcription.transcript_path,
        "created_at": transcription.created_at.isoformat(),
        "updated_at": transcription.updated_at.isoformat(),
    }


def chunk_row(chunk: TranscriptionChunk) -> dict[str, object]:
    return {
        "id": chunk.id,
        "transcription_id": chunk.transcription_id,
        "chunk_index": chunk.chunk_index,
        "chunk_text": chunk.chunk_text,
        "start_time": chunk.start_time,
        "end_time": chunk.end_time,
        "embedding": chunk.embedding,
        "created_at": chunk.created_at.isoformat(),
    }


class SupabaseTranscriptStore:
    """Transcriptions and pgvector chunks in Supabase Postgres.

    Multi-row writes and similarity ranking go through the SQL functions in
    ``supabase/migrations`` so each runs inside a single database transaction.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    async def insert_transcription(
        self,
        transcription: Transcription,
        chunks: list[TranscriptionChunk],
    ) -> bool:
        if not chunks:
            logger.warning("Skipping chunk insertion due to empty chunks for %s", transcription.id)

        params = {
            "p_transcription": transcription_row(transcription),
            "p_chunks": [chunk_row(c) for c in chunks],
        }
        try:
            result = await asyncio.to_thread(
                self.client.rpc("insert_transcription_with_chunks", params).execute
            )
        except Exception as exc:
            raise PersistenceFailed(
                f"Failed to persist transcription {transcription.id}: {exc}"
            ) from exc

        inserted = bool(result.data)
        if not inserted:
            logger.info("Transcription %s already persisted; skipping insert", transcription.id)
        return inserted

    async def get_transcription(self, transcription_id: str, user_id: str) -> dict[str, Any] | None:
        query = (
            self.client.table(TRANSCRIPTIONS_TABLE)
            .select("*")
            .eq("id", transcription_id)
            .eq("user_id", user_id)
            .limit(1)
        )
        result = await asyncio.to_thread(query.execute)
        rows = cast(list[dict[str, Any]], result.data)
        return rows[0] if rows else None

    async def match_chunks(
        self,
        transcription_id: str,
        query_embedding: list[float],
        limit: int = 1,
    ) -> list[dict[str, Any]]:
        query = self.client.rpc(
            "match_transcription_chunks",
            {
                "query_embedding": query_embedding,
                "filter_transcription_id": transcription_id,
                "match_count": limit,
            },
        )
        result = await asyncio.to_thread(query.execute)
        # Supabase .data is typed as JSON (broad union); cast to concrete type.
        return cast(list[dict[str, Any]], result.data)

    async def chunk_range(self, transcription_id: str, first: int, last: int) -> list[dict[str, Any]]:
        if last < first:
            return []
        query = (
            self.client.table(CHUNKS_TABLE)
            .select(CHUNK_COLUMNS)
            .eq("transcription_id", transcription_id)
            .gte("chunk_index", first)
            .lte("chunk_index", last)
            .order("chunk_index")
        )
        result = await asyncio.to_thread(query.execute)
        return cast(list[dict[str, Any]], result.data)
