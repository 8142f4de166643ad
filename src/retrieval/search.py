"""Context retrieval: similarity search and neighbor windows over transcript chunks.

Both operations return the matched chunk with ordered windows of the chunks
before and after it, scoped to a single transcription. Ownership checks
belong to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from src.ingestion.embeddings import embed_text
from src.ingestion.errors import ChunkNotFound

if TYPE_CHECKING:
    from src.ingestion.capabilities import Embedder, TranscriptStore

logger = logging.getLogger(__name__)


@dataclass
class ContextWindow:
    """A chunk plus its surrounding context, ascending by ``chunk_index``.

    ``prev_id`` is the chunk immediately before the main chunk (the last of
    ``previous_context``), ``next_id`` the one immediately after it.
    """

    main_chunk: dict[str, Any]
    previous_context: list[dict[str, Any]] = field(default_factory=list)
    next_context: list[dict[str, Any]] = field(default_factory=list)

    @property
    def prev_id(self) -> str | None:
        return self.previous_context[-1]["id"] if self.previous_context else None

    @property
    def next_id(self) -> str | None:
        return self.next_context[0]["id"] if self.next_context else None


def _check_offsets(**offsets: int) -> None:
    for name, value in offsets.items():
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


async def _range(store: TranscriptStore, transcription_id: str, first: int, last: int) -> list[dict[str, Any]]:
    first = max(0, first)
    if last < first:
        return []
    return await store.chunk_range(transcription_id, first, last)


async def get_chunk_neighbors(
    store: TranscriptStore,
    transcription_id: str,
    chunk_index: int,
    start_previous: int = 0,
    end_previous: int = 3,
    start_next: int = 0,
    end_next: int = 3,
) -> ContextWindow:
    """Fetch a chunk by index with two disjoint context windows.

    Previous context covers ``[chunk_index - end_previous, chunk_index -
    start_previous - 1]`` and next context ``[chunk_index + start_next + 1,
    chunk_index + end_next]``. A window is empty when its end does not
    exceed its start. Paging through a transcript means shifting the
    start/end offsets rather than re-running a search.

    Raises:
        ChunkNotFound: No chunk exists at *chunk_index*.
        ValueError: An offset is negative.
    """
    _check_offsets(
        start_previous=start_previous,
        end_previous=end_previous,
        start_next=start_next,
        end_next=end_next,
    )

    main = await store.chunk_range(transcription_id, chunk_index, chunk_index)
    if not main:
        raise ChunkNotFound(transcription_id, chunk_index)

    # _range yields [] whenever end <= start, so both windows can be requested.
    previous, following = await asyncio.gather(
        _range(store, transcription_id, chunk_index - end_previous, chunk_index - start_previous - 1),
        _range(store, transcription_id, chunk_index + start_next + 1, chunk_index + end_next),
    )
    return ContextWindow(main_chunk=main[0], previous_context=previous, next_context=following)


async def search_transcription(
    store: TranscriptStore,
    embedder: Embedder,
    transcription_id: str,
    query: str,
    previous_count: int = 0,
    next_count: int = 0,
) -> ContextWindow | None:
    """Find the chunk most similar to *query* and return it with context.

    Chunks are ranked by ``1 - cosine distance`` to the query embedding. The
    windows hold up to *previous_count* chunks before and *next_count* after
    the best match; fewer are returned near either end of the transcript.

    Returns:
        The best match with context, or ``None`` if the transcription has
        no chunks.
    """
    _check_offsets(previous_count=previous_count, next_count=next_count)

    query_embedding = await embed_text(embedder, query)
    matches = await store.match_chunks(transcription_id, query_embedding, limit=1)
    if not matches:
        logger.info("No chunks matched query for transcription %s", transcription_id)
        return None

    main = matches[0]
    index = int(main["chunk_index"])
    previous, following = await asyncio.gather(
        _range(store, transcription_id, index - previous_count, index - 1),
        _range(store, transcription_id, index + 1, index + next_count),
    )
    return ContextWindow(main_chunk=main, previous_context=previous, next_context=following)
