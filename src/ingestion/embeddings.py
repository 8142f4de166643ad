"""Embedding helpers using OpenAI text-embedding-3-small."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from openai import AsyncOpenAI, OpenAIError

from src.ingestion.errors import EmbeddingFailed

if TYPE_CHECKING:
    from src.ingestion.capabilities import Embedder
    from src.ingestion.models import Chunk

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Embed text with the OpenAI embeddings API at a fixed dimension."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "text-embedding-3-small",
        dimensions: int = 1024,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self.dimensions = dimensions
        self._client = client or AsyncOpenAI(api_key=api_key or None)

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(
                input=[text],
                model=self.model,
                dimensions=self.dimensions,
            )
        except OpenAIError as exc:
            raise EmbeddingFailed(f"Embedding request failed: {exc}") from exc

        if not response.data:
            raise EmbeddingFailed("Embedding response contained no vectors")
        return response.data[0].embedding


async def embed_text(embedder: Embedder, text: str) -> list[float]:
    """Embed *text* and check the vector matches the embedder's dimension."""
    try:
        vector = await embedder.embed(text)
    except EmbeddingFailed:
        raise
    except Exception as exc:
        raise EmbeddingFailed(f"Embedding failed: {exc}") from exc
    if len(vector) != embedder.dimensions:
        raise EmbeddingFailed(
            f"Expected a {embedder.dimensions}-dimension embedding, got {len(vector)}"
        )
    return vector


async def embed_chunks(
    chunks: list[Chunk],
    embedder: Embedder,
    concurrency: int = 8,
) -> list[list[float]]:
    """Embed every chunk concurrently and return vectors in chunk order.

    Args:
        chunks: Chunks whose ``text`` will be embedded.
        embedder: Embedding capability.
        concurrency: Maximum number of in-flight embedding calls.

    Returns:
        One vector per chunk, aligned with *chunks*.

    Raises:
        EmbeddingFailed: If any chunk fails to embed.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _embed(chunk: Chunk) -> list[float]:
        async with semaphore:
            return await embed_text(embedder, chunk.text)

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_embed(c)) for c in chunks]
    except ExceptionGroup as group:
        # Remaining calls are cancelled by the task group; report the first failure.
        first = group.exceptions[0]
        if isinstance(first, EmbeddingFailed):
            raise first
        raise EmbeddingFailed(f"Embedding failed: {first}") from first

    vectors = [task.result() for task in tasks]
    logger.info("Embedded %d chunks", len(vectors))
    return vectors
