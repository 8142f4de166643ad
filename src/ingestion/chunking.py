"""Chunking strategies for reconstructed sentences."""

from __future__ import annotations

import logging

from src.ingestion.models import Chunk, Sentence
from src.ingestion.parsers import has_vtt_header, parse_vtt
from src.ingestion.sentences import reconstruct_sentences
from src.pipeline_config import ChunkingConfig, ChunkingStrategy, SentenceConfig

logger = logging.getLogger(__name__)

EMPTY_TRANSCRIPT_TEXT = "No transcription available"


def _close(sentences: list[Sentence]) -> Chunk:
    return Chunk(
        text=" ".join(s.text for s in sentences),
        start_time=sentences[0].start_time,
        end_time=sentences[-1].end_time,
    )


def sentence_chunk(sentences: list[Sentence]) -> list[Chunk]:
    """Emit one chunk per sentence."""
    return [
        Chunk(text=s.text, start_time=s.start_time, end_time=s.end_time) for s in sentences
    ]


def paragraph_chunk(
    sentences: list[Sentence],
    config: ChunkingConfig | None = None,
) -> list[Chunk]:
    """Group sentences into chunks along paragraph boundaries.

    A paragraph ends after a sentence that carried the paragraph marker or
    when the silence before the next sentence exceeds ``paragraph_gap_ms``.
    The pending chunk closes on the last sentence, at ``max_sentences``, once
    ``target_paragraphs`` paragraphs hold at least ``min_sentences``
    sentences, or right after any paragraph break. Sentences are never split.

    Args:
        sentences: Reconstructed sentences in source order.
        config: Size bounds; defaults to :class:`ChunkingConfig`.

    Returns:
        Chunks in source order (at least one when *sentences* is non-empty).
    """
    config = config or ChunkingConfig()
    chunks: list[Chunk] = []
    pending: list[Sentence] = []
    paragraphs = 0

    for i, sentence in enumerate(sentences):
        pending.append(sentence)

        next_sentence = sentences[i + 1] if i + 1 < len(sentences) else None
        paragraph_break = sentence.paragraph_break or (
            next_sentence is not None
            and next_sentence.start_time - sentence.end_time > config.paragraph_gap_ms
        )
        if paragraph_break:
            paragraphs += 1

        if (
            next_sentence is None
            or len(pending) >= config.max_sentences
            or (paragraphs >= config.target_paragraphs and len(pending) >= config.min_sentences)
            or paragraph_break
        ):
            chunks.append(_close(pending))
            pending = []
            paragraphs = 0

    return chunks


def fallback_chunk(text: str) -> list[Chunk]:
    """Single untimed chunk holding *text* verbatim."""
    return [Chunk(text=text if text.strip() else EMPTY_TRANSCRIPT_TEXT, start_time=0, end_time=0)]


def chunk_transcript(
    cue_text: str,
    fallback_text: str | None = None,
    strategy: str | ChunkingStrategy = ChunkingStrategy.PARAGRAPH,
    sentence_config: SentenceConfig | None = None,
    chunking_config: ChunkingConfig | None = None,
) -> list[Chunk]:
    """Parse -> reconstruct sentences -> chunk, with a single-chunk fallback.

    When the cue text has no ``WEBVTT`` header, or any stage yields nothing,
    the whole of *fallback_text* (default: *cue_text*) becomes one chunk
    timed at 0.

    Args:
        cue_text: WebVTT output from the speech model.
        fallback_text: Plain transcript used when chunking degenerates.
        strategy: ``"paragraph"`` or ``"sentence"`` (string or enum).
        sentence_config: Sentence boundary thresholds.
        chunking_config: Chunk size bounds for the paragraph strategy.

    Returns:
        At least one chunk.
    """
    if isinstance(strategy, str):
        strategy = ChunkingStrategy(strategy)
    if fallback_text is None:
        fallback_text = cue_text

    if not has_vtt_header(cue_text):
        logger.warning("Invalid or empty VTT output, falling back to single chunk")
        return fallback_chunk(fallback_text)

    cues = parse_vtt(cue_text)
    if not cues:
        logger.warning("No valid cues parsed, falling back to single chunk")
        return fallback_chunk(fallback_text)

    sentences = reconstruct_sentences(cues, sentence_config)
    if not sentences:
        logger.warning("No sentences reconstructed, falling back to single chunk")
        return fallback_chunk(fallback_text)

    if strategy is ChunkingStrategy.SENTENCE:
        chunks = sentence_chunk(sentences)
    else:
        chunks = paragraph_chunk(sentences, chunking_config)

    if not chunks:
        logger.warning("No chunks generated, falling back to single chunk")
        return fallback_chunk(fallback_text)

    logger.info(
        "Chunked %d cues into %d sentences and %d chunks (%s)",
        len(cues),
        len(sentences),
        len(chunks),
        strategy.value,
    )
    return chunks
