"""Pipeline configuration: chunking strategy enum and tuning dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.config import Settings


class ChunkingStrategy(str, Enum):
    """Available chunking strategies for reconstructed sentences."""

    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class SentenceConfig:
    """Boundary rules for folding subtitle cues into sentences.

    ``paragraph_marker`` is a spoken token (matched case-insensitively) that
    forces a line break; ``None`` or ``""`` disables it.
    """

    gap_threshold_ms: int = 500
    min_words: int = 3
    paragraph_marker: str | None = "next line"


@dataclass(frozen=True)
class ChunkingConfig:
    """Size bounds and paragraph heuristics for grouping sentences into chunks."""

    min_sentences: int = 2
    max_sentences: int = 8
    paragraph_gap_ms: int = 2000
    target_paragraphs: int = 1

    def __post_init__(self) -> None:
        if self.max_sentences < 1:
            raise ValueError("max_sentences must be at least 1")
        if self.min_sentences < 1 or self.min_sentences > self.max_sentences:
            raise ValueError("min_sentences must be between 1 and max_sentences")
        if self.target_paragraphs < 1:
            raise ValueError("target_paragraphs must be at least 1")


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for the transcription pipeline.

    Defaults mirror the project's current behaviour (paragraph chunking).
    """

    chunking_strategy: ChunkingStrategy = ChunkingStrategy.PARAGRAPH
    sentence: SentenceConfig = field(default_factory=SentenceConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    embedding_concurrency: int = 8

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Build a pipeline config from application settings."""
        return cls(
            chunking_strategy=ChunkingStrategy(settings.chunking_strategy),
            sentence=SentenceConfig(
                gap_threshold_ms=settings.sentence_gap_ms,
                min_words=settings.min_words_per_sentence,
                paragraph_marker=settings.paragraph_marker or None,
            ),
            chunking=ChunkingConfig(
                min_sentences=settings.min_sentences_per_chunk,
                max_sentences=settings.max_sentences_per_chunk,
                paragraph_gap_ms=settings.paragraph_gap_ms,
                target_paragraphs=settings.target_paragraphs_per_chunk,
            ),
            embedding_concurrency=settings.embedding_concurrency,
        )
