"""Tests for Settings, PipelineConfig and the chunking strategy enum."""

from __future__ import annotations

import pytest

from src.config import Settings
from src.ingestion.models import JobStatus, TranscriptionJob
from src.pipeline_config import ChunkingConfig, ChunkingStrategy, PipelineConfig, SentenceConfig


class TestChunkingStrategy:
    def test_values(self) -> None:
        assert ChunkingStrategy.SENTENCE.value == "sentence"
        assert ChunkingStrategy.PARAGRAPH.value == "paragraph"

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            ChunkingStrategy("speaker_turn")


class TestPipelineConfig:
    def test_defaults(self) -> None:
        config = PipelineConfig()
        assert config.chunking_strategy is ChunkingStrategy.PARAGRAPH
        assert config.sentence == SentenceConfig(gap_threshold_ms=500, min_words=3, paragraph_marker="next line")
        assert config.chunking == ChunkingConfig()
        assert config.embedding_concurrency == 8

    def test_frozen(self) -> None:
        config = PipelineConfig()
        with pytest.raises(AttributeError):
            config.embedding_concurrency = 1  # type: ignore[misc]

    def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            chunking_strategy="sentence",
            sentence_gap_ms=800,
            min_words_per_sentence=4,
            paragraph_marker="",
            min_sentences_per_chunk=1,
            max_sentences_per_chunk=5,
            paragraph_gap_ms=3000,
            target_paragraphs_per_chunk=2,
            embedding_concurrency=2,
        )
        config = PipelineConfig.from_settings(settings)

        assert config.chunking_strategy is ChunkingStrategy.SENTENCE
        assert config.sentence == SentenceConfig(gap_threshold_ms=800, min_words=4, paragraph_marker=None)
        assert config.chunking == ChunkingConfig(
            min_sentences=1, max_sentences=5, paragraph_gap_ms=3000, target_paragraphs=2
        )
        assert config.embedding_concurrency == 2

    def test_from_settings_rejects_bad_bounds(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            min_sentences_per_chunk=9,
            max_sentences_per_chunk=3,
        )
        with pytest.raises(ValueError):
            PipelineConfig.from_settings(settings)


class TestTranscriptionJob:
    def test_accepts_camel_case(self) -> None:
        job = TranscriptionJob.model_validate(
            {"transcriptId": "trs_1", "audioPath": "a.mp3", "userId": "user_1", "timestamp": 1700000000000}
        )
        assert job.transcript_id == "trs_1"
        assert job.audio_path == "a.mp3"
        assert job.timestamp == 1700000000000
        assert job.status is JobStatus.ENQUEUED

    def test_accepts_field_names(self) -> None:
        job = TranscriptionJob(transcript_id="trs_1", audio_path="a.mp3", user_id="user_1")
        assert job.user_id == "user_1"
        assert job.timestamp > 0
