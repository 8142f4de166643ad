"""Tests for the transcription job orchestrator using in-memory fakes."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from src.ingestion.capabilities import JobContext
from src.ingestion.errors import (
    AudioNotFound,
    EmbeddingFailed,
    PersistenceFailed,
    StorageWriteFailed,
    TranscriptionFailed,
)
from src.ingestion.models import JobStatus, TranscriptionJob
from src.ingestion.pipeline import new_chunk_id, new_transcription_id, process_transcription_job
from src.ingestion.summary import DEFAULT_SUMMARY, DEFAULT_TITLE, SUMMARY_MAX_TOKENS, TITLE_MAX_TOKENS
from src.pipeline_config import ChunkingStrategy, PipelineConfig
from tests.fakes import (
    SAMPLE_TEXT,
    SAMPLE_VTT,
    FakeBlobStore,
    FakeEmbedder,
    FakeSpeech,
    FakeTextGenerator,
    FakeTranscriptStore,
    RecordingNotifier,
)


@pytest.fixture
def job(audio_path: str) -> TranscriptionJob:
    return TranscriptionJob(transcript_id="trs_abc", audio_path=audio_path, user_id="user_1")


def _run(job: TranscriptionJob, ctx: JobContext, config: PipelineConfig | None = None):
    return asyncio.run(process_transcription_job(job, ctx, config))


class TestSuccessfulJob:
    def test_persists_transcription_and_chunks(self, job: TranscriptionJob, job_context: JobContext) -> None:
        result = _run(job, job_context)

        store = job_context.store
        assert result.persisted is True
        assert result.num_chunks == 2
        assert list(store.transcriptions) == ["trs_abc"]
        row = store.transcriptions["trs_abc"]
        assert row["user_id"] == "user_1"
        assert row["title"] == "A Title"
        assert row["summary"] == "A short summary."
        assert row["transcript_path"] == "transcriptions/user_1/trs_abc/transcript.txt"
        assert row["subtitle_path"] == "transcriptions/user_1/trs_abc/subtitles.vtt"

    def test_chunk_indices_are_contiguous(self, job: TranscriptionJob, job_context: JobContext) -> None:
        _run(job, job_context)

        chunks = job_context.store.chunks_for("trs_abc")
        assert [c["chunk_index"] for c in chunks] == list(range(len(chunks)))
        assert all(c["id"].startswith("trnchk_") for c in chunks)
        assert len({c["id"] for c in chunks}) == len(chunks)
        assert (chunks[0]["start_time"], chunks[0]["end_time"]) == (0, 4000)
        assert (chunks[1]["start_time"], chunks[1]["end_time"]) == (7000, 8000)

    def test_every_chunk_embedded(self, job: TranscriptionJob, job_context: JobContext) -> None:
        _run(job, job_context)

        chunks = job_context.store.chunks_for("trs_abc")
        assert all(len(c["embedding"]) == job_context.embedder.dimensions for c in chunks)
        assert job_context.embedder.calls == [c["chunk_text"] for c in chunks]

    def test_writes_transcript_artifacts(self, job: TranscriptionJob, job_context: JobContext) -> None:
        _run(job, job_context)

        objects = job_context.blob_store.objects
        assert objects["transcriptions/user_1/trs_abc/transcript.txt"] == SAMPLE_TEXT.encode()
        assert objects["transcriptions/user_1/trs_abc/subtitles.vtt"] == SAMPLE_VTT.encode()
        assert job_context.blob_store.content_types["transcriptions/user_1/trs_abc/subtitles.vtt"] == "text/vtt"

    def test_summary_then_title(self, job: TranscriptionJob, job_context: JobContext) -> None:
        _run(job, job_context)

        (summary_prompt, summary_tokens), (title_prompt, title_tokens) = job_context.text_generator.prompts
        assert SAMPLE_TEXT in summary_prompt
        assert summary_tokens == SUMMARY_MAX_TOKENS
        assert "A short summary." in title_prompt
        assert title_tokens == TITLE_MAX_TOKENS

    def test_notifications(self, job: TranscriptionJob, job_context: JobContext) -> None:
        _run(job, job_context)

        notifier = job_context.notifier
        assert notifier.titles == ["Transcription trs_abc started", "Transcription finished - A Title"]
        assert {user for user, _ in notifier.events} == {"user_1"}
        completed = notifier.events[-1][1]
        assert completed["content"] == "A short summary."
        assert completed["redirect_path"] == "/dashboard/transcripts/trs_abc"
        assert job.status is JobStatus.COMPLETED

    def test_sentence_strategy(self, job: TranscriptionJob, job_context: JobContext) -> None:
        result = _run(job, job_context, PipelineConfig(chunking_strategy=ChunkingStrategy.SENTENCE))
        assert result.num_chunks == 3

    def test_unparseable_subtitles_fall_back_to_one_chunk(
        self, job: TranscriptionJob, job_context: JobContext
    ) -> None:
        ctx = replace(job_context, speech=FakeSpeech(vtt="not subtitles at all"))
        result = _run(job, ctx)

        chunks = ctx.store.chunks_for("trs_abc")
        assert result.num_chunks == 1
        assert chunks[0]["chunk_text"] == SAMPLE_TEXT
        assert (chunks[0]["start_time"], chunks[0]["end_time"]) == (0, 0)

    def test_summary_failure_uses_defaults(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, text_generator=FakeTextGenerator([RuntimeError("rate limited"), ""]))
        result = _run(job, ctx)

        assert result.summary == DEFAULT_SUMMARY
        assert result.title == DEFAULT_TITLE
        assert ctx.store.transcriptions["trs_abc"]["title"] == DEFAULT_TITLE

    def test_notifier_failure_does_not_fail_job(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, notifier=RecordingNotifier(fail=True))
        result = _run(job, ctx)

        assert result.persisted is True
        assert job.status is JobStatus.COMPLETED

    def test_redelivery_is_idempotent(self, job: TranscriptionJob, job_context: JobContext) -> None:
        first = _run(job, job_context)
        second = _run(job, job_context)

        assert first.persisted is True
        assert second.persisted is False
        assert list(job_context.store.transcriptions) == ["trs_abc"]
        assert len(job_context.store.chunks_for("trs_abc")) == first.num_chunks


class TestFailedJob:
    def _assert_failed(self, job: TranscriptionJob, ctx: JobContext) -> None:
        assert job.status is JobStatus.FAILED
        assert ctx.store.transcriptions == {}
        assert ctx.store.chunks == []
        assert ctx.notifier.titles == ["Transcription trs_abc started", "Transcription failed"]

    def test_missing_audio(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, blob_store=FakeBlobStore())
        with pytest.raises(AudioNotFound):
            _run(job, ctx)

        self._assert_failed(job, ctx)
        assert ctx.speech.calls == []
        failed = ctx.notifier.events[-1][1]
        assert failed["content"] == f"Audio file not found at path: {job.audio_path}"

    def test_audio_read_error_is_not_reported_missing(self, job: TranscriptionJob, job_context: JobContext) -> None:
        blob_store = FakeBlobStore()
        blob_store.get = AsyncMock(side_effect=ConnectionError("connection reset"))  # type: ignore[method-assign]
        ctx = replace(job_context, blob_store=blob_store)

        with pytest.raises(ConnectionError):
            _run(job, ctx)

        self._assert_failed(job, ctx)
        assert ctx.speech.calls == []
        assert ctx.notifier.events[-1][1]["content"] == "connection reset"

    def test_speech_model_error(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, speech=FakeSpeech(error=RuntimeError("provider down")))
        with pytest.raises(TranscriptionFailed, match="provider down"):
            _run(job, ctx)
        self._assert_failed(job, ctx)

    def test_empty_transcript(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, speech=FakeSpeech(text="   "))
        with pytest.raises(TranscriptionFailed):
            _run(job, ctx)
        self._assert_failed(job, ctx)

    def test_artifact_write_failure(
        self, job: TranscriptionJob, job_context: JobContext, audio_path: str
    ) -> None:
        ctx = replace(job_context, blob_store=FakeBlobStore({audio_path: b"audio"}, fail_writes=True))
        with pytest.raises(StorageWriteFailed):
            _run(job, ctx)
        self._assert_failed(job, ctx)

    def test_embedding_failure(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, embedder=FakeEmbedder(fail_on="Revenue"))
        with pytest.raises(EmbeddingFailed):
            _run(job, ctx)
        self._assert_failed(job, ctx)

    def test_wrong_embedding_dimension(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, embedder=FakeEmbedder(dimensions=4, vectors={"Next we discuss hiring.": [1.0]}))
        with pytest.raises(EmbeddingFailed, match="4-dimension"):
            _run(job, ctx)
        self._assert_failed(job, ctx)

    def test_chunk_insert_failure_leaves_nothing(self, job: TranscriptionJob, job_context: JobContext) -> None:
        ctx = replace(job_context, store=FakeTranscriptStore(fail_chunk_insert=True))
        with pytest.raises(PersistenceFailed):
            _run(job, ctx)
        self._assert_failed(job, ctx)


class TestIds:
    def test_prefixes(self) -> None:
        assert new_transcription_id().startswith("trs_")
        assert new_chunk_id().startswith("trnchk_")
        assert new_transcription_id() != new_transcription_id()
