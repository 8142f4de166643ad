"""Shared fixtures."""

from __future__ import annotations

import pytest

from src.ingestion.capabilities import JobContext
from tests.fakes import (
    FakeBlobStore,
    FakeEmbedder,
    FakeSpeech,
    FakeTextGenerator,
    FakeTranscriptStore,
    RecordingNotifier,
)


@pytest.fixture
def audio_path() -> str:
    return "transcriptions/user_1/trs_abc/audio.mp3"


@pytest.fixture
def job_context(audio_path: str) -> JobContext:
    return JobContext(
        blob_store=FakeBlobStore({audio_path: b"ID3fake-mp3-bytes"}),
        speech=FakeSpeech(),
        text_generator=FakeTextGenerator(),
        embedder=FakeEmbedder(),
        store=FakeTranscriptStore(),
        notifier=RecordingNotifier(),
    )
