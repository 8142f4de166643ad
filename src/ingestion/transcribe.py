"""Speech-to-text via the AssemblyAI SDK."""

from __future__ import annotations

import asyncio
import logging

from src.ingestion.capabilities import SpeechResult
from src.ingestion.errors import TranscriptionFailed

logger = logging.getLogger(__name__)


class AssemblyAISpeechToText:
    """Transcribe raw audio bytes and export the result as WebVTT."""

    def __init__(self, api_key: str, speech_model: str = "universal-3-pro") -> None:
        self.api_key = api_key
        self.speech_model = speech_model

    def _transcribe_sync(self, audio: bytes) -> SpeechResult:
        import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

        aai.settings.api_key = self.api_key
        # speech_models (plural) is required by the current AssemblyAI API.
        config = aai.TranscriptionConfig(speech_models=[self.speech_model], punctuate=True)
        transcriber = aai.Transcriber()

        try:
            transcript = transcriber.transcribe(audio, config=config)
        except Exception as exc:
            # Infrastructure error: invalid API key, network failure, provider outage.
            raise TranscriptionFailed(f"Transcription service unavailable: {exc}") from exc

        if transcript.status == aai.TranscriptStatus.error:
            raise TranscriptionFailed(f"Transcription failed: {transcript.error}")

        text = (transcript.text or "").strip()
        if not text:
            raise TranscriptionFailed("Transcription returned no text")

        try:
            vtt = transcript.export_subtitles_vtt()
        except Exception as exc:
            raise TranscriptionFailed(f"Subtitle export failed: {exc}") from exc
        if not vtt or not vtt.strip():
            raise TranscriptionFailed("Transcription returned no subtitle output")

        return SpeechResult(text=text, vtt=vtt)

    async def transcribe(self, audio: bytes) -> SpeechResult:
        """Run the synchronous SDK in a thread so the event loop stays free."""
        logger.info("Transcribing audio (%.2f MB)", len(audio) / (1024 * 1024))
        return await asyncio.to_thread(self._transcribe_sync, audio)
