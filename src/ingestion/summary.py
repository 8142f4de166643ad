"""Claude-powered summary and title generation for finished transcripts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock

if TYPE_CHECKING:
    from src.ingestion.capabilities import TextGenerator

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Transcription"
DEFAULT_SUMMARY = "No summary available"

SUMMARY_MAX_TOKENS = 150
TITLE_MAX_TOKENS = 64

SUMMARY_PROMPT = (
    "Summarize the following text in 2-3 sentences, focusing only on key factual "
    "details such as dates, locations, people, events, or other objective "
    "information. Do not include opinions, analysis, or sensitive personal "
    "details. The text is a transcription of a factual report or conversation. "
    "Reply with the summary only.\n\n{text}"
)

TITLE_PROMPT = (
    "Generate a clear and concise title (10-15 words) for the following summary, "
    "capturing the main factual topic, such as important dates, locations, "
    "people, or events. Avoid opinions, analysis, or sensitive personal details. "
    "Reply with the title only.\n\n{summary}"
)


class AnthropicTextGenerator:
    """Single-turn text completion against the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self._client = client or AsyncAnthropic(api_key=api_key)

    async def complete(self, prompt: str, max_tokens: int) -> str:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        # Only plain text is requested; ignore any other block types.
        return "".join(b.text for b in response.content if isinstance(b, TextBlock)).strip()


async def _complete_or_default(
    generator: TextGenerator,
    prompt: str,
    max_tokens: int,
    default: str,
) -> str:
    try:
        text = (await generator.complete(prompt, max_tokens)).strip()
    except Exception:
        logger.exception("Text generation failed, using default %r", default)
        return default
    return text or default


async def generate_summary(generator: TextGenerator, text: str) -> str:
    """Summarize a transcript, falling back to :data:`DEFAULT_SUMMARY`."""
    return await _complete_or_default(
        generator, SUMMARY_PROMPT.format(text=text), SUMMARY_MAX_TOKENS, DEFAULT_SUMMARY
    )


async def generate_title(generator: TextGenerator, summary: str) -> str:
    """Title a transcript from its summary, falling back to :data:`DEFAULT_TITLE`."""
    return await _complete_or_default(
        generator, TITLE_PROMPT.format(summary=summary), TITLE_MAX_TOKENS, DEFAULT_TITLE
    )
