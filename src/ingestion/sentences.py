"""Fold word/phrase-level subtitle cues into sentences."""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from src.ingestion.models import Sentence, TimedCue
from src.pipeline_config import SentenceConfig

logger = logging.getLogger(__name__)

SENTENCE_PUNCTUATION = (".", "!", "?")


def _marker_pattern(marker: str | None) -> re.Pattern[str] | None:
    if not marker or not marker.strip():
        return None
    # Whole words only, so "next lines" is not a marker.
    return re.compile(rf"\b{re.escape(marker.strip())}\b", re.IGNORECASE)


def _format_sentence(text: str, marker_re: re.Pattern[str] | None) -> str:
    """Replace paragraph markers with line breaks and trim each line."""
    if marker_re is None:
        return text.strip()
    lines = (part.strip() for part in marker_re.split(text))
    return "\n".join(line for line in lines if line)


def reconstruct_sentences(
    cues: list[TimedCue],
    config: SentenceConfig | None = None,
) -> list[Sentence]:
    """Merge cues into sentences.

    A sentence closes after a cue that ends with ``.``, ``!`` or ``?``, after
    the last cue, when the silence before the next cue exceeds
    ``gap_threshold_ms`` and at least ``min_words`` words have accumulated,
    or when the cue contains the paragraph marker. The marker itself is
    removed and the text on either side of it becomes separate lines of the
    same sentence.

    Args:
        cues: Parsed cues in source order.
        config: Boundary thresholds; defaults to :class:`SentenceConfig`.

    Returns:
        Non-empty sentences in source order.
    """
    config = config or SentenceConfig()
    marker_re = _marker_pattern(config.paragraph_marker)

    sentences: list[Sentence] = []
    parts: list[str] = []
    start_time = 0

    for i, cue in enumerate(cues):
        text = cue.text.strip()
        if not parts:
            start_time = cue.start_time
        parts.append(text)

        next_cue = cues[i + 1] if i + 1 < len(cues) else None
        gap = next_cue.start_time - cue.end_time if next_cue else 0
        word_count = sum(len(p.split()) for p in parts)
        has_marker = marker_re is not None and marker_re.search(text) is not None

        if (
            text.endswith(SENTENCE_PUNCTUATION)
            or next_cue is None
            or (gap > config.gap_threshold_ms and word_count >= config.min_words)
            or has_marker
        ):
            sentence_text = _format_sentence(" ".join(parts), marker_re)
            if sentence_text:
                sentences.append(
                    Sentence(
                        text=sentence_text,
                        start_time=start_time,
                        end_time=cue.end_time,
                        paragraph_break=has_marker,
                    )
                )
            elif has_marker and sentences:
                # A cue holding only the marker still ends the previous paragraph.
                sentences[-1] = replace(sentences[-1], paragraph_break=True)
            parts = []

    logger.debug("Reconstructed %d sentences from %d cues", len(sentences), len(cues))
    return sentences
