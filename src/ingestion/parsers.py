"""WebVTT cue parser.

Turns speech-model subtitle output into an ordered list of :class:`TimedCue`.
Malformed timestamp lines are skipped with a warning rather than failing the
whole transcript.
"""

from __future__ import annotations

import logging
import re

from src.ingestion.models import TimedCue

logger = logging.getLogger(__name__)

ARROW = "-->"

_FIELD_SPLIT_RE = re.compile(r"[:.,]")


def parse_timestamp(ts: str) -> int:
    """Convert a cue timestamp to milliseconds.

    Accepts ``ss.fff``, ``mm:ss.fff`` and ``hh:mm:ss.fff``. The fraction is
    scaled by its digit count so ``.5`` and ``.500`` both mean 500 ms.

    Raises:
        ValueError: If the timestamp is empty or a field is not numeric.
    """
    cleaned = ts.strip()
    if not cleaned:
        raise ValueError("empty timestamp")

    parts = _FIELD_SPLIT_RE.split(cleaned)
    if not 2 <= len(parts) <= 4 or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid timestamp: {ts!r}")

    *whole, fraction = parts
    millis = int(fraction[:3].ljust(3, "0"))
    hours, minutes, seconds = ([0, 0, 0] + [int(p) for p in whole])[-3:]
    return hours * 3_600_000 + minutes * 60_000 + seconds * 1000 + millis


def has_vtt_header(content: str) -> bool:
    """Return True if the first non-blank line is a ``WEBVTT`` header."""
    for line in content.splitlines():
        stripped = line.strip().lstrip("\ufeff")
        if stripped:
            return stripped.startswith("WEBVTT")
    return False


def _parse_timing_line(line: str) -> tuple[int, int]:
    start_raw, _, end_raw = line.partition(ARROW)
    # Cue settings (``align:start`` etc.) may follow the end timestamp.
    end_fields = end_raw.split()
    if not end_fields:
        raise ValueError("missing end timestamp")

    start = parse_timestamp(start_raw)
    end = parse_timestamp(end_fields[0])
    if end < start:
        raise ValueError(f"end {end}ms precedes start {start}ms")
    return start, end


def parse_vtt(content: str) -> list[TimedCue]:
    """Parse WebVTT content into cues, in source order.

    A cue's text is every non-blank line after its timing line, joined with
    single spaces, up to the next blank line, timing line, or end of input.
    Cues whose text is blank are dropped. Empty input yields ``[]``.
    """
    cues: list[TimedCue] = []
    timing: tuple[int, int] | None = None
    text_lines: list[str] = []

    def close_cue() -> None:
        nonlocal timing, text_lines
        if timing is not None:
            text = " ".join(text_lines).strip()
            if text:
                cues.append(TimedCue(start_time=timing[0], end_time=timing[1], text=text))
        timing = None
        text_lines = []

    for lineno, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()

        if not line:
            close_cue()
            continue

        if ARROW in line:
            close_cue()
            try:
                timing = _parse_timing_line(line)
            except ValueError as exc:
                logger.warning("Skipping malformed timestamp at line %d: %r (%s)", lineno, line, exc)
            continue

        # Header, NOTE/STYLE/REGION blocks and cue identifiers sit outside a cue.
        if timing is not None:
            text_lines.append(line)

    close_cue()

    logger.debug("Parsed %d cues from VTT", len(cues))
    return cues
