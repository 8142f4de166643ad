"""Preview how a WebVTT file is split into sentences and chunks.

Runs the same parse -> sentence -> chunk steps as the worker, without any
external services, so chunking thresholds can be tuned against real files.

Usage:
    python scripts/chunk_vtt.py path/to/subtitles.vtt --strategy paragraph --max-sentences 6
"""

import argparse
import dataclasses
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.ingestion.chunking import chunk_transcript
from src.pipeline_config import ChunkingConfig, ChunkingStrategy, SentenceConfig


def _fmt(ms: int) -> str:
    seconds, millis = divmod(ms, 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path, help="WebVTT file to chunk")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in ChunkingStrategy],
        default=ChunkingStrategy.PARAGRAPH.value,
    )
    parser.add_argument("--gap-ms", type=int, default=500, help="Sentence gap threshold")
    parser.add_argument("--min-words", type=int, default=3)
    parser.add_argument("--marker", default="next line", help="Paragraph marker ('' to disable)")
    parser.add_argument("--min-sentences", type=int, default=2)
    parser.add_argument("--max-sentences", type=int, default=8)
    parser.add_argument("--paragraph-gap-ms", type=int, default=2000)
    parser.add_argument("--target-paragraphs", type=int, default=1)
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per chunk")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"File not found: {args.path}")
        sys.exit(1)

    chunks = chunk_transcript(
        args.path.read_text(encoding="utf-8"),
        strategy=args.strategy,
        sentence_config=SentenceConfig(
            gap_threshold_ms=args.gap_ms,
            min_words=args.min_words,
            paragraph_marker=args.marker or None,
        ),
        chunking_config=ChunkingConfig(
            min_sentences=args.min_sentences,
            max_sentences=args.max_sentences,
            paragraph_gap_ms=args.paragraph_gap_ms,
            target_paragraphs=args.target_paragraphs,
        ),
    )

    for index, chunk in enumerate(chunks):
        if args.json:
            print(json.dumps({"chunk_index": index, **dataclasses.asdict(chunk)}))
        else:
            print(f"[{index}] {_fmt(chunk.start_time)} --> {_fmt(chunk.end_time)}")
            print(f"    {chunk.text}\n")

    print(f"{len(chunks)} chunks", file=sys.stderr)


if __name__ == "__main__":
    main()
