#!/usr/bin/env python3
"""
Ask the journal a question from the command line.

Runs the same retrieve + compose pipeline as the bot.

Usage:
    python scripts/ask.py "what did I say about coffee last month?" [--no-answer]
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


async def run(query: str, answer: bool) -> int:
    from voicejournal.app import build_app
    from voicejournal.common.config import load_config
    from voicejournal.common.errors import VoiceJournalError
    from voicejournal.common.schemas import render_source_line

    app = await build_app(load_config())
    try:
        result = await app.engine.run(query)
        kind = result.classification.kind.value
        print(f"[Ask] Classified as: {kind}{' (fallback)' if result.classification.is_fallback else ''}")
        if result.date_ranges:
            print(f"[Ask] Date ranges: {', '.join(r.description for r in result.date_ranges)}")

        if result.is_empty:
            print("[Ask] No matching voice notes")
            return 0

        if not answer:
            for i, entry in enumerate(result.entries, start=1):
                print(render_source_line(i, entry, app.date_parser.tz))
            return 0

        print(await app.composer.compose(query, result.entries))
    except VoiceJournalError as e:
        print(f"[Ask] ERROR: {e}")
        return 1
    finally:
        app.close()
    return 0


def main():
    parser = argparse.ArgumentParser(description="Query the voice journal")
    parser.add_argument("query", help="Question to ask")
    parser.add_argument("--no-answer", action="store_true", help="List matching entries without composing an answer")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    from voicejournal.common.logging_setup import configure_logging

    configure_logging(args.log_level)
    sys.exit(asyncio.run(run(args.query, not args.no_answer)))


if __name__ == "__main__":
    main()
