#!/usr/bin/env python3
"""
Embedding Backfill Script

Computes embeddings for journal entries stored without one (the embedding
model was down at ingestion time, or the entry predates semantic search).
Existing embeddings are never touched, so this can run while the bot is live.

Usage:
    python scripts/backfill_embeddings.py [--dry-run]
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


async def run(dry_run: bool) -> int:
    from voicejournal.common.config import load_config
    from voicejournal.common.embedding_service import EmbeddingService, initialize_embeddings
    from voicejournal.common.journal_store import SQLiteJournalRepository
    from voicejournal.ingest import backfill_embeddings

    config = load_config()

    print(f"[Backfill] Database: {config.storage.db_path}")
    print(f"[Backfill] Model: {config.embedding.model} ({config.embedding.mode})")
    capability = await initialize_embeddings(EmbeddingService.from_config(config.embedding))
    if not capability.is_ready:
        print(f"[Backfill] ERROR: Embedding model not available: {capability.reason}")
        return 1
    print(f"[Backfill] Embedding dimension: {capability.dimension}")

    repository = SQLiteJournalRepository(config.storage.db_path)
    try:
        if dry_run:
            count = await backfill_embeddings(repository, capability, dry_run=True)
            print("[Backfill] DRY RUN - no changes will be made")
            print(f"[Backfill] Would embed {count} entries")
            return 0

        count = await backfill_embeddings(repository, capability)
        print(f"[Backfill] Embedded {count} entries")
    finally:
        repository.close()
    return 0


def main():
    parser = argparse.ArgumentParser(description="Embed journal entries that have no embedding yet")
    parser.add_argument("--dry-run", action="store_true", help="Report how many entries would be embedded")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    from voicejournal.common.logging_setup import configure_logging

    configure_logging(args.log_level)
    sys.exit(asyncio.run(run(args.dry_run)))


if __name__ == "__main__":
    main()
