"""Shared fixtures."""

from datetime import timezone

import pytest

from voicejournal.tests.fakes import NOW, FakeEmbeddingService


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def date_parser(clock):
    from voicejournal.retriever.date_parser import DateRangeParser
    return DateRangeParser(tz=timezone.utc, week_start=6, clock=clock)


@pytest.fixture
def repository():
    from voicejournal.common.journal_store import SQLiteJournalRepository
    repo = SQLiteJournalRepository(":memory:")
    yield repo
    repo.close()


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def capability(embedding_service):
    from voicejournal.common.embedding_service import EmbeddingCapability
    return EmbeddingCapability(service=embedding_service, dimension=3)
