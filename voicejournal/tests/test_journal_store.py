"""Tests for SQLiteJournalRepository."""

import pytest

from voicejournal.tests.fakes import make_entry, ts


class TestInsert:
    @pytest.mark.asyncio
    async def test_insert_and_get(self, repository):
        entry_id = await repository.insert(
            make_entry("m1", ts(2026, 1, 15, 9), "Hello.", [0.5, -0.25], blob_ref="k.ogg", voice_file_id="f1")
        )
        stored = await repository.get(entry_id)

        assert stored.id == entry_id
        assert stored.transcript == "Hello."
        assert stored.embedding == [0.5, -0.25]
        assert stored.blob_ref == "k.ogg"
        assert stored.voice_file_id == "f1"
        assert stored.created_at == ts(2026, 1, 15, 9)

    @pytest.mark.asyncio
    async def test_same_message_stored_once(self, repository):
        first = await repository.insert(make_entry("m1", ts(2026, 1, 1), "first"))
        second = await repository.insert(make_entry("m1", ts(2026, 1, 2), "second"))

        assert first == second
        assert (await repository.stats())["count"] == 1
        assert (await repository.get(first)).transcript == "first"

    @pytest.mark.asyncio
    async def test_file_backed(self, tmp_path):
        from voicejournal.common.journal_store import SQLiteJournalRepository

        path = tmp_path / "nested" / "journal.db"
        repo = SQLiteJournalRepository(path)
        await repo.insert(make_entry("m1", 1.0, "persisted"))
        repo.close()

        reopened = SQLiteJournalRepository(path)
        try:
            found = await reopened.find_by_source_message_id("m1")
            assert found.transcript == "persisted"
        finally:
            reopened.close()


class TestQueries:
    @pytest.mark.asyncio
    async def test_range_is_half_open_and_newest_first(self, repository):
        from voicejournal.common.schemas import DateRange

        await repository.insert(make_entry("a", 100.0, "a"))
        await repository.insert(make_entry("b", 150.0, "b"))
        await repository.insert(make_entry("c", 200.0, "c"))

        found = await repository.list_by_created_at_range(DateRange(100.0, 200.0))
        assert [e.source_message_id for e in found] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_embedded_and_missing(self, repository):
        await repository.insert(make_entry("with", 1.0, "a", [1.0]))
        await repository.insert(make_entry("without", 2.0, "b"))

        assert [e.source_message_id for e in await repository.list_all_embedded()] == ["with"]
        assert [e.source_message_id for e in await repository.list_missing_embeddings()] == ["without"]

    @pytest.mark.asyncio
    async def test_find_by_source_message_id_missing(self, repository):
        assert await repository.find_by_source_message_id("nope") is None

    @pytest.mark.asyncio
    async def test_stats(self, repository):
        assert await repository.stats() == {"count": 0, "total_duration": 0}
        await repository.insert(make_entry("a", 1.0, "a", duration=30))
        await repository.insert(make_entry("b", 2.0, "b", duration=95))
        assert await repository.stats() == {"count": 2, "total_duration": 125}


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_transcript(self, repository):
        entry_id = await repository.insert(make_entry("a", 1.0, "teh typo"))
        assert await repository.update_transcript(entry_id, "the typo")
        assert (await repository.get(entry_id)).transcript == "the typo"
        assert not await repository.update_transcript(999, "x")

    @pytest.mark.asyncio
    async def test_update_embedding_only_if_missing(self, repository):
        entry_id = await repository.insert(make_entry("a", 1.0, "a", [1.0, 0.0]))

        assert not await repository.update_embedding(entry_id, [0.0, 1.0], only_if_missing=True)
        assert (await repository.get(entry_id)).embedding == [1.0, 0.0]

        assert await repository.update_embedding(entry_id, [0.0, 1.0])
        assert (await repository.get(entry_id)).embedding == [0.0, 1.0]

    @pytest.mark.asyncio
    async def test_clear_embedding(self, repository):
        entry_id = await repository.insert(make_entry("a", 1.0, "a", [1.0, 0.0]))

        assert await repository.clear_embedding(entry_id)
        assert (await repository.get(entry_id)).embedding is None
        assert [e.id for e in await repository.list_missing_embeddings()] == [entry_id]
        assert not await repository.clear_embedding(999)

    @pytest.mark.asyncio
    async def test_delete_returns_removed_entry(self, repository):
        entry_id = await repository.insert(make_entry("a", 1.0, "a", blob_ref="x.ogg"))

        removed = await repository.delete(entry_id)
        assert removed.blob_ref == "x.ogg"
        assert await repository.get(entry_id) is None
        assert await repository.delete(entry_id) is None
