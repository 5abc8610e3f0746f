"""Tests for the embedding, transcription and blob store wrappers."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from voicejournal.common.errors import (
    BlobStoreError,
    EmbeddingDimensionError,
    EmbeddingError,
    NotInitializedError,
    TranscriptionError,
)
from voicejournal.tests.fakes import FakeEmbeddingService


class TestEmbeddingCapability:
    @pytest.mark.asyncio
    async def test_initialize_probes_dimension(self):
        from voicejournal.common.embedding_service import initialize_embeddings

        service = FakeEmbeddingService(default=[0.1] * 384)
        capability = await initialize_embeddings(service)

        assert capability.is_ready
        assert capability.dimension == 384
        assert service.calls == ["test"]

    @pytest.mark.asyncio
    async def test_initialize_failure_not_ready(self):
        from voicejournal.common.embedding_service import initialize_embeddings

        capability = await initialize_embeddings(FakeEmbeddingService(fail=True))
        assert not capability.is_ready
        assert "down" in capability.reason
        with pytest.raises(NotInitializedError):
            await capability.embed("x")

    @pytest.mark.asyncio
    async def test_initialize_without_service(self):
        from voicejournal.common.embedding_service import initialize_embeddings
        assert not (await initialize_embeddings(None)).is_ready

    @pytest.mark.asyncio
    async def test_dimension_enforced(self):
        from voicejournal.common.embedding_service import EmbeddingCapability

        capability = EmbeddingCapability(service=FakeEmbeddingService(default=[1.0, 0.0]), dimension=3)
        with pytest.raises(EmbeddingDimensionError):
            await capability.embed("x")


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_empty_text_rejected(self):
        from voicejournal.common.embedding_service import EmbeddingService
        with pytest.raises(EmbeddingError):
            await EmbeddingService().embed_single("  ")

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        from voicejournal.common.embedding_service import EmbeddingService
        assert await EmbeddingService().embed([]) == []

    @pytest.mark.asyncio
    async def test_openai_mode(self):
        from voicejournal.common.embedding_service import EmbeddingService

        service = EmbeddingService(mode="openai", model="text-embedding-3-small", openai_api_key="k")
        response = MagicMock()
        response.data = [MagicMock(embedding=[0.1, 0.2])]
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=response)
        service._adapter = client

        assert await service.embed_single("hello") == [0.1, 0.2]
        assert client.embeddings.create.call_args.kwargs["model"] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_openai_mode_requires_key(self):
        from voicejournal.common.embedding_service import EmbeddingService
        with pytest.raises(EmbeddingError, match="API key"):
            await EmbeddingService(mode="openai").embed(["x"])

    @pytest.mark.asyncio
    async def test_unknown_mode(self):
        from voicejournal.common.embedding_service import EmbeddingService
        with pytest.raises(EmbeddingError, match="Unsupported"):
            await EmbeddingService(mode="nope").embed(["x"])

    @pytest.mark.asyncio
    async def test_fastembed_failure_wrapped(self):
        from voicejournal.common.embedding_service import EmbeddingService

        service = EmbeddingService()
        model = MagicMock()
        model.embed.side_effect = RuntimeError("onnx exploded")
        service._adapter = model
        with pytest.raises(EmbeddingError, match="onnx exploded"):
            await service.embed(["x"])


class TestTranscriber:
    @pytest.mark.asyncio
    async def test_unavailable_without_key(self):
        from voicejournal.common.transcription import Transcriber

        transcriber = Transcriber(api_key=None)
        assert not transcriber.is_available
        with pytest.raises(TranscriptionError):
            await transcriber.transcribe(b"audio")

    @pytest.mark.asyncio
    async def test_transcribe(self):
        from voicejournal.common.transcription import Transcriber

        transcriber = Transcriber(api_key=None)
        client = MagicMock()
        client.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text="  Hello there.  "))
        transcriber._client = client

        assert await transcriber.transcribe(b"audio") == "Hello there."
        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-large-v3-turbo"
        assert kwargs["language"] == "en"
        assert kwargs["file"] == ("voice.ogg", b"audio")

    @pytest.mark.asyncio
    async def test_empty_transcript_is_error(self):
        from voicejournal.common.transcription import Transcriber

        transcriber = Transcriber(api_key=None)
        client = MagicMock()
        client.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text=""))
        transcriber._client = client

        with pytest.raises(TranscriptionError, match="no text"):
            await transcriber.transcribe(b"audio")


class TestBlobStores:
    @pytest.mark.asyncio
    async def test_local_round_trip(self, tmp_path):
        from voicejournal.common.blob_store import LocalBlobStore

        store = LocalBlobStore(tmp_path)
        key = await store.put("voice-journal/voice-notes/a.ogg", b"data")
        assert await store.get(key) == b"data"
        await store.delete(key)
        await store.delete(key)
        with pytest.raises(BlobStoreError):
            await store.get(key)

    @pytest.mark.asyncio
    async def test_local_rejects_escaping_keys(self, tmp_path):
        from voicejournal.common.blob_store import LocalBlobStore

        with pytest.raises(BlobStoreError):
            await LocalBlobStore(tmp_path / "root").put("../outside.ogg", b"x")

    @pytest.mark.asyncio
    async def test_s3_calls(self):
        from voicejournal.common.blob_store import S3BlobStore

        client = MagicMock()
        body = MagicMock()
        body.read.return_value = b"audio"
        client.get_object.return_value = {"Body": body}
        store = S3BlobStore("journal", client=client)

        await store.put("k.ogg", b"audio")
        assert await store.get("k.ogg") == b"audio"
        await store.delete("k.ogg")

        client.put_object.assert_called_once_with(
            Bucket="journal", Key="k.ogg", Body=b"audio", ContentType="audio/ogg"
        )
        client.delete_object.assert_called_once_with(Bucket="journal", Key="k.ogg")

    @pytest.mark.asyncio
    async def test_s3_client_error_wrapped(self):
        from botocore.exceptions import ClientError
        from voicejournal.common.blob_store import S3BlobStore

        client = MagicMock()
        client.put_object.side_effect = ClientError({"Error": {"Code": "403", "Message": "denied"}}, "PutObject")
        with pytest.raises(BlobStoreError):
            await S3BlobStore("journal", client=client).put("k.ogg", b"x")

    def test_r2_endpoint_from_account(self, monkeypatch):
        import boto3
        from voicejournal.common.blob_store import S3BlobStore

        captured = {}
        monkeypatch.setattr(boto3, "client", lambda **kwargs: captured.update(kwargs) or MagicMock())
        S3BlobStore("journal", access_key_id="a", secret_access_key="s", account_id="acct")

        assert captured["endpoint_url"] == "https://acct.r2.cloudflarestorage.com"
        assert captured["region_name"] == "auto"

    def test_factory(self, tmp_path):
        from voicejournal.common.blob_store import LocalBlobStore, blob_store_from_config
        from voicejournal.common.config import StorageConfig

        store = blob_store_from_config(StorageConfig(blob_backend="local", blob_dir=str(tmp_path)))
        assert isinstance(store, LocalBlobStore)
