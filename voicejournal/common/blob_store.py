"""
Blob Store

Archive for the source audio of voice notes.

LocalBlobStore keeps blobs under a directory on disk; S3BlobStore talks to
any S3-compatible bucket through boto3 (Cloudflare R2 when an account id is
configured). Keys are relative paths such as
"voice-journal/voice-notes/2026-01-15_09-05-00-42.ogg".
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .errors import BlobStoreError

logger = logging.getLogger("voicejournal.common.blob_store")


class BlobStore(ABC):
    """Key/value store for audio blobs."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = "audio/ogg") -> str:
        """Store ``data`` under ``key`` and return the key."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass


class LocalBlobStore(BlobStore):
    """Filesystem blob store rooted at ``root``."""

    def __init__(self, root: Union[str, Path]):
        self._root = Path(root)

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root.resolve() not in path.parents:
            raise BlobStoreError(f"Blob key escapes store root: {key}")
        return path

    async def put(self, key: str, data: bytes, content_type: str = "audio/ogg") -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise BlobStoreError(f"Failed to write blob {key}: {e}") from e
        logger.debug("Stored blob %s (%d bytes)", key, len(data))
        return key

    async def get(self, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self._path_for(key).read_bytes)
        except OSError as e:
            raise BlobStoreError(f"Failed to read blob {key}: {e}") from e

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob {key}: {e}") from e


class S3BlobStore(BlobStore):
    """
    S3-compatible blob store.

    Args:
        bucket: Bucket name
        access_key_id: Access key
        secret_access_key: Secret key
        account_id: Cloudflare account id; selects the R2 endpoint
        endpoint_url: Explicit endpoint (overrides account_id)
        client: Pre-built boto3 S3 client (tests)
    """

    def __init__(
        self,
        bucket: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        account_id: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        self._bucket = bucket
        if client is not None:
            self._client = client
            return

        import boto3

        if endpoint_url is None and account_id:
            endpoint_url = f"https://{account_id}.r2.cloudflarestorage.com"
        self._client = boto3.client(
            service_name="s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name="auto" if account_id else None,
        )
        logger.info("Initialized S3 blob store (bucket=%s, endpoint=%s)", bucket, endpoint_url or "aws")

    async def put(self, key: str, data: bytes, content_type: str = "audio/ogg") -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Failed to upload {key}: {e}") from e
        logger.debug("Uploaded blob %s (%d bytes)", key, len(data))
        return key

    async def get(self, key: str) -> bytes:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = await asyncio.to_thread(self._client.get_object, Bucket=self._bucket, Key=key)
            return await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Failed to download {key}: {e}") from e

    async def delete(self, key: str) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Failed to delete {key}: {e}") from e


def blob_store_from_config(storage_config) -> BlobStore:
    """Build the configured blob store backend."""
    if storage_config.blob_backend == "s3":
        return S3BlobStore(
            bucket=storage_config.bucket,
            access_key_id=storage_config.r2_access_key_id or None,
            secret_access_key=storage_config.r2_secret_access_key or None,
            account_id=storage_config.r2_account_id or None,
        )
    if storage_config.blob_backend != "local":
        logger.warning("Unknown blob backend %r, using local", storage_config.blob_backend)
    return LocalBlobStore(storage_config.blob_dir)
