"""
Embedding Service

On-device embedding generation with fastembed (default), or remote
embeddings through an OpenAI-compatible API.

Readiness is not global state: initialize_embeddings() probes the model once
and returns an EmbeddingCapability that callers pass along explicitly.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import EmbeddingError, EmbeddingDimensionError, NotInitializedError

logger = logging.getLogger("voicejournal.common.embedding_service")


class EmbeddingService:
    """
    Embedding service for journal transcripts and queries.

    Modes:
    - "femb": fastembed TextEmbedding, runs locally (no external API calls)
    - "openai": OpenAI embeddings endpoint (or OpenRouter via base_url)
    """

    def __init__(
        self,
        mode: str = "femb",
        model: str = "sentence-transformers/all-MiniLM-L6-v2",
        openai_api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self._mode = mode
        self._model = model
        self._openai_api_key = openai_api_key
        self._base_url = base_url
        self._adapter = None

    @classmethod
    def from_config(cls, embedding_config) -> "EmbeddingService":
        return cls(
            mode=embedding_config.mode,
            model=embedding_config.model,
            openai_api_key=embedding_config.openai_api_key or None,
            base_url=embedding_config.base_url or None,
        )

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def model(self) -> str:
        return self._model

    def _load_fastembed(self):
        """Load the fastembed model (blocking; downloads on first use)"""
        if self._adapter is None:
            from fastembed import TextEmbedding

            self._adapter = TextEmbedding(model_name=self._model)
            logger.info("Initialized fastembed with model=%s", self._model)
        return self._adapter

    def _load_openai(self):
        if self._adapter is None:
            if not self._openai_api_key:
                raise EmbeddingError("OpenAI embedding mode requires an API key")
            from openai import AsyncOpenAI

            self._adapter = AsyncOpenAI(api_key=self._openai_api_key, base_url=self._base_url)
            logger.info("Initialized OpenAI embeddings with model=%s", self._model)
        return self._adapter

    def _embed_fastembed(self, texts: List[str]) -> List[List[float]]:
        model = self._load_fastembed()
        embeddings = list(model.embed(texts))
        return np.asarray(embeddings, dtype=np.float32).tolist()

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of strings to embed

        Returns:
            List of embedding vectors

        Raises:
            EmbeddingError: the model could not be loaded or the call failed
        """
        if not texts:
            return []

        try:
            if self._mode == "femb":
                return await asyncio.to_thread(self._embed_fastembed, texts)
            if self._mode == "openai":
                client = self._load_openai()
                response = await client.embeddings.create(model=self._model, input=texts)
                return [list(item.embedding) for item in response.data]
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding failed ({self._mode}/{self._model}): {e}") from e

        raise EmbeddingError(f"Unsupported embedding mode: {self._mode}")

    async def embed_single(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: String to embed

        Returns:
            Embedding vector
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        embeddings = await self.embed([text])
        return embeddings[0]


@dataclass(frozen=True)
class EmbeddingCapability:
    """Result of embedding setup, threaded through to whoever needs vectors.

    A capability that is not ready still lets period queries run; only
    semantic search and embedding writes require a ready one.
    """
    service: Optional[EmbeddingService] = None
    dimension: int = 0
    reason: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.service is not None and self.dimension > 0

    async def embed(self, text: str) -> List[float]:
        """Embed one text, enforcing the deployment dimension.

        Raises:
            NotInitializedError: the embedding model never became ready
            EmbeddingError: the service call failed
            EmbeddingDimensionError: the service returned a vector of another length
        """
        if not self.is_ready:
            raise NotInitializedError(self.reason or "Embedding model not initialized")
        vector = await self.service.embed_single(text)
        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(vector))
        return vector


NOT_READY = EmbeddingCapability(reason="Embedding model not initialized")


async def initialize_embeddings(service: Optional[EmbeddingService]) -> EmbeddingCapability:
    """Probe the embedding model once and report whether it is usable."""
    if service is None:
        return NOT_READY

    logger.info("Initializing embedding model (%s, %s)...", service.mode, service.model)
    try:
        probe = await service.embed_single("test")
    except EmbeddingError as e:
        logger.error("Failed to initialize embedding model: %s", e)
        return EmbeddingCapability(reason=str(e))

    logger.info("Embedding model initialized (%d dimensions)", len(probe))
    return EmbeddingCapability(service=service, dimension=len(probe))
