"""
Embedding provider client for ideas and content.

Supports (selected by EMBEDDING_PROVIDER, local first):
1. Local Sentence Transformers (no API calls)
2. Ollama embeddings endpoint (local HTTP service, via httpx)

The analyzer never trains or serves a model; this module only turns text
into fixed-dimension vectors.

IMPORTANT: Every embedding compared in one analysis must have the same
dimension. The first successful embedding locks the dimension (or
EMBEDDING_DIM does, when set) and any later vector of another length
raises DimensionMismatchError instead of silently corrupting similarity.
"""

import asyncio
import logging
from typing import List, Optional, Protocol

import httpx

from ..config import Settings, get_settings
from ..errors import DimensionMismatchError, EmbeddingProviderError

logger = logging.getLogger(__name__)

# Singleton for local model (avoids reloading on every EmbeddingTool instantiation)
_local_model = None
_local_model_name = None


class EmbeddingProvider(Protocol):
    """What the pipeline needs from an embedding backend."""

    async def get_embedding(self, text: str) -> List[float]: ...

    async def batch_get_embeddings(self, texts: List[str]) -> List[List[float]]: ...


def _get_local_model(model_name: str):
    """Load local sentence-transformers model (singleton, lazy-loaded)."""
    global _local_model, _local_model_name
    if _local_model is not None and _local_model_name == model_name:
        return _local_model

    from sentence_transformers import SentenceTransformer

    logger.info(f"Loading local embedding model: {model_name}...")
    _local_model = SentenceTransformer(model_name)
    _local_model_name = model_name
    logger.info(
        f"Local embedding model loaded: {model_name} "
        f"(dim={_local_model.get_sentence_embedding_dimension()})"
    )
    return _local_model


class EmbeddingTool:
    """
    Generate embeddings with a local-first strategy.

    Priority:
    1. Local Sentence Transformers (when EMBEDDING_PROVIDER=local)
    2. Ollama (fallback, or primary when EMBEDDING_PROVIDER=ollama)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None
        self._local_checked = False
        self._local_available = False
        self._embedding_dim: Optional[int] = self.settings.embedding_dim or None
        self._active_provider: Optional[str] = None

    @property
    def embedding_dim(self) -> Optional[int]:
        return self._embedding_dim

    @property
    def active_provider(self) -> Optional[str]:
        return self._active_provider

    @property
    def local_model(self):
        """Lazy-load the local model; None when disabled or unavailable."""
        if self.settings.embedding_provider != "local":
            return None
        if not self._local_checked:
            self._local_checked = True
            try:
                _get_local_model(self.settings.local_embedding_model)
                self._local_available = True
            except Exception as e:
                logger.error(
                    f"Failed to load local embedding model "
                    f"'{self.settings.local_embedding_model}': {type(e).__name__}: {e}. "
                    f"Falling back to Ollama."
                )
        return _local_model if self._local_available else None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.embedding_timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EmbeddingTool":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    def _zero_vector(self) -> List[float]:
        if not self._embedding_dim:
            raise EmbeddingProviderError("Embedding dimension unknown; cannot build a zero vector")
        return [0.0] * self._embedding_dim

    def _lock_dim(self, embedding: List[float], provider: str) -> List[float]:
        """Lock the dimension on first use; reject vectors of any other length."""
        if not embedding:
            raise EmbeddingProviderError(f"{provider} returned an empty embedding")
        if self._embedding_dim is None:
            self._embedding_dim = len(embedding)
            logger.info(f"Embedding provider: {provider} (dim={self._embedding_dim})")
        elif len(embedding) != self._embedding_dim:
            raise DimensionMismatchError(self._embedding_dim, len(embedding), provider)
        if self._active_provider is None:
            self._active_provider = provider
        return embedding

    async def get_embedding(self, text: str) -> List[float]:
        """Embed a single text. Blank text gets a zero vector."""
        if not text or not text.strip():
            return self._zero_vector()

        if self.local_model is not None:
            try:
                vectors = await self._embed_local([text])
                return vectors[0]
            except DimensionMismatchError:
                raise
            except Exception as e:
                logger.warning(f"Local embedding failed: {e}, trying Ollama")

        return await self._embed_ollama(text)

    async def batch_get_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed many texts, preserving order. Blank texts get zero vectors."""
        if not texts:
            return []

        non_empty = [(i, t) for i, t in enumerate(texts) if t and t.strip()]
        results: List[Optional[List[float]]] = [None] * len(texts)

        embedded: Optional[List[List[float]]] = None
        if non_empty and self.local_model is not None:
            try:
                embedded = await self._embed_local([t for _, t in non_empty])
            except DimensionMismatchError:
                raise
            except Exception as e:
                logger.warning(f"Local batch embedding failed: {e}, trying Ollama")

        if embedded is None:
            embedded = [await self._embed_ollama(t) for _, t in non_empty]

        for (idx, _), emb in zip(non_empty, embedded):
            results[idx] = emb
        for idx in range(len(results)):
            if results[idx] is None:
                results[idx] = self._zero_vector()

        logger.info(f"Generated {len(non_empty)} embeddings (batch), dim={self._embedding_dim}")
        return results

    async def _embed_local(self, texts: List[str]) -> List[List[float]]:
        """Encode in a worker thread so the event loop stays responsive."""
        model = self.local_model
        vectors = await asyncio.to_thread(
            model.encode, texts, show_progress_bar=False, normalize_embeddings=True,
        )
        provider = f"local:{self.settings.local_embedding_model}"
        return [self._lock_dim([float(v) for v in vec], provider) for vec in vectors]

    async def _embed_ollama(self, text: str) -> List[float]:
        """Generate an embedding using the Ollama API."""
        url = f"{self.settings.ollama_base_url}/api/embeddings"
        payload = {"model": self.settings.ollama_embedding_model, "prompt": text}
        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmbeddingProviderError(f"Ollama embedding request failed: {e}") from e

        embedding = response.json().get("embedding", [])
        provider = f"ollama:{self.settings.ollama_embedding_model}"
        return self._lock_dim([float(v) for v in embedding], provider)
