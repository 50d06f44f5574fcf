"""Abstract embedding provider interface."""

import logging
from abc import ABC, abstractmethod

from kbsearch.errors import EmbeddingProviderError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 100


class EmbeddingProvider(ABC):
    """Interface for text embedding generation.

    Implementations wrap a specific model (hosted or local) and only have to
    provide ``embed`` and ``dimension``. Callers go through ``embed_batch``,
    ``embed_one`` and ``embed_all``, which enforce the batch cap, keep input
    order and turn provider failures into EmbeddingProviderError.
    """

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for one batch of text strings.

        Args:
            texts: Non-empty list of at most max_batch_size strings.

        Returns:
            One embedding vector per input, in input order.
        """
        ...

    def embed_query(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for query texts.

        Some models (e.g., BGE) require a special instruction prefix for
        queries but not for documents. Override this method to add
        model-specific query preprocessing. Default delegates to embed().
        """
        return self.embed(texts)

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension (e.g., 1536)."""
        ...

    def embed_batch(self, texts: list[str], batch_index: int = 0) -> list[list[float]]:
        """Embed one provider-sized batch; all or nothing.

        Raises:
            ValueError: If texts exceeds max_batch_size.
            EmbeddingProviderError: If the provider fails or returns a
                different number of vectors than texts.
        """
        return self._call(self.embed, texts, batch_index)

    def embed_one(self, text: str) -> list[float]:
        """Embed a single query string."""
        return self._call(self.embed_query, [text], 0)[0]

    def embed_all(self, texts: list[str]) -> list[list[float]]:
        """Embed any number of texts in sequential provider-sized batches."""
        vectors: list[list[float]] = []
        for batch_index, start in enumerate(range(0, len(texts), self.max_batch_size)):
            batch = texts[start:start + self.max_batch_size]
            vectors.extend(self.embed_batch(batch, batch_index=batch_index))
        return vectors

    def _call(self, fn, texts: list[str], batch_index: int) -> list[list[float]]:
        if not texts:
            return []
        if len(texts) > self.max_batch_size:
            raise ValueError(
                f"batch of {len(texts)} texts exceeds the limit of {self.max_batch_size}"
            )

        try:
            vectors = fn(texts)
        except EmbeddingProviderError:
            raise
        except Exception as e:
            logger.error("Embedding batch %d failed (%d texts): %s", batch_index, len(texts), e)
            raise EmbeddingProviderError(
                f"embedding provider failed: {e}", batch_index=batch_index, texts=texts
            ) from e

        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"provider returned {len(vectors)} vectors for {len(texts)} texts",
                batch_index=batch_index,
                texts=texts,
            )
        return [list(v) for v in vectors]
