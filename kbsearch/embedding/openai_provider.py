"""OpenAI hosted embedding provider implementation."""

import logging

from openai import OpenAI

from kbsearch.embedding.provider import DEFAULT_MAX_BATCH_SIZE, EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIMENSIONS = 1536


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding provider wrapping the OpenAI embeddings endpoint.

    Default model: text-embedding-3-small truncated to 1536 dimensions.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = 15.0,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        client: OpenAI | None = None,
    ):
        self._client = client or OpenAI(api_key=api_key or None, timeout=timeout)
        self._model = model
        self._dimensions = dimensions
        self.max_batch_size = max_batch_size

    @property
    def model_name(self) -> str:
        return self._model

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        response = self._client.embeddings.create(
            model=self._model,
            input=texts,
            dimensions=self._dimensions,
        )
        # The API tags each item with its input position.
        items = sorted(response.data, key=lambda d: d.index)
        logger.debug("Embedded %d texts with %s", len(items), self._model)
        return [list(item.embedding) for item in items]

    @property
    def dimension(self) -> int:
        return self._dimensions
