"""Sentence Transformer embedding provider implementation."""

import os

from sentence_transformers import SentenceTransformer

from kbsearch.embedding.provider import DEFAULT_MAX_BATCH_SIZE, EmbeddingProvider


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """Local embedding provider wrapping sentence-transformers models.

    Used for offline development when the hosted provider is unavailable.
    Default model: all-MiniLM-L6-v2 (384 dimensions, ~80MB). Vectors are
    L2-normalized so cosine similarity stays within [0, 1] for related text.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", max_batch_size: int = DEFAULT_MAX_BATCH_SIZE):
        # Silence transformers warnings while the model loads.
        old_verbosity = os.environ.get("TRANSFORMERS_VERBOSITY")
        os.environ["TRANSFORMERS_VERBOSITY"] = "error"
        try:
            try:
                self._model = SentenceTransformer(model_name, local_files_only=True)
            except OSError:
                self._model = SentenceTransformer(model_name)
        finally:
            if old_verbosity is None:
                os.environ.pop("TRANSFORMERS_VERBOSITY", None)
            else:
                os.environ["TRANSFORMERS_VERBOSITY"] = old_verbosity
        self._dimension = self._model.get_sentence_embedding_dimension()
        self.max_batch_size = max_batch_size

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        embeddings = self._model.encode(
            texts, show_progress_bar=False, normalize_embeddings=True
        )
        return embeddings.tolist()

    @property
    def dimension(self) -> int:
        return self._dimension
