"""Embedding provider selection from settings."""

import logging

from kbsearch.embedding.provider import EmbeddingProvider

logger = logging.getLogger(__name__)


def build_embedding_provider(settings) -> EmbeddingProvider:
    """Construct the configured embedding provider.

    Providers are imported lazily so a deployment only needs the libraries
    of the provider it uses.
    """
    name = settings.kb_embedding_provider.lower()

    if name == "openai":
        from kbsearch.embedding.openai_provider import OpenAIEmbeddingProvider

        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY must be set for the openai embedding provider")
        logger.info("Using OpenAI embeddings: %s", settings.kb_embedding_model)
        return OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model=settings.kb_embedding_model,
            dimensions=settings.kb_embedding_dimensions,
            timeout=settings.kb_embedding_timeout,
            max_batch_size=settings.kb_embedding_batch_size,
        )

    if name in ("sentence-transformers", "local"):
        from kbsearch.embedding.sentence_transformer import SentenceTransformerEmbeddingProvider

        logger.info("Using local embeddings: %s", settings.kb_local_embedding_model)
        return SentenceTransformerEmbeddingProvider(
            settings.kb_local_embedding_model,
            max_batch_size=settings.kb_embedding_batch_size,
        )

    raise ValueError(f"Unknown embedding provider: {settings.kb_embedding_provider}")
