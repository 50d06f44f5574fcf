"""Application configuration management."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """kbsearch application settings loaded from environment variables."""

    # Required for the hosted embedding provider
    openai_api_key: str = ""

    # Embedding
    kb_embedding_provider: str = "openai"
    kb_embedding_model: str = "text-embedding-3-small"
    kb_embedding_dimensions: int = 1536
    kb_local_embedding_model: str = "all-MiniLM-L6-v2"
    kb_embedding_batch_size: int = 100
    kb_embedding_timeout: float = 15.0

    # Storage
    kb_database_url: str = "sqlite:///./data/kb.db"
    kb_chroma_path: str = "./data/chroma"
    kb_chroma_collection: str = "article_chunks"
    kb_upsert_batch_size: int = 200

    # Segmentation
    kb_min_words: int = 50
    kb_max_words: int = 400
    kb_fallback_chars: int = 1000

    # Retrieval
    kb_similarity_threshold: float = 0.3
    kb_search_overfetch: int = 20
    kb_default_limit: int = 10
    kb_max_limit: int = 50
    kb_excerpt_chars: int = 200
    kb_fragment_words: int = 8
    kb_cap_before_sort: bool = False

    # HTTP
    kb_request_timeout: float = 20.0
    kb_search_workers: int = 8

    @property
    def chroma_path(self) -> Path:
        return Path(self.kb_chroma_path)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
