"""Build pipeline components from settings."""

from kbsearch.embedding.factory import build_embedding_provider
from kbsearch.embedding.provider import EmbeddingProvider
from kbsearch.ingestion.pipeline import IndexingJob
from kbsearch.retrieval.engine import SearchEngine
from kbsearch.storage.document_store import DocumentStore
from kbsearch.vectorstore.chroma_store import ChromaChunkIndex


def build_chunk_index(settings) -> ChromaChunkIndex:
    return ChromaChunkIndex(
        path=str(settings.chroma_path),
        collection_name=settings.kb_chroma_collection,
        upsert_batch_size=settings.kb_upsert_batch_size,
    )


def build_document_store(settings) -> DocumentStore:
    return DocumentStore(settings.kb_database_url)


def build_search_engine(
    settings,
    embedding_provider: EmbeddingProvider | None = None,
    chunk_index: ChromaChunkIndex | None = None,
    document_store: DocumentStore | None = None,
) -> SearchEngine:
    return SearchEngine(
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        chunk_index=chunk_index or build_chunk_index(settings),
        document_store=document_store or build_document_store(settings),
        similarity_threshold=settings.kb_similarity_threshold,
        overfetch=settings.kb_search_overfetch,
        excerpt_chars=settings.kb_excerpt_chars,
        fragment_words=settings.kb_fragment_words,
        cap_before_sort=settings.kb_cap_before_sort,
    )


def build_indexing_job(
    settings,
    embedding_provider: EmbeddingProvider | None = None,
    chunk_index: ChromaChunkIndex | None = None,
    document_store: DocumentStore | None = None,
) -> IndexingJob:
    return IndexingJob(
        document_store=document_store or build_document_store(settings),
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        chunk_index=chunk_index or build_chunk_index(settings),
        min_words=settings.kb_min_words,
        max_words=settings.kb_max_words,
        fallback_chars=settings.kb_fallback_chars,
    )
