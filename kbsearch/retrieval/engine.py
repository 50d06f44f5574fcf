"""Query-time retrieval: embed, search chunks, collapse per article, shape results."""

import logging

from kbsearch.embedding.provider import EmbeddingProvider
from kbsearch.errors import KBSearchError, QueryValidationError, RetrievalError
from kbsearch.models.result import RetrievalResult
from kbsearch.retrieval.fragment import FRAGMENT_WORDS, build_fragment, build_mdx_path
from kbsearch.retrieval.ranking import (
    EXCERPT_CHARS,
    collapse_by_document,
    select_top_documents,
    truncate_excerpt,
)
from kbsearch.storage.document_store import DocumentStore
from kbsearch.vectorstore.chroma_store import ChromaChunkIndex

logger = logging.getLogger(__name__)

MIN_QUERY_CHARS = 2
SIMILARITY_THRESHOLD = 0.3
OVERFETCH = 20
DEFAULT_LIMIT = 10


def validate_query(query_text) -> str:
    """Return the trimmed query or raise QueryValidationError."""
    if not isinstance(query_text, str) or len(query_text.strip()) < MIN_QUERY_CHARS:
        raise QueryValidationError(f"Query must be at least {MIN_QUERY_CHARS} characters")
    return query_text.strip()


class SearchEngine:
    """Ranks knowledge base articles by their best-matching chunk.

    The index is over-fetched because several of the nearest chunks usually
    come from the same article; after collapsing to one chunk per article
    the list is cut to the requested limit.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        chunk_index: ChromaChunkIndex,
        document_store: DocumentStore,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        overfetch: int = OVERFETCH,
        excerpt_chars: int = EXCERPT_CHARS,
        fragment_words: int = FRAGMENT_WORDS,
        cap_before_sort: bool = False,
    ):
        self._embedding_provider = embedding_provider
        self._chunk_index = chunk_index
        self._document_store = document_store
        self._similarity_threshold = similarity_threshold
        self._overfetch = overfetch
        self._excerpt_chars = excerpt_chars
        self._fragment_words = fragment_words
        self._cap_before_sort = cap_before_sort

    @property
    def document_store(self) -> DocumentStore:
        return self._document_store

    def retrieve(self, query_text: str, result_limit: int = DEFAULT_LIMIT) -> list[RetrievalResult]:
        """Return at most result_limit articles, best match first.

        Raises:
            QueryValidationError: Query shorter than 2 characters; nothing is
                embedded.
            RetrievalError: Embedding, index or document lookup failed.
        """
        query = validate_query(query_text)

        try:
            query_vector = self._embedding_provider.embed_one(query)
            matches = self._chunk_index.search(
                query_vector,
                similarity_threshold=self._similarity_threshold,
                top_k=max(self._overfetch, result_limit),
            )
        except KBSearchError as e:
            raise RetrievalError("Search failed", details=str(e)) from e

        collapsed = collapse_by_document(matches)
        selected = select_top_documents(collapsed, result_limit, self._cap_before_sort)
        logger.info(
            "Query %r: %d chunks, %d articles, %d selected",
            query, len(matches), len(collapsed), len(selected),
        )
        if not selected:
            return []

        try:
            documents = self._document_store.get_documents_by_ids([m.document_id for m in selected])
        except Exception as e:
            raise RetrievalError("Search failed", details=f"document lookup failed: {e}") from e
        by_id = {d.id: d for d in documents}

        results = []
        for match in selected:
            document = by_id.get(match.document_id)
            if document is None:
                logger.warning("Chunk %s references missing article %s", match.chunk_id, match.document_id)
                continue
            results.append(
                RetrievalResult.from_match(
                    document,
                    match,
                    excerpt=truncate_excerpt(match.content, self._excerpt_chars),
                    fragment=build_fragment(match.content, self._fragment_words),
                    mdx_path=document.mdx_path or build_mdx_path(document.title, document.id),
                )
            )

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results
