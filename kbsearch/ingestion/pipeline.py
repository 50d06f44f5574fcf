"""Chunk indexing job.

Wires together: document store → segmenter → embedding → chunk index.
"""

import logging
import time
from typing import Callable

from kbsearch.embedding.provider import EmbeddingProvider
from kbsearch.errors import ChunkIndexError
from kbsearch.ingestion.segmenter import (
    FALLBACK_CHARS,
    MAX_WORDS,
    MIN_WORDS,
    chunk_document,
    embedding_input,
)
from kbsearch.models.document import Document
from kbsearch.models.result import IndexingSummary, SkippedDocument
from kbsearch.storage.document_store import DocumentStore
from kbsearch.vectorstore.chroma_store import ChromaChunkIndex

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Document, "int | None"], None]


class IndexingJob:
    """Re-index every article's chunks. Safe to run repeatedly.

    Documents are processed one at a time. A failure while embedding or
    writing one document is recorded as a skip and the job moves on.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        embedding_provider: EmbeddingProvider,
        chunk_index: ChromaChunkIndex,
        min_words: int = MIN_WORDS,
        max_words: int = MAX_WORDS,
        fallback_chars: int = FALLBACK_CHARS,
    ):
        self._document_store = document_store
        self._embedding_provider = embedding_provider
        self._chunk_index = chunk_index
        self._min_words = min_words
        self._max_words = max_words
        self._fallback_chars = fallback_chars

    @property
    def document_store(self) -> DocumentStore:
        return self._document_store

    def run(self, progress: ProgressCallback | None = None) -> IndexingSummary:
        """Run the job over all documents.

        Steps per document:
        1. Segment the content (prefix fallback for short articles)
        2. Embed title-prefixed, markup-free chunk text in provider batches
        3. Upsert chunks keyed on (document_id, chunk_index)
        4. Remove ordinals left over from a longer previous version

        Afterwards, chunks of articles no longer in the store are deleted.

        Returns an IndexingSummary. Listing documents failing is fatal; every
        other failure is confined to its document.
        """
        summary = IndexingSummary()
        started = time.monotonic()

        documents = self._document_store.get_documents()
        logger.info("Indexing %d articles", len(documents))

        for doc in documents:
            chunk_count = None
            try:
                chunk_count = self._index_document(doc)
            except Exception as e:
                logger.error("Error indexing %s (%s): %s", doc.id, doc.title, e)
                summary.skipped.append(SkippedDocument(doc.id, str(e)))
            else:
                if chunk_count == 0:
                    logger.warning("No content to index for %s (%s)", doc.id, doc.title)
                    summary.skipped.append(SkippedDocument(doc.id, "no content"))
                    self._prune_stale(doc, 0, summary)
                else:
                    summary.documents_processed += 1
                    summary.chunks_indexed += chunk_count
                    logger.info("Indexed %s: %d chunks", doc.title[:60], chunk_count)
                    self._prune_stale(doc, chunk_count, summary)

            if progress is not None:
                progress(doc, chunk_count)

        self._remove_orphans({doc.id for doc in documents}, summary)

        summary.duration_seconds = time.monotonic() - started
        logger.info(
            "Indexing done: %d articles, %d chunks, %d skipped, %d removed in %.1fs",
            summary.documents_processed,
            summary.chunks_indexed,
            summary.documents_skipped,
            len(summary.documents_removed),
            summary.duration_seconds,
        )
        return summary

    def _index_document(self, doc: Document) -> int:
        chunks = chunk_document(
            doc,
            min_words=self._min_words,
            max_words=self._max_words,
            fallback_chars=self._fallback_chars,
        )
        if not chunks:
            return 0

        inputs = [embedding_input(doc.title, c.content) for c in chunks]
        embeddings = self._embedding_provider.embed_all(inputs)
        for chunk, emb in zip(chunks, embeddings):
            chunk.embedding = emb

        return self._chunk_index.upsert_chunks(chunks)

    def _prune_stale(self, doc: Document, keep: int, summary: IndexingSummary) -> None:
        # The new chunks are live even if pruning fails.
        try:
            self._chunk_index.delete_stale_chunks(doc.id, keep=keep)
        except ChunkIndexError as e:
            logger.warning("Could not prune old chunks of %s: %s", doc.id, e)
            summary.prune_failures.append(SkippedDocument(doc.id, str(e)))

    def _remove_orphans(self, live_ids: set[str], summary: IndexingSummary) -> None:
        """Delete chunks whose article is no longer in the document store."""
        try:
            orphan_ids = sorted(self._chunk_index.document_ids() - live_ids)
        except ChunkIndexError as e:
            logger.error("Could not list indexed articles: %s", e)
            return

        for document_id in orphan_ids:
            try:
                self._chunk_index.delete_document(document_id)
            except ChunkIndexError as e:
                logger.error("Could not remove chunks of deleted article %s: %s", document_id, e)
                continue
            logger.info("Removed chunks of deleted article %s", document_id)
            summary.documents_removed.append(document_id)
