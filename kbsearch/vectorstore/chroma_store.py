"""ChromaDB chunk index for knowledge base article chunks."""

import logging

import chromadb
from chromadb.config import Settings as ChromaSettings

from kbsearch.errors import ChunkIndexError
from kbsearch.models.chunk import Chunk, ChunkMatch

logger = logging.getLogger(__name__)

COLLECTION_NAME = "article_chunks"
DEFAULT_UPSERT_BATCH_SIZE = 200


class ChromaChunkIndex:
    """ChromaDB-backed chunk index with cosine distance.

    Each chunk is stored under the id ``"{document_id}:{chunk_index}"``, so
    writing the same ordinal twice overwrites instead of duplicating.
    Metadata per chunk: document_id, chunk_index, word_count.
    """

    def __init__(
        self,
        path: str = "./data/chroma",
        collection_name: str = COLLECTION_NAME,
        upsert_batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
    ):
        if upsert_batch_size <= 0:
            raise ValueError("upsert_batch_size must be > 0")
        if path == ":memory:":
            self._client = chromadb.Client(ChromaSettings(anonymized_telemetry=False))
        else:
            self._client = chromadb.PersistentClient(
                path=path,
                settings=ChromaSettings(anonymized_telemetry=False),
            )
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self._upsert_batch_size = upsert_batch_size

    def upsert_chunks(self, chunks: list[Chunk]) -> int:
        """Insert or replace chunks keyed on (document_id, chunk_index).

        Writes in batches of upsert_batch_size. Each batch is committed on
        its own; if a batch fails, ChunkIndexError reports how many rows the
        earlier batches committed and those rows stay in place. Retrying the
        same call is safe.

        Returns the number of chunks written.
        """
        if not chunks:
            return 0

        missing = [c.key for c in chunks if not c.embedding]
        if missing:
            raise ValueError(f"chunks without embeddings: {', '.join(missing[:5])}")

        committed = 0
        for start in range(0, len(chunks), self._upsert_batch_size):
            batch = chunks[start:start + self._upsert_batch_size]
            try:
                self._collection.upsert(
                    ids=[c.key for c in batch],
                    embeddings=[c.embedding for c in batch],
                    documents=[c.content for c in batch],
                    metadatas=[
                        {
                            "document_id": c.document_id,
                            "chunk_index": c.chunk_index,
                            "word_count": c.word_count,
                        }
                        for c in batch
                    ],
                )
            except Exception as e:
                logger.error(
                    "Upsert batch at row %d failed after %d rows committed: %s",
                    start, committed, e,
                )
                raise ChunkIndexError(
                    f"upsert failed at row {start}: {e}", committed=committed
                ) from e
            committed += len(batch)

        return committed

    def search(
        self,
        query_vector: list[float],
        similarity_threshold: float = 0.3,
        top_k: int = 20,
    ) -> list[ChunkMatch]:
        """Nearest chunks to query_vector by cosine similarity.

        similarity = 1 - cosine_distance, clamped to [0, 1]. Only rows at or
        above similarity_threshold are returned, highest first, at most top_k.
        """
        if top_k <= 0:
            return []

        try:
            total = self._collection.count()
            if total == 0:
                return []
            results = self._collection.query(
                query_embeddings=[query_vector],
                n_results=min(top_k, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise ChunkIndexError(f"chunk search failed: {e}") from e

        matches = []
        if results["ids"] and results["ids"][0]:
            for i, chunk_id in enumerate(results["ids"][0]):
                metadata = results["metadatas"][0][i] if results["metadatas"] else {}
                distance = results["distances"][0][i] if results["distances"] else 1.0
                similarity = max(0.0, min(1.0, 1.0 - distance))
                if similarity < similarity_threshold:
                    continue
                matches.append(
                    ChunkMatch(
                        chunk_id=chunk_id,
                        document_id=str(metadata.get("document_id", "")),
                        content=results["documents"][0][i] if results["documents"] else "",
                        chunk_index=int(metadata.get("chunk_index", 0)),
                        similarity=similarity,
                    )
                )

        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[:top_k]

    def delete_stale_chunks(self, document_id: str, keep: int) -> None:
        """Remove a document's chunks with chunk_index >= keep."""
        try:
            self._collection.delete(
                where={"$and": [
                    {"document_id": document_id},
                    {"chunk_index": {"$gte": keep}},
                ]},
            )
        except Exception as e:
            raise ChunkIndexError(f"pruning chunks of {document_id} failed: {e}") from e

    def delete_document(self, document_id: str) -> None:
        """Remove every chunk of a document."""
        try:
            self._collection.delete(where={"document_id": document_id})
        except Exception as e:
            raise ChunkIndexError(f"deleting chunks of {document_id} failed: {e}") from e

    def document_ids(self) -> set[str]:
        """Ids of every document with at least one stored chunk."""
        try:
            results = self._collection.get(include=["metadatas"])
        except Exception as e:
            raise ChunkIndexError(f"listing indexed documents failed: {e}") from e
        return {
            str(metadata["document_id"])
            for metadata in results["metadatas"] or []
            if metadata and metadata.get("document_id")
        }

    def get_document_chunks(self, document_id: str) -> list[Chunk]:
        """All stored chunks of a document, ordered by chunk_index."""
        results = self._collection.get(
            where={"document_id": document_id},
            include=["documents", "metadatas"],
        )
        chunks = []
        for i in range(len(results["ids"])):
            metadata = results["metadatas"][i] if results["metadatas"] else {}
            chunks.append(
                Chunk(
                    document_id=document_id,
                    chunk_index=int(metadata.get("chunk_index", 0)),
                    content=results["documents"][i] if results["documents"] else "",
                )
            )
        return sorted(chunks, key=lambda c: c.chunk_index)

    @property
    def count(self) -> int:
        """Return the number of chunks in the collection."""
        return self._collection.count()
