"""Search result and indexing summary data models."""

from dataclasses import dataclass, field
from datetime import datetime

from kbsearch.models.chunk import ChunkMatch
from kbsearch.models.document import Document

SOURCE_TYPE = "knowledge-base"


@dataclass
class RetrievalResult:
    """One article in a search response, with its best-matching passage."""

    id: str
    title: str
    similarity: float
    matching_excerpt: str
    fragment: str
    mdx_path: str
    url: str = ""
    author: str = ""
    author_id: str = ""
    published: str = ""
    summary: str = ""
    topics: list[str] = field(default_factory=list)
    key_quotes: list[dict] = field(default_factory=list)
    diataxis_type: str = ""
    tags: list[str] = field(default_factory=list)
    source_type: str = SOURCE_TYPE
    chunk_index: int = 0

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must not be empty")
        if not 0.0 <= self.similarity <= 1.0:
            raise ValueError(f"similarity must be between 0.0 and 1.0, got {self.similarity}")
        if not self.mdx_path:
            raise ValueError("mdx_path must not be empty")

    @classmethod
    def from_match(
        cls,
        document: Document,
        match: ChunkMatch,
        excerpt: str,
        fragment: str,
        mdx_path: str,
    ) -> "RetrievalResult":
        """Map an article and its best chunk onto a result."""
        if match.document_id != document.id:
            raise ValueError(
                f"chunk belongs to {match.document_id}, not {document.id}"
            )
        return cls(
            id=document.id,
            title=document.title,
            similarity=round(match.similarity, 2),
            matching_excerpt=excerpt,
            fragment=fragment,
            mdx_path=mdx_path,
            url=document.url,
            author=document.author,
            author_id=document.author_id,
            published=document.published,
            summary=document.summary,
            topics=list(document.topics),
            key_quotes=list(document.key_quotes),
            diataxis_type=document.diataxis_type,
            tags=list(document.tags),
            chunk_index=match.chunk_index,
        )

    def to_dict(self) -> dict:
        """Serialize to the search response shape."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "author": self.author,
            "author_id": self.author_id,
            "published": self.published,
            "summary": self.summary,
            "topics": list(self.topics),
            "key_quotes": list(self.key_quotes),
            "diataxis_type": self.diataxis_type,
            "tags": list(self.tags),
            "similarity": self.similarity,
            "mdx_path": self.mdx_path,
            "source_type": self.source_type,
            "matching_excerpt": self.matching_excerpt,
            "fragment": self.fragment,
        }


@dataclass
class SkippedDocument:
    """A document the indexing job could not index, with the reason."""

    document_id: str
    reason: str


@dataclass
class IndexingSummary:
    """Outcome of one indexing job run."""

    documents_processed: int = 0
    chunks_indexed: int = 0
    skipped: list[SkippedDocument] = field(default_factory=list)
    # Indexed articles whose leftover ordinals could not be pruned.
    prune_failures: list[SkippedDocument] = field(default_factory=list)
    # Articles gone from the store whose chunks were removed.
    documents_removed: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0

    @property
    def documents_skipped(self) -> int:
        return len(self.skipped)

    @property
    def skipped_ids(self) -> list[str]:
        return [s.document_id for s in self.skipped]

    def to_dict(self) -> dict:
        return {
            "documents_processed": self.documents_processed,
            "chunks_indexed": self.chunks_indexed,
            "documents_skipped": self.documents_skipped,
            "skipped": [{"document_id": s.document_id, "reason": s.reason} for s in self.skipped],
            "prune_failures": [
                {"document_id": s.document_id, "reason": s.reason} for s in self.prune_failures
            ],
            "documents_removed": list(self.documents_removed),
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
        }
