"""Article chunk data models."""

from dataclasses import dataclass, field


@dataclass
class Chunk:
    """A contiguous passage of an article sized for embedding and retrieval."""

    document_id: str
    chunk_index: int
    content: str
    embedding: list[float] = field(default_factory=list)

    def __post_init__(self):
        if not self.document_id:
            raise ValueError("document_id must not be empty")
        if not self.content:
            raise ValueError("content must not be empty")
        if self.chunk_index < 0:
            raise ValueError("chunk_index must be >= 0")

    @property
    def key(self) -> str:
        """Index key; unique per (document_id, chunk_index)."""
        return f"{self.document_id}:{self.chunk_index}"

    @property
    def word_count(self) -> int:
        return len(self.content.split())


@dataclass
class ChunkMatch:
    """A chunk returned by a similarity search over the chunk index."""

    chunk_id: str
    document_id: str
    content: str
    chunk_index: int
    similarity: float

    def __post_init__(self):
        if not 0.0 <= self.similarity <= 1.0:
            raise ValueError(f"similarity must be between 0.0 and 1.0, got {self.similarity}")
