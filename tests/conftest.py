"""Shared fixtures: deterministic embeddings, in-memory index and article store."""

import hashlib
import math
import re
import uuid

import pytest

from kbsearch.embedding.provider import EmbeddingProvider
from kbsearch.models.document import Document
from kbsearch.storage.document_store import DocumentStore
from kbsearch.vectorstore.chroma_store import ChromaChunkIndex

_TOKEN = re.compile(r"[a-z0-9]+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words vectors hashed into a fixed number of buckets.

    Texts sharing words get high cosine similarity, all components are
    non-negative, and vectors are unit length. Records every batch it sees.
    """

    def __init__(self, dimension: int = 256, max_batch_size: int = 100):
        self._dimension = dimension
        self.max_batch_size = max_batch_size
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self._dimension
        for token in _TOKEN.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self._dimension
            vec[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        if norm == 0:
            vec[0] = 1.0
            return vec
        return [v / norm for v in vec]

    @property
    def dimension(self) -> int:
        return self._dimension


class FailingEmbeddingProvider(HashingEmbeddingProvider):
    """Fails any batch that contains the marker text."""

    def __init__(self, marker: str = "EXPLODE", **kwargs):
        super().__init__(**kwargs)
        self.marker = marker

    def embed(self, texts: list[str]) -> list[list[float]]:
        if any(self.marker in t for t in texts):
            raise RuntimeError("upstream quota exceeded")
        return super().embed(texts)


def paragraph(sentences: list[str], repeat: int) -> str:
    """A single paragraph made of the sentences repeated in order."""
    return " ".join(sentences * repeat)


def words(n: int, word: str = "lorem") -> str:
    return " ".join(f"{word}{i}" for i in range(n))


VIBE_SENTENCES = [
    "Vibe coding pitfalls start when generated code ships without careful review.",
    "Agents confidently rewrite working modules and silently drop important edge cases.",
    "Small prompts with tight feedback loops keep the refactoring safely reviewable.",
]


@pytest.fixture
def embedding_provider():
    return HashingEmbeddingProvider()


@pytest.fixture
def failing_provider():
    return FailingEmbeddingProvider()


@pytest.fixture
def chunk_index():
    return ChromaChunkIndex(path=":memory:", collection_name=f"test_{uuid.uuid4().hex}")


@pytest.fixture
def document_store():
    store = DocumentStore("sqlite://")
    store.create_schema()
    yield store
    store.close()


@pytest.fixture
def vibe_article():
    """An article whose short intro is dropped and whose Details section is kept."""
    content = (
        "## Intro\n\n"
        "Short intro paragraph under fifty words.\n\n"
        "## Details\n\n"
        # 39 sentences, 429 words: one 396-word buffer plus a 33-word tail.
        + paragraph(VIBE_SENTENCES, 13)
    )
    return Document(
        id="7f3a9c21-0000-4000-8000-000000000001",
        title="Vibe Coding Pitfalls",
        content=content,
        url="https://example.com/vibe-coding",
        author="Jesse Chen",
        author_id="jesse-chen",
        published="2025-01-15",
        summary="What goes wrong when you let the model drive.",
        topics=["ai-coding"],
        key_quotes=[{"text": "Review everything.", "context": "closing"}],
        diataxis_type="explanation",
        tags=["agents"],
    )
