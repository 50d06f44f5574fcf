"""Unit tests for SearchEngine with stubbed index and article store."""

from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest

from kbsearch.errors import ChunkIndexError, EmbeddingProviderError, QueryValidationError, RetrievalError
from kbsearch.models.chunk import ChunkMatch
from kbsearch.models.document import Document
from kbsearch.retrieval.engine import SearchEngine, validate_query


def match(doc: str, idx: int, sim: float, content: str = "") -> ChunkMatch:
    return ChunkMatch(
        chunk_id=f"{doc}:{idx}",
        document_id=doc,
        content=content or f"Passage {idx} from article {doc} about agents",
        chunk_index=idx,
        similarity=sim,
    )


class FakeChunkIndex:
    def __init__(self, matches):
        self.matches = matches
        self.calls = []

    def search(self, query_vector, similarity_threshold=0.3, top_k=20):
        self.calls.append({"threshold": similarity_threshold, "top_k": top_k})
        hits = [m for m in self.matches if m.similarity >= similarity_threshold]
        return sorted(hits, key=lambda m: m.similarity, reverse=True)[:top_k]


class FakeDocumentStore:
    def __init__(self, documents):
        self.documents = {d.id: d for d in documents}
        self.lookups = []

    def get_documents_by_ids(self, ids):
        self.lookups.append(list(ids))
        return [self.documents[i] for i in ids if i in self.documents]


def doc(doc_id: str, **kwargs) -> Document:
    return Document(id=doc_id, title=kwargs.pop("title", f"Article {doc_id}"), **kwargs)


@pytest.fixture
def store():
    return FakeDocumentStore([
        doc("a", author="Ada", topics=["agents"]),
        doc("b", mdx_path="/kb/articles/custom-b"),
        doc("c"),
        doc("d"),
    ])


def make_engine(embedding_provider, matches, store, **kwargs):
    return SearchEngine(
        embedding_provider=embedding_provider,
        chunk_index=FakeChunkIndex(matches),
        document_store=store,
        **kwargs,
    )


class TestValidateQuery:
    @pytest.mark.parametrize("query", ["", " ", "a", "  a  ", None, 42])
    def test_rejects_short_or_non_string(self, query):
        with pytest.raises(QueryValidationError, match="at least 2 characters"):
            validate_query(query)

    def test_returns_trimmed(self):
        assert validate_query("  ai  ") == "ai"


class TestRetrieve:
    def test_short_query_is_rejected_before_embedding(self, embedding_provider, store):
        engine = make_engine(embedding_provider, [], store)
        with pytest.raises(QueryValidationError):
            engine.retrieve("a")
        assert embedding_provider.calls == []

    def test_query_is_embedded_trimmed(self, embedding_provider, store):
        engine = make_engine(embedding_provider, [], store)
        engine.retrieve("  vibe coding  ")
        assert embedding_provider.calls == [["vibe coding"]]

    def test_one_result_per_article_with_best_chunk(self, embedding_provider, store):
        matches = [match("a", 0, 0.9), match("a", 3, 0.95), match("b", 1, 0.6), match("b", 0, 0.5)]
        results = make_engine(embedding_provider, matches, store).retrieve("agents")
        assert [(r.id, r.chunk_index) for r in results] == [("a", 3), ("b", 1)]

    def test_sorted_descending_and_limited(self, embedding_provider, store):
        matches = [match("a", 0, 0.4), match("b", 0, 0.5), match("c", 0, 0.9), match("d", 0, 0.8)]
        results = make_engine(embedding_provider, matches, store).retrieve("agents", result_limit=2)
        assert [r.id for r in results] == ["c", "d"]

    def test_cap_before_sort(self, embedding_provider, store):
        # The fake index returns rows by similarity, so first-seen order is c, d, b, a.
        matches = [match("a", 0, 0.4), match("b", 0, 0.5), match("c", 0, 0.9), match("d", 0, 0.8)]
        engine = make_engine(embedding_provider, matches, store, cap_before_sort=True)
        assert [r.id for r in engine.retrieve("agents", result_limit=2)] == ["c", "d"]

    def test_threshold_and_overfetch_passed_to_index(self, embedding_provider, store):
        engine = make_engine(embedding_provider, [], store, similarity_threshold=0.5, overfetch=20)
        engine.retrieve("agents", result_limit=5)
        engine.retrieve("agents", result_limit=30)
        assert engine._chunk_index.calls == [
            {"threshold": 0.5, "top_k": 20},
            {"threshold": 0.5, "top_k": 30},
        ]

    def test_no_matches_skips_document_lookup(self, embedding_provider, store):
        assert make_engine(embedding_provider, [], store).retrieve("agents") == []
        assert store.lookups == []

    def test_single_batched_metadata_lookup(self, embedding_provider, store):
        matches = [match("a", 0, 0.9), match("b", 0, 0.8), match("c", 0, 0.7)]
        make_engine(embedding_provider, matches, store).retrieve("agents")
        assert len(store.lookups) == 1
        assert sorted(store.lookups[0]) == ["a", "b", "c"]

    def test_missing_article_is_dropped(self, embedding_provider, store):
        matches = [match("ghost", 0, 0.99), match("a", 0, 0.5)]
        results = make_engine(embedding_provider, matches, store).retrieve("agents")
        assert [r.id for r in results] == ["a"]

    def test_result_fields(self, embedding_provider, store):
        content = "## Why\n\nAgents **confidently** rewrite working code and drop edge cases " + "x " * 150
        results = make_engine(embedding_provider, [match("a", 2, 0.87654, content)], store).retrieve("agents")
        result = results[0]
        assert result.similarity == 0.88
        assert result.author == "Ada"
        assert result.topics == ["agents"]
        assert result.source_type == "knowledge-base"
        assert len(result.matching_excerpt) <= 200
        assert unquote(result.fragment) == "Why Agents confidently rewrite working code and drop"

    def test_mdx_path_from_store_or_derived(self, embedding_provider, store):
        matches = [match("a", 0, 0.9), match("b", 0, 0.8)]
        by_id = {r.id: r for r in make_engine(embedding_provider, matches, store).retrieve("agents")}
        assert by_id["b"].mdx_path == "/kb/articles/custom-b"
        assert by_id["a"].mdx_path == "/kb/articles/article-a-a"

    def test_similarity_within_bounds(self, embedding_provider, store):
        matches = [match("a", 0, 1.0), match("b", 0, 0.3)]
        for r in make_engine(embedding_provider, matches, store).retrieve("agents"):
            assert 0.3 <= r.similarity <= 1.0


class TestRetrieveFailures:
    """Upstream failures surface as RetrievalError, never as an empty list."""

    def test_embedding_failure(self, failing_provider, store):
        engine = make_engine(failing_provider, [match("a", 0, 0.9)], store)
        with pytest.raises(RetrievalError) as exc_info:
            engine.retrieve("EXPLODE this query")
        assert "quota" in exc_info.value.details
        assert isinstance(exc_info.value.__cause__, EmbeddingProviderError)

    def test_index_failure(self, embedding_provider, store):
        index = MagicMock()
        index.search.side_effect = ChunkIndexError("chunk search failed: disk I/O error")
        engine = SearchEngine(embedding_provider, index, store)
        with pytest.raises(RetrievalError, match="Search failed") as exc_info:
            engine.retrieve("agents")
        assert "disk I/O error" in exc_info.value.details

    def test_document_lookup_failure(self, embedding_provider):
        store = MagicMock()
        store.get_documents_by_ids.side_effect = RuntimeError("connection refused")
        engine = make_engine(embedding_provider, [match("a", 0, 0.9)], store)
        with pytest.raises(RetrievalError) as exc_info:
            engine.retrieve("agents")
        assert "connection refused" in exc_info.value.details
