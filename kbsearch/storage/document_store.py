"""Read access to the knowledge base ``articles`` table.

The table is written by the ingestion front end; this pipeline only reads
it. ``add_documents`` and ``create_schema`` exist for local databases and
tests.
"""

import logging

from sqlalchemy import JSON, Column, MetaData, String, Table, Text, create_engine, select
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from kbsearch.models.document import Document

logger = logging.getLogger(__name__)

metadata = MetaData()

_STRING_LIST = JSON().with_variant(ARRAY(Text), "postgresql")
_JSON_DOC = JSON().with_variant(JSONB, "postgresql")

articles = Table(
    "articles",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("url", Text),
    Column("title", Text, nullable=False),
    Column("author", Text),
    Column("author_id", Text),
    Column("published", String(32)),
    Column("summary", Text),
    Column("content", Text),
    Column("topics", _STRING_LIST),
    Column("key_quotes", _JSON_DOC),
    Column("diataxis_type", String(32)),
    Column("tags", _STRING_LIST),
    Column("mdx_path", Text),
)

_METADATA_COLUMNS = [
    articles.c.id,
    articles.c.url,
    articles.c.title,
    articles.c.author,
    articles.c.author_id,
    articles.c.published,
    articles.c.summary,
    articles.c.topics,
    articles.c.key_quotes,
    articles.c.diataxis_type,
    articles.c.tags,
    articles.c.mdx_path,
]


def _row_to_document(row) -> Document:
    data = dict(row._mapping)
    return Document(
        id=str(data["id"]),
        title=data.get("title") or "",
        content=data.get("content") or "",
        url=data.get("url") or "",
        author=data.get("author") or "",
        author_id=data.get("author_id") or "",
        published=str(data.get("published") or ""),
        summary=data.get("summary") or "",
        topics=list(data.get("topics") or []),
        key_quotes=list(data.get("key_quotes") or []),
        diataxis_type=data.get("diataxis_type") or "",
        tags=list(data.get("tags") or []),
        mdx_path=data.get("mdx_path") or "",
    )


class DocumentStore:
    """SQLAlchemy-backed access to knowledge base articles."""

    def __init__(self, database_url: str = "sqlite:///./data/kb.db", engine: Engine | None = None):
        if engine is None:
            kwargs = {"pool_pre_ping": True}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection so every session sees the same memory DB.
                kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
            engine = create_engine(database_url, **kwargs)
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        metadata.create_all(self._engine)

    def get_documents(self) -> list[Document]:
        """All articles with id, title and content, ordered by id."""
        stmt = select(articles.c.id, articles.c.title, articles.c.content).order_by(articles.c.id)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        logger.info("Fetched %d articles", len(rows))
        return [_row_to_document(row) for row in rows]

    def get_documents_by_ids(self, ids: list[str]) -> list[Document]:
        """Display metadata for the given article ids in a single query.

        Unknown ids are absent from the result; order is unspecified.
        """
        if not ids:
            return []
        stmt = select(*_METADATA_COLUMNS).where(articles.c.id.in_(list(dict.fromkeys(ids))))
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_document(row) for row in rows]

    def get_document(self, document_id: str) -> Document | None:
        """One article with metadata and content, or None."""
        stmt = select(*_METADATA_COLUMNS, articles.c.content).where(articles.c.id == document_id)
        with self._engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _row_to_document(row) if row is not None else None

    def add_documents(self, documents: list[Document]) -> int:
        """Insert articles; used to seed local databases and tests."""
        if not documents:
            return 0
        rows = [
            {
                "id": d.id,
                "url": d.url,
                "title": d.title,
                "author": d.author,
                "author_id": d.author_id,
                "published": d.published,
                "summary": d.summary,
                "content": d.content,
                "topics": list(d.topics),
                "key_quotes": list(d.key_quotes),
                "diataxis_type": d.diataxis_type,
                "tags": list(d.tags),
                "mdx_path": d.mdx_path or None,
            }
            for d in documents
        ]
        with self._engine.begin() as conn:
            conn.execute(articles.insert(), rows)
        return len(rows)

    def delete_document(self, document_id: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(articles.delete().where(articles.c.id == document_id))

    def close(self) -> None:
        self._engine.dispose()
