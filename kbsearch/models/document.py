"""Knowledge base article data model."""

from dataclasses import dataclass, field


@dataclass
class Document:
    """A knowledge base article as stored by the ingestion pipeline."""

    id: str
    title: str
    content: str = ""
    url: str = ""
    author: str = ""
    author_id: str = ""
    published: str = ""
    summary: str = ""
    topics: list[str] = field(default_factory=list)
    key_quotes: list[dict] = field(default_factory=list)
    diataxis_type: str = ""
    tags: list[str] = field(default_factory=list)
    mdx_path: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must not be empty")
        if self.title is None:
            self.title = ""
        if self.content is None:
            self.content = ""

    def to_dict(self) -> dict:
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
            "mdx_path": self.mdx_path,
            "content": self.content,
        }
