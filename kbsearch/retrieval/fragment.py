"""Text-fragment deep links to the passage that matched a search.

Browsers that support Text Fragments scroll to and highlight the text named
in a ``#:~:text=`` anchor. The fragment is built from the leading words of
the matched chunk as they appear on the rendered page.
"""

import re
from urllib.parse import quote

from kbsearch.ingestion.markup import strip_markup

FRAGMENT_WORDS = 8
ARTICLE_PATH_PREFIX = "/kb/articles"

_SLUG_STRIP = re.compile(r"[^\w\s-]")
_SLUG_JOIN = re.compile(r"[-\s]+")


def build_fragment(chunk_text: str, max_words: int = FRAGMENT_WORDS) -> str:
    """Percent-encoded first max_words words of the chunk's visible text.

    '-', ',' and '&' are delimiters in the fragment syntax, so they are
    encoded along with whitespace. Returns "" when no words remain.
    """
    words = strip_markup(chunk_text).split()[:max_words]
    if not words:
        return ""
    return quote(" ".join(words), safe="").replace("-", "%2D")


def deep_link(path: str, fragment: str) -> str:
    """Append a text-fragment anchor to path; plain path for an empty fragment."""
    if not fragment:
        return path
    return f"{path}#:~:text={fragment}"


def slugify(title: str) -> str:
    slug = _SLUG_STRIP.sub("", (title or "").lower())
    return _SLUG_JOIN.sub("-", slug)[:60]


def build_mdx_path(title: str, document_id: str) -> str:
    """Canonical article page path: /kb/articles/{slug}-{first 8 chars of id}."""
    return f"{ARTICLE_PATH_PREFIX}/{slugify(title)}-{document_id[:8]}"
