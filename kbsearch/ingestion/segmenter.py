"""Heading → paragraph → sentence text segmenter for knowledge base articles."""

import re

from kbsearch.ingestion.markup import strip_markup
from kbsearch.models.chunk import Chunk
from kbsearch.models.document import Document

MIN_WORDS = 50
MAX_WORDS = 400
FALLBACK_CHARS = 1000

# Articles from the scraper carry a summary block followed by the body.
_FULL_ARTICLE = re.compile(r"^##[ \t]+Full Article[ \t]*\n(.*)", re.IGNORECASE | re.MULTILINE | re.DOTALL)
_SECTION_BOUNDARY = re.compile(r"^(?=#{2,3}\s)", re.MULTILINE)
_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n+")
_SENTENCE = re.compile(r"[^.!?]+(?:[.!?]+|$)")


def word_count(text: str) -> int:
    return len(text.split())


def extract_body(text: str) -> str:
    """Return the text after a '## Full Article' heading, or the whole text."""
    match = _FULL_ARTICLE.search(text)
    return match.group(1) if match else text


def _split_sections(body: str) -> list[str]:
    return [s for s in _SECTION_BOUNDARY.split(body) if s.strip()]


def _split_paragraphs(section: str) -> list[str]:
    return [p for p in _PARAGRAPH_BREAK.split(section) if p.strip()]


def _split_sentences(paragraph: str) -> list[str]:
    sentences = [s.strip() for s in _SENTENCE.findall(paragraph)]
    return [s for s in sentences if s] or [paragraph.strip()]


def _split_words(text: str, max_words: int) -> list[str]:
    """Cut an unpunctuated run of text into fixed word windows."""
    words = text.split()
    return [" ".join(words[i:i + max_words]) for i in range(0, len(words), max_words)]


def _pack_sentences(paragraph: str, max_words: int) -> list[str]:
    """Greedily accumulate sentences into buffers of at most max_words."""
    packed = []
    current = ""

    for sentence in _split_sentences(paragraph):
        if word_count(sentence) > max_words:
            if current:
                packed.append(current)
                current = ""
            packed.extend(_split_words(sentence, max_words))
            continue

        candidate = f"{current} {sentence}" if current else sentence
        if current and word_count(candidate) > max_words:
            packed.append(current)
            current = sentence
        else:
            current = candidate

    if current.strip():
        packed.append(current.strip())

    return packed


def _merge_small(raw_chunks: list[str], min_words: int) -> list[str]:
    """Fold undersized chunks into their predecessor; drop leading orphans."""
    chunks: list[str] = []
    for chunk in raw_chunks:
        if word_count(chunk) >= min_words:
            chunks.append(chunk)
        elif chunks:
            chunks[-1] = f"{chunks[-1]}\n\n{chunk}"
    return chunks


def segment(
    text: str,
    min_words: int = MIN_WORDS,
    max_words: int = MAX_WORDS,
) -> list[str]:
    """Split article text into ordered, embeddable passages.

    Sections are cut at ``##``/``###`` headings. A section over max_words is
    cut at blank-line paragraph breaks, and a paragraph still over max_words
    is packed sentence by sentence. Passages under min_words are appended to
    the previous passage; an undersized passage with no predecessor is
    dropped.

    Returns an empty list for empty input. Never raises on odd formatting.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    body = extract_body(text.replace("\r\n", "\n"))
    if not body.strip():
        return []

    raw_chunks: list[str] = []
    for section in _split_sections(body) or [body]:
        if word_count(section) <= max_words:
            raw_chunks.append(section.strip())
            continue
        for paragraph in _split_paragraphs(section):
            if word_count(paragraph) <= max_words:
                raw_chunks.append(paragraph.strip())
            else:
                raw_chunks.extend(_pack_sentences(paragraph, max_words))

    return _merge_small(raw_chunks, min_words)


def prefix_chunk(text: str, max_chars: int = FALLBACK_CHARS) -> str:
    """Fallback passage: the stripped leading max_chars of the raw text."""
    if not isinstance(text, str):
        return ""
    return text[:max_chars].strip()


def embedding_input(title: str, chunk_text: str) -> str:
    """Text sent to the embedding model for a chunk.

    The title gives short passages their article context; the stored chunk
    keeps its original markup for display.
    """
    stripped = strip_markup(chunk_text) or chunk_text.strip()
    if not title:
        return stripped
    return f"{title} — {stripped}"


def chunk_document(
    document: Document,
    min_words: int = MIN_WORDS,
    max_words: int = MAX_WORDS,
    fallback_chars: int = FALLBACK_CHARS,
) -> list[Chunk]:
    """Split a document into numbered chunks.

    Falls back to a single prefix chunk when segmentation yields nothing, so
    every document with any text gets one searchable unit. Returns an empty
    list only when the document has no text at all.
    """
    texts = segment(document.content, min_words=min_words, max_words=max_words)
    if not texts:
        fallback = prefix_chunk(document.content, fallback_chars)
        texts = [fallback] if fallback else []

    return [
        Chunk(document_id=document.id, chunk_index=idx, content=text)
        for idx, text in enumerate(texts)
    ]
