"""Per-document collapse and result-limit policies for chunk matches."""

from kbsearch.models.chunk import ChunkMatch

EXCERPT_CHARS = 200


def collapse_by_document(matches: list[ChunkMatch]) -> list[ChunkMatch]:
    """Keep the best chunk of each document.

    Documents appear in the order they were first seen. On equal similarity
    the earlier chunk wins, since the index returns rows best-first.
    """
    best: dict[str, ChunkMatch] = {}
    for match in matches:
        current = best.get(match.document_id)
        if current is None or match.similarity > current.similarity:
            best[match.document_id] = match
    return list(best.values())


def select_top_documents(
    collapsed: list[ChunkMatch],
    limit: int,
    cap_before_sort: bool = False,
) -> list[ChunkMatch]:
    """Reduce collapsed matches to at most limit documents, best first.

    With cap_before_sort, the first limit documents in first-seen order are
    kept and then sorted. Otherwise the whole list is sorted and the top
    limit are kept.
    """
    if limit <= 0:
        return []
    if cap_before_sort:
        return sorted(collapsed[:limit], key=lambda m: m.similarity, reverse=True)
    return sorted(collapsed, key=lambda m: m.similarity, reverse=True)[:limit]


def truncate_excerpt(text: str, max_chars: int = EXCERPT_CHARS) -> str:
    """Whitespace-collapsed text cut to at most max_chars without splitting a word.

    A cut text ends with an ellipsis, counted within max_chars.
    """
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars - 1]
    if text[max_chars - 1] != " " and " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip() + "…"
