"""Exception types shared across the retrieval pipeline."""


class KBSearchError(Exception):
    """Base class for kbsearch errors."""


class QueryValidationError(KBSearchError):
    """A client-supplied query failed validation."""


class EmbeddingProviderError(KBSearchError):
    """The embedding provider failed for a whole batch.

    Carries the batch position and the texts of the failed batch so callers
    can retry the batch or skip the affected chunks.
    """

    def __init__(self, message: str, batch_index: int = 0, texts: list[str] | None = None):
        super().__init__(message)
        self.batch_index = batch_index
        self.texts = list(texts or [])


class ChunkIndexError(KBSearchError):
    """A chunk index read or write failed.

    ``committed`` counts the rows written by earlier batches of the same
    upsert call. Those rows stay in the index.
    """

    def __init__(self, message: str, committed: int = 0):
        super().__init__(message)
        self.committed = committed


class RetrievalError(KBSearchError):
    """Retrieval failed because an upstream dependency failed."""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.details = details
