class RetrievalError(Exception):
    """Base class for every error raised by the retrieval core."""


class StoreUnavailable(RetrievalError):
    """The chunk file could not be opened or read. Fatal at startup."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Vector index unavailable: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class StoreAlreadyLoaded(RetrievalError):
    """A VectorStore is loaded once; build a new instance to load another file."""


class MalformedRecord(RetrievalError):
    """A single line of the chunk file could not be turned into a chunk."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Malformed record on line {line_number}: {reason}")


class ProviderUnavailable(RetrievalError):
    """The embedding provider failed, timed out or rejected the credentials."""


class QueryRejected(RetrievalError):
    """The query was empty or shorter than the minimum length."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Query too short or invalid: {query!r}")
