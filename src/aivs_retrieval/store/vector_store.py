import asyncio
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

from aivs_retrieval.errors import ProviderUnavailable, QueryRejected, StoreAlreadyLoaded
from aivs_retrieval.llm.embedding import EmbeddingProvider
from aivs_retrieval.models.chunk import Chunk
from aivs_retrieval.models.match import IndexInfo, Match
from aivs_retrieval.store.loader import DEFAULT_BATCH_SIZE, load_chunks
from aivs_retrieval.store.similarity import EmbeddingMatrix, top_indices
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

MIN_QUERY_LENGTH = 3
DEFAULT_TOP_K = 10
DEFAULT_EMBED_TIMEOUT = 30.0


class StoreState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


def normalize_query(raw_query: Any) -> str:
    """
    Coerce and trim a query.

    Raises:
        QueryRejected: If the trimmed query is shorter than MIN_QUERY_LENGTH
    """
    query = (raw_query if isinstance(raw_query, str) else str(raw_query or "")).strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise QueryRejected(query)
    return query


async def embed_query(embedder: EmbeddingProvider, query: str, timeout: Optional[float]) -> list[float]:
    """Call the embedding provider, bounded by timeout seconds."""
    try:
        return await asyncio.wait_for(embedder.embed(query), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Embedding provider timed out after {timeout}s")
        raise ProviderUnavailable(f"Embedding provider timed out after {timeout}s") from e
    except ProviderUnavailable:
        raise
    except Exception as e:
        logger.error(f"Embedding provider failed: {e}", exc_info=True)
        raise ProviderUnavailable(f"Embedding provider failed: {e}") from e


def rank(chunks: Sequence[Chunk], matrix: EmbeddingMatrix, query_vector: Sequence[float], k: int) -> list[Match]:
    scores = matrix.scores(query_vector)
    return [Match(chunk=chunks[i], score=float(scores[i])) for i in top_indices(scores, k)]


async def search_chunks(
        raw_query: Any,
        chunks: Sequence[Chunk],
        embedder: EmbeddingProvider,
        top_k: int = DEFAULT_TOP_K,
        timeout: Optional[float] = DEFAULT_EMBED_TIMEOUT
) -> list[Match]:
    """
    Rank chunks by dot-product similarity to the query.

    Rejected queries and empty chunk sequences return [] without calling the embedder.

    Args:
        raw_query: Free-text query; trimmed before use
        chunks: Chunks to search, as returned by load_chunks
        embedder: Provider used to embed the query
        top_k: Maximum number of matches
        timeout: Seconds allowed for the embedding call

    Returns:
        Matches ordered by descending score, ties in chunk order

    Raises:
        ProviderUnavailable: If the query could not be embedded
    """
    try:
        query = normalize_query(raw_query)
    except QueryRejected as e:
        logger.warning(str(e))
        return []

    if not chunks:
        logger.warning("Search against an empty chunk sequence")
        return []

    logger.info(f"Searching {len(chunks)} chunks for: {query[:100]}")
    query_vector = await embed_query(embedder, query, timeout)
    return rank(chunks, EmbeddingMatrix.from_chunks(chunks), query_vector, top_k)


class VectorStore:
    """
    In-memory chunk index, loaded once and then shared read-only.

    Construct one at process start, pass it to every request handler and call
    load() (or start_loading()) exactly once. Searches before the load finishes
    return no matches.
    """

    def __init__(
            self,
            embedder: EmbeddingProvider,
            top_k: int = DEFAULT_TOP_K,
            embed_timeout: Optional[float] = DEFAULT_EMBED_TIMEOUT
    ):
        self.embedder = embedder
        self.top_k = top_k
        self.embed_timeout = embed_timeout
        self._state = StoreState.UNLOADED
        self._chunks: tuple[Chunk, ...] = ()
        self._matrix = EmbeddingMatrix.from_chunks(())
        self._load_lock = asyncio.Lock()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is StoreState.LOADED

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    def info(self) -> IndexInfo:
        return IndexInfo(state=self._state.value, count=len(self._chunks), dimension=self._matrix.dimension)

    async def load(
            self,
            path: str | Path,
            limit: Optional[int] = None,
            batch_size: int = DEFAULT_BATCH_SIZE
    ) -> tuple[Chunk, ...]:
        """
        Load the index file into this store.

        Raises:
            StoreAlreadyLoaded: If the store has already been loaded
            StoreUnavailable: If the file cannot be read; the store stays unloaded
        """
        if self.ready:
            raise StoreAlreadyLoaded("Vector store is already loaded")
        async with self._load_lock:
            # Callers that queued behind a successful load share its result.
            if self.ready:
                return self._chunks
            chunks = tuple(await load_chunks(path, limit=limit, batch_size=batch_size))
            self._matrix = EmbeddingMatrix.from_chunks(chunks)
            self._chunks = chunks
            self._state = StoreState.LOADED
            logger.info(f"Vector store ready: {len(chunks)} chunks, dimension {self._matrix.dimension}")
            return chunks

    def start_loading(
            self,
            path: str | Path,
            limit: Optional[int] = None,
            batch_size: int = DEFAULT_BATCH_SIZE
    ) -> asyncio.Task:
        """Schedule load() in the background; failures are logged, not raised."""
        async def preload() -> None:
            try:
                await self.load(path, limit=limit, batch_size=batch_size)
            except Exception as e:
                logger.error(f"Vector index preload failed: {e}", exc_info=True)

        return asyncio.create_task(preload())

    async def search(self, raw_query: Any, top_k: Optional[int] = None) -> list[Match]:
        """
        Search the loaded chunks; returns [] while the store is not loaded.

        Raises:
            ProviderUnavailable: If the query could not be embedded
        """
        if not self.ready:
            logger.warning("Vector store not ready - still loading or failed to load")
            return []

        try:
            query = normalize_query(raw_query)
        except QueryRejected as e:
            logger.warning(str(e))
            return []

        if not self._chunks:
            return []

        logger.info(f"Searching {len(self._chunks)} chunks for: {query[:100]}")
        query_vector = await embed_query(self.embedder, query, self.embed_timeout)
        return rank(self._chunks, self._matrix, query_vector, self.top_k if top_k is None else top_k)
