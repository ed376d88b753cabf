from typing import Any, Optional

from aivs_retrieval.errors import ProviderUnavailable, QueryRejected
from aivs_retrieval.models.match import ContextStatus, RetrievedContext
from aivs_retrieval.store.vector_store import VectorStore, normalize_query
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_SCORE = 0.03
DEFAULT_MAX_CHARS = 50000
SEPARATOR = "\n\n"


async def retrieve_context(
        store: VectorStore,
        question: Any,
        min_score: float = DEFAULT_MIN_SCORE,
        max_chars: Optional[int] = DEFAULT_MAX_CHARS
) -> RetrievedContext:
    """
    Collect the passages worth passing to report generation for a question.

    Never raises: every failure comes back as an empty context whose status
    says what went wrong.

    Args:
        store: The process-wide vector store
        question: The user's question
        min_score: Matches scoring below this are discarded
        max_chars: Maximum length of the joined text (None for no limit)

    Returns:
        The joined passage text, the number of passages used and a status
    """
    if not store.ready:
        logger.error("Vector store not ready - still loading or empty")
        return RetrievedContext.empty(ContextStatus.NOT_READY)

    try:
        query = normalize_query(question)
    except QueryRejected as e:
        logger.warning(str(e))
        return RetrievedContext.empty(ContextStatus.REJECTED)

    try:
        matches = await store.search(query)
    except ProviderUnavailable as e:
        logger.error(f"Context retrieval degraded, embedding unavailable: {e}", exc_info=True)
        return RetrievedContext.empty(ContextStatus.PROVIDER_UNAVAILABLE)
    except Exception as e:
        logger.error(f"Context retrieval failed: {e}", exc_info=True)
        return RetrievedContext.empty(ContextStatus.ERROR)

    kept = tuple(m for m in matches if m.score >= min_score)
    if not kept:
        logger.warning(f"No matches at or above {min_score} for: {query[:100]}")
        return RetrievedContext.empty(ContextStatus.NO_MATCHES)

    joined = SEPARATOR.join(m.text for m in kept)
    if max_chars is not None and len(joined) > max_chars:
        joined = joined[:max_chars]

    logger.info(f"Retrieved {len(kept)}/{len(matches)} passages ({len(joined)} chars)")
    return RetrievedContext(joined=joined, count=len(kept), status=ContextStatus.OK, matches=kept)
