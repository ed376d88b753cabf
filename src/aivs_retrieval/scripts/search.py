#!/usr/bin/env python3
from dotenv import load_dotenv
load_dotenv()

import asyncio
import sys
import time

from aivs_retrieval.config import Settings
from aivs_retrieval.errors import StoreUnavailable
from aivs_retrieval.llm.embedding import get_embedder
from aivs_retrieval.retrieval.context import retrieve_context
from aivs_retrieval.store.loader import load_metadata
from aivs_retrieval.store.vector_store import VectorStore
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_QUERY = "CIS repayment"


async def search(query: str, settings: Settings) -> int:
    """
    Load the index once, retrieve context for a query and print it.

    Returns:
        Process exit code
    """
    start_time = time.time()
    store = VectorStore(
        get_embedder(settings),
        top_k=settings.top_k,
        embed_timeout=settings.embedding_timeout,
    )
    try:
        await store.load(
            settings.index_path,
            limit=settings.chunk_limit,
            batch_size=settings.load_batch_size,
        )
    except StoreUnavailable as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sample = await load_metadata(settings.metadata_path)
    if sample:
        titles = [row.get("title") for row in sample if row.get("title")]
        logger.info(f"Metadata sample titles: {titles}")

    context = await retrieve_context(
        store,
        query,
        min_score=settings.min_score,
        max_chars=settings.context_char_limit,
    )

    info = store.info()
    print(f"Index: {info.count} chunks, dimension {info.dimension}")
    print(f"Query: {query}")
    print("-" * 50)
    for match in context.matches:
        title = match.chunk.metadata.get("title") or match.chunk.identifier
        preview = " ".join(match.text.split())[:200]
        print(f"[{match.score:.4f}] {title}")
        print(f"    {preview}")
    print("-" * 50)
    print(f"{context.count} passages, status {context.status.value}")

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Finished search in {processing_time_ms}ms")
    return 0


def main() -> None:
    query = " ".join(sys.argv[1:]).strip() or DEFAULT_QUERY
    settings = Settings.from_env()
    sys.exit(asyncio.run(search(query, settings)))


if __name__ == "__main__":
    main()
