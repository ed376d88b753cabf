from aivs_retrieval.errors import (
    RetrievalError,
    StoreUnavailable,
    StoreAlreadyLoaded,
    MalformedRecord,
    ProviderUnavailable,
    QueryRejected
)
from aivs_retrieval.store.loader import load_chunks, load_metadata
from aivs_retrieval.store.vector_store import VectorStore, StoreState, search_chunks
from aivs_retrieval.retrieval.context import retrieve_context

__all__ = [
    'RetrievalError',
    'StoreUnavailable',
    'StoreAlreadyLoaded',
    'MalformedRecord',
    'ProviderUnavailable',
    'QueryRejected',
    'load_chunks',
    'load_metadata',
    'VectorStore',
    'StoreState',
    'search_chunks',
    'retrieve_context'
]
