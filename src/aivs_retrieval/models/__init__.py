from .chunk import Chunk
from .match import (
    Match,
    ContextStatus,
    RetrievedContext,
    IndexInfo
)

__all__ = [
    'Chunk',
    'Match',
    'ContextStatus',
    'RetrievedContext',
    'IndexInfo'
]
