from dataclasses import dataclass
from enum import Enum
from typing import Optional

from aivs_retrieval.models.chunk import Chunk


@dataclass(frozen=True)
class Match:
    chunk: Chunk
    score: float

    @property
    def text(self) -> str:
        return self.chunk.text


class ContextStatus(Enum):
    """Why a retrieval produced the context it did."""
    OK = "ok"
    NO_MATCHES = "no_matches"
    NOT_READY = "not_ready"
    REJECTED = "rejected"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class RetrievedContext:
    """Joined passage text handed to report generation, plus how it was obtained."""
    joined: str
    count: int
    status: ContextStatus
    matches: tuple[Match, ...] = ()

    @classmethod
    def empty(cls, status: ContextStatus) -> 'RetrievedContext':
        return cls(joined="", count=0, status=status)

    def to_dict(self) -> dict:
        return {"joined": self.joined, "count": self.count, "status": self.status.value}


@dataclass(frozen=True)
class IndexInfo:
    state: str
    count: int
    dimension: Optional[int]

    def to_dict(self) -> dict:
        return {"state": self.state, "count": self.count, "dimension": self.dimension}
