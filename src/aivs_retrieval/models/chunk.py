from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class Chunk:
    """A passage of source text and its precomputed embedding, as read from the index file."""
    identifier: str
    text: str
    embedding: tuple[float, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Frozen dataclasses need object.__setattr__ to normalise fields.
        object.__setattr__(self, 'embedding', tuple(float(v) for v in self.embedding))
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata)))

    @property
    def dimension(self) -> int:
        return len(self.embedding)
