"""
Dot-product scoring over an in-memory embedding matrix.

Raw dot product is the single similarity measure used everywhere. Index
embeddings (text-embedding-3-small, gemini-embedding-001) are unit length,
so the scores match cosine similarity without per-query normalisation.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from aivs_retrieval.models.chunk import Chunk


@dataclass(frozen=True)
class EmbeddingMatrix:
    """Row-aligned float32 matrix of chunk embeddings sharing one dimension."""
    vectors: np.ndarray
    rows: np.ndarray  # chunk positions covered by each matrix row
    size: int  # total chunk count, including rows left out of the matrix
    dimension: Optional[int]

    @classmethod
    def from_chunks(cls, chunks: Sequence[Chunk]) -> 'EmbeddingMatrix':
        if not chunks:
            return cls(np.empty((0, 0), dtype=np.float32), np.empty(0, dtype=np.intp), 0, None)

        # The first chunk fixes the store dimension; odd-sized rows keep a zero score.
        dimension = chunks[0].dimension
        rows = [i for i, chunk in enumerate(chunks) if chunk.dimension == dimension]
        vectors = np.array([chunks[i].embedding for i in rows], dtype=np.float32).reshape(len(rows), dimension)
        return cls(vectors, np.array(rows, dtype=np.intp), len(chunks), dimension)

    def scores(self, query: Sequence[float]) -> np.ndarray:
        """Dot product of the query with every chunk; 0.0 where dimensions differ."""
        result = np.zeros(self.size, dtype=np.float64)
        if self.size == 0 or len(query) != self.dimension:
            return result
        q = np.asarray(query, dtype=np.float32)
        result[self.rows] = self.vectors @ q
        return result


def top_indices(scores: np.ndarray, k: int) -> list[int]:
    """Indices of the k highest scores, highest first, ties kept in insertion order."""
    if k <= 0 or scores.size == 0:
        return []
    order = np.argsort(-scores, kind="stable")
    return order[:k].tolist()
