"""
Shared fixtures for the retrieval test suite.

Provides: JSONL index file factory, fake embedding providers
Dependencies: pytest
"""

import json
from pathlib import Path
from typing import Any, Callable, Union
from unittest.mock import AsyncMock

import pytest


Row = Union[dict[str, Any], str]


@pytest.fixture
def write_index(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory writing rows to a JSONL file.

    Dict rows are JSON encoded; string rows are written verbatim so tests can
    include malformed lines.
    """
    def _write(rows: list[Row], name: str = "vector.index") -> Path:
        path = tmp_path / name
        lines = [row if isinstance(row, str) else json.dumps(row) for row in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def three_chunk_rows() -> list[dict[str, Any]]:
    return [
        {"id": "a", "text": "CIS deductions", "embedding": [1.0, 0.0], "title": "CIS"},
        {"id": "b", "text": "RIDDOR reporting", "embedding": [0.0, 1.0]},
        {"id": "c", "text": "VAT reclaim", "embedding": [0.7, 0.7]},
    ]


@pytest.fixture
def embedder() -> AsyncMock:
    """Embedding provider returning the unit x-axis vector."""
    provider = AsyncMock()
    provider.embed = AsyncMock(return_value=[1.0, 0.0])
    return provider
