import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the retrieval core, read from the environment."""
    index_path: str = "/mnt/data/vector.index"
    metadata_path: str = "/mnt/data/chunks_metadata.jsonl"
    chunk_limit: int = 50000
    load_batch_size: int = 1000
    top_k: int = 10
    min_score: float = 0.03
    context_char_limit: int = 50000
    embedding_provider: str = "openai"
    embedding_model: Optional[str] = None
    embedding_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> 'Settings':
        """
        Build settings from environment variables, falling back to defaults.

        Call load_dotenv() first if values should come from a .env file.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        defaults = cls()
        return cls(
            index_path=os.getenv("INDEX_PATH", defaults.index_path),
            metadata_path=os.getenv("METADATA_PATH", defaults.metadata_path),
            chunk_limit=_env_int("CHUNK_LIMIT", defaults.chunk_limit),
            load_batch_size=_env_int("LOAD_BATCH_SIZE", defaults.load_batch_size),
            top_k=_env_int("TOP_K", defaults.top_k),
            min_score=_env_float("MIN_SCORE", defaults.min_score),
            context_char_limit=_env_int("CONTEXT_CHAR_LIMIT", defaults.context_char_limit),
            embedding_provider=os.getenv("EMBEDDING_PROVIDER", defaults.embedding_provider).strip().lower(),
            embedding_model=os.getenv("EMBEDDING_MODEL") or None,
            embedding_timeout=_env_float("EMBEDDING_TIMEOUT", defaults.embedding_timeout),
        )
