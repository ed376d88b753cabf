from typing import Protocol

from aivs_retrieval.config import Settings


class EmbeddingProvider(Protocol):
    """Turns a piece of text into a fixed-length embedding vector."""

    async def embed(self, text: str) -> list[float]: ...


def get_embedder(settings: Settings) -> EmbeddingProvider:
    """
    Build the embedding provider named by settings.embedding_provider.

    Raises:
        ValueError: If the provider name is not recognised
    """
    name = settings.embedding_provider
    if name == "openai":
        from aivs_retrieval.llm.openai import OpenAIEmbedder
        return OpenAIEmbedder(model=settings.embedding_model or OpenAIEmbedder.DEFAULT_MODEL)
    if name == "gemini":
        from aivs_retrieval.llm.gemini import GeminiEmbedder
        return GeminiEmbedder(model=settings.embedding_model or GeminiEmbedder.DEFAULT_MODEL)
    raise ValueError(f"Unknown embedding provider: {name}")
