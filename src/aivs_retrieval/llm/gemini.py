import os
import time
from typing import Optional

from google import genai
from google.genai import errors as genai_errors

from aivs_retrieval.errors import ProviderUnavailable
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 2


class GeminiEmbedder:
    DEFAULT_MODEL = "gemini-embedding-001"

    def __init__(self, model: str = DEFAULT_MODEL, api_key: Optional[str] = None):
        self.model = model
        self._api_key = api_key
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            api_key = self._api_key or os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise ProviderUnavailable("Gemini API key not found in environment variables")
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def embed(self, text: str, retry_count: int = 0) -> list[float]:
        """
        Generate an embedding for the given text using Gemini's embedding model.

        Args:
            text: The text to embed
            retry_count: Current retry attempt (internal use)

        Returns:
            The embedding vector

        Raises:
            ProviderUnavailable: If every attempt fails or Gemini returns no values
        """
        client = self.client
        try:
            start_time = time.time()
            logger.debug(f"Begin embedding with {self.model} (attempt {retry_count + 1})")
            response = await client.aio.models.embed_content(
                model=self.model,
                contents=[text],
            )
            values = response.embeddings[0].values if response.embeddings else None
            if not values:
                raise ProviderUnavailable("Gemini returned an empty embedding")
            processing_time_ms = int((time.time() - start_time) * 1000)
            logger.info(f"Embedded query with {self.model} ({processing_time_ms}ms)")
            return list(values)
        except (genai_errors.APIError, ProviderUnavailable) as e:
            if retry_count < MAX_RETRIES:
                logger.warning(f"Error generating embedding with Gemini (attempt {retry_count + 1}): {e}, retrying...")
                return await self.embed(text, retry_count + 1)
            logger.error(f"Error generating embedding with Gemini after {retry_count + 1} attempts: {e}", exc_info=True)
            if isinstance(e, ProviderUnavailable):
                raise
            raise ProviderUnavailable(f"Gemini embedding failed: {e}") from e
