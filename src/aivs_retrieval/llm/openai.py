import os
import time
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from aivs_retrieval.errors import ProviderUnavailable
from aivs_retrieval.utils.logger import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 2


class OpenAIEmbedder:
    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(self, model: str = DEFAULT_MODEL, api_key: Optional[str] = None):
        self.model = model
        self._api_key = api_key
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            api_key = self._api_key or os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_APIKEY")
            if not api_key:
                raise ProviderUnavailable("OpenAI API key not found in environment variables")
            self._client = AsyncOpenAI(api_key=api_key)
        return self._client

    async def embed(self, text: str, retry_count: int = 0) -> list[float]:
        """
        Embed a single query string with the OpenAI embeddings endpoint.

        Args:
            text: The text to embed
            retry_count: Current retry attempt (internal use)

        Returns:
            The embedding vector

        Raises:
            ProviderUnavailable: If every attempt fails
        """
        client = self.client
        try:
            start_time = time.time()
            logger.debug(f"Begin embedding with {self.model} (attempt {retry_count + 1})")
            response = await client.embeddings.create(model=self.model, input=[text])
            vector = list(response.data[0].embedding)
            processing_time_ms = int((time.time() - start_time) * 1000)
            logger.info(f"Embedded query with {self.model} ({processing_time_ms}ms)")
            return vector
        except (OpenAIError, IndexError) as e:
            if retry_count < MAX_RETRIES:
                logger.warning(f"Error generating embedding with OpenAI (attempt {retry_count + 1}): {e}, retrying...")
                return await self.embed(text, retry_count + 1)
            logger.error(f"Error generating embedding with OpenAI after {retry_count + 1} attempts: {e}", exc_info=True)
            raise ProviderUnavailable(f"OpenAI embedding failed: {e}") from e
