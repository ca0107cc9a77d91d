"""
Embedding generation via an OpenAI-compatible embeddings endpoint.

Converts batches of chunk texts (or a single query) into fixed-dimension
vectors. A failed call is reported as EmbeddingError; no placeholder
vectors are ever produced.
"""

import logging
from typing import Any, Optional

import httpx
import numpy as np
from numpy.typing import NDArray

from docqa.config import settings
from docqa.exceptions import EmbeddingError
from docqa.http_retry import transient_retrying

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """
    Generate embeddings using the OpenAI embeddings API.

    Retries once on transient failures, fails fast on 4xx.

    Example:
        >>> embedder = OpenAIEmbedder()
        >>> vectors = await embedder.aembed_texts(["What is in the contract?"])
        >>> vectors.shape
        (1, 1536)
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimension: Optional[int] = None,
        batch_size: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> None:
        """
        Initialize the embedder.

        Args:
            model: Embedding model name (default from settings)
            api_key: Bearer token (default from settings)
            base_url: API base URL (default from settings)
            dimension: Expected vector dimension (default from settings)
            batch_size: Maximum number of texts per API call
            timeout: Request timeout in seconds
            max_retries: Total attempts per batch on transient failures
            retry_delay: Seconds between attempts
        """
        self.model = model or settings.embedding_model
        self.api_key = api_key or settings.openai_api_key_value
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.dimension = dimension or settings.embedding_dimension
        self.batch_size = batch_size or settings.embedding_batch_size
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries or settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay

    @property
    def url(self) -> str:
        return f"{self.base_url}/embeddings"

    async def aembed_texts(self, texts: list[str]) -> NDArray[np.float32]:
        """
        Generate embeddings for a list of texts.

        Batches are sent one after another so a failure leaves nothing
        half-embedded for the caller to clean up.

        Args:
            texts: List of texts to embed

        Returns:
            Array of shape (len(texts), dimension), rows in input order

        Raises:
            EmbeddingError: If any batch fails or returns malformed data
        """
        if not texts:
            return np.empty((0, self.dimension), dtype=np.float32)

        batches = [
            texts[i : i + self.batch_size]
            for i in range(0, len(texts), self.batch_size)
        ]

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            batch_results = [
                await self._embed_batch(client, batch) for batch in batches
            ]

        return np.vstack(batch_results)

    async def aembed_query(self, query: str) -> NDArray[np.float32]:
        """
        Generate embedding for a single query.

        Args:
            query: Query text

        Returns:
            Array of shape (dimension,)
        """
        result = await self.aembed_texts([query])
        return result[0]

    async def _embed_batch(
        self, client: httpx.AsyncClient, texts: list[str]
    ) -> NDArray[np.float32]:
        """
        Embed a single batch of texts with retry logic.

        Args:
            client: Open HTTP client
            texts: Texts to embed (should be <= batch_size)

        Returns:
            Array of embeddings

        Raises:
            EmbeddingError: On HTTP, transport or payload errors
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.model, "input": texts}

        try:
            async for attempt in transient_retrying(self.max_retries, self.retry_delay):
                with attempt:
                    response = await client.post(self.url, json=payload, headers=headers)
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Embedding request failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e!s}") from e

        return self._parse_response(response, expected=len(texts))

    def _parse_response(
        self, response: httpx.Response, expected: int
    ) -> NDArray[np.float32]:
        """
        Convert an embeddings response into an array.

        Items are ordered by their ``index`` field so rows line up with inputs.

        Raises:
            EmbeddingError: If the body is malformed or the shape does not match
        """
        try:
            body: Any = response.json()
            items = sorted(body["data"], key=lambda item: item["index"])
            embeddings = np.array(
                [item["embedding"] for item in items], dtype=np.float32
            )
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e!s}") from e

        if embeddings.shape != (expected, self.dimension):
            raise EmbeddingError(
                f"Expected {expected} embeddings of dimension {self.dimension}, "
                f"got array of shape {embeddings.shape}"
            )

        logger.debug(f"Embedded {expected} texts with {self.model}")
        return embeddings
