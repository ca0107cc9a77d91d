"""
LLM client for OpenAI-compatible chat completion endpoints.

Sends a system instruction plus a user turn and returns the text of the
first choice. Transient failures are retried once; everything else is
reported as GenerationError.
"""

import logging
import time
from typing import Optional

import httpx

from docqa.config import settings
from docqa.exceptions import GenerationError
from docqa.http_retry import transient_retrying

logger = logging.getLogger(__name__)


class ChatCompletionsLLM:
    """LLM client for OpenAI-compatible ``/chat/completions`` endpoints."""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize chat completions client.

        Args:
            model: Chat model name (default from settings)
            api_key: Bearer token (default from settings)
            base_url: API base URL (default from settings)
            timeout: Request timeout in seconds
            max_retries: Total attempts for transient (5xx/network) failures
            retry_delay: Delay between attempts in seconds
        """
        self.model = model or settings.llm_model
        self.api_key = api_key or settings.openai_api_key_value
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries or settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.0,
    ) -> str:
        """
        Call the LLM with a system instruction and a user turn.

        Args:
            system_prompt: Instruction (and grounding context) for the model
            user_prompt: The user's message
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 for deterministic output)

        Returns:
            The generated response text, stripped

        Raises:
            GenerationError: If the request fails after retries or the
                response has no usable content
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async for attempt in transient_retrying(self.max_retries, self.retry_delay):
                    with attempt:
                        response = await client.post(
                            self.endpoint_url, json=payload, headers=self._headers()
                        )
                        response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Generation request failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Generation request failed: {e!s}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GenerationError(f"Malformed completion response: {e!s}") from e

        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Completion response contained no text")

        return content.strip()

    async def health_check(self, timeout: float = 30.0) -> tuple[bool, str]:
        """
        Perform a quick health check on the chat endpoint.

        Sends a minimal test prompt to verify the endpoint is responsive.
        Uses a shorter timeout than normal invocations for fast failure detection.

        Args:
            timeout: Health check timeout in seconds (default: 30s)

        Returns:
            Tuple of (is_healthy: bool, message: str)
        """
        test_payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": "test"}],
            "temperature": 0.0,
            "max_tokens": 1,
        }

        try:
            logger.info(f"Performing health check on endpoint: {self.endpoint_url}")
            started = time.perf_counter()
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(
                    self.endpoint_url, json=test_payload, headers=self._headers()
                )
            response.raise_for_status()

            result = response.json()
            if isinstance(result, dict) and result.get("choices"):
                elapsed = time.perf_counter() - started
                logger.info(f"Endpoint health check passed ({elapsed:.2f}s)")
                return True, f"Endpoint healthy (responded in {elapsed:.2f}s)"

            error_msg = "Endpoint returned invalid response structure"
            logger.warning(error_msg)
            return False, error_msg

        except httpx.TimeoutException:
            error_msg = f"Endpoint timed out after {timeout}s"
            logger.error(error_msg)
            return False, error_msg

        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
            logger.error(error_msg)
            return False, error_msg

        except httpx.HTTPError as e:
            error_msg = f"Connection failed: {e!s}"
            logger.error(error_msg)
            return False, error_msg

        except ValueError as e:
            error_msg = f"Invalid JSON from endpoint: {e!s}"
            logger.error(error_msg)
            return False, error_msg
