"""
LLM factory for creating generation clients from configuration.

The orchestrator only depends on GenerationProtocol, so tests and
alternative backends can supply any object with an ``acomplete`` method.
"""

from typing import Protocol


class GenerationProtocol(Protocol):
    """Protocol that all generation clients must implement."""

    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.0,
    ) -> str:
        """Return the model's answer to a system instruction plus a user turn."""
        ...


def create_llm(model: str | None = None) -> GenerationProtocol:
    """
    Create a generation client based on configuration settings.

    Args:
        model: Optional model override. If None, uses settings.llm_model

    Returns:
        Client that implements GenerationProtocol
    """
    from docqa.config import settings
    from docqa.llm.chat_completions import ChatCompletionsLLM

    return ChatCompletionsLLM(
        model=model or settings.llm_model,
        api_key=settings.openai_api_key_value,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
    )
