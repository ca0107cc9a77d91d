"""LLM clients for docqa."""

from docqa.llm.chat_completions import ChatCompletionsLLM
from docqa.llm.factory import GenerationProtocol, create_llm

__all__ = ["ChatCompletionsLLM", "GenerationProtocol", "create_llm"]
