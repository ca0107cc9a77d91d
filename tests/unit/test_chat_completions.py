"""Unit tests for the chat completions client."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from docqa.exceptions import GenerationError
from docqa.llm.chat_completions import ChatCompletionsLLM

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def _completion_body(content):
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture
def client() -> ChatCompletionsLLM:
    return ChatCompletionsLLM(
        model="gpt-4o-mini",
        api_key="test-key",
        base_url="https://api.openai.com/v1",
        retry_delay=0.0,
        max_retries=2,
    )


@pytest.mark.unit
class TestChatCompletionsLLM:
    """Tests for ChatCompletionsLLM.acomplete."""

    def test_endpoint_url_strips_trailing_slash(self):
        llm = ChatCompletionsLLM(api_key="k", base_url="http://localhost:8080/v1/")

        assert llm.endpoint_url == "http://localhost:8080/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_acomplete_returns_stripped_content(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, json=_completion_body("  The answer.\n"))

        answer = await client.acomplete("system text", "user question")

        assert answer == "The answer."

    @pytest.mark.asyncio
    async def test_acomplete_payload(self, client, httpx_mock: HTTPXMock):
        """System and user turns are sent with the requested sampling settings."""
        httpx_mock.add_response(url=COMPLETIONS_URL, json=_completion_body("ok"))

        await client.acomplete("Use this context", "What is it?", max_tokens=500, temperature=0.0)

        request = httpx_mock.get_requests()[0]
        payload = json.loads(request.content)
        assert request.headers["Authorization"] == "Bearer test-key"
        assert payload["model"] == "gpt-4o-mini"
        assert payload["messages"] == [
            {"role": "system", "content": "Use this context"},
            {"role": "user", "content": "What is it?"},
        ]
        assert payload["max_tokens"] == 500
        assert payload["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_retries_on_server_error(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, status_code=500)
        httpx_mock.add_response(url=COMPLETIONS_URL, json=_completion_body("recovered"))

        answer = await client.acomplete("s", "u")

        assert answer == "recovered"
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_client_error_fails_fast(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, status_code=401)

        with pytest.raises(GenerationError, match="HTTP 401"):
            await client.acomplete("s", "u")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_retried_then_reported(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(httpx.ReadTimeout("Read timed out"))
        httpx_mock.add_exception(httpx.ReadTimeout("Read timed out"))

        with pytest.raises(GenerationError, match="timed out"):
            await client.acomplete("s", "u")

        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"choices": []},
            {"error": "nope"},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": "   "}}]},
        ],
    )
    async def test_unusable_response(self, client, httpx_mock: HTTPXMock, body):
        httpx_mock.add_response(url=COMPLETIONS_URL, json=body)

        with pytest.raises(GenerationError):
            await client.acomplete("s", "u")


@pytest.mark.unit
class TestHealthCheck:
    """Tests for ChatCompletionsLLM.health_check."""

    @pytest.mark.asyncio
    async def test_healthy(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, json=_completion_body("t"))

        healthy, message = await client.health_check(timeout=5.0)

        assert healthy is True
        assert "healthy" in message
        payload = json.loads(httpx_mock.get_requests()[0].content)
        assert payload["max_tokens"] == 1

    @pytest.mark.asyncio
    async def test_http_error(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, status_code=503)

        healthy, message = await client.health_check()

        assert healthy is False
        assert message.startswith("HTTP 503")

    @pytest.mark.asyncio
    async def test_timeout(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(httpx.ReadTimeout("slow"))

        healthy, message = await client.health_check(timeout=2.0)

        assert healthy is False
        assert "timed out" in message

    @pytest.mark.asyncio
    async def test_connection_failure(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(httpx.ConnectError("refused"))

        healthy, message = await client.health_check()

        assert healthy is False
        assert message.startswith("Connection failed")

    @pytest.mark.asyncio
    async def test_invalid_structure(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=COMPLETIONS_URL, json={"unexpected": True})

        healthy, message = await client.health_check()

        assert healthy is False
        assert "invalid response" in message
