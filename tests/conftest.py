"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - Deterministic in-process embedding and generation doubles
    - Sample documents and chunks
    - A wired orchestrator/registry over a fresh vector index
"""

import re
from unittest.mock import patch

import numpy as np
import pytest

from docqa.exceptions import EmbeddingError, GenerationError

# Vocabulary of the keyword embedder: one dimension per word
VOCABULARY = [
    "sentence",
    "one",
    "two",
    "three",
    "contract",
    "notice",
    "salary",
    "holiday",
]


# =============================================================================
# Collaborator doubles
# =============================================================================

class KeywordEmbedder:
    """Embeds text as keyword counts over VOCABULARY; records every call."""

    def __init__(self, fail: bool = False, dimension: int = len(VOCABULARY)) -> None:
        self.fail = fail
        self.dimension = dimension
        self.api_key = "test-key"
        self.calls: list[list[str]] = []

    async def aembed_texts(self, texts: list[str]) -> np.ndarray:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingError("Embedding request failed with HTTP 503")
        return np.array([self._vector(text) for text in texts], dtype=np.float32)

    async def aembed_query(self, query: str) -> np.ndarray:
        return (await self.aembed_texts([query]))[0]

    def _vector(self, text: str) -> list[float]:
        words = re.findall(r"[a-z]+", text.lower())
        counts = [float(words.count(word)) for word in VOCABULARY]
        return (counts + [0.0] * self.dimension)[: self.dimension]


class FakeLLM:
    """Returns a canned answer and records the prompts it received."""

    def __init__(self, answer: str = "Sentence one is the opening sentence.", fail: bool = False) -> None:
        self.answer = answer
        self.fail = fail
        self.calls: list[dict] = []

    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 500,
        temperature: float = 0.0,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.fail:
            raise GenerationError("Generation request failed with HTTP 500")
        return self.answer


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "OPENAI_API_KEY": "test-api-key",
            "EMBEDDING_MODEL": "text-embedding-3-small",
            "LLM_MODEL": "gpt-4o-mini",
            "CHUNK_SIZE": "1000",
            "CHUNK_OVERLAP": "200",
            "RETRIEVAL_TOP_K": "3",
        },
    ):
        from docqa.config import Settings
        yield Settings()


# =============================================================================
# Pipeline Fixtures
# =============================================================================

@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def failing_embedder() -> KeywordEmbedder:
    return KeywordEmbedder(fail=True)


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def vector_index():
    from docqa.retrieval.indexer import VectorIndex

    return VectorIndex(dimension=len(VOCABULARY))


@pytest.fixture
def orchestrator(embedder, llm, vector_index):
    from docqa.pipeline.orchestrator import RetrievalOrchestrator

    return RetrievalOrchestrator(
        embedder=embedder,
        llm=llm,
        index=vector_index,
        chunk_size=1000,
        chunk_overlap=200,
        top_k=3,
        max_output_tokens=500,
        temperature=0.0,
    )


@pytest.fixture
def registry(orchestrator):
    from docqa.pipeline.registry import DocumentRegistry

    return DocumentRegistry(orchestrator)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_document():
    """The short three-sentence document used across pipeline tests."""
    from docqa.pipeline.models import Document

    return Document.create(
        name="A",
        raw_content="Sentence one. Sentence two. Sentence three.",
        document_id="doc-a",
    )


@pytest.fixture
def contract_document():
    from docqa.pipeline.models import Document

    return Document.create(
        name="contract.txt",
        raw_content=(
            "The contract notice period is two months. "
            "Salary is paid monthly under the contract."
        ),
        document_id="doc-contract",
    )


@pytest.fixture
def holiday_document():
    from docqa.pipeline.models import Document

    return Document.create(
        name="handbook.txt",
        raw_content="Every employee receives holiday leave. Holiday requests need notice.",
        document_id="doc-handbook",
    )


@pytest.fixture
def chunk_factory():
    """Build Chunks with chosen embeddings for index tests."""
    from docqa.retrieval.chunker import Chunk, make_chunk_id

    def _make_chunk(
        document_id: str,
        embedding,
        sequence_index: int = 0,
        document_name: str | None = None,
        text: str | None = None,
    ):
        return Chunk(
            id=make_chunk_id(document_id, sequence_index),
            document_id=document_id,
            document_name=document_name or f"{document_id}.txt",
            text=text or f"{document_id} chunk {sequence_index}",
            embedding=np.asarray(embedding, dtype=np.float32),
            sequence_index=sequence_index,
        )

    return _make_chunk
