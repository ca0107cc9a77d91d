"""
Singleton resource management for the index, clients and pipeline.

Provides cached instances that live for the whole application lifecycle.
Uses the @lru_cache pattern (same as config.py settings singleton) so the
API and the CLI share one index and one registry per process.

Usage:
    # In API handlers
    registry = get_registry()
    answer = await get_orchestrator().answer_query(question)

    # In tests (reset cache)
    clear_resource_cache()
"""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from docqa.config import settings

if TYPE_CHECKING:
    from docqa.llm.factory import GenerationProtocol
    from docqa.pipeline.orchestrator import RetrievalOrchestrator
    from docqa.pipeline.registry import DocumentRegistry
    from docqa.retrieval.embeddings import OpenAIEmbedder
    from docqa.retrieval.indexer import VectorIndex

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_vector_index() -> "VectorIndex":
    """
    Get or create the process-wide vector index.

    Returns:
        VectorIndex: Empty index sized for the configured embedding model
    """
    from docqa.retrieval.indexer import VectorIndex

    logger.info(f"Creating vector index (dimension {settings.embedding_dimension})")
    return VectorIndex(dimension=settings.embedding_dimension)


@lru_cache(maxsize=1)
def get_embedder() -> "OpenAIEmbedder":
    """
    Get or create the embedding client.

    Returns:
        OpenAIEmbedder: Client configured from settings
    """
    from docqa.retrieval.embeddings import OpenAIEmbedder

    logger.info(f"Initializing embedder for model: {settings.embedding_model}")
    if settings.openai_api_key is None:
        logger.warning("OPENAI_API_KEY is not set; embedding requests will be rejected")

    return OpenAIEmbedder()


@lru_cache(maxsize=1)
def get_llm() -> "GenerationProtocol":
    """
    Get or create the generation client.

    Returns:
        Client implementing GenerationProtocol
    """
    from docqa.llm.factory import create_llm

    logger.info(f"Initializing generation client for model: {settings.llm_model}")
    return create_llm()


@lru_cache(maxsize=1)
def get_orchestrator() -> "RetrievalOrchestrator":
    """
    Get or create the retrieval orchestrator wired to the shared resources.

    Returns:
        RetrievalOrchestrator: Pipeline over the shared index and clients
    """
    from docqa.pipeline.orchestrator import RetrievalOrchestrator

    return RetrievalOrchestrator(
        embedder=get_embedder(),
        llm=get_llm(),
        index=get_vector_index(),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        top_k=settings.retrieval_top_k,
        max_output_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


@lru_cache(maxsize=1)
def get_registry() -> "DocumentRegistry":
    """
    Get or create the document registry.

    Returns:
        DocumentRegistry: Registry backed by the shared orchestrator
    """
    from docqa.pipeline.registry import DocumentRegistry

    return DocumentRegistry(
        get_orchestrator(),
        max_concurrent_ingestions=settings.max_concurrent_ingestions,
    )


def initialize_resources() -> dict[str, bool]:
    """
    Explicitly initialize all resources for eager loading.

    Called at API server startup so the first request does not pay for
    client construction.

    Returns:
        dict: Status of each resource
            - "vector_index": True if the index exists
            - "embedder": True if an API key is configured
            - "registry": True if the registry exists
    """
    index = get_vector_index()
    embedder = get_embedder()
    registry = get_registry()

    return {
        "vector_index": index is not None,
        "embedder": embedder.api_key is not None,
        "registry": registry is not None,
    }


def clear_resource_cache() -> None:
    """
    Clear all cached resources.

    Used in tests to reset state between test cases. Dropping the index
    also drops every uploaded document.
    """
    get_registry.cache_clear()
    get_orchestrator.cache_clear()
    get_llm.cache_clear()
    get_embedder.cache_clear()
    get_vector_index.cache_clear()
    logger.debug("Resource cache cleared")
