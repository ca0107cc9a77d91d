"""
Unit tests for resource caching in retrieval.resources module.

Tests the singleton caching behavior of:
    - get_vector_index()
    - get_embedder()
    - get_orchestrator() / get_registry()
    - initialize_resources()
    - clear_resource_cache()
"""

from unittest.mock import patch

import pytest

from docqa.retrieval.resources import (
    clear_resource_cache,
    get_embedder,
    get_llm,
    get_orchestrator,
    get_registry,
    get_vector_index,
    initialize_resources,
)


@pytest.fixture(autouse=True)
def fresh_resources():
    clear_resource_cache()
    yield
    clear_resource_cache()


@pytest.mark.unit
class TestResourceCaching:
    """Test that resource getters implement proper caching."""

    def test_get_vector_index_caches_result(self):
        index1 = get_vector_index()
        index2 = get_vector_index()

        assert index1 is index2
        assert index1.is_empty

    def test_vector_index_uses_configured_dimension(self):
        with patch("docqa.retrieval.resources.settings") as mock_settings:
            mock_settings.embedding_dimension = 384

            index = get_vector_index()

        assert index.dimension == 384

    def test_get_embedder_caches_result(self):
        assert get_embedder() is get_embedder()

    def test_get_llm_caches_result(self):
        assert get_llm() is get_llm()

    def test_orchestrator_shares_resources(self):
        orchestrator = get_orchestrator()

        assert orchestrator.index is get_vector_index()
        assert orchestrator.embedder is get_embedder()
        assert orchestrator.llm is get_llm()

    def test_registry_uses_shared_orchestrator(self):
        registry = get_registry()

        assert registry is get_registry()
        assert registry.orchestrator is get_orchestrator()

    def test_clear_resource_cache_resets_instances(self):
        index1 = get_vector_index()
        registry1 = get_registry()

        clear_resource_cache()

        assert get_vector_index() is not index1
        assert get_registry() is not registry1

    def test_initialize_resources_reports_status(self):
        with patch("docqa.retrieval.embeddings.settings") as mock_settings:
            mock_settings.embedding_model = "text-embedding-3-small"
            mock_settings.openai_api_key_value = "test-key"
            mock_settings.openai_base_url = "https://api.openai.com/v1"
            mock_settings.embedding_dimension = 1536
            mock_settings.embedding_batch_size = 2048
            mock_settings.request_timeout = 30.0
            mock_settings.max_retries = 2
            mock_settings.retry_delay = 1.0

            status = initialize_resources()

        assert status == {"vector_index": True, "embedder": True, "registry": True}

    def test_initialize_resources_without_api_key(self):
        with patch("docqa.retrieval.embeddings.settings") as mock_settings:
            mock_settings.embedding_model = "text-embedding-3-small"
            mock_settings.openai_api_key_value = None
            mock_settings.openai_base_url = "https://api.openai.com/v1"
            mock_settings.embedding_dimension = 1536
            mock_settings.embedding_batch_size = 2048
            mock_settings.request_timeout = 30.0
            mock_settings.max_retries = 2
            mock_settings.retry_delay = 1.0

            status = initialize_resources()

        assert status["embedder"] is False
