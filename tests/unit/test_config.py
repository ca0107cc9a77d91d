"""
Unit tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest


@pytest.mark.unit
class TestSettings:
    """Tests for Settings class."""

    def test_settings_loads_from_env(self, mock_settings):
        """Settings should load values from environment variables."""
        assert mock_settings.embedding_model == "text-embedding-3-small"
        assert mock_settings.llm_model == "gpt-4o-mini"
        assert mock_settings.chunk_size == 1000
        assert mock_settings.chunk_overlap == 200
        assert mock_settings.retrieval_top_k == 3

    def test_settings_defaults(self):
        """Defaults match the reference pipeline configuration."""
        with patch.dict(os.environ, {}, clear=True):
            from docqa.config import Settings

            settings = Settings(_env_file=None)

        assert settings.openai_api_key is None
        assert settings.openai_api_key_value is None
        assert settings.openai_base_url == "https://api.openai.com/v1"
        assert settings.embedding_dimension == 1536
        assert settings.llm_temperature == 0.0
        assert settings.llm_max_tokens == 500
        assert settings.max_retries == 2
        assert settings.max_concurrent_ingestions == 1

    def test_settings_chunk_overlap_validation(self):
        """Chunk overlap must be less than chunk size."""
        with patch.dict(
            os.environ,
            {
                "CHUNK_SIZE": "256",
                "CHUNK_OVERLAP": "300",  # Invalid: > chunk_size
            },
            clear=True,
        ):
            from docqa.config import Settings

            with pytest.raises(Exception):  # ValidationError
                Settings(_env_file=None)

    def test_settings_overlap_equal_to_size_rejected(self):
        with patch.dict(os.environ, {"CHUNK_SIZE": "200", "CHUNK_OVERLAP": "200"}, clear=True):
            from docqa.config import Settings

            with pytest.raises(Exception):  # ValidationError
                Settings(_env_file=None)

    def test_settings_api_key_is_secret(self, mock_settings):
        """API key should be stored as SecretStr."""
        # Direct access should not reveal the value
        assert "test-api-key" not in str(mock_settings.openai_api_key)

        # Explicit property should reveal the value
        assert mock_settings.openai_api_key_value == "test-api-key"

    def test_base_url_trailing_slash_stripped(self):
        with patch.dict(os.environ, {"OPENAI_BASE_URL": "http://localhost:8080/v1/"}, clear=True):
            from docqa.config import Settings

            assert Settings(_env_file=None).openai_base_url == "http://localhost:8080/v1"

    def test_invalid_log_level_rejected(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}, clear=True):
            from docqa.config import Settings

            with pytest.raises(Exception):  # ValidationError
                Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        """get_settings should return cached instance."""
        with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}):
            from docqa.config import get_settings

            # Clear cache first
            get_settings.cache_clear()

            settings1 = get_settings()
            settings2 = get_settings()

            assert settings1 is settings2
