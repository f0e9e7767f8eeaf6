"""Tests for environment-based API configuration."""

import pytest

from src.utils.config import ApiConfig


class TestApiConfig:
    """Tests for ApiConfig.from_env."""

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test every name is read from the environment."""
        monkeypatch.setenv("DATA_POINTS_TABLE_NAME", "points")
        monkeypatch.setenv("AUTHORIZER_FUNCTION_NAME", "authorizer")
        monkeypatch.setenv("LIST_DATA_POINTS_FUNCTION_NAME", "lister")
        monkeypatch.setenv("PAGE_TOKEN_KEY_ID", "alias/page-tokens")

        config = ApiConfig.from_env()

        assert config == ApiConfig("points", "authorizer", "lister", "alias/page-tokens")

    def test_missing_table_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing variable raises."""
        monkeypatch.delenv("DATA_POINTS_TABLE_NAME", raising=False)

        with pytest.raises(ValueError, match="DATA_POINTS_TABLE_NAME"):
            ApiConfig.from_env()
