"""Tests for src/utils/appsync_types.py - AppSync event type utilities."""

from typing import Any, Dict

from src.utils.appsync_types import get_argument, get_claims, get_field_binding


class TestGetClaims:
    """Tests for get_claims function."""

    def test_returns_claims(self) -> None:
        """Test extracting claims from identity."""
        event: Dict[str, Any] = {"identity": {"claims": {"username": "alice"}}}

        assert get_claims(event) == {"username": "alice"}

    def test_missing_identity(self) -> None:
        """Test an empty mapping when identity is missing or null."""
        assert get_claims({}) == {}
        assert get_claims({"identity": None}) == {}

    def test_missing_claims(self) -> None:
        """Test an empty mapping when claims are missing."""
        assert get_claims({"identity": {"sub": "abc"}}) == {}


class TestGetArgument:
    """Tests for get_argument function."""

    def test_returns_argument(self) -> None:
        """Test extracting an argument."""
        assert get_argument({"arguments": {"name": "temp"}}, "name") == "temp"

    def test_default(self) -> None:
        """Test the default is returned when absent."""
        assert get_argument({}, "name", "x") == "x"
        assert get_argument({"arguments": None}, "name") is None


class TestGetFieldBinding:
    """Tests for get_field_binding function."""

    def test_returns_binding(self) -> None:
        """Test extracting the parent type and field name."""
        event: Dict[str, Any] = {"info": {"parentTypeName": "Query", "fieldName": "listDataPoints"}}

        assert get_field_binding(event) == ("Query", "listDataPoints")

    def test_missing_info(self) -> None:
        """Test missing info yields Nones."""
        assert get_field_binding({}) == (None, None)
