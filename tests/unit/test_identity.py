"""Tests for caller identity resolution."""

from typing import Any, Dict

import pytest

from src.utils.identity import resolve_identity


class TestResolveIdentity:
    """Tests for resolve_identity function."""

    def test_uses_username_claim(self) -> None:
        """Test the primary claim wins when present."""
        claims = {"username": "alice", "cognito:username": "other"}

        assert resolve_identity(claims) == "alice"

    def test_falls_back_to_cognito_username(self) -> None:
        """Test the fallback claim is used when the primary is absent."""
        assert resolve_identity({"cognito:username": "bob"}) == "bob"

    def test_falls_back_when_username_is_null(self) -> None:
        """Test an explicit null primary claim falls back."""
        assert resolve_identity({"username": None, "cognito:username": "bob"}) == "bob"

    def test_empty_username_does_not_fall_back(self) -> None:
        """Test the null check is not a truthiness check."""
        assert resolve_identity({"username": "", "cognito:username": "bob"}) == ""

    @pytest.mark.parametrize(
        "claims",
        [
            None,
            {},
            {"sub": "abc"},
            {"username": None},
            {"username": None, "cognito:username": None},
        ],
    )
    def test_no_identity(self, claims: Dict[str, Any]) -> None:
        """Test missing claims resolve to None instead of raising."""
        assert resolve_identity(claims) is None
