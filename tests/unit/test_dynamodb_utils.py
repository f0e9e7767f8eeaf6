"""Tests for src/utils/dynamodb.py - centralized table access utilities."""

import os
from decimal import Decimal
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from src.utils.dynamodb import (
    TableAccessor,
    from_dynamodb_value,
    get_required_env,
    override_table,
    tables,
    to_dynamodb_value,
)
from tests.unit.table_schemas import DATA_POINTS_TABLE_NAME


class TestGetRequiredEnv:
    """Tests for get_required_env function."""

    def test_returns_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the environment value is returned."""
        monkeypatch.setenv("SOME_SETTING", "value")

        assert get_required_env("SOME_SETTING") == "value"

    def test_default_used_when_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default is returned when the variable is unset."""
        monkeypatch.delenv("SOME_SETTING", raising=False)

        assert get_required_env("SOME_SETTING", "fallback") == "fallback"

    def test_raises_when_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing variable without default raises."""
        monkeypatch.delenv("SOME_SETTING", raising=False)

        with pytest.raises(ValueError, match="SOME_SETTING"):
            get_required_env("SOME_SETTING")


class TestTableAccessor:
    """Tests for TableAccessor singleton."""

    def test_singleton(self) -> None:
        """Test TableAccessor returns the same instance."""
        assert TableAccessor() is TableAccessor()

    def test_data_points_table(self, dynamodb_tables: Dict[str, Any]) -> None:
        """Test the data points table is resolved from the environment."""
        assert tables.data_points.name == DATA_POINTS_TABLE_NAME

    def test_data_points_requires_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing table name raises."""
        monkeypatch.delenv("DATA_POINTS_TABLE_NAME", raising=False)

        with pytest.raises(ValueError, match="DATA_POINTS_TABLE_NAME"):
            _ = tables.data_points

    def test_override(self) -> None:
        """Test overridden tables are returned without touching AWS."""
        fake_table = MagicMock()
        override_table("data_points", fake_table)

        assert tables.data_points is fake_table


class TestValueConversion:
    """Tests for DynamoDB value conversion helpers."""

    def test_floats_become_decimals(self) -> None:
        """Test floats are stored as Decimal, recursively."""
        result = to_dynamodb_value({"value": 1.5, "tags": [0.25], "nested": {"x": 2.0}})

        assert result == {"value": Decimal("1.5"), "tags": [Decimal("0.25")], "nested": {"x": Decimal("2.0")}}

    def test_other_values_unchanged(self) -> None:
        """Test ints, strings and bools pass through."""
        assert to_dynamodb_value({"a": 1, "b": "x", "c": True}) == {"a": 1, "b": "x", "c": True}

    def test_decimals_become_numbers(self) -> None:
        """Test Decimal values are read back as int or float."""
        result = from_dynamodb_value({"whole": Decimal("5"), "part": Decimal("1.5"), "list": [Decimal("2")]})

        assert result == {"whole": 5, "part": 1.5, "list": [2]}
        assert isinstance(result["whole"], int)
