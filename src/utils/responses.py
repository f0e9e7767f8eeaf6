"""
GraphQL response builders for resolver pipelines.

Provides consistent response structures for AppSync GraphQL resolvers.
"""

from typing import Any, Dict, List, Optional, TypedDict, cast

from .dynamodb import from_dynamodb_value


class DataPointResponse(TypedDict, total=False):
    """GraphQL DataPoint response type."""

    name: str
    createdAt: str
    owner: str
    value: Optional[Any]


class DataPointConnection(TypedDict, total=False):
    """GraphQL DataPointConnection response type."""

    items: List[DataPointResponse]
    nextToken: Optional[str]


def build_data_point_response(item: Dict[str, Any]) -> DataPointResponse:
    """
    Build a DataPoint response from a DynamoDB item.

    Extra attributes stored alongside the item are passed through so the
    GraphQL schema decides what the client sees.

    Args:
        item: DynamoDB item dictionary

    Returns:
        DataPointResponse with Decimal values normalized
    """
    normalized: Dict[str, Any] = from_dynamodb_value(item)
    response = DataPointResponse(
        name=cast(str, normalized.get("name", "")),
        createdAt=cast(str, normalized.get("createdAt", "")),
        owner=cast(str, normalized.get("owner", "")),
        value=normalized.get("value"),
    )
    for key, value in normalized.items():
        response.setdefault(key, value)  # type: ignore[misc]
    return response


def build_connection_response(items: List[Dict[str, Any]], next_token: Optional[str] = None) -> DataPointConnection:
    """Build a paginated DataPointConnection from raw items."""
    return DataPointConnection(
        items=build_list_response(items, build_data_point_response),
        nextToken=next_token,
    )


def build_list_response(items: List[Dict[str, Any]], builder: Any) -> List[Any]:
    """
    Build a list of responses using a builder function.

    Args:
        items: List of DynamoDB items
        builder: Builder function to apply to each item

    Returns:
        List of built responses
    """
    return [builder(item) for item in items]
