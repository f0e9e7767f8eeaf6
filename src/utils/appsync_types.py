"""
Type definitions for AppSync Lambda events.

Provides TypedDict definitions for strongly typing AppSync resolver events,
reducing runtime errors from incorrect event structure assumptions.
"""

from typing import Any, Dict, List, Optional, Tuple, TypedDict


class AppSyncIdentity(TypedDict, total=False):
    """AppSync Cognito User Pool identity."""

    sub: str  # Cognito user ID
    username: str
    claims: Dict[str, Any]
    sourceIp: List[str]
    defaultAuthStrategy: str


class AppSyncInfo(TypedDict, total=False):
    """Field information for the resolved GraphQL field."""

    fieldName: str
    parentTypeName: str
    variables: Dict[str, Any]


class AppSyncEvent(TypedDict, total=False):
    """Base AppSync resolver event structure."""

    identity: AppSyncIdentity
    arguments: Dict[str, Any]
    source: Dict[str, Any]
    info: AppSyncInfo
    request: Dict[str, Any]
    prev: Dict[str, Any]  # Pipeline resolver previous result


# Helper functions for safe extraction


def get_claims(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the caller's verified claims from an event.

    Args:
        event: AppSync event

    Returns:
        Claims mapping (empty if not present)
    """
    identity: Dict[str, Any] = event.get("identity") or {}
    claims: Dict[str, Any] = identity.get("claims") or {}
    return claims


def get_argument(event: Dict[str, Any], name: str, default: Any = None) -> Any:
    """
    Extract an argument from the event.

    Args:
        event: AppSync event
        name: Argument name
        default: Default value if not present

    Returns:
        Argument value or default
    """
    return (event.get("arguments") or {}).get(name, default)


def get_field_binding(event: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract the (operation type, field name) pair the event resolves.

    Args:
        event: AppSync event

    Returns:
        Tuple of parent type name and field name (either may be None)
    """
    info: Dict[str, Any] = event.get("info") or {}
    return info.get("parentTypeName"), info.get("fieldName")
