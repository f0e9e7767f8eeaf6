"""Row-level ownership filtering for list-shaped results."""

from typing import Any, Dict, Iterable, List, Optional

OWNER_FIELD = "owner"


def is_owned_by(item: Dict[str, Any], identity: Optional[str]) -> bool:
    """Check that an item's owner is exactly the given identity."""
    if identity is None:
        return False
    return item.get(OWNER_FIELD) == identity


def filter_owned_items(items: Iterable[Dict[str, Any]], identity: Optional[str]) -> List[Dict[str, Any]]:
    """
    Keep only the items owned by ``identity``, preserving their order.

    Without an identity nothing is returned.

    Args:
        items: Items returned by the data source
        identity: Resolved caller identity (or None)

    Returns:
        The owned sub-sequence of ``items``
    """
    if identity is None:
        return []
    return [item for item in items if is_owned_by(item, identity)]
