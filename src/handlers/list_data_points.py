"""Lambda resolver for listing every data point owned by the caller."""

from typing import Any, Dict, List

from ..utils.appsync_types import get_claims
from ..utils.dynamodb import _get_dynamodb, from_dynamodb_value
from ..utils.identity import resolve_identity
from ..utils.logging import get_correlation_id, get_logger
from ..utils.ownership import filter_owned_items

# Module-level variable intended to be monkeypatched in unit tests
data_points_table: Any | None = None


def _get_table(table_name: str) -> Any:
    # If a test has monkeypatched the module-level `data_points_table`, use it
    if data_points_table is not None:
        return data_points_table
    return _get_dynamodb().Table(table_name)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    List the caller's data points from the given table.

    Args:
        event: {"tableName": str, "identity": {"claims": {...}}}
        context: Lambda context (unused)

    Returns:
        {"items": [...], "nextToken": None} containing only the caller's items
    """
    logger = get_logger(__name__, get_correlation_id(event))

    table_name = event["tableName"]
    caller = resolve_identity(get_claims(event))
    if caller is None:
        logger.warning("Listing data points without caller identity", table_name=table_name)
        return {"items": [], "nextToken": None}

    table = _get_table(table_name)
    scanned: List[Dict[str, Any]] = []
    scan_kwargs: Dict[str, Any] = {}
    while True:
        response = table.scan(**scan_kwargs)
        scanned.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            break
        scan_kwargs["ExclusiveStartKey"] = last_key

    items = filter_owned_items(scanned, caller)
    logger.info(f"Caller owns {len(items)} of {len(scanned)} data points", caller=caller)

    return {"items": [from_dynamodb_value(item) for item in items], "nextToken": None}
