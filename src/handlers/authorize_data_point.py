"""
Lambda handler for authorizing createDataPoint requests.

Called by the first function of the createDataPoint pipeline with the
mutation arguments (forwarded verbatim) and the caller's claims. Returns an
allow/deny decision; the pipeline halts with UNAUTHORIZED on deny.
"""

from typing import Any, Dict

from ..utils.appsync_types import get_argument, get_claims
from ..utils.identity import resolve_identity
from ..utils.logging import get_correlation_id, get_logger
from ..utils.ownership import OWNER_FIELD


def _decision(allow: bool, reason: str) -> Dict[str, Any]:
    return {"allow": allow, "reason": reason}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Decide whether the caller may create the requested data point.

    Denies when:
    - the caller has no resolvable identity
    - the data point has no name
    - the client supplied an owner that is not the caller

    Args:
        event: {"arguments": {...}, "identity": {"claims": {...}}}
        context: Lambda context (unused)

    Returns:
        {"allow": bool, "reason": str}
    """
    logger = get_logger(__name__, get_correlation_id(event))

    caller = resolve_identity(get_claims(event))

    if caller is None:
        logger.warning("Denied createDataPoint without caller identity")
        return _decision(False, "Caller identity is required")

    name = get_argument(event, "name")
    if not isinstance(name, str) or not name.strip():
        logger.warning("Denied createDataPoint without a name", caller=caller)
        return _decision(False, "Data point name is required")

    claimed_owner = get_argument(event, OWNER_FIELD)
    if claimed_owner is not None and claimed_owner != caller:
        logger.warning("Denied createDataPoint for another owner", caller=caller, claimed_owner=claimed_owner)
        return _decision(False, "Cannot create data points for another owner")

    logger.info("Allowed createDataPoint", caller=caller, name=name)
    return _decision(True, "Caller may create this data point")
