"""
Lambda entry points for the DataPoint GraphQL API.

``lambda_handler`` resolves queries and mutations: it looks up the pipeline
bound to the event's (parentTypeName, fieldName) pair and runs it for the
caller. ``publish_handler`` fans a published onCreateDataPoint event out to
the subscribed connections allowed to receive it.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from ..pipeline.datasources import build_data_sources
from ..pipeline.executor import PipelineExecutor, Subscriber
from ..pipeline.registry import OperationType, Pipeline, build_pipelines
from ..utils.appsync_types import get_claims, get_field_binding
from ..utils.config import ApiConfig
from ..utils.errors import AppError, ErrorCode
from ..utils.logging import get_correlation_id, get_logger
from ..utils.responses import build_connection_response, build_data_point_response

logger = get_logger(__name__)

# Built once per Lambda container; tests reset it with reset_pipelines()
_pipelines: Optional[Dict[Tuple[str, str], Pipeline]] = None


def get_pipelines() -> Dict[Tuple[str, str], Pipeline]:
    """Resolve the configured pipelines on first use."""
    global _pipelines
    if _pipelines is None:
        config = ApiConfig.from_env()
        _pipelines = build_pipelines(config, build_data_sources(config))
    return _pipelines


def reset_pipelines() -> None:
    """Drop the resolved pipelines (for testing isolation)."""
    global _pipelines
    _pipelines = None


def get_pipeline(operation: Optional[str], field_name: Optional[str]) -> Pipeline:
    """
    Look up the pipeline bound to a field.

    Raises:
        AppError: If no pipeline is bound to the field
    """
    pipeline = get_pipelines().get((operation or "", field_name or ""))
    if pipeline is None:
        raise AppError(ErrorCode.NOT_FOUND, f"No resolver for {operation}.{field_name}")
    return pipeline


def _shape_connection(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    return build_connection_response(data.get("items") or [], data.get("nextToken"))


def _shape_item(data: Any) -> Any:
    return build_data_point_response(data) if isinstance(data, dict) else data


RESPONSE_BUILDERS: Dict[str, Callable[[Any], Any]] = {
    "createDataPoint": _shape_item,
    "queryDataPointsByNameAndDateTime": _shape_connection,
    "listDataPoints": _shape_connection,
}


def lambda_handler(event: Dict[str, Any], context: Any) -> Any:
    """
    Resolve a GraphQL query or mutation through its pipeline.

    Args:
        event: AppSync resolver event with info, arguments and identity
        context: Lambda context (unused)

    Returns:
        The field's response data

    Raises:
        AppError: UNAUTHORIZED when a stage halts, NOT_FOUND for unbound fields
    """
    log = logger.with_correlation_id(get_correlation_id(event))
    operation, field_name = get_field_binding(event)
    if operation == OperationType.SUBSCRIPTION.value:
        raise AppError(ErrorCode.INVALID_INPUT, "Subscriptions are resolved at publish time")

    pipeline = get_pipeline(operation, field_name)
    log.info("Resolving field", operation=operation, field_name=field_name)

    response = PipelineExecutor(log).run(pipeline, event.get("arguments"), get_claims(event))
    if response.error is not None:
        log.warning("Request denied", operation=operation, field_name=field_name, error=response.error.to_dict())

    # Raises the halting error, surfaced verbatim to the caller
    data = response.unwrap()
    builder = RESPONSE_BUILDERS.get(field_name or "")
    return builder(data) if builder else data


def publish_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Fan out an onCreateDataPoint event to authorized subscribers.

    Event structure:
    {
        "payload": {"name": "temp", "createdAt": "...", "owner": "alice", ...},
        "subscribers": [
            {
                "connectionId": "conn-1",
                "identity": {"claims": {"username": "alice"}},
                "arguments": {"owner": "alice"}
            }
        ]
    }

    Returns:
        {"deliveries": [{"connectionId": ..., "payload": ...}]}
    """
    log = logger.with_correlation_id(get_correlation_id(event))
    pipeline = get_pipeline(OperationType.SUBSCRIPTION.value, event.get("fieldName", "onCreateDataPoint"))

    payload = build_data_point_response(event.get("payload") or {})
    subscribers: List[Subscriber] = [
        Subscriber(
            connection_id=str(entry.get("connectionId", "")),
            claims=get_claims(entry),
            arguments=entry.get("arguments") or {},
        )
        for entry in event.get("subscribers") or []
    ]

    deliveries = PipelineExecutor(log).publish(pipeline, payload, subscribers)
    log.info("Published event", subscriber_count=len(subscribers), delivery_count=len(deliveries))

    return {
        "deliveries": [
            {"connectionId": delivery.connection_id, "payload": delivery.payload} for delivery in deliveries
        ]
    }
