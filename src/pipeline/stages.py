"""
Pipeline stages (AppSync functions) for the DataPoint API.

Each stage has a request phase (``before_call``) that describes the single
data source operation it needs, and a response phase (``after_call``) that
transforms the data source result or halts the pipeline. Stages hold no
per-request state; everything request-specific lives on the Context.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Union

from ..utils.errors import AppError, ErrorCode
from ..utils.ownership import OWNER_FIELD, filter_owned_items
from .context import Context, Continue, DataSourceKind, DataSourceRequest, Halt, SortKeyRange, StageOutcome

PARTITION_KEY = "name"
SORT_KEY = "createdAt"

# Data source names stages are bound to
DATA_POINT_SOURCE = "dataPointSource"
AUTHORIZER_SOURCE = "authorizerSource"
LIST_DATA_POINTS_SOURCE = "listDataPointsSource"
NONE_SOURCE = "noneSource"


class Stage(ABC):
    """One function in a pipeline resolver."""

    #: Name of the data source the stage is bound to
    data_source: str = NONE_SOURCE

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def before_call(self, ctx: Context) -> Union[DataSourceRequest, Halt]:
        """Describe the data source operation for this stage."""

    @abstractmethod
    def after_call(self, ctx: Context) -> StageOutcome:
        """Transform ``ctx.result`` or halt the pipeline."""


class PipelineWrapper(Stage):
    """Outer request/response pair that runs around the stage chain."""

    def before_call(self, ctx: Context) -> DataSourceRequest:
        return DataSourceRequest.none({})

    def after_call(self, ctx: Context) -> StageOutcome:
        return Continue(ctx.previous_result)


class SubscriptionWrapper(PipelineWrapper):
    """Outer pair for subscriptions: the published event is the payload."""

    def after_call(self, ctx: Context) -> StageOutcome:
        return Continue(ctx.source)


def _require_name(arguments: Dict[str, Any]) -> str:
    name = arguments.get(PARTITION_KEY)
    if not isinstance(name, str) or not name:
        raise AppError(ErrorCode.INVALID_INPUT, "Argument 'name' is required")
    return name


class CreateDataPoint(Stage):
    """Write a data point owned by the caller."""

    data_source = DATA_POINT_SOURCE

    def before_call(self, ctx: Context) -> Union[DataSourceRequest, Halt]:
        owner = ctx.caller
        if owner is None:
            return Halt(message="Cannot create a data point without a caller identity")

        arguments = ctx.arguments
        key = {
            PARTITION_KEY: _require_name(arguments),
            SORT_KEY: arguments.get(SORT_KEY) or datetime.now(timezone.utc).isoformat(),
        }
        attributes = {k: v for k, v in arguments.items() if k not in key and k != OWNER_FIELD}
        # Never trust a client-supplied owner
        attributes[OWNER_FIELD] = owner
        return DataSourceRequest(kind=DataSourceKind.PUT, key=key, payload=attributes)

    def after_call(self, ctx: Context) -> StageOutcome:
        return Continue(ctx.result)


class QueryDataPointsByNameAndDateTime(Stage):
    """Query one series by name, optionally bounded by creation time."""

    data_source = DATA_POINT_SOURCE

    def before_call(self, ctx: Context) -> DataSourceRequest:
        arguments = ctx.arguments
        lower = arguments.get("fromDateTime")
        upper = arguments.get("toDateTime")
        sort_key_range = SortKeyRange(SORT_KEY, lower, upper) if lower or upper else None
        return DataSourceRequest(
            kind=DataSourceKind.QUERY,
            key={PARTITION_KEY: _require_name(arguments)},
            sort_key_range=sort_key_range,
            limit=arguments.get("limit"),
            next_token=arguments.get("nextToken"),
        )

    def after_call(self, ctx: Context) -> StageOutcome:
        result = dict(ctx.result or {})
        result["items"] = filter_owned_items(result.get("items") or [], ctx.caller)
        return Continue(result)


class ListDataPoints(Stage):
    """Delegate listing to the list-all Lambda, which applies ownership itself."""

    data_source = LIST_DATA_POINTS_SOURCE

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name

    def before_call(self, ctx: Context) -> DataSourceRequest:
        return DataSourceRequest(
            kind=DataSourceKind.INVOKE,
            payload={"tableName": self.table_name, "identity": {"claims": dict(ctx.identity)}},
        )

    def after_call(self, ctx: Context) -> StageOutcome:
        return Continue(ctx.result)


class AuthorizationCheck(Stage):
    """Ask the authorizer Lambda whether the caller may run this mutation."""

    data_source = AUTHORIZER_SOURCE

    def before_call(self, ctx: Context) -> DataSourceRequest:
        return DataSourceRequest(
            kind=DataSourceKind.INVOKE,
            payload={"arguments": ctx.arguments, "identity": {"claims": dict(ctx.identity)}},
        )

    def after_call(self, ctx: Context) -> StageOutcome:
        decision = ctx.result if isinstance(ctx.result, dict) else {}
        if not decision.get("allow"):
            return Halt(message=decision.get("reason") or "Not Authorized to access this resource")
        return Continue(None)


class SubscriptionNotify(Stage):
    """Let a subscriber receive only events for the owner it is signed in as."""

    def before_call(self, ctx: Context) -> DataSourceRequest:
        return DataSourceRequest.none(ctx.source)

    def after_call(self, ctx: Context) -> StageOutcome:
        caller = ctx.caller
        if caller is None or ctx.arguments.get(OWNER_FIELD) != caller:
            return Halt()
        return Continue(None)
