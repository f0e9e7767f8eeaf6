"""
Data sources the pipeline stages are bound to.

Each data source executes exactly one DataSourceRequest per stage and hands
the result back to the executor. Store and invocation failures are logged
and re-raised unchanged.
"""

import json
import os
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from ..utils.config import ApiConfig
from ..utils.dynamodb import from_dynamodb_value, tables, to_dynamodb_value
from ..utils.errors import AppError, ErrorCode
from ..utils.logging import get_logger
from ..utils.page_tokens import PageTokenCodec
from .context import DataSourceKind, DataSourceRequest, SortKeyRange
from .stages import AUTHORIZER_SOURCE, DATA_POINT_SOURCE, LIST_DATA_POINTS_SOURCE, NONE_SOURCE

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_dynamodb.service_resource import Table
    from mypy_boto3_lambda.client import LambdaClient

logger = get_logger(__name__)

# Module-level Lambda client proxy for testing
lambda_client: "LambdaClient | None" = None


def _get_lambda_client() -> "LambdaClient":
    """Return the Lambda client (module-level override for tests, otherwise a fresh boto3 client)."""
    if lambda_client is not None:
        return lambda_client
    return boto3.client("lambda", endpoint_url=os.getenv("LAMBDA_ENDPOINT"))


class DataSource:
    """Base class for data sources."""

    def __init__(self, name: str) -> None:
        self.name = name

    def execute(self, request: DataSourceRequest) -> Any:
        if request.is_noop:
            return request.payload
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Data source {self.name} does not support {request.kind.value} requests",
        )


class NoneDataSource(DataSource):
    """Local resolver: echoes the request payload back as the result."""


class DynamoDbDataSource(DataSource):
    """DynamoDB table data source (PK=name, SK=createdAt)."""

    def __init__(
        self,
        name: str,
        token_codec: PageTokenCodec,
        table_getter: Optional[Callable[[], "Table"]] = None,
    ) -> None:
        super().__init__(name)
        self.token_codec = token_codec
        self._table_getter = table_getter or (lambda: tables.data_points)

    @property
    def table(self) -> "Table":
        return self._table_getter()

    def execute(self, request: DataSourceRequest) -> Any:
        handlers = {
            DataSourceKind.PUT: self._put,
            DataSourceKind.QUERY: self._query,
        }
        handler = handlers.get(request.kind)
        if handler is None:
            return super().execute(request)

        try:
            return handler(request)
        except ClientError as e:
            logger.error(
                "DynamoDB request failed",
                data_source=self.name,
                kind=request.kind.value,
                error=str(e),
            )
            raise

    def _put(self, request: DataSourceRequest) -> Dict[str, Any]:
        item = to_dynamodb_value({**(request.payload or {}), **(request.key or {})})
        self.table.put_item(Item=item)
        result: Dict[str, Any] = from_dynamodb_value(item)
        return result

    def _query(self, request: DataSourceRequest) -> Dict[str, Any]:
        if not request.key or len(request.key) != 1:
            raise AppError(ErrorCode.INVALID_INPUT, "Query requires exactly one partition key")
        partition_key, partition_value = next(iter(request.key.items()))
        condition = Key(partition_key).eq(partition_value)
        if request.sort_key_range is not None:
            condition = condition & _sort_key_condition(request.sort_key_range)

        kwargs: Dict[str, Any] = {"KeyConditionExpression": condition}
        self._add_paging(kwargs, request)
        return self._connection(self.table.query(**kwargs))

    def _add_paging(self, kwargs: Dict[str, Any], request: DataSourceRequest) -> None:
        if request.limit is not None:
            kwargs["Limit"] = _page_limit(request.limit)
        start_key = self.token_codec.decode(request.next_token)
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key

    def _connection(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "items": [from_dynamodb_value(item) for item in response.get("Items", [])],
            "nextToken": self.token_codec.encode(response.get("LastEvaluatedKey")),
        }


def _page_limit(limit: Any) -> int:
    try:
        page_size = int(limit)
    except (TypeError, ValueError):
        raise AppError(ErrorCode.INVALID_INPUT, "Argument 'limit' must be a positive integer")
    if isinstance(limit, bool) or page_size < 1:
        raise AppError(ErrorCode.INVALID_INPUT, "Argument 'limit' must be a positive integer")
    return page_size


def _sort_key_condition(sort_key_range: SortKeyRange) -> Any:
    key = Key(sort_key_range.attribute)
    if sort_key_range.lower is not None and sort_key_range.upper is not None:
        return key.between(sort_key_range.lower, sort_key_range.upper)
    if sort_key_range.lower is not None:
        return key.gte(sort_key_range.lower)
    return key.lte(sort_key_range.upper)


class LambdaDataSource(DataSource):
    """Synchronous Lambda invocation data source."""

    def __init__(self, name: str, function_name: str) -> None:
        super().__init__(name)
        self.function_name = function_name

    def execute(self, request: DataSourceRequest) -> Any:
        if request.kind is not DataSourceKind.INVOKE:
            return super().execute(request)

        try:
            response = _get_lambda_client().invoke(
                FunctionName=self.function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(request.payload, default=str).encode("utf-8"),
            )
        except ClientError as e:
            logger.error("Lambda invocation failed", function_name=self.function_name, error=str(e))
            raise

        body = response["Payload"].read()
        if response.get("FunctionError"):
            logger.error(
                "Lambda function returned an error",
                function_name=self.function_name,
                function_error=response["FunctionError"],
            )
            raise AppError(ErrorCode.INTERNAL_ERROR, f"Function {self.function_name} failed")

        return json.loads(body) if body else None


def build_data_sources(config: ApiConfig) -> Dict[str, DataSource]:
    """Create the data sources the default pipelines are bound to."""
    return {
        NONE_SOURCE: NoneDataSource(NONE_SOURCE),
        DATA_POINT_SOURCE: DynamoDbDataSource(
            DATA_POINT_SOURCE,
            PageTokenCodec(config.page_token_key_id, config.data_points_table_name),
        ),
        AUTHORIZER_SOURCE: LambdaDataSource(AUTHORIZER_SOURCE, config.authorizer_function_name),
        LIST_DATA_POINTS_SOURCE: LambdaDataSource(LIST_DATA_POINTS_SOURCE, config.list_data_points_function_name),
    }
