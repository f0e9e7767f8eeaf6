"""
Test fixtures for resolver pipeline tests.

Provides common test data and mocked AWS resources.
"""

import io
import json
import os
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from src.handlers import data_point_resolvers
from src.pipeline import datasources
from src.utils import page_tokens
from src.utils.dynamodb import clear_all_overrides, reset_singleton
from tests.unit.table_schemas import DATA_POINTS_TABLE_NAME, PAGE_TOKEN_KEY_ALIAS, create_all_tables


@pytest.fixture
def aws_credentials() -> None:
    """Set fake AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["DATA_POINTS_TABLE_NAME"] = DATA_POINTS_TABLE_NAME
    os.environ["AUTHORIZER_FUNCTION_NAME"] = "datapoint-api-authorizer-ue1-dev"
    os.environ["LIST_DATA_POINTS_FUNCTION_NAME"] = "datapoint-api-list-ue1-dev"
    os.environ["PAGE_TOKEN_KEY_ID"] = PAGE_TOKEN_KEY_ALIAS


@pytest.fixture(autouse=True)
def reset_module_state() -> Generator[None, None, None]:
    """Reset cached pipelines, clients and table overrides between tests."""
    data_point_resolvers.reset_pipelines()
    datasources.lambda_client = None
    page_tokens.kms_client = None
    clear_all_overrides()
    reset_singleton()
    yield
    data_point_resolvers.reset_pipelines()
    datasources.lambda_client = None
    page_tokens.kms_client = None
    clear_all_overrides()
    reset_singleton()


@pytest.fixture
def dynamodb_tables(aws_credentials: None) -> Generator[Dict[str, Any], None, None]:
    """Create all mock DynamoDB tables."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_all_tables(dynamodb)


@pytest.fixture
def page_token_key(dynamodb_tables: Dict[str, Any]) -> str:
    """Create the mock KMS key that seals pagination tokens."""
    kms = boto3.client("kms", region_name="us-east-1")
    key_id: str = kms.create_key(Description="datapoint-api page tokens")["KeyMetadata"]["KeyId"]
    kms.create_alias(AliasName=PAGE_TOKEN_KEY_ALIAS, TargetKeyId=key_id)
    return key_id


@pytest.fixture
def data_points_table(dynamodb_tables: Dict[str, Any]) -> Any:
    """Get the data points DynamoDB table."""
    return dynamodb_tables["data_points"]


def lambda_payload(body: Any) -> Dict[str, Any]:
    """Build a boto3 Lambda invoke response carrying ``body``."""
    return {"StatusCode": 200, "Payload": io.BytesIO(json.dumps(body).encode("utf-8"))}


@pytest.fixture
def mock_lambda() -> Callable[[Dict[str, Any]], MagicMock]:
    """
    Install a MagicMock Lambda client.

    Call with a mapping of function name to a handler taking the decoded
    request payload; the handler's return value becomes the invoke response.
    """

    def install(handlers: Dict[str, Callable[[Any], Any]]) -> MagicMock:
        client = MagicMock()

        def invoke(FunctionName: str, InvocationType: str, Payload: bytes) -> Dict[str, Any]:
            return lambda_payload(handlers[FunctionName](json.loads(Payload)))

        client.invoke.side_effect = invoke
        datasources.lambda_client = client
        return client

    return install


@pytest.fixture
def alice_claims() -> Dict[str, Any]:
    """Claims for an access token issued to alice."""
    return {"sub": "sub-alice", "username": "alice"}


@pytest.fixture
def bob_claims() -> Dict[str, Any]:
    """Claims for an ID token issued to bob (username only under cognito:username)."""
    return {"sub": "sub-bob", "cognito:username": "bob"}


@pytest.fixture
def appsync_event(alice_claims: Dict[str, Any]) -> Callable[..., Dict[str, Any]]:
    """Factory for AppSync resolver events."""

    def build(
        parent_type: str,
        field_name: str,
        arguments: Dict[str, Any] | None = None,
        claims: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        return {
            "arguments": arguments or {},
            "identity": {"claims": alice_claims if claims is None else claims},
            "requestContext": {"requestId": "test-correlation-id"},
            "info": {"fieldName": field_name, "parentTypeName": parent_type},
        }

    return build


@pytest.fixture
def sample_items() -> List[Dict[str, Any]]:
    """Data points from two owners in one series."""
    return [
        {"name": "temp", "createdAt": "2024-01-01T00:00:00Z", "owner": "alice", "value": 5},
        {"name": "temp", "createdAt": "2024-01-01T01:00:00Z", "owner": "bob", "value": 7},
        {"name": "temp", "createdAt": "2024-01-01T02:00:00Z", "owner": "alice", "value": 9},
    ]
