"""
Opaque pagination tokens.

A DynamoDB LastEvaluatedKey may be the key of a row the caller is not allowed
to see, so it is encrypted with KMS before it is handed out as ``nextToken``.
The encryption context binds a token to the table it pages through.
"""

import base64
import binascii
import json
import os
from typing import TYPE_CHECKING, Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from .dynamodb import from_dynamodb_value
from .errors import AppError, ErrorCode
from .logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_kms.client import KMSClient

logger = get_logger(__name__)

# Module-level KMS client proxy for testing
kms_client: "KMSClient | None" = None

# KMS errors that mean the token itself was not produced by this codec
_INVALID_TOKEN_ERRORS = {"InvalidCiphertextException", "IncorrectKeyException"}


def _get_kms_client() -> "KMSClient":
    """Return the KMS client (module-level override for tests, otherwise a fresh boto3 client)."""
    if kms_client is not None:
        return kms_client
    return boto3.client("kms", endpoint_url=os.getenv("KMS_ENDPOINT"))


class PageTokenCodec:
    """Encrypts and decrypts pagination keys for one table."""

    def __init__(self, key_id: str, table_name: str) -> None:
        self.key_id = key_id
        self.table_name = table_name

    @property
    def encryption_context(self) -> Dict[str, str]:
        return {"purpose": "nextToken", "table": self.table_name}

    def encode(self, last_evaluated_key: Optional[Dict[str, Any]]) -> Optional[str]:
        """Encrypt a LastEvaluatedKey into a URL-safe token."""
        if not last_evaluated_key:
            return None
        plaintext = json.dumps(from_dynamodb_value(last_evaluated_key), sort_keys=True).encode("utf-8")
        response = _get_kms_client().encrypt(
            KeyId=self.key_id,
            Plaintext=plaintext,
            EncryptionContext=self.encryption_context,
        )
        return base64.urlsafe_b64encode(response["CiphertextBlob"]).decode("ascii")

    def decode(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Decrypt a token produced by ``encode``.

        Raises:
            AppError: INVALID_INPUT if the token was not issued for this table
        """
        if not token:
            return None
        try:
            ciphertext = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, ValueError, UnicodeError):
            raise AppError(ErrorCode.INVALID_INPUT, "Invalid nextToken")
        if not ciphertext:
            raise AppError(ErrorCode.INVALID_INPUT, "Invalid nextToken")

        try:
            response = _get_kms_client().decrypt(
                CiphertextBlob=ciphertext,
                KeyId=self.key_id,
                EncryptionContext=self.encryption_context,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _INVALID_TOKEN_ERRORS:
                logger.warning("Rejected nextToken", table_name=self.table_name)
                raise AppError(ErrorCode.INVALID_INPUT, "Invalid nextToken")
            raise

        try:
            start_key = json.loads(response["Plaintext"])
        except ValueError:
            raise AppError(ErrorCode.INVALID_INPUT, "Invalid nextToken")
        if not isinstance(start_key, dict):
            raise AppError(ErrorCode.INVALID_INPUT, "Invalid nextToken")
        return start_key
