"""
Per-request pipeline context and stage outcome types.

A Context is created for exactly one resolver invocation and is threaded
explicitly through every stage call. Stages communicate with the executor
only through the values defined here.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from ..utils.errors import AppError, ErrorCode
from ..utils.identity import resolve_identity


class DataSourceKind(str, Enum):
    """Operations a bound data source understands."""

    NONE = "NONE"  # no external call, payload is echoed back as the result
    PUT = "PUT"
    QUERY = "QUERY"
    INVOKE = "INVOKE"


@dataclass(frozen=True)
class SortKeyRange:
    """Inclusive bounds on a sort key; either bound may be open."""

    attribute: str
    lower: Optional[str] = None
    upper: Optional[str] = None


@dataclass(frozen=True)
class DataSourceRequest:
    """Operation descriptor produced by ``before_call``."""

    kind: DataSourceKind
    key: Optional[Dict[str, Any]] = None
    payload: Any = None
    sort_key_range: Optional[SortKeyRange] = None
    limit: Optional[int] = None
    next_token: Optional[str] = None

    @classmethod
    def none(cls, payload: Any = None) -> "DataSourceRequest":
        """Request that performs no external call."""
        return cls(kind=DataSourceKind.NONE, payload=payload)

    @property
    def is_noop(self) -> bool:
        return self.kind is DataSourceKind.NONE


@dataclass(frozen=True)
class Continue:
    """Stage finished; ``value`` becomes the next stage's previous result."""

    value: Any = None


@dataclass(frozen=True)
class Halt:
    """Stage aborts the pipeline; the error becomes the response."""

    error_kind: str = ErrorCode.UNAUTHORIZED
    message: str = "Not Authorized to access this resource"

    def to_error(self) -> AppError:
        return AppError(self.error_kind, self.message)


StageOutcome = Union[Continue, Halt]


@dataclass
class Context:
    """
    Mutable state of a single pipeline invocation.

    Attributes:
        identity: Read-only snapshot of the caller's verified claims
        arguments: GraphQL field arguments supplied by the client
        source: Published payload for subscription runs
        result: Result of the current stage's data source call
        previous_result: Output of the previous stage's ``after_call``
        terminal: Set once a stage halts the pipeline
        error: The halting error
    """

    identity: Mapping[str, Any]
    arguments: Dict[str, Any]
    source: Any = None
    result: Any = None
    previous_result: Any = None
    terminal: bool = False
    error: Optional[AppError] = None

    @classmethod
    def create(
        cls,
        claims: Optional[Mapping[str, Any]],
        arguments: Optional[Mapping[str, Any]] = None,
        source: Any = None,
    ) -> "Context":
        """Build a fresh context with the claims frozen for the invocation."""
        return cls(
            identity=MappingProxyType(dict(claims or {})),
            arguments=dict(arguments or {}),
            source=source,
        )

    @property
    def caller(self) -> Optional[str]:
        """Resolved identity of the caller (None when no claim is present)."""
        return resolve_identity(self.identity)

    def halt(self, error: AppError) -> None:
        """Mark the invocation as terminated with ``error``."""
        self.terminal = True
        self.error = error
