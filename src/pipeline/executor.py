"""
Pipeline executor.

Drives a resolved Pipeline for one request: outer request handler, then each
stage strictly in order with one blocking data source call in between its
two phases, then the outer response handler. A Halt from any stage ends the
run immediately and its error is the whole response.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from ..utils.errors import AppError
from ..utils.logging import StructuredLogger, get_logger
from .context import Context, Continue, Halt, StageOutcome
from .registry import BoundStage, Pipeline

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResponse:
    """Final result of one pipeline run: either data or the halting error."""

    data: Any = None
    error: Optional[AppError] = None

    @property
    def halted(self) -> bool:
        return self.error is not None

    def unwrap(self) -> Any:
        """Return the data, raising the halting error if there is one."""
        if self.error is not None:
            raise self.error
        return self.data


@dataclass(frozen=True)
class Subscriber:
    """A subscribed connection: its caller's claims and subscription arguments."""

    connection_id: str
    claims: Mapping[str, Any] = field(default_factory=dict)
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, payload: Mapping[str, Any]) -> bool:
        """Basic subscription filtering: every given argument equals the payload field."""
        return all(payload.get(name) == value for name, value in self.arguments.items() if value is not None)


@dataclass(frozen=True)
class Delivery:
    connection_id: str
    payload: Any


class PipelineExecutor:
    """Runs resolved pipelines."""

    def __init__(self, log: Optional[StructuredLogger] = None) -> None:
        self.logger = log or logger

    def run(
        self,
        pipeline: Pipeline,
        arguments: Optional[Mapping[str, Any]],
        claims: Optional[Mapping[str, Any]],
        source: Any = None,
    ) -> PipelineResponse:
        """
        Execute ``pipeline`` for one request.

        Args:
            pipeline: Resolved pipeline for the requested field
            arguments: Client-supplied field arguments
            claims: Verified identity claims of the caller
            source: Published payload (subscriptions only)

        Returns:
            PipelineResponse with the final data, or the halting error
        """
        ctx = Context.create(claims, arguments, source)
        operation, field_name = pipeline.binding

        self.logger.debug("Running pipeline", operation=operation, field_name=field_name, stages=list(pipeline.stage_names))

        # Outer request handler: constant empty request, no data source call
        pipeline.wrapper.before_call(ctx)

        for bound in pipeline.stages:
            outcome = self._run_stage(ctx, bound)
            if isinstance(outcome, Halt):
                ctx.halt(outcome.to_error())
            else:
                ctx.previous_result = outcome.value

            if ctx.terminal:
                self.logger.warning(
                    "Pipeline halted",
                    operation=operation,
                    field_name=field_name,
                    stage=bound.stage.name,
                    error_code=ctx.error.error_code if ctx.error else None,
                )
                return PipelineResponse(error=ctx.error)

        final = pipeline.wrapper.after_call(ctx)
        return PipelineResponse(data=final.value if isinstance(final, Continue) else None)

    @staticmethod
    def _run_stage(ctx: Context, bound: BoundStage) -> StageOutcome:
        request = bound.stage.before_call(ctx)
        if isinstance(request, Halt):
            return request

        ctx.result = bound.data_source.execute(request)
        try:
            return bound.stage.after_call(ctx)
        finally:
            ctx.result = None

    def publish(
        self,
        pipeline: Pipeline,
        payload: Mapping[str, Any],
        subscribers: Iterable[Subscriber],
    ) -> List[Delivery]:
        """
        Deliver a published event to every subscriber allowed to see it.

        The subscription pipeline runs once per matching subscriber with that
        subscriber's own claims and arguments; halted runs are suppressed.

        Returns:
            Deliveries in subscriber order
        """
        deliveries: List[Delivery] = []
        for subscriber in subscribers:
            if not subscriber.matches(payload):
                continue

            response = self.run(pipeline, subscriber.arguments, subscriber.claims, source=payload)
            if response.halted:
                self.logger.info("Delivery suppressed", connection_id=subscriber.connection_id)
                continue
            deliveries.append(Delivery(subscriber.connection_id, response.data))
        return deliveries
