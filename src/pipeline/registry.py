"""
Static pipeline definitions and the stage registry.

Pipelines are declared as data: an ordered list of stage kinds bound to one
GraphQL (operation type, field name) pair. ``build_pipelines`` resolves the
declarations once at startup into fixed chains of stage instances bound to
their data sources, so nothing is looked up by name per request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Mapping, Tuple

from ..utils.config import ApiConfig
from .datasources import DataSource
from .stages import (
    AuthorizationCheck,
    CreateDataPoint,
    ListDataPoints,
    PipelineWrapper,
    QueryDataPointsByNameAndDateTime,
    Stage,
    SubscriptionNotify,
    SubscriptionWrapper,
)


class OperationType(str, Enum):
    """GraphQL root operation types."""

    QUERY = "Query"
    MUTATION = "Mutation"
    SUBSCRIPTION = "Subscription"


class StageKind(str, Enum):
    """Every stage a pipeline may reference."""

    AUTHORIZATION_CHECK = "AuthorizationCheckFunction"
    CREATE_DATA_POINT = "CreateDataPointFunction"
    QUERY_BY_NAME_AND_DATE_TIME = "QueryDataPointsDateTimeFunction"
    LIST_DATA_POINTS = "ListDataPointsFunction"
    SUBSCRIPTION_NOTIFY = "OnCreateDataPointFunction"


STAGE_REGISTRY: Dict[StageKind, Callable[[ApiConfig], Stage]] = {
    StageKind.AUTHORIZATION_CHECK: lambda config: AuthorizationCheck(),
    StageKind.CREATE_DATA_POINT: lambda config: CreateDataPoint(),
    StageKind.QUERY_BY_NAME_AND_DATE_TIME: lambda config: QueryDataPointsByNameAndDateTime(),
    StageKind.LIST_DATA_POINTS: lambda config: ListDataPoints(config.data_points_table_name),
    StageKind.SUBSCRIPTION_NOTIFY: lambda config: SubscriptionNotify(),
}


@dataclass(frozen=True)
class PipelineDefinition:
    """Declarative description of one pipeline resolver."""

    operation_type: OperationType
    field_name: str
    stages: Tuple[StageKind, ...]

    @property
    def binding(self) -> Tuple[str, str]:
        return self.operation_type.value, self.field_name


@dataclass(frozen=True)
class BoundStage:
    """A stage instance paired with the data source it calls."""

    stage: Stage
    data_source: DataSource


@dataclass(frozen=True)
class Pipeline:
    """Resolved, immutable call chain for one field."""

    definition: PipelineDefinition
    stages: Tuple[BoundStage, ...]
    wrapper: Stage

    @property
    def binding(self) -> Tuple[str, str]:
        return self.definition.binding

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(bound.stage.name for bound in self.stages)


PIPELINE_DEFINITIONS: Tuple[PipelineDefinition, ...] = (
    PipelineDefinition(
        OperationType.MUTATION,
        "createDataPoint",
        (StageKind.AUTHORIZATION_CHECK, StageKind.CREATE_DATA_POINT),
    ),
    PipelineDefinition(
        OperationType.QUERY,
        "queryDataPointsByNameAndDateTime",
        (StageKind.QUERY_BY_NAME_AND_DATE_TIME,),
    ),
    PipelineDefinition(
        OperationType.QUERY,
        "listDataPoints",
        (StageKind.LIST_DATA_POINTS,),
    ),
    PipelineDefinition(
        OperationType.SUBSCRIPTION,
        "onCreateDataPoint",
        (StageKind.SUBSCRIPTION_NOTIFY,),
    ),
)


def build_pipeline(
    definition: PipelineDefinition,
    config: ApiConfig,
    data_sources: Mapping[str, DataSource],
) -> Pipeline:
    """
    Resolve a pipeline definition into its fixed call chain.

    Args:
        definition: Declarative pipeline
        config: API configuration passed to stage factories
        data_sources: Available data sources keyed by name

    Returns:
        The resolved pipeline

    Raises:
        ValueError: If a stage kind or its data source is unknown
    """
    bound_stages = []
    for kind in definition.stages:
        factory = STAGE_REGISTRY.get(kind)
        if factory is None:
            raise ValueError(f"Unknown stage kind '{kind}' in {definition.field_name}")
        stage = factory(config)
        data_source = data_sources.get(stage.data_source)
        if data_source is None:
            raise ValueError(f"Stage {stage.name} is bound to unknown data source '{stage.data_source}'")
        bound_stages.append(BoundStage(stage, data_source))

    wrapper: Stage = (
        SubscriptionWrapper() if definition.operation_type is OperationType.SUBSCRIPTION else PipelineWrapper()
    )
    return Pipeline(definition=definition, stages=tuple(bound_stages), wrapper=wrapper)


def build_pipelines(
    config: ApiConfig,
    data_sources: Mapping[str, DataSource],
    definitions: Iterable[PipelineDefinition] = PIPELINE_DEFINITIONS,
) -> Dict[Tuple[str, str], Pipeline]:
    """
    Resolve every pipeline definition, keyed by its field binding.

    Raises:
        ValueError: If two pipelines are bound to the same field
    """
    pipelines: Dict[Tuple[str, str], Pipeline] = {}
    for definition in definitions:
        if definition.binding in pipelines:
            raise ValueError(f"Duplicate pipeline for {definition.binding[0]}.{definition.binding[1]}")
        pipelines[definition.binding] = build_pipeline(definition, config, data_sources)
    return pipelines
