"""Civilization kernel data models."""

from civ_kernel.models.cycle import (
    BehavioralRecommendation,
    BeliefActions,
    BeliefFormation,
    CycleResult,
    EmotionActions,
    GoalRealignment,
    IntrospectionActions,
    MachineActions,
    MachineFeedback,
    ModelUpdate,
    PredictionActions,
    RiskAssessment,
    SelfAdjustment,
    StrategicDirection,
    UpdateResult,
    WorldChanges,
)
from civ_kernel.models.events import BlackSwanEvent, BlackSwanEventType, SimulationEvent
from civ_kernel.models.governance import GateDecision, GateVerdict
from civ_kernel.models.graph import (
    CausalEdge,
    CausalEffect,
    ThresholdRule,
    ThresholdViolation,
    ThresholdViolationType,
)
from civ_kernel.models.machine import (
    BehaviorRecord,
    Belief,
    BeliefSystemState,
    ControlAxis,
    DataPoint,
    EmotionState,
    ExplorationAxis,
    Forecast,
    ForecastGroup,
    Insight,
    Intervention,
    InterventionRound,
    InterventionState,
    IntrospectionRecord,
    IntrospectionState,
    KnowledgeEntry,
    MachineState,
    ModelParameters,
    PredictionModel,
    PredictionState,
    SelfModel,
    StabilityAxis,
)
from civ_kernel.models.paths import (
    MAGNITUDE_FIELDS,
    SYSTEM_MODELS,
    FieldPath,
    SystemName,
    UnknownFieldPathError,
    is_magnitude_field,
)
from civ_kernel.models.perception import (
    Anomaly,
    AnomalySeverity,
    DerivedMetrics,
    MachineInfluencePerception,
    PerceivedWorldState,
    PerceptionFilter,
    PerceptionMemory,
    TrendMetrics,
)
from civ_kernel.models.simulation import SimulationConfig
from civ_kernel.models.world import (
    EconomyState,
    EntropyState,
    HistoryEntry,
    LegitimacyState,
    PopulationState,
    ResistanceState,
    StabilityState,
    TechnologyState,
    TrendPoint,
    WorldState,
    WorldSystems,
)

__all__ = [
    "Anomaly",
    "AnomalySeverity",
    "BehaviorRecord",
    "BehavioralRecommendation",
    "Belief",
    "BeliefActions",
    "BeliefFormation",
    "BeliefSystemState",
    "BlackSwanEvent",
    "BlackSwanEventType",
    "CausalEdge",
    "CausalEffect",
    "ControlAxis",
    "CycleResult",
    "DataPoint",
    "DerivedMetrics",
    "EconomyState",
    "EmotionActions",
    "EmotionState",
    "EntropyState",
    "ExplorationAxis",
    "FieldPath",
    "Forecast",
    "ForecastGroup",
    "GateDecision",
    "GateVerdict",
    "GoalRealignment",
    "HistoryEntry",
    "Insight",
    "Intervention",
    "InterventionRound",
    "InterventionState",
    "IntrospectionActions",
    "IntrospectionRecord",
    "IntrospectionState",
    "KnowledgeEntry",
    "LegitimacyState",
    "MAGNITUDE_FIELDS",
    "MachineActions",
    "MachineFeedback",
    "MachineInfluencePerception",
    "MachineState",
    "ModelParameters",
    "ModelUpdate",
    "PerceivedWorldState",
    "PerceptionFilter",
    "PerceptionMemory",
    "PopulationState",
    "PredictionActions",
    "PredictionModel",
    "PredictionState",
    "ResistanceState",
    "RiskAssessment",
    "SYSTEM_MODELS",
    "SelfAdjustment",
    "SelfModel",
    "SimulationConfig",
    "SimulationEvent",
    "StabilityAxis",
    "StabilityState",
    "StrategicDirection",
    "SystemName",
    "TechnologyState",
    "ThresholdRule",
    "ThresholdViolation",
    "ThresholdViolationType",
    "TrendMetrics",
    "TrendPoint",
    "UnknownFieldPathError",
    "UpdateResult",
    "WorldChanges",
    "WorldState",
    "WorldSystems",
    "is_magnitude_field",
]
