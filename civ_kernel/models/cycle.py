"""Per-cycle records: world changes, machine actions and gate feedback."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from civ_kernel.models.events import BlackSwanEvent
from civ_kernel.models.graph import CausalEffect, ThresholdViolation
from civ_kernel.models.machine import ForecastGroup, Insight, Intervention
from civ_kernel.models.perception import DerivedMetrics, PerceivedWorldState


class UpdateResult:
    """Outcome of a single subsystem or sub-engine step."""

    def __init__(self, new_state: Any, changes: Dict[str, float], actions: Any = None):
        self.new_state = new_state
        self.changes = changes
        self.actions = actions


class WorldChanges(BaseModel):
    """Everything that moved in the world during one cycle."""
    cycle: int
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    systems: Dict[str, Dict[str, float]] = {}          # system -> field -> delta
    causal_effects: List[CausalEffect] = []
    threshold_violations: List[ThresholdViolation] = []
    black_swan_event: Optional[BlackSwanEvent] = None

    def change_log(self) -> Dict[str, float]:
        """Flatten per-system deltas into {"system.field": delta}."""
        return {
            f"{system}.{name}": delta
            for system, fields in self.systems.items()
            for name, delta in fields.items()
        }


class BeliefFormation(BaseModel):
    topic: str
    strength: float
    confidence: float


class BeliefActions(BaseModel):
    belief_formations: List[BeliefFormation] = []
    belief_reinforcements: int = 0
    belief_drops: int = 0


class StrategicDirection(BaseModel):
    exploration: float = 0.0
    control: float = 0.0
    stability: float = 0.0
    overall_tendency: float = 0.0


class EmotionActions(BaseModel):
    exploration_bias: float = 0.0           # curiosity - caution
    control_bias: float = 0.0               # dominance - passivity
    stability_bias: float = 0.0             # risk_seeking - preservation
    strategic_direction: StrategicDirection = Field(default_factory=StrategicDirection)
    mood: str = "neutral"


class ModelUpdate(BaseModel):
    type: str                               # "created" | "updated"
    model_name: str
    old_slope: Optional[float] = None
    new_slope: Optional[float] = None


class RiskAssessment(BaseModel):
    model: str
    cycle: int
    value: float
    confidence: float
    risk_level: str                         # "high" | "medium" | "low"
    description: str


class PredictionActions(BaseModel):
    predictions: List[ForecastGroup] = []
    model_updates: List[ModelUpdate] = []
    risk_assessments: List[RiskAssessment] = []


class SelfAdjustment(BaseModel):
    target: str
    adjustment: str
    reason: str
    magnitude: float


class GoalRealignment(BaseModel):
    goal_type: str
    suggested_change: str
    confidence: float


class BehavioralRecommendation(BaseModel):
    behavior: str
    urgency: str                            # "high" | "medium" | "low"
    reason: str
    duration: int                           # Cycles


class IntrospectionActions(BaseModel):
    insights: List[Insight] = []
    self_adjustments: List[SelfAdjustment] = []
    goal_realignments: List[GoalRealignment] = []
    behavioral_recommendations: List[BehavioralRecommendation] = []


class MachineActions(BaseModel):
    """Machine-side outputs of one cycle."""
    cycle: int
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    beliefs: BeliefActions = Field(default_factory=BeliefActions)
    emotions: EmotionActions = Field(default_factory=EmotionActions)
    predictions: PredictionActions = Field(default_factory=PredictionActions)
    interventions: List[Intervention] = []
    introspections: IntrospectionActions = Field(default_factory=IntrospectionActions)
    perceived_world_state: Optional[PerceivedWorldState] = None
    derived_metrics: DerivedMetrics = Field(default_factory=DerivedMetrics)


class MachineFeedback(BaseModel):
    """What the world learns about the machine from the previous cycle."""
    applied_interventions: List[Intervention] = []
    proposed_count: int = 0
    prediction_accuracy: float = 0.7

    @property
    def success_rate(self) -> float:
        if self.proposed_count == 0:
            return 0.0
        return len(self.applied_interventions) / self.proposed_count


class CycleResult(BaseModel):
    cycle: int
    world_changes: WorldChanges
    machine_actions: MachineActions
    applied_interventions: List[Intervention] = []
    dropped_interventions: List[str] = []
    completed_at: datetime = Field(default_factory=datetime.utcnow)
