"""Machine State — the steering agent's beliefs, emotions and self-model."""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from civ_kernel.models.paths import SystemName
from civ_kernel.models.perception import PerceptionMemory


# ---------------------------------------------------------------------------
# Beliefs
# ---------------------------------------------------------------------------

class Belief(BaseModel):
    topic: str                              # "system.parameter"
    strength: float                         # Signed
    confidence: float = Field(ge=0.0, le=1.0)
    formed_at: int
    last_updated: int
    category: str                           # The system the topic belongs to


class BeliefSystemState(BaseModel):
    confidence: float = 0.8
    certainty_threshold: float = 0.7
    beliefs: List[Belief] = []
    update_rate: float = 0.1
    coherence: float = 0.9


# ---------------------------------------------------------------------------
# Emotions
# ---------------------------------------------------------------------------

class ExplorationAxis(BaseModel):
    curiosity: float = 0.8
    caution: float = 0.2


class ControlAxis(BaseModel):
    dominance: float = 0.5
    passivity: float = 0.5


class StabilityAxis(BaseModel):
    risk_seeking: float = 0.4
    preservation: float = 0.6


class EmotionState(BaseModel):
    exploration: ExplorationAxis = Field(default_factory=ExplorationAxis)
    control: ControlAxis = Field(default_factory=ControlAxis)
    stability: StabilityAxis = Field(default_factory=StabilityAxis)
    intensity: float = 0.5
    regulation: float = 0.7
    emotional_stability: float = 0.8
    strategic_tension: float = 0.0
    mood: str = "neutral"                   # "positive" | "neutral" | "negative"


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------

class DataPoint(BaseModel):
    cycle: int
    value: float
    timestamp: datetime


class ModelParameters(BaseModel):
    slope: float = 0.0
    intercept: float = 0.0
    variance: float = 0.1


class PredictionModel(BaseModel):
    """Linear trend fitted to the recent changes of one world parameter."""
    name: str                               # "system.parameter"
    type: str = "linear_trend"
    parameters: ModelParameters = Field(default_factory=ModelParameters)
    data_points: List[DataPoint] = []       # At most 50
    last_updated: int
    prediction_count: int = 0


class Forecast(BaseModel):
    cycle: int
    value: float
    model: str
    confidence: float


class ForecastGroup(BaseModel):
    model: str
    predictions: List[Forecast]
    confidence: float


class PredictionState(BaseModel):
    accuracy: float = 0.75
    prediction_horizon: int = 10
    confidence: float = 0.8
    models: List[PredictionModel] = []
    prediction_queue: List[ForecastGroup] = []
    forecast_accuracy: float = 0.7


# ---------------------------------------------------------------------------
# Interventions
# ---------------------------------------------------------------------------

class Intervention(BaseModel):
    """A proposed additive adjustment to one world system."""
    id: str                                 # "<rule_id>-<cycle>"
    rule_id: str
    target_system: SystemName
    type: str
    changes: Dict[str, float]               # field -> delta
    priority: float = Field(ge=0.0, le=1.0)
    cost: float = Field(ge=0.0)
    description: str = ""


class InterventionRound(BaseModel):
    cycle: int
    interventions: List[Intervention]
    timestamp: datetime


class InterventionState(BaseModel):
    active_interventions: List[Intervention] = []
    intervention_threshold: float = 0.6
    success_rate: float = 0.0
    initiative_level: float = 0.5
    intervention_budget: float = 100.0
    recent_interventions: List[InterventionRound] = []    # At most 10
    intervention_cooldowns: Dict[str, int] = {}           # rule_id -> cycles left


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

class Insight(BaseModel):
    type: str                               # consistency_issue | world_observation | self_performance
    description: str
    significance: float
    suggested_action: str = ""


class SelfModel(BaseModel):
    beliefs: Dict[str, float] = {}
    goals: List[str] = []
    preferences: Dict[str, float] = {}
    capabilities: Dict[str, float] = {}
    limitations: Dict[str, float] = {}


class IntrospectionRecord(BaseModel):
    cycle: int
    timestamp: datetime
    self_awareness: float
    reflection_depth: float
    cognitive_dissonance: float
    self_consistency: float
    insights: List[Insight] = []
    self_assessment: Dict[str, float] = {}


class IntrospectionState(BaseModel):
    self_awareness: float = 0.5
    reflection_depth: float = 0.6
    learning_rate: float = 0.1
    cognitive_dissonance: float = 0.2
    metacognitive_awareness: float = 0.4
    self_consistency: float = 0.7
    introspection_history: List[IntrospectionRecord] = []  # At most 50
    insight_generation_rate: float = 0.3
    self_model: SelfModel = Field(default_factory=SelfModel)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

class KnowledgeEntry(BaseModel):
    learned_at: int
    strength: float


class BehaviorRecord(BaseModel):
    cycle: int
    timestamp: datetime
    intervention_ids: List[str] = []
    belief_formations: int = 0
    insight_count: int = 0
    mood: str = "neutral"


class MachineState(BaseModel):
    """Complete snapshot of the machine at the end of a cycle."""

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    cycle: int = 0
    belief_system: BeliefSystemState = Field(default_factory=BeliefSystemState)
    emotion_system: EmotionState = Field(default_factory=EmotionState)
    prediction_engine: PredictionState = Field(default_factory=PredictionState)
    intervention_engine: InterventionState = Field(default_factory=InterventionState)
    introspection_engine: IntrospectionState = Field(default_factory=IntrospectionState)
    behavior_history: List[BehaviorRecord] = []
    knowledge_base: Dict[str, KnowledgeEntry] = {}
    knowledge_decay: float = 0.01
    belief_entropy: float = 0.02
    model_drift: float = 0.005
    perception_memory: PerceptionMemory = Field(default_factory=PerceptionMemory)
