"""Perceived World — the machine's noisy, filtered view of the world."""

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field

from civ_kernel.models.paths import is_magnitude_field


class PerceptionFilter(BaseModel):
    relevance: float = Field(ge=0.0, le=1.0)
    noise_factor: float = Field(ge=0.0)
    aggregation_window: int = Field(ge=1)
    importance_weight: float = Field(ge=0.0)


class TrendMetrics(BaseModel):
    direction: float = 0.0                  # Newest - oldest
    relative_direction: float = 0.0         # direction / |oldest|, 0 when oldest is 0
    momentum: float = 0.0                   # direction / samples
    acceleration: float = 0.0
    strength: float = 0.0                   # Share of differences agreeing with direction


class AnomalySeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class Anomaly(BaseModel):
    system: str
    parameter: str
    actual_value: float
    expected_value: float
    deviation: float
    severity: AnomalySeverity


class MachineInfluencePerception(BaseModel):
    """How the machine perceives its own footprint on the world."""
    actual_interventions: int = 0
    perceived_effectiveness: float = 0.0
    belief_in_own_capabilities: float = 0.0
    emotional_certainty: float = 0.0
    introspective_clarity: float = 0.0


class PerceptionMemory(BaseModel):
    """Rolling buffers the perception layer carries between cycles."""
    raw_history: Dict[str, List[float]] = {}                # "system.field" -> last 20 raw values
    smoothing_windows: Dict[str, List[Dict[str, float]]] = {}


class PerceivedWorldState(BaseModel):
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    cycle: int
    systems: Dict[str, Dict[str, float]] = {}
    trends: Dict[str, Dict[str, TrendMetrics]] = {}
    anomalies: List[Anomaly] = []
    confidence: float = 0.5
    machine_influence: MachineInfluencePerception = Field(
        default_factory=MachineInfluencePerception
    )

    def deltas(self) -> Dict[str, Dict[str, float]]:
        """
        Per-field perceived change: the trend direction of each parameter.

        Magnitude fields report relative change so they stay on the same
        scale as the probability-like fields.
        """
        return {
            system: {
                param: (
                    metrics.relative_direction
                    if is_magnitude_field(system, param)
                    else metrics.direction
                )
                for param, metrics in params.items()
            }
            for system, params in self.trends.items()
        }


class DerivedMetrics(BaseModel):
    overall_stability: float = 0.5
    systemic_risk: float = 0.0
    change_velocity: float = 0.0
    coherence: float = 1.0
    opportunity_level: float = 0.0
