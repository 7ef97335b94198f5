"""World State — the simulated civilization the machine observes and steers."""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from civ_kernel.models.events import BlackSwanEvent


class EconomyState(BaseModel):
    growth_rate: float = 0.02               # Signed, clamped to [-0.1, 0.1] by the updater
    resources: float = 1000.0               # Magnitude
    trade_volume: float = 500.0             # Magnitude
    inflation: float = 0.01
    employment: float = 0.95
    productivity: float = 1.0
    market_confidence: float = 0.8


class PopulationState(BaseModel):
    count: float = 1_000_000.0              # Magnitude, floored at 1000
    growth_rate: float = 0.015
    urbanization: float = 0.6
    happiness: float = 0.7
    education_level: float = 0.6
    health: float = 0.8
    diversity: float = 0.7


def _default_technology_tree() -> Dict[str, float]:
    return {
        "computing": 1.0,
        "biotech": 0.8,
        "energy": 0.9,
        "materials": 0.7,
        "transportation": 0.85,
    }


class TechnologyState(BaseModel):
    level: float = 1.0                      # Open-ended, floored at 0.1
    innovation_rate: float = 0.05
    adoption_rate: float = 0.8
    research_investment: float = 100.0      # Magnitude
    technological_gap: float = 0.2
    innovation_capacity: float = 0.7
    knowledge_base: float = 0.6
    technology_tree: Dict[str, float] = Field(default_factory=_default_technology_tree)
    tech_debt: float = 0.1
    breakthrough_probability: float = 0.02


class StabilityState(BaseModel):
    political: float = 0.8
    social: float = 0.75
    economic: float = 0.85
    overall: float = 0.8
    cohesion: float = 0.7
    volatility: float = 0.2
    resilience: float = 0.6
    stress_level: float = 0.3
    confidence_index: float = 0.75
    institutional_strength: float = 0.8
    public_trust: float = 0.65


def _default_entropy_sources() -> Dict[str, float]:
    return {
        "population": 0.05,
        "technology": 0.08,
        "economy": 0.06,
        "politics": 0.07,
        "environment": 0.04,
    }


def _default_entropy_sinks() -> Dict[str, float]:
    return {
        "institutions": 0.1,
        "technology": 0.05,
        "governance": 0.08,
        "culture": 0.06,
    }


class EntropyState(BaseModel):
    current: float = 0.1
    max: float = 1.0
    rate_of_increase: float = 0.001
    disorder_level: float = 0.2
    chaos_potential: float = 0.15
    complexity: float = 0.3
    predictability: float = 0.8
    order_maintenance: float = 0.7
    entropy_sources: Dict[str, float] = Field(default_factory=_default_entropy_sources)
    entropy_sinks: Dict[str, float] = Field(default_factory=_default_entropy_sinks)
    phase_transition_threshold: float = 0.8


def _default_resistance_networks() -> Dict[str, float]:
    return {
        "traditionalists": 0.2,
        "status_quo_preservers": 0.3,
        "change_averse_groups": 0.25,
        "risk_averse_individuals": 0.35,
    }


def _default_acceptance_factors() -> Dict[str, float]:
    return {
        "familiarity": 0.6,
        "trust": 0.55,
        "perceived_benefit": 0.65,
        "social_proof": 0.5,
    }


class ResistanceState(BaseModel):
    to_change: float = 0.3
    to_innovation: float = 0.4
    to_technology: float = 0.25
    to_external_influence: float = 0.35
    to_government_policy: float = 0.28
    adaptive_capacity: float = 0.6
    institutional_rigidity: float = 0.4
    cultural_conservatism: float = 0.5
    resistance_networks: Dict[str, float] = Field(default_factory=_default_resistance_networks)
    acceptance_factors: Dict[str, float] = Field(default_factory=_default_acceptance_factors)
    change_threshold: float = 0.7
    overall: float = 0.3195


class LegitimacyState(BaseModel):
    """How far the society accepts the machine's steering."""
    public_acceptance_of_machine: float = 0.5
    trust_in_automation: float = 0.4
    ideological_split: float = 0.3
    institutional_support: float = 0.6
    performance_legitimacy: float = 0.5
    overall_legitimacy: float = 0.46
    legitimacy_crisis_threshold: float = 0.2
    machine_influence_cap: float = 0.7
    rebellion_risk: float = 0.1
    legitimacy_trend: List[float] = []      # Newest last, at most 50 entries


class WorldSystems(BaseModel):
    economy: EconomyState = Field(default_factory=EconomyState)
    population: PopulationState = Field(default_factory=PopulationState)
    technology: TechnologyState = Field(default_factory=TechnologyState)
    stability: StabilityState = Field(default_factory=StabilityState)
    entropy: EntropyState = Field(default_factory=EntropyState)
    resistance: ResistanceState = Field(default_factory=ResistanceState)
    legitimacy: LegitimacyState = Field(default_factory=LegitimacyState)


class TrendPoint(BaseModel):
    cycle: int
    value: float
    timestamp: datetime


class HistoryEntry(BaseModel):
    cycle: int
    changes: dict                           # Serialized WorldChanges
    timestamp: datetime


class WorldState(BaseModel):
    """Complete snapshot of the simulated world at the end of a cycle."""

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    cycle: int = 0
    systems: WorldSystems = Field(default_factory=WorldSystems)
    trends: Dict[str, List[TrendPoint]] = {}    # "system.field" -> last 20 deltas
    history: List[HistoryEntry] = []
    events: List[BlackSwanEvent] = []           # Every black swan that has fired

    def fork(self) -> "WorldState":
        """
        Copy for computing the next snapshot.

        Systems are deep-copied. Trends, history and events get fresh lists
        that share their entries, which are never mutated once recorded.
        """
        return self.model_copy(update={
            "systems": self.systems.model_copy(deep=True),
            "trends": {key: list(points) for key, points in self.trends.items()},
            "history": list(self.history),
            "events": list(self.events),
        })
