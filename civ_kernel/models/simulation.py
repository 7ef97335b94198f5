"""Simulation loop configuration."""

from typing import Optional

from pydantic import BaseModel, Field


class SimulationConfig(BaseModel):
    """Configuration for the Simulation Loop."""

    seed: Optional[int] = None              # None draws fresh OS entropy
    cycles_per_run: int = Field(default=1, ge=1)
    max_total_cycles: int = Field(default=10000, ge=1)
    cycle_interval_seconds: float = Field(default=0.0, ge=0.0)
    intervention_cooldown_cycles: int = Field(default=3, ge=0)
    budget_regeneration: float = 5.0
    max_intervention_budget: float = 100.0
    min_meaningful_impact: float = 0.001
    behavior_history_limit: int = 100
    event_history_limit: int = 1000
