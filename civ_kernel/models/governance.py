"""Legitimacy Gate decision — which interventions reach the world, and how strongly."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from civ_kernel.models.machine import Intervention


class GateVerdict(str, Enum):
    APPROVED = "approved"           # Applied as proposed
    SCALED = "scaled"               # Applied with deltas scaled by legitimacy
    DROPPED = "dropped"             # Scaled below the meaningful-impact floor


class GateDecision(BaseModel):
    """Outcome of running one cycle's interventions through the legitimacy gate."""

    verdict: GateVerdict
    overall_legitimacy: float
    influence_cap: float
    scale: float = Field(ge=0.0, le=1.0)
    approved: List[Intervention] = []
    dropped: List[str] = []                 # Intervention ids
    decided_at: datetime = Field(default_factory=datetime.utcnow)
