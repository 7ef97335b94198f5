"""Causal graph edges, threshold rules and the records they produce."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from civ_kernel.models.paths import FieldPath


class CausalEdge(BaseModel):
    """Directed, weighted influence of one world field on another."""

    model_config = ConfigDict(frozen=True)

    source: FieldPath
    target: FieldPath
    weight: float                           # Signed


class CausalEffect(BaseModel):
    source: str
    target: str
    weight: float
    original_change: float
    propagated_effect: float


class ThresholdRule(BaseModel):
    """Bounds that trigger a named alert when crossed."""
    path: FieldPath
    min: Optional[float] = None
    max: Optional[float] = None
    trigger: str

    @model_validator(mode="after")
    def _needs_a_bound(self) -> "ThresholdRule":
        if self.min is None and self.max is None:
            raise ValueError("threshold rule needs a min or a max")
        return self


class ThresholdViolationType(str, Enum):
    MIN = "min_violation"
    MAX = "max_violation"


class ThresholdViolation(BaseModel):
    path: str
    value: float
    threshold: float
    type: ThresholdViolationType
    trigger: str
