"""Black swan and dispatcher event records."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class BlackSwanEventType(BaseModel):
    """Catalog entry for a rare, high-impact shock."""
    name: str
    probability: float = Field(ge=0.0, le=1.0)      # Base per-cycle probability
    impact: Dict[str, Dict[str, float]]             # system -> field -> signed delta
    duration: int                                   # Cycles the event stays active


class BlackSwanEvent(BaseModel):
    """A fired instance of a BlackSwanEventType."""
    id: str
    name: str
    type: str = "black_swan"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    cycle_triggered: int
    impact: Dict[str, Dict[str, float]]             # Already scaled by severity
    duration: int
    remaining_duration: int
    severity: float


class SimulationEvent(BaseModel):
    """Message routed through the EventDispatcher."""
    type: str                                       # "black_swan" | "system_alert" | "intervention" | ...
    cycle: Optional[int] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    payload: dict = {}
