"""
Legitimacy Gate — the last word on what the machine may do to the world.

Behavioral Contract:
- Accepts the cycle's selected interventions and the current LegitimacyState
- When legitimacy is below the machine influence cap, scales every delta by
  the legitimacy score
- Drops interventions whose scaled deltas are all negligible
- Never alters legitimacy itself
"""

import logging
from typing import List, Optional

from civ_kernel.models.governance import GateDecision, GateVerdict
from civ_kernel.models.machine import Intervention
from civ_kernel.models.world import LegitimacyState

logger = logging.getLogger(__name__)

DEFAULT_MIN_IMPACT = 0.001


class LegitimacyGate:

    def __init__(self, min_meaningful_impact: Optional[float] = None):
        self.min_meaningful_impact = (
            DEFAULT_MIN_IMPACT if min_meaningful_impact is None else min_meaningful_impact
        )

    def evaluate(
        self, interventions: List[Intervention], legitimacy: LegitimacyState
    ) -> GateDecision:
        scaled = legitimacy.overall_legitimacy < legitimacy.machine_influence_cap
        scale = legitimacy.overall_legitimacy if scaled else 1.0

        approved: List[Intervention] = []
        dropped: List[str] = []
        for intervention in interventions:
            candidate = self._scale(intervention, scale)
            if all(abs(v) < self.min_meaningful_impact for v in candidate.changes.values()):
                dropped.append(intervention.id)
                logger.info(
                    "Legitimacy gate dropped %s (legitimacy %.3f)",
                    intervention.id, legitimacy.overall_legitimacy,
                )
                continue
            approved.append(candidate)

        if interventions and not approved:
            verdict = GateVerdict.DROPPED
        elif scaled:
            verdict = GateVerdict.SCALED
        else:
            verdict = GateVerdict.APPROVED

        return GateDecision(
            verdict=verdict,
            overall_legitimacy=legitimacy.overall_legitimacy,
            influence_cap=legitimacy.machine_influence_cap,
            scale=scale,
            approved=approved,
            dropped=dropped,
        )

    def _scale(self, intervention: Intervention, scale: float) -> Intervention:
        if scale == 1.0:
            return intervention.model_copy(deep=True)
        return intervention.model_copy(update={
            "changes": {name: delta * scale for name, delta in intervention.changes.items()}
        })
