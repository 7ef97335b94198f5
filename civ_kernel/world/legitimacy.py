"""
Legitimacy subsystem — how much of the machine's steering society accepts.

Unlike the primary systems, legitimacy runs after them within the same cycle:
it reads the freshly updated subsystems, their deltas, and the feedback left
by the machine's previous cycle (which interventions survived the gate, how
accurate its predictions were).
"""

import logging
from typing import Dict, Optional

import numpy as np

from civ_kernel.models.cycle import MachineFeedback, UpdateResult
from civ_kernel.models.paths import is_magnitude_field
from civ_kernel.models.world import LegitimacyState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars, mean

logger = logging.getLogger(__name__)

MAX_TREND_LENGTH = 50


def influence_cap_for(legitimacy: float) -> float:
    """Machine influence cap by legitimacy band."""
    if legitimacy < 0.3:
        return 0.3
    if legitimacy < 0.5:
        return 0.5
    if legitimacy < 0.7:
        return 0.7
    return 0.9


def legitimacy_phase(state: LegitimacyState) -> str:
    if state.overall_legitimacy > 0.7:
        return "Strong"
    if state.overall_legitimacy > 0.5:
        return "Moderate"
    if state.overall_legitimacy > 0.3:
        return "Weak"
    return "Crisis"


def is_in_crisis(state: LegitimacyState) -> bool:
    return state.overall_legitimacy < state.legitimacy_crisis_threshold


class LegitimacySystem:
    """Per-cycle transition function for LegitimacyState."""

    name = "legitimacy"

    def default_state(self) -> LegitimacyState:
        return LegitimacyState()

    def update(
        self,
        current: LegitimacyState,
        feedback: Optional[MachineFeedback],
        systems: WorldSystems,
        changes: Dict[str, Dict[str, float]],
        cycle: int,
        rng: np.random.Generator,
    ) -> UpdateResult:
        feedback = feedback or MachineFeedback()
        s = current.model_copy(deep=True)

        s.public_acceptance_of_machine = self._public_acceptance(
            s.public_acceptance_of_machine, feedback, changes
        )
        s.trust_in_automation = self._trust_in_automation(
            s.trust_in_automation, feedback, systems
        )
        s.ideological_split = self._ideological_split(s.ideological_split, changes, rng)
        s.institutional_support = self._institutional_support(
            s.institutional_support, changes
        )
        s.performance_legitimacy = self._performance_legitimacy(
            s.performance_legitimacy, feedback
        )

        s.overall_legitimacy = clamp(
            s.public_acceptance_of_machine * 0.25
            + s.trust_in_automation * 0.2
            + (1 - s.ideological_split) * 0.2
            + s.institutional_support * 0.2
            + s.performance_legitimacy * 0.15,
            0.0, 1.0,
        )
        s.machine_influence_cap = influence_cap_for(s.overall_legitimacy)
        s.rebellion_risk = self._rebellion_risk(s, changes)

        s.legitimacy_trend = (s.legitimacy_trend + [s.overall_legitimacy])[-MAX_TREND_LENGTH:]

        if is_in_crisis(s):
            logger.warning(
                "Legitimacy crisis at cycle %d: overall %.3f below %.3f",
                cycle, s.overall_legitimacy, s.legitimacy_crisis_threshold,
            )

        return UpdateResult(s, diff_scalars(current, s))

    def _public_acceptance(self, value, feedback, changes):
        value += feedback.success_rate * 0.05
        for system, fields in changes.items():
            for name, delta in fields.items():
                if is_magnitude_field(system, name):
                    continue
                if delta < -0.1:
                    value -= abs(delta) * 0.02
        value = value * 0.98 + 0.5 * 0.02
        return clamp(value, 0.0, 1.0)

    def _trust_in_automation(self, value, feedback, systems):
        value += (feedback.prediction_accuracy - 0.7) * 0.05
        if systems.entropy.current > 0.8:
            value -= 0.1
        value = value * 0.98 + 0.4 * 0.02
        return clamp(value, 0.0, 1.0)

    def _ideological_split(self, value, changes, rng):
        stability_change = mean(changes.get("stability", {}).values())
        if stability_change < 0:
            value += abs(stability_change) * 0.1
        value = value * 0.99 + 0.3 * 0.01 + rng.uniform(-0.01, 0.01)
        return clamp(value, 0.0, 1.0)

    def _institutional_support(self, value, changes):
        stability_delta = changes.get("stability", {}).get("overall", 0.0)
        if stability_delta > 0:
            value += stability_delta * 0.05
        confidence_delta = changes.get("economy", {}).get("market_confidence", 0.0)
        if confidence_delta > 0:
            value += confidence_delta * 0.03
        value = value * 0.99 + 0.6 * 0.01
        return clamp(value, 0.0, 1.0)

    def _performance_legitimacy(self, value, feedback):
        for intervention in feedback.applied_interventions:
            for delta in intervention.changes.values():
                if delta > 0:
                    value += delta * 0.02
                else:
                    value += delta * 0.01
        value = value * 0.98 + 0.5 * 0.02
        return clamp(value, 0.0, 1.0)

    def _rebellion_risk(self, s, changes):
        risk = 0.1
        if s.overall_legitimacy < 0.3:
            risk += (0.3 - s.overall_legitimacy) * 3
        risk += s.ideological_split * 0.3
        stability_delta = changes.get("stability", {}).get("overall", 0.0)
        if stability_delta < 0:
            risk += abs(stability_delta) * 0.2
        return clamp(risk, 0.0, 1.0)
