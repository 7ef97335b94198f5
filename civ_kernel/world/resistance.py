"""Resistance subsystem — how strongly society pushes back against change."""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import ResistanceState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars

NETWORK_PRESSURE = {
    "status_quo_preservers": 0.3 * 0.03,
    "risk_averse_individuals": 0.3 * 0.04,
}

ACCEPTANCE_NOISE_HIGH = {
    "familiarity": 0.02,
    "trust": 0.03,
    "perceived_benefit": 0.03,
    "social_proof": 0.02,
}


class ResistanceSystem:
    """Per-cycle transition function for ResistanceState."""

    name = "resistance"

    def default_state(self) -> ResistanceState:
        return ResistanceState()

    def update(
        self,
        current: ResistanceState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        r = current.model_copy(deep=True)

        # Pressures from last cycle's snapshot; the fallbacks match a
        # default world.
        change_pressure = 0.1
        innovation_pressure = 0.1
        technology_pressure = 0.05
        external_pressure = 0.08
        policy_pressure = 0.3
        if previous is not None:
            change_pressure = previous.entropy.current
            innovation_pressure = previous.technology.innovation_rate * 2
            technology_pressure = previous.technology.innovation_rate
            external_pressure = (1 - previous.stability.overall) * 0.4
            policy_pressure = 1 - previous.stability.political

        r.to_change = clamp(
            r.to_change * 0.95 + change_pressure * 0.05 + rng.uniform(-0.02, 0.03), 0.05, 0.95
        )
        r.to_innovation = clamp(
            r.to_innovation * 0.95 + innovation_pressure * 0.08 + rng.uniform(-0.03, 0.03),
            0.05, 0.95,
        )
        r.to_technology = clamp(
            r.to_technology * 0.97 + technology_pressure * 0.05 + rng.uniform(-0.02, 0.02),
            0.05, 0.9,
        )
        r.to_external_influence = clamp(
            r.to_external_influence * 0.96 + external_pressure * 0.06 + rng.uniform(-0.02, 0.03),
            0.05, 0.95,
        )
        r.to_government_policy = clamp(
            r.to_government_policy * 0.95 + policy_pressure * 0.07 + rng.uniform(-0.02, 0.03),
            0.05, 0.95,
        )

        r.adaptive_capacity = clamp(
            r.adaptive_capacity * 0.97
            - (r.to_change * 0.1 + r.to_innovation * 0.1) * 0.1
            + rng.uniform(-0.01, 0.02),
            0.05, 0.95,
        )
        r.institutional_rigidity = clamp(
            r.institutional_rigidity * 0.98
            + (r.to_change * 0.3 + r.to_innovation * 0.2) * 0.05
            + rng.uniform(-0.01, 0.015),
            0.1, 0.9,
        )
        traditionalists = r.resistance_networks.get("traditionalists", 0.2)
        r.cultural_conservatism = clamp(
            r.cultural_conservatism * 0.98
            + (r.to_change * 0.2 + traditionalists) * 0.05
            + rng.uniform(-0.01, 0.015),
            0.1, 0.95,
        )

        networks = {}
        for group, value in r.resistance_networks.items():
            pressure = NETWORK_PRESSURE.get(group, 0.0)
            if group == "change_averse_groups":
                pressure = r.to_change * 0.05
            networks[group] = clamp(
                value * 0.99 + pressure + rng.uniform(-0.01, 0.02), 0.05, 0.8
            )
        r.resistance_networks = networks

        institutional_trust = 0.6
        if previous is not None:
            institutional_trust = previous.stability.public_trust
        factors = {}
        for factor, value in r.acceptance_factors.items():
            boost = 0.0
            if factor == "trust":
                boost = institutional_trust * 0.03
            elif factor == "social_proof":
                boost = institutional_trust * 0.02
            factors[factor] = clamp(
                value * 0.98 + boost
                + rng.uniform(-0.01, ACCEPTANCE_NOISE_HIGH.get(factor, 0.02)),
                0.05, 0.95,
            )
        r.acceptance_factors = factors

        r.overall = (
            r.to_change * 0.25
            + r.to_innovation * 0.25
            + r.to_technology * 0.2
            + r.to_external_influence * 0.15
            + r.to_government_policy * 0.15
        )

        return UpdateResult(r, diff_scalars(current, r))
