"""Stability subsystem — political, social and economic order."""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import StabilityState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars


class StabilitySystem:
    """Per-cycle transition function for StabilityState."""

    name = "stability"

    def default_state(self) -> StabilityState:
        return StabilityState()

    def update(
        self,
        current: StabilityState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        s = current.model_copy(deep=True)

        s.political = clamp(
            s.political * 0.9
            + (s.economic * 0.2 + s.social * 0.2 + s.confidence_index * 0.1
               + rng.uniform(-0.05, 0.05)) * 0.1,
            0.05, 0.95,
        )
        s.social = clamp(
            s.social * 0.9
            + (s.cohesion * 0.3 + s.public_trust * 0.2 + (1 - s.stress_level) * 0.2
               + rng.uniform(-0.05, 0.05)) * 0.1,
            0.05, 0.95,
        )
        s.economic = clamp(
            s.economic * 0.9
            + (s.confidence_index * 0.3 + s.institutional_strength * 0.2
               + rng.uniform(-0.05, 0.05)) * 0.1,
            0.05, 0.95,
        )

        # Uses last cycle's cohesion.
        s.overall = s.political * 0.3 + s.social * 0.25 + s.economic * 0.25 + s.cohesion * 0.2

        s.cohesion = clamp(
            s.cohesion * 0.9 + (s.political * 0.2 + s.social * 0.3) * 0.1
            + rng.uniform(-0.03, 0.03),
            0.1, 0.9,
        )
        s.volatility = clamp(
            s.volatility * 0.8 + (1 - s.overall) * 0.2 + rng.uniform(-0.02, 0.02),
            0.05, 0.8,
        )
        s.resilience = clamp(
            s.resilience * 0.95
            + (s.institutional_strength * 0.4 + s.overall * 0.3) * 0.05
            + rng.uniform(-0.01, 0.02),
            0.1, 0.9,
        )
        s.stress_level = clamp(
            s.stress_level * 0.8 + (1 - s.overall) * 0.2 + rng.uniform(-0.03, 0.03),
            0.05, 0.9,
        )
        s.confidence_index = clamp(
            s.confidence_index * 0.85
            + (s.overall * 0.4 + s.institutional_strength * 0.25) * 0.15
            + rng.uniform(-0.04, 0.04),
            0.1, 0.95,
        )
        s.institutional_strength = clamp(
            s.institutional_strength * 0.95
            + (s.political * 0.4 + s.resilience * 0.3) * 0.05
            + rng.uniform(-0.02, 0.02),
            0.1, 0.95,
        )
        s.public_trust = clamp(
            s.public_trust * 0.9
            + (s.social * 0.4 + s.institutional_strength * 0.3) * 0.1
            + rng.uniform(-0.03, 0.03),
            0.1, 0.9,
        )

        return UpdateResult(s, diff_scalars(current, s))
