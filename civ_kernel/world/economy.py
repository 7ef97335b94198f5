"""
Economy subsystem — growth, resources, trade, prices and confidence.

Each cycle blends the previous values with small random shocks. Cross-system
influence arrives later through the causal graph.
"""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import EconomyState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars


class EconomySystem:
    """Per-cycle transition function for EconomyState."""

    name = "economy"

    def default_state(self) -> EconomyState:
        return EconomyState()

    def update(
        self,
        current: EconomyState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)

        state.growth_rate = clamp(
            state.growth_rate + rng.uniform(-0.02, 0.02) * 0.1, -0.1, 0.1
        )
        state.resources = max(0.0, state.resources * (1 + state.growth_rate))

        trade_factor = 0.95 + state.market_confidence * 0.1
        state.trade_volume = max(
            0.0, state.trade_volume * trade_factor + rng.uniform(-50, 50)
        )

        inflation_pressure = max(0.0, state.growth_rate * 0.5)
        state.inflation = clamp(
            state.inflation * 0.9 + inflation_pressure * 0.1 + rng.uniform(-0.005, 0.005),
            0.0, 0.2,
        )

        state.employment = clamp(
            state.employment
            + state.growth_rate * 0.1
            + (state.productivity - 1) * 0.05
            + rng.uniform(-0.01, 0.01),
            0.5, 1.0,
        )

        state.productivity = max(
            0.8, state.productivity * (1 + rng.uniform(0.0001, 0.001))
        )

        performance = (
            (state.growth_rate + 0.1) * 0.3
            + (state.employment - 0.8) * 0.3
            + (0.1 - state.inflation) * 0.2
            + (state.productivity - 1) * 0.2
        )
        state.market_confidence = clamp(
            state.market_confidence * 0.8 + performance * 0.2 + rng.uniform(-0.05, 0.05),
            0.0, 1.0,
        )

        return UpdateResult(state, diff_scalars(current, state))
