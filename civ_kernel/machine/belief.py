"""
Belief Engine — what the machine holds true about the world.

One belief per "system.param" topic. Perceived changes above a small floor
form or reinforce beliefs; untouched beliefs fade and are eventually pruned.
"""

from typing import Dict, List

import numpy as np

from civ_kernel.models.cycle import BeliefActions, BeliefFormation, UpdateResult
from civ_kernel.models.machine import Belief, BeliefSystemState
from civ_kernel.utils import clamp, diff_scalars, mean

MIN_SIGNIFICANT_CHANGE = 0.01
DECAY = 0.99
PRUNE_BELOW = 0.1


class BeliefEngine:

    def default_state(self) -> BeliefSystemState:
        return BeliefSystemState()

    def update(
        self,
        current: BeliefSystemState,
        deltas: Dict[str, Dict[str, float]],
        cycle: int,
        rng: np.random.Generator,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)
        actions = BeliefActions()
        beliefs: Dict[str, Belief] = {b.topic: b for b in state.beliefs}
        touched = set()

        for system, params in deltas.items():
            for param, delta in params.items():
                if abs(delta) <= MIN_SIGNIFICANT_CHANGE:
                    continue
                topic = f"{system}.{param}"
                touched.add(topic)
                existing = beliefs.get(topic)
                if existing is None:
                    belief = Belief(
                        topic=topic,
                        strength=delta,
                        confidence=clamp(abs(delta), 0.1, 1.0),
                        formed_at=cycle,
                        last_updated=cycle,
                        category=system,
                    )
                    beliefs[topic] = belief
                    actions.belief_formations.append(BeliefFormation(
                        topic=topic, strength=belief.strength, confidence=belief.confidence,
                    ))
                else:
                    existing.confidence = clamp(
                        existing.confidence * 0.7 + (1 - abs(delta)) * 0.3, 0.0, 1.0
                    )
                    existing.strength += delta * 0.1
                    existing.last_updated = cycle
                    actions.belief_reinforcements += 1

        for topic, belief in beliefs.items():
            if topic not in touched:
                belief.confidence *= DECAY

        self._apply_category_coherence(list(beliefs.values()))

        kept = [b for b in beliefs.values() if b.confidence >= PRUNE_BELOW]
        actions.belief_drops = len(beliefs) - len(kept)

        active = [b for b in kept if b.confidence > state.certainty_threshold]
        previous_count = max(1, len(current.beliefs))
        state.coherence = clamp(
            state.coherence * 0.8 + (len(active) / previous_count) * 0.2, 0.1, 1.0
        )
        state.confidence = clamp(
            mean((b.confidence for b in active), default=0.5) * 0.6
            + state.coherence * 0.4
            + rng.uniform(-0.05, 0.05),
            0.1, 1.0,
        )
        volatility = mean(abs(d) for params in deltas.values() for d in params.values())
        state.update_rate = clamp(
            state.update_rate * 0.9 + min(0.5, volatility * 0.1) * 0.1, 0.01, 0.5
        )
        state.beliefs = kept

        return UpdateResult(state, diff_scalars(current, state), actions)

    def _apply_category_coherence(self, beliefs: List[Belief]) -> None:
        """Pull each belief's strength towards its category average."""
        by_category: Dict[str, List[Belief]] = {}
        for belief in beliefs:
            by_category.setdefault(belief.category, []).append(belief)
        for members in by_category.values():
            if len(members) < 2:
                continue
            average = mean(b.strength for b in members)
            for belief in members:
                belief.strength = belief.strength * 0.8 + average * 0.2
