"""
Introspection Engine — the machine watching itself.

Scores how well beliefs, emotions and actions agree, records insights when
they don't or when the world moves sharply, and keeps a small self-model.
Outputs are reported only; nothing here feeds back into the other engines.
"""

from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from civ_kernel.models.cycle import (
    BehavioralRecommendation,
    GoalRealignment,
    IntrospectionActions,
    SelfAdjustment,
    UpdateResult,
)
from civ_kernel.models.machine import (
    BeliefSystemState,
    EmotionState,
    Insight,
    InterventionState,
    IntrospectionRecord,
    IntrospectionState,
    PredictionState,
)
from civ_kernel.models.perception import DerivedMetrics
from civ_kernel.utils import clamp, diff_scalars, mean

MAX_HISTORY = 50
LOW_ALIGNMENT = 0.5
LARGE_WORLD_CHANGE = 0.1
HIGH_DISSONANCE = 0.6


class IntrospectionEngine:

    def default_state(self) -> IntrospectionState:
        return IntrospectionState()

    def update(
        self,
        current: IntrospectionState,
        beliefs: BeliefSystemState,
        emotions: EmotionState,
        predictions: PredictionState,
        interventions: InterventionState,
        derived: DerivedMetrics,
        deltas: Dict[str, Dict[str, float]],
        world_entropy: float,
        cycle: int,
        rng: np.random.Generator,
        timestamp: Optional[datetime] = None,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)
        actions = IntrospectionActions()

        alignment = self.check_internal_consistency(beliefs, emotions, interventions)
        state.self_consistency = clamp(
            state.self_consistency * 0.8 + mean(alignment.values()) * 0.2, 0.0, 1.0
        )

        actions.insights = self._generate_insights(state, alignment, deltas)
        novelty = self._novelty(actions.insights, state.introspection_history)
        insightfulness = clamp(
            mean((i.significance for i in actions.insights), default=0.0), 0.0, 1.0
        )

        state.self_awareness = clamp(
            state.self_awareness * 0.9
            + (state.self_consistency * 0.5 + state.metacognitive_awareness * 0.5) * 0.1,
            0.1, 1.0,
        )
        state.reflection_depth = clamp(
            state.reflection_depth * 0.9
            + (state.cognitive_dissonance * 0.5 + novelty * 0.5) * 0.1,
            0.1, 1.0,
        )
        state.cognitive_dissonance = clamp(
            abs(beliefs.confidence - interventions.success_rate) * 0.3
            + abs(emotions.regulation - interventions.initiative_level) * 0.2
            + abs(predictions.accuracy - 0.7) * 0.5
            + rng.uniform(-0.05, 0.05),
            0.05, 0.95,
        )
        state.learning_rate = clamp(
            state.learning_rate * 0.9 + insightfulness * 0.1, 0.01, 0.5
        )
        state.insight_generation_rate = clamp(
            state.insight_generation_rate * 0.9 + min(1.0, len(actions.insights) / 5) * 0.1,
            0.0, 1.0,
        )
        state.metacognitive_awareness = clamp(
            state.metacognitive_awareness * 0.95
            + (state.self_awareness * 0.5 + state.reflection_depth * 0.5) * 0.05,
            0.1, 1.0,
        )

        actions.self_adjustments = self._self_adjustments(state)
        actions.goal_realignments = self._goal_realignments(derived)
        actions.behavioral_recommendations = self._behavioral_recommendations(
            state, world_entropy
        )
        self._update_self_model(state, beliefs, emotions, predictions, interventions, actions)

        record = IntrospectionRecord(
            cycle=cycle,
            timestamp=timestamp or datetime.utcnow(),
            self_awareness=state.self_awareness,
            reflection_depth=state.reflection_depth,
            cognitive_dissonance=state.cognitive_dissonance,
            self_consistency=state.self_consistency,
            insights=actions.insights,
            self_assessment={
                "novelty": novelty,
                "insightfulness": insightfulness,
                **alignment,
            },
        )
        state.introspection_history = (state.introspection_history + [record])[-MAX_HISTORY:]

        return UpdateResult(state, diff_scalars(current, state), actions)

    def check_internal_consistency(
        self,
        beliefs: BeliefSystemState,
        emotions: EmotionState,
        interventions: InterventionState,
    ) -> Dict[str, float]:
        """Pairwise agreement between belief confidence, emotional control and initiative."""
        return {
            "belief_emotion_alignment": 1 - abs(beliefs.confidence - emotions.regulation),
            "belief_action_alignment": 1 - abs(beliefs.confidence - interventions.initiative_level),
            "emotion_action_alignment": 1 - abs(emotions.regulation - interventions.initiative_level),
        }

    def _generate_insights(self, state, alignment, deltas) -> List[Insight]:
        insights = []
        for name, score in alignment.items():
            if score < LOW_ALIGNMENT:
                insights.append(Insight(
                    type="consistency_issue",
                    description=f"Low {name.replace('_', ' ')} ({score:.2f})",
                    significance=1 - score,
                    suggested_action="realign internal models",
                ))

        for system, params in deltas.items():
            for param, delta in params.items():
                if abs(delta) > LARGE_WORLD_CHANGE:
                    insights.append(Insight(
                        type="world_observation",
                        description=f"Significant change in {system}.{param}: {delta:+.3f}",
                        significance=min(1.0, abs(delta)),
                        suggested_action=f"monitor {system}",
                    ))

        if state.cognitive_dissonance > HIGH_DISSONANCE or state.self_consistency < LOW_ALIGNMENT:
            insights.append(Insight(
                type="self_performance",
                description="Internal state is conflicted",
                significance=max(state.cognitive_dissonance, 1 - state.self_consistency),
                suggested_action="reflect before acting",
            ))
        return insights

    def _novelty(self, insights, history) -> float:
        if not insights or not history:
            return 0.5
        seen = {i.description for i in history[-1].insights}
        fresh = [i for i in insights if i.description not in seen]
        return len(fresh) / len(insights)

    def _self_adjustments(self, state) -> List[SelfAdjustment]:
        adjustments = []
        if state.cognitive_dissonance > HIGH_DISSONANCE:
            adjustments.append(SelfAdjustment(
                target="belief_system",
                adjustment="reduce_confidence",
                reason="high cognitive dissonance",
                magnitude=state.cognitive_dissonance - HIGH_DISSONANCE,
            ))
        if state.self_consistency < LOW_ALIGNMENT:
            adjustments.append(SelfAdjustment(
                target="emotion_system",
                adjustment="increase_regulation",
                reason="low self consistency",
                magnitude=LOW_ALIGNMENT - state.self_consistency,
            ))
        return adjustments

    def _goal_realignments(self, derived: DerivedMetrics) -> List[GoalRealignment]:
        if derived.systemic_risk > 0.5:
            return [GoalRealignment(
                goal_type="stability",
                suggested_change="Prioritise stability while systemic risk is elevated",
                confidence=derived.systemic_risk,
            )]
        return []

    def _behavioral_recommendations(self, state, world_entropy) -> List[BehavioralRecommendation]:
        recommendations = []
        if state.cognitive_dissonance > HIGH_DISSONANCE:
            recommendations.append(BehavioralRecommendation(
                behavior="reflective_pause",
                urgency="high",
                reason="cognitive dissonance above 0.6",
                duration=2,
            ))
        if state.self_awareness < 0.5:
            recommendations.append(BehavioralRecommendation(
                behavior="increased_monitoring",
                urgency="medium",
                reason="self awareness below 0.5",
                duration=5,
            ))
        if world_entropy > 0.7:
            recommendations.append(BehavioralRecommendation(
                behavior="stabilizing_interventions",
                urgency="high",
                reason="world entropy above 0.7",
                duration=3,
            ))
        return recommendations

    def _update_self_model(self, state, beliefs, emotions, predictions, interventions, actions):
        model = state.self_model
        model.beliefs = {
            "prediction_accuracy": predictions.accuracy,
            "belief_confidence": beliefs.confidence,
        }
        model.preferences = {
            "exploration": emotions.exploration.curiosity - emotions.exploration.caution,
            "control": emotions.control.dominance - emotions.control.passivity,
            "stability": emotions.stability.risk_seeking - emotions.stability.preservation,
        }
        model.capabilities = {
            "prediction": predictions.accuracy,
            "intervention": interventions.success_rate,
            "self_awareness": state.self_awareness,
        }
        model.limitations = {
            "cognitive_dissonance": state.cognitive_dissonance,
            "inconsistency": 1 - state.self_consistency,
        }
        if actions.goal_realignments:
            model.goals = [g.goal_type for g in actions.goal_realignments]
