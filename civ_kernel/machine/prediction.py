"""
Prediction Engine — per-parameter linear trend models.

Each model is refitted by least squares over its last 50 samples, then
extrapolated over the prediction horizon with Gaussian noise drawn from the
model's residual variance.
"""

import math
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from civ_kernel.models.cycle import (
    ModelUpdate,
    PredictionActions,
    RiskAssessment,
    UpdateResult,
)
from civ_kernel.models.machine import (
    DataPoint,
    Forecast,
    ForecastGroup,
    ModelParameters,
    PredictionModel,
    PredictionState,
)
from civ_kernel.utils import clamp, diff_scalars, mean

MAX_DATA_POINTS = 50
SLOPE_CHANGE_REPORTED = 0.01
RISKY_VALUE = 0.5
RISKY_CONFIDENCE = 0.5


def fit_linear_trend(points: List[DataPoint]) -> ModelParameters:
    """Closed-form least squares fit of value against cycle."""
    if len(points) < 2:
        intercept = points[0].value if points else 0.0
        return ModelParameters(slope=0.0, intercept=intercept, variance=0.1)

    x = np.array([p.cycle for p in points], dtype=float)
    y = np.array([p.value for p in points], dtype=float)
    n = len(points)

    denominator = n * np.sum(x * x) - np.sum(x) ** 2
    if denominator == 0:
        slope = 0.0
    else:
        slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominator
    intercept = (np.sum(y) - slope * np.sum(x)) / n
    residuals = y - (slope * x + intercept)
    variance = float(np.mean(residuals ** 2))

    return ModelParameters(slope=float(slope), intercept=float(intercept), variance=variance)


def risk_level(confidence: float) -> str:
    if confidence < 0.3:
        return "high"
    if confidence < 0.6:
        return "medium"
    return "low"


class PredictionEngine:

    def default_state(self) -> PredictionState:
        return PredictionState()

    def update(
        self,
        current: PredictionState,
        deltas: Dict[str, Dict[str, float]],
        cycle: int,
        rng: np.random.Generator,
        timestamp: Optional[datetime] = None,
    ) -> UpdateResult:
        timestamp = timestamp or datetime.utcnow()
        state = current.model_copy(deep=True)
        actions = PredictionActions()
        observed = {
            f"{system}.{param}": delta
            for system, params in deltas.items()
            for param, delta in params.items()
        }

        sample = self._score_forecasts(state.prediction_queue, observed, cycle)
        if sample is not None:
            state.forecast_accuracy = clamp(state.forecast_accuracy * 0.9 + sample * 0.1, 0.1, 1.0)

        models = {m.name: m for m in state.models}
        for name, value in observed.items():
            point = DataPoint(cycle=cycle, value=value, timestamp=timestamp)
            model = models.get(name)
            if model is None:
                models[name] = PredictionModel(
                    name=name,
                    parameters=ModelParameters(slope=0.0, intercept=value, variance=0.1),
                    data_points=[point],
                    last_updated=cycle,
                )
                actions.model_updates.append(ModelUpdate(type="created", model_name=name))
                continue

            model.data_points = (model.data_points + [point])[-MAX_DATA_POINTS:]
            old_slope = model.parameters.slope
            model.parameters = fit_linear_trend(model.data_points)
            model.last_updated = cycle
            if abs(model.parameters.slope - old_slope) > SLOPE_CHANGE_REPORTED:
                actions.model_updates.append(ModelUpdate(
                    type="updated",
                    model_name=name,
                    old_slope=old_slope,
                    new_slope=model.parameters.slope,
                ))
        state.models = list(models.values())

        state.accuracy = clamp(
            state.accuracy * 0.8 + state.forecast_accuracy * 0.2 + rng.uniform(-0.02, 0.02),
            0.1, 1.0,
        )
        state.confidence = clamp(
            state.accuracy * 0.7
            + state.prediction_horizon / 20 * 0.3
            + rng.uniform(-0.05, 0.05),
            0.1, 1.0,
        )

        state.prediction_queue = [self._forecast(state, model, cycle, rng) for model in state.models]
        actions.predictions = state.prediction_queue
        actions.risk_assessments = self._assess_risks(state.prediction_queue)

        return UpdateResult(state, diff_scalars(current, state), actions)

    def _forecast(self, state, model, cycle, rng) -> ForecastGroup:
        params = model.parameters
        spread = math.sqrt(max(params.variance, 0.0))
        horizon = state.prediction_horizon
        forecasts = []
        for i in range(1, horizon + 1):
            future = cycle + i
            forecasts.append(Forecast(
                cycle=future,
                value=params.slope * future + params.intercept + spread * rng.normal(),
                model=model.name,
                confidence=state.confidence * (1 - i / horizon * 0.5),
            ))
        model.prediction_count += 1
        return ForecastGroup(model=model.name, predictions=forecasts, confidence=state.confidence)

    def _score_forecasts(self, queue, observed, cycle) -> Optional[float]:
        """Mean closeness of last cycle's one-step forecasts to what happened."""
        scores = []
        for group in queue:
            if group.model not in observed:
                continue
            for forecast in group.predictions:
                if forecast.cycle == cycle:
                    error = abs(forecast.value - observed[group.model])
                    scores.append(max(0.0, 1 - error))
                    break
        if not scores:
            return None
        return mean(scores)

    def _assess_risks(self, groups: List[ForecastGroup]) -> List[RiskAssessment]:
        risks = []
        for group in groups:
            for forecast in group.predictions:
                if abs(forecast.value) > RISKY_VALUE or forecast.confidence < RISKY_CONFIDENCE:
                    risks.append(RiskAssessment(
                        model=forecast.model,
                        cycle=forecast.cycle,
                        value=forecast.value,
                        confidence=forecast.confidence,
                        risk_level=risk_level(forecast.confidence),
                        description=(
                            f"{forecast.model} forecast {forecast.value:.3f} "
                            f"at cycle {forecast.cycle}"
                        ),
                    ))
        return risks
