"""Tests for the Prediction Engine."""

from datetime import datetime

import numpy as np
import pytest

from civ_kernel.machine.prediction import (
    MAX_DATA_POINTS,
    PredictionEngine,
    fit_linear_trend,
    risk_level,
)
from civ_kernel.models.machine import DataPoint, Forecast, ForecastGroup, PredictionState


def _points(values, start=0):
    return [
        DataPoint(cycle=start + i, value=v, timestamp=datetime.utcnow())
        for i, v in enumerate(values)
    ]


class TestLinearFit:
    def test_exact_line(self):
        params = fit_linear_trend(_points([1.0, 3.0, 5.0, 7.0]))
        assert params.slope == pytest.approx(2.0)
        assert params.intercept == pytest.approx(1.0)
        assert params.variance == pytest.approx(0.0)

    def test_single_point(self):
        params = fit_linear_trend(_points([0.4]))
        assert params.slope == 0.0
        assert params.intercept == 0.4

    def test_noisy_line_has_variance(self):
        params = fit_linear_trend(_points([0.0, 1.0, 0.0, 1.0]))
        assert params.variance > 0.0


class TestRiskLevel:
    def test_bands(self):
        assert risk_level(0.2) == "high"
        assert risk_level(0.5) == "medium"
        assert risk_level(0.7) == "low"


class TestPredictionEngine:
    def setup_method(self):
        self.engine = PredictionEngine()
        self.rng = np.random.default_rng(0)

    def test_model_created_per_parameter(self):
        result = self.engine.update(
            PredictionState(), {"economy": {"inflation": 0.01, "employment": -0.02}}, 0, self.rng
        )
        names = {m.name for m in result.new_state.models}
        assert names == {"economy.inflation", "economy.employment"}
        assert {u.type for u in result.actions.model_updates} == {"created"}
        assert result.new_state.models[0].last_updated == 0

    def test_data_points_capped(self):
        state = PredictionState()
        for cycle in range(MAX_DATA_POINTS + 10):
            state = self.engine.update(
                state, {"entropy": {"current": 0.01 * cycle}}, cycle, self.rng
            ).new_state
        model = state.models[0]
        assert len(model.data_points) == MAX_DATA_POINTS
        assert model.data_points[0].cycle == 10
        assert model.parameters.slope == pytest.approx(0.01)

    def test_slope_change_reported(self):
        state = self.engine.update(
            PredictionState(), {"entropy": {"current": 0.0}}, 0, self.rng
        ).new_state
        result = self.engine.update(state, {"entropy": {"current": 0.5}}, 1, self.rng)
        update = result.actions.model_updates[0]
        assert update.type == "updated"
        assert update.new_slope == pytest.approx(0.5)

    def test_forecast_horizon_and_confidence_decay(self):
        result = self.engine.update(
            PredictionState(prediction_horizon=4), {"entropy": {"current": 0.1}}, 5, self.rng
        )
        group = result.new_state.prediction_queue[0]
        assert [f.cycle for f in group.predictions] == [6, 7, 8, 9]
        confidence = result.new_state.confidence
        assert group.predictions[0].confidence == pytest.approx(confidence * (1 - 0.25 * 0.5))
        assert group.predictions[-1].confidence == pytest.approx(confidence * 0.5)

    def test_risky_forecasts_flagged(self):
        result = self.engine.update(
            PredictionState(), {"economy": {"resources": 40.0}}, 1, self.rng
        )
        risks = result.actions.risk_assessments
        assert len(risks) == 10
        assert all(r.model == "economy.resources" for r in risks)

    def test_forecast_accuracy_scored_against_last_cycle(self):
        queue = [ForecastGroup(
            model="economy.inflation",
            predictions=[Forecast(cycle=3, value=0.02, model="economy.inflation", confidence=0.8)],
            confidence=0.8,
        )]
        state = PredictionState(prediction_queue=queue, forecast_accuracy=0.5)
        result = self.engine.update(state, {"economy": {"inflation": 0.02}}, 3, self.rng)
        assert result.new_state.forecast_accuracy == pytest.approx(0.5 * 0.9 + 1.0 * 0.1)

    def test_forecast_accuracy_unchanged_without_forecasts(self):
        result = self.engine.update(
            PredictionState(forecast_accuracy=0.42), {"economy": {"inflation": 0.02}}, 3, self.rng
        )
        assert result.new_state.forecast_accuracy == 0.42

    def test_scalars_bounded(self):
        state = PredictionState()
        for cycle in range(20):
            state = self.engine.update(
                state, {"economy": {"inflation": 0.001 * cycle}}, cycle, self.rng
            ).new_state
        assert 0.1 <= state.accuracy <= 1.0
        assert 0.1 <= state.confidence <= 1.0
