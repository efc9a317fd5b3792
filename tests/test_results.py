"""Tests for aggregating iteration outcomes."""

import math

import pytest

from engine.results import aggregate_results, percentile_summary, yearly_bands
from models import IterationOutcome


def outcome(index, ending, success=True, path=None, **kwargs):
    return IterationOutcome(
        index=index,
        success=success,
        ending_balance=ending,
        balance_path=tuple(path) if path is not None else (ending, ending),
        **kwargs,
    )


class TestPercentiles:
    def test_linear_interpolation(self):
        points = percentile_summary([0, 100, 200, 300, 400])
        assert points == pytest.approx({10: 40, 25: 100, 50: 200, 75: 300, 90: 360})

    def test_empty(self):
        assert all(math.isnan(v) for v in percentile_summary([]).values())


class TestYearlyBands:
    def test_bands_by_year(self):
        outcomes = [outcome(i, 0, path=[i * 10.0, i * 20.0]) for i in range(11)]
        bands = yearly_bands(outcomes, 2026)
        assert list(bands.index) == [2026, 2027]
        assert list(bands.columns) == ["p10", "p25", "p50", "p75", "p90"]
        assert bands.loc[2026, "p50"] == pytest.approx(50)
        assert bands.loc[2027, "p90"] == pytest.approx(180)

    def test_no_paths(self):
        assert yearly_bands([], 2026).empty


class TestAggregate:
    def test_counts_and_rates(self):
        outcomes = [
            outcome(0, 500_000),
            outcome(1, 0.0, success=False, depletion_year=2040, depletion_age=80),
            outcome(2, 300_000, had_ltc_episode=True, ltc_total_cost=150_000, ltc_out_of_pocket=250_000),
            outcome(3, 0.0, success=False, depletion_year=2044, depletion_age=84),
        ]
        result = aggregate_results(outcomes, 2026)
        assert result.success_probability == 0.5
        assert (result.successful_iterations, result.failed_iterations) == (2, 2)
        assert result.median_ending_balance == pytest.approx(150_000)
        assert result.mean_ending_balance == pytest.approx(200_000)
        assert result.median_depletion_age == pytest.approx(82)
        assert result.ltc_episode_rate == pytest.approx(0.25)
        assert result.mean_ltc_cost == pytest.approx(37_500)
        assert result.medicaid_risk_rate == pytest.approx(0.25)
        assert result.outcomes is None

    def test_excluded_left_out_of_rates(self):
        outcomes = [
            outcome(0, 100.0),
            outcome(1, float("nan"), success=False, path=(), excluded=True, excluded_reason="FloatingPointError()"),
        ]
        result = aggregate_results(outcomes, 2026, keep_outcomes=True)
        assert result.total_iterations == 2
        assert result.excluded_iterations == 1
        assert result.success_probability == 1.0
        assert result.median_ending_balance == 100.0
        assert len(result.outcomes) == 2

    def test_all_excluded(self):
        bad = IterationOutcome(index=0, success=False, ending_balance=float("nan"), excluded=True)
        result = aggregate_results([bad], 2026)
        assert result.success_probability == 0.0
        assert math.isnan(result.mean_ending_balance)
        assert result.yearly_bands.empty

    def test_summary(self):
        result = aggregate_results([outcome(0, 10.0)], 2026, expected_ltc_cost=1_234.0)
        summary = result.summary()
        assert summary["success_probability"] == 1.0
        assert result.expected_ltc_cost == 1_234.0
