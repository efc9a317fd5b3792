"""Tests for LTC transitions, strategies and per-year cost/benefit settlement."""

import numpy as np
import pytest

from engine.ltc_model import (
    STATE_ORDER,
    LTCRiskModel,
    MarkovLTCStrategy,
    SingleEventLTCStrategy,
    annual_incidence,
    cost_escalation,
    draw_cost_multiplier,
    lifetime_probability,
    make_strategy,
    nursing_home_death_probability,
    project_expected_ltc_cost,
    transition_row,
)
from models import InsurancePolicy, LTCState, PersonProfile


def person(**kwargs) -> PersonProfile:
    values = dict(current_age=70, retirement_age=65, life_expectancy=90, birth_year=1956)
    values.update(kwargs)
    return PersonProfile(**values)


class FixedStates:
    """Strategy stand-in with a scripted path and a flat cost."""
    name = "fixed"

    def __init__(self, states, cost=100_000):
        self.states = list(states)
        self.cost = cost

    def simulate_states(self, person, n_years, rng):
        return self.states[:n_years]

    def annual_cost(self, state, jurisdiction):
        return self.cost if state.in_care else 0.0


class TestTransitionRows:
    @pytest.mark.parametrize("state", STATE_ORDER)
    @pytest.mark.parametrize("insured", [False, True])
    def test_rows_are_distributions(self, state, insured):
        for age in (60, 78, 85, 99):
            row = transition_row(state, age, insured, gender="female", health_status="poor")
            assert row.shape == (6,)
            assert (row >= 0).all()
            assert row.sum() == pytest.approx(1.0)

    def test_insured_recover_more_often(self):
        plain = transition_row(LTCState.NEEDS_ASSISTANCE, 80, insured=False)
        insured = transition_row(LTCState.NEEDS_ASSISTANCE, 80, insured=True)
        assert plain[0] == pytest.approx(0.10)
        assert insured[0] == pytest.approx(0.15)

    def test_deceased_is_absorbing(self):
        row = transition_row(LTCState.DECEASED, 80, insured=False)
        assert row[-1] == 1.0

    def test_nursing_home_death_clamped(self):
        assert nursing_home_death_probability(70) == pytest.approx(0.10)
        assert nursing_home_death_probability(85) == pytest.approx(0.20)
        assert nursing_home_death_probability(100) == pytest.approx(0.30)

    def test_incidence_by_gender_and_health(self):
        assert annual_incidence(82, "female", "good") == pytest.approx(annual_incidence(82, "male", "good") * 1.15)
        assert annual_incidence(82, "male", "poor") > annual_incidence(82, "male", "excellent")
        assert annual_incidence(120, "male", "good") == pytest.approx(0.12 * 0.85)


class TestMarkovStrategy:
    def test_override_hazard(self):
        strategy = MarkovLTCStrategy(0.5)
        hazard = strategy._override_hazard(person(current_age=65, life_expectancy=90))
        assert 1 - (1 - hazard) ** 26 == pytest.approx(0.5)

    def test_zero_override_never_needs_care(self):
        strategy = MarkovLTCStrategy(0.0)
        for seed in range(20):
            states = strategy.simulate_states(person(), 21, np.random.default_rng(seed))
            assert not any(s.in_care for s in states)

    def test_certain_override_starts_care_at_65(self):
        strategy = MarkovLTCStrategy(1.0)
        states = strategy.simulate_states(person(current_age=64), 5, np.random.default_rng(0))
        assert states[0] == LTCState.HEALTHY
        assert states[1].in_care

    def test_deceased_never_recovers(self):
        strategy = MarkovLTCStrategy()
        for seed in range(50):
            states = strategy.simulate_states(person(current_age=85, health_status="poor"), 10,
                                              np.random.default_rng(seed))
            if LTCState.DECEASED in states:
                first = states.index(LTCState.DECEASED)
                assert all(s == LTCState.DECEASED for s in states[first:])

    def test_dead_after_life_expectancy(self):
        states = MarkovLTCStrategy().simulate_states(person(life_expectancy=72), 5, np.random.default_rng(1))
        assert states[3:] == [LTCState.DECEASED, LTCState.DECEASED]


class TestSingleEventStrategy:
    def test_lifetime_probability_table(self):
        assert lifetime_probability("good") == pytest.approx(0.48 * 0.85)
        assert lifetime_probability("poor") == pytest.approx(0.95)

    def test_no_episode_at_zero(self):
        strategy = SingleEventLTCStrategy(0.0)
        for seed in range(20):
            assert strategy.sample_episode(person(), np.random.default_rng(seed)) is None

    def test_episode_window(self):
        strategy = SingleEventLTCStrategy(1.0)
        p = person(current_age=45, life_expectancy=85, gender="female")
        for seed in range(50):
            onset, duration = strategy.sample_episode(p, np.random.default_rng(seed))
            assert onset >= 75
            assert duration >= 1
            assert onset + duration - 1 <= p.life_expectancy

    def test_states_at_fixed_level(self):
        strategy = SingleEventLTCStrategy(1.0)
        p = person(current_age=45, life_expectancy=85)
        states = strategy.simulate_states(p, 41, np.random.default_rng(3))
        in_care = {s for s in states if s.in_care}
        assert in_care == {LTCState.ASSISTED_LIVING}

    def test_cost_uses_regional_factor(self):
        strategy = SingleEventLTCStrategy()
        assert strategy.annual_cost(LTCState.ASSISTED_LIVING, "TX") == pytest.approx(75_504 * 0.90)
        assert strategy.annual_cost(LTCState.HEALTHY, "TX") == 0.0

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            make_strategy("coin_flip")


class TestLTCRiskModel:
    policy = InsurancePolicy(daily_benefit=200, elimination_days=90, benefit_period_years=2, annual_premium=3_000)

    def model(self, states, policy=None):
        p = person(current_age=74, ltc_policy=policy)
        return LTCRiskModel(p, "TX", FixedStates(states), len(states), np.random.default_rng(0), cost_inflation=None)

    def test_uninsured_pays_everything(self):
        m = self.model([LTCState.ASSISTED_LIVING] * 2)
        year = m.year(0, 1.0)
        assert year.cost == 100_000
        assert year.out_of_pocket == 100_000
        assert year.benefit == 0.0

    def test_elimination_then_pool_exhaustion(self):
        care = LTCState.ASSISTED_LIVING
        m = self.model([LTCState.HEALTHY, care, care, care, care], self.policy)

        first = m.year(0, 1.0)
        assert first.premium == 3_000
        assert first.deductible_premium == 3_000

        benefits = [m.year(t, 1.0).benefit for t in range(1, 5)]
        assert benefits == pytest.approx([0.0, 73_000, 73_000, 0.0])
        assert m.total_out_of_pocket == pytest.approx(400_000 - 146_000)

    def test_no_premium_while_in_care(self):
        m = self.model([LTCState.HOME_CARE], self.policy)
        assert m.year(0, 1.0).premium == 0.0

    def test_benefits_deflated_by_price_level(self):
        care = LTCState.NURSING_HOME
        m = self.model([care, care], self.policy)
        m.year(0, 1.0)
        year = m.year(1, 2.0)
        # nominal benefit 73,000 is worth half as much in today's dollars
        assert year.benefit == pytest.approx(36_500)
        assert year.out_of_pocket == pytest.approx(100_000 - 36_500)

    def test_had_episode(self):
        assert self.model([LTCState.HEALTHY, LTCState.HOME_CARE]).had_episode
        assert not self.model([LTCState.HEALTHY, LTCState.DECEASED]).had_episode


class TestCostVariation:
    def test_multiplier_within_spread(self):
        draws = [draw_cost_multiplier(np.random.default_rng(seed)) for seed in range(200)]
        assert min(draws) >= 55_000 / 75_000
        assert max(draws) <= 95_000 / 75_000
        assert min(draws) < 0.8 and max(draws) > 1.2

    def test_same_seed_same_cost(self):
        states = [LTCState.ASSISTED_LIVING] * 3

        def first_year_cost(cost_seed):
            model = LTCRiskModel(person(), "TX", FixedStates(states), 3, np.random.default_rng(0),
                                 cost_rng=np.random.default_rng(cost_seed))
            return model.year(0, 1.0).cost

        assert first_year_cost(42) == first_year_cost(42)
        assert first_year_cost(42) != first_year_cost(43)

    def test_no_cost_stream_uses_table_cost(self):
        model = LTCRiskModel(person(), "TX", FixedStates([LTCState.HOME_CARE]), 1, np.random.default_rng(0))
        assert model.cost_multiplier == 1.0
        assert model.year(0, 1.0).cost == 100_000

    def test_costs_outpace_general_inflation(self):
        assert cost_escalation(0, 1.0) == 1.0
        assert cost_escalation(10, 1.025 ** 10) == pytest.approx((1.035 / 1.025) ** 10)
        assert cost_escalation(10, 1.035 ** 10) == pytest.approx(1.0)

    def test_escalated_cost_in_later_years(self):
        care = LTCState.NURSING_HOME
        model = LTCRiskModel(person(), "TX", FixedStates([care] * 11), 11, np.random.default_rng(0))
        year = model.year(10, 1.025 ** 10)
        assert year.cost == pytest.approx(100_000 * (1.035 / 1.025) ** 10)
        assert year.out_of_pocket == pytest.approx(year.cost)


class TestExpectedCost:
    def test_deterministic_projection(self):
        expected = 0.70 * 1.0 * 75_504 * 0.90 * 2
        assert project_expected_ltc_cost(person(), "TX") == pytest.approx(expected)

    def test_uses_its_own_health_table(self):
        assert project_expected_ltc_cost(person(health_status="poor"), "TX") == pytest.approx(
            min(0.95, 0.70 * 1.6) * 75_504 * 0.90 * 2
        )
