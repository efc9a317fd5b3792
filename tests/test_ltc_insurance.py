"""Tests for LTC policy riders, elimination, benefit pool, premiums and tax treatment."""

import math

import pytest

from engine.ltc_insurance import (
    PolicyBenefitTracker,
    deductible_premium,
    elimination_calendar_days,
    estimate_annual_premium,
    pool_multiplier,
    rider_multiplier,
    taxable_benefit,
)
from models import InsurancePolicy, LTCState


class TestRiders:
    def test_simple_rider_is_linear(self):
        assert rider_multiplier("5_percent_simple", 10) == pytest.approx(1.5)

    def test_compound_rider(self):
        assert rider_multiplier("3_percent_compound", 10) == pytest.approx(1.03 ** 10)

    def test_no_rider(self):
        assert rider_multiplier("none", 25) == 1.0

    def test_only_compound_grows_pool(self):
        assert pool_multiplier("3_percent_compound", 5) == pytest.approx(1.03 ** 5)
        assert pool_multiplier("5_percent_simple", 5) == 1.0
        assert pool_multiplier("cpi", 5) == 1.0


class TestElimination:
    policy = InsurancePolicy(daily_benefit=150, elimination_days=90)

    def test_facility_care_counts_calendar_days(self):
        assert elimination_calendar_days(self.policy, LTCState.NURSING_HOME) == 90

    def test_part_time_care_counts_service_days(self):
        assert elimination_calendar_days(self.policy, LTCState.HOME_CARE) == pytest.approx(126)
        assert elimination_calendar_days(self.policy, LTCState.NEEDS_ASSISTANCE) == pytest.approx(126)

    def test_long_elimination_outlasts_first_year(self):
        policy = InsurancePolicy(daily_benefit=150, elimination_days=365)
        tracker = PolicyBenefitTracker(policy, holder_age=80)
        # 365 service days on home care is 511 calendar days
        assert tracker.annual_benefit(LTCState.HOME_CARE, 81, 1, 80_000) == 0.0
        assert tracker.annual_benefit(LTCState.HOME_CARE, 82, 2, 80_000) > 0


class TestBenefitPool:
    def test_pool_never_grows_back(self):
        policy = InsurancePolicy(daily_benefit=100, elimination_days=0, benefit_period_years=1)
        tracker = PolicyBenefitTracker(policy, holder_age=80)
        paid = [tracker.annual_benefit(LTCState.NURSING_HOME, 80 + t, t, 60_000) for t in range(3)]
        assert paid == pytest.approx([36_500, 0.0, 0.0])
        assert tracker.is_exhausted(83)

    def test_benefit_capped_by_cost(self):
        policy = InsurancePolicy(daily_benefit=300, elimination_days=0)
        tracker = PolicyBenefitTracker(policy, holder_age=80)
        assert tracker.annual_benefit(LTCState.ASSISTED_LIVING, 80, 0, 50_000) == 50_000
        assert tracker.remaining_pool(80) == pytest.approx(300 * 3 * 365 - 50_000)

    def test_lifetime_period_is_unlimited(self):
        policy = InsurancePolicy(daily_benefit=100, benefit_period_years=999)
        assert math.isinf(policy.lifetime_pool)
        tracker = PolicyBenefitTracker(policy, holder_age=70)
        assert not tracker.is_exhausted(99)

    def test_compound_rider_grows_daily_benefit_and_pool(self):
        policy = InsurancePolicy(daily_benefit=100, elimination_days=0, inflation_rider="3_percent_compound",
                                 purchase_age=60)
        tracker = PolicyBenefitTracker(policy, holder_age=70)
        assert tracker.pool_size(70) == pytest.approx(100 * 3 * 365 * 1.03 ** 10)
        benefit = tracker.annual_benefit(LTCState.NURSING_HOME, 70, 0, 1_000_000)
        assert benefit == pytest.approx(100 * 1.03 ** 10 * 365)

    def test_no_benefit_outside_care(self):
        tracker = PolicyBenefitTracker(InsurancePolicy(daily_benefit=100, elimination_days=0), holder_age=70)
        assert tracker.annual_benefit(LTCState.HEALTHY, 70, 3, 50_000) == 0.0
        assert tracker.used == 0.0


class TestPremiums:
    def test_given_premium_is_used(self):
        policy = InsurancePolicy(daily_benefit=200, annual_premium=2_400)
        assert estimate_annual_premium(policy, 60, "male", "good") == 2_400

    def test_estimate_rises_with_issue_age(self):
        policy = InsurancePolicy(daily_benefit=200)
        ages = [45, 55, 65, 72]
        premiums = [estimate_annual_premium(policy, age, "male", "good") for age in ages]
        assert premiums == sorted(premiums)
        assert premiums[0] > 0

    def test_female_and_health_loads(self):
        policy = InsurancePolicy(daily_benefit=200)
        base = estimate_annual_premium(policy, 60, "male", "good")
        assert estimate_annual_premium(policy, 60, "female", "good") == pytest.approx(base * 1.3)
        assert estimate_annual_premium(policy, 60, "male", "poor") == pytest.approx(base * 2.5)


class TestTaxTreatment:
    def test_deductible_premium_by_age(self):
        assert deductible_premium(10_000, 45) == 890
        assert deductible_premium(10_000, 75) == 5_960
        assert deductible_premium(300, 75) == 300

    def test_non_qualified_benefit_fully_taxable(self):
        assert taxable_benefit(50_000, 80_000, tax_qualified=False) == 50_000

    def test_qualified_benefit_tax_free_up_to_cost(self):
        assert taxable_benefit(50_000, 80_000, tax_qualified=True) == 0.0
        assert taxable_benefit(200_000, 80_000, tax_qualified=True, per_diem_cap=100_000) == pytest.approx(100_000)
