"""
Long-term care insurance: inflation riders, elimination periods, the finite
lifetime benefit pool, premium estimates and tax treatment of benefits and
premiums. Benefit amounts here are NOMINAL (policy) dollars; the simulator
deflates them before they enter real cash flows.
"""
from typing import Optional

import numpy as np

from models import InsurancePolicy, LTCState
from config.ltc_assumptions import (
    RIDER_RATES,
    SERVICE_DAY_CONVERSION,
    PREMIUM_RATE_BY_AGE,
    PREMIUM_AGE_GROWTH_PAST_70,
    PREMIUM_BENEFIT_PERIOD_FACTORS,
    PREMIUM_ELIMINATION_FACTORS,
    PREMIUM_RIDER_FACTORS,
    PREMIUM_FEMALE_FACTOR,
    PREMIUM_HEALTH_FACTORS,
    PREMIUM_SHARED_CARE_FACTOR,
    PER_DIEM_ANNUAL_CAP,
    PREMIUM_DEDUCTION_LIMITS,
)

# Settings where care is not delivered every day of the week
PART_TIME_SETTINGS = (LTCState.NEEDS_ASSISTANCE, LTCState.HOME_CARE)


# =============================================================================
# Riders and elimination
# =============================================================================

def rider_multiplier(rider: str, years: float) -> float:
    """Growth of the daily benefit after `years` under an inflation rider."""
    years = max(0.0, years)
    rate = RIDER_RATES.get(rider, 0.0)
    if rider == "5_percent_simple":
        return 1.0 + rate * years
    return (1.0 + rate) ** years


def pool_multiplier(rider: str, years: float) -> float:
    """Only the compound rider grows the lifetime pool itself."""
    if rider == "3_percent_compound":
        return rider_multiplier(rider, years)
    return 1.0


def elimination_calendar_days(policy: InsurancePolicy, state: LTCState) -> float:
    """Service-day elimination periods take 7/5 as many calendar days for part-time care."""
    if state in PART_TIME_SETTINGS:
        return policy.elimination_days * SERVICE_DAY_CONVERSION
    return float(policy.elimination_days)


# =============================================================================
# Benefit pool
# =============================================================================

class PolicyBenefitTracker:
    """
    Pays a policy's benefits for one insured person over one iteration.
    The pool only ever shrinks; once exhausted every later benefit is zero.
    """
    def __init__(self, policy: InsurancePolicy, holder_age: int):
        self.policy = policy
        self.purchase_age = policy.purchase_age if policy.purchase_age is not None else holder_age
        self.used = 0.0

    def years_in_force(self, age: int) -> float:
        return max(0, age - self.purchase_age)

    def pool_size(self, age: int) -> float:
        return self.policy.lifetime_pool * pool_multiplier(self.policy.inflation_rider, self.years_in_force(age))

    def remaining_pool(self, age: int) -> float:
        return max(0.0, self.pool_size(age) - self.used)

    def is_exhausted(self, age: int) -> bool:
        return self.remaining_pool(age) <= 0

    def annual_benefit(self, state: LTCState, age: int, years_in_care: int, annual_cost: float) -> float:
        """
        Benefit paid for a year of care costing `annual_cost` (nominal).

        Zero while the days already spent in this episode are inside the
        elimination period, and never more than the remaining pool.
        """
        if not state.in_care or annual_cost <= 0:
            return 0.0

        days_in_event = years_in_care * 365
        if days_in_event < elimination_calendar_days(self.policy, state):
            return 0.0

        daily = self.policy.daily_benefit * rider_multiplier(self.policy.inflation_rider, self.years_in_force(age))
        benefit = min(daily * 365, annual_cost, self.remaining_pool(age))
        self.used += benefit
        return benefit


# =============================================================================
# Premiums
# =============================================================================

def _interpolate_issue_age_rate(issue_age: float) -> float:
    ages = [age for age, _ in PREMIUM_RATE_BY_AGE]
    rates = [rate for _, rate in PREMIUM_RATE_BY_AGE]
    if issue_age > ages[-1]:
        return rates[-1] * PREMIUM_AGE_GROWTH_PAST_70 ** (issue_age - ages[-1])
    return float(np.interp(issue_age, ages, rates))


def _benefit_period_factor(years: float) -> float:
    for max_years, factor in PREMIUM_BENEFIT_PERIOD_FACTORS:
        if years <= max_years:
            return factor
    return PREMIUM_BENEFIT_PERIOD_FACTORS[-1][1]


def _elimination_factor(days: int) -> float:
    # Nearest tabulated elimination period
    nearest = min(PREMIUM_ELIMINATION_FACTORS, key=lambda d: abs(d - days))
    return PREMIUM_ELIMINATION_FACTORS[nearest]


def estimate_annual_premium(policy: InsurancePolicy, issue_age: int, gender: str, health_status: str) -> float:
    """Annual premium for a policy bought at `issue_age`."""
    if policy.annual_premium is not None:
        return policy.annual_premium

    premium = _interpolate_issue_age_rate(issue_age) * policy.daily_benefit / 100.0
    premium *= _benefit_period_factor(policy.benefit_period_years)
    premium *= _elimination_factor(policy.elimination_days)
    premium *= PREMIUM_RIDER_FACTORS.get(policy.inflation_rider, 1.0)
    if gender == "female":
        premium *= PREMIUM_FEMALE_FACTOR
    premium *= PREMIUM_HEALTH_FACTORS.get(health_status, 1.0)
    if policy.shared_care:
        premium *= PREMIUM_SHARED_CARE_FACTOR
    return premium


# =============================================================================
# Tax treatment
# =============================================================================

def deductible_premium(premium: float, age: int) -> float:
    """Portion of a qualified policy's premium that counts as a medical expense."""
    for max_age, limit in PREMIUM_DEDUCTION_LIMITS:
        if max_age is None or age <= max_age:
            return min(premium, limit)
    return 0.0


def taxable_benefit(benefit: float, annual_cost: float, tax_qualified: bool,
                    per_diem_cap: Optional[float] = None) -> float:
    """
    Non-qualified benefits are fully taxable. Qualified benefits are tax-free
    up to the greater of the per-diem cap and the actual cost of care.
    """
    if benefit <= 0:
        return 0.0
    if not tax_qualified:
        return benefit
    cap = PER_DIEM_ANNUAL_CAP if per_diem_cap is None else per_diem_cap
    return max(0.0, benefit - max(cap, annual_cost))
