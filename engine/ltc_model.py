"""
Long-term care risk model.

Care need is a finite-state process over LTCState. Transition rows are
piecewise tables keyed by the current state, age and insurance status.
Two interchangeable strategies produce a person's yearly states:

- MarkovLTCStrategy ("markov"): resample the next state every year.
- SingleEventLTCStrategy ("single_event"): decide once whether a lifetime
  episode happens, then place one onset age and duration at a fixed level.

LTCRiskModel turns those states into yearly cost, insurance benefit,
premium and tax amounts for one person over one iteration.
"""
from typing import List, NamedTuple, Optional

import numpy as np

from models import InsurancePolicy, LTCState, PersonProfile
from engine.ltc_insurance import (
    PolicyBenefitTracker,
    deductible_premium,
    estimate_annual_premium,
    taxable_benefit,
)
from config.ltc_assumptions import (
    BASE_LTC_COSTS,
    BASE_ANNUAL_LTC_COST,
    REGIONAL_LTC_COST_FACTORS,
    NATIONAL_COST_INDEX,
    LTC_COST_INFLATION,
    LTC_COST_SPREAD,
    LTC_COST_FLOOR,
    ANNUAL_INCIDENCE_BY_AGE,
    FEMALE_INCIDENCE_MULTIPLIER,
    LTC_HEALTH_MULTIPLIERS,
    DETERMINISTIC_LTC_HEALTH_MULTIPLIERS,
    DETERMINISTIC_BASE_PROBABILITY,
    DETERMINISTIC_CARE_YEARS,
    LIFETIME_LTC_PROBABILITY,
    MAX_LIFETIME_LTC_PROBABILITY,
    EARLIEST_ONSET_AGE,
    AVERAGE_CARE_YEARS,
    DURATION_MULTIPLIER_RANGE,
    OVERRIDE_HAZARD_START_AGE,
    ONSET_SPLIT_YOUNG,
    ONSET_SPLIT_OLD,
    ONSET_SPLIT_AGE,
    NEEDS_ASSISTANCE_ROW,
    NEEDS_ASSISTANCE_RECOVERY_INSURED,
    HOME_CARE_ROW,
    ASSISTED_LIVING_ROW,
    NURSING_HOME_ROW_BASE,
    NURSING_HOME_DEATH_FLOOR,
    NURSING_HOME_DEATH_STEP,
    NURSING_HOME_DEATH_PIVOT_AGE,
    NURSING_HOME_DEATH_CAP,
)

# Column order of every transition row
STATE_ORDER = (
    LTCState.HEALTHY,
    LTCState.NEEDS_ASSISTANCE,
    LTCState.HOME_CARE,
    LTCState.ASSISTED_LIVING,
    LTCState.NURSING_HOME,
    LTCState.DECEASED,
)


# =============================================================================
# 1. Lookup helpers
# =============================================================================

def regional_cost_factor(state: str) -> float:
    return REGIONAL_LTC_COST_FACTORS.get(str(state or "").strip().upper(), NATIONAL_COST_INDEX)


def care_cost(state: LTCState, jurisdiction: str) -> float:
    """Annual cost (today's dollars) of the care setting that matches a state."""
    if state == LTCState.NEEDS_ASSISTANCE:
        base = BASE_LTC_COSTS["adult_day_health"] * 0.5
    elif state == LTCState.HOME_CARE:
        base = BASE_LTC_COSTS["home_health_aide"]
    elif state == LTCState.ASSISTED_LIVING:
        base = BASE_LTC_COSTS["assisted_living"]
    elif state == LTCState.NURSING_HOME:
        base = BASE_LTC_COSTS["nursing_home_semi"]
    else:
        return 0.0
    return base * regional_cost_factor(jurisdiction)


def annual_incidence(age: int, gender: str, health_status: str) -> float:
    """Probability that a healthy person starts needing care this year."""
    rate = ANNUAL_INCIDENCE_BY_AGE[-1][1]
    for upper_age, band_rate in ANNUAL_INCIDENCE_BY_AGE:
        if upper_age is None or age < upper_age:
            rate = band_rate
            break
    if gender == "female":
        rate *= FEMALE_INCIDENCE_MULTIPLIER
    return min(1.0, rate * LTC_HEALTH_MULTIPLIERS.get(health_status, 1.0))


def nursing_home_death_probability(age: int) -> float:
    """Floor 10%, +2 points per year past 80, capped at 30%."""
    rate = NURSING_HOME_DEATH_FLOOR + NURSING_HOME_DEATH_STEP * (age - NURSING_HOME_DEATH_PIVOT_AGE)
    return min(NURSING_HOME_DEATH_CAP, max(NURSING_HOME_DEATH_FLOOR, rate))


def transition_row(
    state: LTCState,
    age: int,
    insured: bool,
    gender: str = "male",
    health_status: str = "good",
    onset_probability: Optional[float] = None,
) -> np.ndarray:
    """
    Next-year probabilities over STATE_ORDER.

    `onset_probability` replaces the age/gender/health incidence for a
    healthy person (used for lifetime-probability overrides).
    """
    if state == LTCState.HEALTHY:
        p_onset = annual_incidence(age, gender, health_status) if onset_probability is None else onset_probability
        young = age < ONSET_SPLIT_AGE and health_status != "poor"
        split = np.array(ONSET_SPLIT_YOUNG if young else ONSET_SPLIT_OLD)
        return np.concatenate(([1.0 - p_onset], p_onset * split, [0.0]))

    if state == LTCState.NEEDS_ASSISTANCE:
        row = np.array(NEEDS_ASSISTANCE_ROW)
        if insured:
            # Insured recovery rate, taken out of the stay probability
            lift = NEEDS_ASSISTANCE_RECOVERY_INSURED - row[0]
            row[0] += lift
            row[1] -= lift
        return row

    if state == LTCState.HOME_CARE:
        return np.array(HOME_CARE_ROW)

    if state == LTCState.ASSISTED_LIVING:
        return np.array(ASSISTED_LIVING_ROW)

    if state == LTCState.NURSING_HOME:
        death = nursing_home_death_probability(age)
        stay = 1.0 - sum(NURSING_HOME_ROW_BASE) - death
        return np.array(NURSING_HOME_ROW_BASE + (stay, death))

    return np.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0])


def _sample_state(row: np.ndarray, rng: np.random.Generator) -> LTCState:
    index = int(np.searchsorted(np.cumsum(row), rng.random(), side="right"))
    return STATE_ORDER[min(index, len(STATE_ORDER) - 1)]


def lifetime_probability(health_status: str) -> float:
    """Single-event incidence: 48% scaled by health, capped at 95%."""
    return min(LIFETIME_LTC_PROBABILITY * LTC_HEALTH_MULTIPLIERS.get(health_status, 1.0),
               MAX_LIFETIME_LTC_PROBABILITY)


def draw_cost_multiplier(rng: np.random.Generator) -> float:
    """How much one person's care runs above or below the table cost."""
    return max(LTC_COST_FLOOR, 1.0 + LTC_COST_SPREAD * rng.uniform(-1.0, 1.0))


def cost_escalation(year_index: int, price_level: float, cost_inflation: float = LTC_COST_INFLATION) -> float:
    """Real growth of care costs: their own inflation over the iteration's general price level."""
    return (1.0 + cost_inflation) ** year_index / price_level


# =============================================================================
# 2. Strategies
# =============================================================================

class MarkovLTCStrategy:
    """Per-year walk through the transition tables."""
    name = "markov"

    def __init__(self, lifetime_probability_override: Optional[float] = None):
        self.override = lifetime_probability_override

    def _override_hazard(self, person: PersonProfile) -> Optional[float]:
        """Constant annual onset hazard giving the override as lifetime probability."""
        if self.override is None:
            return None
        if self.override <= 0:
            return 0.0
        if self.override >= 1:
            return 1.0
        first_age = max(OVERRIDE_HAZARD_START_AGE, person.current_age)
        eligible_years = max(1, person.life_expectancy - first_age + 1)
        return 1.0 - (1.0 - self.override) ** (1.0 / eligible_years)

    def simulate_states(self, person: PersonProfile, n_years: int, rng: np.random.Generator) -> List[LTCState]:
        insured = person.ltc_policy is not None
        hazard = self._override_hazard(person)
        states = []
        previous = LTCState.HEALTHY

        for t in range(n_years):
            age = person.age_in(t)
            if not person.alive_at(age) or previous == LTCState.DECEASED:
                states.append(LTCState.DECEASED)
                previous = LTCState.DECEASED
                continue

            onset = None
            if hazard is not None:
                onset = hazard if age >= OVERRIDE_HAZARD_START_AGE else 0.0

            row = transition_row(previous, age, insured, person.gender, person.health_status, onset)
            previous = _sample_state(row, rng)
            states.append(previous)

        return states

    def annual_cost(self, state: LTCState, jurisdiction: str) -> float:
        return care_cost(state, jurisdiction)


class SingleEventLTCStrategy:
    """One lifetime episode at a fixed care level, or none."""
    name = "single_event"
    care_level = LTCState.ASSISTED_LIVING

    def __init__(self, lifetime_probability_override: Optional[float] = None):
        self.override = lifetime_probability_override

    def episode_probability(self, person: PersonProfile) -> float:
        if self.override is not None:
            return min(1.0, max(0.0, self.override))
        return lifetime_probability(person.health_status)

    def sample_episode(self, person: PersonProfile, rng: np.random.Generator) -> Optional[tuple]:
        """Returns (onset_age, duration_years) or None."""
        p = self.episode_probability(person)
        if p <= 0 or rng.random() >= p:
            return None

        average = AVERAGE_CARE_YEARS.get(person.gender, AVERAGE_CARE_YEARS["male"])
        low, high = DURATION_MULTIPLIER_RANGE
        duration = max(1, int(round(average * rng.uniform(low, high))))

        earliest = min(max(EARLIEST_ONSET_AGE, person.current_age), person.life_expectancy)
        duration = min(duration, person.life_expectancy - earliest + 1)
        latest = person.life_expectancy - duration + 1
        onset = int(rng.integers(earliest, latest + 1))
        return onset, duration

    def simulate_states(self, person: PersonProfile, n_years: int, rng: np.random.Generator) -> List[LTCState]:
        episode = self.sample_episode(person, rng)
        states = []
        for t in range(n_years):
            age = person.age_in(t)
            if not person.alive_at(age):
                states.append(LTCState.DECEASED)
            elif episode is not None and episode[0] <= age < episode[0] + episode[1]:
                states.append(self.care_level)
            else:
                states.append(LTCState.HEALTHY)
        return states

    def annual_cost(self, state: LTCState, jurisdiction: str) -> float:
        if not state.in_care:
            return 0.0
        return BASE_ANNUAL_LTC_COST * regional_cost_factor(jurisdiction)


LTC_STRATEGIES = {
    MarkovLTCStrategy.name: MarkovLTCStrategy,
    SingleEventLTCStrategy.name: SingleEventLTCStrategy,
}


def make_strategy(name: str, lifetime_probability_override: Optional[float] = None):
    try:
        return LTC_STRATEGIES[name](lifetime_probability_override)
    except KeyError:
        raise ValueError(f"Unknown LTC strategy '{name}'; expected one of {sorted(LTC_STRATEGIES)}") from None


# =============================================================================
# 3. Per-person yearly amounts
# =============================================================================

class LTCYear(NamedTuple):
    """Real-dollar LTC amounts for one person in one year."""
    state: LTCState
    cost: float
    benefit: float
    out_of_pocket: float
    premium: float
    deductible_premium: float
    taxable_benefit: float


class LTCRiskModel:
    """
    One person's care path for one iteration. States are sampled up front
    from the strategy; costs and benefits are settled year by year because
    they depend on the iteration's inflation.

    `cost_rng` draws the person's cost multiplier (none given: table cost).
    Care costs grow at `cost_inflation` in nominal terms; None keeps them
    level in today's dollars.
    """
    def __init__(self, person: PersonProfile, jurisdiction: str, strategy, n_years: int,
                 rng: np.random.Generator, cost_rng: Optional[np.random.Generator] = None,
                 cost_inflation: Optional[float] = LTC_COST_INFLATION):
        self.person = person
        self.jurisdiction = jurisdiction
        self.strategy = strategy
        self.states = strategy.simulate_states(person, n_years, rng)
        self.cost_multiplier = draw_cost_multiplier(cost_rng) if cost_rng is not None else 1.0
        self.cost_inflation = cost_inflation

        policy: Optional[InsurancePolicy] = person.ltc_policy
        self.policy = policy
        self.tracker = PolicyBenefitTracker(policy, person.current_age) if policy else None
        self.premium = 0.0
        if policy is not None:
            issue_age = self.tracker.purchase_age
            self.premium = estimate_annual_premium(policy, issue_age, person.gender, person.health_status)

        self.years_in_care = 0
        self.total_cost = 0.0
        self.total_out_of_pocket = 0.0

    @property
    def had_episode(self) -> bool:
        return any(state.in_care for state in self.states)

    def year(self, t: int, inflation_index: float) -> LTCYear:
        """
        Amounts for year `t`. `inflation_index` is the price level at the start
        of the year relative to today; policy benefits and premiums are fixed in
        nominal terms and are deflated by it.
        """
        state = self.states[t]
        age = self.person.age_in(t)

        if not state.in_care:
            self.years_in_care = 0
            premium = 0.0
            if self.policy is not None and state == LTCState.HEALTHY:
                premium = self.premium / inflation_index
            deductible = deductible_premium(premium, age) if self.policy is not None and self.policy.tax_qualified else 0.0
            return LTCYear(state, 0.0, 0.0, 0.0, premium, deductible, 0.0)

        cost = self.strategy.annual_cost(state, self.jurisdiction) * self.cost_multiplier
        if self.cost_inflation is not None:
            cost *= cost_escalation(t, inflation_index, self.cost_inflation)
        benefit = 0.0
        taxable = 0.0
        if self.tracker is not None:
            nominal_cost = cost * inflation_index
            nominal_benefit = self.tracker.annual_benefit(state, age, self.years_in_care, nominal_cost)
            benefit = nominal_benefit / inflation_index
            taxable = taxable_benefit(nominal_benefit, nominal_cost, self.policy.tax_qualified) / inflation_index

        self.years_in_care += 1
        out_of_pocket = max(0.0, cost - benefit)
        self.total_cost += cost
        self.total_out_of_pocket += out_of_pocket
        return LTCYear(state, cost, benefit, out_of_pocket, 0.0, 0.0, taxable)


# =============================================================================
# 4. Deterministic planning estimate
# =============================================================================

def project_expected_ltc_cost(person: PersonProfile, jurisdiction: str) -> float:
    """
    Expected lifetime LTC cost (today's dollars) without simulation: a base
    probability scaled by the deterministic health table, times the
    single-event annual cost for the final years of life.
    """
    multiplier = DETERMINISTIC_LTC_HEALTH_MULTIPLIERS.get(person.health_status, 1.0)
    probability = min(MAX_LIFETIME_LTC_PROBABILITY, DETERMINISTIC_BASE_PROBABILITY * multiplier)
    annual = BASE_ANNUAL_LTC_COST * regional_cost_factor(jurisdiction)
    return probability * annual * DETERMINISTIC_CARE_YEARS
