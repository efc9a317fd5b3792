# models.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd


class InvalidParameter(ValueError):
    """Structurally impossible simulation input (e.g. negative age)."""


# Bucket names, in the order they are reported
BUCKETS: Tuple[str, ...] = ("taxable", "tax_deferred", "tax_free", "hsa")

INFLATION_RIDERS: Tuple[str, ...] = ("none", "3_percent_compound", "5_percent_simple", "cpi")
HEALTH_STATUSES: Tuple[str, ...] = ("excellent", "good", "fair", "poor")


class LTCState(str, Enum):
    HEALTHY = "healthy"
    NEEDS_ASSISTANCE = "needs_assistance"
    HOME_CARE = "home_care"
    ASSISTED_LIVING = "assisted_living"
    NURSING_HOME = "nursing_home"
    DECEASED = "deceased"

    @property
    def in_care(self) -> bool:
        return self not in (LTCState.HEALTHY, LTCState.DECEASED)


@dataclass(frozen=True)
class InsurancePolicy:
    daily_benefit: float
    elimination_days: int = 90
    benefit_period_years: float = 3
    inflation_rider: str = "none"
    purchase_age: Optional[int] = None   # defaults to the holder's current age
    tax_qualified: bool = True
    annual_premium: Optional[float] = None   # estimated when not provided
    shared_care: bool = False

    @property
    def lifetime_pool(self) -> float:
        """Base benefit pool in policy-year-zero dollars (inf for lifetime periods)."""
        if self.benefit_period_years >= 100:
            return float("inf")
        return self.daily_benefit * self.benefit_period_years * 365


@dataclass(frozen=True)
class AnnuityStream:
    payment: float
    frequency: str = "monthly"   # monthly / quarterly / annual
    payout_start_year: int = 0
    taxable: bool = True


@dataclass(frozen=True)
class PersonProfile:
    current_age: int
    retirement_age: int
    life_expectancy: int
    birth_year: int
    gender: str = "male"
    health_status: str = "good"

    # Earnings and accumulation
    salary: float = 0.0
    contribution_401k: float = 0.0
    contribution_ira: float = 0.0
    contribution_roth: float = 0.0
    contribution_brokerage: float = 0.0
    contribution_hsa: float = 0.0

    # Guaranteed income
    ss_benefit_fra: float = 0.0   # monthly benefit at full retirement age
    ss_claim_age: float = 67
    pension_annual: float = 0.0
    pension_start_age: int = 65
    pension_cola: bool = False
    part_time_income: float = 0.0
    part_time_start_age: Optional[int] = None   # defaults to retirement age
    annuities: Tuple[AnnuityStream, ...] = ()

    ltc_policy: Optional[InsurancePolicy] = None

    def age_in(self, year_index: int) -> int:
        return self.current_age + year_index

    def alive_at(self, age: int) -> bool:
        return age <= self.life_expectancy


@dataclass(frozen=True)
class AssetBalances:
    taxable: float = 0.0
    tax_deferred: float = 0.0
    tax_free: float = 0.0
    hsa: float = 0.0

    @property
    def total(self) -> float:
        return self.taxable + self.tax_deferred + self.tax_free + self.hsa


@dataclass
class AssetBucket:
    """
    One tax-treatment bucket for a single iteration. The principal is never
    allowed below zero: withdrawals are capped and losses floor at zero.
    """
    name: str
    principal: float = 0.0
    growth_rate: float = 0.0   # last applied real return

    def withdraw(self, amount: float) -> float:
        """Removes up to `amount` and returns what was actually taken."""
        if amount <= 0 or self.principal <= 0:
            return 0.0
        taken = min(amount, self.principal)
        self.principal -= taken
        if self.principal < 1e-9:
            self.principal = 0.0
        return taken

    def deposit(self, amount: float) -> None:
        if amount > 0:
            self.principal += amount

    def apply_return(self, rate: float) -> None:
        self.growth_rate = rate
        self.principal = max(0.0, self.principal * (1.0 + rate))


@dataclass(frozen=True)
class SimulationParameters:
    # Core
    start_year: int
    filing_status: str
    state: str
    subject: PersonProfile
    balances: AssetBalances
    spouse: Optional[PersonProfile] = None
    taxable_basis_ratio: float = 0.7

    # Market (real terms)
    expected_return: float = 0.07
    return_volatility: float = 0.15
    inflation_rate: float = 0.025
    inflation_volatility: float = 0.01
    use_glide_path: bool = False

    # Cash flow (real dollars)
    annual_retirement_expense: float = 132_000.0
    annual_savings: float = 0.0

    # LTC
    ltc_enabled: bool = True
    ltc_strategy: str = "single_event"
    ltc_lifetime_probability: Optional[float] = None

    # Tax
    use_secure2_rmd_ages: bool = False

    # Run
    iterations: int = 1000
    seed: Optional[int] = None
    keep_ledgers: bool = False

    @property
    def persons(self) -> List[PersonProfile]:
        return [p for p in (self.subject, self.spouse) if p is not None]

    @property
    def horizon_years(self) -> int:
        """Years from today through the last surviving life expectancy."""
        return max(p.life_expectancy - p.current_age for p in self.persons) + 1

    @property
    def years_to_retirement(self) -> int:
        return self.subject.retirement_age - self.subject.current_age


@dataclass
class YearRecord:
    year: int
    subject_age: int
    spouse_age: Optional[int]
    phase: str   # accumulation / retirement
    real_return: float
    inflation: float

    # Income
    salary: float = 0.0
    social_security: float = 0.0
    taxable_social_security: float = 0.0
    pension: float = 0.0
    part_time: float = 0.0
    annuity: float = 0.0

    # Flows per bucket
    contributions: Dict[str, float] = field(default_factory=dict)
    withdrawals: Dict[str, float] = field(default_factory=dict)
    rmd: float = 0.0

    # LTC
    ltc_cost: float = 0.0
    ltc_benefit: float = 0.0
    ltc_out_of_pocket: float = 0.0
    ltc_premium: float = 0.0
    ltc_states: Tuple[str, ...] = ()

    # Tax and outcome
    expense: float = 0.0
    federal_tax: float = 0.0
    state_tax: float = 0.0
    penalty_tax: float = 0.0
    shortfall: float = 0.0
    balances: Dict[str, float] = field(default_factory=dict)

    @property
    def total_tax(self) -> float:
        return self.federal_tax + self.state_tax + self.penalty_tax

    @property
    def total_balance(self) -> float:
        return sum(self.balances.values())

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        for kind, prefix in (("contributions", "contribution"),
                             ("withdrawals", "withdrawal"),
                             ("balances", "balance")):
            for bucket, value in row.pop(kind).items():
                row[f"{prefix}_{bucket}"] = value
        row["ltc_states"] = "/".join(self.ltc_states)
        row["total_tax"] = self.total_tax
        row["total_balance"] = self.total_balance
        return row


@dataclass
class IterationOutcome:
    index: int
    success: bool
    ending_balance: float
    depletion_year: Optional[int] = None
    depletion_age: Optional[int] = None
    lifetime_tax: float = 0.0
    ltc_total_cost: float = 0.0
    ltc_out_of_pocket: float = 0.0
    had_ltc_episode: bool = False
    balance_path: Tuple[float, ...] = ()
    ledger: Optional[List[YearRecord]] = None
    excluded: bool = False
    excluded_reason: Optional[str] = None


@dataclass
class SimulationResult:
    success_probability: float
    total_iterations: int
    successful_iterations: int
    failed_iterations: int
    excluded_iterations: int
    mean_ending_balance: float
    median_ending_balance: float
    percentiles: Dict[int, float]
    yearly_bands: pd.DataFrame
    median_depletion_age: Optional[float] = None
    mean_lifetime_tax: float = 0.0
    ltc_episode_rate: float = 0.0
    mean_ltc_cost: float = 0.0
    medicaid_risk_rate: float = 0.0
    expected_ltc_cost: float = 0.0   # deterministic planning estimate
    outcomes: Optional[List[IterationOutcome]] = None

    def ledger_frame(self) -> pd.DataFrame:
        """Flattens retained per-iteration ledgers into one DataFrame."""
        if not self.outcomes:
            return pd.DataFrame()
        rows = []
        for outcome in self.outcomes:
            for record in outcome.ledger or []:
                row = record.as_row()
                row["iteration"] = outcome.index
                rows.append(row)
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).set_index(["iteration", "year"])

    def summary(self) -> Dict[str, Any]:
        return {
            "success_probability": self.success_probability,
            "total": self.total_iterations,
            "successful": self.successful_iterations,
            "failed": self.failed_iterations,
            "excluded": self.excluded_iterations,
            "mean_ending_balance": self.mean_ending_balance,
            "median_ending_balance": self.median_ending_balance,
            **{f"p{p}": v for p, v in self.percentiles.items()},
            "mean_lifetime_tax": self.mean_lifetime_tax,
            "ltc_episode_rate": self.ltc_episode_rate,
            "mean_ltc_cost": self.mean_ltc_cost,
            "medicaid_risk_rate": self.medicaid_risk_rate,
            "expected_ltc_cost": self.expected_ltc_cost,
        }

