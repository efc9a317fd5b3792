# engine.simulator.py

import logging
import multiprocessing as mp
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

# --- Utilities and Models ---
from models import (
    BUCKETS,
    AssetBucket,
    InvalidParameter,
    IterationOutcome,
    SimulationParameters,
    SimulationResult,
    YearRecord,
)
from utils.tax_utils import STATE_TAX_RATES, normalize_filing_status

# --- Configuration Imports
from config.expense_assumptions import early_withdrawal_age, early_withdrawal_penalty
from config.ltc_assumptions import MEDICAL_EXPENSE_AGI_FLOOR

from engine.accounts_income import AccountsIncomeEngine, IncomeBreakdown # importing a class here
from engine.withdrawal_engine import WithdrawalEngine, SettlementResult # importing a class here
from engine.ltc_model import LTCRiskModel, LTCYear, make_strategy, project_expected_ltc_cost
from engine.tax_engine import TaxBreakdown, calculate_taxes, resolve_gross_withdrawal
from engine.market_generator import generate_market_path
from engine.results import aggregate_results

logger = logging.getLogger(__name__)

# A year fails when the buckets cannot cover more than this many dollars of need
SHORTFALL_TOLERANCE = 1.0
PROGRESS_EVERY = 100

ProgressCallback = Callable[[int, int], None]


class RetirementSimulator:
    """
    Runs the Monte Carlo: N independent year-by-year iterations of one
    household, each a pure function of the parameters and its own seed.
    """
    def __init__(self, params: SimulationParameters):

        # -----------------------
        # STEP 1: Validate Inputs
        # -----------------------
        self.params = params
        self._validate()

        if params.state.upper() not in STATE_TAX_RATES:
            logger.warning(f"No state tax profile for '{params.state}', using a 5% flat rate.")

        # -----------------------
        # STEP 2: Define Simulation Timeframe
        # -----------------------
        self.num_years = params.horizon_years
        self.years = list(range(params.start_year, params.start_year + self.num_years))
        self.filing_status = normalize_filing_status(params.filing_status)

        # -----------------------
        # STEP 3: Initialize Engines
        # -----------------------
        self.accounts_income = AccountsIncomeEngine(params)
        self.withdrawal_engine = WithdrawalEngine(taxable_basis_ratio=params.taxable_basis_ratio)
        self.ltc_strategy = make_strategy(params.ltc_strategy, params.ltc_lifetime_probability)

    def _validate(self):
        p = self.params
        if p.iterations < 1:
            raise InvalidParameter("iterations must be at least 1")
        for role, person in (("subject", p.subject), ("spouse", p.spouse)):
            if person is None:
                continue
            if person.current_age < 0:
                raise InvalidParameter(f"{role} age cannot be negative ({person.current_age})")
            if person.retirement_age < person.current_age:
                raise InvalidParameter(
                    f"{role} retirement age {person.retirement_age} is before current age {person.current_age}"
                )
            if person.life_expectancy <= person.current_age:
                raise InvalidParameter(f"{role} life expectancy must be after current age")
        if p.ltc_lifetime_probability is not None and not 0 <= p.ltc_lifetime_probability <= 1:
            raise InvalidParameter("ltc_lifetime_probability must be between 0 and 1")

    # =========================================================================
    # 1. CORE SIMULATION RUNNER
    # =========================================================================
    def iteration_seeds(self) -> List[np.random.SeedSequence]:
        """One independent seed per iteration, all derived from the top-level seed."""
        return np.random.SeedSequence(self.params.seed).spawn(self.params.iterations)

    def run_simulation(self, workers: int = 1, progress: Optional[ProgressCallback] = None) -> SimulationResult:
        """Runs every iteration (serially or on a process pool) and aggregates them."""
        seeds = self.iteration_seeds()
        total = len(seeds)
        logger.info(f"Running {total} iterations over {self.num_years} years (workers={workers})")

        outcomes: List[IterationOutcome] = []
        if workers > 1:
            tasks = list(enumerate(seeds))
            with mp.Pool(workers, initializer=_init_worker, initargs=(self.params,)) as pool:
                for outcome in pool.imap(_run_worker_iteration, tasks, chunksize=max(1, total // (workers * 4))):
                    outcomes.append(outcome)
                    self._report_progress(len(outcomes), total, progress)
        else:
            for index, seed in enumerate(seeds):
                outcomes.append(self.run_iteration(index, seed))
                self._report_progress(len(outcomes), total, progress)

        expected_ltc = 0.0
        if self.params.ltc_enabled:
            expected_ltc = sum(project_expected_ltc_cost(p, self.params.state) for p in self.params.persons)

        result = aggregate_results(
            outcomes,
            self.params.start_year,
            keep_outcomes=self.params.keep_ledgers,
            expected_ltc_cost=expected_ltc,
        )
        logger.info(
            f"Success probability {result.success_probability:.1%} "
            f"({result.excluded_iterations} excluded), median ending ${result.median_ending_balance:,.0f}"
        )
        return result

    @staticmethod
    def _report_progress(done: int, total: int, progress: Optional[ProgressCallback]):
        if progress is not None:
            progress(done, total)
        if done % PROGRESS_EVERY == 0:
            logger.info(f"Completed {done}/{total} iterations")

    def run_iteration(self, index: int, seed: np.random.SeedSequence) -> IterationOutcome:
        """One iteration; a numeric failure is recorded as an excluded outcome, never raised."""
        try:
            with np.errstate(over="raise", invalid="raise", divide="raise"):
                return self._run_one_path(index, seed)
        except (ArithmeticError, ValueError) as exc:
            logger.warning(f"Iteration {index} excluded: {exc!r}")
            return IterationOutcome(
                index=index,
                success=False,
                ending_balance=float("nan"),
                excluded=True,
                excluded_reason=repr(exc),
            )

    # =========================================================================
    # 2. ONE PATH
    # =========================================================================
    def _run_one_path(self, index: int, seed: np.random.SeedSequence) -> IterationOutcome:
        params = self.params
        subject = params.subject
        spouse = params.spouse

        # Independent streams per sub-model
        market_seed, subject_ltc_seed, spouse_ltc_seed, subject_cost_seed, spouse_cost_seed = seed.spawn(5)

        # -----------------------
        # STEP 1: Market draws
        # -----------------------
        market = generate_market_path(
            self.num_years,
            params.expected_return,
            params.return_volatility,
            params.inflation_rate,
            params.inflation_volatility,
            np.random.default_rng(market_seed),
            glide_path=params.use_glide_path,
            years_to_retirement=params.years_to_retirement,
        )
        inflation_index = np.concatenate(([1.0], market.inflation_index()))

        # -----------------------
        # STEP 2: LTC paths
        # -----------------------
        ltc_models: List[LTCRiskModel] = []
        if params.ltc_enabled:
            ltc_models.append(LTCRiskModel(subject, params.state, self.ltc_strategy, self.num_years,
                                           np.random.default_rng(subject_ltc_seed),
                                           cost_rng=np.random.default_rng(subject_cost_seed)))
            if spouse is not None:
                ltc_models.append(LTCRiskModel(spouse, params.state, self.ltc_strategy, self.num_years,
                                               np.random.default_rng(spouse_ltc_seed),
                                               cost_rng=np.random.default_rng(spouse_cost_seed)))

        # -----------------------
        # STEP 3: Fresh buckets
        # -----------------------
        buckets: Dict[str, AssetBucket] = {
            name: AssetBucket(name, getattr(params.balances, name)) for name in BUCKETS
        }

        ledger: List[YearRecord] = []
        balance_path: List[float] = []
        lifetime_tax = 0.0
        depletion_year = None
        depletion_age = None

        for t, year in enumerate(self.years):
            subject_age = subject.age_in(t)
            spouse_age = spouse.age_in(t) if spouse is not None else None
            price_level = inflation_index[t]
            retired = subject_age >= subject.retirement_age or not subject.alive_at(subject_age)

            # === STEP 4: Accumulation contributions ===
            contributions = {name: 0.0 for name in BUCKETS}
            if not retired:
                workers = [p for p in params.persons if p.age_in(t) < p.retirement_age and p.alive_at(p.age_in(t))]
                contributions = self.withdrawal_engine.allocate_contributions(
                    t, year, workers, params.annual_savings, buckets,
                    family_hsa=self.filing_status == "married_filing_jointly",
                )

            # === STEP 5: LTC costs, benefits, premiums ===
            ltc_years: List[LTCYear] = [model.year(t, price_level) for model in ltc_models]
            ltc_out_of_pocket = sum(y.out_of_pocket for y in ltc_years)
            # Premiums are paid from the portfolio only once retired
            ltc_premium = sum(y.premium for y in ltc_years) if retired else 0.0
            ltc_deductible = sum(y.deductible_premium for y in ltc_years) if retired else 0.0
            ltc_taxable = sum(y.taxable_benefit for y in ltc_years)

            # === STEP 6: Spending need and guaranteed income ===
            expense = params.annual_retirement_expense if retired else 0.0
            income = self.accounts_income.guaranteed_income(t, price_level) if retired else IncomeBreakdown()
            spending = expense + ltc_out_of_pocket + ltc_premium
            net_need = spending - income.total

            # === STEP 7: RMD and tax gross-up ===
            rmd = self.accounts_income.compute_rmd(buckets["tax_deferred"].principal, t)
            persons_65 = self.accounts_income.persons_65_plus(t)
            medical = ltc_out_of_pocket + ltc_deductible

            def tax_at(gross: float) -> float:
                trial = self.withdrawal_engine.settle_retirement_year(
                    gross, rmd, expense, buckets, simulate_only=True
                )
                breakdown, penalty = self._year_taxes(trial, income, ltc_taxable, medical, persons_65, subject_age)
                return breakdown.total + penalty

            gross, _, _ = resolve_gross_withdrawal(net_need, tax_at)

            # === STEP 8: Settle against the buckets ===
            settlement = self.withdrawal_engine.settle_retirement_year(gross, rmd, expense, buckets)
            taxes, penalty = self._year_taxes(settlement, income, ltc_taxable, medical, persons_65, subject_age)
            year_tax = taxes.total + penalty
            lifetime_tax += year_tax

            # Income left over after spending and tax is saved
            leftover = income.total + settlement.total_withdrawn - settlement.reinvested - spending - year_tax
            if leftover > 0 and settlement.shortfall == 0:
                buckets["taxable"].deposit(leftover)

            # === STEP 9: Returns ===
            real_return = float(market.real_returns[t])
            for bucket in buckets.values():
                bucket.apply_return(real_return)

            total_balance = sum(b.principal for b in buckets.values())
            if not np.isfinite(total_balance):
                raise FloatingPointError(f"non-finite balance in year {year}")
            balance_path.append(total_balance)

            if params.keep_ledgers:
                ledger.append(YearRecord(
                    year=year,
                    subject_age=subject_age,
                    spouse_age=spouse_age,
                    phase="retirement" if retired else "accumulation",
                    real_return=real_return,
                    inflation=float(market.inflation[t]),
                    salary=income.salary,
                    social_security=income.social_security,
                    taxable_social_security=taxes.taxable_ss,
                    pension=income.pension,
                    part_time=income.part_time,
                    annuity=income.annuity,
                    contributions=contributions,
                    withdrawals=dict(settlement.withdrawals),
                    rmd=settlement.rmd,
                    ltc_cost=sum(y.cost for y in ltc_years),
                    ltc_benefit=sum(y.benefit for y in ltc_years),
                    ltc_out_of_pocket=ltc_out_of_pocket,
                    ltc_premium=ltc_premium,
                    ltc_states=tuple(y.state.value for y in ltc_years),
                    expense=expense,
                    federal_tax=taxes.federal,
                    state_tax=taxes.state,
                    penalty_tax=penalty,
                    shortfall=settlement.shortfall,
                    balances={name: b.principal for name, b in buckets.items()},
                ))

            # === STEP 10: Depletion ===
            if settlement.shortfall > SHORTFALL_TOLERANCE:
                depletion_year = year
                depletion_age = subject_age
                logger.debug(f"Iteration {index} depleted in {year} (short ${settlement.shortfall:,.0f})")
                break

        # Depleted paths carry their last balance through the remaining years
        if len(balance_path) < self.num_years:
            last = balance_path[-1] if balance_path else 0.0
            balance_path.extend([last] * (self.num_years - len(balance_path)))

        return IterationOutcome(
            index=index,
            success=depletion_year is None,
            ending_balance=balance_path[-1],
            depletion_year=depletion_year,
            depletion_age=depletion_age,
            lifetime_tax=lifetime_tax,
            ltc_total_cost=sum(m.total_cost for m in ltc_models),
            ltc_out_of_pocket=sum(m.total_out_of_pocket for m in ltc_models),
            had_ltc_episode=any(m.had_episode for m in ltc_models),
            balance_path=tuple(balance_path),
            ledger=ledger if params.keep_ledgers else None,
        )

    # =========================================================================
    # 3. TAXES FOR A SETTLEMENT
    # =========================================================================
    def _year_taxes(self,
                    settlement: SettlementResult,
                    income: IncomeBreakdown,
                    ltc_taxable: float,
                    medical_expenses: float,
                    persons_65_plus: int,
                    subject_age: int) -> Tuple[TaxBreakdown, float]:
        """Income tax on the year's cash flows plus any early-withdrawal penalty."""
        ordinary = income.ordinary_taxable + settlement.ordinary_income + ltc_taxable
        gains = settlement.capital_gains

        itemized = 0.0
        if medical_expenses > 0:
            itemized = max(0.0, medical_expenses - MEDICAL_EXPENSE_AGI_FLOOR * (ordinary + gains))

        taxes = calculate_taxes(
            self.filing_status,
            self.params.state,
            ordinary_income=ordinary,
            lt_cap_gains=gains,
            social_security_income=income.social_security,
            pension_income=income.pension,
            persons_65_plus=persons_65_plus,
            itemized_deductions_amount=itemized,
        )

        penalty = 0.0
        if subject_age < early_withdrawal_age:
            penalty = early_withdrawal_penalty * (settlement.withdrawals["tax_deferred"] - settlement.rmd)

        return taxes, penalty


# =============================================================================
# Process pool helpers (each worker builds its own simulator once)
# =============================================================================
_worker_simulator: Optional[RetirementSimulator] = None


def _init_worker(params: SimulationParameters):
    global _worker_simulator
    _worker_simulator = RetirementSimulator(params)


def _run_worker_iteration(task):
    index, seed = task
    return _worker_simulator.run_iteration(index, seed)


def run_simulation(params: SimulationParameters, workers: int = 1,
                   progress: Optional[ProgressCallback] = None) -> SimulationResult:
    """Convenience wrapper: build the simulator and run it."""
    return RetirementSimulator(params).run_simulation(workers=workers, progress=progress)
