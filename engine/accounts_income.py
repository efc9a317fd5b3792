# engine/accounts_income.py

from dataclasses import dataclass
from typing import Optional

from models import PersonProfile, SimulationParameters
from engine.rmd_tables import required_minimum_distribution
from utils.ss_utils import get_full_retirement_age, claiming_adjustment_factor, earnings_test_reduction
from config.expense_assumptions import (
    part_time_decay_rate,
    part_time_end_age,
    ss_earnings_test_limit,
    ss_earnings_test_ratio,
)

# Payments per year by annuity frequency
ANNUITY_PAYMENTS_PER_YEAR = {"monthly": 12, "quarterly": 4, "annual": 1, "annually": 1}


@dataclass
class IncomeBreakdown:
    """Guaranteed (non-portfolio) income for one year, real dollars."""
    salary: float = 0.0
    social_security: float = 0.0
    pension: float = 0.0
    part_time: float = 0.0
    annuity: float = 0.0
    annuity_taxable: float = 0.0

    @property
    def total(self) -> float:
        return self.salary + self.social_security + self.pension + self.part_time + self.annuity

    @property
    def ordinary_taxable(self) -> float:
        """Fully taxable ordinary income (Social Security is handled separately)."""
        return self.salary + self.pension + self.part_time + self.annuity_taxable


class AccountsIncomeEngine:
    """
    Guaranteed income streams and RMDs for a household, year by year.
    Each spouse's streams are gated by that spouse's own ages.
    """
    def __init__(self, params: SimulationParameters):
        self.params = params

    # ----------------------------------------------------------------------
    # Per-person streams
    # ----------------------------------------------------------------------
    def compute_ss_benefit(self, person: PersonProfile, age: int, earned_income: float = 0.0) -> float:
        """Annual benefit once the claim age is reached, after the earnings test."""
        if person.ss_benefit_fra <= 0 or age < person.ss_claim_age:
            return 0.0

        fra_age = get_full_retirement_age(person.birth_year)
        annual = person.ss_benefit_fra * 12 * claiming_adjustment_factor(person.ss_claim_age, fra_age)

        withheld = earnings_test_reduction(
            annual, earned_income, age, fra_age,
            limit=ss_earnings_test_limit, ratio=ss_earnings_test_ratio,
        )
        return annual - withheld

    def compute_pension(self, person: PersonProfile, age: int, inflation_index: float) -> float:
        if person.pension_annual <= 0 or age < person.pension_start_age:
            return 0.0
        if person.pension_cola:
            return person.pension_annual
        # Fixed nominal payment loses purchasing power
        return person.pension_annual / inflation_index

    def compute_part_time(self, person: PersonProfile, age: int) -> float:
        """Part-time earnings fade 10% of the base per year and stop at 75."""
        start_age = person.part_time_start_age if person.part_time_start_age is not None else person.retirement_age
        if person.part_time_income <= 0 or age < start_age or age >= part_time_end_age:
            return 0.0
        factor = max(0.0, 1.0 - part_time_decay_rate * (age - start_age))
        return person.part_time_income * factor

    def compute_annuities(self, person: PersonProfile, year: int, inflation_index: float) -> tuple[float, float]:
        """Returns (total, taxable) annuity income in real dollars."""
        total = 0.0
        taxable = 0.0
        for stream in person.annuities:
            if year < stream.payout_start_year:
                continue
            payments = ANNUITY_PAYMENTS_PER_YEAR.get(stream.frequency, 12)
            amount = stream.payment * payments / inflation_index
            total += amount
            if stream.taxable:
                taxable += amount
        return total, taxable

    # ----------------------------------------------------------------------
    # Household totals
    # ----------------------------------------------------------------------
    def guaranteed_income(self, year_index: int, inflation_index: float = 1.0) -> IncomeBreakdown:
        """
        Sums every living person's non-portfolio income for the year.
        A spouse still below their retirement age contributes salary.
        """
        year = self.params.start_year + year_index
        income = IncomeBreakdown()

        for person in self.params.persons:
            age = person.age_in(year_index)
            if not person.alive_at(age):
                continue

            working = age < person.retirement_age
            if working:
                income.salary += person.salary

            part_time = self.compute_part_time(person, age)
            earned = (person.salary if working else 0.0) + part_time
            income.part_time += part_time
            income.social_security += self.compute_ss_benefit(person, age, earned)
            income.pension += self.compute_pension(person, age, inflation_index)

            annuity_total, annuity_taxable = self.compute_annuities(person, year, inflation_index)
            income.annuity += annuity_total
            income.annuity_taxable += annuity_taxable

        return income

    def rmd_owner(self, year_index: int) -> Optional[PersonProfile]:
        """The tax-deferred bucket belongs to the subject; a surviving spouse inherits it."""
        subject = self.params.subject
        if subject.alive_at(subject.age_in(year_index)):
            return subject
        spouse = self.params.spouse
        if spouse is not None and spouse.alive_at(spouse.age_in(year_index)):
            return spouse
        return None

    def compute_rmd(self, tax_deferred_balance: float, year_index: int) -> float:
        """Required distribution for the year from the tax-deferred bucket."""
        owner = self.rmd_owner(year_index)
        if owner is None:
            return 0.0
        return required_minimum_distribution(
            tax_deferred_balance,
            owner.age_in(year_index),
            birth_year=owner.birth_year,
            use_secure2=self.params.use_secure2_rmd_ages,
        )

    def persons_65_plus(self, year_index: int) -> int:
        count = 0
        for person in self.params.persons:
            age = person.age_in(year_index)
            if person.alive_at(age) and age >= 65:
                count += 1
        return count
