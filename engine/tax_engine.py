"""
U.S. federal and state income tax for retirement cash flows.
It contains the final tax formulas (brackets, Social Security inclusion,
combined effective rate) and the bounded fixed-point loop that grosses a
net spending need up to the withdrawal that covers its own tax.
All amounts are in real (today's) dollars.
"""
from typing import Callable, Dict, List, NamedTuple, Tuple, Union
import numpy as np
import logging

logger = logging.getLogger(__name__)

from utils.tax_utils import (
    get_federal_constants,
    get_state_tax_profile,
    normalize_filing_status,
    SS_TAX_THRESHOLDS,
    TaxFilingStatus, # For type hints
)

# Gross-up loop limits: stop when successive estimates differ by less than
# GROSS_UP_TOLERANCE dollars, or after MAX_GROSS_UP_ITERATIONS passes.
GROSS_UP_TOLERANCE = 50.0
MAX_GROSS_UP_ITERATIONS = 10


class TaxBreakdown(NamedTuple):
    total: float
    federal: float
    state: float
    taxable_ss: float
    agi: float


# --- 1. Internal Helper Functions ---

def _federal_income_tax(
    taxable_ordinary_base: float,
    lt_cap_gains: float,
    federal_constants: Dict[str, Union[float, List]],
) -> float:
    """Calculates the Federal Income Tax (Ordinary + LTCG)."""

    # 1. Tax on Ordinary Income
    ord_tax = 0.0
    remaining_taxable = taxable_ordinary_base

    for low, high, rate in federal_constants["ord_list"]:
        if remaining_taxable <= 0:
            break
        bracket_income = min(remaining_taxable, high - low) if np.isfinite(high) else remaining_taxable
        ord_tax += bracket_income * rate
        remaining_taxable -= bracket_income

    # 2. Tax on Preferential Income, stacked on top of ordinary income
    ltcg_tax = 0.0
    taxable_income = taxable_ordinary_base + lt_cap_gains

    for low, high, rate in federal_constants["cg_list"]:
        bracket_start = max(low, taxable_ordinary_base)
        bracket_end = min(high, taxable_income) if np.isfinite(high) else taxable_income
        ltcg_tax += max(0, bracket_end - bracket_start) * rate

    return ord_tax + ltcg_tax


def _state_income_tax(
    state: str,
    ordinary_income: float,
    lt_cap_gains: float,
    taxable_ss: float,
    pension_income: float,
) -> float:
    """Flat-rate state tax after the state's pension exclusion and SS exemption."""
    income_rate, cg_rate, ss_taxed, pension_exclusion = get_state_tax_profile(state)

    excluded = min(pension_income, pension_exclusion)
    state_ordinary = max(0.0, ordinary_income - excluded)
    if ss_taxed:
        state_ordinary += taxable_ss

    return state_ordinary * income_rate + max(0.0, lt_cap_gains) * cg_rate


# --- 2. Social Security inclusion ---

def compute_taxable_ss(total_ss_benefit: float, other_income: float, filing_status: str) -> float:
    """
    Taxable portion of Social Security under the provisional-income test
    (IRS Worksheet 1) with statutory, non-indexed thresholds.

    provisional = other income + 1/2 of benefits. Between the two thresholds
    up to 50% is included (never more than half the benefit); above the
    second, 85% of the excess is added, capped at 85% of the benefit.
    """
    if total_ss_benefit <= 0:
        return 0.0

    status = normalize_filing_status(filing_status)
    if status not in SS_TAX_THRESHOLDS:
        status = "single"   # head of household uses the single thresholds

    provisional_income = other_income + 0.5 * total_ss_benefit
    brackets = SS_TAX_THRESHOLDS[status]

    if len(brackets) == 1:
        # Married filing separately (living together): no base amount
        return min(0.85 * provisional_income, 0.85 * total_ss_benefit)

    first = brackets[1][0]
    second = brackets[2][0]
    if provisional_income <= first:
        return 0.0

    tier_one = min((min(provisional_income, second) - first) * 0.5, 0.5 * total_ss_benefit)
    if provisional_income <= second:
        return tier_one

    return min(tier_one + (provisional_income - second) * 0.85, 0.85 * total_ss_benefit)


# --- 3. Main Orchestrator Function ---

def calculate_taxes(
    filing_status: TaxFilingStatus,
    state: str,
    ordinary_income: float,
    lt_cap_gains: float = 0.0,
    social_security_income: float = 0.0,
    pension_income: float = 0.0,
    persons_65_plus: int = 0,
    itemized_deductions_amount: float = 0.0,
) -> TaxBreakdown:
    """
    Calculates the annual Federal and State income tax.

    Args:
        ordinary_income: Wages, pensions, annuities, RMDs and other tax-deferred
            withdrawals, taxable LTC benefits. Excludes Social Security.
        lt_cap_gains: Realized long-term gains from the taxable bucket.
        social_security_income: Gross benefits; the taxable share is derived here.
        pension_income: Portion of ordinary_income eligible for a state pension exclusion.
        itemized_deductions_amount: Used instead of the standard deduction when larger.

    Returns:
        TaxBreakdown(total, federal, state, taxable_ss, agi)
    """
    constants = get_federal_constants(filing_status, persons_65_plus)

    # 1. AGI, with the taxable share of Social Security
    taxable_ss = compute_taxable_ss(social_security_income, ordinary_income + lt_cap_gains, filing_status)
    agi = ordinary_income + lt_cap_gains + taxable_ss

    # 2. Federal Taxable Income (TI = AGI - Deduction)
    deduction = max(constants["std_deduction"], itemized_deductions_amount)
    taxable_income_fed = max(0.0, agi - deduction)

    # Deduction comes off ordinary income first, gains keep their preferential rate
    taxable_gains = min(lt_cap_gains, taxable_income_fed)
    taxable_ordinary_base = max(0.0, taxable_income_fed - taxable_gains)

    # 3. Federal Income Tax Calculation
    federal_tax = _federal_income_tax(taxable_ordinary_base, taxable_gains, constants)

    # 4. State Income Tax Calculation
    state_tax = _state_income_tax(state, ordinary_income, lt_cap_gains, taxable_ss, pension_income)

    return TaxBreakdown(federal_tax + state_tax, federal_tax, state_tax, taxable_ss, agi)


def effective_tax_rate(taxable_income: float, state: str, filing_status: TaxFilingStatus) -> float:
    """
    Combined effective rate on a given taxable income:
    federal average rate + state rate x (1 - federal average rate).
    """
    if taxable_income <= 0:
        return 0.0
    constants = get_federal_constants(filing_status)
    federal_rate = _federal_income_tax(taxable_income, 0.0, constants) / taxable_income
    state_rate = get_state_tax_profile(state)[0]
    return federal_rate + state_rate * (1.0 - federal_rate)


# --- 4. Gross-up ---

def resolve_gross_withdrawal(
    net_need: float,
    tax_at: Callable[[float], float],
    tolerance: float = GROSS_UP_TOLERANCE,
    max_iterations: int = MAX_GROSS_UP_ITERATIONS,
) -> Tuple[float, float, bool]:
    """
    Finds the portfolio draw `gross` with gross = net_need + tax_at(gross).

    The estimate is seeded at the net need; each pass computes the tax at the
    new cumulative income and re-inflates the draw by it. When the loop runs
    out of passes the last estimate is accepted.

    Args:
        net_need: Spending not covered by guaranteed income (may be negative).
        tax_at: Total tax owed for the year if `gross` is drawn.

    Returns:
        (gross, tax, converged). gross is never negative.
    """
    gross = max(0.0, net_need)
    tax = tax_at(gross)

    for _ in range(max_iterations):
        new_gross = max(0.0, net_need + tax)
        if abs(new_gross - gross) < tolerance:
            return new_gross, tax_at(new_gross), True
        gross = new_gross
        tax = tax_at(gross)

    logger.debug(
        f"Tax gross-up did not converge in {max_iterations} passes "
        f"(net need {net_need:,.0f}); using {gross:,.0f}."
    )
    return gross, tax, False
