# withdrawal_engine.py

import copy
from dataclasses import dataclass, field
from typing import Dict, Sequence

from models import AssetBucket, PersonProfile
from config.expense_assumptions import (
    hsa_healthcare_share,
    wage_growth_rate,
    surplus_split,
    contribution_limit_base_year,
    limit_growth_rate,
    limit_401k,
    catch_up_401k,
    limit_ira,
    catch_up_ira,
    limit_hsa_self,
    limit_hsa_family,
    catch_up_hsa,
    catch_up_age,
    hsa_catch_up_age,
)

# Handles logic for settling a year's cash need against the asset buckets
#

@dataclass
class SettlementResult:
    withdrawals: Dict[str, float] = field(default_factory=dict)
    rmd: float = 0.0
    reinvested: float = 0.0     # RMD cash beyond the need, moved to taxable
    ordinary_income: float = 0.0
    capital_gains: float = 0.0
    shortfall: float = 0.0

    @property
    def total_withdrawn(self) -> float:
        return sum(self.withdrawals.values())


class WithdrawalEngine:
    """
    Handles the order in which buckets are drawn in retirement and how
    savings are allocated to buckets while working.
    """
    def __init__(self, taxable_basis_ratio: float = 1.0, healthcare_share: float = hsa_healthcare_share):
        self.taxable_basis_ratio = taxable_basis_ratio
        self.healthcare_share = healthcare_share

    def _get_withdrawal_order(self) -> list:
        """Discretionary order once HSA and RMD are applied: tax-free money is kept for last."""
        return ["taxable", "tax_deferred", "tax_free"]

    def settle_retirement_year(self,
                               cash_needed: float,
                               rmd: float,
                               annual_expense: float,
                               buckets: Dict[str, AssetBucket],
                               simulate_only: bool = False) -> SettlementResult:
        """
        The Core Engine: draws cash_needed from the buckets.

        Args:
            cash_needed: Cash the portfolio must provide this year.
            rmd: Required distribution, taken from tax-deferred regardless of need.
            annual_expense: Used to cap the HSA draw at the healthcare share.
            buckets: The iteration's buckets, keyed by name.
            simulate_only: If True, works on a copy so taxes can be estimated.

        Returns:
            SettlementResult. No bucket is ever taken below zero; any need the
            buckets cannot meet is returned as the shortfall.
        """
        working = copy.deepcopy(buckets) if simulate_only else buckets
        result = SettlementResult(withdrawals={name: 0.0 for name in working})
        remaining = max(0.0, cash_needed)

        # 1. HSA, up to the healthcare share of spending
        hsa_draw = working["hsa"].withdraw(min(remaining, self.healthcare_share * annual_expense))
        result.withdrawals["hsa"] += hsa_draw
        remaining -= hsa_draw

        # 2. Mandatory RMD, whatever the need
        rmd_taken = working["tax_deferred"].withdraw(rmd)
        result.rmd = rmd_taken
        result.withdrawals["tax_deferred"] += rmd_taken
        applied = min(rmd_taken, remaining)
        remaining -= applied
        result.reinvested = rmd_taken - applied
        working["taxable"].deposit(result.reinvested)

        # 3-5. Remaining need: taxable, then tax-deferred, then tax-free
        for name in self._get_withdrawal_order():
            if remaining <= 0:
                break
            amt = working[name].withdraw(remaining)
            result.withdrawals[name] += amt
            remaining -= amt

        # Tax Characterization
        result.ordinary_income = result.withdrawals["tax_deferred"]
        result.capital_gains = result.withdrawals["taxable"] * max(0.0, 1.0 - self.taxable_basis_ratio)
        result.shortfall = max(0.0, remaining)
        return result

    # ----------------------------------------------------------------------
    # Accumulation
    # ----------------------------------------------------------------------
    @staticmethod
    def _limit_factor(year: int) -> float:
        return (1 + limit_growth_rate) ** max(0, year - contribution_limit_base_year)

    def contribution_limits(self, age: int, year: int, family_hsa: bool = False) -> Dict[str, float]:
        """Annual limits for one person, with catch-up amounts from 50 (55 for HSA)."""
        factor = self._limit_factor(year)
        limits = {
            "401k": limit_401k * factor,
            "ira": limit_ira * factor,
            "hsa": (limit_hsa_family if family_hsa else limit_hsa_self) * factor,
        }
        if age >= catch_up_age:
            limits["401k"] += catch_up_401k * factor
            limits["ira"] += catch_up_ira * factor
        if age >= hsa_catch_up_age:
            limits["hsa"] += catch_up_hsa * factor
        return limits

    def allocate_contributions(self,
                               year_index: int,
                               year: int,
                               workers: Sequence[PersonProfile],
                               surplus: float,
                               buckets: Dict[str, AssetBucket],
                               family_hsa: bool = False) -> Dict[str, float]:
        """
        Deposits one working year's savings.

        Base contributions and the surplus grow with wages. The surplus is
        split 35/35/30 across 401k / IRA / brokerage; 401k, IRA (traditional
        and Roth share one limit) and HSA amounts are clipped to the workers'
        combined limits and the excess goes to taxable brokerage.
        """
        wage_factor = (1 + wage_growth_rate) ** year_index
        surplus = max(0.0, surplus) * wage_factor

        want_401k = surplus * surplus_split["401k"]
        want_ira = surplus * surplus_split["ira"]
        want_roth = 0.0
        want_hsa = 0.0
        brokerage = surplus * surplus_split["brokerage"]
        cap_401k = cap_ira = cap_hsa = 0.0

        for person in workers:
            want_401k += person.contribution_401k * wage_factor
            want_ira += person.contribution_ira * wage_factor
            want_roth += person.contribution_roth * wage_factor
            want_hsa += person.contribution_hsa * wage_factor
            brokerage += person.contribution_brokerage * wage_factor

            limits = self.contribution_limits(person.age_in(year_index), year, family_hsa)
            cap_401k += limits["401k"]
            cap_ira += limits["ira"]
            cap_hsa += limits["hsa"]

        to_401k = min(want_401k, cap_401k)
        to_roth = min(want_roth, cap_ira)
        to_ira = min(want_ira, cap_ira - to_roth)
        to_hsa = min(want_hsa, cap_hsa)

        overflow = (want_401k - to_401k) + (want_roth - to_roth) + (want_ira - to_ira) + (want_hsa - to_hsa)
        brokerage += overflow

        contributions = {
            "taxable": brokerage,
            "tax_deferred": to_401k + to_ira,
            "tax_free": to_roth,
            "hsa": to_hsa,
        }
        for name, amount in contributions.items():
            buckets[name].deposit(amount)
        return contributions
