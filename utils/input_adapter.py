# utils/input_adapter.py
import datetime
import logging
from typing import Any, Dict, List, Mapping, Optional

from models import (
    HEALTH_STATUSES,
    INFLATION_RIDERS,
    AnnuityStream,
    AssetBalances,
    InsurancePolicy,
    InvalidParameter,
    PersonProfile,
    SimulationParameters,
)
from utils.currency import clean_currency, clean_fraction, clean_int, clean_percent
from utils.tax_utils import normalize_filing_status
from config.expense_assumptions import (
    default_monthly_retirement_expense,
    default_retirement_age,
    default_life_expectancy,
    default_ss_claim_age,
    default_filing_status,
    default_state,
    default_iterations,
    default_taxable_basis_ratio,
)
from config.market_assumptions import (
    default_expected_return,
    default_return_volatility,
    default_inflation_mu,
    default_inflation_sigma,
)

logger = logging.getLogger(__name__)

# Account type -> bucket. Keys are lower case with spaces, dashes and
# underscores removed.
ACCOUNT_BUCKETS = {
    # Tax-deferred
    "401k": "tax_deferred",
    "403b": "tax_deferred",
    "457b": "tax_deferred",
    "traditional": "tax_deferred",
    "traditionalira": "tax_deferred",
    "ira": "tax_deferred",
    "sepira": "tax_deferred",
    "sep": "tax_deferred",
    "simpleira": "tax_deferred",
    "simple": "tax_deferred",
    "rolloverira": "tax_deferred",
    "taxdeferred": "tax_deferred",
    # Tax-free
    "roth": "tax_free",
    "rothira": "tax_free",
    "roth401k": "tax_free",
    "roth403b": "tax_free",
    "taxfree": "tax_free",
    # Taxable
    "brokerage": "taxable",
    "taxable": "taxable",
    "cash": "taxable",
    "savings": "taxable",
    "checking": "taxable",
    "moneymarket": "taxable",
    "cd": "taxable",
    "cds": "taxable",
    # HSA
    "hsa": "hsa",
}


def classify_account(account_type: Any) -> str:
    """Maps a declared account type / tax treatment to exactly one bucket."""
    key = str(account_type or "").lower()
    for ch in " -_.()":
        key = key.replace(ch, "")
    bucket = ACCOUNT_BUCKETS.get(key)
    if bucket is None:
        logger.debug(f"Unknown account type '{account_type}', treating as taxable.")
        return "taxable"
    return bucket


def _choice(value: Any, allowed, default: str) -> str:
    text = str(value or "").strip().lower().replace(" ", "_")
    return text if text in allowed else default


def _flag(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "on")
    return bool(value)


def _first(record: Mapping, *keys, default=None):
    """First present, non-empty value among `keys`."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return default


# ----------------------------------------------------------------------
# Nested pieces
# ----------------------------------------------------------------------

def _parse_policy(raw: Optional[Mapping]) -> Optional[InsurancePolicy]:
    if not raw:
        return None
    daily = clean_currency(_first(raw, "daily_benefit", "daily"), default=0.0)
    if daily <= 0:
        return None
    premium = clean_currency(_first(raw, "annual_premium", "premium"), default=None)
    return InsurancePolicy(
        daily_benefit=daily,
        elimination_days=clean_int(_first(raw, "elimination_days", "elimination_period"), default=90),
        benefit_period_years=clean_currency(_first(raw, "benefit_period_years", "benefit_period"), default=3.0),
        inflation_rider=_choice(raw.get("inflation_rider"), INFLATION_RIDERS, "none"),
        purchase_age=clean_int(raw.get("purchase_age")),
        tax_qualified=_flag(raw.get("tax_qualified"), True),
        annual_premium=premium,
        shared_care=_flag(raw.get("shared_care")),
    )


def _parse_annuities(raw: Optional[List[Mapping]]) -> tuple:
    streams = []
    for row in raw or []:
        payment = clean_currency(_first(row, "payment", "amount"), default=0.0)
        if payment <= 0:
            continue
        streams.append(AnnuityStream(
            payment=payment,
            frequency=str(row.get("frequency") or "monthly").lower(),
            payout_start_year=clean_int(row.get("payout_start_year"), default=0),
            taxable=_flag(row.get("taxable"), True),
        ))
    return tuple(streams)


def _parse_person(raw: Mapping, start_year: int, role: str) -> PersonProfile:
    age = clean_int(_first(raw, "current_age", "age"))
    if age is None:
        raise InvalidParameter(f"{role} current age is required")
    if age < 0:
        raise InvalidParameter(f"{role} age cannot be negative ({age})")

    retirement_age = clean_int(raw.get("retirement_age"), default=max(default_retirement_age, age))
    if retirement_age < age:
        raise InvalidParameter(f"{role} retirement age {retirement_age} is before current age {age}")

    life_expectancy = clean_int(raw.get("life_expectancy"), default=default_life_expectancy)
    if life_expectancy <= age:
        raise InvalidParameter(f"{role} life expectancy {life_expectancy} must be after current age {age}")

    return PersonProfile(
        current_age=age,
        retirement_age=retirement_age,
        life_expectancy=life_expectancy,
        birth_year=clean_int(raw.get("birth_year"), default=start_year - age),
        gender=_choice(raw.get("gender"), ("male", "female"), "male"),
        health_status=_choice(raw.get("health_status"), HEALTH_STATUSES, "good"),
        salary=clean_currency(raw.get("salary")),
        contribution_401k=clean_currency(raw.get("contribution_401k")),
        contribution_ira=clean_currency(raw.get("contribution_ira")),
        contribution_roth=clean_currency(raw.get("contribution_roth")),
        contribution_brokerage=clean_currency(raw.get("contribution_brokerage")),
        contribution_hsa=clean_currency(raw.get("contribution_hsa")),
        ss_benefit_fra=clean_currency(_first(raw, "ss_benefit_fra", "ss_benefit")),
        ss_claim_age=clean_currency(raw.get("ss_claim_age"), default=default_ss_claim_age),
        pension_annual=clean_currency(_first(raw, "pension_annual", "pension")),
        pension_start_age=clean_int(raw.get("pension_start_age"), default=default_retirement_age),
        pension_cola=_flag(raw.get("pension_cola")),
        part_time_income=clean_currency(raw.get("part_time_income")),
        part_time_start_age=clean_int(raw.get("part_time_start_age")),
        annuities=_parse_annuities(raw.get("annuities")),
        ltc_policy=_parse_policy(_first(raw, "ltc_policy", "ltc_insurance")),
    )


def _parse_accounts(accounts: Optional[List[Mapping]]) -> tuple:
    """Returns (AssetBalances, taxable cost-basis ratio or None)."""
    totals = {"taxable": 0.0, "tax_deferred": 0.0, "tax_free": 0.0, "hsa": 0.0}
    taxable_basis = 0.0
    has_basis = False

    for row in accounts or []:
        bucket = classify_account(_first(row, "type", "account_type", "tax"))
        balance = max(0.0, clean_currency(row.get("balance")))
        totals[bucket] += balance
        if bucket == "taxable":
            basis = clean_currency(_first(row, "cost_basis", "basis"), default=None)
            if basis is not None:
                has_basis = True
                taxable_basis += min(max(0.0, basis), balance)
            else:
                taxable_basis += balance * default_taxable_basis_ratio

    ratio = None
    if has_basis and totals["taxable"] > 0:
        ratio = taxable_basis / totals["taxable"]
    return AssetBalances(**totals), ratio


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------

def build_simulation_parameters(record: Mapping[str, Any], **overrides: Any) -> SimulationParameters:
    """
    Builds SimulationParameters from a loosely-structured household record.

    Missing or non-numeric values fall back to the named defaults in
    config/; only structurally invalid input raises InvalidParameter.
    Keyword overrides are merged over the record and go through the same
    cleaning. `subject`, `spouse` and `balances` may also be given as
    already-built PersonProfile / AssetBalances values.
    """
    merged: Dict[str, Any] = dict(record)
    merged.update(overrides)

    # 1. Timeframe and household
    start_year = clean_int(merged.get("start_year"), default=datetime.date.today().year)
    raw_subject = merged.get("subject")
    if isinstance(raw_subject, PersonProfile):
        subject = raw_subject
    else:
        subject = _parse_person(raw_subject or merged, start_year, "subject")
    raw_spouse = merged.get("spouse")
    if isinstance(raw_spouse, PersonProfile) or not raw_spouse:
        spouse = raw_spouse or None
    else:
        spouse = _parse_person(raw_spouse, start_year, "spouse")

    default_status = "married_filing_jointly" if spouse is not None else default_filing_status
    filing_status = normalize_filing_status(merged.get("filing_status") or default_status)

    # 2. Assets
    balances, basis_ratio = _parse_accounts(_first(merged, "accounts", "assets", default=[]))
    if isinstance(merged.get("balances"), AssetBalances):
        balances = merged["balances"]
    if basis_ratio is None:
        basis_ratio = clean_fraction(merged.get("taxable_basis_ratio"), default=default_taxable_basis_ratio)

    # 3. Spending and savings (annual, real dollars)
    annual_expense = clean_currency(merged.get("annual_retirement_expense"), default=None)
    if annual_expense is None:
        monthly = clean_currency(merged.get("monthly_expense"), default=default_monthly_retirement_expense)
        annual_expense = monthly * 12

    # 4. Run settings
    iterations = clean_int(merged.get("iterations"), default=default_iterations)
    if iterations <= 0:
        raise InvalidParameter(f"iterations must be positive ({iterations})")

    # A bare 1 means certainty here, not 1%
    ltc_probability = clean_fraction(merged.get("ltc_lifetime_probability"))
    if ltc_probability is not None and not 0.0 <= ltc_probability <= 1.0:
        raise InvalidParameter(f"ltc_lifetime_probability out of range ({ltc_probability})")

    values = {
        "start_year": start_year,
        "filing_status": filing_status,
        "state": str(merged.get("state") or default_state).strip().upper(),
        "subject": subject,
        "spouse": spouse,
        "balances": balances,
        "taxable_basis_ratio": basis_ratio,
        "expected_return": clean_percent(merged.get("expected_return"), default=default_expected_return),
        "return_volatility": clean_percent(_first(merged, "return_volatility", "volatility"),
                                           default=default_return_volatility),
        "inflation_rate": clean_percent(_first(merged, "inflation_rate", "inflation"), default=default_inflation_mu),
        "inflation_volatility": clean_percent(merged.get("inflation_volatility"), default=default_inflation_sigma),
        "use_glide_path": _flag(merged.get("use_glide_path")),
        "annual_retirement_expense": annual_expense,
        "annual_savings": clean_currency(merged.get("annual_savings")),
        "ltc_enabled": _flag(merged.get("ltc_enabled"), True),
        "ltc_strategy": str(merged.get("ltc_strategy") or "single_event"),
        "ltc_lifetime_probability": ltc_probability,
        "use_secure2_rmd_ages": _flag(merged.get("use_secure2_rmd_ages")),
        "iterations": iterations,
        "seed": clean_int(merged.get("seed")),
        "keep_ledgers": _flag(merged.get("keep_ledgers")),
    }
    return SimulationParameters(**values)
