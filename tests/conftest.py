"""Shared households for the simulator tests."""

import pytest

from models import AssetBalances, PersonProfile, SimulationParameters


def make_params(subject=None, balances=None, **kwargs) -> SimulationParameters:
    """Single Texas filer; every field can be overridden."""
    subject = subject or PersonProfile(current_age=65, retirement_age=65, life_expectancy=90, birth_year=1961)
    values = dict(
        start_year=2026,
        filing_status="single",
        state="TX",
        subject=subject,
        balances=balances or AssetBalances(),
        ltc_enabled=False,
        iterations=50,
        seed=7,
    )
    values.update(kwargs)
    return SimulationParameters(**values)


@pytest.fixture
def scenario_a() -> SimulationParameters:
    """Age 45, retiring at 65, life expectancy 85, $500k across three buckets."""
    subject = PersonProfile(current_age=45, retirement_age=65, life_expectancy=85, birth_year=1981)
    return make_params(
        subject=subject,
        balances=AssetBalances(taxable=100_000, tax_deferred=300_000, tax_free=100_000),
        annual_savings=30_000,
        annual_retirement_expense=70_000,
        expected_return=0.07,
        return_volatility=0.12,
        inflation_rate=0.025,
        iterations=100,
        seed=2026,
    )


@pytest.fixture
def balanced_retiree() -> SimulationParameters:
    """Retired at 65 with $1M taxable (full basis) and a 6% real draw: roughly a coin flip."""
    subject = PersonProfile(current_age=65, retirement_age=65, life_expectancy=95, birth_year=1961)
    return make_params(
        subject=subject,
        balances=AssetBalances(taxable=1_000_000),
        taxable_basis_ratio=1.0,
        annual_retirement_expense=60_000,
        expected_return=0.05,
        return_volatility=0.15,
        iterations=200,
        seed=11,
    )
