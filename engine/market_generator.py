# market_generator.py
#
# This code generates one real (inflation-adjusted) portfolio return and one
# inflation rate per simulated year. Returns are log-normal around either a
# fixed expectation or a glide path that steps down as retirement approaches.
# Nominal values only appear through the Fisher relation below.
#

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from config.market_assumptions import (
    GLIDE_PATH_BANDS,
    inflation_floor,
    real_stock_return,
    real_bond_return,
    real_cash_return,
)


@dataclass(frozen=True)
class MarketPath:
    real_returns: NDArray[np.float64]
    inflation: NDArray[np.float64]

    def inflation_index(self) -> NDArray[np.float64]:
        """Cumulative price level at the END of each year (start of year 0 = 1.0)."""
        return np.cumprod(1.0 + self.inflation)

    def nominal_returns(self) -> NDArray[np.float64]:
        return nominal_from_real(self.real_returns, self.inflation)


def nominal_from_real(real, inflation):
    """Fisher relation: nominal = (1 + real)(1 + inflation) - 1."""
    return (1.0 + real) * (1.0 + inflation) - 1.0


def real_from_nominal(nominal, inflation):
    """Inverse Fisher relation: real = (1 + nominal) / (1 + inflation) - 1."""
    return (1.0 + nominal) / (1.0 + inflation) - 1.0


def glide_path_return(years_to_retirement: int) -> float:
    """
    Expected real return for the glide path band containing `years_to_retirement`
    (>20, 10-20, 5-10, <5 years; retired years use the last band).
    """
    for min_years, stock, bond, cash in GLIDE_PATH_BANDS:
        if min_years is None or years_to_retirement >= min_years:
            return stock * real_stock_return + bond * real_bond_return + cash * real_cash_return
    raise ValueError("GLIDE_PATH_BANDS must end with a catch-all band")


def expected_return_schedule(
    n_years: int,
    expected_return: float,
    glide_path: bool = False,
    years_to_retirement: int = 0,
) -> NDArray[np.float64]:
    """Expected real return for each simulated year."""
    if not glide_path:
        return np.full(n_years, expected_return, dtype=float)
    return np.array(
        [glide_path_return(years_to_retirement - year) for year in range(n_years)],
        dtype=float,
    )


def generate_market_path(
    n_years: int,
    expected_return: float,
    volatility: float,
    inflation_mean: float,
    inflation_volatility: float,
    rng: np.random.Generator,
    glide_path: bool = False,
    years_to_retirement: int = 0,
) -> MarketPath:
    """
    Draw real returns and inflation for one iteration.

    Args:
        n_years: The number of years to simulate.
        expected_return: Arithmetic expected real return (ignored under a glide path).
        volatility: Annual standard deviation of real returns.
        inflation_mean, inflation_volatility: Normal inflation draw parameters.
        rng: Injected random source; the only randomness used.
        glide_path: Use the banded glide path schedule instead of expected_return.
        years_to_retirement: Years until retirement at year 0 (glide path only).

    Returns:
        MarketPath with two 1D arrays of length n_years.
    """
    mu = expected_return_schedule(n_years, expected_return, glide_path, years_to_retirement)

    # --- 1. Log-normal real returns: ln(1 + r) ~ N(mu - sigma^2 / 2, sigma) ---
    log_returns = rng.normal(mu - 0.5 * volatility ** 2, volatility)
    real_returns = np.expm1(log_returns)

    # --- 2. Inflation, floored to prevent excessive deflation ---
    inflation = np.maximum(rng.normal(inflation_mean, inflation_volatility, n_years), inflation_floor)

    return MarketPath(real_returns=real_returns, inflation=inflation)
