# engine/results.py
#
# Turns per-iteration outcomes into distribution statistics.
#

from typing import List, Sequence

import numpy as np
import pandas as pd

from models import IterationOutcome, SimulationResult
from config.ltc_assumptions import MEDICAID_RISK_THRESHOLD

PERCENTILES = (10, 25, 50, 75, 90)


def percentile_summary(values: Sequence[float], percentiles: Sequence[int] = PERCENTILES) -> dict:
    """Linear-interpolation percentiles, {10: ..., 25: ..., ...}. NaN when empty."""
    if len(values) == 0:
        return {p: float("nan") for p in percentiles}
    points = np.percentile(np.asarray(values, dtype=float), percentiles)
    return {p: float(v) for p, v in zip(percentiles, points)}


def yearly_bands(outcomes: Sequence[IterationOutcome], start_year: int,
                 percentiles: Sequence[int] = PERCENTILES) -> pd.DataFrame:
    """
    Percentiles of end-of-year total balance across iterations, one row per year
    (columns p10 .. p90).
    """
    paths = {o.index: pd.Series(o.balance_path, dtype=float) for o in outcomes if o.balance_path}
    if not paths:
        return pd.DataFrame(columns=[f"p{p}" for p in percentiles])

    all_assets = pd.DataFrame(paths)
    all_assets.index = start_year + all_assets.index
    all_assets.index.name = "year"

    bands = pd.DataFrame(
        {f"p{p}": all_assets.quantile(p / 100, axis=1) for p in percentiles},
        index=all_assets.index,
    )
    return bands


def aggregate_results(
    outcomes: List[IterationOutcome],
    start_year: int,
    keep_outcomes: bool = False,
    expected_ltc_cost: float = 0.0,
) -> SimulationResult:
    """
    Success probability, ending balance statistics and LTC summary.

    Excluded iterations (numeric failures) are counted but left out of every
    rate and percentile.
    """
    valid = [o for o in outcomes if not o.excluded]
    excluded = len(outcomes) - len(valid)
    successes = sum(1 for o in valid if o.success)

    endings = np.array([o.ending_balance for o in valid], dtype=float)
    if len(valid):
        success_probability = successes / len(valid)
        mean_ending = float(endings.mean())
        median_ending = float(np.median(endings))
    else:
        success_probability = 0.0
        mean_ending = median_ending = float("nan")

    depletion_ages = [o.depletion_age for o in valid if o.depletion_age is not None]

    def _mean(values):
        return float(np.mean(values)) if len(values) else 0.0

    return SimulationResult(
        success_probability=success_probability,
        total_iterations=len(outcomes),
        successful_iterations=successes,
        failed_iterations=len(valid) - successes,
        excluded_iterations=excluded,
        mean_ending_balance=mean_ending,
        median_ending_balance=median_ending,
        percentiles=percentile_summary(endings),
        yearly_bands=yearly_bands(valid, start_year),
        median_depletion_age=float(np.median(depletion_ages)) if depletion_ages else None,
        mean_lifetime_tax=_mean([o.lifetime_tax for o in valid]),
        ltc_episode_rate=_mean([1.0 if o.had_ltc_episode else 0.0 for o in valid]),
        mean_ltc_cost=_mean([o.ltc_total_cost for o in valid]),
        medicaid_risk_rate=_mean([1.0 if o.ltc_out_of_pocket > MEDICAID_RISK_THRESHOLD else 0.0 for o in valid]),
        expected_ltc_cost=expected_ltc_cost,
        outcomes=outcomes if keep_outcomes else None,
    )
