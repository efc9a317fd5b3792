# utils/ss_utils.py

# Birth-year bands: (first year, last year, FRA at the first year, months added per year)
FRA_SCHEDULE = (
    (1938, 1942, 65.0, 2),
    (1943, 1954, 66.0, 0),
    (1955, 1959, 66.0, 2),
)


def get_full_retirement_age(birth_year: int, birth_month: int = 6, birth_day: int = 15) -> float:
    """
    Full Retirement Age in years for a birth date, per the SSA schedule.
    People born on January 1st use the prior year's FRA.
    """
    year = birth_year - 1 if (birth_month, birth_day) == (1, 1) else birth_year

    if year <= 1937:
        return 65.0
    for first, last, base_age, months_per_year in FRA_SCHEDULE:
        if first <= year <= last:
            return base_age + (year - first + (1 if months_per_year else 0)) * months_per_year / 12.0
    return 67.0


def claiming_adjustment_factor(claim_age: float, fra_age: float) -> float:
    """
    Share of the FRA benefit received when claiming at `claim_age`.
    Early: 5/9 of 1% per month for the first 36 months, 5/12 of 1% after.
    Delayed: 2/3 of 1% per month (8% per year), no credit past 70.
    """
    months_diff = int(round((claim_age - fra_age) * 12))

    if months_diff == 0:
        return 1.0 # Claiming at FRA

    if months_diff > 0:
        months_delayed = min(months_diff, int(round((70 - fra_age) * 12)))
        return 1.0 + (0.00667 * months_delayed)

    months_early = abs(months_diff)
    if months_early <= 36:
        reduction = months_early * 0.00556
    else:
        reduction = (36 * 0.00556) + ((months_early - 36) * 0.00417)

    return max(1.0 - reduction, 0.70) # Floor at age 62 (approx)


def earnings_test_reduction(annual_benefit: float, earned_income: float, age: float, fra_age: float,
                            limit: float, ratio: float) -> float:
    """Benefits withheld before FRA: `ratio` dollars per dollar of earnings above `limit`."""
    if age >= fra_age or earned_income <= limit:
        return 0.0
    return min(annual_benefit, (earned_income - limit) * ratio)
