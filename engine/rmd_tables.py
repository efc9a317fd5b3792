# engine/rmd_tables.py

"""
RMD divisor lookup:
- 2022+ IRS Uniform Lifetime Table, ages 72-100 (ages outside clamp to the ends)
- statutory start age (73 by default, SECURE 2.0 birth-year schedule on request)
"""

from typing import Dict, Optional

# =============================================================================
# 2022+ IRS UNIFORM LIFETIME TABLE (AGES 72–100)
# =============================================================================
UNIFORM_LIFETIME_TABLE: Dict[int, float] = {
    72: 27.4, 73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
    78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
    84: 16.9, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
    90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
    96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4,
}
MIN_TABLE_AGE = min(UNIFORM_LIFETIME_TABLE)
MAX_TABLE_AGE = max(UNIFORM_LIFETIME_TABLE)

DEFAULT_RMD_START_AGE = 73


def rmd_start_age(birth_year: Optional[int] = None, use_secure2: bool = False) -> int:
    """
    Age at which distributions become mandatory.

    Without `use_secure2` the statutory default of 73 applies to everyone.
    With it, the birth-year schedule is used: before 1951 -> 72,
    1951-1959 -> 73, 1960 and later -> 75.
    """
    if not use_secure2 or birth_year is None:
        return DEFAULT_RMD_START_AGE
    if birth_year >= 1960:
        return 75
    if birth_year >= 1951:
        return 73
    return 72


def get_rmd_factor(age: int) -> float:
    """
    Returns the IRS divisor for RMD calculations.

    Parameters
    ----------
    age : int
        Age in the distribution calendar year. Ages outside 72-100 clamp to
        the nearest table entry.

    Returns
    -------
    float
        RMD divisor for the given age.
    """
    clamped = min(max(int(age), MIN_TABLE_AGE), MAX_TABLE_AGE)
    return UNIFORM_LIFETIME_TABLE[clamped]


def required_minimum_distribution(
    balance: float,
    age: int,
    birth_year: Optional[int] = None,
    use_secure2: bool = False,
) -> float:
    """Minimum withdrawal for the year from a prior year-end tax-deferred balance."""
    if balance <= 0 or age < rmd_start_age(birth_year, use_secure2):
        return 0.0
    return balance / get_rmd_factor(age)


__all__ = ["get_rmd_factor", "rmd_start_age", "required_minimum_distribution", "UNIFORM_LIFETIME_TABLE"]
