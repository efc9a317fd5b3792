# =============================================================================
# Long-term care assumptions (2024 dollars)
# =============================================================================

# National median annual cost by care setting
BASE_LTC_COSTS = {
    "home_health_aide": 61_776,
    "homemaker_services": 59_488,
    "adult_day_health": 26_000,
    "assisted_living": 70_800,
    "nursing_home_semi": 104_025,
    "nursing_home_private": 127_800,
}

# Fixed care level used by the single-event model
BASE_ANNUAL_LTC_COST = 75_504

# Regional cost multipliers (national index = 1.0)
REGIONAL_LTC_COST_FACTORS = {
    "AL": 0.85, "AK": 1.45, "AZ": 0.95, "AR": 0.80, "CA": 1.35, "CO": 1.10,
    "CT": 1.30, "DE": 1.15, "DC": 1.30, "FL": 0.90, "GA": 0.85, "HI": 1.40,
    "ID": 0.95, "IL": 1.05, "IN": 0.90, "IA": 0.85, "KS": 0.85, "KY": 0.85,
    "LA": 0.80, "ME": 1.10, "MD": 1.20, "MA": 1.35, "MI": 0.95, "MN": 1.15,
    "MS": 0.75, "MO": 0.85, "MT": 0.95, "NE": 0.90, "NV": 1.05, "NH": 1.20,
    "NJ": 1.25, "NM": 0.90, "NY": 1.40, "NC": 0.85, "ND": 1.00, "OH": 0.90,
    "OK": 0.80, "OR": 1.10, "PA": 1.00, "RI": 1.20, "SC": 0.85, "SD": 0.90,
    "TN": 0.85, "TX": 0.90, "UT": 0.95, "VT": 1.15, "VA": 0.95, "WA": 1.20,
    "WV": 0.85, "WI": 0.95, "WY": 1.00,
}
NATIONAL_COST_INDEX = 1.0

# Care costs grow faster than general prices (nominal rate per year)
LTC_COST_INFLATION = 0.035

# Per-episode cost spread: uniform within +/- $20k around a $75k mean,
# never below $40k, expressed as multipliers of the base cost
LTC_COST_SPREAD = 20_000 / 75_000
LTC_COST_FLOOR = 40_000 / 75_000

# -----------------------------------------------------------------------------
# Incidence
# -----------------------------------------------------------------------------

# Annual probability of a healthy person starting care: (upper age bound, rate)
ANNUAL_INCIDENCE_BY_AGE = (
    (65, 0.001),
    (70, 0.003),
    (75, 0.008),
    (80, 0.018),
    (85, 0.035),
    (90, 0.065),
    (95, 0.095),
    (None, 0.12),
)
FEMALE_INCIDENCE_MULTIPLIER = 1.15

# Shared by the per-year walk and the single-event model
LTC_HEALTH_MULTIPLIERS = {"excellent": 0.5, "good": 0.85, "fair": 1.3, "poor": 2.0}

# Used only by the deterministic expected-cost projection
DETERMINISTIC_LTC_HEALTH_MULTIPLIERS = {"excellent": 0.7, "good": 1.0, "fair": 1.3, "poor": 1.6}
DETERMINISTIC_BASE_PROBABILITY = 0.70
DETERMINISTIC_CARE_YEARS = 2

# Single-event model
LIFETIME_LTC_PROBABILITY = 0.48
MAX_LIFETIME_LTC_PROBABILITY = 0.95
EARLIEST_ONSET_AGE = 75
AVERAGE_CARE_YEARS = {"female": 3.7, "male": 2.2}
DURATION_MULTIPLIER_RANGE = (0.5, 1.5)

# Per-year walk: a lifetime-probability override is spread over ages from here on
OVERRIDE_HAZARD_START_AGE = 65

# -----------------------------------------------------------------------------
# Transitions between care states (per year)
# -----------------------------------------------------------------------------

# Where a new episode starts: (needs_assistance, home_care, assisted_living, nursing_home)
ONSET_SPLIT_YOUNG = (0.50, 0.30, 0.20, 0.00)   # under 75 and not in poor health
ONSET_SPLIT_OLD = (0.20, 0.30, 0.30, 0.20)
ONSET_SPLIT_AGE = 75

# Rows over (healthy, needs_assistance, home_care, assisted_living, nursing_home, deceased)
NEEDS_ASSISTANCE_ROW = (0.10, 0.55, 0.20, 0.10, 0.03, 0.02)   # uninsured; insured recovery comes out of the stay
NEEDS_ASSISTANCE_RECOVERY_INSURED = 0.15
HOME_CARE_ROW = (0.05, 0.10, 0.60, 0.15, 0.07, 0.03)
ASSISTED_LIVING_ROW = (0.02, 0.03, 0.05, 0.65, 0.20, 0.05)
NURSING_HOME_ROW_BASE = (0.01, 0.02, 0.02, 0.05)   # stay and death fill the rest

# Nursing home mortality: floor, yearly increase past the pivot age, cap
NURSING_HOME_DEATH_FLOOR = 0.10
NURSING_HOME_DEATH_STEP = 0.02
NURSING_HOME_DEATH_PIVOT_AGE = 80
NURSING_HOME_DEATH_CAP = 0.30

# -----------------------------------------------------------------------------
# Insurance
# -----------------------------------------------------------------------------

# Elimination periods count service days for part-time settings
SERVICE_DAY_CONVERSION = 7 / 5

RIDER_RATES = {
    "none": 0.0,
    "3_percent_compound": 0.03,
    "5_percent_simple": 0.05,
    "cpi": 0.025,
}

# Premium per $100 of daily benefit by issue age
PREMIUM_RATE_BY_AGE = ((40, 600), (50, 900), (55, 1200), (60, 1800), (65, 2800), (70, 4500))
PREMIUM_AGE_GROWTH_PAST_70 = 1.15
PREMIUM_BENEFIT_PERIOD_FACTORS = ((2, 0.75), (3, 0.85), (5, 1.0), (100, 1.35))
PREMIUM_ELIMINATION_FACTORS = {30: 1.10, 60: 1.00, 90: 0.90}
PREMIUM_RIDER_FACTORS = {
    "none": 0.70,
    "3_percent_compound": 1.50,
    "5_percent_simple": 1.20,
    "cpi": 1.30,
}
PREMIUM_FEMALE_FACTOR = 1.3
PREMIUM_HEALTH_FACTORS = {"excellent": 0.85, "good": 1.0, "fair": 1.5, "poor": 2.5}
PREMIUM_SHARED_CARE_FACTOR = 0.85

# -----------------------------------------------------------------------------
# Tax treatment
# -----------------------------------------------------------------------------
PER_DIEM_DAILY_CAP = 420
PER_DIEM_ANNUAL_CAP = PER_DIEM_DAILY_CAP * 365
MEDICAL_EXPENSE_AGI_FLOOR = 0.075

# Deductible premium limits: (max age, limit)
PREMIUM_DEDUCTION_LIMITS = ((40, 470), (50, 890), (60, 1790), (70, 4770), (None, 5960))

# Lifetime out-of-pocket care spending above this flags Medicaid spend-down risk
MEDICAID_RISK_THRESHOLD = 200_000
