# utils/tax_utils.py
import numpy as np
from typing import List, Tuple, Dict, Literal, Union

# Define the acceptable set of filing statuses for type hinting
TaxFilingStatus = Literal["single", "married_filing_jointly", "married_separate", "head_of_household"]

# Brackets are held constant in real terms: the simulation runs in today's dollars,
# so indexing them to inflation is implicit.

# =============================================================================
# 1. Federal Ordinary Income Tax Brackets (2026 Estimated)
# =============================================================================

ORDINARY_BRACKETS_2026: Dict[TaxFilingStatus, List[Tuple[float, float, float]]] = {
    "married_filing_jointly": [
        (0, 24_800, 0.10), (24_800, 100_800, 0.12), (100_800, 211_400, 0.22),
        (211_400, 403_550, 0.24), (403_550, 512_450, 0.32), (512_450, 768_700, 0.35),
        (768_700, np.inf, 0.37),
    ],
    "single": [
        (0, 12_400, 0.10), (12_400, 50_400, 0.12), (50_400, 110_650, 0.22),
        (110_650, 196_150, 0.24), (196_150, 250_000, 0.32), (250_000, 622_050, 0.35),
        (622_050, np.inf, 0.37),
    ],
    "head_of_household": [
        (0, 18_600, 0.10), (18_600, 72_000, 0.12), (72_000, 148_000, 0.22),
        (148_000, 258_000, 0.24), (258_000, 321_450, 0.32), (321_450, 622_050, 0.35),
        (622_050, np.inf, 0.37),
    ],
    "married_separate": [
        (0, 12_400, 0.10), (12_400, 50_400, 0.12), (50_400, 105_700, 0.22),
        (105_700, 201_775, 0.24), (201_775, 256_225, 0.32), (256_225, 384_350, 0.35),
        (384_350, np.inf, 0.37),
    ]
}

# =============================================================================
# 2. Federal Preferential Income Tax Brackets (Capital Gains / QDivs)
# =============================================================================
CAPGAINS_BRACKETS_2026: Dict[TaxFilingStatus, List[Tuple[float, float, float]]] = {
    "single": [(0, 48400, 0.0), (48400, 535000, 0.15), (535000, np.inf, 0.20)],
    "married_filing_jointly": [(0, 96900, 0.0), (96900, 601300, 0.15), (601300, np.inf, 0.20)],
    "married_separate": [(0, 48450, 0.0), (48450, 300650, 0.15), (300650, np.inf, 0.20)],
    "head_of_household": [(0, 72900, 0.0), (72900, 568300, 0.15), (568300, np.inf, 0.20)],
}

# =============================================================================
# 3. Federal Deductions
# =============================================================================
STANDARD_DEDUCTION_2026: Dict[TaxFilingStatus, float] = {
    "single": 15050,
    "married_filing_jointly": 30100,
    "married_separate": 15050,
    "head_of_household": 22600,
}

# Additional standard deduction per person aged 65+
EXTRA_STD_DEDUCTION_65: Dict[TaxFilingStatus, float] = {
    "single": 2000,
    "married_filing_jointly": 1600,
    "married_separate": 1600,
    "head_of_household": 2000,
}

# =============================================================================
# 4. Fixed / Non-Indexed Federal Tax Parameters
# =============================================================================

# Social Security Taxation Thresholds (Statutory and NOT indexed)
SS_TAX_THRESHOLDS: Dict[str, List[Tuple[float, float, float]]] = {
    "single": [(0, 25000, 0.0), (25000, 34000, 0.50), (34000, np.inf, 0.85)],
    "married_filing_jointly": [(0, 32000, 0.0), (32000, 44000, 0.50), (44000, np.inf, 0.85)],
    "married_separate": [(0, 0, 0.85)],
}

# =============================================================================
# 5. State Tax Parameters (flat effective rates for retirees)
# =============================================================================
# income rate, capital gains rate, whether Social Security is taxed, pension exclusion
STATE_TAX_RATES: Dict[str, Tuple[float, float, bool, float]] = {
    # No income tax
    "AK": (0.0, 0.0, False, np.inf),
    "FL": (0.0, 0.0, False, np.inf),
    "NV": (0.0, 0.0, False, np.inf),
    "NH": (0.0, 0.0, False, np.inf),
    "SD": (0.0, 0.0, False, np.inf),
    "TN": (0.0, 0.0, False, np.inf),
    "TX": (0.0, 0.0, False, np.inf),
    "WA": (0.0, 0.07, False, np.inf),
    "WY": (0.0, 0.0, False, np.inf),
    # Retirement income exempt
    "IL": (0.0495, 0.0495, False, np.inf),
    "MS": (0.05, 0.05, False, np.inf),
    "PA": (0.0307, 0.0307, False, np.inf),
    # Partial exclusions
    "AL": (0.05, 0.05, False, 0.0),
    "AZ": (0.025, 0.025, False, 2500),
    "GA": (0.0575, 0.0575, False, 65000),
    "SC": (0.07, 0.07, False, 10000),
    # High tax
    "CA": (0.133, 0.133, False, 0.0),
    "NY": (0.109, 0.109, False, 20000),
    "NJ": (0.1075, 0.1075, False, 100000),
    "OR": (0.099, 0.099, False, 0.0),
    "HI": (0.11, 0.075, False, 0.0),
    # Tax Social Security
    "CO": (0.044, 0.044, True, 24000),
    "CT": (0.0699, 0.0699, True, 0.0),
    "KS": (0.057, 0.057, True, 0.0),
    "MN": (0.0985, 0.0985, True, 0.0),
    "MT": (0.0675, 0.0675, True, 0.0),
    "NM": (0.059, 0.059, True, 8000),
    "RI": (0.0599, 0.0599, True, 15000),
    "UT": (0.0465, 0.0465, True, 0.0),
    "VT": (0.0875, 0.0875, True, 0.0),
    "WV": (0.065, 0.065, True, 8000),
}
DEFAULT_STATE_TAX = (0.05, 0.05, False, 0.0)


# =============================================================================
# 6. Lookup helpers
# =============================================================================

def normalize_filing_status(filing_status: str) -> TaxFilingStatus:
    """Maps loose spellings ('married', 'mfj', 'married_joint') onto the table keys."""
    status = str(filing_status or "single").strip().lower().replace(" ", "_").replace("-", "_")
    if status in ORDINARY_BRACKETS_2026:
        return status
    if status in ("married", "mfj", "married_joint", "joint", "married_jointly"):
        return "married_filing_jointly"
    if status in ("mfs", "married_filing_separately", "separate"):
        return "married_separate"
    if status in ("hoh", "head_of_house"):
        return "head_of_household"
    return "single"


def get_federal_constants(filing_status: TaxFilingStatus, persons_65_plus: int = 0) -> Dict[str, Union[float, List]]:
    """
    Returns the Federal brackets and deduction for a filing status, with the
    additional 65+ standard deduction for each qualifying person.
    """
    status = normalize_filing_status(filing_status)
    std_deduction = STANDARD_DEDUCTION_2026[status] + persons_65_plus * EXTRA_STD_DEDUCTION_65[status]
    return {
        "ord_list": ORDINARY_BRACKETS_2026[status],
        "cg_list": CAPGAINS_BRACKETS_2026[status],
        "std_deduction": std_deduction,
    }


def get_state_tax_profile(state: str) -> Tuple[float, float, bool, float]:
    """Returns (income rate, capital gains rate, SS taxed, pension exclusion) for a state."""
    return STATE_TAX_RATES.get(str(state or "").strip().upper(), DEFAULT_STATE_TAX)
