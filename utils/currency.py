# utils/currency.py
import math
from typing import Optional, Union

Number = Union[str, float, int, None]


# ----------------------------------------------------------------------
# Helper Functions
# ----------------------------------------------------------------------

def clean_currency(val: Number, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Cleans a currency value (e.g., "$140,000.00", 140000, None) into a float.
    Empty or unparseable input returns `default`.
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        return float(val) if math.isfinite(val) else default

    # Strip currency symbols and separators, then convert to float.
    cleaned_val = str(val).replace('$', '').replace(',', '').strip()
    if not cleaned_val:
        return default
    try:
        value = float(cleaned_val)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def clean_percent(raw_input: Number, default: Optional[float] = None) -> Optional[float]:
    """
    Cleans raw input (e.g., '0.025', '2.5%', 2.5) and converts it to a float
    where 1.0 represents 100%. A value written with '%' is always divided by
    100; a bare number between 1 and 100 is read as a percentage.
    """
    if raw_input is None or isinstance(raw_input, bool):
        return default

    if isinstance(raw_input, (float, int)):
        numeric_val = float(raw_input)
        has_sign = False
    else:
        s = str(raw_input).strip()
        has_sign = s.endswith('%')
        s = s.replace('%', '').replace(',', '').replace(' ', '')
        if not s:
            return default
        try:
            numeric_val = float(s)
        except ValueError:
            return default

    if not math.isfinite(numeric_val):
        return default
    if has_sign or 1.0 <= numeric_val <= 100.0:
        return numeric_val / 100.0
    return numeric_val


def clean_int(val: Number, default: Optional[int] = None) -> Optional[int]:
    """Whole-number fields (ages, years, counts). Fractions are rounded."""
    value = clean_currency(val, default=None)
    if value is None:
        return default
    return int(round(value))



def clean_fraction(raw_input: Number, default: Optional[float] = None) -> Optional[float]:
    """
    Like clean_percent, for fields that are naturally fractions (cost-basis
    ratio, probabilities): a bare number in [0, 1] is taken as written, so
    1 means 100%. Anything else is read by clean_percent.
    """
    if isinstance(raw_input, str) and raw_input.strip().endswith('%'):
        return clean_percent(raw_input, default)
    value = clean_currency(raw_input, default=None)
    if value is not None and 0.0 <= value <= 1.0:
        return value
    return clean_percent(raw_input, default)
