# engine/__init__.py

# The tax calculation, which orchestrates all tax helpers.
from .tax_engine import calculate_taxes

# The simulator and its aggregate result builder
from .simulator import RetirementSimulator, run_simulation
from .results import aggregate_results

# Building blocks used by callers that want a single sub-model
from .market_generator import generate_market_path, nominal_from_real, real_from_nominal
from .ltc_model import LTC_STRATEGIES, project_expected_ltc_cost
from .ltc_insurance import PolicyBenefitTracker
