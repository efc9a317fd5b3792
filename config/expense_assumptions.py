# config/expense_assumptions.py
# These are **reasonable defaults** used when a profile leaves a field blank

# Household defaults
default_monthly_retirement_expense = 11_000.00
default_retirement_age = 65
default_life_expectancy = 93
default_ss_claim_age = 67
default_filing_status = "single"
default_state = "TX"
default_iterations = 1000
default_taxable_basis_ratio = 0.70

# Healthcare share of annual expense that may be paid from the HSA
hsa_healthcare_share = 0.15

# Part-time work in retirement fades out by this age, 10% of the base per year
part_time_decay_rate = 0.10
part_time_end_age = 75

# Social Security earnings test (2025): $1 withheld per $2 over the limit before FRA
ss_earnings_test_limit = 23_400
ss_earnings_test_ratio = 0.5

# Early withdrawal penalty on tax-deferred money
early_withdrawal_age = 59.5
early_withdrawal_penalty = 0.10

# =============================================================================
# Accumulation
# =============================================================================
wage_growth_rate = 0.04

# Surplus cash flow split across 401k / IRA / brokerage
surplus_split = {"401k": 0.35, "ira": 0.35, "brokerage": 0.30}

# 2025 contribution limits, inflated each year by limit_growth_rate
contribution_limit_base_year = 2025
limit_growth_rate = 0.02
limit_401k = 23_500
catch_up_401k = 7_500
limit_ira = 7_000
catch_up_ira = 1_000
limit_hsa_self = 4_300
limit_hsa_family = 8_550
catch_up_hsa = 1_000
catch_up_age = 50
hsa_catch_up_age = 55
