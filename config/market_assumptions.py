# =============================================================================
# Market Info used in simulations (all returns are REAL, i.e. after inflation)
# =============================================================================

# Fixed-regime defaults
default_expected_return = 0.07
default_return_volatility = 0.15
default_inflation_mu = 0.025
default_inflation_sigma = 0.01

# Floor on a single year's inflation draw (prevents excessive deflation)
inflation_floor = -0.01

# Long-run real returns by asset class
real_stock_return = 0.07
real_bond_return = 0.025
real_cash_return = 0.005

# Glide path: (minimum years to retirement, stock, bond, cash).
# Bands are checked top-down; retired years fall into the last band.
GLIDE_PATH_BANDS = (
    (21, 0.80, 0.20, 0.00),   # more than 20 years out
    (10, 0.70, 0.25, 0.05),   # 10-20 years
    (5, 0.60, 0.35, 0.05),    # 5-10 years
    (None, 0.50, 0.40, 0.10), # under 5 years and in retirement
)
