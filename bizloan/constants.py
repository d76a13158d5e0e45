"""Financing policy constants shared by the engine and the loader."""

# Financing policy caps (silently clipped at the point of use)
MAX_PLAFON = 3_000_000_000.0
MAX_TOTAL_OPEX = 500_000_000.0

# Input collector bounds (months)
MIN_HORIZON_MONTHS = 1
MAX_HORIZON_MONTHS = 120
MIN_TENOR_MONTHS = 1
MAX_TENOR_MONTHS = 120
MAX_GRACE_MONTHS = 12

# Grace-period modes
GRACE_INTEREST_ONLY = "interest-only"
GRACE_FULL_CAPITALIZATION = "full-capitalization"
GRACE_MODES = (GRACE_INTEREST_ONLY, GRACE_FULL_CAPITALIZATION)

# Tax is not modelled
TAX_RATE = 0.0

# Discounting
DEFAULT_DISCOUNT_RATE_PCT = 12.0

# IRR solver
IRR_INITIAL_GUESS = 0.01
IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = 1e-8
IRR_RATE_FLOOR = -0.9999

# Feasibility thresholds
PAYBACK_LIMIT_MONTHS = 36
MIN_DSCR = 1.2
DSCR_BLOCK_MONTHS = 12

VERDICT_FEASIBLE = "Feasible"
VERDICT_MARGINAL = "Marginally Feasible"
VERDICT_NOT_FEASIBLE = "Not Feasible"
