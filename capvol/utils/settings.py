# -*- coding: utf-8 -*-

from capvol.enums import DayCountBasis

# Day count basis
DATE2YEARFRAC_DAY_COUNT_BASIS = DayCountBasis.ACT_365 # For zero curve pillar times

# Interpolation methods
ZERO_CURVE_INTERPOLATION_METHOD = 'linear_on_ln_discount'
SURFACE_INTERPOLATION_METHOD = 'linear'

# Greeks
vega_normalisation = +0.01 # +1%
dv01_adjustment = +0.0001 # +0.01%

# Levenberg-Marquardt solver
MAX_ITERATIONS = 300
FTOL = 1e-12 # Relative decrease in the sum of squares
XTOL = 1e-12 # Relative step size
GTOL = 1e-14 # Gradient norm
INITIAL_DAMPING_FACTOR = 1e-3 # Scales max(diag(J'J)) to give the starting damping
DAMPING_CEILING = 1e16
MAX_TIME_SECONDS = None # No wall clock budget by default

# Initial flat surface, used if the first quote cannot be converted to the output convention
DEFAULT_INITIAL_VOL_BLACK = 0.2 # 20%
DEFAULT_INITIAL_VOL_NORMAL = 0.01 # 100 bps

# Volatility bounds used by the implied volatility solvers
VOL_SLN_BOUNDS = (0.1 / 100, 1000 / 100) # 0.1% to 1000% (0.001 to 10)
VOL_N_BOUNDS = (0.01 / 100, 100 / 100) # 0.01% to 100% (0.0001 to 1)
