"""
Numerical and Model Constants for the Sitnikov Toolkit

This module contains the fixed parameters shared by the root finder,
the integrators and the Sitnikov model.
"""

import numpy as np

# Mathematical constants
TWO_PI = 2.0 * np.pi
HALF_PI = np.pi / 2.0

# Newton-Raphson root finder
NEWTON_RAPHSON_MAX_ITER = 5000  # Iteration budget before giving up
NEWTON_RAPHSON_TOLERANCE_FACTOR = 10.0  # Converged when |dx| < factor * eps

# Kepler's equation
# Above this eccentricity the Newton-Raphson iteration starts from pi
# instead of the mean anomaly
HIGH_ECCENTRICITY_THRESHOLD = 0.8

# Sitnikov model scaling
# The time step is given as a multiple of pi/2, the duration as a
# number of periods of the primaries (2*pi each)
TIME_STEP_UNIT = HALF_PI
STEPS_PER_PERIOD_FACTOR = 4.0  # n = periods * 4 / h
INITIAL_TIME = 0.0  # Fixed so the MEGNO singularity at t = 0 is known
MAX_TIME_STEP = 1e-1

# MEGNO computation
MEGNO_PERTURBATION_SD = 1e-1  # Standard deviation of the shadow displacement
MEGNO_SEED = 1  # Fixed seed, MEGNO runs must be bit-reproducible

# Supported floating point representations
SUPPORTED_DTYPES = {
    'float32': np.float32,
    'float64': np.float64,
}
