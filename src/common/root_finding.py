"""
Newton-Raphson Root Finder

Generic scalar non-linear equation solver used by the physics code
(Kepler's equation for the eccentric anomaly). The integrators never
call it directly; it is reached through the acceleration callbacks.

Iteration:
    x_{k+1} = x_k - f(x_k) / f'(x_k)

Convergence:
    |x_{k+1} - x_k| < 10 * eps

where eps is the machine epsilon of the floating point type in use.
"""

from typing import Callable

import numpy as np

from .constants import NEWTON_RAPHSON_MAX_ITER, NEWTON_RAPHSON_TOLERANCE_FACTOR
from .exceptions import ConvergenceError


def find_root(
    f: Callable[[float], float],
    f_prime: Callable[[float], float],
    initial: float,
    dtype=np.float64,
    max_iter: int = NEWTON_RAPHSON_MAX_ITER,
) -> float:
    """
    Find a root of a continuous function using the Newton-Raphson method.

    An initial value closer to zero than the machine epsilon is returned
    as is (trivial root at the origin, e.g. the eccentric anomaly of a
    body at the pericenter).

    Args:
        f: Function whose root is searched
        f_prime: Derivative of f
        initial: Initial guess
        dtype: Floating point type (np.float32 or np.float64)
        max_iter: Maximum number of iterations

    Returns:
        Root of f as a value of type dtype

    Raises:
        ConvergenceError: If the tolerance isn't reached in max_iter iterations
    """
    eps = np.finfo(dtype).eps
    tolerance = dtype(NEWTON_RAPHSON_TOLERANCE_FACTOR) * eps

    x_1 = dtype(initial)
    if abs(x_1) < eps:
        return x_1

    for _ in range(max_iter):
        x_2 = dtype(x_1 - f(x_1) / f_prime(x_1))
        if abs(x_1 - x_2) < tolerance:
            return x_2
        x_1 = x_2

    raise ConvergenceError(
        f"The Newton-Raphson method didn't converge with initial = {initial}",
        initial=initial,
    )
