"""
Classical 4th-Order Runge-Kutta Integrator

Fixed-step RK4 for systems of 1st-order ODEs dx/dt = update(t, x):

    k1 = update(t, x)
    k2 = update(t + h/2, x + h/2 * k1)
    k3 = update(t + h/2, x + h/2 * k2)
    k4 = update(t + h, x + h * k3)
    x' = x + h/6 * (k1 + 2*k2 + 2*k3 + k4)

Local truncation error is O(h^5), global error O(h^4). There is no
error estimation and no step rejection: every step has the same size,
negative h integrates backward in time.

Reference: Butcher (2003), Numerical Methods for Ordinary Differential
Equations
"""

import logging
from typing import Optional

from .base import Derivative, IntegrationStats, evaluate
from .result import ResultBuffer

logger = logging.getLogger(__name__)

STAGES = (
    "the first increment",
    "the second increment",
    "the third increment",
    "the fourth increment",
)


def runge_kutta_4th(
    update: Derivative,
    result: ResultBuffer,
    t_0: float,
    h: float,
    n: int,
    stats: Optional[IntegrationStats] = None,
) -> ResultBuffer:
    """
    Integrate a 1st-order system with the classical RK4 method.

    The buffer must be prepared with the initial values in column 0;
    columns 1..n are filled in order.

    Args:
        update: Function computing dx/dt given (t, x)
        result: Result buffer with the initial state in column 0
        t_0: Initial value of time
        h: Time step
        n: Number of iterations
        stats: Optional statistics to update (4 evaluations per step)

    Returns:
        The same result buffer

    Raises:
        IntegrationError: If update() fails, naming the increment and step
    """
    logger.debug(f"RK4: {n} steps of h = {h} from t = {t_0}")

    size = result.dimension
    x = result.state(0)

    for i in range(n):
        t = t_0 + i * h

        k1 = evaluate(update, t, x, size, STAGES[0], i)
        k2 = evaluate(update, t + h / 2, x + h / 2 * k1, size, STAGES[1], i)
        k3 = evaluate(update, t + h / 2, x + h / 2 * k2, size, STAGES[2], i)
        k4 = evaluate(update, t + h, x + h * k3, size, STAGES[3], i)

        x = x + h / 6 * (k1 + 2 * k2 + 2 * k3 + k4)
        result.set_state(i + 1, x)

        if stats is not None:
            stats.update(derivative_evals=4)

    return result
