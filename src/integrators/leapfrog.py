"""
Leapfrog (Velocity Verlet) Integrator

2nd-order symplectic scheme for d²q/dt² = accelerations(t, q). The state
vector is [q..., v...]:

    q' = q + v*h + a*h²/2
    a' = accelerations(t + h, q')
    v' = v + (a + a')*h/2

The acceleration at the end of a step is the acceleration at the start
of the next one, so a step costs one evaluation. The scheme is exactly
time-reversible: a step of -h from (q', v', a') restores (q, v, a).
"""

import logging
from typing import Optional, Tuple

import numpy as np

from src.common.exceptions import DimensionMismatchError

from .base import Accelerations, IntegrationStats, evaluate
from .result import ResultBuffer

logger = logging.getLogger(__name__)


def split_halves(dimension: int) -> int:
    """
    Size of the position half of a [q..., v...] state.

    Raises:
        DimensionMismatchError: If the dimension is odd
    """
    if dimension % 2 != 0:
        raise DimensionMismatchError(
            dimension + 1,
            dimension,
            f"State vector of a 2nd-order system must have an even number "
            f"of components, got {dimension}",
        )
    return dimension // 2


def leapfrog_once(
    accelerations: Accelerations,
    t: float,
    x_prev: np.ndarray,
    a_prev: np.ndarray,
    h: float,
    step: int = 0,
    description: str = "the accelerations",
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Perform one leapfrog step.

    Args:
        accelerations: Function computing d²q/dt² given (t, q)
        t: Time moment at the start of the step
        x_prev: State [q..., v...] at t
        a_prev: Accelerations at (t, q)
        h: Time step
        step: Outer step index, for error reporting
        description: Name of the sub-step, for error reporting

    Returns:
        Tuple (x_new, a_new): state and accelerations at t + h

    Raises:
        IntegrationError: If accelerations() fails
    """
    half = x_prev.shape[0] // 2
    q = x_prev[:half]
    v = x_prev[half:]

    q_new = q + v * h + a_prev * (h * h / 2)
    a_new = evaluate(accelerations, t + h, q_new, half, description, step)
    v_new = v + (a_prev + a_new) * (h / 2)

    return np.concatenate((q_new, v_new)), a_new


def initial_accelerations(
    accelerations: Accelerations,
    t_0: float,
    x: np.ndarray,
) -> np.ndarray:
    """Evaluate the accelerations at the initial state."""
    half = x.shape[0] // 2
    return evaluate(
        accelerations, t_0, x[:half], half, "the initial accelerations", 0
    )


def leapfrog(
    accelerations: Accelerations,
    result: ResultBuffer,
    t_0: float,
    h: float,
    n: int,
    stats: Optional[IntegrationStats] = None,
) -> ResultBuffer:
    """
    Integrate a 2nd-order system with the leapfrog method.

    Args:
        accelerations: Function computing d²q/dt² given (t, q)
        result: Result buffer with the initial state in column 0
        t_0: Initial value of time
        h: Time step
        n: Number of iterations
        stats: Optional statistics to update

    Returns:
        The same result buffer

    Raises:
        DimensionMismatchError: If the state dimension is odd
        IntegrationError: If accelerations() fails
    """
    split_halves(result.dimension)
    logger.debug(f"Leapfrog: {n} steps of h = {h} from t = {t_0}")

    x = result.state(0)
    if n <= 0:
        return result

    a = initial_accelerations(accelerations, t_0, x)
    if stats is not None:
        stats.total_derivative_evals += 1

    for i in range(n):
        t = t_0 + i * h
        x, a = leapfrog_once(accelerations, t, x, a, h, step=i)
        result.set_state(i + 1, x)

        if stats is not None:
            stats.update(derivative_evals=1)

    return result
