"""
4th-Order Yoshida Integrator

Symmetric composition of three leapfrog steps with sizes
h*D_1, h*D_2, h*D_1, where

    K   = 2^(1/3)
    D_1 = 1 / (2 - K)
    D_2 = 1 - 2*D_1        (negative: the middle sub-step goes backward)
    D_3 = D_1 + D_2        (time offset of the third sub-step)

The composition cancels the 3rd-order error terms of the leapfrog
method, giving a 4th-order, symplectic and time-reversible scheme at
the cost of three acceleration evaluations per step.

The drift-kick formulation uses the equivalent coefficients

    W_0 = -K / (2 - K)
    W_1 = 1 / (2 - K)

and serves as an independent cross-check of the composition.

Reference: H. Yoshida, "Construction of higher order symplectic
integrators", Physics Letters A 150 (1990) 262-268
"""

import logging
from typing import Optional

import numpy as np

from .base import Accelerations, IntegrationStats, evaluate
from .leapfrog import initial_accelerations, leapfrog_once, split_halves
from .result import ResultBuffer

logger = logging.getLogger(__name__)

K = 2.0 ** (1.0 / 3.0)
D_1 = 1.0 / (2.0 - K)
D_2 = 1.0 - 2.0 * D_1
D_3 = D_1 + D_2

W_0 = -K / (2.0 - K)
W_1 = 1.0 / (2.0 - K)


def yoshida_4th(
    accelerations: Accelerations,
    result: ResultBuffer,
    t_0: float,
    h: float,
    n: int,
    stats: Optional[IntegrationStats] = None,
) -> ResultBuffer:
    """
    Integrate a 2nd-order system with the 4th-order Yoshida method.

    Each outer step performs the leapfrog sub-steps
    (t, h*D_1), (t + h*D_1, h*D_2), (t + h*D_3, h*D_1), carrying the
    trailing acceleration from one sub-step to the next. Only the state
    after the third sub-step is stored.

    Args:
        accelerations: Function computing d²q/dt² given (t, q)
        result: Result buffer with the initial state in column 0
        t_0: Initial value of time
        h: Time step
        n: Number of iterations
        stats: Optional statistics to update (3 sub-steps per step)

    Returns:
        The same result buffer

    Raises:
        DimensionMismatchError: If the state dimension is odd
        IntegrationError: If accelerations() fails, naming the sub-step
    """
    split_halves(result.dimension)
    logger.debug(f"Yoshida: {n} steps of h = {h} from t = {t_0}")

    x = result.state(0)
    if n <= 0:
        return result

    a = initial_accelerations(accelerations, t_0, x)
    if stats is not None:
        stats.total_derivative_evals += 1

    h_1 = h * D_1
    h_2 = h * D_2

    for i in range(n):
        t = t_0 + i * h

        x, a = leapfrog_once(
            accelerations, t, x, a, h_1, step=i, description="the first sub-step"
        )
        x, a = leapfrog_once(
            accelerations, t + h_1, x, a, h_2, step=i, description="the second sub-step"
        )
        x, a = leapfrog_once(
            accelerations, t + h * D_3, x, a, h_1, step=i, description="the third sub-step"
        )

        result.set_state(i + 1, x)

        if stats is not None:
            stats.update(derivative_evals=3, substeps=3)

    return result


def yoshida_4th_drift_kick(
    accelerations: Accelerations,
    result: ResultBuffer,
    t_0: float,
    h: float,
    n: int,
    stats: Optional[IntegrationStats] = None,
) -> ResultBuffer:
    """
    Integrate a 2nd-order system with the drift-kick Yoshida formulation.

    Per step, positions drift by c_k*v and velocities are kicked by
    d_k*a three times, followed by a final drift:

        c = (W_1/2, (W_0 + W_1)/2, (W_0 + W_1)/2, W_1/2) * h
        d = (W_1, W_0, W_1) * h

    Accelerations are not carried between steps.

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
    half = split_halves(result.dimension)
    logger.debug(f"Yoshida (drift-kick): {n} steps of h = {h} from t = {t_0}")

    c = (W_1 / 2 * h, (W_0 + W_1) / 2 * h, (W_0 + W_1) / 2 * h, W_1 / 2 * h)
    d = (W_1 * h, W_0 * h, W_1 * h)
    kicks = ("the first kick", "the second kick", "the third kick")

    x = result.state(0)
    q = x[:half]
    v = x[half:]

    for i in range(n):
        t = t_0 + i * h

        for k in range(3):
            q = q + c[k] * v
            t = t + c[k]
            a = evaluate(accelerations, t, q, half, kicks[k], i)
            v = v + d[k] * a
        q = q + c[3] * v

        result.set_state(i + 1, np.concatenate((q, v)))

        if stats is not None:
            stats.update(derivative_evals=3, substeps=3)

    return result
