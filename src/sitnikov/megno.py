"""
MEGNO Chaos Indicator

The Mean Exponential Growth factor of Nearby Orbits measures how fast a
displacement between two neighbouring trajectories grows:

    Y(t)  = 2/t * ∫ (δ'·δ)/(δ·δ) * s ds       (MEGNO)
    Ȳ(t)  = 1/t * ∫ Y(s) ds                    (mean MEGNO)

Ȳ tends to 2 for quasi-periodic orbits and grows linearly in time for
chaotic ones. The lower integration bound t_0 is omitted (t is used in
place of t - t_0) to avoid the singular point at t = t_0; the asymptotic
behaviour is unchanged.

Two schemes are available:
    - 'ode': the integrals are additional state components, integrated
      with RK4 together with the primary and the shadow trajectory
    - 'trapezoidal': the integrands are evaluated along precomputed
      trajectories and accumulated with the trapezoidal rule

Reference: T. C. Hinse et al., "Application of the MEGNO technique to
the dynamics of Jovian irregular satellites", MNRAS 404 (2010) 837-857
"""

import logging
from typing import Tuple

import numpy as np

from src.common.constants import MEGNO_PERTURBATION_SD
from src.common.exceptions import ConvergenceError
from src.integrators.base import GeneralIntegrator

from .orbit import PrimaryOrbit, acceleration_derivative

logger = logging.getLogger(__name__)


def perturb(x, rng: np.random.Generator, sd: float = MEGNO_PERTURBATION_SD) -> np.ndarray:
    """
    Displace values by normally distributed offsets.

    Args:
        x: Values to displace (the means of the samples)
        rng: Random number generator
        sd: Standard deviation of the samples

    Returns:
        Displaced values, same dtype as x when x is floating point
    """
    x = np.asarray(x)
    dtype = x.dtype if np.issubdtype(x.dtype, np.floating) else np.float64
    return np.asarray(rng.normal(loc=x, scale=sd), dtype=dtype)


class MegnoEquations(GeneralIntegrator):
    """
    Equations of motion of two trajectories with the MEGNO integrals.

    State: [z, z̃, ż, ż̃, Y_int, Ȳ_int], where z̃ is the shadow trajectory,
    Y_int the integral in the MEGNO expression and Ȳ_int the integral in
    the mean MEGNO expression. The displacement δ = (z̃ - z, ż̃ - ż) is
    not renormalized.
    """

    def __init__(self, orbit: PrimaryOrbit):
        super().__init__()
        self.orbit = orbit

    def update(self, t: float, x: np.ndarray) -> np.ndarray:
        a = self.orbit.acceleration(t, x[0:2])

        delta_z = x[1] - x[0]
        delta_z_v = x[3] - x[2]
        delta_a = a[1] - a[0]

        dot = delta_z_v * delta_z + delta_a * delta_z_v
        norm_sq = delta_z * delta_z + delta_z_v * delta_z_v

        return np.array(
            [x[2], x[3], a[0], a[1], dot / norm_sq * t, 2 * x[4] / t],
            dtype=x.dtype,
        )


def tangent_integrand(t: float, z, dis_z, dis_z_v, r):
    """
    Integrand of the MEGNO expression for a given displacement.

    The displacement (δz, δż) is mapped by the linearized flow to the
    tangent vector (δż, da/dz * δz); the integrand is its projection on
    the displacement, divided by the squared norm, times t.

    Args:
        t: Time moment
        z: Position on the reference trajectory
        dis_z: Displacement in position
        dis_z_v: Displacement in velocity
        r: Radius of the primaries' orbit at t

    Returns:
        (δż*δz + da/dz*δz*δż) / (δz² + δż²) * t
    """
    tan_z = dis_z_v
    tan_z_v = acceleration_derivative(z, r) * dis_z
    norm_sq = dis_z * dis_z + dis_z_v * dis_z_v
    return (tan_z * dis_z + tan_z_v * dis_z_v) / norm_sq * t


class MegnoAccumulator:
    """
    Incremental trapezoidal integration of the MEGNO and mean MEGNO.

    Starts from zero integrals and a zero previous integrand at t_0;
    each update() advances by one step of size h.

    Attributes:
        h: Time step
        t_0: Initial time moment
        i: Number of updates so far
        integral: Current MEGNO integral
        mean_integral: Current mean MEGNO integral

    Example:
        acc = MegnoAccumulator(h=1e-2)
        for value in integrands:
            megno, mean_megno = acc.update(value)
    """

    def __init__(self, h: float, t_0: float = 0.0):
        self.h = h
        self.t_0 = t_0
        self.i = 0
        self.integral = 0.0
        self.mean_integral = 0.0
        self.integrand_prev = 0.0
        self.megno_prev = 0.0

    def trapezoidal(self, i: int, integral: float, prev: float, current: float) -> float:
        """
        Advance a running integral to step i.

        Args:
            i: Step index, starting at 1
            integral: Integral at step i - 1
            prev: Integrand at step i - 1
            current: Integrand at step i

        Returns:
            Integral at step i
        """
        h = self.h
        if i == 1:
            return integral + h * (prev + current) / 2
        return (integral + h * prev / 2 / (i - 1)) * (i - 1) / i + h * current / 2 / i

    def update(self, integrand: float) -> Tuple[float, float]:
        """
        Add the integrand of the next step.

        Args:
            integrand: MEGNO integrand at t_0 + (i + 1)*h

        Returns:
            Tuple (megno, mean_megno) at the new time moment
        """
        self.i += 1
        t = self.t_0 + self.i * self.h

        self.integral = self.trapezoidal(self.i, self.integral, self.integrand_prev, integrand)
        megno = 2 / t * self.integral

        self.mean_integral = self.trapezoidal(self.i, self.mean_integral, self.megno_prev, megno)
        mean_megno = self.mean_integral / t

        self.integrand_prev = integrand
        self.megno_prev = megno

        return megno, mean_megno


def accumulate_megnos(
    orbit: PrimaryOrbit,
    trajectories: np.ndarray,
    t_0: float,
    h: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    MEGNO and mean MEGNO along a primary and a shadow trajectory.

    Args:
        orbit: Orbit of the primaries
        trajectories: Matrix with rows [z, z̃, ż, ż̃] and n + 1 columns
        t_0: Time moment of column 0
        h: Time step

    Returns:
        Tuple (megno, mean_megno), each of length n + 1 with zeros in
        column 0

    Raises:
        ConvergenceError: If the radius couldn't be computed
    """
    dtype = trajectories.dtype
    columns = trajectories.shape[1]
    megno = np.zeros(columns, dtype=dtype)
    mean_megno = np.zeros(columns, dtype=dtype)

    accumulator = MegnoAccumulator(h, t_0)
    for i in range(1, columns):
        t = t_0 + i * h
        z, z_tilde, z_v, z_v_tilde = trajectories[:, i]

        try:
            r = orbit.radius(t)
        except ConvergenceError as e:
            raise ConvergenceError(f"Couldn't compute the radius at t = {t}") from e
        integrand = tangent_integrand(t, z, z_tilde - z, z_v_tilde - z_v, r)

        megno[i], mean_megno[i] = accumulator.update(integrand)

    logger.debug(f"Accumulated {columns - 1} MEGNO steps, final mean MEGNO = {mean_megno[-1]}")
    return megno, mean_megno
