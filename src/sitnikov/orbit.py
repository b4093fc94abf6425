"""
Orbit of the Primaries and Acceleration of the Massless Body

In the Sitnikov problem two equal primaries move on Keplerian ellipses
of eccentricity e around their barycenter, while a massless body moves
along the axis perpendicular to the orbital plane. In normalized units
(period 2*pi, semi-major axis 1):

    mean anomaly:       M = t - tau
    Kepler's equation:  E - e*sin(E) = M
    radius:             r(t) = 1 - e*cos(E)
    acceleration:       z'' = -z / (r² + z²)^(3/2)

The variational equation of the motion uses

    da/dz = (2z² - r²) / (r² + z²)^(5/2)

Reference: K. Sitnikov, "The existence of oscillatory motions in the
three-body problem", Dokl. Akad. Nauk SSSR 133 (1960) 303-306
"""

import logging

import numpy as np

from src.common.constants import HIGH_ECCENTRICITY_THRESHOLD, TWO_PI
from src.common.exceptions import ConvergenceError
from src.common.root_finding import find_root

logger = logging.getLogger(__name__)


def acceleration_derivative(z, r):
    """Derivative of the acceleration -z/(r² + z²)^(3/2) with respect to z."""
    return (2 * z * z - r * r) / (r * r + z * z) ** 2.5


class PrimaryOrbit:
    """
    Keplerian orbit of the primaries and the field it creates on the axis.

    Attributes:
        e: Eccentricity of the orbits, 0 <= e < 1
        tau: Time at the pericenter (model units, i.e. radians)
        dtype: Floating point type of the computations

    Example:
        orbit = PrimaryOrbit(e=0.6, tau=0.0)
        r = orbit.radius(np.pi / 2)
        a = orbit.acceleration(np.pi / 2, 1.0)
    """

    def __init__(self, e: float, tau: float = 0.0, dtype=np.float64):
        self.dtype = dtype
        self.e = dtype(e)
        self.tau = dtype(tau)

    def eccentric_anomaly(self, m: float):
        """
        Solve Kepler's equation for the eccentric anomaly.

        Whole turns of the mean anomaly are removed before solving and
        added back to the root, which keeps the iteration well
        conditioned for large times.

        Args:
            m: Mean anomaly (radians)

        Returns:
            Eccentric anomaly (radians)

        Raises:
            ConvergenceError: If the Newton-Raphson method didn't converge
        """
        dtype = self.dtype
        m = dtype(m)
        if self.e == 0:
            return m

        turns = np.floor(m / dtype(TWO_PI))
        m_reduced = dtype(m - turns * dtype(TWO_PI))

        e = self.e
        initial = np.pi if e > HIGH_ECCENTRICITY_THRESHOLD else m_reduced

        ea = find_root(
            lambda x: x - e * np.sin(x) - m_reduced,
            lambda x: 1 - e * np.cos(x),
            initial,
            dtype=dtype,
        )
        return dtype(ea + turns * dtype(TWO_PI))

    def radius(self, t: float):
        """
        Distance from the barycenter to either primary.

        Args:
            t: Time moment

        Returns:
            Radius r(t)

        Raises:
            ConvergenceError: If the eccentric anomaly couldn't be computed
        """
        try:
            ea = self.eccentric_anomaly(self.dtype(t) - self.tau)
        except ConvergenceError as e:
            raise ConvergenceError("Couldn't compute the eccentric anomaly") from e
        return self.dtype(1 - self.e * np.cos(ea))

    def _checked_radius(self, t: float):
        try:
            return self.radius(t)
        except ConvergenceError as e:
            raise ConvergenceError("Couldn't compute the radius") from e

    def acceleration(self, t: float, z):
        """
        Acceleration of the massless body.

        Args:
            t: Time moment
            z: Position(s) on the axis; arrays are evaluated elementwise
               with a single radius

        Returns:
            -z / (r² + z²)^(3/2), same shape as z
        """
        r = self._checked_radius(t)
        z = np.asarray(z, dtype=self.dtype)
        return -z / (r * r + z * z) ** 1.5

    def acceleration_gradient(self, t: float, z):
        """
        Derivative of the acceleration with respect to the position.

        Args:
            t: Time moment
            z: Position(s) on the axis

        Returns:
            (2z² - r²) / (r² + z²)^(5/2), same shape as z
        """
        r = self._checked_radius(t)
        return acceleration_derivative(np.asarray(z, dtype=self.dtype), r)

    def __repr__(self) -> str:
        return f"PrimaryOrbit(e={self.e}, tau={self.tau}, dtype={np.dtype(self.dtype).name})"
