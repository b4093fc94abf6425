"""
Sitnikov Model

Orchestrates the integration of the Sitnikov problem: the trajectory of
the massless body and, optionally, the MEGNO chaos indicator along it.

Units: time is measured in radians of the primaries' mean motion (one
period = 2*pi). Command-line and configuration values are scaled when
the model is built:

    tau [fraction of 2*pi]  ->  tau * 2*pi
    h   [multiple of pi/2]  ->  h * pi/2
    n   = round(periods * 4 / h)
    i_m = round(1 / h)       (a quarter of a period)

MEGNO runs start the integrals at t_0 + i_m*h to stay clear of the
singular point at t = t_0 = 0.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np

from src.common.config import SitnikovConfig
from src.common.constants import INITIAL_TIME, MEGNO_PERTURBATION_SD, MEGNO_SEED, TWO_PI
from src.common.exceptions import IntegrationError, NumericsError, OutputError
from src.integrators.base import SymplecticIntegrator
from src.integrators.factory import IntegrationMethod, IntegratorFactory
from src.integrators.result import ResultBuffer

from .megno import MegnoEquations, accumulate_megnos, perturb
from .orbit import PrimaryOrbit
from .writer import serialize_into

logger = logging.getLogger(__name__)


class SitnikovEquations(SymplecticIntegrator):
    """
    Equations of motion of the massless body.

    Positions may hold a single body [z] or the body and its shadow
    [z, z̃]; both are accelerated by the same primaries.
    """

    def __init__(self, orbit: PrimaryOrbit):
        super().__init__()
        self.orbit = orbit

    def accelerations(self, t: float, q: np.ndarray) -> np.ndarray:
        return self.orbit.acceleration(t, q)


@dataclass
class SitnikovResults:
    """
    Results of one model integration.

    Attributes:
        x: Trajectories; rows [z, ż] or, in MEGNO runs, [z, z̃, ż, ż̃]
        m: MEGNO system ('ode' scheme); rows [z, z̃, ż, ż̃, Y, Ȳ]
           starting at t_0 + i_m*h
        megno: MEGNO series ('trapezoidal' scheme)
        mean_megno: Mean MEGNO series ('trapezoidal' scheme)
    """
    x: Optional[ResultBuffer] = None
    m: Optional[ResultBuffer] = None
    megno: Optional[np.ndarray] = None
    mean_megno: Optional[np.ndarray] = None


class SitnikovModel:
    """
    Sitnikov problem with the MEGNO chaos indicator.

    Attributes:
        e: Eccentricity of the primaries' orbits
        tau: Time at the pericenter (radians)
        t_0: Initial time moment
        h: Time step
        n: Number of iterations
        i_m: Iterations before the MEGNO integrals start
        x_0: Initial values [z, ż]
        compute_megno: Whether to compute MEGNOs
        megno_scheme: 'ode' or 'trapezoidal'
        method: Method for the equations of motion
        dtype: Floating point type
        results: Populated by integrate()

    Example:
        config = get_config('config/sitnikov.yml').validate()
        model = SitnikovModel.from_config(config)
        model.integrate()
        model.write(config.output_dir)
    """

    def __init__(
        self,
        e: float,
        tau: float,
        z_0: float,
        z_v_0: float,
        h: float,
        n: int,
        i_m: int = 0,
        t_0: float = INITIAL_TIME,
        compute_megno: bool = False,
        megno_scheme: str = 'ode',
        method: Union[IntegrationMethod, str] = IntegrationMethod.YOSHIDA_4TH,
        dtype=np.float64,
        seed: int = MEGNO_SEED,
        perturbation_sd: float = MEGNO_PERTURBATION_SD,
    ):
        """
        Initialize the model in model units.

        Raises:
            ValueError: If the method is unknown or the MEGNO offset
                        doesn't fit the number of iterations
        """
        self.dtype = dtype
        self.e = dtype(e)
        self.tau = dtype(tau)
        self.t_0 = t_0
        self.h = h
        self.n = n
        self.i_m = i_m
        self.x_0 = np.array([z_0, z_v_0], dtype=dtype)
        self.compute_megno = compute_megno
        self.megno_scheme = megno_scheme
        self.method = IntegratorFactory.create(method)
        self.seed = seed
        self.perturbation_sd = perturbation_sd

        if compute_megno and megno_scheme == 'ode' and not 0 < i_m <= n:
            raise ValueError(
                f"MEGNO offset i_m = {i_m} must be in the range [1, n = {n}]"
            )
        if compute_megno and megno_scheme not in ('ode', 'trapezoidal'):
            raise ValueError(f"Unknown MEGNO scheme '{megno_scheme}'")

        self.orbit = PrimaryOrbit(self.e, self.tau, dtype=dtype)
        self.equations = SitnikovEquations(self.orbit)
        self.megno_equations = MegnoEquations(self.orbit)
        self.results = SitnikovResults()

    @classmethod
    def from_config(cls, config: SitnikovConfig) -> 'SitnikovModel':
        """
        Build a model from a validated configuration.

        Args:
            config: Run configuration (fractions of 2*pi and multiples
                    of pi/2 are scaled here)

        Returns:
            Model ready to integrate
        """
        return cls(
            e=config.model.e,
            tau=config.model.tau * TWO_PI,
            z_0=config.model.z_0,
            z_v_0=config.model.z_v_0,
            h=config.step_size,
            n=config.iterations,
            i_m=config.megno_offset,
            t_0=INITIAL_TIME,
            compute_megno=config.megno.enabled,
            megno_scheme=config.megno.scheme,
            method=config.integration.method,
            dtype=config.integration.np_dtype,
            seed=config.megno.seed,
            perturbation_sd=config.megno.perturbation_sd,
        )

    def _integrate_motion(self, x, t_0: float, n: int) -> ResultBuffer:
        try:
            return self.equations.integrate(x, t_0, self.h, n, self.method, dtype=self.dtype)
        except NumericsError as e:
            error = IntegrationError("Couldn't integrate the equations of motion")
            error.partial_result = getattr(e, 'partial_result', None)
            raise error from e

    def integrate(self) -> SitnikovResults:
        """
        Integrate the equations of motion and (optionally) compute MEGNOs.

        Returns:
            The populated results record

        Raises:
            IntegrationError: Chained to the failure of the underlying
                              integration
        """
        logger.info(
            f"Integrating: e={self.e}, tau={self.tau}, h={self.h}, n={self.n}, "
            f"method={IntegratorFactory.canonical_name(self.method)}, "
            f"megno={self.megno_scheme if self.compute_megno else 'off'}"
        )
        self.results = SitnikovResults()

        if not self.compute_megno:
            self.results.x = self._integrate_motion(self.x_0, self.t_0, self.n)
        elif self.megno_scheme == 'ode':
            self._integrate_megno_ode()
        else:
            self._integrate_megno_trapezoidal()

        logger.info(f"Integration finished: {self.equations.stats}")
        return self.results

    def _shadow_initial_values(self) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        shadow = perturb(self.x_0, rng, self.perturbation_sd)
        logger.debug(f"Shadow trajectory starts at z={shadow[0]}, z_v={shadow[1]}")
        return np.array([self.x_0[0], shadow[0], self.x_0[1], shadow[1]], dtype=self.dtype)

    def _integrate_megno_ode(self) -> None:
        # Both trajectories up to i_m, away from the singular point at t_0
        x = self._shadow_initial_values()
        self.results.x = self._integrate_motion(x, self.t_0, self.i_m)

        s = self.results.x.state(self.i_m)
        t_start = self.t_0 + self.i_m * self.h
        n_m = self.n - self.i_m

        try:
            m = self.megno_equations.integrate(
                np.concatenate((s, np.zeros(2, dtype=self.dtype))),
                t_start,
                self.h,
                n_m,
                IntegrationMethod.RUNGE_KUTTA_4TH,
                dtype=self.dtype,
            )
        except NumericsError as e:
            error = IntegrationError("Couldn't integrate the MEGNO equations")
            error.partial_result = getattr(e, 'partial_result', None)
            raise error from e

        data = m.data.copy()
        t = t_start + np.arange(n_m + 1) * self.h
        data[4] = 2 * data[4] / t
        data[5] = data[5] / t
        self.results.m = ResultBuffer.from_array(data)

    def _integrate_megno_trapezoidal(self) -> None:
        x = self._shadow_initial_values()
        self.results.x = self._integrate_motion(x, self.t_0, self.n)

        try:
            megno, mean_megno = accumulate_megnos(
                self.orbit, self.results.x.data, self.t_0, self.h
            )
        except NumericsError as e:
            raise IntegrationError("Couldn't compute the MEGNO integrals") from e

        self.results.megno = megno
        self.results.mean_megno = mean_megno

    def _require_results(self) -> None:
        if self.results.x is None:
            raise ValueError("The model hasn't been integrated yet")

    def _require_megno(self) -> None:
        self._require_results()
        if not self.compute_megno:
            raise ValueError("MEGNOs weren't computed for this model")

    def times(self) -> np.ndarray:
        """Time moments of the series returned by the accessors."""
        self._require_results()
        if self.compute_megno and self.megno_scheme == 'ode':
            t_start = self.t_0 + self.i_m * self.h
            return t_start + np.arange(self.results.m.steps + 1) * self.h
        return self.t_0 + np.arange(self.results.x.steps + 1) * self.h

    def position(self) -> np.ndarray:
        """Position of the massless body."""
        self._require_results()
        if self.results.m is not None:
            return self.results.m.row(0)
        return self.results.x.row(0)

    def velocity(self) -> np.ndarray:
        """Velocity of the massless body."""
        self._require_results()
        if self.results.m is not None:
            return self.results.m.row(2)
        return self.results.x.row(self.results.x.dimension // 2)

    def megno(self) -> np.ndarray:
        """MEGNO series."""
        self._require_megno()
        if self.results.m is not None:
            return self.results.m.row(4)
        return self.results.megno.copy()

    def mean_megno(self) -> np.ndarray:
        """Mean MEGNO series."""
        self._require_megno()
        if self.results.m is not None:
            return self.results.m.row(5)
        return self.results.mean_megno.copy()

    def series(self) -> Dict[str, np.ndarray]:
        """
        Result vectors by output file stem.

        Returns:
            'z' and 'z_v', plus 'megno' and 'mean_megno' in MEGNO runs
        """
        series = {'z': self.position(), 'z_v': self.velocity()}
        if self.compute_megno:
            series['megno'] = self.megno()
            series['mean_megno'] = self.mean_megno()
        return series

    def write(self, output_dir: Union[str, Path]) -> None:
        """
        Serialize the result vectors into files in the output directory.

        Writes z.bin and z_v.bin, plus megno.bin and mean_megno.bin
        when MEGNOs were computed.

        Args:
            output_dir: Existing directory

        Raises:
            OutputError: If the model wasn't integrated or a file
                         couldn't be written
        """
        output_dir = Path(output_dir)
        if not output_dir.is_dir():
            raise OutputError(f"Output directory {output_dir} doesn't exist")

        try:
            series = self.series()
        except ValueError as e:
            raise OutputError("Nothing to write") from e

        for stem, values in series.items():
            path = output_dir / f"{stem}.bin"
            try:
                serialize_into(values, path)
            except OutputError as e:
                raise OutputError(f"Couldn't serialize the {stem} vector") from e

        logger.info(f"Wrote {', '.join(series)} to {output_dir}")

    def __repr__(self) -> str:
        return (f"SitnikovModel(e={self.e}, tau={self.tau}, h={self.h}, n={self.n}, "
                f"megno={self.compute_megno})")
