"""
Integration Method Selection and Dispatch

Provides the method enum, name aliases for configuration files and
command-line tools, and the single integration entry point used by the
integrator interfaces.

Example:
    # By name
    method = IntegratorFactory.from_name('verlet')

    # Integrate a system
    result = integrate(system, [1.0, 0.0], 0.0, 1e-2, 1000, method)

    # List available methods
    for name in IntegratorFactory.available():
        print(name, IntegratorFactory.get_description(name))
"""

import logging
from enum import Enum, auto
from typing import Callable, Dict, List, Sequence, Union

from src.common.exceptions import IntegrationError

from .base import GeneralIntegrator, SymplecticIntegrator, first_order
from .leapfrog import leapfrog, split_halves
from .result import ResultBuffer
from .runge_kutta import runge_kutta_4th
from .yoshida import yoshida_4th

logger = logging.getLogger(__name__)


class IntegrationMethod(Enum):
    """Available integration methods."""
    RUNGE_KUTTA_4TH = auto()
    LEAPFROG = auto()
    YOSHIDA_4TH = auto()


# Methods which preserve the symplectic structure (2nd-order systems only)
SYMPLECTIC_METHODS = (IntegrationMethod.LEAPFROG, IntegrationMethod.YOSHIDA_4TH)

# Mapping from method enum to stepping function
_STEPPERS: Dict[IntegrationMethod, Callable] = {
    IntegrationMethod.RUNGE_KUTTA_4TH: runge_kutta_4th,
    IntegrationMethod.LEAPFROG: leapfrog,
    IntegrationMethod.YOSHIDA_4TH: yoshida_4th,
}

_CANONICAL: Dict[IntegrationMethod, str] = {
    IntegrationMethod.RUNGE_KUTTA_4TH: 'runge_kutta_4th',
    IntegrationMethod.LEAPFROG: 'leapfrog',
    IntegrationMethod.YOSHIDA_4TH: 'yoshida_4th',
}

# Mapping from string names to method enum
_NAME_TO_METHOD: Dict[str, IntegrationMethod] = {
    # Runge-Kutta
    'rk4': IntegrationMethod.RUNGE_KUTTA_4TH,
    'runge_kutta': IntegrationMethod.RUNGE_KUTTA_4TH,
    'runge_kutta_4th': IntegrationMethod.RUNGE_KUTTA_4TH,

    # Leapfrog
    'leapfrog': IntegrationMethod.LEAPFROG,
    'verlet': IntegrationMethod.LEAPFROG,
    'velocity_verlet': IntegrationMethod.LEAPFROG,

    # Yoshida
    'yoshida': IntegrationMethod.YOSHIDA_4TH,
    'yoshida4': IntegrationMethod.YOSHIDA_4TH,
    'yoshida_4th': IntegrationMethod.YOSHIDA_4TH,
}


class IntegratorFactory:
    """
    Lookup of integration methods by name.

    String names are case-insensitive and support multiple aliases;
    dashes and spaces are treated as underscores.

    Example:
        method = IntegratorFactory.from_name('RK4')
        assert method is IntegrationMethod.RUNGE_KUTTA_4TH
    """

    @staticmethod
    def create(method: Union[IntegrationMethod, str]) -> IntegrationMethod:
        """
        Resolve a method given as enum or name.

        Args:
            method: IntegrationMethod or one of its names

        Returns:
            IntegrationMethod

        Raises:
            ValueError: If the method is not recognized
        """
        if isinstance(method, IntegrationMethod):
            return method
        if isinstance(method, str):
            return IntegratorFactory.from_name(method)
        raise ValueError(f"Unknown integration method: {method!r}")

    @staticmethod
    def from_name(name: str) -> IntegrationMethod:
        """
        Resolve a method by string name.

        Args:
            name: Method name (case-insensitive). Supported names:
                  - 'rk4', 'runge_kutta', 'runge_kutta_4th': classical RK4
                  - 'leapfrog', 'verlet', 'velocity_verlet': leapfrog
                  - 'yoshida', 'yoshida4', 'yoshida_4th': 4th-order Yoshida

        Returns:
            IntegrationMethod

        Raises:
            ValueError: If name is not recognized
        """
        name_lower = name.lower().strip().replace('-', '_').replace(' ', '_')

        if name_lower not in _NAME_TO_METHOD:
            available = ', '.join(sorted(_NAME_TO_METHOD.keys()))
            raise ValueError(
                f"Unknown integration method: '{name}'. "
                f"Available: {available}"
            )

        return _NAME_TO_METHOD[name_lower]

    @staticmethod
    def available() -> List[str]:
        """
        List available method names.

        Returns:
            List of canonical method names
        """
        return [_CANONICAL[method] for method in IntegrationMethod]

    @staticmethod
    def available_aliases() -> Dict[str, str]:
        """
        List all available names with their canonical form.

        Returns:
            Dict mapping alias -> canonical name
        """
        return {
            alias: _CANONICAL[method]
            for alias, method in _NAME_TO_METHOD.items()
        }

    @staticmethod
    def canonical_name(method: IntegrationMethod) -> str:
        """Return the canonical name of a method."""
        return _CANONICAL[method]

    @staticmethod
    def get_description(name: str) -> str:
        """
        Get description for a method.

        Args:
            name: Method name or alias

        Returns:
            Human-readable description
        """
        descriptions = {
            'runge_kutta_4th': (
                "Classical 4th-order Runge-Kutta. Uses 4 derivative evaluations "
                "per step. Works for any 1st-order system; 2nd-order systems "
                "are integrated through their 1st-order form. Not symplectic."
            ),
            'leapfrog': (
                "Leapfrog (velocity Verlet), 2nd order. Uses 1 acceleration "
                "evaluation per step. Symplectic and exactly time-reversible."
            ),
            'yoshida_4th': (
                "4th-order Yoshida composition of three leapfrog sub-steps. "
                "Uses 3 acceleration evaluations per step. Symplectic and "
                "time-reversible. Default for 2nd-order systems."
            ),
        }

        name_lower = name.lower().strip().replace('-', '_').replace(' ', '_')
        if name_lower in _NAME_TO_METHOD:
            canonical = _CANONICAL[_NAME_TO_METHOD[name_lower]]
            return descriptions.get(canonical, "No description available.")

        return f"Unknown integration method: {name}"


def integrate(
    system: Union[GeneralIntegrator, SymplecticIntegrator],
    x: Sequence[float],
    t_0: float,
    h: float,
    n: int,
    method: Union[IntegrationMethod, str],
    dtype=None,
) -> ResultBuffer:
    """
    Integrate a system from x at t_0 for n steps of size h.

    A GeneralIntegrator accepts Runge-Kutta only. A SymplecticIntegrator
    accepts every method; with Runge-Kutta it is integrated through its
    1st-order form [v, accelerations(t, q)].

    Args:
        system: System implementing one of the integrator interfaces
        x: Initial state vector
        t_0: Initial value of time
        h: Time step (negative for backward integration)
        n: Number of iterations (n <= 0 yields the initial column only)
        method: IntegrationMethod or one of its names
        dtype: Floating point type of the result (default: from x)

    Returns:
        ResultBuffer with n + 1 columns

    Raises:
        ValueError: If the method is unknown or doesn't fit the system
        DimensionMismatchError: If a 2nd-order state has odd length
        IntegrationError: If a callback fails; partial_result holds the
                          buffer with the steps completed before the failure
    """
    method = IntegratorFactory.create(method)
    result = ResultBuffer.prepare(x, n, dtype=dtype)
    stepper = _STEPPERS[method]

    if isinstance(system, SymplecticIntegrator):
        split_halves(result.dimension)
        if method in SYMPLECTIC_METHODS:
            callback = system.accelerations
        else:
            callback = first_order(system.accelerations)
    elif isinstance(system, GeneralIntegrator):
        if method in SYMPLECTIC_METHODS:
            raise ValueError(
                f"Method '{_CANONICAL[method]}' requires a 2nd-order system "
                f"(SymplecticIntegrator), got {system.__class__.__name__}"
            )
        callback = system.update
    else:
        raise ValueError(
            f"Expected a GeneralIntegrator or SymplecticIntegrator, "
            f"got {system.__class__.__name__}"
        )

    logger.debug(
        f"Integrating {system.__class__.__name__} with {_CANONICAL[method]}: "
        f"dimension={result.dimension}, n={n}, h={h}, dtype={result.dtype}"
    )

    try:
        stepper(callback, result, t_0, h, n, stats=system.stats)
    except IntegrationError as e:
        e.partial_result = result
        raise

    return result
