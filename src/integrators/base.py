"""
Base Classes for Fixed-Step Integrators

Provides the two integrator interfaces and the shared plumbing used by
every stepping scheme.

A system of 1st-order ODEs:
    dx/dt = update(t, x)

is integrated by implementing GeneralIntegrator. A system of 2nd-order
ODEs (positions q, velocities v):
    d²q/dt² = accelerations(t, q)

is integrated by implementing SymplecticIntegrator; its state vector is
split into halves [q..., v...].

The stepping algorithms themselves are plain module functions
(runge_kutta_4th, leapfrog, yoshida_4th) operating on the one callback
a system provides, so there is a single implementation per scheme.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from src.common.exceptions import DimensionMismatchError, IntegrationError

# Callback signatures: (time, state) -> derivative / accelerations
Derivative = Callable[[float, np.ndarray], Sequence[float]]
Accelerations = Callable[[float, np.ndarray], Sequence[float]]


@dataclass
class IntegrationStats:
    """
    Statistics for integrations performed by one integrator object.

    Attributes:
        total_steps: Outer steps written to result buffers
        total_substeps: Leapfrog sub-steps (3 per Yoshida step)
        total_derivative_evals: Callback evaluations
    """
    total_steps: int = 0
    total_substeps: int = 0
    total_derivative_evals: int = 0

    def update(self, derivative_evals: int, substeps: int = 1) -> None:
        """Record one outer step."""
        self.total_steps += 1
        self.total_substeps += substeps
        self.total_derivative_evals += derivative_evals

    def evals_per_step(self) -> float:
        """
        Average number of callback evaluations per outer step.

        Returns:
            Ratio of evaluations to steps (0 before the first step)
        """
        if self.total_steps == 0:
            return 0.0
        return self.total_derivative_evals / self.total_steps

    def __repr__(self) -> str:
        return (f"IntegrationStats(steps={self.total_steps}, "
                f"substeps={self.total_substeps}, "
                f"derivs={self.total_derivative_evals})")


def evaluate(
    callback: Callable[[float, np.ndarray], Sequence[float]],
    t: float,
    x: np.ndarray,
    size: int,
    description: str,
    step: int,
) -> np.ndarray:
    """
    Evaluate a user callback, wrapping its failures with context.

    Args:
        callback: Derivative or acceleration function
        t: Time moment
        x: State (or positions) passed to the callback
        size: Expected length of the returned vector
        description: What is being computed, e.g. "the first increment"
        step: Index of the outer step being computed

    Returns:
        Callback result as an array of the dtype of x

    Raises:
        IntegrationError: If the callback raises
        DimensionMismatchError: If the callback returns a vector of wrong length
    """
    try:
        value = callback(t, x)
    except Exception as e:
        raise IntegrationError(
            f"Couldn't compute {description} (step {step}, t = {t})",
            step=step,
            stage=description,
            time=t,
        ) from e

    value = np.asarray(value, dtype=x.dtype)
    if value.ndim != 1 or value.shape[0] != size:
        raise DimensionMismatchError(size, value.size)
    return value


def first_order(accelerations: Accelerations) -> Derivative:
    """
    Turn an acceleration function into a 1st-order derivative function.

    For a state [q..., v...] the derivative is [v..., accelerations(t, q)...],
    which lets a 2nd-order system be integrated by Runge-Kutta methods.

    Args:
        accelerations: Function of (t, positions)

    Returns:
        Function of (t, state) returning d(state)/dt
    """
    def update(t: float, x: np.ndarray) -> np.ndarray:
        half = x.shape[0] // 2
        a = np.asarray(accelerations(t, x[:half]), dtype=x.dtype)
        return np.concatenate((x[half:], a))

    return update


class BaseIntegrator(ABC):
    """
    Common state of both integrator interfaces.

    Attributes:
        stats: Integration statistics, accumulated over calls
    """

    def __init__(self):
        self.stats = IntegrationStats()

    def reset_stats(self) -> None:
        """Reset integration statistics."""
        self.stats = IntegrationStats()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.stats!r})"


class GeneralIntegrator(BaseIntegrator):
    """
    A system of 1st-order ODEs integrated by general (Runge-Kutta) methods.

    Subclasses must implement:
        - update(): Compute dx/dt at (t, x)

    Example:
        class Decay(GeneralIntegrator):
            def update(self, t, x):
                return -x

        result = Decay().integrate([1.0], t_0=0.0, h=1e-2, n=100)
        x_final = result.final_state()
    """

    @abstractmethod
    def update(self, t: float, x: np.ndarray) -> Sequence[float]:
        """
        Compute the derivative of the state.

        Args:
            t: Current time moment
            x: Current state of the system

        Returns:
            dx/dt, same length as x
        """
        pass

    def integrate(self, x, t_0: float, h: float, n: int, method=None, dtype=None):
        """
        Integrate the system from x at t_0 for n steps of size h.

        Args:
            x: Initial state vector
            t_0: Initial value of time
            h: Time step (negative for backward integration)
            n: Number of iterations
            method: IntegrationMethod (default: RUNGE_KUTTA_4TH)
            dtype: Floating point type of the result (default: from x)

        Returns:
            ResultBuffer with n + 1 columns

        Raises:
            IntegrationError: If update() fails at any stage
        """
        from .factory import IntegrationMethod, integrate

        if method is None:
            method = IntegrationMethod.RUNGE_KUTTA_4TH
        return integrate(self, x, t_0, h, n, method, dtype=dtype)


class SymplecticIntegrator(BaseIntegrator):
    """
    A system of 2nd-order ODEs integrated by symplectic methods.

    The state vector is [positions..., velocities...] with both halves
    of equal length; accelerations() receives the positions only.

    Subclasses must implement:
        - accelerations(): Compute d²q/dt² at (t, q)

    Example:
        class Oscillator(SymplecticIntegrator):
            def accelerations(self, t, q):
                return -q

        result = Oscillator().integrate([1.0, 0.0], t_0=0.0, h=1e-2, n=628)
    """

    @abstractmethod
    def accelerations(self, t: float, q: np.ndarray) -> Sequence[float]:
        """
        Compute the accelerations of the positions.

        Args:
            t: Current time moment
            q: Current positions (first half of the state)

        Returns:
            d²q/dt², same length as q
        """
        pass

    def integrate(self, x, t_0: float, h: float, n: int, method=None, dtype=None):
        """
        Integrate the system from x at t_0 for n steps of size h.

        Args:
            x: Initial state vector [positions..., velocities...]
            t_0: Initial value of time
            h: Time step (negative for backward integration)
            n: Number of iterations
            method: IntegrationMethod (default: YOSHIDA_4TH)
            dtype: Floating point type of the result (default: from x)

        Returns:
            ResultBuffer with n + 1 columns

        Raises:
            IntegrationError: If accelerations() fails at any sub-step
        """
        from .factory import IntegrationMethod, integrate

        if method is None:
            method = IntegrationMethod.YOSHIDA_4TH
        return integrate(self, x, t_0, h, n, method, dtype=dtype)
