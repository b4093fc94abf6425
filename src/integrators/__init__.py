"""
Fixed-Step Numerical Integrators

This package provides explicit fixed-step methods for 1st-order ODE
systems and symplectic methods for 2nd-order position/velocity systems.

Available Methods:
- runge_kutta_4th: Classical 4th-order Runge-Kutta
- leapfrog: Leapfrog (velocity Verlet), symplectic, 2nd order
- yoshida_4th: Yoshida composition of leapfrog steps, symplectic, 4th order

Systems implement GeneralIntegrator (update) or SymplecticIntegrator
(accelerations) and are integrated with their integrate() method.
"""

from .base import (
    GeneralIntegrator,
    IntegrationStats,
    SymplecticIntegrator,
    first_order,
)
from .factory import IntegrationMethod, IntegratorFactory, integrate
from .leapfrog import leapfrog, leapfrog_once
from .result import ResultBuffer
from .runge_kutta import runge_kutta_4th
from .yoshida import yoshida_4th, yoshida_4th_drift_kick

__all__ = [
    # Interfaces
    'GeneralIntegrator',
    'SymplecticIntegrator',
    'IntegrationStats',
    'first_order',
    # Result storage
    'ResultBuffer',
    # Methods
    'runge_kutta_4th',
    'leapfrog',
    'leapfrog_once',
    'yoshida_4th',
    'yoshida_4th_drift_kick',
    # Dispatch
    'IntegrationMethod',
    'IntegratorFactory',
    'integrate',
]
