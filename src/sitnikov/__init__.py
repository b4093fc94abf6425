"""
Sitnikov Problem

Trajectories of a massless body oscillating along the axis of two equal
primaries on Keplerian orbits, and the MEGNO chaos indicator.
"""

from .megno import MegnoAccumulator, MegnoEquations, perturb, tangent_integrand
from .model import SitnikovEquations, SitnikovModel, SitnikovResults
from .orbit import PrimaryOrbit
from .writer import deserialize_from, serialize_into

__all__ = [
    'PrimaryOrbit',
    'SitnikovEquations',
    'MegnoEquations',
    'MegnoAccumulator',
    'perturb',
    'tangent_integrand',
    'SitnikovModel',
    'SitnikovResults',
    'serialize_into',
    'deserialize_from',
]
