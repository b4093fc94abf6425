"""
Centralized Configuration Management for the Sitnikov Toolkit

This module provides a unified interface for loading and accessing
the model, integration, MEGNO and logging settings from YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import numpy as np

from .constants import (
    MAX_TIME_STEP,
    MEGNO_PERTURBATION_SD,
    MEGNO_SEED,
    STEPS_PER_PERIOD_FACTOR,
    SUPPORTED_DTYPES,
    TIME_STEP_UNIT,
)
from .exceptions import ConfigurationError

MEGNO_SCHEMES = ('ode', 'trapezoidal')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class ModelConfig:
    """Initial values and parameters of the Sitnikov problem"""

    e: float = 0.0       # Eccentricity of the primaries' orbits
    tau: float = 0.0     # Time at the pericenter (a fraction of 2*pi)
    z_0: float = 1.0     # Initial position of the massless body
    z_v_0: float = 0.0   # Initial velocity of the massless body


@dataclass
class IntegrationConfig:
    """Configuration for the numerical integration"""

    h: float = 1e-2          # Time step (a multiple of pi/2)
    periods: int = 1000      # Duration (number of periods of the primaries)
    method: str = "yoshida_4th"
    dtype: str = "float64"

    @property
    def np_dtype(self):
        """numpy floating point type"""
        return SUPPORTED_DTYPES[self.dtype]


@dataclass
class MegnoConfig:
    """Configuration for the MEGNO chaos indicator"""

    enabled: bool = False
    scheme: str = "ode"      # 'ode' (integrated equations) or 'trapezoidal'
    seed: int = MEGNO_SEED
    perturbation_sd: float = MEGNO_PERTURBATION_SD


@dataclass
class LoggingConfig:
    """Configuration for logging output"""

    level: str = "INFO"
    json_format: bool = False
    log_file: Optional[str] = None


@dataclass
class SitnikovConfig:
    """Master configuration for a Sitnikov run"""

    model: ModelConfig = field(default_factory=ModelConfig)
    integration: IntegrationConfig = field(default_factory=IntegrationConfig)
    megno: MegnoConfig = field(default_factory=MegnoConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Paths
    output_dir: Path = field(default_factory=lambda: Path("."))

    @property
    def step_size(self) -> float:
        """Time step in model time units"""
        return self.integration.h * TIME_STEP_UNIT

    @property
    def iterations(self) -> int:
        """Number of integration steps"""
        return int(round(self.integration.periods * STEPS_PER_PERIOD_FACTOR / self.integration.h))

    @property
    def megno_offset(self) -> int:
        """Number of steps integrated before the MEGNO integrals start"""
        return int(round(1.0 / self.integration.h))

    @classmethod
    def from_dict(cls, config_dict: Optional[Dict[str, Any]]) -> 'SitnikovConfig':
        """Build configuration from a (possibly partial) dictionary"""
        config_dict = config_dict or {}
        if not isinstance(config_dict, dict):
            raise TypeError(f"Expected a mapping of sections, got {type(config_dict).__name__}")

        return cls(
            model=ModelConfig(**config_dict.get('model', {})),
            integration=IntegrationConfig(**config_dict.get('integration', {})),
            megno=MegnoConfig(**config_dict.get('megno', {})),
            logging=LoggingConfig(**config_dict.get('logging', {})),
            output_dir=Path(config_dict.get('output_dir', '.')),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'SitnikovConfig':
        """Load configuration from YAML file"""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f)

        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary"""
        return {
            'model': dict(self.model.__dict__),
            'integration': dict(self.integration.__dict__),
            'megno': dict(self.megno.__dict__),
            'logging': dict(self.logging.__dict__),
            'output_dir': str(self.output_dir),
        }

    def to_yaml(self, yaml_path: str) -> None:
        """Save configuration to YAML file"""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    def validation_errors(self) -> List[str]:
        """
        Check every value against its allowed range.

        Returns:
            List of messages, empty if the configuration is valid
        """
        errors = []

        if not 0.0 <= self.model.e < 1.0:
            errors.append(f"e = {self.model.e} is not in the range [0, 1)")

        if not 0.0 <= self.model.tau < 1.0:
            errors.append(f"tau = {self.model.tau} is not in the range [0, 1)")

        dtype = SUPPORTED_DTYPES.get(self.integration.dtype)
        if dtype is None:
            errors.append(
                f"Unknown dtype '{self.integration.dtype}'. "
                f"Available: {', '.join(SUPPORTED_DTYPES)}"
            )
            dtype = np.float64

        eps = float(np.finfo(dtype).eps)
        h = self.integration.h
        if not eps <= h <= MAX_TIME_STEP:
            errors.append(f"h = {h} is not in the range [{eps}, {MAX_TIME_STEP}]")
        else:
            a = STEPS_PER_PERIOD_FACTOR / h
            b = round(a)
            if abs(a - b) >= eps * max(1.0, b):
                errors.append(f"h = {h} doesn't divide 4 into an integer number of steps")

        if self.integration.periods < 1:
            errors.append(f"periods = {self.integration.periods} must be at least 1")

        # Local import: src.integrators depends on src.common
        from src.integrators.factory import IntegratorFactory
        try:
            IntegratorFactory.from_name(self.integration.method)
        except ValueError as e:
            errors.append(str(e))

        if self.megno.scheme not in MEGNO_SCHEMES:
            errors.append(
                f"Unknown MEGNO scheme '{self.megno.scheme}'. "
                f"Available: {', '.join(MEGNO_SCHEMES)}"
            )

        if not self.megno.perturbation_sd > 0.0:
            errors.append(
                f"perturbation_sd = {self.megno.perturbation_sd} must be positive"
            )

        if self.logging.level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level '{self.logging.level}'")

        return errors

    def validate(self) -> 'SitnikovConfig':
        """
        Validate the configuration.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: Listing every invalid value
        """
        errors = self.validation_errors()
        if errors:
            raise ConfigurationError(errors)
        return self


def get_config(config_path: Optional[str] = None) -> SitnikovConfig:
    """
    Get run configuration

    Priority:
    1. Provided config_path
    2. SITNIKOV_CONFIG environment variable
    3. config/sitnikov.yml
    4. Default configuration
    """
    if config_path is None:
        config_path = os.getenv('SITNIKOV_CONFIG')

    if config_path is None:
        # Try default paths
        default_paths = [
            Path(__file__).parent.parent.parent / 'config' / 'sitnikov.yml',
            Path('config/sitnikov.yml')
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path and Path(config_path).exists():
        return SitnikovConfig.from_yaml(config_path)

    # Return default configuration
    return SitnikovConfig()
