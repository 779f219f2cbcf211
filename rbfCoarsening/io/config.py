"""
Configuration of interpolation and coarsening.

Settings are read from YAML (PyYAML, safe loader). Both sections and
every key are optional; missing keys take the defaults below.

Example YAML format:
    interpolation:
      function: wendland_c2
      radius: 0.5
      polynomial: true

    coarsening:
      enabled: true
      tol: 1.0e-4
      reselection_tol: 1.0e-2
      min_points: 2
      max_points: 500

Usage:
    config = load_config("coarsening.yaml")
    rbf_function, coarsener = setup_coarsening_from_config(config)
    coarsener.compute(rbf_function, positions, positions_interpolation)
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Tuple, Union
from dataclasses import dataclass, field, fields

from ..functions.rbf_function import RBFFunction, RBF_FUNCTIONS, make_rbf_function
from ..coarsening.base import Coarsener, NoCoarsening
from ..coarsening.adaptive import AdaptiveCoarsening


def _check_keys(section: str, data: Dict[str, Any], cls) -> None:
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(
            f"Unknown key(s) in '{section}': {', '.join(sorted(unknown))}. "
            f"Allowed: {', '.join(sorted(known))}"
        )


@dataclass
class InterpolationConfig:
    """
    Kernel and interpolation settings.

    Attributes:
        function: Kernel name (see RBF_FUNCTIONS)
        radius: Support radius of the Wendland kernels
        epsilon: Shape parameter of the Gaussian kernel
        polynomial: Whether to append the linear polynomial term
    """
    function: str = "tps"
    radius: float = 1.0
    epsilon: float = 1.0
    polynomial: bool = True

    def __post_init__(self):
        self.function = str(self.function).lower()
        self.radius = float(self.radius)
        self.epsilon = float(self.epsilon)
        if self.function not in RBF_FUNCTIONS:
            raise ValueError(
                f"Unknown RBF function '{self.function}'. "
                f"Choose from: {', '.join(sorted(RBF_FUNCTIONS))}"
            )
        if self.radius <= 0:
            raise ValueError(f"radius must be positive, got {self.radius}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")

    def make_function(self) -> RBFFunction:
        return make_rbf_function(self.function, radius=self.radius, epsilon=self.epsilon)


@dataclass
class CoarseningConfig:
    """
    Coarsening settings.

    Attributes:
        enabled: Use AdaptiveCoarsening (True) or NoCoarsening (False)
        tol: Acceptance tolerance of the greedy selection
        reselection_tol: Error on new values that triggers reselection
        min_points: Minimum basis size
        max_points: Maximum basis size
    """
    enabled: bool = False
    tol: float = 1e-5
    reselection_tol: float = 1e-3
    min_points: int = 1
    max_points: int = 1000

    def __post_init__(self):
        # PyYAML reads 1e-5 (no dot) as a string
        self.tol = float(self.tol)
        self.reselection_tol = float(self.reselection_tol)
        self.min_points = int(self.min_points)
        self.max_points = int(self.max_points)
        if self.tol <= 0:
            raise ValueError(f"tol must be positive, got {self.tol}")
        if self.reselection_tol < self.tol:
            raise ValueError(
                f"reselection_tol ({self.reselection_tol}) must be >= tol ({self.tol})"
            )
        if self.min_points < 1:
            raise ValueError(f"min_points must be at least 1, got {self.min_points}")
        if self.max_points < self.min_points:
            raise ValueError(
                f"max_points ({self.max_points}) must be >= min_points ({self.min_points})"
            )


@dataclass
class Config:
    """Complete configuration."""
    interpolation: InterpolationConfig = field(default_factory=InterpolationConfig)
    coarsening: CoarseningConfig = field(default_factory=CoarseningConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """
        Build a configuration from a nested dict.

        Parameters:
            data: Dict with optional 'interpolation' and 'coarsening' sections
        """
        data = data or {}
        _check_keys("config", data, cls)

        interp = data.get("interpolation") or {}
        coarse = data.get("coarsening") or {}
        _check_keys("interpolation", interp, InterpolationConfig)
        _check_keys("coarsening", coarse, CoarseningConfig)

        return cls(
            interpolation=InterpolationConfig(**interp),
            coarsening=CoarseningConfig(**coarse),
        )


def load_config(filename: Union[str, Path]) -> Config:
    """
    Load configuration from a YAML file.

    Parameters:
        filename: Path of the YAML file

    Returns:
        Config
    """
    with open(filename, 'r') as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise ValueError(f"{filename}: expected a mapping at top level")

    return Config.from_dict(data or {})


def setup_coarsening_from_config(config: Union[Config, Dict[str, Any]]
                                 ) -> Tuple[RBFFunction, Coarsener]:
    """
    Create the kernel and the coarsener described by a configuration.

    Parameters:
        config: Config or plain dict

    Returns:
        (rbf_function, coarsener)
    """
    if not isinstance(config, Config):
        config = Config.from_dict(config)

    rbf_function = config.interpolation.make_function()
    polynomial = config.interpolation.polynomial
    c = config.coarsening

    if c.enabled:
        coarsener = AdaptiveCoarsening(
            tol=c.tol,
            reselection_tol=c.reselection_tol,
            min_points=c.min_points,
            max_points=c.max_points,
            polynomial=polynomial,
        )
    else:
        coarsener = NoCoarsening(polynomial=polynomial)

    return rbf_function, coarsener
