"""
Radial basis functions.

A radial basis function maps a distance r >= 0 to a weight phi(r).
The interpolation engine only ever calls ``evaluate``; the coarsening
layer passes the function through without looking at it.

Available kernels:
- TPSFunction: thin plate spline, phi(r) = r^2 log(r)
- LinearFunction: phi(r) = r
- CubicFunction: phi(r) = r^3
- WendlandC0/C2/C4/C6Function: compactly supported, zero for r >= radius
- GaussianFunction: phi(r) = exp(-(eps r)^2)

TPS, linear and cubic kernels are only conditionally positive definite.
They need the polynomial term of the interpolation engine to give a
regular system.

Usage:
    phi = make_rbf_function("wendland_c2", radius=0.5)
    weights = phi(np.array([0.0, 0.25, 1.0]))
"""

import numpy as np
from typing import Dict, Type
from abc import ABC, abstractmethod


class RBFFunction(ABC):
    """
    Abstract radial basis function.

    Subclasses implement ``evaluate`` for an array of distances.
    """

    @abstractmethod
    def evaluate(self, r: np.ndarray) -> np.ndarray:
        """
        Evaluate the kernel.

        Parameters:
            r: Array of non-negative distances (any shape)

        Returns:
            Array of kernel values with the same shape as r
        """
        pass

    def __call__(self, r) -> np.ndarray:
        return self.evaluate(np.asarray(r, dtype=np.float64))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TPSFunction(RBFFunction):
    """Thin plate spline r^2 log(r), continuously extended by 0 at r = 0."""

    def evaluate(self, r: np.ndarray) -> np.ndarray:
        r = np.asarray(r, dtype=np.float64)
        out = np.zeros_like(r)
        mask = r > 0.0
        out[mask] = r[mask] ** 2 * np.log(r[mask])
        return out


class LinearFunction(RBFFunction):
    """phi(r) = r"""

    def evaluate(self, r: np.ndarray) -> np.ndarray:
        return np.array(r, dtype=np.float64)


class CubicFunction(RBFFunction):
    """phi(r) = r^3"""

    def evaluate(self, r: np.ndarray) -> np.ndarray:
        r = np.asarray(r, dtype=np.float64)
        return r ** 3


class _CompactFunction(RBFFunction):
    """
    Base class for compactly supported kernels.

    The kernel is written in terms of xi = r / radius and vanishes
    for xi >= 1.
    """

    def __init__(self, radius: float = 1.0):
        if radius <= 0.0:
            raise ValueError(f"Support radius must be positive, got {radius}")
        self.radius = float(radius)

    def evaluate(self, r: np.ndarray) -> np.ndarray:
        xi = np.asarray(r, dtype=np.float64) / self.radius
        out = np.zeros_like(xi)
        mask = xi < 1.0
        out[mask] = self._profile(xi[mask])
        return out

    @abstractmethod
    def _profile(self, xi: np.ndarray) -> np.ndarray:
        """Kernel value for 0 <= xi < 1."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(radius={self.radius})"


class WendlandC0Function(_CompactFunction):
    """Wendland C0: (1 - xi)^2"""

    def _profile(self, xi: np.ndarray) -> np.ndarray:
        return (1.0 - xi) ** 2


class WendlandC2Function(_CompactFunction):
    """Wendland C2: (1 - xi)^4 (4 xi + 1)"""

    def _profile(self, xi: np.ndarray) -> np.ndarray:
        return (1.0 - xi) ** 4 * (4.0 * xi + 1.0)


class WendlandC4Function(_CompactFunction):
    """Wendland C4: (1 - xi)^6 (35 xi^2 + 18 xi + 3)"""

    def _profile(self, xi: np.ndarray) -> np.ndarray:
        return (1.0 - xi) ** 6 * (35.0 * xi ** 2 + 18.0 * xi + 3.0)


class WendlandC6Function(_CompactFunction):
    """Wendland C6: (1 - xi)^8 (32 xi^3 + 25 xi^2 + 8 xi + 1)"""

    def _profile(self, xi: np.ndarray) -> np.ndarray:
        return (1.0 - xi) ** 8 * (32.0 * xi ** 3 + 25.0 * xi ** 2 + 8.0 * xi + 1.0)


class GaussianFunction(RBFFunction):
    """Gaussian exp(-(eps r)^2)"""

    def __init__(self, epsilon: float = 1.0):
        if epsilon <= 0.0:
            raise ValueError(f"Shape parameter must be positive, got {epsilon}")
        self.epsilon = float(epsilon)

    def evaluate(self, r: np.ndarray) -> np.ndarray:
        r = np.asarray(r, dtype=np.float64)
        return np.exp(-(self.epsilon * r) ** 2)

    def __repr__(self) -> str:
        return f"GaussianFunction(epsilon={self.epsilon})"


RBF_FUNCTIONS: Dict[str, Type[RBFFunction]] = {
    'tps': TPSFunction,
    'linear': LinearFunction,
    'cubic': CubicFunction,
    'wendland_c0': WendlandC0Function,
    'wendland_c2': WendlandC2Function,
    'wendland_c4': WendlandC4Function,
    'wendland_c6': WendlandC6Function,
    'gaussian': GaussianFunction,
}


def make_rbf_function(name: str, radius: float = 1.0,
                      epsilon: float = 1.0) -> RBFFunction:
    """
    Create a kernel by name.

    Parameters:
        name: One of the keys of RBF_FUNCTIONS (case insensitive)
        radius: Support radius, used by the Wendland kernels only
        epsilon: Shape parameter, used by the Gaussian kernel only

    Returns:
        RBFFunction instance
    """
    key = name.lower()
    if key not in RBF_FUNCTIONS:
        raise ValueError(
            f"Unknown RBF function '{name}'. "
            f"Choose from: {', '.join(sorted(RBF_FUNCTIONS))}"
        )

    cls = RBF_FUNCTIONS[key]
    if issubclass(cls, _CompactFunction):
        return cls(radius)
    if cls is GaussianFunction:
        return cls(epsilon)
    return cls()
