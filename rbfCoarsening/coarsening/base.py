"""
Base coarsener class.

A coarsener owns one interpolation session:

    coarsener.compute(rbf_function, positions, positions_interpolation)
    for each synchronization point:
        out = coarsener.interpolate(values)   # values at positions

It decides which source points form the interpolation basis and when
that basis has to be rebuilt. Kernel evaluation and the linear algebra
are delegated to the interpolation engine.

Each coupling interface needs its own coarsener instance; the session
state is never shared.
"""

import logging
import numpy as np
from typing import Optional
from abc import ABC, abstractmethod

from ..discretization.point_store import PointStore
from ..functions.rbf_function import RBFFunction
from ..interpolation.rbf_interpolation import RBFInterpolation, as_points

logger = logging.getLogger(__name__)


class Coarsener(ABC):
    """
    Abstract base class for coarseners.

    Subclasses implement:
    - compute: start a session on new point sets
    - initialized: whether interpolation can run without a rebuild
    - interpolate: map values at positions onto positions_interpolation
    """

    def __init__(self):
        self.rbf_function: Optional[RBFFunction] = None
        self.points: Optional[PointStore] = None

    @abstractmethod
    def compute(self, rbf_function: RBFFunction,
                positions: np.ndarray,
                positions_interpolation: np.ndarray):
        """
        Start a new session.

        Parameters:
            rbf_function: Kernel, passed on to the interpolation engine
            positions: Source points (n, D)
            positions_interpolation: Target points (m, D)
        """
        pass

    @abstractmethod
    def initialized(self) -> bool:
        """Whether the session holds a usable interpolation basis."""
        pass

    @abstractmethod
    def interpolate(self, values: np.ndarray) -> np.ndarray:
        """
        Interpolate values from positions onto positions_interpolation.

        Parameters:
            values: Values at positions, shape (n,) or (n, k)

        Returns:
            Values at positions_interpolation, shape (m,) or (m, k)
        """
        pass

    def _store_points(self, rbf_function: RBFFunction,
                      positions: np.ndarray,
                      positions_interpolation: np.ndarray):
        """Replace the session point sets and kernel."""
        positions_interpolation = as_points(positions_interpolation)
        if np.asarray(positions).size == 0:
            # empty session, the dimension is taken from the targets
            positions = np.zeros((0, positions_interpolation.shape[1]))

        self.rbf_function = rbf_function
        self.points = PointStore(positions, positions_interpolation)
        logger.info(
            "%s: new session with %d positions, %d interpolation positions (D=%d)",
            type(self).__name__, self.points.n_points,
            self.points.n_targets, self.points.n_dim
        )

    def _check_session(self, values: np.ndarray):
        """Validate values against the current session."""
        if self.points is None:
            raise RuntimeError("No point sets. Call compute() first.")
        return self.points.check_values(values)

    @property
    def positions(self) -> Optional[np.ndarray]:
        """Source points of the current session."""
        return None if self.points is None else self.points.positions

    @property
    def positions_interpolation(self) -> Optional[np.ndarray]:
        """Target points of the current session."""
        return None if self.points is None else self.points.positions_interpolation


class NoCoarsening(Coarsener):
    """
    Full-basis interpolation.

    Every source point is part of the basis. The operator from
    positions to positions_interpolation is built once in compute().
    """

    def __init__(self, polynomial: bool = True):
        super().__init__()
        self.polynomial = polynomial
        self.rbf = RBFInterpolation(polynomial)

    def compute(self, rbf_function: RBFFunction,
                positions: np.ndarray,
                positions_interpolation: np.ndarray):
        self._store_points(rbf_function, positions, positions_interpolation)
        self.rbf = RBFInterpolation(self.polynomial)

        if self.points.is_empty:
            return

        self.rbf.compute(rbf_function, self.points.positions,
                         self.points.positions_interpolation)

    def initialized(self) -> bool:
        return self.rbf.initialized()

    def interpolate(self, values: np.ndarray) -> np.ndarray:
        values_2d, scalar = self._check_session(values)
        result = self.rbf.interpolate(values_2d)
        return result[:, 0] if scalar else result
