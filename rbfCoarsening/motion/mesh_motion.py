"""
RBF mesh motion.

Propagates a prescribed boundary displacement into the interior of a
mesh. The boundary points are the interpolation sources, the interior
points the targets:

    motion = RBFMeshMotion(coarsener, TPSFunction(), boundary, interior)
    motion.set_motion(boundary_displacement)
    new_interior = motion.update()

The coarsener decides which boundary points carry the interpolation
and when that selection is renewed, so successive updates within one
simulation reuse the basis as long as it stays accurate.
"""

import logging
import numpy as np
from typing import Optional

from ..coarsening.base import Coarsener
from ..functions.rbf_function import RBFFunction
from ..interpolation.rbf_interpolation import as_points

logger = logging.getLogger(__name__)


class RBFMeshMotion:
    """
    Mesh motion driven by an RBF coarsener.

    Attributes:
        coarsener: Coarsener owning the interpolation session
        boundary_points: Boundary coordinates (n_boundary, D)
        interior_points: Interior coordinates (n_interior, D)
        boundary_displacement: Last prescribed displacement, or None
        interior_displacement: Last interpolated displacement, or None
    """

    def __init__(self, coarsener: Coarsener,
                 rbf_function: RBFFunction,
                 boundary_points: np.ndarray,
                 interior_points: np.ndarray):
        self.coarsener = coarsener
        self.boundary_points = as_points(boundary_points).copy()
        self.interior_points = as_points(interior_points).copy()

        if self.boundary_points.shape[0] == 0:
            raise ValueError("Mesh motion needs at least one boundary point")

        self.boundary_displacement: Optional[np.ndarray] = None
        self.interior_displacement: Optional[np.ndarray] = None

        self.coarsener.compute(rbf_function, self.boundary_points, self.interior_points)

    @property
    def n_dim(self) -> int:
        return self.boundary_points.shape[1]

    def set_motion(self, boundary_displacement: np.ndarray):
        """
        Prescribe the boundary displacement.

        Parameters:
            boundary_displacement: Array of shape (n_boundary, D)
        """
        displacement = np.asarray(boundary_displacement, dtype=np.float64)
        expected = self.boundary_points.shape
        if displacement.shape != expected:
            raise ValueError(
                f"Boundary displacement must have shape {expected}, got {displacement.shape}"
            )
        self.boundary_displacement = displacement.copy()

    def update(self) -> np.ndarray:
        """
        Move the interior points.

        Returns:
            New interior coordinates, shape (n_interior, D)
        """
        if self.boundary_displacement is None:
            raise RuntimeError("No boundary motion. Call set_motion() first.")

        self.interior_displacement = self.coarsener.interpolate(self.boundary_displacement)
        logger.debug("Moved %d interior points, max displacement %.3e",
                     self.interior_points.shape[0],
                     np.abs(self.interior_displacement).max(initial=0.0))
        return self.interior_points + self.interior_displacement

    def moved_boundary_points(self) -> np.ndarray:
        """Boundary coordinates after the prescribed displacement."""
        if self.boundary_displacement is None:
            return self.boundary_points.copy()
        return self.boundary_points + self.boundary_displacement
