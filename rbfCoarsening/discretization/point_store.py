"""
Point store for a coarsening session.

A session works on two point sets:
- positions: source points where field values are known. These are
  the only candidates for the coarse basis.
- positions_interpolation: target points where field values are
  reconstructed. They are only used by the final interpolation.

Key invariant (must always hold):
    positions.shape[1] == positions_interpolation.shape[1]

Both arrays are private copies flagged read-only, so nothing outside
the owning coarsener can change them while the session is alive.
"""

import numpy as np
from typing import Tuple
from dataclasses import dataclass

from ..interpolation.rbf_interpolation import as_points


def _frozen(points: np.ndarray) -> np.ndarray:
    points = as_points(points).copy()
    points.flags.writeable = False
    return points


@dataclass
class PointStore:
    """
    Read-only storage of the session point sets.

    Attributes:
        positions: Source points, shape (n_points, n_dim)
        positions_interpolation: Target points, shape (n_targets, n_dim)
    """
    positions: np.ndarray
    positions_interpolation: np.ndarray

    def __post_init__(self):
        self.positions = _frozen(self.positions)
        self.positions_interpolation = _frozen(self.positions_interpolation)
        self._validate()

    def _validate(self):
        """Check that both point sets live in the same space."""
        if self.positions.shape[1] != self.positions_interpolation.shape[1]:
            raise ValueError(
                f"Dimension mismatch: positions have D={self.positions.shape[1]}, "
                f"interpolation positions have D={self.positions_interpolation.shape[1]}"
            )

    @property
    def n_points(self) -> int:
        """Number of source points."""
        return self.positions.shape[0]

    @property
    def n_targets(self) -> int:
        """Number of target points."""
        return self.positions_interpolation.shape[0]

    @property
    def n_dim(self) -> int:
        """Coordinate dimension D."""
        return self.positions.shape[1]

    @property
    def is_empty(self) -> bool:
        """True when there are no source points."""
        return self.n_points == 0

    def check_values(self, values: np.ndarray) -> Tuple[np.ndarray, bool]:
        """
        Validate field values defined at the source points.

        Parameters:
            values: Array of shape (n_points,) or (n_points, k)

        Returns:
            (values_2d, scalar) where values_2d has shape (n_points, k)
            and scalar tells whether the input was 1-D
        """
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 0 or values.ndim > 2:
            raise ValueError(f"Values must be 1D or 2D, got shape {values.shape}")
        if self.is_empty:
            raise ValueError("Values supplied for an empty set of positions")
        if values.shape[0] != self.n_points:
            raise ValueError(
                f"Got {values.shape[0]} rows of values for {self.n_points} positions"
            )

        scalar = values.ndim == 1
        return values.reshape(self.n_points, -1), scalar
