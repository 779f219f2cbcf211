"""
Dense RBF interpolation.

Given basis points x_j, values v_j and a kernel phi, the interpolant is

    s(x) = sum_j w_j phi(|x - x_j|) + c_0 + sum_d c_d y_d(x)

The weights and polynomial coefficients solve the saddle point system

    [ Phi  P ] [w]   [v]
    [ P^T  0 ] [c] = [0]

with Phi_ij = phi(|x_i - x_j|) and P = [1, y]. The linear coordinates y
are taken in the affine hull of the basis points: y = (x - center) @ axes,
where axes are the principal directions with a non-negligible singular
value. A set of n points spans at most n - 1 directions, so P always has
full column rank. Two points in the plane, points on a line in 2D or on a
tilted plane in 3D all give a regular system.

Two forms are provided:
- RBFInterpolant: fit once, evaluate at arbitrary query points
- RBFInterpolation: precomputed operator H for a fixed pair of point
  sets, so that values_out = H @ values_in is a single mat-vec

The operator form is what the coarsening layer caches: the evaluation
points never change during a session, only the values do.

TODO: Add a sparse solve path for compactly supported kernels
"""

import numpy as np
from scipy.linalg import solve, svd
from scipy.spatial.distance import cdist
from typing import Optional, Tuple

from ..functions.rbf_function import RBFFunction

# Singular values below RANK_TOL times the largest one are dropped
RANK_TOL = 1e-10

# (center, axes): origin and orthonormal columns of the affine hull
AffineFrame = Tuple[np.ndarray, np.ndarray]


def as_points(points: np.ndarray) -> np.ndarray:
    """
    Convert input to a float64 point array of shape (n, D).

    1-D input is read as n points in one dimension.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points.reshape(-1, 1)
    if points.ndim != 2:
        raise ValueError(f"Points must be a 2D array (n, D), got shape {points.shape}")
    return points


def affine_frame(points: np.ndarray, tol: float = RANK_TOL) -> AffineFrame:
    """
    Orthonormal frame of the affine hull of a point set.

    Parameters:
        points: Array of shape (n, D)
        tol: Relative singular value cutoff

    Returns:
        (center, axes) with center of shape (D,) and axes of shape (D, r),
        r being the affine rank of the points (r <= n - 1)
    """
    n_dim = points.shape[1]
    if points.shape[0] == 0:
        return np.zeros(n_dim), np.zeros((n_dim, 0))

    center = points.mean(axis=0)
    _, s, vt = svd(points - center, full_matrices=False)
    if s.size == 0 or s[0] == 0.0:
        return center, np.zeros((n_dim, 0))
    rank = int(np.count_nonzero(s > tol * s[0]))
    return center, vt[:rank].T


def polynomial_matrix(points: np.ndarray, frame: AffineFrame) -> np.ndarray:
    """
    Linear polynomial block [1, (x - center) @ axes].

    Returns:
        Array of shape (n, 1 + r)
    """
    center, axes = frame
    return np.hstack([np.ones((points.shape[0], 1)), (points - center) @ axes])


def kernel_matrix(function: RBFFunction,
                  points_a: np.ndarray,
                  points_b: np.ndarray) -> np.ndarray:
    """Phi_ij = phi(|a_i - b_j|), shape (len(a), len(b))."""
    return function(cdist(points_a, points_b))


def system_matrix(function: RBFFunction,
                  points: np.ndarray,
                  polynomial: bool = True) -> Tuple[np.ndarray, Optional[AffineFrame]]:
    """
    Assemble the interpolation system for a set of basis points.

    Parameters:
        function: Kernel
        points: Basis points (n, D)
        polynomial: Whether to append the linear polynomial term

    Returns:
        (A, frame) where A is (n + n_poly, n + n_poly) and frame is the
        affine frame of the polynomial term (None without polynomial)
    """
    phi = kernel_matrix(function, points, points)
    if not polynomial:
        return phi, None

    frame = affine_frame(points)
    P = polynomial_matrix(points, frame)
    n = points.shape[0]
    n_poly = P.shape[1]

    A = np.zeros((n + n_poly, n + n_poly))
    A[:n, :n] = phi
    A[:n, n:] = P
    A[n:, :n] = P.T
    return A, frame


def evaluation_matrix(function: RBFFunction,
                      points: np.ndarray,
                      query_points: np.ndarray,
                      frame: Optional[AffineFrame]) -> np.ndarray:
    """
    Rows of [Phi(query, points), P(query)] matching system_matrix.
    """
    phi = kernel_matrix(function, query_points, points)
    if frame is None:
        return phi
    return np.hstack([phi, polynomial_matrix(query_points, frame)])


class RBFInterpolant:
    """
    Fitted RBF interpolant.

    Attributes:
        points: Basis points (n, D)
        function: Kernel
        coefficients: Kernel weights followed by polynomial coefficients,
                      shape (n + n_poly, k)
        frame: Affine frame of the polynomial term (None without it)
    """

    def __init__(self, points: np.ndarray, function: RBFFunction,
                 coefficients: np.ndarray, frame: Optional[AffineFrame],
                 scalar: bool):
        self.points = points
        self.function = function
        self.coefficients = coefficients
        self.frame = frame
        self._scalar = scalar

    @classmethod
    def build(cls, points: np.ndarray, values: np.ndarray,
              function: RBFFunction, polynomial: bool = True) -> 'RBFInterpolant':
        """
        Fit an interpolant through (points, values).

        Parameters:
            points: Basis points (n, D)
            values: Values at the basis points, shape (n,) or (n, k)
            function: Kernel
            polynomial: Whether to append the linear polynomial term

        Returns:
            RBFInterpolant
        """
        points = as_points(points)
        values = np.asarray(values, dtype=np.float64)
        scalar = values.ndim == 1
        values_2d = values.reshape(values.shape[0], -1)

        if points.shape[0] == 0:
            raise ValueError("Cannot build an interpolant on an empty point set")
        if values_2d.shape[0] != points.shape[0]:
            raise ValueError(
                f"Got {values_2d.shape[0]} values for {points.shape[0]} points"
            )

        A, frame = system_matrix(function, points, polynomial)
        rhs = np.zeros((A.shape[0], values_2d.shape[1]))
        rhs[:points.shape[0]] = values_2d
        coefficients = solve(A, rhs, assume_a='sym')

        return cls(points, function, coefficients, frame, scalar)

    @property
    def n_basis(self) -> int:
        return self.points.shape[0]

    def evaluate(self, query_points: np.ndarray) -> np.ndarray:
        """
        Evaluate the interpolant.

        Parameters:
            query_points: Points of shape (m, D)

        Returns:
            Values of shape (m,) or (m, k), matching the fitted values
        """
        query_points = as_points(query_points)
        if query_points.shape[1] != self.points.shape[1]:
            raise ValueError(
                f"Query points have dimension {query_points.shape[1]}, "
                f"basis has dimension {self.points.shape[1]}"
            )
        Q = evaluation_matrix(self.function, self.points, query_points, self.frame)
        result = Q @ self.coefficients
        if self._scalar:
            return result[:, 0]
        return result


class RBFInterpolation:
    """
    Precomputed RBF interpolation operator.

    After compute(function, positions, positions_interpolation),
    interpolate(values) maps values at positions to values at
    positions_interpolation with one matrix product.

    Attributes:
        polynomial: Whether the linear polynomial term is used
        H: Operator of shape (n_targets, n_basis), None until computed
    """

    def __init__(self, polynomial: bool = True):
        self.polynomial = polynomial
        self.H: Optional[np.ndarray] = None

    def compute(self, function: RBFFunction,
                positions: np.ndarray,
                positions_interpolation: np.ndarray):
        """
        Build the operator.

        Parameters:
            function: Kernel
            positions: Basis points (n, D)
            positions_interpolation: Evaluation points (m, D)
        """
        positions = as_points(positions)
        positions_interpolation = as_points(positions_interpolation)

        if positions.shape[0] == 0:
            raise ValueError("Cannot build an interpolation operator on an empty point set")
        if positions_interpolation.shape[1] != positions.shape[1]:
            raise ValueError(
                f"Dimension mismatch: positions have D={positions.shape[1]}, "
                f"interpolation positions have D={positions_interpolation.shape[1]}"
            )

        n = positions.shape[0]
        if positions_interpolation.shape[0] == 0:
            self.H = np.zeros((0, n))
            return

        A, frame = system_matrix(function, positions, self.polynomial)
        Q = evaluation_matrix(function, positions, positions_interpolation, frame)

        # A is symmetric: H = Q A^{-1} restricted to the kernel block
        # equals (A^{-1} Q^T)^T[:, :n]
        self.H = solve(A, Q.T, assume_a='sym').T[:, :n].copy()

    def initialized(self) -> bool:
        """Whether compute() has been called."""
        return self.H is not None

    @property
    def n_basis(self) -> int:
        if self.H is None:
            return 0
        return self.H.shape[1]

    @property
    def n_targets(self) -> int:
        if self.H is None:
            return 0
        return self.H.shape[0]

    def interpolate(self, values: np.ndarray) -> np.ndarray:
        """
        Apply the operator.

        Parameters:
            values: Values at the basis points, shape (n,) or (n, k)

        Returns:
            Values at the evaluation points, shape (m,) or (m, k)
        """
        if self.H is None:
            raise RuntimeError("Interpolation operator not computed. Call compute() first.")

        values = np.asarray(values, dtype=np.float64)
        if values.shape[0] != self.n_basis:
            raise ValueError(
                f"Expected {self.n_basis} rows of values, got {values.shape[0]}"
            )
        return self.H @ values
