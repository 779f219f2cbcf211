"""
Adaptive coarsening of RBF interpolation.

The basis is a subset of the source points chosen greedily from the
field values:

    seed the basis with min_points well separated points
    loop:
        build the coarse operator basis -> positions
        find the worst reproduced source point
        stop if error <= tol (and |basis| >= min_points)
        stop if |basis| == max_points (degraded: tol not met)
        add the worst point to the basis

Two interpolation operators are kept per session:
- rbf_coarse: basis -> positions. Cheap error oracle, used during
  selection and to check an existing basis against new values.
- rbf: basis -> positions_interpolation. Only built once a basis
  has been accepted; this is the one callers get results from.

On later calls the existing basis is checked against the new values.
If the error exceeds reselection_tol the basis is thrown away and
selected again from scratch.
"""

import logging
import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from .base import Coarsener
from .error import compute_error
from ..functions.rbf_function import RBFFunction
from ..interpolation.rbf_interpolation import RBFInterpolation

logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    """
    Outcome of one greedy selection.

    Attributes:
        selected: Basis indices into positions, in insertion order
        error: Relative max-norm error of the final basis
        converged: Whether error <= tol was reached
        n_iterations: Number of coarse operator builds
        error_history: Error after every iteration
    """
    selected: np.ndarray
    error: float
    converged: bool
    n_iterations: int
    error_history: List[float] = field(default_factory=list)

    @property
    def n_selected(self) -> int:
        return len(self.selected)


class AdaptiveCoarsening(Coarsener):
    """
    Greedy, error-driven basis selection with reselection.

    Parameters:
        tol: Error at which a basis is accepted
        reselection_tol: Error on new values above which the basis is
                         selected again (must be >= tol)
        min_points: Minimum basis size
        max_points: Maximum basis size
        polynomial: Whether the interpolation operators use the
                    linear polynomial term

    Both size bounds are clamped to the number of source points.
    """

    def __init__(self, tol: float, reselection_tol: float,
                 min_points: int, max_points: int,
                 polynomial: bool = True):
        super().__init__()
        self.tol = float(tol)
        self.reselection_tol = float(reselection_tol)
        self.min_points = int(min_points)
        self.max_points = int(max_points)
        self.polynomial = polynomial
        self._validate()

        self.rbf: Optional[RBFInterpolation] = None
        self.rbf_coarse: Optional[RBFInterpolation] = None
        self.selected_positions: List[int] = []
        self.last_selection: Optional[SelectionResult] = None
        self.reselection_count = 0

    def _validate(self):
        """Validate tolerances and size bounds."""
        if self.tol <= 0.0:
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

    def compute(self, rbf_function: RBFFunction,
                positions: np.ndarray,
                positions_interpolation: np.ndarray):
        """
        Start a new session.

        Stores the point sets and drops the previous basis and both
        operators. Selection is deferred to the first interpolate()
        (or greedy_selection()) call, which brings the values.
        """
        self._store_points(rbf_function, positions, positions_interpolation)
        self._clear_basis()
        self.last_selection = None
        self.reselection_count = 0

    def initialized(self) -> bool:
        return (len(self.selected_positions) > 0
                and self.rbf_coarse is not None
                and self.rbf_coarse.initialized())

    def _clear_basis(self):
        self.selected_positions = []
        self.rbf = None
        self.rbf_coarse = None

    def _bounds(self) -> Tuple[int, int]:
        """Size bounds clamped to the number of source points."""
        n = self.points.n_points
        return min(self.min_points, n), min(self.max_points, n)

    def _seed(self, n_seed: int) -> List[int]:
        """
        Initial basis of n_seed points.

        The first point is the one farthest from the centroid, the rest
        follow by farthest-point sampling. On a line this picks the two
        end points first. Ties go to the lowest index.
        """
        positions = self.points.positions
        centroid = positions.mean(axis=0)
        first = int(np.argmax(np.linalg.norm(positions - centroid, axis=1)))
        selected = [first]

        dist = np.linalg.norm(positions - positions[first], axis=1)
        dist[first] = -np.inf
        while len(selected) < n_seed:
            nxt = int(np.argmax(dist))
            selected.append(nxt)
            dist = np.minimum(dist, np.linalg.norm(positions - positions[nxt], axis=1))
            dist[selected] = -np.inf

        return selected

    def _build_operator(self, selected: List[int],
                        evaluation_points: np.ndarray) -> RBFInterpolation:
        """Operator from the basis points to evaluation_points."""
        rbf = RBFInterpolation(self.polynomial)
        rbf.compute(self.rbf_function, self.points.positions[selected],
                    evaluation_points)
        return rbf

    def compute_error(self, values: np.ndarray) -> Tuple[int, float]:
        """
        Error of the current basis for the given values.

        Parameters:
            values: Values at positions, shape (n,) or (n, k)

        Returns:
            (index, error): worst reproduced point outside the basis
            and the relative max-norm error over all positions
        """
        values_2d, _ = self._check_session(values)
        if self.rbf_coarse is None or not self.rbf_coarse.initialized():
            raise RuntimeError("No coarse basis. Run greedy_selection() first.")

        predicted = self.rbf_coarse.interpolate(values_2d[self.selected_positions])
        return compute_error(predicted, values_2d, exclude=self.selected_positions)

    def greedy_selection(self, values: np.ndarray) -> SelectionResult:
        """
        Grow the basis until error <= tol or max_points is reached.

        Starts from the current basis if there is one, otherwise from a
        seed of min_points points. Points are only ever added.

        Parameters:
            values: Values at positions, shape (n,) or (n, k)

        Returns:
            SelectionResult; converged is False when max_points was
            reached without meeting tol
        """
        values_2d, _ = self._check_session(values)
        n_points = self.points.n_points
        min_points, max_points = self._bounds()

        # the session is only updated once every solve has succeeded
        selected = list(self.selected_positions) or self._seed(min_points)

        history = []
        n_iterations = 0
        while True:
            rbf_coarse = self._build_operator(selected, self.points.positions)
            n_iterations += 1
            predicted = rbf_coarse.interpolate(values_2d[selected])
            index, error = compute_error(predicted, values_2d, exclude=selected)
            history.append(error)
            n_selected = len(selected)

            logger.debug("Greedy iteration %d: %d points, error %.3e",
                         n_iterations, n_selected, error)

            if error <= self.tol and n_selected >= min_points:
                converged = True
                break
            if n_selected >= max_points or index < 0:
                # a basis of all points is exact
                converged = n_selected == n_points
                break

            selected.append(index)

        rbf = self._build_operator(selected, self.points.positions_interpolation)
        self.selected_positions = selected
        self.rbf_coarse = rbf_coarse
        self.rbf = rbf

        result = SelectionResult(
            selected=np.array(selected, dtype=int),
            error=error,
            converged=converged,
            n_iterations=n_iterations,
            error_history=history,
        )
        self.last_selection = result

        if converged:
            logger.info("Selected %d of %d points, error %.3e",
                        result.n_selected, n_points, error)
        else:
            logger.warning(
                "Coarsening did not reach tol=%.3e with max_points=%d: "
                "error %.3e with %d of %d points",
                self.tol, self.max_points, error, result.n_selected, n_points
            )

        return result

    def interpolate(self, values: np.ndarray) -> np.ndarray:
        """
        Interpolate values from positions onto positions_interpolation.

        Selects a basis on the first call. On later calls the current
        basis is checked against the values and selected again from
        scratch if the error exceeds reselection_tol. A degraded basis is
        kept as long as the error stays within what it reached when it
        was selected.

        Parameters:
            values: Values at positions, shape (n,) or (n, k)

        Returns:
            Values at positions_interpolation, shape (m,) or (m, k)
        """
        values_2d, scalar = self._check_session(values)

        if not self.initialized():
            self.greedy_selection(values_2d)
        else:
            _, error = self.compute_error(values_2d)
            # a degraded basis is the best available at max_points
            threshold = self.reselection_tol
            if self.degraded:
                threshold = max(threshold, self.last_selection.error)
            if error > threshold:
                self.reselection_count += 1
                logger.warning(
                    "Basis error %.3e exceeds %.3e, reselecting (%d)",
                    error, threshold, self.reselection_count
                )
                self._clear_basis()
                self.greedy_selection(values_2d)

        result = self.rbf.interpolate(values_2d[self.selected_positions])
        return result[:, 0] if scalar else result

    @property
    def selected_points(self) -> np.ndarray:
        """Copy of the basis indices."""
        return np.array(self.selected_positions, dtype=int)

    @property
    def n_selected(self) -> int:
        return len(self.selected_positions)

    @property
    def degraded(self) -> bool:
        """Whether the last selection stopped at max_points without meeting tol."""
        return self.last_selection is not None and not self.last_selection.converged
