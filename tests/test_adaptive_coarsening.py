"""
Tests for adaptive coarsening: greedy selection, reselection and
interpolation onto target points.
"""

import pytest
import numpy as np
from numpy.testing import assert_array_equal, assert_array_almost_equal

from rbfCoarsening.functions.rbf_function import CubicFunction, TPSFunction
from rbfCoarsening.coarsening.adaptive import AdaptiveCoarsening, SelectionResult
from rbfCoarsening.interpolation.rbf_interpolation import RBFInterpolation


def make_coarsening(tol=1e-3, reselection_tol=1e-2, min_points=2, max_points=20):
    return AdaptiveCoarsening(tol=tol, reselection_tol=reselection_tol,
                              min_points=min_points, max_points=max_points)


class TestConstruction:
    """Tests for parameter validation and the initial state."""

    def test_initial_state(self):
        """Test that a fresh coarsener has no basis."""
        coarsening = make_coarsening()
        assert not coarsening.initialized()
        assert coarsening.n_selected == 0
        assert coarsening.last_selection is None
        assert not coarsening.degraded
        assert coarsening.positions is None

    @pytest.mark.parametrize("kwargs", [
        dict(tol=0.0),
        dict(tol=1e-2, reselection_tol=1e-3),
        dict(min_points=0),
        dict(min_points=5, max_points=4),
    ])
    def test_invalid_parameters(self, kwargs):
        """Test that inconsistent parameters are rejected."""
        with pytest.raises(ValueError):
            make_coarsening(**kwargs)


class TestSession:
    """Tests for compute() and the session state machine."""

    def test_compute_does_not_select(self, line_points):
        """Test that loading points leaves the session unselected."""
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), *line_points)
        assert not coarsening.initialized()
        assert coarsening.positions.shape == (100, 2)
        assert coarsening.positions_interpolation.shape == (50, 2)

    def test_compute_discards_previous_basis(self, line_points):
        """Test that a new session starts from scratch."""
        positions, targets = line_points
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), positions, targets)
        coarsening.interpolate(np.sin(2 * np.pi * positions[:, 0]))
        assert coarsening.initialized()

        coarsening.compute(CubicFunction(), positions, targets)
        assert not coarsening.initialized()
        assert coarsening.n_selected == 0
        assert coarsening.last_selection is None

    def test_empty_positions_is_noop(self):
        """Test that empty positions leave the session uninitialized."""
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), np.zeros((0, 2)), np.zeros((5, 2)))
        assert not coarsening.initialized()

        with pytest.raises(ValueError):
            coarsening.interpolate(np.zeros(0))

    def test_interpolate_before_compute(self):
        """Test that values without a session are rejected."""
        with pytest.raises(RuntimeError):
            make_coarsening().interpolate(np.ones(3))

    def test_row_count_mismatch(self, line_points):
        """Test the precondition on the number of values."""
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), *line_points)
        with pytest.raises(ValueError):
            coarsening.interpolate(np.ones(99))
        with pytest.raises(ValueError):
            coarsening.greedy_selection(np.ones(101))

    def test_dimension_mismatch(self):
        """Test that point sets of different dimension are rejected."""
        with pytest.raises(ValueError):
            make_coarsening().compute(CubicFunction(), np.zeros((4, 2)), np.zeros((4, 3)))

    def test_compute_error_without_basis(self, line_points):
        """Test that the error oracle needs a basis."""
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), *line_points)
        with pytest.raises(RuntimeError):
            coarsening.compute_error(np.ones(100))


class TestGreedySelection:
    """Tests for the greedy basis selection."""

    def test_seed_is_domain_extremes(self, line_points):
        """Test that the seed on a line is its two end points."""
        positions, targets = line_points
        coarsening = make_coarsening(min_points=2)
        coarsening.compute(CubicFunction(), positions, targets)
        result = coarsening.greedy_selection(positions[:, 0])

        # a linear field is reproduced by the seed alone
        assert result.converged
        assert result.n_iterations == 1
        assert_array_equal(np.sort(result.selected), [0, 99])

    def test_smooth_field_converges(self, line_points):
        """Test sin(2 pi x) on 100 points is captured by fewer than 20."""
        positions, targets = line_points
        coarsening = make_coarsening(tol=1e-3, min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)

        result = coarsening.greedy_selection(np.sin(2 * np.pi * positions[:, 0]))

        assert isinstance(result, SelectionResult)
        assert result.converged
        assert result.error <= 1e-3
        assert 2 <= result.n_selected <= 20
        assert not coarsening.degraded

    def test_noise_hits_max_points(self, line_points):
        """Test that unresolvable data stops at max_points, flagged degraded."""
        positions, targets = line_points
        values = np.random.default_rng(0).uniform(-1.0, 1.0, size=100)

        coarsening = make_coarsening(tol=1e-3, min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)
        result = coarsening.greedy_selection(values)

        assert not result.converged
        assert result.error > 1e-3
        assert result.n_selected == 20
        assert coarsening.degraded

    def test_iteration_bound(self, line_points):
        """Test termination within max_points - min_points + 1 iterations."""
        positions, targets = line_points
        values = np.random.default_rng(1).normal(size=100)

        coarsening = make_coarsening(min_points=3, max_points=12)
        coarsening.compute(CubicFunction(), positions, targets)
        result = coarsening.greedy_selection(values)

        assert result.n_iterations <= 12 - 3 + 1
        assert len(result.error_history) == result.n_iterations

    def test_bounds_respected(self, line_points):
        """Test that the basis size stays in [min_points, max_points]."""
        positions, targets = line_points
        x = positions[:, 0]
        for values in [x, np.sin(2 * np.pi * x), np.sign(x - 0.5)]:
            coarsening = make_coarsening(min_points=4, max_points=15)
            coarsening.compute(CubicFunction(), positions, targets)
            result = coarsening.greedy_selection(values)
            assert 4 <= result.n_selected <= 15

    def test_selection_unique_and_in_range(self, line_points):
        """Test that basis indices are distinct indices of positions."""
        positions, targets = line_points
        coarsening = make_coarsening(max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)
        result = coarsening.greedy_selection(np.random.default_rng(2).normal(size=100))

        assert len(np.unique(result.selected)) == result.n_selected
        assert result.selected.min() >= 0
        assert result.selected.max() < 100

    def test_error_decreases(self, line_points):
        """Test that growing the basis reduces the error of the seed."""
        positions, targets = line_points
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), positions, targets)
        result = coarsening.greedy_selection(np.sin(2 * np.pi * positions[:, 0]))

        history = result.error_history
        assert history[-1] == result.error
        assert history[-1] < history[0]
        assert min(history) == history[-1]

    def test_deterministic(self, line_points):
        """Test that identical values give identical selections."""
        positions, targets = line_points
        values = np.cos(3 * positions[:, 0]) + positions[:, 0] ** 3

        selections = []
        for _ in range(2):
            coarsening = make_coarsening(tol=1e-4, max_points=30)
            coarsening.compute(CubicFunction(), positions, targets)
            selections.append(coarsening.greedy_selection(values).selected)

        assert_array_equal(selections[0], selections[1])

    def test_exactly_min_points(self):
        """Test that n == min_points returns the full set immediately."""
        positions = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        coarsening = make_coarsening(tol=1e-14, reselection_tol=1e-14,
                                     min_points=3, max_points=10)
        coarsening.compute(TPSFunction(), positions, positions)
        result = coarsening.greedy_selection(np.array([1.0, -2.0, 5.0]))

        assert result.converged
        assert result.n_iterations == 1
        assert_array_equal(np.sort(result.selected), [0, 1, 2])

    def test_fewer_points_than_min_points(self):
        """Test that the bounds are clamped to the number of positions."""
        positions = np.array([[0.0, 0.0], [1.0, 0.0]])
        coarsening = make_coarsening(min_points=5, max_points=10)
        coarsening.compute(CubicFunction(), positions, positions)
        result = coarsening.greedy_selection(np.array([1.0, 2.0]))

        assert result.converged
        assert result.n_selected == 2

    def test_continues_from_existing_basis(self, line_points):
        """Test that a second call only grows the basis."""
        positions, targets = line_points
        x = positions[:, 0]
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1.0, max_points=40)
        coarsening.compute(CubicFunction(), positions, targets)
        first = coarsening.greedy_selection(np.sin(2 * np.pi * x)).selected

        second = coarsening.greedy_selection(np.sin(4 * np.pi * x)).selected
        assert_array_equal(second[:len(first)], first)


class TestInterpolate:
    """Tests for interpolate(): selection, reuse and reselection."""

    def test_smooth_field_on_targets(self, line_points):
        """Test reconstruction of sin(2 pi x) at the 50 target points."""
        positions, targets = line_points
        coarsening = make_coarsening(tol=1e-3, min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)

        out = coarsening.interpolate(np.sin(2 * np.pi * positions[:, 0]))
        exact = np.sin(2 * np.pi * targets[:, 0])

        assert out.shape == (50,)
        assert coarsening.initialized()
        assert coarsening.n_selected < 20
        assert np.max(np.abs(out - exact)) < 2e-3

    def test_idempotent(self, line_points):
        """Test that repeating the same values reuses the basis."""
        positions, targets = line_points
        values = np.sin(2 * np.pi * positions[:, 0])
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), positions, targets)

        first = coarsening.interpolate(values)
        selection = coarsening.selected_points
        last = coarsening.last_selection

        second = coarsening.interpolate(values)

        assert_array_equal(first, second)
        assert_array_equal(coarsening.selected_points, selection)
        assert coarsening.last_selection is last
        assert coarsening.reselection_count == 0

    def test_small_change_keeps_basis(self, line_points):
        """Test that values still predicted within reselection_tol reuse the basis."""
        positions, targets = line_points
        x = positions[:, 0]
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1e-2)
        coarsening.compute(CubicFunction(), positions, targets)

        coarsening.interpolate(np.sin(2 * np.pi * x))
        selection = coarsening.selected_points
        coarsening.interpolate(1.1 * np.sin(2 * np.pi * x) + 0.3 * x)

        assert_array_equal(coarsening.selected_points, selection)
        assert coarsening.reselection_count == 0

    def test_reselection(self, line_points):
        """Test that a badly predicted field triggers a full reselection."""
        positions, targets = line_points
        x = positions[:, 0]
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1e-2,
                                     min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)

        coarsening.interpolate(2.0 * x + 1.0)
        basis_a = coarsening.selected_points
        assert len(basis_a) == 2

        values_b = np.sin(2 * np.pi * x)
        _, error = coarsening.compute_error(values_b)
        assert error > 1e-2

        out = coarsening.interpolate(values_b)
        basis_b = coarsening.selected_points

        assert coarsening.reselection_count == 1
        assert len(basis_b) > len(basis_a)
        assert coarsening.last_selection.converged
        _, error = coarsening.compute_error(values_b)
        assert error <= 1e-3
        assert_array_almost_equal(out, np.sin(2 * np.pi * targets[:, 0]), decimal=2)

    def test_degraded_selection_is_kept(self, line_points):
        """Test that repeating values after a degraded selection reuses the basis."""
        positions, targets = line_points
        values = np.random.default_rng(0).uniform(-1.0, 1.0, size=100)
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1e-2,
                                     min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)

        first = coarsening.interpolate(values)
        assert coarsening.degraded
        assert coarsening.last_selection.error > coarsening.reselection_tol
        selection = coarsening.selected_points
        last = coarsening.last_selection

        second = coarsening.interpolate(values)

        assert_array_equal(first, second)
        assert_array_equal(coarsening.selected_points, selection)
        assert coarsening.last_selection is last
        assert coarsening.reselection_count == 0

    def test_degraded_basis_reselects_on_worse_field(self, line_points):
        """Test that a degraded basis is still replaced when the error grows."""
        positions, targets = line_points
        x = positions[:, 0]
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1e-2,
                                     min_points=2, max_points=20)
        coarsening.compute(CubicFunction(), positions, targets)

        coarsening.interpolate(np.sin(2 * np.pi * x) + 0.05 * np.sin(40 * np.pi * x))
        assert coarsening.degraded
        degraded_error = coarsening.last_selection.error

        values = np.sin(40 * np.pi * x)
        _, error = coarsening.compute_error(values)
        assert error > degraded_error

        coarsening.interpolate(values)
        assert coarsening.reselection_count == 1

    def test_vector_values(self, square_points):
        """Test that vector values give vector output."""
        positions, targets = square_points

        def displacement(p):
            # rigid translation plus small rotation: linear in x
            theta = 0.05
            return np.column_stack([
                0.1 - theta * p[:, 1],
                -0.2 + theta * p[:, 0],
            ])

        coarsening = make_coarsening(tol=1e-6, reselection_tol=1e-4,
                                     min_points=3, max_points=50)
        coarsening.compute(TPSFunction(), positions, targets)
        out = coarsening.interpolate(displacement(positions))

        assert out.shape == (100, 2)
        assert coarsening.n_selected == 3
        assert_array_almost_equal(out, displacement(targets), decimal=8)

    def test_smooth_field_2d(self, square_points):
        """Test coarsening of a smooth scalar field on a 2D grid."""
        positions, targets = square_points

        def field(p):
            return np.sin(np.pi * p[:, 0]) * np.cos(np.pi * p[:, 1])

        coarsening = make_coarsening(tol=1e-2, reselection_tol=1e-1,
                                     min_points=3, max_points=225)
        coarsening.compute(TPSFunction(), positions, targets)
        out = coarsening.interpolate(field(positions))

        assert coarsening.last_selection.converged
        assert coarsening.n_selected < len(positions)
        assert np.max(np.abs(out - field(targets))) < 5e-2


class FailingInterpolation(RBFInterpolation):
    """Interpolation operator whose solve fails above a basis size."""

    max_basis = 3

    def compute(self, function, positions, positions_interpolation):
        if len(positions) > self.max_basis:
            raise np.linalg.LinAlgError("Singular matrix")
        super().compute(function, positions, positions_interpolation)


class TestSmallBases:
    """Tests for bases with fewer points than polynomial terms."""

    def square_field(self, p):
        return np.column_stack([
            0.1 * np.sin(np.pi * p[:, 0]) * p[:, 1],
            0.05 * np.cos(np.pi * p[:, 1]),
        ])

    @pytest.mark.parametrize("min_points", [1, 2])
    def test_small_seed_in_2d(self, square_points, min_points):
        """Test selection from one or two seed points in the plane."""
        positions, targets = square_points
        coarsening = make_coarsening(tol=1e-2, reselection_tol=1e-1,
                                     min_points=min_points, max_points=120)
        coarsening.compute(TPSFunction(), positions, targets)

        out = coarsening.interpolate(self.square_field(positions))

        assert out.shape == (100, 2)
        assert np.all(np.isfinite(out))
        assert coarsening.n_selected < len(positions)
        assert coarsening.last_selection.converged

    def test_tilted_plane_in_3d(self):
        """Test a linear field on points spanning a tilted plane in 3D."""
        uv = np.random.default_rng(4).uniform(size=(60, 2))
        positions = np.column_stack([uv[:, 0], uv[:, 1],
                                     0.3 * uv[:, 0] - 0.8 * uv[:, 1] + 2.0])
        targets = positions[::3] * 0.5 + positions[1::3] * 0.5

        def field(p):
            return 1.0 + p[:, 0] - 2.0 * p[:, 1] + 0.5 * p[:, 2]

        coarsening = make_coarsening(tol=1e-8, reselection_tol=1e-6,
                                     min_points=1, max_points=60)
        coarsening.compute(TPSFunction(), positions, targets)
        out = coarsening.interpolate(field(positions))

        assert coarsening.n_selected == 3
        assert coarsening.last_selection.converged
        assert_array_almost_equal(out, field(targets), decimal=8)


class TestFailedSolve:
    """Tests for the session state after a failing interpolation solve."""

    def test_failed_selection_leaves_no_basis(self, line_points, monkeypatch):
        """Test that a failed first selection starts over on the next call."""
        positions, targets = line_points
        values = np.sin(2 * np.pi * positions[:, 0])

        monkeypatch.setattr("rbfCoarsening.coarsening.adaptive.RBFInterpolation",
                            FailingInterpolation)
        coarsening = make_coarsening()
        coarsening.compute(CubicFunction(), positions, targets)
        with pytest.raises(np.linalg.LinAlgError):
            coarsening.interpolate(values)

        assert not coarsening.initialized()
        assert coarsening.n_selected == 0
        assert coarsening.last_selection is None

        monkeypatch.undo()
        out = coarsening.interpolate(values)

        reference = make_coarsening()
        reference.compute(CubicFunction(), positions, targets)
        assert_array_equal(out, reference.interpolate(values))
        assert_array_equal(coarsening.selected_points, reference.selected_points)

    def test_failed_selection_keeps_previous_basis(self, line_points, monkeypatch):
        """Test that a failed greedy_selection() leaves the accepted basis intact."""
        positions, targets = line_points
        x = positions[:, 0]
        coarsening = make_coarsening(tol=1e-3, reselection_tol=1e-2, max_points=40)
        coarsening.compute(CubicFunction(), positions, targets)
        first = coarsening.interpolate(np.sin(2 * np.pi * x))
        selection = coarsening.selected_points

        monkeypatch.setattr(FailingInterpolation, "max_basis", 0)
        monkeypatch.setattr("rbfCoarsening.coarsening.adaptive.RBFInterpolation",
                            FailingInterpolation)
        with pytest.raises(np.linalg.LinAlgError):
            coarsening.greedy_selection(np.sin(4 * np.pi * x))

        assert coarsening.initialized()
        assert_array_equal(coarsening.selected_points, selection)
        assert_array_equal(coarsening.interpolate(np.sin(2 * np.pi * x)), first)
