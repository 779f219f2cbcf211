#!/usr/bin/env python3
"""
Example: adaptive coarsening of a smooth field on a line.

This example demonstrates the coarsening pipeline:
1. Load source and target points into an AdaptiveCoarsening session
2. Select a basis greedily for sin(2 pi x)
3. Interpolate onto the target points and check the accuracy
4. Feed a field the basis cannot represent and watch it reselect

Setup:
    100 source points and 50 target points on [0, 1]
    min_points = 2, max_points = 20, tol = 1e-3

Usage:
    ./examples/src/coarsen_sine_1d.py
    ./examples/src/coarsen_sine_1d.py --noise --plot
"""

import logging
import numpy as np
import sys
from pathlib import Path

# Add project root to path (two levels up from examples/src/)
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from rbfCoarsening.functions.rbf_function import make_rbf_function
from rbfCoarsening.coarsening.adaptive import AdaptiveCoarsening


def run(function: str = "cubic",
        tol: float = 1e-3,
        max_points: int = 20,
        noise: bool = False,
        plot: bool = False):
    """
    Run the 1D coarsening example.

    Parameters:
        function: Kernel name
        tol: Acceptance tolerance
        max_points: Maximum basis size
        noise: Use random values instead of a smooth field
        plot: Save selection and convergence plots

    Returns:
        Dictionary with results (coarsener, output, max error)
    """
    x = np.linspace(0.0, 1.0, 100)
    x_interp = np.linspace(0.0, 1.0, 50)
    positions = np.column_stack([x, np.zeros_like(x)])
    positions_interpolation = np.column_stack([x_interp, np.zeros_like(x_interp)])

    coarsening = AdaptiveCoarsening(tol=tol, reselection_tol=10 * tol,
                                    min_points=2, max_points=max_points)
    coarsening.compute(make_rbf_function(function), positions, positions_interpolation)

    if noise:
        values = np.random.default_rng(0).uniform(-1.0, 1.0, size=len(x))
        exact = None
    else:
        values = np.sin(2 * np.pi * x)
        exact = np.sin(2 * np.pi * x_interp)

    out = coarsening.interpolate(values)
    result = coarsening.last_selection

    print("=" * 60)
    print("Adaptive coarsening on [0, 1]")
    print("=" * 60)
    print(f"Kernel: {function}")
    print(f"Selected {result.n_selected} of {len(x)} points "
          f"in {result.n_iterations} iterations")
    print(f"Coarse error: {result.error:.3e} (tol {tol:g})")
    print(f"Converged: {result.converged}")

    max_error = None
    if exact is not None:
        max_error = np.max(np.abs(out - exact))
        print(f"Max error at targets: {max_error:.3e}")

        # A field the current basis misses forces a reselection
        coarsening.interpolate(np.sin(6 * np.pi * x) * np.exp(-x))
        print(f"After a new field: {coarsening.n_selected} points, "
              f"{coarsening.reselection_count} reselection(s)")

    if plot:
        from rbfCoarsening.visualization import plot_selection, plot_error_history
        plot_selection(positions, result.selected, values,
                       save_path="coarsen_sine_1d_selection.png")
        plot_error_history(result, tol=tol, save_path="coarsen_sine_1d_history.png")
        print("Saved plots to coarsen_sine_1d_*.png")

    return {
        'coarsening': coarsening,
        'output': out,
        'max_error': max_error,
    }


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="1D adaptive coarsening example")
    parser.add_argument("--function", "-f", default="cubic",
                        help="RBF kernel (default: cubic)")
    parser.add_argument("--tol", "-t", type=float, default=1e-3,
                        help="Acceptance tolerance (default: 1e-3)")
    parser.add_argument("--max-points", "-n", type=int, default=20,
                        help="Maximum basis size (default: 20)")
    parser.add_argument("--noise", action="store_true",
                        help="Coarsen random values instead of sin(2 pi x)")
    parser.add_argument("--plot", action="store_true",
                        help="Save plots")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log greedy iterations")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    run(function=args.function, tol=args.tol, max_points=args.max_points,
        noise=args.noise, plot=args.plot)
