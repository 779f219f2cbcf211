#!/usr/bin/env python3
"""
Example: RBF mesh motion of a square with an oscillating wall.

The bottom wall of the unit square moves as

    dy(x, t) = A sin(pi x) sin(2 pi t)

and the motion is propagated to an interior grid, once per time step,
through a coarsener configured from YAML. The basis selected in the
first step is reused until the wall shape changes enough to trigger a
reselection.

Usage:
    ./examples/src/mesh_motion_2d.py
    ./examples/src/mesh_motion_2d.py --config examples/configs/coarsening.yaml --vtk
"""

import logging
import numpy as np
import sys
from pathlib import Path

# Add project root to path (two levels up from examples/src/)
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from rbfCoarsening.io.config import Config, load_config, setup_coarsening_from_config
from rbfCoarsening.motion.mesh_motion import RBFMeshMotion
from rbfCoarsening.coarsening.adaptive import AdaptiveCoarsening
from rbfCoarsening.postprocess.vtk import export_vtk_point_cloud, export_selection_vtk


def make_square(n_boundary: int = 40, n_interior: int = 20):
    """Boundary points of the unit square and a uniform interior grid."""
    s = np.linspace(0.0, 1.0, n_boundary + 1)
    ones = np.ones(n_boundary)
    zeros = np.zeros(n_boundary)
    boundary = np.vstack([
        np.column_stack([s[:-1], zeros]),
        np.column_stack([ones, s[:-1]]),
        np.column_stack([s[1:][::-1], ones]),
        np.column_stack([zeros, s[1:][::-1]]),
    ])

    t = np.linspace(0.0, 1.0, n_interior + 2)[1:-1]
    X, Y = np.meshgrid(t, t, indexing='ij')
    interior = np.column_stack([X.ravel(), Y.ravel()])
    return boundary, interior


def run(config: Config,
        n_steps: int = 8,
        amplitude: float = 0.1,
        export_vtk: bool = False):
    """
    Run the mesh motion example.

    Parameters:
        config: Interpolation and coarsening configuration
        n_steps: Number of time steps over one period
        amplitude: Wall amplitude
        export_vtk: Write the moved interior points per step

    Returns:
        List of moved interior point arrays
    """
    boundary, interior = make_square()
    rbf_function, coarsener = setup_coarsening_from_config(config)
    motion = RBFMeshMotion(coarsener, rbf_function, boundary, interior)

    on_bottom = np.isclose(boundary[:, 1], 0.0)

    print("=" * 60)
    print("RBF mesh motion")
    print("=" * 60)
    print(f"Kernel: {rbf_function}")
    print(f"Coarsener: {type(coarsener).__name__}")
    print(f"Boundary points: {len(boundary)}, interior points: {len(interior)}")
    print()

    history = []
    for step in range(1, n_steps + 1):
        t = step / n_steps
        displacement = np.zeros_like(boundary)
        displacement[on_bottom, 1] = (amplitude * np.sin(np.pi * boundary[on_bottom, 0])
                                      * np.sin(2 * np.pi * t))
        motion.set_motion(displacement)
        moved = motion.update()
        history.append(moved)

        line = f"step {step:>3}  t = {t:.3f}  max |d| = {np.abs(motion.interior_displacement).max():.4f}"
        if isinstance(coarsener, AdaptiveCoarsening):
            line += (f"  basis = {coarsener.n_selected:>3}"
                     f"  reselections = {coarsener.reselection_count}")
        print(line)

        if export_vtk:
            export_vtk_point_cloud(f"mesh_motion_{step:03d}.vtk", moved,
                                   {"displacement": motion.interior_displacement})

    if export_vtk and isinstance(coarsener, AdaptiveCoarsening):
        export_selection_vtk("mesh_motion_selection.vtk", coarsener, displacement)

    return history


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="RBF mesh motion example")
    parser.add_argument("--config", "-c", default=None,
                        help="YAML configuration (default: adaptive TPS coarsening)")
    parser.add_argument("--steps", "-n", type=int, default=8,
                        help="Number of time steps (default: 8)")
    parser.add_argument("--vtk", action="store_true",
                        help="Export VTK files")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.config:
        config = load_config(args.config)
    else:
        config = Config.from_dict({
            "interpolation": {"function": "tps"},
            "coarsening": {"enabled": True, "tol": 1e-3, "reselection_tol": 1e-2,
                           "min_points": 3, "max_points": 100},
        })

    run(config, n_steps=args.steps, export_vtk=args.vtk)
