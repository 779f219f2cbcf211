"""
RBF Coarsening - adaptive basis reduction for RBF interpolation

Maps field values (e.g. boundary displacements in a fluid-structure
coupling loop) from a large cloud of source points onto a set of target
points with radial basis function interpolation, using only a small,
greedily selected subset of the source points as interpolation basis.

Key modules:
- functions: Radial basis function kernels (TPS, Wendland, ...)
- interpolation: Dense RBF interpolants and interpolation operators
- discretization: Session point storage
- coarsening: Greedy basis selection with reselection
- motion: Mesh motion driven by a coarsener
- postprocess: VTK export
- io: YAML configuration

Quick start:
    import numpy as np
    from rbfCoarsening.functions import CubicFunction
    from rbfCoarsening.coarsening import AdaptiveCoarsening

    x = np.linspace(0, 1, 100)
    positions = np.column_stack([x, np.zeros_like(x)])
    targets = np.column_stack([np.linspace(0, 1, 50), np.zeros(50)])

    coarsening = AdaptiveCoarsening(tol=1e-3, reselection_tol=1e-2,
                                    min_points=2, max_points=20)
    coarsening.compute(CubicFunction(), positions, targets)
    values_at_targets = coarsening.interpolate(np.sin(2 * np.pi * x))

    print(coarsening.n_selected, coarsening.degraded)

On a line the cubic kernel with its linear term is a natural cubic
spline and meets tol=1e-3 with about 15 points. TPS converges more
slowly there and stops degraded at max_points=20.
"""

__version__ = "0.1.0"

# Core imports for convenience
from .functions.rbf_function import RBFFunction, TPSFunction, make_rbf_function
from .interpolation.rbf_interpolation import RBFInterpolant, RBFInterpolation
from .coarsening.base import Coarsener, NoCoarsening
from .coarsening.adaptive import AdaptiveCoarsening, SelectionResult
from .motion.mesh_motion import RBFMeshMotion
from .io.config import load_config, setup_coarsening_from_config
