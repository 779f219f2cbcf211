"""
Interpolation engine: dense RBF interpolants and interpolation operators.
"""

from .rbf_interpolation import (
    RBFInterpolant,
    RBFInterpolation,
    as_points,
    affine_frame,
    kernel_matrix,
    system_matrix,
    evaluation_matrix,
)
