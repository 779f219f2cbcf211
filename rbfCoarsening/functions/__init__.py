"""
Radial basis function kernels.
"""

from .rbf_function import (
    RBFFunction,
    TPSFunction,
    LinearFunction,
    CubicFunction,
    WendlandC0Function,
    WendlandC2Function,
    WendlandC4Function,
    WendlandC6Function,
    GaussianFunction,
    RBF_FUNCTIONS,
    make_rbf_function,
)
