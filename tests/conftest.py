"""
Pytest configuration and shared fixtures for RBF coarsening tests.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add the parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def tolerance():
    """Default tolerance for floating point comparisons."""
    return 1e-12


@pytest.fixture
def loose_tolerance():
    """Looser tolerance for solves with moderately conditioned matrices."""
    return 1e-8


@pytest.fixture
def line_points():
    """100 source points and 50 target points on the segment [0, 1] x {0}."""
    x = np.linspace(0.0, 1.0, 100)
    x_interp = np.linspace(0.0, 1.0, 50)
    positions = np.column_stack([x, np.zeros_like(x)])
    positions_interpolation = np.column_stack([x_interp, np.zeros_like(x_interp)])
    return positions, positions_interpolation


@pytest.fixture
def square_points():
    """15x15 source grid on [0, 1]^2 and a 10x10 target grid inside it."""
    s = np.linspace(0.0, 1.0, 15)
    X, Y = np.meshgrid(s, s, indexing='ij')
    positions = np.column_stack([X.ravel(), Y.ravel()])

    t = np.linspace(0.05, 0.95, 10)
    X, Y = np.meshgrid(t, t, indexing='ij')
    positions_interpolation = np.column_stack([X.ravel(), Y.ravel()])
    return positions, positions_interpolation
