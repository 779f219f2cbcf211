"""
Coarsening module: selection of the RBF interpolation basis.

Provides:
- Coarsener: abstract session interface
- NoCoarsening: full-basis interpolation
- AdaptiveCoarsening: greedy error-driven basis selection with reselection
- Error estimation helpers
"""

from .base import Coarsener, NoCoarsening
from .adaptive import AdaptiveCoarsening, SelectionResult
from .error import compute_error, pointwise_error, rms_error
