"""
Error estimation for coarse interpolants.

The residual at a point is the Euclidean norm of the difference
between predicted and known values (one norm per row, so scalar and
vector fields are treated alike). The scalar error is the worst-point
residual relative to the largest field magnitude:

    error = max_i |r_i| / (max_i |v_i| + sqrt(SMALL))

The max-norm gives a uniform accuracy bound. The sqrt(SMALL) term
keeps the ratio finite for an all-zero field.
"""

import numpy as np
from typing import Optional, Sequence, Tuple

SMALL = 1e-15


def pointwise_error(predicted: np.ndarray, values: np.ndarray) -> np.ndarray:
    """
    Residual norm per point.

    Parameters:
        predicted: Interpolated values, shape (n,) or (n, k)
        values: Known values, same shape

    Returns:
        Array of shape (n,)
    """
    predicted = np.asarray(predicted, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    if predicted.shape != values.shape:
        raise ValueError(
            f"Shape mismatch: predicted {predicted.shape}, values {values.shape}"
        )
    n = values.shape[0]
    return np.linalg.norm((predicted - values).reshape(n, -1), axis=1)


def value_scale(values: np.ndarray) -> float:
    """Largest point norm of the field plus sqrt(SMALL)."""
    values = np.asarray(values, dtype=np.float64)
    n = values.shape[0]
    if n == 0:
        return np.sqrt(SMALL)
    return float(np.linalg.norm(values.reshape(n, -1), axis=1).max()) + np.sqrt(SMALL)


def compute_error(predicted: np.ndarray,
                  values: np.ndarray,
                  exclude: Optional[Sequence[int]] = None) -> Tuple[int, float]:
    """
    Relative worst-point error and the worst point.

    Parameters:
        predicted: Interpolated values, shape (n,) or (n, k)
        values: Known values, same shape
        exclude: Indices that may not be reported as worst point
                 (the current basis)

    Returns:
        (index, error) where index is the worst non-excluded point
        (lowest index on ties, -1 if every point is excluded) and
        error is the relative max-norm error over all points
    """
    residual = pointwise_error(predicted, values)
    if residual.size == 0:
        return -1, 0.0

    error = float(residual.max()) / value_scale(values)

    candidates = residual.copy()
    if exclude is not None and len(exclude) > 0:
        candidates[np.asarray(exclude, dtype=int)] = -np.inf
    index = int(np.argmax(candidates))
    if not np.isfinite(candidates[index]):
        index = -1

    return index, error


def rms_error(predicted: np.ndarray, values: np.ndarray) -> float:
    """Relative RMS of the point residuals (diagnostics only)."""
    residual = pointwise_error(predicted, values)
    if residual.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(residual ** 2))) / value_scale(values)
