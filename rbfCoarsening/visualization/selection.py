"""
Plots of coarse selections and greedy convergence.

matplotlib is imported inside the plotting functions, so the rest of
the package works without it.

Example:
    from rbfCoarsening.visualization import plot_selection, plot_error_history

    coarsening.interpolate(values)
    plot_selection(coarsening.positions, coarsening.selected_points,
                   values, save_path="selection.png")
    plot_error_history(coarsening.last_selection, tol=coarsening.tol,
                       save_path="history.png")
"""

from typing import TYPE_CHECKING, Optional
import numpy as np

if TYPE_CHECKING:
    from ..coarsening.adaptive import SelectionResult

__all__ = [
    'plot_selection',
    'plot_error_history',
]


def plot_selection(
    positions: np.ndarray,
    selected: np.ndarray,
    values: Optional[np.ndarray] = None,
    save_path: Optional[str] = None,
    show: bool = False
):
    """
    Plot source points with the basis points highlighted.

    For 1D data (or points on the x-axis) with scalar values the field is
    plotted against x. Otherwise points are scattered in the x-y plane,
    coloured by the value magnitude when values are given.

    Parameters:
        positions: Source points, shape (n, D)
        selected: Basis indices
        values: Optional values at positions, shape (n,) or (n, k)
        save_path: If provided, save figure to this path
        show: Whether to call plt.show()

    Returns:
        matplotlib Figure object
    """
    import matplotlib.pyplot as plt

    positions = np.asarray(positions, dtype=np.float64)
    if positions.ndim == 1:
        positions = positions.reshape(-1, 1)
    selected = np.asarray(selected, dtype=int)

    fig, ax = plt.subplots(figsize=(8, 5))

    on_line = positions.shape[1] == 1 or np.allclose(positions[:, 1:], positions[0, 1:])
    scalar = values is not None and np.asarray(values).ndim == 1

    if on_line and scalar:
        values = np.asarray(values, dtype=np.float64)
        order = np.argsort(positions[:, 0])
        ax.plot(positions[order, 0], values[order], '-', color='0.6', label='field')
        ax.plot(positions[selected, 0], values[selected], 'o', color='C3',
                label=f'basis ({len(selected)})')
        ax.set_xlabel('x')
        ax.set_ylabel('value')
    else:
        y = positions[:, 1] if positions.shape[1] > 1 else np.zeros(len(positions))
        color = None
        if values is not None:
            values = np.asarray(values, dtype=np.float64)
            color = np.linalg.norm(values.reshape(len(positions), -1), axis=1)
        sc = ax.scatter(positions[:, 0], y, c=color, s=8, cmap='viridis', label='points')
        if color is not None:
            plt.colorbar(sc, ax=ax, shrink=0.8)
        ax.scatter(positions[selected, 0], y[selected], s=40, facecolors='none',
                   edgecolors='C3', label=f'basis ({len(selected)})')
        ax.set_xlabel('x')
        ax.set_ylabel('y')
        ax.set_aspect('equal')

    ax.legend()
    ax.set_title(f'Coarse selection: {len(selected)} of {len(positions)} points')
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    if show:
        plt.show()

    return fig


def plot_error_history(
    result: 'SelectionResult',
    tol: Optional[float] = None,
    save_path: Optional[str] = None,
    show: bool = False
):
    """
    Plot the greedy error against the basis size.

    Parameters:
        result: SelectionResult of a greedy selection
        tol: Optional acceptance tolerance, drawn as a horizontal line
        save_path: If provided, save figure to this path
        show: Whether to call plt.show()

    Returns:
        matplotlib Figure object
    """
    import matplotlib.pyplot as plt

    history = np.asarray(result.error_history, dtype=np.float64)
    # the last entry belongs to the final basis
    sizes = result.n_selected - len(history) + 1 + np.arange(len(history))

    fig, ax = plt.subplots(figsize=(7, 4))
    ax.semilogy(sizes, np.maximum(history, np.finfo(float).tiny), 'o-')
    if tol is not None:
        ax.axhline(tol, color='C3', linestyle='--', label=f'tol = {tol:g}')
        ax.legend()

    ax.set_xlabel('basis size')
    ax.set_ylabel('relative max error')
    status = 'converged' if result.converged else 'not converged'
    ax.set_title(f'Greedy selection ({status})')
    ax.grid(True, which='both', alpha=0.3)
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    if show:
        plt.show()

    return fig
