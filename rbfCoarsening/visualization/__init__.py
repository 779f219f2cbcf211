"""
Visualization module.

Usage:
    from rbfCoarsening.visualization import plot_selection, plot_error_history

    fig = plot_selection(positions, coarsening.selected_points, values)
    fig = plot_error_history(coarsening.last_selection, tol=coarsening.tol)
"""

from .selection import plot_selection, plot_error_history

__all__ = [
    'plot_selection',
    'plot_error_history',
]
