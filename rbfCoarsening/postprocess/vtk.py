"""
VTK export for point clouds and coarse selections.

Point clouds are written as VTK Legacy ASCII POLYDATA with one vertex
cell per point, so they show up directly in ParaView or VisIt.

Point data:
- 1D arrays of length n are written as SCALARS
- (n, 2) or (n, 3) arrays are written as VECTORS (2D padded with z = 0)

TODO: Add VTK XML PolyData (.vtp) output
"""

import logging
import numpy as np
from typing import Optional, Dict
from pathlib import Path

from ..coarsening.adaptive import AdaptiveCoarsening
from ..coarsening.error import pointwise_error
from ..interpolation.rbf_interpolation import as_points

logger = logging.getLogger(__name__)


def _pad_to_3d(array: np.ndarray) -> np.ndarray:
    """Pad (n, 1) or (n, 2) coordinates/vectors with zeros to (n, 3)."""
    n, d = array.shape
    if d > 3:
        raise ValueError(f"Cannot export {d}-dimensional data to VTK")
    out = np.zeros((n, 3))
    out[:, :d] = array
    return out


def export_vtk_point_cloud(filename: str,
                           points: np.ndarray,
                           point_data: Optional[Dict[str, np.ndarray]] = None,
                           title: str = "RBF point cloud") -> Path:
    """
    Export a point cloud to VTK Legacy POLYDATA.

    Parameters:
        filename: Output filename (will add .vtk extension if missing)
        points: Coordinates, shape (n, D) with D <= 3
        point_data: Optional dict of named fields, each of shape (n,),
                    (n, 2) or (n, 3)
        title: Header line of the file

    Returns:
        Path of the written file
    """
    path = Path(filename)
    if path.suffix != '.vtk':
        path = path.with_suffix('.vtk')

    points_3d = _pad_to_3d(as_points(points))
    n_points = points_3d.shape[0]

    fields = {}
    for name, values in (point_data or {}).items():
        values = np.asarray(values, dtype=np.float64)
        if values.shape[0] != n_points:
            raise ValueError(
                f"Field '{name}' has {values.shape[0]} entries, expected {n_points}"
            )
        if values.ndim == 2 and values.shape[1] == 1:
            values = values[:, 0]
        if values.ndim == 2:
            values = _pad_to_3d(values)
        elif values.ndim != 1:
            raise ValueError(f"Field '{name}' must be 1D or 2D, got shape {values.shape}")
        fields[name] = values

    with open(path, 'w') as f:
        # Header
        f.write("# vtk DataFile Version 3.0\n")
        f.write(f"{title}\n")
        f.write("ASCII\n")
        f.write("DATASET POLYDATA\n")

        # Points
        f.write(f"POINTS {n_points} double\n")
        for pt in points_3d:
            f.write(f"{pt[0]} {pt[1]} {pt[2]}\n")

        # One vertex cell per point
        f.write(f"\nVERTICES {n_points} {2 * n_points}\n")
        for i in range(n_points):
            f.write(f"1 {i}\n")

        if fields:
            f.write(f"\nPOINT_DATA {n_points}\n")

        for name, values in fields.items():
            if values.ndim == 1:
                f.write(f"SCALARS {name} double 1\n")
                f.write("LOOKUP_TABLE default\n")
                for v in values:
                    f.write(f"{v}\n")
            else:
                f.write(f"VECTORS {name} double\n")
                for v in values:
                    f.write(f"{v[0]} {v[1]} {v[2]}\n")
            f.write("\n")

    logger.info("Exported VTK file: %s", path)
    return path


def export_selection_vtk(filename: str,
                         coarsener: AdaptiveCoarsening,
                         values: Optional[np.ndarray] = None) -> Path:
    """
    Export the source points of a coarsening session with their selection.

    Writes a 'selected' flag (1 for basis points, 0 otherwise) and, when
    values are given, the values themselves and the pointwise error of
    the coarse interpolant.

    Parameters:
        filename: Output filename
        coarsener: Coarsener with a selected basis
        values: Optional values at the source points, shape (n,) or (n, k)

    Returns:
        Path of the written file
    """
    if not coarsener.initialized():
        raise RuntimeError("Coarsener has no basis. Run interpolate() first.")

    positions = coarsener.positions
    selected = np.zeros(positions.shape[0])
    selected[coarsener.selected_points] = 1.0
    point_data = {"selected": selected}

    if values is not None:
        values = np.asarray(values, dtype=np.float64)
        coarse = coarsener.rbf_coarse.interpolate(values[coarsener.selected_points])
        point_data["values"] = values
        point_data["error"] = pointwise_error(coarse, values)

    return export_vtk_point_cloud(filename, positions, point_data,
                                  title="RBF coarse selection")
