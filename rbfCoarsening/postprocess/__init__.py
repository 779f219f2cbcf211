"""
Post-processing: VTK export of point clouds and coarse selections.
"""

from .vtk import export_vtk_point_cloud, export_selection_vtk
