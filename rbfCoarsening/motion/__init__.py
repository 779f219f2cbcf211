"""
Mesh motion driven by RBF interpolation of boundary displacements.
"""

from .mesh_motion import RBFMeshMotion
