"""
Discretization module: storage of the session point sets.
"""

from .point_store import PointStore
