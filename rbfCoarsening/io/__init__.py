"""
Configuration loading.
"""

from .config import (
    Config,
    InterpolationConfig,
    CoarseningConfig,
    load_config,
    setup_coarsening_from_config,
)
