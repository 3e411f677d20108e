"""
Globe: image terrain displaced onto a unit sphere.

Dark pixels sink below the unit radius, bright pixels rise above it.
"""

from .build import (
    GlobeParams, GlobeGeometry, GlobeCache,
    build_globe, build_default_globe, effective_height_scale, cache_key,
)

__version__ = "1.0.0"

__all__ = [
    'GlobeParams', 'GlobeGeometry', 'GlobeCache',
    'build_globe', 'build_default_globe', 'effective_height_scale', 'cache_key',
]
