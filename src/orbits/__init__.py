"""
Orbits: parametric orbit curves and bounded position trails.
"""

from .kinematics import OrbitType, OrbitParams, orbit_position, sample_orbit_path, CURVES
from .trail import TrailBuffer

__all__ = [
    'OrbitType', 'OrbitParams', 'orbit_position', 'sample_orbit_path', 'CURVES',
    'TrailBuffer',
]
