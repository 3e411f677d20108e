"""
Photo Globe - image terrain on a sphere, with orbiting bodies.

Packages:
- common: config, errors, mesh I/O and sphere tessellation
- terrain: image sampling, height extraction, palettes, heightmap export
- globe: displaced-sphere mesh builder and cache
- orbits: parametric orbit curves and trails
- scene: bodies, loading, animation, presets, session

Usage:
    python src/run_all.py --image photo.jpg --palette viridis --orbit circle rose
"""

__version__ = "1.0.0"
