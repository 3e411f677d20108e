"""
Common modules shared by terrain, globe, orbit and scene code.

Safety caps (NON-NEGOTIABLE):
- max(image width, height) <= 1024 after sampling
- sphere segments clamped to [8, 256] x [6, 256]
"""

from .config import Config, GlobeMetadata, DEFAULT_CONFIG
from .errors import (
    GlobeError, ImageDecodeError, RenderContextError,
    ExportPrecondition, PresetNotFoundError,
)
from .io import save_globe, load_globe
from .mesh_ops import uv_sphere, recompute_vertex_normals, compute_mesh_stats

__all__ = [
    'Config', 'GlobeMetadata', 'DEFAULT_CONFIG',
    'GlobeError', 'ImageDecodeError', 'RenderContextError',
    'ExportPrecondition', 'PresetNotFoundError',
    'save_globe', 'load_globe',
    'uv_sphere', 'recompute_vertex_normals', 'compute_mesh_stats',
]
