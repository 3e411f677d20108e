"""
Terrain: image sampling, height extraction, palettes and heightmap export.

Image → SampledImage (≤1024 px) → HeightField ([0, 1]) → colors / heightmaps
"""

from .sampler import SampledImage, sample_image, target_dimensions
from .heightfield import HeightField, HeightMode, ProbeResult, extract_heights, probe
from .palettes import (
    Palette, GRADIENT_STOPS, palette_colors, palette_color,
    geographic_colors, contour_shade, apply_contours,
)
from .export import (
    export_heightmap, export_heightmap_png, export_heightmap_tiff,
    read_heightmap_png, heightmap_bytes,
)

__all__ = [
    'SampledImage', 'sample_image', 'target_dimensions',
    'HeightField', 'HeightMode', 'ProbeResult', 'extract_heights', 'probe',
    'Palette', 'GRADIENT_STOPS', 'palette_colors', 'palette_color',
    'geographic_colors', 'contour_shade', 'apply_contours',
    'export_heightmap', 'export_heightmap_png', 'export_heightmap_tiff',
    'read_heightmap_png', 'heightmap_bytes',
]
