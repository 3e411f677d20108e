"""
Globe: displaced-sphere terrain mesh.

Algorithm:
1. Pick tessellation from the image size, clamped to [8, 256] x [6, 256]
2. Build a unit UV sphere
3. Sample the height field at each vertex's nearest pixel
4. Displace: radius = 1 + (h - 0.5) * 2 * height_scale
5. Color each vertex from the palette, then apply contour banding
6. Recompute smooth normals from the displaced positions

h = 0.5 always lands on the unit sphere, whatever the height scale.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Tuple, Union

import numpy as np
import trimesh
from PIL import Image

from common.config import Config, DEFAULT_CONFIG
from common.mesh_ops import uv_sphere, recompute_vertex_normals
from terrain.heightfield import HeightField
from terrain.palettes import Palette, palette_colors, apply_contours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobeParams:
    """Inputs besides the height field that affect the mesh."""
    height_scale: float = 3.0 / 50.0  # already divided by the displacement divisor
    sea_level: float = 0.5
    palette: Palette = Palette.GEOGRAPHIC
    show_contours: bool = False
    contour_steps: int = 24

    def __post_init__(self):
        object.__setattr__(self, "palette", Palette.parse(self.palette))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "height_scale": self.height_scale,
            "sea_level": self.sea_level,
            "palette": self.palette.value,
            "show_contours": self.show_contours,
            "contour_steps": self.contour_steps,
        }


def effective_height_scale(
    height_scale: float,
    radius: float = 1.0,
    divisor: float = DEFAULT_CONFIG.displacement_divisor
) -> float:
    """Displacement multiplier for a body's slider height scale."""
    return height_scale * radius / divisor


@dataclass(frozen=True)
class GlobeGeometry:
    """
    Immutable globe mesh buffers.

    Arrays are read-only; a parameter change produces a new instance.
    """
    positions: np.ndarray  # (N, 3)
    colors: np.ndarray  # (N, 3) floats in [0, 1]
    normals: np.ndarray  # (N, 3)
    uvs: np.ndarray  # (N, 2)
    faces: np.ndarray  # (M, 3)
    width_segments: int
    height_segments: int
    textured: bool = False

    def __post_init__(self):
        for name in ("positions", "colors", "normals", "uvs", "faces"):
            getattr(self, name).flags.writeable = False

    @property
    def n_vertices(self) -> int:
        return len(self.positions)

    @property
    def n_triangles(self) -> int:
        return len(self.faces)

    @property
    def radii(self) -> np.ndarray:
        return np.linalg.norm(self.positions, axis=1)

    def to_trimesh(self, texture: Optional[Image.Image] = None) -> "trimesh.Trimesh":
        """
        Convert to a trimesh mesh for export.

        Textured globes use the image as a UV-mapped texture when one is
        given; everything else carries per-vertex colors.
        """
        if self.textured and texture is not None:
            visual = trimesh.visual.TextureVisuals(uv=np.array(self.uvs), image=texture)
        else:
            rgba = np.empty((self.n_vertices, 4), dtype=np.uint8)
            rgba[:, :3] = np.round(np.clip(self.colors, 0.0, 1.0) * 255.0).astype(np.uint8)
            rgba[:, 3] = 255
            visual = trimesh.visual.ColorVisuals(vertex_colors=rgba)
        return trimesh.Trimesh(
            vertices=np.array(self.positions),
            faces=np.array(self.faces),
            vertex_normals=np.array(self.normals),
            visual=visual,
            process=False,
        )


def build_globe(
    field_: HeightField,
    params: Optional[GlobeParams] = None,
    config: Optional[Config] = None
) -> GlobeGeometry:
    """
    Build the displaced globe for a height field.

    Args:
        field_: Height field of the body's image
        params: Displacement and shading parameters
        config: Configuration (uses defaults if None)

    Returns:
        GlobeGeometry
    """
    params = params or GlobeParams()
    config = config or DEFAULT_CONFIG

    seg_w, seg_h = config.clamp_segments(field_.width, field_.height)
    directions, uvs, faces = uv_sphere(seg_w, seg_h)

    heights = field_.sample_uv(uvs[:, 0], uvs[:, 1])
    radius = 1.0 + (heights - 0.5) * 2.0 * params.height_scale
    positions = directions * radius[:, None]

    colors = palette_colors(params.palette, heights, params.sea_level)
    if params.show_contours:
        colors = apply_contours(colors, heights, params.contour_steps, config.contour_shade)

    normals = recompute_vertex_normals(positions, faces)

    logger.debug(f"Built globe {seg_w}x{seg_h} segments, {len(positions)} verts "
                 f"(palette={params.palette.value}, scale={params.height_scale:.4f})")

    return GlobeGeometry(
        positions=positions,
        colors=colors,
        normals=normals,
        uvs=uvs,
        faces=faces,
        width_segments=seg_w,
        height_segments=seg_h,
        textured=params.palette is Palette.IMAGE,
    )


def build_default_globe(config: Optional[Config] = None) -> GlobeGeometry:
    """Plain unit sphere shown before any image has loaded."""
    config = config or DEFAULT_CONFIG
    seg_w, seg_h = config.default_sphere_segments
    directions, uvs, faces = uv_sphere(seg_w, seg_h)
    return GlobeGeometry(
        positions=directions,
        colors=np.ones_like(directions),
        normals=recompute_vertex_normals(directions, faces),
        uvs=uvs,
        faces=faces,
        width_segments=seg_w,
        height_segments=seg_h,
    )


CacheKey = Tuple[Optional[int], float, float, str, bool, int]


def cache_key(field_: Optional[HeightField], params: GlobeParams) -> CacheKey:
    """Everything that changes the built mesh."""
    return (
        field_.serial if field_ is not None else None,
        float(params.height_scale),
        float(params.sea_level),
        params.palette.value,
        bool(params.show_contours),
        int(params.contour_steps),
    )


class GlobeCache:
    """
    Memoized globe geometry for one body.

    Holds the most recent build. A lookup with the same key returns the
    same GlobeGeometry object; a changed key builds a new one and swaps
    it in whole, so a renderer holding the old object keeps a valid mesh.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or DEFAULT_CONFIG
        self._key: Optional[Hashable] = None
        self._geometry: Optional[GlobeGeometry] = None
        self.hits = 0
        self.misses = 0

    @property
    def key(self) -> Optional[Hashable]:
        return self._key

    def get(self, field_: Optional[HeightField], params: GlobeParams) -> GlobeGeometry:
        """Geometry for the inputs, rebuilding only when the key changed."""
        key = cache_key(field_, params)
        if self._geometry is not None and key == self._key:
            self.hits += 1
            return self._geometry

        self.misses += 1
        if field_ is None:
            geometry = build_default_globe(self.config)
        else:
            geometry = build_globe(field_, params, self.config)
        self._key, self._geometry = key, geometry
        return geometry

    def invalidate(self) -> None:
        self._key = None
        self._geometry = None

    def stats(self) -> Dict[str, Union[int, float]]:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / total if total else 0.0,
        }
