"""
Height → color palettes.

Two kinds of palette share the same contract:
- Gradient palettes: ordered stops, linear interpolation per channel
- Geographic: eight discrete bands with thresholds relative to sea level

Contour banding is applied afterwards and is independent of the palette.
"""

import logging
from enum import Enum
from typing import Dict, Tuple, Union

import numpy as np

from common.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]


class Palette(Enum):
    """Surface shading modes."""
    GRAYSCALE = "grayscale"
    VIRIDIS = "viridis"
    INFERNO = "inferno"
    MAGMA = "magma"
    PLASMA = "plasma"
    TURBO = "turbo"
    COOLWARM = "coolwarm"
    RAINBOW = "rainbow"
    OCEAN = "ocean"
    DESERT = "desert"
    FOREST = "forest"
    TERRAIN = "terrain"
    ICE = "ice"
    GEOGRAPHIC = "geographic"
    IMAGE = "image"  # texture with the source image instead of vertex colors

    @classmethod
    def _missing_(cls, value):
        if value == "image-passthrough":
            return cls.IMAGE
        return None

    @classmethod
    def parse(cls, value: Union[str, "Palette"]) -> "Palette":
        """Resolve a palette name; unknown names fall back to geographic."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown palette {value!r}, using geographic")
            return cls.GEOGRAPHIC

    @property
    def is_gradient(self) -> bool:
        return self in GRADIENT_STOPS


GRADIENT_STOPS: Dict[Palette, Tuple[Tuple[float, RGB], ...]] = {
    Palette.GRAYSCALE: (
        (0.0, (0.0, 0.0, 0.0)),
        (1.0, (1.0, 1.0, 1.0)),
    ),
    Palette.VIRIDIS: (
        (0.0, (0.267, 0.004, 0.329)),
        (0.25, (0.283, 0.141, 0.458)),
        (0.5, (0.254, 0.265, 0.53)),
        (0.75, (0.207, 0.372, 0.553)),
        (1.0, (0.993, 0.906, 0.144)),
    ),
    Palette.INFERNO: (
        (0.0, (0.001, 0.001, 0.012)),
        (0.25, (0.128, 0.047, 0.477)),
        (0.5, (0.521, 0.09, 0.478)),
        (0.75, (0.892, 0.252, 0.208)),
        (1.0, (0.988, 0.998, 0.645)),
    ),
    Palette.MAGMA: (
        (0.0, (0.001, 0.0, 0.015)),
        (0.25, (0.212, 0.071, 0.348)),
        (0.5, (0.466, 0.107, 0.506)),
        (0.75, (0.749, 0.249, 0.507)),
        (1.0, (0.987, 0.991, 0.749)),
    ),
    Palette.PLASMA: (
        (0.0, (0.05, 0.03, 0.53)),
        (0.25, (0.47, 0.06, 0.64)),
        (0.5, (0.82, 0.19, 0.48)),
        (0.75, (0.98, 0.43, 0.27)),
        (1.0, (0.94, 0.98, 0.14)),
    ),
    Palette.TURBO: (
        (0.0, (0.18995, 0.07176, 0.23217)),
        (0.25, (0.20803, 0.718, 0.4726)),
        (0.5, (0.43044, 0.79101, 0.4501)),
        (0.75, (0.7802, 0.5102, 0.1019)),
        (1.0, (0.98826, 0.99836, 0.64459)),
    ),
    Palette.COOLWARM: (
        (0.0, (0.23, 0.299, 0.754)),
        (0.5, (0.865, 0.865, 0.865)),
        (1.0, (0.706, 0.016, 0.15)),
    ),
    Palette.RAINBOW: (
        (0.0, (0.0, 0.0, 1.0)),
        (0.2, (0.0, 0.5, 1.0)),
        (0.4, (0.0, 1.0, 0.0)),
        (0.6, (1.0, 1.0, 0.0)),
        (0.8, (1.0, 0.5, 0.0)),
        (1.0, (1.0, 0.0, 0.0)),
    ),
    Palette.OCEAN: (
        (0.0, (0.0, 0.02, 0.15)),
        (0.5, (0.0, 0.2, 0.5)),
        (1.0, (0.0, 0.7, 0.9)),
    ),
    Palette.DESERT: (
        (0.0, (0.25, 0.17, 0.1)),
        (0.4, (0.7, 0.5, 0.2)),
        (0.8, (0.9, 0.75, 0.45)),
        (1.0, (1.0, 0.95, 0.8)),
    ),
    Palette.FOREST: (
        (0.0, (0.05, 0.15, 0.05)),
        (0.5, (0.1, 0.35, 0.1)),
        (1.0, (0.6, 0.9, 0.4)),
    ),
    Palette.TERRAIN: (
        (0.0, (0.2, 0.3, 0.0)),
        (0.3, (0.2, 0.55, 0.15)),
        (0.6, (0.55, 0.4, 0.2)),
        (0.85, (0.65, 0.65, 0.65)),
        (1.0, (1.0, 1.0, 1.0)),
    ),
    Palette.ICE: (
        (0.0, (0.0, 0.1, 0.2)),
        (0.5, (0.5, 0.8, 0.95)),
        (1.0, (1.0, 1.0, 1.0)),
    ),
}

# Geographic bands, lowest first. Offsets are relative to sea level.
GEOGRAPHIC_OFFSETS = (-0.15, 0.0, 0.02, 0.2, 0.35, 0.55, 0.75)
GEOGRAPHIC_COLORS = np.array([
    (0.02, 0.08, 0.3),    # deep ocean
    (0.05, 0.25, 0.6),    # shallow water
    (0.9, 0.85, 0.6),     # sand
    (0.3, 0.6, 0.2),      # grassland
    (0.15, 0.45, 0.15),   # forest
    (0.4, 0.35, 0.3),     # rock
    (0.6, 0.6, 0.6),      # light rock
    (0.95, 0.97, 1.0),    # snow / ice
])


def gradient_colors(stops: Tuple[Tuple[float, RGB], ...], heights: np.ndarray) -> np.ndarray:
    """
    Interpolate a stop table.

    Args:
        stops: (t, rgb) pairs with strictly increasing t from 0 to 1
        heights: Scalar heights (any shape)

    Returns:
        (..., 3) colors; heights outside [0, 1] take the endpoint color
    """
    t = np.clip(np.asarray(heights, dtype=np.float64), 0.0, 1.0)
    positions = np.array([s[0] for s in stops])
    colors = np.array([s[1] for s in stops])
    return np.stack([np.interp(t, positions, colors[:, c]) for c in range(3)], axis=-1)


def geographic_thresholds(sea_level: float) -> np.ndarray:
    """Upper bounds of the first seven geographic bands."""
    thresholds = np.asarray(GEOGRAPHIC_OFFSETS) + sea_level
    thresholds[0] = max(0.0, thresholds[0])
    return thresholds


def geographic_colors(heights: np.ndarray, sea_level: float) -> np.ndarray:
    """
    Banded land/sea coloring.

    The first threshold strictly above h picks the band; heights at or
    above sea_level + 0.75 are snow.
    """
    h = np.asarray(heights, dtype=np.float64)
    bands = np.searchsorted(geographic_thresholds(sea_level), h, side='right')
    return GEOGRAPHIC_COLORS[bands]


def palette_colors(
    palette: Union[str, Palette],
    heights: np.ndarray,
    sea_level: float = 0.5
) -> np.ndarray:
    """
    Colors for an array of heights.

    The image palette has no colors of its own; its buffer is filled
    with the geographic mapping and the mesh is textured instead.

    Returns:
        (..., 3) float colors in [0, 1]
    """
    palette = Palette.parse(palette)
    stops = GRADIENT_STOPS.get(palette)
    if stops is not None:
        return gradient_colors(stops, heights)
    h = np.clip(np.asarray(heights, dtype=np.float64), 0.0, 1.0)
    return geographic_colors(h, sea_level)


def palette_color(palette: Union[str, Palette], height: float, sea_level: float = 0.5) -> RGB:
    """Single-height convenience wrapper around palette_colors."""
    r, g, b = palette_colors(palette, np.array([height]), sea_level)[0]
    return float(r), float(g), float(b)


def contour_shade(
    heights: np.ndarray,
    steps: int,
    shade: float = DEFAULT_CONFIG.contour_shade
) -> np.ndarray:
    """Shade factor per height: `shade` on odd bands, 1.0 on even bands."""
    band = np.floor(np.asarray(heights, dtype=np.float64) * steps).astype(np.int64) % 2
    return np.where(band == 1, shade, 1.0)


def apply_contours(
    colors: np.ndarray,
    heights: np.ndarray,
    steps: int,
    shade: float = DEFAULT_CONFIG.contour_shade
) -> np.ndarray:
    """Darken alternating iso-height bands."""
    return colors * contour_shade(heights, steps, shade)[..., None]
