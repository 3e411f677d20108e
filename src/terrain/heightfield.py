"""
Height field extraction.

Maps RGBA pixels to a normalized scalar grid: black = deepest (0.0),
white = tallest (1.0). One value per sampled pixel, row 0 at the top.
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# Rec. 709 perceptual weights
LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

_serials = itertools.count(1)


class HeightMode(Enum):
    """Pixel → height mappings."""
    LUMINANCE = "luminance"
    GRAYSCALE_LUM = "grayscaleLum"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    MAX_RGB = "maxRGB"
    MIN_RGB = "minRGB"

    @classmethod
    def parse(cls, value: Union[str, "HeightMode"]) -> "HeightMode":
        """Resolve a mode name; unknown names fall back to luminance."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown height mode {value!r}, using luminance")
            return cls.LUMINANCE


@dataclass(frozen=True)
class ProbeResult:
    """Height under a (u, v) surface coordinate."""
    x: int
    y: int
    height: float


@dataclass(frozen=True)
class HeightField:
    """
    Normalized height grid.

    values is a read-only (height * width,) float array in [0, 1],
    row-major with row 0 at the top of the image. serial identifies
    this instance in cache keys; a new image or mode always produces
    a new field.
    """
    width: int
    height: int
    values: np.ndarray
    serial: int = field(default_factory=lambda: next(_serials))

    def __post_init__(self):
        object.__setattr__(self, "values", np.array(self.values, dtype=np.float64))
        if self.values.shape != (self.width * self.height,):
            raise ValueError(
                f"Expected {self.width * self.height} values, got shape {self.values.shape}"
            )
        self.values.flags.writeable = False

    @property
    def grid(self) -> np.ndarray:
        """(height, width) view of the values."""
        return self.values.reshape(self.height, self.width)

    def pixel_indices(self, u, v) -> Tuple[np.ndarray, np.ndarray]:
        """
        Nearest pixel for surface coordinates.

        u runs left → right; v runs bottom → top, so the image row is
        flipped. Coordinates outside [0, 1] are clamped. Halves round
        up, not to even.
        """
        u = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0)
        v = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0)
        ix = np.floor(u * (self.width - 1) + 0.5).astype(np.int64)
        iy = np.floor((1.0 - v) * (self.height - 1) + 0.5).astype(np.int64)
        return ix, iy

    def sample_uv(self, u, v) -> np.ndarray:
        """Nearest-neighbour heights at surface coordinates."""
        ix, iy = self.pixel_indices(u, v)
        return self.values[iy * self.width + ix]


def extract_heights(
    pixels: np.ndarray,
    width: int,
    height: int,
    mode: Union[str, HeightMode] = HeightMode.LUMINANCE
) -> HeightField:
    """
    Compute the height field for a pixel buffer.

    Args:
        pixels: RGBA (or RGB) pixels, either (height, width, C) or flat
        width: Image width in pixels
        height: Image height in pixels
        mode: Height mapping mode

    Returns:
        HeightField with values = raw / 255
    """
    mode = HeightMode.parse(mode)
    rgb = np.asarray(pixels).reshape(width * height, -1)[:, :3].astype(np.float64)

    if mode in (HeightMode.LUMINANCE, HeightMode.GRAYSCALE_LUM):
        raw = rgb @ LUMINANCE_WEIGHTS
    elif mode is HeightMode.RED:
        raw = rgb[:, 0]
    elif mode is HeightMode.GREEN:
        raw = rgb[:, 1]
    elif mode is HeightMode.BLUE:
        raw = rgb[:, 2]
    elif mode is HeightMode.MAX_RGB:
        raw = rgb.max(axis=1)
    else:
        raw = rgb.min(axis=1)

    values = np.clip(raw / 255.0, 0.0, 1.0)

    field_ = HeightField(width=width, height=height, values=values)
    logger.debug(f"Height field {width}x{height} ({mode.value}): "
                 f"range {values.min():.3f} to {values.max():.3f}")
    return field_


def probe(field_: HeightField, u: float, v: float) -> ProbeResult:
    """Pixel coordinates and height under a surface point."""
    ix, iy = field_.pixel_indices(u, v)
    ix, iy = int(ix), int(iy)
    return ProbeResult(x=ix, y=iy, height=float(field_.values[iy * field_.width + ix]))
