"""
Image sampling.

Decodes a raster image and downsamples it so that neither side exceeds
the configured maximum (1024 px by default). Aspect ratio is preserved.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from common.config import DEFAULT_CONFIG
from common.errors import ImageDecodeError

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path, BinaryIO]


@dataclass(frozen=True)
class SampledImage:
    """Resampled RGBA image."""
    pixels: np.ndarray  # (height, width, 4) uint8
    width: int
    height: int
    image: Image.Image  # resampled RGBA image, used as globe texture

    @property
    def n_pixels(self) -> int:
        return self.width * self.height


def target_dimensions(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Size to resample to so that max(width, height) <= max_dimension.

    Images already within the bound are left unchanged.
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height
    if width >= height:
        dst_w = max_dimension
        dst_h = max(1, int(np.floor(height / width * dst_w + 0.5)))
    else:
        dst_h = max_dimension
        dst_w = max(1, int(np.floor(width / height * dst_h + 0.5)))
    return dst_w, dst_h


def _describe(source: ImageSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return getattr(source, "name", "<stream>")


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        return Image.open(io.BytesIO(bytes(source)))
    if isinstance(source, (str, Path)):
        return Image.open(Path(source))
    return Image.open(source)


def sample_image(
    source: ImageSource,
    max_dimension: int = DEFAULT_CONFIG.max_image_dimension
) -> SampledImage:
    """
    Decode and downsample an image.

    Args:
        source: Encoded image bytes, a file path, or a binary file handle
        max_dimension: Largest allowed width/height after resampling

    Returns:
        SampledImage with RGBA pixels

    Raises:
        ImageDecodeError: If the source cannot be read or decoded
    """
    name = _describe(source)
    try:
        with _open(source) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Could not decode image {name}: {e}", source=name) from e

    src_w, src_h = rgba.size
    dst_w, dst_h = target_dimensions(src_w, src_h, max_dimension)
    if (dst_w, dst_h) != (src_w, src_h):
        rgba = rgba.resize((dst_w, dst_h), resample=Image.Resampling.LANCZOS)
        logger.info(f"Resampled {name}: {src_w}x{src_h} → {dst_w}x{dst_h}")
    else:
        logger.debug(f"Loaded {name}: {src_w}x{src_h}")

    pixels = np.asarray(rgba, dtype=np.uint8).copy()
    pixels.flags.writeable = False

    return SampledImage(pixels=pixels, width=dst_w, height=dst_h, image=rgba)
