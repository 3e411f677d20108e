"""
Heightmap export.

PNG: RGBA, gray value round(clamp(h, 0, 1) * 255) in R, G and B, alpha 255.
TIFF: single-channel 8-bit raster of the same values.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from common.errors import ExportPrecondition, ImageDecodeError
from .heightfield import HeightField

logger = logging.getLogger(__name__)

FORMATS = ("png", "tiff")


def heightmap_bytes(field_: Optional[HeightField]) -> np.ndarray:
    """
    Quantize a height field to 8 bits.

    Returns:
        (height, width) uint8 array

    Raises:
        ExportPrecondition: If no height field has been computed
    """
    if field_ is None or field_.width == 0 or field_.height == 0:
        raise ExportPrecondition("No height field to export")
    quantized = np.floor(np.clip(field_.values, 0.0, 1.0) * 255.0 + 0.5)
    return quantized.astype(np.uint8).reshape(field_.height, field_.width)


def heightmap_image(field_: Optional[HeightField], fmt: str = "png") -> Image.Image:
    """PIL image of the heightmap in the layout used for `fmt`."""
    gray = heightmap_bytes(field_)
    if fmt == "tiff":
        return Image.fromarray(gray)
    rgba = np.empty(gray.shape + (4,), dtype=np.uint8)
    rgba[..., :3] = gray[..., None]
    rgba[..., 3] = 255
    return Image.fromarray(rgba)


def export_heightmap_png(field_: Optional[HeightField], path: Path) -> Path:
    """Write the heightmap as an RGBA PNG."""
    path = Path(path)
    img = heightmap_image(field_, "png")
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
    logger.info(f"Saved heightmap PNG: {path} ({img.width}x{img.height})")
    return path


def export_heightmap_tiff(field_: Optional[HeightField], path: Path) -> Path:
    """Write the heightmap as an 8-bit grayscale TIFF."""
    path = Path(path)
    img = heightmap_image(field_, "tiff")
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="TIFF")
    logger.info(f"Saved heightmap TIFF: {path} ({img.width}x{img.height})")
    return path


def export_heightmap(field_: Optional[HeightField], path: Path, fmt: str = "png") -> Path:
    """Write the heightmap in one of FORMATS."""
    fmt = fmt.lower()
    if fmt in ("tif", "tiff"):
        return export_heightmap_tiff(field_, path)
    if fmt == "png":
        return export_heightmap_png(field_, path)
    raise ValueError(f"Unsupported heightmap format: {fmt} (expected one of {FORMATS})")


def read_heightmap_png(path: Path) -> HeightField:
    """
    Read an exported heightmap back into a height field.

    Only the red channel is used; values are v / 255.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            gray = np.asarray(img.convert("RGBA"))[..., 0]
    except OSError as e:
        raise ImageDecodeError(f"Could not read heightmap {path}: {e}", source=str(path)) from e
    height, width = gray.shape
    return HeightField(width=width, height=height, values=gray.reshape(-1) / 255.0)
