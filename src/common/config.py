"""
Configuration and constants for globe generation.

Safety caps (NON-NEGOTIABLE):
- Source images are downscaled so max(width, height) <= 1024 px
- Sphere tessellation is clamped to [8, 256] x [6, 256] segments
- Height 0.5 always maps to the undisplaced unit sphere
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple
import json
from pathlib import Path


@dataclass
class GlobeMetadata:
    """
    Metadata written next to every exported globe mesh.

    Every exported mesh MUST include:
    - palette / height_mode: how the surface was derived
    - width_segments / height_segments: tessellation actually used
    - source_width / source_height: resampled image size
    """
    body_id: str
    palette: str
    height_mode: str
    height_scale: float
    sea_level: float
    width_segments: int
    height_segments: int
    n_vertices: int
    n_triangles: int
    source_width: int = 0
    source_height: int = 0
    source: Optional[str] = None
    generation_params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "body_id": self.body_id,
            "palette": self.palette,
            "height_mode": self.height_mode,
            "height_scale": self.height_scale,
            "sea_level": self.sea_level,
            "width_segments": self.width_segments,
            "height_segments": self.height_segments,
            "n_vertices": self.n_vertices,
            "n_triangles": self.n_triangles,
            "source_width": self.source_width,
            "source_height": self.source_height,
            "source": self.source,
            "generation_params": self.generation_params
        }

    def save(self, path: Path) -> None:
        """Save metadata to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobeMetadata":
        return cls(**data)


@dataclass
class Config:
    """
    Global configuration for globe generation and animation.

    The caps keep memory bounded regardless of the input image:
    a 4000x3000 photo is sampled at 1024x768 and tessellated
    at 256x256 segments at most.
    """

    # Image sampling
    max_image_dimension: int = 1024

    # Sphere tessellation bounds
    max_sphere_segments: int = 256
    min_width_segments: int = 8
    min_height_segments: int = 6

    # Sphere used before any image has been loaded
    default_sphere_segments: Tuple[int, int] = (16, 12)

    # Slider height scale -> displacement multiplier
    displacement_divisor: float = 50.0

    # Shade multiplier for odd contour bands
    contour_shade: float = 0.88

    # Points per sampled orbit path (preview / export)
    default_trail_samples: int = 256

    # Paths (relative to project root)
    output_dir: Path = field(default_factory=lambda: Path("outputs"))
    preset_path: Path = field(default_factory=lambda: Path("presets.json"))

    def clamp_segments(self, width: int, height: int) -> Tuple[int, int]:
        """Tessellation for an image of the given size."""
        seg_w = min(max(self.min_width_segments, width - 1), self.max_sphere_segments)
        seg_h = min(max(self.min_height_segments, height - 1), self.max_sphere_segments)
        return seg_w, seg_h

    def get_mesh_path(self, body_id: str) -> Path:
        """Get GLB output path for a body."""
        return self.output_dir / "globes" / f"{body_id}.glb"

    def get_heightmap_path(self, body_id: str, fmt: str) -> Path:
        """Get heightmap output path for a body ("png" or "tiff")."""
        return self.output_dir / "heightmaps" / f"{body_id}.{fmt}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_image_dimension": self.max_image_dimension,
            "max_sphere_segments": self.max_sphere_segments,
            "min_width_segments": self.min_width_segments,
            "min_height_segments": self.min_height_segments,
            "default_sphere_segments": list(self.default_sphere_segments),
            "displacement_divisor": self.displacement_divisor,
            "contour_shade": self.contour_shade,
            "default_trail_samples": self.default_trail_samples,
            "output_dir": str(self.output_dir),
            "preset_path": str(self.preset_path)
        }

    @classmethod
    def from_json(cls, path: Path) -> "Config":
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
        if "default_sphere_segments" in data:
            data["default_sphere_segments"] = tuple(data["default_sphere_segments"])
        data["output_dir"] = Path(data.get("output_dir", "outputs"))
        data["preset_path"] = Path(data.get("preset_path", "presets.json"))
        return cls(**data)

    def save(self, path: Path) -> None:
        """Save config to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


# Global default config
DEFAULT_CONFIG = Config()
