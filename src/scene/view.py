"""
View and lighting numbers handed to the renderer.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from common.config import DEFAULT_CONFIG

SUN_DISTANCE = 8.0
SEA_RELIEF = 0.02
SEA_OFFSET = 0.01
ZOOM_MARGIN = 0.05


@dataclass(frozen=True)
class CameraPose:
    position: Tuple[float, float, float]
    target: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    up: Tuple[float, float, float] = (0.0, 1.0, 0.0)


CAMERA_PRESETS = {
    "top": CameraPose(position=(0.0, 3.0, 0.0001)),
    "isometric": CameraPose(position=(2.5, 2.5, 2.5)),
}


def sun_position(azimuth_deg: float, elevation_deg: float, distance: float = SUN_DISTANCE) -> np.ndarray:
    """Directional light position from azimuth (around +y) and elevation."""
    az = np.deg2rad(azimuth_deg)
    elev = np.deg2rad(elevation_deg)
    return distance * np.array([
        np.cos(elev) * np.cos(az),
        np.sin(elev),
        np.cos(elev) * np.sin(az),
    ])


def camera_pose(view_preset: str) -> Optional[CameraPose]:
    """Fixed camera for a preset; None leaves the camera free (perspective)."""
    return CAMERA_PRESETS.get(view_preset)


def min_zoom_distance(height_scale: float, divisor: float = DEFAULT_CONFIG.displacement_divisor) -> float:
    """Closest camera distance that stays outside the tallest terrain."""
    return 1.0 + height_scale / divisor + ZOOM_MARGIN


def sea_sphere_radius(radius: float, sea_level: float) -> float:
    """Radius of the translucent sea shell around a body."""
    return radius + (sea_level - 0.5) * SEA_RELIEF + SEA_OFFSET
