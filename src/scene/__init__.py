"""
Scene: bodies, terrain loading, animation, presets and the session facade.
"""

from .state import BodyConfig, DisplaySettings, SceneState, default_scene
from .animation import Animator, BodyMotion, is_orbiting
from .loader import Terrain, TerrainLoader, LoadToken, decode_terrain
from .presets import PresetStore, preset_from_state, apply_preset
from .view import sun_position, camera_pose, min_zoom_distance, sea_sphere_radius
from .session import GlobeSession, FrameSnapshot, BodyFrame, ExportStatus

__all__ = [
    'BodyConfig', 'DisplaySettings', 'SceneState', 'default_scene',
    'Animator', 'BodyMotion', 'is_orbiting',
    'Terrain', 'TerrainLoader', 'LoadToken', 'decode_terrain',
    'PresetStore', 'preset_from_state', 'apply_preset',
    'sun_position', 'camera_pose', 'min_zoom_distance', 'sea_sphere_radius',
    'GlobeSession', 'FrameSnapshot', 'BodyFrame', 'ExportStatus',
]
