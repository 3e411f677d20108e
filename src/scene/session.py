"""
Globe session.

Wires scene state, terrain loading, per-body globe caches and the
animator, and talks to the render surface collaborator. The surface
is anything with is_available(), present(snapshot) and capture_png().
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

import numpy as np
from PIL import Image

from common.config import Config, DEFAULT_CONFIG, GlobeMetadata
from common.errors import ExportPrecondition, RenderContextError
from common.io import save_globe
from globe.build import GlobeCache, GlobeGeometry
from terrain.export import export_heightmap
from terrain.heightfield import ProbeResult, probe
from terrain.sampler import ImageSource
from .animation import Animator, is_orbiting
from .loader import Terrain, TerrainLoader
from .state import SceneState, default_scene
from .view import CameraPose, camera_pose, min_zoom_distance, sea_sphere_radius, sun_position

logger = logging.getLogger(__name__)


class RenderSurface(Protocol):
    def is_available(self) -> bool: ...

    def present(self, snapshot: "FrameSnapshot") -> None: ...

    def capture_png(self) -> bytes: ...


@dataclass(frozen=True)
class BodyFrame:
    """What the renderer needs to draw one body this frame."""
    body_id: str
    geometry: GlobeGeometry
    position: np.ndarray
    spin: float
    wireframe: bool
    texture: Optional[Image.Image]
    sea_radius: Optional[float]
    trail: np.ndarray
    show_trail: bool
    trail_width: float
    trail_color: str


@dataclass(frozen=True)
class FrameSnapshot:
    bodies: Tuple[BodyFrame, ...]
    sun: np.ndarray
    camera: Optional[CameraPose]
    min_zoom: float


@dataclass(frozen=True)
class ExportStatus:
    ok: bool
    path: Optional[Path] = None
    message: str = ""


class GlobeSession:
    """
    One interactive scene.

    Args:
        state: Initial scene (a single central body if None)
        config: Configuration (uses defaults if None)
        surface: Render surface; frames are only built when None
        loader: Terrain loader (a new one if None)
    """

    def __init__(
        self,
        state: Optional[SceneState] = None,
        config: Optional[Config] = None,
        surface: Optional[RenderSurface] = None,
        loader: Optional[TerrainLoader] = None
    ):
        self.config = config or DEFAULT_CONFIG
        self.surface = surface
        self.loader = loader or TerrainLoader(self.config)
        self.animator = Animator()
        self._caches: Dict[str, GlobeCache] = {}
        self._state = state or default_scene()

    @property
    def state(self) -> SceneState:
        return self._state

    def update(self, state: SceneState) -> SceneState:
        """
        Swap in a new scene state.

        Removed bodies release their resources. Bodies whose height mode
        changed get their height field re-extracted.
        """
        previous = {b.id: b for b in self._state.bodies}
        removed = set(previous) - {b.id for b in state.bodies}
        for body_id in removed:
            self._caches.pop(body_id, None)
            self.loader.forget(body_id)
            self.animator.reset(body_id)
        for body in state.bodies:
            old = previous.get(body.id)
            if old is not None and old.height_mode is not body.height_mode:
                self.loader.apply_mode(body.id, body.height_mode)
        self._state = state
        return state

    # ---- terrain ----

    async def load_image(self, body_id: str, source: Optional[ImageSource] = None) -> Optional[Terrain]:
        """
        (Re)load a body's terrain with its current height mode.

        Uses the body's own image, or the scene image, when no source
        is given. A failure leaves the previous terrain in place.
        """
        body = self._state.body(body_id)
        source = source if source is not None else self._state.image_for(body)
        if source is None:
            raise ValueError(f"Body {body_id} has no image to load")
        return await self.loader.load(body_id, source, body.height_mode)

    def geometry(self, body_id: str) -> GlobeGeometry:
        """Current globe mesh of a body, rebuilt only when its inputs changed."""
        body = self._state.body(body_id)
        cache = self._caches.get(body_id)
        if cache is None:
            cache = self._caches[body_id] = GlobeCache(self.config)
        return cache.get(self.loader.field(body_id), body.globe_params(self.config))

    def cache(self, body_id: str) -> Optional[GlobeCache]:
        return self._caches.get(body_id)

    def probe(self, body_id: str, u: float, v: float) -> Optional[ProbeResult]:
        field_ = self.loader.field(body_id)
        if field_ is None:
            return None
        return probe(field_, u, v)

    # ---- frames ----

    def _check_surface(self) -> None:
        if self.surface is not None and not self.surface.is_available():
            raise RenderContextError("Render surface is unavailable")

    def frame(self, dt: float) -> FrameSnapshot:
        """Advance animation by dt and hand the frame to the surface."""
        self._check_surface()
        state = self._state
        positions = self.animator.tick(state, dt)

        frames = []
        for body in state.bodies:
            geometry = self.geometry(body.id)
            terrain = self.loader.terrain(body.id)
            texture = terrain.image.image if geometry.textured and terrain is not None else None
            frames.append(BodyFrame(
                body_id=body.id,
                geometry=geometry,
                position=positions[body.id],
                spin=self.animator.spin(body.id),
                wireframe=body.wireframe,
                texture=texture,
                sea_radius=sea_sphere_radius(body.radius, body.sea_level) if body.show_sea else None,
                trail=self.animator.trail_points(body.id),
                show_trail=is_orbiting(body) and body.show_trail,
                trail_width=body.trail_width,
                trail_color=body.trail_color,
            ))

        display = state.display
        snapshot = FrameSnapshot(
            bodies=tuple(frames),
            sun=sun_position(display.sun_azimuth, display.sun_elevation),
            camera=camera_pose(display.view_preset),
            min_zoom=min_zoom_distance(display.height_scale, self.config.displacement_divisor),
        )
        if self.surface is not None:
            self.surface.present(snapshot)
        return snapshot

    def screenshot(self, path: Path) -> Path:
        """Save the surface's current frame as PNG."""
        if self.surface is None:
            raise RenderContextError("No render surface attached")
        self._check_surface()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.surface.capture_png())
        logger.info(f"Saved screenshot: {path}")
        return path

    # ---- exports ----

    def export_heightmap(
        self,
        body_id: str,
        path: Optional[Path] = None,
        fmt: str = "png"
    ) -> ExportStatus:
        """Write a body's heightmap; reports instead of raising when none exists."""
        path = path if path is not None else self.config.get_heightmap_path(body_id, fmt)
        try:
            written = export_heightmap(self.loader.field(body_id), path, fmt)
        except ExportPrecondition as e:
            logger.warning(f"Heightmap export skipped for {body_id}: {e}")
            return ExportStatus(ok=False, message=str(e))
        return ExportStatus(ok=True, path=written)

    def export_globe(self, body_id: str, path: Optional[Path] = None) -> ExportStatus:
        """Write a body's globe mesh as GLB with a metadata sidecar."""
        path = path if path is not None else self.config.get_mesh_path(body_id)
        terrain = self.loader.terrain(body_id)
        if terrain is None:
            message = "No height field to export"
            logger.warning(f"Globe export skipped for {body_id}: {message}")
            return ExportStatus(ok=False, message=message)

        body = self._state.body(body_id)
        geometry = self.geometry(body_id)
        params = body.globe_params(self.config)
        metadata = GlobeMetadata(
            body_id=body_id,
            palette=params.palette.value,
            height_mode=terrain.mode.value,
            height_scale=params.height_scale,
            sea_level=params.sea_level,
            width_segments=geometry.width_segments,
            height_segments=geometry.height_segments,
            n_vertices=geometry.n_vertices,
            n_triangles=geometry.n_triangles,
            source_width=terrain.field.width,
            source_height=terrain.field.height,
            source=self._state.image_for(body),
            generation_params={
                "globe": params.to_dict(),
                "radius": body.radius,
                "slider_height_scale": body.height_scale,
            },
        )
        written = save_globe(geometry.to_trimesh(terrain.image.image), path, metadata)
        return ExportStatus(ok=True, path=written)
