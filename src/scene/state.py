"""
Scene state.

Bodies and display settings are immutable records. Every transition
returns a new SceneState; a body update replaces the whole BodyConfig
with a patched copy, so no one ever observes a half-applied change.
"""

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from common.config import Config, DEFAULT_CONFIG
from globe.build import GlobeParams, effective_height_scale
from orbits.kinematics import OrbitParams, OrbitType
from terrain.heightfield import HeightMode
from terrain.palettes import Palette

logger = logging.getLogger(__name__)

CONTOUR_STEPS_RANGE = (6, 64)
VIEW_PRESETS = ("perspective", "top", "isometric")

# Display settings mirrored onto the active body
SHARED_FIELDS = (
    "height_scale", "height_mode", "wireframe", "palette",
    "sea_level", "show_contours", "contour_steps", "show_sea",
)


def _clamp(value, lo, hi):
    return min(hi, max(lo, value))


@dataclass(frozen=True)
class BodyConfig:
    """One globe in the scene: terrain, shading, orbit and trail controls."""
    id: str
    name: str
    is_central: bool = False
    image: Optional[str] = None  # path; None uses the scene image

    # Geometry
    radius: float = 1.0
    height_scale: float = 3.0  # slider value, 1..10
    height_mode: HeightMode = HeightMode.LUMINANCE
    wireframe: bool = False

    # Shading
    palette: Palette = Palette.GEOGRAPHIC
    sea_level: float = 0.5
    show_contours: bool = False
    contour_steps: int = 24
    show_sea: bool = True

    # Orbit
    orbit_enabled: bool = False
    orbit_type: OrbitType = OrbitType.CIRCLE
    orbit_radius: float = 2.5
    orbit_radius_y: float = 1.5
    orbit_speed: float = 0.2
    orbit_phase: float = 0.0
    inclination: float = 0.0
    k: float = 3.0

    # Trail
    show_trail: bool = True
    trail_length: int = 100
    trail_width: float = 2.0
    trail_color: str = "#ffffff"

    def __post_init__(self):
        set_ = object.__setattr__
        set_(self, "height_mode", HeightMode.parse(self.height_mode))
        set_(self, "palette", Palette.parse(self.palette))
        set_(self, "orbit_type", OrbitType.parse(self.orbit_type))
        set_(self, "sea_level", _clamp(float(self.sea_level), 0.0, 1.0))
        set_(self, "contour_steps", _clamp(int(self.contour_steps), *CONTOUR_STEPS_RANGE))
        set_(self, "trail_length", max(1, int(self.trail_length)))

    def patched(self, **patch) -> "BodyConfig":
        """Copy with some fields replaced."""
        unknown = set(patch) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise KeyError(f"Unknown body fields: {sorted(unknown)}")
        return dataclasses.replace(self, **patch)

    def orbit_params(self) -> OrbitParams:
        return OrbitParams(
            orbit_type=self.orbit_type,
            radius=self.orbit_radius,
            radius_y=self.orbit_radius_y,
            speed=self.orbit_speed,
            phase=self.orbit_phase,
            inclination=self.inclination,
            k=self.k,
        )

    def globe_params(self, config: Optional[Config] = None) -> GlobeParams:
        config = config or DEFAULT_CONFIG
        return GlobeParams(
            height_scale=effective_height_scale(
                self.height_scale, self.radius, config.displacement_divisor
            ),
            sea_level=self.sea_level,
            palette=self.palette,
            show_contours=self.show_contours,
            contour_steps=self.contour_steps,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["height_mode"] = self.height_mode.value
        data["palette"] = self.palette.value
        data["orbit_type"] = self.orbit_type.value
        return data


@dataclass(frozen=True)
class DisplaySettings:
    """Global controls: the active body's terrain settings plus view and sun."""
    height_scale: float = 3.0
    height_mode: HeightMode = HeightMode.LUMINANCE
    wireframe: bool = False
    view_preset: str = "perspective"
    palette: Palette = Palette.GEOGRAPHIC
    sea_level: float = 0.5
    show_contours: bool = False
    contour_steps: int = 24
    sun_azimuth: float = 135.0  # degrees, 0..360
    sun_elevation: float = 35.0  # degrees, 0..90
    show_sea: bool = True

    def __post_init__(self):
        set_ = object.__setattr__
        set_(self, "height_mode", HeightMode.parse(self.height_mode))
        set_(self, "palette", Palette.parse(self.palette))
        set_(self, "sea_level", _clamp(float(self.sea_level), 0.0, 1.0))
        set_(self, "contour_steps", _clamp(int(self.contour_steps), *CONTOUR_STEPS_RANGE))
        if self.view_preset not in VIEW_PRESETS:
            raise ValueError(f"Unknown view preset {self.view_preset!r}, expected one of {VIEW_PRESETS}")


def _new_body_id() -> str:
    return uuid.uuid4().hex[:8]


def default_scene() -> "SceneState":
    """Scene with a single central body."""
    central = BodyConfig(id="central", name="Central", is_central=True)
    return SceneState(bodies=(central,), active_body_id=central.id)


@dataclass(frozen=True)
class SceneState:
    """
    Everything the renderer and animator need, as plain data.

    Transitions never mutate; they return the next state.
    """
    bodies: Tuple[BodyConfig, ...] = ()
    active_body_id: Optional[str] = None
    display: DisplaySettings = field(default_factory=DisplaySettings)
    image: Optional[str] = None  # scene-wide image used by bodies without their own

    def __post_init__(self):
        centrals = [b.id for b in self.bodies if b.is_central]
        if len(centrals) > 1:
            raise ValueError(f"Only one central body allowed, got {centrals}")
        ids = [b.id for b in self.bodies]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate body ids: {ids}")

    # ---- queries ----

    def body(self, body_id: str) -> BodyConfig:
        for b in self.bodies:
            if b.id == body_id:
                return b
        raise KeyError(f"No body with id {body_id!r}")

    @property
    def active_body(self) -> Optional[BodyConfig]:
        if self.active_body_id is None:
            return None
        try:
            return self.body(self.active_body_id)
        except KeyError:
            return None

    @property
    def central_body(self) -> Optional[BodyConfig]:
        return next((b for b in self.bodies if b.is_central), None)

    def image_for(self, body: BodyConfig) -> Optional[str]:
        return body.image or self.image

    # ---- transitions ----

    def with_image(self, image: Optional[str]) -> "SceneState":
        return dataclasses.replace(self, image=image)

    def add_body(self, **overrides) -> "SceneState":
        """Append an orbiting body with defaults and make it active."""
        values = {"id": _new_body_id(), "name": f"Body {len(self.bodies)}", "orbit_enabled": True}
        values.update(overrides)
        new_body = BodyConfig(**values)
        logger.info(f"Added body {new_body.id} ({new_body.name})")
        return dataclasses.replace(
            self, bodies=self.bodies + (new_body,), active_body_id=new_body.id
        )

    def remove_active_body(self) -> "SceneState":
        """Remove the active body; the first remaining body becomes active."""
        if self.active_body_id is None:
            return self
        if len(self.bodies) <= 1:
            raise ValueError("Cannot remove the last remaining body")
        remaining = tuple(b for b in self.bodies if b.id != self.active_body_id)
        logger.info(f"Removed body {self.active_body_id}")
        return dataclasses.replace(
            self, bodies=remaining, active_body_id=remaining[0].id if remaining else None
        )

    def select_body(self, body_id: str) -> "SceneState":
        """Make a body active and load its terrain settings into the display."""
        try:
            b = self.body(body_id)
        except KeyError:
            return dataclasses.replace(self, active_body_id=body_id)
        display = dataclasses.replace(
            self.display, **{name: getattr(b, name) for name in SHARED_FIELDS}
        )
        return dataclasses.replace(self, active_body_id=body_id, display=display)

    def update_body(self, body_id: str, **patch) -> "SceneState":
        """Replace one body with a patched copy."""
        if patch.get("is_central"):
            central = self.central_body
            if central is not None and central.id != body_id:
                raise ValueError(f"Body {central.id} is already central")
        bodies = tuple(b.patched(**patch) if b.id == body_id else b for b in self.bodies)
        return dataclasses.replace(self, bodies=bodies)

    def update_active_body(self, **patch) -> "SceneState":
        if self.active_body_id is None:
            return self
        return self.update_body(self.active_body_id, **patch)

    def update_display(self, **changes) -> "SceneState":
        """
        Change display settings.

        Terrain settings shared with bodies are applied to the active
        body as well.
        """
        unknown = set(changes) - {f.name for f in dataclasses.fields(DisplaySettings)}
        if unknown:
            raise KeyError(f"Unknown display fields: {sorted(unknown)}")
        state = dataclasses.replace(self, display=dataclasses.replace(self.display, **changes))
        shared = {k: v for k, v in changes.items() if k in SHARED_FIELDS}
        if shared and state.active_body is not None:
            state = state.update_active_body(**shared)
        return state
