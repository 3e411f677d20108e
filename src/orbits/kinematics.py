"""
Orbit kinematics.

Decorative closed curves, not physics. Every family is a pure function
of (t, params) with angle θ = speed * t + phase, so positions are
reproducible and periodic in t with period 2π / speed (for integer k).
Callers own the time accumulator.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

import numpy as np

from common.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class OrbitType(Enum):
    """Orbit curve families."""
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    INCLINED_ELLIPSE = "inclinedEllipse"
    LISSAJOUS = "lissajous"
    ROSE = "rose"
    LEMNISCATE = "lemniscate"
    TREFOIL = "trefoil"
    FIGURE8_KNOT = "figure8Knot"
    EPICYCLOID = "epicycloid"

    @classmethod
    def parse(cls, value: Union[str, "OrbitType"]) -> "OrbitType":
        """Resolve a curve name; unknown names fall back to circle."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown orbit type {value!r}, using circle")
            return cls.CIRCLE


@dataclass(frozen=True)
class OrbitParams:
    """Orbit controls of one body."""
    orbit_type: OrbitType = OrbitType.CIRCLE
    radius: float = 2.5  # R
    radius_y: float = 1.5  # Ry
    speed: float = 0.2  # w, radians per second
    phase: float = 0.0
    inclination: float = 0.0  # radians, tilt about the x axis
    k: float = 3.0  # harmonic count

    def __post_init__(self):
        object.__setattr__(self, "orbit_type", OrbitType.parse(self.orbit_type))

    @property
    def period(self) -> Optional[float]:
        """Seconds per revolution, None when stationary."""
        if self.speed == 0:
            return None
        return 2.0 * np.pi / abs(self.speed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orbit_type": self.orbit_type.value,
            "radius": self.radius,
            "radius_y": self.radius_y,
            "speed": self.speed,
            "phase": self.phase,
            "inclination": self.inclination,
            "k": self.k,
        }


def _circle(theta, t, p):
    R = p.radius
    return R * np.cos(theta), np.zeros_like(theta), R * np.sin(theta)


def _ellipse(theta, t, p):
    return p.radius * np.cos(theta), np.zeros_like(theta), p.radius_y * np.sin(theta)


def _inclined_ellipse(theta, t, p):
    x, _, z = _ellipse(theta, t, p)
    return x, np.sin(p.inclination) * z, np.cos(p.inclination) * z


def _lissajous(theta, t, p):
    R = p.radius
    # y runs off the raw clock, without phase
    return R * np.sin(theta), p.radius_y * np.sin(p.k * p.speed * t), R * np.cos(theta)


def _polar(r, theta):
    return r * np.cos(theta), np.zeros_like(theta), r * np.sin(theta)


def _rose(theta, t, p):
    return _polar(p.radius * np.cos(p.k * theta), theta)


def _lemniscate(theta, t, p):
    with np.errstate(divide='ignore', invalid='ignore'):
        r = p.radius * np.sqrt(2.0) * np.cos(2 * theta) / (1.0 + np.sin(2 * theta))
    # the curve passes through infinity where sin 2θ = -1
    r = np.where(np.isfinite(r), r, 0.0)
    return _polar(r, theta)


def _trefoil(theta, t, p):
    s = 0.3 * p.radius
    return (
        s * (np.sin(theta) + 2 * np.sin(2 * theta)),
        s * (np.cos(theta) - 2 * np.cos(2 * theta)),
        s * -np.sin(3 * theta),
    )


def _figure8_knot(theta, t, p):
    s = 0.25 * p.radius
    ring = 2 + np.cos(2 * theta)
    return (
        s * ring * np.cos(3 * theta),
        s * np.sin(2 * theta),
        s * ring * np.sin(3 * theta),
    )


def _epicycloid(theta, t, p):
    a = 0.6 * p.radius
    b = 0.2 * p.radius
    if b == 0:
        return _circle(theta, t, p)
    ratio = (a + b) / b
    return (
        (a + b) * np.cos(theta) - b * np.cos(ratio * theta),
        np.zeros_like(theta),
        (a + b) * np.sin(theta) - b * np.sin(ratio * theta),
    )


CURVES: Dict[OrbitType, Callable] = {
    OrbitType.CIRCLE: _circle,
    OrbitType.ELLIPSE: _ellipse,
    OrbitType.INCLINED_ELLIPSE: _inclined_ellipse,
    OrbitType.LISSAJOUS: _lissajous,
    OrbitType.ROSE: _rose,
    OrbitType.LEMNISCATE: _lemniscate,
    OrbitType.TREFOIL: _trefoil,
    OrbitType.FIGURE8_KNOT: _figure8_knot,
    OrbitType.EPICYCLOID: _epicycloid,
}


def orbit_position(t, params: OrbitParams) -> np.ndarray:
    """
    Position on the orbit at elapsed time t.

    Args:
        t: Elapsed seconds (scalar or array)
        params: Orbit parameters

    Returns:
        (3,) for scalar t, (N, 3) for an array of N times
    """
    t = np.asarray(t, dtype=np.float64)
    theta = params.speed * t + params.phase
    curve = CURVES.get(params.orbit_type, _circle)
    x, y, z = curve(theta, t, params)
    return np.stack(np.broadcast_arrays(x, y, z), axis=-1)


def sample_orbit_path(
    params: OrbitParams,
    samples: int = DEFAULT_CONFIG.default_trail_samples
) -> np.ndarray:
    """
    One full revolution of the orbit, evenly spaced in time.

    A stationary orbit (speed 0) yields its single position repeated.
    """
    period = params.period
    if period is None:
        return np.repeat(orbit_position(0.0, params)[None, :], samples, axis=0)
    t = np.linspace(0.0, period, samples, endpoint=False)
    return orbit_position(t, params)
