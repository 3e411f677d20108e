"""
Per-frame animation.

Each body owns an elapsed-time accumulator that advances on every tick.
Orbiting bodies (non-central, orbit enabled) get a fresh position from
the orbit curve, push it onto their trail and spin slowly about y.
Bodies with the orbit switched off keep their last position, spin and
a frozen trail.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from orbits.kinematics import orbit_position
from orbits.trail import TrailBuffer
from .state import BodyConfig, SceneState

logger = logging.getLogger(__name__)

ORIGIN = np.zeros(3)

# Self-rotation of orbiting bodies about y, radians per second
SPIN_RATE = 0.05


@dataclass
class BodyMotion:
    """Animation state of one body."""
    trail: TrailBuffer
    elapsed: float = 0.0
    position: np.ndarray = field(default_factory=lambda: ORIGIN.copy())
    spin: float = 0.0


def is_orbiting(body: BodyConfig) -> bool:
    return not body.is_central and body.orbit_enabled


class Animator:
    """Advances every body of a scene once per frame."""

    def __init__(self):
        self._motion: Dict[str, BodyMotion] = {}

    def motion(self, body_id: str) -> Optional[BodyMotion]:
        return self._motion.get(body_id)

    def spin(self, body_id: str) -> float:
        motion = self._motion.get(body_id)
        return motion.spin if motion is not None else 0.0

    def trail_points(self, body_id: str) -> np.ndarray:
        motion = self._motion.get(body_id)
        if motion is None:
            return np.empty((0, 3))
        return motion.trail.points()

    def tick(self, state: SceneState, dt: float) -> Dict[str, np.ndarray]:
        """
        Advance all bodies by dt seconds.

        Returns:
            Mapping body id → current position
        """
        live = {b.id for b in state.bodies}
        for stale in set(self._motion) - live:
            logger.debug(f"Dropping motion state of removed body {stale}")
            del self._motion[stale]

        positions = {}
        for body in state.bodies:
            motion = self._motion.get(body.id)
            if motion is None:
                motion = BodyMotion(trail=TrailBuffer(body.trail_length))
                self._motion[body.id] = motion
            elif motion.trail.capacity != body.trail_length:
                motion.trail.resize(body.trail_length)

            motion.elapsed += dt
            if is_orbiting(body):
                motion.position = orbit_position(motion.elapsed, body.orbit_params())
                motion.trail.append(motion.position)
                motion.spin += dt * SPIN_RATE
            elif body.is_central:
                motion.position = ORIGIN.copy()
            positions[body.id] = motion.position.copy()

        return positions

    def reset(self, body_id: Optional[str] = None) -> None:
        """Forget animation state for one body, or for all."""
        if body_id is None:
            self._motion.clear()
        else:
            self._motion.pop(body_id, None)
