"""
Display presets.

Named snapshots of the display settings, kept as a list of records under
one key of a small JSON key-value file. Loading a preset applies only the
fields it contains.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.config import DEFAULT_CONFIG
from common.errors import PresetNotFoundError
from .state import SceneState

logger = logging.getLogger(__name__)

STORE_KEY = "pp_presets"

PRESET_FIELDS = (
    "height_scale", "height_mode", "wireframe", "view_preset", "palette",
    "sea_level", "show_contours", "contour_steps", "sun_azimuth", "sun_elevation",
)


def preset_from_state(name: str, state: SceneState) -> Dict[str, Any]:
    """Record of the current display settings."""
    display = state.display
    record: Dict[str, Any] = {"name": name}
    for key in PRESET_FIELDS:
        value = getattr(display, key)
        record[key] = getattr(value, "value", value)
    return record


def apply_preset(record: Dict[str, Any], state: SceneState) -> SceneState:
    """Apply the fields present in a preset record; absent fields are untouched."""
    changes = {k: record[k] for k in PRESET_FIELDS if record.get(k) is not None}
    return state.update_display(**changes)


class PresetStore:
    """JSON-file preset storage."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else DEFAULT_CONFIG.preset_path

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            return json.load(f)

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)

    def records(self) -> List[Dict[str, Any]]:
        return list(self._read().get(STORE_KEY, []))

    def names(self) -> List[str]:
        return [p.get("name", "") for p in self.records()]

    def get(self, name: str) -> Dict[str, Any]:
        for record in self.records():
            if record.get("name") == name:
                return record
        raise PresetNotFoundError(f"Preset not found: {name}")

    def save(self, name: str, state: SceneState) -> Dict[str, Any]:
        """Store the display settings under a name, replacing a preset of the same name."""
        if not name:
            raise ValueError("Preset name must not be empty")
        data = self._read()
        presets = [p for p in data.get(STORE_KEY, []) if p.get("name") != name]
        record = preset_from_state(name, state)
        presets.append(record)
        data[STORE_KEY] = presets
        self._write(data)
        logger.info(f"Saved preset {name!r} to {self.path}")
        return record

    def apply(self, name: str, state: SceneState) -> SceneState:
        """Return `state` with the named preset applied."""
        return apply_preset(self.get(name), state)

    def delete(self, name: str) -> None:
        data = self._read()
        presets = data.get(STORE_KEY, [])
        kept = [p for p in presets if p.get("name") != name]
        if len(kept) == len(presets):
            raise PresetNotFoundError(f"Preset not found: {name}")
        data[STORE_KEY] = kept
        self._write(data)
