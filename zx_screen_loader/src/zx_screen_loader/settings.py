"""Persisted screen saver settings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping


class ImageSource(Enum):
    SCREENSHOT = 0
    ZXART = 1
    FILE = 2


# Attribute name -> key used in the saved state.
_BOOL_KEYS = {
    "smooth_image": "smooth",
    "scan_lines": "scanline",
    "vignette": "vignette",
    "analog_noise": "analogNoise",
    "crt_curvature": "crtCurvature",
    "analog_drift": "analogDrift",
    "glow_lines": "glowLines",
}


@dataclass
class Effects:
    """Cosmetic post-processing toggles, consumed only by the renderer."""

    smooth_image: bool = False
    scan_lines: bool = False
    vignette: bool = False
    analog_noise: bool = False
    crt_curvature: bool = False
    analog_drift: bool = False
    glow_lines: bool = False


@dataclass
class SaverSettings:
    image_source: ImageSource = ImageSource.SCREENSHOT
    input_path: str | None = None
    effects: Effects = field(default_factory=Effects)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"imageSource": self.image_source.value}
        if self.input_path is not None:
            data["inputPath"] = self.input_path
        for attr, key in _BOOL_KEYS.items():
            data[key] = getattr(self.effects, attr)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "SaverSettings":
        """Restore settings, falling back to defaults for missing or bad keys."""
        if not data:
            return cls()

        try:
            source = ImageSource(int(data.get("imageSource", ImageSource.SCREENSHOT.value)))
        except (TypeError, ValueError):
            source = ImageSource.SCREENSHOT

        input_path = data.get("inputPath")
        if not isinstance(input_path, str) or not input_path:
            input_path = None

        flags = {}
        for item in fields(Effects):
            value = data.get(_BOOL_KEYS[item.name])
            flags[item.name] = value if isinstance(value, bool) else False

        return cls(image_source=source, input_path=input_path, effects=Effects(**flags))


def load_settings(path: str | Path) -> SaverSettings:
    path = Path(path)
    if not path.exists():
        return SaverSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"Failed to read settings: {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must hold a JSON object: {path}")
    return SaverSettings.from_dict(data)


def save_settings(settings: SaverSettings, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2) + "\n", encoding="utf-8")
