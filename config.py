"""Runtime configuration for the cottage scene."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


def _int_pair(value) -> Tuple[int, int]:
    return (int(value[0]), int(value[1]))


def _float_triple(value) -> Tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


CONFIG_FIELDS = [
    ("asset_path", Path, lambda: Path("assets/Characters/gltf/knight.glb")),
    ("window_size", _int_pair, (1280, 720)),
    ("fullscreen", bool, False),
    ("target_fps", int, 60),

    ("camera_position", _float_triple, (6.0, 5.0, 8.0)),
    ("camera_fov", float, 75.0),
    ("camera_near", float, 0.1),
    ("camera_far", float, 100.0),
    ("enable_damping", bool, True),

    ("sun_orbit_radius", float, 6.0),
    ("sun_orbit_height", float, 5.0),
    ("sun_orbit_speed", float, 1.0),     # radians per second
    ("door_tween_duration", float, 1.0),
    ("cloud_drift_duration", float, 8.0),
    ("character_scale", float, 0.4),

    ("log_path", Path, lambda: Path("logs/cottage.log")),
    ("log_level", lambda v: str(v).upper(), "INFO"),
]


@dataclass(frozen=True)
class SceneConfig:
    asset_path: Path
    window_size: Tuple[int, int]
    fullscreen: bool
    target_fps: int
    camera_position: Tuple[float, float, float]
    camera_fov: float
    camera_near: float
    camera_far: float
    enable_damping: bool
    sun_orbit_radius: float
    sun_orbit_height: float
    sun_orbit_speed: float
    door_tween_duration: float
    cloud_drift_duration: float
    character_scale: float
    log_path: Path
    log_level: str


def load_config(config_path: Optional[Path] = None, **overrides) -> SceneConfig:
    """Build a config from defaults, an optional JSON file, then ``overrides``.

    ``None`` overrides are skipped so argparse results can be passed through as-is.
    """
    raw = {}
    if config_path is not None:
        raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
    for key, value in overrides.items():
        if value is not None:
            raw[key] = value

    values = {}
    for entry in CONFIG_FIELDS:
        key = entry[0]
        cast = entry[1]
        default = entry[2] if len(entry) > 2 else None

        if key in raw:
            value = raw[key]
        else:
            value = default() if callable(default) else default

        if value is not None and cast is not None:
            value = cast(value)

        values[key] = value

    return SceneConfig(**values)
