"""Mouse-driven orbit controls for the perspective camera."""
from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from .camera import PerspectiveCamera

Vec2 = Tuple[float, float]

EPSILON = 1e-6


class OrbitControls:
    """Rotate around and dolly toward ``camera.target``.

    Input handlers only accumulate deltas; ``update`` applies them once per
    frame. With damping enabled the deltas decay over several frames so the
    camera keeps drifting after the mouse stops.
    """

    def __init__(
        self,
        camera: PerspectiveCamera,
        *,
        enable_damping: bool = False,
        damping_factor: float = 0.05,
        rotate_speed: float = 1.0,
        zoom_speed: float = 1.0,
        min_distance: float = 1.0,
        max_distance: float = 50.0,
        min_polar_angle: float = 0.01,
        max_polar_angle: float = math.pi - 0.01,
    ) -> None:
        self.camera = camera
        self.enable_damping = enable_damping
        self.damping_factor = damping_factor
        self.rotate_speed = rotate_speed
        self.zoom_speed = zoom_speed
        self.min_distance = min_distance
        self.max_distance = max_distance
        self.min_polar_angle = min_polar_angle
        self.max_polar_angle = max_polar_angle
        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._scale = 1.0
        self._drag_anchor: Optional[Vec2] = None

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    @property
    def dragging(self) -> bool:
        return self._drag_anchor is not None

    def begin_drag(self, screen_pos: Vec2) -> None:
        self._drag_anchor = screen_pos

    def drag_to(self, screen_pos: Vec2, viewport_size: Tuple[int, int]) -> None:
        if self._drag_anchor is None:
            return
        height = viewport_size[1] if viewport_size[1] > 0 else 1
        dx = screen_pos[0] - self._drag_anchor[0]
        dy = screen_pos[1] - self._drag_anchor[1]
        self.rotate_left(2.0 * math.pi * dx / height * self.rotate_speed)
        self.rotate_up(2.0 * math.pi * dy / height * self.rotate_speed)
        self._drag_anchor = screen_pos

    def end_drag(self) -> None:
        self._drag_anchor = None

    def rotate_left(self, angle: float) -> None:
        self._delta_theta -= angle

    def rotate_up(self, angle: float) -> None:
        self._delta_phi -= angle

    def dolly(self, scroll_steps: float) -> None:
        """Positive steps (wheel up) move the camera closer."""

        if scroll_steps == 0:
            return
        self._scale *= math.pow(0.95 ** self.zoom_speed, scroll_steps)

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------
    def update(self) -> bool:
        """Apply pending rotation and zoom; return ``True`` if the camera moved."""

        target = np.array(self.camera.target, dtype=np.float64)
        offset = np.array(self.camera.position, dtype=np.float64) - target
        radius = float(np.linalg.norm(offset))
        if radius < EPSILON:
            return False
        theta = math.atan2(offset[0], offset[2])
        phi = math.acos(max(-1.0, min(1.0, offset[1] / radius)))

        if self.enable_damping:
            theta += self._delta_theta * self.damping_factor
            phi += self._delta_phi * self.damping_factor
        else:
            theta += self._delta_theta
            phi += self._delta_phi
        phi = max(self.min_polar_angle, min(self.max_polar_angle, phi))
        radius = max(self.min_distance, min(self.max_distance, radius * self._scale))

        sin_phi = math.sin(phi)
        new_offset = np.array(
            [radius * sin_phi * math.sin(theta), radius * math.cos(phi), radius * sin_phi * math.cos(theta)]
        )
        new_position = target + new_offset
        moved = float(np.linalg.norm(new_position - (target + offset))) > EPSILON
        self.camera.position = (float(new_position[0]), float(new_position[1]), float(new_position[2]))

        if self.enable_damping:
            self._delta_theta *= 1.0 - self.damping_factor
            self._delta_phi *= 1.0 - self.damping_factor
        else:
            self._delta_theta = 0.0
            self._delta_phi = 0.0
        self._scale = 1.0
        return moved
