"""Perspective camera for the cottage scene."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]


def _normalize(vec: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vec)
    if norm == 0:
        return vec
    return vec / norm


def _look_at_matrix(position: Vec3, target: Vec3, up: Vec3) -> np.ndarray:
    pos = np.array(position, dtype=np.float64)
    tgt = np.array(target, dtype=np.float64)
    up_vec = np.array(up, dtype=np.float64)

    forward = _normalize(tgt - pos)
    side = _normalize(np.cross(forward, up_vec))
    true_up = np.cross(side, forward)

    view = np.identity(4, dtype=np.float64)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -np.dot(side, pos)
    view[1, 3] = -np.dot(true_up, pos)
    view[2, 3] = np.dot(forward, pos)
    return view


def _perspective_matrix(fov_degrees: float, aspect: float, near: float, far: float) -> np.ndarray:
    perspective = np.zeros((4, 4), dtype=np.float64)
    f = 1.0 / math.tan(math.radians(fov_degrees) / 2.0)
    perspective[0, 0] = f / aspect
    perspective[1, 1] = f
    perspective[2, 2] = (far + near) / (near - far)
    perspective[2, 3] = (2 * far * near) / (near - far)
    perspective[3, 2] = -1.0
    return perspective


@dataclass
class PerspectiveCamera:
    position: Vec3
    target: Vec3 = (0.0, 0.0, 0.0)
    fov: float = 75.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 100.0
    up: Vec3 = (0.0, 1.0, 0.0)
    _projection: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.update_projection_matrix()

    def update_projection_matrix(self) -> None:
        """Rebuild the cached projection after ``fov``/``aspect``/clip changes."""

        self._projection = _perspective_matrix(self.fov, self.aspect, self.near, self.far)

    def projection_matrix(self) -> np.ndarray:
        return self._projection

    def view_matrix(self) -> np.ndarray:
        return _look_at_matrix(self.position, self.target, self.up)

    def view_projection_matrix(self) -> np.ndarray:
        return self.projection_matrix() @ self.view_matrix()

    def ray_from_ndc(self, ndc: Vec2) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(origin, direction)`` of the ray through normalized device coords."""

        inv_vp = np.linalg.inv(self.view_projection_matrix())
        far_point = inv_vp @ np.array([ndc[0], ndc[1], 1.0, 1.0])
        if far_point[3] != 0:
            far_point /= far_point[3]

        origin = np.array(self.position, dtype=np.float64)
        direction = _normalize(far_point[:3] - origin)
        return origin, direction
