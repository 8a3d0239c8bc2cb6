"""Ray casting from screen points into the scene graph."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .camera import PerspectiveCamera
from .nodes import Mesh, Node, SkinnedMesh

Vec2 = Tuple[float, float]

_PARALLEL_EPSILON = 1e-9


def screen_to_ndc(screen_pos: Vec2, viewport_size: Tuple[int, int]) -> Vec2:
    """Map window pixels (origin top-left) to normalized device coordinates."""

    width, height = viewport_size
    if width <= 0 or height <= 0:
        return (0.0, 0.0)
    x = (screen_pos[0] / width) * 2.0 - 1.0
    y = -(screen_pos[1] / height) * 2.0 + 1.0
    return (x, y)


@dataclass
class Intersection:
    distance: float
    point: np.ndarray
    object: Mesh
    face_index: int


def intersect_triangles(
    origin: np.ndarray,
    direction: np.ndarray,
    triangles: np.ndarray,
    near: float = 0.0,
    far: float = math.inf,
) -> Optional[Tuple[float, int]]:
    """Closest ``(distance, face_index)`` hit of a ray against (M, 3, 3) triangles."""

    if len(triangles) == 0:
        return None
    v0 = triangles[:, 0]
    edge1 = triangles[:, 1] - v0
    edge2 = triangles[:, 2] - v0
    p = np.cross(direction, edge2)
    det = np.einsum("ij,ij->i", edge1, p)
    valid = np.abs(det) > _PARALLEL_EPSILON
    inv_det = np.zeros_like(det)
    inv_det[valid] = 1.0 / det[valid]

    tvec = origin - v0
    u = np.einsum("ij,ij->i", tvec, p) * inv_det
    q = np.cross(tvec, edge1)
    v = (q @ direction) * inv_det
    t = np.einsum("ij,ij->i", edge2, q) * inv_det

    hits = valid & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t >= near) & (t <= far)
    if not np.any(hits):
        return None
    candidates = np.where(hits, t, np.inf)
    face = int(np.argmin(candidates))
    return float(candidates[face]), face


class Raycaster:
    """Casts a single ray and reports the meshes it passes through."""

    def __init__(self, near: float = 0.0, far: float = math.inf) -> None:
        self.near = near
        self.far = far
        self.origin = np.zeros(3, dtype=np.float64)
        self.direction = np.array([0.0, 0.0, -1.0])

    def set(self, origin, direction) -> None:
        self.origin = np.asarray(origin, dtype=np.float64)
        norm = np.linalg.norm(direction)
        self.direction = np.asarray(direction, dtype=np.float64) / (norm if norm else 1.0)

    def set_from_camera(self, ndc: Vec2, camera: PerspectiveCamera) -> None:
        origin, direction = camera.ray_from_ndc(ndc)
        self.set(origin, direction)

    def intersect_object(self, node: Node, recursive: bool = True) -> List[Intersection]:
        return self.intersect_objects([node], recursive=recursive)

    def intersect_objects(self, objects: Iterable[Node], recursive: bool = True) -> List[Intersection]:
        """Return hits sorted nearest first; invisible meshes are skipped."""

        results: List[Intersection] = []
        for root in objects:
            candidates = root.traverse() if recursive else [root]
            for node in candidates:
                if not isinstance(node, Mesh) or not node.visible:
                    continue
                hit = self._intersect_mesh(node)
                if hit is not None:
                    results.append(hit)
        results.sort(key=lambda hit: hit.distance)
        return results

    def _intersect_mesh(self, mesh: Mesh) -> Optional[Intersection]:
        geometry = mesh.skinned_geometry() if isinstance(mesh, SkinnedMesh) else mesh.geometry
        if geometry.triangle_count == 0:
            return None
        world = mesh.world_matrix()
        positions = geometry.positions.astype(np.float64)
        homogeneous = np.hstack([positions, np.ones((len(positions), 1))])
        world_positions = (homogeneous @ world.T)[:, :3]
        triangles = world_positions[geometry.indices]
        hit = intersect_triangles(self.origin, self.direction, triangles, self.near, self.far)
        if hit is None:
            return None
        distance, face = hit
        return Intersection(distance, self.origin + self.direction * distance, mesh, face)
