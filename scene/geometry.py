"""Triangle geometry builders for the primitives the scene is assembled from."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Geometry:
    """Indexed triangle list with per-vertex normals."""

    positions: np.ndarray  # (N, 3) float32
    normals: np.ndarray  # (N, 3) float32
    indices: np.ndarray  # (M, 3) uint32

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    def triangles(self) -> np.ndarray:
        """Return the corners of every triangle as an (M, 3, 3) array."""

        return self.positions[self.indices]

    def translated(self, dx: float, dy: float, dz: float) -> "Geometry":
        """Return a copy with every vertex offset by ``(dx, dy, dz)``."""

        offset = np.array([dx, dy, dz], dtype=np.float32)
        return Geometry(self.positions + offset, self.normals, self.indices)

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.positions.min(axis=0), self.positions.max(axis=0)

    @classmethod
    def from_arrays(
        cls,
        positions: np.ndarray,
        indices: Optional[np.ndarray] = None,
        normals: Optional[np.ndarray] = None,
    ) -> "Geometry":
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        if indices is None:
            indices = np.arange(len(positions), dtype=np.uint32)
        indices = np.asarray(indices, dtype=np.uint32).reshape(-1, 3)
        if normals is None:
            normals = compute_vertex_normals(positions, indices)
        normals = np.asarray(normals, dtype=np.float32).reshape(-1, 3)
        return cls(positions, normals, indices)


def compute_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals accumulated from face normals."""

    corners = positions[indices]
    face_normals = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
    normals = np.zeros_like(positions, dtype=np.float64)
    for column in range(3):
        np.add.at(normals, indices[:, column], face_normals)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    lengths[lengths == 0.0] = 1.0
    return (normals / lengths).astype(np.float32)


class _GeometryBuilder:
    """Collects flat-shaded polygons and fans them into triangles."""

    def __init__(self) -> None:
        self.positions: List[Vec3] = []
        self.normals: List[Vec3] = []
        self.indices: List[Tuple[int, int, int]] = []

    def add_polygon(self, points: Sequence[Vec3], outward: Vec3) -> None:
        pts = [np.array(p, dtype=np.float64) for p in points]
        normal = np.zeros(3)
        for i in range(1, len(pts) - 1):
            normal += np.cross(pts[i] - pts[0], pts[i + 1] - pts[0])
        if np.dot(normal, outward) < 0.0:
            pts.reverse()
            normal = -normal
        length = np.linalg.norm(normal)
        if length == 0.0:
            return
        normal /= length
        start = len(self.positions)
        for p in pts:
            self.positions.append(tuple(p))
            self.normals.append(tuple(normal))
        for i in range(1, len(pts) - 1):
            self.indices.append((start, start + i, start + i + 1))

    def build(self) -> Geometry:
        return Geometry(
            np.array(self.positions, dtype=np.float32),
            np.array(self.normals, dtype=np.float32),
            np.array(self.indices, dtype=np.uint32).reshape(-1, 3),
        )


def create_plane_geometry(width: float, height: float) -> Geometry:
    """A quad in the XY plane facing +Z, centred on the origin."""

    hw, hh = width / 2.0, height / 2.0
    builder = _GeometryBuilder()
    builder.add_polygon([(-hw, -hh, 0.0), (hw, -hh, 0.0), (hw, hh, 0.0), (-hw, hh, 0.0)], (0.0, 0.0, 1.0))
    return builder.build()


def create_box_geometry(width: float, height: float, depth: float) -> Geometry:
    hx, hy, hz = width / 2.0, height / 2.0, depth / 2.0
    builder = _GeometryBuilder()
    builder.add_polygon([(hx, -hy, -hz), (hx, hy, -hz), (hx, hy, hz), (hx, -hy, hz)], (1.0, 0.0, 0.0))
    builder.add_polygon([(-hx, -hy, -hz), (-hx, -hy, hz), (-hx, hy, hz), (-hx, hy, -hz)], (-1.0, 0.0, 0.0))
    builder.add_polygon([(-hx, hy, -hz), (-hx, hy, hz), (hx, hy, hz), (hx, hy, -hz)], (0.0, 1.0, 0.0))
    builder.add_polygon([(-hx, -hy, -hz), (hx, -hy, -hz), (hx, -hy, hz), (-hx, -hy, hz)], (0.0, -1.0, 0.0))
    builder.add_polygon([(-hx, -hy, hz), (hx, -hy, hz), (hx, hy, hz), (-hx, hy, hz)], (0.0, 0.0, 1.0))
    builder.add_polygon([(-hx, -hy, -hz), (-hx, hy, -hz), (hx, hy, -hz), (hx, -hy, -hz)], (0.0, 0.0, -1.0))
    return builder.build()


def create_cylinder_geometry(
    radius_top: float,
    radius_bottom: float,
    height: float,
    radial_segments: int = 8,
) -> Geometry:
    """Capped cylinder along Y, centred on the origin; a zero radius makes a cone."""

    half = height / 2.0
    builder = _GeometryBuilder()

    def ring_point(radius: float, angle: float, y: float) -> Vec3:
        return (radius * math.sin(angle), y, radius * math.cos(angle))

    for i in range(radial_segments):
        a0 = 2.0 * math.pi * i / radial_segments
        a1 = 2.0 * math.pi * (i + 1) / radial_segments
        mid = (a0 + a1) / 2.0
        outward = (math.sin(mid), 0.0, math.cos(mid))
        b0 = ring_point(radius_bottom, a0, -half)
        b1 = ring_point(radius_bottom, a1, -half)
        t0 = ring_point(radius_top, a0, half)
        t1 = ring_point(radius_top, a1, half)
        if radius_top <= 0.0:
            builder.add_polygon([b0, b1, t0], outward)
        elif radius_bottom <= 0.0:
            builder.add_polygon([b0, t1, t0], outward)
        else:
            builder.add_polygon([b0, b1, t1, t0], outward)

    angles = [2.0 * math.pi * i / radial_segments for i in range(radial_segments)]
    if radius_top > 0.0:
        builder.add_polygon([ring_point(radius_top, a, half) for a in angles], (0.0, 1.0, 0.0))
    if radius_bottom > 0.0:
        builder.add_polygon([ring_point(radius_bottom, a, -half) for a in angles], (0.0, -1.0, 0.0))
    return builder.build()


def create_cone_geometry(radius: float, height: float, radial_segments: int = 8) -> Geometry:
    return create_cylinder_geometry(0.0, radius, height, radial_segments)


def create_sphere_geometry(radius: float, width_segments: int = 16, height_segments: int = 12) -> Geometry:
    """Smooth UV sphere centred on the origin."""

    positions: List[Vec3] = []
    grid: List[List[int]] = []
    for iy in range(height_segments + 1):
        v = iy / height_segments
        row = []
        for ix in range(width_segments + 1):
            u = ix / width_segments
            phi = u * 2.0 * math.pi
            theta = v * math.pi
            positions.append(
                (
                    -radius * math.cos(phi) * math.sin(theta),
                    radius * math.cos(theta),
                    radius * math.sin(phi) * math.sin(theta),
                )
            )
            row.append(len(positions) - 1)
        grid.append(row)

    indices: List[Tuple[int, int, int]] = []
    for iy in range(height_segments):
        for ix in range(width_segments):
            a = grid[iy][ix + 1]
            b = grid[iy][ix]
            c = grid[iy + 1][ix]
            d = grid[iy + 1][ix + 1]
            if iy != 0:
                indices.append((a, b, d))
            if iy != height_segments - 1:
                indices.append((b, c, d))

    points = np.array(positions, dtype=np.float32)
    normals = points / radius if radius else np.zeros_like(points)
    return Geometry(points, normals.astype(np.float32), np.array(indices, dtype=np.uint32))
