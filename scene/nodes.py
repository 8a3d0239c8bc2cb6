"""Scene graph nodes: groups, meshes, lights and the math that places them."""
from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .geometry import Geometry

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]
Color = Tuple[float, float, float]
ColorLike = Union[int, Sequence[float]]


def color_to_rgb(value: ColorLike) -> Color:
    """Accept ``0xRRGGBB`` ints or float triples and return floats in 0..1."""

    if isinstance(value, int):
        return (
            ((value >> 16) & 0xFF) / 255.0,
            ((value >> 8) & 0xFF) / 255.0,
            (value & 0xFF) / 255.0,
        )
    return (float(value[0]), float(value[1]), float(value[2]))


# ---------------------------------------------------------------------------
# Transform helpers (column vectors, ``matrix @ point``)
# ---------------------------------------------------------------------------
def translation_matrix(offset: Sequence[float]) -> np.ndarray:
    m = np.identity(4, dtype=np.float64)
    m[:3, 3] = offset[:3]
    return m


def scale_matrix(scale: Sequence[float]) -> np.ndarray:
    m = np.identity(4, dtype=np.float64)
    m[0, 0], m[1, 1], m[2, 2] = scale[0], scale[1], scale[2]
    return m


def euler_matrix(rotation: Sequence[float]) -> np.ndarray:
    """Rotation for intrinsic XYZ Euler angles in radians."""

    rx, ry, rz = rotation[0], rotation[1], rotation[2]
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    x_axis = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    y_axis = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    z_axis = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    m = np.identity(4, dtype=np.float64)
    m[:3, :3] = x_axis @ y_axis @ z_axis
    return m


def quaternion_matrix(q: Sequence[float]) -> np.ndarray:
    x, y, z, w = q[0], q[1], q[2], q[3]
    m = np.identity(4, dtype=np.float64)
    m[:3, :3] = [
        [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)],
        [2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)],
        [2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)],
    ]
    return m


def matrix_to_quaternion(m: np.ndarray) -> Quat:
    """Extract an (x, y, z, w) quaternion from a pure rotation block."""

    m00, m01, m02 = m[0, 0], m[0, 1], m[0, 2]
    m10, m11, m12 = m[1, 0], m[1, 1], m[1, 2]
    m20, m21, m22 = m[2, 0], m[2, 1], m[2, 2]
    trace = m00 + m11 + m22
    if trace > 0.0:
        s = 0.5 / math.sqrt(trace + 1.0)
        return ((m21 - m12) * s, (m02 - m20) * s, (m10 - m01) * s, 0.25 / s)
    if m00 > m11 and m00 > m22:
        s = 2.0 * math.sqrt(1.0 + m00 - m11 - m22)
        return (0.25 * s, (m01 + m10) / s, (m02 + m20) / s, (m21 - m12) / s)
    if m11 > m22:
        s = 2.0 * math.sqrt(1.0 + m11 - m00 - m22)
        return ((m01 + m10) / s, 0.25 * s, (m12 + m21) / s, (m02 - m20) / s)
    s = 2.0 * math.sqrt(1.0 + m22 - m00 - m11)
    return ((m02 + m20) / s, (m12 + m21) / s, 0.25 * s, (m10 - m01) / s)


def decompose_matrix(m: np.ndarray) -> Tuple[Vec3, Quat, Vec3]:
    """Split an affine matrix into translation, rotation quaternion and scale."""

    translation = (float(m[0, 3]), float(m[1, 3]), float(m[2, 3]))
    sx = float(np.linalg.norm(m[:3, 0]))
    sy = float(np.linalg.norm(m[:3, 1]))
    sz = float(np.linalg.norm(m[:3, 2]))
    if np.linalg.det(m[:3, :3]) < 0:
        sx = -sx
    rotation = np.identity(4, dtype=np.float64)
    rotation[:3, 0] = m[:3, 0] / (sx or 1.0)
    rotation[:3, 1] = m[:3, 1] / (sy or 1.0)
    rotation[:3, 2] = m[:3, 2] / (sz or 1.0)
    return translation, matrix_to_quaternion(rotation), (sx, sy, sz)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------
class Node:
    """A positioned, oriented and scaled object owning its children."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.position = np.zeros(3, dtype=np.float64)
        self.rotation = np.zeros(3, dtype=np.float64)
        self.quaternion: Optional[np.ndarray] = None
        self.scale = np.ones(3, dtype=np.float64)
        self.visible = True
        self.parent: Optional[Node] = None
        self.children: List[Node] = []

    def add(self, child: "Node") -> "Node":
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: "Node") -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def traverse(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.traverse()

    def find(self, name: str) -> Optional["Node"]:
        for node in self.traverse():
            if node.name == name:
                return node
        return None

    def set_quaternion(self, q: Sequence[float]) -> None:
        self.quaternion = np.array(q[:4], dtype=np.float64)

    def local_matrix(self) -> np.ndarray:
        if self.quaternion is not None:
            rotation = quaternion_matrix(self.quaternion)
        else:
            rotation = euler_matrix(self.rotation)
        return translation_matrix(self.position) @ rotation @ scale_matrix(self.scale)

    def world_matrix(self) -> np.ndarray:
        if self.parent is None:
            return self.local_matrix()
        return self.parent.world_matrix() @ self.local_matrix()

    def world_position(self) -> np.ndarray:
        return self.world_matrix()[:3, 3].copy()

    def clone(self) -> "Node":
        """Copy this subtree; geometry and materials stay shared."""

        twin = copy.copy(self)
        twin.parent = None
        twin.position = self.position.copy()
        twin.rotation = self.rotation.copy()
        twin.scale = self.scale.copy()
        twin.quaternion = None if self.quaternion is None else self.quaternion.copy()
        twin.children = []
        for child in self.children:
            twin.add(child.clone())
        return twin

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Group(Node):
    pass


class Scene(Node):
    def __init__(self, background: ColorLike = 0x000000) -> None:
        super().__init__("scene")
        self.background: Color = color_to_rgb(background)


@dataclass
class Material:
    color: ColorLike = 0xFFFFFF
    emissive: ColorLike = 0x000000

    def __post_init__(self) -> None:
        self.color = color_to_rgb(self.color)
        self.emissive = color_to_rgb(self.emissive)


class Mesh(Node):
    def __init__(self, geometry: Geometry, material: Optional[Material] = None, name: str = "") -> None:
        super().__init__(name)
        self.geometry = geometry
        self.material = material if material is not None else Material()
        self.cast_shadow = False
        self.receive_shadow = False


@dataclass
class Skin:
    joints: List[Node]
    inverse_bind_matrices: np.ndarray  # (J, 4, 4)


class SkinnedMesh(Mesh):
    """Mesh deformed on the CPU by the world transforms of its skin joints."""

    def __init__(
        self,
        geometry: Geometry,
        material: Optional[Material],
        skin: Skin,
        joint_indices: np.ndarray,
        joint_weights: np.ndarray,
        name: str = "",
    ) -> None:
        super().__init__(geometry, material, name)
        self.skin = skin
        self.joint_indices = joint_indices.astype(np.int64)
        self.joint_weights = joint_weights.astype(np.float64)

    def joint_matrices(self) -> np.ndarray:
        inverse_mesh = np.linalg.inv(self.world_matrix())
        return np.stack(
            [
                inverse_mesh @ joint.world_matrix() @ self.skin.inverse_bind_matrices[index]
                for index, joint in enumerate(self.skin.joints)
            ]
        )

    def skinned_geometry(self) -> Geometry:
        matrices = self.joint_matrices()
        blend = np.einsum("nk,nkij->nij", self.joint_weights, matrices[self.joint_indices])
        positions = self.geometry.positions.astype(np.float64)
        homogeneous = np.hstack([positions, np.ones((len(positions), 1))])
        skinned = np.einsum("nij,nj->ni", blend, homogeneous)[:, :3]
        normals = np.einsum("nij,nj->ni", blend[:, :3, :3], self.geometry.normals.astype(np.float64))
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        lengths[lengths == 0.0] = 1.0
        return Geometry(
            skinned.astype(np.float32),
            (normals / lengths).astype(np.float32),
            self.geometry.indices,
        )


# ---------------------------------------------------------------------------
# Lights
# ---------------------------------------------------------------------------
class AmbientLight(Node):
    def __init__(self, color: ColorLike = 0xFFFFFF, intensity: float = 1.0) -> None:
        super().__init__("ambient_light")
        self.color: Color = color_to_rgb(color)
        self.intensity = intensity


@dataclass
class ShadowSettings:
    map_size: Tuple[int, int] = (512, 512)
    near: float = 0.5
    far: float = 500.0
    left: float = -5.0
    right: float = 5.0
    top: float = 5.0
    bottom: float = -5.0


class DirectionalLight(Node):
    """Parallel light shining from its position toward ``target``."""

    def __init__(self, color: ColorLike = 0xFFFFFF, intensity: float = 1.0) -> None:
        super().__init__("directional_light")
        self.color: Color = color_to_rgb(color)
        self.intensity = intensity
        self.target = Node("directional_light_target")
        self.cast_shadow = False
        self.shadow = ShadowSettings()

    def direction(self) -> np.ndarray:
        """Unit vector from the target toward the light."""

        offset = self.world_position() - self.target.world_position()
        norm = np.linalg.norm(offset)
        if norm == 0:
            return np.array([0.0, 1.0, 0.0])
        return offset / norm


class DirectionalLightHelper(Node):
    def __init__(self, light: DirectionalLight, size: float = 1.0, color: ColorLike = 0xFFFF00) -> None:
        super().__init__("directional_light_helper")
        self.light = light
        self.size = size
        self.color: Color = color_to_rgb(color)
