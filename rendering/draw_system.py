"""Fixed-function OpenGL renderer for the cottage scene graph."""
from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
from OpenGL import GL as gl

from scene.camera import PerspectiveCamera
from scene.geometry import Geometry
from scene.nodes import (
    AmbientLight,
    DirectionalLight,
    DirectionalLightHelper,
    Mesh,
    Node,
    Scene,
    SkinnedMesh,
)
from .opengl_context import SHADOW_COLOR

GROUND_HEIGHT = 0.01
MIN_SHADOW_ELEVATION = 0.05


def planar_shadow_matrix(light_direction: np.ndarray, plane_height: float = GROUND_HEIGHT) -> np.ndarray:
    """Flatten geometry onto the plane ``y = plane_height`` along the light direction."""

    plane = np.array([0.0, 1.0, 0.0, -plane_height])
    light = np.array([light_direction[0], light_direction[1], light_direction[2], 0.0])
    return np.dot(plane, light) * np.identity(4) - np.outer(light, plane)


def _gl_matrix(matrix: np.ndarray) -> np.ndarray:
    return np.transpose(matrix).astype(np.float32).flatten()


class SceneRenderer:
    """Draws every visible mesh, planar shadows and light helpers."""

    def __init__(self) -> None:
        self.shadow_color: Tuple[float, float, float, float] = SHADOW_COLOR
        self.draw_shadows = True
        self.draw_helpers = True

    def render(self, scene: Scene, camera: PerspectiveCamera) -> None:
        gl.glClearColor(*scene.background, 1.0)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
        self._apply_camera(camera)

        ambient: List[AmbientLight] = []
        directional: Optional[DirectionalLight] = None
        helpers: List[DirectionalLightHelper] = []
        meshes: List[Mesh] = []
        for node in scene.traverse():
            if not self._is_visible(node):
                continue
            if isinstance(node, AmbientLight):
                ambient.append(node)
            elif isinstance(node, DirectionalLight) and directional is None:
                directional = node
            elif isinstance(node, DirectionalLightHelper):
                helpers.append(node)
            elif isinstance(node, Mesh):
                meshes.append(node)

        self._apply_lights(ambient, directional)
        for mesh in meshes:
            self._draw_mesh(mesh)

        if self.draw_shadows and directional is not None and directional.cast_shadow:
            self._draw_planar_shadows(meshes, directional)
        if self.draw_helpers:
            for helper in helpers:
                self._draw_light_helper(helper)

    @staticmethod
    def _is_visible(node: Node) -> bool:
        current: Optional[Node] = node
        while current is not None:
            if not current.visible:
                return False
            current = current.parent
        return True

    def _apply_camera(self, camera: PerspectiveCamera) -> None:
        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glLoadMatrixf(_gl_matrix(camera.projection_matrix()))
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glLoadMatrixf(_gl_matrix(camera.view_matrix()))

    def _apply_lights(self, ambient: List[AmbientLight], directional: Optional[DirectionalLight]) -> None:
        total = [0.0, 0.0, 0.0]
        for light in ambient:
            for channel in range(3):
                total[channel] += light.color[channel] * light.intensity
        gl.glLightModelfv(gl.GL_LIGHT_MODEL_AMBIENT, (*total, 1.0))

        if directional is None:
            gl.glDisable(gl.GL_LIGHT0)
            return
        gl.glEnable(gl.GL_LIGHT0)
        direction = directional.direction()
        diffuse = tuple(c * directional.intensity for c in directional.color)
        # w == 0 makes the light directional; transformed by the current view matrix
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_POSITION, (float(direction[0]), float(direction[1]), float(direction[2]), 0.0))
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_AMBIENT, (0.0, 0.0, 0.0, 1.0))
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_DIFFUSE, (*diffuse, 1.0))
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_SPECULAR, (0.0, 0.0, 0.0, 1.0))

    @staticmethod
    def _mesh_geometry(mesh: Mesh) -> Geometry:
        if isinstance(mesh, SkinnedMesh):
            return mesh.skinned_geometry()
        return mesh.geometry

    @staticmethod
    def _submit(geometry: Geometry, with_normals: bool = True) -> None:
        positions = np.ascontiguousarray(geometry.positions, dtype=np.float32)
        indices = np.ascontiguousarray(geometry.indices, dtype=np.uint32)
        gl.glEnableClientState(gl.GL_VERTEX_ARRAY)
        gl.glVertexPointer(3, gl.GL_FLOAT, 0, positions)
        if with_normals:
            normals = np.ascontiguousarray(geometry.normals, dtype=np.float32)
            gl.glEnableClientState(gl.GL_NORMAL_ARRAY)
            gl.glNormalPointer(gl.GL_FLOAT, 0, normals)
        gl.glDrawElements(gl.GL_TRIANGLES, indices.size, gl.GL_UNSIGNED_INT, indices)
        if with_normals:
            gl.glDisableClientState(gl.GL_NORMAL_ARRAY)
        gl.glDisableClientState(gl.GL_VERTEX_ARRAY)

    def _draw_mesh(self, mesh: Mesh) -> None:
        geometry = self._mesh_geometry(mesh)
        if geometry.triangle_count == 0:
            return
        material = mesh.material
        gl.glMaterialfv(gl.GL_FRONT, gl.GL_AMBIENT_AND_DIFFUSE, (*material.color, 1.0))
        gl.glMaterialfv(gl.GL_FRONT, gl.GL_EMISSION, (*material.emissive, 1.0))
        gl.glPushMatrix()
        gl.glMultMatrixf(_gl_matrix(mesh.world_matrix()))
        self._submit(geometry)
        gl.glPopMatrix()

    def _draw_planar_shadows(self, meshes: List[Mesh], light: DirectionalLight) -> None:
        direction = light.direction()
        if direction[1] < MIN_SHADOW_ELEVATION:
            return
        projection = planar_shadow_matrix(direction)

        gl.glDisable(gl.GL_LIGHTING)
        gl.glDisable(gl.GL_CULL_FACE)
        gl.glDepthMask(gl.GL_FALSE)
        gl.glEnable(gl.GL_POLYGON_OFFSET_FILL)
        gl.glPolygonOffset(-1.0, -1.0)
        gl.glColor4f(*self.shadow_color)
        for mesh in meshes:
            if not mesh.cast_shadow:
                continue
            geometry = self._mesh_geometry(mesh)
            if geometry.triangle_count == 0:
                continue
            gl.glPushMatrix()
            gl.glMultMatrixf(_gl_matrix(projection @ mesh.world_matrix()))
            self._submit(geometry, with_normals=False)
            gl.glPopMatrix()
        gl.glDisable(gl.GL_POLYGON_OFFSET_FILL)
        gl.glDepthMask(gl.GL_TRUE)
        gl.glEnable(gl.GL_CULL_FACE)
        gl.glEnable(gl.GL_LIGHTING)

    def _draw_light_helper(self, helper: DirectionalLightHelper) -> None:
        light = helper.light
        origin = light.world_position()
        target = light.target.world_position()
        forward = target - origin
        if np.linalg.norm(forward) == 0:
            return
        forward = forward / np.linalg.norm(forward)
        up = np.array([0.0, 1.0, 0.0]) if abs(forward[1]) < 0.99 else np.array([1.0, 0.0, 0.0])
        side = np.cross(forward, up)
        side /= np.linalg.norm(side)
        true_up = np.cross(side, forward)
        half = helper.size
        corners = [
            origin + (side + true_up) * half,
            origin + (-side + true_up) * half,
            origin + (-side - true_up) * half,
            origin + (side - true_up) * half,
        ]

        gl.glDisable(gl.GL_LIGHTING)
        gl.glColor4f(*helper.color, 1.0)
        gl.glBegin(gl.GL_LINE_LOOP)
        for corner in corners:
            gl.glVertex3f(*corner)
        gl.glEnd()
        gl.glBegin(gl.GL_LINES)
        gl.glVertex3f(*origin)
        gl.glVertex3f(*target)
        gl.glEnd()
        gl.glEnable(gl.GL_LIGHTING)
