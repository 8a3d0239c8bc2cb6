"""OpenGL context helpers for the cottage scene."""
from __future__ import annotations

from typing import Tuple

from OpenGL import GL as gl


SHADOW_COLOR = (0.0, 0.0, 0.0, 0.35)
HELPER_LINE_WIDTH = 1.5


def initialize_gl(surface_size: Tuple[int, int]) -> None:
    """Configure fixed-function state for lit, depth-tested meshes."""
    width, height = surface_size
    gl.glViewport(0, 0, width, height)

    gl.glEnable(gl.GL_DEPTH_TEST)
    gl.glDepthFunc(gl.GL_LEQUAL)
    gl.glEnable(gl.GL_CULL_FACE)
    gl.glCullFace(gl.GL_BACK)

    gl.glEnable(gl.GL_LIGHTING)
    gl.glEnable(gl.GL_LIGHT0)
    gl.glEnable(gl.GL_NORMALIZE)
    gl.glShadeModel(gl.GL_SMOOTH)
    gl.glLightModeli(gl.GL_LIGHT_MODEL_TWO_SIDE, gl.GL_FALSE)

    gl.glEnable(gl.GL_BLEND)
    gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
    gl.glLineWidth(HELPER_LINE_WIDTH)


def resize_viewport(surface_size: Tuple[int, int]) -> None:
    """Update the viewport when the window changes size."""
    width, height = surface_size
    gl.glViewport(0, 0, width, max(1, height))
