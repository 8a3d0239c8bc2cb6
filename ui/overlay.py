"""On-screen instructions panel drawn over the 3D view."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import pygame
from OpenGL import GL as gl

INSTRUCTIONS = (
    "Click the door to open or close it",
    "Use the left/right arrow keys to change animation",
)


class InstructionsOverlay:
    """Centered panel anchored to the top of the window."""

    def __init__(self, lines: Sequence[str] = INSTRUCTIONS) -> None:
        pygame.font.init()
        self._font = pygame.font.SysFont("Arial", 16)
        self.lines: List[str] = list(lines)
        self.top = 20
        self.padding = (20, 10)
        self.line_spacing = 4
        self._background: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.5)
        self._text_color: Tuple[int, int, int] = (255, 255, 255)

    def text_lines(self, clip_name: Optional[str] = None) -> List[str]:
        lines = list(self.lines)
        if clip_name:
            lines.append(f"Animation: {clip_name}")
        return lines

    def draw(self, window_size: Tuple[int, int], clip_name: Optional[str] = None) -> None:
        width, height = window_size
        surfaces = [self._font.render(line, True, self._text_color) for line in self.text_lines(clip_name)]
        if not surfaces or width <= 0 or height <= 0:
            return
        text_width = max(surface.get_width() for surface in surfaces)
        text_height = sum(surface.get_height() for surface in surfaces)
        text_height += self.line_spacing * (len(surfaces) - 1)
        panel = pygame.Rect(0, self.top, text_width + 2 * self.padding[0], text_height + 2 * self.padding[1])
        panel.centerx = width // 2

        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glPushMatrix()
        gl.glLoadIdentity()
        gl.glOrtho(0, width, height, 0, -1, 1)
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glPushMatrix()
        gl.glLoadIdentity()
        gl.glDisable(gl.GL_DEPTH_TEST)
        gl.glDisable(gl.GL_LIGHTING)
        gl.glDisable(gl.GL_CULL_FACE)

        self._draw_rect(panel, self._background)
        cursor_y = panel.top + self.padding[1]
        for surface in surfaces:
            x = panel.centerx - surface.get_width() * 0.5
            self._draw_surface(x, cursor_y, surface)
            cursor_y += surface.get_height() + self.line_spacing

        gl.glEnable(gl.GL_CULL_FACE)
        gl.glEnable(gl.GL_LIGHTING)
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glPopMatrix()
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glPopMatrix()

    @staticmethod
    def _draw_rect(rect: pygame.Rect, color: Tuple[float, float, float, float]) -> None:
        gl.glColor4f(*color)
        gl.glBegin(gl.GL_QUADS)
        gl.glVertex2f(rect.left, rect.top)
        gl.glVertex2f(rect.right, rect.top)
        gl.glVertex2f(rect.right, rect.bottom)
        gl.glVertex2f(rect.left, rect.bottom)
        gl.glEnd()

    @staticmethod
    def _draw_surface(x: float, y: float, surface: pygame.Surface) -> None:
        data = pygame.image.tobytes(surface, "RGBA", True)
        # raster origin is the bottom-left of the image; the projection is y-down
        gl.glRasterPos2f(x, y + surface.get_height())
        gl.glDrawPixels(
            surface.get_width(),
            surface.get_height(),
            gl.GL_RGBA,
            gl.GL_UNSIGNED_BYTE,
            data,
        )
