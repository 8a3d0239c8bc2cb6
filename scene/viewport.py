"""Window size bookkeeping shared by the camera and the renderer."""
from __future__ import annotations

import logging
from typing import Tuple

from .camera import PerspectiveCamera

logger = logging.getLogger(__name__)

Size = Tuple[int, int]


class Viewport:
    def __init__(self, camera: PerspectiveCamera, size: Size) -> None:
        self.camera = camera
        self.size: Size = (0, 0)
        self.resize(size)

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def resize(self, size: Size) -> None:
        """Match the camera aspect and surface size to ``size``; safe to repeat."""

        width, height = int(size[0]), int(size[1])
        self.size = (width, height)
        self.camera.aspect = width / height if height > 0 else 1.0
        self.camera.update_projection_matrix()
        logger.debug("Viewport resized to %dx%d", width, height)
