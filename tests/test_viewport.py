import numpy as np
import pytest

from scene.camera import PerspectiveCamera
from scene.viewport import Viewport


def test_resize_updates_aspect_and_projection():
    camera = PerspectiveCamera(position=(6.0, 5.0, 8.0))
    viewport = Viewport(camera, (800, 600))

    viewport.resize((1920, 1080))

    assert viewport.size == (1920, 1080)
    assert camera.aspect == pytest.approx(1920 / 1080)
    f = camera.projection_matrix()[1, 1]
    assert camera.projection_matrix()[0, 0] == pytest.approx(f / camera.aspect)


def test_resize_is_idempotent():
    camera = PerspectiveCamera(position=(6.0, 5.0, 8.0))
    viewport = Viewport(camera, (800, 600))

    viewport.resize((1024, 768))
    once = (camera.aspect, camera.projection_matrix().copy(), viewport.size)
    viewport.resize((1024, 768))

    assert camera.aspect == once[0]
    assert np.array_equal(camera.projection_matrix(), once[1])
    assert viewport.size == once[2]


def test_zero_height_does_not_divide_by_zero():
    camera = PerspectiveCamera(position=(6.0, 5.0, 8.0))
    viewport = Viewport(camera, (640, 0))

    assert camera.aspect == 1.0
    assert viewport.height == 0
