import math

import numpy as np
import pytest

from scene.camera import PerspectiveCamera
from scene.controls import OrbitControls


def _distance(camera):
    return float(np.linalg.norm(np.subtract(camera.position, camera.target)))


def test_update_without_input_keeps_camera():
    camera = PerspectiveCamera(position=(6.0, 5.0, 8.0))
    controls = OrbitControls(camera)

    assert not controls.update()
    assert camera.position == pytest.approx((6.0, 5.0, 8.0))


def test_rotate_left_orbits_at_constant_distance():
    camera = PerspectiveCamera(position=(0.0, 0.0, 10.0))
    controls = OrbitControls(camera)

    controls.rotate_left(math.pi / 2)
    assert controls.update()

    assert camera.position == pytest.approx((-10.0, 0.0, 0.0), abs=1e-9)
    assert _distance(camera) == pytest.approx(10.0)


def test_drag_across_full_height_turns_a_full_circle():
    camera = PerspectiveCamera(position=(0.0, 0.0, 10.0))
    controls = OrbitControls(camera)

    controls.begin_drag((100, 100))
    controls.drag_to((700, 100), (800, 600))
    controls.end_drag()
    controls.update()

    assert camera.position == pytest.approx((0.0, 0.0, 10.0), abs=1e-9)
    assert not controls.dragging


def test_polar_angle_is_clamped():
    camera = PerspectiveCamera(position=(0.0, 0.0, 10.0))
    controls = OrbitControls(camera)

    controls.rotate_up(math.pi)
    controls.update()

    assert camera.position[1] == pytest.approx(10.0 * math.cos(controls.min_polar_angle))


def test_dolly_zooms_in_and_respects_limits():
    camera = PerspectiveCamera(position=(0.0, 0.0, 10.0))
    controls = OrbitControls(camera, min_distance=2.0, max_distance=12.0)

    controls.dolly(1)
    controls.update()
    assert _distance(camera) == pytest.approx(9.5)

    controls.dolly(-100)
    controls.update()
    assert _distance(camera) == pytest.approx(12.0)

    controls.dolly(100)
    controls.update()
    assert _distance(camera) == pytest.approx(2.0)


def test_damping_spreads_motion_over_frames():
    camera = PerspectiveCamera(position=(0.0, 0.0, 10.0))
    controls = OrbitControls(camera, enable_damping=True, damping_factor=0.5)

    controls.rotate_left(1.0)
    controls.update()
    first = math.atan2(camera.position[0], camera.position[2])
    controls.update()
    second = math.atan2(camera.position[0], camera.position[2])

    assert first == pytest.approx(-0.5)
    assert second == pytest.approx(-0.75)
    assert controls.update()
