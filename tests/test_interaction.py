import math

import numpy as np
import pytest

from config import load_config
from scene.camera import PerspectiveCamera
from scene.character import CharacterAnimationController
from scene.interaction import ClickTracker, DoorState, InteractionController
from scene.tween import TweenManager
from scene.viewport import Viewport
from scene.world import create_outdoor_scene

VIEWPORT = (800, 600)


def _project(camera, point, viewport_size):
    clip = camera.view_projection_matrix() @ np.array([point[0], point[1], point[2], 1.0])
    ndc = clip[:3] / clip[3]
    width, height = viewport_size
    return ((ndc[0] + 1.0) * 0.5 * width, (1.0 - ndc[1]) * 0.5 * height)


@pytest.fixture
def setup():
    config = load_config()
    outdoor = create_outdoor_scene(config)
    camera = PerspectiveCamera(position=config.camera_position, fov=config.camera_fov)
    Viewport(camera, VIEWPORT)
    tweens = TweenManager()
    interaction = InteractionController(
        camera,
        outdoor.door,
        CharacterAnimationController(),
        tweens,
        door_duration=config.door_tween_duration,
    )
    # centre of the door's outward face
    door_face = outdoor.door.world_matrix() @ np.array([0.3, 0.0, 0.05, 1.0])
    door_pixel = _project(camera, door_face[:3], VIEWPORT)
    return interaction, outdoor.door, tweens, door_pixel


def test_door_starts_closed():
    state = DoorState()
    assert not state.is_open
    assert state.target_angle == 0.0


def test_door_state_toggles():
    state = DoorState()
    assert state.toggle() == pytest.approx(-math.pi / 2)
    assert state.is_open
    assert state.toggle() == 0.0
    assert not state.is_open


def test_click_on_door_opens_it(setup):
    interaction, door, tweens, door_pixel = setup

    assert interaction.handle_click(door_pixel, VIEWPORT)
    assert interaction.door_state.is_open
    assert interaction.door_state.target_angle == pytest.approx(-math.pi / 2)

    tweens.update(0.5)
    assert -math.pi / 2 < door.rotation[1] < 0.0
    tweens.update(0.5)
    assert door.rotation[1] == pytest.approx(-math.pi / 2)
    assert len(tweens) == 0


def test_second_click_closes_door(setup):
    interaction, door, tweens, door_pixel = setup

    interaction.handle_click(door_pixel, VIEWPORT)
    assert interaction.handle_click(door_pixel, VIEWPORT)

    assert not interaction.door_state.is_open
    tweens.update(1.0)
    assert door.rotation[1] == pytest.approx(0.0)


def test_click_elsewhere_is_ignored(setup):
    interaction, door, tweens, _ = setup

    assert not interaction.handle_click((0, 0), VIEWPORT)
    assert not interaction.handle_click((VIEWPORT[0] - 1, VIEWPORT[1] - 1), VIEWPORT)

    assert not interaction.door_state.is_open
    assert len(tweens) == 0
    assert door.rotation[1] == 0.0


def test_click_tracker_separates_drags():
    tracker = ClickTracker()
    tracker.begin((100, 100))
    assert tracker.finish((101, 102))

    tracker.begin((100, 100))
    tracker.update((140, 100))
    assert not tracker.finish((140, 100))

    assert not tracker.finish((0, 0))
