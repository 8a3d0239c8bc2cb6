import math

import pytest

from config import load_config
from scene.camera import PerspectiveCamera
from scene.controls import OrbitControls
from scene.frame_loop import FrameLoop, SunOrbit
from scene.tween import TweenManager
from scene.world import create_outdoor_scene


class RecordingMixer:
    def __init__(self):
        self.steps = []

    def update(self, dt):
        self.steps.append(dt)


@pytest.fixture
def loop():
    config = load_config()
    outdoor = create_outdoor_scene(config)
    camera = PerspectiveCamera(position=config.camera_position)
    frames = []
    frame_loop = FrameLoop(
        scene=outdoor.scene,
        camera=camera,
        controls=OrbitControls(camera),
        tweens=TweenManager(),
        sun=outdoor.sun,
        sun_light=outdoor.sun_light,
        render=lambda scene, cam: frames.append((scene, cam)),
    )
    return frame_loop, outdoor, frames


def test_sun_orbit_positions():
    orbit = SunOrbit(radius=6.0, height=5.0, speed=1.0)

    assert orbit.position(0.0) == pytest.approx((6.0, 5.0, 0.0))
    assert orbit.position(math.pi / 2) == pytest.approx((0.0, 5.0, 6.0), abs=1e-9)
    assert orbit.position(math.pi) == pytest.approx((-6.0, 5.0, 0.0), abs=1e-9)


def test_sun_phase_stays_bounded():
    orbit = SunOrbit()
    elapsed = 1.0e9

    assert 0.0 <= orbit.phase(elapsed) < 2 * math.pi
    x, _, z = orbit.position(elapsed)
    assert math.hypot(x, z) == pytest.approx(orbit.radius)


def test_tick_moves_sun_and_light_together(loop):
    frame_loop, outdoor, frames = loop

    frame_loop.tick(0.016, math.pi / 2)

    assert outdoor.sun.position == pytest.approx([0.0, 5.0, 6.0], abs=1e-9)
    assert outdoor.sun_light.position == pytest.approx(outdoor.sun.position)
    assert len(frames) == 1
    assert frames[0][0] is outdoor.scene


def test_tick_advances_every_mixer(loop):
    frame_loop, _, _ = loop
    mixers = [RecordingMixer(), RecordingMixer()]
    frame_loop.mixers.extend(mixers)

    frame_loop.tick(0.02, 1.0)
    frame_loop.tick(0.03, 1.03)

    for mixer in mixers:
        assert mixer.steps == [0.02, 0.03]
    assert frame_loop.frame_count == 2


def test_tick_before_character_load_is_safe(loop):
    frame_loop, _, frames = loop

    for i in range(3):
        frame_loop.tick(1 / 60, i / 60)

    assert len(frames) == 3


def test_tick_runs_tweens_and_controls(loop):
    frame_loop, outdoor, _ = loop
    frame_loop.tweens.to(outdoor.cloud.position, {"x": 8.0}, 1.0)
    start = frame_loop.camera.position
    frame_loop.controls.rotate_left(0.5)

    frame_loop.tick(1.0, 1.0)

    assert outdoor.cloud.position[0] == pytest.approx(8.0)
    assert frame_loop.camera.position != start
