import math

import numpy as np
import pytest

from config import load_config
from scene.nodes import DirectionalLight, Group, Mesh
from scene.tween import TweenManager
from scene.world import create_outdoor_scene, prepare_character, start_ambient_motion


@pytest.fixture
def outdoor():
    return create_outdoor_scene(load_config())


def test_scene_contents(outdoor):
    names = {node.name for node in outdoor.scene.traverse()}

    assert {"ground", "house", "house_body", "roof", "door", "sun", "cloud"} <= names
    assert len(outdoor.trees) == 2
    assert outdoor.scene.background == pytest.approx((0x87 / 255, 0xCE / 255, 0xEB / 255))
    assert outdoor.character is None


def test_ground_lies_flat_and_receives_shadows(outdoor):
    ground = outdoor.ground
    normal = ground.world_matrix()[:3, :3] @ np.array([0.0, 0.0, 1.0])

    assert normal == pytest.approx([0.0, 1.0, 0.0], abs=1e-9)
    assert ground.receive_shadow


def test_trees_share_geometry_at_mirrored_positions(outdoor):
    first, second = outdoor.trees

    assert first.position == pytest.approx([3.0, 0.0, 2.0])
    assert second.position == pytest.approx([-3.0, 0.0, 2.0])
    assert first.find("foliage").geometry is second.find("foliage").geometry
    assert first.find("foliage").position is not second.find("foliage").position


def test_door_hinge_stays_put_while_swinging(outdoor):
    door = outdoor.door
    hinge_before = door.world_position()
    far_edge_before = (door.world_matrix() @ np.array([0.6, 0.0, 0.0, 1.0]))[:3]

    door.rotation[1] = -math.pi / 2
    far_edge_after = (door.world_matrix() @ np.array([0.6, 0.0, 0.0, 1.0]))[:3]

    assert door.world_position() == pytest.approx(hinge_before)
    assert far_edge_before == pytest.approx([0.3, 0.5, -1.99])
    assert far_edge_after == pytest.approx([-0.3, 0.5, -1.39])


def test_sun_light_casts_wide_shadows(outdoor):
    light = outdoor.sun_light

    assert isinstance(light, DirectionalLight)
    assert light.cast_shadow
    assert light.shadow.map_size == (2048, 2048)
    assert (light.shadow.left, light.shadow.right) == (-10.0, 10.0)
    assert outdoor.ambient_light.intensity == pytest.approx(0.4)
    assert outdoor.light_helper.light is light


def test_cloud_drifts_back_and_forth(outdoor):
    tweens = TweenManager()
    start_ambient_motion(outdoor, tweens, load_config())

    tweens.update(8.0)
    assert outdoor.cloud.position[0] == pytest.approx(8.0)
    tweens.update(8.0)
    assert outdoor.cloud.position[0] == pytest.approx(-8.0)
    assert len(tweens) == 1


def test_prepare_character_scales_and_enables_shadows(outdoor):
    model = Group("knight")
    body = model.add(Mesh(outdoor.cloud.geometry, name="knight_body"))
    model.position[:] = (4.0, 4.0, 4.0)

    prepare_character(outdoor, model, load_config())

    assert model.parent is outdoor.scene
    assert model.scale == pytest.approx([0.4, 0.4, 0.4])
    assert model.position == pytest.approx([0.0, 0.0, 0.0])
    assert body.cast_shadow and body.receive_shadow
    assert outdoor.character is model
