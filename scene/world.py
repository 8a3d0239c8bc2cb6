"""Assembly of the outdoor scene: ground, house, trees, sun, cloud and lights."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

from config import SceneConfig

from .geometry import (
    create_box_geometry,
    create_cone_geometry,
    create_cylinder_geometry,
    create_plane_geometry,
    create_sphere_geometry,
)
from .nodes import (
    AmbientLight,
    DirectionalLight,
    DirectionalLightHelper,
    Group,
    Material,
    Mesh,
    Node,
    Scene,
)
from .tween import Tween, TweenManager

SKY_COLOR = 0x87CEEB
GROUND_COLOR = 0x88CC88
WALL_COLOR = 0xBB7744
ROOF_COLOR = 0x884422
DOOR_COLOR = 0x553311
TRUNK_COLOR = 0x8B4513
FOLIAGE_COLOR = 0x228833
SUN_COLOR = 0xFFDD33
CLOUD_COLOR = 0xFFFFFF

CLOUD_START_X = -8.0
CLOUD_END_X = 8.0


@dataclass
class OutdoorScene:
    scene: Scene
    ground: Mesh
    house: Group
    door: Mesh
    trees: List[Group]
    sun: Mesh
    cloud: Mesh
    ambient_light: AmbientLight
    sun_light: DirectionalLight
    light_helper: DirectionalLightHelper
    character: Optional[Node] = field(default=None)


def _create_lights(scene: Scene, config: SceneConfig):
    ambient = AmbientLight(0xFFFFFF, 0.4)
    scene.add(ambient)

    sun_light = DirectionalLight(0xFFFFFF, 1.0)
    sun_light.cast_shadow = True
    sun_light.target.position[:] = (0.0, 0.0, 0.0)
    sun_light.position[:] = (config.sun_orbit_radius, config.sun_orbit_height, 0.0)
    shadow = sun_light.shadow
    shadow.map_size = (2048, 2048)
    shadow.near = 0.5
    shadow.far = 50.0
    shadow.left = -10.0
    shadow.right = 10.0
    shadow.top = 10.0
    shadow.bottom = -10.0

    helper = DirectionalLightHelper(sun_light, 1.0)
    scene.add(helper)
    scene.add(sun_light)
    return ambient, sun_light, helper


def create_ground() -> Mesh:
    ground = Mesh(create_plane_geometry(20, 20), Material(color=GROUND_COLOR), name="ground")
    ground.rotation[0] = -math.pi / 2.0
    ground.receive_shadow = True
    return ground


def create_house() -> Group:
    """House body, roof and a door hinged on its left edge, centred on the origin."""

    house = Group("house")

    body = Mesh(create_box_geometry(2, 1.5, 2), Material(color=WALL_COLOR), name="house_body")
    body.position[1] = 0.75
    body.cast_shadow = True
    body.receive_shadow = True
    house.add(body)

    roof = Mesh(create_cone_geometry(1.6, 1, 4), Material(color=ROOF_COLOR), name="roof")
    roof.position[1] = 2.0
    roof.rotation[1] = math.pi / 4.0
    roof.cast_shadow = True
    house.add(roof)

    # shift the slab so rotating about the local origin swings it on its hinge
    door_geometry = create_box_geometry(0.6, 1, 0.1).translated(0.3, 0.0, 0.0)
    door = Mesh(door_geometry, Material(color=DOOR_COLOR), name="door")
    door.position[:] = (-0.3, 0.5, 1.01)
    door.cast_shadow = True
    house.add(door)
    return house


def create_tree() -> Group:
    trunk = Mesh(create_cylinder_geometry(0.2, 0.2, 1.5, 8), Material(color=TRUNK_COLOR), name="trunk")
    trunk.position[1] = 0.75
    trunk.cast_shadow = True

    foliage = Mesh(create_sphere_geometry(1, 16, 16), Material(color=FOLIAGE_COLOR), name="foliage")
    foliage.position[1] = 2.0
    foliage.cast_shadow = True

    tree = Group("tree")
    tree.add(trunk)
    tree.add(foliage)
    return tree


def create_outdoor_scene(config: SceneConfig) -> OutdoorScene:
    scene = Scene(background=SKY_COLOR)
    ambient, sun_light, helper = _create_lights(scene, config)

    ground = create_ground()
    scene.add(ground)

    house = create_house()
    house.position[:] = (0.0, 0.0, -3.0)
    scene.add(house)
    door = house.find("door")

    tree = create_tree()
    tree.position[:] = (3.0, 0.0, 2.0)
    scene.add(tree)
    second_tree = tree.clone()
    second_tree.position[:] = (-3.0, 0.0, 2.0)
    scene.add(second_tree)

    sun = Mesh(create_sphere_geometry(0.5, 32, 32), Material(emissive=SUN_COLOR), name="sun")
    sun.position[:] = (5.0, 5.0, 0.0)
    scene.add(sun)

    cloud = Mesh(create_box_geometry(2, 0.5, 1), Material(color=CLOUD_COLOR), name="cloud")
    cloud.position[:] = (CLOUD_START_X, 3.0, 0.0)
    cloud.cast_shadow = True
    scene.add(cloud)

    return OutdoorScene(
        scene=scene,
        ground=ground,
        house=house,
        door=door,
        trees=[tree, second_tree],
        sun=sun,
        cloud=cloud,
        ambient_light=ambient,
        sun_light=sun_light,
        light_helper=helper,
    )


def start_ambient_motion(outdoor: OutdoorScene, tweens: TweenManager, config: SceneConfig) -> Tween:
    """Drift the cloud across the sky and back forever."""

    return tweens.to(
        outdoor.cloud.position,
        {"x": CLOUD_END_X},
        config.cloud_drift_duration,
        ease="sine.inOut",
        repeat=-1,
        yoyo=True,
    )


def prepare_character(outdoor: OutdoorScene, model: Node, config: SceneConfig) -> Node:
    """Scale and place a freshly loaded character, enable its shadows, add it."""

    model.scale[:] = config.character_scale
    model.position[:] = (0.0, 0.0, 0.0)
    for node in model.traverse():
        if isinstance(node, Mesh):
            node.cast_shadow = True
            node.receive_shadow = True
    outdoor.scene.add(model)
    outdoor.character = model
    return model
