import math

import numpy as np
import pytest

from scene.geometry import (
    Geometry,
    create_box_geometry,
    create_cone_geometry,
    create_cylinder_geometry,
    create_plane_geometry,
    create_sphere_geometry,
)
from scene.nodes import Group, Mesh, color_to_rgb, decompose_matrix, euler_matrix


def _outward_facing(geometry, centre=(0.0, 0.0, 0.0)):
    triangles = geometry.triangles().astype(np.float64)
    face_normals = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    to_face = triangles.mean(axis=1) - np.asarray(centre)
    return np.all(np.einsum("ij,ij->i", face_normals, to_face) > 0.0)


def test_box_dimensions_and_winding():
    box = create_box_geometry(2, 1.5, 2)
    low, high = box.bounds()

    assert low == pytest.approx([-1.0, -0.75, -1.0])
    assert high == pytest.approx([1.0, 0.75, 1.0])
    assert box.triangle_count == 12
    assert _outward_facing(box)


def test_plane_faces_positive_z():
    plane = create_plane_geometry(20, 20)

    assert plane.triangle_count == 2
    assert np.allclose(plane.normals, [0.0, 0.0, 1.0])


def test_cylinder_and_cone():
    trunk = create_cylinder_geometry(0.2, 0.2, 1.5, 8)
    roof = create_cone_geometry(1.6, 1, 4)

    assert _outward_facing(trunk)
    assert _outward_facing(roof)
    assert roof.bounds()[1][1] == pytest.approx(0.5)
    # four sides plus the square base
    assert roof.triangle_count == 4 + 2


def test_sphere_vertices_on_surface():
    sphere = create_sphere_geometry(0.5, 32, 32)
    radii = np.linalg.norm(sphere.positions, axis=1)

    assert radii == pytest.approx(np.full(len(radii), 0.5), abs=1e-6)
    assert _outward_facing(sphere)


def test_translated_keeps_source():
    box = create_box_geometry(0.6, 1, 0.1)
    shifted = box.translated(0.3, 0.0, 0.0)

    assert shifted.bounds()[0][0] == pytest.approx(0.0)
    assert box.bounds()[0][0] == pytest.approx(-0.3)


def test_from_arrays_computes_normals():
    geometry = Geometry.from_arrays([[0, 0, 0], [1, 0, 0], [0, 0, -1]])

    assert np.allclose(geometry.normals, [0.0, 1.0, 0.0])


def test_color_to_rgb():
    assert color_to_rgb(0xFF8000) == pytest.approx((1.0, 128 / 255, 0.0))
    assert color_to_rgb((0.1, 0.2, 0.3)) == (0.1, 0.2, 0.3)


def test_world_matrix_composes_parents():
    parent = Group("parent")
    parent.position[:] = (0.0, 0.0, -3.0)
    parent.rotation[1] = math.pi / 2
    child = parent.add(Mesh(create_box_geometry(1, 1, 1), name="child"))
    child.position[:] = (1.0, 0.0, 0.0)

    assert child.world_position() == pytest.approx([0.0, 0.0, -4.0], abs=1e-9)


def test_reparenting_moves_child():
    first, second = Group("first"), Group("second")
    child = first.add(Group("child"))

    second.add(child)

    assert first.children == []
    assert child.parent is second


def test_decompose_round_trips_rotation():
    matrix = euler_matrix((0.0, math.pi / 3, 0.0))
    matrix[:3, 3] = (1.0, 2.0, 3.0)

    translation, rotation, scale = decompose_matrix(matrix)

    assert translation == pytest.approx((1.0, 2.0, 3.0))
    assert rotation == pytest.approx((0.0, math.sin(math.pi / 6), 0.0, math.cos(math.pi / 6)))
    assert scale == pytest.approx((1.0, 1.0, 1.0))
