import struct
import time

import numpy as np
import pytest
from pygltflib import (
    GLTF2,
    Accessor,
    Animation,
    AnimationChannel,
    AnimationChannelTarget,
    AnimationSampler,
    Attributes,
    Buffer,
    BufferView,
    Mesh,
    Node,
    Primitive,
    Scene,
)

from scene.gltf_loader import GLTFLoader, _BufferReader, load_gltf, parse_gltf
from scene.nodes import Mesh as SceneMesh

FLOAT = 5126
UNSIGNED_SHORT = 5123


def _blob():
    positions = struct.pack("<9f", 0, 0, 0, 1, 0, 0, 0, 1, 0)
    indices = struct.pack("<3H", 0, 1, 2) + b"\x00\x00"
    times = struct.pack("<2f", 0.0, 1.0)
    outputs = struct.pack("<6f", 1, 0, 0, 1, 2, 0)
    return positions + indices + times + outputs


def _triangle_gltf(uri=None):
    blob = _blob()
    gltf = GLTF2(
        scene=0,
        scenes=[Scene(nodes=[0])],
        nodes=[Node(name="body", mesh=0, translation=[1.0, 0.0, 0.0])],
        meshes=[Mesh(primitives=[Primitive(attributes=Attributes(POSITION=0), indices=1)])],
        buffers=[Buffer(byteLength=len(blob), uri=uri)],
        bufferViews=[
            BufferView(buffer=0, byteOffset=0, byteLength=36),
            BufferView(buffer=0, byteOffset=36, byteLength=6),
            BufferView(buffer=0, byteOffset=44, byteLength=8),
            BufferView(buffer=0, byteOffset=52, byteLength=24),
        ],
        accessors=[
            Accessor(bufferView=0, componentType=FLOAT, count=3, type="VEC3", min=[0, 0, 0], max=[1, 1, 0]),
            Accessor(bufferView=1, componentType=UNSIGNED_SHORT, count=3, type="SCALAR"),
            Accessor(bufferView=2, componentType=FLOAT, count=2, type="SCALAR", min=[0.0], max=[1.0]),
            Accessor(bufferView=3, componentType=FLOAT, count=2, type="VEC3"),
        ],
        animations=[
            Animation(
                name="wave",
                channels=[AnimationChannel(sampler=0, target=AnimationChannelTarget(node=0, path="translation"))],
                samplers=[AnimationSampler(input=2, output=3, interpolation="LINEAR")],
            )
        ],
    )
    if uri is None:
        gltf.set_binary_blob(blob)
    return gltf, blob


def test_parse_builds_hierarchy_and_clips():
    gltf, _ = _triangle_gltf()

    result = parse_gltf(gltf)

    body = result.scene.find("body")
    assert result.scene.name == "model"
    assert body.position == pytest.approx([1.0, 0.0, 0.0])
    meshes = [node for node in body.traverse() if isinstance(node, SceneMesh)]
    assert len(meshes) == 1
    geometry = meshes[0].geometry
    assert geometry.vertex_count == 3
    assert geometry.triangle_count == 1
    assert np.allclose(geometry.normals, [0.0, 0.0, 1.0])

    assert [clip.name for clip in result.animations] == ["wave"]
    track = result.animations[0].tracks[0]
    assert track.node_name == "body"
    assert result.animations[0].duration == pytest.approx(1.0)
    assert track.sample(0.5) == pytest.approx([1.0, 1.0, 0.0])


def test_buffer_read_from_sibling_file(tmp_path):
    gltf, blob = _triangle_gltf(uri="triangle.bin")
    (tmp_path / "triangle.bin").write_bytes(blob)

    result = parse_gltf(gltf, tmp_path)

    assert result.scene.find("body_primitive_0").geometry.triangle_count == 1


def test_invalid_accessor_index_rejected():
    gltf, _ = _triangle_gltf()
    gltf.meshes[0].primitives[0].attributes.POSITION = 9

    with pytest.raises(ValueError):
        parse_gltf(gltf)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_gltf(tmp_path / "knight.glb")


def _poll_until_delivered(loader, timeout=5.0):
    deadline = time.monotonic() + timeout
    delivered = 0
    while delivered == 0 and time.monotonic() < deadline:
        delivered = loader.poll()
        time.sleep(0.01)
    return delivered


def test_async_load_reports_error_on_main_thread(tmp_path):
    loader = GLTFLoader()
    loaded, errors = [], []
    try:
        loader.load(tmp_path / "missing.glb", loaded.append, errors.append)
        assert not errors

        assert _poll_until_delivered(loader) == 1
    finally:
        loader.shutdown(wait=True)

    assert loaded == []
    assert isinstance(errors[0], FileNotFoundError)
    assert loader.in_flight == 0


def test_async_load_delivers_model(tmp_path):
    gltf, _ = _triangle_gltf()
    path = tmp_path / "triangle.glb"
    gltf.save_binary(str(path))
    loader = GLTFLoader()
    loaded = []
    try:
        loader.load(path, loaded.append)
        assert _poll_until_delivered(loader) == 1
    finally:
        loader.shutdown(wait=True)

    assert loaded[0].scene.find("body") is not None
    assert [clip.name for clip in loaded[0].animations] == ["wave"]


def test_normalized_signed_bytes_clamp_to_minus_one():
    blob = struct.pack("<4b", -128, -127, 0, 127)
    gltf = GLTF2(
        buffers=[Buffer(byteLength=len(blob))],
        bufferViews=[BufferView(buffer=0, byteOffset=0, byteLength=len(blob))],
        accessors=[Accessor(bufferView=0, componentType=5120, count=4, type="SCALAR", normalized=True)],
    )
    gltf.set_binary_blob(blob)

    values = _BufferReader(gltf, None).accessor(0)

    assert values == pytest.approx([-1.0, -1.0, 0.0, 1.0])
