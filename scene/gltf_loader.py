"""glTF / GLB model loading into scene nodes and animation clips."""
from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from pygltflib import GLTF2

from .animation import AnimationClip, KeyframeTrack
from .geometry import Geometry
from .nodes import Group, Material, Mesh, Node, Skin, SkinnedMesh, decompose_matrix

logger = logging.getLogger(__name__)

TRIANGLES = 4

COMPONENT_DTYPES = {
    5120: np.int8,  # BYTE
    5121: np.uint8,  # UNSIGNED_BYTE
    5122: np.int16,  # SHORT
    5123: np.uint16,  # UNSIGNED_SHORT
    5125: np.uint32,  # UNSIGNED_INT
    5126: np.float32,  # FLOAT
}

COMPONENT_COUNTS = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
    "MAT2": 4,
    "MAT3": 9,
    "MAT4": 16,
}


@dataclass
class GLTFResult:
    scene: Group
    animations: List[AnimationClip] = field(default_factory=list)


class _BufferReader:
    """Resolves buffers (GLB chunk, data URI or sibling file) and decodes accessors."""

    def __init__(self, gltf: GLTF2, base_dir: Optional[Path]) -> None:
        self.gltf = gltf
        self.base_dir = base_dir
        self._buffers: Dict[int, bytes] = {}

    def buffer(self, index: int) -> bytes:
        if index not in self._buffers:
            uri = self.gltf.buffers[index].uri
            if uri is None:
                data = self.gltf.binary_blob()
                if data is None:
                    raise ValueError(f"Buffer {index} has no URI and the file has no binary chunk")
            elif uri.startswith("data:"):
                data = self.gltf.get_data_from_buffer_uri(uri)
            else:
                base = self.base_dir if self.base_dir is not None else Path(".")
                data = (base / uri).read_bytes()
            self._buffers[index] = bytes(data)
        return self._buffers[index]

    def accessor(self, index: int) -> np.ndarray:
        accessors = self.gltf.accessors or []
        if index >= len(accessors):
            raise ValueError(f"Invalid accessor index: {index}")
        accessor = accessors[index]
        if accessor.componentType not in COMPONENT_DTYPES:
            raise ValueError(f"Unsupported accessor component type: {accessor.componentType}")
        dtype = np.dtype(COMPONENT_DTYPES[accessor.componentType]).newbyteorder("<")
        components = COMPONENT_COUNTS[accessor.type]

        if accessor.bufferView is None:
            data = np.zeros((accessor.count, components), dtype=dtype)
        else:
            view = self.gltf.bufferViews[accessor.bufferView]
            raw = self.buffer(view.buffer)
            offset = (view.byteOffset or 0) + (accessor.byteOffset or 0)
            element_size = dtype.itemsize * components
            stride = view.byteStride or element_size
            if stride == element_size:
                end = offset + accessor.count * element_size
                data = np.frombuffer(raw[offset:end], dtype=dtype).reshape(accessor.count, components)
            else:
                # interleaved: slice each element out of its stride
                end = offset + stride * (accessor.count - 1) + element_size
                chunk = np.frombuffer(raw[offset:end] + bytes(stride - element_size), dtype=np.uint8)
                rows = chunk.reshape(accessor.count, stride)[:, :element_size]
                data = np.ascontiguousarray(rows).view(dtype).reshape(accessor.count, components)

        if accessor.normalized and np.issubdtype(dtype, np.integer):
            data = data.astype(np.float32) / float(np.iinfo(dtype).max)
            if np.issubdtype(dtype, np.signedinteger):
                data = np.maximum(data, -1.0)
        if components == 1:
            return data.reshape(-1)
        return data


def _node_names(gltf: GLTF2) -> List[str]:
    names: List[str] = []
    seen = set()
    for index, node in enumerate(gltf.nodes or []):
        name = node.name or f"node_{index}"
        if name in seen:
            name = f"{name}_{index}"
        seen.add(name)
        names.append(name)
    return names


def _apply_transform(target: Node, gltf_node) -> None:
    matrix = gltf_node.matrix
    if matrix is not None and list(matrix) != [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]:
        # glTF matrices are column-major
        translation, rotation, scale = decompose_matrix(np.array(matrix, dtype=np.float64).reshape(4, 4).T)
        target.position[:] = translation
        target.set_quaternion(rotation)
        target.scale[:] = scale
        return
    if gltf_node.translation is not None:
        target.position[:] = gltf_node.translation
    if gltf_node.rotation is not None:
        target.set_quaternion(gltf_node.rotation)
    if gltf_node.scale is not None:
        target.scale[:] = gltf_node.scale


def _material(gltf: GLTF2, index: Optional[int]) -> Material:
    if index is None or not gltf.materials or index >= len(gltf.materials):
        return Material()
    source = gltf.materials[index]
    color = (1.0, 1.0, 1.0)
    pbr = source.pbrMetallicRoughness
    if pbr is not None and pbr.baseColorFactor is not None:
        color = tuple(pbr.baseColorFactor[:3])
    emissive = tuple(source.emissiveFactor[:3]) if source.emissiveFactor else (0.0, 0.0, 0.0)
    return Material(color=color, emissive=emissive)


def _skins(gltf: GLTF2, reader: _BufferReader, nodes: List[Group]) -> List[Skin]:
    skins: List[Skin] = []
    for skin in gltf.skins or []:
        joints = [nodes[j] for j in skin.joints]
        if skin.inverseBindMatrices is not None:
            raw = reader.accessor(skin.inverseBindMatrices).astype(np.float64)
            inverse_bind = raw.reshape(-1, 4, 4).transpose(0, 2, 1)
        else:
            inverse_bind = np.tile(np.identity(4), (len(joints), 1, 1))
        skins.append(Skin(joints, inverse_bind))
    return skins


def _primitive_meshes(
    gltf: GLTF2,
    reader: _BufferReader,
    mesh_index: int,
    owner_name: str,
    skin: Optional[Skin],
) -> List[Mesh]:
    meshes: List[Mesh] = []
    for prim_index, primitive in enumerate(gltf.meshes[mesh_index].primitives):
        mode = primitive.mode if primitive.mode is not None else TRIANGLES
        if mode != TRIANGLES:
            logger.debug("Skipping primitive %d of %s with mode %d", prim_index, owner_name, mode)
            continue
        attributes = primitive.attributes
        if attributes.POSITION is None:
            continue
        positions = reader.accessor(attributes.POSITION)
        normals = reader.accessor(attributes.NORMAL) if attributes.NORMAL is not None else None
        if primitive.indices is not None:
            indices = reader.accessor(primitive.indices).astype(np.uint32)
        else:
            indices = np.arange(len(positions), dtype=np.uint32)
        indices = indices[: len(indices) - len(indices) % 3]
        geometry = Geometry.from_arrays(positions, indices, normals)
        material = _material(gltf, primitive.material)
        name = f"{owner_name}_primitive_{prim_index}"

        joints_attr = getattr(attributes, "JOINTS_0", None)
        weights_attr = getattr(attributes, "WEIGHTS_0", None)
        if skin is not None and joints_attr is not None and weights_attr is not None:
            meshes.append(
                SkinnedMesh(
                    geometry,
                    material,
                    skin,
                    reader.accessor(joints_attr),
                    reader.accessor(weights_attr),
                    name=name,
                )
            )
        else:
            meshes.append(Mesh(geometry, material, name=name))
    return meshes


def _animations(gltf: GLTF2, reader: _BufferReader, names: List[str]) -> List[AnimationClip]:
    clips: List[AnimationClip] = []
    for index, animation in enumerate(gltf.animations or []):
        tracks: List[KeyframeTrack] = []
        for channel in animation.channels:
            path = channel.target.path
            if channel.target.node is None or path not in ("translation", "rotation", "scale"):
                continue
            sampler = animation.samplers[channel.sampler]
            tracks.append(
                KeyframeTrack(
                    node_name=names[channel.target.node],
                    path=path,
                    times=reader.accessor(sampler.input),
                    values=reader.accessor(sampler.output),
                    interpolation=sampler.interpolation or "LINEAR",
                )
            )
        clips.append(AnimationClip(animation.name or f"animation_{index}", tracks))
    return clips


def parse_gltf(gltf: GLTF2, base_dir: Optional[Path] = None) -> GLTFResult:
    """Build the node hierarchy and animation clips described by ``gltf``."""

    reader = _BufferReader(gltf, base_dir)
    names = _node_names(gltf)
    nodes = [Group(name) for name in names]
    for gltf_node, node in zip(gltf.nodes or [], nodes):
        _apply_transform(node, gltf_node)
    for index, gltf_node in enumerate(gltf.nodes or []):
        for child in gltf_node.children or []:
            nodes[index].add(nodes[child])

    skins = _skins(gltf, reader, nodes)
    for index, gltf_node in enumerate(gltf.nodes or []):
        if gltf_node.mesh is None:
            continue
        skin = skins[gltf_node.skin] if gltf_node.skin is not None else None
        for mesh in _primitive_meshes(gltf, reader, gltf_node.mesh, names[index], skin):
            nodes[index].add(mesh)

    root = Group("model")
    scene_index = gltf.scene if gltf.scene is not None else 0
    if gltf.scenes and scene_index < len(gltf.scenes):
        scene = gltf.scenes[scene_index]
        if scene.name:
            root.name = scene.name
        root_indices = scene.nodes or []
    else:
        root_indices = [i for i, node in enumerate(nodes) if node.parent is None]
    for index in root_indices:
        root.add(nodes[index])

    return GLTFResult(root, _animations(gltf, reader, names))


def load_gltf(path: Path) -> GLTFResult:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Model file not found: {path}")
    gltf = GLTF2().load(str(path))
    if gltf is None:
        raise ValueError(f"Could not parse model file: {path}")
    return parse_gltf(gltf, path.parent)


OnLoad = Callable[[GLTFResult], None]
OnError = Callable[[BaseException], None]


class GLTFLoader:
    """Loads models off the main thread and hands results back through ``poll``.

    Callbacks only ever run inside ``poll`` so every scene mutation stays on
    the thread that drives the frame loop.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gltf-loader")
        self._completed: "queue.SimpleQueue[Tuple[Future, Path, OnLoad, Optional[OnError]]]" = queue.SimpleQueue()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def load(self, path: Path, on_load: OnLoad, on_error: Optional[OnError] = None) -> Future:
        path = Path(path)
        logger.info("Loading model %s", path)
        self._in_flight += 1
        future = self._executor.submit(load_gltf, path)
        future.add_done_callback(lambda done: self._completed.put((done, path, on_load, on_error)))
        return future

    def poll(self) -> int:
        """Run callbacks for finished loads; return how many were delivered."""

        delivered = 0
        while True:
            try:
                future, path, on_load, on_error = self._completed.get_nowait()
            except queue.Empty:
                break
            self._in_flight -= 1
            delivered += 1
            error = future.exception()
            if error is not None:
                logger.error("Failed to load model %s: %s", path, error, exc_info=error)
                if on_error is not None:
                    on_error(error)
                continue
            result = future.result()
            logger.info("Loaded model %s (%d animation clips)", path, len(result.animations))
            on_load(result)
        return delivered

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
