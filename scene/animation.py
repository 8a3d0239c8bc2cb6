"""Keyframe clips and the mixer that plays them onto a node hierarchy."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .nodes import Node

PATHS = ("translation", "rotation", "scale")
INTERPOLATIONS = ("LINEAR", "STEP", "CUBICSPLINE")


def quat_normalize(q: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(q))
    if norm <= 0.0:
        return np.array([0.0, 0.0, 0.0, 1.0])
    return q / norm


def quat_slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """Shortest-arc slerp between (x, y, z, w) quaternions."""

    t = min(1.0, max(0.0, t))
    q0n = quat_normalize(np.asarray(q0, dtype=np.float64))
    q1n = quat_normalize(np.asarray(q1, dtype=np.float64))

    d = float(np.dot(q0n, q1n))
    if d < 0.0:
        q1n = -q1n
        d = -d

    # nearly parallel: lerp + normalize
    if d > 0.9995:
        return quat_normalize(q0n + (q1n - q0n) * t)

    theta_0 = math.acos(min(1.0, max(-1.0, d)))
    sin_theta_0 = math.sin(theta_0)
    if abs(sin_theta_0) < 1e-12:
        return q0n

    theta = theta_0 * t
    sin_theta = math.sin(theta)
    s0 = math.cos(theta) - d * sin_theta / sin_theta_0
    s1 = sin_theta / sin_theta_0
    return quat_normalize(q0n * s0 + q1n * s1)


@dataclass(eq=False)
class KeyframeTrack:
    """Animated TRS channel of one named node.

    For ``CUBICSPLINE`` the values hold ``(in_tangent, value, out_tangent)``
    triplets per key, as stored in glTF.
    """

    node_name: str
    path: str
    times: np.ndarray
    values: np.ndarray
    interpolation: str = "LINEAR"

    def __post_init__(self) -> None:
        if self.path not in PATHS:
            raise ValueError(f"Unsupported track path {self.path!r}")
        if self.interpolation not in INTERPOLATIONS:
            raise ValueError(f"Unsupported interpolation {self.interpolation!r}")
        self.times = np.asarray(self.times, dtype=np.float64).reshape(-1)
        width = 4 if self.path == "rotation" else 3
        self.values = np.asarray(self.values, dtype=np.float64).reshape(-1, width)

    @property
    def duration(self) -> float:
        return float(self.times[-1]) if len(self.times) else 0.0

    def _key_value(self, index: int) -> np.ndarray:
        if self.interpolation == "CUBICSPLINE":
            return self.values[index * 3 + 1]
        return self.values[index]

    def _finish(self, value: np.ndarray) -> np.ndarray:
        if self.path == "rotation":
            return quat_normalize(value)
        return value.copy()

    def sample(self, t: float) -> np.ndarray:
        count = len(self.times)
        if count == 0:
            if self.path == "rotation":
                return np.array([0.0, 0.0, 0.0, 1.0])
            return np.ones(3) if self.path == "scale" else np.zeros(3)
        if count == 1 or t <= self.times[0]:
            return self._finish(self._key_value(0))
        if t >= self.times[-1]:
            return self._finish(self._key_value(count - 1))

        i1 = int(np.searchsorted(self.times, t, side="right"))
        i0 = i1 - 1
        t0, t1 = self.times[i0], self.times[i1]
        span = t1 - t0
        if span <= 0.0:
            return self._finish(self._key_value(i0))
        alpha = (t - t0) / span

        if self.interpolation == "STEP":
            return self._finish(self._key_value(i0))
        if self.interpolation == "CUBICSPLINE":
            p0 = self.values[i0 * 3 + 1]
            m0 = self.values[i0 * 3 + 2] * span
            p1 = self.values[i1 * 3 + 1]
            m1 = self.values[i1 * 3] * span
            a2, a3 = alpha * alpha, alpha * alpha * alpha
            value = (
                (2 * a3 - 3 * a2 + 1) * p0
                + (a3 - 2 * a2 + alpha) * m0
                + (-2 * a3 + 3 * a2) * p1
                + (a3 - a2) * m1
            )
            return self._finish(value)
        if self.path == "rotation":
            return quat_slerp(self.values[i0], self.values[i1], alpha)
        return self.values[i0] + (self.values[i1] - self.values[i0]) * alpha


@dataclass(eq=False)
class AnimationClip:
    name: str
    tracks: List[KeyframeTrack] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return max((track.duration for track in self.tracks), default=0.0)


class AnimationAction:
    """Playback state of one clip on one mixer; loops forever while running."""

    def __init__(self, mixer: "AnimationMixer", clip: AnimationClip) -> None:
        self.mixer = mixer
        self.clip = clip
        self.time = 0.0
        self.playing = False

    @property
    def is_running(self) -> bool:
        return self.playing

    def reset(self) -> "AnimationAction":
        self.time = 0.0
        return self

    def play(self) -> "AnimationAction":
        self.playing = True
        return self

    def stop(self) -> "AnimationAction":
        self.playing = False
        self.time = 0.0
        return self

    def advance(self, dt: float) -> None:
        duration = self.clip.duration
        self.time += dt
        if duration > 0.0:
            self.time %= duration
        else:
            self.time = 0.0

    def apply(self) -> None:
        for track in self.clip.tracks:
            node = self.mixer.resolve(track.node_name)
            if node is None:
                continue
            value = track.sample(self.time)
            if track.path == "translation":
                node.position[:] = value
            elif track.path == "rotation":
                node.set_quaternion(value)
            else:
                node.scale[:] = value


class AnimationMixer:
    """Advances the actions of one model and writes their poses onto it."""

    def __init__(self, root: Node) -> None:
        self.root = root
        self._actions: Dict[int, AnimationAction] = {}
        self._bindings: Dict[str, Optional[Node]] = {}

    def clip_action(self, clip: AnimationClip) -> AnimationAction:
        action = self._actions.get(id(clip))
        if action is None:
            action = AnimationAction(self, clip)
            self._actions[id(clip)] = action
        return action

    def resolve(self, node_name: str) -> Optional[Node]:
        if node_name not in self._bindings:
            self._bindings[node_name] = self.root.find(node_name)
        return self._bindings[node_name]

    def update(self, dt: float) -> "AnimationMixer":
        for action in self._actions.values():
            if not action.is_running:
                continue
            action.advance(dt)
            action.apply()
        return self
