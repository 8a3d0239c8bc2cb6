"""Per-frame update: animation, sun orbit, camera controls, render."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from .animation import AnimationMixer
from .camera import PerspectiveCamera
from .controls import OrbitControls
from .nodes import DirectionalLight, Node, Scene
from .tween import TweenManager

Vec3 = Tuple[float, float, float]
RenderFn = Callable[[Scene, PerspectiveCamera], None]

TAU = 2.0 * math.pi


@dataclass
class SunOrbit:
    """Circular path of the sun around the scene's vertical axis."""

    radius: float = 6.0
    height: float = 5.0
    speed: float = 1.0  # radians per second

    def phase(self, elapsed: float) -> float:
        return (elapsed * self.speed) % TAU

    def position(self, elapsed: float) -> Vec3:
        angle = self.phase(elapsed)
        return (math.cos(angle) * self.radius, self.height, math.sin(angle) * self.radius)


@dataclass
class FrameLoop:
    scene: Scene
    camera: PerspectiveCamera
    controls: OrbitControls
    tweens: TweenManager
    sun: Node
    sun_light: DirectionalLight
    render: RenderFn
    orbit: SunOrbit = field(default_factory=SunOrbit)
    mixers: List[AnimationMixer] = field(default_factory=list)
    frame_count: int = 0

    def tick(self, dt: float, elapsed: float) -> None:
        """Advance one frame.

        ``dt`` is the time since the previous tick and drives animation;
        ``elapsed`` is absolute seconds since start and drives the sun.
        """
        for mixer in self.mixers:
            mixer.update(dt)
        self.tweens.update(dt)

        self.sun.position[:] = self.orbit.position(elapsed)
        self.sun_light.position[:] = self.sun.position

        self.controls.update()
        self.render(self.scene, self.camera)
        self.frame_count += 1
