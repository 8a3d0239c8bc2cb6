"""Eased property tweens for node positions and rotations."""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

EaseFn = Callable[[float], float]

AXES = {"x": 0, "y": 1, "z": 2}

EASES: Dict[str, EaseFn] = {
    "none": lambda t: t,
    "linear": lambda t: t,
    "power1.in": lambda t: t * t,
    "power1.out": lambda t: 1.0 - (1.0 - t) * (1.0 - t),
    "power1.inOut": lambda t: 2.0 * t * t if t < 0.5 else 1.0 - 2.0 * (1.0 - t) * (1.0 - t),
    "power2.in": lambda t: t * t * t,
    "power2.out": lambda t: 1.0 - (1.0 - t) ** 3,
    "power2.inOut": lambda t: 4.0 * t ** 3 if t < 0.5 else 1.0 - 4.0 * (1.0 - t) ** 3,
    "sine.in": lambda t: 1.0 - math.cos(t * math.pi / 2.0),
    "sine.out": lambda t: math.sin(t * math.pi / 2.0),
    "sine.inOut": lambda t: -(math.cos(math.pi * t) - 1.0) / 2.0,
}

DEFAULT_EASE = "power1.out"


def get_ease(name: str) -> EaseFn:
    try:
        return EASES[name]
    except KeyError:
        raise ValueError(f"Unknown ease {name!r}") from None


class Tween:
    """Interpolates named axes of a 3-vector toward target values.

    Start values are read on the first ``update`` so a tween created while
    another one is still moving the same vector picks up where it left off.
    ``repeat=-1`` repeats forever; ``yoyo`` plays every other cycle backwards.
    """

    def __init__(
        self,
        target: np.ndarray,
        values: Dict[str, float],
        duration: float,
        *,
        ease: str = DEFAULT_EASE,
        repeat: int = 0,
        yoyo: bool = False,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        unknown = set(values) - set(AXES)
        if unknown:
            raise ValueError(f"Cannot tween axes {sorted(unknown)}")
        self.target = target
        self.ends = {AXES[name]: float(value) for name, value in values.items()}
        self.duration = max(0.0, float(duration))
        self.ease = get_ease(ease)
        self.repeat = repeat
        self.yoyo = yoyo
        self.on_complete = on_complete
        self.elapsed = 0.0
        self.finished = False
        self._starts: Optional[Dict[int, float]] = None

    @property
    def axes(self) -> List[int]:
        return list(self.ends)

    def kill_axis(self, axis: int) -> None:
        self.ends.pop(axis, None)
        if self._starts is not None:
            self._starts.pop(axis, None)
        if not self.ends:
            self.finished = True

    def progress(self) -> float:
        """Eased-input fraction of the current cycle, yoyo direction applied."""

        if self.duration <= 0.0:
            return 1.0
        total = math.inf if self.repeat < 0 else self.duration * (self.repeat + 1)
        if self.elapsed >= total:
            cycle = self.repeat
            local = 1.0
        else:
            cycle = int(self.elapsed // self.duration)
            local = (self.elapsed - cycle * self.duration) / self.duration
        if self.yoyo and cycle % 2 == 1:
            local = 1.0 - local
        return local

    def update(self, dt: float) -> bool:
        """Advance by ``dt`` seconds and write values; return ``True`` once done."""

        if self.finished:
            return True
        if self._starts is None:
            self._starts = {axis: float(self.target[axis]) for axis in self.ends}
        if dt > 0.0:
            self.elapsed += dt

        eased = self.ease(self.progress())
        for axis, end in self.ends.items():
            start = self._starts[axis]
            self.target[axis] = start + (end - start) * eased

        if self.repeat >= 0 and self.elapsed >= self.duration * (self.repeat + 1):
            self.finished = True
            if self.on_complete is not None:
                self.on_complete()
        return self.finished


class TweenManager:
    """Owns the running tweens and advances them from the frame loop."""

    def __init__(self) -> None:
        self._tweens: List[Tween] = []

    def __len__(self) -> int:
        return len(self._tweens)

    @property
    def active(self) -> List[Tween]:
        return list(self._tweens)

    def to(
        self,
        target: np.ndarray,
        values: Dict[str, float],
        duration: float,
        **options,
    ) -> Tween:
        tween = Tween(target, values, duration, **options)
        for running in self._tweens:
            if running.target is target:
                for axis in tween.axes:
                    running.kill_axis(axis)
        self._tweens = [running for running in self._tweens if not running.finished]
        self._tweens.append(tween)
        logger.debug("Tween %s over %.2fs", values, tween.duration)
        return tween

    def kill_tweens_of(self, target: np.ndarray) -> None:
        self._tweens = [tween for tween in self._tweens if tween.target is not target]

    def update(self, dt: float) -> None:
        for tween in list(self._tweens):
            tween.update(dt)
        self._tweens = [tween for tween in self._tweens if not tween.finished]
