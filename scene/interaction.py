"""Pointer and keyboard handling: the clickable door and clip navigation."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import pygame

from .camera import PerspectiveCamera
from .character import CharacterAnimationController
from .nodes import Node
from .raycast import Raycaster, screen_to_ndc
from .tween import TweenManager

logger = logging.getLogger(__name__)

Vec2 = Tuple[float, float]


@dataclass
class DoorState:
    """Open/closed flag of the house door; starts closed."""

    is_open: bool = False
    closed_angle: float = 0.0
    open_angle: float = -math.pi / 2.0

    @property
    def target_angle(self) -> float:
        return self.open_angle if self.is_open else self.closed_angle

    def toggle(self) -> float:
        """Flip the state and return the Y rotation the door should swing to."""

        self.is_open = not self.is_open
        return self.target_angle


@dataclass
class ClickTracker:
    """Separates clicks from orbit drags between button down and up."""

    pressed: bool = False
    start_screen: Vec2 = (0.0, 0.0)
    current_screen: Vec2 = (0.0, 0.0)
    threshold: float = 4.0

    def begin(self, screen_pos: Vec2) -> None:
        self.pressed = True
        self.start_screen = screen_pos
        self.current_screen = screen_pos

    def update(self, screen_pos: Vec2) -> None:
        if self.pressed:
            self.current_screen = screen_pos

    def has_significant_drag(self) -> bool:
        dx = abs(self.current_screen[0] - self.start_screen[0])
        dy = abs(self.current_screen[1] - self.start_screen[1])
        return dx >= self.threshold or dy >= self.threshold

    def finish(self, screen_pos: Vec2) -> bool:
        """End the press; return ``True`` if it counts as a click."""

        if not self.pressed:
            return False
        self.update(screen_pos)
        self.pressed = False
        return not self.has_significant_drag()


class InteractionController:
    def __init__(
        self,
        camera: PerspectiveCamera,
        door: Node,
        character: CharacterAnimationController,
        tweens: TweenManager,
        *,
        door_state: Optional[DoorState] = None,
        door_duration: float = 1.0,
    ) -> None:
        self.camera = camera
        self.door = door
        self.character = character
        self.tweens = tweens
        self.door_state = door_state if door_state is not None else DoorState()
        self.door_duration = door_duration
        self.raycaster = Raycaster()

    def handle_click(self, screen_pos: Vec2, viewport_size: Tuple[int, int]) -> bool:
        """Toggle the door if the click ray hits it; return whether it did."""

        ndc = screen_to_ndc(screen_pos, viewport_size)
        self.raycaster.set_from_camera(ndc, self.camera)
        # only the door is tested, never the whole scene
        hits = self.raycaster.intersect_objects([self.door])
        if not hits:
            return False

        angle = self.door_state.toggle()
        self.tweens.to(self.door.rotation, {"y": angle}, self.door_duration)
        logger.info("Door %s", "opening" if self.door_state.is_open else "closing")
        return True

    def handle_key(self, key: int) -> bool:
        if key == pygame.K_RIGHT:
            self.character.next_clip()
            return True
        if key == pygame.K_LEFT:
            self.character.previous_clip()
            return True
        return False
