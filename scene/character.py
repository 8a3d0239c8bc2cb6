"""Tracks which animation clip the loaded character is playing."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .animation import AnimationAction, AnimationClip, AnimationMixer
from .nodes import Node

logger = logging.getLogger(__name__)


class CharacterAnimationController:
    """Owns the character's mixer and the currently selected clip.

    Until ``attach`` runs (the model is still loading, or failed to load)
    the clip set is empty and every operation is a no-op.
    """

    def __init__(self) -> None:
        self.model: Optional[Node] = None
        self.mixer: Optional[AnimationMixer] = None
        self.clips: List[AnimationClip] = []
        self.current_index = 0
        self.current_action: Optional[AnimationAction] = None

    @property
    def loaded(self) -> bool:
        return self.model is not None

    @property
    def current_clip_name(self) -> Optional[str]:
        if self.current_action is None:
            return None
        return self.current_action.clip.name

    def attach(self, model: Node, clips: Sequence[AnimationClip]) -> AnimationMixer:
        self.model = model
        self.mixer = AnimationMixer(model)
        self.clips = list(clips)
        logger.info("Character has %d animation clips", len(self.clips))
        if self.clips:
            self.select_clip(0)
        return self.mixer

    def select_clip(self, index: int) -> Optional[AnimationAction]:
        """Play clip ``index`` wrapped into range; ``None`` while there are no clips."""

        if not self.clips or self.mixer is None:
            return None
        if self.current_action is not None:
            self.current_action.stop()

        count = len(self.clips)
        self.current_index = ((index % count) + count) % count
        clip = self.clips[self.current_index]
        self.current_action = self.mixer.clip_action(clip).reset().play()
        logger.info("Playing clip %s", clip.name)
        return self.current_action

    def next_clip(self) -> Optional[AnimationAction]:
        return self.select_clip(self.current_index + 1)

    def previous_clip(self) -> Optional[AnimationAction]:
        return self.select_clip(self.current_index - 1)
