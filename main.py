"""Entry point for the cottage scene demo."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

import pygame

from config import SceneConfig, load_config
from rendering.draw_system import SceneRenderer
from rendering.opengl_context import initialize_gl, resize_viewport
from scene.camera import PerspectiveCamera
from scene.character import CharacterAnimationController
from scene.controls import OrbitControls
from scene.frame_loop import FrameLoop, SunOrbit
from scene.gltf_loader import GLTFLoader, GLTFResult
from scene.interaction import ClickTracker, InteractionController
from scene.tween import TweenManager
from scene.viewport import Viewport
from scene.world import create_outdoor_scene, prepare_character, start_ambient_motion
from ui.overlay import InstructionsOverlay

logger = logging.getLogger("cottage")

EventHandler = Callable[[pygame.event.Event], None]


def _setup_logging(log_path: Path, level: str) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    if not root.handlers:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        root.addHandler(sh)


def _display_flags(fullscreen: bool) -> int:
    flags = pygame.OPENGL | pygame.DOUBLEBUF
    if fullscreen:
        return flags | pygame.FULLSCREEN
    return flags | pygame.RESIZABLE


class CottageApp:
    """Wires the window, scene and input handlers together."""

    def __init__(self, config: SceneConfig) -> None:
        self.config = config
        self.running = False

        pygame.init()
        pygame.display.set_caption("Cottage Scene")
        size = (0, 0) if config.fullscreen else config.window_size
        pygame.display.set_mode(size, _display_flags(config.fullscreen))
        window_size = pygame.display.get_surface().get_size()
        initialize_gl(window_size)

        self.camera = PerspectiveCamera(
            position=config.camera_position,
            target=(0.0, 0.0, 0.0),
            fov=config.camera_fov,
            near=config.camera_near,
            far=config.camera_far,
        )
        self.viewport = Viewport(self.camera, window_size)
        self.controls = OrbitControls(self.camera, enable_damping=config.enable_damping)
        self.tweens = TweenManager()

        self.outdoor = create_outdoor_scene(config)
        start_ambient_motion(self.outdoor, self.tweens, config)

        self.character = CharacterAnimationController()
        self.interaction = InteractionController(
            self.camera,
            self.outdoor.door,
            self.character,
            self.tweens,
            door_duration=config.door_tween_duration,
        )
        self.clicks = ClickTracker()

        self.renderer = SceneRenderer()
        self.overlay = InstructionsOverlay()
        self.frame_loop = FrameLoop(
            scene=self.outdoor.scene,
            camera=self.camera,
            controls=self.controls,
            tweens=self.tweens,
            sun=self.outdoor.sun,
            sun_light=self.outdoor.sun_light,
            render=self._render,
            orbit=SunOrbit(config.sun_orbit_radius, config.sun_orbit_height, config.sun_orbit_speed),
        )
        self.loader = GLTFLoader()

        self._handlers: Dict[int, EventHandler] = {
            pygame.QUIT: self._on_quit,
            pygame.VIDEORESIZE: self._on_resize,
            pygame.MOUSEBUTTONDOWN: self._on_mouse_down,
            pygame.MOUSEBUTTONUP: self._on_mouse_up,
            pygame.MOUSEMOTION: self._on_mouse_motion,
            pygame.MOUSEWHEEL: self._on_mouse_wheel,
            pygame.KEYDOWN: self._on_key_down,
        }

    # ------------------------------------------------------------------
    # Model loading
    # ------------------------------------------------------------------
    def _on_model_loaded(self, result: GLTFResult) -> None:
        model = prepare_character(self.outdoor, result.scene, self.config)
        mixer = self.character.attach(model, result.animations)
        self.frame_loop.mixers.append(mixer)

    def _on_model_failed(self, error: BaseException) -> None:
        logger.warning("Continuing without the character: %s", error)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_quit(self, event: pygame.event.Event) -> None:
        self.running = False

    def _on_resize(self, event: pygame.event.Event) -> None:
        pygame.display.set_mode(event.size, _display_flags(False))
        resize_viewport(event.size)
        self.viewport.resize(event.size)
        logger.info("Window resized to %dx%d", *event.size)

    def _on_mouse_down(self, event: pygame.event.Event) -> None:
        if event.button != 1:
            return
        self.clicks.begin(event.pos)
        self.controls.begin_drag(event.pos)

    def _on_mouse_up(self, event: pygame.event.Event) -> None:
        if event.button != 1:
            return
        self.controls.end_drag()
        if self.clicks.finish(event.pos):
            self.interaction.handle_click(event.pos, self.viewport.size)

    def _on_mouse_motion(self, event: pygame.event.Event) -> None:
        if self.controls.dragging:
            self.clicks.update(event.pos)
            self.controls.drag_to(event.pos, self.viewport.size)

    def _on_mouse_wheel(self, event: pygame.event.Event) -> None:
        self.controls.dolly(event.y)

    def _on_key_down(self, event: pygame.event.Event) -> None:
        if event.key == pygame.K_ESCAPE:
            self.running = False
            return
        self.interaction.handle_key(event.key)

    def dispatch(self, event: pygame.event.Event) -> None:
        handler = self._handlers.get(event.type)
        if handler is not None:
            handler(event)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def _render(self, scene, camera) -> None:
        self.renderer.render(scene, camera)
        self.overlay.draw(self.viewport.size, self.character.current_clip_name)

    def run(self) -> None:
        self.loader.load(self.config.asset_path, self._on_model_loaded, self._on_model_failed)
        clock = pygame.time.Clock()
        start_ticks = pygame.time.get_ticks()
        self.running = True
        try:
            while self.running:
                dt = clock.tick(self.config.target_fps) / 1000.0
                for event in pygame.event.get():
                    self.dispatch(event)
                self.loader.poll()
                elapsed = (pygame.time.get_ticks() - start_ticks) / 1000.0
                self.frame_loop.tick(dt, elapsed)
                pygame.display.flip()
        finally:
            self.loader.shutdown()
            pygame.quit()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive cottage scene")
    parser.add_argument("--config", type=Path, default=None, help="JSON file overriding scene settings")
    parser.add_argument("--asset", dest="asset_path", type=Path, default=None, help="glTF/GLB character model")
    parser.add_argument("--log-level", dest="log_level", default=None, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--fullscreen", action="store_true", default=None)
    return parser.parse_args(argv)


def run(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(
        args.config,
        asset_path=args.asset_path,
        log_level=args.log_level,
        fullscreen=args.fullscreen,
    )
    _setup_logging(config.log_path, config.log_level)
    logger.info("Starting cottage scene with model %s", config.asset_path)
    CottageApp(config).run()


if __name__ == "__main__":
    run()
