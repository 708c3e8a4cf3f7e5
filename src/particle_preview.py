#!/usr/bin/env python3
"""
Standalone Particle Preview with Pygame
Lays out one emitter per preset and drives the engine from the pygame clock
"""

import argparse
import logging
import math
from typing import List, Tuple

import numpy as np
import pygame

from particle_engine.appearance import FrameLayer, resolve_scene
from particle_engine.clock import SimulationClock
from particle_engine.config import EngineConfig
from particle_engine.emitter import Emitter, Scene, apply_preset, icon_for
from particle_engine.logging_config import configure_logging
from particle_engine.presets import DEFAULT_LIBRARY, Shape
from particle_engine.simulation import ParticleEngine

logger = logging.getLogger("particle_engine.preview")

BLEND_FLAGS = {
    "add": pygame.BLEND_RGBA_ADD,
    "multiply": pygame.BLEND_RGBA_MULT,
}


def build_scene(width: int, height: int) -> Scene:
    """One emitter per preset, spread across the window."""
    scene = Scene()
    names = DEFAULT_LIBRARY.names()
    columns = 4
    rows = math.ceil(len(names) / columns)
    cell_w = width / columns
    cell_h = height / rows
    for i, name in enumerate(names):
        col, row = i % columns, i // columns
        emitter = Emitter(
            id=f"emitter-{i}",
            name=name,
            x=(col + 0.5) * cell_w,
            y=(row + 0.7) * cell_h,
            width=cell_w * 0.4,
            height=20.0,
        )
        apply_preset(emitter, name)
        scene.add(emitter)
    return scene


def star_points(x: float, y: float, size: float, rotation: float) -> List[Tuple[float, float]]:
    """Corners of a square of side ``size`` rotated by ``rotation`` degrees."""
    half = size / 2.0
    angle = math.radians(rotation)
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    corners = [(-half, -half), (half, -half), (half, half), (-half, half)]
    return [(x + cx * cos_a - cy * sin_a, y + cx * sin_a + cy * cos_a) for cx, cy in corners]


class ParticlePreview:
    """Pygame window acting as frame driver and renderer"""

    def __init__(self, width: int, height: int, seed: int, fps: int):
        self.width = width
        self.height = height
        self.fps = fps

        config = EngineConfig(seed=seed)
        self.engine = ParticleEngine(config, rng=np.random.default_rng(seed))
        self.scene = build_scene(width, height)
        self.clock = SimulationClock(self.engine, lambda: self.scene)
        self.selected = 0  # Emitter that number keys apply presets to

        # Pygame setup
        pygame.init()
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("Scene Particle Preview")
        self.frame_clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)
        self.show_info = True

    def draw_layer(self, layer: FrameLayer):
        surface = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        for p in layer.particles:
            color = (p.color.r, p.color.g, p.color.b, int(round(p.color.a * 255)))
            if layer.shape == Shape.STAR:
                pygame.draw.polygon(surface, color, star_points(p.x, p.y, p.width, p.rotation))
            elif layer.shape == Shape.LINE:
                rect = pygame.Rect(0, 0, max(1, int(p.width)), max(1, int(p.height)))
                rect.center = (int(p.x), int(p.y))
                pygame.draw.rect(surface, color, rect)
            else:
                pygame.draw.circle(surface, color, (int(p.x), int(p.y)), max(1, int(p.width / 2)))
        self.screen.blit(surface, (0, 0), special_flags=BLEND_FLAGS.get(layer.blend_mode, 0))

    def draw(self):
        """Draw the current frame"""
        self.screen.fill((20, 20, 30))

        for layer in resolve_scene(self.engine, self.scene):
            self.draw_layer(layer)

        for i, emitter in enumerate(self.scene):
            outline = (255, 255, 0) if i == self.selected else (80, 80, 100)
            rect = pygame.Rect(0, 0, int(emitter.width), int(emitter.height))
            rect.center = (int(emitter.x), int(emitter.y))
            pygame.draw.rect(self.screen, outline, rect, 1)

        if self.show_info:
            self.draw_info()

    def draw_info(self):
        """Draw information panel"""
        selected = self.scene.emitters[self.selected]
        live = sum(self.engine.count(e.id) for e in self.scene)
        info_lines = [
            f"FPS: {int(self.frame_clock.get_fps())}",
            f"State: {self.clock.state.value.upper()}",
            f"Live particles: {live}",
            f"Selected: {selected.name} ({selected.preset})",
            "",
            "Controls:",
            "SPACE - Start/Stop",
            "TAB - Select next emitter",
            "1-8 - Apply preset to selected emitter",
            "E - Enable/disable selected emitter",
            "R - Reset particles",
            "I - Toggle info",
            "Q/ESC - Quit",
        ]

        y = 10
        for line in info_lines:
            if line:
                text = self.font.render(line, True, (200, 200, 200))
                self.screen.blit(text, (10, y))
            y += 25

    def handle_events(self) -> bool:
        """Handle pygame events. Returns False to quit."""
        names = DEFAULT_LIBRARY.names()
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE or event.key == pygame.K_q:
                    return False

                elif event.key == pygame.K_SPACE:
                    if self.clock.running:
                        self.clock.stop()
                    else:
                        self.clock.start()

                elif event.key == pygame.K_TAB:
                    self.selected = (self.selected + 1) % len(self.scene)

                elif event.key == pygame.K_e:
                    emitter = self.scene.emitters[self.selected]
                    emitter.enabled = not emitter.enabled

                elif event.key == pygame.K_r:
                    self.clock.reset()
                    logger.info("Reset particles")

                elif event.key == pygame.K_i:
                    self.show_info = not self.show_info

                elif pygame.K_1 <= event.key <= pygame.K_8:
                    index = event.key - pygame.K_1
                    if index < len(names):
                        emitter = self.scene.emitters[self.selected]
                        apply_preset(emitter, names[index])
                        logger.info("%s %s -> %s", icon_for(names[index]), emitter.name, names[index])

        return True

    def run(self):
        """Main loop"""
        running = True
        self.clock.start()

        while running:
            running = self.handle_events()

            # Seconds since the previous frame, as measured by pygame
            dt = self.frame_clock.tick(self.fps) / 1000.0
            self.clock.advance(min(dt, self.engine.config.max_delta))

            self.draw()
            pygame.display.flip()

        pygame.quit()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Scene Particle Preview')
    parser.add_argument('--width', type=int, default=1200)
    parser.add_argument('--height', type=int, default=700)
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--fps', type=int, default=60)
    args = parser.parse_args()

    configure_logging()
    logger.info("Press SPACE to start/stop, 1-8 to apply presets, Q to quit")

    preview = ParticlePreview(args.width, args.height, args.seed, args.fps)
    preview.run()


if __name__ == "__main__":
    main()
