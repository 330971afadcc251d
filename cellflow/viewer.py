"""
Interactive Pygame Viewer for the advection grid

Opens a window onto a GridRenderer and turns pointer drags into
activation signals. Each frame:

    clear image -> apply pending activation -> step -> rasterize -> present

Controls:
  SPACE       Pause / Resume
  R           Reset to the preset's seed pattern
  S           Save screenshot
  Q / ESC     Quit
  Mouse L     Activate cells under the pointer (drag to paint)
"""

import os
import time
import numpy as np
import pygame

from .renderer import GridRenderer
from .presets import get_preset


def window_to_pixel_index(x, y, width, height):
    """Map window coordinates (origin top-left) to a row-major pixel index
    with the origin at the bottom-left. Returns None outside the image."""
    if not (0 <= x < width and 0 <= y < height):
        return None
    return (height - y - 1) * width + x


class AppContext:
    """Display state shared by the event handlers and the frame loop."""

    def __init__(self, renderer, scale=1, print_stats=False):
        image = renderer.get_image()
        self.renderer = renderer
        self.width = image.width
        self.height = image.height
        self.scale = max(1, int(scale))
        self.print_stats = print_stats
        self.last_frame_time = time.perf_counter()
        # Activation mask filled by pointer events, consumed once per frame
        self.pending = np.zeros(self.width * self.height, dtype=np.int32)

    @property
    def window_size(self):
        return self.width * self.scale, self.height * self.scale

    def flag_pointer(self, wx, wy):
        """Mark the pixel under window position (wx, wy) as activated."""
        index = window_to_pixel_index(wx // self.scale, wy // self.scale,
                                      self.width, self.height)
        if index is not None:
            self.pending[index] = 1

    def render_picture(self):
        """Clear, inject, step and rasterize. Returns the image."""
        start = time.perf_counter()
        self.renderer.clear_image()
        end_clear = time.perf_counter()

        if self.pending.any():
            self.renderer.apply_activation_mask(self.pending)
            self.pending[:] = 0
        image = self.renderer.render()
        end_render = time.perf_counter()

        if self.print_stats:
            print(f"Clear:    {1000.0 * (end_clear - start):.3f} ms")
            print(f"Render:   {1000.0 * (end_render - end_clear):.3f} ms")
        return image

    def tick(self):
        """Record frame end; print the frame time when stats are on."""
        now = time.perf_counter()
        if self.print_stats:
            print(f"{1000.0 * (now - self.last_frame_time):.2f} ms")
        self.last_frame_time = now


class Viewer:
    def __init__(self, size=256, start_preset="still", preset=None, scale=2,
                 print_stats=False, verbose=False):
        self.preset_key = start_preset
        if preset is None:
            preset = get_preset(start_preset)
        if preset is None:
            raise ValueError(f"Unknown preset: {start_preset!r}")
        self.preset = preset
        renderer = GridRenderer.from_preset(preset, size=size, verbose=verbose)
        self.ctx = AppContext(renderer, scale=scale, print_stats=print_stats)
        self.running = True
        self.paused = False

    def _present(self, screen):
        rgb = self.ctx.renderer.get_image().to_rgb8()
        surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())
        # Nearest-neighbour scaling keeps cell edges crisp
        scaled = pygame.transform.scale(surface, self.ctx.window_size)
        screen.blit(scaled, (0, 0))

    def _save_screenshot(self):
        screenshots_dir = os.path.join(os.getcwd(), "screenshots")
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"cellflow_{self.preset_key}_{timestamp}.png")
        rgb = self.ctx.renderer.get_image().to_rgb8()
        surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())
        pygame.image.save(surface, path)
        print(f"Screenshot saved: {path}")

    def _handle_keydown(self, event):
        key = event.key
        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif key == pygame.K_SPACE:
            self.paused = not self.paused
        elif key == pygame.K_r:
            self.ctx.renderer.seed(self.preset.get("seed", "still"))
            self.ctx.pending[:] = 0
        elif key == pygame.K_s:
            self._save_screenshot()

    def run(self):
        """Main viewer loop."""
        pygame.init()
        screen = pygame.display.set_mode(self.ctx.window_size)
        pygame.display.set_caption(f"cellflow - {self.preset['name']}")
        clock = pygame.time.Clock()

        # Present the seeded state before the first step
        self.ctx.renderer.rasterizer.render(self.ctx.renderer.get_image())

        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.ctx.flag_pointer(*event.pos)
                elif event.type == pygame.MOUSEMOTION and event.buttons[0]:
                    self.ctx.flag_pointer(*event.pos)

            if not self.paused:
                self.ctx.render_picture()

            self._present(screen)
            pygame.display.flip()
            self.ctx.tick()
            clock.tick(60)

        pygame.quit()
