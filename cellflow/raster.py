"""
Rasterizer - Grid state to RGBA float pixels

Render modes:
    motion  White where a cell has any nonzero velocity, background tint
            elsewhere. Depends on the velocity fields only (default).
    color   Each pixel takes its cell's (possibly advected) color.

PixelBuffer is the float image the host presents: width x height x 4,
row-major, origin at the bottom-left, values not clamped.
"""

import numpy as np

from .grid import BACKGROUND_COLOR, WHITE


RENDER_MODES = ("motion", "color")


class PixelBuffer:
    """RGBA float32 image, row-major with the origin at the bottom-left."""

    def __init__(self, width, height):
        if width < 1 or height < 1:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.data = np.zeros(self.width * self.height * 4, dtype=np.float32)
        # (row, col, channel) view over the same memory
        self.pixels = self.data.reshape(self.height, self.width, 4)

    def clear(self, r, g, b, a):
        self.pixels[:] = (r, g, b, a)

    def to_rgb8(self):
        """Return (H, W, 3) uint8, top row first, for display or saving."""
        rgb = np.clip(self.pixels[::-1, :, :3], 0.0, 1.0)
        return (rgb * 255.0 + 0.5).astype(np.uint8)


class Rasterizer:
    """Writes grid state into a PixelBuffer."""

    def __init__(self, grid, mode="motion"):
        if mode not in RENDER_MODES:
            raise ValueError(f"Unknown render mode: {mode!r}. "
                             f"Available: {', '.join(RENDER_MODES)}")
        self.grid = grid
        self.mode = mode
        self._cell_rows, self._cell_cols = grid.pixel_cell_map()
        self._white = np.array(WHITE, dtype=np.float32)
        self._background = np.array(BACKGROUND_COLOR, dtype=np.float32)

    def _check_buffer(self, into):
        g = self.grid
        if into.width != g.image_width or into.height != g.image_height:
            raise ValueError(
                f"Buffer is {into.width}x{into.height}, grid expects "
                f"{g.image_width}x{g.image_height}")

    def clear(self, into):
        """Reset the whole buffer to opaque white."""
        into.clear(*WHITE)

    def render(self, into):
        """Rasterize the current grid state into the buffer. Returns the buffer."""
        self._check_buffer(into)
        g = self.grid
        rows, cols = self._cell_rows, self._cell_cols
        if self.mode == "color":
            into.pixels[:] = g.color[rows, cols]
        else:
            moving = (g.velocity_x != 0.0) | (g.velocity_y != 0.0)
            into.pixels[:] = np.where(moving[rows, cols][..., None],
                                      self._white, self._background)
        return into
