"""
Grid Store - Per-cell state for the advection simulation

Owns every per-cell array (velocity, pressure, color and the scratch
snapshots used while advecting). The lattice is square with one padding
row/column, sized from the image width:

    cells_per_side = image_width // cell_dim
    shape          = (cells_per_side + 1, cells_per_side + 1)

Pixel indices are row-major with the origin at the bottom-left; a pixel
belongs to exactly one cell.
"""

import numpy as np


CELL_DIM = 1  # pixels per cell edge

BACKGROUND_COLOR = (0.0, 0.0392, 0.1098, 1.0)
WHITE = (1.0, 1.0, 1.0, 1.0)


class FluidGrid:
    """Square lattice of cells with velocity, pressure and color state."""

    def __init__(self, image_width, image_height, cell_dim=CELL_DIM):
        """
        Args:
            image_width: Width in pixels of the image the grid backs
            image_height: Height in pixels of the image the grid backs
            cell_dim: Pixels per cell edge (>= 1)
        """
        if cell_dim < 1:
            raise ValueError(f"cell_dim must be >= 1, got {cell_dim}")
        if image_width < 1 or image_height < 1:
            raise ValueError(
                f"Image dimensions must be positive, got {image_width}x{image_height}")

        self.image_width = int(image_width)
        self.image_height = int(image_height)
        self.cell_dim = int(cell_dim)
        self.cells_per_side = self.image_width // self.cell_dim

        # Every pixel row has to land inside the square lattice (padding included)
        if (self.image_height - 1) // self.cell_dim > self.cells_per_side:
            raise ValueError(
                f"Image height {self.image_height} does not fit a "
                f"{self.cells_per_side}-cell grid at cell_dim={self.cell_dim}")

        n = self.cells_per_side + 1
        self.shape = (n, n)

        self.velocity_x = np.zeros(self.shape, dtype=np.float32)
        self.velocity_y = np.zeros(self.shape, dtype=np.float32)
        self.pressure = np.zeros(self.shape, dtype=np.float32)
        self.color = np.empty(self.shape + (4,), dtype=np.float32)
        self.color[:] = BACKGROUND_COLOR

        # Scratch snapshots, rewritten at the start of every advection pass
        self.advection_scratch = np.zeros(self.shape, dtype=np.float32)
        self.color_scratch = np.zeros(self.shape + (4,), dtype=np.float32)

    @property
    def pixel_count(self):
        return self.image_width * self.image_height

    def cell_of_pixel(self, index):
        """Return the (row, col) cell owning a row-major pixel index."""
        row = (index // self.image_width) // self.cell_dim
        col = (index % self.image_width) // self.cell_dim
        return row, col

    def cells_of_pixels(self, indices):
        """Vectorized cell_of_pixel. Returns (rows, cols) int arrays."""
        indices = np.asarray(indices, dtype=np.int64)
        rows = (indices // self.image_width) // self.cell_dim
        cols = (indices % self.image_width) // self.cell_dim
        return rows, cols

    def pixel_cell_map(self):
        """Return (rows, cols) arrays of shape (height, width) mapping pixels to cells."""
        pix_rows = np.arange(self.image_height) // self.cell_dim
        pix_cols = np.arange(self.image_width) // self.cell_dim
        return np.meshgrid(pix_rows, pix_cols, indexing="ij")

    def clear(self):
        """Restore the initial state: still fluid on the background tint."""
        self.velocity_x[:] = 0
        self.velocity_y[:] = 0
        self.pressure[:] = 0
        self.color[:] = BACKGROUND_COLOR
        self.advection_scratch[:] = 0
        self.color_scratch[:] = 0

    @property
    def stats(self):
        """Return current grid statistics."""
        moving = (self.velocity_x != 0) | (self.velocity_y != 0)
        speed = np.sqrt(self.velocity_x.astype(np.float64) ** 2 +
                        self.velocity_y.astype(np.float64) ** 2)
        return {
            "cells_per_side": self.cells_per_side,
            "moving_cells": int(moving.sum()),
            "moving_pct": float(moving.sum()) / moving.size * 100,
            "max_speed": float(speed.max()),
        }
