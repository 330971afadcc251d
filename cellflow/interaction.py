"""
Interaction Injector - External perturbations onto the grid

Turns host-side signals into grid state:

- Activation: pixels flagged by the input layer (pointer drags, scripted
  events) mark their owning cell opaque white and give it an upward kick.
- Velocity stamps: per-pixel (vx, vy) arrays written straight onto the
  owning cells.

Inputs are validated at this boundary; nothing downstream re-checks them.
"""

import numpy as np

from .grid import WHITE


ACTIVATION_VELOCITY = 4.0  # velocity_y given to an activated cell


class InteractionInjector:
    """Applies activation and velocity-stamp signals to a FluidGrid."""

    def __init__(self, grid, activation_velocity=ACTIVATION_VELOCITY, verbose=False):
        self.grid = grid
        self.activation_velocity = activation_velocity
        self.verbose = verbose

    @property
    def pixel_count(self):
        return self.grid.pixel_count

    def _check_length(self, name, values):
        if values.ndim != 1 or values.shape[0] != self.pixel_count:
            raise ValueError(
                f"{name} must have {self.pixel_count} entries "
                f"({self.grid.image_width}x{self.grid.image_height}), "
                f"got shape {values.shape}")

    def apply_activation(self, activated_cells):
        """Activate a collection of pixel indices.

        Args:
            activated_cells: Iterable of row-major pixel indices

        Returns:
            Number of distinct cells activated
        """
        values = np.asarray(list(activated_cells))
        if values.size == 0:
            return 0
        if values.ndim != 1:
            raise ValueError(f"Pixel indices must be a flat collection, got shape {values.shape}")
        if values.dtype.kind == "f":
            fractional = ~np.isfinite(values) | (values != np.floor(values))
            if fractional.any():
                raise ValueError(
                    f"Pixel index {values[fractional][0]} is not an integer")
        elif values.dtype.kind not in "iu":
            raise ValueError(f"Pixel indices must be integers, got dtype {values.dtype}")
        indices = values.astype(np.int64)
        bad = (indices < 0) | (indices >= self.pixel_count)
        if bad.any():
            raise ValueError(
                f"Pixel index {int(indices[bad][0])} outside [0, {self.pixel_count})")
        return self._activate(indices)

    def apply_activation_mask(self, mask):
        """Activate every pixel whose entry in a dense per-pixel mask is nonzero."""
        mask = np.asarray(mask).ravel()
        self._check_length("Activation mask", mask)
        indices = np.flatnonzero(mask)
        if indices.size == 0:
            return 0
        return self._activate(indices)

    def _activate(self, indices):
        g = self.grid
        rows, cols = g.cells_of_pixels(indices)
        cells = np.unique(np.stack([rows, cols], axis=1), axis=0)
        rows, cols = cells[:, 0], cells[:, 1]
        g.color[rows, cols] = WHITE
        g.velocity_y[rows, cols] = self.activation_velocity
        if self.verbose:
            for r, c in cells:
                print(f"[cellflow] activating cell ({r}, {c})")
        return len(cells)

    def set_velocities(self, vx, vy):
        """Stamp per-pixel velocities onto their owning cells.

        Pixels with both components exactly zero are skipped (no reset).
        Later pixels overwrite earlier ones that share a cell.

        Args:
            vx: Horizontal velocity per pixel, length width*height
            vy: Vertical velocity per pixel, length width*height

        Returns:
            Number of pixels stamped
        """
        vx = np.asarray(vx, dtype=np.float64)
        vy = np.asarray(vy, dtype=np.float64)
        self._check_length("vx", vx)
        self._check_length("vy", vy)

        indices = np.flatnonzero((vx != 0.0) | (vy != 0.0))
        if indices.size == 0:
            return 0
        g = self.grid
        rows, cols = g.cells_of_pixels(indices)

        # Row-major order, last pixel per cell wins
        keys = (rows * g.shape[1] + cols)[::-1]
        _, first_rev = np.unique(keys, return_index=True)
        keep = indices.size - 1 - first_rev

        g.velocity_x[rows[keep], cols[keep]] = vx[indices[keep]]
        g.velocity_y[rows[keep], cols[keep]] = vy[indices[keep]]
        if self.verbose:
            for i in indices:
                r, c = g.cell_of_pixel(int(i))
                print(f"[cellflow] setting velocity of cell ({r}, {c}) "
                      f"to [{vx[i]:f}, {vy[i]:f}]")
        return int(indices.size)
