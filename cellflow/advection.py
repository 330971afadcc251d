"""
Advection Engine - Semi-Lagrangian nearest-cell advection

One step moves every advected field along the velocity field:

1. Snapshot the field into its scratch buffer.
2. Forward trace: each source cell pushes its snapshot value to the cell
   its velocity points at (pixel = round(pos + dt * v * cell_dim)).
3. Backward trace: each cell pulls the snapshot value from the cell its
   velocity points away from (pixel = round(pos - dt * v * cell_dim)).

Backward is applied last, so it wins for any cell both passes reach.
Traces that leave [0, cells_per_side) are no-ops (ClampPolicy.LEAVE_UNCHANGED).

Arithmetic is pinned: traces start at a cell's corner pixel (row * cell_dim),
positions are summed in float32, rounding is half-away-from-zero and the
pixel to cell division truncates toward zero, so a pixel at -1 with
cell_dim=2 lands in cell 0.
"""

import enum
import numpy as np


TIME_STEP = 1  # advection time scale per step


class ClampPolicy(enum.Enum):
    """What happens when a trace lands outside the grid."""

    LEAVE_UNCHANGED = "leave_unchanged"


def round_half_away(x):
    """Round to nearest integer, ties away from zero (np.round ties to even)."""
    x = np.asarray(x, dtype=np.float64)
    return (np.sign(x) * np.floor(np.abs(x) + 0.5)).astype(np.int64)


def trunc_div(pixels, cell_dim):
    """Integer division truncating toward zero."""
    pixels = np.asarray(pixels, dtype=np.int64)
    return np.sign(pixels) * (np.abs(pixels) // cell_dim)


class Trace:
    """Forward destinations and backward sources for every interior cell.

    All arrays have shape (cells_per_side, cells_per_side). ``fwd_valid`` /
    ``bwd_valid`` flag traces that stay inside the grid.
    """

    def __init__(self, fwd_rows, fwd_cols, bwd_rows, bwd_cols, cells_per_side):
        self.fwd_rows = fwd_rows
        self.fwd_cols = fwd_cols
        self.bwd_rows = bwd_rows
        self.bwd_cols = bwd_cols
        self.cells_per_side = cells_per_side
        self.fwd_valid = _in_bounds(fwd_rows, fwd_cols, cells_per_side)
        self.bwd_valid = _in_bounds(bwd_rows, bwd_cols, cells_per_side)

    def moved_counts(self):
        """Return (forward, backward) counts of cells whose trace leaves their own cell."""
        n = self.cells_per_side
        rows, cols = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
        fwd = int(((self.fwd_rows != rows) | (self.fwd_cols != cols)).sum())
        bwd = int(((self.bwd_rows != rows) | (self.bwd_cols != cols)).sum())
        return fwd, bwd


def _in_bounds(rows, cols, n):
    return (rows >= 0) & (rows < n) & (cols >= 0) & (cols < n)


def compute_trace(velocity_x, velocity_y, cells_per_side, cell_dim, time_step):
    """Trace every interior cell forward and backward through the velocity field.

    Args:
        velocity_x: Horizontal velocity, grid-shaped
        velocity_y: Vertical velocity, grid-shaped
        cells_per_side: Interior cells per side (padding excluded)
        cell_dim: Pixels per cell edge
        time_step: Advection time scale

    Returns:
        Trace with destination/source cell indices
    """
    n = cells_per_side
    rows, cols = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
    # Traces start at the cell's corner pixel, not its center
    pixel_rows = (rows * cell_dim).astype(np.float32)
    pixel_cols = (cols * cell_dim).astype(np.float32)

    # Positions are summed in float32, then rounded; near-ties at large
    # pixel coordinates depend on this precision
    ts = np.float32(time_step)
    cd = np.float32(cell_dim)
    disp_rows = ts * velocity_y[:n, :n].astype(np.float32) * cd
    disp_cols = ts * velocity_x[:n, :n].astype(np.float32) * cd

    fwd_rows = trunc_div(round_half_away(pixel_rows + disp_rows), cell_dim)
    fwd_cols = trunc_div(round_half_away(pixel_cols + disp_cols), cell_dim)
    bwd_rows = trunc_div(round_half_away(pixel_rows - disp_rows), cell_dim)
    bwd_cols = trunc_div(round_half_away(pixel_cols - disp_cols), cell_dim)

    return Trace(fwd_rows, fwd_cols, bwd_rows, bwd_cols, n)


def forward_pass(field, scratch, trace):
    """Write each source's snapshot value into its forward destination.

    Sources are visited in row-major order; when several land on the same
    destination the last one wins.
    """
    n = trace.cells_per_side
    src = np.flatnonzero(trace.fwd_valid)
    if src.size == 0:
        return
    dst_rows = trace.fwd_rows.ravel()[src]
    dst_cols = trace.fwd_cols.ravel()[src]

    # Keep the last write per destination
    keys = (dst_rows * n + dst_cols)[::-1]
    _, first_rev = np.unique(keys, return_index=True)
    keep = src.size - 1 - first_rev

    field[dst_rows[keep], dst_cols[keep]] = scratch[src[keep] // n, src[keep] % n]


def backward_pass(field, scratch, trace):
    """Pull each cell's value from its backward source in the snapshot."""
    n = trace.cells_per_side
    valid = trace.bwd_valid
    if not valid.any():
        return
    interior = field[:n, :n]
    interior[valid] = scratch[trace.bwd_rows[valid], trace.bwd_cols[valid]]


class AdvectionEngine:
    """Advances a FluidGrid one time step at a time."""

    def __init__(self, grid, time_step=TIME_STEP, color_advection=False,
                 clamp_policy=ClampPolicy.LEAVE_UNCHANGED, verbose=False):
        """
        Args:
            grid: FluidGrid to advect
            time_step: Advection time scale per step
            color_advection: Also advect the color field each step
            clamp_policy: Out-of-grid trace handling
            verbose: Print per-step trace diagnostics
        """
        if not isinstance(clamp_policy, ClampPolicy):
            raise ValueError(f"Unknown clamp policy: {clamp_policy!r}")
        self.grid = grid
        self.time_step = time_step
        self.color_advection = color_advection
        self.clamp_policy = clamp_policy
        self.verbose = verbose
        self.generation = 0

    def compute_trace(self):
        """Trace the current velocity field. The result is a snapshot: later
        writes to the velocity arrays do not affect it."""
        g = self.grid
        return compute_trace(g.velocity_x, g.velocity_y, g.cells_per_side,
                             g.cell_dim, self.time_step)

    def _check_field(self, field, shape):
        if field.shape != shape:
            raise ValueError(f"Field shape {field.shape} does not match grid {shape}")

    def advect_quantity(self, field, trace=None):
        """Advect a scalar field in place. Returns the field."""
        g = self.grid
        self._check_field(field, g.shape)
        if trace is None:
            trace = self.compute_trace()
        np.copyto(g.advection_scratch, field)
        forward_pass(field, g.advection_scratch, trace)
        backward_pass(field, g.advection_scratch, trace)
        return field

    def advect_color(self, trace=None):
        """Advect the 4-channel color field in place."""
        g = self.grid
        if trace is None:
            trace = self.compute_trace()
        np.copyto(g.color_scratch, g.color)
        forward_pass(g.color, g.color_scratch, trace)
        backward_pass(g.color, g.color_scratch, trace)
        return g.color

    def step(self):
        """Advance one time step. Returns the grid."""
        # One trace for the whole step: both velocity components are read
        # before either is rewritten
        trace = self.compute_trace()
        self.advect_quantity(self.grid.velocity_x, trace)
        self.advect_quantity(self.grid.velocity_y, trace)
        if self.color_advection:
            self.advect_color(trace)

        if self.verbose:
            fwd, bwd = trace.moved_counts()
            print(f"[cellflow] step {self.generation}: {fwd} cells moved forward, "
                  f"{bwd} backward")

        self.generation += 1
        return self.grid

    def step_n(self, n):
        """Advance n steps. Returns the grid."""
        for _ in range(n):
            self.step()
        return self.grid

    def set_params(self, time_step=None, color_advection=None, **_kw):
        if time_step is not None:
            self.time_step = time_step
        if color_advection is not None:
            self.color_advection = bool(color_advection)

    def get_params(self):
        return {
            "time_step": self.time_step,
            "color_advection": self.color_advection,
        }

    @property
    def stats(self):
        stats = dict(self.grid.stats)
        stats["generation"] = self.generation
        return stats
