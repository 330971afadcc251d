"""
GridRenderer - Headless simulation + rasterization

Owns the output image and every core component, and exposes the per-frame
sequence the host drives:

    clear_image() -> apply_activation(...) -> render()

render() advances the simulation one step and rasterizes the result.
No windowing dependency; viewer.py adds the pygame display layer.

Usage:
    from cellflow.renderer import GridRenderer
    r = GridRenderer(cell_dim=1)
    r.alloc_output_image(64, 64)
    r.setup()
    image = r.frame(activated={5})
"""

from .grid import FluidGrid, CELL_DIM, WHITE
from .advection import AdvectionEngine, TIME_STEP
from .interaction import InteractionInjector, ACTIVATION_VELOCITY
from .raster import PixelBuffer, Rasterizer
from .presets import SEED_PATTERNS

DYE_COLOR = (1.0, 0.4, 0.2, 1.0)


class GridRenderer:
    """Image, grid, engine, injector and rasterizer behind one object."""

    def __init__(self, cell_dim=CELL_DIM, time_step=TIME_STEP, color_advection=False,
                 render_mode="motion", activation_velocity=ACTIVATION_VELOCITY,
                 verbose=False):
        self.cell_dim = cell_dim
        self.time_step = time_step
        self.color_advection = color_advection
        self.render_mode = render_mode
        self.activation_velocity = activation_velocity
        self.verbose = verbose

        self.image = None
        self.grid = None
        self.engine = None
        self.injector = None
        self.rasterizer = None

    @classmethod
    def from_preset(cls, preset, size=None, verbose=False):
        """Build, allocate and set up a renderer from a preset dict."""
        size = size or preset["size"]
        renderer = cls(cell_dim=preset.get("cell_dim", CELL_DIM),
                       time_step=preset.get("time_step", TIME_STEP),
                       color_advection=preset.get("color_advection", False),
                       render_mode=preset.get("render_mode", "motion"),
                       verbose=verbose)
        renderer.alloc_output_image(size, size)
        renderer.setup()
        renderer.seed(preset.get("seed", "still"))
        return renderer

    def alloc_output_image(self, width, height):
        """Allocate the buffer the renderer draws into. Replaces any previous one."""
        self.image = PixelBuffer(width, height)

    def get_image(self):
        return self.image

    def setup(self):
        """Allocate the grid from the image dimensions and wire the components."""
        if self.image is None:
            raise RuntimeError("alloc_output_image() must be called before setup()")
        self.grid = FluidGrid(self.image.width, self.image.height, self.cell_dim)
        self.engine = AdvectionEngine(self.grid, time_step=self.time_step,
                                      color_advection=self.color_advection,
                                      verbose=self.verbose)
        self.injector = InteractionInjector(self.grid,
                                            activation_velocity=self.activation_velocity,
                                            verbose=self.verbose)
        self.rasterizer = Rasterizer(self.grid, mode=self.render_mode)

    def _require_setup(self):
        if self.grid is None:
            raise RuntimeError("setup() must be called first")

    def clear_image(self):
        self._require_setup()
        self.rasterizer.clear(self.image)

    def apply_activation(self, activated_cells):
        self._require_setup()
        return self.injector.apply_activation(activated_cells)

    def apply_activation_mask(self, mask):
        self._require_setup()
        return self.injector.apply_activation_mask(mask)

    def set_velocities(self, vx, vy):
        self._require_setup()
        return self.injector.set_velocities(vx, vy)

    def render(self):
        """Advance one step and rasterize into the image. Returns the image."""
        self._require_setup()
        self.engine.step()
        return self.rasterizer.render(self.image)

    def frame(self, activated=None, mask=None):
        """Run a whole frame: clear, inject pending activation, step, rasterize."""
        self.clear_image()
        if activated is not None:
            self.apply_activation(activated)
        if mask is not None:
            self.apply_activation_mask(mask)
        return self.render()

    def seed(self, pattern="still"):
        """Write an initial velocity/dye pattern onto a cleared grid."""
        self._require_setup()
        if pattern not in SEED_PATTERNS:
            raise ValueError(f"Unknown seed pattern: {pattern!r}. "
                             f"Available: {', '.join(SEED_PATTERNS)}")
        g = self.grid
        g.clear()
        self.engine.generation = 0
        n = g.cells_per_side
        thick = max(1, n // 32)
        lo, hi = n // 4, n - n // 4

        if pattern == "updraft":
            r0 = n // 8
            g.velocity_y[r0:r0 + thick, lo:hi] = 1.0
            g.color[r0:r0 + thick, lo:hi] = WHITE
        elif pattern == "crosswind":
            c0 = n // 8
            g.velocity_x[lo:hi, c0:c0 + thick] = 1.0
            g.color[lo:hi, c0:c0 + thick] = WHITE
        elif pattern == "burst":
            half = max(1, n // 16)
            c = n // 2
            g.velocity_x[c - half:c + half, c - half:c + half] = 1.0
            g.velocity_y[c - half:c + half, c - half:c + half] = 1.0
            g.color[c - half:c + half, c - half:c + half] = DYE_COLOR

    def reset(self):
        """Back to a still grid."""
        self.seed("still")

    @property
    def stats(self):
        self._require_setup()
        return self.engine.stats
