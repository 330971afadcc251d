#!/usr/bin/env python3
"""
Tests for the rasterizer and the pixel buffer.
"""

import numpy as np
from cellflow.grid import FluidGrid, BACKGROUND_COLOR, WHITE
from cellflow.raster import PixelBuffer, Rasterizer


def test_still_grid_renders_background():
    grid = FluidGrid(4, 4)
    buf = PixelBuffer(4, 4)
    Rasterizer(grid).render(buf)
    assert np.allclose(buf.pixels, BACKGROUND_COLOR)


def test_moving_cell_renders_white():
    grid = FluidGrid(4, 4)
    grid.velocity_x[1, 1] = 0.1
    buf = Rasterizer(grid).render(PixelBuffer(4, 4))
    flat = buf.data.reshape(-1, 4)
    assert np.allclose(flat[5], WHITE)
    others = np.delete(flat, 5, axis=0)
    assert np.allclose(others, BACKGROUND_COLOR)


def test_output_depends_only_on_velocity():
    rng = np.random.default_rng(11)
    a = FluidGrid(8, 8)
    b = FluidGrid(8, 8)
    velocity = rng.integers(-1, 2, a.shape).astype(np.float32)
    a.velocity_y[:] = velocity
    b.velocity_y[:] = velocity
    b.color[:] = rng.random(b.color.shape, dtype=np.float32)
    b.pressure[:] = 7.0

    out_a = Rasterizer(a).render(PixelBuffer(8, 8))
    out_b = Rasterizer(b).render(PixelBuffer(8, 8))
    assert np.array_equal(out_a.data, out_b.data)


def test_cell_dim_blocks():
    grid = FluidGrid(8, 8, cell_dim=2)
    grid.velocity_y[1, 2] = 1.0
    buf = Rasterizer(grid).render(PixelBuffer(8, 8))
    assert np.allclose(buf.pixels[2:4, 4:6], WHITE)
    assert int(np.all(buf.pixels == 1.0, axis=2).sum()) == 4


def test_color_mode_copies_cell_color():
    grid = FluidGrid(4, 4)
    grid.color[3, 0] = (0.2, 0.4, 0.6, 0.8)
    buf = Rasterizer(grid, mode="color").render(PixelBuffer(4, 4))
    assert np.allclose(buf.pixels[3, 0], (0.2, 0.4, 0.6, 0.8))
    assert np.allclose(buf.pixels[0, 0], BACKGROUND_COLOR)


def test_clear_fills_white():
    grid = FluidGrid(4, 4)
    buf = PixelBuffer(4, 4)
    Rasterizer(grid).clear(buf)
    assert np.all(buf.data == 1.0)


def test_rejects_mismatched_buffer_and_mode():
    grid = FluidGrid(4, 4)
    try:
        Rasterizer(grid).render(PixelBuffer(5, 4))
    except ValueError:
        pass
    else:
        raise AssertionError("Mismatched buffer should be rejected")
    try:
        Rasterizer(grid, mode="heatmap")
    except ValueError:
        pass
    else:
        raise AssertionError("Unknown mode should be rejected")


def test_to_rgb8_flips_to_top_down():
    buf = PixelBuffer(2, 2)
    buf.clear(0.0, 0.0, 0.0, 1.0)
    buf.pixels[0, 1] = (1.0, 0.5, 2.0, 1.0)  # bottom-right, out-of-range blue
    rgb = buf.to_rgb8()
    assert rgb.shape == (2, 2, 3) and rgb.dtype == np.uint8
    assert list(rgb[1, 1]) == [255, 128, 255]
    assert list(rgb[0, 1]) == [0, 0, 0]


if __name__ == "__main__":
    print("\n=== Testing Rasterizer ===\n")

    test_still_grid_renders_background()
    test_moving_cell_renders_white()
    test_output_depends_only_on_velocity()
    test_cell_dim_blocks()
    test_color_mode_copies_cell_color()
    test_clear_fills_white()
    test_rejects_mismatched_buffer_and_mode()
    test_to_rgb8_flips_to_top_down()

    print("\n✓ All tests passed!\n")
