#!/usr/bin/env python3
"""
Tests for the headless GridRenderer, presets and the command-line entry point.

Verifies:
1. Lifecycle ordering (alloc -> setup -> frames)
2. The 4x4 activation scenario end to end
3. Seed patterns and presets
4. CLI list/snap modes
"""

import os
import numpy as np
import pytest

from cellflow.grid import BACKGROUND_COLOR, WHITE
from cellflow.renderer import GridRenderer
from cellflow.presets import PRESET_ORDER, get_preset, list_presets
from cellflow.__main__ import main


def _renderer(size=4, **kwargs):
    r = GridRenderer(**kwargs)
    r.alloc_output_image(size, size)
    r.setup()
    return r


def test_lifecycle_order_enforced():
    r = GridRenderer()
    with pytest.raises(RuntimeError):
        r.setup()
    r.alloc_output_image(4, 4)
    with pytest.raises(RuntimeError):
        r.render()
    r.setup()
    assert r.get_image().width == 4
    assert r.grid.cells_per_side == 4


def test_activation_scenario():
    """4x4 image, pixel 5 activated: only pixel 5 lights up, vy stays 4.0."""
    r = _renderer()
    image = r.frame(activated={5})

    assert np.allclose(r.grid.color[1, 1], WHITE)
    assert r.grid.velocity_y[1, 1] == 4.0

    flat = image.data.reshape(-1, 4)
    assert np.allclose(flat[5], WHITE)
    assert np.allclose(np.delete(flat, 5, axis=0), BACKGROUND_COLOR)
    assert r.stats["generation"] == 1


def test_frame_sequence_matches_manual_calls():
    a = _renderer(size=8)
    b = _renderer(size=8)
    mask = np.zeros(64, dtype=np.int32)
    mask[10] = 1

    a.frame(mask=mask)

    b.clear_image()
    b.apply_activation_mask(mask)
    b.render()

    assert np.array_equal(a.get_image().data, b.get_image().data)
    assert np.array_equal(a.grid.velocity_y, b.grid.velocity_y)


def test_set_velocities_through_renderer():
    r = _renderer()
    vx = np.zeros(16)
    vx[0] = 9.0
    assert r.set_velocities(vx, np.zeros(16)) == 1
    assert r.grid.velocity_x[0, 0] == 9.0


def test_seed_patterns():
    r = _renderer(size=64)
    r.seed("updraft")
    assert r.stats["moving_cells"] > 0
    assert r.grid.velocity_y.max() == 1.0
    assert not r.grid.velocity_x.any()

    r.seed("crosswind")
    assert not r.grid.velocity_y.any()
    assert r.grid.velocity_x.max() == 1.0

    r.reset()
    assert r.stats["moving_cells"] == 0

    with pytest.raises(ValueError):
        r.seed("tornado")


def test_presets_build_and_step():
    for key in PRESET_ORDER:
        preset = get_preset(key)
        r = GridRenderer.from_preset(preset, size=32)
        assert r.engine.color_advection == preset["color_advection"]
        image = r.frame()
        assert image.data.shape == (32 * 32 * 4,)
    assert [k for k, _, _ in list_presets()] == PRESET_ORDER
    assert get_preset("nope") is None


def test_cli_list(capsys):
    main(["--list"])
    out = capsys.readouterr().out
    for key in PRESET_ORDER:
        assert key in out


def test_cli_unknown_argument(capsys):
    main(["--bogus"])
    assert "Unknown argument" in capsys.readouterr().out


def test_cli_snap_writes_png(tmp_path, monkeypatch):
    pytest.importorskip("PIL")
    monkeypatch.chdir(tmp_path)
    main(["burst", "--size", "32", "--snap", "3"])
    path = tmp_path / "screenshots" / "cellflow_burst.png"
    assert path.exists()
    assert os.path.exists(tmp_path / "screenshots" / "latest.png")


if __name__ == "__main__":
    print("\n=== Testing GridRenderer ===\n")

    test_lifecycle_order_enforced()
    test_activation_scenario()
    test_frame_sequence_matches_manual_calls()
    test_set_velocities_through_renderer()
    test_seed_patterns()
    test_presets_build_and_step()

    print("\n✓ All tests passed!\n")
