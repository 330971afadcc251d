"""
cellflow Viewer - Entry Point

Usage:
    python -m cellflow [preset] [--size N] [--cell N] [--scale N] [--color]
                       [--stats] [--verbose] [--snap STEPS]

Examples:
    python -m cellflow
    python -m cellflow updraft
    python -m cellflow burst --size 128 --scale 4
    python -m cellflow crosswind --snap 40

Use --list to see all available presets.
"""

import os
import sys

from .presets import PRESET_ORDER, get_preset, list_presets
from .renderer import GridRenderer


def snap(preset_key, preset, size, steps):
    """Headless mode: run N frames, save a PNG, exit."""
    from PIL import Image

    renderer = GridRenderer.from_preset(preset, size=size)
    print(f"  {preset_key}: running {steps} steps...", end="", flush=True)
    for _ in range(steps):
        renderer.frame()

    screenshots_dir = os.path.join(os.getcwd(), "screenshots")
    os.makedirs(screenshots_dir, exist_ok=True)
    img = Image.fromarray(renderer.get_image().to_rgb8())
    path = os.path.join(screenshots_dir, f"cellflow_{preset_key}.png")
    img.save(path)
    img.save(os.path.join(screenshots_dir, "latest.png"))
    print(f" saved: {path}")
    return path


def main(argv=None):
    preset_key = "still"
    size = None
    cell_dim = None
    scale = 2
    color = False
    print_stats = False
    verbose = False
    snap_steps = 0

    args = sys.argv[1:] if argv is None else argv
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            size = int(args[i + 1])
            i += 2
        elif arg == "--cell" and i + 1 < len(args):
            cell_dim = int(args[i + 1])
            i += 2
        elif arg == "--scale" and i + 1 < len(args):
            scale = int(args[i + 1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--color":
            color = True
            i += 1
        elif arg == "--stats":
            print_stats = True
            i += 1
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg == "--list":
            print("\nAvailable presets:")
            for key, name, desc in list_presets():
                print(f"    {key:12s} {name:12s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER:
            preset_key = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return

    preset = dict(get_preset(preset_key))
    if cell_dim is not None:
        preset["cell_dim"] = cell_dim
    if color:
        preset["color_advection"] = True
        preset["render_mode"] = "color"
    size = size or preset["size"]

    if snap_steps > 0:
        print(f"Headless snap mode: {preset_key} @ {size}x{size}, {snap_steps} steps")
        snap(preset_key, preset, size, snap_steps)
        return

    # pygame is only needed for the interactive window
    from .viewer import Viewer

    print("Starting cellflow viewer")
    print(f"  Preset: {preset_key}")
    print(f"  Image: {size}x{size} (cell {preset['cell_dim']}px)")
    print()

    viewer = Viewer(size=size, start_preset=preset_key, preset=preset, scale=scale,
                    print_stats=print_stats, verbose=verbose)
    viewer.run()


if __name__ == "__main__":
    main()
