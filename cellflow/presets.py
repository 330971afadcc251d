"""
Startup Presets

Each preset bundles an image size, grid resolution, time step, render mode
and the seed pattern applied after setup. The viewer and the headless
snapshot mode both start from one of these.
"""

PRESETS = {
    "still": {
        "name": "Still",
        "description": "Empty tank - drag the pointer to stir",
        "size": 256, "cell_dim": 1, "time_step": 1,
        "color_advection": False, "render_mode": "motion",
        "seed": "still",
    },
    "updraft": {
        "name": "Updraft",
        "description": "Horizontal band rising toward the top edge",
        "size": 256, "cell_dim": 1, "time_step": 1,
        "color_advection": False, "render_mode": "motion",
        "seed": "updraft",
    },
    "crosswind": {
        "name": "Crosswind",
        "description": "Vertical band drifting right",
        "size": 256, "cell_dim": 2, "time_step": 1,
        "color_advection": False, "render_mode": "motion",
        "seed": "crosswind",
    },
    "burst": {
        "name": "Dye Burst",
        "description": "Central block carrying dye diagonally",
        "size": 256, "cell_dim": 2, "time_step": 1,
        "color_advection": True, "render_mode": "color",
        "seed": "burst",
    },
}

PRESET_ORDER = ["still", "updraft", "crosswind", "burst"]

SEED_PATTERNS = ("still", "updraft", "crosswind", "burst")


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets():
    """Return list of (key, name, description) for presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER if k in PRESETS]
