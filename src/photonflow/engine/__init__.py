"""Simulation core: carrier lifecycle engine, jitter, color policy, per-path driver."""

from photonflow.engine.color import (
    PALETTES,
    Palette,
    assign_colors,
    hsl_to_rgb,
    select_color,
)
from photonflow.engine.driver import SimulationDriver, create_carriers
from photonflow.engine.jitter import (
    ambient_wobble,
    compute_jitter,
    interference_noise,
    sample_noise_profile,
)
from photonflow.engine.lifecycle import (
    VisualAttributes,
    pulse_scale,
    scatter_direction,
    step_carrier,
)

__all__ = [
    "PALETTES",
    "Palette",
    "SimulationDriver",
    "VisualAttributes",
    "ambient_wobble",
    "assign_colors",
    "compute_jitter",
    "create_carriers",
    "hsl_to_rgb",
    "interference_noise",
    "pulse_scale",
    "sample_noise_profile",
    "scatter_direction",
    "select_color",
    "step_carrier",
]
