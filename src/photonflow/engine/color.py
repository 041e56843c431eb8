"""Carrier color policy.

Every carrier gets two colors at creation: a themed color from the scene palette
and a rainbow color for colorful mode. The colorful toggle only selects between
them, so a carrier's color never changes while the toggle is held constant.
"""

from __future__ import annotations

import colorsys
from typing import TYPE_CHECKING

from photonflow.config import PALETTES, Palette

if TYPE_CHECKING:
    import random

    from photonflow.config import LifecycleConfig, RenderFlags
    from photonflow.model.carrier import RGB, Carrier


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> RGB:
    """Convert HSL components (each in [0, 1], hue wrapping) to an RGB triple."""
    return colorsys.hls_to_rgb(hue % 1.0, lightness, saturation)


def sample_palette_color(rng: random.Random, palette: Palette) -> RGB:
    hue = rng.uniform(palette.hue_min, palette.hue_max)
    lightness = rng.uniform(palette.lightness_min, palette.lightness_max)
    return hsl_to_rgb(hue, palette.saturation, lightness)


def sample_colorful_color(rng: random.Random, config: LifecycleConfig) -> RGB:
    """Sample a rainbow color: uniform hue, saturation and lightness from config ranges."""
    hue = rng.random()
    saturation = rng.uniform(*config.colorful_saturation)
    lightness = rng.uniform(*config.colorful_lightness)
    return hsl_to_rgb(hue, saturation, lightness)


def assign_colors(rng: random.Random, config: LifecycleConfig) -> tuple[RGB, RGB]:
    """Draw a carrier's (default, colorful) color pair.

    Returns:
        Tuple of the palette color and the rainbow color.
    """
    return sample_palette_color(rng, PALETTES[config.palette]), sample_colorful_color(rng, config)


def select_color(carrier: Carrier, flags: RenderFlags) -> RGB:
    """Pick the color a carrier displays under the current flags."""
    return carrier.colorful_color if flags.colorful_mode else carrier.default_color
