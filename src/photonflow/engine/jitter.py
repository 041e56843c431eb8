"""Per-frame positional jitter for carriers.

Two mutually exclusive modes:
1. Ambient wobble - one slow sine, identical on all three axes
2. Interference noise - three sine harmonics per axis plus a fiber
   imperfection term that depends on path position rather than time

Interference noise replaces the wobble only when the global noise toggle is on
and the carrier itself was picked as noise-affected at creation.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from photonflow.model.carrier import NoiseProfile
from photonflow.model.vector import Vec3

if TYPE_CHECKING:
    import random

    from photonflow.config import LifecycleConfig, RenderFlags
    from photonflow.model.carrier import Carrier

WOBBLE_FREQUENCY = 2.0
IMPERFECTION_FREQUENCY = 4.0
IMPERFECTION_WEIGHTS = (1.0, 0.7, 1.2)


def ambient_wobble(elapsed: float, phase_offset: float, amplitude: float) -> Vec3:
    """Uniform wobble applied identically to x, y and z."""
    wobble = math.sin(elapsed * WOBBLE_FREQUENCY + phase_offset) * amplitude
    return Vec3(wobble, wobble, wobble)


def interference_noise(
    elapsed: float,
    path_param: float,
    profile: NoiseProfile,
    amplitude: float,
    imperfection_amplitude: float,
) -> Vec3:
    """High-frequency interference jitter for one carrier.

    Args:
        elapsed: Global clock in seconds.
        path_param: Carrier progress along its path, drives the imperfection term.
        profile: The carrier's fixed harmonic frequencies and phases.
        amplitude: Primary harmonic amplitude.
        imperfection_amplitude: Scale of the path-dependent imperfection term.

    Returns:
        Offset to add to the path position.
    """
    weights = (1.0, profile.second_ratio, profile.third_ratio)
    imperfection = math.sin(path_param * IMPERFECTION_FREQUENCY) * imperfection_amplitude

    offsets = []
    for axis in range(3):
        total = 0.0
        for harmonic in range(3):
            angle = (
                elapsed * profile.frequency * profile.multipliers[axis][harmonic]
                + profile.phases[axis][harmonic]
            )
            total += math.sin(angle) * amplitude * weights[harmonic]
        offsets.append(total + imperfection * IMPERFECTION_WEIGHTS[axis])

    return Vec3(*offsets)


def compute_jitter(
    carrier: Carrier,
    elapsed: float,
    flags: RenderFlags,
    config: LifecycleConfig,
) -> Vec3:
    """Select and evaluate the jitter mode for a carrier this frame."""
    if flags.noise_enabled and carrier.noise_enabled:
        return interference_noise(
            elapsed,
            carrier.path_param,
            carrier.noise,
            config.noise_amplitude,
            config.imperfection_amplitude,
        )
    return ambient_wobble(elapsed, carrier.phase_offset, config.wobble_amplitude)


def sample_noise_profile(rng: random.Random) -> NoiseProfile:
    """Draw a carrier's fixed interference parameters.

    Harmonic multipliers are spread around 1x, ~2.3x and ~3.7x so the three
    components rarely line up, which keeps the trajectory from looking periodic.
    """
    multipliers = tuple(
        (rng.uniform(0.8, 1.2), rng.uniform(2.0, 2.6), rng.uniform(3.3, 4.1)) for _ in range(3)
    )
    phases = tuple(tuple(rng.uniform(0.0, 2 * math.pi) for _ in range(3)) for _ in range(3))
    return NoiseProfile(
        frequency=rng.uniform(8.0, 15.0),
        multipliers=multipliers,
        phases=phases,
        second_ratio=rng.uniform(0.2, 0.3),
        third_ratio=rng.uniform(0.15, 0.3),
    )
