"""Carrier lifecycle engine: advances one carrier by one frame.

State machine:
    PENDING  --start delay elapsed-->  FLOWING
    FLOWING  --inside junction-->      OCCLUDED (hidden) or DROPPED (trunk only)
    OCCLUDED --outside junction-->     FLOWING
    DROPPED  --fade complete-->        FLOWING at path_param 0

The engine is total: it never raises for numeric input, and the only
sanitization it performs is clamping path_param before evaluating the path.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from photonflow.config import DEFAULT_CONFIG, DropPolicy
from photonflow.engine.jitter import compute_jitter
from photonflow.model.carrier import LifecycleState
from photonflow.model.path import clamp_param
from photonflow.model.vector import Vec3

if TYPE_CHECKING:
    import random

    from photonflow.config import LifecycleConfig, RenderFlags
    from photonflow.model.carrier import RGB, Carrier
    from photonflow.model.junction import OcclusionVolume
    from photonflow.model.path import Path


@dataclass
class VisualAttributes:
    """What the rendering layer needs to draw one carrier for one frame.

    ``color`` is attached by the driver from the carrier's creation-time colors.
    """

    position: Vec3
    visible: bool
    scale: float = 0.0
    opacity: float = 0.0
    color: RGB = (1.0, 1.0, 1.0)


def step_carrier(
    carrier: Carrier,
    delta: float,
    elapsed: float,
    path: Path,
    volume: OcclusionVolume,
    flags: RenderFlags,
    rng: random.Random,
    config: LifecycleConfig | None = None,
) -> VisualAttributes:
    """Advance a carrier one frame and return its visual attributes.

    A non-positive delta is a paused frame: jitter and pulse are re-evaluated
    for ``elapsed`` but no state transition, advance or drop trial happens.

    Args:
        carrier: The carrier to advance, mutated in place
        delta: Seconds since the previous frame
        elapsed: Global clock in seconds, drives wobble, noise and pulse
        path: Curve the carrier travels along
        volume: Junction volume that hides and drops carriers
        flags: Current global toggles
        rng: Random source for drop trials and scatter directions
        config: Engine constants (uses DEFAULT_CONFIG if None)

    Returns:
        VisualAttributes for this frame
    """
    if config is None:
        config = DEFAULT_CONFIG
    advancing = delta > 0

    if carrier.state == LifecycleState.PENDING:
        if not advancing or not _do_pending(carrier, delta):
            return _hidden(path.point_at(clamp_param(carrier.path_param)))

    if carrier.state == LifecycleState.DROPPED:
        return _do_dropped(carrier, delta, path, config, advancing)

    return _do_flowing(carrier, delta, elapsed, path, volume, flags, rng, config, advancing)


def _do_pending(carrier: Carrier, delta: float) -> bool:
    """Count down the start delay.

    Returns:
        True once the carrier has become FLOWING.
    """
    carrier.start_delay = max(0.0, carrier.start_delay - delta)
    if carrier.start_delay > 0:
        return False
    carrier.state = LifecycleState.FLOWING
    return True


def _do_flowing(
    carrier: Carrier,
    delta: float,
    elapsed: float,
    path: Path,
    volume: OcclusionVolume,
    flags: RenderFlags,
    rng: random.Random,
    config: LifecycleConfig,
    advancing: bool,
) -> VisualAttributes:
    """FLOWING/OCCLUDED: move along the path, hide or drop inside the junction."""
    if advancing:
        carrier.path_param += delta * carrier.speed
        if carrier.path_param > 1.0:
            carrier.path_param = 0.0

    point = path.point_at(clamp_param(carrier.path_param)).add(
        compute_jitter(carrier, elapsed, flags, config)
    )

    if not volume.contains(point):
        if advancing:
            carrier.state = LifecycleState.FLOWING
        return VisualAttributes(
            position=point,
            visible=True,
            scale=pulse_scale(carrier, elapsed, config),
            opacity=config.nominal_opacity,
        )

    if not advancing:
        return _hidden(point)

    entering = carrier.state != LifecycleState.OCCLUDED
    if not carrier.is_branch and _roll_drop(rng, config, entering):
        _begin_drop(carrier, point, rng)
        return VisualAttributes(
            position=point,
            visible=True,
            scale=carrier.size,
            opacity=config.nominal_opacity,
        )

    carrier.state = LifecycleState.OCCLUDED
    return _hidden(point)


def _do_dropped(
    carrier: Carrier,
    delta: float,
    path: Path,
    config: LifecycleConfig,
    advancing: bool,
) -> VisualAttributes:
    """DROPPED: drift along the scatter direction while fading, then respawn."""
    if advancing:
        if carrier.drop_clock >= config.fade_duration_seconds:
            _respawn(carrier)
            return _hidden(path.point_at(0.0))

        direction = carrier.scatter_direction or Vec3()
        carrier.scatter_position = carrier.scatter_position.add(
            direction.scale(config.scatter_speed * delta)
        )
        carrier.drop_clock += delta
        carrier.fade_alpha = max(0.0, 1.0 - carrier.drop_clock / config.fade_duration_seconds)

    return VisualAttributes(
        position=carrier.scatter_position,
        visible=True,
        scale=carrier.size * carrier.fade_alpha,
        opacity=config.nominal_opacity * carrier.fade_alpha,
    )


def _roll_drop(rng: random.Random, config: LifecycleConfig, entering: bool) -> bool:
    """Draw the splice-loss Bernoulli trial for a trunk carrier inside the junction."""
    if config.drop_policy == DropPolicy.PER_PASS:
        return entering and rng.random() < config.drop_probability_per_pass
    return rng.random() < config.drop_probability_per_frame


def _begin_drop(carrier: Carrier, position: Vec3, rng: random.Random) -> None:
    carrier.state = LifecycleState.DROPPED
    carrier.drop_clock = 0.0
    carrier.scatter_direction = scatter_direction(rng)
    carrier.scatter_position = position
    carrier.fade_alpha = 1.0


def _respawn(carrier: Carrier) -> None:
    carrier.clear_drop()
    carrier.path_param = 0.0
    carrier.state = LifecycleState.FLOWING


def scatter_direction(rng: random.Random) -> Vec3:
    """Unit direction from two independent uniform angles.

    theta in [0, 2pi) is the azimuth and phi in [0, pi) the polar angle.
    """
    theta = rng.random() * 2 * math.pi
    phi = rng.random() * math.pi
    return Vec3(
        math.sin(phi) * math.cos(theta),
        math.sin(phi) * math.sin(theta),
        math.cos(phi),
    )


def pulse_scale(carrier: Carrier, elapsed: float, config: LifecycleConfig) -> float:
    """Base size modulated by a sine pulse; branch carriers pulse faster."""
    frequency = config.branch_pulse_frequency if carrier.is_branch else config.trunk_pulse_frequency
    return carrier.size * (
        1 + math.sin(elapsed * frequency + carrier.phase_offset) * config.pulse_amplitude
    )


def _hidden(position: Vec3) -> VisualAttributes:
    return VisualAttributes(position=position, visible=False)
