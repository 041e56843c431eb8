"""Carrier dataclass: One simulated photon travelling along a fiber path."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from photonflow.model.vector import Vec3

RGB = tuple[float, float, float]


class LifecycleState(StrEnum):
    """Lifecycle states of a carrier."""

    PENDING = "pending"  # Waiting out its start delay, not yet on the path
    FLOWING = "flowing"  # Travelling along the path
    OCCLUDED = "occluded"  # Travelling, but hidden inside the junction volume
    DROPPED = "dropped"  # Lost at the splice, scattering and fading out


@dataclass(frozen=True)
class NoiseProfile:
    """Per-carrier interference noise parameters, fixed at creation.

    ``multipliers`` and ``phases`` are indexed [axis][harmonic] for the x, y and z
    axes and the three harmonics of the interference signal.
    """

    frequency: float = 10.0
    multipliers: tuple[tuple[float, float, float], ...] = (
        (1.0, 2.3, 3.7),
        (1.0, 2.3, 3.7),
        (1.0, 2.3, 3.7),
    )
    phases: tuple[tuple[float, float, float], ...] = (
        (0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0),
    )
    second_ratio: float = 0.25  # Amplitude of harmonic 2 relative to harmonic 1
    third_ratio: float = 0.2  # Amplitude of harmonic 3 relative to harmonic 1


@dataclass
class Carrier:
    """A photon carrier owned by exactly one simulation driver.

    Carriers are never destroyed: a dropped carrier scatters, fades, and is
    recycled back onto the start of its path, so a driver's population is fixed.
    """

    # Transit progress
    path_param: float = 0.0  # 0.0 (path start) to 1.0 (path end), wraps to 0
    speed: float = 0.5  # path_param advance per second

    # Appearance, fixed at creation
    phase_offset: float = 0.0  # Phase for wobble and size pulse
    size: float = 0.1  # Base radius before pulsing or fading
    default_color: RGB = (1.0, 0.75, 0.2)
    colorful_color: RGB = (1.0, 1.0, 1.0)

    # Lifecycle
    start_delay: float = 0.0  # Seconds remaining before the carrier enters the path
    state: LifecycleState = LifecycleState.FLOWING
    is_branch: bool = False  # Branch carriers are never dropped

    # Splice loss bookkeeping, meaningful only while DROPPED
    drop_clock: float = 0.0
    scatter_direction: Vec3 | None = None
    scatter_position: Vec3 = field(default_factory=Vec3)
    fade_alpha: float = 1.0

    # Interference noise
    noise_enabled: bool = False  # Whether the global noise toggle reaches this carrier
    noise: NoiseProfile = field(default_factory=NoiseProfile)

    def __post_init__(self) -> None:
        if self.start_delay > 0 and self.state == LifecycleState.FLOWING:
            self.state = LifecycleState.PENDING

    @property
    def is_active(self) -> bool:
        """Whether the carrier has finished its start delay."""
        return self.state != LifecycleState.PENDING

    def clear_drop(self) -> None:
        """Reset splice loss bookkeeping after a respawn."""
        self.drop_clock = 0.0
        self.scatter_direction = None
        self.scatter_position = Vec3()
        self.fade_alpha = 1.0
