"""Simulation driver: owns the carriers of one path and steps them every frame."""

from __future__ import annotations

import logging
import math
import random
from collections import Counter
from typing import TYPE_CHECKING

from photonflow.config import DEFAULT_CONFIG, ConfigurationError
from photonflow.engine.color import assign_colors, select_color
from photonflow.engine.jitter import sample_noise_profile
from photonflow.engine.lifecycle import step_carrier
from photonflow.model.carrier import Carrier, LifecycleState
from photonflow.model.junction import OcclusionVolume

if TYPE_CHECKING:
    from photonflow.config import LifecycleConfig, RenderFlags
    from photonflow.engine.lifecycle import VisualAttributes
    from photonflow.model.path import Path

logger = logging.getLogger(__name__)


def create_carriers(
    count: int,
    is_branch: bool,
    rng: random.Random,
    config: LifecycleConfig,
) -> list[Carrier]:
    """Create the fixed carrier population for one path.

    Trunk carriers start immediately and are spread evenly along the path.
    Branch carriers start at the path origin with staggered delays so they
    emerge from the junction one after another.
    """
    carriers = []
    for i in range(count):
        default_color, colorful_color = assign_colors(rng, config)
        carriers.append(
            Carrier(
                path_param=0.0 if is_branch else i / count,
                speed=config.base_speed + rng.random() * config.speed_variance,
                phase_offset=rng.random() * 2 * math.pi,
                size=config.base_size + rng.random() * config.size_variance,
                default_color=default_color,
                colorful_color=colorful_color,
                start_delay=i * config.branch_stagger_seconds if is_branch else 0.0,
                is_branch=is_branch,
                noise_enabled=rng.random() < config.noise_carrier_fraction,
                noise=sample_noise_profile(rng),
            )
        )
    return carriers


class SimulationDriver:
    """Steps a fixed population of carriers bound to one path.

    Carriers are stepped in stable index order, so index ``i`` of every
    returned attribute list always refers to the same carrier.
    """

    def __init__(
        self,
        path: Path,
        count: int,
        is_branch: bool = False,
        volume: OcclusionVolume | None = None,
        config: LifecycleConfig | None = None,
        rng: random.Random | None = None,
        path_id: str = "path",
    ) -> None:
        """Initialize the driver and its carriers.

        Args:
            path: Curve the carriers travel along
            count: Number of carriers, fixed for the driver's lifetime
            is_branch: Whether this path is a drop-exempt branch
            volume: Junction volume (default: box at the origin)
            config: Engine constants (uses DEFAULT_CONFIG if None)
            rng: Random source; pass a seeded instance for reproducible runs
            path_id: Name used in logs and frames

        Raises:
            ConfigurationError: If count is not positive or config is invalid.
        """
        if count <= 0:
            raise ConfigurationError(f"Carrier count must be positive, got {count}")
        if config is None:
            config = DEFAULT_CONFIG
        config.validate()

        self.path = path
        self.path_id = path_id
        self.is_branch = is_branch
        self.volume = volume if volume is not None else OcclusionVolume()
        self.config = config
        self.rng = rng if rng is not None else random.Random()
        self.carriers = create_carriers(count, is_branch, self.rng, config)

        self.frame = 0
        self.drop_count = 0
        self.respawn_count = 0

        logger.info(
            "Driver '%s' created: carriers=%d, branch=%s, noise_affected=%d",
            path_id,
            count,
            is_branch,
            sum(1 for c in self.carriers if c.noise_enabled),
        )

    @property
    def count(self) -> int:
        return len(self.carriers)

    def step(self, delta: float, elapsed: float, flags: RenderFlags) -> list[VisualAttributes]:
        """Advance every carrier one frame.

        Args:
            delta: Seconds since the previous frame
            elapsed: Global clock in seconds
            flags: Global toggles for this frame

        Returns:
            One VisualAttributes per carrier, in carrier index order
        """
        frame_attributes = []
        for index, carrier in enumerate(self.carriers):
            before = carrier.state
            attributes = step_carrier(
                carrier,
                delta,
                elapsed,
                self.path,
                self.volume,
                flags,
                self.rng,
                self.config,
            )
            attributes.color = select_color(carrier, flags)
            self._track_transition(index, before, carrier.state)
            frame_attributes.append(attributes)

        self.frame += 1
        return frame_attributes

    def _track_transition(
        self, index: int, before: LifecycleState, after: LifecycleState
    ) -> None:
        if before == after:
            return
        context = {"path_id": self.path_id, "carrier": index, "frame": self.frame}
        if after == LifecycleState.DROPPED:
            self.drop_count += 1
            logger.debug("Carrier dropped at junction", extra=context)
        elif before == LifecycleState.DROPPED:
            self.respawn_count += 1
            logger.debug("Carrier respawned", extra=context)

    def state_counts(self) -> dict[str, int]:
        """Number of carriers in each lifecycle state."""
        counts = Counter(carrier.state for carrier in self.carriers)
        return {state.value: counts.get(state, 0) for state in LifecycleState}
