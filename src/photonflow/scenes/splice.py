"""Fiber scenes: paths, junction volume and one driver per path.

Two scenes are bundled:
- ``splice``: an incoming trunk fiber that ends inside the junction box and two
  branch fibers leaving it. Trunk carriers are the only ones that can be lost.
- ``single``: one long fiber with no junction on its route.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from photonflow.config import SimulationSettings
from photonflow.engine.driver import SimulationDriver
from photonflow.model.junction import OcclusionVolume
from photonflow.model.path import CatmullRomPath
from photonflow.model.vector import Vec3

if TYPE_CHECKING:
    from photonflow.config import RenderFlags
    from photonflow.engine.lifecycle import VisualAttributes
    from photonflow.model.path import Path

logger = logging.getLogger(__name__)

# Control points are given relative to the junction center.
TRUNK_POINTS = [
    (-5.0, 0.0, 0.0),
    (-3.0, 2.0, -1.0),
    (-1.5, 0.8, -0.6),
    (0.2, 0.0, 0.0),
]
BRANCH_POINTS = {
    "branch_upper": [(-0.3, 0.0, 0.0), (1.0, 0.3, 0.2), (3.0, 1.0, 0.5), (5.0, 2.0, 0.0)],
    "branch_lower": [(-0.3, 0.0, 0.0), (1.0, -0.3, -0.2), (3.0, -1.0, -1.0), (5.0, -1.5, 0.0)],
}
SINGLE_FIBER_POINTS = [
    (-5.0, 0.0, 0.0),
    (-3.0, 2.0, -1.0),
    (-1.0, 1.0, -2.0),
    (1.0, -1.0, -1.0),
    (3.0, 0.0, 1.0),
    (5.0, 2.0, 0.0),
]

# Junction parked far outside the single-fiber route, so nothing is ever occluded.
OFFSCREEN_CENTER = Vec3(0.0, 1000.0, 0.0)


def _curve(points: list[tuple[float, float, float]], origin: Vec3) -> CatmullRomPath:
    return CatmullRomPath([origin.add(Vec3(*p)) for p in points])


@dataclass
class FiberPath:
    """One fiber in a scene and the driver that owns its carriers."""

    id: str
    path: Path
    driver: SimulationDriver
    is_branch: bool = False


@dataclass
class SceneSnapshot:
    """Per-path visual attributes for one frame."""

    name: str
    frame: int
    elapsed: float
    volume: OcclusionVolume
    paths: dict[str, list[VisualAttributes]] = field(default_factory=dict)


@dataclass
class Scene:
    """A set of fiber paths sharing one junction volume and one clock."""

    name: str
    volume: OcclusionVolume
    fibers: dict[str, FiberPath] = field(default_factory=dict)
    elapsed: float = 0.0
    frame: int = 0

    def add_fiber(self, fiber: FiberPath) -> None:
        self.fibers[fiber.id] = fiber

    def tick(self, delta: float, flags: RenderFlags) -> SceneSnapshot:
        """Advance the scene clock and step every driver once.

        Args:
            delta: Seconds since the previous frame
            flags: Global toggles for this frame

        Returns:
            SceneSnapshot with one attribute list per fiber
        """
        self.elapsed += max(0.0, delta)
        snapshot = SceneSnapshot(
            name=self.name, frame=self.frame, elapsed=self.elapsed, volume=self.volume
        )
        for fiber_id, fiber in self.fibers.items():
            snapshot.paths[fiber_id] = fiber.driver.step(delta, self.elapsed, flags)
        self.frame += 1

        if self.frame % 300 == 0:
            logger.debug(
                "Scene '%s' frame %d: drops=%d, respawns=%d",
                self.name,
                self.frame,
                self.total_drops,
                sum(f.driver.respawn_count for f in self.fibers.values()),
            )
        return snapshot

    @property
    def total_drops(self) -> int:
        return sum(f.driver.drop_count for f in self.fibers.values())

    @property
    def carrier_count(self) -> int:
        return sum(f.driver.count for f in self.fibers.values())


def create_splice_scene(settings: SimulationSettings | None = None) -> Scene:
    """Build the trunk-and-two-branches splice scene.

    Args:
        settings: Simulation settings (defaults loaded from the environment if None)

    Returns:
        Scene with three fibers around one junction
    """
    if settings is None:
        settings = SimulationSettings()
    config = settings.lifecycle_config()
    volume = settings.junction_volume()
    rng = random.Random(settings.seed)

    scene = Scene(name="splice", volume=volume)
    trunk = _curve(TRUNK_POINTS, volume.center)
    scene.add_fiber(
        FiberPath(
            id="trunk",
            path=trunk,
            driver=SimulationDriver(
                trunk,
                settings.carrier_count,
                is_branch=False,
                volume=volume,
                config=config,
                rng=random.Random(rng.getrandbits(64)),
                path_id="trunk",
            ),
        )
    )
    for branch_id, points in BRANCH_POINTS.items():
        branch = _curve(points, volume.center)
        scene.add_fiber(
            FiberPath(
                id=branch_id,
                path=branch,
                is_branch=True,
                driver=SimulationDriver(
                    branch,
                    settings.branch_carrier_count,
                    is_branch=True,
                    volume=volume,
                    config=config,
                    rng=random.Random(rng.getrandbits(64)),
                    path_id=branch_id,
                ),
            )
        )
    return scene


def create_single_fiber_scene(settings: SimulationSettings | None = None) -> Scene:
    """Build the single-fiber scene: one curve, no junction on its route."""
    if settings is None:
        settings = SimulationSettings()
    config = settings.lifecycle_config()
    volume = OcclusionVolume(
        center=OFFSCREEN_CENTER,
        half_extents=Vec3.from_sequence(settings.junction_half_extents),
    )

    scene = Scene(name="single", volume=volume)
    fiber = CatmullRomPath([Vec3(*p) for p in SINGLE_FIBER_POINTS])
    scene.add_fiber(
        FiberPath(
            id="fiber",
            path=fiber,
            driver=SimulationDriver(
                fiber,
                settings.carrier_count,
                volume=volume,
                config=config,
                rng=random.Random(settings.seed),
                path_id="fiber",
            ),
        )
    )
    return scene


SCENES: dict[str, Callable[[SimulationSettings | None], Scene]] = {
    "splice": create_splice_scene,
    "single": create_single_fiber_scene,
}


def create_scene(name: str = "splice", settings: SimulationSettings | None = None) -> Scene:
    """Build a named scene.

    Raises:
        ValueError: If the scene name is not registered.
    """
    builder = SCENES.get(name)
    if builder is None:
        raise ValueError(f"Unknown scene: {name}")
    scene = builder(settings)
    logger.info("Scene '%s' created: carriers=%d", name, scene.carrier_count)
    return scene
