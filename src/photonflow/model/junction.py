"""OcclusionVolume dataclass: The opaque splice enclosure carriers pass through."""

from __future__ import annotations

from dataclasses import dataclass, field

from photonflow.model.vector import Vec3

DEFAULT_HALF_EXTENTS = Vec3(0.5, 0.35, 0.3)


@dataclass(frozen=True)
class OcclusionVolume:
    """An axis-aligned box around the junction.

    Carriers inside the box are hidden from view. Trunk carriers inside the box
    are the only ones eligible for splice loss.
    """

    center: Vec3 = field(default_factory=Vec3)
    half_extents: Vec3 = DEFAULT_HALF_EXTENTS

    def contains(self, point: Vec3) -> bool:
        """Check whether a point lies strictly inside the box on all three axes."""
        return (
            abs(point.x - self.center.x) < self.half_extents.x
            and abs(point.y - self.center.y) < self.half_extents.y
            and abs(point.z - self.center.z) < self.half_extents.z
        )

    @property
    def min_corner(self) -> Vec3:
        return self.center.sub(self.half_extents)

    @property
    def max_corner(self) -> Vec3:
        return self.center.add(self.half_extents)
