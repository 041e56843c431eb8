"""Vec3 dataclass: Immutable 3D vector used for positions and directions."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec3:
    """A 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def add(self, other: Vec3) -> Vec3:
        """Add another vector to this one."""
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def sub(self, other: Vec3) -> Vec3:
        """Subtract another vector from this one."""
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> Vec3:
        """Multiply every component by a scalar."""
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def magnitude(self) -> float:
        """Calculate the Euclidean length of the vector."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_sequence(cls, values: tuple[float, float, float] | list[float]) -> Vec3:
        """Build a vector from a 3-element sequence."""
        x, y, z = values
        return cls(float(x), float(y), float(z))


ZERO = Vec3()
