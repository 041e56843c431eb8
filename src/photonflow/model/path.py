"""Fiber paths: parametric curves mapping t in [0, 1] to a 3D point.

The simulation core only depends on the ``Path`` protocol. ``LinePath`` and
``CatmullRomPath`` are the concrete curves used by the bundled scenes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from photonflow.model.vector import Vec3


@runtime_checkable
class Path(Protocol):
    """A curve evaluated at a normalized parameter.

    ``point_at`` is only defined on [0, 1]; callers clamp with ``clamp_param``.
    """

    def point_at(self, t: float) -> Vec3: ...


def clamp_param(t: float) -> float:
    """Clamp a path parameter into the [0, 1] domain."""
    if t < 0.0:
        return 0.0
    if t > 1.0:
        return 1.0
    return t


@dataclass(frozen=True)
class LinePath:
    """Straight segment from ``start`` (t=0) to ``end`` (t=1)."""

    start: Vec3
    end: Vec3

    def point_at(self, t: float) -> Vec3:
        return self.start.add(self.end.sub(self.start).scale(t))


class CatmullRomPath:
    """Uniform Catmull-Rom spline passing through every control point.

    The parameter is split evenly across segments, so t is not proportional to
    arc length. Missing end tangents come from mirrored ghost points.
    """

    def __init__(self, points: list[Vec3]) -> None:
        """Initialize the spline.

        Args:
            points: At least two control points, in travel order.

        Raises:
            ValueError: If fewer than two points are given.
        """
        if len(points) < 2:
            raise ValueError("CatmullRomPath needs at least 2 control points")
        self.points = list(points)
        head = points[0].scale(2.0).sub(points[1])
        tail = points[-1].scale(2.0).sub(points[-2])
        self._padded = [head, *self.points, tail]

    @property
    def segment_count(self) -> int:
        return len(self.points) - 1

    def point_at(self, t: float) -> Vec3:
        scaled = t * self.segment_count
        index = min(int(scaled), self.segment_count - 1)
        u = scaled - index
        p0, p1, p2, p3 = self._padded[index : index + 4]
        return _catmull_rom(p0, p1, p2, p3, u)


def _catmull_rom(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, u: float) -> Vec3:
    """Evaluate one uniform Catmull-Rom segment between p1 (u=0) and p2 (u=1)."""
    u2 = u * u
    u3 = u2 * u

    def axis(a: float, b: float, c: float, d: float) -> float:
        return 0.5 * (
            2.0 * b
            + (c - a) * u
            + (2.0 * a - 5.0 * b + 4.0 * c - d) * u2
            + (3.0 * b - a - 3.0 * c + d) * u3
        )

    return Vec3(
        axis(p0.x, p1.x, p2.x, p3.x),
        axis(p0.y, p1.y, p2.y, p3.y),
        axis(p0.z, p1.z, p2.z, p3.z),
    )
