"""Frame projector: scene snapshots to render-ready frames.

Converts a SceneSnapshot into Frame dataclasses for a rendering client. A
Frame holds every carrier of every fiber in stable index order, the junction
box, and the cable glow level for that instant.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from photonflow.engine.lifecycle import VisualAttributes
    from photonflow.model.junction import OcclusionVolume
    from photonflow.scenes.splice import SceneSnapshot

# Cable glow pulses between 0.2 and 0.4 opacity.
GLOW_BASE_OPACITY = 0.3
GLOW_SWING = 0.1
GLOW_FREQUENCY = 2.0


@dataclass
class CarrierVisual:
    """One carrier as the renderer sees it."""

    index: int
    x: float
    y: float
    z: float
    visible: bool
    scale: float
    opacity: float
    color: str  # "#rrggbb"


@dataclass
class FiberVisual:
    """Carriers of one fiber, indexed identically every frame."""

    id: str
    carriers: list[CarrierVisual] = field(default_factory=list)

    @property
    def visible_count(self) -> int:
        return sum(1 for c in self.carriers if c.visible)


@dataclass
class JunctionVisual:
    """The opaque splice enclosure."""

    center: tuple[float, float, float]
    half_extents: tuple[float, float, float]


@dataclass
class Frame:
    """A complete visual frame for rendering."""

    scene: str
    frame: int
    time: float
    glow_opacity: float = GLOW_BASE_OPACITY
    junction: JunctionVisual | None = None
    fibers: list[FiberVisual] = field(default_factory=list)


def rgb_to_hex(color: tuple[float, float, float]) -> str:
    """Convert an RGB triple in [0, 1] to a hex color string."""
    r, g, b = (max(0, min(255, round(channel * 255))) for channel in color)
    return f"#{r:02x}{g:02x}{b:02x}"


def glow_opacity(elapsed: float) -> float:
    """Opacity of the cable's glowing inner core at a given time."""
    return GLOW_BASE_OPACITY + math.sin(elapsed * GLOW_FREQUENCY) * GLOW_SWING


def project(snapshot: SceneSnapshot) -> Frame:
    """Project a scene snapshot into a visual Frame.

    Args:
        snapshot: Per-path attributes produced by Scene.tick

    Returns:
        Frame containing all visual elements for rendering
    """
    frame = Frame(
        scene=snapshot.name,
        frame=snapshot.frame,
        time=snapshot.elapsed,
        glow_opacity=glow_opacity(snapshot.elapsed),
        junction=_project_junction(snapshot.volume),
    )
    for fiber_id, attributes in snapshot.paths.items():
        frame.fibers.append(
            FiberVisual(
                id=fiber_id,
                carriers=[_project_carrier(i, attrs) for i, attrs in enumerate(attributes)],
            )
        )
    return frame


def _project_carrier(index: int, attrs: VisualAttributes) -> CarrierVisual:
    return CarrierVisual(
        index=index,
        x=attrs.position.x,
        y=attrs.position.y,
        z=attrs.position.z,
        visible=attrs.visible,
        scale=attrs.scale,
        opacity=attrs.opacity,
        color=rgb_to_hex(attrs.color),
    )


def _project_junction(volume: OcclusionVolume) -> JunctionVisual:
    return JunctionVisual(
        center=volume.center.to_tuple(),
        half_extents=volume.half_extents.to_tuple(),
    )


def frame_to_dict(frame: Frame) -> dict[str, Any]:
    """Convert a Frame dataclass to a JSON-serializable dict."""
    return asdict(frame)
