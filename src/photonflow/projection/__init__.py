"""Frame projection: scene snapshots to render-ready frames."""

from photonflow.projection.projector import (
    CarrierVisual,
    FiberVisual,
    Frame,
    JunctionVisual,
    frame_to_dict,
    glow_opacity,
    project,
    rgb_to_hex,
)

__all__ = [
    "CarrierVisual",
    "FiberVisual",
    "Frame",
    "JunctionVisual",
    "frame_to_dict",
    "glow_opacity",
    "project",
    "rgb_to_hex",
]
