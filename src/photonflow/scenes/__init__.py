"""Bundled fiber scenes."""

from photonflow.scenes.splice import (
    SCENES,
    FiberPath,
    Scene,
    SceneSnapshot,
    create_scene,
    create_single_fiber_scene,
    create_splice_scene,
)

__all__ = [
    "SCENES",
    "FiberPath",
    "Scene",
    "SceneSnapshot",
    "create_scene",
    "create_single_fiber_scene",
    "create_splice_scene",
]
