"""Domain model: Carrier, paths, junction volume, vectors."""

from photonflow.model.carrier import RGB, Carrier, LifecycleState, NoiseProfile
from photonflow.model.junction import OcclusionVolume
from photonflow.model.path import CatmullRomPath, LinePath, Path, clamp_param
from photonflow.model.vector import Vec3

__all__ = [
    "RGB",
    "Carrier",
    "CatmullRomPath",
    "LifecycleState",
    "LinePath",
    "NoiseProfile",
    "OcclusionVolume",
    "Path",
    "Vec3",
    "clamp_param",
]
