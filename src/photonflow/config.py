"""Simulation configuration.

``LifecycleConfig`` holds the constants the lifecycle engine reads every frame,
``RenderFlags`` holds the runtime toggles an external control layer may flip
between frames, and ``SimulationSettings`` loads both from environment
variables (prefix ``PHOTONFLOW_``) and an optional ``.env`` file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from photonflow.model.junction import OcclusionVolume
from photonflow.model.vector import Vec3

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a simulation is constructed with invalid parameters."""


@dataclass(frozen=True)
class Palette:
    """A narrow hue band with randomized lightness."""

    hue_min: float
    hue_max: float
    saturation: float
    lightness_min: float
    lightness_max: float


# Hues are fractions of the color wheel; ruby wraps past 1.0 back into red.
PALETTES: dict[str, Palette] = {
    "amber": Palette(0.08, 0.14, saturation=1.0, lightness_min=0.5, lightness_max=0.65),
    "ruby": Palette(0.96, 1.01, saturation=0.9, lightness_min=0.4, lightness_max=0.55),
    # Cool blue-green glow of the single-fiber scene
    "cyan": Palette(0.5, 0.6, saturation=1.0, lightness_min=0.55, lightness_max=0.65),
}


class DropPolicy(StrEnum):
    """How splice-loss trials are drawn while a trunk carrier is inside the junction."""

    PER_FRAME = "per_frame"  # One trial every frame spent inside the volume
    PER_PASS = "per_pass"  # One trial on the frame the carrier enters the volume


@dataclass
class LifecycleConfig:
    """Constants for the carrier lifecycle engine."""

    # Splice loss
    drop_policy: DropPolicy = DropPolicy.PER_FRAME
    drop_probability_per_frame: float = 0.001
    drop_probability_per_pass: float = 0.05
    scatter_speed: float = 0.15  # Units per second along the scatter direction
    fade_duration_seconds: float = 2.0

    # Motion jitter
    wobble_amplitude: float = 0.02
    noise_amplitude: float = 0.04  # Primary harmonic amplitude
    imperfection_amplitude: float = 0.01
    noise_carrier_fraction: float = 0.3  # Share of carriers the noise toggle affects

    # Size pulse
    pulse_amplitude: float = 0.3  # +/- fraction of base size
    trunk_pulse_frequency: float = 3.0
    branch_pulse_frequency: float = 4.0

    # Fixed per run: 0.7 for normal blending, around 0.4 for additive renderers
    nominal_opacity: float = 0.7

    # Carrier initialization
    base_speed: float = 0.3
    speed_variance: float = 0.4
    base_size: float = 0.05
    size_variance: float = 0.1
    branch_stagger_seconds: float = 0.25

    # Color policy
    palette: str = "amber"
    colorful_saturation: tuple[float, float] = (0.8, 1.0)
    colorful_lightness: tuple[float, float] = (0.55, 0.7)

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: If any parameter is out of range.
        """
        for name in ("drop_probability_per_frame", "drop_probability_per_pass"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        if not 0.0 <= self.noise_carrier_fraction <= 1.0:
            raise ConfigurationError(
                f"noise_carrier_fraction must be within [0, 1], got {self.noise_carrier_fraction}"
            )
        if self.fade_duration_seconds <= 0:
            raise ConfigurationError("fade_duration_seconds must be positive")
        if self.scatter_speed < 0:
            raise ConfigurationError("scatter_speed must not be negative")
        if self.base_speed <= 0 or self.speed_variance < 0:
            raise ConfigurationError("base_speed must be positive and speed_variance >= 0")
        if self.base_size <= 0 or self.size_variance < 0:
            raise ConfigurationError("base_size must be positive and size_variance >= 0")
        if self.branch_stagger_seconds < 0:
            raise ConfigurationError("branch_stagger_seconds must not be negative")
        if not 0.0 <= self.nominal_opacity <= 1.0:
            raise ConfigurationError("nominal_opacity must be within [0, 1]")
        if self.palette not in PALETTES:
            raise ConfigurationError(
                f"Unknown palette '{self.palette}', expected one of {sorted(PALETTES)}"
            )


DEFAULT_CONFIG = LifecycleConfig()


@dataclass
class RenderFlags:
    """Global toggles, read-only during a step and free to change between frames."""

    noise_enabled: bool = False
    colorful_mode: bool = False


class SimulationSettings(BaseSettings):
    """Scene and simulation settings loaded from the environment.

    Environment Variables:
        PHOTONFLOW_CARRIER_COUNT: Trunk carriers (default: 80)
        PHOTONFLOW_BRANCH_CARRIER_COUNT: Carriers per branch path (default: 40)
        PHOTONFLOW_DROP_PROBABILITY_PER_FRAME: Splice loss per frame (default: 0.001)
        PHOTONFLOW_DROP_PROBABILITY_PER_PASS: Splice loss per pass (default: 0.05)
        PHOTONFLOW_DROP_POLICY: per_frame or per_pass (default: per_frame)
        PHOTONFLOW_SCATTER_SPEED: Scatter speed in units/s (default: 0.15)
        PHOTONFLOW_FADE_DURATION_SECONDS: Fade-out time of dropped carriers (default: 2.0)
        PHOTONFLOW_JUNCTION_CENTER: JSON list, e.g. [0, 0, 0]
        PHOTONFLOW_JUNCTION_HALF_EXTENTS: JSON list (default: [0.5, 0.35, 0.3])
        PHOTONFLOW_BASE_SPEED: Minimum carrier speed (default: 0.3)
        PHOTONFLOW_NOMINAL_OPACITY: Opacity of visible carriers (default: 0.7)
        PHOTONFLOW_NOISE_ENABLED / PHOTONFLOW_COLORFUL_MODE: Initial toggles
        PHOTONFLOW_PALETTE: amber, ruby or cyan (default: amber)
        PHOTONFLOW_SEED: Random seed, unset for a nondeterministic run
        PHOTONFLOW_TARGET_FPS: Server tick rate (default: 30)

    Example:
        >>> settings = SimulationSettings()  # Loads from environment
        >>> settings = SimulationSettings(carrier_count=10, seed=7)
    """

    model_config = SettingsConfigDict(
        env_prefix="PHOTONFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    carrier_count: int = Field(default=80, ge=1, le=10000, description="Trunk carriers")
    branch_carrier_count: int = Field(
        default=40, ge=1, le=10000, description="Carriers per branch path"
    )

    drop_probability_per_frame: float = Field(default=0.001, ge=0.0, le=1.0)
    drop_probability_per_pass: float = Field(default=0.05, ge=0.0, le=1.0)
    drop_policy: DropPolicy = Field(default=DropPolicy.PER_FRAME)
    scatter_speed: float = Field(default=0.15, ge=0.0)
    fade_duration_seconds: float = Field(default=2.0, gt=0.0)

    junction_center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    junction_half_extents: tuple[float, float, float] = (0.5, 0.35, 0.3)

    base_speed: float = Field(default=0.3, gt=0.0)
    nominal_opacity: float = Field(default=0.7, ge=0.0, le=1.0)
    noise_enabled: bool = False
    colorful_mode: bool = False
    palette: str = "amber"

    seed: int | None = Field(default=None, description="Random seed for reproducible runs")
    target_fps: float = Field(default=30.0, gt=0.0, le=240.0)

    @field_validator("drop_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v: Any) -> Any:
        """Accept policy names in any case."""
        if isinstance(v, str):
            return DropPolicy(v.lower())
        return v

    @field_validator("junction_half_extents")
    @classmethod
    def positive_extents(cls, v: tuple[float, float, float]) -> tuple[float, float, float]:
        """Half extents must be positive on every axis."""
        if any(extent <= 0 for extent in v):
            raise ValueError("junction_half_extents must be positive on every axis")
        return v

    def lifecycle_config(self) -> LifecycleConfig:
        """Build the engine constants from these settings.

        Raises:
            ConfigurationError: If the resulting configuration is invalid.
        """
        config = LifecycleConfig(
            drop_policy=self.drop_policy,
            drop_probability_per_frame=self.drop_probability_per_frame,
            drop_probability_per_pass=self.drop_probability_per_pass,
            scatter_speed=self.scatter_speed,
            fade_duration_seconds=self.fade_duration_seconds,
            base_speed=self.base_speed,
            nominal_opacity=self.nominal_opacity,
            palette=self.palette,
        )
        config.validate()
        return config

    def junction_volume(self) -> OcclusionVolume:
        return OcclusionVolume(
            center=Vec3.from_sequence(self.junction_center),
            half_extents=Vec3.from_sequence(self.junction_half_extents),
        )

    def render_flags(self) -> RenderFlags:
        return RenderFlags(noise_enabled=self.noise_enabled, colorful_mode=self.colorful_mode)


@lru_cache
def get_settings() -> SimulationSettings:
    """Get cached settings singleton.

    To reload settings, call get_settings.cache_clear() first.
    """
    settings = SimulationSettings()
    logger.info(
        "Loaded simulation settings: carriers=%d, branch_carriers=%d, drop_policy=%s",
        settings.carrier_count,
        settings.branch_carrier_count,
        settings.drop_policy.value,
    )
    return settings
