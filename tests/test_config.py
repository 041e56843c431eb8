"""Tests for simulation configuration and settings loading."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from photonflow.config import (
    PALETTES,
    ConfigurationError,
    DropPolicy,
    LifecycleConfig,
    RenderFlags,
    SimulationSettings,
    get_settings,
)
from photonflow.model.vector import Vec3


class TestLifecycleConfig:
    """Tests for LifecycleConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Defaults match the documented splice-loss parameters."""
        config = LifecycleConfig()

        assert config.drop_probability_per_frame == 0.001
        assert config.scatter_speed == 0.15
        assert config.fade_duration_seconds == 2.0
        assert config.drop_policy == DropPolicy.PER_FRAME
        assert config.trunk_pulse_frequency == 3.0
        assert config.branch_pulse_frequency == 4.0

    def test_defaults_validate(self) -> None:
        """The default configuration is valid."""
        LifecycleConfig().validate()

    @pytest.mark.parametrize(
        ("overrides", "match"),
        [
            ({"drop_probability_per_frame": 1.5}, "drop_probability_per_frame"),
            ({"drop_probability_per_pass": -0.1}, "drop_probability_per_pass"),
            ({"fade_duration_seconds": 0.0}, "fade_duration_seconds"),
            ({"scatter_speed": -1.0}, "scatter_speed"),
            ({"base_speed": 0.0}, "base_speed"),
            ({"base_size": -0.1}, "base_size"),
            ({"nominal_opacity": 1.2}, "nominal_opacity"),
            ({"noise_carrier_fraction": 2.0}, "noise_carrier_fraction"),
            ({"palette": "infrared"}, "palette"),
        ],
    )
    def test_validate_rejects_out_of_range(self, overrides: dict, match: str) -> None:
        """Out-of-range values raise ConfigurationError naming the field."""
        with pytest.raises(ConfigurationError, match=match):
            LifecycleConfig(**overrides).validate()

    @pytest.mark.parametrize("palette", sorted(PALETTES))
    def test_every_bundled_palette_validates(self, palette: str) -> None:
        """Palette names are checked against the table defined in this module."""
        LifecycleConfig(palette=palette).validate()

    def test_probability_boundaries_allowed(self) -> None:
        """Probabilities of exactly 0 and 1 are valid."""
        LifecycleConfig(drop_probability_per_frame=1.0, drop_probability_per_pass=0.0).validate()


class TestRenderFlags:
    """Tests for RenderFlags."""

    def test_defaults_off(self) -> None:
        """Noise and colorful mode are off by default."""
        flags = RenderFlags()

        assert flags.noise_enabled is False
        assert flags.colorful_mode is False


class TestSimulationSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self) -> None:
        """Settings defaults without environment overrides."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SimulationSettings(_env_file=None)

        assert settings.carrier_count == 80
        assert settings.junction_half_extents == (0.5, 0.35, 0.3)
        assert settings.seed is None

    def test_env_overrides(self) -> None:
        """PHOTONFLOW_* variables override defaults."""
        env = {
            "PHOTONFLOW_CARRIER_COUNT": "12",
            "PHOTONFLOW_DROP_PROBABILITY_PER_FRAME": "0.5",
            "PHOTONFLOW_NOISE_ENABLED": "true",
            "PHOTONFLOW_JUNCTION_HALF_EXTENTS": "[1.0, 0.5, 0.25]",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = SimulationSettings(_env_file=None)

        assert settings.carrier_count == 12
        assert settings.drop_probability_per_frame == 0.5
        assert settings.noise_enabled is True
        assert settings.junction_half_extents == (1.0, 0.5, 0.25)

    def test_drop_policy_case_insensitive(self) -> None:
        """Drop policy names are normalized to lower case."""
        settings = SimulationSettings(_env_file=None, drop_policy="PER_PASS")

        assert settings.drop_policy == DropPolicy.PER_PASS

    def test_rejects_zero_carriers(self) -> None:
        """A zero carrier count is rejected at load time."""
        with pytest.raises(ValidationError):
            SimulationSettings(_env_file=None, carrier_count=0)

    def test_rejects_non_positive_extents(self) -> None:
        """Junction half extents must be positive."""
        with pytest.raises(ValidationError):
            SimulationSettings(_env_file=None, junction_half_extents=(0.5, 0.0, 0.3))

    def test_rejects_probability_above_one(self) -> None:
        """Probabilities above 1 are rejected."""
        with pytest.raises(ValidationError):
            SimulationSettings(_env_file=None, drop_probability_per_frame=1.5)

    def test_nominal_opacity_from_env(self) -> None:
        """The nominal opacity is set per run from the environment."""
        with patch.dict(os.environ, {"PHOTONFLOW_NOMINAL_OPACITY": "0.4"}, clear=True):
            settings = SimulationSettings(_env_file=None)

        assert settings.lifecycle_config().nominal_opacity == 0.4

    def test_rejects_opacity_above_one(self) -> None:
        """Opacities above 1 are rejected."""
        with pytest.raises(ValidationError):
            SimulationSettings(_env_file=None, nominal_opacity=1.5)

    def test_lifecycle_config(self) -> None:
        """Settings map onto engine constants."""
        settings = SimulationSettings(
            _env_file=None,
            drop_probability_per_frame=0.2,
            scatter_speed=0.3,
            fade_duration_seconds=1.5,
            base_speed=0.6,
            nominal_opacity=0.4,
            palette="ruby",
        )

        config = settings.lifecycle_config()

        assert config.nominal_opacity == 0.4
        assert config.drop_probability_per_frame == 0.2
        assert config.scatter_speed == 0.3
        assert config.fade_duration_seconds == 1.5
        assert config.base_speed == 0.6
        assert config.palette == "ruby"

    def test_lifecycle_config_rejects_unknown_palette(self) -> None:
        """Unknown palettes surface as ConfigurationError."""
        settings = SimulationSettings(_env_file=None, palette="infrared")

        with pytest.raises(ConfigurationError):
            settings.lifecycle_config()

    def test_junction_volume(self) -> None:
        """Settings build the junction box."""
        settings = SimulationSettings(
            _env_file=None, junction_center=(1.0, 2.0, 3.0), junction_half_extents=(0.4, 0.3, 0.2)
        )

        volume = settings.junction_volume()

        assert volume.center == Vec3(1.0, 2.0, 3.0)
        assert volume.half_extents == Vec3(0.4, 0.3, 0.2)

    def test_render_flags(self) -> None:
        """Initial render flags come from settings."""
        settings = SimulationSettings(_env_file=None, noise_enabled=True, colorful_mode=True)

        assert settings.render_flags() == RenderFlags(noise_enabled=True, colorful_mode=True)


class TestGetSettings:
    """Tests for the cached settings singleton."""

    def test_cached(self) -> None:
        """get_settings() returns the same instance until the cache is cleared."""
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, {"PHOTONFLOW_CARRIER_COUNT": "5"}):
                first = get_settings()
                second = get_settings()
            assert first is second
            assert first.carrier_count == 5
        finally:
            get_settings.cache_clear()
