"""Tests for bundled fiber scenes."""

import pytest

from photonflow.config import RenderFlags, SimulationSettings
from photonflow.scenes import SCENES, create_scene
from photonflow.scenes.splice import OFFSCREEN_CENTER

FLAGS = RenderFlags()


def make_settings(**overrides) -> SimulationSettings:
    """Small, seeded settings so scenes are quick and deterministic."""
    values = {"seed": 42, "carrier_count": 10, "branch_carrier_count": 6}
    values.update(overrides)
    return SimulationSettings(_env_file=None, **values)


class TestCreateScene:
    """Tests for create_scene()."""

    def test_registered_scenes(self):
        """Both bundled scenes are registered."""
        assert set(SCENES) == {"splice", "single"}

    def test_unknown_scene_raises(self):
        """Unknown scene names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown scene"):
            create_scene("ring", make_settings())

    def test_splice_layout(self):
        """The splice scene has a trunk and two branches."""
        scene = create_scene("splice", make_settings())

        assert list(scene.fibers) == ["trunk", "branch_upper", "branch_lower"]
        assert scene.fibers["trunk"].is_branch is False
        assert scene.fibers["branch_upper"].is_branch is True
        assert scene.fibers["branch_lower"].is_branch is True
        assert scene.carrier_count == 10 + 6 + 6

    def test_fibers_meet_inside_junction(self):
        """The trunk ends and the branches begin inside the junction box."""
        scene = create_scene("splice", make_settings())

        assert scene.volume.contains(scene.fibers["trunk"].path.point_at(1.0))
        assert scene.volume.contains(scene.fibers["branch_upper"].path.point_at(0.0))
        assert scene.volume.contains(scene.fibers["branch_lower"].path.point_at(0.0))
        assert not scene.volume.contains(scene.fibers["trunk"].path.point_at(0.0))

    def test_single_fiber_scene(self):
        """The single scene has one fiber and a junction far off its route."""
        scene = create_scene("single", make_settings())

        assert list(scene.fibers) == ["fiber"]
        assert scene.volume.center == OFFSCREEN_CENTER


class TestSceneTick:
    """Tests for Scene.tick()."""

    def test_snapshot_shape(self):
        """Each tick returns one attribute list per fiber, sized to its population."""
        scene = create_scene("splice", make_settings())

        snapshot = scene.tick(1 / 30, FLAGS)

        assert len(snapshot.paths["trunk"]) == 10
        assert len(snapshot.paths["branch_upper"]) == 6
        assert len(snapshot.paths["branch_lower"]) == 6

    def test_clock_accumulates(self):
        """Elapsed time accumulates and the frame counter advances."""
        scene = create_scene("splice", make_settings())

        scene.tick(0.5, FLAGS)
        snapshot = scene.tick(0.25, FLAGS)

        assert snapshot.elapsed == pytest.approx(0.75)
        assert snapshot.frame == 1
        assert scene.frame == 2

    def test_negative_delta_does_not_rewind(self):
        """A negative delta leaves the clock where it was."""
        scene = create_scene("splice", make_settings())
        scene.tick(0.5, FLAGS)

        scene.tick(-1.0, FLAGS)

        assert scene.elapsed == pytest.approx(0.5)

    def test_single_scene_always_visible(self):
        """With no junction on the route, every carrier is visible every frame."""
        scene = create_scene("single", make_settings(drop_probability_per_frame=1.0))

        for _ in range(120):
            snapshot = scene.tick(1 / 30, FLAGS)
            assert all(attrs.visible for attrs in snapshot.paths["fiber"])

        assert scene.total_drops == 0

    def test_only_trunk_drops(self):
        """At probability one the trunk loses carriers and the branches never do."""
        scene = create_scene(
            "splice", make_settings(drop_probability_per_frame=1.0, fade_duration_seconds=0.5)
        )

        for _ in range(300):
            scene.tick(1 / 30, FLAGS)

        assert scene.fibers["trunk"].driver.drop_count > 0
        assert scene.fibers["branch_upper"].driver.drop_count == 0
        assert scene.fibers["branch_lower"].driver.drop_count == 0
        assert scene.total_drops == scene.fibers["trunk"].driver.drop_count

    def test_same_seed_same_frames(self):
        """Scenes built from the same seed evolve identically."""
        first = create_scene("splice", make_settings(drop_probability_per_frame=0.2))
        second = create_scene("splice", make_settings(drop_probability_per_frame=0.2))

        for _ in range(60):
            assert first.tick(1 / 30, FLAGS).paths == second.tick(1 / 30, FLAGS).paths
