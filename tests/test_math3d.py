"""Tests for Pose and vector helpers."""

import math

import numpy as np
import pytest

from scenecue import InvalidArgument, Pose
from scenecue.math3d import as_vector, compose_relative, interpolate, is_number


QUARTER_Z = Pose.from_axis_angle((0, 0, 1), math.pi / 2)


class TestAsVector:
    def test_accepts_sequences(self) -> None:
        assert as_vector([1, 2, 3]).tolist() == [1.0, 2.0, 3.0]

    @pytest.mark.parametrize("value", ["abc", (1, 2), [1, 2, 3, 4], [1, math.nan, 0], None, Pose()])
    def test_rejects(self, value) -> None:
        with pytest.raises(InvalidArgument) as exc:
            as_vector(value, "translation")
        assert exc.value.argument == "translation"

    def test_bool_is_not_a_number(self) -> None:
        assert not is_number(True)
        assert is_number(np.float64(1.5))


class TestPose:
    def test_composition_applies_local_frame(self) -> None:
        moved = QUARTER_Z @ Pose((1, 0, 0))
        assert moved.position.tolist() == pytest.approx([0.0, 1.0, 0.0], abs=1e-12)

    def test_inverse(self) -> None:
        pose = Pose.from_axis_angle((1, 1, 0), 0.7, (3, -1, 2))
        assert (pose @ pose.inverse()).isclose(Pose.identity())

    def test_translated_local_and_world(self) -> None:
        delta = np.array([1.0, 0.0, 0.0])
        assert QUARTER_Z.translated_local(delta).position.tolist() == pytest.approx([0.0, 1.0, 0.0], abs=1e-12)
        assert QUARTER_Z.translated_world(delta).position.tolist() == [1.0, 0.0, 0.0]

    def test_add_offsets_position(self) -> None:
        assert (Pose((1, 1, 1)) + (1, 2, 3)) == Pose((2, 3, 4))

    def test_unhashable(self) -> None:
        with pytest.raises(TypeError):
            hash(Pose())

    def test_bad_rotation(self) -> None:
        with pytest.raises(InvalidArgument):
            Pose((0, 0, 0), np.identity(4))

    def test_lerp_halfway(self) -> None:
        half = Pose().lerp(Pose.from_axis_angle((0, 0, 1), math.pi / 2, (2, 0, 0)), 0.5)
        assert half.isclose(Pose.from_axis_angle((0, 0, 1), math.pi / 4, (1, 0, 0)))


class TestCompose:
    def test_numbers_add(self) -> None:
        assert compose_relative(3, 4) == 7

    def test_vectors_add(self) -> None:
        assert compose_relative(np.array([1.0, 1.0, 1.0]), (1, 2, 3)).tolist() == [2.0, 3.0, 4.0]

    def test_poses_compose(self) -> None:
        assert compose_relative(QUARTER_Z, Pose((1, 0, 0))).isclose(QUARTER_Z @ Pose((1, 0, 0)))

    @pytest.mark.parametrize("current, delta", [(Pose(), 1.0), ("a", "b"), (True, 1)])
    def test_incompatible(self, current, delta) -> None:
        with pytest.raises(TypeError):
            compose_relative(current, delta)


class TestInterpolate:
    def test_numbers(self) -> None:
        assert interpolate(0.0, 10.0, 0.25) == 2.5

    def test_vectors(self) -> None:
        assert interpolate(np.zeros(3), (2, 4, 6), 0.5).tolist() == [1.0, 2.0, 3.0]

    def test_snaps_other_values(self) -> None:
        assert interpolate("off", "on", 0.5) == "off"
        assert interpolate("off", "on", 1.0) == "on"
