"""
Unit Tests for Targets and Trajectory Modules
=============================================

Tests for error injection, goal resolution and pose trajectory sampling.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

import numpy as np
import pytest

from src.dualquat import DualQuaternion, quat_from_axis_angle
from src.control.targets import (
    DualQuaternionTarget,
    ErrorModel,
    PoseTarget,
    pose_delta,
    resolve_target,
    target_from_current,
)
from src.control.trajectory import (
    InterpolationMethod,
    TrajectoryOptions,
    build_trajectory,
    interpolate_geometric,
    interpolate_linear_blend,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def start():
    """Start pose."""
    q = quat_from_axis_angle([0, 0, 1], np.radians(20.0))
    return DualQuaternion.from_rotation_translation(q, [1.0, 0.2, 0.1])


@pytest.fixture
def goal():
    """Goal pose."""
    return resolve_target(PoseTarget())


@pytest.fixture
def offset_error():
    """Small rotation and translation offset."""
    q = quat_from_axis_angle([1, 0, 0], np.radians(5.0))
    return ErrorModel.from_pose(DualQuaternion.from_rotation_translation(q, [0.02, 0.0, -0.01]))


# =============================================================================
# Target Tests
# =============================================================================


class TestTargets:
    """Tests for goal resolution and error model."""

    def test_pose_target(self):
        """Test position and rotation of a pose target."""
        goal = resolve_target(PoseTarget(position=(0.7, 0.2, 0.3), axis=(0, 0, 2), angle_deg=90.0))
        assert np.allclose(goal.translation(), [0.7, 0.2, 0.3])
        assert np.allclose(goal.real, quat_from_axis_angle([0, 0, 1], np.pi / 2))

    def test_dq_target_normalizes_real_only(self):
        """Test direct target normalizes rotation and keeps dual part."""
        goal = resolve_target(DualQuaternionTarget(real=(2, 0, 0, 0), dual=(0, 0.35, 0.1, 0.15)))
        assert np.allclose(goal.real, [1, 0, 0, 0])
        assert np.allclose(goal.dual, [0, 0.35, 0.1, 0.15])

    def test_target_from_current(self, start):
        """Test a target built from a pose resolves back to it."""
        assert resolve_target(target_from_current(start)).is_close(start)

    def test_identity_error(self, start):
        """Test identity error leaves the pose unchanged."""
        error = ErrorModel()
        real = error.apply(start)
        assert real.is_close(start)
        assert pose_delta(start, real).is_close(DualQuaternion.identity())

    def test_delta_recovers_error(self, start, offset_error):
        """Test nominal⁻¹ · real equals the injected error."""
        real = offset_error.apply(start)
        assert pose_delta(start, real).is_close(offset_error.pose)

    def test_error_normalized(self):
        """Test normalization of the error rotation part."""
        error = ErrorModel(real=(2.0, 0.0, 0.0, 0.0), dual=(0.0, 0.1, 0.0, 0.0)).normalized()
        assert np.allclose(error.real, (1.0, 0.0, 0.0, 0.0))
        assert np.allclose(error.dual, (0.0, 0.1, 0.0, 0.0))


# =============================================================================
# Trajectory Tests
# =============================================================================


class TestTrajectoryOptions:
    """Tests for TrajectoryOptions."""

    def test_defaults(self):
        """Test default options."""
        options = TrajectoryOptions()
        assert options.method == InterpolationMethod.LINEAR_BLEND
        assert options.samples == 60

    @pytest.mark.parametrize("requested,expected", [(5, 10), (10, 10), (500, 200), (75, 75)])
    def test_sample_clamping(self, requested, expected):
        """Test sample count clamped to [10, 200]."""
        assert TrajectoryOptions(samples=requested).samples == expected


class TestBuildTrajectory:
    """Tests for build_trajectory."""

    @pytest.mark.parametrize("method", list(InterpolationMethod))
    def test_endpoints(self, start, goal, method):
        """Test first and last samples match start and goal."""
        traj = build_trajectory(start, goal, ErrorModel(), TrajectoryOptions(method, 30))

        assert len(traj) == 30
        assert traj.samples[0].is_close(start)
        assert np.allclose(traj.points[-1], goal.translation(), atol=1e-6)
        assert np.allclose(np.abs(np.dot(traj.samples[-1].real, goal.real)), 1.0)

    @pytest.mark.parametrize("method", list(InterpolationMethod))
    def test_unit_rotations(self, start, goal, method):
        """Test every sample has a unit real part."""
        traj = build_trajectory(start, goal, ErrorModel(), TrajectoryOptions(method))
        for x in traj:
            assert np.isclose(np.linalg.norm(x.real), 1.0)

    def test_geometric_translation_linear(self, start, goal):
        """Test geometric interpolation moves linearly in translation."""
        x = interpolate_geometric(start, goal, 0.5)
        expected = 0.5 * (start.translation() + goal.translation())
        assert np.allclose(x.translation(), expected)

    def test_linear_blend_midpoint(self, start, goal):
        """Test linear blend is the normalized component-wise average."""
        x = interpolate_linear_blend(start, goal, 0.5)
        blend = 0.5 * (start.real + goal.real)
        assert np.allclose(x.real, blend / np.linalg.norm(blend))

    def test_identity_error_points(self, start, goal):
        """Test error points coincide with points for identity error."""
        traj = build_trajectory(start, goal, ErrorModel(), TrajectoryOptions())
        assert traj.points.shape == (60, 3)
        assert np.allclose(traj.points, traj.error_points)

    def test_error_samples(self, start, goal, offset_error):
        """Test error samples are samples composed with the error."""
        traj = build_trajectory(start, goal, offset_error, TrajectoryOptions(samples=12))
        for x, x_err in zip(traj.samples, traj.error_samples):
            assert x_err.is_close(x @ offset_error.pose)
        assert not np.allclose(traj.points, traj.error_points)

    def test_constant_trajectory(self, start):
        """Test identical start and goal give a constant trajectory."""
        traj = build_trajectory(start, start, ErrorModel(), TrajectoryOptions())
        for x in traj:
            assert x.is_close(start)

    def test_clamp_index(self, start, goal):
        """Test index clamping."""
        traj = build_trajectory(start, goal, ErrorModel(), TrajectoryOptions(samples=20))
        assert traj.clamp_index(-5) == 0
        assert traj.clamp_index(7) == 7
        assert traj.clamp_index(999) == 19
        assert traj.sample(999) is traj.samples[-1]
