"""
Unit Tests for Dual Quaternion Module
=====================================

Tests for quaternion helpers and the DualQuaternion transform.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from src.dualquat import (
    DualQuaternion,
    normalize_vector,
    quat_conjugate,
    quat_from_axis_angle,
    quat_multiply,
    quat_normalize,
    quat_rotate_vector,
    quat_slerp,
    quat_to_axis_angle,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def random_quaternions(rng):
    """A batch of random unit quaternions."""
    return [quat_normalize(rng.normal(size=4)) for _ in range(20)]


@pytest.fixture
def random_transforms(rng, random_quaternions):
    """Random rigid transforms."""
    return [
        DualQuaternion.from_rotation_translation(q, rng.uniform(-2.0, 2.0, size=3))
        for q in random_quaternions
    ]


# =============================================================================
# Quaternion Tests
# =============================================================================


class TestQuaternion:
    """Tests for quaternion helpers."""

    def test_hamilton_product_basis(self):
        """Test i * j = k."""
        i = np.array([0.0, 1.0, 0.0, 0.0])
        j = np.array([0.0, 0.0, 1.0, 0.0])
        assert np.allclose(quat_multiply(i, j), [0, 0, 0, 1])
        assert np.allclose(quat_multiply(j, i), [0, 0, 0, -1])

    def test_conjugate(self):
        """Test conjugate negates the vector part."""
        assert np.allclose(quat_conjugate([1, 2, 3, 4]), [1, -2, -3, -4])

    def test_normalize_zero_falls_back_to_identity(self):
        """Test near-zero quaternion normalizes to identity."""
        assert np.allclose(quat_normalize(np.zeros(4)), [1, 0, 0, 0])
        assert np.allclose(quat_normalize([1e-9, 0, 0, 0]), [1, 0, 0, 0])

    def test_normalize_vector_fallback(self):
        """Test zero vector normalizes to the x-axis."""
        assert np.allclose(normalize_vector([0, 0, 0]), [1, 0, 0])
        assert np.allclose(normalize_vector([0, 3, 4]), [0, 0.6, 0.8])

    def test_axis_angle_normalizes_axis(self):
        """Test axis-angle construction with unnormalized and zero axes."""
        q = quat_from_axis_angle([0, 0, 5], np.pi / 2)
        assert np.allclose(q, [np.cos(np.pi / 4), 0, 0, np.sin(np.pi / 4)])

        q_default = quat_from_axis_angle([0, 0, 0], np.pi)
        assert np.allclose(q_default, [0, 1, 0, 0], atol=1e-12)

    def test_rotate_vector(self):
        """Test 90 degree rotation about z maps x to y."""
        q = quat_from_axis_angle([0, 0, 1], np.pi / 2)
        assert np.allclose(quat_rotate_vector(q, [1, 0, 0]), [0, 1, 0])

    def test_rotate_matches_scipy(self, rng, random_quaternions):
        """Test rotation agrees with scipy."""
        for q in random_quaternions:
            v = rng.normal(size=3)
            expected = Rotation.from_quat([q[1], q[2], q[3], q[0]]).apply(v)
            assert np.allclose(quat_rotate_vector(q, v), expected)

    def test_axis_angle_round_trip(self):
        """Test axis-angle conversion is consistent."""
        axis = normalize_vector([1, -2, 0.5])
        q = quat_from_axis_angle(axis, 0.7)
        axis_out, angle_out = quat_to_axis_angle(q)
        assert np.isclose(angle_out, 0.7)
        assert np.allclose(axis_out, axis)

    def test_axis_angle_of_identity(self):
        """Test zero rotation reports x-axis and zero angle."""
        axis, angle = quat_to_axis_angle([1, 0, 0, 0])
        assert angle == 0.0
        assert np.allclose(axis, [1, 0, 0])


class TestSlerp:
    """Tests for spherical interpolation."""

    def test_same_endpoints(self, random_quaternions):
        """Test slerp(a, a, t) = a."""
        for q in random_quaternions:
            for t in (0.0, 0.3, 1.0):
                assert np.allclose(quat_slerp(q, q, t), q)

    def test_endpoints(self, random_quaternions):
        """Test slerp(a, b, 0) = a and slerp(a, b, 1) = ±b."""
        for a, b in zip(random_quaternions[:-1], random_quaternions[1:]):
            assert np.allclose(quat_slerp(a, b, 0.0), a)
            end = quat_slerp(a, b, 1.0)
            assert np.allclose(end, b) or np.allclose(end, -b)

    def test_midpoint(self):
        """Test halfway between 0 and 90 degrees is 45 degrees."""
        a = quat_from_axis_angle([0, 0, 1], 0.0)
        b = quat_from_axis_angle([0, 0, 1], np.pi / 2)
        assert np.allclose(quat_slerp(a, b, 0.5), quat_from_axis_angle([0, 0, 1], np.pi / 4))

    def test_shortest_path(self):
        """Test the sign of the end quaternion does not change the path."""
        a = quat_from_axis_angle([0, 1, 0], 0.2)
        b = quat_from_axis_angle([1, 1, 0], 1.3)
        assert np.allclose(quat_slerp(a, b, 0.4), quat_slerp(a, -b, 0.4))

    def test_nearly_parallel_uses_linear_blend(self):
        """Test close quaternions still interpolate to a unit quaternion."""
        a = quat_from_axis_angle([0, 0, 1], 0.0)
        b = quat_from_axis_angle([0, 0, 1], 1e-4)
        q = quat_slerp(a, b, 0.5)
        assert np.isclose(np.linalg.norm(q), 1.0)
        assert np.allclose(q, quat_from_axis_angle([0, 0, 1], 5e-5), atol=1e-9)


# =============================================================================
# Dual Quaternion Tests
# =============================================================================


class TestDualQuaternion:
    """Tests for DualQuaternion."""

    def test_identity(self):
        """Test identity transform."""
        x = DualQuaternion.identity()
        assert np.allclose(x.real, [1, 0, 0, 0])
        assert np.allclose(x.dual, [0, 0, 0, 0])
        assert np.allclose(x.translation(), [0, 0, 0])

    def test_inverse_composition(self, random_transforms):
        """Test inverse(x) · x = identity."""
        identity = DualQuaternion.identity()
        for x in random_transforms:
            assert (x.inverse() @ x).is_close(identity, atol=1e-6)
            assert (x @ x.inverse()).is_close(identity, atol=1e-6)

    def test_translation_round_trip(self, rng, random_quaternions):
        """Test translation survives from_rotation_translation."""
        for q in random_quaternions:
            t = rng.uniform(-3.0, 3.0, size=3)
            x = DualQuaternion.from_rotation_translation(q, t)
            assert np.allclose(x.translation(), t)

    def test_composition(self):
        """Test composed translation is t1 + R1 t2."""
        q1 = quat_from_axis_angle([0, 0, 1], np.pi / 2)
        x1 = DualQuaternion.from_rotation_translation(q1, [1, 0, 0])
        x2 = DualQuaternion.from_rotation_translation([1, 0, 0, 0], [1, 0, 0])

        x = x1 @ x2
        assert np.allclose(x.translation(), [1, 1, 0])
        assert np.allclose(x.real, q1)

    def test_transform_point(self):
        """Test point transformation."""
        q = quat_from_axis_angle([0, 0, 1], np.pi / 2)
        x = DualQuaternion.from_rotation_translation(q, [0, 0, 1])
        assert np.allclose(x.transform_point([1, 0, 0]), [0, 1, 1])

    def test_subtraction_and_scale(self):
        """Test component-wise arithmetic."""
        x = DualQuaternion([1, 2, 3, 4], [5, 6, 7, 8])
        z = DualQuaternion.identity() - x
        assert np.allclose(z.real, [0, -2, -3, -4])
        assert np.allclose(z.dual, [-5, -6, -7, -8])
        assert np.allclose(x.scale(2.0).dual, [10, 12, 14, 16])

    def test_normalized_zero_is_identity(self):
        """Test normalization fallback."""
        x = DualQuaternion(np.zeros(4), [1, 1, 1, 1])
        assert x.normalized().is_close(DualQuaternion.identity())

    def test_normalized_scales_dual_by_real_norm(self):
        """Test only the real norm is used for normalization."""
        x = DualQuaternion([2, 0, 0, 0], [0, 2, 4, 6])
        n = x.normalized()
        assert np.allclose(n.real, [1, 0, 0, 0])
        assert np.allclose(n.dual, [0, 1, 2, 3])

    def test_to_matrix(self, random_transforms):
        """Test homogeneous matrix agrees with rotation and translation."""
        for x in random_transforms[:5]:
            M = x.to_matrix()
            point = np.array([0.3, -0.2, 0.9])
            assert np.allclose(M[:3, :3] @ point + M[:3, 3], x.transform_point(point))
            assert np.allclose(M[3], [0, 0, 0, 1])

    def test_string_format(self):
        """Test readout formatting."""
        assert str(DualQuaternion.identity()) == (
            "{q:[1.000, 0.000, 0.000, 0.000], qt:[0.000, 0.000, 0.000, 0.000]}"
        )

    def test_immutable(self):
        """Test instances cannot be reassigned."""
        x = DualQuaternion.identity()
        with pytest.raises(AttributeError):
            x.real = np.zeros(4)
