"""
Quaternion Module
=================

Quaternion and small-vector helpers used throughout the kinematics core.

Conventions:
    All quaternions are numpy arrays in [w, x, y, z] order (scalar first).
    Unit quaternions represent rotations; the Hamilton product is used for
    composition, so q_a * q_b applies q_b first and then q_a.

Mathematical Background:

    Hamilton product:
        (a_w + a_v)(b_w + b_v) = a_w b_w - a_v·b_v
                                 + a_w b_v + b_w a_v + a_v × b_v

    Axis-angle:
        q = [cos(θ/2), sin(θ/2) · n]

    Spherical linear interpolation (slerp):
        slerp(a, b, t) = sin((1-t)Ω)/sin(Ω) · a + sin(tΩ)/sin(Ω) · b
        with cos(Ω) = a·b

Degenerate inputs never raise. A zero-length axis falls back to the x-axis
and a zero-norm quaternion normalizes to the identity.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from typing import Tuple
import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating]

EPS = 1e-8
SLERP_LINEAR_THRESHOLD = 0.9995

DEFAULT_AXIS = np.array([1.0, 0.0, 0.0])
IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])


# =============================================================================
# Vector Helpers
# =============================================================================

def normalize_vector(v: FloatArray) -> FloatArray:
    """
    Normalize a 3-vector to unit length.
    
    Args:
        v: Vector [x, y, z]
        
    Returns:
        Unit vector, or the default x-axis when |v| < EPS
    """
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if norm < EPS:
        return DEFAULT_AXIS.copy()
    return v / norm


def lerp(a: FloatArray, b: FloatArray, t: float) -> FloatArray:
    """Component-wise linear interpolation."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return a + (b - a) * t


# =============================================================================
# Quaternion Operations
# =============================================================================

def quat_multiply(a: FloatArray, b: FloatArray) -> FloatArray:
    """
    Hamilton product of two quaternions.
    
    Args:
        a: Left quaternion [w, x, y, z]
        b: Right quaternion [w, x, y, z]
        
    Returns:
        Product a * b
    """
    aw, ax, ay, az = a[0], a[1], a[2], a[3]
    bw, bx, by, bz = b[0], b[1], b[2], b[3]
    
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw
    ])


def quat_conjugate(q: FloatArray) -> FloatArray:
    """Conjugate (negated vector part)."""
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=float)


def quat_norm(q: FloatArray) -> float:
    """Euclidean norm of the four components."""
    return float(np.linalg.norm(q))


def quat_normalize(q: FloatArray) -> FloatArray:
    """
    Normalize a quaternion to unit norm.
    
    Falls back to the identity quaternion when the norm is below EPS.
    """
    q = np.asarray(q, dtype=float)
    norm = quat_norm(q)
    if norm < EPS:
        return IDENTITY_QUAT.copy()
    return q / norm


def pure_quat(v: FloatArray) -> FloatArray:
    """Embed a 3-vector as the pure quaternion (0, v)."""
    return np.array([0.0, v[0], v[1], v[2]], dtype=float)


def quat_from_axis_angle(axis: FloatArray, angle: float) -> FloatArray:
    """
    Create a rotation quaternion from axis and angle.
    
    Args:
        axis: Rotation axis (normalized internally, x-axis if degenerate)
        angle: Rotation angle in radians
        
    Returns:
        Unit quaternion [w, x, y, z]
    """
    n = normalize_vector(axis)
    half = 0.5 * angle
    s = np.sin(half)
    return np.array([np.cos(half), n[0] * s, n[1] * s, n[2] * s])


def quat_to_axis_angle(q: FloatArray) -> Tuple[FloatArray, float]:
    """
    Convert a quaternion to axis-angle form.
    
    The quaternion is normalized first. When the rotation is (numerically)
    zero the axis is reported as the x-axis with angle 0.
    
    Returns:
        Tuple of (unit axis, angle in radians within [0, 2π])
    """
    nq = quat_normalize(q)
    w = float(np.clip(nq[0], -1.0, 1.0))
    angle = 2.0 * np.arccos(w)
    s = np.sqrt(max(0.0, 1.0 - w * w))
    
    if s < EPS:
        return DEFAULT_AXIS.copy(), 0.0
    
    return nq[1:4] / s, float(angle)


def quat_rotate_vector(q: FloatArray, v: FloatArray) -> FloatArray:
    """Rotate a 3-vector: vector part of q * (0, v) * conj(q)."""
    rotated = quat_multiply(quat_multiply(q, pure_quat(v)), quat_conjugate(q))
    return rotated[1:4]


def quat_slerp(a: FloatArray, b: FloatArray, t: float) -> FloatArray:
    """
    Spherical linear interpolation along the shortest arc.
    
    The end quaternion is negated when a·b < 0. Nearly parallel inputs
    (cos > SLERP_LINEAR_THRESHOLD) are blended linearly and renormalized.
    
    Args:
        a: Start quaternion
        b: End quaternion
        t: Interpolation parameter in [0, 1]
        
    Returns:
        Interpolated quaternion
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    
    cos_half = float(np.dot(a, b))
    if cos_half < 0:
        b = -b
        cos_half = -cos_half
    
    if cos_half > SLERP_LINEAR_THRESHOLD:
        return quat_normalize(lerp(a, b, t))
    
    half_theta = np.arccos(cos_half)
    sin_half = np.sqrt(1.0 - cos_half * cos_half)
    ratio_a = np.sin((1.0 - t) * half_theta) / sin_half
    ratio_b = np.sin(t * half_theta) / sin_half
    
    return a * ratio_a + b * ratio_b
