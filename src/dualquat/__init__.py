"""
Dual Quaternion Module
======================

Quaternion and dual-quaternion algebra for rigid-body transforms.

Key Components:
    - quaternion: Hamilton product, axis-angle, slerp and vector helpers
    - DualQuaternion: Immutable rigid transform with composition,
      inverse and translation extraction

All quaternions are numpy arrays in [w, x, y, z] order.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from .quaternion import (
    EPS,
    normalize_vector,
    quat_conjugate,
    quat_from_axis_angle,
    quat_multiply,
    quat_normalize,
    quat_rotate_vector,
    quat_slerp,
    quat_to_axis_angle,
)

from .dual_quaternion import DualQuaternion

__version__ = "0.1.0"

__all__ = [
    "EPS",
    "normalize_vector",
    "quat_conjugate",
    "quat_from_axis_angle",
    "quat_multiply",
    "quat_normalize",
    "quat_rotate_vector",
    "quat_slerp",
    "quat_to_axis_angle",
    "DualQuaternion",
]
