"""
Error and Target Model
======================

Systematic pose error injection and goal pose specification.

The "real" end-effector pose differs from the nominal one by a constant,
unmodeled offset:

    x_real  = x_N · x_err
    x_delta = x_N⁻¹ · x_real

Goals are given either as a position plus axis-angle rotation, or directly as
dual-quaternion components.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np

from ..dualquat import (
    DualQuaternion,
    normalize_vector,
    quat_from_axis_angle,
    quat_normalize,
)

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]
Vector4 = Tuple[float, float, float, float]


@dataclass(frozen=True)
class ErrorModel:
    """
    Fixed discrepancy between nominal and real end-effector pose.
    
    Attributes:
        real: Rotation part of the error [w, x, y, z]
        dual: Dual part of the error [w, x, y, z]
    """
    real: Vector4 = (1.0, 0.0, 0.0, 0.0)
    dual: Vector4 = (0.0, 0.0, 0.0, 0.0)
    
    @property
    def pose(self) -> DualQuaternion:
        return DualQuaternion(np.array(self.real), np.array(self.dual))
    
    def apply(self, nominal: DualQuaternion) -> DualQuaternion:
        """Error-injected ("real") pose: nominal · error."""
        return nominal @ self.pose
    
    def normalized(self) -> "ErrorModel":
        """Copy with a unit-norm rotation part; the dual part is untouched."""
        q = quat_normalize(self.real)
        return ErrorModel(tuple(float(v) for v in q), self.dual)
    
    @classmethod
    def from_pose(cls, pose: DualQuaternion) -> "ErrorModel":
        real, dual = pose.as_tuple()
        return cls(real, dual)


def pose_delta(nominal: DualQuaternion, real: DualQuaternion) -> DualQuaternion:
    """Relative transform from nominal to real pose."""
    return nominal.inverse() @ real


# =============================================================================
# Targets
# =============================================================================

@dataclass(frozen=True)
class PoseTarget:
    """
    Goal given as position and axis-angle orientation.
    
    Attributes:
        position: Goal position (m)
        axis: Rotation axis (normalized on use)
        angle_deg: Rotation angle (degrees)
    """
    position: Vector3 = (0.7, 0.2, 0.3)
    axis: Vector3 = (0.0, 0.0, 1.0)
    angle_deg: float = 45.0


@dataclass(frozen=True)
class DualQuaternionTarget:
    """
    Goal given directly as dual-quaternion components.
    
    The real part is normalized on resolution; the dual part is used as
    given, even when it is not consistent with a rigid transform.
    """
    real: Vector4 = (1.0, 0.0, 0.0, 0.0)
    dual: Vector4 = (0.0, 0.35, 0.1, 0.15)


TargetSpec = Union[PoseTarget, DualQuaternionTarget]


def resolve_target(spec: TargetSpec) -> DualQuaternion:
    """
    Resolve a target specification to a goal pose.
    
    Args:
        spec: PoseTarget or DualQuaternionTarget
        
    Returns:
        Goal dual quaternion
    """
    if isinstance(spec, PoseTarget):
        axis = normalize_vector(spec.axis)
        q = quat_from_axis_angle(axis, np.radians(spec.angle_deg))
        return DualQuaternion.from_rotation_translation(q, spec.position)
    if isinstance(spec, DualQuaternionTarget):
        return DualQuaternion(quat_normalize(spec.real), np.array(spec.dual, dtype=float))
    raise TypeError(f"Unsupported target type: {type(spec).__name__}")


def target_from_current(pose: DualQuaternion) -> DualQuaternionTarget:
    """Direct-mode target equal to the given (current) pose."""
    real, dual = pose.as_tuple()
    return DualQuaternionTarget(real, dual)
