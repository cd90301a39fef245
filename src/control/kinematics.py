"""
Kinematics Module
=================

Forward kinematics and geometric Jacobian for a 4-DOF serial arm
(three rotational joints followed by one prismatic joint), using dual
quaternions as the pose representation.

Mathematical Background:

    Joint transforms:
        Rotational joint i with local axis n, angle θ and link length L:
            q_i = [cos(θ/2), sin(θ/2) n]
            t_i = q_i · (L, 0, 0) · q_i*        (link carried by the joint)
            
        Prismatic joint with local axis n and displacement d:
            q_i = 1
            t_i = d · n
            
        x_i = q_i + ε ½ (0, t_i) q_i
        
    Forward Kinematics:
        End-effector pose x_N = x_1 · x_2 · x_3 · x_4
        
    Geometric Jacobian (columns ordered by joint, rows [ω; v]):
        Rotational: J_i = [a_i ; a_i × (p_N - p_i)]
        Prismatic:  J_i = [0   ; a_i]
        
        where a_i is the joint axis expressed in the world frame and p_i the
        world position of the joint.

Arm Specifications:
    - Joint 1: Rotational, link 0.6 m
    - Joint 2: Rotational, link 0.5 m
    - Joint 3: Rotational, link 0.4 m
    - Joint 4: Prismatic

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, List, Sequence, Union
import numpy as np
from numpy.typing import NDArray

from ..dualquat import (
    DualQuaternion,
    normalize_vector,
    quat_from_axis_angle,
    quat_multiply,
    quat_rotate_vector,
)

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating]

N_JOINTS = 4
DEFAULT_LINK_LENGTHS = (0.6, 0.5, 0.4)


# =============================================================================
# Data Classes
# =============================================================================

class AxisMode(Enum):
    """Axis selection for a joint."""
    X = "x"
    Y = "y"
    Z = "z"
    CUSTOM = "custom"


_CANONICAL_AXES = {
    AxisMode.X: (1.0, 0.0, 0.0),
    AxisMode.Y: (0.0, 1.0, 0.0),
    AxisMode.Z: (0.0, 0.0, 1.0),
}


@dataclass(frozen=True)
class JointAxis:
    """
    Joint axis in the joint's local frame.
    
    Attributes:
        mode: Canonical axis or CUSTOM
        custom: Vector used when mode is CUSTOM (normalized on use)
    """
    mode: AxisMode = AxisMode.Z
    custom: Tuple[float, float, float] = (0.0, 0.0, 1.0)
    
    @classmethod
    def parse(cls, value: Union[str, Sequence[float], "JointAxis"]) -> "JointAxis":
        """Build from 'x' / 'y' / 'z' or an explicit vector."""
        if isinstance(value, JointAxis):
            return value
        if isinstance(value, str):
            try:
                mode = AxisMode(value.lower())
            except ValueError:
                raise ValueError(f"Unknown axis '{value}'") from None
            if mode == AxisMode.CUSTOM:
                raise ValueError("A custom axis needs an explicit vector")
            return cls(mode=mode, custom=_CANONICAL_AXES[mode])
        vector = tuple(float(v) for v in value)
        if len(vector) != 3:
            raise ValueError(f"Axis vector must have 3 components, got {len(vector)}")
        return cls(mode=AxisMode.CUSTOM, custom=vector)
    
    def vector(self) -> FloatArray:
        """Unit axis vector (x-axis if the custom vector is degenerate)."""
        if self.mode in _CANONICAL_AXES:
            return np.array(_CANONICAL_AXES[self.mode])
        return normalize_vector(self.custom)
    
    def to_config(self) -> Union[str, List[float]]:
        if self.mode == AxisMode.CUSTOM:
            return [float(v) for v in self.custom]
        return self.mode.value


@dataclass(frozen=True)
class RotationalJoint:
    """
    Revolute joint whose link is traversed along its local x-axis.
    
    Attributes:
        angle_deg: Joint angle (degrees)
        axis: Rotation axis in the local frame
        link_length: Length of the link carried by this joint (m)
    """
    angle_deg: float = 0.0
    axis: JointAxis = field(default_factory=JointAxis)
    link_length: float = 0.5
    
    def __post_init__(self) -> None:
        """Validate link length."""
        if self.link_length <= 0:
            raise ValueError(f"link_length must be positive, got {self.link_length}")
    
    @property
    def value(self) -> float:
        """Joint coordinate in its native unit (degrees)."""
        return self.angle_deg
    
    def with_value(self, value: float) -> "RotationalJoint":
        return replace(self, angle_deg=float(value))
    
    def perturbed(self, step: float) -> "RotationalJoint":
        """Copy with the angle advanced by `step` radians."""
        return replace(self, angle_deg=self.angle_deg + float(np.degrees(step)))


@dataclass(frozen=True)
class PrismaticJoint:
    """
    Linear joint sliding along its local axis.
    
    Attributes:
        displacement: Joint displacement (m)
        axis: Slide axis in the local frame
    """
    displacement: float = 0.0
    axis: JointAxis = field(default_factory=lambda: JointAxis(AxisMode.X, (1.0, 0.0, 0.0)))
    
    @property
    def value(self) -> float:
        """Joint coordinate in its native unit (meters)."""
        return self.displacement
    
    def with_value(self, value: float) -> "PrismaticJoint":
        return replace(self, displacement=float(value))
    
    def perturbed(self, step: float) -> "PrismaticJoint":
        """Copy with the displacement advanced by `step` meters."""
        return replace(self, displacement=self.displacement + float(step))


Joint = Union[RotationalJoint, PrismaticJoint]


@dataclass(frozen=True)
class JointRange:
    """
    Numeric range used to clamp a joint coordinate.
    
    Units follow the joint: degrees for rotational joints, meters for
    prismatic joints.
    
    Attributes:
        lower: Lower bound
        upper: Upper bound
    """
    lower: float = -180.0
    upper: float = 180.0
    
    def __post_init__(self) -> None:
        """Validate range."""
        if self.lower >= self.upper:
            raise ValueError(f"lower ({self.lower}) must be < upper ({self.upper})")
    
    def clamp(self, value: float) -> float:
        """Clamp value to the range."""
        return float(np.clip(value, self.lower, self.upper))
    
    def is_within(self, value: float, margin: float = 0.0) -> bool:
        """Check if value is within the range with optional margin."""
        return (self.lower + margin) <= value <= (self.upper - margin)


DEFAULT_ROTATIONAL_RANGE = JointRange(-180.0, 180.0)
DEFAULT_PRISMATIC_RANGE = JointRange(-0.5, 0.5)


def default_joints(
    link_lengths: Sequence[float] = DEFAULT_LINK_LENGTHS
) -> Tuple[Joint, ...]:
    """
    Default arm configuration.
    
    Returns:
        (R 30° about z, R -20° about y, R 40° about y, P 0.2 along x)
    """
    l1, l2, l3 = (float(v) for v in link_lengths)
    return (
        RotationalJoint(30.0, JointAxis.parse("z"), l1),
        RotationalJoint(-20.0, JointAxis.parse("y"), l2),
        RotationalJoint(40.0, JointAxis.parse("y"), l3),
        PrismaticJoint(0.2, JointAxis.parse("x")),
    )


def default_ranges(joints: Sequence[Joint]) -> Tuple[JointRange, ...]:
    """Default clamping range for each joint of a chain."""
    return tuple(
        DEFAULT_ROTATIONAL_RANGE if isinstance(j, RotationalJoint) else DEFAULT_PRISMATIC_RANGE
        for j in joints
    )


def validate_joints(joints: Sequence[Joint]) -> None:
    """Raise ValueError unless the chain has N_JOINTS known joints."""
    if len(joints) != N_JOINTS:
        raise ValueError(f"Expected {N_JOINTS} joints, got {len(joints)}")
    for i, joint in enumerate(joints):
        if not isinstance(joint, (RotationalJoint, PrismaticJoint)):
            raise ValueError(f"Joint {i} has unsupported type {type(joint).__name__}")


# =============================================================================
# Kinematic Chain
# =============================================================================

@dataclass(frozen=True, eq=False)
class KinematicChain:
    """
    Result of forward kinematics.
    
    Attributes:
        axes_local: Local joint axes, shape (n, 3)
        axes_world: Joint axes in the world frame, shape (n, 3)
        positions: World positions of the base and every joint, shape (n+1, 3)
        rotations: World orientations matching `positions`, shape (n+1, 4)
        joint_transforms: Per-joint local transforms x_i
        cumulative: Running products x_1, x_1x_2, ..., x_N
    """
    axes_local: FloatArray
    axes_world: FloatArray
    positions: FloatArray
    rotations: FloatArray
    joint_transforms: Tuple[DualQuaternion, ...]
    cumulative: Tuple[DualQuaternion, ...]
    
    @property
    def end_effector(self) -> DualQuaternion:
        """Composed end-effector pose x_N."""
        return self.cumulative[-1]
    
    @property
    def end_position(self) -> FloatArray:
        """End-effector position accumulated along the chain."""
        return self.positions[-1].copy()
    
    @property
    def n_joints(self) -> int:
        return len(self.joint_transforms)


def _local_transform(joint: Joint, axis_local: FloatArray) -> Tuple[FloatArray, FloatArray]:
    """Local (rotation, translation) of one joint."""
    if isinstance(joint, RotationalJoint):
        q_joint = quat_from_axis_angle(axis_local, np.radians(joint.angle_deg))
        t_joint = quat_rotate_vector(q_joint, [joint.link_length, 0.0, 0.0])
        return q_joint, t_joint
    if isinstance(joint, PrismaticJoint):
        return np.array([1.0, 0.0, 0.0, 0.0]), axis_local * joint.displacement
    raise TypeError(f"Unsupported joint type: {type(joint).__name__}")


def forward_kinematics(joints: Sequence[Joint]) -> KinematicChain:
    """
    Compute forward kinematics.
    
    Args:
        joints: Joints in serial order
        
    Returns:
        KinematicChain with per-joint and composed transforms
    """
    p = np.zeros(3)
    q = np.array([1.0, 0.0, 0.0, 0.0])
    
    axes_local = []
    axes_world = []
    positions = [p]
    rotations = [q]
    transforms: List[DualQuaternion] = []
    
    for joint in joints:
        axis_local = joint.axis.vector()
        axes_local.append(axis_local)
        axes_world.append(quat_rotate_vector(q, axis_local))
        
        q_joint, t_joint = _local_transform(joint, axis_local)
        
        p = p + quat_rotate_vector(q, t_joint)
        q = quat_multiply(q, q_joint)
        positions.append(p)
        rotations.append(q)
        
        transforms.append(DualQuaternion.from_rotation_translation(q_joint, t_joint))
    
    cumulative: List[DualQuaternion] = []
    x = DualQuaternion.identity()
    for x_i in transforms:
        x = x @ x_i
        cumulative.append(x)
    
    return KinematicChain(
        axes_local=np.array(axes_local),
        axes_world=np.array(axes_world),
        positions=np.array(positions),
        rotations=np.array(rotations),
        joint_transforms=tuple(transforms),
        cumulative=tuple(cumulative),
    )


# =============================================================================
# Jacobian
# =============================================================================

def compute_jacobian(joints: Sequence[Joint], chain: KinematicChain) -> FloatArray:
    """
    Compute the geometric Jacobian.
    
    The Jacobian relates joint velocities to the end-effector twist:
    
        [ω]
        [v] = J · q̇
    
    Args:
        joints: Joints used to build `chain`
        chain: Forward kinematics result
        
    Returns:
        6 x n Jacobian, rows 0-2 angular, rows 3-5 linear
    """
    p_end = chain.positions[-1]
    J = np.zeros((6, len(joints)))
    
    for i, joint in enumerate(joints):
        axis = chain.axes_world[i]
        p_i = chain.positions[i]
        
        if isinstance(joint, RotationalJoint):
            J[:3, i] = axis
            J[3:, i] = np.cross(axis, p_end - p_i)
        elif isinstance(joint, PrismaticJoint):
            J[:3, i] = 0.0
            J[3:, i] = axis
        else:
            raise TypeError(f"Unsupported joint type: {type(joint).__name__}")
    
    return J


def apply_joint_increment(
    joints: Sequence[Joint],
    increment: FloatArray,
    ranges: Optional[Sequence[JointRange]] = None
) -> Tuple[Joint, ...]:
    """
    Apply a joint-space increment and clamp to ranges.
    
    Args:
        joints: Current joints
        increment: Per-joint increment (rad for rotational, m for prismatic)
        ranges: Per-joint clamping ranges (defaults per joint type)
        
    Returns:
        New joint tuple
    """
    if ranges is None:
        ranges = default_ranges(joints)
    if len(ranges) != len(joints):
        raise ValueError("ranges length must match joints")
    
    updated = []
    for joint, delta, limit in zip(joints, np.asarray(increment, dtype=float), ranges):
        if isinstance(joint, RotationalJoint):
            value = joint.angle_deg + float(np.degrees(delta))
        elif isinstance(joint, PrismaticJoint):
            value = joint.displacement + float(delta)
        else:
            raise TypeError(f"Unsupported joint type: {type(joint).__name__}")
        updated.append(joint.with_value(limit.clamp(value)))
    
    return tuple(updated)
