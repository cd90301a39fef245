"""
Kinematics Engine
=================

Single pure entry point that derives everything the arm needs for one
evaluation cycle from an immutable input snapshot:

    joints ──► forward kinematics ──► chain, x_N
                     │
    error  ──────────┴──► x_real = x_N · x_err
    target ──► goal ──► trajectory(base → goal) ──► active sample x_d
    chain  ──► Jacobian J
    (J, x_real, x_d, trajectory, gains, dt) ──► control output

Nothing is cached between calls; identical inputs yield identical results.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from ..dualquat import DualQuaternion
from .controller import ControlOutput, Gains, compute_control
from .kinematics import (
    Joint,
    KinematicChain,
    compute_jacobian,
    default_joints,
    forward_kinematics,
    validate_joints,
)
from .targets import (
    ErrorModel,
    PoseTarget,
    TargetSpec,
    pose_delta,
    resolve_target,
)
from .trajectory import PoseTrajectory, TrajectoryOptions, build_trajectory

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]

MIN_DT = 0.001
MAX_DT = 1.0


@dataclass(frozen=True)
class KinematicsInput:
    """
    Immutable snapshot of every externally edited input.
    
    Attributes:
        joints: Joints in serial order (rotational joints carry link lengths)
        error: Fixed error model
        target: Goal specification
        trajectory: Trajectory options
        gains: Controller gains
        dt: Integration timestep (s), clamped to [0.001, 1.0]
    """
    joints: Tuple[Joint, ...] = field(default_factory=default_joints)
    error: ErrorModel = field(default_factory=ErrorModel)
    target: TargetSpec = field(default_factory=PoseTarget)
    trajectory: TrajectoryOptions = field(default_factory=TrajectoryOptions)
    gains: Gains = field(default_factory=Gains)
    dt: float = 0.05
    
    def __post_init__(self) -> None:
        """Validate joints and clamp the timestep."""
        object.__setattr__(self, "joints", tuple(self.joints))
        validate_joints(self.joints)
        object.__setattr__(self, "dt", float(min(MAX_DT, max(MIN_DT, self.dt))))
    
    def with_joints(self, joints: Tuple[Joint, ...]) -> "KinematicsInput":
        return replace(self, joints=tuple(joints))
    
    def with_joint(self, index: int, joint: Joint) -> "KinematicsInput":
        """Copy with one joint replaced."""
        joints = list(self.joints)
        joints[index] = joint
        return replace(self, joints=tuple(joints))
    
    def with_target(self, target: TargetSpec) -> "KinematicsInput":
        return replace(self, target=target)


@dataclass(frozen=True, eq=False)
class KinematicsResult:
    """
    Everything derived in one evaluation.
    
    Attributes:
        chain: Forward kinematics result
        real_pose: Error-injected end-effector pose
        delta_pose: x_N⁻¹ · x_real
        goal: Resolved goal pose
        base_pose: Trajectory start pose
        trajectory: Sampled trajectory
        target_index: Clamped active trajectory index
        target_sample: Active desired pose x_d
        jacobian: 6 x 4 geometric Jacobian
        control: Controller output
    """
    chain: KinematicChain
    real_pose: DualQuaternion
    delta_pose: DualQuaternion
    goal: DualQuaternion
    base_pose: DualQuaternion
    trajectory: PoseTrajectory
    target_index: int
    target_sample: DualQuaternion
    jacobian: FloatArray
    control: ControlOutput
    
    @property
    def jacobian_columns(self) -> Tuple[FloatArray, ...]:
        """Jacobian columns, one per joint."""
        return tuple(self.jacobian[:, i].copy() for i in range(self.jacobian.shape[1]))


def compute_kinematics(
    inputs: KinematicsInput,
    target_index: int = 0,
    base_pose: Optional[DualQuaternion] = None
) -> KinematicsResult:
    """
    Evaluate kinematics, trajectory, Jacobian and control.
    
    Args:
        inputs: Input snapshot
        target_index: Requested trajectory index (clamped to [0, N-1])
        base_pose: Trajectory start; the current end effector if None
        
    Returns:
        KinematicsResult
    """
    chain = forward_kinematics(inputs.joints)
    x_n = chain.end_effector
    
    x_real = inputs.error.apply(x_n)
    x_delta = pose_delta(x_n, x_real)
    
    goal = resolve_target(inputs.target)
    start = base_pose if base_pose is not None else x_n
    trajectory = build_trajectory(start, goal, inputs.error, inputs.trajectory)
    index = trajectory.clamp_index(target_index)
    x_desired = trajectory.samples[index]
    
    J = compute_jacobian(inputs.joints, chain)
    control = compute_control(
        J, x_real, x_desired, trajectory, index, inputs.gains, inputs.dt
    )
    
    return KinematicsResult(
        chain=chain,
        real_pose=x_real,
        delta_pose=x_delta,
        goal=goal,
        base_pose=start,
        trajectory=trajectory,
        target_index=index,
        target_sample=x_desired,
        jacobian=J,
        control=control,
    )
