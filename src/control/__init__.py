"""
Control Module
==============

Kinematics and resolved-rate control for a 4-DOF dual-quaternion arm.

Key Components:
    - Kinematics: Forward kinematics chain and geometric Jacobian
    - Targets: Error injection and goal pose resolution
    - Trajectory: Linear-blend and geometric pose interpolation
    - Solver: Damped pseudo-inverse with Gauss-Jordan elimination
    - Controller: Resolved-rate control law with feedforward twist
    - Engine: Pure evaluation of one control cycle
    - Iteration: Step / run / stop / reset driver with error history
    - Verification: Finite-difference Jacobian check
    - Plotting: Static session figure (matplotlib)

Arm Configuration:
    4-DOF serial arm with:
    - 3 rotational joints, each carrying a link along its local x-axis
    - 1 prismatic joint at the tip

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from .kinematics import (
    AxisMode,
    JointAxis,
    RotationalJoint,
    PrismaticJoint,
    JointRange,
    KinematicChain,
    forward_kinematics,
    compute_jacobian,
    apply_joint_increment,
    default_joints,
    default_ranges,
)

from .targets import (
    ErrorModel,
    PoseTarget,
    DualQuaternionTarget,
    resolve_target,
    target_from_current,
    pose_delta,
)

from .trajectory import (
    InterpolationMethod,
    TrajectoryOptions,
    PoseTrajectory,
    build_trajectory,
)

from .solver import (
    gauss_jordan_inverse,
    damped_pseudo_inverse,
)

from .controller import (
    Gains,
    ControlOutput,
    compute_control,
)

from .engine import (
    KinematicsInput,
    KinematicsResult,
    compute_kinematics,
)

from .iteration import (
    IterationPhase,
    IterationState,
    IterationConfig,
    IterationDriver,
    ErrorRecord,
)

from .verification import (
    verify_jacobian,
    jacobian_column_errors,
)

from .config import SessionConfig
from .plotting import plot_session

__version__ = "0.1.0"

__all__ = [
    # Kinematics
    "AxisMode",
    "JointAxis",
    "RotationalJoint",
    "PrismaticJoint",
    "JointRange",
    "KinematicChain",
    "forward_kinematics",
    "compute_jacobian",
    "apply_joint_increment",
    "default_joints",
    "default_ranges",
    # Targets
    "ErrorModel",
    "PoseTarget",
    "DualQuaternionTarget",
    "resolve_target",
    "target_from_current",
    "pose_delta",
    # Trajectory
    "InterpolationMethod",
    "TrajectoryOptions",
    "PoseTrajectory",
    "build_trajectory",
    # Solver
    "gauss_jordan_inverse",
    "damped_pseudo_inverse",
    # Controller
    "Gains",
    "ControlOutput",
    "compute_control",
    # Engine
    "KinematicsInput",
    "KinematicsResult",
    "compute_kinematics",
    # Iteration
    "IterationPhase",
    "IterationState",
    "IterationConfig",
    "IterationDriver",
    "ErrorRecord",
    # Verification
    "verify_jacobian",
    "jacobian_column_errors",
    # Configuration
    "SessionConfig",
    # Plotting
    "plot_session",
]
