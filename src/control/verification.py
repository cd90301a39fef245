"""
Jacobian Verification
=====================

Finite-difference cross-check of the analytic Jacobian.

For each joint i, only q_i is perturbed by h = 1e-3 (radians for rotational
joints, meters for prismatic joints):

    x⁺ = FK(q + h e_i)
    Δ  = x⁺ · x_N⁻¹
    J_num[:, i] = [axis·angle(real(Δ)) / h ; (p⁺ - p_N) / h]
    e_i = ‖J_num[:, i] - J[:, i]‖

Perturbations are applied to copies of the immutable joints, so the caller's
configuration is left exactly as it was.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from typing import Sequence
import numpy as np
from numpy.typing import NDArray

from ..dualquat import quat_to_axis_angle
from .kinematics import Joint, compute_jacobian, forward_kinematics

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]

FD_STEP = 1e-3


def numeric_jacobian(joints: Sequence[Joint], step: float = FD_STEP) -> FloatArray:
    """
    Finite-difference Jacobian of the end-effector pose.
    
    Args:
        joints: Joint configuration
        step: Perturbation size h
        
    Returns:
        6 x n numeric Jacobian [ω; v]
    """
    joints = tuple(joints)
    base_pose = forward_kinematics(joints).end_effector
    base_inv = base_pose.inverse()
    base_position = base_pose.translation()
    
    J_num = np.zeros((6, len(joints)))
    for i, joint in enumerate(joints):
        perturbed = joints[:i] + (joint.perturbed(step),) + joints[i + 1:]
        new_pose = forward_kinematics(perturbed).end_effector
        
        axis, angle = quat_to_axis_angle((new_pose @ base_inv).real)
        J_num[:3, i] = axis * angle / step
        J_num[3:, i] = (new_pose.translation() - base_position) / step
    
    return J_num


def jacobian_column_errors(joints: Sequence[Joint], step: float = FD_STEP) -> FloatArray:
    """Euclidean norm of (numeric - analytic) for every Jacobian column."""
    joints = tuple(joints)
    J = compute_jacobian(joints, forward_kinematics(joints))
    J_num = numeric_jacobian(joints, step)
    return np.linalg.norm(J_num - J, axis=0)


def verify_jacobian(joints: Sequence[Joint], step: float = FD_STEP) -> float:
    """
    Average column error between numeric and analytic Jacobian.
    
    Args:
        joints: Joint configuration
        step: Perturbation size h
        
    Returns:
        Mean of the per-column errors
    """
    errors = jacobian_column_errors(joints, step)
    average = float(np.mean(errors)) if len(errors) else 0.0
    logger.debug(f"Jacobian check: column errors {np.round(errors, 5)}, avg {average:.5f}")
    return average
