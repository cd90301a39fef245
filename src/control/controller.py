"""
Resolved-Rate Controller Module
===============================

Velocity-level feedback law driving the error-injected end effector along a
sampled pose trajectory.

Control Law:

    Pose error:
        x̃ = x_d⁻¹ · x_real
        
    Error surrogate (first-order stand-in for log(x̃), valid for small x̃):
        z̃ = 1 - x̃
        õ = vec(real(z̃))                      orientation error
        t̃ = -2 · trans(z̃ · (1 - z̃))           translation error
        
    Feedforward twist from adjacent samples k, k+1:
        ω_d = axis·angle(real(x_{k+1} x_k⁻¹)) · (N - 1)
        v_d = (p_{k+1} - p_k) · (N - 1)
        
    Transported into the error frame:
        ω' = R(x̃) ω_d
        v' = R(x̃) v_d + p(x̃) × ω'
        
    Gains:
        κ_o = 1/γ_o1² + 1/γ_o2²,   κ_t = 1/γ_t1² + 1/γ_t2²
        
    Command:
        u = [κ_o õ + ω' ; -κ_t t̃ + v']
        q̇ = J⁺ u
        Δq = q̇ · dt

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray

from ..dualquat import DualQuaternion, quat_rotate_vector, quat_to_axis_angle
from .solver import damped_pseudo_inverse
from .trajectory import PoseTrajectory

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]

CONVERGENCE_THRESHOLD = 0.01


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class Gains:
    """
    Controller gains.
    
    Smaller γ means a stiffer channel. A non-positive γ contributes nothing.
    
    Attributes:
        o1, o2: Orientation channel gains
        t1, t2: Translation channel gains
    """
    o1: float = 2.0
    o2: float = 2.0
    t1: float = 2.0
    t2: float = 2.0
    
    @staticmethod
    def _inverse_square(value: float) -> float:
        if value <= 0:
            return 0.0
        return 1.0 / (value * value)
    
    @property
    def kappa_o(self) -> float:
        """Orientation proportional gain."""
        return self._inverse_square(self.o1) + self._inverse_square(self.o2)
    
    @property
    def kappa_t(self) -> float:
        """Translation proportional gain."""
        return self._inverse_square(self.t1) + self._inverse_square(self.t2)
    
    @property
    def gamma(self) -> float:
        """Largest of the four γ values."""
        return max(self.o1, self.o2, self.t1, self.t2)


@dataclass(frozen=True, eq=False)
class ControlOutput:
    """
    Full breakdown of one controller evaluation.
    
    Attributes:
        x_tilde: Pose error x_d⁻¹ · x_real
        z_tilde: Error surrogate 1 - x̃
        o_tilde: Orientation error vector
        t_tilde: Translation error vector
        xi_desired: Feedforward twist [ω; v]
        xi_term: Feedforward twist transported by x̃
        kappa_o: Orientation gain
        kappa_t: Translation gain
        gamma: Largest γ
        term_o: κ_o · õ
        term_t: -κ_t · t̃
        u: Task-space command [ω; v]
        qdot: Joint velocities J⁺ u
        increment: Joint increment q̇ · dt
    """
    x_tilde: DualQuaternion
    z_tilde: DualQuaternion
    o_tilde: FloatArray
    t_tilde: FloatArray
    xi_desired: FloatArray
    xi_term: FloatArray
    kappa_o: float
    kappa_t: float
    gamma: float
    term_o: FloatArray
    term_t: FloatArray
    u: FloatArray
    qdot: FloatArray
    increment: FloatArray
    
    @property
    def orientation_error_norm(self) -> float:
        return float(np.linalg.norm(self.o_tilde))
    
    @property
    def translation_error_norm(self) -> float:
        return float(np.linalg.norm(self.t_tilde))
    
    def is_converged(self, threshold: float = CONVERGENCE_THRESHOLD) -> bool:
        """Both error norms below threshold."""
        return (self.orientation_error_norm < threshold
                and self.translation_error_norm < threshold)


# =============================================================================
# Twist Helpers
# =============================================================================

def estimate_desired_twist(trajectory: PoseTrajectory, index: int) -> FloatArray:
    """
    Finite-difference twist between samples `index` and `index + 1`.
    
    The index is clamped to [0, N-2]; the difference is scaled by N-1 so the
    whole trajectory spans unit time.
    
    Returns:
        Twist [ω; v], zero when there are fewer than two samples
    """
    samples = trajectory.samples
    if len(samples) < 2:
        return np.zeros(6)
    
    k = int(min(max(0, index), len(samples) - 2))
    x0, x1 = samples[k], samples[k + 1]
    scale = max(1, len(samples) - 1)
    
    v = (x1.translation() - x0.translation()) * scale
    delta = x1 @ x0.inverse()
    axis, angle = quat_to_axis_angle(delta.real)
    omega = axis * angle * scale
    
    return np.concatenate([omega, v])


def transform_twist(x: DualQuaternion, xi: FloatArray) -> FloatArray:
    """
    Adjoint-style transport of a twist by a pose.
    
    Returns:
        [R ω ; R v + p × R ω]
    """
    omega_r = quat_rotate_vector(x.real, xi[:3])
    v_r = quat_rotate_vector(x.real, xi[3:6]) + np.cross(x.translation(), omega_r)
    return np.concatenate([omega_r, v_r])


# =============================================================================
# Control Law
# =============================================================================

def compute_control(
    J: FloatArray,
    x_real: DualQuaternion,
    x_desired: DualQuaternion,
    trajectory: PoseTrajectory,
    index: int,
    gains: Gains,
    dt: float
) -> ControlOutput:
    """
    Evaluate the resolved-rate control law.
    
    Args:
        J: 6 x n geometric Jacobian
        x_real: Error-injected end-effector pose
        x_desired: Active trajectory sample
        trajectory: Trajectory used for the feedforward twist
        index: Active trajectory index
        gains: Controller gains
        dt: Integration timestep (s)
        
    Returns:
        ControlOutput with the joint increment and all intermediate terms
    """
    one = DualQuaternion.identity()
    
    x_tilde = x_desired.inverse() @ x_real
    z_tilde = one - x_tilde
    o_tilde = z_tilde.real[1:4].copy()
    t_tilde = -2.0 * (z_tilde @ (one - z_tilde)).translation()
    
    xi_desired = estimate_desired_twist(trajectory, index)
    xi_term = transform_twist(x_tilde, xi_desired)
    
    kappa_o = gains.kappa_o
    kappa_t = gains.kappa_t
    term_o = kappa_o * o_tilde
    term_t = -kappa_t * t_tilde
    
    u = np.concatenate([term_o + xi_term[:3], term_t + xi_term[3:6]])
    
    J_pinv = damped_pseudo_inverse(J)
    qdot = J_pinv @ u
    increment = qdot * dt
    
    return ControlOutput(
        x_tilde=x_tilde,
        z_tilde=z_tilde,
        o_tilde=o_tilde,
        t_tilde=t_tilde,
        xi_desired=xi_desired,
        xi_term=xi_term,
        kappa_o=kappa_o,
        kappa_t=kappa_t,
        gamma=gains.gamma,
        term_o=term_o,
        term_t=term_t,
        u=u,
        qdot=qdot,
        increment=increment,
    )
