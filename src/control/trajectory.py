"""
Trajectory Generation Module
============================

Pose trajectories between a captured base pose and a goal pose, sampled
uniformly in the interpolation parameter.

Mathematical Background:

    Samples:
        x_i = interp(x_start, x_goal, t_i),   t_i = i / (N - 1),  i = 0..N-1
        
    Linear blend (DQ-LERP):
        x(t) = normalize((1-t) x_start + t x_goal)
        
        Both quaternions are blended component-wise and divided by the norm
        of the blended real part. Cheap, but not geodesic, and the dual
        part is not re-projected onto a rigid transform.
        
    Geometric (slerp + linear translation):
        q(t) = slerp(q_start, q_goal, t)          (shortest arc)
        p(t) = (1-t) p_start + t p_goal
        x(t) = q(t) + ε ½ (0, p(t)) q(t)
        
        Exact on the rotation/translation decomposition, but not a screw
        motion (ScLERP).

Each sample also carries its error-injected counterpart x_i · x_err so that
displays can show how far the real end effector would diverge.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from ..dualquat import DualQuaternion, quat_slerp
from ..dualquat.quaternion import lerp
from .targets import ErrorModel

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]

MIN_SAMPLES = 10
MAX_SAMPLES = 200


# =============================================================================
# Configuration
# =============================================================================

class InterpolationMethod(Enum):
    """Pose interpolation scheme."""
    LINEAR_BLEND = "dqlerp"     # Component-wise blend, renormalized
    GEOMETRIC = "slerp"         # Slerp rotation, lerp translation


@dataclass(frozen=True)
class TrajectoryOptions:
    """
    Configuration for trajectory generation.
    
    Attributes:
        method: Interpolation scheme
        samples: Number of samples N, clamped to [10, 200]
    """
    method: InterpolationMethod = InterpolationMethod.LINEAR_BLEND
    samples: int = 60
    
    def __post_init__(self) -> None:
        """Clamp sample count."""
        clamped = int(min(MAX_SAMPLES, max(MIN_SAMPLES, int(self.samples))))
        if clamped != self.samples:
            logger.debug(f"Sample count {self.samples} clamped to {clamped}")
        object.__setattr__(self, "samples", clamped)


@dataclass(frozen=True, eq=False)
class PoseTrajectory:
    """
    Sampled pose trajectory.
    
    Attributes:
        samples: Interpolated poses
        error_samples: Error-injected counterparts
        points: Translations of `samples`, shape (N, 3)
        error_points: Translations of `error_samples`, shape (N, 3)
    """
    samples: Tuple[DualQuaternion, ...]
    error_samples: Tuple[DualQuaternion, ...]
    points: FloatArray
    error_points: FloatArray
    
    @property
    def total(self) -> int:
        return len(self.samples)
    
    def __len__(self) -> int:
        return len(self.samples)
    
    def __iter__(self):
        return iter(self.samples)
    
    def clamp_index(self, index: int) -> int:
        """Clamp a trajectory index to [0, N-1]."""
        return int(min(max(0, int(index)), max(0, self.total - 1)))
    
    def sample(self, index: int) -> DualQuaternion:
        """Sample at a clamped index."""
        return self.samples[self.clamp_index(index)]


# =============================================================================
# Interpolation
# =============================================================================

def interpolate_linear_blend(
    start: DualQuaternion,
    goal: DualQuaternion,
    t: float
) -> DualQuaternion:
    """Component-wise blend normalized by the real part's norm."""
    return DualQuaternion.lerp(start, goal, t).normalized()


def interpolate_geometric(
    start: DualQuaternion,
    goal: DualQuaternion,
    t: float
) -> DualQuaternion:
    """Slerp of the rotation and lerp of the translation."""
    q_goal = goal.real
    if np.dot(start.real, q_goal) < 0:
        q_goal = -q_goal
    q = quat_slerp(start.real, q_goal, t)
    p = lerp(start.translation(), goal.translation(), t)
    return DualQuaternion.from_rotation_translation(q, p)


_INTERPOLATORS = {
    InterpolationMethod.LINEAR_BLEND: interpolate_linear_blend,
    InterpolationMethod.GEOMETRIC: interpolate_geometric,
}


def build_trajectory(
    start: DualQuaternion,
    goal: DualQuaternion,
    error: ErrorModel,
    options: TrajectoryOptions
) -> PoseTrajectory:
    """
    Generate a sampled pose trajectory.
    
    Args:
        start: Base pose (t = 0)
        goal: Goal pose (t = 1)
        error: Error model applied to every sample
        options: Interpolation method and sample count
        
    Returns:
        PoseTrajectory with N samples
    """
    interpolate = _INTERPOLATORS[options.method]
    total = max(MIN_SAMPLES, options.samples)
    
    samples = []
    error_samples = []
    for i in range(total):
        t = i / (total - 1)
        x = interpolate(start, goal, t)
        samples.append(x)
        error_samples.append(error.apply(x))
    
    return PoseTrajectory(
        samples=tuple(samples),
        error_samples=tuple(error_samples),
        points=np.array([x.translation() for x in samples]),
        error_points=np.array([x.translation() for x in error_samples]),
    )
