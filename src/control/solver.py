"""
Damped Pseudo-Inverse Solver
============================

Damped least-squares pseudo-inverse of the arm Jacobian:

    J⁺ = Jᵀ (J Jᵀ + λ I)⁻¹,    λ = 1e-6

The square inverse is computed with Gauss-Jordan elimination and partial
pivoting. When no usable pivot remains (|pivot| < 1e-8) the identity matrix is
substituted for the inverse instead of raising. Results near kinematic
singularities should therefore be treated as unreliable.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
import numpy as np
from numpy.typing import NDArray

from ..dualquat import EPS

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]

DAMPING = 1e-6


def gauss_jordan_inverse(A: FloatArray, eps: float = EPS) -> FloatArray:
    """
    Invert a square matrix by Gauss-Jordan elimination.
    
    The row with the largest absolute value in the pivot column is swapped
    into the pivot position before each elimination step.
    
    Args:
        A: Square matrix (n x n)
        eps: Smallest acceptable pivot magnitude
        
    Returns:
        A⁻¹, or the n x n identity if A is numerically singular
    """
    A = np.asarray(A, dtype=float)
    n = A.shape[0]
    if A.shape != (n, n):
        raise ValueError(f"Expected a square matrix, got shape {A.shape}")
    
    # Augmented matrix [A | I]
    M = np.hstack([A.copy(), np.eye(n)])
    
    for i in range(n):
        pivot = i + int(np.argmax(np.abs(M[i:, i])))
        
        if abs(M[pivot, i]) < eps:
            logger.warning(
                f"Singular matrix in Gauss-Jordan inverse "
                f"(pivot {M[pivot, i]:.3e} at column {i}), using identity"
            )
            return np.eye(n)
        
        if pivot != i:
            M[[i, pivot]] = M[[pivot, i]]
        
        M[i] /= M[i, i]
        
        for r in range(n):
            if r != i:
                M[r] -= M[r, i] * M[i]
    
    return M[:, n:]


def damped_pseudo_inverse(J: FloatArray, damping: float = DAMPING) -> FloatArray:
    """
    Compute damped pseudo-inverse of a Jacobian.
    
    Uses Damped Least Squares (DLS) for numerical stability:
        J^† = J^T (J J^T + λ I)^{-1}
    
    Args:
        J: m x n Jacobian
        damping: Damping factor λ (added directly, not squared)
        
    Returns:
        n x m pseudo-inverse
    """
    J = np.asarray(J, dtype=float)
    JJT = J @ J.T
    damped = JJT + damping * np.eye(JJT.shape[0])
    
    return J.T @ gauss_jordan_inverse(damped)
