"""
Dual Quaternion Module
======================

Rigid-body transforms (SE(3)) represented as unit dual quaternions.

Mathematical Background:

    A dual quaternion x = r + ε d pairs a rotation quaternion r with a dual
    part d. For a rotation q followed by a translation t:
    
        r = q
        d = ½ · (0, t) · q
        
    Composition:
        a · b = a.r b.r + ε (a.r b.d + a.d b.r)
        
    Inverse (unit dual quaternion):
        x⁻¹ = r* + ε (-r* d r*)
        
    Translation extraction:
        t = vec(2 · d · r*)

Invariant:
    For a valid rigid transform, d = ½ (0, t) r. Arithmetic such as
    component-wise blending does not preserve this relation and nothing
    here re-enforces it. `normalized()` only restores the unit norm of the
    real part, so blended values must not be assumed physically consistent.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple
import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

from .quaternion import (
    EPS,
    IDENTITY_QUAT,
    pure_quat,
    quat_conjugate,
    quat_multiply,
    quat_norm,
    quat_rotate_vector,
)

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating]


def _fmt(values: FloatArray) -> str:
    return "[" + ", ".join(f"{v:.3f}" for v in values) + "]"


@dataclass(frozen=True, eq=False)
class DualQuaternion:
    """
    Rigid transform as a (real, dual) quaternion pair.
    
    Instances are immutable; every operation returns a new object.
    
    Attributes:
        real: Rotation quaternion [w, x, y, z]
        dual: Dual quaternion [w, x, y, z] encoding translation
    
    Example:
        >>> q = quat_from_axis_angle([0, 0, 1], np.pi / 2)
        >>> x = DualQuaternion.from_rotation_translation(q, [1.0, 0.0, 0.0])
        >>> x.translation()
        array([1., 0., 0.])
        >>> (x.inverse() @ x).is_close(DualQuaternion.identity())
        True
    """
    real: FloatArray = field(default_factory=lambda: IDENTITY_QUAT.copy())
    dual: FloatArray = field(default_factory=lambda: np.zeros(4))
    
    def __post_init__(self) -> None:
        """Store both parts as float arrays of length 4."""
        object.__setattr__(self, "real", np.asarray(self.real, dtype=float).reshape(4))
        object.__setattr__(self, "dual", np.asarray(self.dual, dtype=float).reshape(4))
    
    # =========================================================================
    # Construction
    # =========================================================================
    
    @classmethod
    def identity(cls) -> "DualQuaternion":
        """The identity transform (1, 0, 0, 0) + ε (0, 0, 0, 0)."""
        return cls(IDENTITY_QUAT.copy(), np.zeros(4))
    
    @classmethod
    def from_rotation_translation(
        cls,
        rotation: FloatArray,
        translation: FloatArray
    ) -> "DualQuaternion":
        """
        Create a transform that rotates by `rotation`, then translates.
        
        Args:
            rotation: Unit quaternion [w, x, y, z]
            translation: Translation vector [x, y, z]
            
        Returns:
            DualQuaternion with dual = ½ (0, t) · q
        """
        rotation = np.asarray(rotation, dtype=float)
        dual = 0.5 * quat_multiply(pure_quat(translation), rotation)
        return cls(rotation, dual)
    
    # =========================================================================
    # Algebra
    # =========================================================================
    
    def __matmul__(self, other: "DualQuaternion") -> "DualQuaternion":
        """Composition self · other (other is applied first)."""
        return DualQuaternion(
            quat_multiply(self.real, other.real),
            quat_multiply(self.real, other.dual) + quat_multiply(self.dual, other.real)
        )
    
    def __add__(self, other: "DualQuaternion") -> "DualQuaternion":
        return DualQuaternion(self.real + other.real, self.dual + other.dual)
    
    def __sub__(self, other: "DualQuaternion") -> "DualQuaternion":
        return DualQuaternion(self.real - other.real, self.dual - other.dual)
    
    def __neg__(self) -> "DualQuaternion":
        return DualQuaternion(-self.real, -self.dual)
    
    def scale(self, s: float) -> "DualQuaternion":
        """Multiply both parts by a scalar."""
        return DualQuaternion(self.real * s, self.dual * s)
    
    def inverse(self) -> "DualQuaternion":
        """Inverse of a unit dual quaternion."""
        conj = quat_conjugate(self.real)
        dual = -quat_multiply(quat_multiply(conj, self.dual), conj)
        return DualQuaternion(conj, dual)
    
    def normalized(self) -> "DualQuaternion":
        """
        Scale both parts by 1/|real|.
        
        Returns the identity when |real| < EPS. The dual part is not made
        orthogonal to the real part.
        """
        norm = quat_norm(self.real)
        if norm < EPS:
            return DualQuaternion.identity()
        return self.scale(1.0 / norm)
    
    @staticmethod
    def lerp(a: "DualQuaternion", b: "DualQuaternion", t: float) -> "DualQuaternion":
        """Component-wise linear blend (not renormalized)."""
        return DualQuaternion(
            a.real + (b.real - a.real) * t,
            a.dual + (b.dual - a.dual) * t
        )
    
    # =========================================================================
    # Accessors
    # =========================================================================
    
    def translation(self) -> FloatArray:
        """Translation vector: vector part of 2 · d · conj(r)."""
        t = quat_multiply(self.dual, quat_conjugate(self.real))
        return 2.0 * t[1:4]
    
    @property
    def rotation(self) -> FloatArray:
        """Rotation quaternion (copy of the real part)."""
        return self.real.copy()
    
    def rotate(self, v: FloatArray) -> FloatArray:
        """Rotate a vector by the real part only."""
        return quat_rotate_vector(self.real, v)
    
    def transform_point(self, point: FloatArray) -> FloatArray:
        """Apply rotation then translation to a 3D point."""
        return self.rotate(point) + self.translation()
    
    def to_matrix(self) -> FloatArray:
        """
        4x4 homogeneous matrix for renderers.
        
        The real part is normalized before conversion.
        """
        w, x, y, z = self.real
        matrix = np.eye(4)
        if quat_norm(self.real) >= EPS:
            matrix[:3, :3] = Rotation.from_quat([x, y, z, w]).as_matrix()
        matrix[:3, 3] = self.translation()
        return matrix
    
    def as_tuple(self) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
        """Plain (real, dual) tuples for serialization."""
        return tuple(float(v) for v in self.real), tuple(float(v) for v in self.dual)
    
    def is_close(self, other: "DualQuaternion", atol: float = 1e-6) -> bool:
        """Component-wise comparison within tolerance."""
        return bool(
            np.allclose(self.real, other.real, atol=atol)
            and np.allclose(self.dual, other.dual, atol=atol)
        )
    
    def __str__(self) -> str:
        return f"{{q:{_fmt(self.real)}, qt:{_fmt(self.dual)}}}"
