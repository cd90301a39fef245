"""
Session Configuration
=====================

YAML-backed configuration bundling the kinematics inputs with the iteration
driver settings.

Example YAML:

    links: [0.6, 0.5, 0.4]
    joints:
      - {type: rotational, angle_deg: 30, axis: z}
      - {type: rotational, angle_deg: -20, axis: y}
      - {type: rotational, angle_deg: 40, axis: y}
      - {type: prismatic, displacement: 0.2, axis: x}
    error: {real: [1, 0, 0, 0], dual: [0, 0, 0, 0]}
    target:
      mode: pose
      position: [0.7, 0.2, 0.3]
      axis: [0, 0, 1]
      angle_deg: 45
    trajectory: {method: dqlerp, samples: 60}
    gains: {o1: 2, o2: 2, t1: 2, t2: 2}
    iteration:
      dt: 0.05
      auto_advance: true
      run_interval_ms: 140
      ranges: [[-180, 180], [-180, 180], [-180, 180], [-0.5, 0.5]]

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List, Sequence
import yaml

from .controller import Gains
from .engine import KinematicsInput
from .iteration import IterationConfig
from .kinematics import (
    DEFAULT_LINK_LENGTHS,
    Joint,
    JointAxis,
    JointRange,
    PrismaticJoint,
    RotationalJoint,
    default_joints,
    default_ranges,
)
from .targets import DualQuaternionTarget, ErrorModel, PoseTarget, TargetSpec
from .trajectory import InterpolationMethod, TrajectoryOptions

logger = logging.getLogger(__name__)


def _vector(values: Sequence[float], n: int, name: str) -> tuple:
    values = tuple(float(v) for v in values)
    if len(values) != n:
        raise ValueError(f"{name} must have {n} components, got {len(values)}")
    return values


def _parse_joints(data: Dict[str, Any]) -> List[Joint]:
    links = list(data.get("links", DEFAULT_LINK_LENGTHS))
    joints: List[Joint] = []
    link_iter = iter(links)
    
    for i, item in enumerate(data.get("joints", [])):
        kind = str(item.get("type", "rotational")).lower()
        axis = JointAxis.parse(item.get("axis", "z"))
        
        if kind in ("rotational", "r"):
            if "link_length" in item:
                link = float(item["link_length"])
            else:
                try:
                    link = float(next(link_iter))
                except StopIteration:
                    raise ValueError(f"No link length for rotational joint {i}") from None
            joints.append(RotationalJoint(float(item.get("angle_deg", 0.0)), axis, link))
        elif kind in ("prismatic", "p"):
            joints.append(PrismaticJoint(float(item.get("displacement", 0.0)), axis))
        else:
            raise ValueError(f"Unknown joint type '{kind}' for joint {i}")
    
    return joints


def _parse_target(data: Dict[str, Any]) -> TargetSpec:
    mode = str(data.get("mode", "pose")).lower()
    if mode == "pose":
        default = PoseTarget()
        return PoseTarget(
            position=_vector(data.get("position", default.position), 3, "target.position"),
            axis=_vector(data.get("axis", default.axis), 3, "target.axis"),
            angle_deg=float(data.get("angle_deg", default.angle_deg)),
        )
    if mode in ("dq", "dual_quaternion"):
        default = DualQuaternionTarget()
        return DualQuaternionTarget(
            real=_vector(data.get("real", default.real), 4, "target.real"),
            dual=_vector(data.get("dual", default.dual), 4, "target.dual"),
        )
    raise ValueError(f"Unknown target mode '{mode}'")


def _target_to_dict(target: TargetSpec) -> Dict[str, Any]:
    if isinstance(target, PoseTarget):
        return {
            "mode": "pose",
            "position": list(target.position),
            "axis": list(target.axis),
            "angle_deg": target.angle_deg,
        }
    return {"mode": "dq", "real": list(target.real), "dual": list(target.dual)}


def _check_keys(section: str, data: Dict[str, Any], cls: type, extra: Sequence[str] = ()) -> None:
    allowed = {f.name for f in fields(cls)} | set(extra)
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValueError(f"Unknown {section} keys: {', '.join(map(str, unknown))}")


def _parse_method(value: str) -> InterpolationMethod:
    key = str(value).lower()
    for method in InterpolationMethod:
        if key in (method.value, method.name.lower()):
            return method
    raise ValueError(f"Unknown trajectory method '{value}'")


@dataclass
class SessionConfig:
    """
    Complete configuration of one arm session.
    
    Attributes:
        inputs: Kinematics input snapshot
        iteration: Iteration driver configuration
    """
    inputs: KinematicsInput = field(default_factory=KinematicsInput)
    iteration: IterationConfig = field(default_factory=IterationConfig)
    
    def __post_init__(self) -> None:
        """Check range count against the joints."""
        ranges = self.iteration.ranges
        if ranges is not None and len(ranges) != len(self.inputs.joints):
            raise ValueError(
                f"Expected {len(self.inputs.joints)} joint ranges, got {len(ranges)}"
            )
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Build from a plain dictionary (the parsed YAML document)."""
        data = data or {}
        
        joints: Optional[List[Joint]] = None
        if "joints" in data:
            joints = _parse_joints(data)
        elif "links" in data:
            joints = list(default_joints(_vector(data["links"], 3, "links")))
        error_data = data.get("error", {})
        error = ErrorModel(
            real=_vector(error_data.get("real", (1.0, 0.0, 0.0, 0.0)), 4, "error.real"),
            dual=_vector(error_data.get("dual", (0.0, 0.0, 0.0, 0.0)), 4, "error.dual"),
        )
        traj_data = data.get("trajectory", {})
        trajectory = TrajectoryOptions(
            method=_parse_method(traj_data.get("method", "dqlerp")),
            samples=int(traj_data.get("samples", 60)),
        )
        gains_data = dict(data.get("gains", {}))
        _check_keys("gains", gains_data, Gains)
        gains = Gains(**{k: float(v) for k, v in gains_data.items()})
        iter_data = dict(data.get("iteration", {}))
        _check_keys("iteration", iter_data, IterationConfig, extra=("dt",))
        dt = float(iter_data.pop("dt", 0.05))
        
        input_kwargs: Dict[str, Any] = dict(
            error=error,
            target=_parse_target(data.get("target", {})),
            trajectory=trajectory,
            gains=gains,
            dt=dt,
        )
        if joints is not None:
            input_kwargs["joints"] = tuple(joints)
        inputs = KinematicsInput(**input_kwargs)
        
        ranges: Optional[tuple] = None
        if "ranges" in iter_data:
            ranges = tuple(JointRange(float(lo), float(hi)) for lo, hi in iter_data.pop("ranges"))
        iteration = IterationConfig(ranges=ranges, **iter_data)
        
        return cls(inputs=inputs, iteration=iteration)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-serializable dictionary."""
        inputs = self.inputs
        joints = []
        for joint in inputs.joints:
            if isinstance(joint, RotationalJoint):
                joints.append({
                    "type": "rotational",
                    "angle_deg": joint.angle_deg,
                    "axis": joint.axis.to_config(),
                    "link_length": joint.link_length,
                })
            else:
                joints.append({
                    "type": "prismatic",
                    "displacement": joint.displacement,
                    "axis": joint.axis.to_config(),
                })
        
        ranges = self.iteration.ranges or default_ranges(inputs.joints)
        return {
            "joints": joints,
            "error": {"real": list(inputs.error.real), "dual": list(inputs.error.dual)},
            "target": _target_to_dict(inputs.target),
            "trajectory": {
                "method": inputs.trajectory.method.value,
                "samples": inputs.trajectory.samples,
            },
            "gains": {
                "o1": inputs.gains.o1,
                "o2": inputs.gains.o2,
                "t1": inputs.gains.t1,
                "t2": inputs.gains.t2,
            },
            "iteration": {
                "dt": inputs.dt,
                "auto_advance": self.iteration.auto_advance,
                "run_interval_ms": self.iteration.run_interval_ms,
                "convergence_threshold": self.iteration.convergence_threshold,
                "ranges": [[r.lower, r.upper] for r in ranges],
            },
        }
    
    @classmethod
    def from_yaml(cls, path: str) -> "SessionConfig":
        """
        Load configuration from YAML file.
        
        Args:
            path: Path to YAML configuration file
            
        Returns:
            SessionConfig instance
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        
        config = cls.from_dict(data or {})
        logger.info(f"Loaded session configuration from {path}")
        return config
    
    def to_yaml(self, path: str) -> None:
        """
        Save configuration to YAML file.
        
        Args:
            path: Path to save configuration
        """
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
