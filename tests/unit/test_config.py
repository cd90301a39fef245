"""
Unit Tests for Session Configuration
====================================

Tests for loading and saving YAML session files.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

import pytest

from src.control.config import SessionConfig
from src.control.kinematics import (
    AxisMode,
    JointRange,
    PrismaticJoint,
    RotationalJoint,
    default_joints,
)
from src.control.targets import DualQuaternionTarget, PoseTarget
from src.control.trajectory import InterpolationMethod

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def default_config_path(project_root_path):
    """Path to the shipped default session."""
    return project_root_path / "config" / "default.yaml"


@pytest.fixture
def session_data():
    """Minimal session dictionary."""
    return {
        "links": [0.3, 0.3, 0.2],
        "joints": [
            {"type": "rotational", "angle_deg": 10, "axis": "x"},
            {"type": "rotational", "angle_deg": 20, "axis": [0, 1, 1]},
            {"type": "rotational", "angle_deg": 30, "axis": "z", "link_length": 0.9},
            {"type": "prismatic", "displacement": 0.1, "axis": "y"},
        ],
        "target": {"mode": "dq", "real": [1, 0, 0, 0], "dual": [0, 0.2, 0.0, 0.1]},
        "trajectory": {"method": "slerp", "samples": 500},
        "iteration": {"dt": 0.02, "auto_advance": False, "run_interval_ms": 50},
    }


# =============================================================================
# Tests
# =============================================================================


class TestSessionConfig:
    """Tests for SessionConfig."""

    def test_default_yaml_matches_defaults(self, default_config_path):
        """Test shipped file describes the default arm."""
        config = SessionConfig.from_yaml(str(default_config_path))

        assert config.inputs.joints == default_joints()
        assert config.inputs.target == PoseTarget()
        assert config.inputs.trajectory.method == InterpolationMethod.LINEAR_BLEND
        assert config.inputs.trajectory.samples == 60
        assert config.inputs.gains.kappa_o == 0.5
        assert config.inputs.dt == 0.05
        assert config.iteration.run_interval_ms == 140
        assert config.iteration.ranges[3] == JointRange(-0.5, 0.5)

    def test_from_dict(self, session_data):
        """Test parsing of joints, target and options."""
        config = SessionConfig.from_dict(session_data)
        joints = config.inputs.joints

        assert isinstance(joints[0], RotationalJoint)
        assert joints[0].link_length == 0.3
        assert joints[1].axis.mode == AxisMode.CUSTOM
        assert joints[2].link_length == 0.9
        assert isinstance(joints[3], PrismaticJoint)
        assert joints[3].axis.mode == AxisMode.Y

        assert config.inputs.target == DualQuaternionTarget((1, 0, 0, 0), (0, 0.2, 0.0, 0.1))
        assert config.inputs.trajectory.method == InterpolationMethod.GEOMETRIC
        assert config.inputs.trajectory.samples == 200
        assert config.iteration.auto_advance is False
        assert config.iteration.ranges is None

    def test_empty_dict_uses_defaults(self):
        """Test missing sections fall back to defaults."""
        config = SessionConfig.from_dict({})
        assert config.inputs.joints == default_joints()
        assert config.iteration.auto_advance is True

    def test_yaml_round_trip(self, default_config_path, tmp_path):
        """Test save then load reproduces the session."""
        config = SessionConfig.from_yaml(str(default_config_path))
        path = tmp_path / "session.yaml"

        config.to_yaml(str(path))
        loaded = SessionConfig.from_yaml(str(path))

        assert loaded == config

    def test_round_trip_custom_session(self, session_data, tmp_path):
        """Test round trip keeps per-joint link lengths and custom axes."""
        config = SessionConfig.from_dict(session_data)
        path = tmp_path / "custom.yaml"

        config.to_yaml(str(path))
        loaded = SessionConfig.from_yaml(str(path))

        assert loaded.inputs == config.inputs
        assert len(loaded.iteration.ranges) == 4

    def test_unknown_joint_type(self, session_data):
        """Test unknown joint types are rejected."""
        session_data["joints"][1]["type"] = "spherical"
        with pytest.raises(ValueError):
            SessionConfig.from_dict(session_data)

    def test_unknown_target_mode(self, session_data):
        """Test unknown target modes are rejected."""
        session_data["target"]["mode"] = "matrix"
        with pytest.raises(ValueError):
            SessionConfig.from_dict(session_data)

    def test_wrong_range_count(self, session_data):
        """Test range list must match the joints."""
        session_data["iteration"]["ranges"] = [[-1, 1], [-1, 1]]
        with pytest.raises(ValueError):
            SessionConfig.from_dict(session_data)

    def test_missing_link_length(self, session_data):
        """Test rotational joints need a link length."""
        session_data["links"] = [0.3]
        with pytest.raises(ValueError):
            SessionConfig.from_dict(session_data)

    def test_links_without_joints(self):
        """Test top-level link lengths apply to the default arm."""
        config = SessionConfig.from_dict({"links": [0.3, 0.3, 0.2]})
        lengths = [j.link_length for j in config.inputs.joints[:3]]
        assert lengths == [0.3, 0.3, 0.2]
        assert config.inputs.joints[0].angle_deg == 30.0

    def test_links_wrong_count(self):
        """Test top-level link list needs three entries."""
        with pytest.raises(ValueError):
            SessionConfig.from_dict({"links": [0.3, 0.3]})

    @pytest.mark.parametrize("links", [[-0.6, 0.5, 0.4], [0.6, 0.0, 0.4]])
    def test_non_positive_links(self, session_data, links):
        """Test non-positive link lengths are rejected."""
        session_data["links"] = links
        with pytest.raises(ValueError):
            SessionConfig.from_dict(session_data)
        with pytest.raises(ValueError):
            SessionConfig.from_dict({"links": links})

    def test_unknown_gain_key(self, session_data):
        """Test unknown gain names are rejected."""
        session_data["gains"] = {"o1": 2.0, "kp": 1.0}
        with pytest.raises(ValueError, match="gains"):
            SessionConfig.from_dict(session_data)

    def test_unknown_iteration_key(self, session_data):
        """Test unknown iteration settings are rejected."""
        session_data["iteration"]["interval"] = 100
        with pytest.raises(ValueError, match="iteration"):
            SessionConfig.from_dict(session_data)
