"""
Session Plots
=============

Static matplotlib rendering of one evaluation:

    - 3D view: joint chain, nominal trajectory, error-injected trajectory,
      goal and active sample
    - Error history: |õ| and |t̃| per iteration

Rendering uses the non-interactive Agg backend and writes an image file, so
it works on headless machines.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
from typing import Sequence

from .engine import KinematicsResult
from .iteration import ErrorRecord

logger = logging.getLogger(__name__)


def plot_session(
    result: KinematicsResult,
    history: Sequence[ErrorRecord],
    path: str
) -> bool:
    """
    Save a two-panel figure of the arm, trajectories and error history.

    Args:
        result: Evaluation to draw
        history: Error records, oldest first
        path: Output image path

    Returns:
        True if the figure was written
    """
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("Matplotlib not available, skipping plot")
        return False

    fig = plt.figure(figsize=(12, 5))
    try:
        # Arm and trajectories
        ax = fig.add_subplot(1, 2, 1, projection="3d")
        chain = result.chain.positions
        ax.plot(chain[:, 0], chain[:, 1], chain[:, 2], "o-",
                linewidth=3, markersize=6, color="#4A90D9", label="Arm")

        points = result.trajectory.points
        ax.plot(points[:, 0], points[:, 1], points[:, 2],
                color="#2E7D32", linewidth=1.5, label="Trajectory")

        error_points = result.trajectory.error_points
        ax.plot(error_points[:, 0], error_points[:, 1], error_points[:, 2],
                color="#FF9800", linestyle="--", linewidth=1, label="With error")

        goal = result.goal.translation()
        ax.scatter([goal[0]], [goal[1]], [goal[2]], color="#9C27B0", s=40, label="Goal")

        active = result.target_sample.translation()
        ax.scatter([active[0]], [active[1]], [active[2]], color="#F44336", s=25,
                   label=f"Sample {result.target_index}")

        real = result.real_pose.translation()
        ax.scatter([real[0]], [real[1]], [real[2]], color="#000000", marker="x", s=40,
                   label="Real end effector")

        ax.set_xlabel("x (m)")
        ax.set_ylabel("y (m)")
        ax.set_zlabel("z (m)")
        ax.set_title("Arm Pose")
        ax.legend(loc="upper left", fontsize=8)

        # Error history
        ax = fig.add_subplot(1, 2, 2)
        if history:
            iterations = [r.iteration for r in history]
            ax.plot(iterations, [r.orientation_norm for r in history], "o-",
                    color="#4A90D9", label="|o|")
            ax.plot(iterations, [r.translation_norm for r in history], "s-",
                    color="#F44336", label="|t|")
            ax.legend(loc="upper right")
        ax.set_title("Error History")
        ax.set_xlabel("Iteration")
        ax.set_ylabel("Error norm")
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        fig.savefig(path)
    finally:
        plt.close(fig)

    logger.info(f"Session plot written to {path}")
    return True
