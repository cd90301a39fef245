#!/usr/bin/env python3
"""
Dual-Quaternion Arm Demo
========================

Headless walk through one arm session:
1. Load configuration
2. Forward kinematics and error-injected pose
3. Jacobian and finite-difference check
4. Resolved-rate control output
5. Iteration loop until convergence or step budget
6. Optional session plot

Usage:
    python scripts/demo.py
    python scripts/demo.py --config config/default.yaml --steps 200
    python scripts/demo.py --hold               # target = current pose
    python scripts/demo.py --method slerp -v
    python scripts/demo.py --plot session.png

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def fmt(values) -> str:
    return "[" + ", ".join(f"{v:.3f}" for v in np.asarray(values).ravel()) + "]"


def print_section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def run_kinematics_demo(config) -> None:
    """Print chain, Jacobian, control and Jacobian check for a configuration."""
    from src.control.engine import compute_kinematics
    from src.control.verification import jacobian_column_errors

    print_section("FORWARD KINEMATICS")
    result = compute_kinematics(config.inputs)
    chain = result.chain

    for i, x in enumerate(chain.joint_transforms):
        print(f"   x{i + 1}: {x}")
    print(f"   xN:     {chain.end_effector}")
    print(f"   xN.t:   {fmt(chain.end_effector.translation())}")
    print(f"   x_real: {result.real_pose}")
    print(f"   x_goal: {result.goal}  t={fmt(result.goal.translation())}")

    print_section("JACOBIAN")
    for i, column in enumerate(result.jacobian_columns):
        print(f"   J{i + 1}: {fmt(column)}")
    errors = jacobian_column_errors(config.inputs.joints)
    print(f"   finite-difference column errors: {fmt(errors)}")
    print(f"   avg error: {float(np.mean(errors)):.4f}")

    print_section("CONTROL")
    control = result.control
    print(f"   kappa_o: {control.kappa_o:.3f}   kappa_t: {control.kappa_t:.3f}")
    print(f"   |o|: {control.orientation_error_norm:.4f}   |t|: {control.translation_error_norm:.4f}")
    print(f"   u:     {fmt(control.u)}")
    print(f"   qdot:  {fmt(control.qdot)}")
    print(f"   dq:    {fmt(control.increment)}")


def run_iteration_demo(config, max_steps: int):
    """Step the driver until convergence or the step budget runs out."""
    from src.control.iteration import IterationDriver

    print_section("ITERATION")
    driver = IterationDriver(config.inputs, config.iteration)
    phase = driver.run(max_steps)

    print(f"   phase: {phase.name} after {driver.state.iteration} steps")
    print(f"   joints: {fmt([j.value for j in driver.joints])}")
    print("   recent errors (iter, |o|, |t|):")
    for record in driver.state.history_newest_first():
        print(
            f"     {record.iteration:4d}  {record.orientation_norm:.4f}  "
            f"{record.translation_norm:.4f}"
        )
    return driver


def main():
    """Main entry point."""
    from src.control.config import SessionConfig
    from src.control.engine import compute_kinematics
    from src.control.targets import target_from_current
    from src.control.trajectory import InterpolationMethod, TrajectoryOptions

    parser = argparse.ArgumentParser(description="Dual-Quaternion Arm Demonstration")
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="YAML session configuration"
    )
    parser.add_argument(
        "--steps", "-n", type=int, default=200, help="Maximum iteration steps (default: 200)"
    )
    parser.add_argument(
        "--method",
        choices=[m.value for m in InterpolationMethod],
        default=None,
        help="Trajectory interpolation method",
    )
    parser.add_argument(
        "--hold", action="store_true", help="Use the current pose as the target"
    )
    parser.add_argument(
        "--save", type=str, default=None, help="Write the effective configuration to YAML"
    )
    parser.add_argument(
        "--plot", type=str, default=None, help="Save a session plot (PNG) after iterating"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = SessionConfig.from_yaml(args.config) if args.config else SessionConfig()

    inputs = config.inputs
    if args.method is not None:
        options = TrajectoryOptions(InterpolationMethod(args.method), inputs.trajectory.samples)
        inputs = replace(inputs, trajectory=options)
    if args.hold:
        current = compute_kinematics(inputs).chain.end_effector
        inputs = inputs.with_target(target_from_current(current))
    config = replace(config, inputs=inputs)

    if args.save:
        config.to_yaml(args.save)
        logger.info(f"Configuration written to {args.save}")

    try:
        run_kinematics_demo(config)
        driver = run_iteration_demo(config, args.steps)
        if args.plot:
            from src.control.plotting import plot_session
            plot_session(driver.evaluate(), list(driver.state.history), args.plot)
    except Exception as e:
        logger.error(f"Demo error: {e}")
        raise


if __name__ == "__main__":
    main()
