"""
Iteration Driver Module
=======================

Discrete-time loop that integrates controller output into the joint state.

State Machine:

    IDLE ──start──► RUNNING ──converged──► CONVERGED
      ▲                │                      │
      └─────stop───────┘◄────────start────────┘
    
    IDLE ──step──► STEPPING ──► IDLE      (one-shot)

Each step:
    1. evaluate kinematics and control at the current joints
    2. apply the joint increment, clamped to each joint's range
    3. advance the iteration counter (and the trajectory index if enabled)
    4. re-evaluate and append (iteration, |õ|, |t̃|) to a 12-entry history

The running loop lives in a background thread that issues one step per period.
Stopping takes effect at the next period boundary: a step is either applied
completely or not at all, and `stop()` returns only after the loop has exited.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple, List, Deque, Dict, Any

from ..dualquat import DualQuaternion
from .controller import CONVERGENCE_THRESHOLD
from .engine import KinematicsInput, KinematicsResult, compute_kinematics
from .kinematics import (
    Joint,
    JointRange,
    apply_joint_increment,
    default_ranges,
    forward_kinematics,
)

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 12
DEFAULT_RUN_INTERVAL_MS = 140.0


class IterationPhase(Enum):
    """Iteration driver states."""
    IDLE = auto()
    STEPPING = auto()
    RUNNING = auto()
    CONVERGED = auto()


@dataclass(frozen=True)
class ErrorRecord:
    """Error norms after one step."""
    iteration: int
    orientation_norm: float
    translation_norm: float


@dataclass
class IterationState:
    """
    Persistent state owned by the iteration driver.
    
    Attributes:
        iteration: Number of steps applied since the last reset
        target_index: Active trajectory sample
        base_pose: Trajectory start captured at construction or reset
        phase: Current state machine phase
        history: Most recent error records, oldest first
    """
    iteration: int = 0
    target_index: int = 0
    base_pose: Optional[DualQuaternion] = None
    phase: IterationPhase = IterationPhase.IDLE
    history: Deque[ErrorRecord] = field(
        default_factory=lambda: deque(maxlen=HISTORY_CAPACITY)
    )
    
    def record(self, entry: ErrorRecord) -> None:
        """Append a record, evicting the oldest beyond capacity."""
        self.history.append(entry)
    
    def history_newest_first(self) -> List[ErrorRecord]:
        return list(reversed(self.history))


@dataclass(frozen=True)
class IterationConfig:
    """
    Configuration for the iteration driver.
    
    Attributes:
        auto_advance: Advance the trajectory index after each step
        run_interval_ms: Period of the running loop (ms)
        ranges: Per-joint clamping ranges (defaults per joint type if None)
        convergence_threshold: Error norm below which the run loop stops
    """
    auto_advance: bool = True
    run_interval_ms: float = DEFAULT_RUN_INTERVAL_MS
    ranges: Optional[Tuple[JointRange, ...]] = None
    convergence_threshold: float = CONVERGENCE_THRESHOLD
    
    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.run_interval_ms <= 0:
            raise ValueError("run_interval_ms must be positive")
        if self.ranges is not None:
            object.__setattr__(self, "ranges", tuple(self.ranges))
    
    @property
    def period(self) -> float:
        """Run loop period in seconds."""
        return self.run_interval_ms / 1000.0


class IterationDriver:
    """
    Owner of the iteration state and the joint configuration it mutates.
    
    Example:
        >>> driver = IterationDriver(KinematicsInput())
        >>> result = driver.step()
        >>> driver.start()          # periodic stepping in the background
        >>> driver.stop()           # returns once the loop has exited
        >>> driver.reset()
    """
    
    def __init__(
        self,
        inputs: KinematicsInput,
        config: Optional[IterationConfig] = None
    ) -> None:
        """
        Initialize the driver and capture the current pose as base pose.
        
        Args:
            inputs: Initial input snapshot
            config: Driver configuration
        """
        self.config = config or IterationConfig()
        
        ranges = self.config.ranges or default_ranges(inputs.joints)
        if len(ranges) != len(inputs.joints):
            raise ValueError("ranges length must match joints")
        self._ranges: Tuple[JointRange, ...] = tuple(ranges)
        
        self._inputs = inputs
        self._state = IterationState(
            base_pose=forward_kinematics(inputs.joints).end_effector
        )
        
        # Serializes steps against stop/reset/edits
        self._lock = threading.RLock()
        self._run_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        
        logger.info(
            f"IterationDriver initialized: {len(inputs.joints)} joints, "
            f"{self.config.run_interval_ms:.0f}ms period"
        )
    
    # =========================================================================
    # State Management
    # =========================================================================
    
    @property
    def state(self) -> IterationState:
        return self._state
    
    @property
    def phase(self) -> IterationPhase:
        with self._lock:
            return self._state.phase
    
    @property
    def inputs(self) -> KinematicsInput:
        with self._lock:
            return self._inputs
    
    @property
    def joints(self) -> Tuple[Joint, ...]:
        return self.inputs.joints
    
    @property
    def ranges(self) -> Tuple[JointRange, ...]:
        return self._ranges
    
    @property
    def is_running(self) -> bool:
        return self.phase == IterationPhase.RUNNING
    
    def set_inputs(self, inputs: KinematicsInput) -> None:
        """Replace the input snapshot (external edits to joints, gains, target)."""
        with self._lock:
            self._inputs = inputs
    
    def _set_phase(self, phase: IterationPhase) -> None:
        with self._lock:
            old_phase = self._state.phase
            self._state.phase = phase
        if old_phase != phase:
            logger.info(f"Iteration state: {old_phase.name} → {phase.name}")
    
    # =========================================================================
    # Evaluation
    # =========================================================================
    
    def evaluate(self) -> KinematicsResult:
        """Evaluate kinematics and control for the current state."""
        with self._lock:
            result = compute_kinematics(
                self._inputs,
                target_index=self._state.target_index,
                base_pose=self._state.base_pose,
            )
            self._state.target_index = result.target_index
            return result
    
    def _apply_step(self) -> KinematicsResult:
        """One complete step; caller holds the lock."""
        before = self.evaluate()
        
        joints = apply_joint_increment(
            self._inputs.joints, before.control.increment, self._ranges
        )
        self._inputs = self._inputs.with_joints(joints)
        self._state.iteration += 1
        
        if self.config.auto_advance:
            last = max(0, before.trajectory.total - 1)
            self._state.target_index = min(self._state.target_index + 1, last)
        
        after = self.evaluate()
        self._state.record(ErrorRecord(
            iteration=self._state.iteration,
            orientation_norm=after.control.orientation_error_norm,
            translation_norm=after.control.translation_error_norm,
        ))
        
        logger.debug(
            f"Step {self._state.iteration}: index={self._state.target_index} "
            f"|o|={after.control.orientation_error_norm:.4f} "
            f"|t|={after.control.translation_error_norm:.4f}"
        )
        return after
    
    def step(self) -> KinematicsResult:
        """
        Apply one step.
        
        Called while idle this is a one-shot step (STEPPING → IDLE). Called
        while running it is applied between loop steps without changing the
        phase.
        
        Returns:
            Result evaluated at the updated joints
        """
        with self._lock:
            if self._state.phase == IterationPhase.RUNNING:
                return self._apply_step()
            
            self._set_phase(IterationPhase.STEPPING)
            try:
                return self._apply_step()
            finally:
                self._set_phase(IterationPhase.IDLE)
    
    def _running_step(self) -> bool:
        """
        Apply one step of the running loop.
        
        Returns:
            False once the loop should end (stopped or converged)
        """
        with self._lock:
            if self._stop_event.is_set() or self._state.phase != IterationPhase.RUNNING:
                return False
            
            result = self._apply_step()
            
            if result.control.is_converged(self.config.convergence_threshold):
                logger.info(f"Converged after {self._state.iteration} iterations")
                self._stop_event.set()
                self._set_phase(IterationPhase.CONVERGED)
                return False
            return True
    
    def run(self, max_steps: int) -> IterationPhase:
        """
        Run the loop synchronously, without waiting between steps.
        
        Args:
            max_steps: Upper bound on the number of steps
            
        Returns:
            Phase after the run (CONVERGED, or IDLE if the bound was hit)
        """
        if self.is_running:
            logger.warning("Run loop already active")
            return self.phase
        
        self._stop_event.clear()
        self._set_phase(IterationPhase.RUNNING)
        for _ in range(max_steps):
            if not self._running_step():
                break
        
        if self.phase == IterationPhase.RUNNING:
            self._set_phase(IterationPhase.IDLE)
        return self.phase
    
    # =========================================================================
    # Background Run Loop
    # =========================================================================
    
    def start(self) -> None:
        """Start periodic stepping in a background thread."""
        with self._lock:
            if self._state.phase == IterationPhase.RUNNING:
                logger.warning("Run loop already active")
                return
            
            # A converged loop may still be exiting; it holds no lock by now
            previous = self._run_thread
            if previous is not None and previous.is_alive():
                previous.join()
            
            self._stop_event.clear()
            self._set_phase(IterationPhase.RUNNING)
            self._run_thread = threading.Thread(
                target=self._run_loop,
                name="IterationDriver-RunLoop",
                daemon=True
            )
            self._run_thread.start()
        logger.info("Run loop started")
    
    def stop(self) -> None:
        """
        Stop periodic stepping.
        
        Returns after the loop has exited; a step in progress completes first.
        """
        self._stop_event.set()
        thread = self._run_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._run_thread = None
        
        if self.phase == IterationPhase.RUNNING:
            self._set_phase(IterationPhase.IDLE)
            logger.info("Run loop stopped")
    
    pause = stop
    
    def toggle(self) -> None:
        """Start if stopped, stop if running."""
        if self.is_running:
            self.stop()
        else:
            self.start()
    
    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the run loop exits.
        
        Returns:
            True if the loop is no longer running
        """
        thread = self._run_thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True
    
    def _run_loop(self) -> None:
        """Background loop: one step per period boundary."""
        period = self.config.period
        
        while not self._stop_event.wait(period):
            if not self._running_step():
                break
    
    # =========================================================================
    # Reset
    # =========================================================================
    
    def reset(self) -> None:
        """Stop, recapture the base pose and clear counters and history."""
        self.stop()
        with self._lock:
            self._state.base_pose = forward_kinematics(self._inputs.joints).end_effector
            self._state.iteration = 0
            self._state.target_index = 0
            self._state.history.clear()
            self._set_phase(IterationPhase.IDLE)
        logger.info("Iteration reset")
    
    def get_status(self) -> Dict[str, Any]:
        """Get driver status for monitoring."""
        with self._lock:
            return {
                "phase": self._state.phase.name,
                "iteration": self._state.iteration,
                "target_index": self._state.target_index,
                "joint_values": [j.value for j in self._inputs.joints],
                "history": [
                    (r.iteration, r.orientation_norm, r.translation_norm)
                    for r in self._state.history_newest_first()
                ],
            }
