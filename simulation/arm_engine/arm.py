"""Arm state and the move operation.

``move`` is a pure function from (state, target) to a new state or an error.
``ArmController`` owns the one live ``ArmState`` and is the only thing that
replaces it.
"""

import logging
import math
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

from arm_engine.config import DEFAULT_CONFIG, ArmConfig
from arm_engine.kinematics import ArmKinematics, CartesianPoint, JointConfiguration
from arm_engine.trajectory import DEFAULT_STEPS, Path, generate_path

logger = logging.getLogger(__name__)


class MoveError(IntEnum):
    """Why a move was refused. All of them are final for that request."""
    INVALID_INPUT = 1
    OUT_OF_WORKSPACE = 2
    NO_SOLUTION = 3

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    MoveError.INVALID_INPUT: "Invalid coordinates",
    MoveError.OUT_OF_WORKSPACE: "Point is outside the arm's reach",
    MoveError.NO_SOLUTION: "No joint configuration reaches this position",
}


class MoveRejected(ValueError):
    """Raised by MoveResult.unwrap() for a failed move."""

    def __init__(self, error: MoveError):
        super().__init__(error.message)
        self.error = error


@dataclass(frozen=True)
class ArmState:
    """Pose, end-effector position and last path, always replaced together."""
    pose: JointConfiguration
    position: CartesianPoint
    path: Path


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move: a new state or an error, never both."""
    state: Optional[ArmState] = None
    error: Optional[MoveError] = None

    def __post_init__(self):
        if (self.state is None) == (self.error is None):
            raise ValueError("MoveResult needs exactly one of state or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ArmState:
        if self.error is not None:
            raise MoveRejected(self.error)
        return self.state


def _coerce(value: Any) -> Optional[float]:
    """Float value of a coordinate, or None if it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def move(kinematics: ArmKinematics, state: ArmState, x: Any, y: Any,
         steps: int = DEFAULT_STEPS) -> MoveResult:
    """
    Plan a move of the end effector to (x, y).

    Args:
        kinematics: Arm geometry
        state: Current state; never modified
        x: Target X (anything float() accepts)
        y: Target Y
        steps: Path resolution

    Returns:
        MoveResult holding the new ArmState, or the MoveError explaining
        why the move was refused
    """
    tx, ty = _coerce(x), _coerce(y)
    if tx is None or ty is None:
        return MoveResult(error=MoveError.INVALID_INPUT)

    if not kinematics.is_reachable(tx, ty):
        return MoveResult(error=MoveError.OUT_OF_WORKSPACE)

    # Backstop for the solver's own numerical guards
    target = kinematics.inverse(tx, ty)
    if target is None:
        return MoveResult(error=MoveError.NO_SOLUTION)

    path = generate_path(kinematics, state.pose, target, steps)
    return MoveResult(state=ArmState(pose=target,
                                     position=CartesianPoint(tx, ty),
                                     path=path))


class ArmController:
    """Owner of the live arm state.

    Moves are serialized; readers always get a complete, immutable
    snapshot, so pose, position and path are never seen out of step.
    """

    def __init__(self, config: ArmConfig = DEFAULT_CONFIG, steps: int = DEFAULT_STEPS):
        self.config = config
        self.steps = steps
        self.kinematics = ArmKinematics(config.l1, config.l2)
        self._lock = threading.Lock()

        pose = config.initial_pose
        # Start-up settling animation: a zero-length move onto the initial pose
        self._state = ArmState(pose=pose,
                               position=self.kinematics.forward(*pose),
                               path=self.generate_path(pose, pose))
        logger.info("Arm ready: l1=%.3f l2=%.3f pose=(%.4f, %.4f)",
                    config.l1, config.l2, pose.theta1, pose.theta2)

    @property
    def state(self) -> ArmState:
        return self._state

    def snapshot(self) -> ArmState:
        """Current state. Immutable, safe to hand to a renderer."""
        with self._lock:
            return self._state

    def is_reachable(self, x: float, y: float) -> bool:
        return self.kinematics.is_reachable(x, y)

    def check_input(self, x: Any, y: Any) -> Optional[MoveError]:
        """Validate a candidate target without moving. None means it is fine."""
        tx, ty = _coerce(x), _coerce(y)
        if tx is None or ty is None:
            return MoveError.INVALID_INPUT
        if not self.kinematics.is_reachable(tx, ty):
            return MoveError.OUT_OF_WORKSPACE
        return None

    def generate_path(self, start: JointConfiguration, end: JointConfiguration) -> Path:
        return generate_path(self.kinematics, start, end, self.steps)

    def move(self, x: Any, y: Any) -> MoveResult:
        """Move to (x, y); state is replaced only if the move succeeds."""
        with self._lock:
            result = move(self.kinematics, self._state, x, y, self.steps)
            if not result.ok:
                logger.warning("Move to (%r, %r) rejected: %s", x, y, result.error.message)
                return result
            self._state = result.state
        pose = result.state.pose
        logger.info("Moved to (%.4f, %.4f): theta1=%.4f theta2=%.4f, duration %.2f",
                    result.state.position.x, result.state.position.y,
                    pose.theta1, pose.theta2, result.state.path.duration)
        return result

    def go_home(self) -> MoveResult:
        return self.move(*self.config.home)
