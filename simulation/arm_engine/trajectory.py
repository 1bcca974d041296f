"""Joint-space trajectory generation with smoothstep easing.

A path moves both joints from a start pose to a target pose over a fixed
number of steps. Progress is eased so the arm starts and stops gently, the
Cartesian trace is always computed through forward kinematics, and the total
duration grows with the largest joint rotation.
"""

import logging
from typing import Iterator, NamedTuple, Union

import numpy as np

from arm_engine.kinematics import ArmKinematics, CartesianPoint, JointConfiguration

logger = logging.getLogger(__name__)

DEFAULT_STEPS = 100
BASE_DURATION = 15.0         # time units for a move of zero rotation
DURATION_PER_RADIAN = 10.0   # added per radian of the largest joint rotation

_COLUMNS = ("time", "theta1", "theta2", "x", "y")


class PathSample(NamedTuple):
    """One row of a path."""
    time: float
    theta1: float
    theta2: float
    x: float
    y: float


def ease(t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Smoothstep easing t^2 * (3 - 2t).

    Monotonic on [0, 1] with ease(0) = 0, ease(1) = 1 and zero slope at
    both ends. Works on scalars and arrays.
    """
    return t * t * (3 - 2 * t)


def path_duration(current: JointConfiguration, target: JointConfiguration) -> float:
    """Duration of a move, scaled by the larger of the two joint rotations."""
    max_delta = max(abs(target.theta1 - current.theta1),
                    abs(target.theta2 - current.theta2))
    return BASE_DURATION + DURATION_PER_RADIAN * max_delta


class Path:
    """Immutable, time-ordered sequence of samples.

    Stored column-wise so plotters can take ``path.time`` and
    ``path.theta1`` directly. The arrays are read-only.
    """

    __slots__ = _COLUMNS

    def __init__(self, time, theta1, theta2, x, y):
        columns = [np.array(c, dtype=float) for c in (time, theta1, theta2, x, y)]
        lengths = {len(c) for c in columns}
        if len(lengths) != 1:
            raise ValueError(f"Path columns must have equal length, got {sorted(lengths)}")
        for name, column in zip(_COLUMNS, columns):
            column.setflags(write=False)
            object.__setattr__(self, name, column)

    def __setattr__(self, name, value):
        raise AttributeError("Path is immutable")

    def __len__(self) -> int:
        return len(self.time)

    def __getitem__(self, index: int) -> PathSample:
        return PathSample(*(float(getattr(self, name)[index]) for name in _COLUMNS))

    def __iter__(self) -> Iterator[PathSample]:
        return self.samples()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return all(np.array_equal(getattr(self, name), getattr(other, name))
                   for name in _COLUMNS)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Path(samples={len(self)}, duration={self.duration:.3f})"

    def samples(self) -> Iterator[PathSample]:
        """Iterate samples in playback order."""
        for i in range(len(self)):
            yield self[i]

    @property
    def duration(self) -> float:
        return float(self.time[-1]) if len(self) else 0.0

    @property
    def start(self) -> JointConfiguration:
        return JointConfiguration(float(self.theta1[0]), float(self.theta2[0]))

    @property
    def end(self) -> JointConfiguration:
        return JointConfiguration(float(self.theta1[-1]), float(self.theta2[-1]))

    def polyline(self) -> np.ndarray:
        """(N, 2) array of end-effector points, for drawing the trace."""
        return np.column_stack((self.x, self.y))

    def end_position(self) -> CartesianPoint:
        return CartesianPoint(float(self.x[-1]), float(self.y[-1]))


def generate_path(kinematics: ArmKinematics,
                  current: JointConfiguration,
                  target: JointConfiguration,
                  steps: int = DEFAULT_STEPS) -> Path:
    """
    Interpolate from one pose to another in joint space.

    Args:
        kinematics: Arm used to place each sample in Cartesian space
        current: Starting pose
        target: Final pose
        steps: Number of intervals; the path has steps + 1 samples

    Returns:
        Path whose first sample is exactly ``current`` and whose last
        sample is exactly ``target``

    Raises:
        ValueError: If steps is less than 1
    """
    if steps < 1:
        raise ValueError(f"Path needs at least one step, got {steps}")

    current = JointConfiguration(*current)
    target = JointConfiguration(*target)

    t = np.arange(steps + 1, dtype=float) / steps
    progress = ease(t)
    duration = path_duration(current, target)

    # a*(1-s) + b*s lands on both endpoints exactly
    theta1 = current.theta1 * (1 - progress) + target.theta1 * progress
    theta2 = current.theta2 * (1 - progress) + target.theta2 * progress

    x = kinematics.l1 * np.cos(theta1) + kinematics.l2 * np.cos(theta1 + theta2)
    y = kinematics.l1 * np.sin(theta1) + kinematics.l2 * np.sin(theta1 + theta2)

    logger.debug("Generated path %s -> %s: %d samples over %.3f",
                 tuple(current), tuple(target), steps + 1, duration)
    return Path(t * duration, theta1, theta2, x, y)
