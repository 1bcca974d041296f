"""Forward and inverse kinematics for the 2-link planar arm."""

import logging
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Slack allowed on the law-of-cosines terms before a target is rejected.
# Anything within it is rounding noise and gets clipped back into [-1, 1].
COSINE_TOLERANCE = 1e-9


class JointConfiguration(NamedTuple):
    """One pose of the arm: shoulder and elbow angles in radians."""
    theta1: float
    theta2: float

    def degrees(self) -> Tuple[float, float]:
        """Pose in degrees, as shown to the operator."""
        return (float(np.degrees(self.theta1)), float(np.degrees(self.theta2)))


class CartesianPoint(NamedTuple):
    """End-effector coordinate in the arm's plane."""
    x: float
    y: float


class ElbowBranch(Enum):
    """Which of the two IK solutions the solver returns.

    POSITIVE is the branch with theta2 in [0, pi]. It is the only one
    implemented; the mirrored branch is never offered.
    """
    POSITIVE = "positive"


ELBOW_POLICY = ElbowBranch.POSITIVE


class ArmKinematics:
    """2-DOF planar arm kinematics.

    Link 1 (l1): Shoulder to elbow
    Link 2 (l2): Elbow to end-effector

    The reachable workspace is the annulus between |l1 - l2| and l1 + l2.
    """

    def __init__(self, l1: float = 0.12, l2: float = 0.12):
        """
        Initialize with link lengths.

        Args:
            l1: Shoulder to elbow length (meters)
            l2: Elbow to end-effector length (meters)

        Raises:
            ValueError: If either length is not a positive number
        """
        for name, value in (("l1", l1), ("l2", l2)):
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"Link length {name} must be positive, got {value}")
        self.l1 = float(l1)
        self.l2 = float(l2)

    def __repr__(self) -> str:
        return f"ArmKinematics(l1={self.l1}, l2={self.l2})"

    def workspace_radii(self) -> Tuple[float, float]:
        """Inner and outer radius of the reachable annulus."""
        return (abs(self.l1 - self.l2), self.l1 + self.l2)

    def is_reachable(self, x: float, y: float) -> bool:
        """
        Check whether (x, y) lies inside the workspace annulus.

        Bounds are inclusive. When l1 == l2 the inner radius is zero and the
        origin itself is reachable.

        Args:
            x: Target X position (meters)
            y: Target Y position (meters)

        Returns:
            True if the point can be reached
        """
        if not (np.isfinite(x) and np.isfinite(y)):
            return False
        inner, outer = self.workspace_radii()
        d_squared = x * x + y * y
        return inner * inner <= d_squared <= outer * outer

    def forward(self, theta1: float, theta2: float) -> CartesianPoint:
        """
        Compute forward kinematics.

        Args:
            theta1: Shoulder angle (radians)
            theta2: Elbow angle (radians)

        Returns:
            (x, y) end-effector position in meters
        """
        x = self.l1 * np.cos(theta1) + self.l2 * np.cos(theta1 + theta2)
        y = self.l1 * np.sin(theta1) + self.l2 * np.sin(theta1 + theta2)
        return CartesianPoint(float(x), float(y))

    def joint_positions(self, theta1: float, theta2: float,
                        gripper: float = 0.0) -> List[CartesianPoint]:
        """
        Skeleton of the arm for drawing.

        Args:
            theta1: Shoulder angle (radians)
            theta2: Elbow angle (radians)
            gripper: Length of the gripper segment past the wrist (meters)

        Returns:
            [base, elbow, wrist, gripper tip]. The gripper continues along
            the direction of the second link.
        """
        elbow = CartesianPoint(float(self.l1 * np.cos(theta1)),
                               float(self.l1 * np.sin(theta1)))
        wrist = self.forward(theta1, theta2)
        heading = theta1 + theta2
        tip = CartesianPoint(float(wrist.x + gripper * np.cos(heading)),
                             float(wrist.y + gripper * np.sin(heading)))
        return [CartesianPoint(0.0, 0.0), elbow, wrist, tip]

    def inverse(self, x: float, y: float) -> Optional[JointConfiguration]:
        """
        Compute inverse kinematics (single elbow branch, see ELBOW_POLICY).

        Uses the law of cosines on the triangle formed by both links and
        the line from the shoulder to the target.

        Args:
            x: Target X position (meters)
            y: Target Y position (meters)

        Returns:
            (theta1, theta2) joint angles in radians, or None if the target
            cannot be reached. Callers get no reason for the rejection.
        """
        # Same bound as the validator, so the two never disagree
        if not self.is_reachable(x, y):
            return None

        l1, l2 = self.l1, self.l2
        d_squared = x * x + y * y
        d = np.sqrt(d_squared)

        # Polar angle of the target
        gamma = np.arctan2(y, x)

        # Angle between link 1 and the shoulder-target line. At the origin
        # (only reachable with equal links) any heading works; fold the arm
        # back along the x axis.
        if d == 0.0:
            cos_beta = 1.0
        else:
            cos_beta = _guard_cosine((d_squared + l1**2 - l2**2) / (2 * d * l1))
            if cos_beta is None:
                return None
        theta1 = gamma - np.arccos(cos_beta)

        # Interior angle at the elbow
        cos_alpha = _guard_cosine((l1**2 + l2**2 - d_squared) / (2 * l1 * l2))
        if cos_alpha is None:
            return None
        theta2 = np.pi - np.arccos(cos_alpha)

        return JointConfiguration(float(theta1), float(theta2))


def _guard_cosine(value: float) -> Optional[float]:
    """Clip rounding noise into [-1, 1]; None if the cosine is out of domain."""
    if not np.isfinite(value) or abs(value) > 1.0 + COSINE_TOLERANCE:
        logger.debug("Cosine %r outside [-1, 1], rejecting target", value)
        return None
    return float(np.clip(value, -1.0, 1.0))
