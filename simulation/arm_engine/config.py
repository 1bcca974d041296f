"""
Arm configuration.

Link lengths, gripper length, home point and start-up pose are fixed when a
controller is built. They can come from the defaults below or from a JSON
file such as::

    {
        "l1": 0.12,
        "l2": 0.12,
        "gripper": 0.02,
        "home": {"x": 0.14, "y": 0.14},
        "initial_pose": {"theta1": 1.5708, "theta2": 0.0}
    }

Every key is optional; missing ones keep their default value.
"""

import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict

from arm_engine.kinematics import CartesianPoint, JointConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArmConfig:
    """Physical constants of the arm."""

    l1: float = 0.12
    l2: float = 0.12
    gripper: float = 0.02
    home: CartesianPoint = field(default_factory=lambda: CartesianPoint(0.14, 0.14))
    initial_pose: JointConfiguration = field(
        default_factory=lambda: JointConfiguration(math.pi / 2, 0.0))

    def __post_init__(self):
        for name in ("l1", "l2"):
            value = getattr(self, name)
            if not _is_number(value) or not value > 0:
                raise ValueError(f"{name} must be a positive number, got {value!r}")
        if not _is_number(self.gripper) or self.gripper < 0:
            raise ValueError(f"gripper must be a non-negative number, got {self.gripper!r}")
        object.__setattr__(self, "home", CartesianPoint(*self.home))
        object.__setattr__(self, "initial_pose", JointConfiguration(*self.initial_pose))
        for value in (*self.home, *self.initial_pose):
            if not _is_number(value):
                raise ValueError(f"home and initial_pose must be finite numbers, got {value!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArmConfig":
        """Build a config from a mapping, falling back to defaults."""
        defaults = cls()
        try:
            home = data.get("home", {})
            pose = data.get("initial_pose", {})
            return cls(
                l1=float(data.get("l1", defaults.l1)),
                l2=float(data.get("l2", defaults.l2)),
                gripper=float(data.get("gripper", defaults.gripper)),
                home=CartesianPoint(float(home.get("x", defaults.home.x)),
                                    float(home.get("y", defaults.home.y))),
                initial_pose=JointConfiguration(
                    float(pose.get("theta1", defaults.initial_pose.theta1)),
                    float(pose.get("theta2", defaults.initial_pose.theta2))),
            )
        except (TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed arm configuration: {exc}") from exc

    @classmethod
    def from_json(cls, path: str) -> "ArmConfig":
        """Load a config file."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"Arm configuration not found: {path}")
        with open(path, "r", encoding="utf-8") as file:
            try:
                data = json.load(file)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {path}")
        config = cls.from_dict(data)
        logger.info("Loaded arm configuration from %s", path)
        return config


def _is_number(value: Any) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


DEFAULT_CONFIG = ArmConfig()
