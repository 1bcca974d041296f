"""Command-line front end: plan one move and print the result."""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from arm_engine.arm import ArmController, MoveRejected
from arm_engine.config import DEFAULT_CONFIG, ArmConfig
from arm_engine.logging_config import setup_logging
from arm_engine.trajectory import DEFAULT_STEPS

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arm-move",
        description="Plan a move of the 2-link planar arm and print its trajectory."
    )
    parser.add_argument("x", nargs="?", help="Target X (meters)")
    parser.add_argument("y", nargs="?", help="Target Y (meters)")
    parser.add_argument(
        "--home", action="store_true",
        help="Move to the configured home point instead of X Y"
    )
    parser.add_argument(
        "--config", default=None,
        help="JSON file with link lengths, gripper, home and initial pose"
    )
    parser.add_argument(
        "--steps", type=int, default=DEFAULT_STEPS,
        help=f"Number of interpolation steps (default: {DEFAULT_STEPS})"
    )
    parser.add_argument(
        "--samples", type=int, default=5,
        help="How many evenly spaced path samples to print (default: 5)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.home and (args.x is None or args.y is None):
        parser.error("X and Y are required unless --home is given")
    if args.steps < 1:
        parser.error("--steps must be at least 1")

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = ArmConfig.from_json(args.config) if args.config else DEFAULT_CONFIG
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    controller = ArmController(config, steps=args.steps)
    result = controller.go_home() if args.home else controller.move(args.x, args.y)

    try:
        state = result.unwrap()
    except MoveRejected as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    deg1, deg2 = state.pose.degrees()
    print(f"position: x={state.position.x:.4f} y={state.position.y:.4f}")
    print(f"theta1:   {state.pose.theta1:.4f} rad ({deg1:.1f} deg)")
    print(f"theta2:   {state.pose.theta2:.4f} rad ({deg2:.1f} deg)")
    print(f"duration: {state.path.duration:.2f} s over {len(state.path)} samples")

    count = max(2, min(args.samples, len(state.path)))
    print(f"{'time':>8} {'theta1':>9} {'theta2':>9} {'x':>8} {'y':>8}")
    for i in np.linspace(0, len(state.path) - 1, count).round().astype(int):
        s = state.path[int(i)]
        print(f"{s.time:8.2f} {s.theta1:9.4f} {s.theta2:9.4f} {s.x:8.4f} {s.y:8.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
