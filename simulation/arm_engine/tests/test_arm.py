"""Tests for arm state, the move operation and the controller."""

import logging
import threading

import pytest
import numpy as np
from arm_engine.arm import (
    ArmController, ArmState, MoveError, MoveRejected, MoveResult, move
)
from arm_engine.config import ArmConfig
from arm_engine.kinematics import ArmKinematics, CartesianPoint, JointConfiguration
from arm_engine.trajectory import generate_path


@pytest.fixture
def kinematics():
    return ArmKinematics(l1=0.12, l2=0.12)


@pytest.fixture
def controller():
    return ArmController(ArmConfig())


class TestMoveOperation:
    """Test the pure move function."""

    @pytest.fixture
    def state(self, controller):
        return controller.state

    def test_successful_move(self, kinematics, state):
        result = move(kinematics, state, 0.14, 0.14)
        assert result.ok
        new = result.state
        assert new.position == CartesianPoint(0.14, 0.14)
        assert new.path.start == state.pose
        assert new.path.end == new.pose
        x, y = kinematics.forward(*new.pose)
        assert abs(x - 0.14) < 1e-9
        assert abs(y - 0.14) < 1e-9

    def test_input_state_untouched(self, kinematics, state):
        before = state
        move(kinematics, state, 0.1, 0.05)
        assert state is before
        assert state.pose == JointConfiguration(np.pi / 2, 0.0)

    @pytest.mark.parametrize("x,y", [
        (None, 0.1), (0.1, None), ("abc", 0.1), (0.1, float("nan")),
        (float("inf"), 0.0), (True, 0.1), ([0.1], 0.1),
    ])
    def test_invalid_input(self, kinematics, state, x, y):
        result = move(kinematics, state, x, y)
        assert result.error is MoveError.INVALID_INPUT
        assert result.state is None

    def test_numeric_strings_accepted(self, kinematics, state):
        result = move(kinematics, state, "0.14", " 0.14 ")
        assert result.ok
        assert result.state.position == CartesianPoint(0.14, 0.14)

    def test_out_of_workspace(self, kinematics, state):
        result = move(kinematics, state, 10, 10)
        assert result.error is MoveError.OUT_OF_WORKSPACE

    def test_no_solution_backstop(self, kinematics, state, monkeypatch):
        """A solver rejection after the reachability check is still reported."""
        monkeypatch.setattr(kinematics, "inverse", lambda x, y: None)
        result = move(kinematics, state, 0.14, 0.14)
        assert result.error is MoveError.NO_SOLUTION


class TestMoveResult:
    """Test the result value."""

    def test_needs_exactly_one_field(self):
        with pytest.raises(ValueError):
            MoveResult()

    def test_unwrap_failure(self):
        result = MoveResult(error=MoveError.OUT_OF_WORKSPACE)
        with pytest.raises(MoveRejected, match="outside the arm's reach") as info:
            result.unwrap()
        assert info.value.error is MoveError.OUT_OF_WORKSPACE
        assert isinstance(info.value, ValueError)

    def test_every_error_has_message(self):
        for error in MoveError:
            assert error.message


class TestArmController:
    """Test the state owner."""

    def test_initial_state(self, controller, kinematics):
        state = controller.state
        assert state.pose == JointConfiguration(np.pi / 2, 0.0)
        assert state.position == kinematics.forward(np.pi / 2, 0.0)
        assert abs(state.position.y - 0.24) < 1e-12

    def test_initial_settling_path(self, controller):
        """Start-up path holds the initial pose for the base duration."""
        path = controller.state.path
        assert len(path) == 101
        assert path.duration == 15.0
        assert np.allclose(path.theta1, np.pi / 2, rtol=0, atol=1e-15)
        assert np.all(path.theta2 == 0.0)

    def test_move_replaces_state(self, controller):
        old = controller.state
        result = controller.move(0.14, 0.14)
        assert result.ok
        assert controller.state is result.state
        assert controller.state.path.start == old.pose

    def test_consecutive_moves_chain(self, controller):
        first = controller.move(0.14, 0.14).state
        second = controller.move(-0.1, 0.15).state
        assert second.path.start == first.pose
        assert second.path[0].x == pytest.approx(0.14)

    def test_failed_move_leaves_state_identical(self, controller):
        before = controller.snapshot()
        theta1 = before.path.theta1.copy()
        result = controller.move(10, 10)
        assert result.error is MoveError.OUT_OF_WORKSPACE
        after = controller.snapshot()
        assert after is before
        assert after == before
        assert np.array_equal(after.path.theta1, theta1)

    def test_failed_move_logs_warning(self, controller, caplog):
        with caplog.at_level(logging.WARNING, logger="arm_engine"):
            controller.move("x", 0.1)
        assert "rejected" in caplog.text

    def test_invalid_input_leaves_state(self, controller):
        controller.move(0.14, 0.14)
        before = controller.snapshot()
        assert controller.move("", 0.1).error is MoveError.INVALID_INPUT
        assert controller.snapshot() is before

    def test_go_home(self, controller):
        result = controller.go_home()
        assert result.ok
        assert controller.state.position == controller.config.home

    def test_check_input(self, controller):
        assert controller.check_input(0.14, 0.14) is None
        assert controller.check_input("a", 0.14) is MoveError.INVALID_INPUT
        assert controller.check_input(1.0, 0.0) is MoveError.OUT_OF_WORKSPACE
        assert controller.is_reachable(0.0, 0.0)

    def test_standalone_path(self, controller):
        path = controller.generate_path(JointConfiguration(0.0, 0.0), JointConfiguration(1.0, 0.0))
        assert path.duration == 25.0

    def test_custom_steps(self):
        controller = ArmController(ArmConfig(), steps=10)
        assert len(controller.move(0.14, 0.14).state.path) == 11

    def test_state_is_frozen(self, controller):
        with pytest.raises(AttributeError):
            controller.state.pose = JointConfiguration(0.0, 0.0)

    def test_concurrent_moves_stay_consistent(self, controller):
        """Overlapping moves never leave pose, position and path out of step."""
        targets = [(0.14, 0.14), (-0.1, 0.15), (0.05, 0.2), (0.2, -0.05)]

        def worker(x, y):
            for _ in range(20):
                controller.move(x, y)

        threads = [threading.Thread(target=worker, args=t) for t in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = controller.snapshot()
        assert state.path.end == state.pose
        assert tuple(state.position) in targets
        x, y = controller.kinematics.forward(*state.pose)
        assert abs(x - state.position.x) < 1e-9
        assert abs(y - state.position.y) < 1e-9


class TestScenario:
    """Move from the start pose to the home point with the real arm."""

    def test_move_to_home_point(self):
        kinematics = ArmKinematics(l1=0.12, l2=0.12)
        start = ArmState(pose=JointConfiguration(np.pi / 2, 0.0),
                         position=kinematics.forward(np.pi / 2, 0.0),
                         path=generate_path(
                             kinematics, JointConfiguration(np.pi / 2, 0.0),
                             JointConfiguration(np.pi / 2, 0.0)))
        result = move(kinematics, start, 0.14, 0.14)
        assert result.ok
        path = result.state.path
        assert len(path) == 101
        assert path.end == result.state.pose
        x, y = kinematics.forward(*path.end)
        assert abs(x - 0.14) < 1e-9
        assert abs(y - 0.14) < 1e-9
        assert abs(path.x[-1] - 0.14) < 1e-9
        assert abs(path.y[-1] - 0.14) < 1e-9
