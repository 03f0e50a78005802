import math

import pytest

from cubekit.core.base import Axis, InputEvent, Move
from cubekit.core.config import InputConfig
from cubekit.core.registry import INPUT_REGISTRY
from cubekit.inputs import (
    ControllerInputAdapter, ControllerInputConfig, DesktopInputAdapter, DesktopInputConfig,
    HandInputAdapter, HandInputConfig, create_input_adapter,
)
from cubekit.inputs.hand import normalize_quaternion, twist_angle

IDENTITY = [0, 0, 0, 1]
QUARTER_Y = [0, math.sin(math.pi / 4), 0, math.cos(math.pi / 4)]
EIGHTH_Y = [0, math.sin(math.pi / 8), 0, math.cos(math.pi / 8)]
SMALL_Y = [0, math.sin(math.pi / 16), 0, math.cos(math.pi / 16)]


def last_result(observations):
    return observations[-1].metadata["tool_result"]


class TestDesktop:
    def test_click_translates_to_select(self):
        adapter = DesktopInputAdapter(DesktopInputConfig())
        actions = adapter.translate(InputEvent("click", {"position": [1, 1, 1], "face": "right"}))
        assert [a.action_type for a in actions] == ["select"]
        assert actions[0].parameters == {"position": [1, 1, 1], "face": "right"}

    def test_arrow_keys(self):
        adapter = DesktopInputAdapter(DesktopInputConfig())
        assert adapter.translate(InputEvent("keydown", {"key": "ArrowUp"}))[0].parameters == {"direction": 1}
        assert adapter.translate(InputEvent("keydown", {"key": "ArrowLeft"}))[0].parameters == {"direction": -1}

    def test_unbound_key(self):
        adapter = DesktopInputAdapter(DesktopInputConfig())
        assert adapter.translate(InputEvent("keydown", {"key": "Space"})) == []
        assert adapter.translate(InputEvent("scroll", {})) == []

    def test_custom_bindings(self):
        adapter = DesktopInputAdapter(DesktopInputConfig(key_bindings={"d": 1, "a": -1}))
        assert adapter.translate(InputEvent("keydown", {"key": "a"}))[0].parameters == {"direction": -1}
        assert adapter.translate(InputEvent("keydown", {"key": "ArrowRight"})) == []

    def test_feed_commits(self, env):
        adapter = DesktopInputAdapter(DesktopInputConfig())
        adapter.feed(env, InputEvent("click", {"position": [1, 1, 1], "face": "right"}))
        result = last_result(adapter.feed(env, InputEvent("keydown", {"key": "ArrowRight"})))
        assert result["status"] == "committed"
        assert env.last_move == Move(Axis.X, 1, 1)


class TestController:
    def test_grab_uses_face_toward_grip(self):
        adapter = ControllerInputAdapter(ControllerInputConfig())
        action = adapter.translate(InputEvent("grab", {"position": [1, 1, 1], "grip": [1, 2, 1]}))[0]
        assert action.action_type == "select"
        assert action.parameters["face"] == "top"
        assert action.parameters["origin"] == [1, 2, 1]
        assert action.parameters["grab"] is True

    def test_move_ignored_when_not_holding(self):
        adapter = ControllerInputAdapter(ControllerInputConfig())
        assert adapter.translate(InputEvent("move", {"grip": [0, 0, 0]})) == []
        assert adapter.translate(InputEvent("release", {})) == []

    def test_grab_drag_commits(self, env):
        adapter = ControllerInputAdapter(ControllerInputConfig())
        adapter.feed(env, InputEvent("grab", {"position": [1, 1, 1], "grip": [2, 1, 1]}))
        result = last_result(adapter.feed(env, InputEvent("move", {"grip": [2, 0.8, 1]})))
        assert result["status"] == "committed"
        assert env.last_move == Move(Axis.X, 1, -1)

        # Release after the turn hits the rotating gate
        assert last_result(adapter.feed(env, InputEvent("release", {})))["status"] == "ignored"
        assert not adapter.holding

    def test_short_drag_release_cancels(self, env):
        adapter = ControllerInputAdapter(ControllerInputConfig())
        adapter.feed(env, InputEvent("grab", {"position": [1, 1, 1], "grip": [2, 1, 1]}))
        adapter.feed(env, InputEvent("move", {"grip": [2, 1.02, 1]}))
        assert last_result(adapter.feed(env, InputEvent("release", {})))["status"] == "cancelled"
        assert env.move_count == 0

    def test_default_timeout(self):
        assert ControllerInputConfig().rotation_timeout == 0.3


class TestHand:
    def test_twist_angle_quarter_turn(self):
        assert twist_angle(IDENTITY, QUARTER_Y, [0, 1, 0]) == pytest.approx(math.pi / 2)
        assert twist_angle(QUARTER_Y, IDENTITY, [0, 1, 0]) == pytest.approx(-math.pi / 2)

    def test_twist_about_other_axis_is_zero(self):
        assert twist_angle(IDENTITY, QUARTER_Y, [1, 0, 0]) == pytest.approx(0.0)

    def test_sign_of_quaternion_does_not_matter(self):
        negated = [-c for c in QUARTER_Y]
        assert twist_angle(IDENTITY, negated, [0, 1, 0]) == pytest.approx(math.pi / 2)

    def test_normalize_rejects_bad_input(self):
        with pytest.raises(ValueError):
            normalize_quaternion([0, 0, 0, 0])
        with pytest.raises(ValueError):
            normalize_quaternion([0, 0, 1])

    def test_pose_reports_progress(self):
        adapter = HandInputAdapter(HandInputConfig())
        adapter.translate(InputEvent("pinch", {"position": [0, 1, 0], "orientation": IDENTITY}))
        action = adapter.translate(InputEvent("pose", {"orientation": EIGHTH_Y}))[0]
        assert action.action_type == "progress"
        assert action.parameters["value"] == pytest.approx(0.5)

    def test_pose_without_pinch(self):
        adapter = HandInputAdapter(HandInputConfig())
        assert adapter.translate(InputEvent("pose", {"orientation": QUARTER_Y})) == []

    def test_pinch_twist_unpinch_commits(self, env):
        adapter = HandInputAdapter(HandInputConfig())
        adapter.feed(env, InputEvent("pinch", {"position": [0, 1, 0], "orientation": IDENTITY}))
        assert env.ui.grabbed
        adapter.feed(env, InputEvent("pose", {"orientation": EIGHTH_Y}))
        assert env.ui.rotation_progress == pytest.approx(0.5)

        result = last_result(adapter.feed(env, InputEvent("unpinch", {"orientation": QUARTER_Y})))
        assert result["status"] == "committed"
        assert env.last_move == Move(Axis.Y, 1, 1)
        assert adapter.face is None

    def test_small_twist_cancels(self, env):
        adapter = HandInputAdapter(HandInputConfig())
        adapter.feed(env, InputEvent("pinch", {"position": [0, 1, 0], "orientation": IDENTITY}))
        result = last_result(adapter.feed(env, InputEvent("unpinch", {"orientation": SMALL_Y})))
        assert result["status"] == "cancelled"
        assert env.move_count == 0


def test_registry_has_every_adapter():
    assert {"desktop", "controller", "hand"} <= set(INPUT_REGISTRY)


@pytest.mark.parametrize("kind,adapter_cls", [
    ("desktop", DesktopInputAdapter),
    ("controller", ControllerInputAdapter),
    ("hand", HandInputAdapter),
])
def test_create_input_adapter(kind, adapter_cls):
    adapter = create_input_adapter(InputConfig.from_dict({"type": kind}))
    assert isinstance(adapter, adapter_cls)


def test_create_input_adapter_unknown():
    with pytest.raises(ValueError):
        create_input_adapter(InputConfig(type="joystick"))
