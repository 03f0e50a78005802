import glob
import json
import os
import runpy
from pathlib import Path

import pandas as pd
import pytest
import yaml

from cubekit.cli import CubeSession, load_action_list, main, parse_moves
from cubekit.core.base import Axis, Move
from cubekit.core.config import Config
from cubekit.utils.clock import ManualClock

SAMPLE_ACTIONS = Path(__file__).resolve().parent.parent / "examples" / "sample_actions.txt"


@pytest.fixture
def session():
    return CubeSession(Config(), clock=ManualClock(), verbose=False)


@pytest.fixture
def small_config(tmp_path):
    path = tmp_path / "small.yaml"
    path.write_text(yaml.safe_dump({"render": {"image_width": 64, "image_height": 64, "dpi": 32}}))
    return str(path)


def test_parse_moves():
    assert parse_moves("X,1,+1  y,-1,-1") == [Move(Axis.X, 1, 1), Move(Axis.Y, -1, -1)]
    assert parse_moves("") == []
    with pytest.raises(ValueError):
        parse_moves("X,2,+1")


class TestActionLists:
    def test_text_file_skips_comments(self, tmp_path):
        path = tmp_path / "actions.txt"
        path.write_text("# comment\nclick 1 1 1\n\nkey ArrowRight\n")
        assert load_action_list(str(path)) == ["click 1 1 1", "key ArrowRight"]

    def test_json_forms(self, tmp_path):
        plain = tmp_path / "a.json"
        plain.write_text(json.dumps(["turn front 1"]))
        wrapped = tmp_path / "b.json"
        wrapped.write_text(json.dumps({"actions": ["turn top -1"]}))
        assert load_action_list(str(plain)) == ["turn front 1"]
        assert load_action_list(str(wrapped)) == ["turn top -1"]

    def test_bad_json(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"moves": []}))
        with pytest.raises(ValueError):
            load_action_list(str(path))

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_action_list(str(tmp_path / "none.txt"))


class TestSession:
    def test_click_and_key(self, session):
        session.execute_line("click 1 1 1 right")
        results = session.execute_line("key ArrowRight")
        assert results[0]["status"] == "committed"
        assert session.env.move_count == 1

    def test_gate_and_wait(self, session):
        session.execute_line("turn right 1")
        assert session.execute_line("turn right -1")[0]["status"] == "ignored"
        session.wait()
        assert session.execute_line("turn right -1")[0]["status"] == "committed"
        assert session.env.is_solved()

    def test_unbound_key(self, session):
        assert session.execute_line("key Space") == []

    def test_comments_and_blank_lines(self, session):
        assert session.execute_line("") == []
        assert session.execute_line("# note") == []

    @pytest.mark.parametrize("line", ["jump", "click 1 1", "grab 1 1 1", "turn upper 1", "pinch a b c d e f g"])
    def test_bad_lines(self, session, line):
        with pytest.raises(ValueError):
            session.execute_line(line)

    def test_tools_lists_every_tool(self, session, capsys):
        assert session.execute_line("tools") == []
        out = capsys.readouterr().out
        assert "turn_face    (face*, direction*)" in out
        assert len(session.describe_tools()) == len(session.env.get_tool_schemas())

    def test_quit(self, session):
        session.execute_line("quit")
        assert session.finished

    def test_render(self, session, tmp_path):
        session.env.config.render.image_width = 48
        session.env.config.render.image_height = 48
        session.env.config.render.dpi = 24
        target = tmp_path / "snap.png"
        session.execute_line(f"render {target}")
        assert target.exists()

    def test_replay_sample_actions(self, session):
        session.replay(load_action_list(str(SAMPLE_ACTIONS)))
        assert session.env.move_count == 4
        assert session.env.last_move == Move(Axis.X, 1, -1)

    def test_replay_continues_after_bad_line(self, session):
        session.replay(["jump", "turn top 1"])
        assert session.env.move_count == 1


class TestCommands:
    def test_no_arguments(self):
        assert main([]) == 1

    def test_apply_four_turns(self, capsys):
        assert main(["apply", "--moves", "Z,1,+1 Z,1,+1 Z,1,+1 Z,1,+1"]) == 0
        out = capsys.readouterr().out
        assert "Solved" in out
        assert "True" in out

    def test_apply_bad_move(self):
        assert main(["apply", "--moves", "Q,1,+1"]) == 1

    def test_apply_render(self, tmp_path, small_config):
        target = tmp_path / "cube.png"
        assert main(["apply", "--moves", "X,1,+1", "--config", small_config, "--render", str(target)]) == 0
        assert target.exists()

    def test_create_and_validate_config(self, tmp_path):
        path = str(tmp_path / "config.yaml")
        assert main(["create-config", "--output", path, "--input-type", "hand"]) == 0
        assert main(["create-config", "--output", path]) == 1
        assert main(["create-config", "--output", path, "--force"]) == 0
        assert main(["validate-config", path]) == 0

    def test_validate_strict(self, tmp_path):
        path = tmp_path / "warn.yaml"
        path.write_text(yaml.safe_dump({"mapper": {"rotation_timeout": 0}}))
        assert main(["validate-config", str(path)]) == 0
        assert main(["validate-config", str(path), "--strict"]) == 1

    def test_validate_missing(self, tmp_path):
        assert main(["validate-config", str(tmp_path / "none.yaml")]) == 1

    def test_list_components_json(self, capsys):
        assert main(["list-components", "--format", "json"]) == 0
        components = json.loads(capsys.readouterr().out)
        assert {"desktop", "controller", "hand"} <= set(components["inputs"])

    def test_play_replay_with_logs(self, tmp_path):
        code = main([
            "play", "--actions", str(SAMPLE_ACTIONS),
            "--log", "--log-dir", str(tmp_path), "--quiet",
        ])
        assert code == 0
        run_dirs = glob.glob(os.path.join(str(tmp_path), "cube_session_*"))
        assert len(run_dirs) == 1
        assert os.path.exists(os.path.join(run_dirs[0], "session_log.json"))
        moves = pd.read_csv(os.path.join(run_dirs[0], "moves.csv"))
        assert len(moves) == 4

    def test_play_missing_actions(self, tmp_path):
        assert main(["play", "--actions", str(tmp_path / "none.txt"), "--quiet"]) == 1


class TestGestureDemo:
    DEMO = Path(__file__).resolve().parent.parent / "examples" / "gesture_demo.py"

    def test_demo_ends_solved(self, capsys):
        demo = runpy.run_path(str(self.DEMO))
        assert demo["main"]() == 0
        assert "Solved: True" in capsys.readouterr().out

    def test_demo_reports_invalid_config(self, capsys):
        demo = runpy.run_path(str(self.DEMO))
        demo["main"].__globals__["validate_config"] = lambda config: ["ERROR: broken"]
        assert demo["main"]() == 1
        assert "❌ Configuration is not valid" in capsys.readouterr().out
