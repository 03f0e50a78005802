import pytest
import yaml

from cubekit.core.config import (
    Config, CubeConfig, InputConfig, MapperConfig, RenderConfig, SessionConfig,
    create_default_config, load_config, validate_config,
)
from cubekit.inputs import ControllerInputConfig


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestDefaults:
    def test_config_defaults(self):
        config = Config()
        assert config.cube.dimension == 3
        assert config.mapper.movement_threshold == 0.1
        assert config.mapper.rotation_timeout == 0.5
        assert config.input.type == "desktop"
        assert config.input.rotation_timeout is None
        assert config.render.azim == -55.0
        assert validate_config(config) == []

    def test_hex_color(self):
        cube = CubeConfig()
        assert cube.hex_color("blue") == "#0066FF"
        assert cube.hex_color(None) == cube.filler_color
        assert cube.hex_color("#123456") == "#123456"

    def test_figsize(self):
        assert RenderConfig(image_width=200, image_height=100, dpi=100).figsize == (2.0, 1.0)


class TestEnvironmentOverrides:
    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("CUBEKIT_ROTATION_TIMEOUT", "0.25")
        monkeypatch.setenv("CUBEKIT_MOVEMENT_THRESHOLD", "0.3")
        config = MapperConfig()
        assert config.rotation_timeout == 0.25
        assert config.movement_threshold == 0.3

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("CUBEKIT_ROTATION_TIMEOUT", "0.25")
        assert MapperConfig(rotation_timeout=1.0).rotation_timeout == 1.0

    def test_garbage_is_ignored_with_warning(self, monkeypatch):
        monkeypatch.setenv("CUBEKIT_ROTATION_TIMEOUT", "soon")
        with pytest.warns(UserWarning):
            config = MapperConfig()
        assert config.rotation_timeout == 0.5


@pytest.mark.parametrize("factory", [
    lambda: CubeConfig(dimension=4),
    lambda: CubeConfig(piece_size=0),
    lambda: CubeConfig(piece_size=1.2, piece_spacing=1.0),
    lambda: CubeConfig(palette={"front": "blue"}),
    lambda: CubeConfig(palette={face: "red" for face in ("front", "back", "top", "bottom", "right", "left")}),
    lambda: MapperConfig(movement_threshold=-1),
    lambda: MapperConfig(rotation_timeout=-0.1),
    lambda: InputConfig(key_bindings={"a": 2}),
    lambda: InputConfig(rotation_timeout=-1),
    lambda: RenderConfig(image_width=0),
    lambda: RenderConfig(dpi=1.5),
])
def test_invalid_values(factory):
    with pytest.raises(ValueError):
        factory()


def test_input_from_dict_uses_registry():
    assert isinstance(InputConfig.from_dict({"type": "controller"}), ControllerInputConfig)
    assert type(InputConfig.from_dict({"type": "joystick"})) is InputConfig


class TestFiles:
    def test_create_and_load_round_trip(self, tmp_path):
        path = str(tmp_path / "config.yaml")
        created = create_default_config(path, input_type="controller")
        loaded = load_config(path)
        assert loaded.to_dict() == created.to_dict()
        assert isinstance(loaded.input, ControllerInputConfig)
        assert loaded.input.rotation_timeout == 0.3
        assert loaded.session.session_name == "default_session"

    def test_partial_file(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"mapper": {"rotation_timeout": 0.2}})
        config = load_config(path)
        assert config.mapper.rotation_timeout == 0.2
        assert config.cube.piece_spacing == 1.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_config(str(path))

    @pytest.mark.parametrize("data", [
        {"cube": {"dimension": 2}},
        {"mapper": {"speed": 3}},
    ])
    def test_bad_values(self, tmp_path, data):
        with pytest.raises(ValueError):
            load_config(write_yaml(tmp_path / "bad.yaml", data))

    def test_sample_configs_load(self):
        from pathlib import Path
        configs = Path(__file__).resolve().parent.parent / "configs"
        for path in sorted(configs.glob("*.yaml")):
            assert not [i for i in validate_config(load_config(str(path))) if i.startswith("ERROR")]


class TestValidate:
    def test_unknown_input_type(self):
        issues = validate_config(Config(input=InputConfig(type="joystick")))
        assert any(i.startswith("ERROR") and "joystick" in i for i in issues)

    def test_missing_session_name(self):
        config = Config()
        config.session.session_name = ""
        assert "ERROR: session_name is required" in validate_config(config)

    def test_warnings(self):
        config = Config(
            cube=CubeConfig(colors={}),
            mapper=MapperConfig(rotation_timeout=0, movement_threshold=2.0),
            render=RenderConfig(multi_view=True, image_width=128),
        )
        issues = validate_config(config)
        assert len(issues) == 4
        assert all(i.startswith("WARNING") for i in issues)


def test_session_config_has_no_side_effects(tmp_path):
    log_dir = tmp_path / "logs"
    config = SessionConfig(log_dir=str(log_dir))
    assert config.session_name == "cube_session"
    assert config.verbose
    assert not log_dir.exists()
