"""
Configuration management for cubekit.

This module handles loading and validation of configuration files,
environment variables, and provides typed configuration objects.
"""

import os
import warnings
import yaml
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from pathlib import Path

from cubekit.core.base import FACES, CANONICAL_PALETTE
from cubekit.core.registry import INPUT_CONFIG_REGISTRY, INPUT_REGISTRY


DEFAULT_PALETTE: Dict[str, str] = dict(CANONICAL_PALETTE)

DEFAULT_COLORS: Dict[str, str] = {
    "white": "#F8F8F8",    # Slightly off-white for better contrast
    "yellow": "#FFD700",
    "red": "#FF3333",
    "orange": "#FF8C00",
    "blue": "#0066FF",
    "green": "#00CC00",
}

DEFAULT_KEY_BINDINGS: Dict[str, int] = {
    "ArrowRight": 1,
    "ArrowUp": 1,
    "ArrowLeft": -1,
    "ArrowDown": -1,
}


def _env_float(name: str) -> Optional[float]:
    """Read a float override from the environment, warning on garbage."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        warnings.warn(f"Ignoring {name}={raw!r}: not a number")
        return None


@dataclass
class CubeConfig:
    """Logical and visual parameters of the puzzle."""
    dimension: int = 3
    piece_size: float = 0.95
    piece_spacing: float = 1.0
    palette: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PALETTE))
    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    filler_color: str = "#1A1A1A"    # Dark gray for inner faces
    # Re-check every invariant after each committed move
    validate_after_move: bool = True

    def __post_init__(self):
        if self.dimension != 3:
            raise ValueError(f"Only 3x3x3 cubes are supported, got dimension={self.dimension}")
        if not isinstance(self.piece_size, (float, int)) or self.piece_size <= 0:
            raise ValueError("piece_size must be a positive number")
        if not isinstance(self.piece_spacing, (float, int)) or self.piece_spacing <= 0:
            raise ValueError("piece_spacing must be a positive number")
        if self.piece_size > self.piece_spacing:
            raise ValueError("piece_size cannot exceed piece_spacing (pieces would overlap)")
        if set(self.palette.keys()) != set(FACES):
            raise ValueError(f"palette must assign a color to each of: {', '.join(FACES)}")
        if len(set(self.palette.values())) != len(FACES):
            raise ValueError("palette must use six distinct colors")

    def hex_color(self, color: Optional[str]) -> str:
        """Resolve a color name to a drawable value; None maps to the filler."""
        if color is None:
            return self.filler_color
        return self.colors.get(color, color)


@dataclass
class MapperConfig:
    """Gesture thresholds and the rotating-state gate."""
    movement_threshold: Optional[float] = None
    rotation_timeout: Optional[float] = None
    twist_snap_tolerance: float = 0.1

    def __post_init__(self):
        # Load from environment variables if not provided
        if self.movement_threshold is None:
            self.movement_threshold = _env_float("CUBEKIT_MOVEMENT_THRESHOLD")
            if self.movement_threshold is None:
                self.movement_threshold = 0.1
        if self.rotation_timeout is None:
            self.rotation_timeout = _env_float("CUBEKIT_ROTATION_TIMEOUT")
            if self.rotation_timeout is None:
                self.rotation_timeout = 0.5
        if not isinstance(self.movement_threshold, (float, int)) or self.movement_threshold <= 0:
            raise ValueError("movement_threshold must be a positive number")
        if not isinstance(self.rotation_timeout, (float, int)) or self.rotation_timeout < 0:
            raise ValueError("rotation_timeout must be a non-negative number")
        if not isinstance(self.twist_snap_tolerance, (float, int)) or self.twist_snap_tolerance < 0:
            raise ValueError("twist_snap_tolerance must be a non-negative number")


@dataclass
class InputConfig:
    """Configuration for input adapters."""
    type: str = "desktop"
    key_bindings: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_BINDINGS))
    # Overrides mapper.rotation_timeout for this input source when set
    rotation_timeout: Optional[float] = None

    def __post_init__(self):
        for key, direction in self.key_bindings.items():
            if direction not in (1, -1):
                raise ValueError(f"key binding '{key}' must map to +1 or -1, got {direction}")
        if self.rotation_timeout is not None and self.rotation_timeout < 0:
            raise ValueError("rotation_timeout must be a non-negative number")

    @classmethod
    def from_dict(cls, input_data: Dict[str, Any]) -> "InputConfig":
        config_type = input_data.get("type", "desktop")
        config_cls = INPUT_CONFIG_REGISTRY.get(config_type, InputConfig)
        return config_cls(**input_data)


@dataclass
class RenderConfig:
    """Snapshot rendering of the cube."""
    image_width: int = 512
    image_height: int = 512
    dpi: int = 100
    elev: float = 25.0
    azim: float = -55.0
    multi_view: bool = False
    render_on_step: bool = False
    show_filler: bool = True

    def __post_init__(self):
        if not isinstance(self.image_width, int) or self.image_width <= 0:
            raise ValueError("image_width must be a positive integer")
        if not isinstance(self.image_height, int) or self.image_height <= 0:
            raise ValueError("image_height must be a positive integer")
        if not isinstance(self.dpi, int) or self.dpi <= 0:
            raise ValueError("dpi must be a positive integer")

    @property
    def figsize(self) -> Tuple[float, float]:
        return (self.image_width / self.dpi, self.image_height / self.dpi)


@dataclass
class SessionConfig:
    """Configuration for an interactive session."""
    session_name: str = "cube_session"
    log_dir: str = "logs"
    verbose: bool = True


@dataclass
class Config:
    """Main configuration object."""
    session: SessionConfig = field(default_factory=SessionConfig)
    cube: CubeConfig = field(default_factory=CubeConfig)
    mapper: MapperConfig = field(default_factory=MapperConfig)
    input: InputConfig = field(default_factory=InputConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        session = SessionConfig(**data.get("session", {}))
        cube = CubeConfig(**data.get("cube", {}))
        mapper = MapperConfig(**data.get("mapper", {}))
        input_config = InputConfig.from_dict(data.get("input", {}))
        render = RenderConfig(**data.get("render", {}))

        return cls(
            session=session,
            cube=cube,
            mapper=mapper,
            input=input_config,
            render=render,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Config to dictionary."""
        return {
            "session": dict(self.session.__dict__),
            "cube": dict(self.cube.__dict__),
            "mapper": dict(self.mapper.__dict__),
            "input": dict(self.input.__dict__),
            "render": dict(self.render.__dict__),
        }


def load_config(config_path: str) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
        ValueError: If the file is empty or holds invalid values
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML config: {e}")

    if not data:
        raise ValueError("Configuration file is empty")

    try:
        return Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Error creating config from data: {e}")


def create_default_config(output_path: str = "config.yaml", input_type: str = "desktop") -> Config:
    """
    Create a default configuration file.

    Args:
        output_path: Path where to save the default config
        input_type: Registered input adapter kind to preselect

    Returns:
        Default Config object
    """
    config = Config(
        session=SessionConfig(session_name="default_session"),
        input=InputConfig.from_dict({"type": input_type}),
    )

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, indent=2)

    return config


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation messages
    """
    issues = []

    if not config.session.session_name:
        issues.append("ERROR: session_name is required")

    if config.input.type not in INPUT_REGISTRY:
        issues.append(f"ERROR: Unknown input type '{config.input.type}'")

    missing = sorted(set(config.cube.palette.values()) - set(config.cube.colors.keys()))
    if missing:
        issues.append(f"WARNING: No hex value for palette colors {missing}; names will be passed to the renderer as-is")

    if config.mapper.rotation_timeout == 0:
        issues.append("WARNING: rotation_timeout is 0; the rotating gate only holds until the next input")

    if config.mapper.movement_threshold > 1.0:
        issues.append("WARNING: movement_threshold is larger than one piece; drag turns may never trigger")

    if config.render.multi_view and config.render.image_width < 256:
        issues.append("WARNING: multi_view rendering below 256px wide is hard to read")

    return issues
