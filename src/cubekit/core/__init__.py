"""
Core modules for cubekit.

This package contains the fundamental components:
- Data model (axes, faces, pieces, cube states, moves, selections)
- Invariant errors
- Base classes for environments, input adapters and clocks
- Configuration management
- Registry for input adapter discovery
"""

from cubekit.core.base import (
    Axis,
    FACES,
    FACE_NORMALS,
    CANONICAL_PALETTE,
    Piece,
    CubeState,
    Move,
    GestureSelection,
    MapperState,
    UIState,
    Action,
    InputEvent,
    Observation,
    BaseClock,
    BaseEnvironment,
    BaseInputAdapter,
    CubeInvariantError,
    MalformedLayerError,
    CardinalityError,
    DuplicatePositionError,
    ColorConservationError,
    ExteriorColorError,
    UnknownFaceError,
)

from cubekit.core.config import Config, load_config, create_default_config, validate_config, CubeConfig, MapperConfig, InputConfig, RenderConfig, SessionConfig

from cubekit.core.registry import register_input, register_input_config, INPUT_REGISTRY, INPUT_CONFIG_REGISTRY

__all__ = [
    "Axis",
    "FACES",
    "FACE_NORMALS",
    "CANONICAL_PALETTE",
    "Piece",
    "CubeState",
    "Move",
    "GestureSelection",
    "MapperState",
    "UIState",
    "Action",
    "InputEvent",
    "Observation",
    "BaseClock",
    "BaseEnvironment",
    "BaseInputAdapter",
    "CubeInvariantError",
    "MalformedLayerError",
    "CardinalityError",
    "DuplicatePositionError",
    "ColorConservationError",
    "ExteriorColorError",
    "UnknownFaceError",
    "Config",
    "load_config",
    "create_default_config",
    "validate_config",
    "CubeConfig",
    "MapperConfig",
    "InputConfig",
    "RenderConfig",
    "SessionConfig",
    "register_input",
    "register_input_config",
    "INPUT_REGISTRY",
    "INPUT_CONFIG_REGISTRY",
]
